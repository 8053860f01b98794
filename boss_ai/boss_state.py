"""
boss_state.py – Boss phase / enrage monitor.

The boss fight escalates through three phases driven *only* by the
remaining health ratio:

  Phase 1 : ratio  > 0.66
  Phase 2 : ratio  > 0.33
  Phase 3 : ratio <= 0.33

Independently, the boss is ENRAGED while the ratio is below 0.25.

Phase is always recomputed from health; nothing else stores it.
The controller polls ``update()`` every tick and compares the phase
before/after to detect a transition (one-shot edge trigger).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Thresholds
# ══════════════════════════════════════════════════════════

PHASE2_RATIO = 0.66      # at or below → phase 2
PHASE3_RATIO = 0.33      # at or below → phase 3
ENRAGE_RATIO = 0.25      # strictly below → enraged


def phase_for_ratio(ratio: float) -> int:
    """Map a health ratio (0–1) to a phase number (1, 2 or 3)."""
    if ratio > PHASE2_RATIO:
        return 1
    if ratio > PHASE3_RATIO:
        return 2
    return 3


def is_enraged(ratio: float) -> bool:
    return ratio < ENRAGE_RATIO


def health_ratio(health: float, max_health: float) -> float:
    if max_health <= 0:
        return 0.0
    return health / max_health


# ══════════════════════════════════════════════════════════
#  Boss State (snapshot)
# ══════════════════════════════════════════════════════════

@dataclass
class BossState:
    """Latest derived view of the boss's health."""
    health: float
    max_health: float
    phase: int = 1
    enraged: bool = False
    last_damage_time: float = 0.0    # seconds (monitor clock)

    @property
    def ratio(self) -> float:
        return health_ratio(self.health, self.max_health)


# ══════════════════════════════════════════════════════════
#  Monitor
# ══════════════════════════════════════════════════════════

class BossStateMonitor:
    """Derives phase + enrage from health and records damage timing.

    Usage:
        monitor = BossStateMonitor(boss.health, boss.max_health)
        old_phase = monitor.phase
        monitor.update(boss.health)
        if monitor.phase != old_phase:
            # phase transition
    """

    def __init__(self, health: float, max_health: float,
                 clock: Callable[[], float] | None = None):
        self._clock = clock or time.monotonic
        ratio = health_ratio(health, max_health)
        self._state = BossState(
            health=health,
            max_health=max_health,
            phase=phase_for_ratio(ratio),
            enraged=is_enraged(ratio),
        )
        self._previous_phase = self._state.phase

    @property
    def state(self) -> BossState:
        return self._state

    @property
    def phase(self) -> int:
        return self._state.phase

    @property
    def enraged(self) -> bool:
        return self._state.enraged

    @property
    def previous_phase(self) -> int:
        """Phase before the most recent ``update()``."""
        return self._previous_phase

    @property
    def phase_changed(self) -> bool:
        """True only for the update that crossed a phase boundary."""
        return self._previous_phase != self._state.phase

    def update(self, current_health: float, max_health: float | None = None):
        """Recompute phase / enrage. Call once per tick."""
        st = self._state
        if max_health is not None:
            st.max_health = max_health

        if current_health < st.health:
            st.last_damage_time = self._clock()
        st.health = current_health

        ratio = st.ratio
        self._previous_phase = st.phase
        st.phase = phase_for_ratio(ratio)
        st.enraged = is_enraged(ratio)

        if self.phase_changed:
            logger.debug("Boss phase %d → %d (ratio=%.2f)",
                         self._previous_phase, st.phase, ratio)

    def mark_damage(self):
        """Record an externally reported hit (``on_damage_taken``)."""
        self._state.last_damage_time = self._clock()
