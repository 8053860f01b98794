"""
simulation_runner.py – Automated headless boss encounters.

Runs N encounters where a scripted pilot flies the player ship, so the
boss AI (remote-backed or rule-based) can be exercised without a
window or keyboard.

Usage (from CLI):
    python main.py --simulate 20 --level 3

Pilots:
    strafer  – sweeps left/right along the bottom, firing constantly
    camper   – parks under the boss and fires, barely moving
    dodger   – jumps between random points, fires in bursts
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Callable

from pygame.math import Vector2

from settings import SCREEN_WIDTH, SCREEN_HEIGHT, FPS, BOSSES

logger = logging.getLogger(__name__)

PILOTS = ("strafer", "camper", "dodger")
_MAX_ENCOUNTER_MS = 180_000.0


# ══════════════════════════════════════════════════════════
#  Per-encounter result
# ══════════════════════════════════════════════════════════

@dataclass
class EncounterResult:
    """Lightweight record for one simulated encounter."""
    number: int = 0
    level: int = 1
    boss: str = ""
    pilot: str = ""
    result: str = ""              # victory | defeat | timeout
    duration_sec: float = 0.0
    decisions: int = 0
    phase_transitions: int = 0
    pattern_usage: dict[str, int] = field(default_factory=dict)
    source_usage: dict[str, int] = field(default_factory=dict)


# ══════════════════════════════════════════════════════════
#  Scripted pilot
# ══════════════════════════════════════════════════════════

class ScriptedPilot:
    """Chooses where the ship goes and whether it fires each frame."""

    def __init__(self, style: str, rng: random.Random):
        self.style = style
        self._rng = rng
        self._waypoint = Vector2(SCREEN_WIDTH / 2, SCREEN_HEIGHT - 50)
        self._timer = 0.0
        self._direction = 1

    def step(self, delta_ms: float, ship, boss) -> bool:
        """Move *ship*; returns True when it wants to fire."""
        self._timer += delta_ms
        if self.style == "strafer":
            if ship.center.x < 60:
                self._direction = 1
            elif ship.center.x > SCREEN_WIDTH - 60:
                self._direction = -1
            ship.move_toward(ship.center + Vector2(self._direction * 200, 0), delta_ms)
            return True

        if self.style == "camper":
            under_boss = Vector2(boss.center.x + self._rng.uniform(-20, 20), SCREEN_HEIGHT - 50)
            ship.move_toward(under_boss, delta_ms)
            return True

        # dodger
        if self._timer >= 800 or ship.center.distance_to(self._waypoint) < 5:
            self._timer = 0.0
            self._waypoint = Vector2(self._rng.uniform(40, SCREEN_WIDTH - 40),
                                     self._rng.uniform(SCREEN_HEIGHT * 0.6, SCREEN_HEIGHT - 30))
        ship.move_toward(self._waypoint, delta_ms)
        return (self._timer // 400) % 2 == 0


# ══════════════════════════════════════════════════════════
#  Simulation Runner
# ══════════════════════════════════════════════════════════

class SimulationRunner:
    """Run *n_encounters* headless encounters.

    Parameters
    ----------
    n_encounters : int
        How many encounters to run.
    level : int | None
        Fixed boss level, or None to cycle through the roster.
    client_factory : callable | None
        Returns a fresh ``DecisionClient`` (or None) per encounter.
    """

    def __init__(self, n_encounters: int = 10, level: int | None = None,
                 client_factory: Callable[[], object] | None = None,
                 seed: int | None = None, plot: bool = False) -> None:
        self._n = max(1, n_encounters)
        self._level = level
        self._client_factory = client_factory
        self._rng = random.Random(seed)
        self._plot = plot
        self._results: list[EncounterResult] = []

    # ── Public entry point ────────────────────────────────

    async def run(self) -> list[EncounterResult]:
        """Execute all N encounters, then print and return results."""
        levels = sorted(BOSSES)
        for i in range(1, self._n + 1):
            level = self._level or levels[(i - 1) % len(levels)]
            pilot = PILOTS[(i - 1) % len(PILOTS)]
            logger.info("=== Simulation encounter %d / %d (level %d, %s) ===",
                        i, self._n, level, pilot)
            result = await self._run_one(i, level, pilot)
            self._results.append(result)
            logger.info("Encounter %d: %s  dur=%.1fs  decisions=%d  phases=%d",
                        i, result.result, result.duration_sec,
                        result.decisions, result.phase_transitions)
        self._print_summary()
        return self._results

    # ── Single encounter ──────────────────────────────────

    async def _run_one(self, number: int, level: int, pilot_style: str) -> EncounterResult:
        from systems.encounter import Encounter

        client = self._client_factory() if self._client_factory else None
        encounter = Encounter(level=level, client=client,
                              rng=random.Random(self._rng.random()),
                              plot=self._plot)
        await encounter.start()
        pilot = ScriptedPilot(pilot_style, random.Random(self._rng.random()))

        delta_ms = 1000.0 / FPS
        try:
            while not encounter.over:
                fire = pilot.step(delta_ms, encounter.ship, encounter.boss)
                encounter.update(delta_ms, fire=fire)
                if encounter.game_state.time_elapsed >= _MAX_ENCOUNTER_MS:
                    logger.warning("Encounter %d timed out", number)
                    encounter.finish("timeout")
                # Let an in-flight remote decision make progress.
                await asyncio.sleep(0)
        finally:
            if client is not None:
                await client.close()

        stats = encounter.stats
        return EncounterResult(
            number=number,
            level=level,
            boss=encounter.boss.name,
            pilot=pilot_style,
            result=encounter.result or "",
            duration_sec=encounter.game_state.time_elapsed / 1000.0,
            decisions=len(stats.decisions),
            phase_transitions=len(stats.phase_changes),
            pattern_usage=stats.pattern_usage(),
            source_usage=stats.source_usage(),
        )

    # ── Summary printout ──────────────────────────────────

    def _print_summary(self) -> None:
        n = len(self._results)
        if n == 0:
            print("\nNo encounters completed.")
            return

        print(f"\n{'=' * 58}")
        print(f"  Simulation Results  ({n} encounters)")
        print(f"{'=' * 58}")

        victories = sum(1 for r in self._results if r.result == "victory")
        defeats = sum(1 for r in self._results if r.result == "defeat")
        other = n - victories - defeats
        print(f"\n  Player wins : {victories:>4d}  ({100 * victories / n:.1f}%)")
        print(f"  Boss wins   : {defeats:>4d}  ({100 * defeats / n:.1f}%)")
        if other:
            print(f"  Timeouts    : {other:>4d}")

        avg_dur = sum(r.duration_sec for r in self._results) / n
        avg_dec = sum(r.decisions for r in self._results) / n
        print(f"\n  Avg duration          : {avg_dur:.1f}s")
        print(f"  Avg decisions         : {avg_dec:.1f}")

        # ── Boss table ────────────────────────────────────
        print(f"\n  {'Boss':<22s}  {'Played':>6s}  {'BossWR%':>7s}")
        print(f"  {'-' * 40}")
        by_boss: dict[str, list[EncounterResult]] = {}
        for r in self._results:
            by_boss.setdefault(r.boss, []).append(r)
        for name, rows in by_boss.items():
            wins = sum(1 for r in rows if r.result == "defeat")
            print(f"  {name:<22s}  {len(rows):>6d}  {100 * wins / len(rows):>6.1f}%")

        # ── Pattern usage ─────────────────────────────────
        totals: dict[str, int] = {}
        for r in self._results:
            for pattern, count in r.pattern_usage.items():
                totals[pattern] = totals.get(pattern, 0) + count
        print("\n  Pattern usage:")
        for pattern in sorted(totals, key=lambda k: totals[k], reverse=True):
            print(f"    {pattern:<10s} {totals[pattern]:>5d}")

        print(f"\n{'=' * 58}\n")
