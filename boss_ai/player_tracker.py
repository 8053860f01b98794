"""
player_tracker.py – Per-encounter player behaviour tracking.

Keeps a bounded history of player positions, classifies how the player
is moving, and nudges two scalar scores with every tick of events:

  accuracy       : +0.05 on a hit, -0.02 on a miss (only when the player fired)
  aggressiveness : +0.03 when the player fired, -0.01 otherwise

Both scores live in [0, 1] and are smoothed incrementally, never
recomputed from scratch.  Like the rest of the boss AI this state is
per-fight only; nothing is persisted.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum

from pygame.math import Vector2

from settings import AI_PLAYER_HISTORY_LENGTH


class MovementPattern(str, Enum):
    """Coarse classification of recent player movement."""

    NEUTRAL = "neutral"
    STATIONARY = "stationary"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL = "diagonal"


@dataclass
class TrackerConfig:
    """Tunables for the player tracker."""

    history_length: int = AI_PLAYER_HISTORY_LENGTH
    classify_window: int = 3          # samples used for classification
    stationary_speed: float = 1.0     # avg displacement below this = still
    axis_dominance: float = 2.0       # |dx| > 2·|dy| → horizontal

    start_accuracy: float = 0.5
    start_aggressiveness: float = 0.5
    hit_gain: float = 0.05
    miss_penalty: float = 0.02
    fire_gain: float = 0.03
    idle_decay: float = 0.01


@dataclass(frozen=True)
class PositionSample:
    x: float
    y: float
    time: float


@dataclass(frozen=True)
class TickEvents:
    """Player combat events observed during one tick."""
    player_fired: bool = False
    player_hit: bool = False


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class PlayerBehaviorTracker:
    """Bounded position history + movement / skill estimation."""

    def __init__(self, config: TrackerConfig | None = None):
        self.cfg = config or TrackerConfig()
        self._history: deque[PositionSample] = deque(maxlen=self.cfg.history_length)
        self.position = Vector2(0, 0)
        self.movement_pattern = MovementPattern.NEUTRAL
        self.accuracy: float = self.cfg.start_accuracy
        self.aggressiveness: float = self.cfg.start_aggressiveness

    @property
    def history(self) -> list[PositionSample]:
        return list(self._history)

    # ── Position tracking ─────────────────────────────────

    def record(self, position, timestamp: float):
        """Append a position sample (oldest evicted) and re-classify."""
        pos = Vector2(position)
        self._history.append(PositionSample(pos.x, pos.y, timestamp))
        self.position = pos
        self.classify()

    def classify(self) -> MovementPattern:
        """Classify movement from the average step over the last samples.

        Needs at least ``classify_window`` samples; until then the
        previous pattern (initially NEUTRAL) is kept.
        """
        cfg = self.cfg
        if len(self._history) < cfg.classify_window:
            return self.movement_pattern

        recent = list(self._history)[-cfg.classify_window:]
        steps = len(recent) - 1
        dx = sum(b.x - a.x for a, b in zip(recent, recent[1:])) / steps
        dy = sum(b.y - a.y for a, b in zip(recent, recent[1:])) / steps
        speed = Vector2(dx, dy).length()

        if speed < cfg.stationary_speed:
            pattern = MovementPattern.STATIONARY
        elif abs(dx) > abs(dy) * cfg.axis_dominance:
            pattern = MovementPattern.HORIZONTAL
        elif abs(dy) > abs(dx) * cfg.axis_dominance:
            pattern = MovementPattern.VERTICAL
        else:
            pattern = MovementPattern.DIAGONAL

        self.movement_pattern = pattern
        return pattern

    # ── Skill estimation ──────────────────────────────────

    def observe(self, events: TickEvents):
        """Nudge accuracy / aggressiveness from one tick of events."""
        cfg = self.cfg
        if events.player_fired:
            if events.player_hit:
                self.accuracy = _clamp01(self.accuracy + cfg.hit_gain)
            else:
                self.accuracy = _clamp01(self.accuracy - cfg.miss_penalty)
            self.aggressiveness = _clamp01(self.aggressiveness + cfg.fire_gain)
        else:
            self.aggressiveness = _clamp01(self.aggressiveness - cfg.idle_decay)

    def reset(self):
        """Forget everything (new encounter)."""
        self._history.clear()
        self.position = Vector2(0, 0)
        self.movement_pattern = MovementPattern.NEUTRAL
        self.accuracy = self.cfg.start_accuracy
        self.aggressiveness = self.cfg.start_aggressiveness
