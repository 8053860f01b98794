"""
context.py – Read-only snapshots handed to the decision makers.

The controller assembles one ``DecisionContext`` per scheduling cycle
from the boss entity, the player tracker, the boss state monitor and
the game state provider.  Both the remote client and the fallback
engine consume it; neither ever touches the live objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2

from settings import DEFAULT_DIFFICULTY, SCREEN_WIDTH, SCREEN_HEIGHT


@dataclass
class GameState:
    """Game state provider: the bits of the outer game the AI reads."""
    difficulty: str = DEFAULT_DIFFICULTY
    level: int = 1
    score: int = 0
    time_elapsed: float = 0.0       # ms since the encounter started


@dataclass(frozen=True)
class BossSnapshot:
    name: str
    health: float
    max_health: float
    health_ratio: float
    position: Vector2
    phase: int
    enraged: bool
    personality: str
    base_speed: float


@dataclass(frozen=True)
class PlayerSnapshot:
    position: Vector2
    movement_pattern: str
    accuracy: float
    aggressiveness: float
    distance: float


@dataclass(frozen=True)
class DecisionContext:
    boss: BossSnapshot
    player: PlayerSnapshot
    game: GameState
    available_patterns: tuple[str, ...]
    current_pattern: str | None = None
    pattern_timer: float = 0.0      # ms the current pattern has run
    arena: tuple[int, int] = field(default=(SCREEN_WIDTH, SCREEN_HEIGHT))
