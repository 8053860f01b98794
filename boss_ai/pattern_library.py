"""
pattern_library.py – Catalog of timed boss attack patterns.

Each pattern is an immutable ``PatternDefinition`` (id, display name,
duration, advisory cooldown) bound to a plain emission function.  The
catalog is a read-only lookup table shared by every boss; live state
(timer, firing accumulators, rng) sits on a ``PatternInstance``.

Emission cadence uses an explicit accumulator per stream:

    acc -= dt
    if acc <= 0:
        fire()
        acc += interval

so a pattern fires roughly every ``interval`` ms regardless of frame
timing.  Composite patterns (ultimate) split their timer into fixed
stages and delegate to the simple emitters.

The library never retires an instance; callers check ``complete``.
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable

import pygame
from pygame.math import Vector2

from settings import SCREEN_WIDTH, SCREEN_HEIGHT

logger = logging.getLogger(__name__)


class PatternId(str, Enum):
    STRAIGHT = "straight"
    SPREAD = "spread"
    SPIRAL = "spiral"
    HOMING = "homing"
    LASER = "laser"
    MINES = "mines"
    TELEPORT = "teleport"
    CLONE = "clone"
    STORM = "storm"
    ULTIMATE = "ultimate"


DEFAULT_PATTERN = PatternId.STRAIGHT
ALL_PATTERNS_SENTINEL = "all"

# ── Projectile tuning (velocities in pixels/sec) ─────────
STRAIGHT_INTERVAL = 500
STRAIGHT_SPEED = 300.0
SPREAD_INTERVAL = 800
SPREAD_SPEED = 240.0
SPREAD_ANGLES = (-30, -15, 0, 15, 30)
SPIRAL_INTERVAL = 150
SPIRAL_SPEED = 180.0
SPIRAL_ARMS = 6
HOMING_INTERVAL = 1000
HOMING_SPEED = 180.0
HOMING_SPREAD_DEG = 20
LASER_WARMUP = 1000
LASER_INTERVAL = 100
LASER_SPEED = 480.0
MINES_INTERVAL = 200
MINE_FUSE = 3000
MINE_RADIUS = 30
TELEPORT_STAGE = 500
CLONE_INTERVAL = 600
CLONE_SPEED = 240.0
CLONE_OFFSETS = ((-100, 0), (100, 0))
STORM_BASE_INTERVAL = 100
ULTIMATE_STAGE = 2000


# ══════════════════════════════════════════════════════════
#  Data types
# ══════════════════════════════════════════════════════════

@dataclass
class BossProjectile:
    """Descriptor handed to ``boss.shoot()``; the boss turns it into a
    live projectile."""
    position: Vector2
    velocity: Vector2
    damage: float
    color: tuple[int, int, int]
    kind: str = "bullet"            # bullet | mine | laser
    homing: bool = False
    radius: float | None = None
    fuse: float | None = None       # ms until a mine detonates
    width: float | None = None
    height: float | None = None


Emitter = Callable[["PatternInstance", float, object, Vector2], "list[BossProjectile]"]


@dataclass(frozen=True)
class PatternDefinition:
    id: PatternId
    display_name: str
    duration: float                 # ms
    cooldown: float                 # ms, advisory only
    emit: Emitter


@dataclass
class PatternInstance:
    """A pattern running for one boss."""
    definition: PatternDefinition
    boss: object
    start_time: float
    arena: tuple[int, int]
    rng: random.Random
    timer: float = 0.0
    stage: int = -1
    accumulators: dict[str, float] = field(default_factory=dict)
    clone_offsets: list[Vector2] = field(default_factory=list)

    @property
    def id(self) -> PatternId:
        return self.definition.id

    @property
    def display_name(self) -> str:
        return self.definition.display_name

    @property
    def duration(self) -> float:
        return self.definition.duration

    @property
    def complete(self) -> bool:
        return self.timer >= self.definition.duration

    def due(self, stream: str, interval: float, delta_ms: float) -> bool:
        """Advance one firing accumulator; True when a batch should fire."""
        acc = self.accumulators.get(stream, 0.0) - delta_ms
        fired = acc <= 0
        if fired:
            acc += interval
        self.accumulators[stream] = acc
        return fired


# ══════════════════════════════════════════════════════════
#  Geometry helpers
# ══════════════════════════════════════════════════════════

def _muzzle(boss) -> Vector2:
    """Bottom-centre of the boss sprite."""
    return Vector2(boss.position.x + boss.width / 2, boss.position.y + boss.height)


def _aimed(origin: Vector2, target: Vector2, speed: float) -> Vector2 | None:
    direction = Vector2(target) - origin
    if direction.length_squared() == 0:
        return None
    return direction.normalize() * speed


def _polar(speed: float, degrees: float) -> Vector2:
    return Vector2(speed, 0).rotate(degrees)


def _storm_color(rng: random.Random) -> tuple[int, int, int]:
    color = pygame.Color(0, 0, 0)
    color.hsla = (rng.random() * 60 + 300, 70, 60, 100)
    return (color.r, color.g, color.b)


# ══════════════════════════════════════════════════════════
#  Projectile batches
# ══════════════════════════════════════════════════════════

def _aimed_shot(boss, target: Vector2) -> list[BossProjectile]:
    origin = _muzzle(boss)
    velocity = _aimed(origin, target, STRAIGHT_SPEED)
    if velocity is None:
        return []
    return [BossProjectile(origin, velocity, 2, (255, 68, 68))]


def _spread_fan(boss) -> list[BossProjectile]:
    origin = _muzzle(boss)
    batch = []
    for angle in SPREAD_ANGLES:
        rad = math.radians(angle)
        velocity = Vector2(math.sin(rad), math.cos(rad)) * SPREAD_SPEED
        batch.append(BossProjectile(Vector2(origin), velocity, 1.5, (255, 102, 0)))
    return batch


# ══════════════════════════════════════════════════════════
#  Emitters
# ══════════════════════════════════════════════════════════

def _emit_straight(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    if inst.due("straight", STRAIGHT_INTERVAL, delta_ms):
        return _aimed_shot(boss, target)
    return []


def _emit_spread(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    if inst.due("spread", SPREAD_INTERVAL, delta_ms):
        return _spread_fan(boss)
    return []


def _emit_spiral(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    if not inst.due("spiral", SPIRAL_INTERVAL, delta_ms):
        return []
    origin = _muzzle(boss)
    rotation = inst.timer * 0.5
    return [
        BossProjectile(Vector2(origin),
                       _polar(SPIRAL_SPEED, i * (360 / SPIRAL_ARMS) + rotation),
                       1, (136, 68, 255))
        for i in range(SPIRAL_ARMS)
    ]


def _emit_homing(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    if not inst.due("homing", HOMING_INTERVAL, delta_ms):
        return []
    origin = _muzzle(boss)
    base = math.degrees(math.atan2(target.y - origin.y, target.x - origin.x))
    return [
        BossProjectile(Vector2(origin),
                       _polar(HOMING_SPEED, base + (i - 1) * HOMING_SPREAD_DEG),
                       2.5, (255, 0, 255), homing=True)
        for i in range(3)
    ]


def _emit_laser(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    # Warm-up: the beam is telegraphed before it deals damage.
    if inst.timer < LASER_WARMUP:
        return []
    if not inst.due("laser", LASER_INTERVAL, delta_ms):
        return []
    return [BossProjectile(_muzzle(boss), Vector2(0, LASER_SPEED), 5, (0, 255, 255),
                           kind="laser", width=20, height=400)]


def _emit_mines(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    if not inst.due("mines", MINES_INTERVAL, delta_ms):
        return []
    width, height = inst.arena
    pos = Vector2(inst.rng.random() * (width - 100) + 50,
                  inst.rng.random() * (height * 0.6) + 50)
    return [BossProjectile(pos, Vector2(0, 0), 4, (255, 136, 0),
                           kind="mine", fuse=MINE_FUSE, radius=MINE_RADIUS)]


def _emit_teleport(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    # Stages: 0 wind-up, 1 relocate, 2 burst.  Each acts once per entry.
    stage = int(inst.timer // TELEPORT_STAGE) % 3
    if stage == inst.stage:
        return []
    inst.stage = stage

    if stage == 1:
        width, _ = inst.arena
        if target.x < width / 2:
            x = width * 0.8 - boss.width
        else:
            x = width * 0.2
        boss.teleport(Vector2(x, 50 + inst.rng.random() * 100))
    elif stage == 2:
        return _spread_fan(boss) + _aimed_shot(boss, target)
    return []


def _emit_clone(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    if not inst.clone_offsets:
        inst.clone_offsets = [Vector2(offset) for offset in CLONE_OFFSETS]
    if not inst.due("clone", CLONE_INTERVAL, delta_ms):
        return []
    batch = []
    for offset in inst.clone_offsets:
        origin = Vector2(boss.position) + offset
        velocity = _aimed(origin, target, CLONE_SPEED)
        if velocity is not None:
            batch.append(BossProjectile(origin, velocity, 1.5, (102, 102, 102)))
    return batch


def _emit_storm(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    intensity = 1 + math.sin(inst.timer * 0.01) * 0.5
    if not inst.due("storm", STORM_BASE_INTERVAL / intensity, delta_ms):
        return []
    rng = inst.rng
    origin = _muzzle(boss)
    batch = []
    for _ in range(2 + rng.randrange(3)):
        pos = Vector2(origin.x + (rng.random() - 0.5) * boss.width, origin.y)
        velocity = _polar((2 + rng.random() * 4) * 60, rng.random() * 360)
        batch.append(BossProjectile(pos, velocity, 1.5, _storm_color(rng)))
    return batch


_ULTIMATE_STAGES: tuple[Emitter, ...] = (
    _emit_spiral, _emit_spread, _emit_homing, _emit_laser,
)


def _emit_ultimate(inst: PatternInstance, delta_ms: float, boss, target: Vector2):
    stage = int(inst.timer // ULTIMATE_STAGE) % len(_ULTIMATE_STAGES)
    return _ULTIMATE_STAGES[stage](inst, delta_ms, boss, target)


# ══════════════════════════════════════════════════════════
#  Catalog
# ══════════════════════════════════════════════════════════

PATTERNS: MappingProxyType[PatternId, PatternDefinition] = MappingProxyType({
    d.id: d for d in (
        PatternDefinition(PatternId.STRAIGHT, "Straight Shot", 2000, 1000, _emit_straight),
        PatternDefinition(PatternId.SPREAD, "Spread Fire", 3000, 1500, _emit_spread),
        PatternDefinition(PatternId.SPIRAL, "Spiral Barrage", 4000, 2000, _emit_spiral),
        PatternDefinition(PatternId.HOMING, "Homing Missiles", 3000, 2500, _emit_homing),
        PatternDefinition(PatternId.LASER, "Laser Beam", 2500, 3000, _emit_laser),
        PatternDefinition(PatternId.MINES, "Mine Field", 1000, 4000, _emit_mines),
        PatternDefinition(PatternId.TELEPORT, "Teleport Strike", 1500, 5000, _emit_teleport),
        PatternDefinition(PatternId.CLONE, "Shadow Clone", 5000, 8000, _emit_clone),
        PatternDefinition(PatternId.STORM, "Projectile Storm", 6000, 3000, _emit_storm),
        PatternDefinition(PatternId.ULTIMATE, "Ultimate Attack", 8000, 15000, _emit_ultimate),
    )
})


def to_pattern_id(value) -> PatternId | None:
    """Coerce a string / PatternId; None when it is not a catalog id."""
    try:
        return PatternId(value)
    except ValueError:
        return None


def expand_pattern_list(names) -> list[str]:
    """Resolve a boss's pattern list, expanding the "all" sentinel."""
    names = list(names or [])
    if ALL_PATTERNS_SENTINEL in names:
        return [p.value for p in PatternId]
    return [n for n in names if to_pattern_id(n) is not None]


class PatternLibrary:
    """Read-only catalog plus instantiation / per-tick execution.

    Usage:
        library = PatternLibrary()
        inst = library.instantiate("spiral", boss)
        library.tick(inst, delta_ms, player_position)   # every tick
        if inst.complete:
            # caller retires it
    """

    def __init__(self, arena: tuple[int, int] = (SCREEN_WIDTH, SCREEN_HEIGHT),
                 rng: random.Random | None = None,
                 clock: Callable[[], float] | None = None):
        self.arena = arena
        self._rng = rng or random.Random()
        self._clock = clock or time.monotonic

    def pattern_ids(self) -> list[str]:
        return [p.value for p in PATTERNS]

    def is_available(self, pattern_id) -> bool:
        return to_pattern_id(pattern_id) is not None

    def definition(self, pattern_id) -> PatternDefinition | None:
        pid = to_pattern_id(pattern_id)
        return PATTERNS[pid] if pid is not None else None

    def info(self, pattern_id) -> dict | None:
        d = self.definition(pattern_id)
        if d is None:
            return None
        return {"name": d.display_name, "duration": d.duration, "cooldown": d.cooldown}

    def instantiate(self, pattern_id, boss) -> PatternInstance:
        """Fresh instance with ``timer = 0``; unknown ids use the default."""
        definition = self.definition(pattern_id)
        if definition is None:
            logger.warning("Unknown pattern %r, using %s", pattern_id, DEFAULT_PATTERN.value)
            definition = PATTERNS[DEFAULT_PATTERN]
        return PatternInstance(
            definition=definition,
            boss=boss,
            start_time=self._clock(),
            arena=self.arena,
            rng=self._rng,
        )

    def tick(self, instance: PatternInstance, delta_ms: float,
             player_position) -> list[BossProjectile]:
        """Advance the instance timer and fire any due batch through
        ``boss.shoot()``.  Returns the batch (possibly empty)."""
        instance.timer += delta_ms
        target = Vector2(player_position)
        batch = instance.definition.emit(instance, delta_ms, instance.boss, target)
        if batch:
            instance.boss.shoot(batch)
        return batch
