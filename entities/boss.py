"""
boss.py – Boss entity driven by the adaptive boss AI.

Implements every capability the ``BossAIController`` consumes:

- movement targets ("left", "right", "center", "player", "random" or
  an explicit arena point) and a speed factor
- shoot(batch) into the shared ProjectileSystem
- teleport, shield, heal, summon minions, rage
- phase 2 / phase 3 activation
- damage / speed multipliers adjusted by difficulty adaptation

The AI only *decides*; all movement and timers live here.
"""

from __future__ import annotations

import logging
import random

logger = logging.getLogger(__name__)

import pygame
from pygame.math import Vector2
from settings import (
    SCREEN_WIDTH, SCREEN_HEIGHT, BOSSES, WHITE, CYAN, PURPLE, RED, ORANGE,
    BOSS_SPEED_SCALE, BOSS_START_Y,
    BOSS_RAGE_DURATION_MS, BOSS_MINION_FIRE_INTERVAL_MS, BOSS_MAX_MINIONS,
    BOSS_PHASE2_SPEED_MULT, BOSS_PHASE3_SPEED_MULT,
)
from boss_ai.pattern_library import BossProjectile

_MINION_SIZE = 22
_MINION_SHOT_SPEED = 220.0
_ARRIVE_EPSILON = 2.0


class Minion:
    """Small escort that orbits below the boss and fires aimed shots."""

    def __init__(self, offset: Vector2, fire_delay: float):
        self.offset = offset
        self.position = Vector2(0, 0)
        self.fire_acc = fire_delay

    @property
    def rect(self) -> pygame.Rect:
        return pygame.Rect(int(self.position.x), int(self.position.y),
                           _MINION_SIZE, _MINION_SIZE)


class Boss:
    """The level's boss.

    Usage:
        boss = Boss(level=1, projectiles=projectile_system)
        boss.update(delta_ms, player_pos)
        boss.draw(surface)
    """

    def __init__(self, level: int = 1, definition: dict | None = None,
                 projectiles=None, rng: random.Random | None = None):
        cfg = definition or BOSSES.get(level, BOSSES[1])
        self.level = level
        self.name: str = cfg["name"]
        self.max_health: float = float(cfg["health"])
        self.health: float = self.max_health
        self.base_speed: float = float(cfg["speed"])
        self.score: int = cfg.get("score", 0)
        self.width: int = cfg["width"]
        self.height: int = cfg["height"]
        self.attack_patterns: list[str] = list(cfg["attack_patterns"])
        self.ai_personality: str = cfg["ai_personality"]

        self.projectiles = projectiles
        self._rng = rng or random.Random()

        self.position = Vector2((SCREEN_WIDTH - self.width) / 2, BOSS_START_Y)
        self.movement_target: str | tuple[float, float] = "center"
        self._random_point: Vector2 | None = None
        self.speed_factor: float = 1.0

        # Difficulty adaptation
        self.damage_multiplier: float = 1.0
        self.speed_multiplier: float = 1.0

        # Special action state (ms)
        self.shield_timer: float = 0.0
        self.rage_timer: float = 0.0
        self.rage_multiplier: float = 1.0
        self.minions: list[Minion] = []

        self.phase = 1
        self.phase_speed_mult: float = 1.0
        self.shots_fired = 0

    # ── Derived state ─────────────────────────────────────

    @property
    def alive(self) -> bool:
        return self.health > 0

    @property
    def rect(self) -> pygame.Rect:
        return pygame.Rect(int(self.position.x), int(self.position.y),
                           self.width, self.height)

    @property
    def center(self) -> Vector2:
        return Vector2(self.position.x + self.width / 2, self.position.y + self.height / 2)

    @property
    def shielded(self) -> bool:
        return self.shield_timer > 0

    @property
    def raging(self) -> bool:
        return self.rage_timer > 0

    @property
    def effective_damage_multiplier(self) -> float:
        rage = self.rage_multiplier if self.raging else 1.0
        return self.damage_multiplier * rage

    @property
    def move_speed(self) -> float:
        """Current movement speed in pixels/sec."""
        rage = self.rage_multiplier if self.raging else 1.0
        return (self.base_speed * BOSS_SPEED_SCALE * self.speed_factor
                * self.speed_multiplier * self.phase_speed_mult * rage)

    # ── Capabilities used by the AI controller ────────────

    def set_movement_target(self, target):
        self.movement_target = target
        self._random_point = None
        if target == "random":
            self._random_point = Vector2(
                self._rng.uniform(0, SCREEN_WIDTH - self.width),
                self._rng.uniform(BOSS_START_Y, SCREEN_HEIGHT * 0.3),
            )

    def set_speed(self, factor: float):
        self.speed_factor = max(0.1, float(factor))

    def shoot(self, batch: list[BossProjectile]):
        self.shots_fired += len(batch)
        if self.projectiles is not None:
            self.projectiles.spawn_batch(batch, owner_id=id(self),
                                         damage_multiplier=self.effective_damage_multiplier)

    def teleport(self, position):
        self.position = self._clamped(Vector2(position))
        logger.debug("%s teleported to (%.0f, %.0f)", self.name, *self.position)

    def activate_shield(self, duration: float):
        self.shield_timer = max(self.shield_timer, float(duration))

    def heal(self, amount: float):
        self.health = min(self.max_health, self.health + float(amount))

    def summon_minions(self, count: int):
        room = BOSS_MAX_MINIONS - len(self.minions)
        for i in range(max(0, min(count, room))):
            slot = len(self.minions)
            side = -1 if slot % 2 == 0 else 1
            offset = Vector2(side * (40 + 30 * (slot // 2)) + self.width / 2,
                             self.height + 20)
            self.minions.append(Minion(offset, fire_delay=300.0 * (i + 1)))

    def activate_rage(self, multiplier: float):
        self.rage_multiplier = max(1.0, float(multiplier))
        self.rage_timer = BOSS_RAGE_DURATION_MS

    def activate_phase2(self):
        self.phase = 2
        self.phase_speed_mult = BOSS_PHASE2_SPEED_MULT

    def activate_phase3(self):
        self.phase = 3
        self.phase_speed_mult = BOSS_PHASE3_SPEED_MULT

    # ── Damage ────────────────────────────────────────────

    def take_damage(self, amount: float) -> float:
        """Apply a hit; returns the damage actually taken (0 while shielded)."""
        if self.shielded or not self.alive:
            return 0.0
        if self.minions:
            # Escorts soak hits first.
            self.minions.pop()
            return 0.0
        taken = min(self.health, float(amount))
        self.health -= taken
        return taken

    # ── Per-frame ─────────────────────────────────────────

    def update(self, delta_ms: float, player_position):
        dt = delta_ms / 1000.0
        player_position = Vector2(player_position)

        self.shield_timer = max(0.0, self.shield_timer - delta_ms)
        self.rage_timer = max(0.0, self.rage_timer - delta_ms)

        target = self._resolve_target(player_position)
        to_target = target - self.position
        distance = to_target.length()
        step = self.move_speed * dt
        if distance > _ARRIVE_EPSILON:
            if step >= distance:
                self.position = target
            else:
                self.position += to_target.normalize() * step
        self.position = self._clamped(self.position)

        self._update_minions(delta_ms, player_position)

    def _resolve_target(self, player_position: Vector2) -> Vector2:
        target = self.movement_target
        if isinstance(target, str):
            y = BOSS_START_Y
            if target == "left":
                return Vector2(SCREEN_WIDTH * 0.15 - self.width / 2, y)
            if target == "right":
                return Vector2(SCREEN_WIDTH * 0.85 - self.width / 2, y)
            if target == "player":
                return Vector2(player_position.x - self.width / 2, self.position.y)
            if target == "random" and self._random_point is not None:
                return Vector2(self._random_point)
            return Vector2((SCREEN_WIDTH - self.width) / 2, y)
        return Vector2(target)

    def _clamped(self, pos: Vector2) -> Vector2:
        return Vector2(
            max(0.0, min(SCREEN_WIDTH - self.width, pos.x)),
            max(0.0, min(SCREEN_HEIGHT * 0.5, pos.y)),
        )

    def _update_minions(self, delta_ms: float, player_position: Vector2):
        for minion in self.minions:
            minion.position = self.position + minion.offset
            minion.fire_acc -= delta_ms
            if minion.fire_acc > 0:
                continue
            minion.fire_acc += BOSS_MINION_FIRE_INTERVAL_MS
            origin = Vector2(minion.rect.center)
            direction = player_position - origin
            if direction.length_squared() == 0:
                continue
            self.shoot([BossProjectile(origin, direction.normalize() * _MINION_SHOT_SPEED,
                                       1, (170, 170, 170))])

    # ── Draw ──────────────────────────────────────────────

    def draw(self, surface: pygame.Surface):
        rect = self.rect
        body = RED if self.raging else PURPLE
        pygame.draw.rect(surface, body, rect, border_radius=12)
        pygame.draw.rect(surface, WHITE, rect, 2, border_radius=12)
        eye_y = rect.top + rect.height // 3
        pygame.draw.circle(surface, ORANGE, (rect.left + rect.width // 3, eye_y), 6)
        pygame.draw.circle(surface, ORANGE, (rect.right - rect.width // 3, eye_y), 6)

        if self.shielded:
            radius = max(rect.width, rect.height) // 2 + 12
            shield = pygame.Surface((radius * 2, radius * 2), pygame.SRCALPHA)
            pygame.draw.circle(shield, (*CYAN, 70), (radius, radius), radius)
            surface.blit(shield, (rect.centerx - radius, rect.centery - radius))

        for minion in self.minions:
            pygame.draw.rect(surface, (120, 120, 140), minion.rect, border_radius=4)
