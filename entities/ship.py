"""
ship.py – The player's ship.

Controls: Arrow keys / WASD (move), Space (fire)

The ship can also be driven by a script (``move_toward``) so headless
simulations exercise the boss AI without a keyboard.
"""

from __future__ import annotations

import pygame
from pygame.math import Vector2
from settings import (
    SCREEN_WIDTH, SCREEN_HEIGHT, CYAN, WHITE,
    PLAYER_WIDTH, PLAYER_HEIGHT, PLAYER_SPEED, PLAYER_MAX_LIVES,
    PLAYER_INVULN_MS, PLAYER_FIRE_COOLDOWN_MS,
)

MOVE_KEYS = {
    "left": (pygame.K_LEFT, pygame.K_a),
    "right": (pygame.K_RIGHT, pygame.K_d),
    "up": (pygame.K_UP, pygame.K_w),
    "down": (pygame.K_DOWN, pygame.K_s),
}
FIRE_KEY = pygame.K_SPACE


class PlayerShip:
    """Player-controlled (or scripted) ship at the bottom of the arena."""

    def __init__(self):
        self.position = Vector2((SCREEN_WIDTH - PLAYER_WIDTH) / 2,
                                SCREEN_HEIGHT - PLAYER_HEIGHT - 30)
        self.lives = PLAYER_MAX_LIVES
        self.invuln_timer: float = 0.0      # ms
        self.fire_cooldown: float = 0.0     # ms

    @property
    def rect(self) -> pygame.Rect:
        return pygame.Rect(int(self.position.x), int(self.position.y),
                           PLAYER_WIDTH, PLAYER_HEIGHT)

    @property
    def center(self) -> Vector2:
        return Vector2(self.position.x + PLAYER_WIDTH / 2,
                       self.position.y + PLAYER_HEIGHT / 2)

    @property
    def muzzle(self) -> Vector2:
        return Vector2(self.position.x + PLAYER_WIDTH / 2, self.position.y)

    @property
    def alive(self) -> bool:
        return self.lives > 0

    @property
    def is_invulnerable(self) -> bool:
        return self.invuln_timer > 0

    # ── Movement ──────────────────────────────────────────

    def handle_input(self, keys, delta_ms: float):
        """Move from currently held keys."""
        direction = Vector2(0, 0)
        if any(keys[k] for k in MOVE_KEYS["left"]):
            direction.x -= 1
        if any(keys[k] for k in MOVE_KEYS["right"]):
            direction.x += 1
        if any(keys[k] for k in MOVE_KEYS["up"]):
            direction.y -= 1
        if any(keys[k] for k in MOVE_KEYS["down"]):
            direction.y += 1
        if direction.length_squared() > 0:
            self.position += direction.normalize() * PLAYER_SPEED * delta_ms / 1000.0
        self._clamp()

    def move_toward(self, target, delta_ms: float):
        """Scripted movement toward *target* (the ship's centre)."""
        offset = Vector2(target) - self.center
        step = PLAYER_SPEED * delta_ms / 1000.0
        if offset.length() <= step:
            self.position += offset
        elif offset.length_squared() > 0:
            self.position += offset.normalize() * step
        self._clamp()

    def _clamp(self):
        self.position.x = max(0.0, min(SCREEN_WIDTH - PLAYER_WIDTH, self.position.x))
        self.position.y = max(SCREEN_HEIGHT * 0.5, min(SCREEN_HEIGHT - PLAYER_HEIGHT,
                                                       self.position.y))

    # ── Combat ────────────────────────────────────────────

    def tick(self, delta_ms: float):
        self.invuln_timer = max(0.0, self.invuln_timer - delta_ms)
        self.fire_cooldown = max(0.0, self.fire_cooldown - delta_ms)

    def try_fire(self) -> bool:
        """Returns True if a shot should be spawned this frame."""
        if self.fire_cooldown > 0 or not self.alive:
            return False
        self.fire_cooldown = PLAYER_FIRE_COOLDOWN_MS
        return True

    def hit(self) -> bool:
        """Lose a life unless invulnerable.  Returns True if a life was lost."""
        if self.is_invulnerable or not self.alive:
            return False
        self.lives -= 1
        self.invuln_timer = PLAYER_INVULN_MS
        return True

    # ── Draw ──────────────────────────────────────────────

    def draw(self, surface: pygame.Surface):
        # Blink while invulnerable
        if self.is_invulnerable and int(self.invuln_timer / 100) % 2 == 0:
            return
        r = self.rect
        points = [(r.centerx, r.top), (r.left, r.bottom), (r.right, r.bottom)]
        pygame.draw.polygon(surface, CYAN, points)
        pygame.draw.polygon(surface, WHITE, points, 1)
