"""
projectile_system.py – Boss and player projectiles.

Handles:
- Spawning live projectiles from pattern descriptors (``BossProjectile``)
- Plain bullets, homing missiles, fused mines and laser segments
- Movement, lifetime, collision and destruction
- Glow rendering

Player shots use the same class via ``spawn_at``.
"""

from __future__ import annotations

import logging
import math

logger = logging.getLogger(__name__)

import pygame
from pygame.math import Vector2
from settings import (
    SCREEN_WIDTH, SCREEN_HEIGHT,
    PROJECTILE_RADIUS, PROJECTILE_LIFETIME_MS, PROJECTILE_HOMING_TURN_RATE,
    MINE_BLAST_MS, LASER_SEGMENT_LIFETIME_MS, PROJECTILE_DAMAGE_SCALE,
    PLAYER_SHOT_COLOR,
)


class Projectile:
    """A single projectile.

    Attributes
    ----------
    x, y        : float  – center position (top-centre for lasers)
    vx, vy      : float  – velocity in pixels/sec
    damage      : int    – damage applied on hit
    kind        : str    – "bullet", "mine" or "laser"
    homing      : bool   – steers toward the target each frame
    fuse        : float  – seconds until a mine detonates
    active      : bool   – False after hit or lifetime expires
    owner_id    : int    – id() of the entity that spawned this (to avoid self-hit)
    """

    __slots__ = (
        "x", "y", "vx", "vy", "damage", "radius", "color", "kind", "homing",
        "fuse", "blast_timer", "width", "height",
        "timer", "active", "owner_id", "_pulse_timer",
    )

    def __init__(self, x: float, y: float, vx: float, vy: float,
                 damage: int, color=(255, 68, 68),
                 radius: int = PROJECTILE_RADIUS,
                 kind: str = "bullet", homing: bool = False,
                 fuse: float = 0.0, width: int = 0, height: int = 0,
                 lifetime: float = PROJECTILE_LIFETIME_MS / 1000.0,
                 owner_id: int = 0):
        self.x = x
        self.y = y
        self.vx = vx
        self.vy = vy
        self.damage = max(1, damage)  # damage is never zero
        self.radius = radius
        self.color = color
        self.kind = kind
        self.homing = homing
        self.fuse = fuse
        self.blast_timer = 0.0
        self.width = width
        self.height = height
        self.timer = lifetime
        self.active = True
        self.owner_id = owner_id
        self._pulse_timer = 0.0

    @property
    def armed(self) -> bool:
        """Mines only hurt while their blast is showing."""
        return self.kind != "mine" or self.blast_timer > 0

    @property
    def rect(self) -> pygame.Rect:
        """Bounding rect for collision detection."""
        if self.kind == "laser":
            return pygame.Rect(int(self.x - self.width / 2), int(self.y),
                               self.width, self.height)
        return pygame.Rect(
            int(self.x - self.radius),
            int(self.y - self.radius),
            self.radius * 2,
            self.radius * 2,
        )

    def update(self, dt: float, target: Vector2 | None = None):
        """Move and age the projectile."""
        if not self.active:
            return
        self._pulse_timer += dt

        if self.kind == "mine":
            self._update_mine(dt)
            return

        if self.homing and target is not None:
            self._steer(dt, target)

        self.x += self.vx * dt
        self.y += self.vy * dt
        self.timer -= dt

        # Self-destroy on lifetime expiry
        if self.timer <= 0:
            self.active = False

        # Self-destroy if out of bounds
        margin = 50
        if (self.x < -margin or self.x > SCREEN_WIDTH + margin
                or self.y < -margin or self.y > SCREEN_HEIGHT + margin):
            self.active = False

    def _update_mine(self, dt: float):
        if self.blast_timer > 0:
            self.blast_timer -= dt
            if self.blast_timer <= 0:
                self.active = False
            return
        self.fuse -= dt
        if self.fuse <= 0:
            self.blast_timer = MINE_BLAST_MS / 1000.0

    def _steer(self, dt: float, target: Vector2):
        velocity = Vector2(self.vx, self.vy)
        speed = velocity.length()
        if speed == 0:
            return
        wanted = Vector2(target.x - self.x, target.y - self.y)
        if wanted.length_squared() == 0:
            return
        turn = velocity.angle_to(wanted)
        if turn > 180:
            turn -= 360
        elif turn < -180:
            turn += 360
        max_turn = math.degrees(PROJECTILE_HOMING_TURN_RATE) * dt
        velocity.rotate_ip(max(-max_turn, min(max_turn, turn)))
        self.vx, self.vy = velocity.x, velocity.y

    def check_collision(self, target) -> bool:
        """Check collision with a target entity (must have .rect).
        Returns True if hit (and deactivates projectile)."""
        if not self.active or not self.armed:
            return False
        if id(target) == self.owner_id:
            return False
        # Skip invulnerable targets
        if getattr(target, 'is_invulnerable', False):
            return False

        if self.rect.colliderect(target.rect):
            # Lasers and blasts keep going; everything else is spent.
            if self.kind == "bullet":
                self.active = False
            return True
        return False

    def draw(self, surface: pygame.Surface):
        if not self.active:
            return
        if self.kind == "laser":
            pygame.draw.rect(surface, self.color, self.rect)
            return

        ix, iy = int(self.x), int(self.y)
        if self.kind == "mine":
            if self.blast_timer > 0:
                pygame.draw.circle(surface, self.color, (ix, iy), self.radius)
            else:
                blink = 1 + int(self._pulse_timer * 6) % 2
                pygame.draw.circle(surface, self.color, (ix, iy), 4 * blink, 1)
            return

        # Pulsing glow
        pulse = 1.0 + 0.2 * math.sin(self._pulse_timer * 8.0)
        glow_r = int(self.radius * 1.8 * pulse)
        glow_surf = pygame.Surface((glow_r * 2 + 4, glow_r * 2 + 4), pygame.SRCALPHA)
        pygame.draw.circle(glow_surf, (*self.color[:3], 70),
                           (glow_r + 2, glow_r + 2), glow_r)
        surface.blit(glow_surf, (ix - glow_r - 2, iy - glow_r - 2))

        # Core solid circle
        pygame.draw.circle(surface, self.color, (ix, iy), self.radius)


class ProjectileSystem:
    """Manages all active projectiles.

    Call ``update(dt, target)`` and ``draw(surface)`` each frame.
    Use ``spawn_*`` methods to create projectiles.
    """

    def __init__(self):
        self._projectiles: list[Projectile] = []

    @property
    def projectiles(self) -> list[Projectile]:
        return self._projectiles

    def __len__(self) -> int:
        return len(self._projectiles)

    # ── Spawners ──────────────────────────────────────────

    def spawn_descriptor(self, desc, owner_id: int = 0,
                         damage_multiplier: float = 1.0) -> Projectile:
        """Turn a pattern ``BossProjectile`` descriptor into a live projectile."""
        damage = int(round(desc.damage * PROJECTILE_DAMAGE_SCALE * damage_multiplier))
        kwargs = {}
        if desc.kind == "laser":
            kwargs["lifetime"] = LASER_SEGMENT_LIFETIME_MS / 1000.0
        proj = Projectile(
            desc.position.x, desc.position.y, desc.velocity.x, desc.velocity.y,
            damage=damage,
            color=tuple(desc.color),
            radius=int(desc.radius or PROJECTILE_RADIUS),
            kind=desc.kind,
            homing=desc.homing,
            fuse=(desc.fuse or 0.0) / 1000.0,
            width=int(desc.width or 0),
            height=int(desc.height or 0),
            owner_id=owner_id,
            **kwargs,
        )
        self._projectiles.append(proj)
        return proj

    def spawn_batch(self, batch, owner_id: int = 0,
                    damage_multiplier: float = 1.0) -> list[Projectile]:
        spawned = [self.spawn_descriptor(d, owner_id, damage_multiplier) for d in batch]
        logger.debug("Spawned %d boss projectiles", len(spawned))
        return spawned

    def spawn_at(self, x: float, y: float,
                 target_x: float, target_y: float,
                 damage: int, speed: float,
                 color=PLAYER_SHOT_COLOR,
                 owner_id: int = 0) -> Projectile:
        """Spawn a bullet aimed at (target_x, target_y)."""
        dx = target_x - x
        dy = target_y - y
        dist = math.hypot(dx, dy)
        if dist < 1:
            dx, dy, dist = 0, -1, 1
        vx = (dx / dist) * speed
        vy = (dy / dist) * speed
        proj = Projectile(x, y, vx, vy, damage=damage, color=color,
                          radius=4, owner_id=owner_id)
        self._projectiles.append(proj)
        return proj

    # ── Collision ─────────────────────────────────────────

    def check_collisions(self, target) -> list[Projectile]:
        """Check all projectiles against a target.
        Returns list of projectiles that hit.
        """
        hits: list[Projectile] = []
        for proj in self._projectiles:
            if proj.check_collision(target):
                hits.append(proj)
                logger.debug("Projectile hit %s! dmg=%d", target.__class__.__name__, proj.damage)
        return hits

    # ── Per-frame ─────────────────────────────────────────

    def update(self, dt: float, target: Vector2 | None = None):
        """Update all projectiles and remove dead ones."""
        for p in self._projectiles:
            p.update(dt, target)
        self._projectiles = [p for p in self._projectiles if p.active]

    def draw(self, surface: pygame.Surface):
        for p in self._projectiles:
            p.draw(surface)

    def clear(self):
        """Remove all projectiles."""
        self._projectiles.clear()
