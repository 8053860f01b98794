"""healthbar.py - Boss health bar (with trailing damage ghost) and player lives."""

import random
from dataclasses import dataclass

import pygame
from settings import (
    WHITE, GRAY, RED, ORANGE, PURPLE, CYAN, SMALL_FONT_SIZE,
    BOSS_BAR_WIDTH, BOSS_BAR_HEIGHT, BOSS_BAR_X, BOSS_BAR_Y,
    SCREEN_WIDTH,
)

_GHOST_LERP = 0.05       # how fast the ghost catches up, per frame
_SHAKE_SECONDS = 0.25
_SHAKE_PIXELS = 3
_CORNER = 6
_GHOST_COLOR = (250, 240, 200)

_PHASE_COLORS = {1: PURPLE, 2: ORANGE, 3: RED}
_PHASE_MARKS = (0.66, 0.33)


@dataclass
class _BarState:
    ghost: float          # trailing HP, eases toward the real value
    last_hp: float
    shake: float = 0.0    # seconds left


# keyed by id(boss); survives between frames, cleared on encounter reset
_bars: dict[int, _BarState] = {}


def draw_boss_bar(surface, boss, phase: int, dt: float = 0.016):
    """Boss name, phase marks and the animated bar across the top."""
    st = _bars.setdefault(id(boss), _BarState(float(boss.health), boss.health))
    if boss.health < st.last_hp:
        st.shake = _SHAKE_SECONDS
    st.last_hp = boss.health
    st.ghost += (boss.health - st.ghost) * _GHOST_LERP
    if st.ghost < boss.health:
        st.ghost = float(boss.health)   # heals show immediately

    ox = oy = 0
    if st.shake > 0:
        st.shake -= dt
        ox = random.randint(-_SHAKE_PIXELS, _SHAKE_PIXELS)
        oy = random.randint(-_SHAKE_PIXELS, _SHAKE_PIXELS)

    frame = pygame.Rect(BOSS_BAR_X + ox, BOSS_BAR_Y + oy, BOSS_BAR_WIDTH, BOSS_BAR_HEIGHT)
    pygame.draw.rect(surface, GRAY, frame, border_radius=_CORNER)

    fill = CYAN if boss.shielded else _PHASE_COLORS.get(phase, RED)
    _fill(surface, frame, st.ghost / boss.max_health, _GHOST_COLOR)
    _fill(surface, frame, boss.health / boss.max_health, fill)

    for ratio in _PHASE_MARKS:
        x = frame.x + int(frame.width * ratio)
        pygame.draw.line(surface, WHITE, (x, frame.top), (x, frame.bottom - 1), 1)
    pygame.draw.rect(surface, (180, 180, 180), frame, 2, border_radius=_CORNER)

    hp = font_small().render(f"{int(boss.health)}/{int(boss.max_health)}", True, WHITE)
    surface.blit(hp, hp.get_rect(center=frame.center))

    label = font_small().render(f"{boss.name}  –  Phase {phase}", True, WHITE)
    surface.blit(label, (BOSS_BAR_X, BOSS_BAR_Y + BOSS_BAR_HEIGHT + 4))


def _fill(surface, frame: pygame.Rect, fraction: float, color):
    width = int(frame.width * max(0.0, min(1.0, fraction)))
    if width > 0:
        pygame.draw.rect(surface, color, (frame.x, frame.y, width, frame.height),
                         border_radius=_CORNER)


def draw_lives(surface, ship):
    text = font_small().render(f"Lives: {ship.lives}", True, WHITE)
    surface.blit(text, (SCREEN_WIDTH - text.get_width() - 12, BOSS_BAR_Y))


def _clear_cache():
    """Forget animation state (call on encounter reset)."""
    _bars.clear()


_font_cache = None


def font_small():
    global _font_cache
    if _font_cache is None:
        _font_cache = pygame.font.SysFont(None, SMALL_FONT_SIZE)
    return _font_cache
