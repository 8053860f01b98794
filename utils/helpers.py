"""helpers.py - Reusable drawing helpers for the HUD and end screens."""

import pygame
from settings import WHITE, SCREEN_WIDTH, SCREEN_HEIGHT, FONT_SIZE

_fonts: dict[int, pygame.font.Font] = {}


def _font(size: int) -> pygame.font.Font:
    """SysFont lookups are slow; keep one font per size."""
    if size not in _fonts:
        _fonts[size] = pygame.font.SysFont(None, size)
    return _fonts[size]


def draw_text(surface, text, x, y, color=WHITE, size=FONT_SIZE, center=False):
    """Render a single line of text at (x, y), or centred on it."""
    rendered = _font(size).render(text, True, color)
    if center:
        surface.blit(rendered, rendered.get_rect(center=(x, y)))
    else:
        surface.blit(rendered, (x, y))


def draw_end_screen(surface, message, lines=(),
                    hint="Press R to Restart  |  ESC to Quit"):
    """Dim the arena and show the encounter result, optional detail
    lines (score, boss name...) and the key hint."""
    overlay = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT))
    overlay.set_alpha(180)
    overlay.fill((0, 0, 0))
    surface.blit(overlay, (0, 0))

    cx, cy = SCREEN_WIDTH // 2, SCREEN_HEIGHT // 2
    draw_text(surface, message, cx, cy - 50, WHITE, 72, center=True)
    y = cy + 5
    for line in lines:
        draw_text(surface, line, cx, y, (200, 200, 200), 28, center=True)
        y += 28
    draw_text(surface, hint, cx, y + 20, WHITE, 30, center=True)


def draw_starfield(surface, stars, offset: float):
    """Scrolling background dots; *stars* is a list of (x, y, brightness)."""
    for x, y, brightness in stars:
        sy = int((y + offset * (0.3 + brightness / 510)) % SCREEN_HEIGHT)
        pygame.draw.circle(surface, (brightness, brightness, brightness), (int(x), sy), 1)
