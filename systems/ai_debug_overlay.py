"""
ai_debug_overlay.py – Toggleable real-time boss AI debug overlay.

Renders a semi-transparent panel showing the controller's internal
state (mode, phase, active pattern, cooldown, tracked player stats,
last decision and remote client usage).
Activated via F1; does NOT modify any gameplay logic.
"""

from __future__ import annotations

import textwrap

import pygame


# ── Layout constants ──────────────────────────────────────

_PANEL_X = 8
_PANEL_Y = 40
_PANEL_W = 300
_PANEL_PAD = 10
_LINE_H = 18
_FONT_SIZE = 15
_BG_ALPHA = 180
_BG_COLOR = (15, 15, 20)
_TITLE_COLOR = (100, 220, 255)
_LABEL_COLOR = (180, 180, 180)
_VALUE_COLOR = (255, 255, 255)
_SECTION_COLOR = (80, 200, 160)
_WARN_COLOR = (255, 60, 60)
_WRAP = 36


def build_lines(info: dict | None) -> list[tuple[str, tuple[int, int, int]]]:
    """Turn ``BossAIController.debug_info()`` into coloured text lines."""
    lines: list[tuple[str, tuple[int, int, int]]] = [
        ("BOSS AI DEBUG", _TITLE_COLOR),
        ("─" * 30, _LABEL_COLOR),
    ]
    if not info:
        lines.append(("Controller: N/A", _LABEL_COLOR))
        return lines

    lines.append((f"Mode:         {info['mode']}", _VALUE_COLOR))
    lines.append((f"Phase:        {info['phase']}", _VALUE_COLOR))
    lines.append((f"Health:       {info['health_ratio'] * 100:.0f}%", _VALUE_COLOR))
    if info["enraged"]:
        lines.append(("  [ENRAGED]", _WARN_COLOR))
    lines.append((f"Pattern:      {info['pattern']}", _VALUE_COLOR))
    lines.append((f"Pattern t:    {info['pattern_timer']} ms", _VALUE_COLOR))
    lines.append((f"Cooldown:     {info['cooldown']} ms", _VALUE_COLOR))
    lines.append((f"Decisions:    {info['decisions']}"
                  f"{'  (requesting…)' if info['in_flight'] else ''}", _VALUE_COLOR))

    lines.append(("", _LABEL_COLOR))
    lines.append(("Player:", _SECTION_COLOR))
    lines.append((f"  Movement:   {info['player_movement']}", _VALUE_COLOR))
    lines.append((f"  Accuracy:   {info['player_accuracy']:.2f}", _VALUE_COLOR))
    lines.append((f"  Aggression: {info['player_aggressiveness']:.2f}", _VALUE_COLOR))

    lines.append(("", _LABEL_COLOR))
    lines.append((f"Last decision ({info['last_source']}):", _SECTION_COLOR))
    for chunk in textwrap.wrap(str(info["last_reasoning"]), _WRAP)[:3]:
        lines.append((f"  {chunk}", _VALUE_COLOR))

    client = info.get("client")
    if client:
        lines.append(("", _LABEL_COLOR))
        lines.append(("Decision service:", _SECTION_COLOR))
        status = "online" if client["available"] else "offline"
        lines.append((f"  Status:     {status}", _VALUE_COLOR))
        lines.append((f"  Requests:   {client['request_count']}", _VALUE_COLOR))
        lines.append((f"  Tokens:     {client['total_tokens']}", _VALUE_COLOR))

    lines.append(("─" * 30, _LABEL_COLOR))
    return lines


class AIDebugOverlay:
    """Non-intrusive debug HUD for boss AI internals.

    Usage
    -----
    overlay = AIDebugOverlay(screen)
    # in event loop:  if key == K_F1: overlay.toggle()
    # each frame:     overlay.draw(controller)
    """

    def __init__(self, screen: pygame.Surface, visible: bool = False) -> None:
        self._screen = screen
        self._visible = visible
        self._font: pygame.font.Font | None = None

    def toggle(self) -> None:
        """Toggle overlay visibility."""
        self._visible = not self._visible

    @property
    def visible(self) -> bool:
        return self._visible

    def draw(self, controller) -> None:
        """Render the debug panel.  Safe if *controller* is None."""
        if not self._visible:
            return
        if self._font is None:
            self._font = pygame.font.SysFont("consolas", _FONT_SIZE)

        info = controller.debug_info() if controller is not None else None
        lines = build_lines(info)

        panel_h = _PANEL_PAD * 2 + len(lines) * _LINE_H
        panel = pygame.Surface((_PANEL_W, panel_h), pygame.SRCALPHA)
        panel.fill((*_BG_COLOR, _BG_ALPHA))

        # 1-px border
        pygame.draw.rect(panel, (60, 60, 80, 200), (0, 0, _PANEL_W, panel_h), 1)

        y = _PANEL_PAD
        for text, color in lines:
            if text:
                panel.blit(self._font.render(text, True, color), (_PANEL_PAD, y))
            y += _LINE_H

        self._screen.blit(panel, (_PANEL_X, _PANEL_Y))
