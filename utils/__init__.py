"""utils package – Reusable drawing helpers."""

from .helpers import draw_text, draw_end_screen, draw_starfield
