"""systems package – Projectiles, boss health bar, AI debug overlay."""

from .healthbar import draw_boss_bar, draw_lives, _clear_cache as clear_healthbar_cache
from .projectile_system import ProjectileSystem, Projectile
from .ai_debug_overlay import AIDebugOverlay
