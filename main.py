"""
main.py - Entry point for the Adaptive Boss AI arcade shooter.

Integrates all systems:
- Boss roster and boss entity (entities/boss.py)
- Player ship (entities/ship.py)
- Boss AI controller, remote + rule-based (boss_ai/)
- Projectiles for both sides (systems/projectile_system.py)
- Boss health bar and lives (systems/healthbar.py)
- F1 debug overlay (systems/ai_debug_overlay.py)
- Headless simulation mode (boss_ai/simulation_runner.py)

Run:  python main.py [--level N] [--api-key KEY] [--simulate N]
"""
VERSION = "2.0.0"

import argparse
import asyncio
import logging
import os
import random

import pygame

logger = logging.getLogger(__name__)

# ── Project imports ───────────────────────────────────────
from settings import (
    SCREEN_WIDTH, SCREEN_HEIGHT, FPS, TITLE, BG_COLOR, WHITE,
    BOSSES, DIFFICULTY_LEVELS, DEFAULT_DIFFICULTY, AI_API_KEY_ENV,
)
from boss_ai.llm_client import DecisionClient, LLMConfig
from boss_ai.simulation_runner import SimulationRunner
from systems import (
    draw_boss_bar, draw_lives, clear_healthbar_cache, AIDebugOverlay,
)
from systems.encounter import Encounter
from entities.ship import FIRE_KEY
from utils import draw_text, draw_end_screen, draw_starfield

_STAR_COUNT = 90
_STAR_SCROLL = 40.0   # pixels/sec


def resolve_api_key(explicit: str | None, environ=os.environ) -> str | None:
    """Command-line key first, then the environment; blank means none."""
    key = explicit if explicit else environ.get(AI_API_KEY_ENV)
    key = (key or "").strip()
    return key or None


# ══════════════════════════════════════════════════════════
#  GAME CLASS
# ══════════════════════════════════════════════════════════

class Game:
    """Top-level game controller.  Owns the loop, events, and rendering."""

    def __init__(self, level: int = 1, difficulty: str = DEFAULT_DIFFICULTY,
                 api_key: str | None = None, plot: bool = False,
                 debug: bool = False, seed: int | None = None):
        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption(TITLE)
        self.clock = pygame.time.Clock()

        self.level = level
        self.difficulty = difficulty
        self.plot = plot
        self._rng = random.Random(seed)

        # One client for the whole session; each encounter re-probes it
        self.client = DecisionClient(LLMConfig(api_key=api_key))
        self.overlay = AIDebugOverlay(self.screen, visible=debug)

        self._stars = [
            (self._rng.uniform(0, SCREEN_WIDTH), self._rng.uniform(0, SCREEN_HEIGHT),
             self._rng.randint(70, 255))
            for _ in range(_STAR_COUNT)
        ]
        self._star_offset = 0.0

        self.encounter: Encounter | None = None
        self.running = True
        self._restart_requested = False

    # ── Encounter setup ───────────────────────────────────

    async def _start_encounter(self):
        clear_healthbar_cache()
        self.encounter = Encounter(level=self.level, client=self.client,
                                   difficulty=self.difficulty,
                                   rng=random.Random(self._rng.random()),
                                   plot=self.plot)
        await self.encounter.start()
        logger.info("Level %d: %s", self.level, self.encounter.boss.name)

    # ── Main loop ─────────────────────────────────────────

    async def run(self):
        """Start the game loop."""
        await self._start_encounter()
        try:
            while self.running:
                delta_ms = self.clock.tick(FPS)

                self._handle_events()
                if self._restart_requested:
                    self._restart_requested = False
                    if not self.encounter.over:
                        self.encounter.finish("abandoned")
                    await self._start_encounter()
                    continue

                self._update(delta_ms)
                self._draw(delta_ms / 1000.0)

                # Give pending boss decisions a chance to progress
                await asyncio.sleep(0)
        finally:
            if self.encounter is not None and not self.encounter.over:
                self.encounter.finish("abandoned")
            await self.client.close()
            pygame.quit()

    # ── Events ────────────────────────────────────────────

    def _handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_F1:
                    self.overlay.toggle()
                elif event.key == pygame.K_r:
                    self._restart_requested = True
                elif event.key == pygame.K_n and self.encounter.result == "victory":
                    # Next boss in the roster
                    self.level = self.level % len(BOSSES) + 1
                    self._restart_requested = True

    # ── Update ────────────────────────────────────────────

    def _update(self, delta_ms: float):
        self._star_offset += _STAR_SCROLL * delta_ms / 1000.0
        enc = self.encounter
        if enc.over:
            return
        keys = pygame.key.get_pressed()
        enc.ship.handle_input(keys, delta_ms)
        enc.update(delta_ms, fire=bool(keys[FIRE_KEY]))

    # ── Draw ──────────────────────────────────────────────

    def _draw(self, dt: float):
        surface = self.screen
        enc = self.encounter
        surface.fill(BG_COLOR)
        draw_starfield(surface, self._stars, self._star_offset)

        enc.boss.draw(surface)
        enc.ship.draw(surface)
        enc.boss_shots.draw(surface)
        enc.player_shots.draw(surface)

        draw_boss_bar(surface, enc.boss, enc.phase, dt)
        draw_lives(surface, enc.ship)
        draw_text(surface, f"Score: {enc.game_state.score}", 12, 16, WHITE)
        mode = enc.controller.mode.value
        draw_text(surface, f"Level {self.level}  |  AI: {mode}  |  F1 debug",
                  12, SCREEN_HEIGHT - 26, (160, 160, 160), 18)

        self.overlay.draw(enc.controller)

        score_line = f"{enc.boss.name}  |  Score {enc.game_state.score}"
        if enc.result == "victory":
            draw_end_screen(surface, "BOSS DEFEATED", [score_line],
                            hint="N: Next Boss  |  R: Retry  |  ESC: Quit")
        elif enc.result == "defeat":
            draw_end_screen(surface, "YOU WERE DESTROYED", [score_line])

        pygame.display.flip()


# ══════════════════════════════════════════════════════════
#  COMMAND LINE
# ══════════════════════════════════════════════════════════

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{TITLE} v{VERSION}")
    parser.add_argument("--level", type=int, choices=sorted(BOSSES), default=None,
                        help="boss level (default: 1, or every level when simulating)")
    parser.add_argument("--difficulty", choices=DIFFICULTY_LEVELS,
                        default=DEFAULT_DIFFICULTY)
    parser.add_argument("--api-key", default=None,
                        help=f"decision service key (default: ${AI_API_KEY_ENV})")
    parser.add_argument("--simulate", type=int, metavar="N", default=0,
                        help="run N headless encounters instead of the game")
    parser.add_argument("--plot", action="store_true",
                        help="save a health/decision chart after each encounter")
    parser.add_argument("--debug", action="store_true",
                        help="verbose logging and overlay shown at start")
    parser.add_argument("--seed", type=int, default=None)
    return parser.parse_args(argv)


async def _simulate(args: argparse.Namespace, api_key: str | None):
    runner = SimulationRunner(
        n_encounters=args.simulate,
        level=args.level,
        client_factory=lambda: DecisionClient(LLMConfig(api_key=api_key)),
        seed=args.seed,
        plot=args.plot,
    )
    await runner.run()


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Keep the HTTP stack quiet unless debugging
    if not args.debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    api_key = resolve_api_key(args.api_key)
    if args.simulate > 0:
        asyncio.run(_simulate(args, api_key))
    else:
        asyncio.run(Game(level=args.level or 1, difficulty=args.difficulty,
                         api_key=api_key, plot=args.plot,
                         debug=args.debug, seed=args.seed).run())


# ── Run ───────────────────────────────────────────────────
if __name__ == "__main__":
    main()
