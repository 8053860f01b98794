"""
encounter.py – One boss fight, independent of rendering and input.

Owns the boss, the player ship, both projectile pools, the game state
provider and the boss AI controller.  ``Game`` (main.py) feeds it
keyboard input and draws it; ``SimulationRunner`` feeds it a scripted
pilot.  Nothing here blocks: remote decisions progress whenever the
caller yields to the event loop between frames.
"""

from __future__ import annotations

import logging
import random

logger = logging.getLogger(__name__)

from pygame.math import Vector2
from settings import (
    DEFAULT_DIFFICULTY, PLAYER_SHOT_DAMAGE, PLAYER_SHOT_SPEED,
)
from entities.boss import Boss
from entities.ship import PlayerShip
from systems.projectile_system import ProjectileSystem
from boss_ai.boss_controller import BossAIController, ControllerConfig
from boss_ai.context import GameState
from boss_ai.llm_client import DecisionClient
from boss_ai.pattern_library import PatternLibrary
from boss_ai.player_tracker import TickEvents
from boss_ai.stats import EncounterStats


class Encounter:
    """A single boss encounter.

    Usage:
        enc = Encounter(level=2, client=client)
        await enc.start()
        while not enc.over:
            enc.update(delta_ms, fire=True)
            await asyncio.sleep(0)
    """

    def __init__(self, level: int = 1, client: DecisionClient | None = None,
                 difficulty: str = DEFAULT_DIFFICULTY,
                 rng: random.Random | None = None,
                 controller_config: ControllerConfig | None = None,
                 plot: bool = False):
        self.level = level
        self.plot = plot
        self.game_state = GameState(difficulty=difficulty, level=level)
        self.boss_shots = ProjectileSystem()
        self.player_shots = ProjectileSystem()
        self.boss = Boss(level, projectiles=self.boss_shots, rng=rng)
        self.ship = PlayerShip()

        self.controller = BossAIController(
            self.boss, self.game_state, client=client,
            library=PatternLibrary(rng=rng), config=controller_config,
        )
        self.stats = EncounterStats(self.boss.name, self.boss.ai_personality)
        self.controller.on_decision = (
            lambda d: self.stats.record_decision(self.game_state.time_elapsed, d))
        self.controller.on_phase_change = (
            lambda old, new: self.stats.record_phase_change(self.game_state.time_elapsed, old, new))

        self.result: str | None = None     # "victory" | "defeat" | "timeout"

    async def start(self):
        await self.controller.init()

    @property
    def over(self) -> bool:
        return self.result is not None

    @property
    def phase(self) -> int:
        return self.controller.monitor.phase

    # ── Per-frame ─────────────────────────────────────────

    def update(self, delta_ms: float, fire: bool = False) -> TickEvents | None:
        """Advance the fight by one frame.  Movement is applied by the caller."""
        if self.over:
            return None
        dt = delta_ms / 1000.0
        ship, boss = self.ship, self.boss
        self.game_state.time_elapsed += delta_ms

        # Player fire
        ship.tick(delta_ms)
        fired = fire and ship.try_fire()
        if fired:
            muzzle = ship.muzzle
            self.player_shots.spawn_at(muzzle.x, muzzle.y, muzzle.x, muzzle.y - 1,
                                       damage=PLAYER_SHOT_DAMAGE, speed=PLAYER_SHOT_SPEED,
                                       owner_id=id(ship))
        self.player_shots.update(dt)

        hit = False
        for shot in self.player_shots.check_collisions(boss):
            taken = boss.take_damage(shot.damage)
            if taken > 0:
                hit = True
                self.game_state.score += int(taken)
                self.stats.record_boss_damage(taken)
                self.controller.on_damage_taken(taken)

        events = TickEvents(player_fired=fired, player_hit=hit)

        # Boss + AI
        target = ship.center
        boss.update(delta_ms, target)
        self.controller.update(delta_ms, target, events)

        # Boss fire
        self.boss_shots.update(dt, Vector2(target))
        if self.boss_shots.check_collisions(ship) and ship.hit():
            self.stats.record_player_hit()

        self.stats.sample(self.game_state.time_elapsed, boss.health / boss.max_health)

        if not boss.alive:
            self.finish("victory")
        elif not ship.alive:
            self.finish("defeat")
        return events

    def finish(self, result: str):
        if self.over:
            return
        self.result = result
        if result == "victory":
            self.game_state.score += self.boss.score
        self.controller.destroy()
        logger.info("Encounter with %s ended: %s", self.boss.name, result)
        self.stats.end_encounter(result, self.game_state.time_elapsed, plot=self.plot)
