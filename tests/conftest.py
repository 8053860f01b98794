"""Shared fakes for the boss AI tests."""

from __future__ import annotations

import asyncio

import pytest
from pygame.math import Vector2

from boss_ai.context import BossSnapshot, DecisionContext, GameState, PlayerSnapshot


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeBoss:
    """Boss stand-in that records every capability call."""

    def __init__(self, health=1000.0, attack_patterns=("straight", "spread", "spiral"),
                 personality="aggressive"):
        self.name = "Test Boss"
        self.max_health = 1000.0
        self.health = float(health)
        self.base_speed = 2.0
        self.width = 80
        self.height = 80
        self.attack_patterns = list(attack_patterns)
        self.ai_personality = personality
        self.position = Vector2(400, 60)
        self.damage_multiplier = 1.0
        self.speed_multiplier = 1.0

        self.calls: list[tuple] = []
        self.batches: list[list] = []

    def _record(self, name, *args):
        self.calls.append((name, *args))

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def set_movement_target(self, target):
        self._record("set_movement_target", target)

    def set_speed(self, factor):
        self._record("set_speed", factor)

    def shoot(self, batch):
        self.batches.append(list(batch))

    def teleport(self, position):
        self.position = Vector2(position)
        self._record("teleport", Vector2(position))

    def activate_shield(self, duration):
        self._record("activate_shield", duration)

    def heal(self, amount):
        self._record("heal", amount)

    def summon_minions(self, count):
        self._record("summon_minions", count)

    def activate_rage(self, multiplier):
        self._record("activate_rage", multiplier)

    def activate_phase2(self):
        self._record("activate_phase2")

    def activate_phase3(self):
        self._record("activate_phase3")


def make_context(health_ratio=1.0, phase=1, distance=200.0, personality="default",
                 patterns=("straight", "spread", "spiral", "homing", "mines", "storm"),
                 player_position=(300.0, 500.0), enraged=False,
                 arena=(1000, 600)) -> DecisionContext:
    """Build a context with exactly the numbers a test cares about."""
    return DecisionContext(
        boss=BossSnapshot(
            name="Test Boss",
            health=1000.0 * health_ratio,
            max_health=1000.0,
            health_ratio=health_ratio,
            position=Vector2(400, 60),
            phase=phase,
            enraged=enraged,
            personality=personality,
            base_speed=2.0,
        ),
        player=PlayerSnapshot(
            position=Vector2(player_position),
            movement_pattern="horizontal",
            accuracy=0.5,
            aggressiveness=0.5,
            distance=distance,
        ),
        game=GameState(level=2, time_elapsed=42_000),
        available_patterns=tuple(patterns),
        current_pattern="straight",
        pattern_timer=1500.0,
        arena=arena,
    )


async def settle(rounds: int = 5):
    """Let pending tasks and their done-callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock(100.0)


@pytest.fixture
def boss():
    return FakeBoss()
