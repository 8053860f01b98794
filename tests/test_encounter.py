"""Tests for the headless encounter, the simulation runner and the CLI helpers."""

import asyncio
import random

import pytest

import boss_ai.simulation_runner as simulation_runner
from boss_ai.boss_controller import ControllerMode
from boss_ai.decision import SPEED_MAX, SPEED_MIN
from boss_ai.simulation_runner import SimulationRunner
from main import parse_args, resolve_api_key
from systems.encounter import Encounter


def _started(level=1, seed=1):
    encounter = Encounter(level=level, rng=random.Random(seed))
    asyncio.run(encounter.start())
    return encounter


class TestEncounter:
    """One fight without a window."""

    def test_start_without_client_is_fallback_only(self):
        encounter = _started()
        assert encounter.controller.mode is ControllerMode.FALLBACK_ONLY
        assert encounter.phase == 1
        assert not encounter.over

    def test_player_fire_damages_boss(self):
        encounter = _started()
        boss = encounter.boss
        encounter.ship.position.x = boss.center.x - encounter.ship.rect.width / 2
        for _ in range(120):
            encounter.update(1000 / 60, fire=True)
        assert boss.health < boss.max_health
        assert encounter.stats.boss_damage_taken > 0
        assert encounter.game_state.score > 0

    def test_boss_fires(self):
        encounter = _started()
        for _ in range(30):
            encounter.update(1000 / 60)
        assert encounter.boss.shots_fired > 0

    def test_victory(self, capsys):
        encounter = _started()
        encounter.boss.health = 0
        encounter.update(16)
        assert encounter.result == "victory"
        assert encounter.controller.destroyed
        assert encounter.game_state.score >= encounter.boss.score
        assert "ENCOUNTER SUMMARY" in capsys.readouterr().out

    def test_defeat(self):
        encounter = _started()
        encounter.ship.lives = 0
        encounter.update(16)
        assert encounter.result == "defeat"

    def test_finish_is_idempotent(self):
        encounter = _started()
        encounter.finish("timeout")
        encounter.finish("victory")
        assert encounter.result == "timeout"
        assert encounter.update(16) is None

    def test_fallback_speed_within_remote_range(self):
        encounter = _started(level=4)
        boss = encounter.boss
        boss.health -= 10
        encounter.update(16)
        assert encounter.controller.last_decision.source == "fallback"
        fallback_speed = boss.move_speed

        boss.set_speed(SPEED_MAX)
        fastest = boss.move_speed
        boss.set_speed(SPEED_MIN)
        slowest = boss.move_speed
        assert slowest <= fallback_speed <= fastest

    def test_phase_changes_recorded(self):
        encounter = _started()
        encounter.boss.health = encounter.boss.max_health * 0.5
        encounter.update(16)
        assert encounter.phase == 2
        assert encounter.stats.phase_changes[0][1:] == (1, 2)
        assert encounter.stats.decisions


class TestSimulationRunner:
    """Scripted pilots against the rule-based boss."""

    def test_short_run(self, monkeypatch):
        monkeypatch.setattr(simulation_runner, "_MAX_ENCOUNTER_MS", 6000.0)
        runner = SimulationRunner(n_encounters=3, level=1, seed=5)
        results = asyncio.run(runner.run())
        assert len(results) == 3
        assert [r.pilot for r in results] == ["strafer", "camper", "dodger"]
        for r in results:
            assert r.result in ("victory", "defeat", "timeout")
            assert r.source_usage.get("llm", 0) == 0
        assert sum(r.decisions for r in results) >= 1

    def test_levels_cycle_when_unset(self, monkeypatch):
        monkeypatch.setattr(simulation_runner, "_MAX_ENCOUNTER_MS", 500.0)
        runner = SimulationRunner(n_encounters=2, seed=1)
        results = asyncio.run(runner.run())
        assert [r.level for r in results] == [1, 2]


class TestCommandLine:
    """API key resolution and argument parsing."""

    def test_explicit_key_wins(self):
        assert resolve_api_key("cli", {"GROQ_API_KEY": "env"}) == "cli"

    def test_environment_key(self):
        assert resolve_api_key(None, {"GROQ_API_KEY": " env "}) == "env"

    @pytest.mark.parametrize("explicit, environ", [
        (None, {}), ("", {"GROQ_API_KEY": "   "}), (None, {"GROQ_API_KEY": ""}),
    ])
    def test_missing_key(self, explicit, environ):
        assert resolve_api_key(explicit, environ) is None

    def test_parse_args(self):
        args = parse_args(["--simulate", "4", "--level", "2", "--seed", "9"])
        assert args.simulate == 4
        assert args.level == 2
        assert args.seed == 9
        assert args.difficulty == "normal"

    def test_level_out_of_range(self):
        with pytest.raises(SystemExit):
            parse_args(["--level", "9"])
