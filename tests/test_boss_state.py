"""Tests for boss_ai.boss_state – phases, enrage and damage timing."""

import pytest

from boss_ai.boss_state import BossStateMonitor, is_enraged, phase_for_ratio
from tests.conftest import FakeClock


class TestThresholds:
    """Phase and enrage boundaries."""

    @pytest.mark.parametrize("ratio, phase", [
        (1.0, 1), (0.67, 1), (0.66, 2), (0.34, 2), (0.33, 3), (0.0, 3),
    ])
    def test_phase_for_ratio(self, ratio, phase):
        assert phase_for_ratio(ratio) == phase

    def test_enrage_is_strictly_below_quarter(self):
        assert not is_enraged(0.25)
        assert is_enraged(0.2499)


class TestMonitor:
    """Edge-triggered phase changes and damage timestamps."""

    def test_initial_phase_from_health(self):
        monitor = BossStateMonitor(500, 1000)
        assert monitor.phase == 2
        assert not monitor.phase_changed

    def test_phase_change_is_one_shot(self):
        monitor = BossStateMonitor(1000, 1000)
        monitor.update(600)
        assert monitor.phase_changed
        assert monitor.previous_phase == 1
        assert monitor.phase == 2

        monitor.update(590)
        assert not monitor.phase_changed
        assert monitor.phase == 2

    def test_skipping_a_phase(self):
        monitor = BossStateMonitor(1000, 1000)
        monitor.update(100)
        assert monitor.previous_phase == 1
        assert monitor.phase == 3
        assert monitor.enraged

    def test_healing_back_lowers_phase(self):
        monitor = BossStateMonitor(300, 1000)
        monitor.update(700)
        assert monitor.phase == 1
        assert monitor.phase_changed

    def test_damage_time_only_on_health_drop(self):
        clock = FakeClock(10.0)
        monitor = BossStateMonitor(1000, 1000, clock=clock)
        clock.advance(5)
        monitor.update(1000)
        assert monitor.state.last_damage_time == 0.0

        monitor.update(950)
        assert monitor.state.last_damage_time == 15.0

    def test_mark_damage(self):
        clock = FakeClock(3.0)
        monitor = BossStateMonitor(1000, 1000, clock=clock)
        monitor.mark_damage()
        assert monitor.state.last_damage_time == 3.0

    def test_zero_max_health_is_phase_three(self):
        monitor = BossStateMonitor(0, 0)
        assert monitor.phase == 3
