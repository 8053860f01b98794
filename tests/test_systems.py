"""Tests for projectiles, the boss entity, the debug overlay text and stats."""

import pytest
from pygame.math import Vector2

from boss_ai.decision import Decision
from boss_ai.pattern_library import BossProjectile
from boss_ai.stats import EncounterStats
from entities.boss import Boss
from entities.ship import PlayerShip
from systems.ai_debug_overlay import build_lines
from systems.projectile_system import Projectile, ProjectileSystem


class TestProjectiles:
    """Bullets, mines and lasers."""

    def test_descriptor_damage_scaling(self):
        system = ProjectileSystem()
        desc = BossProjectile(Vector2(100, 100), Vector2(0, 100), 2, (255, 0, 0))
        proj = system.spawn_descriptor(desc, damage_multiplier=1.5)
        assert proj.damage == 30
        assert len(system) == 1

    def test_laser_is_short_lived(self):
        system = ProjectileSystem()
        desc = BossProjectile(Vector2(100, 100), Vector2(0, 480), 5, (0, 255, 255),
                              kind="laser", width=20, height=400)
        proj = system.spawn_descriptor(desc)
        system.update(0.2)
        assert not proj.active
        assert len(system) == 0

    def test_mine_fuse_and_blast(self):
        mine = Projectile(200, 200, 0, 0, damage=40, kind="mine", fuse=0.5, radius=30)
        assert not mine.armed
        mine.update(0.4)
        assert not mine.armed
        mine.update(0.2)
        assert mine.armed
        assert mine.active
        mine.update(0.3)
        assert not mine.active

    def test_unarmed_mine_does_not_hit(self):
        ship = PlayerShip()
        c = ship.center
        mine = Projectile(c.x, c.y, 0, 0, damage=40, kind="mine", fuse=1.0, radius=30)
        assert not mine.check_collision(ship)

    def test_bullet_spent_on_hit(self):
        ship = PlayerShip()
        c = ship.center
        bullet = Projectile(c.x, c.y, 0, 0, damage=10)
        assert bullet.check_collision(ship)
        assert not bullet.active

    def test_no_self_hit(self):
        ship = PlayerShip()
        c = ship.center
        bullet = Projectile(c.x, c.y, 0, 0, damage=10, owner_id=id(ship))
        assert not bullet.check_collision(ship)

    def test_homing_turns_toward_target(self):
        proj = Projectile(100, 100, 100, 0, damage=10, homing=True)
        proj.update(0.1, Vector2(100, 400))
        assert proj.vy > 0
        assert Vector2(proj.vx, proj.vy).length() == pytest.approx(100)

    def test_out_of_bounds(self):
        proj = Projectile(10, 10, -1000, 0, damage=10)
        proj.update(0.1)
        assert not proj.active


class TestBossEntity:
    """Capabilities driven by the controller."""

    def test_roster(self):
        boss = Boss(level=3)
        assert boss.name == "Cosmic Overlord"
        assert boss.attack_patterns == ["all"]
        assert boss.max_health == 1000

    def test_unknown_level_uses_first_boss(self):
        assert Boss(level=42).name == Boss(level=1).name

    def test_shield_blocks_damage(self):
        boss = Boss(level=1)
        boss.activate_shield(1000)
        assert boss.take_damage(50) == 0.0
        boss.update(1000, (500, 500))
        assert boss.take_damage(50) == 50.0

    def test_minions_soak_hits(self):
        boss = Boss(level=1)
        boss.summon_minions(2)
        assert len(boss.minions) == 2
        boss.take_damage(25)
        assert len(boss.minions) == 1
        assert boss.health == boss.max_health

    def test_minion_cap(self):
        boss = Boss(level=1)
        boss.summon_minions(4)
        boss.summon_minions(4)
        assert len(boss.minions) == 6

    def test_heal_capped(self):
        boss = Boss(level=1)
        boss.take_damage(20)
        boss.heal(100)
        assert boss.health == boss.max_health

    def test_shoot_spawns_with_multiplier(self):
        system = ProjectileSystem()
        boss = Boss(level=1, projectiles=system)
        boss.activate_rage(2.0)
        boss.shoot([BossProjectile(Vector2(0, 0), Vector2(0, 1), 1, (1, 1, 1))])
        assert system.projectiles[0].damage == 20
        assert boss.shots_fired == 1

    def test_moves_toward_named_target(self):
        boss = Boss(level=1)
        start_x = boss.position.x
        boss.set_movement_target("left")
        boss.update(100, (500, 500))
        assert boss.position.x < start_x

    def test_teleport_is_clamped(self):
        boss = Boss(level=1)
        boss.teleport((-100, 9999))
        assert boss.position.x == 0
        assert boss.rect.top >= 0


class TestDebugOverlayLines:
    """Pure text building for the F1 overlay."""

    def test_without_controller(self):
        texts = [t for t, _ in build_lines(None)]
        assert "Controller: N/A" in texts

    def test_with_info(self):
        info = {
            "mode": "fallback_only", "phase": 3, "enraged": True, "health_ratio": 0.2,
            "pattern": "Projectile Storm", "pattern_timer": 1200, "cooldown": 0,
            "player_movement": "horizontal", "player_accuracy": 0.61,
            "player_aggressiveness": 0.4, "decisions": 7, "in_flight": False,
            "last_source": "fallback", "last_reasoning": "Fallback rule: final",
        }
        texts = [t for t, _ in build_lines(info)]
        assert "  [ENRAGED]" in texts
        assert any("Projectile Storm" in t for t in texts)
        assert any("Fallback rule: final" in t for t in texts)
        assert not any("Decision service" in t for t in texts)


class TestEncounterStats:
    """Recording and reporting."""

    def test_usage_counts(self):
        stats = EncounterStats("Boss", "aggressive")
        stats.record_decision(0, Decision("spread", source="llm"))
        stats.record_decision(1000, Decision("spread", source="fallback"))
        stats.record_decision(3000, Decision("storm", source="fallback"))
        assert stats.pattern_usage() == {"spread": 2, "storm": 1}
        assert stats.source_usage() == {"llm": 1, "fallback": 2}
        assert stats.mean_decision_interval() == pytest.approx(1500)

    def test_sampling_interval(self):
        stats = EncounterStats("Boss", "aggressive")
        for t in range(0, 1000, 16):
            stats.sample(t, 1.0)
        assert len(stats.health_samples) == 4

    def test_end_encounter_writes_chart(self, tmp_path, capsys):
        stats = EncounterStats("Boss", "aggressive")
        for t in range(0, 5000, 250):
            stats.sample(t, 1 - t / 10000)
        stats.record_decision(1000, Decision("spread"))
        stats.record_phase_change(2000, 1, 2)
        chart = tmp_path / "chart.png"
        stats.end_encounter("victory", 5000, plot=True, filename=str(chart))
        assert chart.exists()
        assert "ENCOUNTER SUMMARY" in capsys.readouterr().out
        assert stats.as_dict()["phase_changes"] == [(1, 2)]
