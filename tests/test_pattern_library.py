"""Tests for boss_ai.pattern_library – catalog, cadence and emitters."""

import random

import pytest

from boss_ai.pattern_library import (
    PATTERNS, PatternId, PatternLibrary, expand_pattern_list,
)


@pytest.fixture
def library():
    return PatternLibrary(arena=(1000, 600), rng=random.Random(7))


TARGET = (500, 500)


class TestCatalog:
    """Lookup, info and the "all" sentinel."""

    def test_ten_patterns(self, library):
        assert len(PATTERNS) == 10
        assert library.pattern_ids()[0] == "straight"
        assert "ultimate" in library.pattern_ids()

    def test_info(self, library):
        assert library.info("laser") == {"name": "Laser Beam", "duration": 2500, "cooldown": 3000}
        assert library.info("nope") is None
        assert library.is_available("storm")
        assert not library.is_available("explode")

    def test_unknown_id_instantiates_default(self, library, boss, caplog):
        inst = library.instantiate("explode", boss)
        assert inst.id is PatternId.STRAIGHT
        assert inst.timer == 0.0
        assert "Unknown pattern" in caplog.text

    def test_expand_all_sentinel(self):
        assert expand_pattern_list(["all"]) == [p.value for p in PatternId]
        assert expand_pattern_list(["spiral", "bogus", "laser"]) == ["spiral", "laser"]
        assert expand_pattern_list(None) == []


class TestCadence:
    """Accumulator-driven firing."""

    def test_straight_fires_every_interval(self, library, boss):
        inst = library.instantiate("straight", boss)
        for _ in range(10):
            library.tick(inst, 100, TARGET)
        # fires on the first tick, then at 500 ms and 1000 ms
        assert len(boss.batches) == 3
        assert all(len(b) == 1 for b in boss.batches)

    def test_at_most_one_batch_per_tick(self, library, boss):
        inst = library.instantiate("straight", boss)
        library.tick(inst, 5000, TARGET)
        assert len(boss.batches) == 1

    def test_complete_after_duration(self, library, boss):
        inst = library.instantiate("mines", boss)
        library.tick(inst, 999, TARGET)
        assert not inst.complete
        library.tick(inst, 1, TARGET)
        assert inst.complete

    def test_library_never_retires(self, library, boss):
        inst = library.instantiate("mines", boss)
        library.tick(inst, 2000, TARGET)
        library.tick(inst, 200, TARGET)
        assert inst.timer == 2200
        assert len(boss.batches) == 2


class TestEmitters:
    """Shape of what each pattern fires."""

    def test_spread_is_five_way(self, library, boss):
        inst = library.instantiate("spread", boss)
        batch = library.tick(inst, 16, TARGET)
        assert len(batch) == 5
        assert all(p.velocity.y > 0 for p in batch)

    def test_laser_warms_up(self, library, boss):
        inst = library.instantiate("laser", boss)
        for _ in range(9):
            library.tick(inst, 100, TARGET)
        assert boss.batches == []
        batch = library.tick(inst, 100, TARGET)
        assert batch[0].kind == "laser"

    def test_mines_land_inside_arena(self, library, boss):
        inst = library.instantiate("mines", boss)
        for _ in range(5):
            library.tick(inst, 200, TARGET)
        mines = [p for b in boss.batches for p in b]
        assert len(mines) == 5
        for mine in mines:
            assert mine.kind == "mine"
            assert mine.fuse == 3000
            assert 50 <= mine.position.x <= 950
            assert 50 <= mine.position.y <= 410

    def test_homing_volley(self, library, boss):
        inst = library.instantiate("homing", boss)
        batch = library.tick(inst, 16, TARGET)
        assert len(batch) == 3
        assert all(p.homing for p in batch)

    def test_teleport_relocates_away_from_player(self, library, boss):
        inst = library.instantiate("teleport", boss)
        library.tick(inst, 10, TARGET)
        assert "teleport" not in boss.call_names()

        inst.timer = 500
        library.tick(inst, 10, (200, 500))
        assert boss.call_names().count("teleport") == 1
        assert boss.position.x == pytest.approx(1000 * 0.8 - boss.width)

        # Same stage again: no second relocation
        library.tick(inst, 10, (200, 500))
        assert boss.call_names().count("teleport") == 1

        inst.timer = 1000
        batch = library.tick(inst, 10, TARGET)
        assert len(batch) == 6   # spread fan + aimed shot

    def test_clone_fires_from_both_sides(self, library, boss):
        inst = library.instantiate("clone", boss)
        batch = library.tick(inst, 16, TARGET)
        xs = sorted(p.position.x for p in batch)
        assert xs == [boss.position.x - 100, boss.position.x + 100]

    def test_storm_is_random_but_seeded(self, boss):
        a = PatternLibrary(rng=random.Random(3))
        b = PatternLibrary(rng=random.Random(3))
        batch_a = a.tick(a.instantiate("storm", boss), 16, TARGET)
        batch_b = b.tick(b.instantiate("storm", boss), 16, TARGET)
        assert 2 <= len(batch_a) <= 4
        assert [p.velocity for p in batch_a] == [p.velocity for p in batch_b]

    @pytest.mark.parametrize("start, size, kind", [
        (0, 6, "bullet"),        # spiral
        (2000, 5, "bullet"),     # spread
        (4000, 3, "bullet"),     # homing
        (6000, 1, "laser"),      # laser
    ])
    def test_ultimate_stages(self, library, boss, start, size, kind):
        inst = library.instantiate("ultimate", boss)
        inst.timer = start
        batch = library.tick(inst, 10, TARGET)
        assert len(batch) == size
        assert batch[0].kind == kind
