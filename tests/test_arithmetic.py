import pytest

from planner.skill_plans.arithmetic import (
    CHARISMA,
    INTELLIGENCE,
    MEMORY,
    PERCEPTION,
    WILLPOWER,
    Attributes,
    effective_attributes,
    sp_for_level,
    sp_per_minute,
    training_rate,
)


class TestSpForLevel:

    @pytest.mark.parametrize('level,expected', [(1, 250), (2, 1415), (3, 8000), (4, 45255), (5, 256000)])
    def test_rank_one_table(self, level, expected):
        assert sp_for_level(1, level) == expected

    def test_ceiling_applied_before_rank(self):
        # ceil(250 * 2^7.5) = 45255, times rank 3
        assert sp_for_level(3, 4) == 135765

    @pytest.mark.parametrize('rank', [1, 2, 3, 5, 8, 16])
    def test_linear_in_rank(self, rank):
        for level in range(1, 6):
            assert sp_for_level(rank, level) == rank * sp_for_level(1, level)

    def test_out_of_range_needs_nothing(self):
        assert sp_for_level(1, 0) == 0
        assert sp_for_level(1, 6) == 0


def test_sp_per_minute():
    assert sp_per_minute(27, 21) == 37.5
    assert sp_per_minute(17, 17) == 25.5


class TestAttributes:

    def test_tuple_order(self):
        attrs = Attributes.from_tuple((1, 2, 3, 4, 5))
        assert attrs.as_dict() == {
            'intelligence': 1, 'memory': 2, 'perception': 3, 'willpower': 4, 'charisma': 5,
        }

    def test_get_by_attribute_id(self):
        attrs = Attributes(intelligence=1, memory=2, perception=3, willpower=4, charisma=5)
        assert [attrs.get(a) for a in (INTELLIGENCE, MEMORY, PERCEPTION, WILLPOWER, CHARISMA)] == [1, 2, 3, 4, 5]
        assert attrs.get(None) == 0

    def test_arithmetic(self):
        a = Attributes(intelligence=4, perception=10)
        b = Attributes(intelligence=1, memory=3)
        assert (a + b).as_tuple() == (5, 3, 10, 0, 0)
        assert (a - b).clamped().as_tuple() == (3, 0, 10, 0, 0)
        assert a.total() == 14

    def test_from_dict_defaults_missing_to_zero(self):
        assert Attributes.from_dict({'perception': 10, 'willpower': 4}) == Attributes(perception=10, willpower=4)


def test_effective_attributes_and_rate():
    remap = Attributes(perception=10, willpower=4)
    implants = Attributes(perception=3)
    effective = effective_attributes(remap, implants, accelerator_bonus=2)
    assert effective.as_tuple() == (19, 19, 32, 23, 19)
    assert training_rate(effective, PERCEPTION, WILLPOWER) == 32 + 23 / 2
    # Unknown attributes train at zero
    assert training_rate(effective, None, None) == 0
