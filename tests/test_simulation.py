import pytest

from planner.skill_plans import PlanNode, PlannedAccelerator, PlannedRemap, SimProfile, UnknownSkill, simulate
from planner.skill_plans.arithmetic import Attributes, sp_for_level
from planner.skill_plans.memory import InMemoryCharacterState

from .conftest import EVASIVE, HULL_UPGRADES, MECHANICS, NAVIGATION, UNTIMED

HULL_PLAN = [PlanNode(MECHANICS, 1), PlanNode(MECHANICS, 2), PlanNode(MECHANICS, 3), PlanNode(HULL_UPGRADES, 1)]


def test_single_skill_at_base_attributes(catalog):
    result = simulate([PlanNode(NAVIGATION, 1)], catalog)
    # 250 SP at 17 + 17/2 = 25.5 SP/min
    assert result.total_seconds == 589
    assert result.total_sp == 250
    segment = result.segments[0]
    assert segment.sp_per_minute == 25.5
    assert segment.start_seconds == 0
    assert segment.attributes == Attributes().plus_all(17)


def test_remap_speeds_up_training(catalog):
    profile = SimProfile(remaps=[PlannedRemap(0, Attributes(perception=10, willpower=4))])
    result = simulate([PlanNode(NAVIGATION, 1)], catalog, profile)
    # 250 SP at 27 + 21/2 = 37.5 SP/min
    assert result.total_seconds == 400


def test_conservation(catalog):
    plan = HULL_PLAN + [PlanNode(NAVIGATION, 1), PlanNode(NAVIGATION, 2), PlanNode(EVASIVE, 1)]
    profile = SimProfile(
        implants=Attributes(intelligence=3, perception=2),
        remaps=[PlannedRemap(2, Attributes(intelligence=10, memory=4)),
                PlannedRemap(4, Attributes(perception=10, willpower=4))],
        current_sp_map={MECHANICS: 100},
    )
    result = simulate(plan, catalog, profile)

    expected_sp = (sp_for_level(1, 3) - 100) + sp_for_level(2, 1) + sp_for_level(1, 2) + sp_for_level(2, 1)
    assert result.total_sp == expected_sp
    assert sum(s.sp_earned for s in result.segments) == expected_sp
    assert sum(s.duration_seconds for s in result.segments) == result.total_seconds
    assert result.segments[-1].cumulative_sp == expected_sp


def test_trained_sp_shortens_entries(catalog):
    character = InMemoryCharacterState.from_levels({MECHANICS: 2}, catalog)
    result = simulate(HULL_PLAN, catalog, SimProfile.for_character(character))
    assert [s.entry_index for s in result.segments] == [2, 3]
    assert result.seconds_for_entry(0) == 0
    assert result.segments[0].sp_earned == sp_for_level(1, 3) - sp_for_level(1, 2)


def test_accelerator_expiry_splits_segment(catalog):
    profile = SimProfile(accelerators=[PlannedAccelerator(0, bonus=10, duration_seconds=100)])
    result = simulate([PlanNode(NAVIGATION, 1)], catalog, profile)

    assert len(result.segments) == 2
    boosted, plain = result.segments
    assert boosted.duration_seconds == 100
    assert boosted.attributes == Attributes().plus_all(27)
    assert plain.start_seconds == 100
    assert plain.attributes == Attributes().plus_all(17)
    assert boosted.sp_earned + plain.sp_earned == 250
    assert result.total_seconds == boosted.duration_seconds + plain.duration_seconds
    assert result.total_seconds < 589


def test_accelerator_outlasting_the_plan(catalog):
    profile = SimProfile(accelerators=[PlannedAccelerator(0, bonus=10, duration_seconds=86400)])
    result = simulate([PlanNode(NAVIGATION, 1)], catalog, profile)
    assert len(result.segments) == 1
    assert result.total_sp == 250


def test_untimed_skills_are_reported(catalog):
    result = simulate([PlanNode(UNTIMED, 1), PlanNode(NAVIGATION, 1)], catalog)
    assert result.untimed == [0]
    assert [s.entry_index for s in result.segments] == [1]


def test_unknown_skill(catalog):
    with pytest.raises(UnknownSkill):
        simulate([PlanNode(5, 1)], catalog)
