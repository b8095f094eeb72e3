from planner.skill_plans import EntryKind, PlanNode, build_character_plan
from planner.skill_plans.arithmetic import sp_for_level
from planner.skill_plans.memory import InMemoryCharacterState
from planner.skill_plans.ports import TrainedSkill

from .conftest import (
    ENGINEERING_GROUP,
    EVASIVE,
    HULL_UPGRADES,
    MECHANICS,
    NAVIGATION,
    NAVIGATION_GROUP,
    kinds,
)

PLANNED = EntryKind.PLANNED
PREREQ = EntryKind.PREREQUISITE


def test_prerequisites_outside_the_groups_use_required_level(catalog):
    character = InMemoryCharacterState.from_levels({HULL_UPGRADES: 2, MECHANICS: 4}, catalog)
    plan = build_character_plan(character, catalog, [NAVIGATION_GROUP, 999])
    assert plan.nodes == []

    character = InMemoryCharacterState.from_levels({EVASIVE: 2, NAVIGATION: 3}, catalog)
    plan = build_character_plan(character, catalog, [NAVIGATION_GROUP])
    assert plan.nodes == [
        PlanNode(NAVIGATION, 1), PlanNode(NAVIGATION, 2), PlanNode(NAVIGATION, 3),
        PlanNode(EVASIVE, 1), PlanNode(EVASIVE, 2),
    ]
    assert plan.kinds[PlanNode(NAVIGATION, 3)] == PLANNED
    assert plan.kinds[PlanNode(EVASIVE, 2)] == PLANNED
    assert plan.kinds[PlanNode(NAVIGATION, 2)] == PREREQ


def test_prerequisite_from_another_group(catalog):
    character = InMemoryCharacterState.from_levels({HULL_UPGRADES: 2, MECHANICS: 4}, catalog)
    catalog.add_group(1000, 'Armor')
    catalog.add_skill(HULL_UPGRADES, rank=2, primary=catalog.skill(MECHANICS).primary_attribute_id,
                      secondary=catalog.skill(MECHANICS).secondary_attribute_id,
                      name='Hull Upgrades', group_id=1000, prerequisites=[(MECHANICS, 3)])

    plan = build_character_plan(character, catalog, [1000])
    # Mechanics is trained to 4 but only level 3 is required
    assert plan.nodes == [
        PlanNode(MECHANICS, 1), PlanNode(MECHANICS, 2), PlanNode(MECHANICS, 3),
        PlanNode(HULL_UPGRADES, 1), PlanNode(HULL_UPGRADES, 2),
    ]
    assert [plan.kinds[n] for n in plan.nodes] == [PREREQ, PREREQ, PREREQ, PREREQ, PLANNED]
    assert plan.estimated_sp == sp_for_level(1, 3) + sp_for_level(2, 2)
    assert [(g.group_name, g.skill_count) for g in plan.group_counts] == [('Armor', 1), ('Engineering', 1)]


def test_whitelisted_prerequisite_keeps_trained_level(catalog):
    character = InMemoryCharacterState.from_levels({HULL_UPGRADES: 2, MECHANICS: 4}, catalog)
    plan = build_character_plan(character, catalog, [ENGINEERING_GROUP])
    assert PlanNode(MECHANICS, 4) in plan.nodes
    assert plan.kinds[PlanNode(MECHANICS, 4)] == PLANNED
    assert plan.kinds[PlanNode(MECHANICS, 3)] == PREREQ
    assert plan.estimated_sp == sp_for_level(1, 4) + sp_for_level(2, 2)


def test_unknown_and_untrained_skills_are_skipped(catalog):
    character = InMemoryCharacterState({
        NAVIGATION: TrainedSkill(NAVIGATION, trained_level=1, active_level=1, current_sp=250),
        EVASIVE: TrainedSkill(EVASIVE, trained_level=0, active_level=0, current_sp=100),
        424242: TrainedSkill(424242, trained_level=5, active_level=5, current_sp=256000),
    })
    plan = build_character_plan(character, catalog, [NAVIGATION_GROUP])
    assert plan.nodes == [PlanNode(NAVIGATION, 1)]


def test_plan_can_be_written(catalog, service):
    character = InMemoryCharacterState.from_levels({EVASIVE: 2, NAVIGATION: 3, MECHANICS: 1}, catalog)
    plan = build_character_plan(character, catalog, [NAVIGATION_GROUP, ENGINEERING_GROUP])
    plan_id = service.create_plan_with_entries('From character', plan.requests)
    assert kinds(service.entries(plan_id)) == [(n.skill_id, n.level, plan.kinds[n].value) for n in plan.nodes]
