from planner.skill_plans import summarize_plan
from planner.skill_plans.arithmetic import Attributes, sp_for_level
from planner.skill_plans.comparison import COMPLETE, IN_PROGRESS, NOT_STARTED, compare_entries
from planner.skill_plans.memory import InMemoryCharacterState
from planner.skill_plans.ports import EntryKind, PlanEntry, TrainedSkill

from .conftest import HULL_UPGRADES, MECHANICS


def test_compare_entries(catalog, service, hull_plan):
    character = InMemoryCharacterState({
        MECHANICS: TrainedSkill(MECHANICS, trained_level=2, active_level=1, current_sp=3000),
    })
    rows = compare_entries(service.entries(hull_plan), character, catalog)

    assert [r.status for r in rows] == [COMPLETE, COMPLETE, IN_PROGRESS, NOT_STARTED]
    m3, h1 = rows[2], rows[3]
    assert m3.skill_name == 'Mechanics'
    assert m3.trained_level == 2 and m3.active_level == 1
    assert m3.sp_for_planned_level == 8000
    assert m3.missing_sp == 5000
    assert rows[0].missing_sp == 0
    assert h1.rank == 2
    assert h1.missing_sp == sp_for_level(2, 1)


def test_unknown_skill_is_reported_not_raised(catalog):
    entry = PlanEntry(entry_id=1, plan_id=1, skill_id=55555, level=2, kind=EntryKind.PLANNED, sort_order=0)
    row = compare_entries([entry], InMemoryCharacterState(), catalog)[0]
    assert row.skill_name == 'Unknown Skill (55555)'
    assert row.rank is None
    assert row.missing_sp == 0


def test_summary_in_progress(catalog, service, hull_plan):
    character = InMemoryCharacterState.from_levels(
        {MECHANICS: 3}, catalog, attributes=Attributes().plus_all(20))
    summary = summarize_plan(service.entries(hull_plan), character, catalog)

    assert summary.status == IN_PROGRESS
    assert summary.completed_sp == sp_for_level(1, 1) + sp_for_level(1, 2) + sp_for_level(1, 3)
    assert summary.missing_sp == 500
    # 500 SP at 20 + 20/2 = 30 SP/min
    assert summary.time_to_completion_seconds == 1000
    assert summary.has_prerequisites


def test_summary_without_attributes_has_no_time(catalog, service, hull_plan):
    summary = summarize_plan(service.entries(hull_plan), InMemoryCharacterState(), catalog)
    assert summary.status == NOT_STARTED
    assert summary.time_to_completion_seconds is None
    # Each level counts its full SP from zero
    assert summary.missing_sp == 250 + 1415 + 8000 + 500
    assert summary.has_prerequisites


def test_summary_complete(catalog, service, hull_plan):
    character = InMemoryCharacterState.from_levels({MECHANICS: 5, HULL_UPGRADES: 1}, catalog)
    summary = summarize_plan(service.entries(hull_plan), character, catalog)
    assert summary.status == COMPLETE
    assert summary.missing_sp == 0


def test_missing_prerequisites(catalog):
    entry = PlanEntry(entry_id=1, plan_id=1, skill_id=HULL_UPGRADES, level=1,
                      kind=EntryKind.PLANNED, sort_order=0)
    character = InMemoryCharacterState.from_levels({MECHANICS: 2}, catalog)
    assert not summarize_plan([entry], character, catalog).has_prerequisites

    character = InMemoryCharacterState.from_levels({MECHANICS: 3}, catalog)
    assert summarize_plan([entry], character, catalog).has_prerequisites
