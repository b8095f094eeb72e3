import threading

import pytest

from planner.skill_plans import (
    CatalogCycle,
    EntryKind,
    EntryNotFound,
    InvalidReorder,
    LevelOutOfRange,
    PlanIntegrityError,
    PlanNode,
    PlanNotFound,
    PlanService,
    UnknownSkill,
)
from planner.skill_plans.arithmetic import Attributes
from planner.skill_plans.memory import InMemoryCatalog, InMemoryPlanStore
from planner.skill_plans.optimization import OptimizationResult
from planner.skill_plans.simulation import PlannedRemap

from .conftest import EVASIVE, HULL_UPGRADES, MECHANICS, NAVIGATION, kinds, nodes

PLANNED = EntryKind.PLANNED.value
PREREQ = EntryKind.PREREQUISITE.value


def assert_closed_and_ordered(service, plan_id):
    entries = service.entries(plan_id)
    present = {e.node for e in entries}
    position = {e.node: i for i, e in enumerate(entries)}
    for node in present:
        for required in service.resolver.closure_nodes(node):
            assert required in present
            assert position[required] < position[node]
    assert [e.sort_order for e in entries] == sorted(e.sort_order for e in entries)


class TestPlans:

    def test_create_and_list(self, service):
        first = service.create_plan('Logistics', 'Remote repair')
        second = service.create_plan('Gunnery')
        assert [p.plan_id for p in service.list_plans()] == [first, second]
        assert service.get_plan(first).description == 'Remote repair'

    def test_missing_plan(self, service):
        with pytest.raises(PlanNotFound):
            service.get_plan(404)
        with pytest.raises(PlanNotFound):
            service.add_entry(404, MECHANICS, 1)

    def test_delete_plan_removes_entries(self, service, hull_plan, store):
        service.delete_plan(hull_plan)
        assert store.get_entries(hull_plan) == []
        with pytest.raises(PlanNotFound):
            service.entries(hull_plan)


class TestAddEntry:

    def test_adds_prerequisites_in_order(self, service, hull_plan):
        assert kinds(service.entries(hull_plan)) == [
            (MECHANICS, 1, PREREQ),
            (MECHANICS, 2, PREREQ),
            (MECHANICS, 3, PREREQ),
            (HULL_UPGRADES, 1, PLANNED),
        ]

    def test_existing_prerequisite_is_left_alone(self, service, hull_plan):
        before = kinds(service.entries(hull_plan))
        service.add_entry(hull_plan, MECHANICS, 2)
        assert kinds(service.entries(hull_plan)) == before

    def test_idempotent(self, service, plan_id):
        service.add_entry(plan_id, EVASIVE, 3)
        once = kinds(service.entries(plan_id))
        service.add_entry(plan_id, EVASIVE, 3)
        assert kinds(service.entries(plan_id)) == once

    def test_planned_is_sticky(self, service, plan_id):
        service.add_entry(plan_id, MECHANICS, 3)
        service.add_entry(plan_id, HULL_UPGRADES, 2)
        entries = {e.node: e.kind for e in service.entries(plan_id)}
        assert entries[PlanNode(MECHANICS, 3)] == EntryKind.PLANNED
        assert entries[PlanNode(HULL_UPGRADES, 1)] == EntryKind.PREREQUISITE

    def test_appends_after_existing_entries(self, service, hull_plan):
        service.add_entry(hull_plan, EVASIVE, 1)
        assert nodes(service.entries(hull_plan)) == [
            (MECHANICS, 1), (MECHANICS, 2), (MECHANICS, 3), (HULL_UPGRADES, 1),
            (NAVIGATION, 1), (NAVIGATION, 2), (EVASIVE, 1),
        ]
        assert_closed_and_ordered(service, hull_plan)

    def test_notes_are_kept(self, service, plan_id):
        service.add_entry(plan_id, NAVIGATION, 1, notes='warp faster')
        assert service.entries(plan_id)[0].notes == 'warp faster'

    @pytest.mark.parametrize('level', [0, 6, -1, True, '3', 2.0])
    def test_level_out_of_range(self, service, plan_id, level):
        with pytest.raises(LevelOutOfRange):
            service.add_entry(plan_id, MECHANICS, level)
        assert service.entries(plan_id) == []

    def test_unknown_skill(self, service, plan_id):
        with pytest.raises(UnknownSkill):
            service.add_entry(plan_id, 123456, 1)

    def test_catalog_cycle_writes_nothing(self, store):
        catalog = InMemoryCatalog()
        catalog.add_skill(1, prerequisites=[(2, 1)])
        catalog.add_skill(2, prerequisites=[(1, 1)])
        service = PlanService(store, catalog)
        plan_id = service.create_plan('Loop')
        with pytest.raises(CatalogCycle):
            service.add_entry(plan_id, 1, 1)
        assert service.entries(plan_id) == []

    def test_concurrent_adds_keep_plan_closed(self, service, plan_id):
        targets = [(HULL_UPGRADES, 3), (EVASIVE, 4), (MECHANICS, 5), (NAVIGATION, 5)]
        threads = [threading.Thread(target=service.add_entry, args=(plan_id, skill, level))
                   for skill, level in targets]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert_closed_and_ordered(service, plan_id)
        planned = {e.node for e in service.entries(plan_id) if e.is_planned}
        assert planned == {PlanNode(*target) for target in targets}


class TestCreateWithEntries:

    def test_creates_plan(self, service):
        plan_id = service.create_plan_with_entries(
            'Imported', [(PlanNode(HULL_UPGRADES, 1), EntryKind.PLANNED, None)])
        assert len(service.entries(plan_id)) == 4

    def test_failure_leaves_no_plan(self, service):
        with pytest.raises(UnknownSkill):
            service.create_plan_with_entries('Broken', [(PlanNode(424242, 1), EntryKind.PLANNED, None)])
        assert service.list_plans() == []


class TestUpdateEntry:

    def test_level_upgrade_expands_prerequisites(self, service, hull_plan):
        a1 = service.entries(hull_plan)[3]
        service.update_entry(a1.entry_id, new_level=3)
        assert kinds(service.entries(hull_plan)) == [
            (MECHANICS, 1, PREREQ),
            (MECHANICS, 2, PREREQ),
            (MECHANICS, 3, PREREQ),
            (HULL_UPGRADES, 1, PREREQ),
            (HULL_UPGRADES, 2, PREREQ),
            (HULL_UPGRADES, 3, PLANNED),
        ]

    def test_upgrade_keeps_notes(self, service, plan_id):
        service.add_entry(plan_id, NAVIGATION, 1, notes='start here')
        entry = service.entries(plan_id)[0]
        service.update_entry(entry.entry_id, new_level=2)
        upgraded = service.entries(plan_id)[-1]
        assert upgraded.node == PlanNode(NAVIGATION, 2)
        assert upgraded.notes == 'start here'

    def test_upgrade_onto_existing_level_promotes_it(self, service, plan_id):
        service.add_entry(plan_id, MECHANICS, 1)
        service.add_entry(plan_id, HULL_UPGRADES, 1)
        m1 = service.entries(plan_id)[0]
        assert m1.node == PlanNode(MECHANICS, 1) and m1.is_planned

        service.update_entry(m1.entry_id, new_level=3)
        result = {e.node: e.kind for e in service.entries(plan_id)}
        assert result[PlanNode(MECHANICS, 3)] == EntryKind.PLANNED
        assert result[PlanNode(MECHANICS, 1)] == EntryKind.PREREQUISITE
        assert_closed_and_ordered(service, plan_id)

    def test_notes_only(self, service, hull_plan):
        a1 = service.entries(hull_plan)[3]
        service.update_entry(a1.entry_id, notes='after mechanics')
        assert service.entries(hull_plan)[3].notes == 'after mechanics'

    def test_lowering_onto_existing_level_is_rejected(self, service, hull_plan):
        m3 = service.entries(hull_plan)[2]
        with pytest.raises(PlanIntegrityError):
            service.update_entry(m3.entry_id, new_level=2)

    def test_moving_a_required_level_is_rejected(self, service, plan_id):
        service.add_entry(plan_id, HULL_UPGRADES, 1)
        service.add_entry(plan_id, MECHANICS, 4)
        before = kinds(service.entries(plan_id))
        m4 = [e for e in service.entries(plan_id) if e.node == PlanNode(MECHANICS, 4)][0]
        service.delete_entry(m4.entry_id)
        m3 = [e for e in service.entries(plan_id) if e.node == PlanNode(MECHANICS, 3)][0]
        with pytest.raises(PlanIntegrityError):
            service.update_entry(m3.entry_id, new_level=5)
        assert len(service.entries(plan_id)) == len(before) - 1

    def test_change_kind(self, service, hull_plan):
        m2 = service.entries(hull_plan)[1]
        service.update_entry(m2.entry_id, new_kind='Planned')
        assert service.entries(hull_plan)[1].is_planned

    def test_missing_entry(self, service):
        with pytest.raises(EntryNotFound):
            service.update_entry(999, notes='x')


class TestDeleteEntry:

    def test_delete_leaf(self, service, hull_plan):
        a1 = service.entries(hull_plan)[3]
        service.delete_entry(a1.entry_id)
        assert nodes(service.entries(hull_plan)) == [(MECHANICS, 1), (MECHANICS, 2), (MECHANICS, 3)]

    def test_delete_required_entry_is_rejected(self, service, hull_plan):
        m3 = service.entries(hull_plan)[2]
        with pytest.raises(PlanIntegrityError):
            service.delete_entry(m3.entry_id)
        assert len(service.entries(hull_plan)) == 4

    def test_compact_removes_orphaned_prerequisites(self, service, hull_plan):
        service.add_entry(hull_plan, NAVIGATION, 1)
        a1 = service.entries(hull_plan)[3]
        service.delete_entry(a1.entry_id)
        assert service.compact(hull_plan) == 3
        assert nodes(service.entries(hull_plan)) == [(NAVIGATION, 1)]


class TestReorder:

    def test_valid_reorder(self, service, hull_plan):
        service.add_entry(hull_plan, NAVIGATION, 1)
        ids = [e.entry_id for e in service.entries(hull_plan)]
        new_order = [ids[4]] + ids[:4]
        service.reorder_entries(hull_plan, new_order)
        assert [e.entry_id for e in service.entries(hull_plan)] == new_order

    def test_invalid_reorder(self, service, hull_plan):
        ids = [e.entry_id for e in service.entries(hull_plan)]
        with pytest.raises(InvalidReorder) as excinfo:
            service.reorder_entries(hull_plan, [ids[3]] + ids[:3])
        assert excinfo.value.violations
        assert [e.entry_id for e in service.entries(hull_plan)] == ids

    def test_reorder_must_be_permutation(self, service, hull_plan):
        ids = [e.entry_id for e in service.entries(hull_plan)]
        with pytest.raises(InvalidReorder):
            service.reorder_entries(hull_plan, ids[:3])
        with pytest.raises(InvalidReorder):
            service.reorder_entries(hull_plan, ids[:3] + ids[:1])

    def test_validate_reorder_does_not_write(self, service, hull_plan):
        ids = [e.entry_id for e in service.entries(hull_plan)]
        result = service.validate_reorder(hull_plan, list(reversed(ids)))
        assert not result.is_valid
        assert [e.entry_id for e in service.entries(hull_plan)] == ids

    def test_sort_plan(self, service, store, hull_plan):
        ids = [e.entry_id for e in service.entries(hull_plan)]
        store.reorder(hull_plan, list(reversed(ids)))
        assert not service.validate_plan(hull_plan).is_valid
        assert service.sort_plan(hull_plan) is True
        assert [e.entry_id for e in service.entries(hull_plan)] == ids
        assert service.sort_plan(hull_plan) is False


class TestRemaps:

    def test_remaps_follow_their_anchor(self, service, hull_plan):
        attrs = Attributes(intelligence=10, memory=4)
        service.set_remaps(hull_plan, [PlannedRemap(0, Attributes(perception=10, willpower=4)),
                                     PlannedRemap(3, attrs)])
        remaps = service.get_remaps(hull_plan)
        assert remaps == [PlannedRemap(0, Attributes(perception=10, willpower=4)), PlannedRemap(3, attrs)]

        service.add_entry(hull_plan, NAVIGATION, 1)
        ids = [e.entry_id for e in service.entries(hull_plan)]
        service.reorder_entries(hull_plan, [ids[4]] + ids[:4])
        assert service.get_remaps(hull_plan)[1] == PlannedRemap(4, attrs)

    def test_apply_optimization(self, service, hull_plan):
        service.add_entry(hull_plan, NAVIGATION, 1)
        order = [PlanNode(NAVIGATION, 1)] + [e.node for e in service.entries(hull_plan)][:4]
        remap = PlannedRemap(1, Attributes(intelligence=10, memory=4))
        result = OptimizationResult(entries=order, remaps=[remap], original_seconds=10, optimized_seconds=5)

        service.apply_optimization(hull_plan, result)
        assert [e.node for e in service.entries(hull_plan)] == order
        assert service.get_remaps(hull_plan) == [remap]

    def test_apply_optimization_rejects_bad_order(self, service, hull_plan):
        order = [e.node for e in service.entries(hull_plan)]
        result = OptimizationResult(entries=list(reversed(order)), remaps=[],
                                    original_seconds=0, optimized_seconds=0)
        with pytest.raises(InvalidReorder):
            service.apply_optimization(hull_plan, result)
        assert [e.node for e in service.entries(hull_plan)] == order


def test_store_rollback_on_failure(catalog):
    class FailingStore(InMemoryPlanStore):
        def write_entries(self, plan_id, rows):
            super().write_entries(plan_id, rows[:1])
            raise RuntimeError('disk full')

    service = PlanService(FailingStore(), catalog)
    plan_id = service.create_plan('Doomed')
    with pytest.raises(RuntimeError):
        service.add_entry(plan_id, HULL_UPGRADES, 1)
    assert service.entries(plan_id) == []
