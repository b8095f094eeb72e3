"""
Plan mutation API.

Every mutating call runs inside PlanStore.atomic() while holding a per-plan
lock, so a failing call writes nothing and calls against one plan are
applied in the order they were made.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .exceptions import (
    EntryNotFound,
    InvalidReorder,
    PlanIntegrityError,
    PlanNotFound,
)
from .graph import ORDERING_VIOLATION, PlanDag, ValidationResult
from .optimization import OptimizationResult
from .ports import (
    Catalog,
    EntryKind,
    EntryWrite,
    Plan,
    PlanEntry,
    PlanNode,
    PlanRemapRecord,
    PlanStore,
    check_level,
)
from .prerequisites import PrerequisiteResolver
from .simulation import PlannedRemap

logger = logging.getLogger('skillmon')

# (node, kind, notes) as requested by a caller
Request = Tuple[PlanNode, EntryKind, Optional[str]]


class PlanService:
    """Creates and edits plans while keeping them prerequisite-closed and ordered."""

    def __init__(self, store: PlanStore, catalog: Catalog,
                 resolver: Optional[PrerequisiteResolver] = None):
        self.store = store
        self.catalog = catalog
        self.resolver = resolver or PrerequisiteResolver(catalog)
        self._locks: Dict[int, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock(self, plan_id: int) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(plan_id)
            if lock is None:
                lock = self._locks[plan_id] = threading.RLock()
            return lock

    # Plans

    def create_plan(self, name: str, description: Optional[str] = None) -> int:
        with self.store.atomic():
            plan_id = self.store.create_plan(name, description)
        logger.info(f"Created skill plan {plan_id}: {name}")
        return plan_id

    def create_plan_with_entries(self, name: str, requests: Iterable[Request],
                                 description: Optional[str] = None) -> int:
        """Create a plan and merge entries into it; nothing is kept if the merge fails."""
        with self.store.atomic():
            plan_id = self.create_plan(name, description)
            self.add_entries(plan_id, requests)
        return plan_id

    def get_plan(self, plan_id: int) -> Plan:
        plan = self.store.get_plan(plan_id)
        if plan is None:
            raise PlanNotFound(plan_id)
        return plan

    def list_plans(self) -> List[Plan]:
        return self.store.list_plans()

    def entries(self, plan_id: int) -> List[PlanEntry]:
        self.get_plan(plan_id)
        return self.store.get_entries(plan_id)

    def delete_plan(self, plan_id: int) -> None:
        self.get_plan(plan_id)
        with self._lock(plan_id), self.store.atomic():
            self.store.delete_plan(plan_id)
        logger.info(f"Deleted skill plan {plan_id}")

    # Entries

    def add_entry(self, plan_id: int, skill_id: int, level: int,
                  notes: Optional[str] = None) -> List[PlanEntry]:
        """
        Add a Planned (skill, level) together with everything it requires.

        A node that is already in the plan is left alone, whatever its kind.

        Returns:
            The plan's entries after the call
        """
        check_level(level)
        self.catalog.skill(skill_id)
        self.get_plan(plan_id)
        with self._lock(plan_id), self.store.atomic():
            added = self._merge(plan_id, [(PlanNode(skill_id, level), EntryKind.PLANNED, notes)])
        if added:
            logger.info(f"Added skill {skill_id} L{level} to plan {plan_id} ({len(added)} new entries)")
        return self.store.get_entries(plan_id)

    def add_entries(self, plan_id: int, requests: Iterable[Request]) -> List[PlanNode]:
        """
        Merge several nodes in one transaction, keeping their order as the preference.

        Used by the importers. Returns the nodes that were new to the plan.
        """
        requests = [(PlanNode(*node), EntryKind.parse(kind), notes) for node, kind, notes in requests]
        for node, _, _ in requests:
            check_level(node.level)
            self.catalog.skill(node.skill_id)
        self.get_plan(plan_id)
        with self._lock(plan_id), self.store.atomic():
            added = self._merge(plan_id, requests)
        logger.info(f"Merged {len(requests)} entries into plan {plan_id} ({len(added)} new)")
        return added

    def _merge(self, plan_id: int, requests: List[Request]) -> List[PlanNode]:
        existing = {entry.node: entry for entry in self.store.get_entries(plan_id)}

        wanted: Dict[PlanNode, Tuple[EntryKind, Optional[str]]] = {}
        for node, kind, notes in requests:
            if node in existing or node in wanted:
                continue
            wanted[node] = (kind, notes)
        if not wanted:
            return []

        dag = PlanDag.restricted(self.catalog, existing, self.resolver)
        for node in wanted:
            dag.add_recursive(node)

        preferred = list(existing) + list(wanted)
        preferred_skills = {node.skill_id for node, entry in existing.items() if entry.is_planned}
        preferred_skills.update(node.skill_id for node, (kind, _) in wanted.items()
                                if kind == EntryKind.PLANNED)
        order = dag.topological_sort(preferred, preferred_skills)
        if len(order) < len(dag):
            raise PlanIntegrityError(f"Plan {plan_id} would contain a prerequisite cycle")

        rows = []
        added = []
        for index, node in enumerate(order):
            if node in existing:
                rows.append(EntryWrite(node.skill_id, node.level, existing[node].kind, index))
                continue
            kind, notes = wanted.get(node, (EntryKind.PREREQUISITE, None))
            rows.append(EntryWrite(node.skill_id, node.level, kind, index, notes))
            added.append(node)
        self.store.write_entries(plan_id, rows)
        return added

    def _get_entry(self, entry_id: int) -> PlanEntry:
        entry = self.store.get_entry(entry_id)
        if entry is None:
            raise EntryNotFound(entry_id)
        return entry

    def update_entry(self, entry_id: int, new_level: Optional[int] = None,
                     new_kind: Optional[EntryKind] = None,
                     notes: Optional[str] = None) -> List[PlanEntry]:
        """
        Change an entry's level, kind or notes.

        Raising the level of a Planned entry removes it and adds the new level
        through add_entry so that its prerequisites are expanded again. Any
        other change is written directly and then checked.
        """
        if new_level is not None:
            check_level(new_level)
        if new_kind is not None:
            new_kind = EntryKind.parse(new_kind)
        entry = self._get_entry(entry_id)
        plan_id = entry.plan_id

        with self._lock(plan_id), self.store.atomic():
            before = self._issue_keys(plan_id)
            upgrade = (new_level is not None and new_level > entry.level and entry.is_planned
                       and new_kind in (None, EntryKind.PLANNED))
            if upgrade:
                self.store.delete_entry(entry_id)
                target = PlanNode(entry.skill_id, new_level)
                current = {e.node: e for e in self.store.get_entries(plan_id)}
                kept_notes = notes if notes is not None else entry.notes
                if target in current:
                    self.store.update_entry(current[target].entry_id, kind=EntryKind.PLANNED, notes=kept_notes)
                    closure = self.resolver.closure_nodes(target)
                    self._merge(plan_id, [(node, EntryKind.PREREQUISITE, None) for node in closure])
                else:
                    self._merge(plan_id, [(target, EntryKind.PLANNED, kept_notes)])
            else:
                if new_level is not None and new_level != entry.level:
                    duplicate = PlanNode(entry.skill_id, new_level) in set(self.store.get_nodes(plan_id))
                    if duplicate:
                        raise PlanIntegrityError(
                            f"Plan {plan_id} already has skill {entry.skill_id} at level {new_level}")
                self.store.update_entry(entry_id, level=new_level, kind=new_kind, notes=notes)
            self._check_integrity(plan_id, before)

        logger.info(f"Updated entry {entry_id} of plan {plan_id}")
        return self.store.get_entries(plan_id)

    def delete_entry(self, entry_id: int) -> List[PlanEntry]:
        """
        Remove one entry. Prerequisites it left behind stay in the plan.

        Raises PlanIntegrityError if another entry still needs this one.
        """
        entry = self._get_entry(entry_id)
        plan_id = entry.plan_id
        with self._lock(plan_id), self.store.atomic():
            before = self._issue_keys(plan_id)
            self.store.delete_entry(entry_id)
            self._check_integrity(plan_id, before)
        logger.info(f"Deleted skill {entry.skill_id} L{entry.level} from plan {plan_id}")
        return self.store.get_entries(plan_id)

    def compact(self, plan_id: int) -> int:
        """Delete Prerequisite entries that no Planned entry needs. Returns how many went."""
        self.get_plan(plan_id)
        with self._lock(plan_id), self.store.atomic():
            entries = self.store.get_entries(plan_id)
            required: Set[PlanNode] = set()
            for entry in entries:
                if entry.is_planned:
                    required.update(self.resolver.closure_nodes(entry.node))
            removed = 0
            for entry in entries:
                if not entry.is_planned and entry.node not in required:
                    self.store.delete_entry(entry.entry_id)
                    removed += 1
        if removed:
            logger.info(f"Compacted plan {plan_id}: removed {removed} unused prerequisites")
        return removed

    # Ordering

    def reorder_entries(self, plan_id: int, entry_ids: List[int]) -> List[PlanEntry]:
        """
        Overwrite sort_order with the given permutation of the plan's entry ids.

        Raises:
            InvalidReorder: If entry_ids is not a permutation, or if it trains
                something before its prerequisite
        """
        self.get_plan(plan_id)
        with self._lock(plan_id), self.store.atomic():
            result = self.validate_reorder(plan_id, entry_ids)
            if not result.is_valid:
                logger.warning(f"Rejected reorder of plan {plan_id}: {len(result.errors)} violations")
                raise InvalidReorder(
                    f"Order violates prerequisites: {'; '.join(str(e) for e in result.errors)}",
                    violations=result.errors,
                )
            self.store.reorder(plan_id, list(entry_ids))
        logger.info(f"Reordered plan {plan_id}")
        return self.store.get_entries(plan_id)

    def validate_reorder(self, plan_id: int, entry_ids: List[int]) -> ValidationResult:
        """Check a proposed order without writing it."""
        entries = {entry.entry_id: entry for entry in self.store.get_entries(plan_id)}
        entry_ids = list(entry_ids)
        if len(entry_ids) != len(set(entry_ids)) or set(entry_ids) != set(entries):
            raise InvalidReorder(f"Order must be a permutation of the {len(entries)} entries of plan {plan_id}")
        order = [entries[entry_id].node for entry_id in entry_ids]
        dag = PlanDag.restricted(self.catalog, order, self.resolver)
        result = dag.validate(order)
        # Only ordering matters here; missing prerequisites are the plan's own state.
        result.errors = [issue for issue in result.errors if issue.variant == ORDERING_VIOLATION]
        result.warnings = []
        return result

    def validate_plan(self, plan_id: int) -> ValidationResult:
        self.get_plan(plan_id)
        order = self.store.get_nodes(plan_id)
        return PlanDag.restricted(self.catalog, order, self.resolver).validate(order)

    def sort_plan(self, plan_id: int) -> bool:
        """
        Re-sort a plan by prerequisites, keeping the current order where it is valid.

        Returns True if the order changed.
        """
        self.get_plan(plan_id)
        with self._lock(plan_id), self.store.atomic():
            entries = self.store.get_entries(plan_id)
            nodes = [entry.node for entry in entries]
            dag = PlanDag.restricted(self.catalog, nodes, self.resolver)
            planned = {entry.skill_id for entry in entries if entry.is_planned}
            order = dag.topological_sort(nodes, planned)
            if len(order) < len(nodes):
                raise PlanIntegrityError(f"Plan {plan_id} contains a prerequisite cycle",
                                         violations=dag.validate(nodes).errors)
            if order == nodes:
                return False
            by_node = {entry.node: entry.entry_id for entry in entries}
            self.store.reorder(plan_id, [by_node[node] for node in order])
        logger.info(f"Sorted plan {plan_id} by prerequisites")
        return True

    # Remaps

    def get_remaps(self, plan_id: int) -> List[PlannedRemap]:
        """Stored remaps as entry-index based PlannedRemaps for the current order."""
        self.get_plan(plan_id)
        position = {node: index for index, node in enumerate(self.store.get_nodes(plan_id))}
        remaps = []
        for record in self.store.get_remaps(plan_id):
            anchor = record.after
            if anchor is None:
                remaps.append(PlannedRemap(0, record.attributes))
            elif anchor in position:
                remaps.append(PlannedRemap(position[anchor] + 1, record.attributes))
            else:
                logger.warning(f"Dropping remap of plan {plan_id} anchored to missing entry {anchor}")
        return sorted(remaps, key=lambda remap: remap.entry_index)

    def set_remaps(self, plan_id: int, remaps: List[PlannedRemap]) -> None:
        self.get_plan(plan_id)
        with self._lock(plan_id), self.store.atomic():
            nodes = self.store.get_nodes(plan_id)
            self.store.replace_remaps(plan_id, _anchor_remaps(nodes, remaps))

    def apply_optimization(self, plan_id: int, result: OptimizationResult) -> List[PlanEntry]:
        """Write an optimiser result: the new order and its remap schedule, together."""
        self.get_plan(plan_id)
        with self._lock(plan_id), self.store.atomic():
            entries = self.store.get_entries(plan_id)
            by_node = {entry.node: entry.entry_id for entry in entries}
            order = [PlanNode(*node) for node in result.entries]
            if set(order) != set(by_node):
                raise PlanIntegrityError(f"Optimisation result does not match the entries of plan {plan_id}")
            entry_ids = [by_node[node] for node in order]
            validation = self.validate_reorder(plan_id, entry_ids)
            if not validation.is_valid:
                raise InvalidReorder("Optimised order violates prerequisites", violations=validation.errors)
            self.store.reorder(plan_id, entry_ids)
            self.store.replace_remaps(plan_id, _anchor_remaps(order, result.remaps))
        logger.info(f"Applied optimisation to plan {plan_id}: {len(result.remaps)} remaps")
        return self.store.get_entries(plan_id)

    # Integrity

    def _issue_keys(self, plan_id: int) -> Set[tuple]:
        return {(issue.variant, issue.node, issue.other)
                for issue in self.validate_plan(plan_id).issues}

    def _check_integrity(self, plan_id: int, before: Set[tuple]) -> None:
        result = self.validate_plan(plan_id)
        new_issues = [issue for issue in result.issues
                      if (issue.variant, issue.node, issue.other) not in before]
        if new_issues:
            logger.warning(f"Rejected change to plan {plan_id}: {new_issues[0]}")
            raise PlanIntegrityError(
                f"Change would break plan {plan_id}: {'; '.join(str(i) for i in new_issues)}",
                violations=new_issues,
            )


def _anchor_remaps(nodes: List[PlanNode], remaps: List[PlannedRemap]) -> List[PlanRemapRecord]:
    records = []
    for remap in sorted(remaps, key=lambda r: r.entry_index):
        if remap.entry_index <= 0:
            records.append(PlanRemapRecord(remap.attributes))
        elif remap.entry_index <= len(nodes):
            after = nodes[remap.entry_index - 1]
            records.append(PlanRemapRecord(remap.attributes, after.skill_id, after.level))
    return records
