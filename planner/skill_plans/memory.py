"""
In-memory implementations of the ports.

Used by the test suite and by anything that wants to run the engine without
a database.
"""

import copy
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .arithmetic import Attributes, sp_for_level
from .exceptions import StoreError, UnknownSkill
from .ports import (
    Catalog,
    CharacterState,
    EntryKind,
    EntryWrite,
    Plan,
    PlanEntry,
    PlanRemapRecord,
    PlanStore,
    SkillInfo,
    TrainedSkill,
)


class InMemoryCatalog(Catalog):
    """A fixed catalog built from plain values."""

    def __init__(self):
        self._skills: Dict[int, SkillInfo] = {}
        self._prerequisites: Dict[int, List[Tuple[int, int]]] = {}
        self._groups: Dict[int, str] = {}

    def add_skill(self, skill_id: int, rank: int = 1, primary: Optional[int] = None,
                  secondary: Optional[int] = None, name: Optional[str] = None,
                  group_id: Optional[int] = None,
                  prerequisites: Iterable[Tuple[int, int]] = ()) -> SkillInfo:
        info = SkillInfo(
            skill_id=skill_id,
            rank=rank,
            primary_attribute_id=primary,
            secondary_attribute_id=secondary,
            name=name or f"Skill {skill_id}",
            group_id=group_id,
        )
        self._skills[skill_id] = info
        self._prerequisites[skill_id] = list(prerequisites)
        return info

    def add_group(self, group_id: int, name: str) -> None:
        self._groups[group_id] = name

    def skill(self, skill_id: int) -> SkillInfo:
        try:
            return self._skills[skill_id]
        except KeyError:
            raise UnknownSkill(skill_id)

    def prerequisites(self, skill_id: int) -> List[Tuple[int, int]]:
        return list(self._prerequisites.get(skill_id, []))

    def name(self, skill_id: int) -> str:
        return self.skill(skill_id).name

    def skill_id_by_name(self, name: str) -> Optional[int]:
        wanted = name.strip().lower()
        for info in self._skills.values():
            if info.name.lower() == wanted:
                return info.skill_id
        return None

    def group_name(self, group_id: int) -> str:
        return self._groups.get(group_id, super().group_name(group_id))


class InMemoryCharacterState(CharacterState):
    """Character state from a dict of skill_id -> TrainedSkill."""

    def __init__(self, skills: Optional[Dict[int, TrainedSkill]] = None,
                 attributes: Optional[Attributes] = None,
                 implants: Optional[Attributes] = None):
        self._skills = dict(skills or {})
        self._attributes = attributes
        self._implants = implants or Attributes()

    @classmethod
    def from_levels(cls, levels: Dict[int, int], catalog: Optional[Catalog] = None,
                    **kwargs) -> 'InMemoryCharacterState':
        """Build from skill_id -> trained level, with SP filled from the catalog ranks."""
        skills = {}
        for skill_id, level in levels.items():
            rank = catalog.skill(skill_id).rank if catalog is not None else 1
            skills[skill_id] = TrainedSkill(skill_id, level, level, sp_for_level(rank, level))
        return cls(skills, **kwargs)

    def skills(self) -> Dict[int, TrainedSkill]:
        return dict(self._skills)

    def attributes(self) -> Optional[Attributes]:
        return self._attributes

    def implants(self) -> Attributes:
        return self._implants


class InMemoryPlanStore(PlanStore):
    """
    Map-backed plan store.

    atomic() snapshots the whole store and restores it if the block raises.
    """

    def __init__(self):
        self._plans: Dict[int, Plan] = {}
        self._entries: Dict[int, PlanEntry] = {}
        self._remaps: Dict[int, List[PlanRemapRecord]] = {}
        self._next_plan_id = 1
        self._next_entry_id = 1
        self._depth = 0

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = copy.deepcopy((self._plans, self._entries, self._remaps,
                                  self._next_plan_id, self._next_entry_id))
        self._depth = 1
        try:
            yield
        except BaseException:
            (self._plans, self._entries, self._remaps,
             self._next_plan_id, self._next_entry_id) = snapshot
            raise
        finally:
            self._depth = 0

    def create_plan(self, name: str, description: Optional[str] = None) -> int:
        plan_id = self._next_plan_id
        self._next_plan_id += 1
        self._plans[plan_id] = Plan(plan_id, name, description)
        return plan_id

    def get_plan(self, plan_id: int) -> Optional[Plan]:
        return self._plans.get(plan_id)

    def list_plans(self) -> List[Plan]:
        return [self._plans[plan_id] for plan_id in sorted(self._plans)]

    def get_entries(self, plan_id: int) -> List[PlanEntry]:
        entries = [e for e in self._entries.values() if e.plan_id == plan_id]
        return [copy.copy(e) for e in sorted(entries, key=lambda e: (e.sort_order, e.entry_id))]

    def get_entry(self, entry_id: int) -> Optional[PlanEntry]:
        entry = self._entries.get(entry_id)
        return copy.copy(entry) if entry else None

    def _find(self, plan_id: int, skill_id: int, level: int) -> Optional[PlanEntry]:
        for entry in self._entries.values():
            if entry.plan_id == plan_id and entry.skill_id == skill_id and entry.level == level:
                return entry
        return None

    def write_entries(self, plan_id: int, rows: List[EntryWrite]) -> None:
        if plan_id not in self._plans:
            raise StoreError(KeyError(f"plan {plan_id} does not exist"))
        for row in rows:
            existing = self._find(plan_id, row.skill_id, row.level)
            if existing is None:
                entry_id = self._next_entry_id
                self._next_entry_id += 1
                self._entries[entry_id] = PlanEntry(
                    entry_id=entry_id,
                    plan_id=plan_id,
                    skill_id=row.skill_id,
                    level=row.level,
                    kind=EntryKind.parse(row.kind),
                    sort_order=row.sort_order,
                    notes=row.notes,
                )
                continue
            if existing.kind != EntryKind.PLANNED:
                existing.kind = EntryKind.parse(row.kind)
            if row.notes is not None:
                existing.notes = row.notes
            existing.sort_order = row.sort_order

    def update_entry(self, entry_id: int, level: Optional[int] = None,
                     kind: Optional[EntryKind] = None, notes: Optional[str] = None) -> None:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise StoreError(KeyError(f"entry {entry_id} does not exist"))
        if level is not None and level != entry.level:
            if self._find(entry.plan_id, entry.skill_id, level) is not None:
                raise StoreError(ValueError(
                    f"duplicate entry for skill {entry.skill_id} level {level}"))
            entry.level = level
        if kind is not None:
            entry.kind = EntryKind.parse(kind)
        if notes is not None:
            entry.notes = notes

    def delete_entry(self, entry_id: int) -> None:
        self._entries.pop(entry_id, None)

    def delete_plan(self, plan_id: int) -> None:
        self._plans.pop(plan_id, None)
        self._remaps.pop(plan_id, None)
        for entry_id in [e.entry_id for e in self._entries.values() if e.plan_id == plan_id]:
            del self._entries[entry_id]

    def reorder(self, plan_id: int, entry_ids: List[int]) -> None:
        for index, entry_id in enumerate(entry_ids):
            entry = self._entries.get(entry_id)
            if entry is None or entry.plan_id != plan_id:
                raise StoreError(KeyError(f"entry {entry_id} is not in plan {plan_id}"))
            entry.sort_order = index

    def get_remaps(self, plan_id: int) -> List[PlanRemapRecord]:
        return list(self._remaps.get(plan_id, []))

    def replace_remaps(self, plan_id: int, remaps: List[PlanRemapRecord]) -> None:
        self._remaps[plan_id] = list(remaps)
