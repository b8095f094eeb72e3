"""
Django ORM implementations of the skill plan ports.

SdeCatalog reads skill data from the SDE tables, DatabaseCharacterState reads
a character's cached ESI data and DatabasePlanStore keeps plans in
SkillPlan / SkillPlanEntry / SkillPlanRemap.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError, transaction

from planner.character.models import (
    CharacterAttributes,
    CharacterImplant,
    CharacterSkill,
    SkillPlan,
    SkillPlanEntry,
    SkillPlanRemap,
)
from planner.eve.models import ItemGroup, ItemType, TypeAttribute
from planner.skill_plans.arithmetic import ATTRIBUTE_NAMES, Attributes
from planner.skill_plans.exceptions import StoreError, UnknownSkill
from planner.skill_plans.ports import (
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
from planner.skill_plans.service import PlanService

logger = logging.getLogger('skillmon')

# Dogma attribute ids of skills
ATTR_RANK = 275  # skillTimeConstant
ATTR_PRIMARY = 180
ATTR_SECONDARY = 181
# (requiredSkillN, requiredSkillNLevel)
REQUIREMENT_PAIRS = (
    (182, 277),
    (183, 278),
    (184, 279),
    (1285, 1286),
    (1289, 1287),
    (1290, 1288),
)
SKILL_ATTRIBUTE_IDS = {ATTR_RANK, ATTR_PRIMARY, ATTR_SECONDARY} | {
    attr for pair in REQUIREMENT_PAIRS for attr in pair
}

# Implant attribute bonuses (charismaBonus .. willpowerBonus)
IMPLANT_BONUS_ATTRIBUTES = {
    175: 'charisma',
    176: 'intelligence',
    177: 'memory',
    178: 'perception',
    179: 'willpower',
}


class SdeCatalog(Catalog):
    """
    Catalog backed by ItemType / ItemGroup / TypeAttribute.

    Lookups are cached for the life of the instance; create a new catalog
    after re-importing the SDE.
    """

    def __init__(self):
        self._skills: Dict[int, SkillInfo] = {}
        self._prerequisites: Dict[int, List[Tuple[int, int]]] = {}
        self._group_names: Dict[int, str] = {}

    def preload(self, skill_ids: Optional[Iterable[int]] = None) -> None:
        """Load many skills with two queries instead of one per skill."""
        attrs = TypeAttribute.objects.filter(attribute_id__in=SKILL_ATTRIBUTE_IDS)
        if skill_ids is not None:
            attrs = attrs.filter(type_id__in=list(skill_ids))
        by_type: Dict[int, Dict[int, int]] = {}
        for attr in attrs:
            by_type.setdefault(attr.type_id, {})[attr.attribute_id] = attr.value
        items = {item.id: item for item in ItemType.objects.filter(id__in=list(by_type))}
        for type_id, values in by_type.items():
            item = items.get(type_id)
            if item is not None:
                self._store(item, values)

    def _load(self, skill_id: int) -> None:
        item = ItemType.objects.filter(id=skill_id).first()
        if item is None:
            raise UnknownSkill(skill_id)
        values = {
            attr.attribute_id: attr.value
            for attr in TypeAttribute.objects.filter(type_id=skill_id, attribute_id__in=SKILL_ATTRIBUTE_IDS)
        }
        self._store(item, values)

    def _store(self, item: ItemType, values: Dict[int, Optional[int]]) -> None:
        rank = values.get(ATTR_RANK)
        if not rank:
            return  # Not a skill
        rank = int(rank)

        def attribute(attr_id: int) -> Optional[int]:
            value = values.get(attr_id)
            return int(value) if value in ATTRIBUTE_NAMES else None

        self._skills[item.id] = SkillInfo(
            skill_id=item.id,
            rank=rank,
            primary_attribute_id=attribute(ATTR_PRIMARY),
            secondary_attribute_id=attribute(ATTR_SECONDARY),
            name=item.name,
            group_id=item.group_id,
        )
        requirements = []
        for skill_attr, level_attr in REQUIREMENT_PAIRS:
            required_skill = values.get(skill_attr)
            required_level = values.get(level_attr)
            if required_skill and required_level:
                requirements.append((int(required_skill), int(required_level)))
        self._prerequisites[item.id] = requirements

    def skill(self, skill_id: int) -> SkillInfo:
        if skill_id not in self._skills:
            self._load(skill_id)
        try:
            return self._skills[skill_id]
        except KeyError:
            raise UnknownSkill(skill_id)

    def prerequisites(self, skill_id: int) -> List[Tuple[int, int]]:
        self.skill(skill_id)
        return list(self._prerequisites.get(skill_id, []))

    def name(self, skill_id: int) -> str:
        return self.skill(skill_id).name

    def skill_id_by_name(self, name: str) -> Optional[int]:
        item = ItemType.objects.get_skill_by_name(name.strip())
        if item is None:
            return None
        try:
            return self.skill(item.id).skill_id
        except UnknownSkill:
            return None

    def group_name(self, group_id: int) -> str:
        if group_id not in self._group_names:
            group = ItemGroup.objects.filter(id=group_id).first()
            self._group_names[group_id] = group.name if group else super().group_name(group_id)
        return self._group_names[group_id]


class DatabaseCharacterState(CharacterState):
    """A character's cached skills, attributes and implants."""

    def __init__(self, character):
        self.character = character

    def skills(self) -> Dict[int, TrainedSkill]:
        return {
            skill.skill_id: TrainedSkill(
                skill_id=skill.skill_id,
                trained_level=skill.trained_skill_level,
                active_level=skill.skill_level,
                current_sp=skill.skillpoints_in_skill,
            )
            for skill in CharacterSkill.objects.filter(character=self.character)
        }

    def attributes(self) -> Optional[Attributes]:
        attrs = CharacterAttributes.objects.filter(character=self.character).first()
        if attrs is None:
            return None
        return Attributes(
            intelligence=attrs.intelligence,
            memory=attrs.memory,
            perception=attrs.perception,
            willpower=attrs.willpower,
            charisma=attrs.charisma,
        )

    def implants(self) -> Attributes:
        type_ids = list(CharacterImplant.objects.filter(character=self.character).values_list('type_id', flat=True))
        totals = {name: 0 for name in ATTRIBUTE_NAMES.values()}
        bonuses = TypeAttribute.objects.filter(type_id__in=type_ids, attribute_id__in=list(IMPLANT_BONUS_ATTRIBUTES))
        for attr in bonuses:
            totals[IMPLANT_BONUS_ATTRIBUTES[attr.attribute_id]] += int(attr.value or 0)
        return Attributes.from_dict(totals)


def _wrap_errors(method):
    """Re-raise ORM failures as StoreError."""

    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except (DatabaseError, ObjectDoesNotExist) as e:
            logger.error(f"Plan store {method.__name__} failed: {e}")
            raise StoreError(e) from e

    return wrapper


def _to_entry(row: SkillPlanEntry) -> PlanEntry:
    return PlanEntry(
        entry_id=row.id,
        plan_id=row.skill_plan_id,
        skill_id=row.skill_id,
        level=row.level,
        kind=EntryKind.parse(row.entry_type),
        sort_order=row.display_order,
        notes=row.notes,
    )


class DatabasePlanStore(PlanStore):
    """PlanStore on the Django ORM. atomic() is transaction.atomic()."""

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with transaction.atomic():
            yield

    @_wrap_errors
    def create_plan(self, name: str, description: Optional[str] = None) -> int:
        return SkillPlan.objects.create(name=name, description=description).id

    @_wrap_errors
    def get_plan(self, plan_id: int) -> Optional[Plan]:
        plan = SkillPlan.objects.filter(id=plan_id).first()
        if plan is None:
            return None
        return Plan(plan.id, plan.name, plan.description)

    @_wrap_errors
    def list_plans(self) -> List[Plan]:
        return [Plan(plan.id, plan.name, plan.description) for plan in SkillPlan.objects.all()]

    @_wrap_errors
    def get_entries(self, plan_id: int) -> List[PlanEntry]:
        rows = SkillPlanEntry.objects.filter(skill_plan_id=plan_id).order_by('display_order', 'id')
        return [_to_entry(row) for row in rows]

    @_wrap_errors
    def get_entry(self, entry_id: int) -> Optional[PlanEntry]:
        row = SkillPlanEntry.objects.filter(id=entry_id).first()
        return _to_entry(row) if row else None

    @_wrap_errors
    def write_entries(self, plan_id: int, rows: List[EntryWrite]) -> None:
        with transaction.atomic():
            plan = SkillPlan.objects.get(id=plan_id)
            existing = {(e.skill_id, e.level): e for e in plan.entries.all()}
            for row in rows:
                entry = existing.get((row.skill_id, row.level))
                kind = EntryKind.parse(row.kind)
                if entry is None:
                    existing[(row.skill_id, row.level)] = SkillPlanEntry.objects.create(
                        skill_plan=plan,
                        skill_id=row.skill_id,
                        level=row.level,
                        entry_type=kind.value,
                        notes=row.notes,
                        display_order=row.sort_order,
                    )
                    continue
                if entry.entry_type != EntryKind.PLANNED.value:
                    entry.entry_type = kind.value
                if row.notes is not None:
                    entry.notes = row.notes
                entry.display_order = row.sort_order
                entry.save(update_fields=['entry_type', 'notes', 'display_order', 'updated_at'])

    @_wrap_errors
    def update_entry(self, entry_id: int, level: Optional[int] = None,
                     kind: Optional[EntryKind] = None, notes: Optional[str] = None) -> None:
        with transaction.atomic():
            entry = SkillPlanEntry.objects.get(id=entry_id)
            if level is not None:
                entry.level = level
            if kind is not None:
                entry.entry_type = EntryKind.parse(kind).value
            if notes is not None:
                entry.notes = notes
            entry.save()

    @_wrap_errors
    def delete_entry(self, entry_id: int) -> None:
        SkillPlanEntry.objects.filter(id=entry_id).delete()

    @_wrap_errors
    def delete_plan(self, plan_id: int) -> None:
        SkillPlan.objects.filter(id=plan_id).delete()

    @_wrap_errors
    def reorder(self, plan_id: int, entry_ids: List[int]) -> None:
        with transaction.atomic():
            entries = SkillPlanEntry.objects.in_bulk(entry_ids)
            changed = []
            for index, entry_id in enumerate(entry_ids):
                entry = entries.get(entry_id)
                if entry is None or entry.skill_plan_id != plan_id:
                    raise StoreError(KeyError(f"entry {entry_id} is not in plan {plan_id}"))
                entry.display_order = index
                changed.append(entry)
            SkillPlanEntry.objects.bulk_update(changed, ['display_order'])

    @_wrap_errors
    def get_remaps(self, plan_id: int) -> List[PlanRemapRecord]:
        return [
            PlanRemapRecord(
                attributes=Attributes(
                    intelligence=remap.intelligence,
                    memory=remap.memory,
                    perception=remap.perception,
                    willpower=remap.willpower,
                    charisma=remap.charisma,
                ),
                after_skill_id=remap.after_skill_id,
                after_level=remap.after_level,
            )
            for remap in SkillPlanRemap.objects.filter(skill_plan_id=plan_id)
        ]

    @_wrap_errors
    def replace_remaps(self, plan_id: int, remaps: List[PlanRemapRecord]) -> None:
        with transaction.atomic():
            SkillPlanRemap.objects.filter(skill_plan_id=plan_id).delete()
            SkillPlanRemap.objects.bulk_create([
                SkillPlanRemap(
                    skill_plan_id=plan_id,
                    after_skill_id=remap.after_skill_id,
                    after_level=remap.after_level,
                    display_order=index,
                    **remap.attributes.as_dict(),
                )
                for index, remap in enumerate(remaps)
            ])


def get_plan_service(catalog: Optional[SdeCatalog] = None) -> PlanService:
    """PlanService over the database store and the SDE catalog."""
    return PlanService(DatabasePlanStore(), catalog or SdeCatalog())
