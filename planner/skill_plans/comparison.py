"""
Compare a plan against a character's trained skills.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from .arithmetic import sp_for_level, training_rate
from .exceptions import UnknownSkill
from .ports import Catalog, CharacterState, EntryKind, PlanEntry

COMPLETE = 'complete'
IN_PROGRESS = 'in_progress'
NOT_STARTED = 'not_started'


@dataclass
class EntryComparison:
    entry_id: int
    skill_id: int
    skill_name: str
    planned_level: int
    trained_level: int
    active_level: int
    kind: EntryKind
    sort_order: int
    rank: Optional[int]
    sp_for_planned_level: int
    current_sp: int
    missing_sp: int
    status: str


@dataclass
class PlanSummary:
    """How far one character is through a plan."""

    completed_sp: int = 0
    missing_sp: int = 0
    # None when the character's attributes are unknown
    time_to_completion_seconds: Optional[int] = None
    has_prerequisites: bool = True
    status: str = NOT_STARTED
    entries: List[EntryComparison] = field(default_factory=list)


def _status(trained_level: int, planned_level: int) -> str:
    if trained_level >= planned_level:
        return COMPLETE
    if trained_level > 0:
        return IN_PROGRESS
    return NOT_STARTED


def compare_entries(entries: List[PlanEntry], character: CharacterState,
                    catalog: Catalog) -> List[EntryComparison]:
    """Planned vs trained vs active for every entry, with the SP still missing."""
    skills = character.skills()
    result = []
    for entry in entries:
        trained = skills.get(entry.skill_id)
        trained_level = trained.trained_level if trained else 0
        active_level = trained.active_level if trained else 0
        current_sp = trained.current_sp if trained else 0

        try:
            info = catalog.skill(entry.skill_id)
            rank, name = info.rank, info.name or catalog.name(entry.skill_id)
        except UnknownSkill:
            rank, name = None, f"Unknown Skill ({entry.skill_id})"

        planned_sp = sp_for_level(rank, entry.level) if rank else 0
        missing = 0 if trained_level >= entry.level else max(0, planned_sp - current_sp)

        result.append(EntryComparison(
            entry_id=entry.entry_id,
            skill_id=entry.skill_id,
            skill_name=name,
            planned_level=entry.level,
            trained_level=trained_level,
            active_level=active_level,
            kind=entry.kind,
            sort_order=entry.sort_order,
            rank=rank,
            sp_for_planned_level=planned_sp,
            current_sp=current_sp,
            missing_sp=missing,
            status=_status(trained_level, entry.level),
        ))
    return result


def summarize_plan(entries: List[PlanEntry], character: CharacterState, catalog: Catalog) -> PlanSummary:
    """
    Totals for one character: SP done and missing, time left and readiness.

    has_prerequisites is False when some entry needs a skill the character
    has not trained and that is not planned high enough earlier in the plan.
    """
    comparisons = compare_entries(entries, character, catalog)
    summary = PlanSummary(entries=comparisons)
    attributes = character.attributes()
    seconds = 0.0

    for index, (entry, comparison) in enumerate(zip(entries, comparisons)):
        if comparison.rank is not None:
            if comparison.status == COMPLETE:
                summary.completed_sp += comparison.sp_for_planned_level
            else:
                summary.completed_sp += comparison.current_sp
                summary.missing_sp += comparison.missing_sp
                info = catalog.skill(entry.skill_id)
                if attributes is not None and info.is_timed:
                    rate = training_rate(attributes, info.primary_attribute_id, info.secondary_attribute_id)
                    if rate > 0:
                        seconds += comparison.missing_sp * 60.0 / rate

        if summary.has_prerequisites and comparison.rank is not None:
            earlier = entries[:index]
            for req_skill, req_level in catalog.prerequisites(entry.skill_id):
                if character.trained_level(req_skill) >= req_level:
                    continue
                if not any(e.skill_id == req_skill and e.level >= req_level for e in earlier):
                    summary.has_prerequisites = False
                    break

    if attributes is not None:
        summary.time_to_completion_seconds = math.ceil(seconds)
    if summary.missing_sp == 0:
        summary.status = COMPLETE
    elif summary.completed_sp > 0:
        summary.status = IN_PROGRESS
    return summary
