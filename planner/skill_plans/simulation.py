"""
Training simulator.

Walks plan entries in order and accumulates time and SP, applying planned
remaps and timed accelerators. Pure: nothing is read from or written to a
store.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from .arithmetic import Attributes, effective_attributes, sp_for_level, training_rate
from .ports import Catalog, CharacterState, PlanNode

logger = logging.getLogger('skillmon')


class PlannedRemap(NamedTuple):
    """Adopt these remap attributes when training of entry_index begins."""

    entry_index: int
    attributes: Attributes


class PlannedAccelerator(NamedTuple):
    """A bonus to every attribute, starting at entry_index and lasting duration_seconds."""

    entry_index: int
    bonus: int
    duration_seconds: int


@dataclass
class SimProfile:
    remap: Attributes = field(default_factory=Attributes)
    implants: Attributes = field(default_factory=Attributes)
    remaps: List[PlannedRemap] = field(default_factory=list)
    accelerators: List[PlannedAccelerator] = field(default_factory=list)
    current_sp_map: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def for_character(cls, character: CharacterState, **kwargs) -> 'SimProfile':
        """Profile starting from a character's current remap, implants and SP."""
        return cls(
            remap=character.remap(),
            implants=character.implants(),
            current_sp_map=character.current_sp_map(),
            **kwargs,
        )


@dataclass
class Segment:
    entry_index: int
    skill_id: int
    level: int
    duration_seconds: int
    start_seconds: int
    attributes: Attributes
    sp_per_minute: float
    primary_attribute_id: int
    secondary_attribute_id: int
    sp_earned: int
    cumulative_sp: int


@dataclass
class SimulationResult:
    total_seconds: int = 0
    total_sp: int = 0
    segments: List[Segment] = field(default_factory=list)
    # Entry indexes whose skill lacks attribute data
    untimed: List[int] = field(default_factory=list)

    def seconds_for_entry(self, entry_index: int) -> int:
        return sum(s.duration_seconds for s in self.segments if s.entry_index == entry_index)


def _by_index(items: Iterable[Tuple]) -> Dict[int, list]:
    grouped: Dict[int, list] = {}
    for item in sorted(items, key=lambda i: i[0]):
        grouped.setdefault(item[0], []).append(item)
    return grouped


def simulate(entries: Sequence, catalog: Catalog, profile: Optional[SimProfile] = None) -> SimulationResult:
    """
    Simulate training entries in order.

    Args:
        entries: PlanNodes, or anything with skill_id and level
        catalog: Skill data
        profile: Starting remap, implants, planned remaps/accelerators and SP

    Returns:
        SimulationResult with one or more segments per trained entry.
        An entry is split whenever an accelerator expires during it.

    Raises:
        UnknownSkill: If an entry's skill is not in the catalog
    """
    profile = profile or SimProfile()
    remaps = _by_index(profile.remaps)
    accelerators = _by_index(profile.accelerators)
    sp_state = dict(profile.current_sp_map)

    result = SimulationResult()
    remap = profile.remap
    active: List[Tuple[int, int]] = []  # (expiry, bonus)
    now = 0

    for index, entry in enumerate(entries):
        node = PlanNode(entry.skill_id, entry.level)
        for planned in remaps.get(index, []):
            remap = planned.attributes
        for accelerator in accelerators.get(index, []):
            active.append((now + accelerator.duration_seconds, accelerator.bonus))

        info = catalog.skill(node.skill_id)
        target_sp = sp_for_level(info.rank, node.level)
        current = sp_state.get(node.skill_id, 0)
        if not info.is_timed:
            result.untimed.append(index)
            sp_state[node.skill_id] = max(current, target_sp)
            continue

        remaining = max(0, target_sp - current)
        while remaining > 0:
            active = [(expiry, bonus) for expiry, bonus in active if expiry > now]
            bonus = sum(b for _, b in active)
            attributes = effective_attributes(remap, profile.implants, bonus)
            spm = training_rate(attributes, info.primary_attribute_id, info.secondary_attribute_id)
            if spm <= 0:
                logger.warning(f"Skill {node.skill_id} cannot train at {attributes}, skipping")
                result.untimed.append(index)
                break
            sp_per_second = spm / 60.0
            finish = math.ceil(remaining / sp_per_second)

            next_expiry = min((expiry for expiry, _ in active), default=None)
            if next_expiry is not None and next_expiry - now < finish:
                duration = next_expiry - now
                earned = min(remaining, int(sp_per_second * duration))
            else:
                duration = finish
                earned = remaining

            result.segments.append(Segment(
                entry_index=index,
                skill_id=node.skill_id,
                level=node.level,
                duration_seconds=duration,
                start_seconds=now,
                attributes=attributes,
                sp_per_minute=spm,
                primary_attribute_id=info.primary_attribute_id,
                secondary_attribute_id=info.secondary_attribute_id,
                sp_earned=earned,
                cumulative_sp=result.total_sp + earned,
            ))
            now += duration
            current += earned
            remaining -= earned
            result.total_sp += earned

        sp_state[node.skill_id] = max(current, sp_state.get(node.skill_id, 0))

    result.total_seconds = now
    return result
