"""
Ports between the skill plan engine and its data providers.

The engine never talks to a database or to ESI directly. It is handed a
Catalog (static skill data), a CharacterState (what a character has trained)
and a PlanStore (where plans live), and only uses the methods below.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from .arithmetic import Attributes, BASE_ATTRIBUTE, MAX_LEVEL, MIN_LEVEL
from .exceptions import LevelOutOfRange


class PlanNode(NamedTuple):
    """A (skill, level) pair; the unit of a plan and of the plan DAG."""

    skill_id: int
    level: int


class EntryKind(str, Enum):
    PLANNED = 'Planned'
    PREREQUISITE = 'Prerequisite'

    @classmethod
    def parse(cls, value) -> 'EntryKind':
        if isinstance(value, cls):
            return value
        for kind in cls:
            if kind.value.lower() == str(value).strip().lower():
                return kind
        raise ValueError(f"Entry type must be 'Planned' or 'Prerequisite', got: {value}")


def check_level(level) -> int:
    """Return level unchanged, raising LevelOutOfRange unless it is an int in 1..5."""
    if isinstance(level, bool) or not isinstance(level, int):
        raise LevelOutOfRange(level)
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise LevelOutOfRange(level)
    return level


@dataclass(frozen=True)
class SkillInfo:
    """Static data for one skill."""

    skill_id: int
    rank: int
    primary_attribute_id: Optional[int] = None
    secondary_attribute_id: Optional[int] = None
    name: str = ''
    group_id: Optional[int] = None

    @property
    def is_timed(self) -> bool:
        """Training time can only be computed when both attributes are known."""
        return self.primary_attribute_id is not None and self.secondary_attribute_id is not None


@dataclass(frozen=True)
class TrainedSkill:
    skill_id: int
    trained_level: int = 0
    active_level: int = 0
    current_sp: int = 0


@dataclass
class Plan:
    plan_id: int
    name: str
    description: Optional[str] = None


@dataclass
class PlanEntry:
    entry_id: int
    plan_id: int
    skill_id: int
    level: int
    kind: EntryKind
    sort_order: int
    notes: Optional[str] = None

    @property
    def node(self) -> PlanNode:
        return PlanNode(self.skill_id, self.level)

    @property
    def is_planned(self) -> bool:
        return self.kind == EntryKind.PLANNED


@dataclass
class EntryWrite:
    """One row of an atomic upsert into a plan."""

    skill_id: int
    level: int
    kind: EntryKind
    sort_order: int
    notes: Optional[str] = None

    @property
    def node(self) -> PlanNode:
        return PlanNode(self.skill_id, self.level)


@dataclass
class PlanRemapRecord:
    """
    A stored remap, anchored to the entry it follows.

    An anchor of None means the remap is taken before the first entry.
    """

    attributes: Attributes
    after_skill_id: Optional[int] = None
    after_level: Optional[int] = None

    @property
    def after(self) -> Optional[PlanNode]:
        if self.after_skill_id is None or self.after_level is None:
            return None
        return PlanNode(self.after_skill_id, self.after_level)


class Catalog(ABC):
    """Read-only static skill data."""

    @abstractmethod
    def skill(self, skill_id: int) -> SkillInfo:
        """Return skill data, raising UnknownSkill if the id is not a skill."""

    @abstractmethod
    def prerequisites(self, skill_id: int) -> List[Tuple[int, int]]:
        """Direct requirements of a skill as (required_skill_id, required_level)."""

    @abstractmethod
    def name(self, skill_id: int) -> str:
        """Display name of a skill."""

    @abstractmethod
    def skill_id_by_name(self, name: str) -> Optional[int]:
        """Case-insensitive name lookup, None when there is no such skill."""

    def group_id(self, skill_id: int) -> Optional[int]:
        return self.skill(skill_id).group_id

    def group_name(self, group_id: int) -> str:
        return f"Group {group_id}"


class CharacterState(ABC):
    """A character's trained skills and attributes."""

    @abstractmethod
    def skills(self) -> Dict[int, TrainedSkill]:
        """All trained or injected skills keyed by skill id."""

    def attributes(self) -> Optional[Attributes]:
        """Effective attribute values (base + remap + implants), if known."""
        return None

    def implants(self) -> Attributes:
        """Attribute bonuses from implants."""
        return Attributes()

    def remap(self) -> Attributes:
        """The remap part of the character's attributes."""
        attributes = self.attributes()
        if attributes is None:
            return Attributes()
        return (attributes - self.implants()).plus_all(-BASE_ATTRIBUTE).clamped()

    def skill(self, skill_id: int) -> TrainedSkill:
        return self.skills().get(skill_id) or TrainedSkill(skill_id)

    def trained_level(self, skill_id: int) -> int:
        return self.skill(skill_id).trained_level

    def current_sp(self, skill_id: int) -> int:
        return self.skill(skill_id).current_sp

    def current_sp_map(self) -> Dict[int, int]:
        return {skill_id: s.current_sp for skill_id, s in self.skills().items()}


class PlanStore(ABC):
    """
    Persistence for plans and their entries.

    write_entries is an upsert keyed on (plan, skill, level). An existing
    Planned entry stays Planned even if the write says Prerequisite; notes
    are only overwritten when the write carries notes.
    """

    @abstractmethod
    def create_plan(self, name: str, description: Optional[str] = None) -> int:
        pass

    @abstractmethod
    def get_plan(self, plan_id: int) -> Optional[Plan]:
        pass

    @abstractmethod
    def list_plans(self) -> List[Plan]:
        pass

    @abstractmethod
    def get_entries(self, plan_id: int) -> List[PlanEntry]:
        """Entries of a plan ordered by sort_order."""

    @abstractmethod
    def get_entry(self, entry_id: int) -> Optional[PlanEntry]:
        pass

    @abstractmethod
    def write_entries(self, plan_id: int, rows: List[EntryWrite]) -> None:
        pass

    @abstractmethod
    def update_entry(self, entry_id: int, level: Optional[int] = None,
                     kind: Optional[EntryKind] = None, notes: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def delete_entry(self, entry_id: int) -> None:
        pass

    @abstractmethod
    def delete_plan(self, plan_id: int) -> None:
        pass

    @abstractmethod
    def reorder(self, plan_id: int, entry_ids: List[int]) -> None:
        """Set sort_order of each entry to its index in entry_ids."""

    @abstractmethod
    def get_remaps(self, plan_id: int) -> List[PlanRemapRecord]:
        pass

    @abstractmethod
    def replace_remaps(self, plan_id: int, remaps: List[PlanRemapRecord]) -> None:
        pass

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """All store calls made inside the block succeed or fail together."""
        yield

    def get_nodes(self, plan_id: int) -> List[PlanNode]:
        return [entry.node for entry in self.get_entries(plan_id)]
