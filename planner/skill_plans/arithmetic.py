"""
Skill point arithmetic and character attributes.

SP per level: ceil(250 * 2^(2.5 * (level - 1))) * rank
SP per minute: primary + secondary / 2
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

# Character attribute IDs (these match the values in TypeAttribute for skills)
CHARISMA = 164
INTELLIGENCE = 165
MEMORY = 166
PERCEPTION = 167
WILLPOWER = 168

# Canonical order used when enumerating remaps
ATTRIBUTE_ORDER = (INTELLIGENCE, MEMORY, PERCEPTION, WILLPOWER, CHARISMA)

ATTRIBUTE_NAMES = {
    CHARISMA: 'charisma',
    INTELLIGENCE: 'intelligence',
    MEMORY: 'memory',
    PERCEPTION: 'perception',
    WILLPOWER: 'willpower',
}

BASE_ATTRIBUTE = 17
TOTAL_REMAP_POINTS = 14
MAX_POINTS_PER_ATTRIBUTE = 10

MIN_LEVEL = 1
MAX_LEVEL = 5


def sp_for_level(rank: int, level: int) -> int:
    """
    Total skill points needed to reach a level from zero.

    The base SP is rounded up before it is multiplied by the rank, which
    matches the in-game values (250, 1415, 8000, 45255, 256000 at rank 1).
    Levels outside 1..5 need no SP.
    """
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        return 0
    base_sp = math.ceil(250 * 2 ** (2.5 * (level - 1)))
    return base_sp * rank


def sp_per_minute(primary: float, secondary: float) -> float:
    """Training speed for a skill given its effective primary/secondary values."""
    return primary + (secondary / 2.0)


@dataclass(frozen=True)
class Attributes:
    """
    Five attribute values.

    Depending on context this holds remap bonuses (sum 14), implant bonuses
    or full effective values.
    """

    intelligence: int = 0
    memory: int = 0
    perception: int = 0
    willpower: int = 0
    charisma: int = 0

    @classmethod
    def from_tuple(cls, values) -> 'Attributes':
        """Build from values in ATTRIBUTE_ORDER."""
        intelligence, memory, perception, willpower, charisma = (int(v) for v in values)
        return cls(intelligence, memory, perception, willpower, charisma)

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> 'Attributes':
        return cls(**{name: int(data.get(name, 0)) for name in ATTRIBUTE_NAMES.values()})

    def as_tuple(self) -> Tuple[int, int, int, int, int]:
        return (self.intelligence, self.memory, self.perception, self.willpower, self.charisma)

    def as_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in ATTRIBUTE_NAMES.values()}

    def get(self, attribute_id: Optional[int]) -> int:
        """Value of an attribute by its dogma ID (0 for unknown IDs)."""
        name = ATTRIBUTE_NAMES.get(attribute_id)
        if name is None:
            return 0
        return getattr(self, name)

    def total(self) -> int:
        return sum(self.as_tuple())

    def plus_all(self, bonus: int) -> 'Attributes':
        """Add the same bonus to every attribute."""
        return Attributes.from_tuple(v + bonus for v in self.as_tuple())

    def __add__(self, other: 'Attributes') -> 'Attributes':
        return Attributes.from_tuple(a + b for a, b in zip(self.as_tuple(), other.as_tuple()))

    def __sub__(self, other: 'Attributes') -> 'Attributes':
        return Attributes.from_tuple(a - b for a, b in zip(self.as_tuple(), other.as_tuple()))

    def clamped(self, low: int = 0) -> 'Attributes':
        return Attributes.from_tuple(max(low, v) for v in self.as_tuple())


def effective_attributes(remap: Attributes, implants: Attributes, accelerator_bonus: int = 0) -> Attributes:
    """Base 17 plus remap, implants and any active accelerator bonus."""
    return (remap + implants).plus_all(BASE_ATTRIBUTE + accelerator_bonus)


def training_rate(attributes: Attributes, primary_id: Optional[int], secondary_id: Optional[int]) -> float:
    """SP per minute for a skill at the given effective attributes."""
    return sp_per_minute(attributes.get(primary_id), attributes.get(secondary_id))
