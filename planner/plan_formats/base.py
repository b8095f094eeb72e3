"""
Base classes for plan format parsers and serializers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from planner.skill_plans.ports import EntryKind, PlanRemapRecord


@dataclass
class DocumentEntry:
    """
    One entry as read from or written to a document.

    Text documents only carry names, so skill_id may be None until the
    importer resolves it. A kind of None means the document did not say.
    """

    level: int
    skill_id: Optional[int] = None
    skill_name: Optional[str] = None
    kind: Optional[EntryKind] = None
    notes: Optional[str] = None
    # Line number or element ordinal, for error messages
    position: int = 0


@dataclass
class PlanDocument:
    """
    Format-independent plan document.

    This is the intermediate representation used when converting between
    formats or importing/exporting to/from a PlanStore.
    """

    name: str = ''
    description: Optional[str] = None
    revision: int = 1
    entries: List[DocumentEntry] = field(default_factory=list)
    remaps: List[PlanRemapRecord] = field(default_factory=list)


class PlanParser(ABC):
    """Abstract base class for plan parsers."""

    @abstractmethod
    def parse(self, content: str) -> PlanDocument:
        """
        Parse content into a PlanDocument.

        Raises:
            ImportParseError: If content is not valid for this format
        """
        pass

    @abstractmethod
    def validate(self, content: str) -> bool:
        """True if content appears to be valid for this format."""
        pass


class PlanSerializer(ABC):
    """Abstract base class for plan serializers."""

    @abstractmethod
    def serialize(self, document: PlanDocument) -> str:
        pass
