"""
Skill plan import/export.

Provides a unified API for moving plans in and out of a PlanStore:
- text - one '<skill name> <level>' per line
- xml - EVE in-game skill planner format
- json - full document including notes and remaps

Usage:
    from planner.plan_formats import PlanImporter, PlanExporter, detect_format

    # Import into a new plan (format auto-detected)
    plan_id = PlanImporter(service).import_from_string(content)

    # Merge into an existing plan
    PlanImporter(service).import_from_string(content, plan_id=plan_id, format_name='text')

    # Export
    xml_string = PlanExporter(service).export_to_string(plan_id, format_name='xml')
"""

import logging
from typing import Dict, List, Optional, Type

from planner.skill_plans.exceptions import UnmatchedSkills
from planner.skill_plans.ports import EntryKind, PlanNode
from planner.skill_plans.service import PlanService

from .base import DocumentEntry, PlanDocument, PlanParser, PlanSerializer
from .exceptions import FormatDetectionError, FormatError

logger = logging.getLogger('skillmon')

# Format registry: maps format name to (parser_class, serializer_class) tuple
_FORMATS: Dict[str, Optional[tuple]] = {
    'text': None,  # Will be populated on first use
    'xml': None,
    'json': None,
}


def _get_format_classes(format_name: str) -> tuple:
    """Get parser and serializer classes for a format, importing them lazily."""
    if format_name not in _FORMATS:
        raise FormatError(f"Unknown format: {format_name}")
    if _FORMATS[format_name] is None:
        if format_name == 'text':
            from .text import TextParser, TextSerializer
            _FORMATS['text'] = (TextParser, TextSerializer)
        elif format_name == 'xml':
            from .xml import XMLParser, XMLSerializer
            _FORMATS['xml'] = (XMLParser, XMLSerializer)
        elif format_name == 'json':
            from .json import JSONParser, JSONSerializer
            _FORMATS['json'] = (JSONParser, JSONSerializer)
    return _FORMATS[format_name]


def available_formats() -> List[str]:
    return list(_FORMATS)


def get_parser(format_name: str) -> Type[PlanParser]:
    """
    Get parser class for a format.

    Raises:
        FormatError: If format is unknown
    """
    parser_class, _ = _get_format_classes(format_name)
    return parser_class


def get_serializer(format_name: str) -> Type[PlanSerializer]:
    """
    Get serializer class for a format.

    Raises:
        FormatError: If format is unknown
    """
    _, serializer_class = _get_format_classes(format_name)
    return serializer_class


def detect_format(content: str) -> str:
    """
    Auto-detect plan format from content.

    Returns:
        Format name ('text', 'xml' or 'json')

    Raises:
        FormatDetectionError: If content is empty
    """
    content = content.strip()
    if not content:
        raise FormatDetectionError("Could not auto-detect format of empty content.")
    if content.startswith('<'):
        return 'xml'
    if content.startswith('{'):
        return 'json'
    return 'text'


class PlanImporter:
    """
    Format-agnostic plan import.

    Entries are merged through PlanService.add_entries, so prerequisites are
    closed and ordered exactly as add_entry would do, with document order as
    the preference. The whole import is one transaction.
    """

    def __init__(self, service: PlanService):
        self.service = service
        self.catalog = service.catalog

    def parse(self, content: str, format_name: Optional[str] = None) -> PlanDocument:
        format_name = format_name or detect_format(content)
        return get_parser(format_name)().parse(content)

    def import_from_string(self, content: str, plan_id: Optional[int] = None,
                           format_name: Optional[str] = None, name: Optional[str] = None,
                           description: Optional[str] = None) -> int:
        """
        Import a document into a new plan, or merge it into plan_id.

        Returns:
            The id of the plan that received the entries

        Raises:
            ImportParseError: If the document is malformed
            UnmatchedSkills: If line entries name unknown skills
            UnknownSkill: If structured entries reference unknown skill ids
        """
        document = self.parse(content, format_name)
        return self.import_document(document, plan_id=plan_id, name=name, description=description)

    def import_document(self, document: PlanDocument, plan_id: Optional[int] = None,
                        name: Optional[str] = None, description: Optional[str] = None) -> int:
        requests = self._requests(document)
        with self.service.store.atomic():
            if plan_id is None:
                plan_id = self.service.create_plan_with_entries(
                    name or document.name or 'Imported Plan',
                    requests,
                    description if description is not None else document.description,
                )
            else:
                self.service.add_entries(plan_id, requests)
            if document.remaps:
                self.service.store.replace_remaps(plan_id, document.remaps)
        logger.info(f"Imported {len(requests)} entries into plan {plan_id}")
        return plan_id

    def _requests(self, document: PlanDocument) -> List[tuple]:
        unmatched = []
        for entry in document.entries:
            if entry.skill_id is None:
                entry.skill_id = self.catalog.skill_id_by_name(entry.skill_name or '')
                if entry.skill_id is None:
                    unmatched.append(entry.skill_name)
            else:
                self.catalog.skill(entry.skill_id)
        if unmatched:
            logger.warning(f"Rejected import with {len(unmatched)} unmatched skills")
            raise UnmatchedSkills(unmatched)

        nodes = [PlanNode(entry.skill_id, entry.level) for entry in document.entries]
        return [(node, entry.kind or self._infer_kind(node, nodes), entry.notes)
                for node, entry in zip(nodes, document.entries)]

    def _infer_kind(self, node: PlanNode, nodes: List[PlanNode]) -> EntryKind:
        """Prerequisite when another entry of the document needs this one, else Planned."""
        resolver = self.service.resolver
        if any(other != node and resolver.is_required_by(node, other) for other in nodes):
            return EntryKind.PREREQUISITE
        return EntryKind.PLANNED


class PlanExporter:
    """Format-agnostic plan export, entries in sort order."""

    def __init__(self, service: PlanService):
        self.service = service
        self.catalog = service.catalog

    def to_document(self, plan_id: int) -> PlanDocument:
        plan = self.service.get_plan(plan_id)
        entries = [
            DocumentEntry(
                level=entry.level,
                skill_id=entry.skill_id,
                skill_name=self.catalog.name(entry.skill_id),
                kind=entry.kind,
                notes=entry.notes,
                position=index,
            )
            for index, entry in enumerate(self.service.entries(plan_id), 1)
        ]
        return PlanDocument(
            name=plan.name,
            description=plan.description,
            entries=entries,
            remaps=self.service.store.get_remaps(plan_id),
        )

    def export_to_string(self, plan_id: int, format_name: str) -> str:
        serializer = get_serializer(format_name)()
        return serializer.serialize(self.to_document(plan_id))


__all__ = [
    'PlanImporter',
    'PlanExporter',
    'detect_format',
    'available_formats',
    'get_parser',
    'get_serializer',
    'DocumentEntry',
    'PlanDocument',
    'PlanParser',
    'PlanSerializer',
    'FormatError',
    'FormatDetectionError',
]
