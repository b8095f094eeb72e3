"""
EVE XML plan format, compatible with the in-game skill planner.

Example:
    <?xml version="1.0" ?>
    <plan name="Logistics" revision="1">
        <sorting criteria="None" order="None" groupByPriority="false"/>
        <entry skillID="3392" skill="Mechanics" level="1" priority="3" type="Prerequisite"/>
        <entry skillID="3418" skill="Hull Upgrades" level="4" priority="3" type="Planned">
            <notes>tank first</notes>
        </entry>
    </plan>

The parser also accepts skill_id and kind attributes in place of skillID
and type.
"""

import xml.etree.ElementTree as ET
from xml.dom import minidom

from planner.skill_plans.arithmetic import MAX_LEVEL, MIN_LEVEL
from planner.skill_plans.exceptions import ImportParseError
from planner.skill_plans.ports import EntryKind

from .base import DocumentEntry, PlanDocument, PlanParser, PlanSerializer


class XMLParser(PlanParser):
    """Parser for EVE XML plans."""

    def parse(self, content: str) -> PlanDocument:
        try:
            root = ET.fromstring(content.strip())
        except ET.ParseError as e:
            line = e.position[0] if getattr(e, 'position', None) else 0
            raise ImportParseError(line, f"invalid XML: {e}")

        if root.tag != 'plan':
            raise ImportParseError(0, f"unknown root element: {root.tag}")

        try:
            revision = int(root.get('revision', 1))
        except ValueError:
            raise ImportParseError(0, f"invalid revision: {root.get('revision')}")

        document = PlanDocument(name=root.get('name', 'Imported Plan'), revision=revision)
        for ordinal, elem in enumerate(root.findall('entry'), 1):
            document.entries.append(self._parse_entry(elem, ordinal))

        if not document.entries:
            raise ImportParseError(0, "no entry elements found")
        return document

    def _parse_entry(self, elem: ET.Element, ordinal: int) -> DocumentEntry:
        raw_id = elem.get('skillID', elem.get('skill_id'))
        try:
            skill_id = int(raw_id)
        except (TypeError, ValueError):
            raise ImportParseError(ordinal, f"entry has invalid skill id: {raw_id}")

        raw_level = elem.get('level')
        try:
            level = int(raw_level)
        except (TypeError, ValueError):
            raise ImportParseError(ordinal, f"entry has invalid level: {raw_level}")
        if not MIN_LEVEL <= level <= MAX_LEVEL:
            raise ImportParseError(ordinal, f"level {level} is not between {MIN_LEVEL} and {MAX_LEVEL}")

        raw_kind = elem.get('type', elem.get('kind'))
        try:
            kind = EntryKind.parse(raw_kind) if raw_kind else EntryKind.PLANNED
        except ValueError as e:
            raise ImportParseError(ordinal, str(e))

        notes_elem = elem.find('notes')
        notes = notes_elem.text if notes_elem is not None else elem.get('notes')

        return DocumentEntry(
            level=level,
            skill_id=skill_id,
            skill_name=elem.get('skill'),
            kind=kind,
            notes=notes,
            position=ordinal,
        )

    def validate(self, content: str) -> bool:
        content = content.strip()
        return content.startswith('<?xml') or content.startswith('<plan')


class XMLSerializer(PlanSerializer):
    """Serializer for EVE XML plans."""

    def serialize(self, document: PlanDocument) -> str:
        root = ET.Element('plan')
        root.set('xmlns:xsd', 'http://www.w3.org/2001/XMLSchema')
        root.set('xmlns:xsi', 'http://www.w3.org/2001/XMLSchema-instance')
        root.set('name', document.name)
        root.set('revision', str(document.revision))

        sorting = ET.SubElement(root, 'sorting')
        sorting.set('criteria', 'None')
        sorting.set('order', 'None')
        sorting.set('groupByPriority', 'false')

        for entry in document.entries:
            entry_elem = ET.SubElement(root, 'entry')
            entry_elem.set('skillID', str(entry.skill_id))
            entry_elem.set('skill', entry.skill_name or '')
            entry_elem.set('level', str(entry.level))
            entry_elem.set('priority', '3')
            entry_elem.set('type', (entry.kind or EntryKind.PLANNED).value)
            if entry.notes:
                notes = ET.SubElement(entry_elem, 'notes')
                notes.text = entry.notes

        # Pretty print XML
        rough_string = ET.tostring(root, encoding='unicode')
        reparsed = minidom.parseString(rough_string)
        return reparsed.toprettyxml(indent="\t")
