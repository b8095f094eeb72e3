"""
JSON plan document.

Example:
    {
      "version": 1,
      "name": "Logistics",
      "description": null,
      "entries": [
        {"skill_type_id": 3392, "level": 1, "entry_type": "Prerequisite", "notes": null}
      ],
      "remaps": [
        {"after_skill_type_id": null, "after_skill_level": null,
         "attributes": {"intelligence": 0, "memory": 0, "perception": 10,
                        "willpower": 4, "charisma": 0}}
      ]
    }

A remap is anchored to the entry it follows; a null anchor means before the
first entry.
"""

import json

from planner.skill_plans.arithmetic import Attributes, MAX_LEVEL, MIN_LEVEL
from planner.skill_plans.exceptions import ImportParseError
from planner.skill_plans.ports import EntryKind, PlanRemapRecord

from .base import DocumentEntry, PlanDocument, PlanParser, PlanSerializer

CURRENT_VERSION = 1


def _optional_int(value, position: int, what: str):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ImportParseError(position, f"{what} must be an integer, got: {value!r}")
    return value


class JSONParser(PlanParser):
    """Parser for JSON plan documents."""

    def parse(self, content: str) -> PlanDocument:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ImportParseError(e.pos, f"invalid JSON: {e.msg}")

        if not isinstance(data, dict) or not isinstance(data.get('entries'), list):
            raise ImportParseError(0, "expected an object with an 'entries' list")
        version = data.get('version', CURRENT_VERSION)
        if not isinstance(version, int) or version > CURRENT_VERSION:
            raise ImportParseError(0, f"unsupported document version: {version}")

        document = PlanDocument(
            name=data.get('name') or 'Imported Plan',
            description=data.get('description'),
        )
        for ordinal, raw in enumerate(data['entries'], 1):
            document.entries.append(self._parse_entry(raw, ordinal))
        for ordinal, raw in enumerate(data.get('remaps') or [], 1):
            document.remaps.append(self._parse_remap(raw, ordinal))

        if not document.entries:
            raise ImportParseError(0, "document has no entries")
        return document

    def _parse_entry(self, raw, ordinal: int) -> DocumentEntry:
        if not isinstance(raw, dict):
            raise ImportParseError(ordinal, "entry must be an object")
        skill_id = _optional_int(raw.get('skill_type_id'), ordinal, 'skill_type_id')
        if skill_id is None:
            raise ImportParseError(ordinal, "entry is missing skill_type_id")
        level = _optional_int(raw.get('level'), ordinal, 'level')
        if level is None or not MIN_LEVEL <= level <= MAX_LEVEL:
            raise ImportParseError(ordinal, f"level {level} is not between {MIN_LEVEL} and {MAX_LEVEL}")
        try:
            kind = EntryKind.parse(raw.get('entry_type') or EntryKind.PLANNED)
        except ValueError as e:
            raise ImportParseError(ordinal, str(e))
        return DocumentEntry(level=level, skill_id=skill_id, kind=kind,
                             notes=raw.get('notes'), position=ordinal)

    def _parse_remap(self, raw, ordinal: int) -> PlanRemapRecord:
        if not isinstance(raw, dict) or not isinstance(raw.get('attributes'), dict):
            raise ImportParseError(ordinal, "remap must be an object with 'attributes'")
        try:
            attributes = Attributes.from_dict(raw['attributes'])
        except (TypeError, ValueError):
            raise ImportParseError(ordinal, "remap attributes must be integers")
        return PlanRemapRecord(
            attributes=attributes,
            after_skill_id=_optional_int(raw.get('after_skill_type_id'), ordinal, 'after_skill_type_id'),
            after_level=_optional_int(raw.get('after_skill_level'), ordinal, 'after_skill_level'),
        )

    def validate(self, content: str) -> bool:
        return content.strip().startswith('{')


class JSONSerializer(PlanSerializer):
    """Serializer for JSON plan documents."""

    def serialize(self, document: PlanDocument) -> str:
        data = {
            'version': CURRENT_VERSION,
            'name': document.name,
            'description': document.description,
            'entries': [
                {
                    'skill_type_id': entry.skill_id,
                    'level': entry.level,
                    'entry_type': (entry.kind or EntryKind.PLANNED).value,
                    'notes': entry.notes,
                }
                for entry in document.entries
            ],
            'remaps': [
                {
                    'after_skill_type_id': remap.after_skill_id,
                    'after_skill_level': remap.after_level,
                    'attributes': remap.attributes.as_dict(),
                }
                for remap in document.remaps
            ],
        }
        return json.dumps(data, indent=2)
