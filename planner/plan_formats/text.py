"""
Line format: one '<skill name> <level>' per line.

Example:
    Mechanics 1
    Mechanics 2
    Hull Upgrades 4

The skill name may contain spaces; the last token is the level. Roman
numerals (I..V), as copied from the in-game skill list, are accepted too.
"""

from planner.skill_plans.arithmetic import MAX_LEVEL, MIN_LEVEL
from planner.skill_plans.exceptions import ImportParseError

from .base import DocumentEntry, PlanDocument, PlanParser, PlanSerializer

ROMAN_LEVELS = {'I': 1, 'II': 2, 'III': 3, 'IV': 4, 'V': 5}


def _parse_level(token: str, line_no: int) -> int:
    if token.upper() in ROMAN_LEVELS:
        return ROMAN_LEVELS[token.upper()]
    try:
        level = int(token)
    except ValueError:
        raise ImportParseError(line_no, f"'{token}' is not a level")
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise ImportParseError(line_no, f"level {level} is not between {MIN_LEVEL} and {MAX_LEVEL}")
    return level


class TextParser(PlanParser):
    """Parser for the line format. Names are resolved later by the importer."""

    def parse(self, content: str) -> PlanDocument:
        document = PlanDocument()
        for line_no, raw in enumerate(content.splitlines(), 1):
            line = raw.strip()
            if not line:
                continue
            parts = line.rsplit(None, 1)
            if len(parts) != 2:
                raise ImportParseError(line_no, "expected '<skill name> <level>'")
            name, token = parts
            document.entries.append(DocumentEntry(
                level=_parse_level(token, line_no),
                skill_name=name.strip(),
                position=line_no,
            ))

        if not document.entries:
            raise ImportParseError(0, "no entries found")
        return document

    def validate(self, content: str) -> bool:
        try:
            self.parse(content)
        except ImportParseError:
            return False
        return True


class TextSerializer(PlanSerializer):
    """Serializer for the line format."""

    def serialize(self, document: PlanDocument) -> str:
        lines = [f"{entry.skill_name or entry.skill_id} {entry.level}" for entry in document.entries]
        return '\n'.join(lines) + '\n' if lines else ''
