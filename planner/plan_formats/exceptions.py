"""
Exceptions for plan format parsing and serialization.

Document errors themselves are ImportParseError and UnmatchedSkills from the
engine, so callers only need to catch SkillPlanError.
"""

from planner.skill_plans.exceptions import SkillPlanError


class FormatError(SkillPlanError):
    """Base exception for plan format errors."""

    pass


class FormatDetectionError(FormatError):
    """Raised when format auto-detection fails."""

    pass
