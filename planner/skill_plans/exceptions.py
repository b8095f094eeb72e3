"""
Exceptions raised by the skill plan engine.
"""

from typing import Iterable, List, Optional


class SkillPlanError(Exception):
    """Base exception for skill plan errors."""

    pass


class LevelOutOfRange(SkillPlanError):
    """Raised when a skill level is not between 1 and 5."""

    def __init__(self, level):
        self.level = level
        super().__init__(f"Level must be between 1 and 5, got: {level}")


class UnknownSkill(SkillPlanError):
    """Raised when a skill cannot be found in the catalog."""

    def __init__(self, identifier, search_type: str = "id"):
        self.identifier = identifier
        self.search_type = search_type
        super().__init__(f"Skill not found: {search_type}='{identifier}'")


class CatalogCycle(SkillPlanError):
    """Raised when the catalog's prerequisite graph contains a cycle."""

    def __init__(self, path: Iterable[int]):
        self.path = list(path)
        chain = ' -> '.join(str(skill_id) for skill_id in self.path)
        super().__init__(f"Circular prerequisite chain in catalog: {chain}")


class InvalidReorder(SkillPlanError):
    """Raised when a requested order would train a skill before its prerequisite."""

    def __init__(self, message: str, violations: Optional[list] = None):
        self.violations = violations or []
        super().__init__(message)


class PlanIntegrityError(SkillPlanError):
    """Raised when a mutation would leave a plan without its prerequisites."""

    def __init__(self, message: str, violations: Optional[list] = None):
        self.violations = violations or []
        super().__init__(message)


class ImportParseError(SkillPlanError):
    """Raised when an imported plan document is malformed."""

    def __init__(self, line_or_offset: int, reason: str):
        self.line_or_offset = line_or_offset
        self.reason = reason
        super().__init__(f"Parse error at {line_or_offset}: {reason}")


class UnmatchedSkills(SkillPlanError):
    """Raised when a text import names skills that are not in the catalog."""

    def __init__(self, names: List[str]):
        self.names = list(names)
        super().__init__(f"Unmatched skills: {', '.join(self.names)}")


class OptimizerInfeasible(SkillPlanError):
    """Raised when the optimizer cannot order every plan entry."""

    pass


class OptimizationCancelled(SkillPlanError):
    """Raised when an optimization run is cancelled before it finishes."""

    pass


class PlanNotFound(SkillPlanError):
    """Raised when a plan id does not exist in the store."""

    def __init__(self, plan_id: int):
        self.plan_id = plan_id
        super().__init__(f"Plan not found: {plan_id}")


class EntryNotFound(SkillPlanError):
    """Raised when a plan entry id does not exist in the store."""

    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"Plan entry not found: {entry_id}")


class StoreError(SkillPlanError):
    """Wraps a failure of the underlying plan store."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Plan store failure: {cause}")
