"""
Skill plan engine.

Pure Python: plans are read and written through the ports in
planner.skill_plans.ports, so the engine runs the same against the Django
stores and the in-memory ones.

Usage:
    from planner.skill_plans import PlanService, AttributeOptimizer

    service = PlanService(store, catalog)
    plan_id = service.create_plan('Logistics')
    service.add_entry(plan_id, skill_id=3418, level=4)

    result = AttributeOptimizer(catalog, character).optimize(
        service.entries(plan_id), max_remaps=1)
    service.apply_optimization(plan_id, result)
"""

from .arithmetic import Attributes, sp_for_level, sp_per_minute
from .comparison import PlanSummary, compare_entries, summarize_plan
from .exceptions import (
    CatalogCycle,
    EntryNotFound,
    ImportParseError,
    InvalidReorder,
    LevelOutOfRange,
    OptimizationCancelled,
    OptimizerInfeasible,
    PlanIntegrityError,
    PlanNotFound,
    SkillPlanError,
    StoreError,
    UnknownSkill,
    UnmatchedSkills,
)
from .from_character import CharacterPlan, build_character_plan
from .graph import PlanDag, ValidationResult
from .optimization import AttributeOptimizer, CancelToken, OptimizationResult
from .ports import Catalog, CharacterState, EntryKind, PlanNode, PlanStore
from .prerequisites import PrerequisiteResolver
from .service import PlanService
from .simulation import PlannedAccelerator, PlannedRemap, SimProfile, simulate

__all__ = [
    'Attributes',
    'sp_for_level',
    'sp_per_minute',
    'PlanSummary',
    'compare_entries',
    'summarize_plan',
    'CatalogCycle',
    'EntryNotFound',
    'ImportParseError',
    'InvalidReorder',
    'LevelOutOfRange',
    'OptimizationCancelled',
    'OptimizerInfeasible',
    'PlanIntegrityError',
    'PlanNotFound',
    'SkillPlanError',
    'StoreError',
    'UnknownSkill',
    'UnmatchedSkills',
    'CharacterPlan',
    'build_character_plan',
    'PlanDag',
    'ValidationResult',
    'AttributeOptimizer',
    'CancelToken',
    'OptimizationResult',
    'Catalog',
    'CharacterState',
    'EntryKind',
    'PlanNode',
    'PlanStore',
    'PrerequisiteResolver',
    'PlanService',
    'PlannedAccelerator',
    'PlannedRemap',
    'SimProfile',
    'simulate',
]
