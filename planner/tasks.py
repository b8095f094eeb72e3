"""
Background tasks for the skill planner.

Optimisation is CPU-bound, so it is executed by django-q off the request
thread. The task reads the plan once and works on that snapshot.
"""

import logging
from typing import Optional

from django.conf import settings
from django_q.tasks import async_task

from planner.skill_plans.exceptions import SkillPlanError
from planner.skill_plans.optimization import AttributeOptimizer
from planner.stores import DatabaseCharacterState, SdeCatalog, get_plan_service

logger = logging.getLogger('skillmon')


def optimize_plan(plan_id: int, character_id: Optional[int] = None,
                  max_remaps: Optional[int] = None, apply: bool = False) -> dict:
    """
    Optimise a plan's order and remap schedule for a character.

    Args:
        plan_id: The skill plan to optimise
        character_id: Whose SP, remap and implants to use (None for a fresh character)
        max_remaps: Remap budget, SKILL_PLAN_MAX_REMAPS when None
        apply: Write the new order and remaps back to the plan

    Returns:
        Summary dict; 'error' is set when the plan could not be optimised
    """
    from planner.models import Character

    if max_remaps is None:
        max_remaps = settings.SKILL_PLAN_MAX_REMAPS

    catalog = SdeCatalog()
    service = get_plan_service(catalog)
    character = None
    if character_id is not None:
        character = DatabaseCharacterState(Character.objects.get(id=character_id))

    logger.info(f'Optimising plan {plan_id} (character={character_id}, max_remaps={max_remaps})')
    try:
        entries = service.entries(plan_id)
        catalog.preload({entry.skill_id for entry in entries})
        result = AttributeOptimizer(catalog, character).optimize(entries, max_remaps=max_remaps)
        if apply:
            service.apply_optimization(plan_id, result)
    except SkillPlanError as e:
        logger.error(f'Failed to optimise plan {plan_id}: {e}')
        return {'plan_id': plan_id, 'error': str(e)}

    return {
        'plan_id': plan_id,
        'character_id': character_id,
        'original_seconds': result.original_seconds,
        'optimized_seconds': result.optimized_seconds,
        'remaps': [
            {'entry_index': remap.entry_index, 'attributes': remap.attributes.as_dict()}
            for remap in result.remaps
        ],
        'entries': [[node.skill_id, node.level] for node in result.entries],
        'applied': apply,
    }


def queue_plan_optimization(plan_id: int, character_id: Optional[int] = None,
                            max_remaps: Optional[int] = None, apply: bool = False) -> str:
    """Enqueue optimize_plan; returns the django-q task id."""
    task_id = async_task(
        'planner.tasks.optimize_plan',
        plan_id,
        character_id,
        max_remaps,
        apply,
        task_name=f'optimize-plan-{plan_id}',
        timeout=settings.SKILL_PLAN_OPTIMIZER_TIMEOUT,
    )
    logger.info(f'Queued optimisation of plan {plan_id} as task {task_id}')
    return task_id
