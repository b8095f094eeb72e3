"""
Build a plan from what a character has already trained.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .arithmetic import sp_for_level
from .exceptions import UnknownSkill
from .graph import PlanDag
from .ports import Catalog, CharacterState, EntryKind, PlanNode
from .prerequisites import PrerequisiteResolver

logger = logging.getLogger('skillmon')


@dataclass
class SkillGroupCount:
    group_id: Optional[int]
    group_name: str
    skill_count: int


@dataclass
class CharacterPlan:
    """Ordered nodes with their kinds, ready to be written to a plan."""

    nodes: List[PlanNode] = field(default_factory=list)
    kinds: Dict[PlanNode, EntryKind] = field(default_factory=dict)
    group_counts: List[SkillGroupCount] = field(default_factory=list)
    estimated_sp: int = 0

    @property
    def requests(self) -> List[tuple]:
        """(node, kind, notes) tuples in order, as PlanService.add_entries takes them."""
        return [(node, self.kinds[node], None) for node in self.nodes]


def build_character_plan(character: CharacterState, catalog: Catalog, group_ids: Iterable[int],
                         resolver: Optional[PrerequisiteResolver] = None) -> CharacterPlan:
    """
    Plan containing every skill the character trained in the given groups.

    Trained skills keep their trained level. Their prerequisites are added at
    the required level, or at the character's level when the prerequisite is
    itself in one of the groups and trained higher. The top level of each
    skill from the chosen groups is Planned, everything else Prerequisite.

    Args:
        character: Whose skills to copy
        catalog: Skill data
        group_ids: Skill group ids to include

    Returns:
        CharacterPlan in topological order
    """
    resolver = resolver or PrerequisiteResolver(catalog)
    whitelist = set(group_ids)

    def in_whitelist(skill_id: int) -> bool:
        return catalog.group_id(skill_id) in whitelist

    levels: Dict[int, int] = {}
    for skill_id, trained in sorted(character.skills().items()):
        if trained.trained_level <= 0:
            continue
        try:
            if not in_whitelist(skill_id):
                continue
        except UnknownSkill:
            logger.warning(f"Character skill {skill_id} is not in the catalog, skipping")
            continue
        levels[skill_id] = max(levels.get(skill_id, 0), trained.trained_level)

    for skill_id in list(levels):
        for req_skill, req_level in resolver.resolve(skill_id).items():
            if in_whitelist(req_skill):
                req_level = max(req_level, character.trained_level(req_skill))
            levels[req_skill] = max(levels.get(req_skill, 0), req_level)

    nodes = [PlanNode(skill_id, level)
             for skill_id, top in sorted(levels.items())
             for level in range(1, top + 1)]
    dag = PlanDag.restricted(catalog, nodes, resolver)
    order = dag.topological_sort()

    plan = CharacterPlan(nodes=order)
    for node in order:
        top_of_group_skill = node.level == levels[node.skill_id] and in_whitelist(node.skill_id)
        plan.kinds[node] = EntryKind.PLANNED if top_of_group_skill else EntryKind.PREREQUISITE

    counts: Dict[Optional[int], int] = {}
    for skill_id, top in levels.items():
        info = catalog.skill(skill_id)
        plan.estimated_sp += sp_for_level(info.rank, top)
        counts[info.group_id] = counts.get(info.group_id, 0) + 1

    plan.group_counts = sorted(
        (SkillGroupCount(group_id, catalog.group_name(group_id) if group_id is not None else 'Unknown', count)
         for group_id, count in counts.items()),
        key=lambda g: g.group_name,
    )
    logger.debug(f"Character plan: {len(order)} nodes across {len(levels)} skills")
    return plan
