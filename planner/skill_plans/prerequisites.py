"""
Prerequisite resolution over the catalog.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .exceptions import CatalogCycle
from .ports import Catalog, PlanNode

logger = logging.getLogger('skillmon')


class PrerequisiteResolver:
    """
    Resolves the transitive requirements of a skill.

    Results are memoised per resolver, so a resolver should live no longer
    than the catalog data it reads.
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self._cache: Dict[int, Dict[int, int]] = {}

    def direct(self, skill_id: int) -> List[Tuple[int, int]]:
        """Direct requirements sorted by skill id."""
        return sorted(self.catalog.prerequisites(skill_id))

    def resolve(self, skill_id: int) -> Dict[int, int]:
        """
        All skills required by skill_id, directly or transitively.

        Args:
            skill_id: The skill to resolve

        Returns:
            Dict of required_skill_id -> highest required level, in ascending
            skill id order

        Raises:
            CatalogCycle: If a requirement chain leads back to itself
        """
        return dict(self._resolve(skill_id, []))

    def _resolve(self, skill_id: int, path: List[int]) -> Dict[int, int]:
        cached = self._cache.get(skill_id)
        if cached is not None:
            return cached

        if skill_id in path:
            cycle = path[path.index(skill_id):] + [skill_id]
            logger.warning(f"Prerequisite cycle in catalog: {cycle}")
            raise CatalogCycle(cycle)

        path.append(skill_id)
        required: Dict[int, int] = {}
        for req_skill, req_level in self.direct(skill_id):
            required[req_skill] = max(required.get(req_skill, 0), req_level)
            for sub_skill, sub_level in self._resolve(req_skill, path).items():
                required[sub_skill] = max(required.get(sub_skill, 0), sub_level)
        path.pop()

        result = dict(sorted(required.items()))
        self._cache[skill_id] = result
        return result

    def closure_nodes(self, node: PlanNode) -> List[PlanNode]:
        """
        Every node that must be trained before node, excluding node itself.

        Covers the lower levels of the same skill and every level of each
        transitive requirement up to its required level.
        """
        nodes = [PlanNode(node.skill_id, level) for level in range(1, node.level)]
        for req_skill, req_level in self.resolve(node.skill_id).items():
            nodes.extend(PlanNode(req_skill, level) for level in range(1, req_level + 1))
        return nodes

    def is_required_by(self, candidate: PlanNode, node: PlanNode) -> bool:
        """True when candidate lies in the prerequisite closure of node."""
        if candidate.skill_id == node.skill_id:
            return candidate.level < node.level
        required: Optional[int] = self.resolve(node.skill_id).get(candidate.skill_id)
        return required is not None and candidate.level <= required

    def clear(self) -> None:
        self._cache.clear()
