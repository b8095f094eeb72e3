"""
Plan DAG and topological sort.

Vertices are (skill, level) nodes. An edge u -> v means u has to be trained
before v: either u is a lower level of the same skill, or u is a level of a
skill that v's skill requires.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .ports import Catalog, PlanNode
from .prerequisites import PrerequisiteResolver

logger = logging.getLogger('skillmon')

CYCLE = 'Cycle'
MISSING_PREREQUISITE = 'MissingPrerequisite'
ORDERING_VIOLATION = 'OrderingViolation'


@dataclass
class ValidationIssue:
    """One problem found while validating a plan order."""

    variant: str
    node: Optional[PlanNode] = None
    other: Optional[PlanNode] = None
    cycle: List[PlanNode] = field(default_factory=list)

    def __str__(self):
        if self.variant == CYCLE:
            return f"Cycle between {', '.join(_fmt(n) for n in self.cycle)}"
        if self.variant == MISSING_PREREQUISITE:
            return f"{_fmt(self.node)} requires {_fmt(self.other)}, which is not in the plan"
        return f"{_fmt(self.node)} is ordered before its prerequisite {_fmt(self.other)}"


def _fmt(node: Optional[PlanNode]) -> str:
    if node is None:
        return '?'
    return f"{node.skill_id} L{node.level}"


@dataclass
class ValidationResult:
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def issues(self) -> List[ValidationIssue]:
        return self.errors + self.warnings


class PlanDag:
    """
    Directed acyclic graph over plan nodes.

    Edges are derived from the node set and the catalog, so a DAG built from
    a plan's own nodes is the restricted DAG, and one grown with
    add_recursive is the full DAG. Missing intermediate nodes are bridged to
    the highest present level below the requirement.
    """

    def __init__(self, catalog: Catalog, resolver: Optional[PrerequisiteResolver] = None):
        self.catalog = catalog
        self.resolver = resolver or PrerequisiteResolver(catalog)
        self._nodes: Dict[PlanNode, None] = {}
        self._dependencies: Optional[Dict[PlanNode, Set[PlanNode]]] = None
        self._dependents: Optional[Dict[PlanNode, Set[PlanNode]]] = None

    @classmethod
    def restricted(cls, catalog: Catalog, nodes: Iterable[PlanNode],
                   resolver: Optional[PrerequisiteResolver] = None) -> 'PlanDag':
        """DAG induced by exactly the given nodes."""
        dag = cls(catalog, resolver)
        for node in nodes:
            dag.add_node(node)
        return dag

    def __contains__(self, node) -> bool:
        return node in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> List[PlanNode]:
        return list(self._nodes)

    def add_node(self, node: PlanNode) -> None:
        node = PlanNode(*node)
        if node not in self._nodes:
            self._nodes[node] = None
            self._dependencies = None
            self._dependents = None

    def add_recursive(self, node: PlanNode) -> List[PlanNode]:
        """
        Add node and everything it transitively requires.

        Returns the nodes that were not in the DAG before. Raises
        CatalogCycle before anything is added if the catalog loops.
        """
        node = PlanNode(*node)
        closure = self.resolver.closure_nodes(node)
        added = []
        for candidate in closure + [node]:
            if candidate not in self._nodes:
                self.add_node(candidate)
                added.append(candidate)
        return added

    def _highest_present(self, skill_id: int, max_level: int) -> Optional[PlanNode]:
        for level in range(max_level, 0, -1):
            candidate = PlanNode(skill_id, level)
            if candidate in self._nodes:
                return candidate
        return None

    def _build_edges(self) -> None:
        dependencies: Dict[PlanNode, Set[PlanNode]] = {node: set() for node in self._nodes}
        dependents: Dict[PlanNode, Set[PlanNode]] = {node: set() for node in self._nodes}
        for node in self._nodes:
            previous = self._highest_present(node.skill_id, node.level - 1)
            if previous is not None:
                dependencies[node].add(previous)
            for req_skill, req_level in self.resolver.direct(node.skill_id):
                required = self._highest_present(req_skill, req_level)
                if required is not None:
                    dependencies[node].add(required)
        for node, parents in dependencies.items():
            for parent in parents:
                dependents[parent].add(node)
        self._dependencies = dependencies
        self._dependents = dependents

    @property
    def dependencies(self) -> Dict[PlanNode, Set[PlanNode]]:
        """node -> nodes that must come before it."""
        if self._dependencies is None:
            self._build_edges()
        return self._dependencies

    @property
    def dependents(self) -> Dict[PlanNode, Set[PlanNode]]:
        """node -> nodes that must come after it."""
        if self._dependents is None:
            self._build_edges()
        return self._dependents

    def edges(self) -> List[tuple]:
        return [(parent, node)
                for node, parents in self.dependencies.items()
                for parent in sorted(parents)]

    def subtree(self, node: PlanNode) -> Set[PlanNode]:
        """node plus all of its transitive dependents."""
        seen = {node}
        stack = [node]
        while stack:
            current = stack.pop()
            for child in self.dependents.get(current, ()):
                if child not in seen:
                    seen.add(child)
                    stack.append(child)
        return seen

    def topological_sort(self, preferred_order: Iterable[PlanNode] = (),
                         preferred_skills: Optional[Set[int]] = None) -> List[PlanNode]:
        """
        Kahn's algorithm with a preferred order hint.

        Among available nodes the next unseen node of preferred_order wins.
        Otherwise nodes whose skill is not in preferred_skills go first,
        then by (skill_id, level). A result shorter than the DAG means the
        remaining nodes sit on a cycle.

        Args:
            preferred_order: Nodes in the order the user intends
            preferred_skills: Skill ids sorted after other available skills

        Returns:
            Nodes in training order
        """
        preferred = [PlanNode(*n) for n in preferred_order]
        preferred_skills = preferred_skills or set()
        dependencies = self.dependencies
        dependents = self.dependents

        in_degree = {node: len(parents) for node, parents in dependencies.items()}
        available = {node for node, degree in in_degree.items() if degree == 0}
        emitted: Set[PlanNode] = set()
        result: List[PlanNode] = []
        cursor = 0

        while available:
            while cursor < len(preferred) and (preferred[cursor] in emitted
                                               or preferred[cursor] not in in_degree):
                cursor += 1

            if cursor < len(preferred) and preferred[cursor] in available:
                chosen = preferred[cursor]
            else:
                chosen = min(available, key=lambda n: (n.skill_id in preferred_skills, n.skill_id, n.level))

            available.discard(chosen)
            emitted.add(chosen)
            result.append(chosen)
            for child in dependents[chosen]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    available.add(child)

        if len(result) < len(in_degree):
            logger.warning(f"Topological sort stopped after {len(result)} of {len(in_degree)} nodes")
        return result

    def find_cycle(self) -> List[PlanNode]:
        """Nodes left over by a topological sort, empty when acyclic."""
        ordered = set(self.topological_sort())
        return sorted(node for node in self._nodes if node not in ordered)

    def validate(self, order: Optional[List[PlanNode]] = None) -> ValidationResult:
        """
        Check an order against this DAG.

        Errors are cycles and ordering violations; prerequisites missing from
        the node set are warnings. Nothing is mutated.
        """
        order = [PlanNode(*n) for n in (order if order is not None else self._nodes)]
        result = ValidationResult()

        cycle = self.find_cycle()
        if cycle:
            result.errors.append(ValidationIssue(CYCLE, cycle=cycle))

        position = {node: index for index, node in enumerate(order)}
        for parent, child in self.edges():
            if parent in position and child in position and position[parent] > position[child]:
                result.errors.append(ValidationIssue(ORDERING_VIOLATION, node=child, other=parent))

        for node in order:
            for missing in self._missing_for(node):
                result.warnings.append(ValidationIssue(MISSING_PREREQUISITE, node=node, other=missing))

        return result

    def _missing_for(self, node: PlanNode) -> List[PlanNode]:
        required = [PlanNode(node.skill_id, level) for level in range(1, node.level)]
        for req_skill, req_level in self.resolver.direct(node.skill_id):
            required.extend(PlanNode(req_skill, level) for level in range(1, req_level + 1))
        return [candidate for candidate in required if candidate not in self._nodes]
