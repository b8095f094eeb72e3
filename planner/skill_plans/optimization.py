"""
Attribute remap optimiser.

Two entry points on AttributeOptimizer:

* best_remap: the single remap that minimises training time for the plan in
  its current order.
* optimize: a greedy reorder followed by a dynamic program that places up to
  max_remaps remaps, with an optional prefix trained before the first remap.

Times come from the demand model (SP owed per attribute pair divided by the
training rate) and are rounded up to whole seconds only in the results. The
reorder is a heuristic, so optimized_seconds is an achievable time, not a
proven minimum.
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

import numpy as np

from .arithmetic import (
    ATTRIBUTE_ORDER,
    Attributes,
    MAX_POINTS_PER_ATTRIBUTE,
    TOTAL_REMAP_POINTS,
    effective_attributes,
    sp_for_level,
    training_rate,
)
from .exceptions import OptimizationCancelled, OptimizerInfeasible
from .graph import PlanDag
from .ports import Catalog, CharacterState, PlanNode
from .simulation import PlannedRemap

logger = logging.getLogger('skillmon')

AttributePair = Tuple[int, int]
_COLUMN = {attribute_id: column for column, attribute_id in enumerate(ATTRIBUTE_ORDER)}


class CancelToken:
    """Advisory cancellation flag, checked between optimiser steps."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        if self._event.is_set():
            raise OptimizationCancelled("Optimisation was cancelled")


@dataclass(frozen=True)
class EntryDemand:
    """SP a single entry still needs, and the attribute pair that trains it."""

    node: PlanNode
    sp: int
    pair: Optional[AttributePair]


@dataclass
class BestRemapResult:
    attributes: Attributes
    original_seconds: int
    optimized_seconds: int


@dataclass
class OptimizationResult:
    entries: List[PlanNode]
    remaps: List[PlannedRemap]
    original_seconds: int
    optimized_seconds: int
    ideal: Attributes = field(default_factory=Attributes)

    @property
    def saved_seconds(self) -> int:
        return self.original_seconds - self.optimized_seconds


def _enumerate(allowed: Tuple[bool, ...]) -> List[Tuple[int, ...]]:
    results = []
    values = [0] * len(ATTRIBUTE_ORDER)

    def place(position: int, left: int) -> None:
        if position == len(values) - 1:
            if left <= MAX_POINTS_PER_ATTRIBUTE and (allowed[position] or left == 0):
                values[position] = left
                results.append(tuple(values))
            return
        top = min(left, MAX_POINTS_PER_ATTRIBUTE) if allowed[position] else 0
        for points in range(top + 1):
            values[position] = points
            place(position + 1, left - points)
        values[position] = 0

    place(0, TOTAL_REMAP_POINTS)
    return results


@lru_cache(maxsize=64)
def _candidate_matrix(used: FrozenSet[int]) -> np.ndarray:
    allowed = tuple(attribute_id in used for attribute_id in ATTRIBUTE_ORDER)
    rows = _enumerate(allowed)
    if not rows:
        rows = _enumerate((True,) * len(ATTRIBUTE_ORDER))
    return np.array(rows, dtype=np.float64)


def remap_distributions(used: Optional[Sequence[int]] = None) -> List[Attributes]:
    """
    Every remap with 14 points, at most 10 per attribute, in lexicographic order.

    Attributes outside used are held at 0. If that leaves no valid remap
    (fewer than two used attributes) every attribute is allowed.
    """
    used = frozenset(used) if used is not None else frozenset(ATTRIBUTE_ORDER)
    return [Attributes.from_tuple(row) for row in _candidate_matrix(used)]


def _demand_items(demand: Dict[AttributePair, int]) -> Tuple[Tuple[AttributePair, int], ...]:
    return tuple(sorted((pair, sp) for pair, sp in demand.items() if sp > 0))


def demand_seconds(items: Sequence[Tuple[AttributePair, int]], attributes: Attributes) -> float:
    """Seconds to train the demand at fixed effective attributes."""
    total = 0.0
    for (primary, secondary), sp in items:
        total += sp * 60.0 / training_rate(attributes, primary, secondary)
    return total


class AttributeOptimizer:
    """
    Finds remaps and orders that shorten a plan for one character.

    Args:
        catalog: Skill data
        character: Training state; without one the character has no SP,
            no implants and an all-zero remap
    """

    def __init__(self, catalog: Catalog, character: Optional[CharacterState] = None):
        self.catalog = catalog
        if character is not None:
            self.current_sp = character.current_sp_map()
            self.baseline_remap = character.remap()
            self.implants = character.implants()
        else:
            self.current_sp = {}
            self.baseline_remap = Attributes()
            self.implants = Attributes()

    @property
    def baseline(self) -> Attributes:
        return effective_attributes(self.baseline_remap, self.implants)

    def demands(self, entries: Sequence) -> List[EntryDemand]:
        """
        SP owed per entry, walking in order.

        SP is tracked per skill, so consecutive levels of one skill only count
        the SP between them.
        """
        state = dict(self.current_sp)
        result = []
        for entry in entries:
            node = PlanNode(entry.skill_id, entry.level)
            info = self.catalog.skill(node.skill_id)
            target = sp_for_level(info.rank, node.level)
            have = state.get(node.skill_id, 0)
            owed = max(0, target - have)
            state[node.skill_id] = max(have, target)
            if info.is_timed:
                result.append(EntryDemand(node, owed, (info.primary_attribute_id, info.secondary_attribute_id)))
            else:
                result.append(EntryDemand(node, 0, None))
        return result

    @staticmethod
    def demand_map(demands: Sequence[EntryDemand]) -> Dict[AttributePair, int]:
        totals: Dict[AttributePair, int] = {}
        for demand in demands:
            if demand.pair is not None and demand.sp > 0:
                totals[demand.pair] = totals.get(demand.pair, 0) + demand.sp
        return totals

    def _best_for(self, items: Tuple[Tuple[AttributePair, int], ...]) -> Tuple[float, Attributes]:
        """Lowest-time remap for a demand, scoring every candidate at once."""
        if not items:
            return 0.0, self.baseline_remap
        used = frozenset(attribute_id for pair, _ in items for attribute_id in pair)
        candidates = _candidate_matrix(used)
        effective = candidates + np.array(effective_attributes(Attributes(), self.implants).as_tuple(),
                                          dtype=np.float64)
        seconds = np.zeros(len(candidates))
        for (primary, secondary), sp in items:
            rate = effective[:, _COLUMN[primary]] + effective[:, _COLUMN[secondary]] / 2.0
            seconds += sp * 60.0 / rate
        best = int(np.argmin(seconds))
        return float(seconds[best]), Attributes.from_tuple(candidates[best])

    def best_remap(self, entries: Sequence) -> BestRemapResult:
        """The one remap that trains entries, in their current order, fastest."""
        items = _demand_items(self.demand_map(self.demands(entries)))
        original = demand_seconds(items, self.baseline)
        optimized, attributes = self._best_for(items)
        if optimized > original:
            optimized, attributes = original, self.baseline_remap
        logger.debug(f"Best remap {attributes}: {original:.0f}s -> {optimized:.0f}s")
        return BestRemapResult(attributes, math.ceil(original), math.ceil(optimized))

    def reorder(self, entries: Sequence, ideal: Attributes,
                cancel: Optional[CancelToken] = None) -> List[PlanNode]:
        """
        Greedy reorder by subtree gain under the ideal remap.

        Among available nodes the one whose subtree has the highest
        SP-weighted ratio of baseline to ideal training rate goes first;
        ties by (skill_id, level).

        Raises:
            OptimizerInfeasible: If the entries contain a cycle
        """
        demands = self.demands(entries)
        nodes = [demand.node for demand in demands]
        baseline = self.baseline
        ideal_effective = effective_attributes(ideal, self.implants)

        ratio: Dict[PlanNode, float] = {}
        sp: Dict[PlanNode, int] = {}
        for demand in demands:
            sp[demand.node] = demand.sp
            if demand.pair is None:
                ratio[demand.node] = 1.0
            else:
                ratio[demand.node] = (training_rate(baseline, *demand.pair)
                                      / training_rate(ideal_effective, *demand.pair))

        dag = PlanDag.restricted(self.catalog, nodes)
        score: Dict[PlanNode, float] = {}
        for node in nodes:
            subtree = dag.subtree(node)
            subtree_sp = sum(sp[n] for n in subtree)
            weighted = sum(ratio[n] * sp[n] for n in subtree)
            score[node] = weighted / subtree_sp if subtree_sp > 0 else 0.0

        dependents = dag.dependents
        in_degree = {node: len(parents) for node, parents in dag.dependencies.items()}
        available = {node for node, degree in in_degree.items() if degree == 0}
        order: List[PlanNode] = []
        while available:
            if cancel is not None:
                cancel.check()
            chosen = min(available, key=lambda n: (-score[n], n.skill_id, n.level))
            available.discard(chosen)
            order.append(chosen)
            for child in dependents[chosen]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    available.add(child)

        if len(order) < len(nodes):
            raise OptimizerInfeasible(f"Reorder reached {len(order)} of {len(nodes)} entries")
        return order

    def optimize(self, entries: Sequence, max_remaps: int = 1,
                 cancel: Optional[CancelToken] = None) -> OptimizationResult:
        """
        Reorder entries and place up to max_remaps remaps.

        Args:
            entries: Plan entries in current order
            max_remaps: Upper bound on remaps in the schedule
            cancel: Optional token; a cancelled run raises OptimizationCancelled

        Returns:
            OptimizationResult with the new order and its remap schedule
        """
        original_items = _demand_items(self.demand_map(self.demands(entries)))
        original = demand_seconds(original_items, self.baseline)
        ideal = self.best_remap(entries).attributes

        order = self.reorder(entries, ideal, cancel)
        demands = self.demands(order)
        n = len(demands)
        max_remaps = max(0, min(max_remaps, n))

        cumulative: List[Dict[AttributePair, int]] = [{}]
        for demand in demands:
            totals = dict(cumulative[-1])
            if demand.pair is not None and demand.sp > 0:
                totals[demand.pair] = totals.get(demand.pair, 0) + demand.sp
            cumulative.append(totals)

        segment_cache: Dict[tuple, Tuple[float, Attributes]] = {}

        def cost(i: int, j: int) -> Tuple[float, Attributes]:
            start, end = cumulative[i], cumulative[j]
            items = _demand_items({pair: end[pair] - start.get(pair, 0) for pair in end})
            if items not in segment_cache:
                segment_cache[items] = self._best_for(items)
            return segment_cache[items]

        infinity = float('inf')
        dp = [[infinity] * (n + 1) for _ in range(max_remaps + 1)]
        choice: List[List[Optional[int]]] = [[None] * (n + 1) for _ in range(max_remaps + 1)]
        dp[0][n] = 0.0
        for m in range(1, max_remaps + 1):
            dp[m][n] = 0.0
            for i in range(n - 1, -1, -1):
                if cancel is not None:
                    cancel.check()
                best, best_j = dp[m - 1][i], None
                for j in range(i + 1, n + 1):
                    if dp[m - 1][j] == infinity:
                        continue
                    candidate = cost(i, j)[0] + dp[m - 1][j]
                    if candidate < best:
                        best, best_j = candidate, j
                dp[m][i] = best
                choice[m][i] = best_j

        # k is where the first remap is taken; k == n means none at all
        best_total, best_k = infinity, n
        for k in range(n, -1, -1):
            prefix = demand_seconds(_demand_items(cumulative[k]), self.baseline)
            total = prefix + dp[max_remaps][k]
            if total < best_total:
                best_total, best_k = total, k

        remaps = []
        active = self.baseline_remap
        m, i = max_remaps, best_k
        while i < n and m > 0:
            j = choice[m][i]
            if j is None:
                m -= 1
                continue
            attributes = cost(i, j)[1]
            if attributes != active:
                remaps.append(PlannedRemap(i, attributes))
                active = attributes
            i, m = j, m - 1

        logger.debug(f"Optimised {n} entries with up to {max_remaps} remaps: "
                     f"{original:.0f}s -> {best_total:.0f}s, {len(remaps)} remaps, "
                     f"{len(segment_cache)} segment shapes")
        return OptimizationResult(
            entries=order,
            remaps=remaps,
            original_seconds=math.ceil(original),
            optimized_seconds=math.ceil(min(best_total, original)),
            ideal=ideal,
        )
