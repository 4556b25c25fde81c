"""
Brute-force stat optimizer

Ground truth for the greedy solvers: enumerates every allocation that
spends exactly the budget. Exponential in the number of stats, so only
meant for validation and small searches.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from models import CharacterStats
from stat_optimizer import (
    Objective, DEFAULT_MAX_STAT, meet_minimums, select_best_allocation,
)


DAMAGE_STAT_ORDER = ('strength', 'dexterity', 'intelligence', 'faith', 'arcane')


@dataclass
class BruteForceResult:
    stats: CharacterStats
    value: float
    budget: int


@dataclass
class BruteForceConfig:
    base_stats: CharacterStats
    scaling_stats: Sequence[str]
    max_budget: int
    objective: Objective
    max_stat_value: int = DEFAULT_MAX_STAT
    min_stat_values: Dict[str, int] = field(default_factory=dict)


@dataclass
class BruteForcePathResult:
    path: List[BruteForceResult]
    total_combinations: int
    total_time: float  # seconds


def brute_force_at_budget(config: BruteForceConfig, budget: int) -> BruteForceResult:
    """
    Best allocation spending exactly `budget` points.

    Stats first go to their minimums; when the budget cannot cover the
    minimums, the partial allocation is returned. A budget beyond what the
    stats can absorb below max_stat_value is clamped to that capacity.
    """
    stats = config.scaling_stats
    bases = [config.base_stats.get(stat) for stat in stats]
    mins = [max(base, config.min_stat_values.get(stat, base)) for stat, base in zip(stats, bases)]
    required = sum(m - b for m, b in zip(mins, bases))

    if budget < required:
        partial, _ = meet_minimums(config.base_stats, stats, budget, dict(zip(stats, mins)))
        return BruteForceResult(stats=partial, value=config.objective(partial), budget=budget)

    best_stats = config.base_stats
    best_value = float('-inf')
    allocation: List[int] = []

    def enumerate_allocations(index: int, remaining: int):
        nonlocal best_stats, best_value
        if index == len(stats):
            if remaining != 0:
                return
            candidate = config.base_stats.with_values(
                **{stat: mins[i] + allocation[i] for i, stat in enumerate(stats)})
            value = config.objective(candidate)
            if value > best_value:
                best_value = value
                best_stats = candidate
            return

        max_extra = min(max(0, config.max_stat_value - mins[index]), remaining)
        for extra in range(max_extra + 1):
            allocation.append(extra)
            enumerate_allocations(index + 1, remaining - extra)
            allocation.pop()

    capacity = sum(max(0, config.max_stat_value - m) for m in mins)
    enumerate_allocations(0, min(budget - required, capacity))
    return BruteForceResult(stats=best_stats, value=best_value, budget=budget)


def brute_force_optimal_path(config: BruteForceConfig) -> BruteForcePathResult:
    """Brute-force optimum at every budget from 0 to max_budget."""
    start = time.perf_counter()
    path = [brute_force_at_budget(config, budget) for budget in range(config.max_budget + 1)]
    return BruteForcePathResult(
        path=path,
        total_combinations=len(path),
        total_time=time.perf_counter() - start,
    )


def run_greedy_optimization(base_stats: CharacterStats, scaling_stats: Sequence[str], max_budget: int,
                            objective: Objective, max_lookahead: int = 2,
                            min_stat_values: Optional[Dict[str, int]] = None) -> List[BruteForceResult]:
    """
    Greedy investment path, one entry per point spent.

    Minimums are met first (in stat order), then the greedy step with
    lookahead is applied one point at a time.
    """
    min_stat_values = min_stat_values or {}
    levels = {stat: base_stats.get(stat) for stat in scaling_stats}

    def build(test_levels: Dict[str, int]) -> CharacterStats:
        return base_stats.with_values(**test_levels)

    def get_objective(test_levels: Dict[str, int]) -> float:
        return objective(build(test_levels))

    budget = 0
    current_value = get_objective(levels)
    path = [BruteForceResult(stats=build(levels), value=current_value, budget=0)]

    for stat in scaling_stats:
        minimum = min_stat_values.get(stat, base_stats.get(stat))
        while levels[stat] < minimum and budget < max_budget:
            levels[stat] += 1
            budget += 1
            current_value = get_objective(levels)
            path.append(BruteForceResult(stats=build(levels), value=current_value, budget=budget))

    while budget < max_budget:
        step = select_best_allocation(scaling_stats, levels, current_value, get_objective,
                                      max_lookahead, max_budget - budget)
        if step is None:
            break
        for _ in range(step.points):
            levels[step.stat] += 1
            budget += 1
            current_value = get_objective(levels)
            path.append(BruteForceResult(stats=build(levels), value=current_value, budget=budget))

    return path


# =============================================================================
# Comparison
# =============================================================================

@dataclass
class ComparisonResult:
    budget: int
    brute_force_value: float
    greedy_value: float
    brute_force_stats: CharacterStats
    greedy_stats: CharacterStats
    matches: bool
    value_diff: float
    diverging_stat: Optional[str] = None


@dataclass
class AccuracyReport:
    match_rate: float
    avg_value_diff: float
    max_value_diff: float


def compare_greedy_to_brute_force(greedy_path: List[BruteForceResult],
                                  brute_force_path: List[BruteForceResult],
                                  tolerance: float = 0.01) -> List[ComparisonResult]:
    results = []
    for greedy, brute in zip(greedy_path, brute_force_path):
        diff = brute.value - greedy.value
        matches = abs(diff) <= tolerance

        diverging = None
        if not matches:
            for stat in DAMAGE_STAT_ORDER:
                if brute.stats.get(stat) != greedy.stats.get(stat):
                    diverging = stat
                    break

        results.append(ComparisonResult(
            budget=greedy.budget,
            brute_force_value=brute.value,
            greedy_value=greedy.value,
            brute_force_stats=brute.stats,
            greedy_stats=greedy.stats,
            matches=matches,
            value_diff=diff,
            diverging_stat=diverging,
        ))
    return results


def find_first_divergence(comparisons: List[ComparisonResult]) -> Optional[ComparisonResult]:
    return next((c for c in comparisons if not c.matches), None)


def calculate_accuracy(comparisons: List[ComparisonResult]) -> AccuracyReport:
    if not comparisons:
        return AccuracyReport(match_rate=1.0, avg_value_diff=0.0, max_value_diff=0.0)
    diffs = [abs(c.value_diff) for c in comparisons]
    return AccuracyReport(
        match_rate=sum(1 for c in comparisons if c.matches) / len(comparisons),
        avg_value_diff=sum(diffs) / len(diffs),
        max_value_diff=max(diffs),
    )
