"""
Stat Allocation Optimizer

Finds the allocation of stat points that maximizes a damage objective
under a point budget. The objective is a black box over CharacterStats
(weapon AR, spell power or skill damage).

Strategies:
  - 2d-exact:            enumerate every split when only two stats are free
  - greedy:              best 1-point gain each step, with a 2-point lookahead
                         to step over floor() plateaus (e.g. two-handed STR)
  - multi-start-greedy:  greedy from the base allocation and from every
                         curve breakpoint of every stat pair
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from models import CharacterStats, StatConfig


logger = logging.getLogger(__name__)

Objective = Callable[[CharacterStats], float]
StatBoundsGetter = Callable[[str], Tuple[int, int]]

# Stat levels where common scaling curves change slope
CURVE_BREAKPOINTS = (15, 16, 18, 20, 25, 30, 40, 43, 45, 50, 58, 60, 80, 99)

# A 2-point step must beat the best 1-point gain * lookahead * this margin
LOOKAHEAD_MARGIN = 0.9

MIN_GAIN_THRESHOLD = 0.01

DEFAULT_MAX_STAT = 99

STRATEGY_2D_EXACT = '2d-exact'
STRATEGY_GREEDY = 'greedy'
STRATEGY_MULTI_START = 'multi-start-greedy'
STRATEGIES = (STRATEGY_2D_EXACT, STRATEGY_GREEDY, STRATEGY_MULTI_START)


# =============================================================================
# Result types
# =============================================================================

@dataclass
class OptimalStats:
    stats: CharacterStats
    damage: int
    requirements_met: bool = True


@dataclass
class SolverResult:
    stats: CharacterStats
    value: float


@dataclass
class GreedyStep:
    stat: str
    points: int
    gain: float  # Gain per point


@dataclass
class SolverOptions:
    strategy: Optional[str] = None
    max_lookahead: int = 2
    breakpoints: Sequence[int] = CURVE_BREAKPOINTS
    stat_breakpoints: Optional[Dict[str, Sequence[int]]] = None


def _max_for(stat_configs: Dict[str, StatConfig], stat: str) -> int:
    config = stat_configs.get(stat)
    return config.max if config is not None else DEFAULT_MAX_STAT


# =============================================================================
# Phase 1: minimums
# =============================================================================

def meet_minimums(base_stats: CharacterStats, scaling_stats: Sequence[str], budget: int,
                  min_values: Dict[str, int]) -> Tuple[CharacterStats, int]:
    """
    Raise each stat to its minimum, in order, while the budget lasts.

    Returns:
        (stats, points spent)
    """
    levels = {}
    remaining = budget
    for stat in scaling_stats:
        current = base_stats.get(stat)
        needed = max(0, min_values.get(stat, current) - current)
        allocated = min(needed, remaining)
        levels[stat] = current + allocated
        remaining -= allocated
    return base_stats.with_values(**levels), budget - remaining


# =============================================================================
# Exact 2D solver
# =============================================================================

def solve_2d_exact(start_stats: CharacterStats, unlocked_stats: Sequence[str], budget: int,
                   get_min_max: StatBoundsGetter, objective: Objective) -> OptimalStats:
    """
    Try every split of the budget between two stats.

    Raises:
        ValueError: unless exactly two stats are unlocked
    """
    if len(unlocked_stats) != 2:
        raise ValueError("solve_2d_exact requires exactly 2 unlocked stats")

    stat1, stat2 = unlocked_stats
    min1, max1 = get_min_max(stat1)
    min2, max2 = get_min_max(stat2)

    best_stats = start_stats
    best_value = objective(start_stats)

    for add1 in range(budget + 1):
        add2 = budget - add1
        val1 = min(min1 + add1, max1)
        val2 = min(min2 + add2, max2)
        if (val1 - min1) + (val2 - min2) > budget:
            continue

        candidate = start_stats.with_values(**{stat1: val1, stat2: val2})
        value = objective(candidate)
        if value > best_value:
            best_value = value
            best_stats = candidate

    return OptimalStats(stats=best_stats, damage=math.floor(best_value))


# =============================================================================
# Greedy with lookahead
# =============================================================================

def select_best_allocation(stats: Sequence[str],
                           current_levels: Dict[str, int],
                           current_value: float,
                           get_objective: Callable[[Dict[str, int]], float],
                           max_lookahead: int,
                           remaining_budget: int,
                           max_values: Optional[Dict[str, int]] = None,
                           min_gain_threshold: float = MIN_GAIN_THRESHOLD) -> Optional[GreedyStep]:
    """
    Pick the next allocation step.

    A 2-point step wins only if its total gain beats the best 1-point gain
    by the lookahead margin and its average gain per point is higher.

    Args:
        stats: Stats that may receive points
        current_levels: Current level of each stat
        current_value: Objective at current_levels
        get_objective: Objective over a levels dict
        max_lookahead: 1 disables the 2-point step
        remaining_budget: Points left
        max_values: Per-stat caps (default 99)
        min_gain_threshold: Steps gaining no more than this end the search

    Returns:
        GreedyStep, or None when no step makes progress
    """
    max_values = max_values or {}
    best_stat = None
    best_gain = 0.0
    best_points = 1

    for stat in stats:
        level = current_levels[stat]
        max_level = max_values.get(stat, DEFAULT_MAX_STAT)

        if level < max_level and remaining_budget >= 1:
            gain = get_objective({**current_levels, stat: level + 1}) - current_value
            if gain > best_gain:
                best_gain = gain
                best_stat = stat
                best_points = 1

        if level + 1 < max_level and remaining_budget >= 2 and max_lookahead >= 2:
            gain2 = get_objective({**current_levels, stat: level + 2}) - current_value
            if gain2 > best_gain * max_lookahead * LOOKAHEAD_MARGIN:
                average = gain2 / 2
                if average > best_gain:
                    best_gain = average
                    best_stat = stat
                    best_points = 2

    if best_stat is None or best_gain <= min_gain_threshold:
        return None
    return GreedyStep(stat=best_stat, points=best_points, gain=best_gain)


def run_greedy_with_lookahead(start_stats: CharacterStats, unlocked_stats: Sequence[str],
                              total_budget: int, stat_configs: Dict[str, StatConfig],
                              objective: Objective, max_lookahead: int = 2,
                              base_stats: Optional[CharacterStats] = None) -> SolverResult:
    """
    Greedy allocation from start_stats.

    When base_stats is given, points already spent getting from base_stats
    to start_stats count against the budget.
    """
    points_used = 0
    if base_stats is not None:
        for stat in unlocked_stats:
            points_used += max(0, start_stats.get(stat) - base_stats.get(stat))

    levels = {stat: start_stats.get(stat) for stat in unlocked_stats}
    max_values = {stat: _max_for(stat_configs, stat) for stat in unlocked_stats}

    def get_objective(test_levels: Dict[str, int]) -> float:
        return objective(start_stats.with_values(**test_levels))

    current_value = get_objective(levels)

    while points_used < total_budget:
        step = select_best_allocation(
            unlocked_stats, levels, current_value, get_objective,
            max_lookahead, total_budget - points_used, max_values,
        )
        if step is None:
            break
        levels[step.stat] += step.points
        points_used += step.points
        current_value = get_objective(levels)

    return SolverResult(stats=start_stats.with_values(**levels), value=current_value)


# =============================================================================
# Multi-start
# =============================================================================

def generate_breakpoint_starts(start_stats: CharacterStats, unlocked_stats: Sequence[str],
                               budget: int, stat_configs: Dict[str, StatConfig],
                               stat_breakpoints: Optional[Dict[str, Sequence[int]]] = None,
                               global_breakpoints: Sequence[int] = CURVE_BREAKPOINTS) -> List[CharacterStats]:
    """
    Starting allocations for multi-start greedy.

    For each pair of stats and each breakpoint of one of them, put that stat
    on the breakpoint and give the rest of the budget to the other.
    """
    def breakpoints_for(stat: str) -> Sequence[int]:
        if stat_breakpoints is not None and stat in stat_breakpoints:
            return stat_breakpoints[stat]
        return global_breakpoints

    starts = [start_stats]
    for i, stat1 in enumerate(unlocked_stats):
        for stat2 in unlocked_stats[i + 1:]:
            min1, min2 = start_stats.get(stat1), start_stats.get(stat2)
            max1, max2 = _max_for(stat_configs, stat1), _max_for(stat_configs, stat2)

            for bp in breakpoints_for(stat1):
                if min1 < bp <= max1 and bp - min1 <= budget:
                    remaining = budget - (bp - min1)
                    starts.append(start_stats.with_values(
                        **{stat1: bp, stat2: min(min2 + remaining, max2)}))

            for bp in breakpoints_for(stat2):
                if min2 < bp <= max2 and bp - min2 <= budget:
                    remaining = budget - (bp - min2)
                    starts.append(start_stats.with_values(
                        **{stat1: min(min1 + remaining, max1), stat2: bp}))

    return starts


def solve_multi_start_greedy(start_stats: CharacterStats, unlocked_stats: Sequence[str], budget: int,
                             stat_configs: Dict[str, StatConfig], objective: Objective,
                             options: Optional[SolverOptions] = None) -> OptimalStats:
    """Best greedy result over every breakpoint start."""
    options = options or SolverOptions()

    best_stats = start_stats
    best_value = objective(start_stats)

    starts = generate_breakpoint_starts(start_stats, unlocked_stats, budget, stat_configs,
                                        options.stat_breakpoints, options.breakpoints)
    for start in starts:
        result = run_greedy_with_lookahead(start, unlocked_stats, budget, stat_configs, objective,
                                           options.max_lookahead, base_stats=start_stats)
        if result.value > best_value:
            best_value = result.value
            best_stats = result.stats

    logger.debug("Multi-start greedy: %d starts, best %.3f", len(starts), best_value)
    return OptimalStats(stats=best_stats, damage=math.floor(best_value))


# =============================================================================
# Unified entry point
# =============================================================================

def solve(start_stats: CharacterStats, unlocked_stats: Sequence[str], budget: int,
          stat_configs: Dict[str, StatConfig], objective: Objective,
          options: Optional[SolverOptions] = None) -> OptimalStats:
    """
    Optimize the allocation of budget points over unlocked_stats.

    Args:
        start_stats: Allocation to start from (free stats at their minimum)
        unlocked_stats: Stat names that may receive points
        budget: Points to allocate
        stat_configs: Min/max per stat
        objective: Value to maximize
        options: Strategy and tuning (strategy auto-selected if None)

    Returns:
        OptimalStats with damage = floor(best objective)

    Raises:
        ValueError: for an unknown strategy
    """
    options = options or SolverOptions()
    strategy = options.strategy
    if strategy is None:
        strategy = STRATEGY_2D_EXACT if len(unlocked_stats) == 2 else STRATEGY_MULTI_START
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown solver strategy: {strategy}")

    if strategy == STRATEGY_2D_EXACT:
        def get_min_max(stat: str) -> Tuple[int, int]:
            return start_stats.get(stat), _max_for(stat_configs, stat)
        return solve_2d_exact(start_stats, unlocked_stats, budget, get_min_max, objective)

    if strategy == STRATEGY_GREEDY:
        result = run_greedy_with_lookahead(start_stats, unlocked_stats, budget, stat_configs,
                                           objective, options.max_lookahead)
        return OptimalStats(stats=result.stats, damage=math.floor(result.value))

    return solve_multi_start_greedy(start_stats, unlocked_stats, budget, stat_configs, objective, options)
