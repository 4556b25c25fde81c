"""
Solver objectives and weapon-level optimization

Objective factories turn a weapon context into a function of
CharacterStats for the stat optimizer:
  - AR:  total attack rating
  - SP:  best of sorcery / incantation scaling (catalysts)
  - AoW: total motion + bullet damage of a skill

find_optimal_stats wraps the solver for a concrete weapon: it raises
stats to the weapon's requirements, derives the point budget and picks
per-stat curve breakpoints for the multi-start search.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from models import (
    DamageType, Stat, DAMAGE_STAT_NAMES, AffinityData, CharacterStats,
    PrecomputedData, StatConfig, WEAPON_CLASS_MAP,
)
from curves import CurveCache
from ar_calculator import calculate_weapon_ar
from aow_models import AowCalculatorInput, PrecomputedAowData
from aow_calculator import calculate_aow_damage
from stat_optimizer import (
    DEFAULT_MAX_STAT, Objective, OptimalStats, SolverOptions, solve,
)


logger = logging.getLogger(__name__)

MODE_AR = 'AR'
MODE_SP = 'SP'
MODE_AOW = 'AoW'
OPTIMIZATION_MODES = (MODE_AR, MODE_SP, MODE_AOW)

# Vigor, mind and endurance when not locked
DEFAULT_NON_DAMAGE_STATS = {'vigor': 40, 'mind': 20, 'endurance': 25}

# Two-handing multiplies strength by 1.5
TWO_HAND_STRENGTH_FACTOR = 1.5


@dataclass
class ObjectiveContext:
    """Everything an objective needs besides the stats being evaluated."""
    precomputed: PrecomputedData
    weapon_name: str
    affinity: str
    upgrade_level: int
    category_name: str = ''
    two_handing: bool = False
    aow_data: Optional[PrecomputedAowData] = None
    aow_name: Optional[str] = None
    ignore_requirements: bool = False
    cache: Optional[CurveCache] = None


def _weapon_ar(ctx: ObjectiveContext, stats: CharacterStats):
    return calculate_weapon_ar(
        ctx.precomputed, ctx.weapon_name, ctx.affinity, ctx.upgrade_level, stats,
        two_handing=ctx.two_handing,
        ignore_requirements=ctx.ignore_requirements,
        cache=ctx.cache,
    )


def create_ar_objective(ctx: ObjectiveContext) -> Objective:
    def objective(stats: CharacterStats) -> float:
        result = _weapon_ar(ctx, stats)
        return result.total if result is not None else 0.0
    return objective


def create_sp_objective(ctx: ObjectiveContext) -> Objective:
    def objective(stats: CharacterStats) -> float:
        result = _weapon_ar(ctx, stats)
        return result.spell_scaling_total if result is not None else 0.0
    return objective


def create_aow_objective(ctx: ObjectiveContext) -> Objective:
    """Total skill damage; falls back to AR when no skill is selected."""
    if ctx.aow_data is None or not ctx.aow_name:
        return create_ar_objective(ctx)

    def objective(stats: CharacterStats) -> float:
        result = calculate_aow_damage(ctx.aow_data, ctx.precomputed, AowCalculatorInput(
            weapon_name=ctx.weapon_name,
            affinity=ctx.affinity,
            upgrade_level=ctx.upgrade_level,
            weapon_class=ctx.category_name,
            aow_name=ctx.aow_name,
            strength=stats.strength,
            dexterity=stats.dexterity,
            intelligence=stats.intelligence,
            faith=stats.faith,
            arcane=stats.arcane,
            two_handing=ctx.two_handing,
            ignore_requirements=ctx.ignore_requirements,
            pvp_mode=False,
            show_lacking_fp=False,
        ), ctx.cache)
        return sum(attack.motion_damage + attack.bullet_damage for attack in result.attacks)
    return objective


def create_objective(mode: str, ctx: ObjectiveContext) -> Objective:
    """Objective for an optimization mode; unknown modes optimize AR."""
    if mode == MODE_SP:
        return create_sp_objective(ctx)
    if mode == MODE_AOW:
        return create_aow_objective(ctx)
    return create_ar_objective(ctx)


# =============================================================================
# Breakpoints
# =============================================================================

def extract_stat_breakpoints(data: PrecomputedData, affinity: AffinityData,
                             unlocked_stats: List[str], is_catalyst: bool) -> Dict[str, List[int]]:
    """
    Interior breakpoints (stage_max_val[1..3]) of every curve an unlocked
    stat uses on this affinity, restricted to 1 < bp <= 99.
    """
    def add_from_curve(found: set, curve_id: int):
        curve = data.curves.get(curve_id)
        if curve is None:
            return
        for bp in curve.stage_max_val[1:4]:
            if 1 < bp <= 99:
                found.add(int(bp))

    result = {}
    for name in unlocked_stats:
        found = set()
        try:
            stat = Stat(name)
        except ValueError:
            result[name] = []
            continue

        for dt in DamageType:
            damage = affinity.damage.get(dt)
            if damage is None:
                continue
            scaling = damage.scaling.get(stat)
            if scaling is not None:
                add_from_curve(found, scaling.curve_id)

        if is_catalyst:
            for spell in (affinity.sorcery_scaling, affinity.incantation_scaling):
                if spell is None:
                    continue
                scaling = spell.scaling.get(stat)
                if scaling is not None:
                    add_from_curve(found, scaling.curve_id)

        result[name] = sorted(found)
    return result


# =============================================================================
# Weapon-level optimization
# =============================================================================

def _base_stats(stat_configs: Dict[str, StatConfig]) -> CharacterStats:
    values = {}
    for name in CharacterStats.__dataclass_fields__:
        config = stat_configs.get(name)
        if config is not None and config.locked:
            values[name] = config.min
        elif name in DEFAULT_NON_DAMAGE_STATS:
            values[name] = DEFAULT_NON_DAMAGE_STATS[name]
        elif config is not None:
            values[name] = config.min
    return CharacterStats(**values)


def _max_for(stat_configs: Dict[str, StatConfig], name: str) -> int:
    config = stat_configs.get(name)
    return config.max if config is not None else DEFAULT_MAX_STAT


def _is_locked(stat_configs: Dict[str, StatConfig], name: str) -> bool:
    config = stat_configs.get(name)
    return config is not None and config.locked


def find_optimal_stats(data: PrecomputedData, weapon_name: str, affinity: str, upgrade_level: int,
                       stat_configs: Dict[str, StatConfig],
                       two_handing: bool = False,
                       points_budget: Optional[int] = None,
                       optimization_mode: Optional[str] = None,
                       aow_data: Optional[PrecomputedAowData] = None,
                       aow_name: Optional[str] = None,
                       strategy: Optional[str] = None,
                       cache: Optional[CurveCache] = None) -> OptimalStats:
    """
    Find the damage-stat allocation that maximizes a weapon's output.

    Unlocked damage stats first go to the weapon's requirements (strength
    to ceil(req / 1.5) when two-handing). If those requirements do not fit
    in the budget, the solver plans from the minimums as if requirements
    were met and the final damage is recomputed with real requirements.

    Args:
        data: Weapon data bundle
        weapon_name: Weapon name
        affinity: Affinity name
        upgrade_level: Upgrade level
        stat_configs: Min/max per stat name; locked stats (min == max) are fixed
        two_handing: Two-handed grip
        points_budget: Total points for the five damage stats (None = fill to max)
        optimization_mode: 'AR', 'SP' or 'AoW' (default SP for catalysts, else AR)
        aow_data: Skill data for 'AoW' mode
        aow_name: Skill name for 'AoW' mode
        strategy: Solver strategy override
        cache: Curve cache shared across evaluations

    Returns:
        OptimalStats (damage is the rounded AR, or floor of the objective)
    """
    cache = cache if cache is not None else CurveCache()
    unlocked = [name for name in DAMAGE_STAT_NAMES if not _is_locked(stat_configs, name)]
    base_stats = _base_stats(stat_configs)

    def rounded_ar(stats: CharacterStats, ignore_requirements: bool = False) -> int:
        result = calculate_weapon_ar(data, weapon_name, affinity, upgrade_level, stats,
                                     two_handing=two_handing,
                                     ignore_requirements=ignore_requirements, cache=cache)
        return result.rounded if result is not None else 0

    if not unlocked:
        return OptimalStats(stats=base_stats, damage=rounded_ar(base_stats))

    weapon = data.weapons.get(weapon_name)
    if weapon is None:
        return OptimalStats(stats=base_stats, damage=0, requirements_met=False)

    start_values = {}
    for name in unlocked:
        requirement = weapon.requirement(Stat(name))
        if name == Stat.STRENGTH.value and two_handing:
            requirement = math.ceil(requirement / TWO_HAND_STRENGTH_FACTOR)
        if base_stats.get(name) < requirement <= _max_for(stat_configs, name):
            start_values[name] = requirement
    start_stats = base_stats.with_values(**start_values)

    base_sum = sum(base_stats.get(name) for name in unlocked)
    start_sum = sum(start_stats.get(name) for name in unlocked)

    def points_to_max(stats: CharacterStats) -> int:
        return sum(_max_for(stat_configs, name) - stats.get(name) for name in unlocked)

    solver_start = start_stats
    requirements_exceed_budget = False
    if points_budget is not None:
        locked_cost = sum(base_stats.get(name) for name in DAMAGE_STAT_NAMES if name not in unlocked)
        effective_budget = points_budget - locked_cost
        if start_sum > effective_budget:
            requirements_exceed_budget = True
            solver_start = base_stats
            budget = max(0, min(points_to_max(base_stats), effective_budget - base_sum))
        else:
            budget = max(0, min(points_to_max(start_stats), effective_budget - start_sum))
    else:
        budget = points_to_max(start_stats)

    if budget <= 0:
        return OptimalStats(stats=solver_start, damage=rounded_ar(solver_start),
                            requirements_met=not requirements_exceed_budget)

    affinity_data = weapon.affinities.get(affinity)
    if affinity_data is None:
        return OptimalStats(stats=solver_start, damage=0, requirements_met=False)

    is_catalyst = affinity_data.is_catalyst
    stat_breakpoints = extract_stat_breakpoints(data, affinity_data, unlocked, is_catalyst)
    mode = optimization_mode or (MODE_SP if is_catalyst else MODE_AR)

    objective = create_objective(mode, ObjectiveContext(
        precomputed=data,
        weapon_name=weapon_name,
        affinity=affinity,
        upgrade_level=upgrade_level,
        category_name=WEAPON_CLASS_MAP.get(weapon.wep_type, ''),
        two_handing=two_handing,
        aow_data=aow_data,
        aow_name=aow_name,
        ignore_requirements=requirements_exceed_budget,
        cache=cache,
    ))

    logger.debug("Optimizing %s (%s +%d) in %s mode: %d points over %s",
                 weapon_name, affinity, upgrade_level, mode, budget, unlocked)
    result = solve(solver_start, unlocked, budget, stat_configs, objective,
                   SolverOptions(strategy=strategy, stat_breakpoints=stat_breakpoints))

    if requirements_exceed_budget:
        return OptimalStats(stats=result.stats, damage=rounded_ar(result.stats), requirements_met=False)
    return result
