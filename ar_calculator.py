"""
Attack Rating Engine

Computes a weapon's Attack Rating for a character:

    per damage type:  total = base + sum(base * saturation(stat) * scaling / 100)
    status effects:   total = base + base * arcane_scaling / 100 * saturation(ARC)
    catalysts:        spell power = 100 + sum(100 * scaling / 100 * saturation)

Unmet requirements penalise only the channels scaled by the missing stat:
a damage type keeps 60% of its base and loses all scaling, a status
effect with arcane scaling keeps 60% of its total, spell power drops to 60.

Also computes guard (block) stats and wraps the engine for the optimizer.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from models import (
    DamageType, Stat, StatusEffect, PlayerStats, CalculatorOptions, CharacterStats,
    PrecomputedData, CurveDefinition, BaseGuardStats, GuardResistance, ReinforceRates,
)
from curves import CurveCache, get_stat_saturation
from scaling import (
    ResolvedWeapon, ResolvedDamageType, ResolvedStatusEffect, ResolvedSpellScaling,
    StatScalingResult, calculate_stat_scaling, compute_effective_stats,
    get_reinforce_rates, resolve_weapon_at_level,
)


REQUIREMENT_PENALTY = 0.6   # Share of base kept when requirements are not met
SPELL_SCALING_BASE = 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


# =============================================================================
# Result types
# =============================================================================

def _empty_per_stat() -> Dict[Stat, StatScalingResult]:
    return {stat: StatScalingResult() for stat in Stat}


@dataclass
class DamageTypeResult:
    base: float = 0.0
    scaling: float = 0.0
    total: float = 0.0
    rounded: int = 0
    per_stat: Dict[Stat, StatScalingResult] = field(default_factory=_empty_per_stat)
    display_scaling: Dict[Stat, float] = field(default_factory=dict)
    requirements_met: bool = True


@dataclass
class StatusEffectResult:
    base: float = 0.0
    scaling: float = 0.0
    total: float = 0.0
    rounded: int = 0


@dataclass
class SpellScalingResult:
    base: float
    scaling: float
    total: float
    rounded: int
    per_stat: Dict[Stat, StatScalingResult]
    requirements_met: bool = True


@dataclass
class ARResult:
    """Complete AR breakdown for one weapon, level and stat line."""
    damage: Dict[DamageType, DamageTypeResult]
    total: float
    rounded: int
    status_effects: Dict[StatusEffect, StatusEffectResult]
    sorcery_scaling: Optional[SpellScalingResult]
    incantation_scaling: Optional[SpellScalingResult]
    effective_stats: PlayerStats
    requirements_met: bool

    def get(self, damage_type: DamageType) -> DamageTypeResult:
        return self.damage[damage_type]

    def status(self, status_effect: StatusEffect) -> StatusEffectResult:
        return self.status_effects[status_effect]

    @property
    def spell_scaling_total(self) -> float:
        """Best of sorcery and incantation scaling (0 for non-catalysts)."""
        totals = [s.total for s in (self.sorcery_scaling, self.incantation_scaling) if s is not None]
        return max(totals) if totals else 0.0


@dataclass
class GuardResult:
    negation: Dict[DamageType, float]
    guard_boost: int
    resistance: GuardResistance


# =============================================================================
# Requirement checks
# =============================================================================

def meets_requirements(effective_stats: PlayerStats, requirements: Dict[Stat, int]) -> bool:
    """True if every stat meets its requirement."""
    return all(effective_stats.get(stat) >= requirements.get(stat, 0) for stat in Stat)


def _scaled_stats_meet_requirements(scaling: Dict[Stat, Optional[object]],
                                    effective_stats: PlayerStats,
                                    requirements: Dict[Stat, int]) -> bool:
    for stat in Stat:
        if scaling.get(stat) is not None and effective_stats.get(stat) < requirements.get(stat, 0):
            return False
    return True


# =============================================================================
# Channel calculations
# =============================================================================

def calculate_damage_type(curves: Dict[int, CurveDefinition],
                          damage_type: Optional[ResolvedDamageType],
                          effective_stats: PlayerStats,
                          requirements: Dict[Stat, int],
                          ignore_requirements: bool,
                          display_scaling: Dict[Stat, float],
                          cache: Optional[CurveCache] = None) -> DamageTypeResult:
    """
    AR of one damage channel.

    Per-stat contributions always show the potential value; the penalty is
    applied to the channel's scaling only.
    """
    if damage_type is None:
        return DamageTypeResult(display_scaling=dict(display_scaling))

    base = damage_type.base
    per_stat = {
        stat: calculate_stat_scaling(curves, base, damage_type.get_scaling(stat),
                                     effective_stats.get(stat), cache)
        for stat in Stat
    }
    scaling = sum(result.scaling for result in per_stat.values())

    requirements_met = ignore_requirements or _scaled_stats_meet_requirements(
        damage_type.scaling, effective_stats, requirements)
    if not requirements_met:
        scaling = base * (REQUIREMENT_PENALTY - 1)

    total = base + scaling
    return DamageTypeResult(
        base=base,
        scaling=scaling,
        total=total,
        rounded=round_half_up(total),
        per_stat=per_stat,
        display_scaling=dict(display_scaling),
        requirements_met=requirements_met,
    )


def calculate_status_effect(curves: Dict[int, CurveDefinition],
                            status_effect: Optional[ResolvedStatusEffect],
                            effective_stats: PlayerStats,
                            arcane_requirement: int,
                            ignore_requirements: bool,
                            cache: Optional[CurveCache] = None) -> StatusEffectResult:
    """Buildup of one status effect. The reported base is never penalised."""
    if status_effect is None:
        return StatusEffectResult()

    base = status_effect.base
    arcane_scaling = status_effect.arcane_scaling

    scaling = 0.0
    if arcane_scaling is not None:
        saturation = get_stat_saturation(curves, arcane_scaling.curve_id, effective_stats.arcane, cache)
        scaling = base * (arcane_scaling.value / 100) * saturation

    meets_requirement = (ignore_requirements or arcane_scaling is None
                         or effective_stats.arcane >= arcane_requirement)

    total = base + scaling
    if not meets_requirement:
        total *= REQUIREMENT_PENALTY

    return StatusEffectResult(base=base, scaling=scaling, total=total, rounded=round_half_up(total))


def calculate_spell_scaling(curves: Dict[int, CurveDefinition],
                            spell_scaling: Optional[ResolvedSpellScaling],
                            effective_stats: PlayerStats,
                            requirements: Dict[Stat, int],
                            ignore_requirements: bool,
                            cache: Optional[CurveCache] = None) -> Optional[SpellScalingResult]:
    """Catalyst spell power. None for weapons that are not catalysts."""
    if spell_scaling is None:
        return None

    per_stat = {
        stat: calculate_stat_scaling(curves, SPELL_SCALING_BASE, spell_scaling.get_scaling(stat),
                                     effective_stats.get(stat), cache)
        for stat in Stat
    }

    requirements_met = ignore_requirements or _scaled_stats_meet_requirements(
        spell_scaling.scaling, effective_stats, requirements)

    if not requirements_met:
        base = SPELL_SCALING_BASE * REQUIREMENT_PENALTY
        return SpellScalingResult(
            base=base,
            scaling=0.0,
            total=base,
            rounded=math.trunc(base),
            per_stat={
                stat: StatScalingResult(raw_scaling=result.raw_scaling)
                for stat, result in per_stat.items()
            },
            requirements_met=False,
        )

    scaling = sum(result.scaling for result in per_stat.values())
    total = SPELL_SCALING_BASE + scaling
    return SpellScalingResult(
        base=SPELL_SCALING_BASE,
        scaling=scaling,
        total=total,
        rounded=math.trunc(total),
        per_stat=per_stat,
    )


# =============================================================================
# AR
# =============================================================================

def calculate_ar(data: PrecomputedData, weapon: ResolvedWeapon, stats: PlayerStats,
                 options: Optional[CalculatorOptions] = None,
                 cache: Optional[CurveCache] = None) -> ARResult:
    """
    Calculate AR for an already resolved weapon.

    Args:
        data: Precomputed data (for the curves)
        weapon: Weapon resolved at its upgrade level
        stats: Raw player stats
        options: Two-handing / ignore-requirements flags
        cache: Optional curve cache

    Returns:
        ARResult
    """
    if options is None:
        options = CalculatorOptions()

    effective_stats = compute_effective_stats(stats, options.two_handing, weapon.wep_type,
                                              weapon.is_dual_blade)
    requirements_met = options.ignore_requirements or meets_requirements(effective_stats,
                                                                         weapon.requirements)

    damage = {
        dt: calculate_damage_type(data.curves, weapon.get_damage(dt), effective_stats,
                                  weapon.requirements, options.ignore_requirements,
                                  weapon.weapon_scaling, cache)
        for dt in DamageType
    }
    total = sum(result.total for result in damage.values())

    arcane_requirement = weapon.requirement(Stat.ARCANE)
    status_effects = {
        status: calculate_status_effect(data.curves, weapon.status_effects.get(status),
                                        effective_stats, arcane_requirement,
                                        options.ignore_requirements, cache)
        for status in StatusEffect
    }

    return ARResult(
        damage=damage,
        total=total,
        rounded=round_half_up(total),
        status_effects=status_effects,
        sorcery_scaling=calculate_spell_scaling(data.curves, weapon.sorcery_scaling, effective_stats,
                                                weapon.requirements, options.ignore_requirements, cache),
        incantation_scaling=calculate_spell_scaling(data.curves, weapon.incantation_scaling,
                                                    effective_stats, weapon.requirements,
                                                    options.ignore_requirements, cache),
        effective_stats=effective_stats,
        requirements_met=requirements_met,
    )


def calculate_ar_v2(data: PrecomputedData, weapon_name: str, affinity: str, upgrade_level: int,
                    stats: PlayerStats, options: Optional[CalculatorOptions] = None,
                    cache: Optional[CurveCache] = None) -> Optional[ARResult]:
    """
    Resolve a weapon and calculate its AR in one call.

    Returns:
        ARResult, or None if the weapon, affinity or reinforce row is missing
        or the upgrade level is out of range
    """
    weapon = resolve_weapon_at_level(data, weapon_name, affinity, upgrade_level)
    if weapon is None:
        return None
    return calculate_ar(data, weapon, stats, options, cache)


def calculate_weapon_ar(data: PrecomputedData, weapon_name: str, affinity: str, upgrade_level: int,
                        stats: CharacterStats, two_handing: bool = False,
                        ignore_requirements: bool = False,
                        cache: Optional[CurveCache] = None) -> Optional[ARResult]:
    """Optimizer-facing wrapper taking a full CharacterStats."""
    return calculate_ar_v2(
        data, weapon_name, affinity, upgrade_level,
        stats.to_player_stats(),
        CalculatorOptions(two_handing=two_handing, ignore_requirements=ignore_requirements),
        cache,
    )


# =============================================================================
# Guard
# =============================================================================

def calculate_guard_stats(guard_stats: BaseGuardStats, guard_resistance: GuardResistance,
                          rates: ReinforceRates) -> GuardResult:
    """Negation is base * rate capped at 100; guard boost is truncated."""
    return GuardResult(
        negation={
            dt: min(guard_stats.cut.get(dt, 0.0) * rates.guard_cut_rates.get(dt, 1.0), 100)
            for dt in DamageType
        },
        guard_boost=math.trunc(guard_stats.guard_boost * rates.stamina_guard_def_rate),
        resistance=guard_resistance,
    )


def calculate_guard_stats_v2(data: PrecomputedData, weapon_name: str, affinity: str,
                             upgrade_level: int) -> Optional[GuardResult]:
    weapon = data.weapons.get(weapon_name)
    if weapon is None:
        return None
    affinity_data = weapon.affinities.get(affinity)
    if affinity_data is None:
        return None
    rates = get_reinforce_rates(data, affinity_data.reinforce_type_id, upgrade_level)
    if rates is None:
        return None
    return calculate_guard_stats(weapon.guard_stats, weapon.guard_resistance, rates)


# =============================================================================
# Lookup helpers
# =============================================================================

def get_weapon_names(data: PrecomputedData) -> List[str]:
    return sorted(data.weapons)


def get_weapon_affinities(data: PrecomputedData, weapon_name: str) -> List[str]:
    weapon = data.weapons.get(weapon_name)
    if weapon is None:
        return []
    return list(weapon.affinities)


def get_max_upgrade_level(data: PrecomputedData, weapon_name: str) -> int:
    """Max upgrade level of a weapon, 0 if unknown."""
    weapon = data.weapons.get(weapon_name)
    if weapon is None:
        return 0
    return weapon.max_upgrade_level


def has_weapon_affinity(data: PrecomputedData, weapon_name: str, affinity: str) -> bool:
    weapon = data.weapons.get(weapon_name)
    return weapon is not None and affinity in weapon.affinities


# =============================================================================
# Calculator object
# =============================================================================

class ARCalculator:
    """
    Binds a data bundle to a curve cache.

    Swap the cache (e.g. for a NullCurveCache) to change memoization
    without touching results.
    """

    def __init__(self, data: PrecomputedData, cache: Optional[CurveCache] = None):
        self.data = data
        self.cache = cache if cache is not None else CurveCache()

    def set_cache(self, cache: CurveCache):
        self.cache = cache

    def calculate(self, weapon_name: str, affinity: str, upgrade_level: int,
                  stats: PlayerStats, options: Optional[CalculatorOptions] = None) -> Optional[ARResult]:
        return calculate_ar_v2(self.data, weapon_name, affinity, upgrade_level, stats, options, self.cache)

    def calculate_for_character(self, weapon_name: str, affinity: str, upgrade_level: int,
                                stats: CharacterStats, two_handing: bool = False,
                                ignore_requirements: bool = False) -> Optional[ARResult]:
        return calculate_weapon_ar(self.data, weapon_name, affinity, upgrade_level, stats,
                                   two_handing, ignore_requirements, self.cache)

    def guard(self, weapon_name: str, affinity: str, upgrade_level: int) -> Optional[GuardResult]:
        return calculate_guard_stats_v2(self.data, weapon_name, affinity, upgrade_level)

    def resolve(self, weapon_name: str, affinity: str, upgrade_level: int) -> Optional[ResolvedWeapon]:
        return resolve_weapon_at_level(self.data, weapon_name, affinity, upgrade_level)
