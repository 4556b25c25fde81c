"""
Scaling Resolver

Applies a weapon's reinforcement (upgrade) rates to its +0 data and
computes how much each stat contributes to a damage channel:

    value        = base_percent * reinforce_rate   (or the override as-is)
    saturation   = curve(effective stat level) / 100
    contribution = attack_base * saturation * value / 100

Also owns the effective-strength rule for two-handing.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Optional

from models import (
    DamageType, Stat, StatusEffect, PlayerStats, PrecomputedData,
    BaseStatScaling, BaseDamageType, BaseSpellScaling, BaseStatusEffect,
    ReinforceRates, SpEffectEntry, CurveDefinition,
    MAX_EFFECTIVE_STAT, FIST_WEP_TYPE, LIGHT_BOW_WEP_TYPE, BOW_WEP_TYPE,
    GREATBOW_WEP_TYPE, BALLISTA_WEP_TYPE,
)
from curves import CurveCache, get_stat_saturation


ALWAYS_TWO_HANDED_WEP_TYPES = frozenset({
    LIGHT_BOW_WEP_TYPE,
    BOW_WEP_TYPE,
    GREATBOW_WEP_TYPE,
    BALLISTA_WEP_TYPE,
})


# =============================================================================
# Effective strength
# =============================================================================

def is_always_two_handed(wep_type: int) -> bool:
    """Bows, greatbows and ballistae are always held in both hands."""
    return wep_type in ALWAYS_TWO_HANDED_WEP_TYPES


def compute_effective_strength(strength: int, two_handing: bool, wep_type: int,
                               is_dual_blade: bool) -> int:
    """
    Strength used for scaling after the two-handing bonus.

    Paired weapons and fists never get the bonus; always-two-handed
    ranged weapons always do.

    Args:
        strength: Raw strength
        two_handing: Whether the player is two-handing
        wep_type: Weapon type id
        is_dual_blade: Whether the weapon is a paired weapon

    Returns:
        floor(strength * 1.5) capped at 148 when the bonus applies, else strength
    """
    apply_bonus = two_handing
    if is_dual_blade:
        apply_bonus = False
    if wep_type == FIST_WEP_TYPE:
        apply_bonus = False
    if is_always_two_handed(wep_type):
        apply_bonus = True

    if not apply_bonus:
        return strength
    return min(math.floor(strength * 1.5), MAX_EFFECTIVE_STAT)


def compute_effective_stats(stats: PlayerStats, two_handing: bool, wep_type: int,
                            is_dual_blade: bool) -> PlayerStats:
    """Copy of stats with strength replaced by effective strength."""
    return stats.with_stat(
        Stat.STRENGTH,
        compute_effective_strength(stats.strength, two_handing, wep_type, is_dual_blade),
    )


# =============================================================================
# Resolved (per upgrade level) weapon data
# =============================================================================

@dataclass
class ResolvedStatScaling:
    value: float    # Final scaling percent (e.g. 83 for a C)
    curve_id: int


@dataclass
class ResolvedDamageType:
    base: float     # attack_base * attack rate
    scaling: Dict[Stat, Optional[ResolvedStatScaling]] = field(default_factory=dict)

    def get_scaling(self, stat: Stat) -> Optional[ResolvedStatScaling]:
        return self.scaling.get(stat)

    def has_scaling(self) -> bool:
        return any(s is not None and s.value > 0 for s in self.scaling.values())


@dataclass
class ResolvedStatusEffect:
    base: float
    arcane_scaling: Optional[ResolvedStatScaling] = None


@dataclass
class ResolvedSpellScaling:
    scaling: Dict[Stat, Optional[ResolvedStatScaling]] = field(default_factory=dict)

    def get_scaling(self, stat: Stat) -> Optional[ResolvedStatScaling]:
        return self.scaling.get(stat)


@dataclass
class ResolvedWeapon:
    """A weapon + affinity with every upgrade-dependent value applied."""
    id: int
    name: str
    affinity: str
    upgrade_level: int
    damage: Dict[DamageType, Optional[ResolvedDamageType]]
    status_effects: Dict[StatusEffect, Optional[ResolvedStatusEffect]]
    sorcery_scaling: Optional[ResolvedSpellScaling]
    incantation_scaling: Optional[ResolvedSpellScaling]
    requirements: Dict[Stat, int]
    weapon_scaling: Dict[Stat, float]
    is_dual_blade: bool
    wep_type: int
    wep_motion_category: int
    rates: ReinforceRates

    def get_damage(self, damage_type: DamageType) -> Optional[ResolvedDamageType]:
        return self.damage.get(damage_type)

    def requirement(self, stat: Stat) -> int:
        return self.requirements.get(stat, 0)


def apply_scaling_rate(base_scaling: Optional[BaseStatScaling],
                       rate: float) -> Optional[ResolvedStatScaling]:
    """Override values are already final; everything else is scaled by the rate."""
    if base_scaling is None:
        return None
    value = base_scaling.base if base_scaling.is_override else base_scaling.base * rate
    return ResolvedStatScaling(value=value, curve_id=base_scaling.curve_id)


def _apply_stat_rates(scaling: Dict[Stat, Optional[BaseStatScaling]],
                      rates: ReinforceRates) -> Dict[Stat, Optional[ResolvedStatScaling]]:
    return {
        stat: apply_scaling_rate(scaling.get(stat), rates.scaling_rates.get(stat, 1.0))
        for stat in Stat
    }


def apply_damage_rates(base_damage: Optional[BaseDamageType], rates: ReinforceRates,
                       damage_type: DamageType) -> Optional[ResolvedDamageType]:
    if base_damage is None:
        return None
    return ResolvedDamageType(
        base=base_damage.attack_base * rates.attack_rates.get(damage_type, 1.0),
        scaling=_apply_stat_rates(base_damage.scaling, rates),
    )


def apply_spell_scaling_rates(base_scaling: Optional[BaseSpellScaling],
                              rates: ReinforceRates) -> Optional[ResolvedSpellScaling]:
    if base_scaling is None:
        return None
    return ResolvedSpellScaling(scaling=_apply_stat_rates(base_scaling.scaling, rates))


def resolve_status_effect(base_status: Optional[BaseStatusEffect], rates: ReinforceRates,
                          sp_effects: Dict[int, SpEffectEntry]) -> Optional[ResolvedStatusEffect]:
    """
    Look up the buildup value for this upgrade level.

    The SpEffect id is the behaviour id plus the level's offset for the
    effect's slot. Missing rows and non-positive buildup mean no effect.
    """
    if base_status is None:
        return None

    offset = rates.sp_effect_id1 if base_status.sp_effect_slot == 0 else rates.sp_effect_id2
    sp_effect = sp_effects.get(base_status.sp_effect_behavior_id + offset)
    if sp_effect is None:
        return None

    base_value = sp_effect.get(base_status.status_type)
    if base_value <= 0:
        return None

    scaled_arcane = base_status.arcane_scaling * rates.scaling_rates.get(Stat.ARCANE, 1.0)
    arcane_scaling = None
    if scaled_arcane > 0:
        arcane_scaling = ResolvedStatScaling(value=scaled_arcane, curve_id=base_status.curve_id)

    return ResolvedStatusEffect(base=base_value, arcane_scaling=arcane_scaling)


def get_reinforce_rates(data: PrecomputedData, reinforce_type_id: int,
                        upgrade_level: int) -> Optional[ReinforceRates]:
    return data.reinforce_rates.get(reinforce_type_id + upgrade_level)


def resolve_weapon_at_level(data: PrecomputedData, weapon_name: str, affinity: str,
                            upgrade_level: int) -> Optional[ResolvedWeapon]:
    """
    Resolve a weapon + affinity at an upgrade level.

    Args:
        data: Precomputed data bundle
        weapon_name: Weapon name
        affinity: Affinity name ("Standard", "Heavy", ...)
        upgrade_level: 0-25 (0-10 for somber weapons)

    Returns:
        ResolvedWeapon, or None if the weapon, affinity or reinforce row
        is missing or the level is out of range
    """
    weapon = data.weapons.get(weapon_name)
    if weapon is None:
        return None

    affinity_data = weapon.affinities.get(affinity)
    if affinity_data is None:
        return None

    if upgrade_level < 0 or upgrade_level > weapon.max_upgrade_level:
        return None

    rates = get_reinforce_rates(data, affinity_data.reinforce_type_id, upgrade_level)
    if rates is None:
        return None

    weapon_scaling = {
        stat: affinity_data.weapon_scaling.get(stat, 0.0) * rates.scaling_rates.get(stat, 1.0)
        for stat in Stat
    }

    return ResolvedWeapon(
        id=affinity_data.id,
        name=weapon_name,
        affinity=affinity,
        upgrade_level=upgrade_level,
        damage={
            dt: apply_damage_rates(affinity_data.damage.get(dt), rates, dt)
            for dt in DamageType
        },
        status_effects={
            status: resolve_status_effect(affinity_data.status_effects.get(status), rates, data.sp_effects)
            for status in StatusEffect
        },
        sorcery_scaling=apply_spell_scaling_rates(affinity_data.sorcery_scaling, rates),
        incantation_scaling=apply_spell_scaling_rates(affinity_data.incantation_scaling, rates),
        requirements=dict(weapon.requirements),
        weapon_scaling=weapon_scaling,
        is_dual_blade=weapon.is_dual_blade,
        wep_type=weapon.wep_type,
        wep_motion_category=weapon.wep_motion_category,
        rates=rates,
    )


# =============================================================================
# Per-stat contribution
# =============================================================================

@dataclass
class StatScalingResult:
    saturation: float = 0.0   # Curve value as a fraction
    scaling: float = 0.0      # Contribution to the channel
    raw_scaling: float = 0.0  # Scaling percent after the reinforce rate


def calculate_stat_scaling(curves: Dict[int, CurveDefinition], base: float,
                           scaling: Optional[ResolvedStatScaling], stat_level: float,
                           cache: Optional[CurveCache] = None) -> StatScalingResult:
    """Contribution of one stat to a channel with the given base value."""
    if scaling is None:
        return StatScalingResult()

    saturation = get_stat_saturation(curves, scaling.curve_id, stat_level, cache)
    return StatScalingResult(
        saturation=saturation,
        scaling=base * saturation * (scaling.value / 100),
        raw_scaling=scaling.value,
    )


# =============================================================================
# Letter grades
# =============================================================================

SCALING_GRADE_THRESHOLDS = (
    (175, 'S'),
    (140, 'A'),
    (90, 'B'),
    (60, 'C'),
    (25, 'D'),
)


def get_scaling_grade(raw_scaling: float) -> str:
    """Letter grade for a scaling percent: S, A, B, C, D, E, or '-' for none."""
    if raw_scaling == 0:
        return '-'
    for threshold, grade in SCALING_GRADE_THRESHOLDS:
        if raw_scaling >= threshold:
            return grade
    return 'E'
