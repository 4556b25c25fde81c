"""
Ash of War damage formulas

Pure functions used by the skill calculator. Kept separate so each
formula can be tested against known in-game values on its own.

Motion attacks:  damage = (weapon AR for the type + stat point bonus) * motion value
Bullet attacks:  damage = flat * (1 + 3 * PWU) * (1 + sum(scaling% / 100 * saturation))
"""

import math
from typing import Dict, Optional

from models import CurveDefinition, Stat
from curves import CurveCache, evaluate, get_stat_saturation
from ar_calculator import DamageTypeResult
from aow_models import AowStatPointBonus


# =============================================================================
# PWU (percent weapon upgrade)
# =============================================================================

def compute_pwu(upgrade_level: int, max_upgrade_level: int) -> float:
    """Upgrade progress in 0..1 (0 for weapons that cannot be upgraded)."""
    if max_upgrade_level <= 0:
        return 0.0
    return min(max(upgrade_level / max_upgrade_level, 0.0), 1.0)


def compute_pwu_multiplier(upgrade_level: int, max_upgrade_level: int) -> float:
    """1.0 at +0 up to 4.0 at max upgrade."""
    return 1 + 3 * compute_pwu(upgrade_level, max_upgrade_level)


# =============================================================================
# Stat scaling
# =============================================================================

def compute_stat_saturation(curve: Optional[CurveDefinition], stat_level: float) -> float:
    return evaluate(curve, stat_level)


def get_stat_saturation_from_curves(curves: Dict[int, CurveDefinition], curve_id: int,
                                    stat_level: float, cache: Optional[CurveCache] = None) -> float:
    return get_stat_saturation(curves, curve_id, stat_level, cache)


def compute_scaling_contribution(scaling_percent: float, saturation: float) -> float:
    return (scaling_percent / 100) * saturation


def compute_scaling_with_reinforce(overwrite_value: float, reinforce_rate: float) -> float:
    return overwrite_value * reinforce_rate


# =============================================================================
# Damage
# =============================================================================

def compute_bullet_damage(flat_damage: float, pwu_multiplier: float, total_scaling: float) -> float:
    if flat_damage == 0:
        return 0.0
    return flat_damage * pwu_multiplier * (1 + total_scaling)


def compute_bullet_damage_no_scaling(flat_damage: float, pwu_multiplier: float) -> float:
    if flat_damage == 0:
        return 0.0
    return flat_damage * pwu_multiplier


def compute_motion_damage(weapon_total: float, motion_value: float) -> float:
    if motion_value == 0:
        return 0.0
    return weapon_total * motion_value


def compute_stat_point_bonus(base: float, saturation: float, bonus_points: float) -> float:
    """Extra AR from buff stat points: base * saturation * points / 100."""
    if base == 0 or saturation == 0 or bonus_points == 0:
        return 0.0
    return base * saturation * (bonus_points / 100)


def compute_total_stat_point_bonus(damage_type: DamageTypeResult,
                                   stat_bonus: Optional[AowStatPointBonus]) -> float:
    """
    Stat point bonus for one damage channel of the weapon's AR.

    Only stats that actually scale the channel (saturation > 0) count.
    """
    if stat_bonus is None or damage_type.base == 0:
        return 0.0

    bonus = 0.0
    for stat in Stat:
        points = stat_bonus.get(stat)
        saturation = damage_type.per_stat[stat].saturation
        if points > 0 and saturation > 0:
            bonus += compute_stat_point_bonus(damage_type.base, saturation, points)
    return bonus


# =============================================================================
# Guard, stamina, poise
# =============================================================================

def compute_shield_chip(guard_cut_cancel_rate: float) -> float:
    """Chip multiplier change; positive rates reduce chip damage."""
    if guard_cut_cancel_rate == 0:
        return 0.0
    return 1 - (1 + guard_cut_cancel_rate / 100)


def compute_stamina_damage(weapon_base_stamina: float, weapon_stamina_rate: float,
                           motion_stamina: float, flat_stamina: float) -> float:
    return weapon_base_stamina * weapon_stamina_rate * motion_stamina + flat_stamina


def compute_poise_damage(weapon_base_poise: float, weapon_poise_rate: float,
                         motion_poise: float, flat_poise: float) -> float:
    return weapon_base_poise * weapon_poise_rate * motion_poise + flat_poise


# =============================================================================
# Rounding
# =============================================================================

def _round_to(value: float, digits: int) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def round_to_2_decimals(value: float) -> float:
    return _round_to(value, 2)


def round_to_3_decimals(value: float) -> float:
    return _round_to(value, 3)


def round_to_4_decimals(value: float) -> float:
    return _round_to(value, 4)
