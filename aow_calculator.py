"""
Ash of War Damage Calculator

Calculates the damage of every hit of a skill on a given weapon:

- Motion hits scale the weapon's per-type AR by the hit's motion value
- Bullet hits deal flat damage scaled by upgrade level (PWU) and by stats
  through AttackElementCorrect overrides or the weapon's own scaling
- Buff skills add stat points to the weapon's scaling before motion values

The calculator never raises for bad lookups; it returns a result with
an error message, no attacks and unavailable requirements instead.
"""

import logging
import re
from typing import Dict, List, Optional, Set

from models import (
    DamageType, Stat, PlayerStats, PrecomputedData, CalculatorOptions, ReinforceRates,
    WeaponEntry, WEAPON_CLASS_MAP, Unavailable, MaybeValue,
)
from curves import CurveCache
from scaling import ResolvedWeapon, compute_effective_stats, resolve_weapon_at_level
from ar_calculator import ARResult, calculate_ar
from aow_models import (
    PrecomputedAowData, PrecomputedAowAttack, AttackElementCorrectEntry, FinalDamageRateEntry,
    AowCalculatorInput, AowCalculatorResult, AowAttackResult, no_attack_data_row,
    ATTACK_ATTRIBUTE_MAP, ATK_ATTRIBUTE_WEAPON_PRIMARY, ATK_ATTRIBUTE_WEAPON_FLAGS,
    USE_WEAPON_SCALING, NO_SKILL_ID, GEM_MOUNT_TYPE_ASHES,
)
from aow_formulas import (
    compute_pwu_multiplier, compute_scaling_contribution, compute_scaling_with_reinforce,
    compute_bullet_damage, compute_bullet_damage_no_scaling, compute_motion_damage,
    compute_total_stat_point_bonus, compute_shield_chip, compute_stamina_damage,
    compute_poise_damage, get_stat_saturation_from_curves,
    round_to_2_decimals, round_to_3_decimals, round_to_4_decimals,
)


logger = logging.getLogger(__name__)

LACKING_FP_MARKER = 'lacking fp'

# saWeaponAtkRate is 1 for every reinforce row
WEAPON_POISE_RATE = 1.0

_CLASS_PREFIX_RE = re.compile(r'^\[[^\]]+\]\s*')
_HIT_NUMBER_RE = re.compile(r'\s*#\d+$')
_VARIANT_CLASS_RE = re.compile(r'^Var\d+$', re.IGNORECASE)


# =============================================================================
# Attack attribute
# =============================================================================

def get_attack_attribute_name(atk_attribute: int, weapon: WeaponEntry) -> str:
    """
    Physical damage subtype of a hit.

    252 defers to the weapon's atkAttribute; 253 to the first of the
    weapon's attack-type flags (normal, slash, blow, thrust).
    """
    if atk_attribute == ATK_ATTRIBUTE_WEAPON_PRIMARY:
        return ATTACK_ATTRIBUTE_MAP.get(weapon.atk_attribute, 'Standard')

    if atk_attribute == ATK_ATTRIBUTE_WEAPON_FLAGS:
        if weapon.is_normal_attack_type:
            return 'Standard'
        if weapon.is_slash_attack_type:
            return 'Slash'
        if weapon.is_blow_attack_type:
            return 'Strike'
        if weapon.is_thrust_attack_type:
            return 'Pierce'
        return 'Standard'

    return ATTACK_ATTRIBUTE_MAP.get(atk_attribute, '-')


# =============================================================================
# Bullet damage
# =============================================================================

def bullet_has_weapon_scaling(attack: PrecomputedAowAttack, weapon: Optional[ResolvedWeapon]) -> bool:
    """True if the weapon scales any damage type the bullet deals."""
    if weapon is None:
        return False
    for dt in DamageType:
        damage = weapon.get_damage(dt)
        if attack.flat[dt] > 0 and damage is not None and damage.has_scaling():
            return True
    return False


def calculate_bullet_damage(flat_damage: float,
                            weapon: Optional[ResolvedWeapon],
                            attack_element_correct: Optional[AttackElementCorrectEntry],
                            curves: Dict,
                            effective_stats: PlayerStats,
                            upgrade_level: int,
                            max_upgrade_level: int,
                            damage_type: DamageType,
                            rates: Optional[ReinforceRates],
                            use_weapon_scaling: bool = False,
                            cache: Optional[CurveCache] = None) -> float:
    """
    Flat bullet damage of one type with upgrade and stat scaling.

    Args:
        flat_damage: Flat damage from the attack param
        weapon: Resolved weapon (source of curves and fallback scaling)
        attack_element_correct: Override table, if the attack has one
        curves: Curve definitions
        effective_stats: Stats after the two-handing bonus
        upgrade_level: Weapon upgrade level
        max_upgrade_level: Weapon max upgrade level
        damage_type: Damage type being computed
        rates: Reinforce row for the level (override percents use its stat rates)
        use_weapon_scaling: Scale with the weapon's own values (id -1)
        cache: Optional curve cache

    Returns:
        Bullet damage before rounding
    """
    if flat_damage == 0:
        return 0.0

    pwu_multiplier = compute_pwu_multiplier(upgrade_level, max_upgrade_level)
    damage_data = weapon.get_damage(damage_type) if weapon is not None else None

    if attack_element_correct is None and not use_weapon_scaling:
        return compute_bullet_damage_no_scaling(flat_damage, pwu_multiplier)

    total_scaling = 0.0
    for stat in Stat:
        weapon_scaling = damage_data.get_scaling(stat) if damage_data is not None else None

        if attack_element_correct is not None:
            if not attack_element_correct.is_enabled(stat, damage_type):
                continue
            override = attack_element_correct.override(stat, damage_type)
            if override >= 0:
                rate = rates.scaling_rates.get(stat, 1.0) if rates is not None else 1.0
                scaling_value = compute_scaling_with_reinforce(override, rate)
            else:
                scaling_value = weapon_scaling.value if weapon_scaling is not None else 0.0
        else:
            if weapon_scaling is None or weapon_scaling.value <= 0:
                continue
            scaling_value = weapon_scaling.value

        if scaling_value == 0:
            continue

        curve_id = weapon_scaling.curve_id if weapon_scaling is not None else 0
        saturation = get_stat_saturation_from_curves(curves, curve_id, effective_stats.get(stat), cache)
        total_scaling += compute_scaling_contribution(scaling_value, saturation)

    return compute_bullet_damage(flat_damage, pwu_multiplier, total_scaling)


# =============================================================================
# Compatibility
# =============================================================================

def validate_aow_affinity(aow_data: PrecomputedAowData, gem_id: int, affinity: str) -> bool:
    gem = aow_data.equip_param_gem.get(gem_id)
    if gem is None:
        return False
    field_name = aow_data.affinity_config_field_map.get(affinity)
    if field_name is None:
        logger.warning("No mapping found for affinity '%s'", affinity)
        return False
    return gem.flag(field_name)


def validate_aow_weapon_type(aow_data: PrecomputedAowData, gem_id: int, wep_type: int) -> bool:
    gem = aow_data.equip_param_gem.get(gem_id)
    if gem is None:
        return False
    class_name = WEAPON_CLASS_MAP.get(wep_type)
    if class_name is None:
        return False
    field_name = aow_data.weapon_class_mount_field_map.get(class_name)
    if field_name is None:
        logger.warning("No mapping found for weapon class '%s'", class_name)
        return False
    return gem.flag(field_name)


# =============================================================================
# Attack selection
# =============================================================================

def _base_attack_name(name: str) -> str:
    return _HIT_NUMBER_RE.sub('', _CLASS_PREFIX_RE.sub('', name)).strip().lower()


def _explicit_base_names(attacks: List[PrecomputedAowAttack], weapon_class: str) -> Set[str]:
    wanted = weapon_class.lower()
    return {
        _base_attack_name(attack.name)
        for attack in attacks
        if attack.weapon_class and attack.weapon_class.lower() == wanted
    }


def select_attacks(aow_data: PrecomputedAowData, aow_name: str, attacks: List[PrecomputedAowAttack],
                   weapon_class: str, show_lacking_fp: bool = False) -> List[PrecomputedAowAttack]:
    """
    Hits of a skill that apply to a weapon class.

    - Generic hits are dropped when a class-specific hit replaces them
    - [VarN] hits apply only to classes without class-specific hits
    - [Class] hits apply only to that class
    """
    wanted = weapon_class.lower()
    explicit_names = _explicit_base_names(attacks, weapon_class)
    explicit_classes = aow_data.aow_explicit_weapon_classes.get(aow_name, [])
    class_has_explicit = any(cls.lower() == wanted for cls in explicit_classes)

    selected = []
    for attack in attacks:
        if not show_lacking_fp and LACKING_FP_MARKER in attack.name.lower():
            continue

        if attack.weapon_class is None:
            generic_name = _HIT_NUMBER_RE.sub('', attack.name).strip().lower()
            if generic_name in explicit_names:
                continue
        elif _VARIANT_CLASS_RE.match(attack.weapon_class):
            if class_has_explicit:
                continue
        elif attack.weapon_class.lower() != wanted:
            continue

        selected.append(attack)
    return selected


def find_sword_arts_id(aow_data: PrecomputedAowData, aow_name: str) -> Optional[int]:
    """Equippable skills by name first, then every known skill name."""
    sword_arts_id = aow_data.sword_arts_by_name.get(aow_name)
    if sword_arts_id is not None:
        return sword_arts_id
    for skill_id, name in aow_data.skill_names.items():
        if name == aow_name:
            return skill_id
    return None


# =============================================================================
# Main calculator
# =============================================================================

def _error_result(aow_name: str, sword_arts_id: int, error: str) -> AowCalculatorResult:
    return AowCalculatorResult(aow_name=aow_name, sword_arts_id=sword_arts_id, error=error)


def _pvp_factors(aow_data: PrecomputedAowData, attack: PrecomputedAowAttack):
    """(damage rates by type, stamina rate, poise rate) for PvP mode."""
    entry: Optional[FinalDamageRateEntry] = aow_data.final_damage_rates.get(attack.final_damage_rate_id)
    if entry is None:
        return {dt: attack.pvp_multiplier for dt in DamageType}, 1.0, 1.0
    return dict(entry.rates), entry.stamina_rate, entry.sa_rate


def calculate_attack(aow_data: PrecomputedAowData,
                     weapon_data: PrecomputedData,
                     weapon: WeaponEntry,
                     resolved: ResolvedWeapon,
                     attack: PrecomputedAowAttack,
                     weapon_ar: ARResult,
                     stat_bonus_ar: Dict[DamageType, float],
                     effective_stats: PlayerStats,
                     input: AowCalculatorInput,
                     cache: Optional[CurveCache] = None) -> AowAttackResult:
    """Damage of a single hit given the weapon AR it should use."""
    aec = None
    if attack.overwrite_attack_element_correct_id >= 0:
        aec = aow_data.attack_element_correct.get(attack.overwrite_attack_element_correct_id)
    use_weapon_scaling = attack.overwrite_attack_element_correct_id == USE_WEAPON_SCALING

    has_bullet_scaling = attack.is_add_base_atk and (
        aec is not None or (use_weapon_scaling and bullet_has_weapon_scaling(attack, resolved))
    )

    if input.pvp_mode:
        damage_rates, stamina_rate, poise_rate = _pvp_factors(aow_data, attack)
    else:
        damage_rates, stamina_rate, poise_rate = {dt: 1.0 for dt in DamageType}, 1.0, 1.0

    damage: Dict[DamageType, MaybeValue] = {}
    motion_by_type: Dict[DamageType, float] = {}
    bullet_by_type: Dict[DamageType, float] = {}

    for dt in DamageType:
        motion_value = attack.motion[dt]
        flat_value = attack.flat[dt]
        motion_part = 0.0
        bullet_part = 0.0

        if motion_value > 0:
            type_ar = weapon_ar.get(dt).total + stat_bonus_ar[dt]
            motion_part = compute_motion_damage(type_ar, motion_value)
        if flat_value > 0 and attack.is_add_base_atk:
            bullet_part = calculate_bullet_damage(
                flat_value, resolved, aec, weapon_data.curves, effective_stats,
                input.upgrade_level, weapon.max_upgrade_level, dt, resolved.rates,
                use_weapon_scaling, cache,
            )

        motion_part *= damage_rates[dt]
        bullet_part *= damage_rates[dt]
        motion_by_type[dt] = motion_part
        bullet_by_type[dt] = bullet_part

        value = motion_part + bullet_part
        if (motion_value > 0 or flat_value > 0) and value > 0 and weapon_ar.get(dt).requirements_met:
            damage[dt] = round_to_3_decimals(value)
        else:
            damage[dt] = Unavailable

    stamina: MaybeValue = Unavailable
    if attack.motion_stamina > 0 or attack.flat_stamina > 0:
        value = compute_stamina_damage(weapon.attack_base_stamina, resolved.rates.stamina_atk_rate,
                                       attack.motion_stamina, attack.flat_stamina) * stamina_rate
        if value > 0:
            stamina = round_to_3_decimals(value)

    poise: MaybeValue = Unavailable
    if attack.motion_poise > 0 or attack.flat_poise > 0:
        value = compute_poise_damage(weapon.sa_weapon_damage, WEAPON_POISE_RATE,
                                     attack.motion_poise, attack.flat_poise) * poise_rate
        if value > 0:
            poise = round_to_2_decimals(value)

    shield_chip: MaybeValue = Unavailable
    if attack.guard_cut_cancel_rate != 0:
        shield_chip = round_to_4_decimals(compute_shield_chip(attack.guard_cut_cancel_rate))

    return AowAttackResult(
        name=attack.name,
        atk_id=attack.atk_id,
        damage=damage,
        stamina=stamina,
        poise=poise,
        attack_attribute=get_attack_attribute_name(attack.atk_attribute, weapon),
        pvp_multiplier=attack.pvp_multiplier if input.pvp_mode else Unavailable,
        shield_chip=shield_chip,
        has_stat_scaling=attack.has_motion_damage() or has_bullet_scaling,
        is_bullet=attack.is_add_base_atk,
        motion_damage=round_to_3_decimals(sum(motion_by_type.values())),
        bullet_damage=round_to_3_decimals(sum(bullet_by_type.values())),
        motion_by_type={dt: round_to_3_decimals(v) for dt, v in motion_by_type.items()},
        bullet_by_type={dt: round_to_3_decimals(v) for dt, v in bullet_by_type.items()},
    )


def calculate_aow_damage(aow_data: PrecomputedAowData, weapon_data: PrecomputedData,
                         input: AowCalculatorInput,
                         cache: Optional[CurveCache] = None) -> AowCalculatorResult:
    """
    Calculate the damage of every applicable hit of a skill.

    Args:
        aow_data: Skill data bundle
        weapon_data: Weapon data bundle
        input: Weapon, stats, options and skill name
        cache: Optional curve cache

    Returns:
        AowCalculatorResult (error set and no attacks on failure)
    """
    aow_name = input.aow_name
    sword_arts_id = find_sword_arts_id(aow_data, aow_name)
    if sword_arts_id is None:
        return _error_result(aow_name, -1, f"AoW not found: {aow_name}")

    sword_art = aow_data.sword_arts.get(sword_arts_id)
    if sword_art is None or not sword_art.attacks:
        return AowCalculatorResult(aow_name=aow_name, sword_arts_id=sword_arts_id,
                                   attacks=[no_attack_data_row()])

    weapon = weapon_data.weapons.get(input.weapon_name)
    if weapon is None:
        return _error_result(aow_name, sword_arts_id, f"Weapon not found: {input.weapon_name}")

    if input.affinity not in weapon.affinities:
        return _error_result(aow_name, sword_arts_id, f"Affinity not found: {input.affinity}")

    stats = PlayerStats(
        strength=input.strength,
        dexterity=input.dexterity,
        intelligence=input.intelligence,
        faith=input.faith,
        arcane=input.arcane,
    )
    effective_stats = compute_effective_stats(stats, input.two_handing, weapon.wep_type, weapon.is_dual_blade)

    resolved = resolve_weapon_at_level(weapon_data, input.weapon_name, input.affinity, input.upgrade_level)
    if resolved is None:
        return _error_result(aow_name, sword_arts_id,
                             f"Failed to resolve weapon at level {input.upgrade_level}")

    weapon_ar = calculate_ar(weapon_data, resolved, stats,
                             CalculatorOptions(input.two_handing, input.ignore_requirements), cache)
    gem_id = aow_data.sword_arts_id_to_gem_id.get(sword_arts_id)
    if gem_id is not None and gem_id in aow_data.equip_param_gem:
        if not validate_aow_affinity(aow_data, gem_id, input.affinity):
            return _error_result(aow_name, sword_arts_id,
                                 f'AoW "{aow_name}" is not compatible with affinity "{input.affinity}"')
        if not validate_aow_weapon_type(aow_data, gem_id, weapon.wep_type):
            return _error_result(aow_name, sword_arts_id,
                                 f'AoW "{aow_name}" is not compatible with weapon type "{weapon.wep_type}"')

    # Hits flagged isDisableBothHandsAtkBonus use the one-handed AR
    weapon_ar_1h = None
    if input.two_handing and any(a.is_disable_both_hands_atk_bonus for a in sword_art.attacks):
        weapon_ar_1h = calculate_ar(weapon_data, resolved, stats,
                                    CalculatorOptions(False, input.ignore_requirements), cache)

    stat_bonus = aow_data.aow_stat_point_bonuses.get(aow_name)
    bonus_ar = {dt: compute_total_stat_point_bonus(weapon_ar.get(dt), stat_bonus) for dt in DamageType}
    bonus_ar_1h = None
    if weapon_ar_1h is not None:
        bonus_ar_1h = {dt: compute_total_stat_point_bonus(weapon_ar_1h.get(dt), stat_bonus)
                       for dt in DamageType}

    attacks = []
    for attack in select_attacks(aow_data, aow_name, sword_art.attacks, input.weapon_class,
                                 input.show_lacking_fp):
        if attack.is_disable_both_hands_atk_bonus and weapon_ar_1h is not None:
            use_ar, use_bonus = weapon_ar_1h, bonus_ar_1h
        else:
            use_ar, use_bonus = weapon_ar, bonus_ar
        attacks.append(calculate_attack(aow_data, weapon_data, weapon, resolved, attack,
                                        use_ar, use_bonus, effective_stats, input, cache))

    requirements: Dict[Stat, MaybeValue] = {
        stat: weapon.requirement(stat) if weapon.requirement(stat) > 0 else Unavailable
        for stat in Stat
    }

    logger.debug("%s on %s: %d hits", aow_name, input.weapon_name, len(attacks))
    return AowCalculatorResult(
        aow_name=aow_name,
        sword_arts_id=sword_arts_id,
        requirements=requirements,
        attacks=attacks,
    )


# =============================================================================
# Lookup helpers
# =============================================================================

def get_available_aow_names(aow_data: PrecomputedAowData, weapon_class: Optional[str] = None,
                            affinity: Optional[str] = None) -> List[str]:
    """
    Mountable Ashes of War, optionally filtered by weapon class and affinity.

    Unknown classes or affinities (bows, catalysts, ...) give an empty list.
    """
    class_field = None
    if weapon_class:
        class_field = aow_data.weapon_class_mount_field_map.get(weapon_class)
        if class_field is None:
            return []

    affinity_field = None
    if affinity:
        affinity_field = aow_data.affinity_config_field_map.get(affinity)
        if affinity_field is None:
            return []

    names = []
    for aow_name, sword_arts_id in aow_data.sword_arts_by_name.items():
        gem_id = aow_data.sword_arts_id_to_gem_id.get(sword_arts_id)
        if gem_id is None:
            continue
        gem = aow_data.equip_param_gem.get(gem_id)
        if gem is None:
            continue
        if class_field and not gem.flag(class_field):
            continue
        if affinity_field and not gem.flag(affinity_field):
            continue
        names.append(aow_name)

    return sorted(names)


def can_weapon_mount_aow(weapon_data: PrecomputedData, weapon_name: str) -> bool:
    weapon = weapon_data.weapons.get(weapon_name)
    return weapon is not None and weapon.gem_mount_type == GEM_MOUNT_TYPE_ASHES


def get_weapon_skill_name(aow_data: PrecomputedAowData, weapon_data: PrecomputedData,
                          weapon_name: str) -> Optional[str]:
    """Built-in skill of a weapon, None for unknown weapons or no skill."""
    weapon = weapon_data.weapons.get(weapon_name)
    if weapon is None:
        return None
    if not weapon.sword_arts_param_id or weapon.sword_arts_param_id == NO_SKILL_ID:
        return None
    return aow_data.skill_names.get(weapon.sword_arts_param_id)


def get_aow_attacks(aow_data: PrecomputedAowData, aow_name: str) -> List[PrecomputedAowAttack]:
    sword_arts_id = aow_data.sword_arts_by_name.get(aow_name)
    if sword_arts_id is None:
        return []
    sword_art = aow_data.sword_arts.get(sword_arts_id)
    return list(sword_art.attacks) if sword_art is not None else []


def get_unique_skill_names(aow_data: PrecomputedAowData) -> List[str]:
    """Skills with no Ash of War item (unique weapon skills), sorted."""
    unique = set()
    for aow_name, sword_arts_id in aow_data.sword_arts_by_name.items():
        if sword_arts_id not in aow_data.sword_arts_id_to_gem_id:
            unique.add(aow_name)
    for skill_id, skill_name in aow_data.skill_names.items():
        if skill_id not in aow_data.sword_arts_id_to_gem_id:
            unique.add(skill_name)
    return sorted(unique)
