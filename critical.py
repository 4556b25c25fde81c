"""
Critical damage (backstabs and ripostes)

critical damage = AR * (critical value / 100) * weapon-class multiplier
"""

from typing import Dict, Optional

from models import WEAPON_CLASS_MAP


BASE_CRITICAL_VALUE = 100

# Multiplier by wepType. None means the class cannot perform critical attacks.
CRITICAL_MULTIPLIERS: Dict[int, Optional[float]] = {
    1: 4.0,     # Dagger
    3: 3.0,     # Straight Sword
    5: 2.5,     # Greatsword
    7: 2.5,     # Colossal Sword
    9: 3.0,     # Curved Sword
    11: 2.5,    # Curved Greatsword
    13: 3.0,    # Katana
    14: 3.0,    # Twinblade
    15: 3.3,    # Thrusting Sword
    16: 2.4,    # Heavy Thrusting Sword
    17: 3.25,   # Axe
    19: 2.5,    # Greataxe
    21: 3.25,   # Hammer
    23: 2.5,    # Great Hammer
    24: 3.25,   # Flail
    25: 2.8,    # Spear
    28: 2.4,    # Great Spear
    29: 2.8,    # Halberd
    31: 2.4,    # Reaper
    35: 3.5,    # Fist
    37: 3.5,    # Claw
    39: None,   # Whip
    41: 2.5,    # Colossal Weapon
    50: None,   # Light Bow
    51: None,   # Bow
    53: None,   # Greatbow
    55: None,   # Crossbow
    56: None,   # Ballista
    57: None,   # Glintstone Staff
    61: None,   # Sacred Seal
    65: 3.0,    # Small Shield
    67: 3.0,    # Medium Shield
    69: 3.0,    # Greatshield
    87: 3.0,    # Torch
    88: 3.5,    # Hand-to-Hand
    89: 3.0,    # Perfume Bottle
    90: 3.0,    # Thrusting Shield
    91: 3.0,    # Throwing Blade
    92: 4.0,    # Backhand Blade
    93: 2.5,    # Light Greatsword
    94: 3.0,    # Great Katana
    95: 3.5,    # Beast Claw
}


def get_critical_value(throw_atk_rate: float) -> float:
    """
    Critical value from EquipParamWeapon.throwAtkRate.

    100 is the baseline; negative rates never lower it.
    """
    return max(BASE_CRITICAL_VALUE, BASE_CRITICAL_VALUE + throw_atk_rate)


def get_critical_multiplier(wep_type: int) -> Optional[float]:
    return CRITICAL_MULTIPLIERS.get(wep_type)


def can_perform_critical_attack(wep_type: int) -> bool:
    return get_critical_multiplier(wep_type) is not None


def calculate_critical_damage(total_ar: float, critical_value: float, wep_type: int) -> Optional[int]:
    """
    Critical hit damage.

    Args:
        total_ar: Weapon AR
        critical_value: Critical value (100 = base)
        wep_type: Weapon type id

    Returns:
        Rounded critical damage, or None if the weapon class cannot crit
    """
    multiplier = get_critical_multiplier(wep_type)
    if multiplier is None:
        return None
    return int(total_ar * (critical_value / 100) * multiplier + 0.5)


def describe_critical(wep_type: int) -> str:
    """Human-readable multiplier, e.g. 'Dagger x4.0' or 'Whip (no criticals)'."""
    name = WEAPON_CLASS_MAP.get(wep_type, 'Unknown')
    multiplier = get_critical_multiplier(wep_type)
    if multiplier is None:
        return f"{name} (no criticals)"
    return f"{name} x{multiplier}"
