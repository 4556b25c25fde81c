"""
Enemy Damage Calculator

Damage actually dealt to an enemy after its defense and negation:

    attack   = AR * motion value / 100
    damage   = attack * m(attack / defense)       (piecewise, per damage type)
    final    = damage * (1 - negation / 100)

The physical channel uses the defense/negation matching the attack's
physical subtype (strike, slash, pierce or standard). The displayed
total is rounded up.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from models import DamageType
from ar_calculator import ARResult


PHYSICAL_DEFENSE_TYPES = ('physical', 'strike', 'slash', 'pierce')
ELEMENTAL_DEFENSE_TYPES = ('magic', 'fire', 'lightning', 'holy')
DEFENSE_TYPES = PHYSICAL_DEFENSE_TYPES + ELEMENTAL_DEFENSE_TYPES

# Multiplier bounds
MIN_DEFENSE_MULTIPLIER = 0.1
MAX_DEFENSE_MULTIPLIER = 0.9

DEFAULT_MOTION_VALUE = 100


# =============================================================================
# Enemy data
# =============================================================================

def _zero_by_defense_type() -> Dict[str, float]:
    return {name: 0.0 for name in DEFENSE_TYPES}


@dataclass
class EnemyDefenseData:
    """Flat defense and percent negation keyed by physical/strike/slash/pierce/magic/fire/lightning/holy."""
    defense: Dict[str, float] = field(default_factory=_zero_by_defense_type)
    negation: Dict[str, float] = field(default_factory=_zero_by_defense_type)


@dataclass
class EnemyData:
    id: str
    name: str
    location: str = ''
    is_boss: bool = True
    is_dlc: bool = False
    health: float = 0.0
    defenses: EnemyDefenseData = field(default_factory=EnemyDefenseData)


@dataclass
class PrecomputedEnemyData:
    bosses: Dict[str, EnemyData] = field(default_factory=dict)
    boss_names: List[str] = field(default_factory=list)

    def get(self, name: str) -> Optional[EnemyData]:
        return self.bosses.get(name)


# =============================================================================
# Defense formula
# =============================================================================

def _tier_wall() -> float:
    return MIN_DEFENSE_MULTIPLIER


def _tier_high_defense(ratio: float) -> float:
    term = ratio - 0.125
    return (19.2 / 49) * term * term + 0.1


def _tier_standard(ratio: float) -> float:
    term = ratio - 2.5
    return (-0.4 / 3) * term * term + 0.7


def _tier_high_damage(ratio: float) -> float:
    term = ratio - 8
    return (-0.8 / 121) * term * term + 0.9


def defense_multiplier(ratio: float) -> float:
    """
    Share of attack that survives defense, as a function of attack / defense.

    Ranges from 0.1 (defense at least 8x the attack) to 0.9 (attack at
    least 8x the defense); the tiers meet at 0.125, 1, 2.5 and 8.
    """
    if ratio > 8:
        return MAX_DEFENSE_MULTIPLIER
    if ratio >= 2.5:
        return _tier_high_damage(ratio)
    if ratio >= 1:
        return _tier_standard(ratio)
    if ratio >= 0.125:
        return _tier_high_defense(ratio)
    return _tier_wall()


def calculate_defense_reduction(attack: float, defense: float) -> float:
    """
    Damage remaining after defense.

    Args:
        attack: Attack value after motion value
        defense: Enemy flat defense for the damage type

    Returns:
        attack * m(attack / defense); 0 for no attack, 0.9 * attack for no defense
    """
    if attack <= 0:
        return 0.0
    if defense <= 0:
        return attack * MAX_DEFENSE_MULTIPLIER

    ratio = attack / defense
    if defense < 0.125 * attack:
        return MAX_DEFENSE_MULTIPLIER * attack
    if defense <= 0.4 * attack:
        return _tier_high_damage(ratio) * attack
    if defense <= attack:
        return _tier_standard(ratio) * attack
    if defense <= 8 * attack:
        return _tier_high_defense(ratio) * attack
    return _tier_wall() * attack


def apply_negation(damage: float, negation: float) -> float:
    """Negative negation is a weakness and increases damage."""
    return damage * (1 - negation / 100)


def calculate_single_type_damage(base_damage: float, motion_value: float,
                                 defense: float, negation: float) -> float:
    if base_damage <= 0:
        return 0.0
    attack = base_damage * (motion_value / 100)
    damage = apply_negation(calculate_defense_reduction(attack, defense), negation)
    return max(0.0, damage)


def get_physical_defense_type(attack_attribute: str) -> str:
    attribute = attack_attribute.lower()
    if attribute in ('strike', 'slash', 'pierce'):
        return attribute
    return 'physical'


# =============================================================================
# Breakdown
# =============================================================================

@dataclass
class DamageCalculationInput:
    base_ar: Dict[DamageType, float]
    motion_values: Dict[DamageType, float]
    attack_attribute: str
    enemy_defenses: EnemyDefenseData


@dataclass
class DamageBreakdownResult:
    by_type: Dict[DamageType, float]
    total: float
    rounded: int


def _defense_key(damage_type: DamageType, physical_key: str) -> str:
    if damage_type is DamageType.PHYSICAL:
        return physical_key
    return damage_type.value


def calculate_enemy_damage(input: DamageCalculationInput) -> DamageBreakdownResult:
    """Damage per type against an enemy and the total rounded up."""
    physical_key = get_physical_defense_type(input.attack_attribute)
    defenses = input.enemy_defenses

    by_type = {}
    for dt in DamageType:
        key = _defense_key(dt, physical_key)
        by_type[dt] = calculate_single_type_damage(
            input.base_ar.get(dt, 0.0),
            input.motion_values.get(dt, DEFAULT_MOTION_VALUE),
            defenses.defense.get(key, 0.0),
            defenses.negation.get(key, 0.0),
        )

    total = sum(by_type.values())
    return DamageBreakdownResult(by_type=by_type, total=total, rounded=math.ceil(total))


def calculate_simple_enemy_damage(base_ars: Dict[DamageType, float], attack_attribute: str,
                                  enemy_defenses: EnemyDefenseData) -> int:
    """Rounded damage of a 100 motion value hit."""
    result = calculate_enemy_damage(DamageCalculationInput(
        base_ar=base_ars,
        motion_values={dt: DEFAULT_MOTION_VALUE for dt in DamageType},
        attack_attribute=attack_attribute,
        enemy_defenses=enemy_defenses,
    ))
    return result.rounded


def ar_to_base_damage(ar: ARResult) -> Dict[DamageType, float]:
    """Per-type AR totals, as fed to the enemy damage calculation."""
    return {dt: ar.get(dt).total for dt in DamageType}
