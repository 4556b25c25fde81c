import math

import pytest

from models import DamageType, PlayerStats
from ar_calculator import calculate_ar_v2
from enemy_damage import (
    DamageCalculationInput, EnemyDefenseData, defense_multiplier, calculate_defense_reduction,
    apply_negation, calculate_single_type_damage, get_physical_defense_type,
    calculate_enemy_damage, calculate_simple_enemy_damage, ar_to_base_damage,
)


def test_defense_multiplier_bounds():
    assert defense_multiplier(0.05) == pytest.approx(0.1)
    assert defense_multiplier(20) == pytest.approx(0.9)


@pytest.mark.parametrize("ratio", [0.125, 1, 2.5, 8])
def test_defense_multiplier_is_continuous_at_tier_edges(ratio):
    assert defense_multiplier(ratio - 1e-9) == pytest.approx(defense_multiplier(ratio), abs=1e-6)


def test_defense_multiplier_is_monotonic():
    ratios = [r / 100 for r in range(1, 1000)]
    values = [defense_multiplier(r) for r in ratios]
    assert all(b >= a - 1e-12 for a, b in zip(values, values[1:]))


def test_defense_reduction_edge_cases():
    assert calculate_defense_reduction(0, 100) == 0.0
    assert calculate_defense_reduction(100, 0) == pytest.approx(90)
    assert calculate_defense_reduction(100, 10) == pytest.approx(90)
    assert calculate_defense_reduction(10, 1000) == pytest.approx(1)


@pytest.mark.parametrize("attack, defense, expected", [
    (294, 117, 207),
    (327, 117, 236),
])
def test_defense_reduction_known_values(attack, defense, expected):
    assert math.ceil(calculate_defense_reduction(attack, defense)) == expected


def test_negation():
    assert apply_negation(100, 20) == pytest.approx(80)
    assert apply_negation(100, -10) == pytest.approx(110)


def test_single_type_damage_applies_motion_value():
    full = calculate_single_type_damage(200, 100, 50, 0)
    half = calculate_single_type_damage(200, 50, 50, 0)
    assert half == pytest.approx(calculate_defense_reduction(100, 50))
    assert full > half
    assert calculate_single_type_damage(0, 100, 50, 0) == 0.0


def test_physical_defense_type():
    assert get_physical_defense_type('Slash') == 'slash'
    assert get_physical_defense_type('Pierce') == 'pierce'
    assert get_physical_defense_type('Standard') == 'physical'
    assert get_physical_defense_type('-') == 'physical'


def test_enemy_damage_uses_attack_subtype(enemy_data):
    defenses = enemy_data.get('Test Knight').defenses
    base = {DamageType.PHYSICAL: 120.0}

    slash = calculate_enemy_damage(DamageCalculationInput(
        base_ar=base, motion_values={}, attack_attribute='Slash', enemy_defenses=defenses))
    strike = calculate_enemy_damage(DamageCalculationInput(
        base_ar=base, motion_values={}, attack_attribute='Strike', enemy_defenses=defenses))

    assert slash.by_type[DamageType.PHYSICAL] == pytest.approx(strike.by_type[DamageType.PHYSICAL] * 0.9)
    assert slash.rounded == 45
    assert strike.rounded == 50
    assert slash.by_type[DamageType.MAGIC] == 0.0


def test_enemy_damage_total_rounds_up(enemy_data):
    defenses = enemy_data.get('Test Knight').defenses
    result = calculate_enemy_damage(DamageCalculationInput(
        base_ar={DamageType.PHYSICAL: 120.0, DamageType.HOLY: 120.0},
        motion_values={dt: 100 for dt in DamageType},
        attack_attribute='Strike',
        enemy_defenses=defenses,
    ))
    assert result.by_type[DamageType.HOLY] == pytest.approx(result.by_type[DamageType.PHYSICAL] * 1.1)
    assert result.rounded == math.ceil(result.total)


def test_simple_enemy_damage_from_ar(weapon_data):
    ar = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 0, PlayerStats(strength=20, dexterity=20))
    base = ar_to_base_damage(ar)
    assert base[DamageType.PHYSICAL] == pytest.approx(120)
    assert base[DamageType.FIRE] == 0

    no_defense = EnemyDefenseData()
    assert calculate_simple_enemy_damage(base, 'Standard', no_defense) == 108


def test_defense_reduction_reference_value():
    assert calculate_defense_reduction(327, 117) == pytest.approx(235.7246, abs=1e-4)


def test_enemy_damage_reference_scenario():
    defenses = EnemyDefenseData(
        defense={key: 117 for key in ('physical', 'strike', 'slash', 'pierce',
                                      'magic', 'fire', 'lightning', 'holy')},
        negation={},
    )
    result = calculate_enemy_damage(DamageCalculationInput(
        base_ar={DamageType.PHYSICAL: 327.0},
        motion_values={dt: 100 for dt in DamageType},
        attack_attribute='Standard',
        enemy_defenses=defenses,
    ))
    assert result.by_type[DamageType.PHYSICAL] == pytest.approx(235.7246, abs=1e-4)
    assert result.total == pytest.approx(235.7246, abs=1e-4)
    assert result.rounded == 236
