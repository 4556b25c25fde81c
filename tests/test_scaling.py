import pytest

from models import DamageType, Stat, StatusEffect, PlayerStats
from scaling import (
    compute_effective_strength, compute_effective_stats, resolve_weapon_at_level,
    get_scaling_grade, is_always_two_handed,
)


@pytest.mark.parametrize("strength, two_handing, wep_type, dual_blade, expected", [
    (20, False, 3, False, 20),
    (20, True, 3, False, 30),
    (21, True, 3, False, 31),
    (99, True, 3, False, 148),
    (40, True, 35, False, 40),   # fists never get the bonus
    (40, True, 3, True, 40),     # paired weapons never get the bonus
    (20, False, 51, False, 30),  # bows always do
    (20, False, 56, False, 30),
])
def test_effective_strength(strength, two_handing, wep_type, dual_blade, expected):
    assert compute_effective_strength(strength, two_handing, wep_type, dual_blade) == expected


def test_effective_stats_only_touch_strength():
    stats = PlayerStats(strength=30, dexterity=25, arcane=40)
    effective = compute_effective_stats(stats, True, 3, False)
    assert effective.strength == 45
    assert effective.dexterity == 25
    assert effective.arcane == 40


def test_always_two_handed_types():
    assert is_always_two_handed(50)
    assert not is_always_two_handed(55)


def test_resolve_applies_attack_and_scaling_rates(weapon_data):
    resolved = resolve_weapon_at_level(weapon_data, 'Test Sword', 'Heavy', 10)
    physical = resolved.get_damage(DamageType.PHYSICAL)
    assert physical.base == pytest.approx(150)
    assert physical.get_scaling(Stat.STRENGTH).value == pytest.approx(120)
    assert physical.get_scaling(Stat.DEXTERITY) is None
    assert resolved.get_damage(DamageType.MAGIC) is None
    assert resolved.weapon_scaling[Stat.STRENGTH] == pytest.approx(120)


def test_resolve_override_ignores_rate(weapon_bundle):
    from data_loader import parse_weapon_data

    scaling = weapon_bundle['weapons']['Test Sword']['affinities']['Heavy']['physical']['scaling']
    scaling['strength']['isOverride'] = True
    data = parse_weapon_data(weapon_bundle)

    resolved = resolve_weapon_at_level(data, 'Test Sword', 'Heavy', 10)
    assert resolved.get_damage(DamageType.PHYSICAL).get_scaling(Stat.STRENGTH).value == 100


@pytest.mark.parametrize("weapon, affinity, level", [
    ('Missing Sword', 'Standard', 0),
    ('Test Sword', 'Cold', 0),
    ('Test Sword', 'Standard', -1),
    ('Test Sword', 'Standard', 26),
    ('Rivers of Blood', 'Standard', 11),
])
def test_resolve_returns_none_for_bad_lookups(weapon_data, weapon, affinity, level):
    assert resolve_weapon_at_level(weapon_data, weapon, affinity, level) is None


def test_resolve_returns_none_without_reinforce_row(weapon_data):
    del weapon_data.reinforce_rates[5]
    assert resolve_weapon_at_level(weapon_data, 'Test Sword', 'Standard', 5) is None


def test_status_effect_uses_level_offset(weapon_data):
    base = resolve_weapon_at_level(weapon_data, 'Rivers of Blood', 'Standard', 0)
    maxed = resolve_weapon_at_level(weapon_data, 'Rivers of Blood', 'Standard', 10)

    assert base.status_effects[StatusEffect.BLEED].base == 50
    assert maxed.status_effects[StatusEffect.BLEED].base == 80
    assert maxed.status_effects[StatusEffect.BLEED].arcane_scaling.value == pytest.approx(40)
    assert maxed.status_effects[StatusEffect.BLEED].arcane_scaling.curve_id == 6
    assert maxed.status_effects[StatusEffect.POISON] is None


def test_status_effect_missing_sp_row_is_none(weapon_data):
    del weapon_data.sp_effects[6403]
    resolved = resolve_weapon_at_level(weapon_data, 'Rivers of Blood', 'Standard', 3)
    assert resolved.status_effects[StatusEffect.BLEED] is None


@pytest.mark.parametrize("raw, grade", [
    (0, '-'),
    (10, 'E'),
    (25, 'D'),
    (59.9, 'D'),
    (60, 'C'),
    (90, 'B'),
    (140, 'A'),
    (175, 'S'),
    (250, 'S'),
])
def test_scaling_grade(raw, grade):
    assert get_scaling_grade(raw) == grade
