import pytest

from models import DamageType, Stat, StatusEffect, PlayerStats, CalculatorOptions, CharacterStats
from curves import CurveCache, NullCurveCache
from ar_calculator import (
    ARCalculator, calculate_ar_v2, calculate_weapon_ar, calculate_guard_stats_v2,
    get_weapon_names, get_weapon_affinities, get_max_upgrade_level, has_weapon_affinity,
    round_half_up,
)


def test_round_half_up():
    assert round_half_up(132.5) == 133
    assert round_half_up(132.49) == 132
    assert round_half_up(0.5) == 1


def test_physical_ar_with_two_scaling_stats(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 0,
                             PlayerStats(strength=20, dexterity=20))
    physical = result.get(DamageType.PHYSICAL)
    assert physical.base == pytest.approx(100)
    assert physical.per_stat[Stat.STRENGTH].saturation == pytest.approx(0.2)
    assert physical.per_stat[Stat.STRENGTH].scaling == pytest.approx(10)
    assert physical.total == pytest.approx(120)
    assert result.rounded == 120
    assert result.requirements_met


def test_ar_rounds_half_up(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 0,
                             PlayerStats(strength=40, dexterity=20))
    assert result.total == pytest.approx(132.5)
    assert result.rounded == 133


def test_upgrade_level_raises_base(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 10,
                             PlayerStats(strength=20, dexterity=20))
    assert result.total == pytest.approx(180)


def test_two_handing_uses_effective_strength(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 0,
                             PlayerStats(strength=20, dexterity=20),
                             CalculatorOptions(two_handing=True))
    assert result.effective_stats.strength == 30
    assert result.total == pytest.approx(126.25)
    assert result.rounded == 126


def test_two_handing_meets_strength_requirement(weapon_data):
    one_handed = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 0,
                                 PlayerStats(strength=8, dexterity=20))
    two_handed = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 0,
                                 PlayerStats(strength=8, dexterity=20),
                                 CalculatorOptions(two_handing=True))
    assert not one_handed.requirements_met
    assert two_handed.requirements_met


def test_unmet_requirement_keeps_sixty_percent_of_base(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 0,
                             PlayerStats(strength=10, dexterity=20))
    physical = result.get(DamageType.PHYSICAL)
    assert not physical.requirements_met
    assert physical.scaling == pytest.approx(-40)
    assert physical.total == pytest.approx(60)
    assert result.rounded == 60
    assert not result.requirements_met
    # Per-stat contributions still show the potential value
    assert physical.per_stat[Stat.DEXTERITY].scaling == pytest.approx(10)


def test_ignore_requirements(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 0,
                             PlayerStats(strength=10, dexterity=20),
                             CalculatorOptions(ignore_requirements=True))
    assert result.requirements_met
    assert result.total == pytest.approx(100 + 100 * 0.5 * (9 * 20 / 19 / 100) + 10)


def test_status_effect_penalty_and_ignore(weapon_data):
    stats = PlayerStats(strength=12, dexterity=18, arcane=5)

    penalised = calculate_ar_v2(weapon_data, 'Rivers of Blood', 'Standard', 0, stats)
    bleed = penalised.status(StatusEffect.BLEED)
    assert bleed.base == 50
    assert bleed.rounded == 30

    ignored = calculate_ar_v2(weapon_data, 'Rivers of Blood', 'Standard', 0, stats,
                              CalculatorOptions(ignore_requirements=True))
    assert ignored.status(StatusEffect.BLEED).rounded == 50


def test_status_effect_scales_with_arcane(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Rivers of Blood', 'Standard', 10,
                             PlayerStats(strength=12, dexterity=18, arcane=45))
    bleed = result.status(StatusEffect.BLEED)
    assert bleed.total == pytest.approx(80 + 80 * 0.4 * 0.75)
    assert bleed.rounded == 104
    assert result.status(StatusEffect.POISON).total == 0


def test_missing_scaling_stat_does_not_penalise_channel(weapon_data):
    # Strength and arcane are short, but physical only scales with dexterity
    result = calculate_ar_v2(weapon_data, 'Rivers of Blood', 'Standard', 0,
                             PlayerStats(strength=5, dexterity=20, arcane=5))
    physical = result.get(DamageType.PHYSICAL)
    assert physical.requirements_met
    assert physical.total == pytest.approx(76 + 76 * 0.2 * 0.5)
    assert not result.requirements_met


def test_catalyst_spell_scaling(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Test Staff', 'Standard', 0, PlayerStats(intelligence=40))
    assert result.sorcery_scaling.total == pytest.approx(145)
    assert result.sorcery_scaling.rounded == 145
    assert result.incantation_scaling is None
    assert result.spell_scaling_total == pytest.approx(145)


def test_catalyst_spell_scaling_requirement_unmet(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Test Staff', 'Standard', 0, PlayerStats(intelligence=8))
    assert not result.sorcery_scaling.requirements_met
    assert result.sorcery_scaling.total == pytest.approx(60)
    assert result.sorcery_scaling.rounded == 60


def test_non_catalyst_has_no_spell_scaling(weapon_data):
    result = calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 0, PlayerStats())
    assert result.sorcery_scaling is None
    assert result.spell_scaling_total == 0.0


def test_unknown_lookups_return_none(weapon_data):
    assert calculate_ar_v2(weapon_data, 'Nope', 'Standard', 0, PlayerStats()) is None
    assert calculate_ar_v2(weapon_data, 'Test Sword', 'Nope', 0, PlayerStats()) is None
    assert calculate_ar_v2(weapon_data, 'Test Sword', 'Standard', 30, PlayerStats()) is None


def test_weapon_ar_takes_character_stats(weapon_data):
    stats = CharacterStats(vigor=60, strength=20, dexterity=20)
    result = calculate_weapon_ar(weapon_data, 'Test Sword', 'Standard', 0, stats)
    assert result.rounded == 120


def test_cache_choice_does_not_change_results(weapon_data):
    cached = ARCalculator(weapon_data, CurveCache())
    uncached = ARCalculator(weapon_data, NullCurveCache())
    for strength in range(10, 99, 7):
        for dexterity in range(10, 99, 11):
            stats = PlayerStats(strength=strength, dexterity=dexterity)
            a = cached.calculate('Test Sword', 'Standard', 15, stats)
            b = uncached.calculate('Test Sword', 'Standard', 15, stats)
            assert a.total == b.total
            assert a.rounded == b.rounded
    assert len(cached.cache) > 0


def test_guard_negation_is_capped(weapon_data):
    guard = calculate_guard_stats_v2(weapon_data, 'Test Sword', 'Standard', 25)
    assert guard.negation[DamageType.PHYSICAL] == 100
    assert guard.negation[DamageType.MAGIC] == pytest.approx(60)
    assert guard.guard_boost == 33
    assert guard.resistance.bleed == 20


def test_guard_at_base_level(weapon_data):
    guard = ARCalculator(weapon_data).guard('Test Sword', 'Standard', 0)
    assert guard.negation[DamageType.PHYSICAL] == pytest.approx(60)
    assert calculate_guard_stats_v2(weapon_data, 'Nope', 'Standard', 0) is None


def test_lookup_helpers(weapon_data):
    assert get_weapon_names(weapon_data) == ['Rivers of Blood', 'Test Dagger', 'Test Staff', 'Test Sword']
    assert get_weapon_affinities(weapon_data, 'Test Sword') == ['Standard', 'Heavy']
    assert get_weapon_affinities(weapon_data, 'Nope') == []
    assert get_max_upgrade_level(weapon_data, 'Rivers of Blood') == 10
    assert get_max_upgrade_level(weapon_data, 'Nope') == 0
    assert has_weapon_affinity(weapon_data, 'Test Sword', 'Heavy')
    assert not has_weapon_affinity(weapon_data, 'Test Dagger', 'Heavy')
