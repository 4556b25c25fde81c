import json

import pytest

from models import DamageType, Stat, StatusEffect
from data_loader import (
    DataLoadError, parse_weapon_data, parse_aow_data, parse_enemy_data, parse_curve,
    load_weapon_data, load_aow_data, load_enemy_data,
)


def test_weapon_bundle(weapon_data):
    assert weapon_data.version == 'test-1'
    assert sorted(weapon_data.curves) == [0, 6]
    assert weapon_data.curves[6].stage_max_val == [1, 20, 45, 60, 99]
    assert 2210 in weapon_data.reinforce_rates
    assert weapon_data.reinforce_rates[2210].sp_effect_id1 == 10
    assert weapon_data.sp_effects[6410].get(StatusEffect.BLEED) == 80

    sword = weapon_data.weapons['Test Sword']
    assert sword.requirements[Stat.STRENGTH] == 12
    assert sword.requirements[Stat.ARCANE] == 0
    assert sword.weapon_class == 'Straight Sword'
    assert sword.guard_stats.cut[DamageType.PHYSICAL] == 60
    assert sword.guard_resistance.bleed == 20

    standard = sword.affinities['Standard']
    assert standard.damage[DamageType.MAGIC] is None
    assert standard.damage[DamageType.PHYSICAL].get_scaling(Stat.DEXTERITY).base == 50
    assert standard.damage[DamageType.PHYSICAL].get_scaling(Stat.FAITH) is None
    assert not standard.is_catalyst


def test_status_effect_and_spell_scaling(weapon_data):
    bleed = weapon_data.weapons['Rivers of Blood'].affinities['Standard'].status_effects[StatusEffect.BLEED]
    assert bleed.sp_effect_behavior_id == 6400
    assert bleed.arcane_scaling == 40
    assert bleed.curve_id == 6

    staff = weapon_data.weapons['Test Staff'].affinities['Standard']
    assert staff.is_catalyst
    assert staff.sorcery_scaling.get_scaling(Stat.INTELLIGENCE).base == 100


def test_missing_weapons_key(weapon_bundle):
    del weapon_bundle['weapons']
    with pytest.raises(DataLoadError, match="missing 'weapons'"):
        parse_weapon_data(weapon_bundle)


def test_curve_needs_five_entries():
    raw = {'id': 1, 'stageMaxVal': [1, 2, 3, 4], 'stageMaxGrowVal': [0, 1, 2, 3, 4],
           'adjPt_maxGrowVal': [1, 1, 1, 1, 1]}
    with pytest.raises(DataLoadError):
        parse_curve(raw)


def test_unknown_status_type(weapon_bundle):
    affinity = weapon_bundle['weapons']['Rivers of Blood']['affinities']['Standard']
    affinity['bleed']['statusType'] = 'hemorrhage'
    with pytest.raises(DataLoadError, match='hemorrhage'):
        parse_weapon_data(weapon_bundle)


def test_non_numeric_id(weapon_bundle):
    weapon_bundle['curves']['linear'] = weapon_bundle['curves']['0']
    with pytest.raises(DataLoadError, match='linear'):
        parse_weapon_data(weapon_bundle)


@pytest.mark.parametrize("field, value", [
    ('criticalValue', 'high'),
    ('requirements', [1, 2]),
    ('weight', None),
])
def test_mistyped_weapon_field_names_the_weapon(weapon_bundle, field, value):
    weapon_bundle['weapons']['Test Sword'][field] = value
    with pytest.raises(DataLoadError, match='weapons.Test Sword'):
        parse_weapon_data(weapon_bundle)


def test_mistyped_reinforce_row(weapon_bundle):
    weapon_bundle['reinforceRates']['2205'] = [1, 2, 3]
    with pytest.raises(DataLoadError, match=r'reinforceRates\[2205\]'):
        parse_weapon_data(weapon_bundle)


def test_critical_value_never_below_base(weapon_bundle):
    weapon_bundle['weapons']['Test Sword']['criticalValue'] = 80
    data = parse_weapon_data(weapon_bundle)
    assert data.weapons['Test Sword'].critical_value == 100


def test_critical_value_from_throw_rate(weapon_bundle):
    sword = weapon_bundle['weapons']['Test Sword']
    del sword['criticalValue']
    sword['throwAtkRate'] = 30
    data = parse_weapon_data(weapon_bundle)
    assert data.weapons['Test Sword'].critical_value == 130


def test_skill_bundle(aow_data):
    assert aow_data.sword_arts_by_name['Test Bullet'] == 200
    assert aow_data.sword_arts_id_to_gem_id[100] == 10100
    assert aow_data.skill_names[300] == 'Corpse Piler'

    attack = aow_data.sword_arts[100].attacks[0]
    assert attack.motion[DamageType.PHYSICAL] == 1.5
    assert attack.flat_poise == 5
    assert attack.atk_attribute == 252

    aec = aow_data.attack_element_correct[500]
    assert aec.enabled[(Stat.INTELLIGENCE, DamageType.MAGIC)]
    assert aec.overrides[(Stat.INTELLIGENCE, DamageType.MAGIC)] == 100
    assert aec.overrides[(Stat.STRENGTH, DamageType.PHYSICAL)] == -1

    assert aow_data.final_damage_rates[7].rates[DamageType.FIRE] == 1.0


def test_gem_flags_exclude_scalar_fields(aow_data):
    gem = aow_data.equip_param_gem[10100]
    assert gem.sword_arts_param_id == 100
    assert gem.flags == {
        'canMountWep_SwordNormal': True,
        'canMountWep_Dagger': False,
        'configurableWepAttr00': True,
        'configurableWepAttr01': True,
    }


def test_sword_arts_by_name_kept_when_present(aow_bundle):
    aow_bundle['swordArtsByName'] = {'Renamed': '100'}
    data = parse_aow_data(aow_bundle)
    assert data.sword_arts_by_name == {'Renamed': 100}


def test_mistyped_skill_bundle_field(aow_bundle):
    aow_bundle['swordArtsIdToGemId'] = {'100': 'gem'}
    with pytest.raises(DataLoadError):
        parse_aow_data(aow_bundle)


def test_mistyped_enemy_field_names_the_boss(enemy_bundle):
    enemy_bundle['bosses']['Test Knight']['health'] = 'lots'
    with pytest.raises(DataLoadError, match='bosses.Test Knight'):
        parse_enemy_data(enemy_bundle)


def test_enemy_bundle(enemy_data):
    knight = enemy_data.get('Test Knight')
    assert knight.id == 'test_knight'
    assert knight.defenses.defense['pierce'] == 117
    assert knight.defenses.negation['holy'] == -10
    assert knight.defenses.negation['fire'] == 0
    assert enemy_data.boss_names == ['Test Knight']
    assert enemy_data.get('Nobody') is None


def test_boss_names_are_sorted(enemy_bundle):
    enemy_bundle['bosses']['Another'] = {'id': 'another', 'name': 'Abyss Watcher'}
    data = parse_enemy_data(enemy_bundle)
    assert data.boss_names == ['Abyss Watcher', 'Test Knight']


def test_load_from_files(tmp_path, weapon_bundle, aow_bundle, enemy_bundle):
    weapons_path = tmp_path / 'weapons.json'
    aow_path = tmp_path / 'aow.json'
    enemies_path = tmp_path / 'enemies.json'
    weapons_path.write_text(json.dumps(weapon_bundle), encoding='utf-8')
    aow_path.write_text(json.dumps(aow_bundle), encoding='utf-8')
    enemies_path.write_text(json.dumps(enemy_bundle), encoding='utf-8')

    assert 'Test Sword' in load_weapon_data(weapons_path).weapons
    assert 100 in load_aow_data(str(aow_path)).sword_arts
    assert load_enemy_data(enemies_path).boss_names == ['Test Knight']


def test_load_invalid_json(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{"weapons": ', encoding='utf-8')
    with pytest.raises(DataLoadError, match='invalid JSON'):
        load_weapon_data(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_enemy_data(tmp_path / 'missing.json')
