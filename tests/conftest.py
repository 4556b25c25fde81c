"""
Shared fixtures: small synthetic data bundles in the build step's JSON
shape, so the loader is exercised by every test that uses them.

Curve 0 is piecewise linear through (1, 0), (20, 20), (60, 70), (80, 90),
(99, 100); curve 6 through (1, 0), (20, 10), (45, 75), (60, 90), (99, 100).
"""

import pytest

from data_loader import parse_weapon_data, parse_aow_data, parse_enemy_data


def _curve(curve_id, stage, grow, adj=(1, 1, 1, 1, 1)):
    return {
        'id': curve_id,
        'stageMaxVal': list(stage),
        'stageMaxGrowVal': list(grow),
        'adjPt_maxGrowVal': list(adj),
    }


def _reinforce_row(level, atk_step, strength_step=0.0, sp_offset=0):
    atk_rate = 1 + atk_step * level
    guard_rate = 1 + 0.04 * level
    return {
        'physicsAtkRate': atk_rate,
        'magicAtkRate': atk_rate,
        'fireAtkRate': atk_rate,
        'thunderAtkRate': atk_rate,
        'darkAtkRate': atk_rate,
        'correctStrengthRate': 1 + strength_step * level,
        'correctAgilityRate': 1.0,
        'correctMagicRate': 1.0,
        'correctFaithRate': 1.0,
        'correctLuckRate': 1.0,
        'physicsGuardCutRate': guard_rate,
        'magicGuardCutRate': guard_rate,
        'fireGuardCutRate': guard_rate,
        'thunderGuardCutRate': guard_rate,
        'darkGuardCutRate': guard_rate,
        'staminaAtkRate': 1.0,
        'staminaGuardDefRate': 1.1,
        'spEffectId1': sp_offset,
        'spEffectId2': 0,
    }


def _reinforce_rates():
    rows = {}
    for level in range(26):
        rows[str(level)] = _reinforce_row(level, 0.05)
        rows[str(100 + level)] = _reinforce_row(level, 0.05, strength_step=0.02)
    for level in range(11):
        rows[str(2200 + level)] = _reinforce_row(level, 0.1, sp_offset=level)
    return rows


def _scaling(**stats):
    return {name: {'base': base, 'curveId': 0} for name, base in stats.items()}


def make_weapon_bundle():
    return {
        'version': 'test-1',
        'generatedAt': '2024-06-21T00:00:00Z',
        'curves': {
            '0': _curve(0, [1, 20, 60, 80, 99], [0, 20, 70, 90, 100]),
            '6': _curve(6, [1, 20, 45, 60, 99], [0, 10, 75, 90, 100]),
        },
        'reinforceRates': _reinforce_rates(),
        'spEffects': {
            str(6400 + level): {'bloodAttackPower': 50 + 3 * level} for level in range(11)
        },
        'weapons': {
            'Test Sword': {
                'requirements': {'strength': 12, 'dexterity': 10},
                'wepType': 3,
                'wepmotionCategory': 33,
                'criticalValue': 100,
                'maxUpgradeLevel': 25,
                'weight': 3.5,
                'attackBaseStamina': 50,
                'saWeaponDamage': 10,
                'atkAttribute': 2,
                'gemMountType': 2,
                'swordArtsParamId': 100,
                'guardStats': {'physical': 60, 'magic': 30, 'fire': 30, 'lightning': 30,
                               'holy': 30, 'guardBoost': 30},
                'guardResistance': {'bleed': 20},
                'affinities': {
                    'Standard': {
                        'id': 1000,
                        'reinforceTypeId': 0,
                        'physical': {'attackBase': 100, 'scaling': _scaling(strength=50, dexterity=50)},
                        'weaponScaling': {'strength': 50, 'dexterity': 50},
                    },
                    'Heavy': {
                        'id': 1100,
                        'reinforceTypeId': 100,
                        'physical': {'attackBase': 100, 'scaling': _scaling(strength=100)},
                        'weaponScaling': {'strength': 100},
                    },
                },
            },
            'Rivers of Blood': {
                'requirements': {'strength': 12, 'dexterity': 18, 'arcane': 20},
                'wepType': 13,
                'maxUpgradeLevel': 10,
                'gemMountType': 0,
                'swordArtsParamId': 300,
                'affinities': {
                    'Standard': {
                        'id': 2000,
                        'reinforceTypeId': 2200,
                        'physical': {'attackBase': 76, 'scaling': _scaling(dexterity=50)},
                        'bleed': {
                            'spEffectBehaviorId': 6400,
                            'spEffectSlot': 0,
                            'statusType': 'bleed',
                            'arcaneScaling': 40,
                            'curveId': 6,
                        },
                        'weaponScaling': {'dexterity': 50},
                    },
                },
            },
            'Test Staff': {
                'requirements': {'intelligence': 10},
                'wepType': 57,
                'maxUpgradeLevel': 25,
                'affinities': {
                    'Standard': {
                        'id': 3000,
                        'reinforceTypeId': 0,
                        'physical': {'attackBase': 30, 'scaling': _scaling(strength=50)},
                        'sorceryScaling': _scaling(intelligence=100),
                        'weaponScaling': {'strength': 50, 'intelligence': 100},
                    },
                },
            },
            'Test Dagger': {
                'requirements': {'strength': 5, 'dexterity': 9},
                'wepType': 1,
                'criticalValue': 130,
                'maxUpgradeLevel': 25,
                'gemMountType': 2,
                'affinities': {
                    'Standard': {
                        'id': 4000,
                        'reinforceTypeId': 0,
                        'physical': {'attackBase': 80, 'scaling': _scaling(dexterity=60)},
                        'weaponScaling': {'dexterity': 60},
                    },
                },
            },
        },
    }


def make_aow_bundle():
    return {
        'version': 'test-1',
        'swordArts': {
            '100': {
                'swordArtsId': 100,
                'name': 'Test Slash',
                'attacks': [
                    {
                        'atkId': 1,
                        'name': 'Test Slash',
                        'motionPhys': 1.5,
                        'motionStam': 1.0,
                        'motionPoise': 2.0,
                        'flatPoise': 5,
                        'atkAttribute': 252,
                        'pvpMultiplier': 0.8,
                        'finalDamageRateId': 0,
                    },
                    {
                        'atkId': 2,
                        'name': 'Test Slash (lacking FP)',
                        'motionPhys': 0.5,
                    },
                ],
            },
            '200': {
                'swordArtsId': 200,
                'name': 'Test Bullet',
                'attacks': [
                    {
                        'atkId': 3,
                        'name': 'Test Bullet',
                        'flatMag': 80,
                        'isAddBaseAtk': True,
                        'overwriteAttackElementCorrectId': 500,
                    },
                ],
            },
            '300': {
                'swordArtsId': 300,
                'name': 'Corpse Piler',
                'attacks': [{'atkId': 4, 'name': 'Corpse Piler', 'motionPhys': 1.0}],
            },
            '400': {'swordArtsId': 400, 'name': 'Test Buff', 'attacks': []},
        },
        'attackElementCorrect': {
            '500': {
                'id': 500,
                'isMagicCorrect_byMagic': True,
                'overwriteMagicCorrectRate_byMagic': 100,
            },
        },
        'finalDamageRates': {
            '7': {'id': 7, 'physRate': 0.5, 'magRate': 0.5},
        },
        'equipParamGem': {
            '10100': {
                'id': 10100,
                'name': 'Ash of War: Test Slash',
                'swordArtsParamId': 100,
                'canMountWep_SwordNormal': True,
                'canMountWep_Dagger': False,
                'configurableWepAttr00': True,
                'configurableWepAttr01': True,
            },
            '10200': {
                'id': 10200,
                'name': 'Ash of War: Test Bullet',
                'swordArtsParamId': 200,
                'canMountWep_SwordNormal': True,
                'canMountWep_Dagger': True,
                'configurableWepAttr00': True,
            },
        },
        'weaponClassMountFieldMap': {
            'Straight Sword': 'canMountWep_SwordNormal',
            'Dagger': 'canMountWep_Dagger',
        },
        'affinityConfigFieldMap': {
            'Standard': 'configurableWepAttr00',
            'Heavy': 'configurableWepAttr01',
        },
        'swordArtsIdToGemId': {'100': 10100, '200': 10200},
        'skillNames': {'100': 'Test Slash', '200': 'Test Bullet', '300': 'Corpse Piler'},
    }


def make_enemy_bundle():
    return {
        'bosses': {
            'Test Knight': {
                'id': 'test_knight',
                'name': 'Test Knight',
                'location': 'Limgrave',
                'isBoss': True,
                'health': 1000,
                'defenses': {
                    'defense': {key: 117 for key in ('physical', 'strike', 'slash', 'pierce',
                                                     'magic', 'fire', 'lightning', 'holy')},
                    'negation': {'slash': 10, 'magic': 20, 'holy': -10},
                },
            },
        },
    }


@pytest.fixture
def weapon_bundle():
    return make_weapon_bundle()


@pytest.fixture
def weapon_data(weapon_bundle):
    return parse_weapon_data(weapon_bundle)


@pytest.fixture
def aow_bundle():
    return make_aow_bundle()


@pytest.fixture
def aow_data(aow_bundle):
    return parse_aow_data(aow_bundle)


@pytest.fixture
def enemy_bundle():
    return make_enemy_bundle()


@pytest.fixture
def enemy_data(enemy_bundle):
    return parse_enemy_data(enemy_bundle)
