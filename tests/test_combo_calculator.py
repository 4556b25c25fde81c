import pytest

from combo_calculator import (
    ATTACK_TYPE_MAP, ChainInfo, ComboAnimation, RawAttack, normalize_weapon_name, get_animation_id,
    get_cancel_frame, get_chain_info, get_core_base_type, is_valid_chain_sequence,
    are_grips_compatible, classify_gap, calculate_combos_for_weapon, count_true_combos,
    get_true_combo_breakpoints,
)


WEAPON = 'Miséricorde'
MOTION_CATEGORY = 33


def _attack(attack_type, damage_level, poise, physical=100.0, weapons=(WEAPON,)):
    return RawAttack(
        atk_param_id=3300000 + attack_type,
        physical_damage_mv=physical,
        poise_damage_flat=poise,
        damage_level=damage_level,
        weapons=list(weapons),
    )


@pytest.fixture
def attacks():
    return [
        _attack(0, 1, 20),      # 1H R1 [1]
        _attack(10, 1, 30),     # 1H R1 [2]
        _attack(100, 2, 50),    # 1H R2 [1]
        _attack(120, 1, 40),    # 1H Running R1
        _attack(20, 1, 10, physical=0.0),                  # no damage
        _attack(30, 1, 10, weapons=('Dagger',)),          # other weapon
    ]


@pytest.fixture
def animations():
    return {
        'a033_030000': ComboAnimation(hit_frame=10, cancels=[('LightAttackOnly', 14), ('RightAttack', 25)]),
        'a033_030010': ComboAnimation(hit_frame=5, cancels=[('RightAttack', 12)]),
        'a033_030505': ComboAnimation(hit_frame=6, cancels=[('Attack', 20)]),
        'a033_030200': ComboAnimation(hit_frame=8, cancels=[]),
    }


def test_normalize_weapon_name():
    assert normalize_weapon_name(WEAPON) == 'Misericorde'
    assert normalize_weapon_name('Uchigatana') == 'Uchigatana'


def test_animation_id():
    assert get_animation_id(33, 0) == 'a033_030000'
    assert get_animation_id(3, 300) == 'a003_040505'
    assert get_animation_id(33, 999) is None


def test_cancel_frame_priority():
    animation = ComboAnimation(hit_frame=10, cancels=[('RightAttack', 25), ('LightAttackOnly', 14)])
    assert get_cancel_frame(animation, 'light') == (14, 'LightAttackOnly')
    assert get_cancel_frame(animation, 'heavy') == (25, 'RightAttack')
    assert get_cancel_frame(ComboAnimation(10, [('LeftAttack', 30)]), 'heavy') == (30, 'LeftAttack')
    assert get_cancel_frame(ComboAnimation(10, [('Guard', 30)]), 'heavy') is None
    assert get_cancel_frame(ComboAnimation(10, []), 'light') is None


def test_chain_info():
    assert get_chain_info('1H R1 [2]') == ChainInfo('1H R1', 2)
    assert get_chain_info('1H Running R1') == ChainInfo('1H Running R1', None)
    assert get_core_base_type('1H R2 (charged)') == '1H R2'


def test_chain_sequence_rules():
    r1_1, r1_2, r1_3 = ATTACK_TYPE_MAP[0], ATTACK_TYPE_MAP[10], ATTACK_TYPE_MAP[20]
    r2_1, r2_2 = ATTACK_TYPE_MAP[100], ATTACK_TYPE_MAP[110]
    charged_r2_1 = ATTACK_TYPE_MAP[105]

    assert is_valid_chain_sequence(r1_1, r1_2)
    assert not is_valid_chain_sequence(r1_1, r1_3)
    assert not is_valid_chain_sequence(r1_1, r1_1)
    assert is_valid_chain_sequence(r1_2, r2_1)
    assert not is_valid_chain_sequence(r1_1, r2_2)
    assert is_valid_chain_sequence(charged_r2_1, r2_2)
    assert is_valid_chain_sequence(r1_1, ATTACK_TYPE_MAP[120])


def test_grip_compatibility():
    one_handed, two_handed = ATTACK_TYPE_MAP[0], ATTACK_TYPE_MAP[200]
    paired, guard_counter = ATTACK_TYPE_MAP[400], ATTACK_TYPE_MAP[500]

    assert are_grips_compatible(one_handed, ATTACK_TYPE_MAP[100])
    assert not are_grips_compatible(one_handed, two_handed)
    assert not are_grips_compatible(one_handed, paired)
    assert are_grips_compatible(paired, ATTACK_TYPE_MAP[410])
    assert are_grips_compatible(guard_counter, two_handed)


@pytest.mark.parametrize("gap, expected", [(-3, 'true'), (0, 'true'), (5, 'pseudo'), (6, None)])
def test_classify_gap(gap, expected):
    assert classify_gap(gap) == expected


def test_combos_for_weapon(attacks, animations):
    combos = calculate_combos_for_weapon('Misericorde', MOTION_CATEGORY, attacks, animations)
    pairs = [(c.attack_a_name, c.attack_b_name, c.gap, c.combo_type) for c in combos]
    assert pairs == [
        ('1H R1 [1]', '1H R1 [2]', -1, 'true'),
        ('1H R2 [1]', '1H R1 [1]', -1, 'true'),
        ('1H R1 [2]', '1H R2 [1]', 3, 'pseudo'),
    ]

    first = combos[0]
    assert first.hit_frame_a == 10
    assert first.stun_duration == 10
    assert first.cancel_frame_a == 14
    assert first.cancel_type == 'LightAttackOnly'
    assert first.startup_frame_b == 5
    assert first.poise_damage_a == 20


def test_no_combos_without_frame_data(attacks):
    assert calculate_combos_for_weapon(WEAPON, MOTION_CATEGORY, attacks, {}) == []


def test_true_combo_count_and_breakpoints(attacks, animations):
    assert count_true_combos(WEAPON, MOTION_CATEGORY, attacks, animations) == 2
    assert get_true_combo_breakpoints(WEAPON, MOTION_CATEGORY, attacks, animations) == [
        (0, 2), (20, 1), (50, 0)]


def test_breakpoints_empty_without_true_combos(attacks):
    assert get_true_combo_breakpoints(WEAPON, MOTION_CATEGORY, attacks, {}) == []
