"""
Combo Calculator

True and pseudo combos between a weapon's attacks, from frame data:

    gap = (cancel frame of A + startup frame of B) - (hit frame of A + hitstun)

    gap <= 0   true combo (the target cannot act before B lands)
    gap <= 5   pseudo combo
    otherwise  no combo
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple


# =============================================================================
# Types
# =============================================================================

@dataclass(frozen=True)
class AttackTypeInfo:
    name: str
    short_name: str
    category: str
    one_handed: bool
    two_handed: bool


@dataclass(frozen=True)
class ChainInfo:
    base_type: str
    sequence: Optional[int]  # None when not part of a numbered chain


@dataclass
class RawAttack:
    """One AtkParam row as far as combos are concerned."""
    atk_param_id: int
    physical_damage_mv: float = 0.0
    magic_damage_mv: float = 0.0
    fire_damage_mv: float = 0.0
    lightning_damage_mv: float = 0.0
    holy_damage_mv: float = 0.0
    stamina_cost: float = 0.0
    poise_damage_flat: float = 0.0
    phys_attribute: str = ''
    damage_level: int = 0
    weapons: List[str] = field(default_factory=list)


@dataclass
class ComboAnimation:
    hit_frame: Optional[int]
    cancels: List[Tuple[str, int]] = field(default_factory=list)  # (cancel type, start frame)


@dataclass
class ComboData:
    attack_a_type: int
    attack_a_name: str
    attack_a_category: str
    attack_b_type: int
    attack_b_name: str
    attack_b_category: str
    hit_frame_a: int
    stun_duration: int
    cancel_frame_a: int
    cancel_type: str
    startup_frame_b: int
    gap: int
    combo_type: str  # 'true' or 'pseudo'
    poise_damage_a: float


# =============================================================================
# Tables
# =============================================================================

def _info(name, short_name, category, one_handed, two_handed) -> AttackTypeInfo:
    return AttackTypeInfo(name, short_name, category, one_handed, two_handed)


# Keyed by atkParamId % 1000
ATTACK_TYPE_MAP: Dict[int, AttackTypeInfo] = {
    # 1H light
    0: _info('1H Light Attack 1', '1H R1 [1]', 'light', True, False),
    10: _info('1H Light Attack 2', '1H R1 [2]', 'light', True, False),
    20: _info('1H Light Attack 3', '1H R1 [3]', 'light', True, False),
    30: _info('1H Light Attack 4', '1H R1 [4]', 'light', True, False),
    40: _info('1H Light Attack 5', '1H R1 [5]', 'light', True, False),
    50: _info('1H Charged Light Attack', '1H R1 (charged)', 'light', True, False),
    # 1H heavy
    100: _info('1H Heavy Attack 1', '1H R2 [1]', 'heavy', True, False),
    105: _info('1H Charged Heavy Attack 1', '1H R2 (charged) [1]', 'heavy', True, False),
    110: _info('1H Heavy Attack 2', '1H R2 [2]', 'heavy', True, False),
    115: _info('1H Charged Heavy Attack 2', '1H R2 (charged) [2]', 'heavy', True, False),
    # 1H movement attacks
    120: _info('1H Running Light Attack', '1H Running R1', 'running', True, False),
    125: _info('1H Running Heavy Attack', '1H Running R2', 'running', True, False),
    130: _info('1H Crouch Light Attack', '1H Crouch R1', 'crouch', True, False),
    140: _info('1H Backstep Light Attack', '1H Backstep R1', 'backstep', True, False),
    150: _info('1H Rolling Light Attack', '1H Rolling R1', 'rolling', True, False),
    160: _info('1H Rolling Heavy Attack', '1H Rolling R2', 'rolling', True, False),
    170: _info('1H Jumping Light Attack', '1H Jump R1', 'jumping', True, False),
    175: _info('1H Jumping Heavy Attack', '1H Jump R2', 'jumping', True, False),
    # 2H light
    200: _info('2H Light Attack 1', '2H R1 [1]', 'light', False, True),
    210: _info('2H Light Attack 2', '2H R1 [2]', 'light', False, True),
    220: _info('2H Light Attack 3', '2H R1 [3]', 'light', False, True),
    230: _info('2H Light Attack 4', '2H R1 [4]', 'light', False, True),
    240: _info('2H Light Attack 5', '2H R1 [5]', 'light', False, True),
    # 2H heavy
    300: _info('2H Heavy Attack 1', '2H R2 [1]', 'heavy', False, True),
    305: _info('2H Charged Heavy Attack 1', '2H R2 (charged) [1]', 'heavy', False, True),
    310: _info('2H Heavy Attack 2', '2H R2 [2]', 'heavy', False, True),
    315: _info('2H Charged Heavy Attack 2', '2H R2 (charged) [2]', 'heavy', False, True),
    # 2H movement attacks
    320: _info('2H Running Light Attack', '2H Running R1', 'running', False, True),
    325: _info('2H Running Heavy Attack', '2H Running R2', 'running', False, True),
    330: _info('2H Crouch Light Attack', '2H Crouch R1', 'crouch', False, True),
    340: _info('2H Backstep Light Attack', '2H Backstep R1', 'backstep', False, True),
    350: _info('2H Rolling Light Attack', '2H Rolling R1', 'rolling', False, True),
    360: _info('2H Rolling Heavy Attack', '2H Rolling R2', 'rolling', False, True),
    370: _info('2H Jumping Light Attack', '2H Jump R1', 'jumping', False, True),
    380: _info('2H Jumping Heavy Attack', '2H Jump R2', 'jumping', False, True),
    # Paired (dual wield)
    400: _info('Paired Light Attack 1', 'Paired L1 [1]', 'light', False, False),
    410: _info('Paired Light Attack 2', 'Paired L1 [2]', 'light', False, False),
    420: _info('Paired Light Attack 3', 'Paired L1 [3]', 'light', False, False),
    430: _info('Paired Light Attack 4', 'Paired L1 [4]', 'light', False, False),
    440: _info('Paired Light Attack 5', 'Paired L1 [5]', 'light', False, False),
    450: _info('Paired Running Attack', 'Paired Running L1', 'running', False, False),
    # Guard counters
    500: _info('Guard Counter 1', 'Guard Counter [1]', 'guard', True, True),
    510: _info('Guard Counter 2', 'Guard Counter [2]', 'guard', True, True),
    # Mounted
    600: _info('Mounted Light Attack (Right)', 'Mount R1 (R)', 'mounted', True, False),
    605: _info('Mounted Light Attack (Left)', 'Mount R1 (L)', 'mounted', True, False),
    610: _info('Mounted Light Attack (Both)', 'Mount R1 (2)', 'mounted', False, True),
    700: _info('Mounted Heavy Attack (Right)', 'Mount R2 (R)', 'mounted', True, False),
    705: _info('Mounted Heavy Attack (Left)', 'Mount R2 (L)', 'mounted', True, False),
    710: _info('Mounted Heavy Attack (Both)', 'Mount R2 (2)', 'mounted', False, True),
    730: _info('Mounted Charged Heavy Attack', 'Mount R2 (charged)', 'mounted', True, True),
    # Criticals and stance attacks
    800: _info('1H Critical', '1H Critical', 'special', True, False),
    805: _info('2H Critical', '2H Critical', 'special', False, True),
    950: _info('Stance Attack 1', 'Stance [1]', 'special', True, True),
    951: _info('Stance Attack 2', 'Stance [2]', 'special', True, True),
    952: _info('Stance Attack 3', 'Stance [3]', 'special', True, True),
    956: _info('Stance Attack Combo', 'Stance Combo', 'special', True, True),
}

ATTACK_TYPE_TO_ANIMATION_SUFFIX: Dict[int, str] = {
    0: '030000', 10: '030010', 20: '030020', 30: '030030', 40: '030040',
    50: '030050',
    100: '030505', 105: '030500', 110: '030515', 115: '030510',
    120: '030200', 125: '030210', 130: '030310', 140: '030400', 150: '030300',
    170: '031030', 175: '031040',
    200: '040000', 210: '040010', 220: '040020', 230: '040030', 240: '040040',
    300: '040505', 305: '040500', 310: '040515', 315: '040510',
    320: '040200', 325: '040210', 330: '040310', 340: '040400', 350: '040300',
    370: '041030', 380: '041040',
    500: '030700', 510: '040700',
}

# Attacks that need a prior state (running, rolling, ...) cannot follow another attack
INVALID_FOLLOWUP_CATEGORIES = frozenset({
    'running', 'crouch', 'rolling', 'backstep', 'guard', 'mounted', 'special', 'jumping',
})

CHARGED_ATTACK_TYPES = frozenset({50, 105, 115, 305, 315, 730})

CANCEL_PRIORITIES: Dict[str, Tuple[str, ...]] = {
    'light': ('LightAttackOnly', 'RightAttack', 'Attack'),
    'heavy': ('RightAttack', 'Attack'),
}
DEFAULT_CANCEL_PRIORITY = ('RightAttack', 'Attack')

# Hitstun frames per damage level
DAMAGE_LEVEL_TO_STUN: Dict[int, int] = {0: 0, 1: 10, 2: 25, 3: 35}

TRUE_COMBO = 'true'
PSEUDO_COMBO = 'pseudo'
PSEUDO_COMBO_MAX_GAP = 5

CHAIN_SEQUENCE_PATTERN = re.compile(r'^(.+?)\s*\[(\d+)\]$')


# =============================================================================
# Helpers
# =============================================================================

def normalize_weapon_name(name: str) -> str:
    """Strip diacritics (e.g. 'Miséricorde' -> 'Misericorde')."""
    decomposed = unicodedata.normalize('NFD', name)
    return ''.join(ch for ch in decomposed if not ('\u0300' <= ch <= '\u036f'))


def get_animation_id(motion_category: int, attack_type: int) -> Optional[str]:
    suffix = ATTACK_TYPE_TO_ANIMATION_SUFFIX.get(attack_type)
    if suffix is None:
        return None
    return f"a{motion_category:03d}_{suffix}"


def get_cancel_frame(animation: ComboAnimation, target_category: str) -> Optional[Tuple[int, str]]:
    """
    Earliest usable cancel into an attack of target_category.

    Returns:
        (frame, cancel type) or None
    """
    if not animation.cancels:
        return None

    for cancel_type in CANCEL_PRIORITIES.get(target_category, DEFAULT_CANCEL_PRIORITY):
        for found_type, frame in animation.cancels:
            if found_type == cancel_type:
                return frame, found_type

    for found_type, frame in animation.cancels:
        if 'Attack' in found_type:
            return frame, found_type
    return None


def get_chain_info(short_name: str) -> ChainInfo:
    """'1H R1 [2]' -> ChainInfo('1H R1', 2); unnumbered names have sequence None."""
    match = CHAIN_SEQUENCE_PATTERN.match(short_name)
    if match:
        return ChainInfo(base_type=match.group(1).strip(), sequence=int(match.group(2)))
    return ChainInfo(base_type=short_name, sequence=None)


def get_core_base_type(base_type: str) -> str:
    """Charged and uncharged versions share a chain family."""
    return base_type.replace(' (charged)', '', 1)


def is_valid_chain_sequence(info_a: AttackTypeInfo, info_b: AttackTypeInfo) -> bool:
    """
    Whether B may follow A in a string.

    Unnumbered attacks follow anything. [1] only follows a different chain
    family. [n] for n > 1 only follows [n-1] of the same family.
    """
    chain_b = get_chain_info(info_b.short_name)
    if chain_b.sequence is None:
        return True

    chain_a = get_chain_info(info_a.short_name)
    family_a = get_core_base_type(chain_a.base_type)
    family_b = get_core_base_type(chain_b.base_type)

    if chain_b.sequence == 1:
        return family_a != family_b
    if family_a != family_b:
        return False
    return chain_a.sequence is not None and chain_a.sequence == chain_b.sequence - 1


def are_grips_compatible(info_a: AttackTypeInfo, info_b: AttackTypeInfo) -> bool:
    if (info_a.one_handed and info_a.two_handed) or (info_b.one_handed and info_b.two_handed):
        return True

    a_paired = not info_a.one_handed and not info_a.two_handed
    b_paired = not info_b.one_handed and not info_b.two_handed
    if a_paired or b_paired:
        return a_paired and b_paired

    return info_a.one_handed == info_b.one_handed and info_a.two_handed == info_b.two_handed


def classify_gap(gap: int) -> Optional[str]:
    if gap <= 0:
        return TRUE_COMBO
    if gap <= PSEUDO_COMBO_MAX_GAP:
        return PSEUDO_COMBO
    return None


# =============================================================================
# Combo search
# =============================================================================

@dataclass
class _WeaponAttack:
    type: int
    info: AttackTypeInfo
    damage_level: int
    poise_damage: float


def _weapon_attacks(weapon_name: str, attacks: Iterable[RawAttack]) -> List[_WeaponAttack]:
    """First attack of each known type that belongs to the weapon and deals damage."""
    found = []
    seen = set()
    for attack in attacks:
        if not any(w == weapon_name or normalize_weapon_name(w) == weapon_name for w in attack.weapons):
            continue

        attack_type = attack.atk_param_id % 1000
        if attack_type in seen:
            continue
        info = ATTACK_TYPE_MAP.get(attack_type)
        if info is None:
            continue
        if attack.physical_damage_mv == 0 and attack.magic_damage_mv == 0:
            continue

        seen.add(attack_type)
        found.append(_WeaponAttack(attack_type, info, attack.damage_level, attack.poise_damage_flat))
    return found


def calculate_combos_for_weapon(weapon_name: str, motion_category: int,
                                attacks: Iterable[RawAttack],
                                animations: Dict[str, ComboAnimation]) -> List[ComboData]:
    """
    Every true or pseudo combo between two attacks of a weapon.

    Args:
        weapon_name: Weapon name as listed in RawAttack.weapons
        motion_category: Weapon motion category (animation section)
        attacks: Attack rows
        animations: Animation frame data by id (e.g. 'a033_030000')

    Returns:
        Combos, true combos first, then by ascending gap
    """
    weapon_attacks = _weapon_attacks(weapon_name, attacks)
    combos = []

    for attack_a in weapon_attacks:
        if attack_a.damage_level == 0:
            continue
        anim_id_a = get_animation_id(motion_category, attack_a.type)
        anim_a = animations.get(anim_id_a) if anim_id_a else None
        if anim_a is None or anim_a.hit_frame is None:
            continue

        hit_frame_a = anim_a.hit_frame
        stun = DAMAGE_LEVEL_TO_STUN.get(attack_a.damage_level, 0)

        for attack_b in weapon_attacks:
            if attack_b.info.category in INVALID_FOLLOWUP_CATEGORIES:
                continue
            if attack_b.type in CHARGED_ATTACK_TYPES:
                continue
            if not are_grips_compatible(attack_a.info, attack_b.info):
                continue
            if not is_valid_chain_sequence(attack_a.info, attack_b.info):
                continue

            anim_id_b = get_animation_id(motion_category, attack_b.type)
            anim_b = animations.get(anim_id_b) if anim_id_b else None
            if anim_b is None or anim_b.hit_frame is None:
                continue

            cancel = get_cancel_frame(anim_a, attack_b.info.category)
            if cancel is None:
                continue
            cancel_frame, cancel_type = cancel

            gap = (cancel_frame + anim_b.hit_frame) - (hit_frame_a + stun)
            combo_type = classify_gap(gap)
            if combo_type is None:
                continue

            combos.append(ComboData(
                attack_a_type=attack_a.type,
                attack_a_name=attack_a.info.short_name,
                attack_a_category=attack_a.info.category,
                attack_b_type=attack_b.type,
                attack_b_name=attack_b.info.short_name,
                attack_b_category=attack_b.info.category,
                hit_frame_a=hit_frame_a,
                stun_duration=stun,
                cancel_frame_a=cancel_frame,
                cancel_type=cancel_type,
                startup_frame_b=anim_b.hit_frame,
                gap=gap,
                combo_type=combo_type,
                poise_damage_a=attack_a.poise_damage,
            ))

    combos.sort(key=lambda c: (c.combo_type != TRUE_COMBO, c.gap))
    return combos


def count_true_combos(weapon_name: str, motion_category: int, attacks: Iterable[RawAttack],
                      animations: Dict[str, ComboAnimation]) -> int:
    combos = calculate_combos_for_weapon(weapon_name, motion_category, attacks, animations)
    return sum(1 for c in combos if c.combo_type == TRUE_COMBO)


def get_true_combo_breakpoints(weapon_name: str, motion_category: int, attacks: Iterable[RawAttack],
                               animations: Dict[str, ComboAnimation]) -> List[Tuple[float, int]]:
    """
    True combos still available as the target's poise rises.

    Returns (poise threshold, combo count) pairs: from each threshold on,
    only combos whose opener does more poise damage than it remain.
    Example: [(0, 4), (30, 2), (50, 0)].
    """
    combos = calculate_combos_for_weapon(weapon_name, motion_category, attacks, animations)
    true_combos = [c for c in combos if c.combo_type == TRUE_COMBO]
    if not true_combos:
        return []

    breakpoints: List[Tuple[float, int]] = []
    for poise in sorted({c.poise_damage_a for c in true_combos}):
        count_above = sum(1 for c in true_combos if c.poise_damage_a > poise)
        if not breakpoints or breakpoints[-1][1] != count_above:
            breakpoints.append((poise, count_above))

    if breakpoints[0][0] > 0:
        breakpoints.insert(0, (0, len(true_combos)))
    return breakpoints
