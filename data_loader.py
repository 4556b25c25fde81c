"""
Data Loader

Parses the JSON bundles produced by the data build step into the engine's
data model:
  - weapon bundle  (weapons, reinforce rates, curves, SpEffect rows)
  - skill bundle   (sword arts, bullet scaling tables, PvP rates, gem flags)
  - enemy bundle   (boss defenses and negations)

Bundles use the build step's camelCase keys. Object keys that are numeric
ids arrive as strings in JSON and are converted back to int.
"""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from models import (
    DamageType, Stat, StatusEffect,
    CurveDefinition, ReinforceRates, SpEffectEntry, BaseStatScaling, BaseDamageType,
    BaseSpellScaling, BaseStatusEffect, GuardResistance, BaseGuardStats, AffinityData,
    WeaponEntry, PrecomputedData,
)
from aow_models import (
    AEC_DAMAGE_NAMES, aec_flag_name, aec_override_name, USE_WEAPON_SCALING,
    PrecomputedAowAttack, PrecomputedAow, AttackElementCorrectEntry, FinalDamageRateEntry,
    EquipParamGemEntry, AowStatPointBonus, PrecomputedAowData,
)
from critical import BASE_CRITICAL_VALUE, get_critical_value
from enemy_damage import DEFENSE_TYPES, EnemyDefenseData, EnemyData, PrecomputedEnemyData


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class DataLoadError(ValueError):
    """A bundle is missing required fields or is not valid JSON."""


# Short suffixes used by reinforce and skill fields
_RATE_PREFIXES: Dict[DamageType, str] = {
    DamageType.PHYSICAL: 'physics',
    DamageType.MAGIC: 'magic',
    DamageType.FIRE: 'fire',
    DamageType.LIGHTNING: 'thunder',
    DamageType.HOLY: 'dark',
}

_SCALING_RATE_FIELDS: Dict[Stat, str] = {
    Stat.STRENGTH: 'correctStrengthRate',
    Stat.DEXTERITY: 'correctAgilityRate',
    Stat.INTELLIGENCE: 'correctMagicRate',
    Stat.FAITH: 'correctFaithRate',
    Stat.ARCANE: 'correctLuckRate',
}

_SP_EFFECT_FIELDS: Dict[StatusEffect, str] = {
    StatusEffect.POISON: 'poizonAttackPower',
    StatusEffect.SCARLET_ROT: 'diseaseAttackPower',
    StatusEffect.BLEED: 'bloodAttackPower',
    StatusEffect.FROST: 'freezeAttackPower',
    StatusEffect.SLEEP: 'sleepAttackPower',
    StatusEffect.MADNESS: 'madnessAttackPower',
}

_ATTACK_SUFFIXES: Dict[DamageType, str] = {
    DamageType.PHYSICAL: 'Phys',
    DamageType.MAGIC: 'Mag',
    DamageType.FIRE: 'Fire',
    DamageType.LIGHTNING: 'Thun',
    DamageType.HOLY: 'Dark',
}

_PVP_RATE_FIELDS: Dict[DamageType, str] = {
    DamageType.PHYSICAL: 'physRate',
    DamageType.MAGIC: 'magRate',
    DamageType.FIRE: 'fireRate',
    DamageType.LIGHTNING: 'thunRate',
    DamageType.HOLY: 'darkRate',
}

_GEM_SCALAR_FIELDS = ('id', 'name', 'swordArtsParamId', 'mountWepTextId')


# =============================================================================
# Helpers
# =============================================================================

def _require(raw: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(raw, dict):
        raise DataLoadError(f"{where}: expected an object, got {type(raw).__name__}")
    if key not in raw:
        raise DataLoadError(f"{where}: missing '{key}'")
    return raw[key]


@contextmanager
def _field_errors(where: str):
    """Report a wrongly typed field as a DataLoadError at `where`."""
    try:
        yield
    except DataLoadError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        raise DataLoadError(f"{where}: {e}") from e


def _parse_item(parse: Callable[[Any, str], Any], value: Any, where: str) -> Any:
    with _field_errors(where):
        return parse(value, where)


def _int_keys(raw: Dict[str, Any], parse: Callable[[Any, str], Any], where: str) -> Dict[int, Any]:
    if not isinstance(raw, dict):
        raise DataLoadError(f"{where}: expected an object, got {type(raw).__name__}")
    result = {}
    for key, value in raw.items():
        try:
            item_id = int(key)
        except ValueError:
            raise DataLoadError(f"{where}: non-numeric id '{key}'")
        result[item_id] = _parse_item(parse, value, f"{where}[{key}]")
    return result


def _read_json(path: PathLike) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data bundle not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise DataLoadError(f"{path}: invalid JSON ({e})") from e


# =============================================================================
# Weapon bundle
# =============================================================================

def parse_curve(raw: Dict[str, Any], where: str = 'curve') -> CurveDefinition:
    arrays = {}
    for key in ('stageMaxVal', 'stageMaxGrowVal', 'adjPt_maxGrowVal'):
        values = _require(raw, key, where)
        if not isinstance(values, list) or len(values) != 5:
            raise DataLoadError(f"{where}: '{key}' must have 5 entries")
        arrays[key] = [float(v) for v in values]
    return CurveDefinition(
        id=int(_require(raw, 'id', where)),
        stage_max_val=arrays['stageMaxVal'],
        stage_max_grow_val=arrays['stageMaxGrowVal'],
        adj_pt_max_grow_val=arrays['adjPt_maxGrowVal'],
    )


def parse_reinforce_rates(raw: Dict[str, Any], where: str = 'reinforceRates') -> ReinforceRates:
    return ReinforceRates(
        attack_rates={dt: float(raw.get(f"{p}AtkRate", 1.0)) for dt, p in _RATE_PREFIXES.items()},
        scaling_rates={stat: float(raw.get(name, 1.0)) for stat, name in _SCALING_RATE_FIELDS.items()},
        guard_cut_rates={dt: float(raw.get(f"{p}GuardCutRate", 1.0)) for dt, p in _RATE_PREFIXES.items()},
        stamina_atk_rate=float(raw.get('staminaAtkRate', 1.0)),
        stamina_guard_def_rate=float(raw.get('staminaGuardDefRate', 1.0)),
        sp_effect_id1=int(raw.get('spEffectId1', 0)),
        sp_effect_id2=int(raw.get('spEffectId2', 0)),
    )


def parse_sp_effect(raw: Dict[str, Any], where: str = 'spEffect') -> SpEffectEntry:
    return SpEffectEntry(attack_power={
        status: float(raw.get(name, 0.0)) for status, name in _SP_EFFECT_FIELDS.items()
    })


def _parse_stat_scaling_map(raw: Optional[Dict[str, Any]], where: str) -> Dict[Stat, Optional[BaseStatScaling]]:
    result = {}
    for stat in Stat:
        entry = (raw or {}).get(stat.value)
        if entry is None:
            result[stat] = None
            continue
        result[stat] = BaseStatScaling(
            base=float(_require(entry, 'base', f"{where}.{stat.value}")),
            curve_id=int(_require(entry, 'curveId', f"{where}.{stat.value}")),
            is_override=bool(entry.get('isOverride', False)),
        )
    return result


def _parse_damage_type(raw: Optional[Dict[str, Any]], where: str) -> Optional[BaseDamageType]:
    if raw is None:
        return None
    return BaseDamageType(
        attack_base=float(_require(raw, 'attackBase', where)),
        scaling=_parse_stat_scaling_map(raw.get('scaling'), f"{where}.scaling"),
    )


def _parse_spell_scaling(raw: Optional[Dict[str, Any]], where: str) -> Optional[BaseSpellScaling]:
    if raw is None:
        return None
    return BaseSpellScaling(scaling=_parse_stat_scaling_map(raw, where))


def _parse_status_effect(raw: Optional[Dict[str, Any]], where: str) -> Optional[BaseStatusEffect]:
    if raw is None:
        return None
    status_name = _require(raw, 'statusType', where)
    try:
        status = StatusEffect(status_name)
    except ValueError:
        raise DataLoadError(f"{where}: unknown statusType '{status_name}'")
    return BaseStatusEffect(
        sp_effect_behavior_id=int(_require(raw, 'spEffectBehaviorId', where)),
        sp_effect_slot=int(raw.get('spEffectSlot', 0)),
        status_type=status,
        arcane_scaling=float(raw.get('arcaneScaling', 0.0)),
        curve_id=int(raw.get('curveId', 6)),
    )


def parse_affinity(raw: Dict[str, Any], where: str = 'affinity') -> AffinityData:
    weapon_scaling = raw.get('weaponScaling') or {}
    return AffinityData(
        id=int(_require(raw, 'id', where)),
        reinforce_type_id=int(_require(raw, 'reinforceTypeId', where)),
        damage={dt: _parse_damage_type(raw.get(dt.value), f"{where}.{dt.value}") for dt in DamageType},
        status_effects={s: _parse_status_effect(raw.get(s.value), f"{where}.{s.value}") for s in StatusEffect},
        weapon_scaling={stat: float(weapon_scaling.get(stat.value, 0.0)) for stat in Stat},
        sorcery_scaling=_parse_spell_scaling(raw.get('sorceryScaling'), f"{where}.sorceryScaling"),
        incantation_scaling=_parse_spell_scaling(raw.get('incantationScaling'), f"{where}.incantationScaling"),
    )


def _critical_value(raw: Dict[str, Any]) -> int:
    """Final critical value; from throwAtkRate when the bundle has the raw rate."""
    if 'throwAtkRate' in raw:
        return int(get_critical_value(float(raw['throwAtkRate'])))
    return max(BASE_CRITICAL_VALUE, int(raw.get('criticalValue', BASE_CRITICAL_VALUE)))


def parse_weapon(name: str, raw: Dict[str, Any], where: str = 'weapon') -> WeaponEntry:
    requirements = _require(raw, 'requirements', where)
    guard = raw.get('guardStats') or {}
    resistance = raw.get('guardResistance') or {}
    affinities = _require(raw, 'affinities', where)

    return WeaponEntry(
        name=name,
        requirements={stat: int(requirements.get(stat.value, 0)) for stat in Stat},
        wep_type=int(raw.get('wepType', 0)),
        wep_motion_category=int(raw.get('wepmotionCategory', 0)),
        critical_value=_critical_value(raw),
        is_dual_blade=bool(raw.get('isDualBlade', False)),
        is_enhance=bool(raw.get('isEnhance', True)),
        max_upgrade_level=int(raw.get('maxUpgradeLevel', 25)),
        weight=float(raw.get('weight', 0.0)),
        attack_base_stamina=float(raw.get('attackBaseStamina', 0.0)),
        sa_weapon_damage=float(raw.get('saWeaponDamage', 0.0)),
        atk_attribute=int(raw.get('atkAttribute', 0)),
        atk_attribute2=int(raw.get('atkAttribute2', 0)),
        is_normal_attack_type=bool(raw.get('isNormalAttackType', False)),
        is_slash_attack_type=bool(raw.get('isSlashAttackType', False)),
        is_blow_attack_type=bool(raw.get('isBlowAttackType', False)),
        is_thrust_attack_type=bool(raw.get('isThrustAttackType', False)),
        gem_mount_type=int(raw.get('gemMountType', 0)),
        sword_arts_param_id=int(raw.get('swordArtsParamId', 0)),
        guard_stats=BaseGuardStats(
            cut={dt: float(guard.get(dt.value, 0.0)) for dt in DamageType},
            guard_boost=float(guard.get('guardBoost', 0.0)),
        ),
        guard_resistance=GuardResistance(
            poison=float(resistance.get('poison', 0.0)),
            scarlet_rot=float(resistance.get('scarletRot', 0.0)),
            bleed=float(resistance.get('bleed', 0.0)),
            frost=float(resistance.get('frost', 0.0)),
            sleep=float(resistance.get('sleep', 0.0)),
            madness=float(resistance.get('madness', 0.0)),
            death=float(resistance.get('death', 0.0)),
        ),
        affinities={
            affinity: parse_affinity(data, f"{where}.affinities.{affinity}")
            for affinity, data in affinities.items()
        },
    )


def _parse_weapons(raw: Dict[str, Any]) -> Dict[str, WeaponEntry]:
    weapons = {}
    for name, entry in raw.items():
        where = f"weapons.{name}"
        with _field_errors(where):
            weapons[name] = parse_weapon(name, entry, where)
    return weapons


def parse_weapon_data(raw: Dict[str, Any]) -> PrecomputedData:
    """
    Build a PrecomputedData from a decoded weapon bundle.

    Raises:
        DataLoadError: for a missing or wrongly typed field
    """
    weapons = _require(raw, 'weapons', 'bundle')
    with _field_errors('bundle'):
        data = PrecomputedData(
            weapons=_parse_weapons(weapons),
            curves=_int_keys(_require(raw, 'curves', 'bundle'), parse_curve, 'curves'),
            reinforce_rates=_int_keys(raw.get('reinforceRates', {}), parse_reinforce_rates, 'reinforceRates'),
            sp_effects=_int_keys(raw.get('spEffects', {}), parse_sp_effect, 'spEffects'),
            version=str(raw.get('version', '')),
            generated_at=str(raw.get('generatedAt', '')),
        )
    logger.info("Loaded %d weapons, %d curves, %d reinforce rows",
                len(data.weapons), len(data.curves), len(data.reinforce_rates))
    return data


def load_weapon_data(path: PathLike) -> PrecomputedData:
    return parse_weapon_data(_read_json(path))


# =============================================================================
# Skill bundle
# =============================================================================

def parse_aow_attack(raw: Dict[str, Any], where: str = 'attack') -> PrecomputedAowAttack:
    return PrecomputedAowAttack(
        atk_id=int(_require(raw, 'atkId', where)),
        name=str(_require(raw, 'name', where)),
        weapon_class=raw.get('weaponClass'),
        motion={dt: float(raw.get(f"motion{s}", 0.0)) for dt, s in _ATTACK_SUFFIXES.items()},
        flat={dt: float(raw.get(f"flat{s}", 0.0)) for dt, s in _ATTACK_SUFFIXES.items()},
        motion_stamina=float(raw.get('motionStam', 0.0)),
        motion_poise=float(raw.get('motionPoise', 0.0)),
        flat_stamina=float(raw.get('flatStam', 0.0)),
        flat_poise=float(raw.get('flatPoise', 0.0)),
        atk_attribute=int(raw.get('atkAttribute', 0)),
        guard_cut_cancel_rate=float(raw.get('guardCutCancelRate', 0.0)),
        is_add_base_atk=bool(raw.get('isAddBaseAtk', False)),
        overwrite_attack_element_correct_id=int(
            raw.get('overwriteAttackElementCorrectId', USE_WEAPON_SCALING)),
        is_disable_both_hands_atk_bonus=bool(raw.get('isDisableBothHandsAtkBonus', False)),
        pvp_multiplier=float(raw.get('pvpMultiplier', 1.0)),
        final_damage_rate_id=int(raw.get('finalDamageRateId', 0)),
    )


def parse_sword_art(raw: Dict[str, Any], where: str = 'swordArt') -> PrecomputedAow:
    return PrecomputedAow(
        sword_arts_id=int(_require(raw, 'swordArtsId', where)),
        name=str(_require(raw, 'name', where)),
        attacks=[parse_aow_attack(a, f"{where}.attacks[{i}]") for i, a in enumerate(raw.get('attacks', []))],
    )


def parse_attack_element_correct(raw: Dict[str, Any], where: str = 'aec') -> AttackElementCorrectEntry:
    enabled = {}
    overrides = {}
    for stat in Stat:
        for dt in AEC_DAMAGE_NAMES:
            enabled[(stat, dt)] = bool(raw.get(aec_flag_name(stat, dt), False))
            overrides[(stat, dt)] = float(raw.get(aec_override_name(stat, dt), -1))
    return AttackElementCorrectEntry(
        id=int(_require(raw, 'id', where)),
        enabled=enabled,
        overrides=overrides,
    )


def parse_final_damage_rate(raw: Dict[str, Any], where: str = 'finalDamageRate') -> FinalDamageRateEntry:
    return FinalDamageRateEntry(
        id=int(_require(raw, 'id', where)),
        rates={dt: float(raw.get(name, 1.0)) for dt, name in _PVP_RATE_FIELDS.items()},
        stamina_rate=float(raw.get('staminaRate', 1.0)),
        sa_rate=float(raw.get('saRate', 1.0)),
    )


def parse_equip_param_gem(raw: Dict[str, Any], where: str = 'equipParamGem') -> EquipParamGemEntry:
    flags = {key: bool(value) for key, value in raw.items()
             if key not in _GEM_SCALAR_FIELDS and isinstance(value, (bool, int))}
    return EquipParamGemEntry(
        id=int(_require(raw, 'id', where)),
        name=str(raw.get('name', '')),
        sword_arts_param_id=int(_require(raw, 'swordArtsParamId', where)),
        flags=flags,
        mount_wep_text_id=int(raw.get('mountWepTextId', 0)),
    )


def parse_stat_point_bonus(raw: Dict[str, Any], where: str = 'statPointBonus') -> AowStatPointBonus:
    return AowStatPointBonus(points={stat: float(raw.get(stat.value, 0.0)) for stat in Stat})


def parse_aow_data(raw: Dict[str, Any]) -> PrecomputedAowData:
    """Build a PrecomputedAowData from a decoded skill bundle."""
    sword_arts = _int_keys(_require(raw, 'swordArts', 'bundle'), parse_sword_art, 'swordArts')
    by_name = raw.get('swordArtsByName')
    if by_name is None:
        by_name = {art.name: art_id for art_id, art in sword_arts.items()}

    with _field_errors('bundle'):
        data = _build_aow_data(raw, sword_arts, by_name)
    logger.info("Loaded %d skills, %d gems", len(data.sword_arts), len(data.equip_param_gem))
    return data


def _build_aow_data(raw, sword_arts, by_name):
    return PrecomputedAowData(
        sword_arts=sword_arts,
        sword_arts_by_name={name: int(art_id) for name, art_id in by_name.items()},
        attack_element_correct=_int_keys(raw.get('attackElementCorrect', {}),
                                         parse_attack_element_correct, 'attackElementCorrect'),
        final_damage_rates=_int_keys(raw.get('finalDamageRates', {}),
                                     parse_final_damage_rate, 'finalDamageRates'),
        equip_param_gem=_int_keys(raw.get('equipParamGem', {}), parse_equip_param_gem, 'equipParamGem'),
        weapon_class_mount_field_map=dict(raw.get('weaponClassMountFieldMap', {})),
        affinity_config_field_map=dict(raw.get('affinityConfigFieldMap', {})),
        aow_explicit_weapon_classes={
            name: list(classes) for name, classes in raw.get('aowExplicitWeaponClasses', {}).items()
        },
        sword_arts_id_to_gem_id={
            int(art_id): int(gem_id) for art_id, gem_id in raw.get('swordArtsIdToGemId', {}).items()
        },
        aow_stat_point_bonuses={
            name: _parse_item(parse_stat_point_bonus, bonus, f"aowStatPointBonuses.{name}")
            for name, bonus in raw.get('aowStatPointBonuses', {}).items()
        },
        skill_names={int(art_id): str(name) for art_id, name in raw.get('skillNames', {}).items()},
        version=str(raw.get('version', '')),
        generated_at=str(raw.get('generatedAt', '')),
    )


def load_aow_data(path: PathLike) -> PrecomputedAowData:
    return parse_aow_data(_read_json(path))


# =============================================================================
# Enemy bundle
# =============================================================================

def parse_enemy(raw: Dict[str, Any], where: str = 'enemy') -> EnemyData:
    defenses = raw.get('defenses') or {}
    defense = defenses.get('defense') or {}
    negation = defenses.get('negation') or {}
    return EnemyData(
        id=str(_require(raw, 'id', where)),
        name=str(_require(raw, 'name', where)),
        location=str(raw.get('location', '')),
        is_boss=bool(raw.get('isBoss', True)),
        is_dlc=bool(raw.get('isDLC', False)),
        health=float(raw.get('health', 0.0)),
        defenses=EnemyDefenseData(
            defense={key: float(defense.get(key, 0.0)) for key in DEFENSE_TYPES},
            negation={key: float(negation.get(key, 0.0)) for key in DEFENSE_TYPES},
        ),
    )


def _parse_bosses(raw: Any) -> Dict[str, EnemyData]:
    if not isinstance(raw, dict):
        raise DataLoadError(f"bosses: expected an object, got {type(raw).__name__}")
    return {key: _parse_item(parse_enemy, entry, f"bosses.{key}") for key, entry in raw.items()}


def parse_enemy_data(raw: Dict[str, Any]) -> PrecomputedEnemyData:
    bosses = _parse_bosses(_require(raw, 'bosses', 'bundle'))
    names = raw.get('bossNames')
    if names is None:
        names = sorted({boss.name for boss in bosses.values()})
    with _field_errors('bossNames'):
        names = [str(name) for name in names]
    logger.info("Loaded %d bosses", len(bosses))
    return PrecomputedEnemyData(bosses=bosses, boss_names=names)


def load_enemy_data(path: PathLike) -> PrecomputedEnemyData:
    return parse_enemy_data(_read_json(path))
