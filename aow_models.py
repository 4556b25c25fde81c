"""
Data models for Ash of War (skill) damage

Skill data is a separate bundle from the weapon data: sword arts with
their per-hit attack parameters plus the supporting tables (bullet
scaling overrides, PvP damage rates, gem compatibility flags).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from models import DamageType, Stat, Unavailable, MaybeValue


# =============================================================================
# Constants
# =============================================================================

# swordArtsParamId meaning "no skill"
NO_SKILL_ID = 10

# gemMountType for weapons that accept Ashes of War
GEM_MOUNT_TYPE_ASHES = 2

# atkAttribute values that defer to the weapon
ATK_ATTRIBUTE_WEAPON_PRIMARY = 252
ATK_ATTRIBUTE_WEAPON_FLAGS = 253

ATTACK_ATTRIBUTE_MAP: Dict[int, str] = {
    0: 'Standard',
    1: 'Strike',
    2: 'Slash',
    3: 'Pierce',
    252: '-',
    253: '-',
    255: '-',
}

# overwriteAttackElementCorrectId meaning "scale with the weapon's own table"
USE_WEAPON_SCALING = -1

# Param names used in AttackElementCorrectParam fields
AEC_STAT_NAMES: Dict[Stat, str] = {
    Stat.STRENGTH: 'Strength',
    Stat.DEXTERITY: 'Dexterity',
    Stat.INTELLIGENCE: 'Magic',
    Stat.FAITH: 'Faith',
    Stat.ARCANE: 'Luck',
}

AEC_DAMAGE_NAMES: Dict[DamageType, str] = {
    DamageType.PHYSICAL: 'Physics',
    DamageType.MAGIC: 'Magic',
    DamageType.FIRE: 'Fire',
    DamageType.LIGHTNING: 'Thunder',
    DamageType.HOLY: 'Dark',
}


def aec_flag_name(stat: Stat, damage_type: DamageType) -> str:
    """e.g. isStrengthCorrect_byPhysics"""
    return f"is{AEC_STAT_NAMES[stat]}Correct_by{AEC_DAMAGE_NAMES[damage_type]}"


def aec_override_name(stat: Stat, damage_type: DamageType) -> str:
    """e.g. overwriteStrengthCorrectRate_byPhysics"""
    return f"overwrite{AEC_STAT_NAMES[stat]}CorrectRate_by{AEC_DAMAGE_NAMES[damage_type]}"


# =============================================================================
# Skill data
# =============================================================================

def _zero_by_type() -> Dict[DamageType, float]:
    return {dt: 0.0 for dt in DamageType}


@dataclass
class PrecomputedAowAttack:
    """
    One hit of a skill.

    Motion values are fractions (already divided by 100). Flat values are
    the bullet damage added by isAddBaseAtk attacks.
    """
    atk_id: int
    name: str
    weapon_class: Optional[str] = None   # "[Dagger] ..." prefix, None for generic hits
    motion: Dict[DamageType, float] = field(default_factory=_zero_by_type)
    flat: Dict[DamageType, float] = field(default_factory=_zero_by_type)
    motion_stamina: float = 0.0
    motion_poise: float = 0.0
    flat_stamina: float = 0.0
    flat_poise: float = 0.0
    atk_attribute: int = 0
    guard_cut_cancel_rate: float = 0.0
    is_add_base_atk: bool = False
    overwrite_attack_element_correct_id: int = USE_WEAPON_SCALING
    is_disable_both_hands_atk_bonus: bool = False
    pvp_multiplier: float = 1.0
    final_damage_rate_id: int = 0

    def has_motion_damage(self) -> bool:
        return any(mv > 0 for mv in self.motion.values())


@dataclass
class PrecomputedAow:
    sword_arts_id: int
    name: str
    attacks: List[PrecomputedAowAttack] = field(default_factory=list)


@dataclass
class AttackElementCorrectEntry:
    """
    Bullet scaling table: for each (stat, damage type) an enable flag and
    an override percent (-1 = use the weapon's value).
    """
    id: int
    enabled: Dict[Tuple[Stat, DamageType], bool] = field(default_factory=dict)
    overrides: Dict[Tuple[Stat, DamageType], float] = field(default_factory=dict)

    def is_enabled(self, stat: Stat, damage_type: DamageType) -> bool:
        return self.enabled.get((stat, damage_type), False)

    def override(self, stat: Stat, damage_type: DamageType) -> float:
        return self.overrides.get((stat, damage_type), -1.0)


@dataclass
class FinalDamageRateEntry:
    """PvP damage multipliers."""
    id: int
    rates: Dict[DamageType, float] = field(default_factory=lambda: {dt: 1.0 for dt in DamageType})
    stamina_rate: float = 1.0
    sa_rate: float = 1.0


@dataclass
class EquipParamGemEntry:
    """
    Ash of War item. flags holds the configurableWepAttrNN and
    canMountWep_* booleans keyed by their param field names.
    """
    id: int
    name: str
    sword_arts_param_id: int
    flags: Dict[str, bool] = field(default_factory=dict)
    mount_wep_text_id: int = 0

    def flag(self, field_name: str) -> bool:
        return self.flags.get(field_name, False)


@dataclass
class AowStatPointBonus:
    """Stat points granted by buff skills (War Cry, Barbaric Roar, ...)."""
    points: Dict[Stat, float] = field(default_factory=dict)

    def get(self, stat: Stat) -> float:
        return self.points.get(stat, 0.0)


@dataclass
class PrecomputedAowData:
    """Root skill bundle."""
    sword_arts: Dict[int, PrecomputedAow] = field(default_factory=dict)
    sword_arts_by_name: Dict[str, int] = field(default_factory=dict)
    attack_element_correct: Dict[int, AttackElementCorrectEntry] = field(default_factory=dict)
    final_damage_rates: Dict[int, FinalDamageRateEntry] = field(default_factory=dict)
    equip_param_gem: Dict[int, EquipParamGemEntry] = field(default_factory=dict)
    weapon_class_mount_field_map: Dict[str, str] = field(default_factory=dict)
    affinity_config_field_map: Dict[str, str] = field(default_factory=dict)
    aow_explicit_weapon_classes: Dict[str, List[str]] = field(default_factory=dict)
    sword_arts_id_to_gem_id: Dict[int, int] = field(default_factory=dict)
    aow_stat_point_bonuses: Dict[str, AowStatPointBonus] = field(default_factory=dict)
    skill_names: Dict[int, str] = field(default_factory=dict)
    version: str = ''
    generated_at: str = ''


# =============================================================================
# Calculator input / output
# =============================================================================

@dataclass(frozen=True)
class AowCalculatorInput:
    weapon_name: str
    affinity: str
    upgrade_level: int
    weapon_class: str
    aow_name: str
    strength: int = 10
    dexterity: int = 10
    intelligence: int = 10
    faith: int = 10
    arcane: int = 10
    two_handing: bool = False
    ignore_requirements: bool = False
    pvp_mode: bool = False
    show_lacking_fp: bool = False


@dataclass
class AowAttackResult:
    """
    Damage of one hit. Numeric display fields are MaybeValue: Unavailable
    when the hit has no such component or it cannot be computed.
    """
    name: str
    atk_id: int
    damage: Dict[DamageType, MaybeValue]
    stamina: MaybeValue
    poise: MaybeValue
    attack_attribute: str
    pvp_multiplier: MaybeValue
    shield_chip: MaybeValue
    has_stat_scaling: bool = False
    is_bullet: bool = False
    motion_damage: float = 0.0
    bullet_damage: float = 0.0
    motion_by_type: Dict[DamageType, float] = field(default_factory=_zero_by_type)
    bullet_by_type: Dict[DamageType, float] = field(default_factory=_zero_by_type)

    @property
    def total_damage(self) -> float:
        """Sum of the available damage types."""
        return sum(v for v in self.damage.values() if v is not Unavailable)


def unavailable_requirements() -> Dict[Stat, MaybeValue]:
    return {stat: Unavailable for stat in Stat}


@dataclass
class AowCalculatorResult:
    aow_name: str
    sword_arts_id: int
    requirements: Dict[Stat, MaybeValue] = field(default_factory=unavailable_requirements)
    attacks: List[AowAttackResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def no_attack_data_row() -> AowAttackResult:
    """Placeholder row for skills that exist but have no attack data."""
    return AowAttackResult(
        name='No AoW Attack Data',
        atk_id=-1,
        damage={dt: Unavailable for dt in DamageType},
        stamina=Unavailable,
        poise=Unavailable,
        attack_attribute='-',
        pvp_multiplier=Unavailable,
        shield_chip=Unavailable,
    )
