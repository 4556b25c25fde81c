"""
Data models for the Elden Ring Damage Calculator

Defines the precomputed weapon data bundle produced by the build step,
the per-call input value objects, and the shared enums used to key
damage types, stats and status effects.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Union


class DamageType(Enum):
    """The five damage channels. Values match the bundle's JSON keys."""
    PHYSICAL = 'physical'
    MAGIC = 'magic'
    FIRE = 'fire'
    LIGHTNING = 'lightning'
    HOLY = 'holy'


class Stat(Enum):
    """Damage-scaling attributes. Values match PlayerStats field names."""
    STRENGTH = 'strength'
    DEXTERITY = 'dexterity'
    INTELLIGENCE = 'intelligence'
    FAITH = 'faith'
    ARCANE = 'arcane'


class StatusEffect(Enum):
    """Status buildup types carried by weapons."""
    POISON = 'poison'
    SCARLET_ROT = 'scarletRot'
    BLEED = 'bleed'
    FROST = 'frost'
    SLEEP = 'sleep'
    MADNESS = 'madness'


DAMAGE_TYPES = tuple(DamageType)
STATS = tuple(Stat)
STATUS_EFFECTS = tuple(StatusEffect)

# Field names of the five damage stats on CharacterStats, in declaration order
DAMAGE_STAT_NAMES = tuple(stat.value for stat in Stat)

# Maximum effective attribute value
MAX_EFFECTIVE_STAT = 148

# Weapon type IDs (wepType from EquipParamWeapon)
FIST_WEP_TYPE = 35
LIGHT_BOW_WEP_TYPE = 50
BOW_WEP_TYPE = 51
GREATBOW_WEP_TYPE = 53
BALLISTA_WEP_TYPE = 56

WEAPON_CLASS_MAP: Dict[int, str] = {
    1: 'Dagger',
    3: 'Straight Sword',
    5: 'Greatsword',
    7: 'Colossal Sword',
    9: 'Curved Sword',
    11: 'Curved Greatsword',
    13: 'Katana',
    14: 'Twinblade',
    15: 'Thrusting Sword',
    16: 'Heavy Thrusting Sword',
    17: 'Axe',
    19: 'Greataxe',
    21: 'Hammer',
    23: 'Great Hammer',
    24: 'Flail',
    25: 'Spear',
    28: 'Great Spear',
    29: 'Halberd',
    31: 'Reaper',
    33: 'Unarmed',
    35: 'Fist',
    37: 'Claw',
    39: 'Whip',
    41: 'Colossal Weapon',
    50: 'Light Bow',
    51: 'Bow',
    53: 'Greatbow',
    55: 'Crossbow',
    56: 'Ballista',
    57: 'Glintstone Staff',
    61: 'Sacred Seal',
    65: 'Small Shield',
    67: 'Medium Shield',
    69: 'Greatshield',
    87: 'Torch',
    88: 'Hand-to-Hand',
    89: 'Perfume Bottle',
    90: 'Thrusting Shield',
    91: 'Throwing Blade',
    92: 'Backhand Blade',
    93: 'Light Greatsword',
    94: 'Great Katana',
    95: 'Beast Claw',
}

WEAPON_CLASS_NAME_TO_ID: Dict[str, int] = {name: wep_id for wep_id, name in WEAPON_CLASS_MAP.items()}


# =============================================================================
# Unavailable sentinel
# =============================================================================

class UnavailableType:
    """
    Marks a value that could not be computed (requirement not met,
    attack has no such component, PvP disabled, ...).

    Distinct from 0: a zero is a computed value, Unavailable is not.
    Arithmetic on it raises TypeError, so it cannot leak into sums.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'Unavailable'

    def __str__(self) -> str:
        return '-'

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (UnavailableType, ())


Unavailable = UnavailableType()

MaybeValue = Union[float, UnavailableType]


def is_available(value: MaybeValue) -> bool:
    """True if value is a computed number rather than Unavailable."""
    return value is not Unavailable


def value_or(value: MaybeValue, default: float = 0.0) -> float:
    """Unwrap a MaybeValue, substituting default for Unavailable."""
    return default if value is Unavailable else value


# =============================================================================
# Curves and reinforcement
# =============================================================================

@dataclass
class CurveDefinition:
    """
    CalcCorrectGraph curve: 5 breakpoints plus a shaping exponent per segment.

    Segment i runs from stage_max_val[i] to stage_max_val[i + 1] and is
    shaped by adj_pt_max_grow_val[i].
    """
    id: int
    stage_max_val: List[float]
    stage_max_grow_val: List[float]
    adj_pt_max_grow_val: List[float]


@dataclass
class ReinforceRates:
    """Multipliers for one reinforce table row (reinforceTypeId + level)."""
    attack_rates: Dict[DamageType, float] = field(
        default_factory=lambda: {dt: 1.0 for dt in DamageType})
    scaling_rates: Dict[Stat, float] = field(
        default_factory=lambda: {stat: 1.0 for stat in Stat})
    guard_cut_rates: Dict[DamageType, float] = field(
        default_factory=lambda: {dt: 1.0 for dt in DamageType})
    stamina_atk_rate: float = 1.0
    stamina_guard_def_rate: float = 1.0
    sp_effect_id1: int = 0  # Offset for spEffectBehaviorId0
    sp_effect_id2: int = 0  # Offset for spEffectBehaviorId1


@dataclass
class SpEffectEntry:
    """Status buildup values of one SpEffectParam row."""
    attack_power: Dict[StatusEffect, float] = field(default_factory=dict)

    def get(self, status: StatusEffect) -> float:
        return self.attack_power.get(status, 0.0)


# =============================================================================
# Weapon data (as produced by the build step)
# =============================================================================

@dataclass
class BaseStatScaling:
    """Scaling of one stat on one channel before the reinforce rate."""
    base: float
    curve_id: int
    is_override: bool = False  # base is already final, skip the rate


@dataclass
class BaseDamageType:
    """One damage channel at +0: attack base and per-stat scaling."""
    attack_base: float
    scaling: Dict[Stat, Optional[BaseStatScaling]] = field(default_factory=dict)

    def get_scaling(self, stat: Stat) -> Optional[BaseStatScaling]:
        return self.scaling.get(stat)


@dataclass
class BaseSpellScaling:
    """Catalyst spell-power scaling (base 100 plus stat contributions)."""
    scaling: Dict[Stat, Optional[BaseStatScaling]] = field(default_factory=dict)

    def get_scaling(self, stat: Stat) -> Optional[BaseStatScaling]:
        return self.scaling.get(stat)


@dataclass
class BaseStatusEffect:
    """
    Status effect reference. The buildup value is looked up in the
    SpEffect table at sp_effect_behavior_id + the level's offset.
    """
    sp_effect_behavior_id: int
    sp_effect_slot: int
    status_type: StatusEffect
    arcane_scaling: float = 0.0
    curve_id: int = 6


@dataclass
class GuardResistance:
    """Status resistance while guarding. Does not scale with upgrades."""
    poison: float = 0.0
    scarlet_rot: float = 0.0
    bleed: float = 0.0
    frost: float = 0.0
    sleep: float = 0.0
    madness: float = 0.0
    death: float = 0.0


@dataclass
class BaseGuardStats:
    """Damage negation percentages and guard boost at +0."""
    cut: Dict[DamageType, float] = field(default_factory=lambda: {dt: 0.0 for dt in DamageType})
    guard_boost: float = 0.0


@dataclass
class AffinityData:
    """Everything that varies per (weapon, affinity)."""
    id: int
    reinforce_type_id: int
    damage: Dict[DamageType, Optional[BaseDamageType]] = field(default_factory=dict)
    status_effects: Dict[StatusEffect, Optional[BaseStatusEffect]] = field(default_factory=dict)
    weapon_scaling: Dict[Stat, float] = field(default_factory=lambda: {stat: 0.0 for stat in Stat})
    sorcery_scaling: Optional[BaseSpellScaling] = None
    incantation_scaling: Optional[BaseSpellScaling] = None

    @property
    def is_catalyst(self) -> bool:
        return self.sorcery_scaling is not None or self.incantation_scaling is not None


@dataclass
class WeaponEntry:
    """A weapon with its shared properties and nested affinities."""
    name: str
    requirements: Dict[Stat, int] = field(default_factory=lambda: {stat: 0 for stat in Stat})
    wep_type: int = 0
    wep_motion_category: int = 0
    critical_value: int = 100
    is_dual_blade: bool = False
    is_enhance: bool = True
    max_upgrade_level: int = 25
    weight: float = 0.0

    # Skill-related properties
    attack_base_stamina: float = 0.0
    sa_weapon_damage: float = 0.0
    atk_attribute: int = 0
    atk_attribute2: int = 0
    is_normal_attack_type: bool = False
    is_slash_attack_type: bool = False
    is_blow_attack_type: bool = False
    is_thrust_attack_type: bool = False
    gem_mount_type: int = 0
    sword_arts_param_id: int = 0

    guard_stats: BaseGuardStats = field(default_factory=BaseGuardStats)
    guard_resistance: GuardResistance = field(default_factory=GuardResistance)

    affinities: Dict[str, AffinityData] = field(default_factory=dict)

    @property
    def weapon_class(self) -> str:
        return WEAPON_CLASS_MAP.get(self.wep_type, 'Unknown')

    def requirement(self, stat: Stat) -> int:
        return self.requirements.get(stat, 0)


@dataclass
class PrecomputedData:
    """
    Root data bundle: weapons by name, curves by id, reinforce rows by
    (reinforceTypeId + level), SpEffect rows by id.

    Built once and never mutated by the engine.
    """
    weapons: Dict[str, WeaponEntry] = field(default_factory=dict)
    curves: Dict[int, CurveDefinition] = field(default_factory=dict)
    reinforce_rates: Dict[int, ReinforceRates] = field(default_factory=dict)
    sp_effects: Dict[int, SpEffectEntry] = field(default_factory=dict)
    version: str = ''
    generated_at: str = ''


# =============================================================================
# Per-call inputs
# =============================================================================

@dataclass(frozen=True)
class PlayerStats:
    """The five damage attributes fed to the AR engine."""
    strength: int = 10
    dexterity: int = 10
    intelligence: int = 10
    faith: int = 10
    arcane: int = 10

    def get(self, stat: Stat) -> int:
        return getattr(self, stat.value)

    def with_stat(self, stat: Stat, value: int) -> 'PlayerStats':
        return replace(self, **{stat.value: value})


@dataclass(frozen=True)
class CalculatorOptions:
    two_handing: bool = False
    ignore_requirements: bool = False


@dataclass(frozen=True)
class CharacterStats:
    """Full attribute spread used by the stat optimizer."""
    vigor: int = 10
    mind: int = 10
    endurance: int = 10
    strength: int = 10
    dexterity: int = 10
    intelligence: int = 10
    faith: int = 10
    arcane: int = 10

    def get(self, name: str) -> int:
        return getattr(self, name)

    def with_values(self, **values: int) -> 'CharacterStats':
        return replace(self, **values)

    def to_player_stats(self) -> PlayerStats:
        return PlayerStats(
            strength=self.strength,
            dexterity=self.dexterity,
            intelligence=self.intelligence,
            faith=self.faith,
            arcane=self.arcane,
        )

    def total(self, names=DAMAGE_STAT_NAMES) -> int:
        return sum(self.get(name) for name in names)


@dataclass(frozen=True)
class StatConfig:
    """Allowed range for one stat. A stat is locked when min == max."""
    min: int = 10
    max: int = 99

    @property
    def locked(self) -> bool:
        return self.min == self.max
