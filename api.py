#!/usr/bin/env python3
"""
Elden Ring Damage Calculator - FastAPI Backend

REST endpoints over the calculation engine: weapon AR and guard stats,
Ash of War damage, damage against bosses, stat optimization and curve
charts. Data bundles are loaded at startup from the paths in
ER_CALC_DATA / ER_CALC_AOW_DATA / ER_CALC_ENEMY_DATA, or uploaded
through the /api/data endpoints.
"""

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException, UploadFile, File, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import uvicorn

from models import (
    DamageType, Stat, StatusEffect, MaybeValue, Unavailable, PlayerStats, CalculatorOptions,
    CharacterStats, PrecomputedData, StatConfig, WeaponEntry,
)
from curves import CurveCache, curve_series, marginal_gains
from scaling import get_scaling_grade
from ar_calculator import ARCalculator, ARResult, get_weapon_names, get_max_upgrade_level
from critical import calculate_critical_damage, describe_critical
from aow_models import AowCalculatorInput, AowAttackResult, PrecomputedAowData
from aow_calculator import (
    calculate_aow_damage, get_available_aow_names, can_weapon_mount_aow,
    get_weapon_skill_name, get_attack_attribute_name,
)
from enemy_damage import (
    DamageCalculationInput, PrecomputedEnemyData, calculate_enemy_damage, ar_to_base_damage,
)
from solver_objectives import MODE_AR, MODE_SP, OPTIMIZATION_MODES, find_optimal_stats
from stat_optimizer import STRATEGIES
from data_loader import (
    DataLoadError, load_weapon_data, load_aow_data, load_enemy_data,
    parse_weapon_data, parse_aow_data, parse_enemy_data,
)


logger = logging.getLogger(__name__)

DATA_ENV = 'ER_CALC_DATA'
AOW_DATA_ENV = 'ER_CALC_AOW_DATA'
ENEMY_DATA_ENV = 'ER_CALC_ENEMY_DATA'


# =============================================================================
# Global State
# =============================================================================

class AppState:
    """Global application state."""
    def __init__(self):
        self.weapon_data: Optional[PrecomputedData] = None
        self.aow_data: Optional[PrecomputedAowData] = None
        self.enemy_data: Optional[PrecomputedEnemyData] = None
        self.calculator: Optional[ARCalculator] = None
        self.cache = CurveCache()

    def set_weapon_data(self, data: PrecomputedData):
        self.weapon_data = data
        self.cache = CurveCache()
        self.calculator = ARCalculator(data, self.cache)

    def reset(self):
        self.__init__()

state = AppState()


def load_configured_data():
    """Load whichever bundles the environment points at."""
    if os.environ.get(DATA_ENV):
        logger.info("Loading weapon data from %s", os.environ[DATA_ENV])
        state.set_weapon_data(load_weapon_data(os.environ[DATA_ENV]))
    if os.environ.get(AOW_DATA_ENV):
        logger.info("Loading Ash of War data from %s", os.environ[AOW_DATA_ENV])
        state.aow_data = load_aow_data(os.environ[AOW_DATA_ENV])
    if os.environ.get(ENEMY_DATA_ENV):
        logger.info("Loading enemy data from %s", os.environ[ENEMY_DATA_ENV])
        state.enemy_data = load_enemy_data(os.environ[ENEMY_DATA_ENV])


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_configured_data()
    yield


# =============================================================================
# FastAPI App Setup
# =============================================================================

app = FastAPI(
    title="Elden Ring Damage Calculator",
    description="Weapon AR, Ash of War damage, enemy damage and stat optimization",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Pydantic Models for API
# =============================================================================

# Unavailable values are rendered as "-"
DisplayValue = Union[float, str]


class StatusResponse(BaseModel):
    status: str
    weapons_loaded: bool
    weapon_count: int
    aow_loaded: bool
    skill_count: int
    enemies_loaded: bool
    boss_count: int
    data_version: str


class StatsModel(BaseModel):
    strength: int = Field(10, ge=1, le=99)
    dexterity: int = Field(10, ge=1, le=99)
    intelligence: int = Field(10, ge=1, le=99)
    faith: int = Field(10, ge=1, le=99)
    arcane: int = Field(10, ge=1, le=99)

    def to_player_stats(self) -> PlayerStats:
        return PlayerStats(
            strength=self.strength,
            dexterity=self.dexterity,
            intelligence=self.intelligence,
            faith=self.faith,
            arcane=self.arcane,
        )


class WeaponRequest(BaseModel):
    weapon: str
    affinity: str = "Standard"
    upgrade_level: int = Field(0, ge=0)


class ARRequest(WeaponRequest):
    stats: StatsModel = Field(default_factory=StatsModel)
    two_handing: bool = False
    ignore_requirements: bool = False


class DamageTypeInfo(BaseModel):
    base: float
    scaling: float
    total: float
    rounded: int
    requirements_met: bool
    grades: Dict[str, str]


class SpellScalingInfo(BaseModel):
    total: float
    rounded: int
    requirements_met: bool


class ARResponse(BaseModel):
    weapon: str
    affinity: str
    upgrade_level: int
    damage: Dict[str, DamageTypeInfo]
    total: float
    rounded: int
    status_effects: Dict[str, int]
    sorcery_scaling: Optional[SpellScalingInfo] = None
    incantation_scaling: Optional[SpellScalingInfo] = None
    effective_stats: Dict[str, int]
    requirements_met: bool
    critical_damage: Optional[int] = None


class GuardResponse(BaseModel):
    weapon: str
    affinity: str
    upgrade_level: int
    negation: Dict[str, float]
    guard_boost: int
    resistance: Dict[str, float]


class WeaponSummary(BaseModel):
    name: str
    weapon_class: str
    affinities: List[str]
    max_upgrade_level: int


class WeaponDetail(WeaponSummary):
    requirements: Dict[str, int]
    weight: float
    critical_value: int
    critical: str
    can_mount_aow: bool
    skill_name: Optional[str] = None
    scaling_grades: Dict[str, Dict[str, str]]


class AowRequest(ARRequest):
    aow_name: str
    pvp_mode: bool = False
    show_lacking_fp: bool = False


class AowAttackInfo(BaseModel):
    name: str
    atk_id: int
    damage: Dict[str, DisplayValue]
    total_damage: float
    stamina: DisplayValue
    poise: DisplayValue
    attack_attribute: str
    pvp_multiplier: DisplayValue
    shield_chip: DisplayValue
    is_bullet: bool
    has_stat_scaling: bool


class AowResponse(BaseModel):
    aow_name: str
    sword_arts_id: int
    requirements: Dict[str, DisplayValue]
    attacks: List[AowAttackInfo]
    error: Optional[str] = None


class EnemyDamageRequest(ARRequest):
    boss: str
    motion_value: float = Field(100.0, ge=0)
    attack_attribute: Optional[str] = None


class EnemyDamageResponse(BaseModel):
    boss: str
    attack_attribute: str
    by_type: Dict[str, float]
    total: float
    rounded: int


class StatRange(BaseModel):
    min: int = Field(10, ge=1, le=99)
    max: int = Field(99, ge=1, le=99)


class OptimizeRequest(WeaponRequest):
    stat_configs: Dict[str, StatRange] = {}
    two_handing: bool = False
    points_budget: Optional[int] = Field(None, ge=0)
    mode: Optional[str] = None
    aow_name: Optional[str] = None
    strategy: Optional[str] = None


class OptimizeResponse(BaseModel):
    stats: Dict[str, int]
    damage: int
    requirements_met: bool
    mode: str


class CurveResponse(BaseModel):
    curve_id: int
    levels: List[int]
    values: List[float]
    marginal_gains: List[float]


# =============================================================================
# Helpers
# =============================================================================

def display(value: MaybeValue) -> DisplayValue:
    return str(Unavailable) if value is Unavailable else value


def require_weapon_data() -> PrecomputedData:
    if state.weapon_data is None:
        raise HTTPException(status_code=400, detail="No weapon data loaded")
    return state.weapon_data


def require_aow_data() -> PrecomputedAowData:
    if state.aow_data is None:
        raise HTTPException(status_code=400, detail="No Ash of War data loaded")
    return state.aow_data


def require_weapon(name: str) -> WeaponEntry:
    weapon = require_weapon_data().weapons.get(name)
    if weapon is None:
        raise HTTPException(status_code=404, detail=f"Weapon not found: {name}")
    return weapon


def compute_ar(request: ARRequest) -> ARResult:
    require_weapon(request.weapon)
    result = state.calculator.calculate(
        request.weapon, request.affinity, request.upgrade_level,
        request.stats.to_player_stats(),
        CalculatorOptions(two_handing=request.two_handing, ignore_requirements=request.ignore_requirements),
    )
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=f"No data for {request.weapon} ({request.affinity} +{request.upgrade_level})",
        )
    return result


def format_attack(attack: AowAttackResult) -> AowAttackInfo:
    return AowAttackInfo(
        name=attack.name,
        atk_id=attack.atk_id,
        damage={dt.value: display(v) for dt, v in attack.damage.items()},
        total_damage=attack.total_damage,
        stamina=display(attack.stamina),
        poise=display(attack.poise),
        attack_attribute=attack.attack_attribute,
        pvp_multiplier=display(attack.pvp_multiplier),
        shield_chip=display(attack.shield_chip),
        is_bullet=attack.is_bullet,
        has_stat_scaling=attack.has_stat_scaling,
    )


async def read_upload(file: UploadFile) -> dict:
    content = await file.read()
    try:
        return json.loads(content.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON in {file.filename}: {e}")


# =============================================================================
# Status and data
# =============================================================================

@app.get("/api/status", response_model=StatusResponse)
async def get_status():
    """Get the current application status."""
    weapon_data = state.weapon_data
    return StatusResponse(
        status="ready" if weapon_data else "no_data",
        weapons_loaded=weapon_data is not None,
        weapon_count=len(weapon_data.weapons) if weapon_data else 0,
        aow_loaded=state.aow_data is not None,
        skill_count=len(state.aow_data.sword_arts) if state.aow_data else 0,
        enemies_loaded=state.enemy_data is not None,
        boss_count=len(state.enemy_data.bosses) if state.enemy_data else 0,
        data_version=weapon_data.version if weapon_data else "",
    )


@app.post("/api/data/weapons")
async def upload_weapon_data(file: UploadFile = File(...)):
    """Upload the weapon data bundle (JSON)."""
    raw = await read_upload(file)
    try:
        state.set_weapon_data(parse_weapon_data(raw))
    except DataLoadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "filename": file.filename,
        "weapon_count": len(state.weapon_data.weapons),
        "message": f"Loaded {len(state.weapon_data.weapons)} weapons",
    }


@app.post("/api/data/aow")
async def upload_aow_data(file: UploadFile = File(...)):
    """Upload the Ash of War data bundle (JSON)."""
    raw = await read_upload(file)
    try:
        state.aow_data = parse_aow_data(raw)
    except DataLoadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "filename": file.filename,
        "skill_count": len(state.aow_data.sword_arts),
        "message": f"Loaded {len(state.aow_data.sword_arts)} skills",
    }


@app.post("/api/data/enemies")
async def upload_enemy_data(file: UploadFile = File(...)):
    """Upload the enemy data bundle (JSON)."""
    raw = await read_upload(file)
    try:
        state.enemy_data = parse_enemy_data(raw)
    except DataLoadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "filename": file.filename,
        "boss_count": len(state.enemy_data.bosses),
        "message": f"Loaded {len(state.enemy_data.bosses)} bosses",
    }


# =============================================================================
# Weapons
# =============================================================================

@app.get("/api/weapons", response_model=List[WeaponSummary])
async def list_weapons(search: Optional[str] = None, weapon_class: Optional[str] = None):
    """List weapons, optionally filtered by name substring and weapon class."""
    data = require_weapon_data()
    results = []
    for name in get_weapon_names(data):
        weapon = data.weapons[name]
        if search and search.lower() not in name.lower():
            continue
        if weapon_class and weapon.weapon_class != weapon_class:
            continue
        results.append(WeaponSummary(
            name=name,
            weapon_class=weapon.weapon_class,
            affinities=list(weapon.affinities.keys()),
            max_upgrade_level=weapon.max_upgrade_level,
        ))
    return results


@app.get("/api/weapons/{name}", response_model=WeaponDetail)
async def get_weapon(name: str):
    """Weapon details with scaling grades per affinity at max upgrade."""
    data = require_weapon_data()
    weapon = require_weapon(name)
    max_level = get_max_upgrade_level(data, name)

    grades = {}
    for affinity in weapon.affinities:
        resolved = state.calculator.resolve(name, affinity, max_level)
        if resolved is None:
            continue
        grades[affinity] = {
            stat.value: get_scaling_grade(resolved.weapon_scaling.get(stat, 0.0)) for stat in Stat
        }

    return WeaponDetail(
        name=name,
        weapon_class=weapon.weapon_class,
        affinities=list(weapon.affinities.keys()),
        max_upgrade_level=max_level,
        requirements={stat.value: weapon.requirement(stat) for stat in Stat},
        weight=weapon.weight,
        critical_value=weapon.critical_value,
        critical=describe_critical(weapon.wep_type),
        can_mount_aow=can_weapon_mount_aow(data, name),
        skill_name=get_weapon_skill_name(state.aow_data, data, name) if state.aow_data else None,
        scaling_grades=grades,
    )


# =============================================================================
# Calculations
# =============================================================================

@app.post("/api/calculate/ar", response_model=ARResponse)
async def calculate_ar_endpoint(request: ARRequest):
    """Attack rating breakdown for a weapon, affinity, level and stat line."""
    result = compute_ar(request)
    weapon = require_weapon(request.weapon)

    def spell_info(spell) -> Optional[SpellScalingInfo]:
        if spell is None:
            return None
        return SpellScalingInfo(total=spell.total, rounded=spell.rounded,
                                requirements_met=spell.requirements_met)

    return ARResponse(
        weapon=request.weapon,
        affinity=request.affinity,
        upgrade_level=request.upgrade_level,
        damage={
            dt.value: DamageTypeInfo(
                base=r.base,
                scaling=r.scaling,
                total=r.total,
                rounded=r.rounded,
                requirements_met=r.requirements_met,
                grades={stat.value: get_scaling_grade(r.display_scaling.get(stat, 0.0)) for stat in Stat},
            )
            for dt, r in result.damage.items()
        },
        total=result.total,
        rounded=result.rounded,
        status_effects={s.value: result.status(s).rounded for s in StatusEffect},
        sorcery_scaling=spell_info(result.sorcery_scaling),
        incantation_scaling=spell_info(result.incantation_scaling),
        effective_stats={stat.value: result.effective_stats.get(stat) for stat in Stat},
        requirements_met=result.requirements_met,
        critical_damage=calculate_critical_damage(result.total, weapon.critical_value, weapon.wep_type),
    )


@app.post("/api/calculate/guard", response_model=GuardResponse)
async def calculate_guard_endpoint(request: WeaponRequest):
    """Guard negation, guard boost and status resistance."""
    require_weapon(request.weapon)
    result = state.calculator.guard(request.weapon, request.affinity, request.upgrade_level)
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=f"No data for {request.weapon} ({request.affinity} +{request.upgrade_level})",
        )
    resistance = result.resistance
    return GuardResponse(
        weapon=request.weapon,
        affinity=request.affinity,
        upgrade_level=request.upgrade_level,
        negation={dt.value: v for dt, v in result.negation.items()},
        guard_boost=result.guard_boost,
        resistance={
            'poison': resistance.poison,
            'scarletRot': resistance.scarlet_rot,
            'bleed': resistance.bleed,
            'frost': resistance.frost,
            'sleep': resistance.sleep,
            'madness': resistance.madness,
            'death': resistance.death,
        },
    )


@app.post("/api/calculate/aow", response_model=AowResponse)
async def calculate_aow_endpoint(request: AowRequest):
    """Per-hit damage of an Ash of War or weapon skill."""
    data = require_weapon_data()
    aow_data = require_aow_data()
    weapon = require_weapon(request.weapon)

    result = calculate_aow_damage(aow_data, data, AowCalculatorInput(
        weapon_name=request.weapon,
        affinity=request.affinity,
        upgrade_level=request.upgrade_level,
        weapon_class=weapon.weapon_class,
        aow_name=request.aow_name,
        strength=request.stats.strength,
        dexterity=request.stats.dexterity,
        intelligence=request.stats.intelligence,
        faith=request.stats.faith,
        arcane=request.stats.arcane,
        two_handing=request.two_handing,
        ignore_requirements=request.ignore_requirements,
        pvp_mode=request.pvp_mode,
        show_lacking_fp=request.show_lacking_fp,
    ), state.cache)

    return AowResponse(
        aow_name=result.aow_name,
        sword_arts_id=result.sword_arts_id,
        requirements={stat.value: display(v) for stat, v in result.requirements.items()},
        attacks=[format_attack(a) for a in result.attacks],
        error=result.error,
    )


@app.get("/api/aow/available", response_model=List[str])
async def available_aows(weapon_class: Optional[str] = None, affinity: Optional[str] = None):
    """Ashes of War mountable on a weapon class / affinity."""
    return get_available_aow_names(require_aow_data(), weapon_class, affinity)


@app.post("/api/calculate/enemy", response_model=EnemyDamageResponse)
async def calculate_enemy_endpoint(request: EnemyDamageRequest):
    """Damage of one hit against a boss after defense and negation."""
    if state.enemy_data is None:
        raise HTTPException(status_code=400, detail="No enemy data loaded")
    boss = state.enemy_data.get(request.boss)
    if boss is None:
        raise HTTPException(status_code=404, detail=f"Boss not found: {request.boss}")

    ar = compute_ar(request)
    weapon = require_weapon(request.weapon)
    attribute = request.attack_attribute or get_attack_attribute_name(weapon.atk_attribute, weapon)

    result = calculate_enemy_damage(DamageCalculationInput(
        base_ar=ar_to_base_damage(ar),
        motion_values={dt: request.motion_value for dt in DamageType},
        attack_attribute=attribute,
        enemy_defenses=boss.defenses,
    ))
    return EnemyDamageResponse(
        boss=request.boss,
        attack_attribute=attribute,
        by_type={dt.value: v for dt, v in result.by_type.items()},
        total=result.total,
        rounded=result.rounded,
    )


# =============================================================================
# Optimization
# =============================================================================

@app.post("/api/optimize", response_model=OptimizeResponse)
async def optimize_stats(request: OptimizeRequest):
    """Best damage-stat allocation for a weapon."""
    data = require_weapon_data()
    weapon = require_weapon(request.weapon)
    if request.affinity not in weapon.affinities:
        raise HTTPException(status_code=404, detail=f"Affinity not found: {request.affinity}")
    if request.mode is not None and request.mode not in OPTIMIZATION_MODES:
        raise HTTPException(status_code=400, detail=f"Invalid mode: {request.mode}")
    if request.strategy is not None and request.strategy not in STRATEGIES:
        raise HTTPException(status_code=400, detail=f"Invalid strategy: {request.strategy}")

    stat_configs = {}
    for name, bounds in request.stat_configs.items():
        if name not in CharacterStats.__dataclass_fields__:
            raise HTTPException(status_code=400, detail=f"Unknown stat: {name}")
        if bounds.min > bounds.max:
            raise HTTPException(status_code=400, detail=f"Invalid range for {name}")
        stat_configs[name] = StatConfig(min=bounds.min, max=bounds.max)

    mode = request.mode or (MODE_SP if weapon.affinities[request.affinity].is_catalyst else MODE_AR)
    result = find_optimal_stats(
        data, request.weapon, request.affinity, request.upgrade_level, stat_configs,
        two_handing=request.two_handing,
        points_budget=request.points_budget,
        optimization_mode=mode,
        aow_data=state.aow_data,
        aow_name=request.aow_name,
        strategy=request.strategy,
        cache=state.cache,
    )
    return OptimizeResponse(
        stats={stat.value: result.stats.get(stat.value) for stat in Stat},
        damage=result.damage,
        requirements_met=result.requirements_met,
        mode=mode,
    )


# =============================================================================
# Curves
# =============================================================================

@app.get("/api/curves/{curve_id}", response_model=CurveResponse)
async def get_curve(curve_id: int, start: int = Query(1, ge=1), end: int = Query(99, le=150)):
    """Saturation of a scaling curve per stat level, for charting."""
    data = require_weapon_data()
    curve = data.curves.get(curve_id)
    if curve is None:
        raise HTTPException(status_code=404, detail=f"Curve not found: {curve_id}")
    if end < start:
        raise HTTPException(status_code=400, detail="Invalid level range")

    levels = list(range(start, end + 1))
    return CurveResponse(
        curve_id=curve_id,
        levels=levels,
        values=curve_series(curve, levels).tolist(),
        marginal_gains=marginal_gains(curve, levels).tolist(),
    )


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    print("=" * 60)
    print("Elden Ring Damage Calculator - Web Server")
    print("=" * 60)
    print(f"Weapon data: {os.environ.get(DATA_ENV, '(upload via /api/data/weapons)')}")
    print()
    print("Starting server at http://localhost:8000")
    print("API docs available at http://localhost:8000/docs")
    print("=" * 60)

    uvicorn.run(app, host="127.0.0.1", port=8000)
