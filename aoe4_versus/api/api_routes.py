"""API routes for the AoE4 Versus API."""

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..catalog import Catalog
from ..config import EngineSettings, load_settings
from ..game_models import Entity, WILDCARD_CIV
from ..stats import unit_classes
from ..technology import abilities_for_unit, categorize_technology, default_active_abilities, technologies_for_unit
from ..tiers import tier_info, toggle_selection
from ..versus import UnitSelection, compare, stats_for

logger = logging.getLogger(__name__)

router = APIRouter()

CONFIG_ENV = "AOE4_VERSUS_CONFIG"

_STATE: Dict[str, Any] = {}


def _load_state() -> Tuple[Dict[str, Any], EngineSettings]:
    if "settings" not in _STATE:
        paths = [p for p in os.environ.get(CONFIG_ENV, "").split(os.pathsep) if p]
        cfg, settings = load_settings(paths)
        _STATE["cfg"] = cfg
        _STATE["settings"] = settings
    return _STATE["cfg"], _STATE["settings"]


def get_settings() -> EngineSettings:
    return _load_state()[1]


def get_catalog() -> Catalog:
    """Catalog shared by all requests, loaded on first use."""
    if "catalog" not in _STATE:
        cfg, _ = _load_state()
        path = (cfg.get("catalog", {}) or {}).get("path")
        logger.info("loading catalog from %s", path or "bundled dataset")
        _STATE["catalog"] = Catalog.load(path)
    return _STATE["catalog"]


# Request/Response models
class SelectionModel(BaseModel):
    unit_id: str
    civ: str = WILDCARD_CIV
    age: Optional[int] = None
    technologies: List[str] = []
    abilities: List[str] = []

    def to_selection(self) -> UnitSelection:
        return UnitSelection(
            unit_id=self.unit_id,
            civ=self.civ,
            age=self.age,
            technologies=tuple(self.technologies),
            abilities=tuple(self.abilities),
        )


class VersusRequest(BaseModel):
    a: SelectionModel
    b: SelectionModel
    equal_cost: bool = False
    charge_bonus_a: Optional[float] = None
    charge_bonus_b: Optional[float] = None


class ToggleRequest(BaseModel):
    active: List[str] = []
    entity_id: str


def _require_unit(catalog: Catalog, unit_id: str) -> Entity:
    entity = catalog.get_entity_by_id(unit_id)
    if entity is None or entity.type != "unit":
        raise HTTPException(status_code=404, detail=f"Unit '{unit_id}' not found")
    return entity


def _classes_at(catalog: Catalog, entity: Entity, civ: str, age: int) -> Tuple[str, ...]:
    return unit_classes(entity, catalog.get_variation(entity.id, civ, age))


def _entity_summary(entity: Entity) -> Dict[str, Any]:
    return {
        "id": entity.id,
        "name": entity.name,
        "minAge": entity.min_age,
        "unique": entity.unique,
        "description": entity.description,
    }


# ============================================================================
# Catalog browsing
# ============================================================================

@router.get("/units")
async def list_units(civ: str = WILDCARD_CIV, catalog: Catalog = Depends(get_catalog)) -> List[Dict[str, Any]]:
    """List all units available to ``civ``."""
    return [
        {"id": u.id, "name": u.name, "classes": list(u.classes), "ages": catalog.get_available_ages(u.id, civ)}
        for u in catalog.units(civ)
    ]


@router.get("/units/{unit_id}/ages")
async def unit_ages(unit_id: str, civ: str = WILDCARD_CIV, catalog: Catalog = Depends(get_catalog)) -> Dict[str, Any]:
    _require_unit(catalog, unit_id)
    return {
        "id": unit_id,
        "ages": catalog.get_available_ages(unit_id, civ),
        "maxAge": catalog.get_max_age(unit_id, civ),
    }


@router.get("/units/{unit_id}/technologies")
async def unit_technologies(
    unit_id: str,
    civ: str = WILDCARD_CIV,
    age: Optional[int] = None,
    catalog: Catalog = Depends(get_catalog),
) -> List[Dict[str, Any]]:
    """Combat technologies that affect the unit, with tier and category."""
    entity = _require_unit(catalog, unit_id)
    age = age if age is not None else catalog.get_max_age(unit_id, civ)
    out = []
    for tech in technologies_for_unit(catalog, _classes_at(catalog, entity, civ, age), civ, age, unit_id):
        row = _entity_summary(tech)
        info = tier_info(tech)
        row["category"] = categorize_technology(tech)
        row["tier"] = info.tier if info else None
        row["maxTier"] = info.max_tier if info else None
        out.append(row)
    return out


@router.get("/units/{unit_id}/abilities")
async def unit_abilities(
    unit_id: str,
    civ: str = WILDCARD_CIV,
    age: Optional[int] = None,
    catalog: Catalog = Depends(get_catalog),
) -> Dict[str, Any]:
    entity = _require_unit(catalog, unit_id)
    age = age if age is not None else catalog.get_max_age(unit_id, civ)
    classes = _classes_at(catalog, entity, civ, age)
    return {
        "abilities": [_entity_summary(a) for a in abilities_for_unit(catalog, classes, civ, age, unit_id)],
        "defaultActive": default_active_abilities(catalog, classes, civ, age, unit_id),
    }


# ============================================================================
# Resolution and comparison
# ============================================================================

@router.post("/stats")
async def resolve(request: SelectionModel, catalog: Catalog = Depends(get_catalog)) -> Dict[str, Any]:
    """Resolved stats of one selection."""
    stats = stats_for(catalog, request.to_selection())
    if stats is None:
        raise HTTPException(status_code=404, detail=f"Unit '{request.unit_id}' not found")
    return {"id": request.unit_id, "stats": stats.to_dict()}


@router.post("/versus")
async def versus(
    request: VersusRequest,
    catalog: Catalog = Depends(get_catalog),
    settings: EngineSettings = Depends(get_settings),
) -> Dict[str, Any]:
    """Compare two selections, optionally at equal resource cost."""
    result = compare(
        catalog,
        request.a.to_selection(),
        request.b.to_selection(),
        equal_cost=request.equal_cost,
        charge_bonus_a=request.charge_bonus_a,
        charge_bonus_b=request.charge_bonus_b,
        settings=settings,
    )
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=f"Unit '{request.a.unit_id}' or '{request.b.unit_id}' not found",
        )
    return result.to_dict()


@router.post("/selection/toggle")
async def toggle(request: ToggleRequest, catalog: Catalog = Depends(get_catalog)) -> Dict[str, Any]:
    """Toggle a technology/ability; selecting a tier drops the other tiers of its line."""
    if request.entity_id not in catalog:
        raise HTTPException(status_code=404, detail=f"Entity '{request.entity_id}' not found")
    return {"active": list(toggle_selection(catalog, request.active, request.entity_id))}
