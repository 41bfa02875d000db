"""Read-only catalog of unit, technology and ability definitions."""
from __future__ import annotations

from dataclasses import replace
import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional

from .game_models import Entity, Variation, WILDCARD_CIV
from .patches import DEFAULT_EXTRA_ENTITIES, DEFAULT_OVERRIDES, Override, apply_overrides

logger = logging.getLogger(__name__)

ENTITY_TYPES = ("unit", "technology", "ability")


class CatalogError(RuntimeError):
    """Raised when the dataset file cannot be read or has the wrong shape."""


def default_catalog_path() -> str:
    return os.path.join(os.path.dirname(__file__), "data", "catalog.json")


class Catalog:
    """Immutable lookup over the dataset, built once and passed explicitly."""

    def __init__(self, entities: Iterable[Entity]) -> None:
        self._entities: Dict[str, Entity] = {}
        for entity in entities:
            if entity.id in self._entities:
                logger.warning("duplicate entity id %s; keeping the first definition", entity.id)
                continue
            self._entities[entity.id] = entity

    # ----- Construction -----

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        overrides: Iterable[Override] = DEFAULT_OVERRIDES,
        extra_entities: Iterable[Dict[str, Any]] = DEFAULT_EXTRA_ENTITIES,
    ) -> "Catalog":
        if isinstance(payload, dict):
            entries = payload.get("data")
        else:
            entries = payload
        if not isinstance(entries, list):
            raise CatalogError("dataset must be a list of entities or an object with a 'data' list")

        patched = apply_overrides(entries, overrides=overrides, extra_entities=extra_entities)
        entities: List[Entity] = []
        for raw in patched:
            if not isinstance(raw, dict) or str(raw.get("type", "")).lower() not in ENTITY_TYPES:
                continue
            try:
                entities.append(Entity.from_dict(raw))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("skipping malformed entity %r: %s", raw.get("id"), exc)
        catalog = cls(entities)
        logger.info(
            "catalog loaded: %d units, %d technologies, %d abilities, %d variations",
            len(catalog.units()),
            len(catalog.technologies()),
            len(catalog.abilities()),
            sum(len(e.variations) for e in catalog),
        )
        return catalog

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        overrides: Iterable[Override] = DEFAULT_OVERRIDES,
        extra_entities: Iterable[Dict[str, Any]] = DEFAULT_EXTRA_ENTITIES,
    ) -> "Catalog":
        path = path or default_catalog_path()
        try:
            with open(path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError as exc:
            raise CatalogError(f"dataset file missing: {path}") from exc
        except ValueError as exc:
            raise CatalogError(f"dataset file is not valid JSON: {path}") from exc
        return cls.from_payload(payload, overrides=overrides, extra_entities=extra_entities)

    # ----- Lookups -----

    def __iter__(self):
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def get_entity_by_id(self, entity_id: str) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def of_type(self, entity_type: str) -> List[Entity]:
        return [e for e in self._entities.values() if e.type == entity_type]

    def units(self, civ: str = WILDCARD_CIV) -> List[Entity]:
        return [e for e in self.of_type("unit") if e.available_to(civ)]

    def technologies(self) -> List[Entity]:
        return self.of_type("technology")

    def abilities(self) -> List[Entity]:
        return self.of_type("ability")

    def get_variation(self, entity_id: str, civ: str = WILDCARD_CIV, age: Optional[int] = None) -> Optional[Variation]:
        """Pick the variation for ``(civ, age)``.

        Falls back to the age alone for the ``"all"`` wildcard, then to the
        first variation carrying effects, then to the first variation.
        Entity-level effects are appended to the chosen variation's own.
        """
        entity = self._entities.get(entity_id)
        if entity is None or not entity.variations:
            return None
        if age is None:
            age = entity.min_age

        chosen = next((v for v in entity.variations if v.age == age and v.available_to(civ)), None)
        if chosen is None and civ == WILDCARD_CIV:
            chosen = next((v for v in entity.variations if v.age == age), None)
        if chosen is None:
            chosen = next((v for v in entity.variations if v.effects), entity.variations[0])

        if entity.effects:
            chosen = replace(chosen, effects=tuple(chosen.effects) + tuple(entity.effects))
        return chosen

    def get_available_ages(self, entity_id: str, civ: str = WILDCARD_CIV) -> List[int]:
        entity = self._entities.get(entity_id)
        if entity is None:
            return []
        every = sorted({v.age for v in entity.variations})
        if civ == WILDCARD_CIV:
            return every
        ages = sorted({v.age for v in entity.variations if v.available_to(civ)})
        return ages or every

    def get_max_age(self, entity_id: str, civ: str = WILDCARD_CIV) -> int:
        ages = self.get_available_ages(entity_id, civ)
        return max(ages) if ages else 4


def load_catalog(path: Optional[str] = None) -> Catalog:
    return Catalog.load(path)


__all__ = ["Catalog", "CatalogError", "default_catalog_path", "load_catalog"]
