"""Load-time dataset overrides.

Raw entity dicts are patched once, before they are turned into catalog
dataclasses, so nothing downstream of :mod:`aoe4_versus.catalog` needs to
know patches exist. An override is an ``(entity_id, field_path, value)``
triple; dict values are deep-merged into an existing dict, anything else
replaces the value at that path. Path segments are dict keys, list indices,
or ``"*"`` to address every element of a list.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

from .config import _deep_merge

logger = logging.getLogger(__name__)

PathSegment = Union[str, int]


@dataclass(frozen=True)
class Override:
    entity_id: str
    field_path: Tuple[PathSegment, ...]
    value: Any
    note: str = ""

    @classmethod
    def parse(cls, entity_id: str, dotted_path: str, value: Any, note: str = "") -> "Override":
        segments: List[PathSegment] = []
        for part in dotted_path.split("."):
            segments.append(int(part) if part.isdigit() else part)
        return cls(entity_id=entity_id, field_path=tuple(segments), value=value, note=note)


_CAMEL_UNITS = [
    "camel-archer",
    "camel-rider",
    "camel-lancer",
    "desert-raider",
    "atabeg",
    "dervish",
    "trade-caravan",
    "camel",
]

DEFAULT_OVERRIDES: Tuple[Override, ...] = (
    Override(
        entity_id="ability-camel-unease",
        field_path=("effects",),
        value=[
            {
                "property": "versusOpponentDamageDebuff",
                "select": {"id": list(_CAMEL_UNITS), "class": [["cavalry", "horse"]]},
                "effect": "multiply",
                "value": 0.8,
                "type": "ability",
            }
        ],
        note="Versus mode: reduces enemy horse cavalry damage by 20%",
    ),
)


def _charge_attack_effect() -> Dict[str, Any]:
    return {
        "property": "bonusDamage",
        "select": {"class": [["knight"], ["merc_ghulam"]]},
        "effect": "change",
        "value": 10,
        "type": "ability",
    }


DEFAULT_EXTRA_ENTITIES: Tuple[Dict[str, Any], ...] = (
    {
        "id": "charge-attack",
        "name": "Charge Attack",
        "type": "ability",
        "civs": [],
        "classes": [],
        "displayClasses": [],
        "minAge": 1,
        "unique": False,
        "active": "always",
        "description": "Charge before attacking when unit is far enough",
        "variations": [
            {
                "id": "charge-attack-1",
                "baseId": "charge-attack",
                "type": "ability",
                "name": "Charge Attack",
                "age": 1,
                "civs": [],
                "effects": [_charge_attack_effect()],
            }
        ],
    },
)


def _set_path(node: Any, path: Sequence[PathSegment], value: Any) -> bool:
    head, rest = path[0], path[1:]
    if head == "*":
        if not isinstance(node, list):
            return False
        applied = False
        for idx in range(len(node)):
            if rest:
                applied = _set_path(node[idx], rest, value) or applied
            else:
                node[idx] = _merge_value(node[idx], value)
                applied = True
        return applied
    if isinstance(head, int):
        if not isinstance(node, list) or not -len(node) <= head < len(node):
            return False
        if rest:
            return _set_path(node[head], rest, value)
        node[head] = _merge_value(node[head], value)
        return True
    if not isinstance(node, dict):
        return False
    if rest:
        child = node.get(head)
        if child is None:
            child = {} if not isinstance(rest[0], int) else []
            node[head] = child
        return _set_path(child, rest, value)
    node[head] = _merge_value(node.get(head), value)
    return True


def _merge_value(current: Any, value: Any) -> Any:
    if isinstance(current, dict) and isinstance(value, dict):
        return _deep_merge(current, copy.deepcopy(value))
    return copy.deepcopy(value)


def apply_overrides(
    entities: Iterable[Dict[str, Any]],
    overrides: Iterable[Override] = DEFAULT_OVERRIDES,
    extra_entities: Iterable[Dict[str, Any]] = DEFAULT_EXTRA_ENTITIES,
) -> List[Dict[str, Any]]:
    """Return patched deep copies of ``entities``; the input is left untouched."""

    patched = [copy.deepcopy(e) for e in entities]
    known = {e.get("id") for e in patched if isinstance(e, dict)}
    for extra in extra_entities:
        if extra.get("id") in known:
            continue
        patched.append(copy.deepcopy(extra))
        known.add(extra.get("id"))

    by_id: Dict[str, List[Dict[str, Any]]] = {}
    for entity in patched:
        if isinstance(entity, dict) and "id" in entity:
            by_id.setdefault(entity["id"], []).append(entity)

    for override in overrides:
        targets = by_id.get(override.entity_id)
        if not targets:
            logger.warning("override target %s not in dataset; skipped", override.entity_id)
            continue
        if not override.field_path:
            continue
        for entity in targets:
            if _set_path(entity, override.field_path, override.value):
                logger.debug("applied override %s.%s", override.entity_id, ".".join(map(str, override.field_path)))
            else:
                logger.warning(
                    "override path %s does not fit %s; skipped",
                    ".".join(map(str, override.field_path)),
                    override.entity_id,
                )
    return patched


__all__ = ["Override", "DEFAULT_OVERRIDES", "DEFAULT_EXTRA_ENTITIES", "apply_overrides"]
