"""Tiered technology lines ("Melee Damage Technology 2/3").

A tier is read from the first display class of an entity. Activating tier
``k`` implies tiers ``1..k-1`` of the same line; their variations are
returned ahead of tier ``k``'s, each looked up at its own minimum age.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from .catalog import Catalog
from .game_models import Entity, Variation, WILDCARD_CIV

_TIER_RE = re.compile(r"(\d+)/(\d+)")
_TIER_SUFFIX_RE = re.compile(r"\s*\d+/\d+\s*$")


@dataclass(frozen=True)
class TierInfo:
    tier: int
    max_tier: int
    base_name: str


def tier_info(entity: Entity) -> Optional[TierInfo]:
    if not entity.display_classes:
        return None
    display = entity.display_classes[0]
    match = _TIER_RE.search(display)
    if not match:
        return None
    return TierInfo(tier=int(match.group(1)), max_tier=int(match.group(2)), base_name=base_line_name(display))


def base_line_name(display_class: str) -> str:
    return _TIER_SUFFIX_RE.sub("", display_class).strip()


def _find_tier(catalog: Catalog, base_name: str, tier: int, max_tier: int, entity_type: str) -> Optional[Entity]:
    pattern = f"{base_name} {tier}/{max_tier}"
    for candidate in catalog.of_type(entity_type):
        if candidate.display_classes and candidate.display_classes[0] == pattern:
            return candidate
    return None


def previous_tiers(catalog: Catalog, entity: Entity) -> List[Entity]:
    """Lower tiers of ``entity``'s line, lowest first; empty when standalone."""
    info = tier_info(entity)
    if info is None or info.tier <= 1:
        return []
    found = []
    for tier in range(1, info.tier):
        prev = _find_tier(catalog, info.base_name, tier, info.max_tier, entity.type)
        if prev is not None:
            found.append(prev)
    return found


def tier_line(catalog: Catalog, entity: Entity) -> List[Entity]:
    """Every tier of ``entity``'s line, or just ``entity`` when it has none."""
    info = tier_info(entity)
    if info is None:
        return [entity]
    line = []
    for tier in range(1, info.max_tier + 1):
        member = _find_tier(catalog, info.base_name, tier, info.max_tier, entity.type)
        if member is not None:
            line.append(member)
    return line or [entity]


def _ordered_ids(active_ids: Iterable[str]) -> List[str]:
    # sets have no stable order; sort them so repeated calls fold effects identically
    if isinstance(active_ids, (list, tuple)):
        seen: Set[str] = set()
        out = []
        for i in active_ids:
            if i not in seen:
                seen.add(i)
                out.append(i)
        return out
    return sorted(set(active_ids))


def expand_active_tiers(
    catalog: Catalog,
    entity_id: str,
    active_ids: Iterable[str] = (),
    civ: str = WILDCARD_CIV,
    processed: Optional[Set[str]] = None,
) -> List[Variation]:
    """Variations to apply for one active entity: implied lower tiers first, then itself.

    ``processed`` is shared across calls to avoid applying a tier twice when
    several entities of the same line are active. ``active_ids`` is accepted
    for symmetry with the selection state; lower tiers are implied whether or
    not they were selected.
    """
    processed = processed if processed is not None else set()
    entity = catalog.get_entity_by_id(entity_id)
    if entity is None or entity.id in processed:
        return []
    variations: List[Variation] = []
    for prev in previous_tiers(catalog, entity):
        if prev.id in processed:
            continue
        variation = catalog.get_variation(prev.id, civ, prev.min_age)
        if variation is not None:
            variations.append(variation)
            processed.add(prev.id)
    variation = catalog.get_variation(entity.id, civ, entity.min_age)
    if variation is not None:
        variations.append(variation)
        processed.add(entity.id)
    return variations


def active_variations_with_tiers(catalog: Catalog, active_ids: Iterable[str], civ: str = WILDCARD_CIV) -> List[Variation]:
    ids = _ordered_ids(active_ids)
    processed: Set[str] = set()
    out: List[Variation] = []
    for entity_id in ids:
        out.extend(expand_active_tiers(catalog, entity_id, ids, civ, processed))
    return out


def toggle_selection(catalog: Catalog, active_ids: Iterable[str], entity_id: str) -> Tuple[str, ...]:
    """Toggle ``entity_id`` in the user's selection.

    Selecting a tier deselects every other tier of the same line, so at most
    one tier per line is ever user-active.
    """
    current = _ordered_ids(active_ids)
    if entity_id in current:
        return tuple(i for i in current if i != entity_id)
    entity = catalog.get_entity_by_id(entity_id)
    if entity is None:
        return tuple(current)
    siblings = {e.id for e in tier_line(catalog, entity)} - {entity_id}
    return tuple([i for i in current if i not in siblings] + [entity_id])


__all__ = [
    "TierInfo",
    "active_variations_with_tiers",
    "base_line_name",
    "expand_active_tiers",
    "previous_tiers",
    "tier_info",
    "tier_line",
    "toggle_selection",
]
