"""Decide whether a technology/ability effect applies to a unit.

All class matching is exact-string and case-insensitive; composite class
names such as ``war_elephant`` are never split into tokens.
"""
from __future__ import annotations

from typing import Iterable, Optional

from .game_models import ClassGroups, ModifierEffect, Select, VERSUS_DEBUFF


def _lowered(values: Iterable[str]) -> frozenset:
    return frozenset(v.lower() for v in values)


def class_groups_match(groups: ClassGroups, classes: Iterable[str]) -> bool:
    """True when any AND-group is fully contained in ``classes``."""
    have = _lowered(classes)
    return any(group and all(c.lower() in have for c in group) for group in groups)


def matches_id(select: Select, unit_id: Optional[str]) -> bool:
    if not unit_id:
        return False
    wanted = unit_id.lower()
    return any(i.lower() == wanted for i in select.ids)


def matches_id_as_class(select: Select, unit_classes: Iterable[str]) -> bool:
    have = _lowered(unit_classes)
    return any(i.lower() in have for i in select.ids)


def applies(effect: ModifierEffect, unit_id: Optional[str], unit_classes: Iterable[str]) -> bool:
    """OR of exact id, class-group and id-as-class matches.

    A versus debuff describes its *target* in ``select.class``; only the
    carrier's exact id decides whether the unit has the debuff at all.
    """
    select = effect.select
    if effect.property == VERSUS_DEBUFF:
        return matches_id(select, unit_id)
    unit_classes = tuple(unit_classes)
    return (
        matches_id(select, unit_id)
        or class_groups_match(select.classes, unit_classes)
        or matches_id_as_class(select, unit_classes)
    )


def targets_defender(modifier: ModifierEffect, defender_classes: Iterable[str]) -> bool:
    """Whether a bonus modifier's ``target`` predicate is met by the defender."""
    if modifier.target is None:
        return False
    return class_groups_match(modifier.target.classes, defender_classes)


__all__ = [
    "applies",
    "class_groups_match",
    "matches_id",
    "matches_id_as_class",
    "targets_defender",
]
