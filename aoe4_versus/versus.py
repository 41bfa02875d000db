"""High level entry point: selection in, comparison out.

A :class:`UnitSelection` names a unit plus the civilization, age and the
technologies/abilities the player has toggled on. :func:`compare` resolves
both sides through the stat aggregator and hands the results to the
combat evaluator.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Optional, Tuple, Union

from .catalog import Catalog
from .config import DEFAULT_SETTINGS, EngineSettings
from .game_models import Armor, WILDCARD_CIV
from .simulators.combat import CombatEntity, VersusResult, compute_versus
from .simulators.equal_cost import EqualCostResult, compute_versus_at_equal_cost
from .stats import StatBundle, resolve_stats, unit_classes
from .tiers import active_variations_with_tiers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitSelection:
    unit_id: str
    civ: str = WILDCARD_CIV
    age: Optional[int] = None
    technologies: Tuple[str, ...] = ()
    abilities: Tuple[str, ...] = ()


def stats_for(catalog: Catalog, selection: UnitSelection) -> Optional[StatBundle]:
    return resolve_stats(
        catalog,
        selection.unit_id,
        selection.technologies,
        selection.abilities,
        selection.civ,
        selection.age,
    )


def build_combat_entity(catalog: Catalog, selection: UnitSelection) -> Optional[CombatEntity]:
    """Resolved combat entity for ``selection``, or ``None`` for unknown units.

    The primary weapon is rebuilt from the resolved stats: its damage comes
    from the melee or ranged attack stat depending on weapon type, its
    cooldown, range and bonus table from the matching resolved fields.
    """
    entity = catalog.get_entity_by_id(selection.unit_id)
    if entity is None or entity.type != "unit":
        return None
    variation = catalog.get_variation(entity.id, selection.civ, selection.age)
    stats = stats_for(catalog, selection)
    if variation is None or stats is None:
        return None

    weapons = variation.weapons
    if weapons:
        primary = weapons[0]
        primary = replace(
            primary,
            damage=stats.melee_attack if primary.type == "melee" else stats.ranged_attack,
            speed=stats.attack_speed,
            range_max=stats.max_range,
            modifiers=tuple(stats.bonus_damage),
        )
        weapons = (primary,) + tuple(weapons[1:])

    abilities = tuple(active_variations_with_tiers(catalog, selection.abilities, selection.civ))
    return CombatEntity(
        id=entity.id,
        name=entity.name,
        hitpoints=stats.hitpoints,
        weapons=weapons,
        armor=(Armor("melee", stats.melee_armor), Armor("ranged", stats.ranged_armor)),
        costs=variation.costs,
        classes=unit_classes(entity, variation),
        charge_bonus=stats.charge_bonus,
        abilities=abilities,
    )


def compare(
    catalog: Catalog,
    a: UnitSelection,
    b: UnitSelection,
    equal_cost: bool = False,
    charge_bonus_a: Optional[float] = None,
    charge_bonus_b: Optional[float] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Optional[Union[VersusResult, EqualCostResult]]:
    """Compare two selections one-on-one, or at equal cost when asked."""
    entity_a = build_combat_entity(catalog, a)
    entity_b = build_combat_entity(catalog, b)
    if entity_a is None or entity_b is None:
        missing = a.unit_id if entity_a is None else b.unit_id
        logger.debug("cannot compare: unknown unit %s", missing)
        return None
    if equal_cost:
        return compute_versus_at_equal_cost(
            entity_a,
            entity_b,
            charge_bonus_a=charge_bonus_a,
            charge_bonus_b=charge_bonus_b,
            settings=settings,
        )
    return compute_versus(
        entity_a,
        entity_b,
        charge_bonus_a=charge_bonus_a,
        charge_bonus_b=charge_bonus_b,
        settings=settings,
    )


__all__ = ["UnitSelection", "build_combat_entity", "compare", "stats_for"]
