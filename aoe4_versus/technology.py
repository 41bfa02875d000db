from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .catalog import Catalog
from .game_models import COMBAT_PROPERTIES, Entity, ModifierEffect, Variation, WILDCARD_CIV
from .modifiers import applies
from .tiers import tier_info


# Properties that make a technology worth offering in a unit comparison.
TECHNOLOGY_COMBAT_PROPERTIES = frozenset(
    {"meleeAttack", "rangedAttack", "meleeArmor", "rangedArmor", "hitpoints", "moveSpeed"}
)

ABILITY_COMBAT_PROPERTIES = frozenset(COMBAT_PROPERTIES) - {"siegeAttack", "gunpowderAttack"}

# Ability targets that never take part in a unit duel.
NON_COMBAT_TARGETS = ("hunt", "herdable", "wildlife", "gaia", "building", "economic")

_CATEGORIES = (
    ("hitpoints", "HP"),
    ("meleeAttack", "Attack-Melee"),
    ("rangedAttack", "Attack-Ranged"),
    ("meleeArmor", "Armor-Melee"),
    ("rangedArmor", "Armor-Ranged"),
    ("moveSpeed", "Speed"),
)

_TECH_REF_PREFIX = "technologies/"


def is_combat_technology(tech: Entity) -> bool:
    return any(
        effect.property in TECHNOLOGY_COMBAT_PROPERTIES
        for variation in tech.variations
        for effect in variation.effects
    )


def _is_combat_effect(effect: ModifierEffect) -> bool:
    if effect.select.ids:
        return True
    if effect.property not in ABILITY_COMBAT_PROPERTIES:
        return False
    if effect.target is not None and effect.target.classes:
        targets = [c for group in effect.target.classes for c in group]
        if all(any(token in c for token in NON_COMBAT_TARGETS) for c in targets):
            return False
    return True


def is_combat_ability(ability: Entity) -> bool:
    """Abilities naming explicit unit ids, or touching a combat stat of a combat target."""
    return any(_is_combat_effect(effect) for effect in ability.iter_effects())


def affects_unit(effects: Iterable[ModifierEffect], unit_classes: Sequence[str], unit_id: Optional[str]) -> bool:
    return any(applies(effect, unit_id, unit_classes) for effect in effects)


def technologies_for_unit(
    catalog: Catalog,
    unit_classes: Sequence[str],
    civ: str = WILDCARD_CIV,
    age: int = 4,
    unit_id: Optional[str] = None,
) -> List[Entity]:
    """Combat technologies available to ``civ`` by ``age`` that affect the unit."""
    found = []
    for tech in catalog.technologies():
        if not is_combat_technology(tech):
            continue
        if not tech.available_to(civ) or tech.min_age > age:
            continue
        for variation in tech.variations:
            if not variation.available_to(civ) or variation.age > age:
                continue
            if affects_unit(variation.effects, unit_classes, unit_id):
                found.append(tech)
                break
    return found


def _unlocking_technologies(variation: Variation) -> List[str]:
    return [
        ref.split("/")[-1]
        for ref in variation.unlocked_by
        if ref.startswith(_TECH_REF_PREFIX)
    ]


def abilities_for_unit(
    catalog: Catalog,
    unit_classes: Sequence[str],
    civ: str = WILDCARD_CIV,
    age: int = 4,
    unit_id: Optional[str] = None,
) -> List[Entity]:
    """Combat abilities that affect the unit.

    A variation unlocked by a technology that already applies to the unit
    is skipped so the same bonus is not offered twice.
    """
    applicable_techs: Optional[set] = None
    found = []
    for ability in catalog.abilities():
        if not is_combat_ability(ability) or not ability.available_to(civ):
            continue
        if affects_unit(ability.effects, unit_classes, unit_id):
            found.append(ability)
            continue
        for variation in ability.variations:
            if not variation.available_to(civ):
                continue
            refs = _unlocking_technologies(variation)
            if refs:
                if applicable_techs is None:
                    applicable_techs = {
                        t.id for t in technologies_for_unit(catalog, unit_classes, civ, age, unit_id)
                    }
                if applicable_techs.intersection(refs):
                    continue
            if affects_unit(variation.effects, unit_classes, unit_id):
                found.append(ability)
                break
    return found


def default_active_abilities(
    catalog: Catalog,
    unit_classes: Sequence[str],
    civ: str = WILDCARD_CIV,
    age: int = 4,
    unit_id: Optional[str] = None,
) -> List[str]:
    """Ids of the unit's abilities that are always on."""
    return [
        a.id
        for a in abilities_for_unit(catalog, unit_classes, civ, age, unit_id)
        if a.is_default_active()
    ]


def categorize_technology(tech: Entity) -> str:
    """Grouping label from the first stat the technology touches.

    Unique technologies and technologies outside a tier line get a
    ``-Unique`` suffix so they are shown on their own row.
    """
    effects = tech.variations[0].effects if tech.variations else ()
    separate = tech.unique or tier_info(tech) is None
    for effect in effects:
        for prop, label in _CATEGORIES:
            if effect.property == prop:
                return f"{label}-Unique" if separate else label
    return "Other"


__all__ = [
    "ABILITY_COMBAT_PROPERTIES",
    "NON_COMBAT_TARGETS",
    "TECHNOLOGY_COMBAT_PROPERTIES",
    "abilities_for_unit",
    "affects_unit",
    "categorize_technology",
    "default_active_abilities",
    "is_combat_ability",
    "is_combat_technology",
    "technologies_for_unit",
]
