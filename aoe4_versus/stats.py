"""Fold technology/ability effects into a unit's combat statistics.

Effects on a stat are applied in two strict passes: every additive
``change`` first, then every ``multiply``. Swapping the order changes
results, e.g. base 5 with +10 and x2 must give 30, not 20.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .catalog import Catalog
from .game_models import (
    COMBAT_PROPERTIES,
    Entity,
    ModifierEffect,
    Variation,
    WILDCARD_CIV,
)
from .modifiers import applies
from .tiers import active_variations_with_tiers


_ORDINARY: Dict[str, str] = {
    "hitpoints": "hitpoints",
    "meleeAttack": "melee_attack",
    "rangedAttack": "ranged_attack",
    "meleeArmor": "melee_armor",
    "rangedArmor": "ranged_armor",
    "moveSpeed": "move_speed",
}

_SPECIAL: Dict[str, str] = {
    "attackSpeed": "attack_speed",
    "maxRange": "max_range",
    "bonusDamage": "charge_bonus",
}

_BONUS_PROPERTIES = frozenset({"meleeAttack", "rangedAttack", "siegeAttack", "gunpowderAttack"})


@dataclass
class StatBundle:
    hitpoints: float = 0.0
    melee_attack: float = 0.0
    ranged_attack: float = 0.0
    melee_armor: float = 0.0
    ranged_armor: float = 0.0
    move_speed: float = 0.0
    attack_speed: float = 0.0
    max_range: float = 0.0
    charge_bonus: float = 0.0
    bonus_damage: List[ModifierEffect] = field(default_factory=list)

    def copy(self) -> "StatBundle":
        return replace(self, bonus_damage=list(self.bonus_damage))

    def to_dict(self) -> Dict[str, object]:
        return {
            "hitpoints": self.hitpoints,
            "meleeAttack": self.melee_attack,
            "rangedAttack": self.ranged_attack,
            "meleeArmor": self.melee_armor,
            "rangedArmor": self.ranged_armor,
            "moveSpeed": self.move_speed,
            "attackSpeed": self.attack_speed,
            "maxRange": self.max_range,
            "chargeBonus": self.charge_bonus,
            "bonusDamage": [b.to_dict() for b in self.bonus_damage],
        }


def base_stats(variation: Variation) -> StatBundle:
    """Unmodified stats of a unit variation; missing data reads as zero."""
    weapon = variation.primary_weapon
    melee = next((w.damage for w in variation.weapons if w.type == "melee"), 0.0)
    ranged = next((w.damage for w in variation.weapons if w.type != "melee"), 0.0)
    return StatBundle(
        hitpoints=variation.hitpoints,
        melee_attack=melee,
        ranged_attack=ranged,
        melee_armor=variation.armor_value("melee"),
        ranged_armor=variation.armor_value("ranged"),
        move_speed=variation.move_speed,
        attack_speed=weapon.speed if weapon else 0.0,
        max_range=weapon.range_max if weapon else 0.0,
        bonus_damage=list(weapon.modifiers) if weapon else [],
    )


def unit_classes(entity: Optional[Entity], variation: Optional[Variation] = None) -> Tuple[str, ...]:
    if variation is not None and variation.classes:
        return variation.classes
    return entity.classes if entity is not None else ()


def _partition(
    effects: Iterable[ModifierEffect], unit_id: Optional[str], classes: Sequence[str]
) -> Tuple[List[ModifierEffect], List[ModifierEffect], List[ModifierEffect]]:
    ordinary: List[ModifierEffect] = []
    special: List[ModifierEffect] = []
    bonus: List[ModifierEffect] = []
    for effect in effects:
        if effect.property not in COMBAT_PROPERTIES:
            continue
        if not applies(effect, unit_id, classes):
            continue
        if effect.is_bonus and effect.property in _BONUS_PROPERTIES:
            bonus.append(effect)
        elif effect.property in _ORDINARY:
            ordinary.append(effect)
        elif effect.property in _SPECIAL:
            special.append(effect)
    return ordinary, special, bonus


def _fold(stats: StatBundle, effects: List[ModifierEffect], mapping: Dict[str, str], percent_move_speed: bool) -> None:
    for effect in effects:
        if effect.effect != "change":
            continue
        attr = mapping[effect.property]
        if percent_move_speed and effect.property == "moveSpeed":
            setattr(stats, attr, getattr(stats, attr) * (1 + effect.value / 100))
        else:
            setattr(stats, attr, getattr(stats, attr) + effect.value)
    for effect in effects:
        if effect.effect != "multiply":
            continue
        attr = mapping[effect.property]
        setattr(stats, attr, getattr(stats, attr) * effect.value)


def _fold_bonus(bonus_damage: List[ModifierEffect], effects: List[ModifierEffect]) -> None:
    for effect in effects:
        key = effect.target_classes()
        if not key:
            continue
        index = next((i for i, b in enumerate(bonus_damage) if b.target_classes() == key), None)
        if index is not None:
            existing = bonus_damage[index]
            if effect.effect == "change":
                bonus_damage[index] = replace(existing, value=existing.value + effect.value)
            elif effect.effect == "multiply":
                bonus_damage[index] = replace(existing, value=existing.value * effect.value)
        elif effect.effect == "change":
            # a multiply with nothing to scale is a no-op
            bonus_damage.append(
                ModifierEffect(
                    property=effect.property,
                    effect="change",
                    value=effect.value,
                    kind="bonus",
                    target=effect.target,
                )
            )


def apply_effects(
    base: StatBundle,
    classes: Sequence[str],
    variations: Iterable[Variation],
    unit_id: Optional[str] = None,
) -> StatBundle:
    """Return a new bundle with every applicable effect of ``variations`` folded in."""
    stats = base.copy()
    effects = [effect for variation in variations for effect in variation.effects]
    ordinary, special, bonus = _partition(effects, unit_id, tuple(classes))
    _fold(stats, ordinary, _ORDINARY, percent_move_speed=True)
    _fold(stats, special, _SPECIAL, percent_move_speed=False)
    _fold_bonus(stats.bonus_damage, bonus)
    return stats


def resolve_stats(
    catalog: Catalog,
    unit_id: str,
    technology_ids: Iterable[str] = (),
    ability_ids: Iterable[str] = (),
    civ: str = WILDCARD_CIV,
    age: Optional[int] = None,
) -> Optional[StatBundle]:
    """Base stats of ``unit_id`` at (civ, age) with technologies, then abilities, applied."""
    entity = catalog.get_entity_by_id(unit_id)
    if entity is None or entity.type != "unit":
        return None
    variation = catalog.get_variation(unit_id, civ, age)
    if variation is None:
        return None
    classes = unit_classes(entity, variation)
    stats = base_stats(variation)
    stats = apply_effects(stats, classes, active_variations_with_tiers(catalog, technology_ids, civ), entity.id)
    stats = apply_effects(stats, classes, active_variations_with_tiers(catalog, ability_ids, civ), entity.id)
    return stats


__all__ = ["StatBundle", "apply_effects", "base_stats", "resolve_stats", "unit_classes"]
