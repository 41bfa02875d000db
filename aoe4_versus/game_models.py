from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Any, FrozenSet, Iterable

ClassGroups = Tuple[Tuple[str, ...], ...]

WILDCARD_CIV = "all"

# Stat properties an effect may target. Anything else is skipped at resolution.
COMBAT_PROPERTIES: Tuple[str, ...] = (
    "meleeAttack",
    "rangedAttack",
    "meleeArmor",
    "rangedArmor",
    "hitpoints",
    "moveSpeed",
    "maxRange",
    "attackSpeed",
    "bonusDamage",
    "siegeAttack",
    "gunpowderAttack",
    "versusOpponentDamageDebuff",
)

VERSUS_DEBUFF = "versusOpponentDamageDebuff"


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _str_tuple(values: Any) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(str(v) for v in values if v is not None)


def normalise_class_groups(raw: Any) -> ClassGroups:
    """Coerce a ``class`` predicate into a tuple of AND-groups.

    The dataset authors both ``[["infantry", "light"], ["cavalry"]]`` (OR of
    AND-groups) and the flat ``["infantry", "light"]`` (a single AND-group).
    """
    if not raw:
        return ()
    if isinstance(raw, str):
        return ((raw,),)
    items = list(raw)
    if any(isinstance(item, (list, tuple)) for item in items):
        groups = []
        for item in items:
            if isinstance(item, (list, tuple)):
                groups.append(_str_tuple(item))
            elif item is not None:
                groups.append((str(item),))
        return tuple(groups)
    return (_str_tuple(items),)


@dataclass(frozen=True)
class Select:
    """Applicability predicate: explicit ids OR any fully satisfied class group."""

    ids: Tuple[str, ...] = ()
    classes: ClassGroups = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Select":
        if not isinstance(data, dict):
            return cls()
        return cls(ids=_str_tuple(data.get("id")), classes=normalise_class_groups(data.get("class")))

    def flattened_classes(self) -> FrozenSet[str]:
        return frozenset(c.lower() for group in self.classes for c in group)

    def is_empty(self) -> bool:
        return not self.ids and not self.classes

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.ids:
            out["id"] = list(self.ids)
        if self.classes:
            out["class"] = [list(g) for g in self.classes]
        return out


@dataclass(frozen=True)
class ModifierEffect:
    """A technology/ability effect or an innate weapon modifier.

    Weapon modifiers only carry ``target`` (the defender predicate); effects
    carry ``select`` (which units receive them) and, for ``kind == "bonus"``,
    a ``target`` as well.
    """

    property: str
    effect: str = "change"
    value: float = 0.0
    kind: str = "passive"
    select: Select = field(default_factory=Select)
    target: Optional[Select] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModifierEffect":
        target = data.get("target")
        return cls(
            property=str(data.get("property", "")),
            effect=str(data.get("effect", "change")).lower(),
            value=_as_float(data.get("value", data.get("amount", 0))),
            kind=str(data.get("type", "passive")).lower(),
            select=Select.from_dict(data.get("select")),
            target=Select.from_dict(target) if isinstance(target, dict) else None,
        )

    @property
    def is_bonus(self) -> bool:
        return self.kind == "bonus"

    def target_classes(self) -> FrozenSet[str]:
        return self.target.flattened_classes() if self.target else frozenset()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "property": self.property,
            "effect": self.effect,
            "value": self.value,
            "type": self.kind,
        }
        if not self.select.is_empty():
            out["select"] = self.select.to_dict()
        if self.target is not None:
            out["target"] = self.target.to_dict()
        return out


@dataclass(frozen=True)
class Weapon:
    name: str = ""
    type: str = "melee"
    damage: float = 0.0
    speed: float = 0.0
    range_min: float = 0.0
    range_max: float = 0.0
    modifiers: Tuple[ModifierEffect, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Weapon":
        rng = data.get("range") or {}
        return cls(
            name=str(data.get("name", "")),
            type=str(data.get("type", "melee")).lower(),
            damage=_as_float(data.get("damage")),
            speed=_as_float(data.get("speed", data.get("attackSpeed"))),
            range_min=_as_float(rng.get("min")) if isinstance(rng, dict) else 0.0,
            range_max=_as_float(rng.get("max")) if isinstance(rng, dict) else 0.0,
            modifiers=tuple(
                ModifierEffect.from_dict(m) for m in (data.get("modifiers") or []) if isinstance(m, dict)
            ),
        )


@dataclass(frozen=True)
class Armor:
    type: str
    value: float = 0.0


@dataclass(frozen=True)
class Costs:
    food: float = 0.0
    wood: float = 0.0
    gold: float = 0.0
    stone: float = 0.0
    oliveoil: float = 0.0
    silver: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Costs":
        data = data or {}
        return cls(
            food=_as_float(data.get("food")),
            wood=_as_float(data.get("wood")),
            gold=_as_float(data.get("gold")),
            stone=_as_float(data.get("stone")),
            oliveoil=_as_float(data.get("oliveoil")),
            silver=_as_float(data.get("silver")),
        )

    @property
    def total(self) -> float:
        return self.food + self.wood + self.gold + self.stone + self.oliveoil + self.silver


@dataclass(frozen=True)
class Variation:
    """Stat/effect payload for one civilization x age combination."""

    id: str
    base_id: str = ""
    name: str = ""
    age: int = 1
    civs: Tuple[str, ...] = ()
    classes: Tuple[str, ...] = ()
    display_classes: Tuple[str, ...] = ()
    hitpoints: float = 0.0
    weapons: Tuple[Weapon, ...] = ()
    armor: Tuple[Armor, ...] = ()
    move_speed: float = 0.0
    costs: Costs = field(default_factory=Costs)
    effects: Tuple[ModifierEffect, ...] = ()
    unlocked_by: Tuple[str, ...] = ()
    active: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], parent_age: int = 1) -> "Variation":
        movement = data.get("movement") or {}
        armor = []
        for entry in data.get("armor") or []:
            if isinstance(entry, dict) and entry.get("type"):
                armor.append(Armor(type=str(entry["type"]).lower(), value=_as_float(entry.get("value"))))
        return cls(
            id=str(data.get("id", "")),
            base_id=str(data.get("baseId", "")),
            name=str(data.get("name", "")),
            age=_as_int(data.get("age"), parent_age),
            civs=_str_tuple(data.get("civs")),
            classes=_str_tuple(data.get("classes")),
            display_classes=_str_tuple(data.get("displayClasses")),
            hitpoints=_as_float(data.get("hitpoints")),
            weapons=tuple(Weapon.from_dict(w) for w in (data.get("weapons") or []) if isinstance(w, dict)),
            armor=tuple(armor),
            move_speed=_as_float(movement.get("speed")) if isinstance(movement, dict) else 0.0,
            costs=Costs.from_dict(data.get("costs")),
            effects=tuple(ModifierEffect.from_dict(e) for e in (data.get("effects") or []) if isinstance(e, dict)),
            unlocked_by=tuple(u for u in _str_tuple(data.get("unlockedBy")) if u),
            active=data.get("active"),
        )

    @property
    def primary_weapon(self) -> Optional[Weapon]:
        return self.weapons[0] if self.weapons else None

    def armor_value(self, armor_type: str) -> float:
        wanted = armor_type.lower()
        for entry in self.armor:
            if entry.type == wanted:
                return entry.value
        return 0.0

    def available_to(self, civ: str) -> bool:
        return civ == WILDCARD_CIV or not self.civs or civ in self.civs


@dataclass(frozen=True)
class Entity:
    """A unit, technology or ability definition."""

    id: str
    name: str = ""
    type: str = "unit"
    civs: Tuple[str, ...] = ()
    classes: Tuple[str, ...] = ()
    display_classes: Tuple[str, ...] = ()
    min_age: int = 1
    unique: bool = False
    description: str = ""
    active: Optional[str] = None
    effects: Tuple[ModifierEffect, ...] = ()
    variations: Tuple[Variation, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        min_age = _as_int(data.get("minAge", data.get("age")), 1)
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            type=str(data.get("type", "unit")).lower(),
            civs=_str_tuple(data.get("civs")),
            classes=_str_tuple(data.get("classes")),
            display_classes=_str_tuple(data.get("displayClasses")),
            min_age=min_age,
            unique=bool(data.get("unique", False)),
            description=str(data.get("description", "")),
            active=data.get("active"),
            effects=tuple(ModifierEffect.from_dict(e) for e in (data.get("effects") or []) if isinstance(e, dict)),
            variations=tuple(
                Variation.from_dict(v, parent_age=min_age) for v in (data.get("variations") or []) if isinstance(v, dict)
            ),
        )

    def available_to(self, civ: str) -> bool:
        return civ == WILDCARD_CIV or not self.civs or civ in self.civs

    def is_default_active(self) -> bool:
        return self.active == "always" or any(v.active == "always" for v in self.variations)

    def iter_effects(self) -> Iterable[ModifierEffect]:
        yield from self.effects
        for variation in self.variations:
            yield from variation.effects

