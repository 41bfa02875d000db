from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import pytest

from aoe4_versus.catalog import Catalog


def _unit(
    uid: str,
    hp: float = 100,
    damage: float = 10,
    speed: float = 1.0,
    weapon_type: str = "melee",
    melee_armor: float = 0,
    ranged_armor: float = 0,
    classes: Iterable[str] = ("infantry", "melee"),
    costs: Optional[Dict[str, float]] = None,
    modifiers: Iterable[Dict[str, Any]] = (),
    civs: Iterable[str] = (),
    age: int = 1,
    move_speed: float = 1.0,
    weapons: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    if weapons is None:
        weapons = [
            {
                "name": "Weapon",
                "type": weapon_type,
                "damage": damage,
                "speed": speed,
                "range": {"min": 0, "max": 0.3 if weapon_type == "melee" else 5},
                "modifiers": list(modifiers),
            }
        ]
    variation = {
        "id": f"{uid}-{age}",
        "baseId": uid,
        "name": uid.title(),
        "age": age,
        "civs": list(civs),
        "classes": list(classes),
        "hitpoints": hp,
        "weapons": weapons,
        "armor": [{"type": "melee", "value": melee_armor}, {"type": "ranged", "value": ranged_armor}],
        "movement": {"speed": move_speed},
        "costs": costs if costs is not None else {"food": 50, "gold": 50},
    }
    return {
        "id": uid,
        "name": uid.title(),
        "type": "unit",
        "civs": list(civs),
        "classes": list(classes),
        "minAge": age,
        "variations": [variation],
    }


def _modifier_entity(
    eid: str,
    effects: Iterable[Dict[str, Any]],
    entity_type: str = "technology",
    display: Optional[str] = None,
    min_age: int = 1,
    civs: Iterable[str] = (),
    unique: bool = False,
    active: Optional[str] = None,
    unlocked_by: Iterable[str] = (),
) -> Dict[str, Any]:
    variation = {
        "id": f"{eid}-{min_age}",
        "baseId": eid,
        "name": eid.title(),
        "age": min_age,
        "civs": list(civs),
        "effects": list(effects),
    }
    if unlocked_by:
        variation["unlockedBy"] = list(unlocked_by)
    entry = {
        "id": eid,
        "name": eid.title(),
        "type": entity_type,
        "civs": list(civs),
        "displayClasses": [display] if display else [],
        "minAge": min_age,
        "unique": unique,
        "variations": [variation],
    }
    if active:
        entry["active"] = active
    return entry


def _effect(prop: str, value: float, effect: str = "change", classes=None, ids=None, kind: str = "passive", target=None):
    select: Dict[str, Any] = {}
    if classes is not None:
        select["class"] = classes
    if ids is not None:
        select["id"] = ids
    out = {"property": prop, "select": select, "effect": effect, "value": value, "type": kind}
    if target is not None:
        out["target"] = {"class": target}
    return out


@pytest.fixture
def make_unit():
    return _unit


@pytest.fixture
def make_modifier():
    return _modifier_entity


@pytest.fixture
def make_effect():
    return _effect


@pytest.fixture
def build_catalog():
    def _build(entries: Iterable[Dict[str, Any]]) -> Catalog:
        return Catalog.from_payload(list(entries), overrides=(), extra_entities=())
    return _build


@pytest.fixture
def sample_entries() -> List[Dict[str, Any]]:
    melee_groups = [["melee", "infantry"], ["melee", "cavalry"]]
    return [
        _unit("swordsman", hp=100, damage=10, speed=1.0, melee_armor=2, classes=("infantry", "melee", "infantry_heavy")),
        _unit(
            "rider",
            hp=150,
            damage=12,
            speed=1.5,
            classes=("cavalry", "melee", "horse", "knight"),
            costs={"food": 120, "gold": 30},
        ),
        _unit(
            "bowman",
            hp=70,
            damage=5,
            speed=1.5,
            weapon_type="ranged",
            classes=("infantry", "ranged", "archer"),
            modifiers=[{"property": "rangedAttack", "target": {"class": [["infantry", "melee"]]}, "effect": "change", "value": 5, "type": "passive"}],
            costs={"food": 50, "wood": 50},
        ),
        _unit(
            "camel",
            hp=180,
            damage=11,
            speed=1.5,
            classes=("cavalry", "camel", "melee"),
            civs=("ab",),
            costs={"food": 110, "gold": 90},
        ),
        _modifier_entity("melee-1", [_effect("meleeAttack", 1, classes=melee_groups)], display="Melee Damage Technology 1/3"),
        _modifier_entity("melee-2", [_effect("meleeAttack", 1, classes=melee_groups)], display="Melee Damage Technology 2/3", min_age=3),
        _modifier_entity("melee-3", [_effect("meleeAttack", 1, classes=melee_groups)], display="Melee Damage Technology 3/3", min_age=4),
        _modifier_entity("husbandry", [_effect("moveSpeed", 20, classes=[["cavalry"]])], min_age=2),
        _modifier_entity("library", [_effect("rangedAttack", 0, classes=[["scholar"]])]),
        _modifier_entity(
            "camel-unease",
            [_effect("versusOpponentDamageDebuff", 0.8, effect="multiply", ids=["camel"], classes=[["cavalry", "horse"]], kind="ability")],
            entity_type="ability",
            civs=("ab",),
            active="always",
        ),
    ]


@pytest.fixture
def sample_catalog(build_catalog, sample_entries) -> Catalog:
    return build_catalog(sample_entries)
