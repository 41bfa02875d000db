from __future__ import annotations

import pytest

from aoe4_versus.config import EngineSettings
from aoe4_versus.game_models import Armor, Costs, ModifierEffect, Select, Variation, Weapon, VERSUS_DEBUFF
from aoe4_versus.simulators.combat import (
    DRAW,
    CombatEntity,
    VersusMetrics,
    compute_effective_damage,
    compute_metrics,
    compute_versus,
    decide_winner,
    hits_needed,
    versus_debuffs,
)


def _entity(uid, hp=100, damage=10, speed=1.0, weapon_type="melee", melee_armor=0, ranged_armor=0,
            classes=("infantry", "melee"), cost=100, modifiers=(), armed=True, charge=0.0, abilities=()):
    weapons = (Weapon(type=weapon_type, damage=damage, speed=speed, modifiers=tuple(modifiers)),) if armed else ()
    return CombatEntity(
        id=uid,
        name=uid.title(),
        hitpoints=hp,
        weapons=weapons,
        armor=(Armor("melee", melee_armor), Armor("ranged", ranged_armor)),
        costs=Costs(food=cost),
        classes=tuple(classes),
        charge_bonus=charge,
        abilities=tuple(abilities),
    )


def _metrics(uid, ttk, bug=False):
    return VersusMetrics(
        id=uid, name=uid, dps=None, dps_per_cost=None, hits_to_kill=None,
        time_to_kill=ttk, effective_damage_per_hit=None, bug_attack_speed=bug, formula="",
    )


def test_basic_duel_against_unarmed_target():
    attacker = _entity("a", hp=100, damage=10, speed=1.0)
    target = _entity("b", hp=100, melee_armor=2, armed=False)
    metrics = compute_metrics(attacker, target)
    assert metrics.effective_damage_per_hit == 8
    assert metrics.hits_to_kill == 13
    assert metrics.time_to_kill == 13.0
    assert metrics.dps == 8.0
    assert metrics.dps_per_cost == 0.08
    assert "Effective = max(1, Base(10) + Bonus(0) - Armor(2)) = 8" in metrics.formula
    assert "DPS = 8 / 1" in metrics.formula


def test_damage_never_drops_below_one():
    attacker = _entity("a", damage=3)
    target = _entity("b", melee_armor=10)
    assert compute_effective_damage(attacker, target).value == 1


def test_unarmed_attacker_deals_one():
    hit = compute_effective_damage(_entity("a", armed=False), _entity("b"))
    assert hit.value == 1
    assert hit.weapon is None


def test_bonus_applies_only_to_matching_defender():
    vs_cavalry = ModifierEffect(property="meleeAttack", value=17, target=Select(classes=(("cavalry",),)))
    spear = _entity("spear", damage=8, modifiers=[vs_cavalry])
    horse = _entity("horse", classes=("cavalry", "horse"))
    foot = _entity("foot", classes=("infantry",))
    assert compute_effective_damage(spear, horse).value == 25
    assert compute_effective_damage(spear, foot).value == 8


def test_ranged_weapon_uses_ranged_armor():
    bow = _entity("bow", damage=6, weapon_type="ranged", classes=("infantry", "ranged"))
    target = _entity("t", melee_armor=1, ranged_armor=4)
    assert compute_effective_damage(bow, target).armor_applied == 4


def test_gunpowder_ignores_ranged_armor_only():
    gun = _entity("gun", damage=35, weapon_type="ranged", classes=("infantry", "ranged", "gunpowder"))
    target = _entity("t", melee_armor=5, ranged_armor=5)
    assert compute_effective_damage(gun, target).value == 35
    club = _entity("club", damage=10, classes=("infantry", "melee", "gunpowder"))
    assert compute_effective_damage(club, target).value == 5


def test_siege_ignores_armor():
    stone = _entity("mangonel", damage=40, weapon_type="siege", classes=("siege_range",))
    ram = _entity("ram", damage=40, classes=("ram",))
    target = _entity("t", melee_armor=5, ranged_armor=20)
    assert compute_effective_damage(stone, target).value == 40
    assert compute_effective_damage(ram, target).value == 40


def test_siege_classes_come_from_settings():
    settings = EngineSettings(siege_classes=("springald",))
    bolt = _entity("bolt", damage=20, weapon_type="ranged", classes=("springald",))
    target = _entity("t", ranged_armor=5)
    assert compute_effective_damage(bolt, target, settings=settings).value == 20
    assert compute_effective_damage(bolt, target).value == 15


def test_charge_only_on_first_hit():
    knight = _entity("knight", damage=10, speed=1.0)
    target = _entity("t", hp=100)
    assert compute_effective_damage(knight, target, charge_bonus=10, is_first_hit=True).value == 20
    assert compute_effective_damage(knight, target, charge_bonus=10).value == 10

    metrics = compute_metrics(knight, target, charge_bonus=10)
    assert metrics.hits_to_kill == 9
    assert metrics.time_to_kill == 9.0
    assert metrics.dps == round(100 / 9, 2)
    assert metrics.first_hit_damage == 20
    assert "Charge(10)" in metrics.formula


def test_charged_hit_can_kill_outright():
    assert hits_needed(15, 20, 10) == 1
    assert hits_needed(100, 8, 8) == 13
    assert hits_needed(0, 8, 8) == 0


def test_versus_debuff_scales_matching_attacker():
    unease = ModifierEffect(
        property=VERSUS_DEBUFF,
        effect="multiply",
        value=0.8,
        kind="ability",
        select=Select(ids=("camel",), classes=(("cavalry", "horse"),)),
    )
    aura = Variation(id="unease-1", effects=(unease,))
    camel = _entity("camel", hp=180, classes=("cavalry", "camel"), abilities=[aura])
    knight = _entity("knight", damage=10, classes=("cavalry", "horse"))
    archer = _entity("archer", damage=10, weapon_type="ranged", classes=("infantry", "ranged"))

    debuffs = versus_debuffs(camel)
    assert len(debuffs) == 1
    assert compute_effective_damage(knight, camel, debuffs=debuffs).value == pytest.approx(8)
    assert compute_effective_damage(archer, camel, debuffs=debuffs).value == 10
    # the carrier must be named by id; a horse does not debuff itself
    assert versus_debuffs(knight, [aura]) == []

    result = compute_versus(knight, camel)
    assert result.attacker.effective_damage_per_hit == pytest.approx(8)
    assert "Debuff(0.8)" in result.attacker.formula


def test_draw_tolerance_boundary():
    assert decide_winner(_metrics("a", 10.0), _metrics("b", 10.4)) == DRAW
    assert decide_winner(_metrics("a", 10.0), _metrics("b", 10.6)) == "a"
    assert decide_winner(_metrics("a", 10.6), _metrics("b", 10.0)) == "b"


def test_zero_attack_speed_is_reported_not_computed():
    broken = _entity("broken", speed=0)
    sound = _entity("sound")
    metrics = compute_metrics(broken, sound)
    assert metrics.bug_attack_speed is True
    assert metrics.dps is None
    assert metrics.hits_to_kill is None
    assert metrics.time_to_kill is None
    assert metrics.dps_per_cost is None
    assert compute_versus(broken, sound).winner == DRAW
    assert compute_versus(sound, broken).winner == DRAW


def test_versus_picks_faster_killer():
    strong = _entity("strong", damage=20)
    weak = _entity("weak", damage=5)
    result = compute_versus(strong, weak)
    assert result.attacker.time_to_kill == 5.0
    assert result.defender.time_to_kill == 20.0
    assert result.winner == "strong"
    assert set(result.to_dict()) == {"attacker", "defender", "winner"}


def test_explicit_charge_overrides_entity_charge():
    knight = _entity("knight", damage=10, charge=10)
    target = _entity("t", damage=1)
    assert compute_versus(knight, target).attacker.hits_to_kill == 9
    assert compute_versus(knight, target, charge_bonus_a=0).attacker.hits_to_kill == 10


def test_zero_cost_has_no_cost_efficiency():
    free = _entity("free", cost=0)
    assert compute_metrics(free, _entity("t")).dps_per_cost is None
