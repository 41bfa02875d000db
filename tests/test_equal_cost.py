from __future__ import annotations

from aoe4_versus.config import EngineSettings
from aoe4_versus.game_models import Armor, Costs, Weapon
from aoe4_versus.simulators.combat import DRAW, CombatEntity
from aoe4_versus.simulators.equal_cost import (
    calculate_equal_cost_multipliers,
    compute_metrics_with_multiplier,
    compute_versus_at_equal_cost,
)


def _entity(uid, hp=100, damage=10, speed=1.0, cost=100, charge=0.0):
    return CombatEntity(
        id=uid,
        name=uid.title(),
        hitpoints=hp,
        weapons=(Weapon(type="melee", damage=damage, speed=speed),),
        armor=(Armor("melee", 0), Armor("ranged", 0)),
        costs=Costs(food=cost),
        classes=("infantry", "melee"),
        charge_bonus=charge,
    )


def test_multipliers_for_100_and_150():
    m = calculate_equal_cost_multipliers(100, 150)
    total_a, total_b = m.multiplier_a * 100, m.multiplier_b * 150
    assert 1 <= m.multiplier_a <= 50 and 1 <= m.multiplier_b <= 50
    assert abs(total_a - total_b) <= 0.10 * max(total_a, total_b)
    assert (m.multiplier_a, m.multiplier_b) == (3, 2)
    assert (m.total_cost_a, m.total_cost_b) == (300, 300)


def test_equal_costs_need_no_scaling():
    m = calculate_equal_cost_multipliers(120, 120)
    assert (m.multiplier_a, m.multiplier_b) == (1, 1)


def test_non_positive_cost_gives_identity():
    m = calculate_equal_cost_multipliers(0, 150)
    assert (m.multiplier_a, m.multiplier_b, m.total_cost_a, m.total_cost_b) == (1, 1, 0, 150)


def test_no_pair_within_tolerance_falls_back():
    m = calculate_equal_cost_multipliers(1, 1000)
    assert (m.multiplier_a, m.multiplier_b) == (1, 1)


def test_multiplier_b_stays_within_bound():
    # 1000 / 10 only balances at 1 vs 100
    m = calculate_equal_cost_multipliers(1000, 10)
    assert 1 <= m.multiplier_b <= 50
    assert (m.multiplier_a, m.multiplier_b) == (1, 1)


def test_tolerance_and_bound_come_from_settings():
    loose = EngineSettings(cost_tolerance=0.5, max_multiplier=2)
    m = calculate_equal_cost_multipliers(100, 150, loose)
    assert (m.multiplier_a, m.multiplier_b) == (1, 1)


def test_group_metrics_scale_hp_and_damage():
    metrics = compute_metrics_with_multiplier(_entity("a", damage=30, cost=50), _entity("b", hp=300), 2, 1)
    # 2 x 30 damage per cycle against 300 hp
    assert metrics.hits_to_kill == 5
    assert metrics.time_to_kill == 5.0
    assert metrics.dps == 60.0
    assert metrics.dps_per_cost == 0.6
    assert metrics.effective_damage_per_hit == 30


def test_group_charge_applies_once_per_engagement():
    metrics = compute_metrics_with_multiplier(_entity("a", damage=10), _entity("b", hp=100), 2, 2, charge_bonus=10)
    # first cycle 2 x 20, then 2 x 10 per cycle against 200 hp: 1 + ceil(160 / 20)
    assert metrics.hits_to_kill == 9
    assert metrics.dps == 22.22
    assert metrics.formula.endswith("; 2 units x 10 = 20 per cycle; DPS = (40 + 8 x 20) / (9 x 1) = 22.22")


def test_winner_keeps_more_units():
    a = _entity("a", hp=100, damage=30, cost=50)
    b = _entity("b", hp=300, damage=10, cost=100)
    result = compute_versus_at_equal_cost(a, b)
    assert (result.multipliers.multiplier_a, result.multipliers.multiplier_b) == (2, 1)
    assert result.attacker.hits_to_kill == 5
    assert result.defender.hits_to_kill == 20
    assert result.winner == "a"
    # b deals 10 per cycle for the 5 cycles a needs
    assert result.winner_hp_remaining == 150
    assert result.winner_units_remaining == 1
    assert result.resource_difference == 50
    payload = result.to_dict()
    assert payload["multipliers"]["multiplierA"] == 2
    assert payload["winnerUnitsRemaining"] == 1


def test_equal_survivors_is_a_draw():
    result = compute_versus_at_equal_cost(_entity("a", damage=10), _entity("b", damage=5))
    # both groups are wiped out before either has a full unit left
    assert result.winner == DRAW
    assert result.winner_units_remaining is None


def test_attack_speed_bug_forces_draw():
    result = compute_versus_at_equal_cost(_entity("a", speed=0), _entity("b"))
    assert result.winner == DRAW
    assert result.attacker.bug_attack_speed is True


def test_group_formula_without_charge():
    metrics = compute_metrics_with_multiplier(_entity("a", damage=30, cost=50), _entity("b", hp=300), 2, 1)
    assert metrics.formula.endswith("; 2 units x 30 = 60 per cycle; DPS = 60 / 1 = 60")
