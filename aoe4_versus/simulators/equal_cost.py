"""Group-vs-group comparison at (approximately) equal resource investment.

N copies of A are pitted against M copies of B where ``N*cost(A)`` and
``M*cost(B)`` differ by at most ``cost_tolerance`` of the larger. Damage is
evaluated per *cycle*: every unit of a group hits once per cycle.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Any, Dict, Iterable, Optional, Sequence

from ..config import DEFAULT_SETTINGS, EngineSettings
from ..game_models import ModifierEffect, Variation
from .combat import (
    DRAW,
    CombatEntity,
    VersusMetrics,
    compute_effective_damage,
    damage_over,
    describe_damage,
    hits_needed,
    versus_debuffs,
    format_number,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EqualCostMultipliers:
    multiplier_a: int
    multiplier_b: int
    total_cost_a: float
    total_cost_b: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "multiplierA": self.multiplier_a,
            "multiplierB": self.multiplier_b,
            "totalCostA": self.total_cost_a,
            "totalCostB": self.total_cost_b,
        }


@dataclass
class EqualCostResult:
    attacker: VersusMetrics
    defender: VersusMetrics
    winner: str
    multipliers: EqualCostMultipliers
    winner_hp_remaining: Optional[float] = None
    winner_units_remaining: Optional[int] = None
    resource_difference: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attacker": self.attacker.to_dict(),
            "defender": self.defender.to_dict(),
            "winner": self.winner,
            "multipliers": self.multipliers.to_dict(),
            "winnerHpRemaining": self.winner_hp_remaining,
            "winnerUnitsRemaining": self.winner_units_remaining,
            "resourceDifference": self.resource_difference,
        }


def calculate_equal_cost_multipliers(
    cost_a: float, cost_b: float, settings: EngineSettings = DEFAULT_SETTINGS
) -> EqualCostMultipliers:
    """Smallest-difference (N, M) with both costs within tolerance.

    Candidates for M are the floor and ceiling of ``N*cost_a/cost_b`` for
    N in ``1..max_multiplier``; ties keep the smallest N. Falls back to
    (1, 1) when nothing qualifies or a cost is not positive.
    """
    if cost_a <= 0 or cost_b <= 0:
        return EqualCostMultipliers(1, 1, cost_a, cost_b)

    best = None
    best_diff = math.inf
    for mult_a in range(1, settings.max_multiplier + 1):
        total_a = mult_a * cost_a
        ideal = total_a / cost_b
        for mult_b in sorted({math.floor(ideal), math.ceil(ideal)}):
            if mult_b < 1 or mult_b > settings.max_multiplier:
                continue
            total_b = mult_b * cost_b
            diff = abs(total_a - total_b)
            if diff <= max(total_a, total_b) * settings.cost_tolerance and diff < best_diff:
                best_diff = diff
                best = (mult_a, mult_b)

    if best is None:
        logger.debug("no equal-cost pair within tolerance for costs %s / %s", cost_a, cost_b)
        return EqualCostMultipliers(1, 1, cost_a, cost_b)
    mult_a, mult_b = best
    return EqualCostMultipliers(mult_a, mult_b, mult_a * cost_a, mult_b * cost_b)


@dataclass(frozen=True)
class _Cycle:
    first: float
    normal: float


def _cycle_damage(
    attacker: CombatEntity,
    defender: CombatEntity,
    multiplier: int,
    charge_bonus: float,
    debuffs: Sequence[ModifierEffect],
    settings: EngineSettings,
):
    normal = compute_effective_damage(attacker, defender, charge_bonus, False, debuffs, settings)
    first = compute_effective_damage(attacker, defender, charge_bonus, True, debuffs, settings)
    return normal, first, _Cycle(first=first.value * multiplier, normal=normal.value * multiplier)


def compute_metrics_with_multiplier(
    attacker: CombatEntity,
    defender: CombatEntity,
    attacker_multiplier: int,
    defender_multiplier: int,
    charge_bonus: float = 0.0,
    debuffs: Sequence[ModifierEffect] = (),
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> VersusMetrics:
    """Metrics for ``attacker_multiplier`` attackers against ``defender_multiplier`` defenders.

    ``hits_to_kill`` counts cycles. ``dps`` is the group's damage per second
    and ``dps_per_cost`` divides it by the group's total cost.
    """
    normal, first, cycle = _cycle_damage(
        attacker, defender, attacker_multiplier, charge_bonus, debuffs, settings
    )
    weapon = normal.weapon
    attack_speed = weapon.speed if weapon else 0.0
    bug = attack_speed <= 0

    dps = dps_per_cost = ttk = None
    hits = None
    if bug:
        logger.debug("attack speed bug for %s (speed=%s)", attacker.id, attack_speed)
    else:
        total_hp = defender.hitpoints * defender_multiplier
        hits = hits_needed(total_hp, cycle.first, cycle.normal)
        elapsed = hits * attack_speed
        if first.charge and hits > 0:
            dps = round(damage_over(hits, cycle.first, cycle.normal) / elapsed, settings.dps_decimals)
        else:
            dps = round(cycle.normal / attack_speed, settings.dps_decimals)
        ttk = round(elapsed, settings.ttk_decimals)
        group_cost = attacker.total_cost * attacker_multiplier
        dps_per_cost = round(dps / group_cost, settings.dps_decimals) if group_cost > 0 else None

    formula = describe_damage(normal, first)
    if weapon is not None:
        formula += (
            f"; {attacker_multiplier} units x {format_number(normal.value)} = {format_number(cycle.normal)} per cycle"
        )
        if first.charge and hits:
            formula += (
                f"; DPS = ({format_number(cycle.first)} + {hits - 1} x {format_number(cycle.normal)})"
                f" / ({hits} x {format_number(attack_speed)})"
            )
        else:
            formula += f"; DPS = {format_number(cycle.normal)} / {format_number(attack_speed)}"
        if dps is not None:
            formula += f" = {format_number(dps)}"

    return VersusMetrics(
        id=attacker.id,
        name=attacker.name,
        dps=dps,
        dps_per_cost=dps_per_cost,
        hits_to_kill=hits,
        time_to_kill=ttk,
        effective_damage_per_hit=normal.value,
        bug_attack_speed=bug,
        formula=formula,
        first_hit_damage=first.value if first.charge else None,
    )


def _survivors(
    winner: CombatEntity,
    winner_multiplier: int,
    winner_cycles: int,
    incoming: _Cycle,
):
    taken = damage_over(winner_cycles, incoming.first, incoming.normal)
    hp_left = max(0.0, winner.hitpoints * winner_multiplier - taken)
    units_left = int(math.floor(hp_left / winner.hitpoints)) if winner.hitpoints > 0 else 0
    return hp_left, units_left


def compute_versus_at_equal_cost(
    a: CombatEntity,
    b: CombatEntity,
    abilities_a: Optional[Iterable[Variation]] = None,
    abilities_b: Optional[Iterable[Variation]] = None,
    charge_bonus_a: Optional[float] = None,
    charge_bonus_b: Optional[float] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> EqualCostResult:
    """N*A vs M*B at equal cost.

    Each side's survivors are what remains after absorbing the other side's
    per-cycle damage for as many cycles as it needs to finish the enemy
    group. The side with strictly more units left wins; its surplus is
    reported in HP, units and resources.
    """
    charge_a = a.charge_bonus if charge_bonus_a is None else charge_bonus_a
    charge_b = b.charge_bonus if charge_bonus_b is None else charge_bonus_b
    debuffs_on_a = versus_debuffs(b, abilities_b)
    debuffs_on_b = versus_debuffs(a, abilities_a)

    multipliers = calculate_equal_cost_multipliers(a.total_cost, b.total_cost, settings)
    mult_a, mult_b = multipliers.multiplier_a, multipliers.multiplier_b

    metrics_a = compute_metrics_with_multiplier(a, b, mult_a, mult_b, charge_a, debuffs_on_a, settings)
    metrics_b = compute_metrics_with_multiplier(b, a, mult_b, mult_a, charge_b, debuffs_on_b, settings)
    result = EqualCostResult(attacker=metrics_a, defender=metrics_b, winner=DRAW, multipliers=multipliers)

    if metrics_a.bug_attack_speed or metrics_b.bug_attack_speed:
        return result
    _, _, cycle_a = _cycle_damage(a, b, mult_a, charge_a, debuffs_on_a, settings)
    _, _, cycle_b = _cycle_damage(b, a, mult_b, charge_b, debuffs_on_b, settings)
    hp_a, units_a = _survivors(a, mult_a, metrics_a.hits_to_kill, cycle_b)
    hp_b, units_b = _survivors(b, mult_b, metrics_b.hits_to_kill, cycle_a)

    if units_a > units_b:
        result.winner = a.id
        result.winner_hp_remaining = hp_a
        result.winner_units_remaining = units_a
        result.resource_difference = units_a * (multipliers.total_cost_a / mult_a)
    elif units_b > units_a:
        result.winner = b.id
        result.winner_hp_remaining = hp_b
        result.winner_units_remaining = units_b
        result.resource_difference = units_b * (multipliers.total_cost_b / mult_b)
    return result


__all__ = [
    "EqualCostMultipliers",
    "EqualCostResult",
    "calculate_equal_cost_multipliers",
    "compute_metrics_with_multiplier",
    "compute_versus_at_equal_cost",
]
