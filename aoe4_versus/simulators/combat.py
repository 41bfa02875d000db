"""Steady-state duel evaluation between two resolved units.

This module does not simulate a battle tick by tick. For a pair of fully
resolved units it derives the expected damage of each hit, then damage per
second, hits and time to kill, and a winner. The entry points are
:func:`compute_effective_damage`, :func:`compute_metrics` and
:func:`compute_versus`; the N-vs-M equal cost variant lives in
:mod:`aoe4_versus.simulators.equal_cost`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_SETTINGS, EngineSettings
from ..game_models import Armor, Costs, ModifierEffect, Variation, Weapon, VERSUS_DEBUFF
from ..modifiers import applies, class_groups_match, targets_defender

logger = logging.getLogger(__name__)

DRAW = "draw"

# =============================
# Basic data structures
# =============================


@dataclass(frozen=True)
class CombatEntity:
    """A unit with every technology/ability already folded into its numbers."""

    id: str
    name: str
    hitpoints: float
    weapons: Tuple[Weapon, ...] = ()
    armor: Tuple[Armor, ...] = ()
    costs: Costs = field(default_factory=Costs)
    classes: Tuple[str, ...] = ()
    charge_bonus: float = 0.0
    abilities: Tuple[Variation, ...] = ()

    @property
    def primary_weapon(self) -> Optional[Weapon]:
        return self.weapons[0] if self.weapons else None

    @property
    def total_cost(self) -> float:
        return self.costs.total

    def armor_value(self, armor_type: str) -> float:
        wanted = armor_type.lower()
        for entry in self.armor:
            if entry.type.lower() == wanted:
                return entry.value
        return 0.0


@dataclass(frozen=True)
class DamageBreakdown:
    value: float
    base: float
    bonus: float
    armor_applied: float
    charge: float = 0.0
    debuff_multiplier: float = 1.0
    weapon: Optional[Weapon] = None


@dataclass
class VersusMetrics:
    id: str
    name: str
    dps: Optional[float]
    dps_per_cost: Optional[float]
    hits_to_kill: Optional[int]
    time_to_kill: Optional[float]
    effective_damage_per_hit: Optional[float]
    bug_attack_speed: bool
    formula: str
    first_hit_damage: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "dps": self.dps,
            "dpsPerCost": self.dps_per_cost,
            "hitsToKill": self.hits_to_kill,
            "timeToKill": self.time_to_kill,
            "effectiveDamagePerHit": self.effective_damage_per_hit,
            "firstHitDamage": self.first_hit_damage,
            "bugAttackSpeed": self.bug_attack_speed,
            "formula": self.formula,
        }


@dataclass
class VersusResult:
    attacker: VersusMetrics
    defender: VersusMetrics
    winner: str = DRAW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attacker": self.attacker.to_dict(),
            "defender": self.defender.to_dict(),
            "winner": self.winner,
        }


# =============================
# Damage helpers
# =============================


def format_number(value: float) -> str:
    return f"{value:g}"


def is_gunpowder(entity: CombatEntity, settings: EngineSettings = DEFAULT_SETTINGS) -> bool:
    token = settings.gunpowder_token.lower()
    return any(token in c.lower() for c in entity.classes)


def ignores_armor(entity: CombatEntity, weapon: Weapon, settings: EngineSettings = DEFAULT_SETTINGS) -> bool:
    if weapon.type == "siege":
        return True
    siege = {c.lower() for c in settings.siege_classes}
    return any(c.lower() in siege for c in entity.classes)


def versus_debuffs(carrier: CombatEntity, abilities: Optional[Iterable[Variation]] = None) -> List[ModifierEffect]:
    """Debuff effects ``carrier`` projects onto whoever attacks it."""
    source = carrier.abilities if abilities is None else abilities
    found = []
    for variation in source:
        for effect in variation.effects:
            if effect.property == VERSUS_DEBUFF and applies(effect, carrier.id, carrier.classes):
                found.append(effect)
    return found


def debuff_multiplier(attacker: CombatEntity, debuffs: Sequence[ModifierEffect]) -> float:
    multiplier = 1.0
    for effect in debuffs:
        if effect.effect != "multiply":
            continue
        if class_groups_match(effect.select.classes, attacker.classes):
            multiplier *= effect.value
    return multiplier


def bonus_against(weapon: Weapon, defender: CombatEntity) -> float:
    return sum(m.value for m in weapon.modifiers if targets_defender(m, defender.classes))


def compute_effective_damage(
    attacker: CombatEntity,
    defender: CombatEntity,
    charge_bonus: float = 0.0,
    is_first_hit: bool = False,
    debuffs: Sequence[ModifierEffect] = (),
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> DamageBreakdown:
    """Damage one hit of ``attacker``'s primary weapon deals to ``defender``, never below 1."""
    weapon = attacker.primary_weapon
    if weapon is None:
        return DamageBreakdown(value=1.0, base=0.0, bonus=0.0, armor_applied=0.0)

    base = weapon.damage
    bonus = bonus_against(weapon, defender)
    charge = charge_bonus if is_first_hit else 0.0

    armor = 0.0
    if not ignores_armor(attacker, weapon, settings):
        if weapon.type == "melee":
            armor = defender.armor_value("melee")
        elif not is_gunpowder(attacker, settings):
            armor = defender.armor_value("ranged")

    multiplier = debuff_multiplier(attacker, debuffs)
    raw = (base + bonus + charge - armor) * multiplier
    return DamageBreakdown(
        value=max(1.0, raw),
        base=base,
        bonus=bonus,
        armor_applied=armor,
        charge=charge,
        debuff_multiplier=multiplier,
        weapon=weapon,
    )


def hits_needed(total_hp: float, first: float, normal: float) -> int:
    """Hits to drain ``total_hp`` when only the first hit deals ``first``."""
    if total_hp <= 0:
        return 0
    if first == normal:
        return int(math.ceil(total_hp / normal))
    if first >= total_hp:
        return 1
    return int(math.ceil((total_hp - first) / normal)) + 1


def damage_over(hits: int, first: float, normal: float) -> float:
    if hits <= 0:
        return 0.0
    return first + (hits - 1) * normal


def describe_damage(hit: DamageBreakdown, first: Optional[DamageBreakdown] = None) -> str:
    terms = f"Base({format_number(hit.base)}) + Bonus({format_number(hit.bonus)})"
    expr = f"{terms} - Armor({format_number(hit.armor_applied)})"
    if hit.debuff_multiplier != 1.0:
        expr = f"({expr}) x Debuff({format_number(hit.debuff_multiplier)})"
    text = f"Effective = max(1, {expr}) = {format_number(hit.value)}"
    if first is not None and first.charge:
        first_expr = f"{terms} + Charge({format_number(first.charge)}) - Armor({format_number(first.armor_applied)})"
        if first.debuff_multiplier != 1.0:
            first_expr = f"({first_expr}) x Debuff({format_number(first.debuff_multiplier)})"
        text += f"; First hit = max(1, {first_expr}) = {format_number(first.value)}"
    return text


# =============================
# Metrics
# =============================


def compute_metrics(
    attacker: CombatEntity,
    defender: CombatEntity,
    charge_bonus: float = 0.0,
    debuffs: Sequence[ModifierEffect] = (),
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> VersusMetrics:
    """One ``attacker`` against one ``defender``.

    ``debuffs`` are the defender's versus debuffs (see :func:`versus_debuffs`).
    A weapon cooldown of zero or less is a known data defect: rate metrics
    are reported as ``None`` and ``bug_attack_speed`` is set.
    """
    normal = compute_effective_damage(attacker, defender, charge_bonus, False, debuffs, settings)
    first = compute_effective_damage(attacker, defender, charge_bonus, True, debuffs, settings)
    weapon = normal.weapon
    attack_speed = weapon.speed if weapon else 0.0
    bug = attack_speed <= 0

    dps = dps_per_cost = ttk = None
    hits = None
    if bug:
        logger.debug("attack speed bug for %s (speed=%s)", attacker.id, attack_speed)
    else:
        hits = hits_needed(defender.hitpoints, first.value, normal.value)
        elapsed = hits * attack_speed
        if first.charge and hits > 0:
            dps = round(damage_over(hits, first.value, normal.value) / elapsed, settings.dps_decimals)
        else:
            dps = round(normal.value / attack_speed, settings.dps_decimals)
        ttk = round(elapsed, settings.ttk_decimals)
        cost = attacker.total_cost
        dps_per_cost = round(dps / cost, settings.dps_decimals) if cost > 0 else None

    formula = describe_damage(normal, first)
    if weapon is not None:
        if first.charge and hits:
            formula += (
                f"; DPS = ({format_number(first.value)} + {hits - 1} x {format_number(normal.value)})"
                f" / ({hits} x {format_number(attack_speed)})"
            )
        else:
            formula += f"; DPS = {format_number(normal.value)} / {format_number(attack_speed)}"
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


def decide_winner(a: VersusMetrics, b: VersusMetrics, settings: EngineSettings = DEFAULT_SETTINGS) -> str:
    """Lower time-to-kill wins; within ``draw_tolerance`` of the larger it is a draw."""
    if a.bug_attack_speed or b.bug_attack_speed:
        return DRAW
    if a.time_to_kill is None or b.time_to_kill is None:
        return DRAW
    diff = abs(a.time_to_kill - b.time_to_kill)
    if diff <= max(a.time_to_kill, b.time_to_kill) * settings.draw_tolerance:
        return DRAW
    return a.id if a.time_to_kill < b.time_to_kill else b.id


def compute_versus(
    a: CombatEntity,
    b: CombatEntity,
    abilities_a: Optional[Iterable[Variation]] = None,
    abilities_b: Optional[Iterable[Variation]] = None,
    charge_bonus_a: Optional[float] = None,
    charge_bonus_b: Optional[float] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> VersusResult:
    """Evaluate A hitting B and B hitting A independently, then pick a winner.

    Abilities default to those carried by each entity and charge bonuses
    to each entity's resolved ``charge_bonus``.
    """
    charge_a = a.charge_bonus if charge_bonus_a is None else charge_bonus_a
    charge_b = b.charge_bonus if charge_bonus_b is None else charge_bonus_b
    metrics_a = compute_metrics(a, b, charge_a, versus_debuffs(b, abilities_b), settings)
    metrics_b = compute_metrics(b, a, charge_b, versus_debuffs(a, abilities_a), settings)
    return VersusResult(attacker=metrics_a, defender=metrics_b, winner=decide_winner(metrics_a, metrics_b, settings))


__all__ = [
    "CombatEntity",
    "DRAW",
    "DamageBreakdown",
    "VersusMetrics",
    "VersusResult",
    "bonus_against",
    "compute_effective_damage",
    "compute_metrics",
    "compute_versus",
    "damage_over",
    "debuff_multiplier",
    "decide_winner",
    "describe_damage",
    "hits_needed",
    "ignores_armor",
    "is_gunpowder",
    "versus_debuffs",
]
