"""AoE4 Versus: resolve unit stats under technologies/abilities and compare units in combat."""

from importlib import import_module
from typing import Any

__version__ = "0.1.0"
__all__ = [
    "Catalog",
    "CatalogError",
    "load_catalog",
    "Entity",
    "Variation",
    "Weapon",
    "ModifierEffect",
    "EngineSettings",
    "load_settings",
    "StatBundle",
    "resolve_stats",
    "CombatEntity",
    "compute_versus",
    "compute_versus_at_equal_cost",
    "calculate_equal_cost_multipliers",
    "UnitSelection",
    "build_combat_entity",
    "compare",
    "toggle_selection",
    "technologies_for_unit",
    "abilities_for_unit",
    "__version__",
]

_EXPORTS = {
    "Catalog": ("catalog", "Catalog"),
    "CatalogError": ("catalog", "CatalogError"),
    "load_catalog": ("catalog", "load_catalog"),
    "Entity": ("game_models", "Entity"),
    "Variation": ("game_models", "Variation"),
    "Weapon": ("game_models", "Weapon"),
    "ModifierEffect": ("game_models", "ModifierEffect"),
    "EngineSettings": ("config", "EngineSettings"),
    "load_settings": ("config", "load_settings"),
    "StatBundle": ("stats", "StatBundle"),
    "resolve_stats": ("stats", "resolve_stats"),
    "CombatEntity": ("simulators.combat", "CombatEntity"),
    "compute_versus": ("simulators.combat", "compute_versus"),
    "compute_versus_at_equal_cost": ("simulators.equal_cost", "compute_versus_at_equal_cost"),
    "calculate_equal_cost_multipliers": ("simulators.equal_cost", "calculate_equal_cost_multipliers"),
    "UnitSelection": ("versus", "UnitSelection"),
    "build_combat_entity": ("versus", "build_combat_entity"),
    "compare": ("versus", "compare"),
    "toggle_selection": ("tiers", "toggle_selection"),
    "technologies_for_unit": ("technology", "technologies_for_unit"),
    "abilities_for_unit": ("technology", "abilities_for_unit"),
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module_name, attr_name = _EXPORTS[name]
        module = import_module(f".{module_name}", __name__)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> list[str]:
    return sorted(set(list(globals().keys()) + list(__all__)))
