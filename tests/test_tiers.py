from __future__ import annotations

from aoe4_versus.tiers import (
    active_variations_with_tiers,
    base_line_name,
    expand_active_tiers,
    previous_tiers,
    tier_info,
    tier_line,
    toggle_selection,
)


def test_tier_info_reads_first_display_class(sample_catalog):
    info = tier_info(sample_catalog.get_entity_by_id("melee-2"))
    assert (info.tier, info.max_tier, info.base_name) == (2, 3, "Melee Damage Technology")
    assert tier_info(sample_catalog.get_entity_by_id("husbandry")) is None


def test_base_line_name_strips_suffix():
    assert base_line_name("Ranged Armor Technology 3/3") == "Ranged Armor Technology"
    assert base_line_name("Husbandry") == "Husbandry"


def test_tier_three_expands_in_order(sample_catalog):
    variations = expand_active_tiers(sample_catalog, "melee-3", ["melee-3"])
    assert [v.base_id for v in variations] == ["melee-1", "melee-2", "melee-3"]
    # each lower tier is looked up at its own minimum age
    assert [v.age for v in variations] == [1, 3, 4]


def test_standalone_entity_expands_to_itself(sample_catalog):
    variations = expand_active_tiers(sample_catalog, "husbandry")
    assert [v.base_id for v in variations] == ["husbandry"]
    assert expand_active_tiers(sample_catalog, "missing") == []


def test_overlapping_selection_is_not_duplicated(sample_catalog):
    variations = active_variations_with_tiers(sample_catalog, ["melee-1", "melee-3", "husbandry"])
    assert [v.base_id for v in variations] == ["melee-1", "melee-2", "melee-3", "husbandry"]


def test_previous_tiers_and_tier_line(sample_catalog):
    top = sample_catalog.get_entity_by_id("melee-3")
    assert [e.id for e in previous_tiers(sample_catalog, top)] == ["melee-1", "melee-2"]
    assert [e.id for e in tier_line(sample_catalog, top)] == ["melee-1", "melee-2", "melee-3"]
    solo = sample_catalog.get_entity_by_id("husbandry")
    assert [e.id for e in tier_line(sample_catalog, solo)] == ["husbandry"]


def test_selecting_a_tier_replaces_its_siblings(sample_catalog):
    active = toggle_selection(sample_catalog, ["melee-1", "husbandry"], "melee-2")
    assert active == ("husbandry", "melee-2")
    # tier 1 stays implied even though it is no longer user-active
    ids = [v.base_id for v in active_variations_with_tiers(sample_catalog, active)]
    assert ids == ["husbandry", "melee-1", "melee-2"]


def test_toggle_removes_active_entry(sample_catalog):
    assert toggle_selection(sample_catalog, ["melee-2"], "melee-2") == ()
    assert toggle_selection(sample_catalog, [], "husbandry") == ("husbandry",)
    assert toggle_selection(sample_catalog, ["husbandry"], "unknown") == ("husbandry",)
