import pytest

from peripheral_catalog.catalog.filters import (
    FeatureFlag,
    FilterCriteria,
    PriceRange,
    adjust_price_range,
    apply_filters,
    price_bounds,
)


@pytest.fixture
def catalog(make_peripheral):
    return [
        make_peripheral("m1", "Viper", 300.0, brand="Razer", features=("Wireless",)),
        make_peripheral("m2", "G502", 250.0, brand="Logitech", features=("RGB", "Wired")),
        make_peripheral(
            "k1", "K2", 600.0, brand="Keychron", category="Keyboard",
            features=("Mechanical", "Bluetooth"), description="Hot-swap board",
        ),
        make_peripheral("k2", "Apex", 900.0, brand="SteelSeries", category="Keyboard", features=("mechanical", "rgb")),
        make_peripheral("h1", "Cloud", 450.0, brand="HyperX", category="Headset", features=("Wired", "Wireless-ready")),
    ]


def _ids(peripherals):
    return [p.id for p in peripherals]


def test_default_criteria_returns_everything_sorted_by_name(catalog):
    result = apply_filters(catalog, FilterCriteria())
    assert [p.name for p in result] == ["Apex", "Cloud", "G502", "K2", "Viper"]


def test_sort_uses_code_point_order(make_peripheral):
    items = [make_peripheral("a", "abe"), make_peripheral("b", "Zed"), make_peripheral("c", "Abe")]
    assert [p.name for p in apply_filters(items, FilterCriteria())] == ["Abe", "Zed", "abe"]


def test_two_item_scenario_sorts_and_derives_bounds(make_peripheral):
    items = [make_peripheral("a", "Zed", 50.0), make_peripheral("b", "Abe", 150.0)]
    criteria = adjust_price_range(FilterCriteria(), price_bounds(items))

    assert _ids(apply_filters(items, criteria)) == ["b", "a"]
    assert criteria.bounds == PriceRange(50.0, 150.0)
    assert criteria.price_range == PriceRange(50.0, 150.0)


def test_category_and_brand_match_case_insensitively(catalog):
    assert _ids(apply_filters(catalog, FilterCriteria(category="keyboard"))) == ["k2", "k1"]
    assert _ids(apply_filters(catalog, FilterCriteria(brand="RAZER"))) == ["m1"]
    assert apply_filters(catalog, FilterCriteria(brand="Raz")) == []


def test_search_matches_name_brand_or_description(catalog):
    assert _ids(apply_filters(catalog, FilterCriteria(search_term="viper"))) == ["m1"]
    assert _ids(apply_filters(catalog, FilterCriteria(search_term="logi"))) == ["m2"]
    assert _ids(apply_filters(catalog, FilterCriteria(search_term="HOT-SWAP"))) == ["k1"]
    assert len(apply_filters(catalog, FilterCriteria(search_term="   "))) == len(catalog)


def test_price_range_is_inclusive(catalog):
    criteria = FilterCriteria(bounds=PriceRange(250.0, 900.0), price_range=PriceRange(300.0, 600.0))
    assert _ids(apply_filters(catalog, criteria)) == ["h1", "k1", "m1"]


def test_feature_toggles_match_exact_tags(catalog):
    assert _ids(apply_filters(catalog, FilterCriteria(only_wireless=True))) == ["k1", "m1"]
    assert _ids(apply_filters(catalog, FilterCriteria(only_rgb=True))) == ["k2", "m2"]
    assert _ids(apply_filters(catalog, FilterCriteria(only_mechanical=True))) == ["k2", "k1"]


def test_predicates_combine_conjunctively(catalog):
    criteria = FilterCriteria(category="Keyboard", only_mechanical=True, only_rgb=True)
    assert _ids(apply_filters(catalog, criteria)) == ["k2"]


@pytest.mark.parametrize("flag", list(FeatureFlag))
def test_toggling_twice_restores_criteria(flag):
    criteria = FilterCriteria(search_term="x", brand="Razer")
    assert criteria.toggled(flag) != criteria
    assert criteria.toggled(flag).toggled(flag) == criteria


def test_price_bounds_of_empty_list_is_unset():
    assert price_bounds([]).is_unset


def test_unset_range_snaps_to_bounds():
    adjusted = adjust_price_range(FilterCriteria(), PriceRange(10.0, 90.0))
    assert adjusted.price_range == PriceRange(10.0, 90.0)


def test_selected_range_is_clamped_to_new_bounds():
    criteria = FilterCriteria(bounds=PriceRange(0.0, 1000.0), price_range=PriceRange(100.0, 800.0))
    adjusted = adjust_price_range(criteria, PriceRange(200.0, 500.0))
    assert adjusted.price_range == PriceRange(200.0, 500.0)

    disjoint = FilterCriteria(bounds=PriceRange(0.0, 1000.0), price_range=PriceRange(700.0, 800.0))
    adjusted = adjust_price_range(disjoint, PriceRange(200.0, 500.0))
    assert adjusted.price_range == PriceRange(500.0, 500.0)


def test_adjust_is_idempotent():
    criteria = FilterCriteria(bounds=PriceRange(0.0, 1000.0), price_range=PriceRange(100.0, 800.0))
    bounds = PriceRange(200.0, 500.0)
    once = adjust_price_range(criteria, bounds)
    assert adjust_price_range(once, bounds) == once


def test_with_price_range_orders_and_clamps():
    criteria = FilterCriteria(bounds=PriceRange(50.0, 150.0), price_range=PriceRange(50.0, 150.0))
    updated = criteria.with_price_range(PriceRange(200.0, 60.0))
    assert updated.price_range == PriceRange(60.0, 150.0)
    assert updated.price_range.low <= updated.price_range.high


def test_cleared_keeps_bounds_and_rewidens_range():
    criteria = FilterCriteria(
        search_term="x",
        category="Mouse",
        brand="Razer",
        bounds=PriceRange(50.0, 150.0),
        price_range=PriceRange(60.0, 70.0),
        only_wireless=True,
        only_rgb=True,
        only_mechanical=True,
    )
    assert criteria.cleared() == FilterCriteria(bounds=PriceRange(50.0, 150.0), price_range=PriceRange(50.0, 150.0))
