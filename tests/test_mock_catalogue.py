import json

import httpx
import pytest

from peripheral_catalog.integrations.clients.mocks.local_peripheral_catalogue import LocalPeripheralCatalogue


def _get(catalogue, path, params=None):
    request = httpx.Request("GET", httpx.URL(f"https://peripheral.mock{path}", params=params))
    return catalogue.handle(request)


def _ids(response):
    return [item["id"] for item in response.json()]


def test_lists_bundled_peripherals(catalogue):
    response = _get(catalogue, "/peripherals")
    assert response.status_code == 200
    assert len(response.json()) == 12
    assert response.json()[0]["imageUrl"].startswith("https://")


def test_category_and_brand_filters_ignore_case(catalogue):
    assert _ids(_get(catalogue, "/peripherals", {"category": "headset"})) == ["cloud-ii", "arctis-nova-7"]
    assert _ids(_get(catalogue, "/peripherals", {"brand": "LOGITECH"})) == ["mx-master-3s", "g502-hero", "mx-keys-s"]


def test_search_price_and_feature_filters(catalogue):
    assert _ids(_get(catalogue, "/peripherals", {"search": "razer", "category": "Keyboard"})) == ["huntsman-mini"]
    assert _ids(_get(catalogue, "/peripherals", {"minPrice": "1000"})) == ["k70-rgb-pro", "arctis-nova-7"]
    assert _ids(_get(catalogue, "/peripherals", {"maxPrice": "200"})) == ["qck-heavy"]
    assert _ids(_get(catalogue, "/peripherals", [("feature", "mechanical"), ("feature", "rgb")])) == [
        "k70-rgb-pro",
        "huntsman-mini",
    ]


def test_unparsable_price_is_ignored(catalogue):
    assert len(_get(catalogue, "/peripherals", {"minPrice": "cheap"}).json()) == 12


def test_single_peripheral_and_not_found(catalogue):
    response = _get(catalogue, "/peripherals/keychron-k2")
    assert response.status_code == 200
    assert response.json()["name"] == "Keychron K2"

    missing = _get(catalogue, "/peripherals/nope")
    assert missing.status_code == 404
    assert missing.json() == {}


def test_extra_segments_after_peripheral_id_are_not_found(catalogue):
    nested = _get(catalogue, "/peripherals/mm700/extra")
    assert nested.status_code == 404
    assert nested.json() == {}
    assert _get(catalogue, "/categories/extra").status_code == 404


def test_categories_and_unknown_paths(catalogue):
    assert _get(catalogue, "/categories").json() == ["Headset", "Keyboard", "Mouse", "Mousepad"]
    assert _get(catalogue, "/brands").status_code == 404
    assert _get(catalogue, "/").status_code == 404


def test_base_path_prefix():
    catalogue = LocalPeripheralCatalogue(base_path="/api/v2/")
    assert _get(catalogue, "/api/v2/categories").status_code == 200
    assert _get(catalogue, "/categories").status_code == 404


def test_unavailable_raises_connect_error(catalogue):
    catalogue.available = False
    with pytest.raises(httpx.ConnectError):
        _get(catalogue, "/peripherals")
    assert catalogue.request_count == 1


def test_categories_fall_back_to_peripherals(tmp_path):
    (tmp_path / "peripherals.json").write_text(
        json.dumps([
            {"id": "a", "name": "A", "brand": "X", "category": "Mouse", "price": 1},
            {"id": "b", "name": "B", "brand": "X", "category": "Keyboard", "price": 2},
            {"id": "c", "name": "C", "brand": "X", "category": "Mouse", "price": 3},
        ]),
        encoding="utf-8",
    )
    catalogue = LocalPeripheralCatalogue(data_dir=tmp_path)
    assert _get(catalogue, "/categories").json() == ["Mouse", "Keyboard"]
