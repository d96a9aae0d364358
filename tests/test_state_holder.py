import asyncio

import pytest

from peripheral_catalog.catalog.filters import FeatureFlag, PriceRange
from peripheral_catalog.catalog.service import CatalogService
from peripheral_catalog.catalog.state import SearchTermChanged
from peripheral_catalog.catalog.state_holder import CatalogStateHolder


def _loaded(state):
    return len(state.all_peripherals) == 12 and not state.is_refreshing and not state.is_loading


@pytest.mark.asyncio
async def test_start_loads_catalog_and_categories(holder, clock):
    assert holder.state.is_loading is True
    await holder.start()
    try:
        state = await holder.wait_for(lambda s: _loaded(s) and s.last_updated is not None)
        assert state.last_updated == clock.now
        assert state.categories == ("Headset", "Keyboard", "Mouse", "Mousepad")
        assert state.filters.bounds == PriceRange(149.9, 1199.0)
        assert state.filtered_peripherals[0].name == "Arctis Nova 7"
        assert state.error_message is None
    finally:
        await holder.stop()
    assert holder.is_running is False


@pytest.mark.asyncio
async def test_failed_refresh_reports_error(holder, catalogue):
    catalogue.available = False
    await holder.start()
    try:
        state = await holder.wait_for(lambda s: s.error_message is not None)
        assert "unreachable" in state.error_message.lower()
        assert state.is_refreshing is False
        assert state.is_loading is False
        assert state.all_peripherals == ()
    finally:
        await holder.stop()


@pytest.mark.asyncio
async def test_retry_clears_error(holder, catalogue):
    catalogue.available = False
    await holder.start()
    try:
        await holder.wait_for(lambda s: s.error_message is not None)
        catalogue.available = True
        await holder.refresh()
        state = await holder.wait_for(lambda s: _loaded(s) and s.error_message is None)
        assert state.last_updated is not None
    finally:
        await holder.stop()


@pytest.mark.asyncio
async def test_filter_intents(holder):
    await holder.start()
    try:
        await holder.wait_for(_loaded)

        state = await holder.select_category("Keyboard")
        assert len(state.filtered_peripherals) == 4
        state = await holder.toggle_mechanical()
        state = await holder.toggle_rgb()
        assert [p.id for p in state.filtered_peripherals] == ["huntsman-mini", "k70-rgb-pro"]
        state = await holder.toggle_wireless()
        assert state.filtered_peripherals == ()

        state = await holder.clear_filters()
        assert len(state.filtered_peripherals) == 12
        assert state.filters.price_range == PriceRange(149.9, 1199.0)

        state = await holder.set_search_term("logitech")
        assert [p.id for p in state.filtered_peripherals] == ["g502-hero", "mx-keys-s", "mx-master-3s"]
        state = await holder.select_brand("SteelSeries")
        assert state.filtered_peripherals == ()
        await holder.set_search_term("")
        state = await holder.update_price_range(100.0, 500.0)
        assert [p.id for p in state.filtered_peripherals] == ["qck-heavy"]
        assert state.filters.price_range == PriceRange(149.9, 500.0)
    finally:
        await holder.stop()


@pytest.mark.asyncio
async def test_events_apply_in_order(holder):
    await holder.start(refresh=False)
    try:
        for term in ("a", "ab", "abc"):
            holder.dispatch(SearchTermChanged(term))
        await holder.settle()
        assert holder.state.filters.search_term == "abc"
    finally:
        await holder.stop()


@pytest.mark.asyncio
async def test_favorites_and_history_flow_through_streams(holder, clock):
    await holder.start()
    try:
        await holder.wait_for(_loaded)

        assert holder.toggle_favorite("cloud-ii") is True
        state = await holder.wait_for(
            lambda s: [p.id for p in s.favorites] == ["cloud-ii"]
            and any(p.id == "cloud-ii" and p.is_favorite for p in s.all_peripherals)
        )
        assert state.favorites[0].is_favorite is True

        holder.record_view("mm700")
        clock.advance()
        holder.record_view("cloud-ii")
        state = await holder.wait_for(lambda s: len(s.history) == 2)
        assert [item.peripheral.id for item in state.history] == ["cloud-ii", "mm700"]

        holder.delete_history_entry("cloud-ii")
        await holder.wait_for(lambda s: [i.peripheral.id for i in s.history] == ["mm700"])
        holder.clear_history()
        await holder.wait_for(lambda s: s.history == ())
    finally:
        await holder.stop()


@pytest.mark.asyncio
async def test_comparison_selection_and_table(holder):
    await holder.start()
    try:
        await holder.wait_for(_loaded)
        for peripheral_id in ("k70-rgb-pro", "keychron-k2", "huntsman-mini", "mx-keys-s"):
            state = await holder.toggle_comparison(peripheral_id)
        assert state.comparison_selection == ("k70-rgb-pro", "keychron-k2", "huntsman-mini")

        table = holder.comparison_table()
        assert [p.id for p in table.peripherals] == ["k70-rgb-pro", "keychron-k2", "huntsman-mini"]
        assert table.spec_rows

        state = await holder.remove_from_comparison("keychron-k2")
        assert state.comparison_selection == ("k70-rgb-pro", "huntsman-mini")
        state = await holder.clear_comparison()
        assert holder.comparison_peripherals() == []
    finally:
        await holder.stop()


@pytest.mark.asyncio
async def test_comparison_pruned_when_catalog_shrinks(holder, service):
    await holder.start()
    try:
        await holder.wait_for(_loaded)
        await holder.toggle_comparison("mm700")
        await holder.toggle_comparison("cloud-ii")

        # Drop one peripheral from the cache directly; the stream delivers the new list.
        service.store._peripherals.pop("mm700")
        service.store._changes.notify()
        state = await holder.wait_for(lambda s: len(s.all_peripherals) == 11)
        assert state.comparison_selection == ("cloud-ii",)
    finally:
        await holder.stop()


@pytest.mark.asyncio
async def test_subscribe_yields_snapshots(holder):
    await holder.start(refresh=False)
    try:
        stream = holder.subscribe()
        first = await stream.__anext__()
        await holder.toggle_feature(FeatureFlag.RGB)
        latest = await asyncio.wait_for(stream.__anext__(), 1)
        assert latest is not first
        assert latest.filters.only_rgb is True
        await stream.aclose()
    finally:
        await holder.stop()


@pytest.mark.asyncio
async def test_get_peripheral_through_holder(holder):
    await holder.start(refresh=False)
    try:
        peripheral = await holder.get_peripheral("arctis-nova-7")
        assert peripheral.brand == "SteelSeries"
        assert await holder.get_peripheral("nope") is None
    finally:
        await holder.stop()


def test_dispatch_before_start_raises(holder):
    with pytest.raises(RuntimeError):
        holder.dispatch(SearchTermChanged("x"))


@pytest.mark.asyncio
async def test_last_updated_matches_the_stored_stamp(source, store):
    ticks = iter(range(1_000, 2_000))
    service = CatalogService(source=source, store=store, clock=lambda: next(ticks))
    holder = CatalogStateHolder(service)
    await holder.start()
    try:
        state = await holder.wait_for(lambda s: _loaded(s) and s.last_updated is not None)
        assert state.last_updated == store.get_last_updated("mm700") == 1_000
    finally:
        await holder.stop()


@pytest.mark.asyncio
async def test_set_favorite_through_holder(holder):
    await holder.start()
    try:
        await holder.wait_for(_loaded)
        assert holder.set_favorite("qck-heavy", True) is True
        await holder.wait_for(lambda s: [p.id for p in s.favorites] == ["qck-heavy"])
        assert holder.set_favorite("qck-heavy", False) is True
        await holder.wait_for(lambda s: s.favorites == ())
        assert holder.set_favorite("nope", True) is False
    finally:
        await holder.stop()
