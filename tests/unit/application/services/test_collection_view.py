"""Unit tests for CollectionView refresh ordering."""

import asyncio

import pytest
import pytest_asyncio

from collectiondesk.application.services import CollectionView
from collectiondesk.domain.entities.filter_state import FilterState
from collectiondesk.domain.services.query_filter_state import DictParamStore, QueryFilterState


@pytest_asyncio.fixture
async def products(manager, product_fields):
    await manager.create_collection("products", product_fields)
    for title in ["Red Lamp", "Oak Desk", "Desk Lamp"]:
        await manager.create_record("products", {"title": title})


@pytest.mark.asyncio
class TestCollectionView:
    async def test_refresh_applies_filter_state(self, manager, products):
        view = CollectionView(manager, "products", QueryFilterState(DictParamStore({"q": "desk"})))

        result = await view.refresh()

        assert result.ok
        assert [r.values["title"] for r in view.page.items] == ["Oak Desk", "Desk Lamp"]
        assert view.applied_state == FilterState(query="desk")
        assert view.loading is False

    async def test_filter_change_triggers_refresh(self, manager, products):
        view = CollectionView(manager, "products")

        view.filter_state.set_query("lamp")
        await view.wait_idle()

        assert [r.values["title"] for r in view.page.items] == ["Red Lamp", "Desk Lamp"]
        view.close()

    async def test_clear_search_notifies_once(self, manager, products):
        filter_state = QueryFilterState()
        view = CollectionView(manager, "products", filter_state, auto_refresh=False)
        with filter_state.batch():
            filter_state.set_query("lamp")
            filter_state.set_category("title")
        calls = []
        filter_state.subscribe(calls.append)

        filter_state.clear_search()

        assert calls == [FilterState()]
        view.close()

    async def test_stale_response_is_discarded(self, manager, products):
        view = CollectionView(manager, "products", auto_refresh=False)
        slow_started = asyncio.Event()
        release_slow = asyncio.Event()
        find_for_view = manager.find_for_view

        async def delayed_find(slug, state):
            if state.query == "slow":
                slow_started.set()
                await release_slow.wait()
            return await find_for_view(slug, state)

        manager.find_for_view = delayed_find

        view.filter_state.set_query("slow")
        slow = asyncio.create_task(view.refresh())
        await slow_started.wait()

        view.filter_state.set_query("lamp")
        await view.refresh()
        release_slow.set()
        await slow

        assert view.applied_state == FilterState(query="lamp")
        assert [r.values["title"] for r in view.page.items] == ["Red Lamp", "Desk Lamp"]

    async def test_error_is_exposed(self, manager, products):
        view = CollectionView(
            manager, "products", QueryFilterState(DictParamStore({"category": "colour"}))
        )

        result = await view.refresh()

        assert not result.ok
        assert view.error.code == "InvalidRequest"
        assert view.page is None

    async def test_close_stops_listening(self, manager, products):
        view = CollectionView(manager, "products")
        view.close()

        view.filter_state.set_query("lamp")

        assert not view._tasks
        assert view.page is None
