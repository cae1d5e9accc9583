"""Tests for the public menu change feed and client-side cache."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest

from app.services.menu_sync import ChangeType, MenuCache, ProductChange, ProductChangeBroker


def _change(event_type, product_id, company_id=None, **new):
    return ProductChange(
        event_type=event_type,
        company_id=company_id or uuid.uuid4(),
        product_id=product_id,
        new=new,
    )


class TestMenuCache:
    def test_insert_active_product(self):
        cache = MenuCache()
        pid = uuid.uuid4()
        cache.apply(_change(ChangeType.INSERT, pid, name="Coca", is_active=True))
        assert cache.products == [{"id": str(pid), "name": "Coca", "is_active": True}]

    def test_insert_inactive_is_ignored(self):
        cache = MenuCache()
        cache.apply(_change(ChangeType.INSERT, uuid.uuid4(), name="Coca", is_active=False))
        assert cache.products == []

    def test_insert_duplicate_merges(self):
        pid = uuid.uuid4()
        cache = MenuCache([{"id": str(pid), "name": "Old", "price": "5.00"}])
        cache.apply(_change(ChangeType.INSERT, pid, name="New", is_active=True))
        assert len(cache.products) == 1
        assert cache.products[0]["name"] == "New"
        assert cache.products[0]["price"] == "5.00"

    def test_update_deactivation_removes(self):
        pid = uuid.uuid4()
        cache = MenuCache([{"id": str(pid), "name": "Suco"}])
        cache.apply(_change(ChangeType.UPDATE, pid, is_active=False))
        assert cache.products == []

    def test_update_reactivation_appends(self):
        pid = uuid.uuid4()
        cache = MenuCache()
        cache.apply(_change(ChangeType.UPDATE, pid, name="Suco", is_active=True))
        assert [p["id"] for p in cache.products] == [str(pid)]

    def test_update_keeps_position(self):
        first, second = uuid.uuid4(), uuid.uuid4()
        cache = MenuCache([{"id": str(first), "name": "A"}, {"id": str(second), "name": "B"}])
        cache.apply(_change(ChangeType.UPDATE, first, name="A2", is_active=True))
        assert [p["name"] for p in cache.products] == ["A2", "B"]

    def test_delete_unknown_is_noop(self):
        cache = MenuCache([{"id": "x"}])
        cache.apply(_change(ChangeType.DELETE, uuid.uuid4()))
        assert cache.products == [{"id": "x"}]


class TestProductChangeBroker:
    @pytest.mark.asyncio
    async def test_publish_only_reaches_same_company(self):
        broker = ProductChangeBroker(queue_size=5)
        company, other = uuid.uuid4(), uuid.uuid4()

        async with broker.subscribe(company) as queue, broker.subscribe(other) as other_queue:
            delivered = broker.publish(_change(ChangeType.DELETE, uuid.uuid4(), company_id=company))
            assert delivered == 1
            assert queue.qsize() == 1
            assert other_queue.empty()

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(self):
        broker = ProductChangeBroker(queue_size=2)
        company = uuid.uuid4()
        ids = [uuid.uuid4() for _ in range(3)]

        async with broker.subscribe(company) as queue:
            for pid in ids:
                broker.publish(_change(ChangeType.DELETE, pid, company_id=company))
            received = [queue.get_nowait().product_id for _ in range(queue.qsize())]

        assert received == ids[1:]

    @pytest.mark.asyncio
    async def test_unsubscribe_cleans_up(self):
        broker = ProductChangeBroker(queue_size=2)
        company = uuid.uuid4()
        async with broker.subscribe(company):
            assert broker.subscriber_count(company) == 1
        assert broker.subscriber_count(company) == 0
        assert broker.publish(_change(ChangeType.DELETE, uuid.uuid4(), company_id=company)) == 0


class TestMenuChangesSocket:
    @pytest.mark.asyncio
    async def test_idle_listener_unsubscribes_on_disconnect(self):
        from app.api.menu import menu_changes

        broker = ProductChangeBroker(queue_size=5)
        company = SimpleNamespace(id=uuid.uuid4())
        websocket = AsyncMock()
        websocket.receive.return_value = {"type": "websocket.disconnect"}

        with patch("app.api.menu.async_session_maker", MagicMock()), \
             patch("app.api.menu.get_company_by_slug", AsyncMock(return_value=company)), \
             patch("app.api.menu.is_storefront_visible", return_value=True), \
             patch("app.api.menu.product_change_broker", broker):
            await asyncio.wait_for(menu_changes(websocket, "bella"), timeout=1)

        websocket.accept.assert_awaited_once()
        websocket.send_json.assert_not_awaited()
        assert broker.subscriber_count(company.id) == 0

    @pytest.mark.asyncio
    async def test_queued_change_sent_before_disconnect(self):
        from app.api.menu import _stream_changes

        async def client_leaves():
            await asyncio.sleep(0.05)
            return {"type": "websocket.disconnect"}

        pid = uuid.uuid4()
        queue = asyncio.Queue()
        queue.put_nowait(_change(ChangeType.DELETE, pid))
        websocket = AsyncMock()
        websocket.receive.side_effect = client_leaves

        await asyncio.wait_for(_stream_changes(websocket, queue), timeout=1)

        sent = websocket.send_json.await_args.args[0]
        assert sent["product_id"] == str(pid)

    @pytest.mark.asyncio
    async def test_client_message_keeps_stream_open(self):
        from app.api.menu import _stream_changes

        websocket = AsyncMock()
        websocket.receive.side_effect = [
            {"type": "websocket.receive", "text": "ping"},
            {"type": "websocket.disconnect"},
        ]

        await asyncio.wait_for(_stream_changes(websocket, asyncio.Queue()), timeout=1)
        assert websocket.receive.await_count == 2
