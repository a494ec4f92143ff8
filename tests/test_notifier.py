"""Tests for the Redis notifier and the ticket renderer (mocked Redis)."""

from __future__ import annotations

import base64
import json
from datetime import date, datetime
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from rental_engine.domain.entities import Ticket
from rental_engine.infrastructure.notifier import INBOX_LIMIT, RedisNotifier
from rental_engine.infrastructure.renderer import TextTicketRenderer
from rental_engine.services.registry import AccountDirectory
from tests.conftest import ACCOUNTS


def _ticket() -> Ticket:
    return Ticket(
        id="TKT-000001", rental_id=1, customer_name="Alice Tan",
        customer_contact="alice@example.com", vehicle_info="Toyota Vios",
        plate_no="ABC0001", start_date=date(2024, 1, 1), end_date=date(2024, 1, 10),
        total_fee=945.0, insurance=True, generated_at=datetime(2024, 1, 1, 9, 0),
        pickup_location="Main Office",
    )


class TestRedisNotifier:
    @pytest.mark.asyncio
    async def test_notify_pushes_and_publishes(self):
        mock_redis = AsyncMock()
        notifier = RedisNotifier(mock_redis, AccountDirectory(ACCOUNTS))

        outcome = await notifier.notify("alice", "Rental approved", "See attachment", b"PDF")

        assert outcome.ok
        key, payload = mock_redis.lpush.await_args.args
        assert key == "inbox:alice"
        message = json.loads(payload)
        assert message["subject"] == "Rental approved"
        assert base64.b64decode(message["attachment"]) == b"PDF"
        mock_redis.ltrim.assert_awaited_once_with("inbox:alice", 0, INBOX_LIMIT - 1)
        mock_redis.publish.assert_awaited_once_with("notifications:alice", payload)

    @pytest.mark.asyncio
    async def test_redis_error_becomes_failed_outcome(self):
        mock_redis = AsyncMock()
        mock_redis.lpush = AsyncMock(side_effect=RedisConnectionError("refused"))
        notifier = RedisNotifier(mock_redis, AccountDirectory(ACCOUNTS))

        outcome = await notifier.notify("alice", "Hello", "Body")

        assert not outcome.ok
        assert "refused" in outcome.detail

    @pytest.mark.asyncio
    async def test_admin_broadcast_reaches_only_admins(self):
        mock_redis = AsyncMock()
        notifier = RedisNotifier(mock_redis, AccountDirectory(ACCOUNTS))

        assert (await notifier.notify_admins("Critical issue", "Brakes")).ok
        keys = [c.args[0] for c in mock_redis.lpush.await_args_list]
        assert keys == ["inbox:admin"]

    @pytest.mark.asyncio
    async def test_broadcast_without_admins_fails(self):
        notifier = RedisNotifier(AsyncMock(), AccountDirectory(ACCOUNTS[:1]))
        assert not (await notifier.notify_admins("Critical issue", "Brakes")).ok


class TestTextTicketRenderer:
    def test_render_contains_ticket_details(self):
        document = TextTicketRenderer(currency="RM").render(_ticket()).decode()
        assert "TKT-000001" in document
        assert "Alice Tan" in document
        assert "RM945.00" in document
        assert "Included" in document

    def test_render_failure_returns_none(self):
        broken = _ticket()
        broken.generated_at = None
        assert TextTicketRenderer().render(broken) is None
