"""
Redis-backed notification sink.

Each message is pushed onto the recipient's inbox list
(``inbox:<username>``) and published on ``notifications:<username>`` for
live listeners.  Admin broadcasts fan out to every admin account known to
the directory.  Delivery problems come back as ``Outcome.failure``.
"""

from __future__ import annotations

import base64
import json
import logging
from datetime import datetime
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from rental_engine.services.ports import Outcome
from rental_engine.services.registry import AccountDirectory

logger = logging.getLogger(__name__)

INBOX_LIMIT = 500  # newest messages kept per user


class RedisNotifier:
    def __init__(self, client: aioredis.Redis, directory: AccountDirectory):
        self.redis = client
        self.directory = directory

    async def notify(
        self,
        username: str,
        subject: str,
        body: str,
        attachment: Optional[bytes] = None,
    ) -> Outcome:
        message = {
            "to": username,
            "subject": subject,
            "body": body,
            "sent_at": datetime.now().isoformat(timespec="seconds"),
        }
        if attachment is not None:
            message["attachment"] = base64.b64encode(attachment).decode("ascii")
        payload = json.dumps(message)
        try:
            await self.redis.lpush(f"inbox:{username}", payload)
            await self.redis.ltrim(f"inbox:{username}", 0, INBOX_LIMIT - 1)
            await self.redis.publish(f"notifications:{username}", payload)
        except RedisError as exc:
            logger.warning("Notification to %s failed: %s", username, exc)
            return Outcome.failure(f"notify {username}: {exc}")
        return Outcome.success()

    async def notify_admins(self, subject: str, body: str) -> Outcome:
        admins = self.directory.admins()
        if not admins:
            return Outcome.failure("no admin accounts to notify")
        failures = []
        for admin in admins:
            outcome = await self.notify(admin.username, subject, body)
            if not outcome.ok:
                failures.append(outcome.detail)
        if failures:
            return Outcome.failure("; ".join(failures))
        return Outcome.success()
