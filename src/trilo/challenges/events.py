"""Ledger events for downstream consumers (notifications, activity feeds).

Events are collected while a unit of work runs and published on Redis
pub/sub only after it commits, so a rolled-back completion never reaches
a subscriber.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

CHALLENGE_COMPLETED = "challenge_completed"
BADGE_EARNED = "badge_earned"
LEVEL_UP = "level_up"


@dataclass(frozen=True)
class LedgerEvent:
    kind: str
    user_id: str
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def channel(self) -> str:
        return f"pubsub:{self.kind}"

    def to_json(self) -> str:
        return json.dumps({"user_id": self.user_id, **self.payload}, default=str)


class EventBuffer:
    """Events recorded during one unit of work."""

    def __init__(self) -> None:
        self._events: list[LedgerEvent] = []

    def emit(self, kind: str, user_id: str, **payload: Any) -> None:
        self._events.append(LedgerEvent(kind=kind, user_id=user_id, payload=payload))

    def drain(self) -> list[LedgerEvent]:
        events, self._events = self._events, []
        return events

    def __len__(self) -> int:
        return len(self._events)


async def publish_events(redis: Redis | None, events: list[LedgerEvent]) -> int:
    """Publish events. Best-effort: failures are logged, never raised.

    Returns the number of events published.
    """
    if redis is None or not events:
        return 0

    published = 0
    for event in events:
        try:
            await redis.publish(event.channel, event.to_json())
            published += 1
        except Exception:
            logger.warning("Failed to publish %s event for user %s", event.kind, event.user_id, exc_info=True)
    return published
