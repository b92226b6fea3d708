"""
Process-lifetime store for received webhook payloads

Entries live in memory only and are lost on restart. The store is bounded:
once ``max_entries`` is reached the oldest entry is dropped for each new one.
"""

import logging
from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from fastapi import Request

logger = logging.getLogger(__name__)


class WebhookStore:
    """Bounded in-memory list of webhook payloads"""

    def __init__(self, max_entries: int = 1000):
        self._entries: deque[dict[str, Any]] = deque(maxlen=max_entries)
        self._lock = Lock()

    def add(self, webhook_type: str, data: dict[str, Any]) -> dict[str, Any]:
        """Record a payload; it is kept unmodified under ``data``"""
        entry = {
            "type": webhook_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": data,
        }
        with self._lock:
            if len(self._entries) == self._entries.maxlen:
                logger.debug(f"Webhook store full ({self._entries.maxlen}), dropping oldest entry")
            self._entries.append(entry)
        return entry

    def entries(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def get_webhook_store(request: Request) -> WebhookStore:
    return request.app.state.webhook_store
