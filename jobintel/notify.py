"""One-way, fire-and-forget messages to the background coordinator."""
from __future__ import annotations

from datetime import date
from typing import Any, Callable

from jobintel.log import get_logger

log = get_logger(__name__)

ACTION_ADD_JOB = "addJob"
ACTION_JOB_ADDED_TO_BOARD = "jobAddedToBoard"

Listener = Callable[[str, dict[str, Any]], None]


class Notifier:
    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def send(self, action: str, payload: dict[str, Any]) -> None:
        """Deliver to every listener; failures are logged and dropped."""
        for listener in list(self._listeners):
            try:
                listener(action, payload)
            except Exception as exc:
                log.debug("Listener dropped %s message: %s", action, exc)


class BoardStatsRecorder:
    """Background-side listener keeping running board insertion counts."""

    KEY = "jobBoardStats"

    def __init__(self, store, today: Callable[[], date] = date.today) -> None:
        self.store = store
        self._today = today

    def __call__(self, action: str, payload: dict[str, Any]) -> None:
        if action not in (ACTION_ADD_JOB, ACTION_JOB_ADDED_TO_BOARD):
            return
        today = self._today().isoformat()
        stats = self.store.get(self.KEY, None) or {
            "totalAdded": 0,
            "addedToday": 0,
            "lastResetDate": today,
        }
        if stats.get("lastResetDate") != today:
            stats["addedToday"] = 0
            stats["lastResetDate"] = today
        stats["totalAdded"] = int(stats.get("totalAdded", 0)) + 1
        stats["addedToday"] = int(stats.get("addedToday", 0)) + 1
        self.store.set({self.KEY: stats})
        log.debug("Board stats: %d total, %d today", stats["totalAdded"], stats["addedToday"])
