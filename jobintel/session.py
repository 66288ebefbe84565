"""Per-page-load agent state, passed explicitly to every component."""
from __future__ import annotations

import time
import uuid
from typing import Any, Callable

import requests

from jobintel import sites
from jobintel.config import Settings, load_settings
from jobintel.log import get_logger
from jobintel.models import SiteProfile, SponsorshipResult
from jobintel.notify import Notifier
from jobintel.page import Page
from jobintel.rate_limiter import RateLimiter
from jobintel.sponsorship import SponsorshipClient
from jobintel.store import KeyValueStore, MemoryStore

log = get_logger(__name__)

CLIENT_ID_KEY = "clientId"


def _now_ms() -> float:
    return time.time() * 1000.0


def new_client_id(now_ms: float | None = None) -> str:
    stamp = int(now_ms if now_ms is not None else _now_ms())
    return f"py-{uuid.uuid4().hex[:9]}-{stamp}"


class AgentSession:
    """Everything one page load owns.

    ``clock`` returns milliseconds; ``sleep`` takes seconds, like
    :func:`time.sleep`. Both are injectable so tests can drive time.
    """

    def __init__(
        self,
        page: Page,
        store: KeyValueStore | None = None,
        notifier: Notifier | None = None,
        *,
        http: Any = None,
        clock: Callable[[], float] = _now_ms,
        sleep: Callable[[float], None] = time.sleep,
        rate_limiter: RateLimiter | None = None,
        site: SiteProfile | None = None,
    ) -> None:
        self.page = page
        self.site = site or sites.resolve(page.hostname)
        self.store = store if store is not None else MemoryStore()
        self.notifier = notifier or Notifier()
        self.http = http if http is not None else requests.Session()
        self.clock = clock
        self.sleep = sleep
        self.rate_limiter = rate_limiter or RateLimiter(clock=clock)
        self.highlight_mode = False
        self.observer_handle: int | None = None
        self.sponsorship_cache: dict[str, SponsorshipResult] = {}
        self._client_id: str | None = None
        self._sponsorship: SponsorshipClient | None = None

    def settings(self) -> Settings:
        return load_settings(self.store)

    def client_id(self) -> str:
        """Stable per-browser identifier, generated once and persisted."""
        if self._client_id:
            return self._client_id
        try:
            existing = self.store.get(CLIENT_ID_KEY, None)
            if existing:
                self._client_id = str(existing)
                return self._client_id
            self._client_id = new_client_id(self.clock())
            self.store.set({CLIENT_ID_KEY: self._client_id})
            log.info("Generated client id %s", self._client_id)
        except Exception as exc:
            log.warning("Client id not persisted (%s); using an ephemeral one", exc)
            self._client_id = self._client_id or new_client_id(self.clock())
        return self._client_id

    @property
    def sponsorship(self) -> SponsorshipClient:
        if self._sponsorship is None:
            self._sponsorship = SponsorshipClient(self)
        return self._sponsorship
