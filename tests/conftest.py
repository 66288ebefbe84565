"""Shared fixtures: fake HTTP transport, controllable clock, in-memory store."""
from __future__ import annotations

import os

os.environ.setdefault("JOBINTEL_NO_FILE_LOG", "1")
os.environ.pop("CONVEX_URL", None)

import pytest

from jobintel.notify import Notifier
from jobintel.page import Page
from jobintel.session import AgentSession
from jobintel.store import MemoryStore

CONVEX_URL = "https://happy-otter-123.convex.cloud"


class FakeResponse:
    def __init__(self, status_code: int = 200, body=None, text: str | None = None) -> None:
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else ("" if body is None else str(body))

    def json(self):
        if self._body is None:
            raise ValueError("not json")
        return self._body


class FakeHttp:
    """Records every POST; replies come from a list or a callable."""

    def __init__(self, replies=None) -> None:
        self.replies = list(replies or [])
        self.calls: list[dict] = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        reply = self.replies.pop(0) if len(self.replies) > 1 else (self.replies[0] if self.replies else None)
        if callable(reply):
            reply = reply(json)
        if isinstance(reply, BaseException):
            raise reply
        if reply is None:
            reply = FakeResponse(200, [])
        return reply


def echo_register(sponsored: dict[str, str]):
    """Reply builder: every requested company, sponsored when listed."""

    def reply(payload):
        hits = []
        for company in payload["args"]["companies"]:
            kind = sponsored.get(company)
            hits.append({
                "company": company,
                "isSponsored": kind is not None,
                "sponsorshipType": kind,
                "matchedName": f"{company.upper()} LTD" if kind else None,
            })
        return FakeResponse(200, {"status": "success", "value": hits})

    return reply


class FakeClock:
    """Milliseconds; ``sleep`` advances the clock instead of blocking."""

    def __init__(self, start: float = 1_700_000_000_000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds * 1000


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore({"convexUrl": CONVEX_URL})


@pytest.fixture
def make_session(clock, store):
    def _make(html: str, url: str = "https://uk.indeed.com/jobs?q=python", *, http=None, **kwargs):
        page = Page(html, url)
        return AgentSession(
            page,
            kwargs.pop("store", store),
            kwargs.pop("notifier", Notifier()),
            http=http if http is not None else FakeHttp(),
            clock=clock,
            sleep=clock.sleep,
            **kwargs,
        )

    return _make


@pytest.fixture
def no_retry_sleep(monkeypatch):
    monkeypatch.setattr("jobintel.retry.time.sleep", lambda s: None)


def indeed_card(title: str, company: str, location: str = "London", jk: str = "abc") -> str:
    return (
        f'<div class="job_seen_beacon" data-jk="{jk}">'
        f'<h2 class="jobTitle"><a class="jcs-JobTitle" href="/viewjob?jk={jk}&from=serp">{title}</a></h2>'
        f'<span data-testid="company-name">{company}</span>'
        f'<div data-testid="text-location">{location}</div>'
        f"</div>"
    )


def indeed_page(cards: list[str]) -> str:
    return f'<html><body><div id="mosaic-jobResults">{"".join(cards)}</div></body></html>'
