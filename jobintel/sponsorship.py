"""Batched company sponsorship lookups against the remote dataset.

Every path returns exactly one :class:`SponsorshipResult` per distinct
requested company. Nothing here raises past ``check_companies``.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Iterable

import requests

from jobintel.errors import RateLimited
from jobintel.log import get_logger
from jobintel.models import (
    SOURCE_CONVEX_RATE_LIMITED,
    SOURCE_ERROR,
    SOURCE_LIVE,
    SOURCE_RATE_LIMITED,
    SOURCE_SERVER_RATE_LIMITED,
    SponsorshipResult,
)
from jobintel.retry import retry

log = get_logger(__name__)

QUERY_PATH = "sponsorship:checkCompanySponsorship"
MAX_COMPANIES_PER_CALL = 50
RATE_LIMIT_PHRASE = "Rate limit exceeded"
REQUEST_TIMEOUT = 15


def _key(company: str) -> str:
    return company.lower().strip()


def _count_attempt(attempt: int, http, limiter, url: str, payload: dict[str, Any]) -> None:
    """Every POST counts against the window; a retry needs the window to be open."""
    if attempt > 1 and not limiter.allow():
        raise RateLimited(f"no request left in the window for retry {attempt}")
    limiter.record_request()


@retry(
    max_attempts=2,
    base_delay=1.0,
    retryable=(requests.ConnectionError, requests.Timeout),
    before_attempt=_count_attempt,
)
def _post(http, limiter, url: str, payload: dict[str, Any]):
    return http.post(url, json=payload, timeout=REQUEST_TIMEOUT)


def _error_text(body: Any) -> str | None:
    """Error message carried by a response envelope, if any."""
    if not isinstance(body, dict):
        return None
    for field in ("error", "errorMessage"):
        if body.get(field):
            return str(body[field])
    if body.get("status") == "error":
        return str(body.get("message", "error"))
    return None


def _hits(body: Any) -> list | None:
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("value"), list):
        return body["value"]
    return None


class SponsorshipClient:
    def __init__(self, session) -> None:
        self.session = session

    def check_companies(self, companies: Iterable[str]) -> list[SponsorshipResult]:
        unique = list(dict.fromkeys(companies))
        if not unique:
            return []

        cache = self.session.sponsorship_cache
        results: dict[str, SponsorshipResult] = {}
        pending: list[str] = []
        for company in unique:
            cached = cache.get(_key(company))
            if cached is not None:
                results[company] = dataclasses.replace(cached, company=company)
            else:
                pending.append(company)

        if pending:
            results.update(self._lookup(pending))
        return [results[c] for c in unique]

    def _lookup(self, companies: list[str]) -> dict[str, SponsorshipResult]:
        limiter = self.session.rate_limiter
        if not limiter.allow():
            log.warning("Sponsorship check throttled locally for %d companies (resets in %.0fs)",
                        len(companies), limiter.reset_in_ms() / 1000)
            return self._all(companies, SOURCE_RATE_LIMITED)

        batch = companies[:MAX_COMPANIES_PER_CALL]
        overflow = companies[MAX_COMPANIES_PER_CALL:]
        if overflow:
            log.warning("Sponsorship batch truncated to %d of %d companies",
                        MAX_COMPANIES_PER_CALL, len(companies))

        results = self._request(batch)
        results.update(self._all(overflow, SOURCE_RATE_LIMITED))
        for company, result in results.items():
            if result.source == SOURCE_LIVE:
                self.session.sponsorship_cache[_key(company)] = result
        return results

    def _request(self, batch: list[str]) -> dict[str, SponsorshipResult]:
        settings = self.session.settings()
        if not settings.enrichment_configured:
            log.warning("Sponsorship endpoint not configured; set convexUrl or CONVEX_URL")
            return self._all(batch, SOURCE_ERROR)

        url = f"{settings.convex_url.rstrip('/')}/api/query"
        payload = {
            "path": QUERY_PATH,
            "args": {"companies": batch, "clientId": self.session.client_id()},
            "format": "json",
        }

        try:
            response = _post(self.session.http, self.session.rate_limiter, url, payload)
        except RateLimited as exc:
            log.warning("Sponsorship retry dropped: %s", exc)
            return self._all(batch, SOURCE_RATE_LIMITED)
        except requests.RequestException as exc:
            log.warning("Sponsorship request failed: %s", exc)
            return self._all(batch, SOURCE_ERROR)

        if response.status_code == 429:
            log.warning("Sponsorship endpoint returned 429 for %d companies", len(batch))
            return self._all(batch, SOURCE_SERVER_RATE_LIMITED)

        try:
            body = response.json()
        except ValueError:
            text = getattr(response, "text", "") or ""
            if RATE_LIMIT_PHRASE in text:
                return self._all(batch, SOURCE_CONVEX_RATE_LIMITED)
            log.warning("Sponsorship response was not JSON (HTTP %s)", response.status_code)
            return self._all(batch, SOURCE_ERROR)

        error = _error_text(body)
        if error is not None:
            if RATE_LIMIT_PHRASE in error:
                log.warning("Sponsorship endpoint rate limited: %s", error[:120])
                return self._all(batch, SOURCE_CONVEX_RATE_LIMITED)
            log.warning("Sponsorship endpoint error: %s", error[:120])
            return self._all(batch, SOURCE_ERROR)

        hits = _hits(body)
        if response.status_code >= 400 or hits is None:
            log.warning("Unexpected sponsorship response (HTTP %s)", response.status_code)
            return self._all(batch, SOURCE_ERROR)

        by_company: dict[str, SponsorshipResult] = {}
        for hit in hits:
            if isinstance(hit, dict) and hit.get("company"):
                by_company.setdefault(_key(str(hit["company"])), SponsorshipResult.from_api(hit))

        out: dict[str, SponsorshipResult] = {}
        for company in batch:
            hit = by_company.get(_key(company))
            if hit is None:
                log.debug("No sponsorship entry returned for %r", company)
                out[company] = SponsorshipResult.unavailable(company, SOURCE_ERROR)
            else:
                out[company] = dataclasses.replace(hit, company=company)
        log.info("Sponsorship: %d/%d companies sponsored",
                 sum(1 for r in out.values() if r.is_sponsored), len(out))
        return out

    @staticmethod
    def _all(companies: list[str], source: str) -> dict[str, SponsorshipResult]:
        return {c: SponsorshipResult.unavailable(c, source) for c in companies}
