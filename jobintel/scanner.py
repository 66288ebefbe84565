"""Extract raw job records from the page using the active site profile."""
from __future__ import annotations

from urllib.parse import urljoin

from bs4 import Tag

from jobintel.log import get_logger
from jobintel.models import (
    UNKNOWN_COMPANY,
    UNKNOWN_LOCATION,
    UNKNOWN_TITLE,
    JobRecord,
    SiteProfile,
)
from jobintel.page import Page, text_of

log = get_logger(__name__)


def _select_safe(page: Page, selector: str, root: Tag | None = None) -> list[Tag]:
    try:
        return page.select(selector, root)
    except Exception as exc:
        log.warning("Bad selector %r: %s", selector, exc)
        return []


def find_cards(page: Page, profile: SiteProfile) -> list[Tag]:
    """All outermost elements matching any card selector, in document order."""
    matched: dict[int, Tag] = {}
    for selector in profile.card_selectors:
        for el in _select_safe(page, selector):
            matched.setdefault(id(el), el)

    outermost = [
        el for el in matched.values()
        if not any(id(parent) in matched for parent in el.parents)
    ]
    order = page.document_order()
    outermost.sort(key=lambda el: order.get(id(el), 0))
    return outermost


def _field_text(page: Page, card: Tag, selector: str, fallback: str) -> str:
    for el in _select_safe(page, selector, card):
        value = text_of(el)
        if value:
            return value
    return fallback


def _field_link(page: Page, card: Tag, selector: str) -> str:
    candidates = _select_safe(page, selector, card)
    if card.name == "a" and card.get("href"):
        candidates.insert(0, card)
    for el in candidates:
        anchor = el if el.name == "a" else el.find("a", href=True)
        href = anchor.get("href") if anchor is not None else None
        if href:
            return urljoin(page.url, str(href))
    return page.url


def extract_record(page: Page, card: Tag, profile: SiteProfile) -> JobRecord:
    fields = profile.field_selectors
    return JobRecord(
        title=_field_text(page, card, fields.title, UNKNOWN_TITLE),
        company=_field_text(page, card, fields.company, UNKNOWN_COMPANY),
        location=_field_text(page, card, fields.location, UNKNOWN_LOCATION),
        url=_field_link(page, card, fields.link),
    )


def scan_cards(page: Page, profile: SiteProfile, cards: list[Tag] | None = None) -> list[tuple[Tag, JobRecord]]:
    """Pair each surviving card with its extracted record.

    A card whose extraction blows up is logged and skipped; the rest of the
    scan carries on.
    """
    if cards is None:
        cards = find_cards(page, profile)
    if not cards:
        log.info("No job cards found on %s (profile=%s)", page.hostname or page.url, profile.site_id)
        return []

    results: list[tuple[Tag, JobRecord]] = []
    for card in cards:
        try:
            results.append((card, extract_record(page, card, profile)))
        except Exception as exc:
            log.warning("Skipping malformed card <%s>: %s", card.name, exc)
    log.debug("Scanned %d card(s) with profile %s", len(results), profile.site_id)
    return results


def scan(page: Page, profile: SiteProfile) -> list[JobRecord]:
    return [record for _, record in scan_cards(page, profile)]
