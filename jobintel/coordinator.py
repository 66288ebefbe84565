"""Keep page annotations in sync with a live, mutating page.

Mutation bursts restart a debounce timer; when it fires, cards that carry
no annotation marker yet are scanned, classified, enriched and annotated in
small sequential batches. The manual "check now" pass reuses the same
sequence but highlights whole cards instead of adding badges.
"""
from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Callable

from bs4 import Tag

from jobintel.board import add_to_board
from jobintel.classifier import classify
from jobintel.errors import NoJobsFound
from jobintel.log import get_logger
from jobintel.models import SOURCE_LIVE, UNKNOWN_COMPANY, JobRecord, SponsorshipResult
from jobintel.notify import ACTION_ADD_JOB
from jobintel.page import Page, text_of
from jobintel.scanner import find_cards, scan_cards

log = get_logger(__name__)

DEBOUNCE_MS = 1000
INITIAL_SCAN_DELAY_MS = 2000
BATCH_SIZE = 10
BATCH_PAUSE_MS = 500

MARKER_ATTR = "data-jobintel-annotated"
HIGHLIGHT_ATTR = "data-jobintel-highlighted"
BADGE_CLASS = "jobintel-badge"
COMPANY_INFO_CLASS = "jobintel-company-info"
ADD_BUTTON_CLASS = "jobintel-add-to-board"
HIGHLIGHT_CLASS = "jobintel-highlight"

HIGHLIGHT_STYLES: dict[str, str] = {
    "sponsored": "outline: 3px solid #10b981; background-color: rgba(16, 185, 129, 0.08);",
    "agency": "outline: 3px solid #f59e0b; background-color: rgba(245, 158, 11, 0.08);",
    "none": "opacity: 0.75;",
}


class Debouncer:
    """Fires *callback* once, ``delay_ms`` after the most recent trigger."""

    def __init__(self, delay_ms: float, callback: Callable[[], object], clock: Callable[[], float]) -> None:
        self.delay_ms = delay_ms
        self._callback = callback
        self._clock = clock
        self._deadline: float | None = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def trigger(self) -> None:
        self._deadline = self._clock() + self.delay_ms

    def cancel(self) -> None:
        self._deadline = None

    def poll(self) -> bool:
        if self._deadline is None or self._clock() < self._deadline:
            return False
        self._deadline = None
        self._callback()
        return True


@dataclass
class CardOutcome:
    card: Tag
    record: JobRecord
    sponsorship: SponsorshipResult | None
    persisted: bool = False


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") or "sponsored"


def _add_class(el: Tag, *names: str) -> None:
    classes = list(el.get("class", []))
    el["class"] = classes + [n for n in names if n not in classes]


def _badge(page: Page, record: JobRecord, result: SponsorshipResult | None) -> Tag:
    if record.is_sponsored:
        kind = record.sponsorship_type or "Sponsored"
        badge = page.new_tag("span")
        _add_class(badge, BADGE_CLASS, f"{BADGE_CLASS}--{_slug(kind)}")
        badge.string = f"✓ {kind}"
    else:
        badge = page.new_tag("span")
        _add_class(badge, BADGE_CLASS, f"{BADGE_CLASS}--none")
        badge.string = "No sponsorship"
    badge["data-source"] = result.source if result is not None else "skipped"
    if record.is_recruitment_agency:
        badge["data-agency"] = "true"
        badge.string = f"{badge.string} · Agency"
    return badge


def _company_info(page: Page, record: JobRecord, result: SponsorshipResult | None) -> Tag:
    info = page.new_tag("div")
    _add_class(info, COMPANY_INFO_CLASS)
    if result is None:
        info.string = "Company not identified"
    elif result.source != SOURCE_LIVE:
        info.string = f"Sponsor register unavailable ({result.source})"
    elif result.is_sponsored:
        name = result.matched_name or record.company
        info.string = f"Licensed sponsor: {name} ({result.sponsorship_type or 'sponsor'})"
    else:
        info.string = "Not found on the sponsor register"
    return info


def annotate_card(session, card: Tag, record: JobRecord, result: SponsorshipResult | None) -> None:
    """Badge, company info and an "add to board" button for one card."""
    page = session.page
    card[MARKER_ATTR] = result.source if result is not None else "skipped"
    card.insert(0, _badge(page, record, result))

    try:
        company_el = page.select_one(session.site.company_selector, card)
    except Exception:
        company_el = None
    if company_el is not None:
        company_el.insert_after(_company_info(page, record, result))

    button = page.new_tag("button", type="button")
    _add_class(button, ADD_BUTTON_CLASS)
    button.string = "Add to board"
    page.bind_click(button, functools.partial(add_to_board, session, record, result))
    card.append(button)


def highlight_card(card: Tag, record: JobRecord, result: SponsorshipResult | None) -> None:
    if record.is_sponsored:
        kind = "sponsored"
    elif record.is_recruitment_agency:
        kind = "agency"
    else:
        kind = "none"
    _add_class(card, HIGHLIGHT_CLASS, f"{HIGHLIGHT_CLASS}--{kind}")
    card["style"] = HIGHLIGHT_STYLES[kind]
    card[HIGHLIGHT_ATTR] = kind
    if result is not None and result.sponsorship_type:
        card["data-sponsorship-type"] = result.sponsorship_type


def clear_highlights(page: Page) -> int:
    cards = page.select(f"[{HIGHLIGHT_ATTR}]")
    for card in cards:
        kind = card[HIGHLIGHT_ATTR]
        classes = [c for c in card.get("class", []) if c not in (HIGHLIGHT_CLASS, f"{HIGHLIGHT_CLASS}--{kind}")]
        if classes:
            card["class"] = classes
        else:
            del card["class"]
        for attr in ("style", HIGHLIGHT_ATTR, "data-sponsorship-type"):
            if card.has_attr(attr):
                del card[attr]
    return len(cards)


def process_batch(session, pairs: list[tuple[Tag, JobRecord]], *, highlight: bool = False) -> list[CardOutcome]:
    """Classify, enrich, annotate and (when flagged) persist one batch of cards."""
    for card, record in pairs:
        record.is_recruitment_agency = classify(record.title, record.company, text_of(card))

    companies = [r.company for _, r in pairs if r.company != UNKNOWN_COMPANY]
    by_company = {res.company: res for res in session.sponsorship.check_companies(companies)}

    outcomes: list[CardOutcome] = []
    for card, record in pairs:
        try:
            result = by_company.get(record.company)
            if result is not None:
                record.is_sponsored = result.is_sponsored
                record.sponsorship_type = result.sponsorship_type
            if highlight:
                highlight_card(card, record, result)
            else:
                annotate_card(session, card, record, result)

            persisted = False
            if record.is_sponsored or record.is_recruitment_agency:
                persisted = add_to_board(session, record, result, action=ACTION_ADD_JOB)
            outcomes.append(CardOutcome(card=card, record=record, sponsorship=result, persisted=persisted))
        except Exception as exc:
            log.warning("Could not annotate %s @ %s: %s", record.title, record.company, exc)
    return outcomes


def _process_in_batches(session, cards: list[Tag], *, highlight: bool) -> list[CardOutcome]:
    outcomes: list[CardOutcome] = []
    for start in range(0, len(cards), BATCH_SIZE):
        if start:
            session.sleep(BATCH_PAUSE_MS / 1000)
        batch = cards[start:start + BATCH_SIZE]
        pairs = scan_cards(session.page, session.site, batch)
        outcomes.extend(process_batch(session, pairs, highlight=highlight))
        log.debug("Batch %d: %d card(s)", start // BATCH_SIZE + 1, len(pairs))
    return outcomes


def check_now(session, *, only_new: bool = False) -> list[CardOutcome]:
    """Manual full-page pass that highlights whole cards.

    Raises :class:`NoJobsFound` when the page has no job cards at all.
    """
    cards = find_cards(session.page, session.site)
    if not cards:
        raise NoJobsFound()
    if only_new:
        cards = [c for c in cards if not c.has_attr(HIGHLIGHT_ATTR)]
    outcomes = _process_in_batches(session, cards, highlight=True)
    sponsored = sum(1 for o in outcomes if o.record.is_sponsored)
    log.info("Highlighted %d job(s), %d sponsored", len(outcomes), sponsored)
    return outcomes


def toggle_highlight(session) -> list[CardOutcome]:
    """Flip the page's highlight mode; turning it on runs a manual pass."""
    if session.highlight_mode:
        session.highlight_mode = False
        cleared = clear_highlights(session.page)
        log.info("Highlight mode off (%d card(s) cleared)", cleared)
        return []
    session.highlight_mode = True
    try:
        return check_now(session)
    except Exception:
        session.highlight_mode = False
        raise


class ScanCoordinator:
    def __init__(self, session) -> None:
        self.session = session
        self._debounce = Debouncer(DEBOUNCE_MS, self.rescan, session.clock)
        self._initial = Debouncer(INITIAL_SCAN_DELAY_MS, self.rescan, session.clock)
        self.scans = 0

    @property
    def active(self) -> bool:
        return self.session.observer_handle is not None

    def start(self) -> None:
        if self.active:
            return
        self.session.observer_handle = self.session.page.observe(self._on_mutation)
        self._initial.trigger()
        log.info("Watching %s (profile=%s)", self.session.page.hostname or self.session.page.url,
                 self.session.site.site_id)

    def stop(self) -> None:
        self.session.page.disconnect(self.session.observer_handle)
        self.session.observer_handle = None
        self._debounce.cancel()
        self._initial.cancel()

    def _on_mutation(self, page: Page, kind: str) -> None:
        self._debounce.trigger()

    def tick(self) -> bool:
        """Fire whichever timers are due; True if a scan ran."""
        fired = self._initial.poll()
        fired = self._debounce.poll() or fired
        return fired

    def rescan(self) -> list[CardOutcome]:
        self.scans += 1
        if self.session.highlight_mode:
            try:
                return check_now(self.session, only_new=True)
            except NoJobsFound:
                log.debug("Highlight re-scan found no cards")
                return []
        return self.process_new_cards()

    def process_new_cards(self) -> list[CardOutcome]:
        cards = [c for c in find_cards(self.session.page, self.session.site) if not c.has_attr(MARKER_ATTR)]
        if not cards:
            log.debug("No unannotated cards")
            return []
        outcomes = _process_in_batches(self.session, cards, highlight=False)
        log.info("Annotated %d new card(s); %d saved to board",
                 len(outcomes), sum(1 for o in outcomes if o.persisted))
        return outcomes

    def run(
        self,
        source: Callable[[], str] | None = None,
        *,
        duration_s: float,
        interval_s: float = 0.25,
        last_html: str | None = None,
    ) -> None:
        """Poll *source* for page content and keep annotations current.

        A change in the polled HTML reloads the page, which counts as a
        mutation and restarts the debounce timer.
        """
        self.start()
        started = self.session.clock()
        try:
            while self.session.clock() - started < duration_s * 1000:
                if source is not None:
                    try:
                        html = source()
                    except Exception as exc:
                        log.warning("Page poll failed: %s", exc)
                        html = None
                    if html and html != last_html:
                        if last_html is not None:
                            self.session.page.load(html)
                        last_html = html
                self.tick()
                self.session.sleep(interval_s)
        finally:
            self.stop()
