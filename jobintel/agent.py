"""
Job intelligence agent entry points.

Wires a page, the persistent store and the background notifier into an
AgentSession, then runs one of: incremental scan, manual highlight, watch
loop, or form autofill.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from jobintel.autofill import PROFILE_KEY, autofill
from jobintel.board import board_stats, filter_board
from jobintel.config import ensure_dirs, load_profile_yaml, store_path
from jobintel.coordinator import CardOutcome, ScanCoordinator, check_now
from jobintel.log import get_logger
from jobintel.notify import BoardStatsRecorder, Notifier
from jobintel.page import Page
from jobintel.session import AgentSession
from jobintel.store import JsonFileStore, KeyValueStore

log = get_logger(__name__)


def open_store(path: Path | str | None = None) -> JsonFileStore:
    ensure_dirs()
    return JsonFileStore(path or store_path())


def build_session(page: Page, store: KeyValueStore | None = None, **kwargs: Any) -> AgentSession:
    store = store if store is not None else open_store()
    notifier = Notifier()
    notifier.subscribe(BoardStatsRecorder(store))
    return AgentSession(page, store, notifier, **kwargs)


def _summarize(outcomes: list[CardOutcome]) -> dict[str, Any]:
    return {
        "jobs_found": len(outcomes),
        "sponsored": sum(1 for o in outcomes if o.record.is_sponsored),
        "agencies": sum(1 for o in outcomes if o.record.is_recruitment_agency),
        "saved_to_board": sum(1 for o in outcomes if o.persisted),
        "jobs": [
            {
                "title": o.record.title,
                "company": o.record.company,
                "location": o.record.location,
                "dateFound": o.record.date_found.isoformat(),
                "url": o.record.url,
                "isSponsored": o.record.is_sponsored,
                "sponsorshipType": o.record.sponsorship_type,
                "isRecruitmentAgency": o.record.is_recruitment_agency,
                "source": o.sponsorship.source if o.sponsorship else None,
            }
            for o in outcomes
        ],
    }


def scan_once(session: AgentSession) -> dict[str, Any]:
    """One incremental pass over the current page."""
    outcomes = ScanCoordinator(session).process_new_cards()
    return _summarize(outcomes)


def highlight(session: AgentSession) -> dict[str, Any]:
    session.highlight_mode = True
    return _summarize(check_now(session))


def watch(
    session: AgentSession,
    source: Callable[[], str] | None,
    *,
    duration_s: float,
    interval_s: float = 1.0,
) -> dict[str, Any]:
    coordinator = ScanCoordinator(session)
    coordinator.run(source, duration_s=duration_s, interval_s=interval_s, last_html=session.page.html())
    annotated = session.page.select("[data-jobintel-annotated]")
    log.info("Watch finished: %d scan(s), %d annotated card(s)", coordinator.scans, len(annotated))
    return {"scans": coordinator.scans, "annotated": len(annotated)}


def autofill_page(session: AgentSession) -> int:
    return autofill(session)


def import_profile(store: KeyValueStore, path: Path | str) -> dict[str, Any]:
    profile = load_profile_yaml(Path(path))
    store.set({PROFILE_KEY: profile})
    log.info("Autofill profile imported from %s", path)
    return profile


def board_report(store: KeyValueStore, status: str | None = None) -> dict[str, Any]:
    return {
        "entries": [e.to_dict() for e in filter_board(store, status)],
        "stats": board_stats(store),
    }
