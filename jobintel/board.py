"""Job board: fuzzy duplicate check, insertion into the store, board queries."""
from __future__ import annotations

import re
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from jobintel.log import get_logger
from jobintel.models import BOARD_STATUSES, JobBoardEntry, JobRecord, SponsorshipResult
from jobintel.notify import ACTION_JOB_ADDED_TO_BOARD
from jobintel.urls import normalize_job_url

log = get_logger(__name__)

BOARD_KEY = "jobBoardData"
SIMILARITY_THRESHOLD = 0.3

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_UNSAFE_KEY = re.compile(r"[^a-zA-Z0-9_-]+")


def normalize_title(title: str) -> str:
    return _NON_ALNUM.sub(" ", (title or "").lower()).strip()


def edit_distance(a: str, b: str) -> int:
    """Minimum insert/delete/substitute operations turning *a* into *b*."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def titles_similar(a: str, b: str) -> bool:
    na, nb = normalize_title(a), normalize_title(b)
    if not na or not nb:
        return na == nb
    if na in nb or nb in na:
        return True
    return edit_distance(na, nb) < SIMILARITY_THRESHOLD * min(len(na), len(nb))


def is_duplicate(record: JobRecord, board: list[dict[str, Any]]) -> bool:
    company = record.company.lower().strip()
    for existing in board:
        if str(existing.get("company", "")).lower().strip() != company:
            continue
        if titles_similar(record.title, str(existing.get("title", ""))):
            return True
    return False


def make_entry_id(company: str, title: str, stamp_ms: int) -> str:
    return _UNSAFE_KEY.sub("_", f"{company}-{title}-{stamp_ms}").strip("_")


def load_board(store) -> list[dict[str, Any]]:
    board = store.get(BOARD_KEY, [])
    return list(board) if isinstance(board, list) else []


def add_to_board(
    session,
    record: JobRecord,
    sponsorship: SponsorshipResult | None = None,
    *,
    action: str = ACTION_JOB_ADDED_TO_BOARD,
) -> bool:
    """Insert *record* unless a similar job is already on the board.

    Returns True when a new entry was written. Store failures are logged and
    reported as False.
    """
    try:
        board = load_board(session.store)
        if is_duplicate(record, board):
            log.info("Already on board: %s @ %s", record.title, record.company)
            return False

        now = datetime.now(timezone.utc)
        entry = JobBoardEntry(
            id=make_entry_id(record.company, record.title, int(now.timestamp() * 1000)),
            company=record.company,
            title=record.title,
            location=record.location,
            url=normalize_job_url(record.url),
            date_added=now.isoformat(),
            status="interested",
            sponsorship_info=(
                {"isSponsored": sponsorship.is_sponsored, "sponsorshipType": sponsorship.sponsorship_type}
                if sponsorship is not None else None
            ),
            is_recruitment_agency=record.is_recruitment_agency,
        )
        board.append(entry.to_dict())
        session.store.set({BOARD_KEY: board})
    except Exception as exc:
        log.error("Could not add %s @ %s to board: %s", record.title, record.company, exc)
        return False

    log.info("Added to board: %s @ %s", entry.title, entry.company)
    session.notifier.send(action, entry.to_dict())
    return True


def filter_board(store, status: str | None = None) -> list[JobBoardEntry]:
    entries = [JobBoardEntry.from_dict(e) for e in load_board(store)]
    if status:
        entries = [e for e in entries if e.status == status]
    return entries


def board_stats(store) -> dict[str, Any]:
    entries = filter_board(store)
    today = datetime.now(timezone.utc).date().isoformat()
    by_status = Counter(e.status for e in entries)
    return {
        "totalJobs": len(entries),
        "jobsToday": sum(1 for e in entries if e.date_added.startswith(today)),
        "byStatus": {s: by_status.get(s, 0) for s in BOARD_STATUSES},
        "sponsoredJobs": sum(1 for e in entries if (e.sponsorship_info or {}).get("isSponsored")),
        "agencyJobs": sum(1 for e in entries if e.is_recruitment_agency),
    }
