"""Unit tests for the debounce timer, batching, annotation and highlight mode."""

import pytest

from conftest import FakeHttp, FakeResponse, echo_register, indeed_card, indeed_page
from jobintel.board import load_board
from jobintel.coordinator import (
    ADD_BUTTON_CLASS,
    BADGE_CLASS,
    BATCH_PAUSE_MS,
    COMPANY_INFO_CLASS,
    DEBOUNCE_MS,
    HIGHLIGHT_ATTR,
    INITIAL_SCAN_DELAY_MS,
    MARKER_ATTR,
    Debouncer,
    ScanCoordinator,
    check_now,
    toggle_highlight,
)
from jobintel.errors import NoJobsFound


def _cards(n: int, start: int = 0) -> list[str]:
    return [indeed_card(f"Engineer {i}", f"Company {i}", jk=str(i)) for i in range(start, start + n)]


@pytest.mark.unit
def test_debouncer_fires_once_after_quiet_period(clock):
    fired = []
    debounce = Debouncer(1000, lambda: fired.append(clock.now), clock)

    debounce.trigger()
    clock.advance(600)
    debounce.trigger()
    clock.advance(600)
    assert debounce.poll() is False

    clock.advance(400)
    assert debounce.poll() is True
    assert debounce.poll() is False
    assert len(fired) == 1


@pytest.mark.unit
def test_debouncer_cancel(clock):
    fired = []
    debounce = Debouncer(10, lambda: fired.append(1), clock)
    debounce.trigger()
    debounce.cancel()
    clock.advance(50)
    assert debounce.poll() is False
    assert not debounce.pending


@pytest.mark.unit
def test_process_new_cards_in_batches_with_pauses(make_session, clock):
    http = FakeHttp([echo_register({})])
    session = make_session(indeed_page(_cards(25)), http=http)

    outcomes = ScanCoordinator(session).process_new_cards()

    assert len(outcomes) == 25
    assert [len(c["json"]["args"]["companies"]) for c in http.calls] == [10, 10, 5]
    assert clock.sleeps == [BATCH_PAUSE_MS / 1000] * 2
    assert len(session.page.select(f"[{MARKER_ATTR}]")) == 25


@pytest.mark.unit
def test_annotation_is_idempotent(make_session):
    http = FakeHttp([echo_register({"Company 1": "Skilled Worker"})])
    session = make_session(indeed_page(_cards(3)), http=http)
    coordinator = ScanCoordinator(session)

    coordinator.process_new_cards()
    assert coordinator.process_new_cards() == []

    assert len(session.page.select(f".{BADGE_CLASS}")) == 3
    assert len(session.page.select(f".{ADD_BUTTON_CLASS}")) == 3
    assert len(session.page.select(f".{COMPANY_INFO_CLASS}")) == 3


@pytest.mark.unit
def test_badges_reflect_sponsorship(make_session):
    http = FakeHttp([echo_register({"Company 1": "Skilled Worker"})])
    session = make_session(indeed_page(_cards(2)), http=http)

    ScanCoordinator(session).process_new_cards()

    badges = [b.get_text() for b in session.page.select(f".{BADGE_CLASS}")]
    assert badges == ["No sponsorship", "✓ Skilled Worker"]


@pytest.mark.unit
def test_sponsored_and_agency_cards_are_auto_saved(make_session):
    cards = [
        indeed_card("Backend Engineer", "Monzo", jk="1"),
        indeed_card("Recruitment Consultant", "Hays Recruitment", jk="2"),
        indeed_card("Frontend Engineer", "Tiny Startup", jk="3"),
    ]
    http = FakeHttp([echo_register({"Monzo": "Skilled Worker"})])
    session = make_session(indeed_page(cards), http=http)

    outcomes = ScanCoordinator(session).process_new_cards()

    assert [o.persisted for o in outcomes] == [True, True, False]
    assert [e["company"] for e in load_board(session.store)] == ["Monzo", "Hays Recruitment"]


@pytest.mark.unit
def test_add_button_click_saves_job(make_session):
    http = FakeHttp([echo_register({})])
    session = make_session(indeed_page(_cards(1)), http=http)
    ScanCoordinator(session).process_new_cards()
    button = session.page.select_one(f".{ADD_BUTTON_CLASS}")

    assert session.page.click(button) is True
    assert session.page.click(button) is False
    assert len(load_board(session.store)) == 1


@pytest.mark.unit
def test_unknown_company_is_not_sent_for_enrichment(make_session):
    http = FakeHttp([echo_register({})])
    page = '<div class="job_seen_beacon"><h2 class="jobTitle"><a href="/viewjob?jk=9">Analyst</a></h2></div>'
    session = make_session(page, http=http)

    [outcome] = ScanCoordinator(session).process_new_cards()

    assert http.calls == []
    assert outcome.sponsorship is None
    assert outcome.card[MARKER_ATTR] == "skipped"


@pytest.mark.unit
def test_mutation_debounce_triggers_rescan(make_session, clock):
    http = FakeHttp([echo_register({})])
    session = make_session(indeed_page(_cards(2)), http=http)
    coordinator = ScanCoordinator(session)
    coordinator.start()

    clock.advance(INITIAL_SCAN_DELAY_MS)
    assert coordinator.tick() is True
    assert coordinator.scans == 1

    session.page.insert_html("#mosaic-jobResults", "".join(_cards(2, start=2)))
    clock.advance(DEBOUNCE_MS - 1)
    session.page.insert_html("#mosaic-jobResults", "".join(_cards(1, start=4)))
    clock.advance(DEBOUNCE_MS - 1)
    assert coordinator.tick() is False

    clock.advance(1)
    assert coordinator.tick() is True
    assert coordinator.scans == 2
    assert len(session.page.select(f"[{MARKER_ATTR}]")) == 5
    assert [len(c["json"]["args"]["companies"]) for c in http.calls] == [2, 3]

    coordinator.stop()
    session.page.insert_html("#mosaic-jobResults", "".join(_cards(1, start=5)))
    clock.advance(DEBOUNCE_MS)
    assert coordinator.tick() is False


@pytest.mark.unit
def test_start_is_idempotent(make_session):
    session = make_session(indeed_page(_cards(1)))
    coordinator = ScanCoordinator(session)
    coordinator.start()
    handle = session.observer_handle
    coordinator.start()
    assert session.observer_handle == handle
    coordinator.stop()
    assert not coordinator.active


@pytest.mark.unit
def test_check_now_without_cards_raises(make_session):
    session = make_session("<html><body><p>Sign in</p></body></html>")
    with pytest.raises(NoJobsFound):
        check_now(session)


@pytest.mark.unit
def test_toggle_highlight_on_and_off(make_session):
    http = FakeHttp([echo_register({"Company 0": "Skilled Worker"})])
    session = make_session(indeed_page(_cards(2)), http=http)

    outcomes = toggle_highlight(session)
    assert session.highlight_mode is True
    assert len(outcomes) == 2
    kinds = [c[HIGHLIGHT_ATTR] for c in session.page.select(f"[{HIGHLIGHT_ATTR}]")]
    assert kinds == ["sponsored", "none"]
    assert session.page.select(f".{BADGE_CLASS}") == []

    assert toggle_highlight(session) == []
    assert session.highlight_mode is False
    assert session.page.select(f"[{HIGHLIGHT_ATTR}]") == []


@pytest.mark.unit
def test_toggle_highlight_failure_resets_mode(make_session):
    session = make_session("<html><body></body></html>")
    with pytest.raises(NoJobsFound):
        toggle_highlight(session)
    assert session.highlight_mode is False


@pytest.mark.unit
def test_highlight_mode_rescan_only_touches_new_cards(make_session, clock):
    http = FakeHttp([echo_register({})])
    session = make_session(indeed_page(_cards(2)), http=http)
    toggle_highlight(session)
    coordinator = ScanCoordinator(session)

    session.page.insert_html("#mosaic-jobResults", "".join(_cards(1, start=2)))
    outcomes = coordinator.rescan()

    assert [o.record.company for o in outcomes] == ["Company 2"]
    assert session.page.select(f"[{MARKER_ATTR}]") == []


@pytest.mark.unit
def test_company_case_variants_are_annotated_independently(make_session):
    row = {"company": "Monzo", "isSponsored": True, "sponsorshipType": "Skilled Worker"}
    http = FakeHttp([FakeResponse(200, [row])])
    cards = [indeed_card("Backend Engineer", "Monzo", jk="1"), indeed_card("Data Engineer", "MONZO", jk="2")]
    session = make_session(indeed_page(cards), http=http)

    outcomes = ScanCoordinator(session).process_new_cards()

    assert [(o.record.company, o.record.is_sponsored, o.sponsorship.source) for o in outcomes] == [
        ("Monzo", True, "live"),
        ("MONZO", True, "live"),
    ]
    assert [c[MARKER_ATTR] for c in session.page.select(f"[{MARKER_ATTR}]")] == ["live", "live"]
