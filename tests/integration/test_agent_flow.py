"""
Integration tests: scan, enrich, annotate and save across modules,
backed by a real JSON store on disk.
"""

import json

import pytest

from conftest import CONVEX_URL, FakeHttp, echo_register, indeed_card, indeed_page
from jobintel.agent import board_report, build_session, scan_once, watch
from jobintel.coordinator import ADD_BUTTON_CLASS, MARKER_ATTR
from jobintel.models import SOURCE_ERROR
from jobintel.page import Page
from jobintel.store import JsonFileStore

SERP_URL = "https://uk.indeed.com/jobs?q=python&l=London"

SERP = f"""
<html><body>
<div id="mosaic-jobResults">
  <ul>
    <li class="cardOutline">
      <div class="job_seen_beacon" data-jk="a1">
        <h2 class="jobTitle"><a class="jcs-JobTitle" href="/viewjob?jk=a1&from=serp&vjk=a1">Backend Engineer</a></h2>
        <span data-testid="company-name">Monzo</span>
        <div data-testid="text-location">London</div>
      </div>
    </li>
  </ul>
  {indeed_card("Recruitment Consultant", "Hays Recruitment", jk="b2")}
  {indeed_card("Frontend Engineer", "Tiny Startup", "Leeds", jk="c3")}
  <div class="job_seen_beacon"><h2 class="jobTitle">Mystery Role</h2></div>
</div>
</body></html>
"""


@pytest.fixture
def disk_store(tmp_path):
    store = JsonFileStore(tmp_path / "store.json")
    store.set({"convexUrl": CONVEX_URL})
    return store


@pytest.mark.integration
def test_indeed_serp_end_to_end(disk_store, clock):
    http = FakeHttp([echo_register({"Monzo": "Skilled Worker"})])
    session = build_session(Page(SERP, SERP_URL), disk_store, http=http, clock=clock, sleep=clock.sleep)

    summary = scan_once(session)

    assert summary["jobs_found"] == 4
    assert summary["sponsored"] == 1
    assert summary["agencies"] == 1
    assert summary["saved_to_board"] == 2
    jobs = {j["company"]: j for j in summary["jobs"]}
    assert jobs["Monzo"]["url"] == "https://uk.indeed.com/viewjob?jk=a1&from=serp&vjk=a1"
    assert jobs["Monzo"]["sponsorshipType"] == "Skilled Worker"
    assert jobs["Unknown Company"]["title"] == "Mystery Role"
    assert jobs["Unknown Company"]["source"] is None
    assert all(j["dateFound"].startswith("20") for j in summary["jobs"])

    # One enrichment call, without the sentinel company
    [call] = http.calls
    assert call["json"]["args"]["companies"] == ["Monzo", "Hays Recruitment", "Tiny Startup"]

    report = board_report(disk_store)
    assert [e["company"] for e in report["entries"]] == ["Monzo", "Hays Recruitment"]
    assert report["entries"][0]["url"] == "https://uk.indeed.com/viewjob?jk=a1"
    assert report["stats"]["sponsoredJobs"] == 1
    assert report["stats"]["agencyJobs"] == 1
    assert disk_store.get("jobBoardStats")["totalAdded"] == 2

    # The user saves the remaining direct-employer job by hand
    buttons = session.page.select(f".{ADD_BUTTON_CLASS}")
    assert len(buttons) == 4
    assert session.page.click(buttons[2]) is True
    assert disk_store.get("jobBoardStats")["totalAdded"] == 3

    # A second pass over the same page does nothing new
    assert scan_once(session)["jobs_found"] == 0
    assert len(http.calls) == 1


@pytest.mark.integration
def test_scan_without_endpoint_marks_results_unavailable(tmp_path, clock):
    store = JsonFileStore(tmp_path / "store.json")
    http = FakeHttp()
    session = build_session(Page(SERP, SERP_URL), store, http=http, clock=clock, sleep=clock.sleep)

    summary = scan_once(session)

    assert http.calls == []
    assert summary["sponsored"] == 0
    assert {j["source"] for j in summary["jobs"] if j["company"] != "Unknown Company"} == {SOURCE_ERROR}
    # Agency listings are still saved
    assert [e["company"] for e in board_report(store)["entries"]] == ["Hays Recruitment"]


@pytest.mark.integration
def test_watch_loop_follows_page_changes(disk_store, clock):
    first = indeed_page([indeed_card(f"Engineer {i}", f"Company {i}", jk=str(i)) for i in range(2)])
    second = indeed_page([indeed_card(f"Engineer {i}", f"Company {i}", jk=str(i)) for i in range(3)])
    polls = []

    def source():
        polls.append(1)
        return first if len(polls) <= 10 else second

    http = FakeHttp([echo_register({})])
    session = build_session(Page(first, SERP_URL), disk_store, http=http, clock=clock, sleep=clock.sleep)

    result = watch(session, source, duration_s=5, interval_s=0.25)

    assert len(polls) == 20
    assert result == {"scans": 3, "annotated": 3}
    # Earlier companies come from the session cache
    assert [c["json"]["args"]["companies"] for c in http.calls] == [["Company 0", "Company 1"], ["Company 2"]]
    assert session.observer_handle is None


@pytest.mark.integration
def test_store_file_is_plain_json(disk_store, clock):
    http = FakeHttp([echo_register({"Monzo": "Skilled Worker"})])
    session = build_session(Page(SERP, SERP_URL), disk_store, http=http, clock=clock, sleep=clock.sleep)
    scan_once(session)

    data = json.loads(disk_store.path.read_text(encoding="utf-8"))
    assert data["clientId"].startswith("py-")
    assert len(data["jobBoardData"]) == 2
    assert all(MARKER_ATTR not in json.dumps(e) for e in data["jobBoardData"])
