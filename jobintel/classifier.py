"""Recruitment-agency heuristic over company name, job title and card text."""
from __future__ import annotations

from jobintel.rules import Rule, all_matches, first_match, rule

# Four independent families; any single hit flags the posting. False
# positives are accepted in exchange for not missing agency listings.
AGENCY_RULES: list[Rule] = [
    rule(
        "company_agency_word",
        r"\b(recruit(?:ment|ing|ers?)|staffing|headhunt(?:ers?|ing)|personnel|"
        r"employment\s+(?:agency|services)|executive\s+search|talent\s+(?:solutions|partners|search))\b",
        field="company",
    ),
    rule(
        "company_agency_suffix",
        r"\b(partners|associates|resourcing|consult(?:ing|ants|ancy)|search|selection|"
        r"appointments|placements?|talent|people|careers)\b[\s.,&]*"
        r"(?:ltd\.?|limited|inc\.?|llc|llp|plc|group|uk|international)?\s*$",
        field="company",
    ),
    rule(
        "title_recruiter",
        r"\b(recruiter|recruitment\s+(?:consultant|specialist|partner|coordinator|manager)|"
        r"talent\s+acquisition|talent\s+sourcer|sourcer|headhunter|"
        r"staffing\s+(?:specialist|coordinator|consultant|manager|recruiter))\b",
        field="title",
    ),
    rule(
        "client_phrase",
        r"\b(on\s+behalf\s+of|our\s+client|confidential\s+client|my\s+client|"
        r"client\s+of\s+ours|we\s+are\s+recruiting\s+for)\b",
        field="card_text",
    ),
]


def _subject(title: str, company: str, card_text: str) -> dict[str, str]:
    return {"title": title or "", "company": company or "", "card_text": card_text or ""}


def classify(title: str, company: str, card_text: str = "") -> bool:
    """True if any agency family matches."""
    return first_match(AGENCY_RULES, _subject(title, company, card_text)) is not None


def agency_signals(title: str, company: str, card_text: str = "") -> list[str]:
    """Names of every family that matched, in table order."""
    return [r.tag for r in all_matches(AGENCY_RULES, _subject(title, company, card_text))]
