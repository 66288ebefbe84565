"""Data models for scanned jobs, sponsorship lookups, board entries and profiles."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_LOCATION = "Unknown Location"

# Why a sponsorship result looks the way it does.
SOURCE_LIVE = "live"
SOURCE_RATE_LIMITED = "rate_limited"
SOURCE_SERVER_RATE_LIMITED = "server_rate_limited"
SOURCE_CONVEX_RATE_LIMITED = "convex_rate_limited"
SOURCE_ERROR = "error"
SOURCES: tuple[str, ...] = (
    SOURCE_LIVE,
    SOURCE_RATE_LIMITED,
    SOURCE_SERVER_RATE_LIMITED,
    SOURCE_CONVEX_RATE_LIMITED,
    SOURCE_ERROR,
)

BOARD_STATUSES: tuple[str, ...] = ("interested", "applied", "interviewing", "rejected", "offer")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class JobRecord:
    title: str = UNKNOWN_TITLE
    company: str = UNKNOWN_COMPANY
    location: str = UNKNOWN_LOCATION
    url: str = ""
    is_sponsored: bool = False
    is_recruitment_agency: bool = False
    sponsorship_type: str | None = None
    date_found: datetime = field(default_factory=utcnow)


@dataclass
class SponsorshipResult:
    company: str
    is_sponsored: bool = False
    sponsorship_type: str | None = None
    source: str = SOURCE_LIVE
    matched_name: str | None = None

    def __post_init__(self) -> None:
        if self.source not in SOURCES:
            raise ValueError(f"unknown sponsorship source {self.source!r}")

    @classmethod
    def unavailable(cls, company: str, source: str) -> "SponsorshipResult":
        """Negative result that records why no live answer exists."""
        return cls(company=company, is_sponsored=False, sponsorship_type=None, source=source)

    @classmethod
    def from_api(cls, hit: dict[str, Any]) -> "SponsorshipResult":
        return cls(
            company=str(hit.get("company", "")),
            is_sponsored=bool(hit.get("isSponsored", False)),
            sponsorship_type=hit.get("sponsorshipType") or None,
            source=SOURCE_LIVE,
            matched_name=hit.get("matchedName") or None,
        )


@dataclass
class JobBoardEntry:
    id: str
    company: str
    title: str
    location: str
    url: str
    date_added: str
    status: str = "interested"
    notes: str = ""
    sponsorship_info: dict[str, Any] | None = None
    is_recruitment_agency: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "company": self.company,
            "title": self.title,
            "location": self.location,
            "url": self.url,
            "dateAdded": self.date_added,
            "status": self.status,
            "notes": self.notes,
        }
        if self.sponsorship_info is not None:
            data["sponsorshipInfo"] = dict(self.sponsorship_info)
        if self.is_recruitment_agency is not None:
            data["isRecruitmentAgency"] = self.is_recruitment_agency
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobBoardEntry":
        return cls(
            id=str(data.get("id", "")),
            company=str(data.get("company", "")),
            title=str(data.get("title", "")),
            location=str(data.get("location", "")),
            url=str(data.get("url", "")),
            date_added=str(data.get("dateAdded", "")),
            status=str(data.get("status", "interested")),
            notes=str(data.get("notes", "")),
            sponsorship_info=data.get("sponsorshipInfo"),
            is_recruitment_agency=data.get("isRecruitmentAgency"),
        )


@dataclass(frozen=True)
class FieldSelectors:
    title: str
    company: str
    location: str
    link: str


@dataclass(frozen=True)
class SiteProfile:
    site_id: str
    card_selectors: tuple[str, ...]
    field_selectors: FieldSelectors
    company_selector: str


# -- Autofill profile -------------------------------------------------------
# The store keeps the profile with camelCase keys; these dataclasses are the
# read-only view the autofill engine works with.


@dataclass(frozen=True)
class PersonalInfo:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""


@dataclass(frozen=True)
class Professional:
    current_title: str = ""
    experience: str = ""
    education: str = ""
    skills: str = ""
    linkedin_url: str = ""
    portfolio_url: str = ""
    github_url: str = ""


@dataclass(frozen=True)
class Preferences:
    salary_expectation: str = ""
    available_start_date: str = ""
    work_authorization: str = ""
    relocate: bool = False
    cover_letter: str = ""


@dataclass(frozen=True)
class AutofillProfile:
    personal_info: PersonalInfo = field(default_factory=PersonalInfo)
    professional: Professional = field(default_factory=Professional)
    preferences: Preferences = field(default_factory=Preferences)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutofillProfile":
        p = data.get("personalInfo") or {}
        pro = data.get("professional") or {}
        pref = data.get("preferences") or {}
        return cls(
            personal_info=PersonalInfo(
                first_name=_s(p.get("firstName")),
                last_name=_s(p.get("lastName")),
                email=_s(p.get("email")),
                phone=_s(p.get("phone")),
                address=_s(p.get("address")),
                city=_s(p.get("city")),
                state=_s(p.get("state")),
                zip_code=_s(p.get("zipCode")),
                country=_s(p.get("country")),
            ),
            professional=Professional(
                current_title=_s(pro.get("currentTitle")),
                experience=_s(pro.get("experience")),
                education=_s(pro.get("education")),
                skills=_skills(pro.get("skills")),
                linkedin_url=_s(pro.get("linkedinUrl")),
                portfolio_url=_s(pro.get("portfolioUrl")),
                github_url=_s(pro.get("githubUrl")),
            ),
            preferences=Preferences(
                salary_expectation=_s(pref.get("salaryExpectation")),
                available_start_date=_s(pref.get("availableStartDate")),
                work_authorization=_s(pref.get("workAuthorization")),
                relocate=bool(pref.get("relocate", False)),
                cover_letter=_s(pref.get("coverLetter")),
            ),
        )


def _s(value: Any) -> str:
    return "" if value is None else str(value)


def _skills(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return _s(value)
