"""Site profile registry: hostname -> selectors for job cards and job fields."""
from __future__ import annotations

import re

from jobintel.log import get_logger
from jobintel.models import FieldSelectors, SiteProfile
from jobintel.rules import Rule, first_match

log = get_logger(__name__)


def _profile(site_id: str, cards: list[str], title: str, company: str, location: str, link: str) -> SiteProfile:
    return SiteProfile(
        site_id=site_id,
        card_selectors=tuple(cards),
        field_selectors=FieldSelectors(title=title, company=company, location=location, link=link),
        company_selector=company,
    )


LINKEDIN = _profile(
    "linkedin",
    [
        ".jobs-search-results__list-item",
        ".scaffold-layout__list-item",
        ".job-card-container",
        ".jobs-job-board-list__item",
        ".discovery-templates-entity-item",
        ".base-card",
        ".job-search-card",
    ],
    title=".job-card-list__title, .job-card-container__link, .base-search-card__title",
    company=".job-card-container__primary-description, .job-card-container__company-name, "
    ".artdeco-entity-lockup__subtitle, .base-search-card__subtitle",
    location=".job-card-container__metadata-item, .artdeco-entity-lockup__caption, .job-search-card__location",
    link="a.job-card-container__link, a.base-card__full-link, a[href*='/jobs/view/']",
)

INDEED = _profile(
    "indeed",
    [".job_seen_beacon", ".jobsearch-SerpJobCard", ".cardOutline", "[data-jk]"],
    title="h2.jobTitle, .jobTitle, [data-testid='jobTitle']",
    company="[data-testid='company-name'], .companyName, .company",
    location="[data-testid='text-location'], .companyLocation, .location",
    link="h2.jobTitle a, a.jcs-JobTitle, a[href*='viewjob'], a[href*='/rc/clk']",
)

GLASSDOOR = _profile(
    "glassdoor",
    ["li[data-test='jobListing']", "[data-test='job-card']", ".react-job-listing"],
    title="[data-test='job-title'], .job-title",
    company="[data-test='employer-name'], .employer-name",
    location="[data-test='emp-location'], [data-test='location'], .location",
    link="a[data-test='job-link'], a[data-test='job-title'], a[href*='job-listing']",
)

REED = _profile(
    "reed",
    ["article.job-result", "[data-qa='job-card']", ".job-card"],
    title="[data-qa='job-card-title'], .job-result-heading__title, h2, h3",
    company="[data-qa='job-posted-by'], .job-result-heading__posted-by a, .gtmJobListingPostedBy, .company-name",
    location="[data-qa='job-metadata-location'], .job-metadata__item--location, .location",
    link="[data-qa='job-card-title'] a, h2 a, h3 a, a[href*='/jobs/']",
)

TOTALJOBS = _profile(
    "totaljobs",
    ["article[data-testid='job-item']", "[data-at='job-item']", "div.job"],
    title="[data-at='job-item-title'], .job-title, h2",
    company="[data-at='job-item-company-name'], .company",
    location="[data-at='job-item-location'], .location",
    link="a[data-at='job-item-title'], h2 a, a[href*='/job/']",
)

CVLIBRARY = _profile(
    "cvlibrary",
    ["article.job", "li.results__item"],
    title=".job__title, h2",
    company=".job__company-link, .company",
    location=".job__details-location, .location",
    link=".job__title a, h2 a",
)

MONSTER = _profile(
    "monster",
    ["[data-testid='svx-job-card']", "section.card-content", "[class*='JobCardComponent']"],
    title="[data-testid='jobTitle'], h2.title, h3",
    company="[data-testid='company'], .company .name, .company",
    location="[data-testid='jobDetailLocation'], .location",
    link="a[data-testid='jobTitle'], h2.title a, a[href*='job-openings']",
)

ZIPRECRUITER = _profile(
    "ziprecruiter",
    ["article.job_result", "[data-testid='job-card']", ".job_content"],
    title="[data-testid='job-title'], .job_title, h2",
    company="[data-testid='job-card-company'], a.company_name, .hiring_company",
    location="[data-testid='job-card-location'], .location",
    link="a.job_link, h2 a",
)

# Broad, low-precision selectors for sites we have no profile for.
UNKNOWN = _profile(
    "unknown",
    [
        "[class*='job-card']",
        "[class*='jobCard']",
        "[class*='job-listing']",
        "[class*='job-result']",
        "[data-job-id]",
        "li[class*='job']",
        "article",
    ],
    title="[class*='title'], h1, h2, h3",
    company="[class*='company'], [class*='employer']",
    location="[class*='location']",
    link="a[href]",
)

_HOSTS: list[tuple[str, SiteProfile]] = [
    ("linkedin", LINKEDIN),
    ("indeed", INDEED),
    ("glassdoor", GLASSDOOR),
    ("reed.co.uk", REED),
    ("totaljobs", TOTALJOBS),
    ("cv-library", CVLIBRARY),
    ("monster", MONSTER),
    ("ziprecruiter", ZIPRECRUITER),
]

SITE_RULES: list[Rule] = [
    Rule(tag=profile.site_id, pattern=re.compile(re.escape(host), re.IGNORECASE), value=profile)
    for host, profile in _HOSTS
]


def resolve(hostname: str) -> SiteProfile:
    """Pick the site profile for *hostname*; always returns one."""
    match = first_match(SITE_RULES, (hostname or "").lower())
    profile = match.value if match else UNKNOWN
    log.debug("Site profile for %r → %s", hostname, profile.site_id)
    return profile


def known_sites() -> list[str]:
    return [profile.site_id for _, profile in _HOSTS]
