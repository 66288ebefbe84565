"""Infer application-form field types and fill them from the stored profile."""
from __future__ import annotations

from typing import Any

from bs4 import Tag

from jobintel.errors import NoCompatibleFields, NoProfileConfigured
from jobintel.log import get_logger
from jobintel.models import AutofillProfile
from jobintel.page import Page, text_of
from jobintel.rules import Rule, first_match, rule

log = get_logger(__name__)

FILL_PAUSE_MS = 100
PROFILE_KEY = "autofillProfile"

SKIPPED_INPUT_TYPES = frozenset({"hidden", "submit", "button", "reset", "image", "file"})

# Order matters: the first matching rule wins.
FIELD_RULES: list[Rule] = [
    # personal
    rule("first_name", r"first.*name|fname|given.*name"),
    rule("last_name", r"last.*name|lname|family.*name|surname"),
    rule("full_name", r"full.*name|name"),
    rule("email", r"email"),
    rule("phone", r"phone|mobile|tel"),
    rule("address", r"address|street"),
    rule("city", r"city"),
    rule("state", r"state|province"),
    rule("zip_code", r"zip|postal"),
    rule("country", r"country"),
    # professional
    rule("current_title", r"current.*title|job.*title|position"),
    rule("experience", r"experience|years"),
    rule("education", r"education|degree|school|university"),
    rule("skills", r"skills|expertise"),
    rule("linkedin_url", r"linkedin|profile"),
    rule("portfolio_url", r"portfolio|website"),
    rule("github_url", r"github"),
    # application specific
    rule("salary_expectation", r"salary|compensation|expected.*pay"),
    rule("available_start_date", r"start.*date|available|when"),
    rule("work_authorization", r"authorization|visa|work.*status"),
    rule("relocate", r"relocate|move|willing"),
    rule("cover_letter", r"cover.*letter|motivation|why"),
]

FIELD_PATHS: dict[str, tuple[str, str]] = {
    "first_name": ("personal_info", "first_name"),
    "last_name": ("personal_info", "last_name"),
    "email": ("personal_info", "email"),
    "phone": ("personal_info", "phone"),
    "address": ("personal_info", "address"),
    "city": ("personal_info", "city"),
    "state": ("personal_info", "state"),
    "zip_code": ("personal_info", "zip_code"),
    "country": ("personal_info", "country"),
    "current_title": ("professional", "current_title"),
    "experience": ("professional", "experience"),
    "education": ("professional", "education"),
    "skills": ("professional", "skills"),
    "linkedin_url": ("professional", "linkedin_url"),
    "portfolio_url": ("professional", "portfolio_url"),
    "github_url": ("professional", "github_url"),
    "salary_expectation": ("preferences", "salary_expectation"),
    "available_start_date": ("preferences", "available_start_date"),
    "work_authorization": ("preferences", "work_authorization"),
    "relocate": ("preferences", "relocate"),
    "cover_letter": ("preferences", "cover_letter"),
}


def infer_label(page: Page, element: Tag) -> str:
    """Explicit ``label[for]``, else the parent's text minus the field's own, else placeholder."""
    field_id = element.get("id")
    if field_id:
        for label in page.soup.find_all("label"):
            if label.get("for") == field_id:
                return text_of(label)

    parent = element.parent
    if parent is not None and parent is not page.soup:
        own = text_of(element)
        text = text_of(parent)
        if own:
            text = text.replace(own, "", 1)
        text = " ".join(text.split())
        if text:
            return text

    return str(element.get("placeholder", ""))


def search_text(page: Page, element: Tag) -> str:
    parts = [
        element.get("name", ""),
        element.get("id", ""),
        element.get("placeholder", ""),
        infer_label(page, element),
    ]
    return " ".join(str(p) for p in parts if p).lower()


def classify_field(page: Page, element: Tag) -> str | None:
    match = first_match(FIELD_RULES, search_text(page, element))
    return match.tag if match else None


def value_for(field_type: str, profile: AutofillProfile) -> str:
    if field_type == "full_name":
        info = profile.personal_info
        return f"{info.first_name} {info.last_name}".strip()
    path = FIELD_PATHS.get(field_type)
    if path is None:
        return ""
    value: Any = getattr(getattr(profile, path[0]), path[1])
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value or "")


def _input_type(element: Tag) -> str:
    if element.name == "input":
        return str(element.get("type", "text")).lower()
    return element.name


def _radio_group(page: Page, element: Tag) -> list[Tag]:
    name = element.get("name")
    if not name:
        return [element]
    scope = element.find_parent("form") or page.soup
    return [r for r in scope.find_all("input") if _input_type(r) == "radio" and r.get("name") == name]


def _fill_radio(page: Page, element: Tag, wanted: str) -> bool:
    """Select *element* only if its value or label is the wanted answer.

    Selecting a radio clears the rest of its group. A radio whose value is the
    browser default ``on`` acts as a yes/no toggle.
    """
    own = str(element.get("value", "on")).strip().lower()
    if own in ("", "on"):
        matches = wanted in ("yes", "true")
    else:
        matches = own == wanted or infer_label(page, element).lower() == wanted
    if not matches:
        return False
    for other in _radio_group(page, element):
        if other is not element and other.has_attr("checked"):
            del other["checked"]
            page.dispatch_field_event(other, "change")
    if not element.has_attr("checked"):
        element["checked"] = "checked"
        page.dispatch_field_event(element, "change")
    return True


def fill_field(page: Page, element: Tag, value: str) -> bool:
    """Apply *value* with a strategy that depends on the control type."""
    kind = _input_type(element)
    wanted = value.lower()

    if kind == "radio":
        return _fill_radio(page, element, wanted)

    if kind == "checkbox":
        should_check = wanted in ("yes", "true")
        if element.has_attr("checked") != should_check:
            if should_check:
                element["checked"] = "checked"
            else:
                del element["checked"]
            page.dispatch_field_event(element, "change")
        return True

    if kind == "select":
        options = element.find_all("option")
        for option in options:
            option_value = str(option.get("value", ""))
            if wanted in text_of(option).lower() or wanted in option_value.lower():
                for other in options:
                    if other.has_attr("selected"):
                        del other["selected"]
                option["selected"] = "selected"
                page.dispatch_field_event(element, "change")
                return True
        return False

    if kind == "textarea":
        if element.get_text() != value:
            element.string = value
            page.dispatch_field_event(element, "input")
            page.dispatch_field_event(element, "change")
        return True

    if str(element.get("value", "")) != value:
        element["value"] = value
        page.dispatch_field_event(element, "input")
        page.dispatch_field_event(element, "change")
    return True


def form_fields(page: Page) -> list[Tag]:
    return [
        el for el in page.soup.find_all(["input", "select", "textarea"])
        if _input_type(el) not in SKIPPED_INPUT_TYPES
    ]


def load_profile(store) -> AutofillProfile | None:
    try:
        raw = store.get(PROFILE_KEY, None)
    except Exception as exc:
        log.warning("Could not read autofill profile: %s", exc)
        return None
    return AutofillProfile.from_dict(raw) if raw else None


def autofill(session, profile: AutofillProfile | None = None) -> int:
    """Fill every recognised field on the session's page; return the count.

    Raises :class:`NoProfileConfigured` when no profile is stored and
    :class:`NoCompatibleFields` when nothing could be filled.
    """
    if profile is None:
        profile = load_profile(session.store)
    if profile is None:
        raise NoProfileConfigured()

    page = session.page
    filled = 0
    for element in form_fields(page):
        field_type = classify_field(page, element)
        if field_type is None:
            continue
        try:
            value = value_for(field_type, profile)
            if value and fill_field(page, element, value):
                filled += 1
                log.debug("Filled %s (%s)", element.get("name") or element.get("id") or element.name, field_type)
                session.sleep(FILL_PAUSE_MS / 1000)
        except Exception as exc:
            log.warning("Failed to fill %s field: %s", field_type, exc)

    log.info("Autofilled %d field(s)", filled)
    if filled == 0:
        raise NoCompatibleFields()
    return filled
