"""Load env configuration, settings defaults and the YAML autofill profile."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobintel.log import get_logger

log = get_logger(__name__)

load_dotenv()

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = PROJECT_ROOT / "config"
DATA_DIR: Path = PROJECT_ROOT / "data"
PROFILE_PATH: Path = CONFIG_DIR / "autofill_profile.yaml"

PLACEHOLDER_CONVEX_URL = "https://your-convex-deployment.convex.cloud"

SETTINGS_KEYS: tuple[str, ...] = (
    "ukFiltersEnabled",
    "ukEligibilityCriteria",
    "autofillProfile",
    "convexUrl",
    "defaultKeywords",
    "defaultConnectionLevel",
)


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def ensure_dirs() -> None:
    for d in (CONFIG_DIR, DATA_DIR):
        d.mkdir(parents=True, exist_ok=True)


def store_path() -> Path:
    custom = get_env("JOBINTEL_STORE")
    return Path(custom) if custom else DATA_DIR / "store.json"


def default_settings() -> dict[str, Any]:
    return {
        "ukFiltersEnabled": False,
        "ukEligibilityCriteria": {},
        "autofillProfile": None,
        "convexUrl": get_env("CONVEX_URL"),
        "defaultKeywords": "",
        "defaultConnectionLevel": "2nd",
    }


@dataclass
class Settings:
    uk_filters_enabled: bool = False
    uk_eligibility_criteria: dict[str, Any] = field(default_factory=dict)
    autofill_profile: dict[str, Any] | None = None
    convex_url: str = ""
    default_keywords: str = ""
    default_connection_level: str = "2nd"

    @property
    def enrichment_configured(self) -> bool:
        url = self.convex_url.strip()
        return bool(url) and url.rstrip("/") != PLACEHOLDER_CONVEX_URL


def load_settings(store) -> Settings:
    """Read the settings blob, falling back to defaults on any store failure."""
    defaults = default_settings()
    try:
        raw = store.get_many(defaults)
    except Exception as exc:
        log.warning("Settings unavailable (%s), using defaults", exc)
        raw = defaults
    return Settings(
        uk_filters_enabled=bool(raw.get("ukFiltersEnabled")),
        uk_eligibility_criteria=raw.get("ukEligibilityCriteria") or {},
        autofill_profile=raw.get("autofillProfile") or None,
        convex_url=str(raw.get("convexUrl") or defaults["convexUrl"] or ""),
        default_keywords=str(raw.get("defaultKeywords") or ""),
        default_connection_level=str(raw.get("defaultConnectionLevel") or "2nd"),
    )


def load_profile_yaml(path: Path | None = None) -> dict[str, Any]:
    """Read an autofill profile from YAML (camelCase keys, as stored)."""
    path = path or PROFILE_PATH
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    # Accept a top-level "autofillProfile:" wrapper as well as the bare profile
    if "autofillProfile" in data and "personalInfo" not in data:
        data = data["autofillProfile"] or {}

    for section in ("personalInfo", "professional", "preferences"):
        data.setdefault(section, {})
    return data
