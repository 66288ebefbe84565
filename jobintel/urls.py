"""Strip tracking parameters from job URLs and derive stable job identifiers."""
from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

TRACKING_PARAMS: frozenset[str] = frozenset({
    # UTM
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content", "utm_id",
    "utm_source_platform", "utm_creative_format", "utm_marketing_tactic",
    # ad click ids
    "fbclid", "gclid", "gclsrc", "msclkid", "dclid", "twclid", "li_fat_id",
    "wbraid", "gbraid", "ttclid", "sccid", "click_id",
    # linkedin
    "trk", "trkinfo", "trackingid", "refid", "ebp", "midtoken", "midsig",
    "origin", "originalreferer", "originalsubdomain", "lipi", "licu",
    # indeed
    "from", "fromage", "vjk", "advn", "xpse", "xgid", "xpnl", "tk",
    # general
    "_ga", "_gl", "_hsenc", "_hsmi", "mc_cid", "mc_eid",
    "oly_enc_id", "oly_anon_id", "__s", "__hstc", "__hsfp", "hsctatracking",
    "ref", "referer", "referrer", "source", "src", "si", "feature",
    "position", "savedsearchid", "searchid", "searchindex",
    "igshid", "fbid", "_branch_match_id", "_branch_referrer",
    "s_kwcid", "ef_id", "affiliate_id", "campaign_id",
})

ESSENTIAL_PARAMS: frozenset[str] = frozenset({"currentjobid", "jobid", "jk", "clk", "id"})

_SITE_IDS: list[tuple[str, str, re.Pattern | None, str | None]] = [
    # (host fragment, prefix, path pattern, query key)
    ("linkedin.com", "linkedin", re.compile(r"/jobs/view/(?:[^/]*-)?(\d+)"), "currentJobId"),
    ("indeed.", "indeed", None, "jk"),
    ("indeed.", "indeed", None, "clk"),
    ("reed.co.uk", "reed", re.compile(r"/jobs/[^/]+/(\d+)"), None),
    ("glassdoor.", "glassdoor", re.compile(r"/job-listing/[^/]+/(\d+)"), "jl"),
    ("totaljobs.com", "totaljobs", re.compile(r"/job/(\d+)"), None),
]


def normalize_job_url(url: str) -> str:
    """Drop tracking parameters and fragments; sort what remains."""
    if not url:
        return url
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url

    kept = [
        (k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if k.lower() in ESSENTIAL_PARAMS or k.lower() not in TRACKING_PARAMS
    ]
    kept.sort()
    path = parsed.path.rstrip("/") if parsed.path not in ("", "/") else parsed.path
    return urlunparse((parsed.scheme, parsed.netloc.lower(), path, "", urlencode(kept), ""))


def job_identifier(url: str) -> str:
    """``site:id`` when the URL carries a known job id, else the normalized URL."""
    try:
        parsed = urlparse(url or "")
    except ValueError:
        return url
    host = (parsed.hostname or "").lower()
    query = dict(parse_qsl(parsed.query))
    for fragment, prefix, path_re, key in _SITE_IDS:
        if fragment not in host:
            continue
        if path_re is not None:
            m = path_re.search(parsed.path)
            if m:
                return f"{prefix}:{m.group(1)}"
        if key and query.get(key):
            return f"{prefix}:{query[key]}"
    return normalize_job_url(url)


def same_job(url_a: str, url_b: str) -> bool:
    if not url_a or not url_b:
        return False
    return job_identifier(url_a) == job_identifier(url_b)
