"""
Load job pages for the agent.
Static pages come straight from requests; script-rendered boards (LinkedIn,
Indeed, Glassdoor, ...) are rendered in headless Chromium through Playwright.
"""
from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Callable

import requests

from jobintel.config import get_env
from jobintel.log import get_logger
from jobintel.page import Page, load_file
from jobintel.retry import retry

log = get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


@retry(max_attempts=3, base_delay=1.5, retryable=(requests.ConnectionError, requests.Timeout))
def fetch_static(url: str) -> str:
    r = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=20)
    r.raise_for_status()
    return r.text


def _sync_playwright():
    _pw = os.environ.get("PLAYWRIGHT_BROWSERS_PATH", "")
    if _pw and not Path(_pw).exists():
        os.environ.pop("PLAYWRIGHT_BROWSERS_PATH", None)
    from playwright.sync_api import sync_playwright

    return sync_playwright


def fetch_rendered(url: str, *, headless: bool | None = None, settle_ms: int = 2000) -> str:
    """Render *url* in Chromium and return the resulting document HTML."""
    if headless is None:
        headless = get_env("RUN_HEADLESS", "true").lower() in ("1", "true", "yes")
    sync_playwright = _sync_playwright()
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=headless)
        try:
            context = browser.new_context(viewport={"width": 1280, "height": 900}, user_agent=USER_AGENT)
            page = context.new_page()
            page.set_default_timeout(20_000)
            page.goto(url, wait_until="domcontentloaded", timeout=25_000)
            page.wait_for_timeout(settle_ms)
            html = page.content()
        finally:
            browser.close()
    log.info("Rendered %s (%d bytes)", url, len(html))
    return html


class RenderedPoller:
    """Keeps one Chromium page open and returns its current HTML on each call.

    Used as the polling source for the scan coordinator's watch loop; scrolls
    a little each poll so infinite-scroll boards load more cards.
    """

    def __init__(self, url: str, *, headless: bool = True, scroll_px: int = 800) -> None:
        self.url = url
        self.headless = headless
        self.scroll_px = scroll_px
        self._pw = None
        self._browser = None
        self._page = None

    def __enter__(self) -> "RenderedPoller":
        self._pw = _sync_playwright()().start()
        self._browser = self._pw.chromium.launch(headless=self.headless)
        context = self._browser.new_context(viewport={"width": 1280, "height": 900}, user_agent=USER_AGENT)
        self._page = context.new_page()
        self._page.goto(self.url, wait_until="domcontentloaded", timeout=25_000)
        time.sleep(2)
        return self

    def __call__(self) -> str:
        self._page.mouse.wheel(0, self.scroll_px)
        return self._page.content()

    def __exit__(self, *exc) -> None:
        if self._browser is not None:
            self._browser.close()
        if self._pw is not None:
            self._pw.stop()


def open_page(
    target: str,
    *,
    static: bool = False,
    url: str | None = None,
    fetch: Callable[[str], str] | None = None,
) -> Page:
    """Build a :class:`Page` from a local file path or a URL.

    For saved files, *url* sets the address the page pretends to live at, which
    decides the site profile.
    """
    if not target.startswith(("http://", "https://")):
        return load_file(target, url)
    if fetch is None:
        fetch = fetch_static if static else fetch_rendered
    return Page(fetch(target), target)
