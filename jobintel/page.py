"""A live, mutable HTML page backed by BeautifulSoup.

Stands in for the browser document: CSS selection, structural containment,
mutation observers, click affordances and field-change notifications.
"""
from __future__ import annotations

import itertools
import re
from typing import Any, Callable
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from jobintel.log import get_logger

log = get_logger(__name__)

ACTION_ATTR = "data-jobintel-action"

MutationCallback = Callable[["Page", str], None]
FieldCallback = Callable[[Tag, str], None]

_WS = re.compile(r"\s+")


def text_of(element: Tag | None) -> str:
    """Visible text of *element* with whitespace collapsed."""
    if element is None:
        return ""
    return _WS.sub(" ", element.get_text(" ", strip=True)).strip()


def contains(outer: Tag, inner: Tag) -> bool:
    """True when *inner* is a strict descendant of *outer*."""
    return any(parent is outer for parent in inner.parents)


class Page:
    def __init__(self, html: str, url: str = "about:blank") -> None:
        self.url = url
        self.hostname = (urlparse(url).hostname or "").lower()
        self.soup = BeautifulSoup(html, "html.parser")
        self._observers: dict[int, MutationCallback] = {}
        self._field_listeners: list[FieldCallback] = []
        self._actions: dict[str, Callable[[], Any]] = {}
        self._ids = itertools.count(1)

    # -- selection ---------------------------------------------------------

    def select(self, selector: str, root: Tag | None = None) -> list[Tag]:
        return list((root or self.soup).select(selector))

    def select_one(self, selector: str, root: Tag | None = None) -> Tag | None:
        return (root or self.soup).select_one(selector)

    def document_order(self) -> dict[int, int]:
        """Map id(element) -> position in a depth-first walk of the document."""
        return {id(el): i for i, el in enumerate(self.soup.find_all(True))}

    def new_tag(self, name: str, **attrs: str) -> Tag:
        return self.soup.new_tag(name, attrs=attrs)

    def html(self) -> str:
        return str(self.soup)

    # -- mutations ---------------------------------------------------------

    def observe(self, callback: MutationCallback) -> int:
        handle = next(self._ids)
        self._observers[handle] = callback
        return handle

    def disconnect(self, handle: int | None) -> None:
        if handle is not None:
            self._observers.pop(handle, None)

    def load(self, html: str) -> None:
        """Replace the whole document, as a navigation or re-render would."""
        self.soup = BeautifulSoup(html, "html.parser")
        self._actions.clear()
        self._notify("load")

    def insert_html(self, selector: str, html: str) -> int:
        """Append parsed *html* into every element matching *selector*."""
        targets = self.select(selector)
        for target in targets:
            fragment = BeautifulSoup(html, "html.parser")
            for node in list(fragment.contents):
                target.append(node.extract())
        if targets:
            self._notify("childList")
        return len(targets)

    def _notify(self, kind: str) -> None:
        for callback in list(self._observers.values()):
            try:
                callback(self, kind)
            except Exception as exc:
                log.warning("Mutation observer failed: %s", exc)

    # -- click affordances ---------------------------------------------------

    def bind_click(self, element: Tag, handler: Callable[[], Any]) -> str:
        key = str(next(self._ids))
        element[ACTION_ATTR] = key
        self._actions[key] = handler
        return key

    def click(self, element: Tag) -> Any:
        handler = self._actions.get(str(element.get(ACTION_ATTR, "")))
        if handler is None:
            log.debug("Click on <%s> has no bound action", element.name)
            return None
        return handler()

    # -- form field events -------------------------------------------------

    def on_field_change(self, callback: FieldCallback) -> None:
        self._field_listeners.append(callback)

    def dispatch_field_event(self, element: Tag, kind: str) -> None:
        for callback in list(self._field_listeners):
            try:
                callback(element, kind)
            except Exception as exc:
                log.warning("Field listener failed on %s event: %s", kind, exc)


def load_file(path: str, url: str | None = None) -> Page:
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        html = f.read()
    return Page(html, url or f"file://{path}")
