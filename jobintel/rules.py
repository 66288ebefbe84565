"""Ordered tagged-rule tables evaluated by a single first-match evaluator.

Site profiles, autofill field rules and recruitment-agency patterns are all
expressed as lists of :class:`Rule`. A rule either tests the subject string
directly or, when the subject is a mapping, the entry named by ``field``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

Subject = Union[str, Mapping[str, str]]


@dataclass(frozen=True)
class Rule:
    tag: str
    pattern: re.Pattern
    value: Any = None
    field: str | None = None

    def matches(self, subject: Subject) -> bool:
        if isinstance(subject, str):
            text = subject
        else:
            text = subject.get(self.field or "", "") or ""
        return bool(self.pattern.search(text))


def rule(tag: str, pattern: str, value: Any = None, *, field: str | None = None) -> Rule:
    return Rule(tag=tag, pattern=re.compile(pattern, re.IGNORECASE), value=value, field=field)


def first_match(rules: Iterable[Rule], subject: Subject) -> Rule | None:
    for r in rules:
        if r.matches(subject):
            return r
    return None


def all_matches(rules: Iterable[Rule], subject: Subject) -> list[Rule]:
    return [r for r in rules if r.matches(subject)]
