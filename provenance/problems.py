# provenance/problems.py
"""
Problem accumulation for request validation.

Every validation step in a request appends human-readable problems to one
ProblemSink. Nothing is raised until every check has run; then the caller
raises a single RequestValidationError carrying the whole ordered list.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List

from django.core.exceptions import ValidationError

DEFAULT_SUMMARY = "The request could not be validated."


class RequestValidationError(ValidationError):
    """
    Raised once per request when any problems were found.

    `problems` keeps the ordered list exactly as accumulated.
    """

    def __init__(self, problems: Iterable[str], summary: str = DEFAULT_SUMMARY):
        self.problems: List[str] = list(problems)
        self.summary = summary
        super().__init__(self.problems or [summary])

    def __str__(self):
        if not self.problems:
            return self.summary
        return f"{self.summary} {' '.join(self.problems)}"


class ProblemSink:
    """
    Ordered, duplicate-preserving collection of problem strings.

    Validation helpers only ever append to a sink they are given.
    The request owns it and decides when to raise.
    """

    def __init__(self, problems: Iterable[str] = ()):
        self._problems: List[str] = list(problems)

    def add(self, problem: str) -> None:
        self._problems.append(problem)

    def extend(self, problems: Iterable[str]) -> None:
        self._problems.extend(problems)

    def as_list(self) -> List[str]:
        return list(self._problems)

    def raise_if_any(self, summary: str = DEFAULT_SUMMARY) -> None:
        if self._problems:
            raise RequestValidationError(self._problems, summary)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._problems))

    def __len__(self) -> int:
        return len(self._problems)

    def __bool__(self) -> bool:
        return bool(self._problems)

    def __contains__(self, problem) -> bool:
        return problem in self._problems

    def __repr__(self):
        return f"ProblemSink({self._problems!r})"


# ===============================================================
# Message helpers
# ===============================================================

def pluralise(count: int, singular: str, plural: str | None = None) -> str:
    if count == 1:
        return singular
    return plural if plural is not None else singular + "s"


def join_items(items: Iterable) -> str:
    return ", ".join(str(item) for item in items)


def repr_items(items: Iterable) -> str:
    return "[" + ", ".join(repr(item) for item in items) + "]"


def distinct(items: Iterable) -> list:
    """Remove repeats, keeping first-seen order."""
    return list(dict.fromkeys(items))


def distinct_upper(values: Iterable[str | None]) -> list:
    """Remove case-insensitive repeats, keeping the first spelling seen."""
    seen = set()
    out = []
    for value in values:
        key = value.upper() if isinstance(value, str) else value
        if key in seen:
            continue
        seen.add(key)
        out.append(value)
    return out
