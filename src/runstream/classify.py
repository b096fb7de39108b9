# src/runstream/classify.py

"""
Classifies test-runner output lines for color-coded display.

Rules are checked in order and the first match wins, all case-insensitive:

1. starts with "Passed"               -> PASS
2. contains "Failed"                  -> FAIL
3. starts with "Total tests"          -> TOTAL
4. contains "Test Run Successful"     -> RUN_SUCCESS
5. contains "Test Run Failed"         -> RUN_FAILURE
6. anything else                      -> NEUTRAL

Rule 2 shadows rule 5, so "Test Run Failed." is classified FAIL. This matches
the desktop tool's summary pane and is kept until product decides otherwise.
"""

from collections.abc import Callable, Iterable
from enum import Enum

from attrs import define

from runstream.runner.protocols import OutputLine


class Category(Enum):
    """Display category of an output line."""

    PASS = "pass"
    FAIL = "fail"
    TOTAL = "total"
    RUN_SUCCESS = "run_success"
    RUN_FAILURE = "run_failure"
    NEUTRAL = "neutral"


# Rich styles matching the brushes of the original summary pane.
CATEGORY_STYLES: dict[Category, str] = {
    Category.PASS: "green",
    Category.FAIL: "red",
    Category.TOTAL: "cadet_blue",
    Category.RUN_SUCCESS: "green",
    Category.RUN_FAILURE: "red",
    Category.NEUTRAL: "default",
}

_RULES: tuple[tuple[Callable[[str], bool], Category], ...] = (
    (lambda s: s.startswith("passed"), Category.PASS),
    (lambda s: "failed" in s, Category.FAIL),
    (lambda s: s.startswith("total tests"), Category.TOTAL),
    (lambda s: "test run successful" in s, Category.RUN_SUCCESS),
    (lambda s: "test run failed" in s, Category.RUN_FAILURE),
)


@define(frozen=True, slots=True)
class ClassifiedLine:
    """An output line paired with its display category."""

    line: OutputLine
    category: Category

    @property
    def style(self) -> str:
        return CATEGORY_STYLES[self.category]


def classify(line: str) -> Category:
    """Return the display category of a single line of text."""
    folded = line.casefold()
    for matches, category in _RULES:
        if matches(folded):
            return category
    return Category.NEUTRAL


def classify_lines(lines: Iterable[OutputLine]) -> list[ClassifiedLine]:
    return [ClassifiedLine(line=line, category=classify(line.text)) for line in lines]


# 🔼⚙️
