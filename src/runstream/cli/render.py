# src/runstream/cli/render.py

"""
Rich rendering of streamed and classified output for the terminal.
"""

from collections import Counter
from collections.abc import Iterable

import attrs
from rich.console import Console
from rich.text import Text

from runstream.classify import Category, ClassifiedLine
from runstream.runner import ERROR_PREFIX, OutputLine, RunResult, StreamName

STDERR_STYLE = "red"


def display_line(line: OutputLine) -> OutputLine:
    """Child stderr lines are shown with the error prefix; runner diagnostics already carry it."""
    if line.stream is StreamName.STDERR and not line.synthetic:
        return attrs.evolve(line, text=f"{ERROR_PREFIX}{line.text}")
    return line


def print_live_line(console: Console, line: OutputLine) -> None:
    style = STDERR_STYLE if line.stream is StreamName.STDERR else ""
    console.print(Text(line.text, style=style), soft_wrap=True)


def print_summary(console: Console, classified: Iterable[ClassifiedLine]) -> Counter:
    """Print every line in its category color and return the per-category counts."""
    counts: Counter = Counter()
    console.rule("Summary")
    for item in classified:
        counts[item.category] += 1
        console.print(Text(item.line.text, style=item.style), soft_wrap=True)
    return counts


def describe_result(result: RunResult, counts: Counter | None = None) -> Text:
    if result.cancelled:
        text = Text(f"Run cancelled after {result.elapsed:.2f}s", style="yellow")
    else:
        style = "green" if result.success else "red"
        text = Text(f"Test runner exited with code {result.exit_code} in {result.elapsed:.2f}s", style=style)
    if counts:
        text.append(
            f" ({counts[Category.PASS]} passed lines, {counts[Category.FAIL]} failed lines)",
            style="default",
        )
    return text

# 🔼⚙️
