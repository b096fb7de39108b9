# src/runstream/cli/classify_cmds.py

from collections import Counter

import click
from rich.console import Console
from rich.text import Text

from runstream.classify import CATEGORY_STYLES, Category, classify


@click.command(name="classify")
@click.argument(
    "log_file",
    type=click.File("r", encoding="utf-8", errors="replace"),
    default="-",
)
@click.option("--only-matches", is_flag=True, help="Hide lines that match no category.")
@click.option("--counts", is_flag=True, help="Print the number of lines per category at the end.")
def classify_cli(log_file, only_matches: bool, counts: bool):
    """Color a saved test-runner log (or stdin) by line category."""
    console = Console(highlight=False)
    tally: Counter = Counter()

    for raw in log_file:
        text = raw.rstrip("\r\n")
        if not text.strip():
            continue
        category = classify(text)
        tally[category] += 1
        if only_matches and category is Category.NEUTRAL:
            continue
        console.print(Text(text, style=CATEGORY_STYLES[category]), soft_wrap=True)

    if counts:
        console.rule("Counts")
        for category in Category:
            console.print(f"{category.value}: {tally[category]}", style=CATEGORY_STYLES[category])

# 🔼⚙️
