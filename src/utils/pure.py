import re
from collections import Counter
from typing import Iterable, List, Literal, Optional, Tuple

from email_validator import EmailNotValidError, validate_email

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_SLUG_JUNK = re.compile(r"[^a-z0-9]+")


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of cell values.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all left ('l').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    rows = [[_md_cell(c) for c in row] for row in rows]

    if aligns is None:
        aligns = ["l"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def _md_cell(value) -> str:
    if value is None:
        return "-"
    # pipes would split the cell
    return str(value).replace("|", "\\|").replace("\n", " ")


def format_money(amount: float) -> str:
    """Rand amounts as shown to shoppers, e.g. ``R125.00``."""
    return f"R{amount:.2f}"


def slugify(name: str) -> str:
    """Lowercase, runs of non-alphanumerics become one dash, no edge dashes."""
    return _SLUG_JUNK.sub("-", (name or "").lower()).strip("-")


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("Only non-negative integers can be encoded.")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def top_counts(values: Iterable[str], k: int = 5) -> List[Tuple[str, int]]:
    """
    Count occurrences and return the ``k`` most frequent as (value, count).

    Sorted by count descending. Ties keep the order in which each value was
    first seen in ``values``.
    """
    if k < 1:
        return []
    return Counter(values).most_common(k)


def is_valid_email(value: str) -> bool:
    """Syntax check only; the domain is not looked up."""
    try:
        validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
