"""Text rendering and markdown export of a database."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kiodb.database import Database

COLUMN_HEADERS = ["Name", "Type", "Default", "Unique"]


def format_value(value: Any, max_width: int = 40) -> str:
    """Format a value for display.

    Args:
        value: The value to format
        max_width: Maximum character width before truncating
    """
    if value is None:
        return "null"
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, float):
        return f"{value:.6g}"
    elif isinstance(value, (list, dict)):
        s = json.dumps(value, ensure_ascii=False)
    else:
        s = str(value)
    if max_width and len(s) > max_width:
        return s[: max_width - 3] + "..."
    return s


def render_table(headers: list[str], rows: list[list[Any]], max_width: int = 40) -> str:
    """Render headers and rows as an aligned markdown table.

    Rows whose length differs from the header count are skipped.
    """
    cells = [
        [format_value(v, max_width) for v in row]
        for row in rows
        if len(row) == len(headers)
    ]
    widths = [len(h) for h in headers]
    for row in cells:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def line(values: list[str]) -> str:
        return "| " + " | ".join(v.ljust(widths[i]) for i, v in enumerate(values)) + " |"

    lines = [line(headers), "|" + "|".join("-" * (w + 2) for w in widths) + "|"]
    lines.extend(line(row) for row in cells)
    return "\n".join(lines) + "\n"


def to_markdown(db: Database, count: int = 10) -> str:
    """Render the schema followed by the first ``count`` records."""
    if not isinstance(count, int) or isinstance(count, bool):
        raise TypeError("count must be an integer")
    schema_rows = [
        [column.name, column.type.value, column.default, column.unique]
        for column in db.columns
    ]
    names = db.column_names
    record_rows = [[row[name] for name in names] for row in db.get_all()[: max(count, 0)]]
    parts = [render_table(COLUMN_HEADERS, schema_rows)]
    if names:
        parts.append(render_table(names, record_rows))
    return "\n".join(parts)


def export_markdown(db: Database, file_name: str | Path, count: int = 10) -> Path:
    """Write :func:`to_markdown` output to ``<file_name>.md``.

    The suffix is always appended, so ``report.md`` becomes ``report.md.md``.

    Returns:
        The path written.
    """
    content = to_markdown(db, count)
    path = Path(file_name)
    path = path.with_name(path.name + ".md")
    path.write_text(content, encoding="utf-8")
    return path
