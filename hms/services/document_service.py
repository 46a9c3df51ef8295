from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Sequence, Union

from hms.core.errors import RenderError


@dataclass(frozen=True)
class Table:
    headers: Sequence[str]
    rows: Sequence[Sequence[Any]]
    numeric_columns: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Note:
    text: str


Block = Union[Table, Note]


@dataclass(frozen=True)
class PrintSection:
    title: str
    blocks: Sequence[Block]


_PRINT_STYLES = """
* { box-sizing: border-box; }
body { margin: 0; padding: 28px; font-family: ui-sans-serif, system-ui, Helvetica, Arial; }
.hdr { display: flex; justify-content: space-between; gap: 16px; padding: 18px; border: 1px solid #ddd; }
.title { font-weight: 750; font-size: 18px; }
.sub, .meta, .muted { font-size: 12px; color: #666; }
.sec { margin-top: 18px; page-break-inside: avoid; }
.sec-title { font-size: 13px; font-weight: 700; }
.sec-body { margin-top: 10px; border: 1px solid #ddd; }
.note { padding: 12px; }
table { width: 100%; border-collapse: collapse; }
th, td { padding: 10px 12px; border-bottom: 1px solid #ddd; text-align: left; font-size: 12px; }
th { background: #f4f4f5; }
.num { text-align: right; font-variant-numeric: tabular-nums; }
@media print { body { padding: 0; } .sec { break-inside: avoid; } }
""".strip()


def escape_html(value: str) -> str:
    escaped = value.replace("&", "&amp;")
    escaped = escaped.replace("<", "&lt;")
    escaped = escaped.replace(">", "&gt;")
    escaped = escaped.replace('"', "&quot;")
    return escaped


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (str, int, float, Decimal, date)):
        return str(value)
    raise RenderError(f"Unsupported cell value of type {type(value).__name__}")


def _render_table(table: Table) -> str:
    def css(index: int) -> str:
        return ' class="num"' if index in table.numeric_columns else ""

    head = "".join(
        f"<th{css(index)}>{escape_html(str(header))}</th>"
        for index, header in enumerate(table.headers)
    )
    body_rows = []
    for row in table.rows:
        cells = "".join(
            f"<td{css(index)}>{escape_html(_cell_text(cell))}</td>"
            for index, cell in enumerate(row)
        )
        body_rows.append(f"<tr>{cells}</tr>")
    return f"<table><thead><tr>{head}</tr></thead><tbody>{''.join(body_rows)}</tbody></table>"


def _render_block(block: Any) -> str:
    if isinstance(block, Table):
        return _render_table(block)
    if isinstance(block, Note):
        return f'<div class="note muted">{escape_html(block.text)}</div>'
    if isinstance(block, PrintSection):
        raise RenderError(f"Section '{block.title}' cannot be nested inside another section")
    raise RenderError(f"Unsupported section content of type {type(block).__name__}")


def render_print_document(
    *,
    title: str,
    sections: Sequence[PrintSection],
    printed_at: datetime,
    subtitle: str | None = None,
) -> str:
    """Render sections, in the order given, into one printable HTML page.

    Every piece of text is escaped before it is embedded; callers pass plain
    strings and ``Table``/``Note`` blocks, never markup.
    """
    if not sections:
        raise RenderError("At least one section is required")

    stamp = printed_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    subtitle_html = f'<div class="sub">{escape_html(subtitle)}</div>' if subtitle else ""
    section_html = []
    for section in sections:
        if not isinstance(section, PrintSection):
            raise RenderError(f"Unsupported section of type {type(section).__name__}")
        body = "\n".join(_render_block(block) for block in section.blocks)
        section_html.append(
            '<section class="sec">'
            f'<div class="sec-title">{escape_html(section.title)}</div>'
            f'<div class="sec-body">{body}</div>'
            "</section>"
        )

    sections_markup = "\n".join(section_html)
    return (
        "<!doctype html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="utf-8" />\n'
        f"<title>{escape_html(title)}</title>\n"
        f"<style>\n{_PRINT_STYLES}\n</style>\n"
        "</head>\n"
        "<body>\n"
        '<header class="hdr">'
        f'<div><div class="title">{escape_html(title)}</div>{subtitle_html}</div>'
        f'<div class="meta">Printed: {escape_html(stamp)}</div>'
        "</header>\n"
        f"{sections_markup}\n"
        "<script>window.addEventListener('load', () => setTimeout(() => window.print(), 50));</script>\n"
        "</body>\n"
        "</html>\n"
    )


def _csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    # Header is the union of keys in first-seen order, not sorted.
    fieldnames: dict[str, None] = {}
    for row in rows:
        for key in row:
            fieldnames.setdefault(key, None)
    if not fieldnames:
        return ""

    writer_io = io.StringIO()
    writer = csv.DictWriter(
        writer_io,
        fieldnames=list(fieldnames),
        restval="",
        quoting=csv.QUOTE_MINIMAL,
    )
    writer.writeheader()
    for row in rows:
        writer.writerow({key: _csv_value(value) for key, value in row.items()})
    return writer_io.getvalue()
