import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from hms.core.errors import RenderError
from hms.services.document_service import (
    Note,
    PrintSection,
    Table,
    escape_html,
    render_print_document,
    to_csv,
)

PRINTED_AT = datetime(2024, 2, 14, 12, 0, tzinfo=timezone.utc)


def test_escape_html_covers_markup_characters():
    assert escape_html('<a href="x">Tom & Jerry</a>') == "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&lt;/a&gt;"
    assert escape_html("plain") == "plain"


def test_document_escapes_all_text_and_keeps_section_order():
    html = render_print_document(
        title="<Grand> Hotel",
        subtitle='Rooms & "Suites"',
        sections=[
            PrintSection(title="Second?", blocks=[Note("<script>alert(1)</script>")]),
            PrintSection(
                title="Table",
                blocks=[
                    Table(
                        headers=["Guest", "Amount"],
                        rows=[["O'Neil <VIP>", "$12.00"], [None, Decimal("3.50")]],
                        numeric_columns=frozenset({1}),
                    )
                ],
            ),
        ],
        printed_at=PRINTED_AT,
    )

    assert html.startswith("<!doctype html>")
    assert "<title>&lt;Grand&gt; Hotel</title>" in html
    assert "Rooms &amp; &quot;Suites&quot;" in html
    assert "Printed: 2024-02-14 12:00:00 UTC" in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "<script>alert(1)</script>" not in html
    assert "O'Neil &lt;VIP&gt;" in html
    assert '<td class="num">3.50</td>' in html
    assert html.count('<section class="sec">') == 2
    assert html.index("Second?") < html.index('<div class="sec-title">Table</div>')


def test_document_requires_sections():
    with pytest.raises(RenderError):
        render_print_document(title="Empty", sections=[], printed_at=PRINTED_AT)


def test_nested_sections_and_structured_cells_are_rejected():
    inner = PrintSection(title="Inner", blocks=[])
    with pytest.raises(RenderError):
        render_print_document(
            title="Nested",
            sections=[PrintSection(title="Outer", blocks=[inner])],
            printed_at=PRINTED_AT,
        )
    with pytest.raises(RenderError):
        render_print_document(
            title="Cells",
            sections=[PrintSection(title="T", blocks=[Table(headers=["a"], rows=[[{"nested": 1}]])])],
            printed_at=PRINTED_AT,
        )


def test_csv_header_is_union_of_keys_in_first_seen_order():
    content = to_csv(
        [
            {"date": date(2024, 2, 1), "income": "10.00"},
            {"income": "5.00", "note": "late", "date": date(2024, 2, 2)},
        ]
    )

    assert content == "date,income,note\r\n2024-02-01,10.00,\r\n2024-02-02,5.00,late\r\n"


def test_csv_quotes_special_characters_and_round_trips():
    rows = [
        {"description": 'Room "A", sea view', "amount": "12.00"},
        {"description": "Line one\nline two", "amount": None},
        {"description": "Carriage\rreturn", "amount": 0},
    ]

    content = to_csv(rows)
    parsed = list(csv.reader(io.StringIO(content, newline="")))

    assert '"Room ""A"", sea view"' in content
    assert parsed == [
        ["description", "amount"],
        ['Room "A", sea view', "12.00"],
        ["Line one\nline two", ""],
        ["Carriage\rreturn", "0"],
    ]


def test_csv_of_no_rows_is_empty():
    assert to_csv([]) == ""
