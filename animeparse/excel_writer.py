#!/usr/bin/env python3
"""
Utility helpers for writing parse results to Excel in a consistent table style.

Thin wrappers around openpyxl shared by the anifile CLI (--excel) and the
evaluation tool: one "Elements" sheet with a column per element kind, and an
optional "Tokens" sheet with the annotated token stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from .element import ElementKind
from .tokenizer import TokenizationResult


HighlightPredicate = Callable[[Sequence[Any]], bool]

MAX_COLUMN_WIDTH = 50

# Element columns in report order
ELEMENT_COLUMNS = [kind for kind in ElementKind if kind != ElementKind.UNKNOWN]


@dataclass(frozen=True)
class ExcelSheetData:
    """
    One worksheet of a report.

    Attributes:
        name: Tab name; also prefixes the table name ("<name>Table").
        headers: Column titles, in the order the rows use.
        rows: Cell values per row.
        highlight_row: Optional predicate; rows it accepts are filled yellow.
    """

    name: str
    headers: Sequence[str]
    rows: Sequence[Sequence[Any]]
    highlight_row: Optional[HighlightPredicate] = None


HIGHLIGHT_FILL = PatternFill(fill_type="solid", start_color="FFFF00", end_color="FFFF00")

TABLE_STYLE = TableStyleInfo(
    name="TableStyleMedium9",
    showFirstColumn=False,
    showLastColumn=False,
    showRowStripes=True,
    showColumnStripes=False,
)


def _render_sheet(ws, sheet: ExcelSheetData) -> None:
    ws.title = sheet.name
    ws.append(list(sheet.headers))
    widths = [len(str(header)) for header in sheet.headers]

    for values in sheet.rows:
        ws.append(list(values))
        for position, value in enumerate(values):
            if value is not None and position < len(widths):
                widths[position] = max(widths[position], len(str(value)))
        if sheet.highlight_row and sheet.highlight_row(values):
            for cell in ws[ws.max_row]:
                cell.fill = HIGHLIGHT_FILL

    for position, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(position)].width = min(width + 2, MAX_COLUMN_WIDTH)

    # Excel rejects a table with a header row only
    if sheet.rows:
        table = Table(
            displayName=sheet.name.replace(" ", "") + "Table",
            ref=f"A1:{get_column_letter(len(widths))}{len(sheet.rows) + 1}",
        )
        table.tableStyleInfo = TABLE_STYLE
        ws.add_table(table)


def write_excel_workbook(output_path: Path | str, sheets: Sequence[ExcelSheetData]) -> Path:
    """
    Render sheets, in order, into a new workbook at output_path.

    Missing parent directories are created.

    Returns:
        The path written, as a Path.

    Raises:
        ValueError: If sheets is empty.
    """
    if not sheets:
        raise ValueError("Cannot write a workbook without sheets")

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    first, *rest = sheets
    _render_sheet(wb.active, first)
    for sheet in rest:
        _render_sheet(wb.create_sheet(), sheet)

    wb.save(path)
    return path


def _join(values: List[str]) -> str:
    return " | ".join(values)


def build_elements_sheet(results: Sequence[TokenizationResult]) -> ExcelSheetData:
    """One row per filename: input, success flag, then every element kind."""
    headers = ["input", "success"] + [kind.value for kind in ELEMENT_COLUMNS]
    rows = []
    for result in results:
        row: List[Any] = [result.original, result.success]
        row.extend(_join(result.elements.get_all(kind)) for kind in ELEMENT_COLUMNS)
        rows.append(row)

    return ExcelSheetData(
        name="Elements",
        headers=headers,
        rows=rows,
        highlight_row=lambda row: not row[1],
    )


def build_tokens_sheet(results: Sequence[TokenizationResult]) -> ExcelSheetData:
    """One row per token, grouped by filename."""
    headers = ["input", "index", "kind", "text", "enclosed", "keyword", "element_kind"]
    rows = []
    for result in results:
        for index, token in enumerate(result.tokens):
            rows.append([
                result.original,
                index,
                token.kind.value,
                token.text,
                token.enclosed,
                token.keyword.kind.value if token.keyword else "",
                token.element_kind.value if token.element_kind else "",
            ])
    return ExcelSheetData(name="Tokens", headers=headers, rows=rows)


def write_parse_report(output_path: Path | str, results: Sequence[TokenizationResult],
                       include_tokens: bool = False) -> Path:
    """
    Write parse results to a workbook.

    Failed parses (no anime title) are highlighted on the Elements sheet.
    """
    sheets = [build_elements_sheet(results)]
    if include_tokens:
        sheets.append(build_tokens_sheet(results))
    return write_excel_workbook(output_path, sheets)
