#!/usr/bin/env python3
"""
Run the anime filename parser over a batch of filenames and score it.

blind      how often each element kind is found, which words stay unclaimed
reference  compare against hand-labelled element columns on a "Reference" sheet

Writes a results workbook (plus a Diff sheet in reference mode) and a JSON
metrics file that CI can compare between runs.
"""

import sys
import argparse
import json
from datetime import datetime
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
from collections import Counter

# Allow running from a checkout without installing
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from anifile import FilenameParser
from animeparse import TokenKind
from animeparse.excel_writer import ELEMENT_COLUMNS, ExcelSheetData, write_excel_workbook
from openpyxl import load_workbook


FIELD_NAMES = [kind.value for kind in ELEMENT_COLUMNS]


@dataclass
class ParsedRow:
    """One filename and its elements, flattened to strings for reporting."""
    input: str
    removed: str
    cleaned: str
    success: bool
    fields: Dict[str, str] = field(default_factory=dict)
    unclaimed_tokens: List[str] = field(default_factory=list)
    match_stats: Dict[str, Any] = field(default_factory=dict)

    def get(self, field_name: str) -> str:
        return self.fields.get(field_name, "")

    def to_excel_row(self) -> List[Any]:
        return (
            [self.input, self.removed, self.cleaned, self.success]
            + [self.get(name) for name in FIELD_NAMES]
            + [" | ".join(self.unclaimed_tokens), json.dumps(self.match_stats)]
        )

    @staticmethod
    def get_headers() -> List[str]:
        return ["input", "removed", "cleaned", "success"] + FIELD_NAMES + ["unclaimed_tokens", "match_stats"]


def parse_arguments(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(
        description="Score the anime filename parser on a batch of filenames"
    )
    parser.add_argument(
        '--mode',
        choices=['blind', 'reference'],
        default='blind',
        help="blind: element coverage only; reference: compare against labelled columns"
    )
    parser.add_argument(
        '--input',
        required=True,
        help="Text file with one filename per line, or an .xlsx workbook with an 'input' column"
    )
    parser.add_argument(
        '--output-excel',
        help="Results workbook (default: metrics/<mode>-<timestamp>.xlsx)"
    )
    parser.add_argument(
        '--output-json',
        help="Metrics file (default: metrics/<mode>-<timestamp>.json)"
    )
    parser.add_argument(
        '--limit',
        type=int,
        help="Only evaluate the first N filenames"
    )
    parser.add_argument(
        '--samples',
        type=int,
        default=10,
        help="Mismatches kept per element kind in reference mode (default: %(default)s)"
    )
    parser.add_argument(
        '--no-write',
        action='store_true',
        help="Print the summary without writing any files"
    )
    parser.add_argument(
        '--skip-excel',
        action='store_true',
        help="Write only the JSON metrics"
    )

    return parser.parse_args(argv)


def _header_names(ws) -> List[str]:
    first = next(ws.iter_rows(min_row=1, max_row=1, values_only=True), ())
    return [str(value).strip().lower() if value is not None else "" for value in first]


def _select_sheet(wb, sheet_name: Optional[str]):
    if sheet_name is None:
        if wb.active is None:
            raise ValueError("Workbook has no usable worksheet")
        return wb.active
    if sheet_name not in wb.sheetnames:
        raise ValueError(f"No '{sheet_name}' sheet in workbook (found: {', '.join(wb.sheetnames)})")
    return wb[sheet_name]


def _take(values, limit: Optional[int]) -> List[str]:
    collected = []
    for value in values:
        if limit and len(collected) >= limit:
            break
        collected.append(value)
    return collected


def read_input_file(filepath: Union[str, Path], limit: Optional[int] = None,
                    sheet_name: Optional[str] = None) -> List[str]:
    """
    Collect filenames from a text file or the 'input' column of a workbook.

    Blank lines and empty cells are skipped.

    Raises:
        ValueError: If the workbook lacks the requested sheet or an 'input' column
    """
    filepath = Path(filepath)

    if filepath.suffix != '.xlsx':
        lines = filepath.read_text(encoding='utf-8', errors='replace').splitlines()
        return _take((line.strip() for line in lines if line.strip()), limit)

    wb = load_workbook(filepath, read_only=True)
    try:
        ws = _select_sheet(wb, sheet_name)
        headers = _header_names(ws)
        if 'input' not in headers:
            raise ValueError(f"Sheet '{ws.title}' has no 'input' column")
        column = headers.index('input')
        cells = (row[column] for row in ws.iter_rows(min_row=2, values_only=True) if len(row) > column)
        return _take((str(cell) for cell in cells if cell), limit)
    finally:
        wb.close()


def parse_filename(parser: FilenameParser, filename: str) -> ParsedRow:
    """Parse a single filename and flatten the result into a ParsedRow."""
    result = parser.parse(filename)

    removed_str = ' | '.join(f"{t.value}({t.category})" for t in result.removed_tokens)

    fields = {}
    for kind in ELEMENT_COLUMNS:
        values = result.elements.get_all(kind)
        if values:
            fields[kind.value] = " | ".join(values)

    # Unclaimed words are what the parser could not explain
    words = [t for t in result.tokens if t.kind in (TokenKind.UNKNOWN, TokenKind.IDENTIFIER)]
    unclaimed = [t.text for t in words if t.kind == TokenKind.UNKNOWN and t.text.strip()]
    claimed = len(words) - len(unclaimed)
    match_rate = claimed / len(words) if words else 0.0

    return ParsedRow(
        input=filename,
        removed=removed_str,
        cleaned=result.cleaned,
        success=result.success,
        fields=fields,
        unclaimed_tokens=unclaimed,
        match_stats={
            "word_tokens": len(words),
            "claimed_tokens": claimed,
            "match_rate": round(match_rate, 4),
        },
    )


def calculate_blind_metrics(rows: List[ParsedRow]) -> Dict[str, Any]:
    """
    Coverage without labels: the share of rows carrying each element kind,
    the success rate, and the words left unclaimed most often.
    """
    if not rows:
        raise ValueError("No filenames to evaluate")
    count = len(rows)

    def share(predicate) -> float:
        return round(sum(1 for r in rows if predicate(r)) / count, 4)

    leftovers = Counter(word for r in rows for word in r.unclaimed_tokens)

    return {
        'mode': 'blind',
        'total_rows': count,
        'success_rate': share(lambda r: r.success),
        'field_coverage': {name: share(lambda r, name=name: r.get(name)) for name in FIELD_NAMES},
        'avg_match_rate': round(sum(r.match_stats['match_rate'] for r in rows) / count, 4),
        'unclaimed_histogram': [{'token': word, 'count': n} for word, n in leftovers.most_common(20)],
        'anomalies': {
            'failed_rows': [r.input for r in rows if not r.success],
            'rows_with_unclaimed_tokens': sum(1 for r in rows if r.unclaimed_tokens),
            'total_unclaimed_tokens': sum(leftovers.values()),
        },
        'timestamp': datetime.now().isoformat()
    }


def load_reference_data(filepath: Union[str, Path], sheet_name: str = "Reference") -> List[Dict[str, str]]:
    """
    Read expected labels from a workbook sheet.

    Besides 'input', every column named after an element kind holds labels;
    anything else is ignored. A cell with several values joins them with ' | '.
    """
    wb = load_workbook(Path(filepath), read_only=True)
    try:
        ws = _select_sheet(wb, sheet_name)
        headers = _header_names(ws)
        if 'input' not in headers:
            raise ValueError(f"Sheet '{ws.title}' has no 'input' column")
        labelled = [(idx, name) for idx, name in enumerate(headers) if name in FIELD_NAMES]
        if not labelled:
            raise ValueError(f"Sheet '{ws.title}' has no element columns; use names such as {FIELD_NAMES[:3]}")

        input_idx = headers.index('input')
        reference_rows = []
        for row in ws.iter_rows(min_row=2, values_only=True):
            if len(row) <= input_idx or not row[input_idx]:
                continue
            labels = {'input': str(row[input_idx])}
            for idx, name in labelled:
                cell = row[idx] if idx < len(row) else None
                labels[name] = "" if cell is None else str(cell)
            reference_rows.append(labels)
        return reference_rows
    finally:
        wb.close()


def calculate_reference_metrics(rows: List[ParsedRow], reference_rows: List[Dict[str, str]],
                                samples: int = 10) -> Dict[str, Any]:
    """
    Calculate accuracy metrics against labelled rows:

    1. False Negative Rate: reference has a value but the parser found none
    2. False Positive Rate: reference is empty but the parser found a value
    3. Accuracy Rate: reference has a value and the parser matched it exactly
    4. Parsed Perfect Rate: every labelled field matches
    """
    total_rows = len(rows)
    if len(reference_rows) != total_rows:
        raise ValueError(f"Row count mismatch: {total_rows} parsed vs {len(reference_rows)} reference")

    labelled_fields = [name for name in FIELD_NAMES if reference_rows and name in reference_rows[0]]

    totals = Counter()
    field_metrics = {}
    mismatches = []

    for name in labelled_fields:
        counts = Counter()
        field_mismatches = []

        for parsed, reference in zip(rows, reference_rows):
            parsed_val = parsed.get(name)
            ref_val = reference.get(name, "")

            if ref_val:
                counts['fn_opportunities'] += 1
                counts['acc_opportunities'] += 1
                if not parsed_val:
                    counts['false_negatives'] += 1
                    field_mismatches.append(('false_negative', parsed, parsed_val, ref_val))
                elif parsed_val == ref_val:
                    counts['accurate'] += 1
                else:
                    field_mismatches.append(('incorrect', parsed, parsed_val, ref_val))
            else:
                counts['fp_opportunities'] += 1
                if parsed_val:
                    counts['false_positives'] += 1
                    field_mismatches.append(('false_positive', parsed, parsed_val, ref_val))

        totals.update(counts)
        field_metrics[name] = {
            'false_negative_rate': _rate(counts['false_negatives'], counts['fn_opportunities']),
            'false_negative_count': counts['false_negatives'],
            'false_positive_rate': _rate(counts['false_positives'], counts['fp_opportunities']),
            'false_positive_count': counts['false_positives'],
            'accuracy_rate': _rate(counts['accurate'], counts['acc_opportunities']),
            'accurate_count': counts['accurate'],
            'accuracy_opportunities': counts['acc_opportunities'],
        }
        mismatches.extend(
            {'input': parsed.input, 'field': name, 'type': kind, 'parsed': parsed_val, 'expected': ref_val}
            for kind, parsed, parsed_val, ref_val in field_mismatches[:samples]
        )

    files_perfectly_parsed = sum(
        1 for parsed, reference in zip(rows, reference_rows)
        if all(parsed.get(name) == reference.get(name, "") for name in labelled_fields)
    )

    return {
        'mode': 'reference',
        'key_metrics': {
            'metadata_false_negative_rate': _rate(totals['false_negatives'], totals['fn_opportunities']),
            'metadata_false_positive_rate': _rate(totals['false_positives'], totals['fp_opportunities']),
            'metadata_accuracy_rate': _rate(totals['accurate'], totals['acc_opportunities']),
            'parsed_perfect_rate': _rate(files_perfectly_parsed, total_rows),
        },
        'summary': {
            'total_files': total_rows,
            'labelled_fields': labelled_fields,
            'files_perfectly_parsed': files_perfectly_parsed,
            'false_negatives': totals['false_negatives'],
            'false_positives': totals['false_positives'],
            'accurate_matches': totals['accurate'],
            'accuracy_opportunities': totals['acc_opportunities'],
        },
        'field_breakdown': field_metrics,
        'sample_mismatches': mismatches,
        'timestamp': datetime.now().isoformat()
    }


def _rate(count: int, opportunities: int) -> float:
    return round(count / opportunities * 100, 2) if opportunities > 0 else 0.0


def create_diff_rows(parsed_rows: List[ParsedRow], reference_rows: List[Dict[str, str]]) -> List[List[Any]]:
    """
    Diff rows for the Excel output: labelled cells that disagree become
    {"expected": ..., "returned": ...}; agreeing cells keep the value.
    """
    diff_rows = []
    for parsed, reference in zip(parsed_rows, reference_rows):
        row: List[Any] = [parsed.input]
        for name in FIELD_NAMES:
            parsed_val = parsed.get(name)
            if name in reference and reference[name] != parsed_val:
                row.append(json.dumps({"expected": reference[name], "returned": parsed_val}, ensure_ascii=False))
            else:
                row.append(parsed_val)
        diff_rows.append(row)
    return diff_rows


def is_discrepancy_value(value: Any) -> bool:
    return value is not None and '"expected":' in str(value)


def write_excel_output(rows: List[ParsedRow], output_path: Union[str, Path], mode: str,
                       diff_rows: Optional[List[List[Any]]] = None):
    """
    Write parsed results to an Excel workbook.

    For blind mode: single sheet with results, failed parses highlighted
    For reference mode: Results and Diff sheets, rows with discrepancies highlighted
    """
    headers = ParsedRow.get_headers()
    success_idx = headers.index("success")
    sheets: List[ExcelSheetData] = [
        ExcelSheetData(
            name="Results",
            headers=headers,
            rows=[row.to_excel_row() for row in rows],
            highlight_row=lambda row: not row[success_idx],
        )
    ]
    if mode == 'reference' and diff_rows is not None:
        sheets.append(
            ExcelSheetData(
                name="Diff",
                headers=["input"] + FIELD_NAMES,
                rows=diff_rows,
                highlight_row=lambda row: any(is_discrepancy_value(v) for v in row[1:]),
            )
        )

    write_excel_workbook(output_path, sheets)


def write_json_metrics(metrics: Dict[str, Any], output_path: Union[str, Path]):
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open('w', encoding='utf-8') as f:
        json.dump(metrics, f, indent=2, ensure_ascii=False)


def print_summary(metrics: Dict[str, Any], samples: int) -> None:
    print()
    if metrics['mode'] == 'blind':
        print(f"{metrics['total_rows']} filenames, {metrics['success_rate']:.1%} parsed, "
              f"{metrics['avg_match_rate']:.1%} of words claimed on average")
        found = {name: share for name, share in metrics['field_coverage'].items() if share}
        for name, share in sorted(found.items(), key=lambda item: -item[1]):
            print(f"  {name:<22} {share:7.1%}")
        leftovers = metrics['unclaimed_histogram'][:5]
        if leftovers:
            print("Most frequent unclaimed words: " + ", ".join(
                f"{item['token']} (x{item['count']})" for item in leftovers))
        return

    key_metrics = metrics['key_metrics']
    labels = (
        ("missed", 'metadata_false_negative_rate'),
        ("spurious", 'metadata_false_positive_rate'),
        ("correct", 'metadata_accuracy_rate'),
        ("all fields correct", 'parsed_perfect_rate'),
    )
    for label, key in labels:
        print(f"{label:<20} {key_metrics[key]:6.2f}%")

    print(f"\n{'element':<22} {'missed':>8} {'spurious':>9} {'correct':>8}")
    for name, stats in metrics['field_breakdown'].items():
        print(f"{name:<22} {stats['false_negative_rate']:7.2f}% {stats['false_positive_rate']:8.2f}% "
              f"{stats['accuracy_rate']:7.2f}%")

    shown = metrics.get('sample_mismatches', [])[:10]
    if shown:
        print(f"\nMismatches (at most {samples} kept per element):")
        for item in shown:
            print(f"  {item['field']} {item['type']}: {item['input'][:70]!r} "
                  f"expected {item['expected']!r}, got {item['parsed']!r}")


def default_output_path(mode: str, suffix: str) -> Path:
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return Path("metrics") / f"{mode}-{stamp}{suffix}"


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_arguments(argv)
    reference_mode = args.mode == 'reference'

    filenames = read_input_file(args.input, args.limit, sheet_name="Reference" if reference_mode else None)
    print(f"Evaluating {len(filenames)} filenames from {args.input} ({args.mode})")

    parser = FilenameParser()
    rows = [parse_filename(parser, filename) for filename in filenames]

    diff_rows = None
    if reference_mode:
        reference_rows = load_reference_data(args.input, sheet_name="Reference")
        if args.limit:
            reference_rows = reference_rows[:args.limit]
        metrics = calculate_reference_metrics(rows, reference_rows, args.samples)
        diff_rows = create_diff_rows(rows, reference_rows)
    else:
        metrics = calculate_blind_metrics(rows)

    print_summary(metrics, args.samples)

    if args.no_write:
        print("\nDry-run complete, nothing written")
        return 0

    if not args.skip_excel:
        excel_path = Path(args.output_excel) if args.output_excel else default_output_path(args.mode, ".xlsx")
        write_excel_output(rows, excel_path, args.mode, diff_rows=diff_rows)
        print(f"\nResults workbook: {excel_path}")

    json_path = Path(args.output_json) if args.output_json else default_output_path(args.mode, ".json")
    write_json_metrics(metrics, json_path)
    print(f"Metrics: {json_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
