"""
Grepsight Tabular Processors - CSV and spreadsheet cell locations.

Both locate the first cell containing the first capture and report its row
and column, the header of that column when the table has one, and a path:

    CSV:          data[0]["email"]            (data[0][1] without headers)
    Spreadsheet:  workbook["Sheet1"][0]["Email"]   plus cell_reference Sheet1!B2
"""

import csv
import io
import re

from .base import InsightProcessor, ProcessorOutcome, load_document, require_keyword, source_text

NUMERIC_RE = re.compile(r"^\d+(\.\d+)?$")
LABEL_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_ \-]*$")


def _is_numeric(value) -> bool:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return True
    return bool(NUMERIC_RE.match(str(value).strip()))


def _is_label(value) -> bool:
    return isinstance(value, str) and bool(LABEL_RE.match(value.strip()))


def detect_headers(rows) -> bool:
    """
    Guess whether the first row is a header row.

    Headers are assumed when some column is text in the first row and
    numeric in the second, or when every first-row cell is a distinct
    label-like name and the second row holds at least one non-label value
    (an email, a sentence, a date).
    """
    if len(rows) < 2:
        return False
    first, second = rows[0], rows[1]
    if len(first) != len(second):
        return False

    for a, b in zip(first, second):
        if a in (None, "") or b in (None, ""):
            continue
        if not _is_numeric(a) and _is_numeric(b):
            return True

    names = [str(a).strip() for a in first]
    if all(_is_label(a) for a in first) and len(set(names)) == len(names):
        return any(b not in (None, "") and not _is_label(b) for b in second)
    return False


def _find_in_row(row, keyword):
    for column, cell in enumerate(row):
        if cell not in (None, "") and keyword in str(cell):
            return column
    return None


def find_cell(rows, keyword, preferred_row=None):
    """
    (row_index, column_index) of the first cell containing keyword.

    preferred_row is searched first, then every row in order.
    """
    if preferred_row is not None and 0 <= preferred_row < len(rows):
        column = _find_in_row(rows[preferred_row], keyword)
        if column is not None:
            return preferred_row, column
    for row_index, row in enumerate(rows):
        column = _find_in_row(row, keyword)
        if column is not None:
            return row_index, column
    return None


def _row_data(headers, row):
    if headers:
        return dict(zip(headers, row))
    return list(row)


class CsvProcessor(InsightProcessor):
    label = "CSV"

    def extract_insights(self, unit, match):
        keyword = require_keyword(match)
        try:
            rows = unit.memo("csv.rows", lambda: self._parse(source_text(unit)))
        except csv.Error as e:
            return ProcessorOutcome.failed(f"Malformed CSV: {e}")
        if not rows:
            return ProcessorOutcome.failed("Empty CSV")

        has_headers = detect_headers(rows)
        headers = rows[0] if has_headers else None
        data = rows[1:] if has_headers else rows

        expected = max(match.line_number - (2 if has_headers else 1), 0)
        found = find_cell(data, keyword, expected)
        if found is None:
            return {"row_index": None, "column_index": None, "csv_path": None, "has_headers": has_headers}

        row_index, column_index = found
        column_name = headers[column_index] if headers and column_index < len(headers) else None
        if column_name is not None:
            path = f'data[{row_index}]["{column_name}"]'
        else:
            path = f"data[{row_index}][{column_index}]"

        return {
            "row_index": row_index,
            "column_name": column_name,
            "column_index": column_index,
            "csv_path": path,
            "row_data": _row_data(headers, data[row_index]),
            "has_headers": has_headers,
        }

    @staticmethod
    def _parse(text):
        return [row for row in csv.reader(io.StringIO(text), strict=True) if row]


def column_letter(number: int) -> str:
    """1-based column number to a spreadsheet column name (1 -> A, 27 -> AA)."""
    letters = ""
    while number > 0:
        number, remainder = divmod(number - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


class SpreadsheetProcessor(InsightProcessor):
    """
    Cell location in xlsx/xlsm workbooks.

    Sheets are searched in workbook order, rows top to bottom. Header
    detection runs per sheet.
    """

    label = "Excel"

    def __init__(self, extractor):
        self.extractor = extractor

    def extract_insights(self, unit, match):
        keyword = require_keyword(match)
        document = load_document(unit, self.extractor)

        for sheet_name, rows in document.sheets.items():
            has_headers = detect_headers(rows)
            headers = list(rows[0]) if has_headers else None
            data = rows[1:] if has_headers else rows

            found = find_cell(data, keyword)
            if found is None:
                continue

            row_index, column_index = found
            row_number = row_index + (2 if has_headers else 1)
            header = headers[column_index] if headers and column_index < len(headers) else None
            if header not in (None, ""):
                path = f'workbook["{sheet_name}"][{row_index}]["{header}"]'
            else:
                header = None
                path = f'workbook["{sheet_name}"][{row_index}][{column_index}]'

            return {
                "sheet_name": sheet_name,
                "row_index": row_index,
                "column_index": column_index,
                "column_header": header,
                "cell_reference": f"{sheet_name}!{column_letter(column_index + 1)}{row_number}",
                "excel_path": path,
                "row_data": _row_data(headers, data[row_index]),
                "has_headers": has_headers,
            }

        return {"sheet_name": None, "row_index": None, "column_index": None, "cell_reference": None}
