"""
CSV row parser.

Turns uploaded CSV text into ordered row records keyed by header. The first
non-empty line is the header; headers are trimmed and lower-cased here,
before alias normalization runs.

Structural problems (unbalanced quotes, rows whose field count differs from
the header's) are reported as ParseErrors and are fatal to the whole upload.
Blank lines, including lines of bare delimiters such as ",,,,,", are skipped
and do not consume a row index.
"""

import csv
from dataclasses import dataclass, field
from io import StringIO

from cardledger.config import ROW_NUMBER_OFFSET

BOM = "\ufeff"


def row_number(index: int) -> int:
    """User-facing row number for a 0-based data row index."""
    return index + ROW_NUMBER_OFFSET


@dataclass(frozen=True)
class ParsedRow:
    """One non-empty data row."""

    index: int
    """0-based position among non-empty data rows."""

    fields: dict[str, str]

    @property
    def row_number(self) -> int:
        return row_number(self.index)


@dataclass(frozen=True)
class ParseError:
    """A structural CSV problem."""

    row: int
    message: str


@dataclass
class ParseResult:
    headers: list[str] = field(default_factory=list)
    rows: list[ParsedRow] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_blank(values: list[str]) -> bool:
    return all(not value.strip() for value in values)


def parse_csv_rows(text: str) -> ParseResult:
    """
    Parse CSV text into header-keyed rows.

    Returns:
        ParseResult with rows in file order. If ``errors`` is non-empty the
        rows must not be used.
    """
    result = ParseResult()
    if text.startswith(BOM):
        text = text[len(BOM) :]

    reader = csv.reader(StringIO(text), strict=True)
    index = 0

    try:
        for values in reader:
            if _is_blank(values):
                continue

            if not result.headers:
                result.headers = [header.strip().lower() for header in values]
                continue

            expected = len(result.headers)
            if len(values) != expected:
                problem = "Too few fields" if len(values) < expected else "Too many fields"
                result.errors.append(
                    ParseError(
                        row=row_number(index),
                        message=f"{problem}: expected {expected} fields but parsed {len(values)}",
                    )
                )
            else:
                result.rows.append(ParsedRow(index=index, fields=dict(zip(result.headers, values))))
            index += 1
    except csv.Error as e:
        # The reader cannot resynchronize after a quoting error; stop here
        result.errors.append(ParseError(row=row_number(index), message=f"Malformed CSV: {e}"))

    if not result.headers and not result.errors:
        result.errors.append(ParseError(row=1, message="File is empty: expected a header row"))

    return result
