from cardledger.parsers.csv_rows import ParsedRow, ParseError, ParseResult, parse_csv_rows
from cardledger.parsers.field_normalizer import canonical_field_name, normalize_row

__all__ = [
    "ParseError",
    "ParseResult",
    "ParsedRow",
    "canonical_field_name",
    "normalize_row",
    "parse_csv_rows",
]
