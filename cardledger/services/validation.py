"""
Validation contract entry points.

Wraps the pydantic models in ``cardledger.models.card`` so callers get
either the validated model or the full list of violated rules, never an
exception. Both functions are pure.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from cardledger.models.card import Card, CategoryScheme, CsvRow, get_category_scheme
from cardledger.models.report import ValidationIssue

# pydantic error type -> rule name shown to callers
RULE_NAMES: dict[str, str] = {
    "missing": "required",
    "string_too_short": "minimum",
    "greater_than_equal": "minimum",
    "less_than_equal": "maximum",
    "enum": "enum",
    "finite_number": "type",
    "float_parsing": "type",
    "float_type": "type",
    "int_parsing": "type",
    "int_type": "type",
    "int_from_float": "type",
    "string_type": "type",
    "uuid_parsing": "type",
    "uuid_type": "type",
    "datetime_parsing": "type",
    "datetime_from_date_parsing": "type",
    "datetime_type": "type",
}


def issues_from_error(error: ValidationError) -> list[ValidationIssue]:
    """Flatten a pydantic ValidationError into field-level issues, in field order."""
    issues = []
    for detail in error.errors(include_url=False):
        path = ".".join(str(part) for part in detail["loc"]) or "(root)"
        issues.append(
            ValidationIssue(
                path=path,
                message=detail["msg"],
                rule=RULE_NAMES.get(detail["type"], detail["type"]),
            )
        )
    return issues


def _context(scheme: CategoryScheme | None) -> dict[str, CategoryScheme]:
    return {"scheme": scheme or get_category_scheme()}


def validate_card(
    candidate: Mapping[str, Any] | Card,
    scheme: CategoryScheme | None = None,
) -> Card | list[ValidationIssue]:
    """
    Validate a candidate against the Card contract.

    Accepts a mapping with public (camelCase) or attribute keys, or an
    existing Card, which is re-checked from its serialized form.
    """
    if isinstance(candidate, Card):
        candidate = candidate.model_dump(by_alias=True)
    try:
        return Card.model_validate(dict(candidate), context=_context(scheme))
    except ValidationError as e:
        return issues_from_error(e)


def validate_csv_row(
    candidate: Mapping[str, Any],
    scheme: CategoryScheme | None = None,
) -> CsvRow | list[ValidationIssue]:
    """
    Validate a normalized CSV row.

    Numeric strings are coerced before range checks; ``quantity`` defaults
    to 1 and ``category`` to the scheme default when absent or blank.
    """
    try:
        return CsvRow.model_validate(dict(candidate), context=_context(scheme))
    except ValidationError as e:
        return issues_from_error(e)


def format_issues(issues: list[ValidationIssue]) -> str:
    """Join issues into one row message: ``"<path>: <message>; ..."``."""
    return "; ".join(str(issue) for issue in issues)
