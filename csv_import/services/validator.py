from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence

from ..models.column_mapping import ColumnMapping, TransformationKind
from ..models.validation_error import ValidationError, ValidationResult

"""Record projection, required-field validation and duplicate detection.

Projection is a two-phase pipeline:
1. map + transform: for every bound mapping read the raw value by header
   (missing -> "") and apply the field's transformation
2. default fill: every field still empty takes its default, if one exists

When several headers bind the same field, the first binding (header order)
that yields a non-empty value wins.

Format checks (email, phone) are advisory: they produce warnings next to the
duplicate flags and never block the workflow.

Validation never mutates its inputs; the caller decides whether to advance
the workflow.
"""

__all__ = [
    "FORMAT_CHECKS",
    "is_valid_email",
    "is_valid_phone",
    "project_row",
    "project_records",
    "validate",
]

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# E.164: 先頭 + 任意, 最大 15 桁
_PHONE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")


def is_valid_email(value: str) -> bool:
    return _EMAIL_RE.match(value) is not None


def is_valid_phone(value: str) -> bool:
    return _PHONE_RE.match(value) is not None


FORMAT_CHECKS = {
    "email": (is_valid_email, "is not a valid email address"),
    "phone": (is_valid_phone, "is not a valid phone number"),
}


def project_row(
    row: Mapping[str, str],
    mappings: Sequence[ColumnMapping],
    transformations: Mapping[str, TransformationKind],
    defaults: Mapping[str, str],
) -> dict[str, str]:
    """Build the projected record of one source row.

    The result only contains mapped fields and fields with a default.
    """
    record: dict[str, str] = {}
    for mapping in mappings:
        field = mapping.target_field
        if field is None:
            continue
        value = row.get(mapping.source_header)
        value = "" if value is None else str(value)
        kind = transformations.get(field)
        if kind is not None:
            value = kind.apply(value)
        if not record.get(field):
            record[field] = value

    for field, default in defaults.items():
        if not record.get(field):
            record[field] = default
    return record


def project_records(
    rows: Iterable[Mapping[str, str]],
    mappings: Sequence[ColumnMapping],
    transformations: Mapping[str, TransformationKind],
    defaults: Mapping[str, str],
) -> list[dict[str, str]]:
    return [project_row(r, mappings, transformations, defaults) for r in rows]


def validate(
    rows: Sequence[Mapping[str, str]],
    mappings: Sequence[ColumnMapping],
    transformations: Mapping[str, TransformationKind],
    defaults: Mapping[str, str],
    required_fields: Iterable[str],
    *,
    identifying_field: str | None = None,
    field_formats: Mapping[str, str] | None = None,
) -> ValidationResult:
    """Validate every row and flag likely duplicates.

    Parameters
    ----------
    rows: source rows (header -> raw string)
    mappings: current header bindings
    transformations: field -> transformation kind
    defaults: field -> default value
    required_fields: fields that must be non-empty after projection
        (error order follows this iteration order)
    identifying_field: duplicate key, compared case-insensitively. ``None``
        disables detection; rows with an empty key are never duplicates.
    field_formats: field -> format kind ("email" | "phone"); non-empty values
        failing the check are reported as warnings

    Returns
    -------
    ValidationResult with every (row, field) error, the duplicate row set and
    the format warnings.
    """
    required = list(required_fields)
    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []
    formats = dict(field_formats or {})
    duplicates: set[int] = set()
    first_seen: dict[str, int] = {}

    for row_index, row in enumerate(rows):
        record = project_row(row, mappings, transformations, defaults)

        for field in required:
            if not record.get(field):
                errors.append(ValidationError.required(row_index, field))

        for field, kind in formats.items():
            value = record.get(field, "")
            check, message = FORMAT_CHECKS[kind]
            if value and not check(value):
                warnings.append(ValidationError(row_index, field, f"{field} {message}"))

        if identifying_field is None:
            continue
        key = record.get(identifying_field, "").lower()
        if not key:
            continue
        original = first_seen.get(key)
        if original is None:
            first_seen[key] = row_index
        else:
            duplicates.add(original)
            duplicates.add(row_index)

    logger.debug(
        f"validated rows={len(rows)} errors={len(errors)} duplicates={len(duplicates)}"
    )
    return ValidationResult(errors=errors, duplicates=frozenset(duplicates), warnings=warnings)
