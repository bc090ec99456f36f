from __future__ import annotations

import pytest

from csv_import.models.column_mapping import ColumnMapping, TransformationKind
from csv_import.models.validation_error import ValidationError
from csv_import.services.validator import (
    is_valid_email,
    is_valid_phone,
    project_records,
    project_row,
    validate,
)

MAPPINGS = [
    ColumnMapping("name", "FullName"),
    ColumnMapping("phone", "Contact"),
    ColumnMapping("mail", "Email"),
    ColumnMapping("ignored", None),
]
REQUIRED = ["FullName", "Contact"]


def _row(name="Alice", phone="555", mail="a@x.com") -> dict[str, str]:
    return {"name": name, "phone": phone, "mail": mail, "ignored": "zzz"}


def test_project_row_only_mapped_fields():
    record = project_row(_row(), MAPPINGS, {}, {})
    assert record == {"FullName": "Alice", "Contact": "555", "Email": "a@x.com"}


def test_project_row_missing_header_reads_as_empty():
    record = project_row({"name": "Alice"}, MAPPINGS, {}, {})
    assert record == {"FullName": "Alice", "Contact": "", "Email": ""}


def test_project_row_applies_transformations():
    transforms = {
        "FullName": TransformationKind.UPPERCASE,
        "Email": TransformationKind.LOWERCASE,
        "Contact": TransformationKind.TRIM,
    }
    record = project_row(_row(name="alice", phone="  555  ", mail="A@X.COM"), MAPPINGS, transforms, {})
    assert record == {"FullName": "ALICE", "Contact": "555", "Email": "a@x.com"}


def test_defaults_fill_after_transformation():
    # trim で空になった値も default で補完される (変換 -> 補完 の順)
    transforms = {"Contact": TransformationKind.TRIM}
    defaults = {"Contact": "000", "Country": "Japan"}
    record = project_row(_row(phone="   "), MAPPINGS, transforms, defaults)
    assert record["Contact"] == "000"
    assert record["Country"] == "Japan"


def test_defaults_do_not_override_values():
    record = project_row(_row(), MAPPINGS, {}, {"FullName": "Unknown"})
    assert record["FullName"] == "Alice"


def test_defaults_are_not_transformed():
    transforms = {"FullName": TransformationKind.UPPERCASE}
    record = project_row(_row(name=""), MAPPINGS, transforms, {"FullName": "unknown"})
    assert record["FullName"] == "unknown"


def test_first_non_empty_binding_wins_for_duplicate_fields():
    mappings = [
        ColumnMapping("phone", "Contact"),
        ColumnMapping("mobile", "Contact"),
    ]
    assert project_row({"phone": "", "mobile": "999"}, mappings, {}, {}) == {"Contact": "999"}
    assert project_row({"phone": "111", "mobile": "999"}, mappings, {}, {}) == {"Contact": "111"}


def test_validate_all_required_present():
    rows = [_row(), _row(name="Bob", mail="b@x.com")]
    result = validate(rows, MAPPINGS, {}, {}, REQUIRED, identifying_field="Email")
    assert result.errors == []
    assert result.is_valid


def test_validate_missing_required_contact():
    rows = [_row(), _row(phone=""), _row(mail="c@x.com")]
    result = validate(rows, MAPPINGS, {}, {}, REQUIRED)
    assert result.errors == [ValidationError(1, "Contact", "Contact is required")]


def test_validate_collects_every_error():
    rows = [_row(name="", phone=""), _row(name="")]
    result = validate(rows, MAPPINGS, {}, {}, REQUIRED)
    assert [(e.row_index, e.target_field) for e in result.errors] == [
        (0, "FullName"),
        (0, "Contact"),
        (1, "FullName"),
    ]
    assert result.errors_for_row(0)[0].message == "FullName is required"


def test_validate_unmapped_required_field_errors_every_row():
    mappings = [ColumnMapping("name", "FullName")]
    result = validate([_row(), _row()], mappings, {}, {}, REQUIRED)
    assert [e.row_index for e in result.errors] == [0, 1]


def test_validate_default_satisfies_required():
    mappings = [ColumnMapping("name", "FullName")]
    result = validate([_row()], mappings, {}, {"Contact": "n/a"}, REQUIRED)
    assert result.is_valid


def test_validate_empty_default_does_not_satisfy_required():
    mappings = [ColumnMapping("name", "FullName")]
    result = validate([_row()], mappings, {}, {"Contact": ""}, REQUIRED)
    assert len(result.errors) == 1


def test_duplicate_required_binding_counts_as_satisfied():
    mappings = MAPPINGS + [ColumnMapping("alt_phone", "Contact")]
    rows = [{"name": "A", "phone": "", "alt_phone": "123"}]
    result = validate(rows, mappings, {}, {}, REQUIRED)
    assert result.is_valid


def test_duplicates_case_insensitive_and_empty_ignored():
    rows = [_row(mail="a@x.com"), _row(mail="A@X.COM"), _row(mail=""), _row(mail="")]
    result = validate(rows, MAPPINGS, {}, {}, REQUIRED, identifying_field="Email")
    assert result.duplicates == frozenset({0, 1})
    # duplicates are advisory
    assert result.is_valid


def test_duplicates_include_first_seen_and_every_repeat():
    rows = [_row(mail="a@x.com"), _row(mail="b@x.com"), _row(mail="a@x.com"), _row(mail="a@x.com")]
    result = validate(rows, MAPPINGS, {}, {}, REQUIRED, identifying_field="Email")
    assert result.duplicates == frozenset({0, 2, 3})


def test_duplicate_detection_disabled_without_identifying_field():
    rows = [_row(), _row()]
    result = validate(rows, MAPPINGS, {}, {}, REQUIRED, identifying_field=None)
    assert result.duplicates == frozenset()


def test_duplicate_detection_on_unmapped_identifying_field():
    mappings = [ColumnMapping("name", "FullName"), ColumnMapping("phone", "Contact")]
    result = validate([_row(), _row()], mappings, {}, {}, REQUIRED, identifying_field="Email")
    assert result.duplicates == frozenset()


def test_validate_does_not_mutate_inputs():
    rows = [_row(phone="")]
    defaults = {"Country": "Japan"}
    snapshot = ([dict(r) for r in rows], dict(defaults), list(MAPPINGS))
    validate(rows, MAPPINGS, {}, defaults, REQUIRED, identifying_field="Email")
    assert (rows, defaults, MAPPINGS) == snapshot


def test_project_records_covers_all_rows():
    rows = [_row(name=str(i)) for i in range(5)]
    records = project_records(rows, MAPPINGS, {}, {})
    assert [r["FullName"] for r in records] == ["0", "1", "2", "3", "4"]


@pytest.mark.parametrize("value,expected", [
    ("a@x.com", True),
    ("first.last@mail.example.org", True),
    ("a@x", False),
    ("a x@y.com", False),
    ("not-an-email", False),
])
def test_is_valid_email(value, expected):
    assert is_valid_email(value) is expected


@pytest.mark.parametrize("value,expected", [
    ("+919876543210", True),
    ("5550100", True),
    ("555-0100", False),
    ("0123456", False),
    ("+1234567890123456", False),
])
def test_is_valid_phone(value, expected):
    assert is_valid_phone(value) is expected


def test_format_warnings_do_not_block():
    rows = [_row(mail="bad", phone="+15550100"), _row(mail="", phone="555 0100")]
    result = validate(
        rows, MAPPINGS, {}, {}, REQUIRED,
        field_formats={"Email": "email", "Contact": "phone"},
    )
    assert result.is_valid
    # 空値は形式チェック対象外
    assert result.warnings == [
        ValidationError(0, "Email", "Email is not a valid email address"),
        ValidationError(1, "Contact", "Contact is not a valid phone number"),
    ]


def test_no_format_checks_by_default():
    result = validate([_row(mail="bad")], MAPPINGS, {}, {}, REQUIRED)
    assert result.warnings == []
