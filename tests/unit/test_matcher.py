from __future__ import annotations

import pytest

from csv_import.models.field_catalog import DEFAULT_FIELDS
from csv_import.services.matcher import (
    DEFAULT_MATCH_THRESHOLD,
    MatchResult,
    match_field,
    normalize_name,
)


def test_normalize_name_strips_separators():
    assert normalize_name(" Full_Name (Primary) ") == "fullnameprimary"
    assert normalize_name("e-mail/addr.") == "emailaddr"
    assert normalize_name("") == ""


def test_match_is_deterministic():
    first = match_field("Phone Number", list(DEFAULT_FIELDS))
    for _ in range(5):
        assert match_field("Phone Number", list(DEFAULT_FIELDS)) == first


@pytest.mark.parametrize("candidates", [
    ["Email", "ZipCode", "FullName"],
    ["FullName", "ZipCode", "Email"],
])
def test_exact_normalized_match_is_full_confidence(candidates):
    result = match_field("zip_code", candidates)
    assert result == MatchResult(field="ZipCode", confidence=1.0)


def test_phone_number_maps_to_contact_via_synonym():
    result = match_field("Phone Number", ["Contact", "Email"])
    assert result.field == "Contact"
    assert result.confidence >= 0.75


def test_unrelated_header_is_unmapped():
    result = match_field("xyz123", ["Contact"])
    assert result.field is None
    assert result.confidence < 0.4


def test_containment_score_is_length_ratio():
    # "city" は "citycode" に含まれる: 4/8
    result = match_field("CityCode", ["City"], patterns={})
    assert result.field == "City"
    assert result.confidence == pytest.approx(0.5)


def test_synonym_scores():
    patterns = {"Contact": ("telephone",)}
    assert match_field("telephone", ["Contact"], patterns=patterns).confidence == pytest.approx(0.95)
    assert match_field("home telephone", ["Contact"], patterns=patterns).confidence == pytest.approx(0.85)
    assert match_field("tele", ["Contact"], patterns=patterns).confidence == pytest.approx(0.75)


def test_character_overlap_fallback():
    # "tacocn" shares every character of "contact" but no substring/synonym
    result = match_field("tacocn", ["Contact"], patterns={})
    assert result.field == "Contact"
    assert result.confidence == pytest.approx(0.7)


def test_ties_are_broken_by_candidate_order():
    patterns = {"A": ("foo",), "B": ("foo",)}
    assert match_field("foo", ["A", "B"], patterns=patterns).field == "A"
    assert match_field("foo", ["B", "A"], patterns=patterns).field == "B"


@pytest.mark.parametrize("header", ["", "   ", "___", "()-./"])
def test_empty_or_punctuation_header_never_fails(header):
    result = match_field(header, list(DEFAULT_FIELDS))
    assert result == MatchResult(field=None, confidence=0.0)


def test_no_candidates():
    assert match_field("Email", []) == MatchResult(field=None, confidence=0.0)


def test_threshold_is_exclusive():
    # 0.5 のスコアは threshold=0.5 では採用されない
    result = match_field("CityCode", ["City"], patterns={}, threshold=0.5)
    assert result.field is None
    assert result.confidence == pytest.approx(0.5)
    assert DEFAULT_MATCH_THRESHOLD == 0.4


def test_common_headers_against_default_catalog():
    fields = list(DEFAULT_FIELDS)
    assert match_field("Full Name", fields).field == "FullName"
    assert match_field("E-mail", fields).field == "Email"
    assert match_field("Mobile", fields).field == "Contact"
    assert match_field("Postal Code", fields).field == "ZipCode"
    assert match_field("University", fields).field == "SchoolOrCollegeName"
