"""Tests for Levenshtein distance and normalized string similarity."""

import pytest

from reconciler.services.similarity import levenshtein_distance, string_similarity


@pytest.mark.parametrize(
    ("first", "second", "expected"),
    [
        ("", "", 0),
        ("abc", "", 3),
        ("", "abc", 3),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("Invoice 123", "Invoice 123", 0),
        ("Invoice 123", "Invoice 124", 1),
    ],
)
def test_levenshtein_distance(first, second, expected):
    assert levenshtein_distance(first, second) == expected


def test_levenshtein_distance_is_symmetric():
    assert levenshtein_distance("office supplies", "office supply") == levenshtein_distance(
        "office supply", "office supplies"
    )


def test_identical_strings_are_fully_similar():
    assert string_similarity("Invoice 123", "Invoice 123") == 1.0


def test_two_empty_strings_are_fully_similar():
    assert string_similarity("", "") == 1.0


def test_missing_descriptions_treated_as_empty():
    assert string_similarity(None, None) == 1.0
    assert string_similarity(None, "abc") == 0.0


def test_similarity_normalized_by_longer_string():
    # one edit over ten characters
    assert string_similarity("abcdefghij", "abcdefghix") == pytest.approx(0.9)
    assert string_similarity("abcdefghij", "abcdefxxxx") == pytest.approx(0.6)


def test_similarity_is_case_sensitive():
    assert string_similarity("ABC", "abc") == 0.0
