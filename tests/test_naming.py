"""Tests for segment sanitizing and stored filename composition."""

from __future__ import annotations

import pytest

from docshelf.errors import InvalidYearError
from docshelf.organization.naming import (
    relocated_filename,
    sanitize_directory_name,
    sanitize_filename,
    sanitize_segment,
    timestamp_prefix,
    year_segment,
)

SAMPLES = [
    "Acme Corp",
    "Café Déjà Vu",
    "  leading and trailing  ",
    "../../etc/passwd",
    "a\\b/c",
    "Ünïcödé & Co.",
    "---",
    "",
]


def test_directory_names_keep_ascii_alphanumerics() -> None:
    assert sanitize_directory_name("Acme Corp", "merchant") == "Acme-Corp"
    assert sanitize_directory_name("Café Déjà Vu", "merchant") == "Cafe-Deja-Vu"
    assert sanitize_directory_name("Acme & Co.", "merchant") == "Acme-Co"


@pytest.mark.parametrize("raw", ["", None, "   ", "///", "&&&"])
def test_directory_names_fall_back_when_nothing_survives(raw: str | None) -> None:
    assert sanitize_directory_name(raw, "merchant") == "merchant"


@pytest.mark.parametrize("strict", [True, False])
def test_sanitizing_is_idempotent_and_separator_free(strict: bool) -> None:
    for raw in SAMPLES:
        once = sanitize_segment(raw, "fallback", strict=strict)
        assert sanitize_segment(once, "fallback", strict=strict) == once
        assert once
        assert "/" not in once and "\\" not in once
        assert once not in {".", ".."}


def test_lenient_segments_keep_unicode_letters() -> None:
    assert sanitize_segment("Über Straße", "x") == "Über-Straße"
    assert sanitize_segment("../etc/passwd", "x") == "etcpasswd"


def test_sanitize_filename_lowercases_extension() -> None:
    assert sanitize_filename("My Receipt.JPG") == "My-Receipt.jpg"
    assert sanitize_filename("nested/dir/scan.pdf") == "scan.pdf"
    assert sanitize_filename("noext") == "noext"
    assert sanitize_filename("") == "document"


def test_year_segment_keeps_digits_only() -> None:
    assert year_segment(2024) == "2024"
    assert year_segment("20x24") == "2024"


@pytest.mark.parametrize("year", [None, "", "abc"])
def test_year_segment_rejects_years_without_digits(year: object) -> None:
    with pytest.raises(InvalidYearError):
        year_segment(year)


def test_timestamp_prefix_prefers_text_before_first_dash() -> None:
    assert timestamp_prefix("1700000000000-receipt.pdf") == "1700000000000"
    assert timestamp_prefix("123abc.pdf") == "123"
    assert timestamp_prefix("-receipt.pdf").isdigit()


def test_relocated_filename_composes_hierarchy_parts() -> None:
    assert (
        relocated_filename("1700000000000-receipt.pdf", 2024, "Acme Corp", "March")
        == "1700000000000-Acme-Corp-March-2024.pdf"
    )
    assert relocated_filename("42-scan", 2023, "Bob's", "May") == "42-Bob-s-May-2023"
