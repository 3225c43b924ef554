"""Filesystem-safe naming for hierarchy segments and stored filenames.

Two sanitizer variants exist. The lenient one keeps Unicode letters, digits,
``.``, ``_`` and ``-`` and is used for stored base names. The strict one keeps
ASCII alphanumerics only and is used for merchant/month directory segments.
Distinct inputs may sanitize to the same segment ("Acme & Co" and "Acme Co"
both become ``Acme-Co``); callers share the directory in that case.
"""

from __future__ import annotations

import re
import time
import unicodedata
from pathlib import PurePath
from typing import Optional

from docshelf.errors import InvalidYearError

_SEPARATORS = re.compile(r"[/\\]+")
_LENIENT_DISALLOWED = re.compile(r"[^\w.\-]+")
_STRICT_DISALLOWED = re.compile(r"[^A-Za-z0-9]+")
_DASH_RUN = re.compile(r"-{2,}")
_NON_DIGITS = re.compile(r"\D+")
_LEADING_DIGITS = re.compile(r"^\d+")
_EXTENSION_DISALLOWED = re.compile(r"[^a-z0-9]+")


def sanitize_segment(raw: Optional[str], fallback: str, *, strict: bool = False) -> str:
    """Return a path segment derived from ``raw``.

    Args:
        raw: Arbitrary user-supplied text.
        fallback: Value returned when ``raw`` is empty or sanitizes to nothing.
        strict: Restrict the result to ASCII letters, digits and ``-``.

    Returns:
        str: A segment free of path separators; ``fallback`` when nothing survives.
    """
    if not raw:
        return fallback

    if strict:
        decomposed = unicodedata.normalize("NFKD", raw)
        stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
        cleaned = _STRICT_DISALLOWED.sub("-", stripped).strip("-")
    else:
        composed = unicodedata.normalize("NFC", raw)
        cleaned = _SEPARATORS.sub("", composed)
        cleaned = _LENIENT_DISALLOWED.sub("-", cleaned)
        cleaned = _DASH_RUN.sub("-", cleaned).strip("-.")

    return cleaned or fallback


def sanitize_directory_name(raw: Optional[str], fallback: str) -> str:
    """Return the strict ASCII segment used for merchant and month directories."""
    return sanitize_segment(raw, fallback, strict=True)


def sanitize_filename(name: Optional[str], fallback: str = "document") -> str:
    """Sanitize a filename's stem and extension independently.

    The extension is lower-cased and reduced to ASCII alphanumerics.
    """
    if not name:
        return fallback
    path = PurePath(_SEPARATORS.sub("/", name)).name
    suffix = PurePath(path).suffix
    stem = path[: -len(suffix)] if suffix else path
    extension = _EXTENSION_DISALLOWED.sub("", suffix.lower())
    base = sanitize_segment(stem, fallback)
    return f"{base}.{extension}" if extension else base


def year_segment(year: object) -> str:
    """Return the digits of ``year`` as a directory segment.

    Raises:
        InvalidYearError: If ``year`` contains no digits.
    """
    digits = _NON_DIGITS.sub("", "" if year is None else str(year))
    if not digits:
        raise InvalidYearError(f"Invalid year received for document storage: {year!r}")
    return digits


def mint_timestamp() -> str:
    """Return the current time in milliseconds since the epoch."""
    return str(time.time_ns() // 1_000_000)


def timestamp_prefix(stored_name: str) -> str:
    """Return the ingestion-timestamp prefix of a stored filename.

    The prefix is the text before the first ``-``; failing that, the leading
    run of digits; failing that, a freshly minted timestamp.
    """
    head, separator, _ = stored_name.partition("-")
    if separator and head:
        return head
    match = _LEADING_DIGITS.match(stored_name)
    if match:
        return match.group(0)
    return mint_timestamp()


def relocated_filename(stored_name: str, year: object, merchant_name: str, month: str) -> str:
    """Compose ``<prefix>-<merchant>-<month>-<year><ext>`` for a relocated file."""
    extension = PurePath(stored_name).suffix
    return "-".join(
        (
            timestamp_prefix(stored_name),
            sanitize_directory_name(merchant_name, "merchant"),
            sanitize_directory_name(month, "month"),
            year_segment(year),
        )
    ) + extension


__all__ = [
    "sanitize_segment",
    "sanitize_directory_name",
    "sanitize_filename",
    "year_segment",
    "mint_timestamp",
    "timestamp_prefix",
    "relocated_filename",
]
