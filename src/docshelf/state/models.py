"""Document metadata models persisted by the archive store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, get_args
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

Month = Literal[
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

MONTHS: tuple[str, ...] = get_args(Month)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Tag(BaseModel):
    """A priced line item attached to a document.

    Attributes:
        name: Non-empty label.
        price: Non-negative amount.
    """

    name: str = Field(min_length=1)
    price: float = Field(ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class DocumentMetadata(BaseModel):
    """User-editable metadata shared by every file of one upload.

    Attributes:
        year: Archive year.
        merchant_name: Merchant the document belongs to.
        month: English month name.
        tags: Ordered line items; replaced wholesale on edit.
        notes: Optional free text.
    """

    year: int = Field(ge=1900, le=9999)
    merchant_name: str = Field(min_length=1, max_length=200)
    month: Month
    tags: List[Tag] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("merchant_name", "notes", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class DocumentRecord(DocumentMetadata):
    """A stored document and the file backing it.

    ``storage_path`` is relative to the storage root and always ends with
    ``<year>/<merchant>/<month>/<stored_name>``.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    original_name: str = Field(min_length=1)
    stored_name: str = Field(min_length=1)
    storage_path: str = Field(min_length=1)
    mime_type: str
    size: int = Field(ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("original_name", mode="before")
    @classmethod
    def _strip_original(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class ArchiveState(BaseModel):
    """Aggregate metadata for an archive root."""

    root: str
    documents: Dict[str, DocumentRecord] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


__all__ = [
    "Month",
    "MONTHS",
    "Tag",
    "DocumentMetadata",
    "DocumentRecord",
    "ArchiveState",
]
