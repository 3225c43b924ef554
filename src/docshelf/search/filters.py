"""Field-match filters over document records."""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field

from docshelf.state.models import DocumentRecord


class DocumentQuery(BaseModel):
    """Filters for listing documents.

    Attributes:
        name: Case-insensitive pattern matched against the original name,
            tag names, and merchant name. Invalid patterns match literally.
        price: Matches documents with a tag of exactly this price.
        year: Exact year.
        merchant: Case-insensitive exact merchant name.
        month: Case-insensitive exact month name.
        limit: Maximum number of results.
        skip: Number of results to skip.
    """

    name: Optional[str] = None
    price: Optional[float] = None
    year: Optional[int] = Field(default=None, ge=1900, le=9999)
    merchant: Optional[str] = None
    month: Optional[str] = None
    limit: int = Field(default=50, ge=1, le=100)
    skip: int = Field(default=0, ge=0)

    def matches(self, record: DocumentRecord) -> bool:
        """Return whether ``record`` satisfies every filter that is set."""
        if self.name:
            pattern = _compile(self.name)
            haystacks = [record.original_name, record.merchant_name]
            haystacks.extend(tag.name for tag in record.tags)
            if not any(pattern.search(text) for text in haystacks):
                return False
        if self.price is not None and not any(tag.price == self.price for tag in record.tags):
            return False
        if self.year is not None and record.year != self.year:
            return False
        if self.merchant and record.merchant_name.casefold() != self.merchant.strip().casefold():
            return False
        if self.month and record.month.casefold() != self.month.strip().casefold():
            return False
        return True


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(pattern), re.IGNORECASE)


__all__ = ["DocumentQuery"]
