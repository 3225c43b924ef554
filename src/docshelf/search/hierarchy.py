"""Year/merchant/month tree view over document records."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, List

from pydantic import BaseModel, Field

from docshelf.state.models import MONTHS, DocumentRecord

_MONTH_ORDER = {name: index for index, name in enumerate(MONTHS)}


class MonthNode(BaseModel):
    """Documents filed under one month."""

    name: str
    documents: List[DocumentRecord] = Field(default_factory=list)


class MerchantNode(BaseModel):
    """Months filed under one merchant."""

    name: str
    months: List[MonthNode] = Field(default_factory=list)


class YearNode(BaseModel):
    """Merchants filed under one year."""

    year: int
    merchants: List[MerchantNode] = Field(default_factory=list)


def build_hierarchy(records: Iterable[DocumentRecord]) -> list[YearNode]:
    """Group records into a year/merchant/month tree.

    Years are sorted newest first, merchants alphabetically, months in
    calendar order, and documents newest first. Records whose merchant name
    is blank are skipped.
    """
    tree: dict[int, dict[str, dict[str, list[DocumentRecord]]]] = defaultdict(
        lambda: defaultdict(lambda: defaultdict(list))
    )
    for record in records:
        merchant = record.merchant_name.strip()
        if not merchant:
            continue
        tree[record.year][merchant][record.month].append(record)

    return [
        YearNode(
            year=year,
            merchants=[
                MerchantNode(
                    name=merchant,
                    months=[
                        MonthNode(
                            name=month,
                            documents=sorted(
                                documents, key=lambda record: record.created_at, reverse=True
                            ),
                        )
                        for month, documents in sorted(
                            months.items(), key=lambda item: _MONTH_ORDER.get(item[0], 0)
                        )
                    ],
                )
                for merchant, months in sorted(
                    merchants.items(), key=lambda item: (item[0].casefold(), item[0])
                )
            ],
        )
        for year, merchants in sorted(tree.items(), reverse=True)
    ]


__all__ = ["MonthNode", "MerchantNode", "YearNode", "build_hierarchy"]
