"""Listing and browsing helpers for archived documents."""

from .filters import DocumentQuery
from .hierarchy import MerchantNode, MonthNode, YearNode, build_hierarchy

__all__ = [
    "DocumentQuery",
    "MerchantNode",
    "MonthNode",
    "YearNode",
    "build_hierarchy",
]
