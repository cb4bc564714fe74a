"""
Pydantic 스키마 패키지
"""

from .offer import LineItem, OfferSheet, build_line_items, build_offer_sheet
from .inquiry import BuyerInquiry

__all__ = [
    "LineItem",
    "OfferSheet",
    "build_line_items",
    "build_offer_sheet",
    "BuyerInquiry",
]
