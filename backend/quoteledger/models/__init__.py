"""Database models."""

from .quote import Quote, QuoteItem, ITEM_FIELDS, item_to_dict
from .version import QuoteVersion

__all__ = ["Quote", "QuoteItem", "QuoteVersion", "ITEM_FIELDS", "item_to_dict"]
