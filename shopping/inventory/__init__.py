"""Stock bookkeeping for catalog items, independent of transport and storage."""

from shopping.inventory.domain import CatalogItem, ItemFields, ItemStore, StockStatus, derive_status

__all__ = ["CatalogItem", "ItemFields", "ItemStore", "StockStatus", "derive_status"]
