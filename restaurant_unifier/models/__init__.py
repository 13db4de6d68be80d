"""
Data models for the unified restaurant dataset and its source exports.
"""

from .entities import (
    Address, Category, Channel, Location, Modifier, Order, OrderItem, OrderType, Payment,
    PaymentType, Product, ProductAlias, ProductVariation, SourcePlatform,
)
from .snapshot import ENTITY_COLLECTIONS, SCHEMA_VERSION, NormalizedData, RecordStats, RunReport, Snapshot
from .sources import DoorDashData, SourceData, SquareData, ToastData

__all__ = [
    "Address", "Category", "Channel", "Location", "Modifier", "Order", "OrderItem", "OrderType",
    "Payment", "PaymentType", "Product", "ProductAlias", "ProductVariation", "SourcePlatform",
    "ENTITY_COLLECTIONS", "SCHEMA_VERSION", "NormalizedData", "RecordStats", "RunReport", "Snapshot",
    "DoorDashData", "SourceData", "SquareData", "ToastData",
]
