"""
The versioned snapshot handed to the external loader, plus the run report.
"""

from datetime import datetime, timezone
from typing import ClassVar, Dict, List, Tuple

from pydantic import BaseModel, Field

from .entities import (
    Category, Location, Order, OrderItem, Payment, Product, ProductAlias, ProductVariation,
)

SCHEMA_VERSION = "1.0.0"

# Foreign-key safe persistence order
ENTITY_COLLECTIONS = (
    "locations", "categories", "products", "product_variations",
    "product_aliases", "orders", "order_items", "payments",
)


class RecordStats(BaseModel):
    """Per-platform counters of what was kept and what was dropped, and why."""
    source_orders: int = 0
    orders: int = 0
    items: int = 0
    payments: int = 0
    unknown_location_orders: int = 0
    voided_orders: int = 0
    voided_items: int = 0
    itemless_orders: int = 0
    unresolved_products: int = 0
    unresolved_kept_items: int = 0
    refunded_payments: int = 0
    unresolved_names: List[str] = Field(default_factory=list)

    DROP_FIELDS: ClassVar[Tuple[str, ...]] = (
        "unknown_location_orders", "voided_orders", "voided_items",
        "itemless_orders", "unresolved_products", "refunded_payments",
    )

    def record_unresolved(self, raw_name: str, kept: bool = False) -> None:
        if kept:
            self.unresolved_kept_items += 1
        else:
            self.unresolved_products += 1
        if raw_name not in self.unresolved_names:
            self.unresolved_names.append(raw_name)

    def merge(self, other: "RecordStats") -> "RecordStats":
        merged = RecordStats()
        for field in RecordStats.model_fields:
            if field == "unresolved_names":
                continue
            setattr(merged, field, getattr(self, field) + getattr(other, field))
        merged.unresolved_names = self.unresolved_names + [
            n for n in other.unresolved_names if n not in self.unresolved_names
        ]
        return merged


class NormalizedData(BaseModel):
    """One collection per canonical entity, in foreign-key order."""
    locations: List[Location] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    products: List[Product] = Field(default_factory=list)
    product_variations: List[ProductVariation] = Field(default_factory=list)
    product_aliases: List[ProductAlias] = Field(default_factory=list)
    orders: List[Order] = Field(default_factory=list)
    order_items: List[OrderItem] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)

    def entity_counts(self) -> Dict[str, int]:
        return {name: len(getattr(self, name)) for name in ENTITY_COLLECTIONS}


class RunReport(BaseModel):
    """
    What an operator reads after a run: row counts per entity and, per
    platform, how many records were dropped or left unresolved.
    """
    entity_counts: Dict[str, int] = Field(default_factory=dict)
    platform_stats: Dict[str, RecordStats] = Field(default_factory=dict)
    failed_platforms: Dict[str, str] = Field(default_factory=dict)

    @property
    def totals(self) -> RecordStats:
        total = RecordStats()
        for stats in self.platform_stats.values():
            total = total.merge(stats)
        return total

    def summary_lines(self) -> List[str]:
        lines = ["Rows generated:"]
        for name in ENTITY_COLLECTIONS:
            lines.append(f"  {name:<20} {self.entity_counts.get(name, 0):>6}")

        lines.append("Dropped / unresolved:")
        for platform, stats in self.platform_stats.items():
            dropped = ", ".join(
                f"{field.replace('_', ' ')}={getattr(stats, field)}"
                for field in RecordStats.DROP_FIELDS if getattr(stats, field)
            )
            lines.append(
                f"  {platform:<9} {stats.orders}/{stats.source_orders} orders kept"
                + (f" ({dropped})" if dropped else "")
            )
            if stats.unresolved_names:
                sample = ", ".join(stats.unresolved_names[:5])
                more = f" (+{len(stats.unresolved_names) - 5} more)" if len(stats.unresolved_names) > 5 else ""
                lines.append(f"    unresolved names: {sample}{more}")

        for platform, error in self.failed_platforms.items():
            lines.append(f"  {platform:<9} FAILED: {error}")
        return lines


class Snapshot(BaseModel):
    """Complete, immutable output of one preprocessing run."""
    version: str = SCHEMA_VERSION
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    normalized: NormalizedData
    report: RunReport = Field(default_factory=RunReport)

    model_config = {"frozen": True}
