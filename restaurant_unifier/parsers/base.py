"""
Shared mapper plumbing: the read-only context every mapper receives, the
result each one returns, and the line-item resolution they all use.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Mapping, Optional

from restaurant_unifier.config.settings import ResolutionPolicy
from restaurant_unifier.errors import UnresolvedRecordError
from restaurant_unifier.matching.canonical import CanonicalProductResolver
from restaurant_unifier.matching.engine import MatchingConfig
from restaurant_unifier.models.entities import Order, OrderItem, Payment, Product, ProductAlias, SourcePlatform
from restaurant_unifier.models.snapshot import RecordStats
from restaurant_unifier.preprocessing.catalog import UnifiedCatalog
from restaurant_unifier.utils.logging_config import logger


@dataclass(frozen=True)
class MapperContext:
    """Everything a mapper reads. Nothing in here is mutated during a run."""
    location_map: Mapping[str, str]
    catalog: UnifiedCatalog
    matching: MatchingConfig
    resolver: CanonicalProductResolver
    policy: ResolutionPolicy = ResolutionPolicy.DROP

    @classmethod
    def build(
        cls,
        location_map: Mapping[str, str],
        catalog: UnifiedCatalog,
        matching: MatchingConfig,
        policy: ResolutionPolicy = ResolutionPolicy.DROP,
    ) -> "MapperContext":
        resolver = CanonicalProductResolver(catalog.products, matching.patterns)
        return cls(dict(location_map), catalog, matching, resolver, policy)


class AliasBatch:
    """
    Aliases registered by one mapper, keyed by (case-folded raw name, source).

    The first registration of a key wins; later ones are ignored.
    """

    def __init__(self):
        self._aliases: Dict[tuple, ProductAlias] = {}

    @staticmethod
    def key(raw_name: str, source: SourcePlatform) -> tuple:
        return raw_name.lower(), source

    def add(self, product_id: str, raw_name: str, source: SourcePlatform) -> None:
        key = self.key(raw_name, source)
        if key not in self._aliases:
            self._aliases[key] = ProductAlias(product_id=product_id, raw_name=raw_name, source=source)

    def extend(self, other: "AliasBatch") -> None:
        for key, alias in other._aliases.items():
            self._aliases.setdefault(key, alias)

    def __contains__(self, key) -> bool:
        return key in self._aliases

    def __iter__(self):
        return iter(self._aliases.values())

    def __len__(self) -> int:
        return len(self._aliases)


@dataclass
class MapperResult:
    platform: SourcePlatform
    orders: List[Order] = field(default_factory=list)
    items: List[OrderItem] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    aliases: AliasBatch = field(default_factory=AliasBatch)
    stats: RecordStats = field(default_factory=RecordStats)

    def add_order(self, order: Order, items: List[OrderItem], payments: List[Payment]) -> None:
        self.orders.append(order)
        self.items.extend(items)
        self.payments.extend(payments)
        self.stats.orders += 1
        self.stats.items += len(items)
        self.stats.payments += len(payments)


@dataclass(frozen=True)
class Resolution:
    product: Product
    variation_id: Optional[str]
    matched_by: str


def resolve_line_item(raw_name: str, context: MapperContext) -> Optional[Resolution]:
    """
    Resolves a raw line-item name to a catalog product and, when the name
    carries a qualifier the catalog knows, to one of its variations.
    """
    catalog = context.catalog

    group = context.matching.match_product_to_group(raw_name)
    if group:
        product = catalog.product_by_name(group.canonical_name)
        if product is not None:
            variation_id = catalog.variation_index.lookup(product.id, group.variation_name)
            if variation_id is None:
                variation_id = catalog.variation_index.lookup(
                    product.id, context.matching.extract_variation(raw_name).variation
                )
            return Resolution(product, variation_id, group.matched_by)

    product = context.resolver.resolve(raw_name)
    if product is None:
        return None

    variation = context.matching.extract_variation(raw_name).variation
    return Resolution(product, catalog.variation_index.lookup(product.id, variation), 'canonical')


def handle_unresolved(
    raw_name: str,
    platform: SourcePlatform,
    context: MapperContext,
    stats: RecordStats,
) -> bool:
    """
    Applies the resolution policy to an item no product matched.

    Returns:
        True if the item should be kept with a null product.

    Raises:
        UnresolvedRecordError: Under the ABORT policy.
    """
    if context.policy == ResolutionPolicy.ABORT:
        raise UnresolvedRecordError(platform.value, "unresolved product", raw_name)

    keep = context.policy == ResolutionPolicy.KEEP
    stats.record_unresolved(raw_name, kept=keep)
    logger.warning(
        f"{platform.value}: no product for '{raw_name}'"
        + (" (kept without product)" if keep else " (item dropped)")
    )
    return keep


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded half away from zero, as prices are on receipts."""
    return int((Decimal(numerator) / Decimal(denominator)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def warn_unknown_location(platform: SourcePlatform, order_id: str, location_ref: str, stats: RecordStats) -> None:
    stats.unknown_location_orders += 1
    logger.warning(f"{platform.value}: order {order_id} references unknown location '{location_ref}', dropped")


def warn_itemless(platform: SourcePlatform, order_id: str, stats: RecordStats) -> None:
    stats.itemless_orders += 1
    logger.warning(f"{platform.value}: order {order_id} has no resolvable items, dropped")
