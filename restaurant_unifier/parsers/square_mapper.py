"""
Maps Square orders and payments onto canonical records.

Square line items point at catalog variation ids, so products are found
through the catalog's source-id map first and by name only as a fallback.
Square reports only total, tax and tip; the subtotal is derived.
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from restaurant_unifier.errors import SourceParseError
from restaurant_unifier.models.entities import Modifier, Order, OrderItem, Payment, PaymentType, SourcePlatform, new_id
from restaurant_unifier.models.sources import SquareData, SquareLineItem, SquareOrder, SquarePayment
from restaurant_unifier.parsers.base import (
    MapperContext, MapperResult, handle_unresolved, resolve_line_item, round_half_up,
    warn_itemless, warn_unknown_location,
)
from restaurant_unifier.parsers.enumerations import (
    map_square_channel, map_square_order_type, normalize_card_brand, parse_timestamp,
)
from restaurant_unifier.utils.logging_config import logger

PLATFORM = SourcePlatform.SQUARE
REGULAR_VARIATION = 'Regular'
REFUNDED = 'REFUNDED'


@dataclass(frozen=True)
class CatalogEntry:
    item_id: str
    item_name: str
    variation_name: str

    @property
    def display_name(self) -> str:
        if self.variation_name.lower() == REGULAR_VARIATION.lower():
            return self.item_name
        return f"{self.item_name} - {self.variation_name}"


def index_catalog_variations(data: SquareData) -> Dict[str, CatalogEntry]:
    """Variation id -> owning item and variation names."""
    entries: Dict[str, CatalogEntry] = {}
    for obj in data.catalog.objects:
        if obj.type != 'ITEM' or obj.item_data is None:
            continue
        for variation in obj.item_data.variations:
            entries[variation.id] = CatalogEntry(obj.id, obj.item_data.name, variation.item_variation_data.name)
    return entries


def parse_quantity(raw: str) -> int:
    """Square sends quantities as decimal strings ("2", "1.000")."""
    try:
        return int(Decimal(raw))
    except (InvalidOperation, ValueError) as e:
        raise SourceParseError(PLATFORM.value, f"Unreadable line item quantity {raw!r}") from e


def is_fully_refunded(payment: SquarePayment) -> bool:
    if payment.status == REFUNDED:
        return True
    refunded = payment.refunded_money.amount if payment.refunded_money else 0
    return refunded > 0 and refunded >= payment.amount_money.amount


def _resolve_from_catalog(entry: CatalogEntry, context: MapperContext):
    catalog = context.catalog
    product_id = catalog.product_map.get(entry.item_id)
    if product_id is None:
        return None, None
    variation_id = None
    if entry.variation_name.lower() != REGULAR_VARIATION.lower():
        extracted = context.matching.extract_variation(entry.variation_name)
        variation_id = catalog.variation_index.lookup(product_id, extracted.variation or entry.variation_name)
    return product_id, variation_id


def _map_line_item(
    line_item: SquareLineItem,
    order_id: str,
    catalog_entries: Dict[str, CatalogEntry],
    context: MapperContext,
    result: MapperResult,
) -> Optional[OrderItem]:
    quantity = parse_quantity(line_item.quantity)
    if quantity < 1:
        result.stats.voided_items += 1
        return None

    entry = catalog_entries.get(line_item.catalog_object_id) if line_item.catalog_object_id else None
    raw_name = entry.display_name if entry else (line_item.name or line_item.catalog_object_id or '')

    product_id, variation_id = _resolve_from_catalog(entry, context) if entry else (None, None)
    if product_id is None and raw_name:
        resolution = resolve_line_item(raw_name, context)
        if resolution is not None:
            product_id, variation_id = resolution.product.id, resolution.variation_id

    if product_id is None and not handle_unresolved(raw_name, PLATFORM, context, result.stats):
        return None
    if product_id is not None:
        result.aliases.add(product_id, raw_name, PLATFORM)

    total = line_item.total_money.amount
    return OrderItem(
        order_id=order_id,
        product_id=product_id,
        variation_id=variation_id,
        original_name=raw_name,
        quantity=quantity,
        unit_price_cents=round_half_up(total, quantity),
        total_price_cents=total,
        tax_cents=line_item.total_tax_money.amount if line_item.total_tax_money else None,
        modifiers=[
            Modifier(
                name=m.name or m.modifier_id,
                price_cents=m.total_price_money.amount if m.total_price_money else 0,
            )
            for m in line_item.applied_modifiers
        ],
        special_instructions=line_item.note,
    )


def _map_payment(payment: SquarePayment, order_id: str) -> Payment:
    payment_type = PaymentType.OTHER.value
    card_brand = last_four = None

    if payment.source_type == 'CARD' and payment.card_details:
        payment_type = PaymentType.CREDIT.value
        card_brand = normalize_card_brand(payment.card_details.card.card_brand)
        last_four = payment.card_details.card.last_4
    elif payment.source_type == 'CASH':
        payment_type = PaymentType.CASH.value
    elif payment.source_type == 'WALLET' and payment.wallet_details:
        payment_type = PaymentType.WALLET.value
        card_brand = normalize_card_brand(payment.wallet_details.brand)

    fees = [fee.amount_money.amount for fee in payment.processing_fee]
    return Payment(
        order_id=order_id,
        source_payment_id=payment.id,
        payment_type=payment_type,
        card_brand=card_brand,
        last_four=last_four,
        amount_cents=payment.amount_money.amount,
        tip_cents=payment.tip_money.amount,
        processing_fee_cents=sum(fees) if fees else None,
        created_at=parse_timestamp(payment.created_at, PLATFORM.value),
    )


def _map_order(
    source: SquareOrder,
    catalog_entries: Dict[str, CatalogEntry],
    payments_by_order: Dict[str, List[SquarePayment]],
    context: MapperContext,
    result: MapperResult,
) -> None:
    stats = result.stats
    location_id = context.location_map.get(source.location_id)
    if not location_id:
        warn_unknown_location(PLATFORM, source.id, source.location_id, stats)
        return

    order_id = new_id()
    items: List[OrderItem] = []
    for line_item in source.line_items:
        item = _map_line_item(line_item, order_id, catalog_entries, context, result)
        if item is not None:
            items.append(item)

    if not items:
        warn_itemless(PLATFORM, source.id, stats)
        return

    payments: List[Payment] = []
    for payment in payments_by_order.get(source.id, []):
        if is_fully_refunded(payment):
            stats.refunded_payments += 1
            continue
        payments.append(_map_payment(payment, order_id))

    total = source.total_money.amount
    tax = source.total_tax_money.amount
    tip = source.total_tip_money.amount
    fulfillment = source.fulfillments[0] if source.fulfillments else None

    order = Order(
        id=order_id,
        source=PLATFORM,
        source_order_id=source.id,
        location_id=location_id,
        order_type=map_square_order_type(fulfillment.type if fulfillment else None),
        channel=map_square_channel(source.source.name),
        status=source.state.lower(),
        created_at=parse_timestamp(source.created_at, PLATFORM.value),
        closed_at=parse_timestamp(source.closed_at, PLATFORM.value),
        subtotal_cents=total - tax - tip,
        tax_cents=tax,
        tip_cents=tip,
        total_cents=total,
    )
    result.add_order(order, items, payments)


def map_square_orders(data: SquareData, context: MapperContext) -> MapperResult:
    """
    Maps every Square order and joins its payments by ``order_id``.

    Payments that belong to an order that was dropped are not emitted.
    """
    result = MapperResult(platform=PLATFORM)
    catalog_entries = index_catalog_variations(data)

    payments_by_order: Dict[str, List[SquarePayment]] = defaultdict(list)
    for payment in data.payments.payments:
        payments_by_order[payment.order_id].append(payment)

    for source in data.orders.orders:
        result.stats.source_orders += 1
        _map_order(source, catalog_entries, payments_by_order, context, result)

    logger.info(
        f"Square: {result.stats.orders}/{result.stats.source_orders} orders, "
        f"{result.stats.items} items, {result.stats.payments} payments"
    )
    return result
