"""
Maps a DoorDash merchant export onto canonical orders, items and payments.

DoorDash reports every money field directly. The merchant is paid out by
DoorDash rather than by the guest, so each kept order gets one synthetic
payment carrying the payout and the commission.
"""

from typing import List, Optional

from restaurant_unifier.models.entities import (
    Channel, Modifier, Order, OrderItem, Payment, PaymentType, SourcePlatform, new_id,
)
from restaurant_unifier.models.sources import DoorDashData, DoorDashOrder, DoorDashOrderItem
from restaurant_unifier.parsers.base import (
    MapperContext, MapperResult, handle_unresolved, resolve_line_item, warn_itemless, warn_unknown_location,
)
from restaurant_unifier.parsers.enumerations import map_doordash_order_type, parse_timestamp
from restaurant_unifier.utils.logging_config import logger

PLATFORM = SourcePlatform.DOORDASH
PAYMENT_ID_PREFIX = 'dd_pay_'


def _map_item(item: DoorDashOrderItem, order_id: str, context: MapperContext, result: MapperResult) -> Optional[OrderItem]:
    if item.quantity < 1:
        result.stats.voided_items += 1
        return None

    resolution = resolve_line_item(item.name, context)
    if resolution is None and not handle_unresolved(item.name, PLATFORM, context, result.stats):
        return None
    if resolution is not None:
        result.aliases.add(resolution.product.id, item.name, PLATFORM)

    return OrderItem(
        order_id=order_id,
        product_id=resolution.product.id if resolution else None,
        variation_id=resolution.variation_id if resolution else None,
        original_name=item.name,
        quantity=item.quantity,
        unit_price_cents=item.unit_price,
        total_price_cents=item.total_price,
        modifiers=[Modifier(name=o.name, price_cents=o.price) for o in item.options],
        special_instructions=item.special_instructions,
    )


def _payout_payment(source: DoorDashOrder, order_id: str) -> Payment:
    settled_at = source.delivery_time or source.pickup_time or source.created_at
    return Payment(
        order_id=order_id,
        source_payment_id=f"{PAYMENT_ID_PREFIX}{source.external_delivery_id}",
        payment_type=PaymentType.DOORDASH.value,
        amount_cents=source.merchant_payout,
        tip_cents=source.dasher_tip,
        processing_fee_cents=source.commission,
        created_at=parse_timestamp(settled_at, PLATFORM.value),
    )


def _map_order(source: DoorDashOrder, context: MapperContext, result: MapperResult) -> None:
    location_id = context.location_map.get(source.store_id)
    if not location_id:
        warn_unknown_location(PLATFORM, source.external_delivery_id, source.store_id, result.stats)
        return

    order_id = new_id()
    items: List[OrderItem] = []
    for source_item in source.order_items:
        item = _map_item(source_item, order_id, context, result)
        if item is not None:
            items.append(item)

    if not items:
        warn_itemless(PLATFORM, source.external_delivery_id, result.stats)
        return

    order = Order(
        id=order_id,
        source=PLATFORM,
        source_order_id=source.external_delivery_id,
        location_id=location_id,
        order_type=map_doordash_order_type(source.order_fulfillment_method),
        channel=Channel.DOORDASH.value,
        status=source.order_status.lower(),
        created_at=parse_timestamp(source.created_at, PLATFORM.value),
        closed_at=parse_timestamp(source.delivery_time or source.pickup_time, PLATFORM.value),
        subtotal_cents=source.order_subtotal,
        tax_cents=source.tax_amount,
        tip_cents=source.dasher_tip,
        total_cents=source.total_charged_to_consumer,
        delivery_fee_cents=source.delivery_fee,
        service_fee_cents=source.service_fee,
        commission_cents=source.commission,
        contains_alcohol=source.contains_alcohol,
        is_catering=source.is_catering,
    )
    result.add_order(order, items, [_payout_payment(source, order_id)])


def map_doordash_orders(data: DoorDashData, context: MapperContext) -> MapperResult:
    result = MapperResult(platform=PLATFORM)
    for source in data.orders:
        result.stats.source_orders += 1
        _map_order(source, context, result)

    logger.info(
        f"DoorDash: {result.stats.orders}/{result.stats.source_orders} orders, "
        f"{result.stats.items} items, {result.stats.payments} payments"
    )
    return result
