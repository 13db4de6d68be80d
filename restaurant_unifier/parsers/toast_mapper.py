"""
Maps a Toast POS export onto canonical orders, items and payments.
"""

from typing import List, Optional

from restaurant_unifier.models.entities import Modifier, Order, OrderItem, Payment, SourcePlatform, new_id
from restaurant_unifier.models.sources import ToastData, ToastOrder, ToastPayment, ToastSelection
from restaurant_unifier.parsers.base import (
    MapperContext, MapperResult, handle_unresolved, resolve_line_item, round_half_up,
    warn_itemless, warn_unknown_location,
)
from restaurant_unifier.parsers.enumerations import (
    map_toast_channel, map_toast_order_type, normalize_card_brand, normalize_payment_type, parse_timestamp,
)
from restaurant_unifier.utils.logging_config import logger

PLATFORM = SourcePlatform.TOAST
FULL_REFUND = 'FULL_REFUND'


def _map_selection(selection: ToastSelection, order_id: str, context: MapperContext, result: MapperResult) -> Optional[OrderItem]:
    if selection.voided or selection.quantity < 1:
        result.stats.voided_items += 1
        return None

    resolution = resolve_line_item(selection.displayName, context)
    if resolution is None and not handle_unresolved(selection.displayName, PLATFORM, context, result.stats):
        return None
    if resolution is not None:
        result.aliases.add(resolution.product.id, selection.displayName, PLATFORM)

    return OrderItem(
        order_id=order_id,
        product_id=resolution.product.id if resolution else None,
        variation_id=resolution.variation_id if resolution else None,
        original_name=selection.displayName,
        quantity=selection.quantity,
        unit_price_cents=round_half_up(selection.preDiscountPrice, selection.quantity),
        total_price_cents=selection.price,
        tax_cents=selection.tax,
        modifiers=[Modifier(name=m.displayName, price_cents=m.price) for m in selection.modifiers],
    )


def _map_payment(payment: ToastPayment, order_id: str) -> Payment:
    return Payment(
        order_id=order_id,
        source_payment_id=payment.guid,
        payment_type=normalize_payment_type(payment.type),
        card_brand=normalize_card_brand(payment.cardType),
        last_four=payment.last4Digits,
        amount_cents=payment.amount,
        tip_cents=payment.tipAmount,
        processing_fee_cents=payment.originalProcessingFee,
        created_at=parse_timestamp(payment.paidDate, PLATFORM.value),
    )


def _map_order(source: ToastOrder, context: MapperContext, result: MapperResult) -> None:
    stats = result.stats
    if source.voided or source.deleted:
        stats.voided_orders += 1
        return

    location_id = context.location_map.get(source.restaurantGuid)
    if not location_id:
        warn_unknown_location(PLATFORM, source.guid, source.restaurantGuid, stats)
        return

    order_id = new_id()
    items: List[OrderItem] = []
    payments: List[Payment] = []
    subtotal = tax = tip = total = 0

    for check in source.checks:
        if check.voided or check.deleted:
            continue
        subtotal += check.amount
        tax += check.taxAmount
        tip += check.tipAmount
        total += check.totalAmount

        for selection in check.selections:
            item = _map_selection(selection, order_id, context, result)
            if item is not None:
                items.append(item)

        for payment in check.payments:
            if payment.refundStatus == FULL_REFUND:
                stats.refunded_payments += 1
                continue
            payments.append(_map_payment(payment, order_id))

    if not items:
        warn_itemless(PLATFORM, source.guid, stats)
        return

    order = Order(
        id=order_id,
        source=PLATFORM,
        source_order_id=source.guid,
        location_id=location_id,
        order_type=map_toast_order_type(source.diningOption.behavior),
        channel=map_toast_channel(source.source),
        status='completed',
        created_at=parse_timestamp(source.openedDate, PLATFORM.value),
        closed_at=parse_timestamp(source.closedDate, PLATFORM.value),
        subtotal_cents=subtotal,
        tax_cents=tax,
        tip_cents=tip,
        total_cents=total,
    )
    result.add_order(order, items, payments)


def map_toast_orders(data: ToastData, context: MapperContext) -> MapperResult:
    """
    Maps every Toast order.

    Voided or deleted orders and checks are skipped, as are voided
    selections. Fully refunded payments are dropped.
    """
    result = MapperResult(platform=PLATFORM)
    for source in data.orders:
        result.stats.source_orders += 1
        _map_order(source, context, result)

    logger.info(
        f"Toast: {result.stats.orders}/{result.stats.source_orders} orders, "
        f"{result.stats.items} items, {result.stats.payments} payments"
    )
    return result
