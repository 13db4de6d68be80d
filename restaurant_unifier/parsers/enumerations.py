"""
Platform enumeration tables.

Every platform spells order types, channels, payment types and card brands
its own way. Known values are mapped onto the canonical vocabulary; anything
else passes through lower-cased so nothing is silently lost.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from dateutil import parser as date_parser

from restaurant_unifier.errors import SourceParseError
from restaurant_unifier.models.entities import Channel, OrderType, PaymentType

TOAST_ORDER_TYPES: Dict[str, str] = {
    'DINE_IN': OrderType.DINE_IN.value,
    'TAKE_OUT': OrderType.TAKEOUT.value,
    'DELIVERY': OrderType.DELIVERY.value,
}

TOAST_CHANNELS: Dict[str, str] = {
    'POS': Channel.POS.value,
    'ONLINE': Channel.ONLINE.value,
    'THIRD_PARTY': Channel.THIRD_PARTY.value,
}

DOORDASH_ORDER_TYPES: Dict[str, str] = {
    'MERCHANT_DELIVERY': OrderType.DELIVERY.value,
    'PICKUP': OrderType.PICKUP.value,
}

SQUARE_ORDER_TYPES: Dict[str, str] = {
    'DINE_IN': OrderType.DINE_IN.value,
    'PICKUP': OrderType.PICKUP.value,
    'DELIVERY': OrderType.DELIVERY.value,
}

PAYMENT_TYPES: Dict[str, str] = {
    'CREDIT': PaymentType.CREDIT.value,
    'CARD': PaymentType.CREDIT.value,
    'CASH': PaymentType.CASH.value,
    'WALLET': PaymentType.WALLET.value,
    'OTHER': PaymentType.OTHER.value,
}

CARD_BRANDS: Dict[str, str] = {
    'VISA': 'visa',
    'MASTERCARD': 'mastercard',
    'AMEX': 'amex',
    'AMERICAN_EXPRESS': 'amex',
    'DISCOVER': 'discover',
    'APPLE_PAY': 'apple_pay',
    'GOOGLE_PAY': 'google_pay',
}


def _lookup(table: Dict[str, str], value: str) -> str:
    return table.get(value, value.lower())


def map_toast_order_type(behavior: str) -> str:
    return _lookup(TOAST_ORDER_TYPES, behavior)


def map_toast_channel(source: str) -> str:
    return _lookup(TOAST_CHANNELS, source)


def map_doordash_order_type(method: str) -> str:
    return _lookup(DOORDASH_ORDER_TYPES, method)


def map_square_order_type(fulfillment_type: Optional[str]) -> str:
    """Orders without a fulfillment were rung up at the counter."""
    if not fulfillment_type:
        return OrderType.DINE_IN.value
    return _lookup(SQUARE_ORDER_TYPES, fulfillment_type)


def map_square_channel(source_name: str) -> str:
    if 'online' in (source_name or '').lower():
        return Channel.ONLINE.value
    return Channel.POS.value


def normalize_payment_type(payment_type: str) -> str:
    return PAYMENT_TYPES.get(payment_type.upper(), payment_type.lower())


def normalize_card_brand(brand: Optional[str]) -> Optional[str]:
    if not brand:
        return None
    return CARD_BRANDS.get(brand.upper(), brand.lower())


def parse_timestamp(value: Optional[str], platform: str) -> Optional[datetime]:
    """
    Parses a platform timestamp. Naive values are taken to be UTC.

    Raises:
        SourceParseError: If the value is present but not a readable date.
    """
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise SourceParseError(platform, f"Unreadable timestamp {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
