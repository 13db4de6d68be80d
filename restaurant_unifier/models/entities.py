"""
Canonical entities produced by a preprocessing run.

This module defines the unified data model every platform export is mapped
into. Amounts are integer minor units (cents); identifiers are generated
UUID strings. Validation is delegated to Pydantic.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from restaurant_unifier.matching.variation_patterns import VariationType
from restaurant_unifier.utils.logging_config import logger


def new_id() -> str:
    return str(uuid.uuid4())


class SourcePlatform(str, Enum):
    """Platforms whose exports are unified."""
    TOAST = "toast"
    DOORDASH = "doordash"
    SQUARE = "square"


class OrderType(str, Enum):
    DINE_IN = "dine_in"
    TAKEOUT = "takeout"
    PICKUP = "pickup"
    DELIVERY = "delivery"


class Channel(str, Enum):
    POS = "pos"
    ONLINE = "online"
    DOORDASH = "doordash"
    THIRD_PARTY = "third_party"


class PaymentType(str, Enum):
    CREDIT = "credit"
    CASH = "cash"
    WALLET = "wallet"
    DOORDASH = "doordash"
    OTHER = "other"


class Address(BaseModel):
    line1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class Location(BaseModel):
    """A physical restaurant, known to each platform under its own id."""
    id: str = Field(default_factory=new_id)
    name: str
    address: Optional[Address] = None
    timezone: str
    toast_id: Optional[str] = None
    doordash_id: Optional[str] = None
    square_id: Optional[str] = None


class Category(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str


class Product(BaseModel):
    """A canonical menu item. Matching attaches aliases and variations, never edits it."""
    id: str = Field(default_factory=new_id)
    name: str
    category_id: Optional[str] = None
    description: Optional[str] = None


class ProductVariation(BaseModel):
    id: str = Field(default_factory=new_id)
    product_id: str
    name: str
    variation_type: Optional[VariationType] = None
    source_raw_name: str


class ProductAlias(BaseModel):
    id: str = Field(default_factory=new_id)
    product_id: str
    raw_name: str
    source: SourcePlatform


class Modifier(BaseModel):
    name: str
    price_cents: int = 0


class OrderItem(BaseModel):
    """A kept line item. Voided source items never become OrderItems."""
    id: str = Field(default_factory=new_id)
    order_id: str
    product_id: Optional[str] = None
    variation_id: Optional[str] = None
    original_name: str
    quantity: int = Field(ge=1)
    unit_price_cents: int
    total_price_cents: int
    tax_cents: Optional[int] = None
    modifiers: List[Modifier] = Field(default_factory=list)
    special_instructions: Optional[str] = None

    @field_validator('special_instructions')
    @classmethod
    def blank_instructions(cls, v):
        """Platforms send "" for no instructions."""
        if v is not None and not v.strip():
            return None
        return v


class Order(BaseModel):
    """
    A unified order header.

    order_type/channel/status are plain strings: known platform values are
    mapped onto the enums above, unknown ones pass through lower-cased.
    """
    id: str = Field(default_factory=new_id)
    source: SourcePlatform
    source_order_id: str
    location_id: str
    order_type: str
    channel: str
    status: str
    created_at: datetime
    closed_at: Optional[datetime] = None
    subtotal_cents: int = 0
    tax_cents: int = 0
    tip_cents: int = 0
    total_cents: int = 0
    delivery_fee_cents: Optional[int] = None
    service_fee_cents: Optional[int] = None
    commission_cents: Optional[int] = None
    contains_alcohol: bool = False
    is_catering: bool = False

    @model_validator(mode='after')
    def check_total_consistency(self):
        """Cross-references the total with its component parts."""
        calculated = (
            self.subtotal_cents + self.tax_cents + self.tip_cents
            + (self.delivery_fee_cents or 0) + (self.service_fee_cents or 0)
        )
        # Log a warning if the mismatch is significant (> $1.00)
        if abs(self.total_cents - calculated) > 100:
            logger.warning(
                f"Financial mismatch in {self.source.value} order {self.source_order_id}: "
                f"total {self.total_cents}, components {calculated}"
            )
        return self


class Payment(BaseModel):
    id: str = Field(default_factory=new_id)
    order_id: str
    source_payment_id: str
    payment_type: str
    card_brand: Optional[str] = None
    last_four: Optional[str] = None
    amount_cents: int
    tip_cents: int = 0
    processing_fee_cents: Optional[int] = None
    created_at: Optional[datetime] = None
