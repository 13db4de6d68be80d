"""
Typed views of the three platform exports.

Upstream validation guarantees conformance; these models only give the
mappers attribute access and turn an unreadable document into a single,
early parse error. Unknown fields are ignored.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceModel(BaseModel):
    model_config = ConfigDict(extra='ignore')


# --- Toast (table-service POS) ---

class ToastReference(SourceModel):
    guid: str
    name: Optional[str] = None


class ToastDiningOption(SourceModel):
    guid: Optional[str] = None
    name: Optional[str] = None
    behavior: str


class ToastModifier(SourceModel):
    guid: Optional[str] = None
    displayName: str
    price: int = 0


class ToastSelection(SourceModel):
    guid: str
    displayName: str
    itemGroup: Optional[ToastReference] = None
    item: Optional[ToastReference] = None
    quantity: int = 1
    preDiscountPrice: int
    price: int
    tax: int = 0
    voided: bool = False
    modifiers: List[ToastModifier] = Field(default_factory=list)


class ToastPayment(SourceModel):
    guid: str
    paidDate: Optional[str] = None
    type: str
    cardType: Optional[str] = None
    last4Digits: Optional[str] = None
    amount: int
    tipAmount: int = 0
    originalProcessingFee: Optional[int] = None
    refundStatus: str = "NONE"


class ToastCheck(SourceModel):
    guid: str
    displayNumber: Optional[str] = None
    voided: bool = False
    deleted: bool = False
    selections: List[ToastSelection] = Field(default_factory=list)
    payments: List[ToastPayment] = Field(default_factory=list)
    amount: int = 0
    taxAmount: int = 0
    totalAmount: int = 0
    tipAmount: int = 0


class ToastOrder(SourceModel):
    guid: str
    restaurantGuid: str
    businessDate: Optional[str] = None
    openedDate: str
    closedDate: Optional[str] = None
    paidDate: Optional[str] = None
    voided: bool = False
    deleted: bool = False
    diningOption: ToastDiningOption
    checks: List[ToastCheck] = Field(default_factory=list)
    source: str = "POS"


class ToastAddress(SourceModel):
    line1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class ToastLocation(SourceModel):
    guid: str
    name: str
    address: Optional[ToastAddress] = None
    timezone: Optional[str] = None


class ToastRestaurant(SourceModel):
    guid: str
    name: str


class ToastData(SourceModel):
    restaurant: Optional[ToastRestaurant] = None
    locations: List[ToastLocation] = Field(default_factory=list)
    orders: List[ToastOrder] = Field(default_factory=list)


# --- DoorDash (delivery marketplace) ---

class DoorDashOption(SourceModel):
    name: str
    price: int = 0


class DoorDashOrderItem(SourceModel):
    item_id: Optional[str] = None
    name: str
    quantity: int = 1
    unit_price: int
    total_price: int
    special_instructions: Optional[str] = None
    options: List[DoorDashOption] = Field(default_factory=list)
    category: Optional[str] = None


class DoorDashOrder(SourceModel):
    external_delivery_id: str
    store_id: str
    order_fulfillment_method: str
    order_status: str
    created_at: str
    pickup_time: Optional[str] = None
    delivery_time: Optional[str] = None
    order_items: List[DoorDashOrderItem] = Field(default_factory=list)
    order_subtotal: int
    delivery_fee: int = 0
    service_fee: int = 0
    dasher_tip: int = 0
    tax_amount: int = 0
    total_charged_to_consumer: int
    commission: int = 0
    merchant_payout: int
    contains_alcohol: bool = False
    is_catering: bool = False


class DoorDashAddress(SourceModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class DoorDashStore(SourceModel):
    store_id: str
    name: str
    address: Optional[DoorDashAddress] = None
    timezone: Optional[str] = None


class DoorDashMerchant(SourceModel):
    merchant_id: str
    business_name: str
    currency: str = "USD"


class DoorDashData(SourceModel):
    merchant: Optional[DoorDashMerchant] = None
    stores: List[DoorDashStore] = Field(default_factory=list)
    orders: List[DoorDashOrder] = Field(default_factory=list)


# --- Square (unified commerce) ---

class SquareMoney(SourceModel):
    amount: int = 0
    currency: str = "USD"


class SquareAddress(SourceModel):
    address_line_1: Optional[str] = None
    locality: Optional[str] = None
    administrative_district_level_1: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class SquareLocation(SourceModel):
    id: str
    name: str
    address: Optional[SquareAddress] = None
    timezone: Optional[str] = None
    status: Optional[str] = None


class SquareLocationsData(SourceModel):
    locations: List[SquareLocation] = Field(default_factory=list)


class SquareItemVariationData(SourceModel):
    item_id: Optional[str] = None
    name: str
    pricing_type: Optional[str] = None
    price_money: Optional[SquareMoney] = None


class SquareItemVariation(SourceModel):
    type: str = "ITEM_VARIATION"
    id: str
    item_variation_data: SquareItemVariationData


class SquareItemData(SourceModel):
    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    variations: List[SquareItemVariation] = Field(default_factory=list)


class SquareCategoryData(SourceModel):
    name: str


class SquareCatalogObject(SourceModel):
    type: str
    id: str
    item_data: Optional[SquareItemData] = None
    category_data: Optional[SquareCategoryData] = None


class SquareCatalogData(SourceModel):
    objects: List[SquareCatalogObject] = Field(default_factory=list)


class SquareAppliedModifier(SourceModel):
    modifier_id: str
    name: Optional[str] = None
    total_price_money: Optional[SquareMoney] = None


class SquareLineItem(SourceModel):
    uid: Optional[str] = None
    catalog_object_id: Optional[str] = None
    name: Optional[str] = None
    quantity: str = "1"
    total_money: SquareMoney
    total_tax_money: Optional[SquareMoney] = None
    applied_modifiers: List[SquareAppliedModifier] = Field(default_factory=list)
    note: Optional[str] = None


class SquareFulfillment(SourceModel):
    uid: Optional[str] = None
    type: str
    state: Optional[str] = None


class SquareSource(SourceModel):
    name: str = ""


class SquareOrder(SourceModel):
    id: str
    location_id: str
    source: SquareSource = Field(default_factory=SquareSource)
    created_at: str
    closed_at: Optional[str] = None
    state: str
    line_items: List[SquareLineItem] = Field(default_factory=list)
    fulfillments: List[SquareFulfillment] = Field(default_factory=list)
    total_money: SquareMoney
    total_tax_money: SquareMoney = Field(default_factory=SquareMoney)
    total_tip_money: SquareMoney = Field(default_factory=SquareMoney)


class SquareOrdersData(SourceModel):
    orders: List[SquareOrder] = Field(default_factory=list)


class SquareCard(SourceModel):
    card_brand: Optional[str] = None
    last_4: Optional[str] = None


class SquareCardDetails(SourceModel):
    card: SquareCard


class SquareWalletDetails(SourceModel):
    brand: Optional[str] = None


class SquareProcessingFee(SourceModel):
    amount_money: SquareMoney
    type: Optional[str] = None


class SquarePayment(SourceModel):
    id: str
    order_id: str
    created_at: Optional[str] = None
    amount_money: SquareMoney
    tip_money: SquareMoney = Field(default_factory=SquareMoney)
    refunded_money: Optional[SquareMoney] = None
    processing_fee: List[SquareProcessingFee] = Field(default_factory=list)
    status: Optional[str] = None
    source_type: str
    card_details: Optional[SquareCardDetails] = None
    wallet_details: Optional[SquareWalletDetails] = None


class SquarePaymentsData(SourceModel):
    payments: List[SquarePayment] = Field(default_factory=list)


class SquareData(SourceModel):
    locations: SquareLocationsData = Field(default_factory=SquareLocationsData)
    catalog: SquareCatalogData = Field(default_factory=SquareCatalogData)
    orders: SquareOrdersData = Field(default_factory=SquareOrdersData)
    payments: SquarePaymentsData = Field(default_factory=SquarePaymentsData)


class SourceData(SourceModel):
    """All three platform exports for one run. A failed platform is None."""
    toast: Optional[ToastData] = None
    doordash: Optional[DoorDashData] = None
    square: Optional[SquareData] = None
