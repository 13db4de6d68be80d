import pytest

from restaurant_unifier.config.settings import ResolutionPolicy
from restaurant_unifier.errors import SourceParseError, UnresolvedRecordError
from restaurant_unifier.models.entities import SourcePlatform
from restaurant_unifier.models.sources import DoorDashData, SquareData, ToastData
from restaurant_unifier.parsers.base import AliasBatch, MapperContext, resolve_line_item, round_half_up
from restaurant_unifier.parsers.doordash_mapper import map_doordash_orders
from restaurant_unifier.parsers.enumerations import (
    map_square_channel, map_square_order_type, map_toast_order_type, normalize_card_brand,
    normalize_payment_type, parse_timestamp,
)
from restaurant_unifier.parsers.square_mapper import map_square_orders, parse_quantity
from restaurant_unifier.parsers.toast_mapper import map_toast_orders
from restaurant_unifier.preprocessing.catalog import build_unified_catalog
from restaurant_unifier.preprocessing.locations import build_locations
from tests.fixtures.builders import (
    doordash_item, doordash_order, square_data, square_line_item, square_order, toast_order, toast_selection,
)


@pytest.fixture
def context_factory(sample_sources, location_configs, matching):
    _, location_map = build_locations(sample_sources, location_configs)
    catalog = build_unified_catalog(sample_sources, matching)

    def build(policy=ResolutionPolicy.DROP):
        return MapperContext.build(location_map, catalog, matching, policy)
    return build


@pytest.fixture
def context(context_factory):
    return context_factory()


class TestEnumerations:

    def test_known_values_are_mapped(self):
        assert map_toast_order_type("TAKE_OUT") == "takeout"
        assert map_square_order_type(None) == "dine_in"
        assert map_square_channel("Square Online Store") == "online"
        assert map_square_channel("Point of Sale") == "pos"
        assert normalize_payment_type("card") == "credit"
        assert normalize_card_brand("AMERICAN_EXPRESS") == "amex"

    def test_unknown_values_pass_through_lower_cased(self):
        assert map_toast_order_type("CURBSIDE") == "curbside"
        assert normalize_payment_type("GIFT_CARD") == "gift_card"
        assert normalize_card_brand("JCB") == "jcb"
        assert normalize_card_brand(None) is None

    def test_parse_timestamp(self):
        parsed = parse_timestamp("2024-01-15T12:00:00.000+0000", "toast")
        assert (parsed.year, parsed.hour, parsed.utcoffset().total_seconds()) == (2024, 12, 0)
        assert parse_timestamp("2024-01-15 12:00", "toast").tzinfo is not None
        assert parse_timestamp(None, "toast") is None
        with pytest.raises(SourceParseError):
            parse_timestamp("not a date", "toast")


def test_round_half_up():
    assert round_half_up(599, 2) == 300
    assert round_half_up(1000, 3) == 333
    assert round_half_up(5, 2) == 3


class TestResolution:

    def test_group_match_resolves_product_and_variation(self, context):
        resolution = resolve_line_item("BUFFALO WNGS", context)
        assert resolution.product.name == "Wings"
        assert resolution.matched_by == "fuzzy_suffix"
        assert resolution.variation_id is not None

    def test_canonical_fallback_with_size(self, context):
        resolution = resolve_line_item("Lg Coke", context)
        assert resolution.product.name == "Coke"
        assert resolution.matched_by == "canonical"
        large = next(v for v in context.catalog.variations if v.name == "Large")
        assert resolution.variation_id == large.id

    def test_unknown_name(self, context):
        assert resolve_line_item("Garden Salad", context) is None


class TestToastMapper:

    def test_sample_export(self, sample_sources, context):
        result = map_toast_orders(sample_sources.toast, context)
        stats = result.stats

        assert len(result.orders) == 2
        assert (stats.source_orders, stats.voided_orders, stats.unknown_location_orders) == (4, 1, 1)
        assert stats.voided_items == 1
        assert stats.refunded_payments == 1
        assert len(result.payments) == 1

        first = next(o for o in result.orders if o.source_order_id == "t-1")
        assert first.total_cents == 999
        assert first.order_type == "dine_in"
        assert first.channel == "pos"
        assert first.status == "completed"

        coke = next(i for i in result.items if i.original_name == "Lg Coke")
        assert coke.quantity == 2
        assert coke.unit_price_cents == 300
        assert coke.total_price_cents == 599

    def test_itemless_order_is_dropped(self, context):
        data = ToastData.model_validate({"orders": [
            toast_order("t-x", [toast_selection("s-x", "Hamburger", 999, voided=True)]),
        ]})
        result = map_toast_orders(data, context)
        assert result.orders == []
        assert result.stats.itemless_orders == 1

    def test_unresolved_item_dropped_by_default(self, context):
        data = ToastData.model_validate({"orders": [
            toast_order("t-x", [
                toast_selection("s-1", "Hamburger", 999),
                toast_selection("s-2", "Garden Salad", 850),
            ]),
        ]})
        result = map_toast_orders(data, context)
        assert [i.original_name for i in result.items] == ["Hamburger"]
        assert result.stats.unresolved_products == 1
        assert result.stats.unresolved_names == ["Garden Salad"]

    def test_unresolved_item_kept_with_null_product(self, context_factory):
        data = ToastData.model_validate({"orders": [
            toast_order("t-x", [toast_selection("s-2", "Garden Salad", 850)]),
        ]})
        result = map_toast_orders(data, context_factory(ResolutionPolicy.KEEP))
        assert len(result.orders) == 1
        assert result.items[0].product_id is None
        assert result.stats.unresolved_kept_items == 1
        assert len(result.aliases) == 0

    def test_unresolved_item_aborts(self, context_factory):
        data = ToastData.model_validate({"orders": [
            toast_order("t-x", [toast_selection("s-2", "Garden Salad", 850)]),
        ]})
        with pytest.raises(UnresolvedRecordError, match="Garden Salad"):
            map_toast_orders(data, context_factory(ResolutionPolicy.ABORT))


class TestDoorDashMapper:

    def test_payout_payment(self, sample_sources, context):
        result = map_doordash_orders(sample_sources.doordash, context)

        assert len(result.orders) == 1
        assert result.stats.unknown_location_orders == 1
        order = result.orders[0]
        assert order.contains_alcohol is True
        assert order.total_cents == 2500
        assert order.commission_cents == 300
        assert order.order_type == "delivery"
        assert order.channel == "doordash"
        assert order.status == "delivered"
        assert order.closed_at.minute == 45

        payment = result.payments[0]
        assert payment.source_payment_id == "dd_pay_dd-1"
        assert payment.payment_type == "doordash"
        assert payment.amount_cents == 1050
        assert payment.tip_cents == 400
        assert payment.processing_fee_cents == 300

    def test_blank_instructions_become_none(self, context):
        data = DoorDashData.model_validate({"orders": [
            doordash_order("dd-x", [
                doordash_item("Hamburger", 999, instructions=""),
                doordash_item("Hamburger", 999, instructions="no onions"),
            ]),
        ]})
        result = map_doordash_orders(data, context)
        assert [i.special_instructions for i in result.items] == [None, "no onions"]
        assert len(result.aliases) == 1


class TestSquareMapper:

    def test_sample_export(self, sample_sources, context):
        result = map_square_orders(sample_sources.square, context)

        assert len(result.orders) == 1
        order = result.orders[0]
        assert (order.total_cents, order.tax_cents, order.tip_cents, order.subtotal_cents) == (3600, 250, 53, 3297)
        assert order.channel == "online"
        assert order.order_type == "pickup"
        assert order.status == "completed"

        names = sorted(i.original_name for i in result.items)
        assert names == ["Buffalo Wings - 12 pcs", "Hamburger"]
        burger = next(i for i in result.items if i.original_name == "Hamburger")
        assert (burger.quantity, burger.unit_price_cents) == (2, 999)
        assert burger.variation_id is None
        wings = next(i for i in result.items if i.original_name.startswith("Buffalo"))
        twelve = next(v for v in context.catalog.variations if v.name == "12 pcs")
        assert wings.variation_id == twelve.id

        assert [p.source_payment_id for p in result.payments] == ["sp-1"]
        payment = result.payments[0]
        assert (payment.payment_type, payment.card_brand, payment.last_four) == ("credit", "visa", "4242")
        assert payment.processing_fee_cents == 59
        assert result.stats.refunded_payments == 1

    def test_zero_quantity_is_voided(self, context):
        data = SquareData.model_validate(square_data(orders=[
            square_order("sq-x", [square_line_item("var-burger", 999), square_line_item("var-coke-lg", 0, quantity="0")]),
        ]))
        result = map_square_orders(data, context)
        assert len(result.items) == 1
        assert result.stats.voided_items == 1

    def test_unknown_catalog_id_falls_back_to_name(self, context):
        data = SquareData.model_validate(square_data(orders=[
            square_order("sq-x", [square_line_item("var-gone", 599, name="Lg Coke")], fulfillment=None),
        ]))
        result = map_square_orders(data, context)
        assert result.items[0].product_id == context.catalog.product_by_name("Coke").id
        assert result.orders[0].order_type == "dine_in"

    def test_parse_quantity(self):
        assert parse_quantity("2") == 2
        assert parse_quantity("1.000") == 1
        with pytest.raises(SourceParseError):
            parse_quantity("two")


def test_alias_batch_first_writer_wins():
    batch = AliasBatch()
    batch.add("p1", "Buffalo Wings", SourcePlatform.TOAST)
    batch.add("p2", "BUFFALO WINGS", SourcePlatform.TOAST)
    batch.add("p2", "Buffalo Wings", SourcePlatform.SQUARE)

    aliases = list(batch)
    assert len(aliases) == 2
    assert aliases[0].product_id == "p1"
    assert ("buffalo wings", SourcePlatform.SQUARE) in batch
