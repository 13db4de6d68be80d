"""
Property-based tests using hypothesis for edge case discovery.
Tests invariants that must hold for any input, not just the fixtures.
"""
from hypothesis import given, settings, strategies as st

from restaurant_unifier.config.schemas import LocationConfig
from restaurant_unifier.matching.canonical import find_canonical_product, get_normalized_base_name
from restaurant_unifier.matching.engine import MatchingConfig
from restaurant_unifier.models.entities import Product, SourcePlatform
from restaurant_unifier.models.sources import SourceData, ToastData
from restaurant_unifier.parsers.base import AliasBatch, MapperContext
from restaurant_unifier.parsers.toast_mapper import map_toast_orders
from restaurant_unifier.preprocessing.catalog import build_unified_catalog
from restaurant_unifier.preprocessing.locations import build_locations
from restaurant_unifier.utils.levenshtein import levenshtein
from tests.fixtures.builders import GROUPS_CONFIG, PATTERNS_CONFIG, sample_documents, toast_order, toast_selection

MATCHING = MatchingConfig.from_dicts(PATTERNS_CONFIG, GROUPS_CONFIG)

words = st.text(alphabet="abcdefghijklmnopqrstuvwxyz", max_size=12)
menu_names = st.text(alphabet="abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ ", min_size=1, max_size=20)


def build_context():
    sources = SourceData.model_validate(sample_documents())
    _, location_map = build_locations(sources, [LocationConfig(name="Downtown", toast_id="toast-rest-1")])
    return MapperContext.build(location_map, build_unified_catalog(sources, MATCHING), MATCHING)


CONTEXT = build_context()


class TestLevenshteinProperties:

    @given(a=words, b=words)
    def test_symmetric(self, a, b):
        assert levenshtein(a, b) == levenshtein(b, a)

    @given(a=words)
    def test_identity_and_empty(self, a):
        assert levenshtein(a, a) == 0
        assert levenshtein("", a) == len(a)

    @given(a=words, b=words, c=words)
    @settings(max_examples=50)
    def test_triangle_inequality(self, a, b, c):
        assert levenshtein(a, c) <= levenshtein(a, b) + levenshtein(b, c)

    @given(a=words, b=words, cap=st.integers(min_value=0, max_value=6))
    def test_cap_never_hides_a_match(self, a, b, cap):
        exact = levenshtein(a, b)
        capped = levenshtein(a, b, max_distance=cap)
        if exact <= cap:
            assert capped == exact
        else:
            assert capped == cap + 1


class TestCanonicalProperties:

    @given(names=st.lists(menu_names, min_size=1, max_size=8, unique=True), pick=st.integers(min_value=0))
    @settings(max_examples=50)
    def test_catalog_name_resolves_to_itself(self, names, pick):
        catalog = [Product(name=name) for name in names]
        keys = [get_normalized_base_name(name, MATCHING.patterns) for name in names]
        index = pick % len(names)

        match = find_canonical_product(names[index], catalog, MATCHING.patterns)

        # Entries sharing a key resolve to the first of them
        assert match is catalog[keys.index(keys[index])]
        if keys.count(keys[index]) == 1:
            assert match is catalog[index]


selections = st.lists(
    st.tuples(
        st.sampled_from(["Hamburger", "Lg Coke", "Buffalo Wings", "Garden Salad", "BUFFALO WNGS"]),
        st.integers(min_value=0, max_value=3),
        st.booleans(),
    ),
    max_size=5,
)


class TestMapperProperties:

    @given(orders=st.lists(selections, min_size=1, max_size=6))
    @settings(max_examples=50, deadline=None)
    def test_every_kept_order_has_items(self, orders):
        data = ToastData.model_validate({"orders": [
            toast_order(f"t-{n}", [
                toast_selection(f"s-{n}-{i}", name, 500, quantity=quantity, voided=voided)
                for i, (name, quantity, voided) in enumerate(order)
            ])
            for n, order in enumerate(orders)
        ]})

        result = map_toast_orders(data, CONTEXT)

        order_ids = {o.id for o in result.orders}
        assert {i.order_id for i in result.items} == order_ids
        assert all(i.quantity >= 1 for i in result.items)
        assert all(i.product_id is not None for i in result.items)
        assert result.stats.orders + result.stats.itemless_orders == len(orders)


class TestAliasProperties:

    @given(entries=st.lists(st.tuples(menu_names, st.sampled_from(list(SourcePlatform))), max_size=30))
    def test_aliases_unique_per_name_and_source(self, entries):
        batch = AliasBatch()
        for n, (name, source) in enumerate(entries):
            batch.add(f"p-{n}", name, source)

        keys = [(a.raw_name.lower(), a.source) for a in batch]
        assert len(keys) == len(set(keys))
        assert set(keys) == {(name.lower(), source) for name, source in entries}
