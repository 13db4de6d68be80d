"""
Unified product catalog built from every platform's menu vocabulary.

Square's catalog is the richest feed (categories, descriptions, explicit
variations) and is collected first; Toast selections and DoorDash items add
the names only those platforms use. Raw names are grouped into canonical
products by the configured product groups, then by edit distance.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from restaurant_unifier.matching.canonical import get_normalized_base_name
from restaurant_unifier.matching.engine import MatchingConfig
from restaurant_unifier.matching.variation_patterns import VariationPatternLibrary, VariationType
from restaurant_unifier.models.entities import Category, Product, ProductVariation, SourcePlatform
from restaurant_unifier.models.sources import SourceData
from restaurant_unifier.utils.levenshtein import levenshtein
from restaurant_unifier.utils.logging_config import logger
from restaurant_unifier.utils.normalization import normalize_category, normalize_product_name

PRODUCT_SIMILARITY_THRESHOLD = 3
VARIATION_SIMILARITY_THRESHOLD = 2
REGULAR_VARIATION = 'regular'

DIGITS = re.compile(r'\d')


@dataclass
class RawProductItem:
    """One distinct product name as seen on one platform."""
    source: SourcePlatform
    source_id: Optional[str]
    original_name: str
    base_name: str
    variation: Optional[str] = None
    variation_type: Optional[VariationType] = None
    category_ref: Optional[str] = None
    description: Optional[str] = None
    square_variations: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class ProductGroupResult:
    canonical_name: str
    category_ref: Optional[str]
    description: Optional[str]
    items: List[RawProductItem]
    configured: bool = False

    def absorb(self, item: RawProductItem) -> None:
        """Fills description and category from the first item that has them."""
        self.items.append(item)
        if not self.description and item.description:
            self.description = item.description
        if not self.category_ref and item.category_ref:
            self.category_ref = item.category_ref


class VariationIndex:
    """
    Maps (product id, lower-cased variation name) to a variation id.

    Every spelling that was folded into a canonical variation is indexed,
    so "lg", "Large" and "large" all land on the same row.
    """

    def __init__(self, patterns: Optional[VariationPatternLibrary] = None):
        self._ids: Dict[Tuple[str, str], str] = {}
        self._patterns = patterns

    def add(self, product_id: str, name: str, variation_id: str) -> None:
        self._ids.setdefault((product_id, name.lower()), variation_id)

    def get(self, product_id: str, name: str) -> Optional[str]:
        return self._ids.get((product_id, name.lower()))

    def lookup(self, product_id: str, raw_variation: Optional[str]) -> Optional[str]:
        """Finds the variation for a raw qualifier, normalizing it the way the catalog did."""
        if not raw_variation:
            return None
        if self._patterns is not None:
            normalized, _ = self._patterns.normalize_variation_name(raw_variation)
            variation_id = self.get(product_id, normalized)
            if variation_id:
                return variation_id
        return self.get(product_id, raw_variation)

    def __len__(self) -> int:
        return len(set(self._ids.values()))


@dataclass
class UnifiedCatalog:
    categories: List[Category]
    products: List[Product]
    variations: List[ProductVariation]
    variation_index: VariationIndex
    product_map: Dict[str, str]
    category_map: Dict[str, str]

    def __post_init__(self):
        self._by_name: Dict[str, Product] = {}
        for product in self.products:
            self._by_name.setdefault(normalize_product_name(product.name), product)

    def product_by_name(self, name: str) -> Optional[Product]:
        return self._by_name.get(normalize_product_name(name))


def pick_canonical_name(names: List[str]) -> str:
    """Prefers capitalized names, then the longest (typos tend to drop letters)."""
    return sorted(names, key=lambda n: (n[:1] != n[:1].upper(), -len(n)))[0]


def _register_category(raw_categories: Dict[str, Optional[str]], name: str, square_id: Optional[str] = None) -> str:
    normalized = normalize_category(name)
    if normalized and normalized not in raw_categories:
        raw_categories[normalized] = square_id
    return normalized


def _raw_item(matching: MatchingConfig, source: SourcePlatform, source_id: Optional[str], name: str, **extra) -> RawProductItem:
    extracted = matching.extract_variation(name)
    return RawProductItem(
        source=source,
        source_id=source_id,
        original_name=name,
        base_name=extracted.base_name or name.strip(),
        variation=extracted.variation,
        variation_type=extracted.variation_type,
        **extra,
    )


def collect_from_square(sources: SourceData, matching: MatchingConfig, raw_items, raw_categories) -> None:
    if sources.square is None:
        return
    objects = sources.square.catalog.objects

    for obj in objects:
        if obj.type == 'CATEGORY' and obj.category_data:
            _register_category(raw_categories, obj.category_data.name, obj.id)

    for obj in objects:
        if obj.type != 'ITEM' or obj.item_data is None:
            continue
        data = obj.item_data
        raw_items.append(_raw_item(
            matching, SourcePlatform.SQUARE, obj.id, data.name,
            category_ref=data.category_id,
            description=data.description,
            square_variations=[(v.id, v.item_variation_data.name) for v in data.variations],
        ))


def collect_from_toast(sources: SourceData, matching: MatchingConfig, raw_items, raw_categories) -> None:
    if sources.toast is None:
        return
    seen = set()
    for order in sources.toast.orders:
        if order.voided or order.deleted:
            continue
        for check in order.checks:
            if check.voided or check.deleted:
                continue
            for selection in check.selections:
                if selection.voided:
                    continue
                key = normalize_product_name(selection.displayName)
                if key in seen:
                    continue
                seen.add(key)

                category = None
                if selection.itemGroup and selection.itemGroup.name:
                    category = _register_category(raw_categories, selection.itemGroup.name)

                raw_items.append(_raw_item(
                    matching, SourcePlatform.TOAST, selection.guid, selection.displayName,
                    category_ref=category,
                ))


def collect_from_doordash(sources: SourceData, matching: MatchingConfig, raw_items, raw_categories) -> None:
    if sources.doordash is None:
        return
    seen = set()
    for order in sources.doordash.orders:
        for item in order.order_items:
            key = item.name.lower().strip()
            if key in seen:
                continue
            seen.add(key)

            category = _register_category(raw_categories, item.category) if item.category else None
            raw_items.append(_raw_item(
                matching, SourcePlatform.DOORDASH, item.item_id, item.name,
                category_ref=category,
            ))


def group_products(raw_items: List[RawProductItem], matching: MatchingConfig) -> List[ProductGroupResult]:
    """
    Groups raw names into canonical products.

    Configured product groups take precedence; a group-matched item carries
    the classifier's variation (typed ``semantic``). Everything else joins
    the first unconfigured group whose normalized base name is within
    PRODUCT_SIMILARITY_THRESHOLD edits, or starts a new one.
    """
    groups: List[ProductGroupResult] = []
    configured: Dict[str, ProductGroupResult] = {}

    for item in raw_items:
        match = matching.match_product_to_group(item.original_name)

        if match:
            if match.variation_name:
                item.variation = match.variation_name
                item.variation_type = VariationType.SEMANTIC

            key = match.canonical_name.lower()
            group = configured.get(key)
            if group is None:
                group = ProductGroupResult(match.canonical_name, None, None, [], configured=True)
                configured[key] = group
                groups.append(group)
            group.absorb(item)
            continue

        item_key = get_normalized_base_name(item.original_name, matching.patterns)
        for group in groups:
            if group.configured:
                continue
            group_key = get_normalized_base_name(group.canonical_name, matching.patterns)
            distance = levenshtein(item_key, group_key, max_distance=PRODUCT_SIMILARITY_THRESHOLD)
            if distance <= PRODUCT_SIMILARITY_THRESHOLD:
                group.absorb(item)
                group.canonical_name = pick_canonical_name([i.base_name for i in group.items])
                break
        else:
            groups.append(ProductGroupResult(item.base_name, item.category_ref, item.description, [item]))

    return groups


class _VariationNamer:
    """Folds near-identical spellings of a product's variations onto one name."""

    def __init__(self):
        self._names: Dict[str, Dict[str, str]] = {}

    def canonical(self, product_id: str, name: str) -> str:
        known = self._names.setdefault(product_id, {})
        lower = name.lower()
        if lower in known:
            return known[lower]

        # Quantities differ by a digit or two; never fold them together
        if not DIGITS.search(lower):
            for existing_lower, existing in known.items():
                if DIGITS.search(existing_lower):
                    continue
                if levenshtein(lower, existing_lower, max_distance=VARIATION_SIMILARITY_THRESHOLD) <= VARIATION_SIMILARITY_THRESHOLD:
                    known[lower] = existing
                    return existing

        known[lower] = name
        return name


def build_products_and_variations(
    groups: List[ProductGroupResult],
    category_map: Dict[str, str],
    matching: MatchingConfig,
) -> Tuple[List[Product], List[ProductVariation], Dict[str, str], VariationIndex]:
    products: List[Product] = []
    variations: List[ProductVariation] = []
    product_map: Dict[str, str] = {}
    index = VariationIndex(matching.patterns)
    namer = _VariationNamer()
    patterns = matching.patterns

    def add_variation(product_id: str, raw_variation: str, raw_type: Optional[VariationType], source_raw_name: str):
        normalized, normalized_type = patterns.normalize_variation_name(raw_variation)
        if not normalized:
            return
        name = namer.canonical(product_id, normalized)
        variation_id = index.get(product_id, name)
        if variation_id is None:
            variation = ProductVariation(
                product_id=product_id,
                name=name,
                variation_type=normalized_type or raw_type,
                source_raw_name=source_raw_name,
            )
            variations.append(variation)
            variation_id = variation.id
            index.add(product_id, name, variation_id)
        index.add(product_id, normalized, variation_id)
        index.add(product_id, raw_variation.strip(), variation_id)

    for group in groups:
        product = Product(
            name=group.canonical_name,
            category_id=category_map.get(group.category_ref) if group.category_ref else None,
            description=group.description,
        )
        products.append(product)

        for item in group.items:
            if item.source_id:
                product_map[item.source_id] = product.id
            product_map.setdefault(item.original_name.lower(), product.id)
            product_map.setdefault(item.base_name.lower(), product.id)

            if item.variation:
                add_variation(product.id, item.variation, item.variation_type, item.original_name)

            for variation_id, variation_name in item.square_variations:
                product_map[variation_id] = product.id
                if variation_name.lower() == REGULAR_VARIATION:
                    continue
                extracted = patterns.extract_variation(variation_name)
                add_variation(
                    product.id,
                    extracted.variation or variation_name,
                    extracted.variation_type,
                    f"{item.original_name} - {variation_name}",
                )

    return products, variations, product_map, index


def build_unified_catalog(sources: SourceData, matching: MatchingConfig) -> UnifiedCatalog:
    """
    Builds categories, products and variations from all platforms.

    Returns:
        A UnifiedCatalog whose ``product_map`` resolves platform source ids
        (Square item and variation ids, Toast selection guids, DoorDash item
        ids) and lower-cased raw names to product ids.
    """
    raw_items: List[RawProductItem] = []
    raw_categories: Dict[str, Optional[str]] = {}

    collect_from_square(sources, matching, raw_items, raw_categories)
    collect_from_toast(sources, matching, raw_items, raw_categories)
    collect_from_doordash(sources, matching, raw_items, raw_categories)

    categories: List[Category] = []
    category_map: Dict[str, str] = {}
    for name, square_id in raw_categories.items():
        category = Category(name=name)
        categories.append(category)
        category_map[name] = category.id
        if square_id:
            category_map[square_id] = category.id

    groups = group_products(raw_items, matching)
    products, variations, product_map, index = build_products_and_variations(groups, category_map, matching)

    logger.info(
        f"Catalog: {len(raw_items)} raw names -> {len(products)} products, "
        f"{len(variations)} variations, {len(categories)} categories"
    )
    return UnifiedCatalog(categories, products, variations, index, product_map, category_map)
