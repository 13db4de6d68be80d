"""
Canonical-product resolution.

A raw line-item name is reduced to a comparison key (variation removed,
abbreviations expanded) and compared against the catalog's own keys, first
exactly and then with a bounded edit distance.
"""

from typing import Generic, List, Optional, Protocol, Sequence, Tuple, TypeVar

from restaurant_unifier.matching.variation_patterns import VariationPatternLibrary
from restaurant_unifier.utils.levenshtein import levenshtein

DEFAULT_THRESHOLD = 3
LONG_NAME_RATIO = 0.25
LONG_NAME_MAX_DISTANCE = 5


class NamedEntry(Protocol):
    name: str


EntryT = TypeVar('EntryT', bound=NamedEntry)


def get_normalized_base_name(name: str, patterns: VariationPatternLibrary) -> str:
    """Comparison key: base name without variation, abbreviations expanded, lower-cased."""
    return patterns.expand_abbreviation(patterns.extract_variation(name).base_name)


def accepts_distance(distance: int, key_length: int, threshold: int = DEFAULT_THRESHOLD) -> bool:
    """
    Two-tier acceptance rule.

    A fixed threshold is too strict for long multi-word names and too loose
    for short ones, so long keys get a second chance proportional to their
    length (capped at LONG_NAME_MAX_DISTANCE).
    """
    if distance <= threshold:
        return True
    return distance <= int(key_length * LONG_NAME_RATIO) and distance <= LONG_NAME_MAX_DISTANCE


def search_cap(key_length: int, threshold: int = DEFAULT_THRESHOLD) -> int:
    """Largest distance either tier could accept for a key of this length."""
    return max(threshold, min(int(key_length * LONG_NAME_RATIO), LONG_NAME_MAX_DISTANCE))


def find_canonical_product(
    raw_name: str,
    catalog: Sequence[EntryT],
    patterns: VariationPatternLibrary,
    threshold: int = DEFAULT_THRESHOLD,
    catalog_keys: Optional[Sequence[str]] = None,
) -> Optional[EntryT]:
    """
    Finds the catalog entry a raw product name denotes.

    Args:
        raw_name: Name as printed by the source platform.
        catalog: Candidate entries (anything with a ``name``).
        patterns: Variation-pattern library used to build comparison keys.
        threshold: Base edit-distance threshold.
        catalog_keys: Precomputed keys aligned with ``catalog``.

    Returns:
        The exact-key match, else the closest entry within the two-tier
        rule, else None. Ties keep the earliest catalog entry.
    """
    key = get_normalized_base_name(raw_name, patterns)
    if catalog_keys is None:
        catalog_keys = [get_normalized_base_name(entry.name, patterns) for entry in catalog]

    for entry, entry_key in zip(catalog, catalog_keys):
        if entry_key == key:
            return entry

    cap = search_cap(len(key), threshold)
    best_match: Optional[EntryT] = None
    best_distance = cap + 1

    for entry, entry_key in zip(catalog, catalog_keys):
        distance = levenshtein(key, entry_key, max_distance=cap)
        if distance < best_distance:
            best_distance = distance
            best_match = entry

    if best_match is not None and accepts_distance(best_distance, len(key), threshold):
        return best_match
    return None


class CanonicalProductResolver(Generic[EntryT]):
    """
    Resolver bound to one catalog, with every comparison key computed up front.

    The catalog is frozen once the resolver is built, which is what lets the
    platform mappers share a single instance without locking.
    """

    def __init__(self, catalog: Sequence[EntryT], patterns: VariationPatternLibrary, threshold: int = DEFAULT_THRESHOLD):
        self._catalog: Tuple[EntryT, ...] = tuple(catalog)
        self._patterns = patterns
        self._threshold = threshold
        self._keys: List[str] = [get_normalized_base_name(e.name, patterns) for e in self._catalog]

    def resolve(self, raw_name: str) -> Optional[EntryT]:
        return find_canonical_product(
            raw_name, self._catalog, self._patterns, self._threshold, catalog_keys=self._keys
        )

    def __len__(self) -> int:
        return len(self._catalog)
