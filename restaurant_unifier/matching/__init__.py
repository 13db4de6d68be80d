"""
Product and variation matching: patterns, groups and canonical resolution.
"""

from .canonical import CanonicalProductResolver, find_canonical_product, get_normalized_base_name
from .engine import MatchingConfig
from .product_groups import GroupMatch, ProductGroupClassifier, fuzzy_threshold, is_fuzzy_word_match
from .variation_patterns import VariationExtraction, VariationPatternLibrary, VariationType

__all__ = [
    "CanonicalProductResolver", "find_canonical_product", "get_normalized_base_name",
    "MatchingConfig", "GroupMatch", "ProductGroupClassifier", "fuzzy_threshold",
    "is_fuzzy_word_match", "VariationExtraction", "VariationPatternLibrary", "VariationType",
]
