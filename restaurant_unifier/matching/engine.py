"""
Immutable matching configuration passed to every component that matches text.

Nothing in the matching layer reads module-level state: a run constructs one
MatchingConfig and injects it, so two configurations can coexist in a single
process (tests do exactly that).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from restaurant_unifier.config.schemas import ProductGroupsConfig, VariationPatternsConfig, load_config
from restaurant_unifier.matching.product_groups import GroupMatch, ProductGroupClassifier
from restaurant_unifier.matching.variation_patterns import VariationExtraction, VariationPatternLibrary
from restaurant_unifier.utils.logging_config import logger


@dataclass(frozen=True)
class MatchingConfig:
    """Compiled variation patterns plus product groups for one run."""
    patterns: VariationPatternLibrary
    groups: ProductGroupClassifier

    @classmethod
    def from_dicts(cls, patterns: dict, groups: dict) -> "MatchingConfig":
        return cls(VariationPatternLibrary.from_dict(patterns), ProductGroupClassifier.from_dict(groups))

    @classmethod
    def from_files(cls, patterns_path: Union[str, Path], groups_path: Union[str, Path]) -> "MatchingConfig":
        """Loads and compiles both configuration files; any problem is fatal."""
        patterns = VariationPatternLibrary.from_config(
            load_config(patterns_path, VariationPatternsConfig, 'variation patterns')
        )
        groups = ProductGroupClassifier.from_config(
            load_config(groups_path, ProductGroupsConfig, 'product groups')
        )
        logger.info(f"Loaded {len(patterns)} variation patterns and {len(groups)} product groups")
        return cls(patterns, groups)

    def extract_variation(self, name: str) -> VariationExtraction:
        return self.patterns.extract_variation(name)

    def match_product_to_group(self, name: str) -> Optional[GroupMatch]:
        return self.groups.match_product_to_group(name)
