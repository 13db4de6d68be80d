"""
Product-group classifier.

Recognizes configured canonical products in raw menu text via a trailing
suffix word ("Buffalo Wings" -> Wings / "Buffalo") and/or contained keywords
("Double Espresso" -> Coffee), with bounded typo tolerance:

    "Buffalo Wngs" -> Wings       (distance 1, lengths differ)
    "Onion Rings"  -> no match    (same-length short word, different dish)
    "Expresso"     -> Coffee      (distance 1, long word)
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, Union

from restaurant_unifier.config.schemas import ProductGroupConfig, ProductGroupsConfig, parse_config
from restaurant_unifier.errors import ConfigurationError
from restaurant_unifier.utils.levenshtein import levenshtein
from restaurant_unifier.utils.logging_config import logger

# Empirically tuned against known false positives/negatives; keep exact.
SHORT_WORD_MAX_LENGTH = 5
SHORT_WORD_MAX_DISTANCE = 1
LONG_WORD_MAX_DISTANCE = 2
SAME_LENGTH_REJECT_MAX_LENGTH = 6

WORD_PATTERN = re.compile(r"[\w']+")


def fuzzy_threshold(length: int) -> int:
    """Maximum accepted edit distance for words whose shorter one has ``length`` characters."""
    return SHORT_WORD_MAX_DISTANCE if length <= SHORT_WORD_MAX_LENGTH else LONG_WORD_MAX_DISTANCE


def is_fuzzy_word_match(candidate: str, target: str) -> bool:
    """
    Decides whether ``candidate`` is a typo of ``target``.

    The threshold follows the shorter of the two words: a short raw word
    never gets the looser allowance of a long configured one ("tacos" is not
    "nachos"). Exact matches are not fuzzy matches (distance must be > 0).
    Equal-length words of six characters or fewer are rejected even within
    threshold:
    "rings"/"wings" and "wine"/"wing" are different dishes, not typos.
    """
    threshold = fuzzy_threshold(min(len(candidate), len(target)))
    distance = levenshtein(candidate, target, max_distance=threshold)
    if distance == 0 or distance > threshold:
        return False
    if len(candidate) == len(target) and len(target) <= SAME_LENGTH_REJECT_MAX_LENGTH:
        return False
    return True


@dataclass(frozen=True)
class GroupMatch:
    """A classification result; ``matched_by`` records which check fired."""
    canonical_name: str
    variation_name: Optional[str]
    matched_by: str


@dataclass(frozen=True)
class CompiledProductGroup:
    base_name: str
    suffix: Optional[str]
    keywords: Tuple[str, ...]
    suffix_pattern: Optional['re.Pattern[str]']
    trailing_suffix_pattern: Optional['re.Pattern[str]']

    @property
    def single_word_suffix(self) -> bool:
        return bool(self.suffix) and ' ' not in self.suffix


def compile_group(group: ProductGroupConfig) -> CompiledProductGroup:
    suffix = group.suffix.lower().strip() if group.suffix else None
    keywords = tuple(k.lower().strip() for k in (group.keywords or []) if k.strip())
    if not suffix and not keywords:
        raise ConfigurationError(f"Product group '{group.base_name}' has neither suffix nor keywords")

    suffix_pattern = None
    trailing_suffix_pattern = None
    if suffix:
        escaped = re.escape(suffix)
        suffix_pattern = re.compile(rf'\b{escaped}\b', re.IGNORECASE)
        trailing_suffix_pattern = re.compile(rf'\s*\b{escaped}\b\s*$', re.IGNORECASE)

    return CompiledProductGroup(
        base_name=group.base_name,
        suffix=suffix,
        keywords=keywords,
        suffix_pattern=suffix_pattern,
        trailing_suffix_pattern=trailing_suffix_pattern,
    )


class ProductGroupClassifier:
    """
    Ordered, immutable list of product groups.

    Groups are evaluated in configured order and the first match wins;
    overlapping groups are a configuration-authoring concern, not an error.
    """

    def __init__(self, groups: Sequence[CompiledProductGroup]):
        self._groups: Tuple[CompiledProductGroup, ...] = tuple(groups)

    @classmethod
    def from_config(cls, config: ProductGroupsConfig) -> "ProductGroupClassifier":
        return cls([compile_group(g) for g in config.groups])

    @classmethod
    def from_dict(cls, data: Union[dict, ProductGroupsConfig]) -> "ProductGroupClassifier":
        if isinstance(data, ProductGroupsConfig):
            return cls.from_config(data)
        return cls.from_config(parse_config(data, ProductGroupsConfig, 'product groups'))

    @property
    def groups(self) -> Tuple[CompiledProductGroup, ...]:
        return self._groups

    def match_product_to_group(self, product_name: str) -> Optional[GroupMatch]:
        """
        Matches a raw product name against every group, in order.

        Per group: exact suffix, fuzzy suffix, exact/substring keyword,
        fuzzy keyword.
        """
        trimmed = product_name.strip()
        name_lower = trimmed.lower()
        if not name_lower:
            return None

        words = list(WORD_PATTERN.finditer(trimmed))

        for group in self._groups:
            result = (
                self._match_suffix(group, trimmed)
                or self._match_fuzzy_suffix(group, trimmed, words)
                or self._match_keyword(group, trimmed, name_lower)
                or self._match_fuzzy_keyword(group, trimmed, name_lower, words)
            )
            if result:
                logger.debug(
                    f"Group match: '{trimmed}' -> '{result.canonical_name}' "
                    f"(variation={result.variation_name!r}, via {result.matched_by})"
                )
                return result

        return None

    def _match_suffix(self, group: CompiledProductGroup, trimmed: str) -> Optional[GroupMatch]:
        if not group.suffix_pattern or not group.suffix_pattern.search(trimmed):
            return None

        variation = group.trailing_suffix_pattern.sub('', trimmed).strip()
        if not variation or variation.lower() == group.suffix:
            variation = None
        return GroupMatch(group.base_name, variation, 'suffix')

    def _match_fuzzy_suffix(
        self, group: CompiledProductGroup, trimmed: str, words: Iterable['re.Match[str]']
    ) -> Optional[GroupMatch]:
        if not group.single_word_suffix:
            return None

        for word in words:
            if is_fuzzy_word_match(word.group(0).lower(), group.suffix):
                variation = trimmed[:word.start()].strip() or None
                return GroupMatch(group.base_name, variation, 'fuzzy_suffix')
        return None

    def _keyword_variation(self, group: CompiledProductGroup, trimmed: str, name_lower: str) -> Optional[str]:
        # The whole name is the variation unless it IS the canonical product
        return None if name_lower == group.base_name.lower() else trimmed

    def _match_keyword(self, group: CompiledProductGroup, trimmed: str, name_lower: str) -> Optional[GroupMatch]:
        for keyword in group.keywords:
            if name_lower == keyword or keyword in name_lower:
                return GroupMatch(group.base_name, self._keyword_variation(group, trimmed, name_lower), 'keyword')
        return None

    def _match_fuzzy_keyword(
        self, group: CompiledProductGroup, trimmed: str, name_lower: str, words: Sequence['re.Match[str]']
    ) -> Optional[GroupMatch]:
        for keyword in group.keywords:
            if ' ' in keyword:
                continue
            for word in words:
                if is_fuzzy_word_match(word.group(0).lower(), keyword):
                    return GroupMatch(
                        group.base_name, self._keyword_variation(group, trimmed, name_lower), 'fuzzy_keyword'
                    )
        return None

    def __len__(self) -> int:
        return len(self._groups)
