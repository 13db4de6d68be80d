"""
Variation-pattern library.

Turns raw menu strings into a base name plus a size/quantity/serving/strength
qualifier using an ordered list of configured regex rules:

    "Churros 12pcs" -> base "Churros",  variation "12 pcs", type quantity
    "Lg Coke"       -> base "Coke",     variation "Large",  type size

Rule order is precedence. Specific rules must be listed before generic ones
and the list is never re-sorted.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from restaurant_unifier.config.schemas import VariationPatternConfig, VariationPatternsConfig, parse_config
from restaurant_unifier.errors import ConfigurationError
from restaurant_unifier.utils.normalization import title_case


class VariationType(str, Enum):
    """Kinds of qualifier a variation can carry."""
    QUANTITY = "quantity"
    SIZE = "size"
    SERVING = "serving"
    STRENGTH = "strength"
    SEMANTIC = "semantic"  # assigned by product-group matches


SIZE_EXPANSIONS = {
    'lg': 'Large',
    'sm': 'Small',
    'med': 'Medium',
}

# Standalone abbreviations recognised when normalizing a bare variation name
SIZE_ABBREVIATIONS = {
    **SIZE_EXPANSIONS,
    'xl': 'XL',
    'xxl': 'XXL',
}

STRENGTH_EXPANSIONS = {
    'single': 'Single',
    'double': 'Double',
    'dbl': 'Double',
}

FORMAT_TRANSFORMERS: Dict[str, Callable[[str], str]] = {
    'capitalize': lambda value: title_case(value),
    'size_expand': lambda value: SIZE_EXPANSIONS.get(value.lower(), value),
    'strength_expand': lambda value: STRENGTH_EXPANSIONS.get(value.lower(), value),
}

PLACEHOLDER_PATTERN = re.compile(r'\{(\d+)(?:\|(\w+))?\}')

# Flag letters accepted in configuration files
REGEX_FLAGS = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
    'g': 0,  # always first match
    'u': 0,  # str patterns are unicode already
}

LEADING_DASH = re.compile(r'^[-–—]\s*')


@dataclass(frozen=True)
class VariationExtraction:
    """Outcome of scanning a name against the rule list."""
    base_name: str
    variation: Optional[str] = None
    variation_type: Optional[VariationType] = None
    rule_name: Optional[str] = None


@dataclass(frozen=True)
class CompiledVariationPattern:
    name: str
    regex: 're.Pattern[str]'
    variation_type: VariationType
    template: str

    def format(self, match: 're.Match[str]') -> str:
        """Renders the rule's template against a regex match."""
        def substitute(placeholder: 're.Match[str]') -> str:
            group = int(placeholder.group(1))
            value = match.group(group) if group <= (match.re.groups or 0) else None
            value = value or ''
            transformer = placeholder.group(2)
            if transformer:
                return FORMAT_TRANSFORMERS[transformer](value)
            return value

        return PLACEHOLDER_PATTERN.sub(substitute, self.template)


def _translate_regex(source: str) -> str:
    # Named groups are written "(?<name>" in the JSON files
    return re.sub(r'\(\?<(?![=!])', '(?P<', source)


def _compile_flags(flags: Optional[str], rule_name: str) -> int:
    compiled = 0
    for letter in flags or '':
        if letter not in REGEX_FLAGS:
            raise ConfigurationError(f"Unknown regex flag '{letter}' in variation pattern '{rule_name}'")
        compiled |= REGEX_FLAGS[letter]
    return compiled


def compile_pattern(pattern: VariationPatternConfig) -> CompiledVariationPattern:
    """Compiles one validated rule, rejecting bad regexes and unknown transformers."""
    for placeholder in PLACEHOLDER_PATTERN.finditer(pattern.format):
        transformer = placeholder.group(2)
        if transformer and transformer not in FORMAT_TRANSFORMERS:
            raise ConfigurationError(
                f"Unknown format transformer '{transformer}' in variation pattern '{pattern.name}'"
            )

    try:
        regex = re.compile(_translate_regex(pattern.regex), _compile_flags(pattern.flags, pattern.name))
    except re.error as e:
        raise ConfigurationError(f"Invalid regex in variation pattern '{pattern.name}': {e}") from e

    return CompiledVariationPattern(
        name=pattern.name,
        regex=regex,
        variation_type=VariationType(pattern.type),
        template=pattern.format,
    )


class VariationPatternLibrary:
    """
    Immutable, compiled view of the variation-pattern configuration.

    Built once per run and shared read-only by every component that needs it;
    all methods are pure, so concurrent mappers may call them freely.
    """

    def __init__(self, patterns: Sequence[CompiledVariationPattern], abbreviations: Mapping[str, str]):
        self._patterns: Tuple[CompiledVariationPattern, ...] = tuple(patterns)
        self._abbreviations: Dict[str, str] = {k.lower().strip(): v for k, v in abbreviations.items()}

    @classmethod
    def from_config(cls, config: VariationPatternsConfig) -> "VariationPatternLibrary":
        return cls([compile_pattern(p) for p in config.patterns], config.abbreviations)

    @classmethod
    def from_dict(cls, data: Union[dict, VariationPatternsConfig]) -> "VariationPatternLibrary":
        if isinstance(data, VariationPatternsConfig):
            return cls.from_config(data)
        return cls.from_config(parse_config(data, VariationPatternsConfig, 'variation patterns'))

    @property
    def patterns(self) -> Tuple[CompiledVariationPattern, ...]:
        return self._patterns

    @property
    def abbreviations(self) -> Dict[str, str]:
        return dict(self._abbreviations)

    def extract_variation(self, name: str) -> VariationExtraction:
        """
        Scans the rules in order and splits off the first matching qualifier.

        The matched span is removed from the name to form the base name;
        when no rule matches, the trimmed name is returned unchanged.
        """
        trimmed = name.strip()

        for pattern in self._patterns:
            match = pattern.regex.search(trimmed)
            if match:
                base_name = trimmed[:match.start()] + ' ' + trimmed[match.end():]
                base_name = re.sub(r'\s+', ' ', base_name).strip()
                return VariationExtraction(
                    base_name=base_name,
                    variation=pattern.format(match),
                    variation_type=pattern.variation_type,
                    rule_name=pattern.name,
                )

        return VariationExtraction(base_name=trimmed)

    def normalize_variation_name(self, variation_name: str) -> Tuple[str, Optional[VariationType]]:
        """
        Brings a free-text variation name into canonical form.

        - Embedded qualifiers are extracted ("Buffalo Wings 12pc" -> "12 pcs")
        - Standalone size abbreviations are expanded ("lg" -> "Large")
        - Leading dashes are stripped ("- large" -> "Large")
        - All lower-case leftovers are title-cased
        """
        if not variation_name:
            return variation_name, None

        name = variation_name.strip()

        extracted = self.extract_variation(name)
        if extracted.variation:
            return extracted.variation, extracted.variation_type

        size = SIZE_ABBREVIATIONS.get(name.lower())
        if size:
            return size, VariationType.SIZE

        name = LEADING_DASH.sub('', name).strip()

        if name and name == name.lower():
            name = title_case(name, lower_rest=False)

        return name, None

    def expand_abbreviation(self, name: str) -> str:
        """Returns the configured expansion ("coke" -> "coca-cola") or the lower-cased name."""
        lower = name.lower().strip()
        return self._abbreviations.get(lower, lower)

    def __len__(self) -> int:
        return len(self._patterns)
