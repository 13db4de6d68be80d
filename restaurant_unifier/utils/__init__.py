"""
Shared helpers: logging, text normalization and edit distance.
"""

from .logging_config import logger, setup_logging
from .levenshtein import levenshtein, strip_diacritics
from .normalization import normalize_category, normalize_product_name, strip_emojis, title_case

__all__ = [
    "logger", "setup_logging", "levenshtein", "strip_diacritics",
    "normalize_category", "normalize_product_name", "strip_emojis", "title_case",
]
