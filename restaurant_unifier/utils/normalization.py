"""
Centralized normalization utilities for the restaurant data unifier.
"""

import re

# Emoji blocks seen in menu exports ("🍔 Burgers", "☕ Coffee", "✨ Specials")
EMOJI_PATTERN = re.compile(r'[\U0001F300-\U0001F9FF\u2600-\u26FF\u2700-\u27BF]')


def strip_emojis(text: str) -> str:
    """Removes emoji characters, leaving surrounding text untouched."""
    return EMOJI_PATTERN.sub('', text)


def title_case(text: str, lower_rest: bool = True) -> str:
    """
    Upper-cases the first letter of every space separated word.

    Unlike str.title(), apostrophes and hyphens do not start new words,
    so "mac'n cheese" becomes "Mac'n Cheese" rather than "Mac'N Cheese".
    """
    words = text.split(' ')
    if lower_rest:
        return ' '.join(w[:1].upper() + w[1:].lower() for w in words)
    return ' '.join(w[:1].upper() + w[1:] for w in words)


def normalize_category(raw: str) -> str:
    """
    Standardizes category names so that every platform lands on the same row.

    Transformation pipeline:
    1. Strip emojis
    2. Collapse whitespace
    3. Title-case each word

    "🍔 Burgers" -> "Burgers", "sides & APPETIZERS" -> "Sides & Appetizers"
    """
    if not raw:
        return ""

    norm = strip_emojis(raw).strip()
    norm = re.sub(r'\s+', ' ', norm)
    return title_case(norm)


def normalize_product_name(raw: str) -> str:
    """Lower-cases and collapses whitespace for case-insensitive comparisons."""
    if not raw:
        return ""
    return re.sub(r'\s+', ' ', raw.lower().strip())
