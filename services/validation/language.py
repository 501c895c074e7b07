# services/validation/language.py
"""
Cheap English-and-sanity filter for scraped text.

This is not language identification.  It rejects non-Latin scripts outright,
then asks that a small share of the words be common English or camera
vocabulary, that at least two alphabetic words sit next to each other and
that the text is not mostly symbols.  Other Latin-alphabet languages that
share enough vocabulary get through; that is accepted.
"""

import re
from typing import Optional

from core.thresholds import DEFAULT_THRESHOLDS, Thresholds

MIN_TEXT_LENGTH = 10
MIN_FEATURE_LENGTH = 15
MAX_FEATURE_LENGTH = 300

# Cyrillic, Arabic, Thai, CJK ideographs, Hiragana, Katakana, Hangul
NON_LATIN_SCRIPTS = re.compile(
    r"[\u0400-\u04FF\u0600-\u06FF\u0E00-\u0E7F\u4E00-\u9FFF"
    r"\u3040-\u309F\u30A0-\u30FF\uAC00-\uD7AF]"
)

COMMON_WORDS = (
    "the", "is", "at", "which", "on", "a", "an", "as", "are", "was", "were",
    "been", "be", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "can", "of", "for", "to", "in", "with",
    "by", "from", "about", "into", "through", "during", "before", "after",
    "above", "below", "between", "under", "camera", "lens", "firmware",
    "update", "version", "feature", "photo", "image", "sensor", "autofocus",
    "exposure", "aperture", "shutter", "iso", "improved", "enhanced", "new",
    "fixed", "stability", "performance", "detection", "tracking", "recording",
    "light", "conditions",
)
COMMON_WORD_PATTERN = re.compile(r"\b(?:" + "|".join(COMMON_WORDS) + r")\b", re.IGNORECASE)

ADJACENT_WORDS = re.compile(r"\b[a-zA-Z]+\s+[a-zA-Z]+\b")
SPECIAL_CHARS = re.compile(r"[^\w\s.,!?;:()\-'\"]")

PROMOTIONAL_TERMS = (
    "buy", "buy now", "shop", "shopping", "price", "prices", "pricing",
    "deal", "deals", "sale", "coupon", "coupons", "discount", "discounts",
    "subscribe", "newsletter", "affiliate", "order now", "pre-order",
    "preorder", "in stock", "free shipping", "save \\$?\\d+",
)
PROMOTIONAL_PATTERN = re.compile(r"\b(?:" + "|".join(PROMOTIONAL_TERMS) + r")\b", re.IGNORECASE)

NAVIGATION_TERMS = (
    "home", "menu", "search", "login", "logout", "register", "cart",
    "checkout", "privacy", "cookies", "sitemap", "share", "comments", "reply",
)
NAVIGATION_PATTERN = re.compile(r"\b(?:" + "|".join(NAVIGATION_TERMS) + r")\b", re.IGNORECASE)
# share of words that must be navigation labels before a text counts as a menu item
NAVIGATION_SHARE = 0.5


def is_english_text(text: Optional[str], thresholds: Thresholds = DEFAULT_THRESHOLDS) -> bool:
    """True when ``text`` looks like readable English (or close enough)."""
    if not text or len(text) < MIN_TEXT_LENGTH:
        return False

    if NON_LATIN_SCRIPTS.search(text):
        return False

    word_count = len(text.split()) or 1
    common = len(COMMON_WORD_PATTERN.findall(text))
    if common / word_count < thresholds.language_word_ratio:
        return False

    if not ADJACENT_WORDS.search(text):
        return False

    special = len(SPECIAL_CHARS.findall(text))
    if special / len(text) > thresholds.special_char_ratio:
        return False

    return True


def is_promotional(text: str) -> bool:
    return bool(PROMOTIONAL_PATTERN.search(text or ""))


def looks_like_navigation(text: str) -> bool:
    """True when the text is mostly UI labels (``Home | Search | Login``), not prose that mentions one."""
    words = (text or "").split()
    if not words:
        return False
    labels = len(NAVIGATION_PATTERN.findall(text))
    return labels / len(words) >= NAVIGATION_SHARE


def is_valid_feature(text: Optional[str], thresholds: Thresholds = DEFAULT_THRESHOLDS) -> bool:
    """A feature bullet must be sized sensibly, readable, and neither an ad nor a menu item."""
    if not text:
        return False
    text = " ".join(text.split())
    if not MIN_FEATURE_LENGTH <= len(text) <= MAX_FEATURE_LENGTH:
        return False
    if is_promotional(text) or looks_like_navigation(text):
        return False
    return is_english_text(text, thresholds)
