# services/extraction/classifier.py
"""
Rule tables for classifying a candidate headline.

Every decision is an ordered list of ``(pattern, label)`` pairs; the first
pattern that matches wins and a default covers the rest.  Adding a brand,
a type or a category means adding a row, not another ``if`` branch.
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Optional, Pattern, Sequence, Tuple, TypeVar

from dateutil import parser as dparser

from models.camera_update import Priority, UpdateType

L = TypeVar("L")
Rule = Tuple[Pattern[str], L]

# ----------------------------------------------------------------------
# Type, priority and category rules
# ----------------------------------------------------------------------
TYPE_RULES: Sequence[Rule] = (
    (re.compile(r"firmware|\bupdates?\b|\bversion\b|\bv\d+\.\d+|software\s+update|latest\s+version", re.I),
     UpdateType.FIRMWARE),
    (re.compile(r"\blens(?:es)?\b|nikkor|\brf\s*\d+|\bfe\s*\d+|\bmount\b|\d+(?:-\d+)?\s?mm\b|f/\d+|"
                r"\baperture\b|\bzoom\b|\bprime\b", re.I),
     UpdateType.LENS),
)

PRIORITY_RULES: Sequence[Rule] = (
    (re.compile(r"\b(?:critical|security|important|major)\b", re.I), Priority.CRITICAL),
    (re.compile(r"\b(?:new|announce[sd]?|announcement|launch(?:es|ed)?)\b", re.I), Priority.HIGH),
)

CATEGORY_RULES: Sequence[Rule] = (
    (re.compile(r"full.?frame|mirrorless", re.I), "Full Frame Mirrorless"),
    (re.compile(r"\b(?:prime|fixed)\b", re.I), "Prime Lens"),
    (re.compile(r"\bzoom\b", re.I), "Zoom Lens"),
)

DEFAULT_CATEGORY = "General"

# Type-specific evidence that the headline is about a real product
CAMERA_SIGNAL = re.compile(r"\beos\b|nikon\s*z|\balpha\b|\ba7|\ba9|\br\d+|\bz\d+|mirrorless", re.I)
LENS_SIGNAL = re.compile(r"\d+\s?mm\b|nikkor|\brf\b|\bfe\b|\bmount\b|f/\d+", re.I)


def first_match(rules: Sequence[Rule], text: str, default: L) -> L:
    for pattern, label in rules:
        if pattern.search(text):
            return label
    return default


def classify_type(text: str) -> UpdateType:
    return first_match(TYPE_RULES, text, UpdateType.CAMERA)


def classify_priority(text: str) -> Priority:
    return first_match(PRIORITY_RULES, text, Priority.NORMAL)


def classify_category(text: str) -> str:
    return first_match(CATEGORY_RULES, text, DEFAULT_CATEGORY)


def has_type_signal(update_type: UpdateType, title: str, version: Optional[str]) -> bool:
    """Firmware needs a version; cameras a model name; lenses a focal length or mount."""
    if update_type is UpdateType.FIRMWARE:
        return bool(version)
    if update_type is UpdateType.LENS:
        return bool(LENS_SIGNAL.search(title))
    return bool(CAMERA_SIGNAL.search(title))


# ----------------------------------------------------------------------
# Version
# ----------------------------------------------------------------------
PREFIXED_VERSION = re.compile(r"\b(?:version|ver\.?|v)\s*(\d+\.\d+(?:\.\d+)?)", re.I)
# A bare dotted numeral that is not an aperture (f/2.8), a focal length
# (24.5mm), a teleconverter (1.4x), a resolution (24.2MP) or a frame rate
BARE_VERSION = re.compile(
    r"(?<![\w./-])(\d+\.\d+(?:\.\d+)?)(?![\w./-]|\s?(?:mm|x|mp|fps|stops?)\b)",
    re.I,
)


def extract_version(text: str, context: str = "") -> Optional[str]:
    match = PREFIXED_VERSION.search(f"{text} {context}")
    if match:
        return match.group(1)
    match = BARE_VERSION.search(text)
    return match.group(1) if match else None


# ----------------------------------------------------------------------
# Date
# ----------------------------------------------------------------------
_MONTH = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\.?"
)

# Spans that look like dates; dateutil does the actual parsing.  Tried in order.
DATE_PATTERNS = (
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),                                      # 2024-03-15
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),                                  # 3/15/2024
    re.compile(rf"\b{_MONTH}\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}\b", re.I),  # March 15, 2024
    re.compile(rf"\b\d{{1,2}}(?:st|nd|rd|th)?\s+{_MONTH},?\s+\d{{4}}\b", re.I),  # 15 March 2024
)


def extract_date(context: str, default: dt.date) -> dt.date:
    """First parseable calendar date in ``context``, else ``default``."""
    fallback = dt.datetime.combine(default, dt.time())
    for pattern in DATE_PATTERNS:
        for match in pattern.finditer(context or ""):
            try:
                return dparser.parse(match.group(0), default=fallback).date()
            except (ValueError, OverflowError):
                continue
    return default
