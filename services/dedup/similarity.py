# services/dedup/similarity.py
"""
String-level matching rules shared by the local and global dedup passes.

Everything here is pure and works on titles/versions only, so the
thresholds can be exercised without any HTML in sight.
"""

import re
from typing import Optional

from core.thresholds import DEFAULT_THRESHOLDS, Thresholds
from models.camera_update import CameraUpdate

from .identity import strip_title

MIN_CONTAINED_LENGTH = 10

_VERSION_TOKEN = re.compile(r"v\d+")


def normalize_match_title(title: str) -> str:
    """Identity normalisation plus removal of ``v<digits>`` tokens, untruncated."""
    return _VERSION_TOKEN.sub("", strip_title(title))


def similarity(a: str, b: str) -> float:
    """``1 - |len(a) - len(b)| / max(len(a), len(b))``; two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - abs(len(a) - len(b)) / longest


def exact_key(update: CameraUpdate) -> str:
    norm = normalize_match_title(update.title)
    return f"{update.brand.lower()}_{update.type.value}_{norm}_{update.version_key}"


def title_version_key(update: CameraUpdate) -> str:
    norm = normalize_match_title(update.title)
    return f"{update.brand.lower()}_{norm}_{update.version_key}"


def _major(version: str) -> str:
    return version.split(".")[0]


def containment_match(
    title_a: str, title_b: str, version_a: Optional[str], version_b: Optional[str]
) -> bool:
    """
    One normalised title contains the other (shorter side at least 10 chars)
    and either the versions are equal (both missing counts) or they share a
    major number and the titles are identical.
    """
    shorter, longer = sorted((title_a, title_b), key=len)
    if len(shorter) < MIN_CONTAINED_LENGTH or shorter not in longer:
        return False
    if version_a == version_b:
        return True
    return bool(
        version_a and version_b
        and _major(version_a) == _major(version_b)
        and title_a == title_b
    )


def length_match(
    title_a: str,
    title_b: str,
    version_a: Optional[str],
    version_b: Optional[str],
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """Near-equal lengths, a common prefix over the shorter length, identical versions."""
    shared = min(len(title_a), len(title_b))
    if shared == 0 or version_a != version_b:
        return False
    if similarity(title_a, title_b) <= thresholds.length_similarity:
        return False
    return title_a[:shared] == title_b[:shared]


def same_key(a: CameraUpdate, b: CameraUpdate, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> bool:
    """True when ``a`` and ``b`` describe the same real-world update."""
    if exact_key(a) == exact_key(b) or title_version_key(a) == title_version_key(b):
        return True
    if a.id and a.id == b.id:
        return True
    if a.brand.lower() != b.brand.lower() or a.type != b.type:
        return False
    norm_a = normalize_match_title(a.title)
    norm_b = normalize_match_title(b.title)
    return (
        containment_match(norm_a, norm_b, a.version, b.version)
        or length_match(norm_a, norm_b, a.version, b.version, thresholds)
    )
