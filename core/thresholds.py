# core/thresholds.py
"""
Every tunable heuristic lives here so the language gate, the quality gate and
the deduplicator agree on the same numbers.  The defaults were picked by eye
on real listing pages; override them through settings rather than editing the
call sites.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.config import Settings, get_settings


@dataclass(frozen=True)
class Thresholds:
    # share of stop/domain words a text needs to count as English
    language_word_ratio: float = 0.10
    # share of characters outside the safe punctuation/alphanumeric set
    special_char_ratio: float = 0.10
    # 1 - |lenA - lenB| / max(lenA, lenB) above which titles are near-equal
    length_similarity: float = 0.9
    # minimum record quality score for acceptance
    min_quality_score: int = 4


DEFAULT_THRESHOLDS = Thresholds()


def thresholds_from_settings(cfg: Optional[Settings] = None) -> Thresholds:
    """Build a ``Thresholds`` from the (possibly env-overridden) settings."""
    cfg = cfg or get_settings()
    return Thresholds(
        language_word_ratio=cfg.LANGUAGE_WORD_RATIO,
        special_char_ratio=cfg.SPECIAL_CHAR_RATIO,
        length_similarity=cfg.LENGTH_SIMILARITY,
        min_quality_score=cfg.MIN_QUALITY_SCORE,
    )
