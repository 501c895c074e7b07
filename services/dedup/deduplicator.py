# services/dedup/deduplicator.py
"""
Three-tier duplicate removal, used once per brand and once more across the
merged output of every brand.

1. exact key, title+version key or id already seen;
2. one normalised title contains the other (same brand and type);
3. near-equal title lengths with a common prefix and identical versions.

The earlier candidate always wins.  Inputs are never modified: the
pre-filter works on copies.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from loguru import logger

from core.thresholds import DEFAULT_THRESHOLDS, Thresholds
from models.camera_update import CameraUpdate
from models.outcome import Outcome, Skip, SkipReason, Stage
from services.validation.language import is_english_text
from services.validation.quality import prune_features

from .identity import assign_identity
from .similarity import exact_key, same_key, title_version_key


@dataclass
class DedupResult:
    unique: List[CameraUpdate] = field(default_factory=list)
    dropped: List[Skip] = field(default_factory=list)


class Deduplicator:
    def __init__(self, thresholds: Thresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    # ------------------------------------------------------------------
    def prefilter(self, update: CameraUpdate) -> Outcome[CameraUpdate]:
        """Drop records without readable title/description; revalidate features."""
        if not update.title or not update.description:
            return Outcome.skipped(Stage.DEDUP, SkipReason.MISSING_CONTENT, update.title or update.id)
        if not is_english_text(update.title, self.thresholds) or not is_english_text(
            update.description, self.thresholds
        ):
            return Outcome.skipped(Stage.DEDUP, SkipReason.LANGUAGE, update.title)

        changes = {"features": prune_features(update.features, self.thresholds)}
        copy = update.model_copy(update=changes)
        if not copy.id:
            copy = assign_identity(copy)
        return Outcome.success(copy)

    def _fuzzy_match(self, update: CameraUpdate, kept: List[CameraUpdate]) -> Optional[CameraUpdate]:
        for existing in kept:
            if same_key(existing, update, self.thresholds):
                return existing
        return None

    # ------------------------------------------------------------------
    def deduplicate(self, updates: Iterable[CameraUpdate], scope: str = "local") -> DedupResult:
        """
        Return the surviving records in input order plus one skip per record
        that was dropped (by the pre-filter or as a duplicate).
        """
        result = DedupResult()
        seen: Set[str] = set()

        for candidate in updates:
            outcome = self.prefilter(candidate)
            if not outcome.ok:
                result.dropped.append(outcome.skip)
                continue
            update = outcome.value
            keys = [exact_key(update), title_version_key(update), update.id]

            if any(key in seen for key in keys):
                result.dropped.append(
                    Skip(stage=Stage.DEDUP, reason=SkipReason.DUPLICATE, subject=update.title,
                         detail=f"{scope}: key already seen")
                )
                continue

            match = self._fuzzy_match(update, result.unique)
            if match is not None:
                result.dropped.append(
                    Skip(stage=Stage.DEDUP, reason=SkipReason.DUPLICATE, subject=update.title,
                         detail=f"{scope}: similar to {match.id}")
                )
                continue

            seen.update(keys)
            result.unique.append(update)

        logger.debug(
            f"{scope} dedup kept {len(result.unique)} record(s), dropped {len(result.dropped)}"
        )
        return result
