# services/validation/quality.py
from typing import List

from loguru import logger

from core.thresholds import DEFAULT_THRESHOLDS, Thresholds
from models.camera_update import CameraUpdate
from models.outcome import Outcome, SkipReason, Stage
from services.extraction.classifier import has_type_signal

from .language import is_english_text, is_valid_feature

MIN_ACCEPTED_TITLE = 15
MIN_MEANINGFUL_LENGTH = 80
MIN_MEANINGFUL_WORDS = 10
MIN_FEATURES = 2


def is_meaningful_description(description: str, title: str) -> bool:
    """Long enough, more than ten words, and not just the title again."""
    if not description or len(description) <= MIN_MEANINGFUL_LENGTH:
        return False
    desc = description.strip().lower()
    head = title.strip().lower()
    if desc == head or desc.startswith(head):
        return False
    return len(description.split()) > MIN_MEANINGFUL_WORDS


def prune_features(features: List[str], thresholds: Thresholds = DEFAULT_THRESHOLDS) -> List[str]:
    """
    Keep only valid features.  A single survivor is treated as noise and the
    list comes back empty.
    """
    valid = [f for f in features if is_valid_feature(f, thresholds)]
    return valid if len(valid) >= MIN_FEATURES else []


def quality_score(update: CameraUpdate, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> int:
    score = 0
    if has_type_signal(update.type, update.title, update.version):
        score += 2
    if update.version:
        score += 1
    if update.features:
        score += 1
    if is_meaningful_description(update.description, update.title):
        score += 2
    if is_english_text(update.title, thresholds) and is_english_text(update.description, thresholds):
        score += 1
    return score


class QualityGate:
    """Decides whether a raw candidate is good enough to keep."""

    def __init__(self, thresholds: Thresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    def evaluate(self, candidate: CameraUpdate) -> Outcome[CameraUpdate]:
        """
        Return the candidate (with its features pruned) or a skip naming the
        first rule it broke.  The input instance is left untouched.
        """
        update = candidate.model_copy(
            update={"features": prune_features(candidate.features, self.thresholds)}
        )
        subject = update.title

        if len(update.title) <= MIN_ACCEPTED_TITLE:
            return Outcome.skipped(Stage.VALIDATE, SkipReason.SHORT_TITLE, subject)

        if not is_english_text(update.title, self.thresholds):
            return Outcome.skipped(Stage.VALIDATE, SkipReason.LANGUAGE, subject, "title")
        if not is_english_text(update.description, self.thresholds):
            return Outcome.skipped(Stage.VALIDATE, SkipReason.LANGUAGE, subject, "description")

        if not is_meaningful_description(update.description, update.title):
            return Outcome.skipped(Stage.VALIDATE, SkipReason.WEAK_DESCRIPTION, subject)

        score = quality_score(update, self.thresholds)
        if score < self.thresholds.min_quality_score:
            return Outcome.skipped(Stage.VALIDATE, SkipReason.LOW_SCORE, subject, f"score={score}")

        logger.debug(f"Accepted '{subject}' (score={score})")
        return Outcome.success(update)
