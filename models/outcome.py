# models/outcome.py
"""
Success-or-skip values threaded through the pipeline.

Nothing below the orchestrator raises for an expected failure (a dead URL, a
Japanese-language headline, a duplicate); the stage returns an ``Outcome``
carrying a ``Skip`` instead, so tests and logs can see *why* something
disappeared.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Stage(str, Enum):
    RESOLVE = "resolve"
    FETCH = "fetch"
    EXTRACT = "extract"
    VALIDATE = "validate"
    DEDUP = "dedup"
    BRAND = "brand"
    AGGREGATE = "aggregate"


class SkipReason(str, Enum):
    FETCH_FAILED = "fetch_failed"
    DEADLINE = "deadline_exceeded"
    ROBOTS = "disallowed_by_robots"
    THIN_PAGE = "thin_page"
    EXTRACTION_ERROR = "extraction_error"
    SHORT_TITLE = "short_title"
    LOW_SCORE = "low_quality_score"
    WEAK_DESCRIPTION = "weak_description"
    LANGUAGE = "language_rejected"
    MISSING_CONTENT = "missing_content"
    DUPLICATE = "duplicate"
    BRAND_FAILED = "brand_failed"
    UNEXPECTED = "unexpected_error"


class Skip(BaseModel):
    stage: Stage
    reason: SkipReason
    subject: str
    detail: Optional[str] = None

    def __str__(self) -> str:
        text = f"[{self.stage.value}] {self.reason.value}: {self.subject}"
        return f"{text} ({self.detail})" if self.detail else text


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    skip: Optional[Skip] = None

    @property
    def ok(self) -> bool:
        return self.skip is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def skipped(
        cls,
        stage: Stage,
        reason: SkipReason,
        subject: str,
        detail: Optional[str] = None,
    ) -> "Outcome[T]":
        return cls(skip=Skip(stage=stage, reason=reason, subject=subject, detail=detail))
