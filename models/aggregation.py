# models/aggregation.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .camera_update import CameraUpdate
from .outcome import Skip


# ----------------------------------------------------------------------
#  "No new data" sentinel
# ----------------------------------------------------------------------
class NoNewData:
    """
    Returned in place of an update list when a run produced nothing usable.

    Callers must leave previously persisted data untouched when they see it;
    this is deliberately not the same thing as an empty list.
    """

    _instance: Optional["NoNewData"] = None

    def __new__(cls) -> "NoNewData":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_NEW_DATA"


NO_NEW_DATA = NoNewData()


# ----------------------------------------------------------------------
#  Run status enumeration
# ----------------------------------------------------------------------
class AggregationStatus(str, Enum):
    COMPLETED = "completed"
    NO_NEW_DATA = "no_new_data"
    FAILED = "failed"


# ----------------------------------------------------------------------
#  Request model – what the API and the CLI build before a run
# ----------------------------------------------------------------------
class AggregationRequest(BaseModel):
    """
    Parameters for a single aggregation run.

    Every field is optional; an empty request runs every configured brand
    with the deadline from settings.
    """

    run_id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        description="Unique identifier for the run",
    )
    brands: List[str] = Field(
        default_factory=list,
        description="Brands to aggregate; empty means every configured brand",
    )
    deadline_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        le=3600,
        description="Wall-clock budget for the whole run (seconds)",
    )

    @field_validator("brands", mode="before")
    @classmethod
    def _split_brands(cls, v):
        """Accept ``"Canon,Nikon"`` as well as a list."""
        if isinstance(v, str):
            return [b.strip() for b in v.split(",") if b.strip()]
        return v


# ----------------------------------------------------------------------
#  Results
# ----------------------------------------------------------------------
@dataclass
class BrandReport:
    """What one brand pipeline produced and what it dropped along the way."""

    brand: str
    urls_resolved: int = 0
    urls_fetched: int = 0
    candidates: int = 0
    updates: List[CameraUpdate] = field(default_factory=list)
    skips: List[Skip] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class AggregationResult:
    """
    Outcome of one orchestrator run.

    ``updates`` is a non-empty, date-sorted list or ``NO_NEW_DATA``.
    ``completed_at`` stands in for a "last scrape time" global so callers can
    record it themselves.
    """

    updates: Union[List[CameraUpdate], NoNewData]
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    run_id: uuid.UUID = field(default_factory=uuid.uuid4)
    brand_reports: List[BrandReport] = field(default_factory=list)
    skips: List[Skip] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def has_new_data(self) -> bool:
        return self.updates is not NO_NEW_DATA

    @property
    def status(self) -> AggregationStatus:
        if self.error is not None:
            return AggregationStatus.FAILED
        if not self.has_new_data:
            return AggregationStatus.NO_NEW_DATA
        return AggregationStatus.COMPLETED

    @property
    def count(self) -> int:
        return len(self.updates) if isinstance(self.updates, list) else 0
