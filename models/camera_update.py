# models/camera_update.py
from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UpdateType(str, Enum):
    FIRMWARE = "firmware"
    CAMERA = "camera"
    LENS = "lens"


class Priority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


# Sort rank used by the store when ordering by priority
PRIORITY_RANK = {Priority.CRITICAL: 0, Priority.HIGH: 1, Priority.NORMAL: 2}


class CameraUpdate(BaseModel):
    """
    One firmware release, camera announcement or lens announcement.

    The extractor creates the record, the quality gate and the description
    synthesizer fill it in, and the identity assigner sets ``id``.  After
    deduplication a record is treated as read-only: the deduplicator works on
    copies, never on the instances it was handed.

    Serialised field names follow the public API (camelCase); Python code
    uses the snake_case attribute names.
    """

    # ------------------------------------------------------------------
    # Identity & classification
    # ------------------------------------------------------------------
    id: str = ""
    brand: str
    type: UpdateType = UpdateType.CAMERA
    title: str
    date: dt.date
    version: Optional[str] = None

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------
    description: str = ""
    features: List[str] = Field(default_factory=list)

    # ------------------------------------------------------------------
    # Informational links & labels
    # ------------------------------------------------------------------
    download_link: Optional[str] = Field(default=None, alias="downloadLink")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")
    source_name: Optional[str] = Field(default=None, alias="sourceName")
    priority: Priority = Priority.NORMAL
    category: str = "General"

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # ------------------------------------------------------------------
    # Whitespace normaliser for the free-text fields
    # ------------------------------------------------------------------
    @field_validator("title", "description", mode="before")
    @classmethod
    def _collapse_whitespace(cls, v: Any) -> Any:
        if isinstance(v, str):
            return " ".join(v.split())
        return v

    @field_validator("version", "download_link", "image_url", "source_url", "source_name", mode="before")
    @classmethod
    def _strip_and_nullify(cls, v: Any) -> Any:
        """Empty strings (after stripping) become ``None``."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("features", mode="before")
    @classmethod
    def _clean_features(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [" ".join(str(item).split()) for item in v if str(item).strip()]
        return v

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @property
    def version_key(self) -> str:
        """Version as used in composite keys; a missing version is its own value."""
        return self.version or "noversion"

    def feature_set(self) -> List[str]:
        """Features in a canonical (sorted) order for order-insensitive comparison."""
        return sorted(self.features)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise with the public camelCase names and ISO dates."""
        return self.model_dump(by_alias=True, mode="json")
