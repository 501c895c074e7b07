# services/storage/update_store.py
"""
In-memory persistence for aggregated camera updates.

Records are keyed by ``id``.  Saving is change-aware: an unknown id is
inserted, a known id is only rewritten when one of the compared fields
differs, and an identical record is counted as skipped.  A run that returned
``NO_NEW_DATA`` leaves the store exactly as it was.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

from loguru import logger

from core.thresholds import DEFAULT_THRESHOLDS, Thresholds
from models.aggregation import AggregationResult
from models.camera_update import PRIORITY_RANK, CameraUpdate, Priority, UpdateType
from services.validation.language import is_english_text

COMPARED_FIELDS = ("title", "description", "version", "priority", "date")


@dataclass
class SaveReport:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    filtered: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.updated)


def has_content_changed(existing: Optional[CameraUpdate], new: CameraUpdate) -> bool:
    """Compare the fields that matter; feature order is ignored."""
    if existing is None:
        return True
    for name in COMPARED_FIELDS:
        if getattr(existing, name) != getattr(new, name):
            return True
    return existing.feature_set() != new.feature_set()


def _split(value: Optional[Union[str, Iterable[str]]]) -> List[str]:
    """``"Canon,Nikon"`` or ``["Canon"]`` → ``["canon", "nikon"]``."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    return [str(item).strip().lower() for item in items if str(item).strip()]


class InMemoryUpdateStore:
    def __init__(self, thresholds: Thresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds
        self._records: Dict[str, CameraUpdate] = {}
        self.last_refreshed_at: Optional[dt.datetime] = None

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def save_updates(self, updates: Iterable[CameraUpdate]) -> SaveReport:
        report = SaveReport()
        for update in updates:
            if not (
                is_english_text(update.title, self.thresholds)
                and is_english_text(update.description, self.thresholds)
            ):
                report.filtered += 1
                continue

            existing = self._records.get(update.id)
            if existing is None:
                self._records[update.id] = update
                report.inserted += 1
            elif has_content_changed(existing, update):
                self._records[update.id] = update
                report.updated += 1
            else:
                report.skipped += 1

        logger.info(
            f"Saved updates: {report.inserted} inserted, {report.updated} updated, "
            f"{report.skipped} unchanged, {report.filtered} filtered"
        )
        return report

    def apply_result(self, result: AggregationResult) -> Optional[SaveReport]:
        """
        Persist an aggregation result.  ``NO_NEW_DATA`` is a no-op and returns
        ``None``; either way the run's completion time is recorded.
        """
        self.last_refreshed_at = result.completed_at
        if not result.has_new_data:
            logger.info(f"Run {result.run_id} had no new data; keeping {len(self)} stored update(s)")
            return None
        return self.save_updates(result.updates)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, update_id: str) -> Optional[CameraUpdate]:
        return self._records.get(update_id)

    def query(
        self,
        brand: Optional[Union[str, Iterable[str]]] = None,
        type: Optional[Union[str, Iterable[str]]] = None,
        search: Optional[str] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
        sort_by: str = "date",
    ) -> List[CameraUpdate]:
        brands = _split(brand)
        types = _split(type)
        needle = (search or "").strip().lower()

        results = []
        for update in self._records.values():
            if brands and update.brand.lower() not in brands:
                continue
            if types and update.type.value not in types:
                continue
            if date_from and update.date < date_from:
                continue
            if date_to and update.date > date_to:
                continue
            if needle:
                haystack = " ".join([update.title, update.description, *update.features]).lower()
                if needle not in haystack:
                    continue
            results.append(update)

        results.sort(key=lambda u: u.date, reverse=True)
        if sort_by == "priority":
            results.sort(key=lambda u: PRIORITY_RANK[u.priority])
        return results

    def stats(self) -> Dict[str, object]:
        by_brand: Dict[str, int] = {}
        by_type = {t.value: 0 for t in UpdateType}
        by_priority = {p.value: 0 for p in Priority}
        for update in self._records.values():
            by_brand[update.brand] = by_brand.get(update.brand, 0) + 1
            by_type[update.type.value] += 1
            by_priority[update.priority.value] += 1
        return {
            "total": len(self._records),
            "byBrand": by_brand,
            "byType": by_type,
            "byPriority": by_priority,
            "lastUpdated": self.last_refreshed_at.isoformat() if self.last_refreshed_at else None,
        }
