# api/v1/endpoints/camera_updates.py
"""
Camera update endpoints.

Endpoints:
    GET  /camera-updates                - filtered, sorted list
    GET  /camera-updates/stats/summary  - totals by brand, type and priority
    GET  /camera-updates/{update_id}    - one record
    POST /camera-updates/refresh        - run the aggregator and persist the result
"""

import datetime as dt
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request
from loguru import logger

from core.exceptions import UpdateNotFoundError
from models.aggregation import AggregationRequest
from services.crawler.aggregator import CameraUpdateAggregator
from services.crawler.config_loader import BrandNotFoundError, get_brand_config
from services.crawler.deadline import Deadline
from services.storage.update_store import InMemoryUpdateStore

router = APIRouter(prefix="/camera-updates", tags=["camera-updates"])


def _store(request: Request) -> InMemoryUpdateStore:
    return request.app.state.store


def _last_updated(store: InMemoryUpdateStore) -> Optional[str]:
    return store.last_refreshed_at.isoformat() if store.last_refreshed_at else None


@router.get("")
async def list_updates(
    request: Request,
    brand: Optional[str] = Query(None, description="Comma-separated brand names"),
    type: Optional[str] = Query(None, description="Comma-separated types (firmware, camera, lens)"),
    search: Optional[str] = Query(None, description="Free-text search over title, description and features"),
    date_from: Optional[dt.date] = Query(None, alias="dateFrom"),
    date_to: Optional[dt.date] = Query(None, alias="dateTo"),
    sort_by: Literal["date", "priority"] = Query("date", alias="sortBy"),
) -> Dict[str, Any]:
    store = _store(request)
    updates = store.query(
        brand=brand,
        type=type,
        search=search,
        date_from=date_from,
        date_to=date_to,
        sort_by=sort_by,
    )
    return {
        "success": True,
        "count": len(updates),
        "lastUpdated": _last_updated(store),
        "updates": [u.to_dict() for u in updates],
    }


# Declared before /{update_id} so "stats" is not taken for an id
@router.get("/stats/summary")
async def stats_summary(request: Request) -> Dict[str, Any]:
    return {"success": True, "stats": _store(request).stats()}


@router.get("/{update_id}")
async def get_update(update_id: str, request: Request) -> Dict[str, Any]:
    update = _store(request).get(update_id)
    if update is None:
        raise UpdateNotFoundError(update_id)
    return {"success": True, "update": update.to_dict()}


@router.post("/refresh")
async def refresh_updates(
    request: Request,
    payload: Optional[AggregationRequest] = Body(None),
) -> Dict[str, Any]:
    """
    Run one aggregation and persist it.

    A run that yields nothing (or fails) keeps the stored data as it is and
    says so; it is not reported as an error.
    """
    payload = payload or AggregationRequest()
    for brand in payload.brands:
        try:
            get_brand_config(brand, request.app.state.settings.SOURCES_PATH)
        except BrandNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc.args[0])) from exc

    store = _store(request)
    aggregator: CameraUpdateAggregator = request.app.state.aggregator
    deadline_seconds = payload.deadline_seconds or request.app.state.settings.DEADLINE_SECONDS

    async with request.app.state.refresh_lock:
        logger.info(f"Refresh requested (run {payload.run_id})")
        result = await aggregator.run(
            deadline=Deadline(deadline_seconds),
            brands=payload.brands or None,
            run_id=payload.run_id,
        )
        saved = store.apply_result(result)

    if saved is None:
        return {
            "success": True,
            "message": (
                "No new updates available, keeping existing data active"
                if len(store) else "No updates found"
            ),
            "runId": str(result.run_id),
            "status": result.status.value,
            "inserted": 0,
            "updated": 0,
            "skipped": 0,
            "total": 0,
            "existing": len(store),
            "lastUpdated": _last_updated(store),
        }

    return {
        "success": True,
        "message": "Camera updates refreshed successfully" if saved.changed else "All updates are current",
        "runId": str(result.run_id),
        "status": result.status.value,
        "inserted": saved.inserted,
        "updated": saved.updated,
        "skipped": saved.skipped,
        "total": result.count,
        "lastUpdated": _last_updated(store),
    }
