"""Serialization helpers for API responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from bson import ObjectId


def _to_jsonable(value: Any) -> Any:
    """Recursively normalize values for JSON responses."""
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    return str(value)


def normalize_tour(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize one tour and add the ``id`` and ``durationWeeks`` virtuals."""
    tour = _to_jsonable(doc)
    if "_id" in tour:
        tour["id"] = tour["_id"]
    duration = doc.get("duration")
    if isinstance(duration, (int, float)) and not isinstance(duration, bool):
        tour["durationWeeks"] = duration / 7
    return tour


def normalize_tours(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Normalize tour documents for JSON API response."""
    return [normalize_tour(doc) for doc in docs]


def normalize_docs(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Normalize report rows for JSON API response."""
    return [_to_jsonable(doc) for doc in docs]
