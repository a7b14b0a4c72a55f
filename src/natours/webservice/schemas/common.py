"""Shared response schemas for webservice endpoints."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel


class TourListData(BaseModel):
    """``data`` payload of the tour list."""

    tours: List[Dict[str, Any]]


class TourListResponse(BaseModel):
    """Envelope for tour list endpoints."""

    status: Literal["success"] = "success"
    requestedAt: Optional[str] = None
    results: int
    data: TourListData


class TourData(BaseModel):
    """``data`` payload for a single tour."""

    tour: Dict[str, Any]


class TourResponse(BaseModel):
    """Envelope for single-tour endpoints."""

    status: Literal["success"] = "success"
    data: TourData


class StatsData(BaseModel):
    """``data`` payload of the stats report."""

    stats: List[Dict[str, Any]]


class StatsResponse(BaseModel):
    """Envelope for the stats report."""

    status: Literal["success"] = "success"
    data: StatsData


class PlanData(BaseModel):
    """``data`` payload of the monthly plan report."""

    plan: List[Dict[str, Any]]


class PlanResponse(BaseModel):
    """Envelope for the monthly plan report."""

    status: Literal["success"] = "success"
    data: PlanData


class ErrorResponse(BaseModel):
    """Error response envelope."""

    status: Literal["fail", "error"]
    message: str
