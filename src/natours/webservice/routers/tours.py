"""Tour endpoints."""

from typing import Any, Dict, Mapping

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from natours.commons.daos.tour_dao import TourDAO
from natours.commons.exceptions import TourNotFoundError, TourValidationError
from natours.commons.natours_dataclasses.tour import TourCreate, TourUpdate, validation_message
from natours.report.aggregations import monthly_plan_pipeline, tour_stats_pipeline
from natours.webservice.deps import get_tour_dao
from natours.webservice.schemas.common import PlanResponse, StatsResponse, TourListResponse, TourResponse
from natours.webservice.services.api_features import APIFeatures
from natours.webservice.services.query_params import parse_query_params
from natours.webservice.services.serializers import normalize_docs, normalize_tour, normalize_tours

router = APIRouter(prefix="/tours", tags=["tours"])

TOP_TOURS_ALIAS = {
    "limit": "5",
    "sort": "-ratingsAverage,price",
    "fields": "name,price,ratingsAverage,summary,difficulty",
}


def _list_response(request: Request, params: Mapping[str, Any], dao: TourDAO) -> Dict[str, Any]:
    query = APIFeatures(dao.find(), params).filter().sort().limit_fields().paginate().query
    tours = normalize_tours(query.execute())
    return {
        "status": "success",
        "requestedAt": getattr(request.state, "requested_at", None),
        "results": len(tours),
        "data": {"tours": tours},
    }


@router.get("", response_model=TourListResponse)
def get_all_tours(request: Request, dao: TourDAO = Depends(get_tour_dao)) -> Dict[str, Any]:
    """List tours with filtering, sorting, field selection and pagination."""
    params = parse_query_params(request.query_params.multi_items())
    return _list_response(request, params, dao)


@router.get("/top-5-cheap", response_model=TourListResponse)
def get_top_tours(request: Request, dao: TourDAO = Depends(get_tour_dao)) -> Dict[str, Any]:
    """Five best-rated tours, cheapest first on ties."""
    params = parse_query_params(request.query_params.multi_items())
    params.update(TOP_TOURS_ALIAS)
    return _list_response(request, params, dao)


@router.get("/tour-stats", response_model=StatsResponse)
def get_tour_stats(dao: TourDAO = Depends(get_tour_dao)) -> Dict[str, Any]:
    """Statistics of top-rated tours grouped by difficulty."""
    stats = normalize_docs(dao.aggregate(tour_stats_pipeline()))
    return {"status": "success", "data": {"stats": stats}}


@router.get("/monthly-plan/{year}", response_model=PlanResponse)
def get_monthly_plan(year: int, dao: TourDAO = Depends(get_tour_dao)) -> Dict[str, Any]:
    """Tour starts per month of ``year``."""
    plan = normalize_docs(dao.aggregate(monthly_plan_pipeline(year)))
    return {"status": "success", "data": {"plan": plan}}


@router.get("/{tour_id}", response_model=TourResponse)
def get_tour(tour_id: str, dao: TourDAO = Depends(get_tour_dao)) -> Dict[str, Any]:
    """Get a tour by id."""
    tour = dao.find_by_id(tour_id)
    if tour is None:
        raise TourNotFoundError(tour_id)
    return {"status": "success", "data": {"tour": normalize_tour(tour)}}


@router.post("", response_model=TourResponse, status_code=201)
def create_tour(payload: TourCreate, dao: TourDAO = Depends(get_tour_dao)) -> Dict[str, Any]:
    """Create a tour."""
    tour = dao.create(payload.to_document())
    return {"status": "success", "data": {"tour": normalize_tour(tour)}}


@router.patch("/{tour_id}", response_model=TourResponse)
def update_tour(tour_id: str, payload: TourUpdate, dao: TourDAO = Depends(get_tour_dao)) -> Dict[str, Any]:
    """Update a tour; the merged document must still be a valid tour."""
    existing = dao.find_by_id(tour_id)
    if existing is None:
        raise TourNotFoundError(tour_id)
    changes = payload.changes()
    try:
        TourCreate.model_validate({**existing, **changes})
    except ValidationError as exc:
        raise TourValidationError(validation_message(exc)) from exc

    tour = dao.update_by_id(tour_id, changes)
    if tour is None:
        raise TourNotFoundError(tour_id)
    return {"status": "success", "data": {"tour": normalize_tour(tour)}}


@router.delete("/{tour_id}", status_code=204)
def delete_tour(tour_id: str, dao: TourDAO = Depends(get_tour_dao)) -> Response:
    """Delete a tour."""
    if dao.delete_by_id(tour_id) is None:
        raise TourNotFoundError(tour_id)
    return Response(status_code=204)
