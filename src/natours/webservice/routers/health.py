"""Health endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from natours.commons.daos.tour_dao import TourDAO
from natours.commons.natours_logger import NatoursLogger
from natours.webservice.deps import get_tour_dao

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
def live() -> dict:
    """Liveness check."""
    return {"status": "ok"}


@router.get("/ready")
def ready(dao: TourDAO = Depends(get_tour_dao)):
    """Readiness check: the database must answer a ping."""
    try:
        dao.ping()
    except PyMongoError as exc:
        NatoursLogger().warning(f"Database ping failed: {exc}")
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}
