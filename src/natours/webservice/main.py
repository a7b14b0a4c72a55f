"""FastAPI entrypoint for Natours webservice."""

from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from natours.commons.exceptions import NatoursError
from natours.commons.natours_dataclasses.tour import validation_message
from natours.commons.natours_logger import NatoursLogger
from natours.configs import WEBSERVER_HOST, WEBSERVER_PORT
from natours.webservice.routers.health import router as health_router
from natours.webservice.routers.tours import router as tours_router


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "fail", "message": message})


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title="Natours API",
        version="1.0.0",
        description=(
            "REST API for Natours tours. "
            "Provides CRUD endpoints with filtering, sorting, field selection and pagination, "
            "plus tour statistics and a monthly start-date plan."
        ),
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    @app.middleware("http")
    async def stamp_request_time(request: Request, call_next):
        request.state.requested_at = datetime.now(timezone.utc).isoformat()
        return await call_next(request)

    @app.exception_handler(NatoursError)
    async def natours_error_handler(_: Request, exc: NatoursError) -> JSONResponse:
        if exc.status_code >= 500:
            NatoursLogger().error(str(exc), exc_info=exc)
            return JSONResponse(status_code=exc.status_code, content={"status": "error", "message": str(exc)})
        return _fail(exc.status_code, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Request, exc: ValueError) -> JSONResponse:
        return _fail(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _fail(400, validation_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        NatoursLogger().error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"status": "error", "message": "Something went wrong"})

    @app.get("/", tags=["health"])
    def root() -> dict:
        return {
            "status": "up",
            "service": "natours-webservice",
            "host": WEBSERVER_HOST,
            "port": WEBSERVER_PORT,
        }

    app.include_router(health_router, prefix="/api/v1")
    app.include_router(tours_router, prefix="/api/v1")

    return app


app = create_app()
