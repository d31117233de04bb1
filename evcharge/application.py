"""Factory de la aplicación FastAPI con los colaboradores inyectados."""
from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.database import Database

from evcharge.api import router as api_router
from evcharge.client.blob_storage import blob_store_from_env
from evcharge.database.database import get_database
from evcharge.database.repositories import Repositories
from evcharge.services.accounts import AccountService
from evcharge.services.booking import BookingService
from evcharge.services.errors import ServiceError
from evcharge.services.stations import StationService

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", "*")
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app(database: Optional[Database] = None, blob_store=None) -> FastAPI:
    if database is None:
        database = get_database()
    if blob_store is None:
        blob_store = blob_store_from_env()

    repos = Repositories(database)

    app = FastAPI(title="EV Charging Booking API")
    app.state.repositories = repos
    app.state.booking_service = BookingService(repos.users, repos.stations, repos.appointments)
    app.state.account_service = AccountService(repos.users, blob_store)
    app.state.station_service = StationService(repos.stations, blob_store)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "token"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Petición inválida en {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"success": False, "message": "Datos de la petición inválidos"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Error no controlado en {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"success": False, "message": "Error interno del servidor"})

    app.include_router(api_router, prefix="/api")

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "API WORKING"

    return app
