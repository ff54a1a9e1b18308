"""BabyCare collaboration API application entry point."""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()  # load .env before anything reads os.getenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api import dependencies
from app.api.routes import (
    babies_router, collaborators_router, diapers_router, feedings_router,
    health_records_router, health_router, insights_router, invitations_router,
    realtime_router, sleeps_router,
)
from app.errors import AuthenticationRequired, BabyCareError
from app.realtime import hub
from app.services.database import create_tables

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables at startup, close realtime channels at shutdown."""
    await create_tables()
    logger.info("SQLite schema ready")
    if not dependencies.AUTH_JWT_SECRET:
        logger.error("AUTH_JWT_SECRET is not set; every authenticated request will fail")

    yield

    hub.close_all()
    logger.info("BabyCare API stopped")


app = FastAPI(
    title="BabyCare API",
    description=(
        "Shared baby-care log: feedings, sleep, diapers and health measurements "
        "recorded by several caregivers with owner / editor / viewer roles."
    ),
    version="0.5.0",
    lifespan=lifespan,
)


@app.exception_handler(BabyCareError)
async def babycare_error_handler(request: Request, exc: BabyCareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, AuthenticationRequired) and exc.sign_in_url:
        body["sign_in_url"] = exc.sign_in_url
    return JSONResponse(status_code=exc.status_code, content=body)


app.include_router(health_router)
app.include_router(babies_router)
app.include_router(collaborators_router)
app.include_router(invitations_router)
app.include_router(feedings_router)
app.include_router(sleeps_router)
app.include_router(diapers_router)
app.include_router(health_records_router)
app.include_router(insights_router)
app.include_router(realtime_router)
