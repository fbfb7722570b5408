from __future__ import annotations

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eco_rewards.api.routes.groups import router as groups_router
from eco_rewards.api.routes.journeys import router as journeys_router
from eco_rewards.api.routes.login import router as login_router
from eco_rewards.api.routes.members import router as members_router
from eco_rewards.api.routes.organisations import router as organisations_router
from eco_rewards.api.routes.schemes import router as schemes_router
from eco_rewards.core.errors import AuthenticationError, EcoRewardsError
from eco_rewards.core.logger import get_logger, setup_app_logging
from eco_rewards.core.settings import get_settings
from eco_rewards.db.session import get_db

openapi_tags = [
    {"name": "System", "description": "Health checks and system endpoints."},
    {"name": "Authentication", "description": "Admin user login."},
    {"name": "Schemes", "description": "Create, view and list schemes."},
    {"name": "Organisations", "description": "Create, view and list organisations within schemes."},
    {"name": "Groups", "description": "Create, view and list member groups within organisations."},
    {"name": "Members", "description": "Create members, view their rewards, export them as CSV."},
    {"name": "Journeys", "description": "Submit journeys one at a time or import them from CSV."},
]

app = FastAPI(
    title="Eco Rewards Backend API",
    description="Backend APIs for the eco rewards membership program: members earn rewards for logged journeys.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

_settings = get_settings()
setup_app_logging(app, log_level=_settings.log_level, use_json=_settings.log_json, environment=_settings.environment)
logger = get_logger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EcoRewardsError)
async def eco_rewards_error_handler(request: Request, exc: EcoRewardsError) -> JSONResponse:
    """Turn domain errors into JSON responses with their HTTP status."""
    log = logger.warning if exc.http_code < 500 else logger.error
    log("request_error", path=request.url.path, error_type=type(exc).__name__, error=exc.message)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.http_code, content={"detail": exc.detail()}, headers=headers)


# Register API routers
app.include_router(login_router)
app.include_router(schemes_router)
app.include_router(organisations_router)
app.include_router(groups_router)
app.include_router(members_router)
app.include_router(journeys_router)


@app.get("/", tags=["System"], summary="Health check", description="Basic service liveness check.")
def health_check():
    """Health check endpoint.

    Returns:
        dict: A simple message indicating the service is running.
    """
    return {"message": "Healthy"}


@app.get(
    "/api/health",
    tags=["System"],
    summary="API health check",
    description="Health endpoint used by the platform readiness check.",
    operation_id="api_health_check",
)
def api_health_check():
    return {"status": "ok"}


@app.get(
    "/health/db",
    tags=["System"],
    summary="Database connectivity check",
    description="Runs a trivial SELECT 1 against the database to verify connectivity.",
)
def db_health_check(db: Session = Depends(get_db)):
    """Database connectivity check.

    Args:
        db: SQLAlchemy Session (FastAPI dependency).

    Returns:
        JSONResponse: 200 when the database answers, 503 otherwise.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"database": "ok"}
    except SQLAlchemyError as exc:
        logger.error("database_unavailable", error=str(exc))
        return JSONResponse(status_code=503, content={"database": "unavailable", "detail": str(exc)})
