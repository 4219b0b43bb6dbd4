# main.py — Digital COO API
# Features:
# - Request IDs and access logging
# - Domain error mapping (errors.py)
# - LLM / Drive collaborators built once per process
# - Health check with DB verification

import os
import json
import uuid
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text

from database import init_db, close_db, get_db_session
from errors import DigitalCOOError
from services import build_collaborators, close_collaborators
from telemetry import setup_telemetry

# Logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
logger = logging.getLogger("digital-coo")

VERSION = "1.0.0"


def _check_startup_config():
    """Warn about configuration the pipeline needs at request time."""
    warnings = []

    jwt_key = os.getenv("JWT_SECRET_KEY", "")
    if not jwt_key or len(jwt_key) < 32:
        warnings.append("JWT_SECRET_KEY is not set or shorter than 32 characters")

    llm_keys = ["ANTHROPIC_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY", "GROQ_API_KEY"]
    active_providers = [k for k in llm_keys if os.getenv(k)]
    if active_providers:
        logger.info(f"LLM providers configured: {', '.join(active_providers)}")
    else:
        warnings.append("No LLM API keys configured; triage, execute and post generation will fail")

    if not os.getenv("GOOGLE_DRIVE_ACCESS_TOKEN"):
        warnings.append("GOOGLE_DRIVE_ACCESS_TOKEN not set; Drive import is unavailable")

    for w in warnings:
        logger.warning(w)

    return len(warnings) == 0


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Digital COO v{VERSION}...")
    await init_db()
    _check_startup_config()
    setup_telemetry(app)
    app.state.collaborators = build_collaborators()
    yield
    logger.info("Shutting down Digital COO...")
    await close_collaborators(app.state.collaborators)
    await close_db()


app = FastAPI(
    title="Digital COO",
    description="Task triage, execution and content pipeline for a one-person operations desk",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ============================================================
# CORS
# ============================================================

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173"
    ).split(",")
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID", "X-Failed-Platforms"],
)


# ============================================================
# MIDDLEWARE: Request IDs
# ============================================================

@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Content-Type-Options"] = "nosniff"
    logger.info(f"{request.method} {request.url.path} {response.status_code} {duration * 1000:.0f}ms rid={request_id[:8]}")
    return response


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

@app.exception_handler(DigitalCOOError)
async def domain_exception_handler(request: Request, exc: DigitalCOOError):
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__}: {exc.message}")
    content = {"detail": exc.message, "request_id": getattr(request.state, "request_id", None)}
    field = getattr(exc, "field", None)
    if field:
        content["field"] = field
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Sanitise errors to ensure JSON serialisability
    errors = []
    for err in exc.errors():
        clean_err = {
            "type": str(err.get("type", "unknown")),
            "loc": list(err.get("loc", [])),
            "msg": str(err.get("msg", "")),
        }
        if "input" in err:
            try:
                json.dumps(err["input"])
                clean_err["input"] = err["input"]
            except (TypeError, ValueError):
                clean_err["input"] = str(err["input"])
        errors.append(clean_err)

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "request_id": getattr(request.state, "request_id", None),
        },
    )


# ============================================================
# ROUTERS
# ============================================================

from routers import (
    dashboard, projects, tasks, agents, files, social_posts,
    notifications, team, drive, processing,
)

app.include_router(dashboard.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(agents.router)
app.include_router(files.router)
app.include_router(social_posts.router)
app.include_router(notifications.router)
app.include_router(team.router)
app.include_router(drive.router)
app.include_router(processing.router)


# ============================================================
# HEALTH & ROOT
# ============================================================

@app.get("/health")
async def health_check():
    """Health check with database connectivity verification"""
    db_status = "unknown"
    try:
        async for db in get_db_session():
            await db.execute(text("SELECT 1"))
            db_status = "connected"
            break
    except Exception as e:
        db_status = f"error: {str(e)[:100]}"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "version": VERSION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "database": db_status,
    }


@app.get("/")
async def root():
    return {
        "name": "Digital COO",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "status": "operational",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("ENVIRONMENT") != "production",
        workers=int(os.getenv("WORKERS", 1)),
    )
