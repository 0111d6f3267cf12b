"""
FreshPress Subscriptions: FastAPI Backend
Juice and fruit-bowl subscription delivery scheduling
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from db.database import engine
from routers import admin, cron, subscriptions
from services.errors import ServiceError
from services.schedule_settings import close_redis

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("%s starting (%s, tz=%s)", settings.APP_NAME, settings.ENVIRONMENT, settings.TIMEZONE)
    yield
    await close_redis()
    await engine.dispose()
    logger.info("%s shut down.", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Subscription delivery scheduling and admin-pause reconciliation",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ───────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error handlers ─────────────────────────────────────────

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"success": False, "detail": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "detail": "Internal server error"})


# ── Routers ────────────────────────────────────────────────
app.include_router(cron.router, prefix="/api/cron", tags=["Cron"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(subscriptions.router, prefix="/api/subscriptions", tags=["Subscriptions"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.APP_NAME}


@app.get("/health/db")
async def health_db():
    """Verify DB connection and that we're talking to the right database."""
    from sqlalchemy import text
    try:
        async with engine.connect() as conn:
            row = (await conn.execute(text("SELECT current_database(), current_user"))).first()
            db_name, db_user = row[0], row[1]
            count_row = (await conn.execute(text("SELECT COUNT(*) FROM user_subscriptions"))).first()
            subscription_count = count_row[0] if count_row else 0
        return {
            "status": "ok",
            "database": db_name,
            "user": db_user,
            "subscriptions_count": subscription_count,
        }
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        return {"status": "error", "detail": str(e)}
