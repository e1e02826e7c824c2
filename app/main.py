# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from app.core.config import get_settings
from app.database import check_profiles_schema, init_db

# Routers
from app.routers.auth import router as auth_router
from app.routers.profiles import router as profiles_router

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Apply the profiles setup (SQL scripts on Supabase, metadata locally).
      - Verify the profiles table has every expected column.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("🔄 Startup: preparing profiles schema...")
    try:
        init_db()
    except Exception as e:
        logger.error(f"❌ Startup: DB setup FAILED: {e}")
        raise
    problems = check_profiles_schema()
    if problems:
        logger.warning("⚠️ Startup: profiles schema problems: %s", "; ".join(problems))
    else:
        logger.info("✅ Startup: DB connection OK, profiles schema verified.")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(auth_router, prefix=settings.API_V1_STR)
app.include_router(profiles_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Liveness endpoint."""
    return {"status": "ok", "service": "profiles-backend"}


@app.get("/health")
def health():
    """Database health: profiles table and columns present."""
    problems = check_profiles_schema()
    return {"status": "ok" if not problems else "degraded", "errors": problems}
