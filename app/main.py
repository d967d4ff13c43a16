"""
Wellness Marketplace Rating Backend
Main FastAPI application entry point.
"""
from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config import settings
from app.database import init_db, close_db, get_db
from app.api.ratings import router as ratings_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create rating tables on startup, release connections on shutdown."""
    logger.info("Starting rating backend...")
    await init_db()

    yield

    await close_db()
    logger.info("Rating backend stopped")


app = FastAPI(
    title="Wellness Marketplace Rating Backend",
    description="""
    ## Professional rating aggregation

    - Overall rating merged from product, session and event reviews
    - Star distribution and per-source breakdown
    - Trend against the stored rating, lazily refreshed
    - Analytics: most common rating, satisfaction rate
    """,
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.APP_DEBUG else "An unexpected error occurred"
        }
    )


app.include_router(ratings_router)


@app.get("/ready", tags=["Health"])
async def ready(db: AsyncSession = Depends(get_db)):
    """Readiness probe: the rating database answers."""
    await db.execute(text("SELECT 1"))
    return {"status": "ready"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.APP_DEBUG
    )
