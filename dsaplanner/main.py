"""
DSA Sheet Planner - FastAPI Application

Turns coding-practice spreadsheets into a day-by-day study plan:
- Parses uploaded or linked sheets into deduplicated problems
- Classifies problems by topic and difficulty with an LLM, in batches
- Spreads each topic over its allotted days by difficulty-weighted workload
- Tracks per-problem completion for each user

Run with: uvicorn dsaplanner.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import get_database_type, init_db
from .logging_config import configure_logging
from .routers import schedules, sheets

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging()
    logger.info("Starting DSA Sheet Planner...")

    init_db()

    if not get_settings().has_llm_credentials:
        logger.warning("No completion API key configured; classification needs a per-request apiKey")

    yield

    logger.info("Shutting down DSA Sheet Planner...")


app = FastAPI(
    title="DSA Sheet Planner",
    description="""
Build a personalised DSA study schedule from the problem sheets you already use.

## How It Works

1. **Parse** one or more sheets (CSV/XLSX upload or public Google Sheets link)
2. **Analyze** the extracted problems to get a topic and difficulty for each
3. **Generate** a schedule: choose days per topic and the topic order
4. **Track** progress by ticking problems off day by day

## Scheduling Rules

- Problems are grouped by topic; topics follow your chosen order
- Difficulty points: Hard = 4, Medium = 2, Easy = 1
- Each topic's days get roughly equal points, heaviest problems first
""",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sheets.router)
app.include_router(schedules.router)


@app.get("/", tags=["root"])
def read_root():
    """Root endpoint with API information."""
    return {
        "name": "DSA Sheet Planner",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "sheets": "/sheets",
            "schedules": "/schedules",
        },
    }


@app.get("/health", tags=["health"])
def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "database": get_database_type(),
        "llm_configured": settings.has_llm_credentials,
    }
