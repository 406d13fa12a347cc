"""
School Results — Academic Result Analytics
FastAPI backend entry point.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.models import ISSUE_TYPES
from core.scope import INACTIVE_STATUSES
from routes.results import router as results_router

# Load environment
load_dotenv()

SCHOOL_NAME = os.getenv("SCHOOL_NAME", "My School")
PASS_MARK = int(os.getenv("PASS_MARK", "50"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app = FastAPI(
    title="School Results API",
    description=(
        "Academic result analytics — cohort rankings, percentiles, pass-rate "
        "statistics and data-integrity diagnostics for report cards."
    ),
    version="1.0.0",
)

# CORS — allow the dashboard dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(results_router, prefix="/api/results", tags=["Results"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "school_name": SCHOOL_NAME}


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "school_name": SCHOOL_NAME,
        "default_passing_score": PASS_MARK,
        "inactive_statuses": sorted(INACTIVE_STATUSES),
        "issue_types": list(ISSUE_TYPES),
    }
