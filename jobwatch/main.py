"""
Jobwatch FastAPI application.

Provides a REST API for starting jobs, inspecting their state and reading the
pattern statistics computed over the retained job history.
"""

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from . import __version__
from .config import config
from .jobs import job_manager
from .models import JobStatus

# Configure logging with rotation
log_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

file_handler = RotatingFileHandler(
    config.log_file,
    maxBytes=config.log_max_bytes,
    backupCount=config.log_backup_count,
)
file_handler.setFormatter(log_formatter)

console_handler = logging.StreamHandler()
console_handler.setFormatter(log_formatter)

logging.basicConfig(
    level=logging.INFO,
    handlers=[file_handler, console_handler],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Starting jobwatch, target command: {config.job_command}")
    await job_manager.start()

    yield

    logger.info("Shutting down jobwatch...")
    await job_manager.stop()


app = FastAPI(
    title="Jobwatch",
    description="Launches external jobs, retries failures and reports success patterns",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class JobCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Name of the job")
    arguments: list[str] = Field(default_factory=list, description="Arguments passed to the job")


# Jobs
@app.post("/api/jobs", status_code=201)
async def start_job(data: JobCreate):
    """Start a new job. Returns immediately, the job runs in the background."""
    job = await job_manager.start_job(data.name, data.arguments)
    return job.to_dict()


@app.get("/api/jobs")
async def list_jobs(status: Optional[str] = None):
    """List all retained jobs and their statuses."""
    filter_status = None
    if status:
        try:
            filter_status = JobStatus(status)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")

    jobs = job_manager.list_jobs(filter_status)
    return [j.to_dict() for j in jobs]


@app.get("/api/jobs/stats")
async def get_job_stats():
    """Get the overall success rate and the pattern analysis."""
    return job_manager.get_stats().to_dict()


@app.get("/api/jobs/{job_id}")
async def get_job(job_id: str):
    """Get a specific job by ID."""
    job = job_manager.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail=f"Job '{job_id}' not found")
    return job.to_dict()


# Status overview
@app.get("/api/status")
async def get_status():
    """Get an overview of the retained jobs."""
    jobs = job_manager.list_jobs()
    return {
        "version": __version__,
        "total": len(jobs),
        "in_flight": job_manager.in_flight,
        "by_status": {s.value: sum(1 for j in jobs if j.status == s) for s in JobStatus},
    }


# Service logs
@app.get("/api/logs")
async def get_logs(lines: int = Query(100, ge=1, le=1000)):
    """Get recent jobwatch log entries."""
    try:
        with open(config.log_file, "r") as f:
            all_lines = f.readlines()
            return {"lines": all_lines[-lines:], "total": len(all_lines)}
    except FileNotFoundError:
        return {"lines": [], "total": 0}
