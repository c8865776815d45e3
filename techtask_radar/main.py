from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from loguru import logger

from techtask_radar.config import get_settings
from techtask_radar.scheduler.jobs import run_once
from techtask_radar.scheduler.runner import start_scheduler

settings = get_settings()
scheduler: Optional[object] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduler
    logger.info("Starting up...")

    if settings.scheduler_enabled:
        scheduler = start_scheduler(settings)

    yield

    if scheduler:
        scheduler.shutdown()
        scheduler = None
    logger.info("Shutting down...")


app = FastAPI(
    title="Tech Task Radar",
    description="Astana Hub tech-task watcher",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


# Sync handler: Playwright's sync API must not run on the event loop thread
@app.post("/api/run")
def trigger_run():
    result = run_once(settings)
    return JSONResponse(
        status_code=200 if result.ok else 500,
        content=result.to_dict(),
    )
