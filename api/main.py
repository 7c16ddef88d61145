from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.config import settings
from api.router import router

log = logging.getLogger(__name__)


def _scheduled_job() -> None:
    """Recompute month-to-date PR for all stored plants."""
    from etl.performance import run as run_performance

    try:
        run_performance(target_date=date.today())
    except Exception as exc:
        log.error("PR job failed for %s: %s", date.today(), exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.PR_JOB_ENABLED:
        log.info("PR job disabled, scheduler not started.")
        yield
        return

    scheduler = BackgroundScheduler(executors={"default": ThreadPoolExecutor(1)})
    scheduler.add_job(
        _scheduled_job,
        "interval",
        minutes=settings.PR_JOB_INTERVAL_MINUTES,
        id="pr_job",
    )
    scheduler.start()
    log.info("APScheduler started; PR job runs every %d minutes.", settings.PR_JOB_INTERVAL_MINUTES)

    yield

    scheduler.shutdown(wait=False)
    log.info("APScheduler stopped.")


def create_app() -> FastAPI:
    app = FastAPI(lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix="/api")

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app
