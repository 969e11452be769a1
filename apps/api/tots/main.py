from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CONFIG
from .db import initialize_db, load_snapshot_payload, save_snapshot
from .routes import events as events_routes
from .routes import growth as growth_routes
from .routes import milestones as milestone_routes
from .routes import profile as profile_routes
from .routes import stats as stats_routes
from .routes import sync as sync_routes
from .routes import words as word_routes
from .sync import RefreshTicker, feed_from_config, schedule_remote_merge
from .tracker import Tracker

logger = logging.getLogger(__name__)


def build_tracker() -> Tracker:
    """Load the persisted snapshot and save it back after every mutation."""
    tracker = Tracker.from_snapshot(load_snapshot_payload())
    tracker.on_change(save_snapshot)
    logger.info(
        "tracker loaded",
        extra={"events": len(tracker.store), "words": len(tracker.vocabulary)},
    )
    return tracker


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    tracker: Tracker = app.state.tracker
    ticker = RefreshTicker(tracker, CONFIG.refresh_interval_seconds)
    ticker.start()
    feed = feed_from_config(CONFIG)
    if feed is not None:
        schedule_remote_merge(tracker, feed)
    try:
        yield
    finally:
        await ticker.stop()


initialize_db()

app = FastAPI(
    title="Tots API",
    version="0.1.0",
    description="Care-event log with daily stats, countdowns, growth percentiles and insights",
    lifespan=lifespan,
)
app.state.tracker = build_tracker()

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(events_routes.router)
app.include_router(stats_routes.router)
app.include_router(growth_routes.router)
app.include_router(milestone_routes.router)
app.include_router(word_routes.router)
app.include_router(profile_routes.router)
app.include_router(sync_routes.router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "events": len(app.state.tracker.store)}
