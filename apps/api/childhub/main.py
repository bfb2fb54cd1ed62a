from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CONFIG
from .db import initialize_db
from .routes import assistant as assistant_routes
from .routes import auth as auth_routes
from .routes import bookings as booking_routes
from .routes import calendar as calendar_routes
from .routes import children as children_routes
from .routes import events as events_routes
from .routes import locations as location_routes
from .routes import meals as meal_routes
from .routes import reports as report_routes

logger = logging.getLogger(__name__)

initialize_db()

app = FastAPI(
    title="ChildHub API",
    version="0.1.0",
    description="Child profiles, events, meal plans, calendar, reports and the family assistant",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(auth_routes.router)
app.include_router(children_routes.router)
app.include_router(events_routes.router)
app.include_router(booking_routes.router)
app.include_router(meal_routes.router)
app.include_router(calendar_routes.router)
app.include_router(report_routes.router)
app.include_router(assistant_routes.router)
app.include_router(location_routes.router)

if CONFIG.auth_mode == "dev" and CONFIG.environment == "production":
    logger.critical("Dev auth is enabled in production! Requests will require tokens.")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/")
async def root() -> dict:
    return {"message": "ChildHub API ready"}
