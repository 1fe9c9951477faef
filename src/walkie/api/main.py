"""FastAPI application factory."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlmodel import SQLModel

from walkie.analysis.health import get_profile
from walkie.api.routes import goal, health, walks
from walkie.config import get_settings
from walkie.db.engine import get_engine
from walkie.db.store import GoalSetting, KeyValueStore, WalkHistory
from walkie.render.sinks import LoggingSink
from walkie.tracking.controller import WalkController
from walkie.tracking.position import PositionOptions, PushPositionSource


def create_app(engine=None, source: Optional[PushPositionSource] = None) -> FastAPI:
    """
    Build and return the FastAPI app.

    Args:
        engine: SQLAlchemy engine; defaults to the configured singleton.
        source: position source fed by POST /walks/samples; a fresh
                PushPositionSource when omitted.
    """
    settings = get_settings()
    engine = engine if engine is not None else get_engine()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables on startup (idempotent)
        SQLModel.metadata.create_all(engine)
        yield

    app = FastAPI(
        title="Walkie API",
        description="Dog walk tracker and health index",
        version="0.1.0",
        lifespan=lifespan,
    )

    store = KeyValueStore(engine)
    app.state.settings = settings
    app.state.source = source if source is not None else PushPositionSource()
    app.state.goal = GoalSetting(store, default_km=settings.default_goal_km)
    app.state.history = WalkHistory(store)
    app.state.health_profile = get_profile(settings.health_profile)
    app.state.controller = WalkController(
        source=app.state.source,
        goal=app.state.goal,
        history=app.state.history,
        options=PositionOptions.from_settings(settings),
        sinks=[LoggingSink()],
    )

    app.include_router(walks.router, prefix="/walks", tags=["walks"])
    app.include_router(goal.router, prefix="/goal", tags=["goal"])
    app.include_router(health.router, prefix="/health", tags=["health"])

    return app
