"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from battlesnake_core.config import ServerConfig
from battlesnake_core.decision import Decider
from battlesnake_core.server.routes import router
from battlesnake_core.service import BattlesnakeService

logger = logging.getLogger(__name__)


async def _sweep_loop(service: BattlesnakeService) -> None:
    """Periodically reclaim sessions whose game never sent End."""
    interval = service.config.sweep_interval_s
    try:
        while True:
            await asyncio.sleep(interval)
            try:
                service.sweep()
            except Exception:
                logger.exception("Session sweep failed; retrying next interval.")
    except asyncio.CancelledError:
        logger.info("Session sweeper stopped.")
        raise


@asynccontextmanager
async def _lifespan(app: FastAPI):
    task = asyncio.create_task(_sweep_loop(app.state.service))
    yield
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    app.state.service.close()


def create_app(
    config: ServerConfig | None = None,
    decider: Decider | None = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Battlesnake Core", version="0.1.0", lifespan=_lifespan,
    )
    app.state.service = BattlesnakeService(config=config, decider=decider)
    app.include_router(router)
    return app
