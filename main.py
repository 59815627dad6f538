import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.sessions import SessionMiddleware

from example_module.config import settings
from example_module.database import AsyncSessionLocal
from example_module.exception_handlers import register_exception_handlers
from example_module.module import ExampleModule
from example_module.plugins.events import EventBus, HookBus
from example_module.plugins.hooks import HOST_INIT
from example_module.routes import admin, public
from example_module.utils.context import CSRFTokens

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def create_app(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    bus: Optional[EventBus] = None,
) -> FastAPI:
    """Create the FastAPI application hosting the Example Module."""
    bus = bus or HookBus()
    module = ExampleModule(bus, session_factory or AsyncSessionLocal)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await module.init()
        await bus.emit(HOST_INIT)
        logger.info(f"{settings.app_name} started (enabled={module.enabled})")
        yield

    app = FastAPI(
        title=settings.app_name,
        description="Example Module demo host",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.example_module = module
    app.state.event_bus = bus
    app.state.csrf_tokens = CSRFTokens()

    app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)
    register_exception_handlers(app)

    app.include_router(public.router)
    app.include_router(admin.router)

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=settings.debug)
