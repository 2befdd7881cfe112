"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings, get_database_url, load_monitor_config
from .routers import status_router
from .services.alerter import NotificationDispatcher, build_notifier
from .services.event_store import EventLogStore
from .services.monitor import MonitorService
from .services.scheduler import SchedulerService
from .services.status_cache import StatusCache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    # Invalid targets are fatal before anything starts polling
    config = load_monitor_config(settings.config_path)
    logger.info(f"Loaded {len(config.targets)} targets from {settings.config_path}")

    store = EventLogStore(get_database_url())
    await store.init()
    logger.info("Database initialized")

    cache = StatusCache()
    dispatcher = NotificationDispatcher(build_notifier(config.discord), max_size=settings.notify_queue_size)
    dispatcher.start()

    scheduler = SchedulerService(config.targets, store, cache, dispatcher)
    scheduler.start()

    app.state.monitor = MonitorService(store, cache)
    app.state.scheduler = scheduler

    yield

    # Shutdown
    scheduler.stop()
    await scheduler.join()
    await dispatcher.stop()
    await store.close()
    logger.info("Shutdown complete")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Uptime Engine",
        description="Endpoint polling, uptime history and status change alerts",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(status_router)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


# Create the application instance
app = create_app()


def run():
    """Console entry point."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)


if __name__ == "__main__":
    run()
