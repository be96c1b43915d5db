"""FastAPI application entry point for the PropertyPulse feedback API."""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from propertypulse.app.config import get_settings
from propertypulse.infra.database import async_session, init_db
from propertypulse.services.feedback_session_service import FeedbackSessionService

logger = logging.getLogger(__name__)


async def scheduled_activation_loop(interval_seconds: int):
    """Open due post-tour sessions every ``interval_seconds``."""
    while True:
        try:
            async with async_session() as db:
                activated = await FeedbackSessionService(db).activate_due_sessions()
                if activated:
                    logger.info("Activation loop: opened %d session(s)", len(activated))
        except Exception as e:
            logger.error("Activation loop error: %s", e)
        await asyncio.sleep(interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database, start the activation loop."""
    await init_db()

    task = None
    interval = get_settings().scheduled_activation_interval_seconds
    if interval > 0:
        task = asyncio.create_task(scheduled_activation_loop(interval))
    yield
    if task is not None:
        task.cancel()


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="PropertyPulse Feedback API",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware: allow all origins in debug mode
_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from propertypulse.app.routes.feedback import router as feedback_router

app.include_router(feedback_router)


@app.get("/health", tags=["health"])
async def health_check():
    """Return service health status."""
    return {"status": "ok", "service": "propertypulse"}


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "propertypulse.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
