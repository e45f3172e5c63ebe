"""Agent detector FastAPI app: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from agent_detector import config
from agent_detector.parsers.platforms.registry import registered_tools
from agent_detector.routers.detection import detection_router
from agent_detector.observability import initialize as initialize_observability, shutdown as shutdown_observability

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("agent_detector")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Agent detector starting up (tools=%s)", ", ".join(registered_tools()))
    initialize_observability(app)

    yield

    logger.info("Agent detector shutting down")
    shutdown_observability(app)


app = FastAPI(
    title="Agent Detector API",
    description="Attributes file writes, model and token usage to recent coding-agent sessions",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(detection_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    sessions_dir = config.codex_sessions_dir()
    return {
        "status": "ok",
        "codexSessions": "present" if sessions_dir is not None and sessions_dir.is_dir() else "missing",
    }

