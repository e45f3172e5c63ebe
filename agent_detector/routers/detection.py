"""Session detection API router."""
from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, HTTPException, Query

from agent_detector import config
from agent_detector.parsers.platforms.registry import get_detector, registered_tools


detection_router = APIRouter(prefix="/api/detection", tags=["detection"])


@detection_router.get("/tools")
def list_tools():
    return {"tools": registered_tools()}


@detection_router.get("/{tool}")
def detect_tool_sessions(
    tool: str,
    repoRoot: str = Query(..., description="Absolute repository root, compared verbatim to the session cwd"),
    maxAgeHours: int = Query(config.DEFAULT_MAX_AGE_HOURS, ge=1, le=24 * 365),
):
    detector = get_detector(tool)
    if detector is None:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {tool}")
    if not repoRoot.strip():
        raise HTTPException(status_code=400, detail="repoRoot is required")

    outcome = detector(repoRoot, timedelta(hours=maxAgeHours), None)
    session = None
    if outcome.session is not None:
        session = {
            **outcome.session.model_dump(exclude={"filesWritten"}),
            "filesWritten": outcome.session.sorted_files(),
        }
    return {
        "tool": outcome.tool,
        "status": outcome.status,
        "candidates": outcome.candidates,
        "session": session,
        "failures": [failure.model_dump() for failure in outcome.failures],
    }
