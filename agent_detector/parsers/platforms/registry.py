"""Session detector registry for platform-specific implementations."""
from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Callable, Optional

from agent_detector.models import TOOL_CODEX, DetectionOutcome, SessionInfo
from agent_detector.services.session_detection import detect_codex_outcome

Detector = Callable[[str, timedelta, Optional[Path]], DetectionOutcome]

# Additional agent tools register their detectors here.
_DETECTORS: dict[str, Detector] = {
    TOOL_CODEX: detect_codex_outcome,
}


def registered_tools() -> list[str]:
    return sorted(_DETECTORS)


def get_detector(tool: str) -> Detector | None:
    return _DETECTORS.get((tool or "").strip().lower())


def detect_sessions(
    repo_root: str | os.PathLike[str],
    max_age: timedelta,
    tools: list[str] | None = None,
) -> list[SessionInfo]:
    """Run each requested detector and return the sessions that were found.

    Unknown tool tags are ignored.
    """
    sessions: list[SessionInfo] = []
    for tool in tools if tools is not None else registered_tools():
        detector = get_detector(tool)
        if detector is None:
            continue
        outcome = detector(os.fspath(repo_root), max_age, None)
        if outcome.session is not None:
            sessions.append(outcome.session)
    return sessions
