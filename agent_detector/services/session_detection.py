"""Merge per-transcript results into one repository-level session summary."""
from __future__ import annotations

import logging
import os
import time
from datetime import timedelta
from pathlib import Path

from agent_detector.models import TOOL_CODEX, DetectionOutcome, SessionInfo, SessionParseFailure
from agent_detector.observability import record_detection, record_parser_failure, start_span
from agent_detector.parsers.platforms.codex.locator import find_sessions
from agent_detector.parsers.platforms.codex.parser import parse_session_file

logger = logging.getLogger("agent_detector.detection")


def merge_session(merged: SessionInfo, session: SessionInfo) -> None:
    """Fold ``session`` into ``merged`` in place.

    Files are unioned; the model is overwritten by any non-empty value, so the
    last merged session wins. Token figures and durations are cumulative
    snapshots and merge by maximum, never by sum.
    """
    merged.filesWritten.update(session.filesWritten)
    if session.model:
        merged.model = session.model
    merged.totalTokens = max(merged.totalTokens, session.totalTokens)
    merged.tokensIn = max(merged.tokensIn, session.tokensIn)
    merged.tokensOut = max(merged.tokensOut, session.tokensOut)
    merged.sessionDurationSec = max(merged.sessionDurationSec, session.sessionDurationSec)


def detect_codex_outcome(
    repo_root: str | os.PathLike[str],
    max_age: timedelta,
    sessions_dir: Path | None = None,
) -> DetectionOutcome:
    """Detect recent Codex activity in ``repo_root``, keeping read failures."""
    started = time.perf_counter()
    outcome = DetectionOutcome(tool=TOOL_CODEX)

    with start_span("agent_detector.detect", {"tool": TOOL_CODEX, "repo_root": os.fspath(repo_root)}):
        paths = find_sessions(repo_root, max_age, sessions_dir=sessions_dir)
        outcome.candidates = len(paths)

        merged = SessionInfo(tool=TOOL_CODEX)
        for path in paths:
            try:
                session = parse_session_file(path)
            except OSError as exc:
                logger.warning("Failed to read Codex session %s: %s", path, exc)
                record_parser_failure("codex_session", tool=TOOL_CODEX)
                outcome.failures.append(SessionParseFailure(path=str(path), error=str(exc)))
                continue
            if session is None:
                continue
            merge_session(merged, session)

        if merged.filesWritten:
            outcome.session = merged

    duration_ms = (time.perf_counter() - started) * 1000
    record_detection(TOOL_CODEX, outcome.status, duration_ms, candidates=outcome.candidates)
    logger.info(
        "Codex detection for %s: status=%s candidates=%d files=%d failures=%d",
        repo_root,
        outcome.status,
        outcome.candidates,
        len(outcome.session.filesWritten) if outcome.session else 0,
        len(outcome.failures),
    )
    return outcome


def detect_codex(
    repo_root: str | os.PathLike[str],
    max_age: timedelta,
    sessions_dir: Path | None = None,
) -> SessionInfo | None:
    """Return the merged Codex session for ``repo_root``, or None when nothing was written."""
    return detect_codex_outcome(repo_root, max_age, sessions_dir=sessions_dir).session
