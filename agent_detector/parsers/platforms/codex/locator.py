"""Locate Codex rollout transcripts that belong to a repository.

Rollouts live at ``<sessions>/YYYY/MM/DD/rollout-*.jsonl``. The date buckets
are trusted as-is; the timestamps inside a file are never checked against them.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path

from agent_detector import config
from agent_detector.date_utils import cutoff_for, file_modified_at
from agent_detector.observability import record_parser_failure
from agent_detector.models import TOOL_CODEX
from agent_detector.parsers.platforms.codex.parser import SESSION_META, load_record

logger = logging.getLogger("agent_detector.codex")


def matches_repo(jsonl_path: Path, repo_root: str | os.PathLike[str]) -> bool:
    """Check the leading session_meta record's cwd against ``repo_root``.

    Only the first line is read. Comparison is exact string equality.
    """
    try:
        with Path(jsonl_path).open("rb") as handle:
            first_line = handle.readline(config.MAX_LINE_BYTES + 1)
    except OSError:
        return False

    record = load_record(first_line)
    if record is None or record.get("type") != SESSION_META:
        return False
    payload = record.get("payload")
    if not isinstance(payload, dict):
        return False
    cwd = payload.get("cwd")
    return isinstance(cwd, str) and cwd == os.fspath(repo_root)


def find_sessions(
    repo_root: str | os.PathLike[str],
    max_age: timedelta,
    sessions_dir: Path | None = None,
    now: datetime | None = None,
) -> list[Path]:
    """Return recent rollout files whose session ran in ``repo_root``.

    A missing or unreadable sessions tree yields an empty list. Results are in
    lexical path order, which is not guaranteed to be chronological.
    """
    root = sessions_dir if sessions_dir is not None else config.codex_sessions_dir()
    if root is None:
        return []

    cutoff = cutoff_for(max_age, now)
    try:
        if not root.is_dir():
            return []
        candidates = sorted(root.glob(config.CODEX_SESSION_GLOB))
    except (OSError, ValueError) as exc:
        logger.warning("Failed to enumerate Codex sessions under %s: %s", root, exc)
        record_parser_failure("codex_locator", tool=TOOL_CODEX)
        return []

    sessions: list[Path] = []
    for path in candidates:
        try:
            modified_at = file_modified_at(path)
        except OSError:
            continue
        if modified_at < cutoff:
            continue
        if matches_repo(path, repo_root):
            sessions.append(path)

    logger.debug("Found %d Codex sessions for %s (of %d candidates)", len(sessions), repo_root, len(candidates))
    return sessions
