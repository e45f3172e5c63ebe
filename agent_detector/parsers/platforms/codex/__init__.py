"""Codex CLI rollout transcript support."""

from agent_detector.parsers.platforms.codex.locator import find_sessions, matches_repo
from agent_detector.parsers.platforms.codex.parser import parse_session_file

__all__ = ["find_sessions", "matches_repo", "parse_session_file"]
