"""Detect what recent coding-agent sessions did inside a repository."""

from agent_detector.models import TOOL_CODEX, DetectionOutcome, SessionInfo
from agent_detector.services.session_detection import detect_codex, detect_codex_outcome

__all__ = ["TOOL_CODEX", "DetectionOutcome", "SessionInfo", "detect_codex", "detect_codex_outcome"]
