"""Pydantic models for detected agent sessions."""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional

# ── Tool tags ───────────────────────────────────────────────────────

TOOL_CODEX = "codex"


# ── Session-related models ──────────────────────────────────────────

class SessionInfo(BaseModel):
    tool: str
    filesWritten: set[str] = Field(default_factory=set)
    model: str = ""
    totalTokens: int = 0
    tokensIn: int = 0
    tokensOut: int = 0
    sessionDurationSec: int = 0

    def sorted_files(self) -> list[str]:
        return sorted(self.filesWritten)


class SessionParseFailure(BaseModel):
    path: str
    error: str


class DetectionOutcome(BaseModel):
    """Result of one detection run, keeping failures apart from absence."""

    tool: str
    session: Optional[SessionInfo] = None
    candidates: int = 0
    failures: list[SessionParseFailure] = Field(default_factory=list)

    @property
    def status(self) -> str:
        if self.session is not None:
            return "found"
        if self.failures:
            return "error"
        return "empty"
