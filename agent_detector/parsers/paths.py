"""Normalize path tokens captured from shell commands."""
from __future__ import annotations

# Stream sinks that a redirect may target without writing a file.
_NULL_SINKS = {"/dev/null", "/dev/stdout", "/dev/stderr"}
_QUOTE_CHARS = "\"'"


def _strip_token(token: str) -> str:
    # Trim until stable so a cleaned path always cleans to itself.
    while True:
        trimmed = token.strip().strip(_QUOTE_CHARS)
        if trimmed == token:
            return token
        token = trimmed


def clean_path(raw: str) -> str:
    """Return a usable relative path for ``raw``, or "" when it is not a file.

    Heredoc markers, stream sinks, flags and directory references are rejected.
    """
    path = _strip_token(raw or "")
    if not path:
        return ""
    if path.startswith("<<"):
        return ""
    if path in _NULL_SINKS:
        return ""
    if path.startswith("-"):
        return ""
    if path.endswith("/"):
        return ""
    return path
