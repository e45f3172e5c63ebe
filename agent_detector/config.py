"""Agent detector configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Session discovery
CODEX_SESSION_GLOB = os.path.join("*", "*", "*", "rollout-*.jsonl")
DEFAULT_MAX_AGE_HOURS = _env_int("AGENT_DETECTOR_MAX_AGE_HOURS", 72)

# Stream parser tuning
MAX_LINE_BYTES = _env_int("AGENT_DETECTOR_MAX_LINE_BYTES", 10 * 1024 * 1024)

# Observability
OTEL_ENABLED = _env_bool("AGENT_DETECTOR_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("AGENT_DETECTOR_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("AGENT_DETECTOR_OTEL_SERVICE_NAME", "agent-detector")
PROM_PORT = _env_int("AGENT_DETECTOR_PROM_PORT", 9464)


def codex_home() -> Path | None:
    """Resolve the Codex home directory, honouring CODEX_HOME."""
    override = (os.getenv("CODEX_HOME") or "").strip()
    if override:
        return Path(override).expanduser()
    try:
        return Path.home() / ".codex"
    except RuntimeError:
        return None


def codex_sessions_dir() -> Path | None:
    """Default root of the dated rollout tree, or None when home is unknown."""
    home = codex_home()
    if home is None:
        return None
    return home / "sessions"
