"""Parse Codex rollout JSONL transcripts into SessionInfo models."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Iterator

from agent_detector import config
from agent_detector.date_utils import parse_timestamp
from agent_detector.models import TOOL_CODEX, SessionInfo
from agent_detector.parsers.commands import extract_files_from_cmd
from agent_detector.parsers.patches import extract_files_from_patch

logger = logging.getLogger("agent_detector.codex")

# Top-level record types in a rollout file.
SESSION_META = "session_meta"
TURN_CONTEXT = "turn_context"
EVENT_MSG = "event_msg"
RESPONSE_ITEM = "response_item"

_SHELL_FUNCTIONS = {"exec_command", "shell", "container.exec"}
_PATCH_FUNCTIONS = {"apply_patch"}
_CALL_TYPES = {"function_call", "custom_tool_call"}
_SHELL_SCRIPT_FLAGS = {"-c", "-lc"}

_TOKEN_COUNT_MARKER = b'"token_count"'
_CALL_MARKERS = tuple(
    json.dumps(name).encode("utf-8") for name in sorted(_SHELL_FUNCTIONS | _PATCH_FUNCTIONS)
)
_DRAIN_CHUNK_BYTES = 64 * 1024


def _coerce_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def iter_jsonl_lines(handle: BinaryIO, max_line_bytes: int) -> Iterator[bytes]:
    """Yield raw lines from ``handle``, dropping any longer than ``max_line_bytes``."""
    limit = max(1, max_line_bytes)
    while True:
        line = handle.readline(limit + 1)
        if not line:
            return
        if len(line) > limit and not line.endswith(b"\n"):
            skipped = len(line)
            while line and not line.endswith(b"\n"):
                line = handle.readline(_DRAIN_CHUNK_BYTES)
                skipped += len(line)
            logger.debug("Skipping oversized transcript line (%d bytes)", skipped)
            continue
        yield line


def load_record(raw: bytes) -> dict[str, Any] | None:
    """Decode one transcript line into a record dict, or None when malformed."""
    try:
        record = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    if not isinstance(record, dict):
        return None
    return record


def _load_arguments(raw: Any) -> dict[str, Any] | None:
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        return None
    try:
        args = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    return args if isinstance(args, dict) else None


def _command_from_args(args: dict[str, Any]) -> str:
    cmd = args.get("cmd")
    if isinstance(cmd, str):
        return cmd
    command = args.get("command")
    if isinstance(command, str):
        return command
    if isinstance(command, list) and all(isinstance(part, str) for part in command):
        # ["bash", "-lc", "<script>"] runs the script; anything else is argv.
        if len(command) == 3 and command[1] in _SHELL_SCRIPT_FLAGS:
            return command[2]
        return " ".join(command)
    return ""


class _SessionState:
    """Running state of a single left-to-right transcript scan."""

    def __init__(self) -> None:
        self.files: dict[str, None] = {}
        self.model = ""
        self.total_tokens = 0
        self.tokens_in = 0
        self.tokens_out = 0
        self.first_ts: datetime | None = None
        self.last_ts: datetime | None = None

    def add_files(self, paths: list[str]) -> None:
        for path in paths:
            if path:
                self.files.setdefault(path, None)

    def observe_timestamp(self, value: Any) -> None:
        ts = parse_timestamp(value)
        if ts is None:
            return
        if self.first_ts is None or ts < self.first_ts:
            self.first_ts = ts
        if self.last_ts is None or ts > self.last_ts:
            self.last_ts = ts

    def duration_seconds(self) -> int:
        if self.first_ts is None or self.last_ts is None:
            return 0
        return int((self.last_ts - self.first_ts).total_seconds())


def _handle_turn_context(state: _SessionState, payload: dict[str, Any]) -> None:
    model = payload.get("model")
    if isinstance(model, str) and model:
        state.model = model


def _handle_event_msg(state: _SessionState, payload: dict[str, Any]) -> None:
    if payload.get("type") != "token_count":
        return
    info = payload.get("info")
    if not isinstance(info, dict):
        return
    usage = info.get("total_token_usage")
    if not isinstance(usage, dict):
        return
    state.total_tokens = _coerce_int(usage.get("total_tokens"))
    state.tokens_in = _coerce_int(usage.get("input_tokens"))
    state.tokens_out = _coerce_int(usage.get("output_tokens"))


def _handle_shell_call(state: _SessionState, payload: dict[str, Any]) -> None:
    if payload.get("type") == "custom_tool_call":
        command = payload.get("input")
        if isinstance(command, str):
            state.add_files(extract_files_from_cmd(command))
        return
    args = _load_arguments(payload.get("arguments"))
    if args is None:
        return
    state.add_files(extract_files_from_cmd(_command_from_args(args)))


def _handle_patch_call(state: _SessionState, payload: dict[str, Any]) -> None:
    if payload.get("type") == "custom_tool_call":
        patch_text = payload.get("input")
        if isinstance(patch_text, str):
            state.add_files(extract_files_from_patch(patch_text))
        return
    args = _load_arguments(payload.get("arguments"))
    if args is None:
        return
    explicit_path = args.get("path")
    if isinstance(explicit_path, str) and explicit_path.strip():
        state.add_files([explicit_path.strip()])
        return
    for key in ("input", "patch"):
        patch_text = args.get(key)
        if isinstance(patch_text, str):
            state.add_files(extract_files_from_patch(patch_text))
            return


def _handle_response_item(state: _SessionState, payload: dict[str, Any]) -> None:
    if payload.get("type") not in _CALL_TYPES:
        return
    name = payload.get("name")
    if name in _SHELL_FUNCTIONS:
        _handle_shell_call(state, payload)
    elif name in _PATCH_FUNCTIONS:
        _handle_patch_call(state, payload)


def parse_session_file(path: Path, max_line_bytes: int | None = None) -> SessionInfo | None:
    """Stream a single rollout transcript into a SessionInfo.

    Returns None when the session wrote no files. Malformed lines are skipped;
    ``OSError`` from opening or reading the file propagates to the caller.
    """
    limit = config.MAX_LINE_BYTES if max_line_bytes is None else max_line_bytes
    state = _SessionState()
    skipped = 0

    with Path(path).open("rb") as handle:
        for raw in iter_jsonl_lines(handle, limit):
            record = load_record(raw)
            if record is None:
                if raw.strip():
                    skipped += 1
                continue

            state.observe_timestamp(record.get("timestamp"))

            entry_type = record.get("type")
            if entry_type == EVENT_MSG and _TOKEN_COUNT_MARKER not in raw:
                continue
            if entry_type == RESPONSE_ITEM and not any(marker in raw for marker in _CALL_MARKERS):
                continue

            payload = record.get("payload")
            if not isinstance(payload, dict):
                continue

            if entry_type == TURN_CONTEXT:
                _handle_turn_context(state, payload)
            elif entry_type == EVENT_MSG:
                _handle_event_msg(state, payload)
            elif entry_type == RESPONSE_ITEM:
                _handle_response_item(state, payload)

    if skipped:
        logger.debug("Skipped %d malformed lines in %s", skipped, path)

    if not state.files:
        return None

    return SessionInfo(
        tool=TOOL_CODEX,
        filesWritten=set(state.files),
        model=state.model,
        totalTokens=state.total_tokens,
        tokensIn=state.tokens_in,
        tokensOut=state.tokens_out,
        sessionDurationSec=state.duration_seconds(),
    )
