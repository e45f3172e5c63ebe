import json
import os
import tempfile
import unittest
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

from fastapi import HTTPException

from agent_detector.models import TOOL_CODEX
from agent_detector.parsers.platforms import registry
from agent_detector.routers import detection as detection_router

REPO = "/Users/jose/myproject"


class DetectionRouterTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.codex_home = Path(tmpdir.name) / ".codex"
        day_dir = self.codex_home / "sessions" / "2026" / "02" / "10"
        day_dir.mkdir(parents=True)
        lines = [
            {"timestamp": "2026-02-10T10:00:00.000Z", "type": "session_meta", "payload": {"cwd": REPO}},
            {"timestamp": "2026-02-10T10:00:01.000Z", "type": "turn_context", "payload": {"model": "gpt-5.3-codex"}},
            {
                "timestamp": "2026-02-10T10:00:05.000Z",
                "type": "response_item",
                "payload": {
                    "type": "function_call",
                    "name": "exec_command",
                    "arguments": json.dumps({"cmd": "touch src/z.py src/a.py"}),
                },
            },
        ]
        (day_dir / "rollout-2026-02-10T10-00-00-aaa.jsonl").write_text(
            "\n".join(json.dumps(line) for line in lines), encoding="utf-8"
        )

        env_patch = patch.dict(os.environ, {"CODEX_HOME": str(self.codex_home)})
        env_patch.start()
        self.addCleanup(env_patch.stop)

    def test_list_tools(self) -> None:
        self.assertEqual(detection_router.list_tools(), {"tools": [TOOL_CODEX]})

    def test_detect_returns_sorted_files(self) -> None:
        payload = detection_router.detect_tool_sessions("codex", repoRoot=REPO, maxAgeHours=72)

        self.assertEqual(payload["status"], "found")
        self.assertEqual(payload["candidates"], 1)
        self.assertEqual(payload["failures"], [])
        self.assertEqual(payload["session"]["filesWritten"], ["src/a.py", "src/z.py"])
        self.assertEqual(payload["session"]["model"], "gpt-5.3-codex")
        self.assertEqual(payload["session"]["sessionDurationSec"], 5)

    def test_detect_for_unknown_repo_is_empty(self) -> None:
        payload = detection_router.detect_tool_sessions("codex", repoRoot="/elsewhere", maxAgeHours=72)

        self.assertEqual(payload["status"], "empty")
        self.assertIsNone(payload["session"])

    def test_unknown_tool_is_404(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            detection_router.detect_tool_sessions("cursor", repoRoot=REPO, maxAgeHours=72)
        self.assertEqual(ctx.exception.status_code, 404)

    def test_blank_repo_root_is_400(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            detection_router.detect_tool_sessions("codex", repoRoot="   ", maxAgeHours=72)
        self.assertEqual(ctx.exception.status_code, 400)


class RegistryTests(unittest.TestCase):
    def test_get_detector_normalizes_tool_tag(self) -> None:
        self.assertIsNotNone(registry.get_detector(" Codex "))
        self.assertIsNone(registry.get_detector("unknown"))

    def test_detect_sessions_skips_unknown_tools_and_absent_results(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        with patch.dict(os.environ, {"CODEX_HOME": tmpdir.name}):
            self.assertEqual(registry.detect_sessions(REPO, timedelta(hours=1), tools=["unknown", "codex"]), [])


class HealthTests(unittest.TestCase):
    def test_health_reports_sessions_directory(self) -> None:
        from agent_detector import main

        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        (Path(tmpdir.name) / "sessions").mkdir()

        with patch.dict(os.environ, {"CODEX_HOME": tmpdir.name}):
            self.assertEqual(main.health(), {"status": "ok", "codexSessions": "present"})
        with patch.dict(os.environ, {"CODEX_HOME": str(Path(tmpdir.name) / "missing")}):
            self.assertEqual(main.health()["codexSessions"], "missing")
