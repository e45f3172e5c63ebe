import os
import unittest
from pathlib import Path
from unittest.mock import patch

from agent_detector import config


class ConfigTests(unittest.TestCase):
    def test_env_int_falls_back_on_missing_or_invalid_values(self) -> None:
        with patch.dict(os.environ, {"AGENT_DETECTOR_TEST_INT": "12"}):
            self.assertEqual(config._env_int("AGENT_DETECTOR_TEST_INT", 3), 12)
        with patch.dict(os.environ, {"AGENT_DETECTOR_TEST_INT": "twelve"}):
            self.assertEqual(config._env_int("AGENT_DETECTOR_TEST_INT", 3), 3)
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(config._env_int("AGENT_DETECTOR_TEST_INT", 3), 3)

    def test_env_bool_accepts_common_truthy_spellings(self) -> None:
        for raw in ("1", "true", "YES", " on "):
            with self.subTest(raw=raw), patch.dict(os.environ, {"AGENT_DETECTOR_TEST_BOOL": raw}):
                self.assertTrue(config._env_bool("AGENT_DETECTOR_TEST_BOOL"))
        with patch.dict(os.environ, {"AGENT_DETECTOR_TEST_BOOL": "off"}):
            self.assertFalse(config._env_bool("AGENT_DETECTOR_TEST_BOOL", True))

    def test_only_runtime_settings_are_exported(self) -> None:
        for name in ("HOST", "PORT"):
            with self.subTest(name=name):
                self.assertFalse(hasattr(config, name))

    def test_codex_home_override_is_expanded(self) -> None:
        with patch.dict(os.environ, {"CODEX_HOME": "~/custom-codex"}):
            self.assertEqual(config.codex_home(), Path("~/custom-codex").expanduser())
            self.assertEqual(config.codex_sessions_dir(), Path("~/custom-codex").expanduser() / "sessions")

    def test_blank_codex_home_uses_default(self) -> None:
        with patch.dict(os.environ, {"CODEX_HOME": "  "}), patch.object(Path, "home", return_value=Path("/home/dev")):
            self.assertEqual(config.codex_home(), Path("/home/dev/.codex"))

    def test_unresolvable_home_yields_no_sessions_dir(self) -> None:
        with patch.dict(os.environ, {"CODEX_HOME": ""}), patch.object(Path, "home", side_effect=RuntimeError("no home")):
            self.assertIsNone(config.codex_sessions_dir())
