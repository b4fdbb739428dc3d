import logging
import os
import unittest
from pathlib import Path
from unittest.mock import patch

from api.logging_config import HealthCheckFilter, get_logging_config
from services.config import AgentSettings, env_int


class TestAgentSettings(unittest.TestCase):
    def test_defaults_without_env(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = AgentSettings.from_env()

        self.assertIsNone(settings.token)
        self.assertFalse(settings.token_configured)
        self.assertEqual(settings.port, 3000)
        self.assertEqual(settings.host, "0.0.0.0")
        self.assertEqual(settings.deploy_script, Path("scripts/deploy.sh"))
        self.assertIsNone(settings.repo_dir)
        self.assertEqual(settings.log_level, "INFO")

    def test_reads_env(self) -> None:
        env = {
            "AGENT_TOKEN": "  tok  ",
            "PORT": "8080",
            "AGENT_HOST": "127.0.0.1",
            "AGENT_DEPLOY_SCRIPT": "/srv/deploy.sh",
            "AGENT_REPO_DIR": "/srv/app",
            "LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = AgentSettings.from_env()

        self.assertEqual(settings.token, "tok")
        self.assertEqual(settings.port, 8080)
        self.assertEqual(settings.host, "127.0.0.1")
        self.assertEqual(settings.deploy_script, Path("/srv/deploy.sh"))
        self.assertEqual(settings.repo_dir, Path("/srv/app"))
        self.assertEqual(settings.log_level, "DEBUG")

    def test_blank_token_counts_as_unset(self) -> None:
        with patch.dict(os.environ, {"AGENT_TOKEN": "   "}, clear=True):
            self.assertIsNone(AgentSettings.from_env().token)

    def test_env_helpers(self) -> None:
        with patch.dict(os.environ, {"N": "x12", "P": " 42 "}, clear=True):
            self.assertEqual(env_int("P", 5), 42)
            self.assertEqual(env_int("N", 5), 5)
            self.assertEqual(env_int("MISSING", 7), 7)


class TestLoggingConfig(unittest.TestCase):
    def _record(self, name: str, msg: str) -> logging.LogRecord:
        return logging.LogRecord(name, logging.INFO, __file__, 1, msg, None, None)

    def test_health_check_access_lines_are_dropped(self) -> None:
        f = HealthCheckFilter()

        self.assertFalse(f.filter(self._record("uvicorn.access", '"GET /health HTTP/1.1" 200')))
        self.assertTrue(f.filter(self._record("uvicorn.access", '"POST /deploy HTTP/1.1" 200')))
        self.assertTrue(f.filter(self._record("services.deploy", "GET /health")))

    def test_level_is_applied_to_root(self) -> None:
        cfg = get_logging_config("debug")

        self.assertEqual(cfg["root"]["level"], "DEBUG")
        self.assertIn("health_check_filter", cfg["handlers"]["access"]["filters"])
