"""Tests for Flask application initialization and configuration."""

import logging
import os
import subprocess
import sys
from pathlib import Path

from flask import Flask
from jellyfish_core.config import settings
from jellyfish_core.main import app, initialize_database

REPO_ROOT = Path(__file__).parent.parent


class TestAppInitialization:
    """Test Flask application initialization."""

    def test_app_is_flask_instance(self):
        """App should be a Flask application."""
        assert isinstance(app, Flask)

    def test_app_in_testing_mode_when_configured(self, client):
        """App should respect TESTING configuration."""
        assert app.config['TESTING'] is True

    def test_kernel_and_worker_registered(self, client):
        """initialize_database should attach the kernel and the worker."""
        services = app.extensions["jellyfish"]
        assert services["kernel"] is not None
        assert services["worker"].kernel is services["kernel"]

    def test_blueprints_registered(self):
        rules = [rule.rule for rule in app.url_map.iter_rules()]
        assert "/api/v2/query" in rules
        assert "/api/v2/action" in rules
        assert "/auth/login" in rules
        assert "/graphql" in rules


class TestCORSConfiguration:
    """Test CORS middleware configuration."""

    def test_cors_headers_present_on_health(self, client):
        """CORS headers should be present on API responses."""
        response = client.get("/health", headers={"Origin": "http://localhost:9000"})
        assert "Access-Control-Allow-Origin" in response.headers

    def test_cors_preflight_options_request(self, client):
        """OPTIONS preflight request should be handled."""
        response = client.options(
            "/health",
            headers={
                "Origin": "http://localhost:9000",
                "Access-Control-Request-Method": "GET"
            }
        )
        assert response.status_code in (200, 204)


class TestLoggingConfiguration:
    """Test logging configuration."""

    def test_logging_level_configured(self):
        """Root logger should have handlers after app import."""
        root_logger = logging.getLogger()
        assert len(root_logger.handlers) > 0


class TestHealthEndpoints:
    """Test health check endpoints (app-level tests)."""

    def test_health_returns_status_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}

    def test_ping_uses_envelope(self, client):
        """Ping answers with the API v2 envelope and a timestamp."""
        response = client.get("/ping")
        data = response.get_json()

        assert response.status_code == 200
        assert data["error"] is False
        assert data["data"]["timestamp"].endswith("Z")


class TestStartup:
    """The app must come up on a database that does not exist yet."""

    def test_import_bootstraps_empty_database(self, tmp_path):
        db_path = tmp_path / "fresh.db"
        env = {
            **os.environ,
            "JF_DATABASE_PATH": str(db_path),
            "JF_BCRYPT_WORK_FACTOR": "4",
        }

        result = subprocess.run(
            [sys.executable, "-c", "import jellyfish_core.main"],
            cwd=REPO_ROOT,
            env=env,
            capture_output=True,
            text=True,
        )

        assert result.returncode == 0, result.stderr
        assert db_path.exists()

    def test_initialize_database_on_empty_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "database_path", str(tmp_path / "empty.db"))

        initialize_database()

        kernel = app.extensions["jellyfish"]["kernel"]
        assert set(kernel.sessions) == {"admin", "guest"}
        user_type = kernel.get_card_by_slug(kernel.sessions["admin"], "user")
        assert user_type["version"] == "1.0.0"
