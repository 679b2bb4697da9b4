"""Tests for launcher settings."""

import pytest

from launcher.core.errors import LauncherError, SchemaNotFoundError
from launcher.core.settings import LauncherSettings


class TestLauncherSettings:
    """Tests for environment-driven settings."""

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SURVEY_RUNNER_URL", "http://runner.example")
        monkeypatch.setenv("HTTP_TIMEOUT", "2.5")
        settings = LauncherSettings()
        assert settings.survey_runner_url == "http://runner.example"
        assert settings.http_timeout == 2.5

    def test_reads_legacy_listen_variables(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GO_LAUNCH_A_SURVEY_LISTEN_HOST", "127.0.0.1")
        monkeypatch.setenv("GO_LAUNCH_A_SURVEY_LISTEN_PORT", "9999")
        settings = LauncherSettings()
        assert (settings.listen_host, settings.listen_port) == ("127.0.0.1", 9999)

    def test_listen_address_by_field_name(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LISTEN_PORT", "8123")
        settings = LauncherSettings(listen_host="10.0.0.1")
        assert (settings.listen_host, settings.listen_port) == ("10.0.0.1", 8123)

    def test_schema_base_url_falls_back_to_runner(self) -> None:
        settings = LauncherSettings(
            survey_runner_url="http://runner.example/", survey_runner_schema_url=""
        )
        assert settings.schema_base_url == "http://runner.example"
        assert settings.runner_base_url == "http://runner.example"

    def test_schema_base_url_override(self) -> None:
        settings = LauncherSettings(survey_runner_schema_url="http://schemas.example/")
        assert settings.schema_base_url == "http://schemas.example"


class TestLauncherError:
    """Tests for error descriptions."""

    def test_includes_op_and_cause(self) -> None:
        err = LauncherError("fetch", "Failed to load Schema", ValueError("boom"))
        assert str(err) == "fetch: Failed to load Schema (boom)"

    def test_without_cause(self) -> None:
        assert str(LauncherError("parse", "bad")) == "parse: bad"

    def test_not_found_names_schema(self) -> None:
        err = SchemaNotFoundError("x.json")
        assert err.op == "lookup"
        assert str(err) == "lookup: Survey not found: x.json"
