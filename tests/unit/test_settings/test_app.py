"""Unit tests for environment-driven settings."""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from metaingest.settings import EngineSettings, get_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run without a stray .env file or METAINGEST_ variables."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "METAINGEST_LOG_LEVEL",
        "METAINGEST_JSON_LOGS",
        "METAINGEST_MAX_WORKERS",
        "METAINGEST_STATISTICS_TIMEOUT_SECONDS",
        "METAINGEST_CONNECTORS_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


class TestEngineSettings:
    """Tests for EngineSettings."""

    @pytest.mark.unit
    def test_defaults(self) -> None:
        """Defaults apply with no environment."""
        settings = get_settings()
        assert settings.log_level == "INFO"
        assert settings.log_level_value == logging.INFO
        assert settings.json_logs is True
        assert settings.max_workers == 4
        assert settings.statistics_timeout_seconds == 0
        assert settings.connectors_file == "connectors.yaml"

    @pytest.mark.unit
    def test_reads_prefixed_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """METAINGEST_ variables override defaults."""
        monkeypatch.setenv("METAINGEST_LOG_LEVEL", "debug")
        monkeypatch.setenv("METAINGEST_JSON_LOGS", "false")
        monkeypatch.setenv("METAINGEST_MAX_WORKERS", "8")
        monkeypatch.setenv("METAINGEST_STATISTICS_TIMEOUT_SECONDS", "30")

        settings = EngineSettings()

        assert settings.log_level == "DEBUG"
        assert settings.log_level_value == logging.DEBUG
        assert settings.json_logs is False
        assert settings.max_workers == 8
        assert settings.statistics_timeout_seconds == 30

    @pytest.mark.unit
    def test_reads_env_file(self, tmp_path: Path) -> None:
        """A .env file in the working directory is honoured."""
        (tmp_path / ".env").write_text("METAINGEST_CONNECTORS_FILE=prod.yaml\n")
        assert EngineSettings().connectors_file == "prod.yaml"

    @pytest.mark.unit
    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unknown level names are rejected."""
        monkeypatch.setenv("METAINGEST_LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError, match="unknown log level"):
            EngineSettings()

    @pytest.mark.unit
    @pytest.mark.parametrize("workers", ["0", "65"])
    def test_max_workers_bounds(
        self, monkeypatch: pytest.MonkeyPatch, workers: str
    ) -> None:
        """max_workers must be between 1 and 64."""
        monkeypatch.setenv("METAINGEST_MAX_WORKERS", workers)
        with pytest.raises(ValidationError):
            EngineSettings()
