"""Connector configuration loader with validation."""

import hashlib
import json
import time
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from metaingest.config.error_hints import format_validation_error
from metaingest.config.schemas.connector import ConnectorConfig, ConnectorsConfig
from metaingest.settings.app import EngineSettings


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration loading or validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details (loc, msg, type).
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")

    def format_errors(self, *, include_hints: bool = True) -> str:
        """Render every error on its own line, with hints.

        Returns:
            Multi-line human-readable report.
        """
        lines = [str(self)]
        lines.extend(
            "  "
            + format_validation_error(
                e["loc"], e["msg"], e["type"], include_hint=include_hints
            )
            for e in self.errors
        )
        return "\n".join(lines)


class ConfigLoader:
    """Loads and validates connectors.yaml.

    Configuration is immutable once loaded.
    """

    def __init__(self, run_id: str = "") -> None:
        """Initialize the loader.

        Args:
            run_id: Identifier of the current run, for logs.
        """
        self._run_id = run_id
        self._config: ConnectorsConfig | None = None
        self._file_checksum: str | None = None
        self._validation_errors: list[dict[str, str]] = []
        self._validation_duration_ms: float = 0

    @property
    def config(self) -> ConnectorsConfig | None:
        """Get the loaded configuration, if any."""
        return self._config

    @property
    def file_checksum(self) -> str | None:
        """Get the SHA-256 checksum of the loaded file."""
        return self._file_checksum

    @property
    def validation_errors(self) -> list[dict[str, str]]:
        """Get validation errors if any."""
        return self._validation_errors.copy()

    def load_from_settings(self, settings: EngineSettings) -> ConnectorsConfig:
        """Load the file named by METAINGEST_CONNECTORS_FILE."""
        return self.load(settings.connectors_file)

    def load(self, path: Path | str) -> ConnectorsConfig:
        """Load and validate a connectors file.

        Args:
            path: Path to the YAML file.

        Returns:
            Validated ConnectorsConfig.

        Raises:
            ConfigValidationError: If the file cannot be read, is not UTF-8,
                is not valid YAML, or fails schema validation.
        """
        path = Path(path)
        start_time = time.perf_counter()
        log = logger.bind(
            run_id=self._run_id,
            component="config",
            file_path=str(path),
        )
        log.info("loading_config_file")
        self._validation_errors = []

        try:
            content_bytes = path.read_bytes()
        except FileNotFoundError as e:
            self._record_error("file", str(e), "file_not_found")
            log.error("config_file_not_found", error=str(e))
            raise ConfigValidationError(self.validation_errors, str(path)) from e
        except OSError as e:
            self._record_error("file", str(e), "file_read_error")
            log.error("config_file_read_error", error=str(e))
            raise ConfigValidationError(self.validation_errors, str(path)) from e

        self._file_checksum = hashlib.sha256(content_bytes).hexdigest()

        try:
            text = content_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            self._record_error("file", str(e), "encoding_error")
            log.error("config_encoding_error", error=str(e))
            raise ConfigValidationError(self.validation_errors, str(path)) from e

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            self._record_error("yaml", str(e), "yaml_parse_error")
            log.error("config_yaml_parse_error", error=str(e))
            raise ConfigValidationError(self.validation_errors, str(path)) from e

        try:
            self._config = ConnectorsConfig.model_validate(data)
        except ValidationError as e:
            for err in e.errors():
                self._record_error(
                    ".".join(str(loc) for loc in err["loc"]) or "root",
                    err["msg"],
                    err["type"],
                )
            log.error(
                "config_validation_failed",
                validation_error_count=len(self._validation_errors),
                errors=self._validation_errors,
            )
            raise ConfigValidationError(self.validation_errors, str(path)) from e

        self._validation_duration_ms = (time.perf_counter() - start_time) * 1000
        log.info(
            "config_file_loaded",
            file_sha256=self._file_checksum,
            connector_count=len(self._config.connectors),
            config_validation_duration_ms=round(self._validation_duration_ms, 2),
        )
        return self._config

    def get_connector(self, connector_id: str) -> ConnectorConfig | None:
        """Get a loaded connector by id."""
        if self._config is None:
            return None
        for connector in self._config.connectors:
            if connector.id == connector_id:
                return connector
        return None

    def _record_error(self, loc: str, msg: str, error_type: str) -> None:
        self._validation_errors.append({"loc": loc, "msg": msg, "type": error_type})

    def get_validation_summary(self) -> dict[str, object]:
        """Get a summary of the validation process.

        Returns:
            Dictionary with validation summary.
        """
        return {
            "run_id": self._run_id,
            "loaded": self._config is not None,
            "file_sha256": self._file_checksum,
            "validation_error_count": len(self._validation_errors),
            "validation_errors": self._validation_errors,
            "validation_duration_ms": self._validation_duration_ms,
        }

    def get_validation_summary_json(self) -> str:
        """Get validation summary as JSON string with stable ordering."""
        return json.dumps(self.get_validation_summary(), sort_keys=True, indent=2)
