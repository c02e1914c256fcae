"""Runtime configuration.

Service settings come from ``<config_path>/<service_name>Config.json``:

    {
        "service": "elevation",
        "config": {
            "elevation_dataset": "https://example.org/dtm.tif"
        }
    }

Values are read from the ``"config"`` object. Any value can be overridden
by an environment variable with the upper-cased key name
(``ELEVATION_DATASET``). ``CONFIG_PATH`` and ``SERVICE_NAME`` locate the file.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from domain.elevation.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config"
DEFAULT_SERVICE_NAME = "elevation"


class ServiceConfigFile(BaseModel):
    """Schema of the JSON configuration file (unknown top-level keys allowed)."""

    config: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow", frozen=True)


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=5002, ge=1, le=65535)
    log_level: str = "INFO"
    preload_dataset: bool = False

    model_config = ConfigDict(frozen=True)


class RuntimeConfig:
    """Lazily loaded service configuration.

    The file is read once, on the first ``get``; a missing file is treated as
    empty so that environment variables alone can configure the service.

    Parameters
    ----------
    config_path: str | Path | None
        Directory holding the config file. Defaults to ``$CONFIG_PATH``.
    service_name: str | None
        Service name; the file is ``<service_name>Config.json``.
        Defaults to ``$SERVICE_NAME``.
    environ: Mapping[str, str] | None
        Environment used for lookups and overrides. Defaults to ``os.environ``.
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        service_name: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self.config_path = Path(
            config_path or self._environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)
        )
        self.service_name = service_name or self._environ.get(
            "SERVICE_NAME", DEFAULT_SERVICE_NAME
        )
        self._values: dict[str, Any] | None = None
        self._lock = threading.Lock()

    @property
    def config_file(self) -> Path:
        return self.config_path / f"{self.service_name}Config.json"

    def _load(self) -> dict[str, Any]:
        path = self.config_file
        if not path.exists():
            logger.info("Config file %s not found; using environment only", path.name)
            return {}
        try:
            parsed = ServiceConfigFile.model_validate_json(path.read_bytes())
        except ValidationError as e:
            raise ConfigError(f"Invalid config file {path.name}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path.name}: {e}") from e
        logger.debug("Loaded config file %s", path.name)
        return dict(parsed.config)

    def _file_values(self) -> dict[str, Any]:
        if self._values is None:
            with self._lock:
                if self._values is None:
                    self._values = self._load()
        return self._values

    def get(self, name: str, default: Any = None) -> Any:
        """Value for ``name``: environment override first, then the file."""
        override = self._environ.get(name.upper())
        if override is not None:
            return override
        return self._file_values().get(name, default)

    @property
    def elevation_dataset(self) -> str:
        """Locator (path or URL) of the elevation raster.

        Raises:
            ConfigError: If no dataset is configured
        """
        value = self.get("elevation_dataset")
        if value is None or not str(value).strip():
            raise ConfigError(
                f"elevation_dataset is not configured (file {self.config_file.name} "
                "or ELEVATION_DATASET)"
            )
        return str(value).strip()

    def server_settings(self) -> ServerSettings:
        """Server settings from ``HOST``, ``PORT``, ``LOG_LEVEL``, ``PRELOAD_DATASET``."""
        values = {
            key: self.get(key)
            for key in ("host", "port", "log_level", "preload_dataset")
            if self.get(key) is not None
        }
        try:
            return ServerSettings.model_validate(values)
        except ValidationError as e:
            raise ConfigError(f"Invalid server settings: {e}") from e
