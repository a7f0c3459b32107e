"""
Global Configuration and Client Defaults.

Module constants hold the defaults for talking to the analysis backend and
for the graph viewer. ``ClientConfig`` layers an optional YAML file and
environment variables on top of them.

Lookup order (later wins):
    1. module defaults below
    2. ``client:`` section of ``.rsview/config.yaml``
    3. ``RSVIEW_*`` environment variables
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# --- Backend ---
DEFAULT_SERVER_URL = "http://localhost:7071"

# Wall-clock budget per HTTP call, in seconds
DEFAULT_TIMEOUT = 30.0
DEFAULT_STATUS_TIMEOUT = 5.0

# One initial attempt plus three retries
DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_BASE_DELAY = 1.0

ANALYZE_ENDPOINT = "/analyse"
HEALTH_ENDPOINT = "/health"
INFO_ENDPOINT = "/info"

# --- Client state ---
DEFAULT_CACHE_SIZE = 20
DEFAULT_HISTORY_SIZE = 50
DEFAULT_STATUS_INTERVAL = 60.0

# --- Viewer ---
MIN_ZOOM = 0.1
MAX_ZOOM = 5.0
ZOOM_OUT_STEP = 0.9
ZOOM_IN_STEP = 1.1

DEFAULT_CONFIG_PATH = Path(".rsview/config.yaml")

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class ClientConfig(BaseModel):
    """
    Settings for AnalysisService and its collaborators.

    Attributes:
        server_url: Base URL of the analysis backend.
        timeout: Seconds allowed for one analysis call.
        status_timeout: Seconds allowed for one health probe.
        max_attempts: Total attempts for a retried call (>= 1).
        base_delay: Linear backoff unit in seconds.
        cache_enabled: Whether analysis results are cached.
        cache_size: Maximum cached results.
        history_size: Maximum request records kept.
        status_interval: Seconds between background health probes.
    """
    server_url: str = DEFAULT_SERVER_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    status_timeout: float = Field(default=DEFAULT_STATUS_TIMEOUT, gt=0)
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)
    base_delay: float = Field(default=DEFAULT_BASE_DELAY, ge=0)
    cache_enabled: bool = True
    cache_size: int = Field(default=DEFAULT_CACHE_SIZE, ge=1)
    history_size: int = Field(default=DEFAULT_HISTORY_SIZE, ge=1)
    status_interval: float = Field(default=DEFAULT_STATUS_INTERVAL, gt=0)

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    @field_validator("server_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("server_url must not be empty")
        return v

    @classmethod
    def load(
        cls,
        config_path: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> "ClientConfig":
        """
        Build a config from the YAML file and the environment.

        Args:
            config_path: YAML file to read. Missing files are ignored.
            env: Environment mapping, defaults to ``os.environ``.

        Returns:
            ClientConfig: The merged configuration.
        """
        path = config_path or DEFAULT_CONFIG_PATH
        data: Dict[str, Any] = {}

        if path.exists():
            with open(path, "r") as f:
                raw = yaml.safe_load(f) or {}
            section = raw.get("client", {}) if isinstance(raw, dict) else {}
            if isinstance(section, dict):
                data.update(section)
            logger.debug(f"Loaded client config from {path}")

        data.update(_env_overrides(os.environ if env is None else env))
        return cls(**data)


def _env_overrides(env: Dict[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}

    if env.get("RSVIEW_SERVER_URL"):
        overrides["server_url"] = env["RSVIEW_SERVER_URL"]
    if env.get("RSVIEW_TIMEOUT"):
        overrides["timeout"] = env["RSVIEW_TIMEOUT"]
    if env.get("RSVIEW_MAX_ATTEMPTS"):
        overrides["max_attempts"] = env["RSVIEW_MAX_ATTEMPTS"]

    flag = env.get("RSVIEW_CACHE_ENABLED", "").strip().lower()
    if flag in _TRUTHY:
        overrides["cache_enabled"] = True
    elif flag in _FALSY:
        overrides["cache_enabled"] = False
    elif flag:
        logger.warning(f"Ignoring unrecognized RSVIEW_CACHE_ENABLED value: {flag!r}")

    return overrides
