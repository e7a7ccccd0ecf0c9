"""Client configuration.

:class:`ClientConfig` replaces per-call option callbacks with one validated,
immutable settings object. It can be built directly, read from a JSON file
with :func:`load_config`, or resolved from the environment with
:func:`config_from_env`.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator

from minigql.exceptions import ConfigError

ENDPOINT_ENV = "MINIGQL_ENDPOINT"
TIMEOUT_ENV = "MINIGQL_TIMEOUT"


class ClientConfig(BaseModel):
    """Settings applied once when a client is constructed.

    Attributes:
        endpoint: GraphQL endpoint URL (http or https).
        timeout: Per-exchange timeout in seconds. ``None`` leaves only the
            execution context's deadline in effect.
    """

    endpoint: str
    timeout: float | None = Field(default=None, gt=0)

    model_config = {"frozen": True}

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, value: str) -> str:
        value = value.strip()
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("endpoint must be an http(s) URL")
        return value


def load_config(path: str | Path) -> ClientConfig:
    config_path = Path(path).expanduser().resolve()
    try:
        raw_payload: Any = json.loads(config_path.read_text(encoding="utf-8"))
        return ClientConfig.model_validate(raw_payload)
    except OSError as exc:
        raise ConfigError(f"failed reading config file: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in config file: {config_path}") from exc
    except ValidationError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc


def config_from_env(environ: Mapping[str, str] | None = None) -> ClientConfig:
    """Build a config from ``MINIGQL_ENDPOINT`` and optional ``MINIGQL_TIMEOUT``."""
    env = os.environ if environ is None else environ
    endpoint = (env.get(ENDPOINT_ENV) or "").strip()
    if not endpoint:
        raise ConfigError(f"{ENDPOINT_ENV} is not set or empty")

    raw_timeout = (env.get(TIMEOUT_ENV) or "").strip()
    try:
        return ClientConfig(endpoint=endpoint, timeout=float(raw_timeout) if raw_timeout else None)
    except ValueError as exc:
        # pydantic's ValidationError is a ValueError subclass
        raise ConfigError(f"invalid config from environment: {exc}") from exc
