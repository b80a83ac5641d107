"""Configuration loading: defaults, TOML file, environment, explicit overrides.

Priority (lowest to highest):
- model defaults
- ``tracefilter.toml`` in the working directory, else ``~/.tracefilter.toml``
- ``TRACEFILTER_*`` environment variables
- overrides passed to ``load_config()``
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tracefilter.context.propagators import PropagationStyle
from tracefilter.errors import ConfigError
from tracefilter.filter.config import FilterConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tracefilter.toml"
ENV_PREFIX = "TRACEFILTER_"


class TracingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    service_name: str = "tracefilter"
    exporter: Literal["otlp", "console", "none"] = "console"
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    propagation_style: PropagationStyle = PropagationStyle.MULTI


class TraceFilterConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tracing: TracingConfig = Field(default_factory=TracingConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)


# flat key -> section, for env vars and flat overrides
_FLAT_KEYS = {
    **{name: "tracing" for name in TracingConfig.model_fields},
    **{name: "filter" for name in FilterConfig.model_fields},
}


def find_config_file() -> Optional[str]:
    """Return the first config file found (cwd, then home), or None."""
    candidates = [
        Path.cwd() / CONFIG_FILE_NAME,
        Path.home() / f".{CONFIG_FILE_NAME}",
    ]
    for path in candidates:
        if path.is_file():
            return str(path)
    return None


def load_toml_config(path: str) -> Dict[str, Any]:
    """
    Load a TOML config file into a nested dict.

    Returns an empty dict if the file does not exist.

    Raises:
        ConfigError: the file is not valid TOML
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        return {}
    except tomllib.TOMLDecodeError as e:
        raise ConfigError("invalid TOML config", {"path": path, "error": e}) from e


def load_env_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect ``TRACEFILTER_<FIELD>`` variables into a nested dict."""
    environ = os.environ if environ is None else environ
    result: Dict[str, Dict[str, Any]] = {}
    for key, section in _FLAT_KEYS.items():
        value = environ.get(ENV_PREFIX + key.upper())
        if value is not None:
            result.setdefault(section, {})[key] = value
    return result


def _nest(overrides: Mapping[str, Any]) -> Dict[str, Any]:
    nested: Dict[str, Dict[str, Any]] = {}
    for key, value in overrides.items():
        if key in ("tracing", "filter") and isinstance(value, Mapping):
            nested.setdefault(key, {}).update(value)
        elif key in _FLAT_KEYS:
            nested.setdefault(_FLAT_KEYS[key], {})[key] = value
        else:
            raise ConfigError("unknown config key", {"key": key})
    return nested


def _merge(base: Dict[str, Any], update: Mapping[str, Any]) -> Dict[str, Any]:
    for section, values in update.items():
        current = base.setdefault(section, {})
        if not isinstance(values, Mapping) or not isinstance(current, Mapping):
            raise ConfigError("invalid config section", {"section": section})
        current.update(values)
    return base


def load_config_with_priority(
    config_file: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Merge file, environment and overrides into one nested dict (unvalidated)."""
    path = config_file or find_config_file()
    merged: Dict[str, Any] = {}
    if path:
        logger.debug("loading config from %s", path)
        _merge(merged, load_toml_config(path))
    _merge(merged, load_env_config())
    if overrides:
        _merge(merged, _nest(overrides))
    return merged


def validate_config(raw: Mapping[str, Any]) -> TraceFilterConfig:
    """
    Validate a nested config dict.

    Raises:
        ConfigError: on any validation failure
    """
    try:
        return TraceFilterConfig.model_validate(dict(raw))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"invalid configuration: {problems}") from e


def apply_overrides(
    config: TraceFilterConfig,
    overrides: Mapping[str, Any],
) -> TraceFilterConfig:
    """Return a re-validated copy of config with overrides applied on top."""
    return validate_config(_merge(config.model_dump(), _nest(overrides)))


def load_config(
    config_file: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> TraceFilterConfig:
    """Load and validate configuration from all sources."""
    return validate_config(load_config_with_priority(config_file, overrides))
