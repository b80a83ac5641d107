"""Per-filter configuration."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from tracefilter.errors import ConfigError


class FilterConfig(BaseModel):
    """Settings for the simple filter, shared by every stream it handles."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    # prefix of the local reply body
    echo_body: str = ""
    # tagged on every span as "direction"
    direction: str = ""


def parse_filter_config(raw: Optional[Mapping[str, Any]]) -> FilterConfig:
    """
    Validate a raw filter config mapping.

    Raises:
        ConfigError: unknown keys or wrongly typed values
    """
    try:
        return FilterConfig.model_validate(dict(raw or {}))
    except ValidationError as e:
        raise ConfigError("invalid filter config", {"errors": e.error_count()}) from e
