"""Shared helpers for resolving CLI and environment inputs."""

from __future__ import annotations

import os
from collections import abc as cabc
from dataclasses import dataclass
from pathlib import Path

from tf_actions._errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class InputResolution:
    """Configuration for resolving an input from multiple sources."""

    env_key: str
    default: str | Path | None = None
    required: bool = False
    as_path: bool = False


def resolve_input(
    param_value: str | Path | None,
    resolution: InputResolution,
    env: cabc.Mapping[str, str] | None = None,
) -> str | Path | None:
    """Resolve input from parameter, environment variable, or default.

    Empty environment values count as unset, since GitHub Actions passes
    omitted inputs as empty strings.
    """

    if param_value is not None:
        return param_value

    env_value = (env if env is not None else os.environ).get(resolution.env_key)
    if env_value:
        return Path(env_value) if resolution.as_path else env_value

    if resolution.required:
        msg = f"{resolution.env_key} is required"
        raise ConfigurationError(msg)

    return resolution.default
