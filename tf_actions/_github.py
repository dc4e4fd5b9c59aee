"""GitHub Actions helpers for action inputs and step outputs."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TextIO

import yaml

from tf_actions._errors import ConfigurationError

LIST_SEPARATOR = re.compile(r"[,\n]")


def mask_secret(value: str, stream: Callable[[str], object] = print) -> None:
    """Emit the GitHub Actions secret masking command.

    Parameters
    ----------
    value
        Secret value to mask.
    stream
        Output stream for the masking command (defaults to ``print``).

    Returns
    -------
    None
        Writes one masking command per non-empty line in ``value``.

    Examples
    --------
    >>> mask_secret("token")
    ::add-mask::token
    """
    if not value:
        return
    for line in value.splitlines():
        if line:
            stream(f"::add-mask::{line}")


def parse_bool(value: str | None, *, default: bool = False) -> bool:
    """Parse a boolean-like string.

    Examples
    --------
    >>> parse_bool("yes")
    True
    >>> parse_bool(None)
    False
    """
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("true", "1", "yes")


def parse_list(value: str | None) -> tuple[str, ...]:
    """Split a comma or newline separated input, dropping blanks.

    Examples
    --------
    >>> parse_list("acme_certificate.certificate, kubernetes_secret.tls")
    ('acme_certificate.certificate', 'kubernetes_secret.tls')
    >>> parse_list("")
    ()
    """
    if not value:
        return ()
    return tuple(item.strip() for item in LIST_SEPARATOR.split(value) if item.strip())


def parse_variables(value: str | None) -> dict[str, object]:
    """Parse a YAML (or JSON) mapping of variable names to values.

    Examples
    --------
    >>> parse_variables("region: nyc3\\nreplicas: 2")
    {'region': 'nyc3', 'replicas': 2}
    """
    if value is None or not value.strip():
        return {}
    try:
        variables = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in variables: {exc}"
        raise ConfigurationError(msg) from exc
    if not isinstance(variables, dict):
        msg = "variables must be a mapping of names to values"
        raise ConfigurationError(msg)
    return {str(name): variable for name, variable in variables.items()}


def format_output_value(value: object) -> str:
    """Render an output value for ``GITHUB_OUTPUT``.

    Examples
    --------
    >>> format_output_value("https://example.com")
    'https://example.com'
    >>> format_output_value(True)
    'true'
    """
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _choose_multiline_delimiter(value: str, base: str = "EOF") -> str:
    """Choose a heredoc delimiter that is not present in the value."""
    delimiter = base
    counter = 0
    while delimiter in value:
        counter += 1
        delimiter = f"{base}_{counter}"
    return delimiter


def _write_github_multiline(handle: TextIO, key: str, value: str) -> None:
    """Write a multiline GitHub Actions value using heredoc syntax."""
    delimiter = _choose_multiline_delimiter(value)
    handle.write(f"{key}<<{delimiter}\n")
    handle.write(f"{value}\n")
    handle.write(f"{delimiter}\n")


def append_github_output(output_file: Path, outputs: Mapping[str, str]) -> None:
    """Append outputs to the ``GITHUB_OUTPUT`` file.

    Parameters
    ----------
    output_file
        Path to the ``GITHUB_OUTPUT`` file.
    outputs
        Outputs to append.

    Examples
    --------
    >>> append_github_output(Path("/tmp/out"), {"changes": "true"})
    """
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with output_file.open("a", encoding="utf-8") as handle:
        for key, value in outputs.items():
            if "\n" in value or "\r" in value:
                _write_github_multiline(handle, key, value)
            else:
                handle.write(f"{key}={value}\n")
