"""Parse the CLI's machine-readable output."""

from __future__ import annotations

import json

from tf_actions._errors import ParseError


def _load_object(stdout: str, description: str) -> dict[str, object]:
    try:
        payload = json.loads(stdout)
    except json.JSONDecodeError as exc:
        msg = f"{description} is not valid JSON: {exc}"
        raise ParseError(msg, stdout=stdout) from exc
    if not isinstance(payload, dict):
        msg = f"{description} must be a JSON object"
        raise ParseError(msg, stdout=stdout)
    return payload


def parse_outputs(stdout: str) -> tuple[dict[str, object], frozenset[str]]:
    """Parse ``output -json`` into values and sensitive names.

    Parameters
    ----------
    stdout
        Raw standard output of ``output -json``.

    Returns
    -------
    tuple[dict[str, object], frozenset[str]]
        Output values keyed by name, and the names marked sensitive.

    Raises
    ------
    ParseError
        If the output is not a JSON object of output descriptors.

    Examples
    --------
    >>> parse_outputs('{"url": {"value": "https://example.com", "type": "string", "sensitive": false}}')
    ({'url': 'https://example.com'}, frozenset())
    >>> parse_outputs("{}")
    ({}, frozenset())
    """
    if not stdout.strip():
        return {}, frozenset()

    payload = _load_object(stdout, "output")
    values: dict[str, object] = {}
    sensitive: set[str] = set()
    for name, descriptor in payload.items():
        if not isinstance(descriptor, dict) or "value" not in descriptor:
            msg = f"output {name!r} has no value"
            raise ParseError(msg, stdout=stdout)
        values[name] = descriptor["value"]
        if descriptor.get("sensitive"):
            sensitive.add(name)
    return values, frozenset(sensitive)


def parse_version(stdout: str) -> dict[str, object]:
    """Parse ``version -json`` into the core and provider versions.

    Provider keys use the last segment of the provider source address.

    Examples
    --------
    >>> parse_version(
    ...     '{"terraform_version": "1.9.0", '
    ...     '"provider_selections": {"registry.terraform.io/hashicorp/random": "3.6.2"}}'
    ... )
    {'terraform': '1.9.0', 'random': '3.6.2'}
    """
    payload = _load_object(stdout, "version")
    version = payload.get("terraform_version")
    if not isinstance(version, str):
        msg = "version output has no terraform_version"
        raise ParseError(msg, stdout=stdout)

    versions: dict[str, object] = {"terraform": version}
    providers = payload.get("provider_selections") or {}
    if not isinstance(providers, dict):
        msg = "provider_selections must be a JSON object"
        raise ParseError(msg, stdout=stdout)
    for source, provider_version in providers.items():
        versions[source.rsplit("/", 1)[-1]] = provider_version
    return versions
