"""Validate invocation requests and assemble CLI argument vectors.

Assembly is deterministic: the same request always yields the same argument
vector, with variable files, variables and targets in the order supplied.
"""

from __future__ import annotations

import json
import re

from tf_actions._errors import ConfigurationError
from tf_actions._models import InvocationRequest, Mode

# Characters that URL path-segment escaping leaves unchanged.
WORKSPACE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.~$&+=:@][A-Za-z0-9\-_.~$&+=:@]*$")
VARIABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


def validate_workspace_name(name: str) -> str:
    """Validate a workspace name.

    Parameters
    ----------
    name
        Workspace name to validate.

    Returns
    -------
    str
        The validated name.

    Raises
    ------
    ConfigurationError
        If the name is blank, starts with ``-`` or contains unsupported
        characters.

    Examples
    --------
    >>> validate_workspace_name("pr-42")
    'pr-42'
    """
    if not name:
        msg = "workspace must not be blank"
        raise ConfigurationError(msg)
    if name.startswith("-"):
        msg = f"workspace {name!r} must not start with '-'"
        raise ConfigurationError(msg)
    if not WORKSPACE_NAME_PATTERN.match(name):
        msg = f"workspace {name!r} contains characters the CLI does not accept"
        raise ConfigurationError(msg)
    return name


def validate_request(request: InvocationRequest) -> None:
    """Reject requests that cannot run unattended.

    Raises
    ------
    ConfigurationError
        For any invalid input. Nothing has been spawned at that point.
    """
    if not request.working_directory.is_dir():
        msg = f"path {request.working_directory} is not a directory"
        raise ConfigurationError(msg)

    validate_workspace_name(request.workspace)

    if request.mode.requires_approval and not request.flags.auto_approve:
        msg = (
            f"{request.mode} needs auto_approve: the runner cannot wait for "
            "interactive confirmation"
        )
        raise ConfigurationError(msg)

    if request.mode is Mode.DESTROY_WORKSPACE:
        if request.workspace_ref.is_default:
            msg = "the default workspace cannot be destroyed"
            raise ConfigurationError(msg)
        if request.flags.targets:
            msg = "destroy-workspace destroys every resource and takes no targets"
            raise ConfigurationError(msg)

    for name in request.variables:
        if not VARIABLE_NAME_PATTERN.match(name):
            msg = f"invalid variable name {name!r}"
            raise ConfigurationError(msg)

    for target in request.flags.targets:
        if not target.strip():
            msg = "target addresses must not be blank"
            raise ConfigurationError(msg)

    for path in (*request.var_files, *request.backend_config_files):
        if not path.is_file():
            msg = f"file {path} does not exist"
            raise ConfigurationError(msg)


def format_variable(name: str, value: object) -> str:
    """Render a variable as a single ``-var`` argument.

    Strings are passed verbatim; other values are JSON encoded, which the CLI
    parses as an HCL expression.

    Examples
    --------
    >>> format_variable("region", "nyc3")
    '-var=region=nyc3'
    >>> format_variable("zones", ["a", "b"])
    '-var=zones=["a", "b"]'
    """
    if isinstance(value, str):
        rendered = value
    else:
        try:
            rendered = json.dumps(value)
        except (TypeError, ValueError) as exc:
            msg = f"variable {name!r} cannot be encoded: {exc}"
            raise ConfigurationError(msg) from exc
    return f"-var={name}={rendered}"


def scoped_args(request: InvocationRequest) -> list[str]:
    """Return the arguments shared by plan, apply and destroy."""
    args = ["-input=false", "-no-color"]
    if request.lock_timeout:
        args.append(f"-lock-timeout={request.lock_timeout}")
    args.extend(f"-var-file={path}" for path in request.var_files)
    args.extend(
        format_variable(name, value) for name, value in request.variables.items()
    )
    # An empty target list leaves the operation unrestricted.
    args.extend(f"-target={target}" for target in request.flags.targets)
    return args


def init_args(request: InvocationRequest) -> list[str]:
    """Return the ``init`` arguments for a request.

    Examples
    --------
    >>> from pathlib import Path
    >>> init_args(InvocationRequest(Path("infra"), Mode.VALIDATE))
    ['init', '-input=false', '-no-color', '-backend=false']
    """
    args = ["init", "-input=false", "-no-color"]
    if request.mode is Mode.VALIDATE:
        args.append("-backend=false")
        return args
    args.extend(f"-backend-config={path}" for path in request.backend_config_files)
    args.extend(f"-backend-config={item}" for item in request.backend_config)
    return args


def build_args(request: InvocationRequest) -> list[str]:
    """Assemble the main command for a request.

    ``new-workspace`` is driven entirely by :mod:`tf_actions._workspace`; for
    ``destroy-workspace`` this is the destroy step that precedes deletion.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tf_actions._models import InvocationFlags
    >>> build_args(InvocationRequest(
    ...     Path("infra"),
    ...     Mode.APPLY,
    ...     flags=InvocationFlags(auto_approve=True, targets=("acme_certificate.certificate",)),
    ... ))
    ['apply', '-input=false', '-no-color', '-target=acme_certificate.certificate', '-auto-approve']
    """
    match request.mode:
        case Mode.PLAN | Mode.CHECK:
            return ["plan", *scoped_args(request), "-detailed-exitcode"]
        case Mode.APPLY:
            return ["apply", *scoped_args(request), "-auto-approve"]
        case Mode.DESTROY | Mode.DESTROY_WORKSPACE:
            return ["destroy", *scoped_args(request), "-auto-approve"]
        case Mode.OUTPUT:
            return ["output", "-json"]
        case Mode.VALIDATE:
            return ["validate", "-no-color"]
        case Mode.FMT:
            return ["fmt", "-recursive", "-no-color"]
        case Mode.FMT_CHECK:
            return ["fmt", "-check", "-recursive", "-diff", "-no-color"]
        case Mode.VERSION:
            return ["version", "-json"]
    msg = f"{request.mode} has no single command"
    raise ConfigurationError(msg)
