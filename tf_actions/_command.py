"""Spawn the external infrastructure CLI.

:func:`run_command` is the only place that starts a process. It validates the
argument vector, merges the environment, and waits for the child to exit or
for the configured timeout to elapse, in which case the child is killed.
"""

from __future__ import annotations

import logging
import os
from collections import abc as cabc
from pathlib import Path

from plumbum import local
from plumbum.commands.processes import CommandNotFound, ProcessTimedOut

from tf_actions._errors import (
    CommandTimeoutError,
    ConfigurationError,
    ExecutionError,
)
from tf_actions._models import CommandResult, RunnerConfig

logger = logging.getLogger(__name__)

AUTOMATION_ENV = {"TF_IN_AUTOMATION": "true", "TF_INPUT": "false"}


def validate_command_args(args: cabc.Sequence[str]) -> None:
    """Validate CLI arguments for safe execution.

    Raises
    ------
    ConfigurationError
        If an argument is not a string or contains a control character.

    Examples
    --------
    >>> validate_command_args(["plan", "-input=false"])
    """
    for arg in args:
        if not isinstance(arg, str):
            msg = f"argument must be a string, got {type(arg).__name__}"
            raise ConfigurationError(msg)
        if any(char in arg for char in ("\x00", "\n", "\r")):
            msg = f"argument contains an invalid control character: {arg!r}"
            raise ConfigurationError(msg)


def build_env(config: RunnerConfig) -> dict[str, str]:
    """Construct the environment for CLI invocations."""
    return {**os.environ, **AUTOMATION_ENV, **config.env}


def run_command(
    args: cabc.Sequence[str],
    cwd: Path,
    config: RunnerConfig,
) -> CommandResult:
    """Execute the configured CLI and return its result.

    Parameters
    ----------
    args
        Command arguments (without the binary prefix).
    cwd
        Working directory for the command.
    config
        Runner settings supplying the binary, timeout and environment.

    Returns
    -------
    CommandResult
        Exit status and complete captured output. A non-zero exit status is
        reported, not raised.

    Raises
    ------
    ConfigurationError
        If the arguments are invalid or the binary cannot be found.
    CommandTimeoutError
        If the process outlives ``config.timeout``.

    Examples
    --------
    >>> from pathlib import Path
    >>> run_command(["version"], Path("."), RunnerConfig(binary="tofu")).success
    True
    """
    command = (config.binary, *args)
    validate_command_args(command)

    try:
        executable = local[config.binary]
    except CommandNotFound as exc:
        msg = f"{config.binary!r} was not found on PATH"
        raise ConfigurationError(msg) from exc

    logger.info("Running %s (cwd=%s)", " ".join(command), cwd)
    try:
        return_code, stdout, stderr = executable[list(args)].run(
            retcode=None,
            timeout=config.timeout,
            cwd=str(cwd),
            env=build_env(config),
        )
    except ProcessTimedOut as exc:
        msg = f"{' '.join(command)} timed out after {config.timeout}s"
        raise CommandTimeoutError(
            msg, timeout=config.timeout or 0, command=command
        ) from exc
    except FileNotFoundError as exc:
        msg = f"{config.binary!r} could not be executed: {exc}"
        raise ConfigurationError(msg) from exc

    return CommandResult(
        success=return_code == 0,
        stdout=stdout,
        stderr=stderr,
        return_code=return_code,
        command=command,
    )


def check_result(result: CommandResult, description: str) -> CommandResult:
    """Return ``result`` or raise when it reports a failure.

    Raises
    ------
    ExecutionError
        If the command exited with a non-zero status.
    """
    if result.success:
        return result
    raise execution_error(result, description)


def execution_error(result: CommandResult, description: str) -> ExecutionError:
    """Build the error reported for a failed command."""
    msg = (
        f"{description} failed "
        f"(exit status {result.return_code}): {result.stderr.strip()}"
    )
    return ExecutionError(
        msg,
        exit_code=result.return_code,
        stdout=result.stdout,
        stderr=result.stderr,
        command=result.command,
    )
