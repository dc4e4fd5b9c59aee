"""Exception hierarchy for the action runner.

Every failure surfaced by the runner derives from :class:`ActionError` so the
CLI entrypoint can catch a single base error and map it to a failed step.

Examples
--------
>>> raise ConfigurationError("workspace name must not be blank")
"""

from __future__ import annotations

from collections import abc as cabc


class ActionError(Exception):
    """Base error for action runner failures.

    Parameters
    ----------
    message
        Human-readable error message describing the failure.
    """


class ConfigurationError(ActionError):
    """Raised when action inputs are invalid.

    Always raised before a process is spawned for the offending request, so
    it is never worth retrying.

    Examples
    --------
    >>> raise ConfigurationError("auto_approve must be true for apply")
    """


class ExecutionError(ActionError):
    """Raised when the external CLI exits with an unrecognised status.

    Parameters
    ----------
    message
        Human-readable error message.
    exit_code
        Process exit status.
    stdout
        Captured standard output.
    stderr
        Captured standard error.
    command
        Argument vector that was executed.

    Examples
    --------
    >>> err = ExecutionError("terraform apply failed", exit_code=1, stderr="boom")
    >>> err.exit_code
    1
    """

    def __init__(
        self,
        message: str,
        *,
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
        command: cabc.Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.command = tuple(command)


class ParseError(ActionError):
    """Raised when machine-readable CLI output is malformed.

    Examples
    --------
    >>> ParseError("output is not JSON", stdout="oops").stdout
    'oops'
    """

    def __init__(self, message: str, *, stdout: str = "") -> None:
        super().__init__(message)
        self.stdout = stdout


class CommandTimeoutError(ActionError, TimeoutError):
    """Raised when the external CLI exceeds its allotted time.

    The child process has already been killed when this is raised. Output
    produced before the kill is not recoverable, so ``stdout`` and ``stderr``
    are usually empty. They mirror :class:`ExecutionError` so callers can
    report either error the same way.

    Examples
    --------
    >>> CommandTimeoutError("plan timed out", timeout=5.0).stderr
    ''
    """

    def __init__(
        self,
        message: str,
        *,
        timeout: float,
        stdout: str = "",
        stderr: str = "",
        command: cabc.Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.timeout = timeout
        self.stdout = stdout
        self.stderr = stderr
        self.command = tuple(command)
