"""Run one action invocation against the external CLI.

The runner validates a request, initialises the working directory, selects
the requested workspace, runs the main command and translates its exit status
into an :class:`~tf_actions._models.ExecutionResult` or an error.

Concurrency
-----------
A single invocation spawns one process at a time and blocks until it exits or
``RunnerConfig.timeout`` elapses. The runner holds no locks: the workspace and
its state are external resources, and jobs targeting the same workspace must
be serialised by the caller (for example with a workflow ``concurrency``
group). Nothing is retried.

Examples
--------
>>> from pathlib import Path
>>> request = InvocationRequest(Path("infra"), Mode.PLAN, workspace="pr-42")
>>> run(request).changes_detected
False
"""

from __future__ import annotations

import logging

from tf_actions._arguments import build_args, init_args, validate_request
from tf_actions._command import (
    check_result,
    execution_error,
    run_command,
    validate_command_args,
)
from tf_actions._models import (
    CommandResult,
    ExecutionResult,
    InvocationRequest,
    Mode,
    PlanOutcome,
    RunnerConfig,
)
from tf_actions._outputs import parse_outputs, parse_version
from tf_actions._workspace import (
    create_workspace,
    delete_workspace,
    ensure_workspace,
    select_workspace,
    workspace_exists,
)

logger = logging.getLogger(__name__)


def classify_plan(result: CommandResult, config: RunnerConfig) -> PlanOutcome:
    """Map a ``plan -detailed-exitcode`` status to a plan outcome.

    Raises
    ------
    ExecutionError
        If the status is neither clean nor the configured changes code.

    Examples
    --------
    >>> classify_plan(CommandResult(False, "", "", 2), RunnerConfig())
    <PlanOutcome.CHANGES: 'changes'>
    """
    if result.return_code == 0:
        return PlanOutcome.CLEAN
    if result.return_code == config.changes_exit_code:
        return PlanOutcome.CHANGES
    raise execution_error(result, "plan")


def _initialise(request: InvocationRequest, config: RunnerConfig) -> None:
    check_result(
        run_command(init_args(request), request.working_directory, config),
        "init",
    )


def _destroy_workspace(
    request: InvocationRequest,
    config: RunnerConfig,
    destroy_args: list[str],
) -> ExecutionResult:
    ref = request.workspace_ref
    if not workspace_exists(ref, config):
        logger.info("Workspace %s does not exist, nothing to destroy", ref.name)
        return ExecutionResult(mode=request.mode, exit_code=0)

    select_workspace(ref, config)
    result = check_result(
        run_command(destroy_args, request.working_directory, config),
        f"destroy in workspace {ref.name}",
    )
    delete_workspace(ref, config)
    return ExecutionResult(
        mode=request.mode,
        exit_code=result.return_code,
        stdout=result.stdout,
        stderr=result.stderr,
    )


def run(
    request: InvocationRequest,
    config: RunnerConfig | None = None,
) -> ExecutionResult:
    """Execute a request and return its result.

    Parameters
    ----------
    request
        Validated-on-entry description of the invocation.
    config
        Runner settings; defaults to :class:`RunnerConfig` defaults.

    Returns
    -------
    ExecutionResult
        Result of the main command. For ``plan`` and ``check`` the
        ``plan_outcome`` distinguishes clean from pending changes.

    Raises
    ------
    ConfigurationError
        If the request is invalid. Raised before any process is spawned.
    ExecutionError
        If a command exits with an unrecognised status.
    ParseError
        If ``output`` or ``version`` JSON is malformed.
    CommandTimeoutError
        If a command outlives the configured timeout.
    """
    config = config or RunnerConfig()
    validate_request(request)

    main_args = [] if request.mode is Mode.NEW_WORKSPACE else build_args(request)
    validate_command_args([*init_args(request), *main_args])

    logger.info(
        "Running %s in %s (workspace %s)",
        request.mode,
        request.working_directory,
        request.workspace,
    )
    if config.init and request.mode.needs_init:
        _initialise(request, config)

    if request.mode is Mode.NEW_WORKSPACE:
        create_workspace(request.workspace_ref, config, strict=request.flags.strict)
        return ExecutionResult(mode=request.mode, exit_code=0)

    if request.mode is Mode.DESTROY_WORKSPACE:
        return _destroy_workspace(request, config, main_args)

    if request.mode.needs_workspace:
        ensure_workspace(request.workspace_ref, config)

    result = run_command(main_args, request.working_directory, config)

    if request.mode.is_plan:
        outcome = classify_plan(result, config)
        logger.info("Plan outcome: %s", outcome)
        return ExecutionResult(
            mode=request.mode,
            exit_code=result.return_code,
            stdout=result.stdout,
            stderr=result.stderr,
            plan_outcome=outcome,
        )

    check_result(result, str(request.mode))

    structured: dict[str, object] = {}
    sensitive: frozenset[str] = frozenset()
    if request.mode is Mode.OUTPUT:
        structured, sensitive = parse_outputs(result.stdout)
    elif request.mode is Mode.VERSION:
        structured = parse_version(result.stdout)

    return ExecutionResult(
        mode=request.mode,
        exit_code=result.return_code,
        stdout=result.stdout,
        stderr=result.stderr,
        structured_outputs=structured,
        sensitive_outputs=sensitive,
    )
