#!/usr/bin/env -S uv run python
# /// script
# requires-python = ">=3.13"
# dependencies = ["cyclopts>=2.9", "plumbum", "pyyaml"]
# ///
"""Run a Terraform/OpenTofu action step.

This script:
- resolves action inputs from CLI flags or ``INPUT_*`` environment variables;
- runs the requested command in the requested workspace; and
- publishes ``changes``, ``exit-code``, ``failure-reason`` and any structured
  outputs to ``$GITHUB_OUTPUT``.

Examples
--------
>>> python -m tf_actions.run_action --command plan --path infra --workspace pr-42
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter

from tf_actions._errors import (
    ActionError,
    CommandTimeoutError,
    ConfigurationError,
    ExecutionError,
)
from tf_actions._github import (
    append_github_output,
    format_output_value,
    mask_secret,
    parse_bool,
    parse_list,
    parse_variables,
)
from tf_actions._input_resolution import InputResolution, resolve_input
from tf_actions._models import (
    DEFAULT_WORKSPACE,
    ExecutionResult,
    InvocationFlags,
    InvocationRequest,
    Mode,
    RunnerConfig,
)
from tf_actions._runner import run

app = App(help="Run a Terraform/OpenTofu action step.")
logger = logging.getLogger(__name__)

FAILURE_REASONS: dict[Mode, str] = {
    Mode.PLAN: "plan-failed",
    Mode.CHECK: "plan-failed",
    Mode.APPLY: "apply-failed",
    Mode.DESTROY: "destroy-failed",
    Mode.DESTROY_WORKSPACE: "destroy-failed",
    Mode.VALIDATE: "validate-failed",
    Mode.FMT_CHECK: "check-failed",
}
RESERVED_OUTPUTS = frozenset({"exit-code", "changes", "failure-reason"})


@dataclass(frozen=True, slots=True)
class ActionInputs:
    """Normalised inputs for one action step."""

    mode: Mode
    path: Path
    workspace: str
    variables: dict[str, object]
    var_files: tuple[Path, ...]
    targets: tuple[str, ...]
    auto_approve: bool
    strict: bool
    backend_config: tuple[str, ...]
    backend_config_files: tuple[Path, ...]
    lock_timeout: str | None
    timeout: float | None
    binary: str


@dataclass(frozen=True, slots=True)
class RawActionInputs:
    """Raw action inputs from CLI or defaults."""

    command: str | None = None
    path: str | None = None
    workspace: str | None = None
    variables: str | None = None
    var_file: str | None = None
    target: str | None = None
    auto_approve: str | None = None
    strict: str | None = None
    backend_config: str | None = None
    backend_config_file: str | None = None
    lock_timeout: str | None = None
    timeout: str | None = None
    binary: str | None = None


def _resolved(value: str | None, resolution: InputResolution) -> str | None:
    resolved = resolve_input(value, resolution)
    return str(resolved) if resolved is not None else None


def _parse_mode(value: str) -> Mode:
    try:
        return Mode(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(mode.value for mode in Mode)
        msg = f"unknown command {value!r}; expected one of: {choices}"
        raise ConfigurationError(msg) from exc


def _parse_timeout(value: str | None) -> float | None:
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError as exc:
        msg = f"timeout must be a number of seconds, got {value!r}"
        raise ConfigurationError(msg) from exc
    if timeout <= 0:
        msg = "timeout must be positive"
        raise ConfigurationError(msg)
    return timeout


def resolve_action_inputs(raw: RawActionInputs) -> ActionInputs:
    """Resolve action inputs from CLI values and ``INPUT_*`` variables.

    Parameters
    ----------
    raw : RawActionInputs
        Raw inputs sourced from CLI arguments.

    Returns
    -------
    ActionInputs
        Normalised inputs ready to build a request.

    Raises
    ------
    ConfigurationError
        If a required input is missing or malformed.

    Examples
    --------
    >>> resolve_action_inputs(RawActionInputs(command="plan", path="infra")).mode
    <Mode.PLAN: 'plan'>
    """
    command = _resolved(
        raw.command, InputResolution(env_key="INPUT_COMMAND", required=True)
    )
    path = _resolved(raw.path, InputResolution(env_key="INPUT_PATH", required=True))
    workspace = _resolved(
        raw.workspace,
        InputResolution(env_key="INPUT_WORKSPACE", default=DEFAULT_WORKSPACE),
    )
    variables = _resolved(raw.variables, InputResolution(env_key="INPUT_VARIABLES"))
    var_file = _resolved(raw.var_file, InputResolution(env_key="INPUT_VAR_FILE"))
    target = _resolved(raw.target, InputResolution(env_key="INPUT_TARGET"))
    auto_approve = _resolved(
        raw.auto_approve, InputResolution(env_key="INPUT_AUTO_APPROVE")
    )
    strict = _resolved(raw.strict, InputResolution(env_key="INPUT_STRICT"))
    backend_config = _resolved(
        raw.backend_config, InputResolution(env_key="INPUT_BACKEND_CONFIG")
    )
    backend_config_file = _resolved(
        raw.backend_config_file, InputResolution(env_key="INPUT_BACKEND_CONFIG_FILE")
    )
    lock_timeout = _resolved(
        raw.lock_timeout, InputResolution(env_key="INPUT_LOCK_TIMEOUT")
    )
    timeout = _resolved(raw.timeout, InputResolution(env_key="INPUT_TIMEOUT"))
    binary = _resolved(
        raw.binary, InputResolution(env_key="INPUT_BINARY", default="terraform")
    )

    return ActionInputs(
        mode=_parse_mode(str(command)),
        path=Path(str(path)),
        workspace=str(workspace).strip(),
        variables=parse_variables(variables),
        var_files=tuple(Path(item) for item in parse_list(var_file)),
        targets=parse_list(target),
        auto_approve=parse_bool(auto_approve),
        strict=parse_bool(strict),
        backend_config=parse_list(backend_config),
        backend_config_files=tuple(
            Path(item) for item in parse_list(backend_config_file)
        ),
        lock_timeout=lock_timeout or None,
        timeout=_parse_timeout(timeout),
        binary=str(binary),
    )


def build_request(inputs: ActionInputs) -> InvocationRequest:
    """Build the runner request for resolved inputs."""
    return InvocationRequest(
        working_directory=inputs.path,
        mode=inputs.mode,
        workspace=inputs.workspace,
        variables=inputs.variables,
        var_files=inputs.var_files,
        flags=InvocationFlags(
            auto_approve=inputs.auto_approve,
            targets=inputs.targets,
            strict=inputs.strict,
        ),
        backend_config=inputs.backend_config,
        backend_config_files=inputs.backend_config_files,
        lock_timeout=inputs.lock_timeout,
    )


def build_config(inputs: ActionInputs) -> RunnerConfig:
    """Build runner settings for resolved inputs."""
    return RunnerConfig(binary=inputs.binary, timeout=inputs.timeout)


def result_outputs(result: ExecutionResult) -> dict[str, str]:
    """Return the step outputs for a completed invocation.

    Sensitive structured outputs are masked before they are returned.
    Structured outputs named like one of :data:`RESERVED_OUTPUTS` are
    skipped with a warning.

    Examples
    --------
    >>> result_outputs(ExecutionResult(Mode.FMT, 0))
    {'exit-code': '0'}
    """
    outputs: dict[str, str] = {}
    for name, value in result.structured_outputs.items():
        rendered = format_output_value(value)
        if name in result.sensitive_outputs:
            mask_secret(rendered)
        if name in RESERVED_OUTPUTS:
            logger.warning("Output %s clashes with a step output; skipped", name)
            continue
        outputs[name] = rendered
    outputs["exit-code"] = str(result.exit_code)
    if result.mode.is_plan:
        outputs["changes"] = format_output_value(result.changes_detected)
    if not result.succeeded:
        outputs["failure-reason"] = "changes-to-apply"
    return outputs


def failure_outputs(mode: Mode | None, exc: ActionError) -> dict[str, str]:
    """Return the step outputs for a failed invocation.

    Examples
    --------
    >>> failure_outputs(Mode.APPLY, ExecutionError("boom", exit_code=1))
    {'failure-reason': 'apply-failed', 'exit-code': '1'}
    """
    match exc:
        case ConfigurationError():
            return {"failure-reason": "invalid-input"}
        case CommandTimeoutError():
            return {"failure-reason": "timeout"}
        case ExecutionError():
            reason = FAILURE_REASONS.get(mode, "error") if mode else "error"
            return {"failure-reason": reason, "exit-code": str(exc.exit_code)}
    return {"failure-reason": "error"}


def _print_result(result: ExecutionResult) -> None:
    if result.mode is Mode.OUTPUT:
        # Raw ``output -json`` carries sensitive values in clear text.
        for name, value in result.structured_outputs.items():
            shown = (
                "<sensitive>"
                if name in result.sensitive_outputs
                else format_output_value(value)
            )
            print(f"{name} = {shown}")
    elif result.stdout:
        print(result.stdout)
    if result.stderr:
        print(result.stderr, file=sys.stderr)
    if result.plan_outcome is not None:
        print(f"Plan outcome: {result.plan_outcome}")


def _publish(github_output: Path | None, outputs: dict[str, str]) -> None:
    if github_output is None:
        logger.warning("GITHUB_OUTPUT is not set; outputs not published")
        return
    append_github_output(github_output, outputs)
    print(f"Published {len(outputs)} outputs to GITHUB_OUTPUT")


@app.default
def main(
    command: Annotated[str | None, Parameter(help="Command to run.")] = None,
    path: Annotated[str | None, Parameter(help="Root module directory.")] = None,
    workspace: Annotated[str | None, Parameter(help="Workspace name.")] = None,
    variables: Annotated[
        str | None, Parameter(help="YAML mapping of variable values.")
    ] = None,
    var_file: Annotated[
        str | None, Parameter(help="Comma or newline separated tfvars files.")
    ] = None,
    target: Annotated[
        str | None, Parameter(help="Comma or newline separated resource addresses.")
    ] = None,
    auto_approve: Annotated[
        str | None, Parameter(help="Apply or destroy without confirmation.")
    ] = None,
    strict: Annotated[
        str | None, Parameter(help="Fail new-workspace if it already exists.")
    ] = None,
    backend_config: Annotated[
        str | None, Parameter(help="Comma or newline separated key=value settings.")
    ] = None,
    backend_config_file: Annotated[
        str | None, Parameter(help="Comma or newline separated backend files.")
    ] = None,
    lock_timeout: Annotated[
        str | None, Parameter(help="Duration to wait for a state lock.")
    ] = None,
    timeout: Annotated[
        str | None, Parameter(help="Seconds before the command is killed.")
    ] = None,
    binary: Annotated[
        str | None, Parameter(help="CLI executable (terraform or tofu).")
    ] = None,
    github_output: Annotated[
        Path | None, Parameter(help="GITHUB_OUTPUT path override.")
    ] = None,
) -> int:
    """Run one action step and publish its outputs.

    Returns
    -------
    int
        ``0`` when the step succeeded, ``1`` otherwise.
    """
    output_raw = resolve_input(
        github_output, InputResolution(env_key="GITHUB_OUTPUT", as_path=True)
    )
    output_path = Path(output_raw) if output_raw is not None else None

    raw_inputs = RawActionInputs(
        command=command,
        path=path,
        workspace=workspace,
        variables=variables,
        var_file=var_file,
        target=target,
        auto_approve=auto_approve,
        strict=strict,
        backend_config=backend_config,
        backend_config_file=backend_config_file,
        lock_timeout=lock_timeout,
        timeout=timeout,
        binary=binary,
    )

    mode: Mode | None = None
    try:
        inputs = resolve_action_inputs(raw_inputs)
        mode = inputs.mode
        print(f"--- Running {inputs.binary} {mode} in {inputs.path} ---")
        result = run(build_request(inputs), build_config(inputs))
    except ActionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        if isinstance(exc, ExecutionError | CommandTimeoutError):
            if exc.stdout:
                print(exc.stdout)
            if exc.stderr:
                print(exc.stderr, file=sys.stderr)
        _publish(output_path, failure_outputs(mode, exc))
        return 1

    # Masks are registered while building outputs, before anything is echoed.
    outputs = result_outputs(result)
    _print_result(result)
    _publish(output_path, outputs)

    if not result.succeeded:
        print("error: changes are pending", file=sys.stderr)
        return 1
    return 0


def cli() -> int:
    """Console entrypoint."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return app()


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(cli())
