"""Data models for the action runner.

These models provide a small, typed contract between the CLI entrypoint, the
argument builder and the runner, keeping data flow explicit across module
boundaries. Requests are immutable once constructed.

Examples
--------
>>> from pathlib import Path
>>> request = InvocationRequest(working_directory=Path("infra"), mode=Mode.PLAN)
>>> request.workspace
'default'
>>> request.flags.targets
()
"""

from __future__ import annotations

import enum
from collections import abc as cabc
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

DEFAULT_WORKSPACE = "default"


class Mode(enum.StrEnum):
    """Operation performed by a single action invocation."""

    PLAN = "plan"
    APPLY = "apply"
    DESTROY = "destroy"
    OUTPUT = "output"
    VALIDATE = "validate"
    FMT = "fmt"
    FMT_CHECK = "fmt-check"
    NEW_WORKSPACE = "new-workspace"
    DESTROY_WORKSPACE = "destroy-workspace"
    VERSION = "version"
    CHECK = "check"

    @property
    def needs_init(self) -> bool:
        """Whether the working directory must be initialised first."""
        return self not in (Mode.FMT, Mode.FMT_CHECK, Mode.VERSION)

    @property
    def needs_workspace(self) -> bool:
        """Whether the requested workspace must be selected first."""
        return self in (Mode.PLAN, Mode.APPLY, Mode.DESTROY, Mode.OUTPUT, Mode.CHECK)

    @property
    def requires_approval(self) -> bool:
        """Whether the operation changes infrastructure unattended."""
        return self in (Mode.APPLY, Mode.DESTROY)

    @property
    def is_plan(self) -> bool:
        """Whether the operation computes a plan with a detailed exit code."""
        return self in (Mode.PLAN, Mode.CHECK)


class PlanOutcome(enum.StrEnum):
    """Non-error outcomes of a plan computation."""

    CLEAN = "clean"
    CHANGES = "changes"


@dataclass(frozen=True, slots=True)
class WorkspaceRef:
    """Reference to the external state a request operates on.

    The state itself is owned by the external CLI. Jobs sharing a reference
    must be serialised by the caller.

    Attributes
    ----------
    working_directory
        Directory holding the root module.
    name
        Workspace name within that directory.
    """

    working_directory: Path
    name: str = DEFAULT_WORKSPACE

    @property
    def is_default(self) -> bool:
        """Whether this refers to the built-in ``default`` workspace."""
        return self.name == DEFAULT_WORKSPACE


@dataclass(frozen=True, slots=True)
class InvocationFlags:
    """Behavioural flags for an invocation.

    Attributes
    ----------
    auto_approve
        Suppress interactive confirmation for ``apply`` and ``destroy``.
    targets
        Resource addresses restricting the operation, in order. Empty means
        every resource.
    strict
        Fail ``new-workspace`` when the workspace already exists.
    """

    auto_approve: bool = False
    targets: tuple[str, ...] = ()
    strict: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "targets", tuple(self.targets))


@dataclass(frozen=True, slots=True)
class InvocationRequest:
    """Declarative description of one action invocation.

    Attributes
    ----------
    working_directory
        Directory holding the root module.
    mode
        Operation to perform.
    workspace
        Workspace to operate on.
    variables
        Input variables, passed in mapping order.
    var_files
        Variable definition files, passed in order.
    flags
        Approval, targeting and strictness flags.
    backend_config
        ``key=value`` backend settings forwarded to ``init``.
    backend_config_files
        Backend configuration files forwarded to ``init``.
    lock_timeout
        Duration to wait for a state lock (e.g. ``"300s"``).

    Examples
    --------
    >>> request = InvocationRequest(
    ...     working_directory=Path("infra"),
    ...     mode=Mode.APPLY,
    ...     workspace="pr-42",
    ...     flags=InvocationFlags(auto_approve=True, targets=["acme_certificate.certificate"]),
    ... )
    >>> request.workspace_ref.name
    'pr-42'
    """

    working_directory: Path
    mode: Mode
    workspace: str = DEFAULT_WORKSPACE
    variables: cabc.Mapping[str, object] = field(default_factory=dict)
    var_files: tuple[Path, ...] = ()
    flags: InvocationFlags = field(default_factory=InvocationFlags)
    backend_config: tuple[str, ...] = ()
    backend_config_files: tuple[Path, ...] = ()
    lock_timeout: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", Mode(self.mode))
        object.__setattr__(
            self, "variables", MappingProxyType(dict(self.variables))
        )
        object.__setattr__(self, "var_files", tuple(self.var_files))
        object.__setattr__(self, "backend_config", tuple(self.backend_config))
        object.__setattr__(
            self, "backend_config_files", tuple(self.backend_config_files)
        )

    @property
    def workspace_ref(self) -> WorkspaceRef:
        """Return the external state reference for this request."""
        return WorkspaceRef(self.working_directory, self.workspace)


@dataclass(frozen=True, slots=True)
class RunnerConfig:
    """Execution settings shared by every invocation of a runner.

    Attributes
    ----------
    binary
        Executable name or path (``terraform`` or ``tofu``).
    timeout
        Seconds to wait for each spawned process, or ``None`` for no limit.
    changes_exit_code
        Exit code that ``plan -detailed-exitcode`` uses for pending changes.
    init
        Whether to run ``init`` before modes that need it.
    env
        Extra environment merged over ``os.environ`` for every command.
    """

    binary: str = "terraform"
    timeout: float | None = None
    changes_exit_code: int = 2
    init: bool = True
    env: cabc.Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a single external command.

    Attributes
    ----------
    success
        Whether the command exited with status code ``0``.
    stdout
        Captured standard output.
    stderr
        Captured standard error.
    return_code
        Process exit status.
    command
        Argument vector that was executed.

    Examples
    --------
    >>> CommandResult(True, "ok", "", 0, ("terraform", "version")).success
    True
    """

    success: bool
    stdout: str
    stderr: str
    return_code: int
    command: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of one action invocation.

    Attributes
    ----------
    mode
        Operation that produced the result.
    exit_code
        Exit status of the main command.
    stdout
        Captured standard output of the main command.
    stderr
        Captured standard error of the main command.
    structured_outputs
        Named values parsed from ``output`` or ``version`` modes.
    sensitive_outputs
        Names of outputs the CLI marked as sensitive.
    plan_outcome
        Plan outcome for ``plan`` and ``check`` modes.
    """

    mode: Mode
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    structured_outputs: cabc.Mapping[str, object] = field(default_factory=dict)
    sensitive_outputs: frozenset[str] = frozenset()
    plan_outcome: PlanOutcome | None = None

    @property
    def changes_detected(self) -> bool:
        """Whether a plan reported pending changes."""
        return self.plan_outcome is PlanOutcome.CHANGES

    @property
    def succeeded(self) -> bool:
        """CI-visible pass/fail for the step.

        ``check`` fails when changes are pending; ``plan`` treats pending
        changes as success.
        """
        if self.mode is Mode.CHECK:
            return self.plan_outcome is PlanOutcome.CLEAN
        return True
