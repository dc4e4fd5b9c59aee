"""Run Terraform/OpenTofu commands as GitHub Actions steps."""

from __future__ import annotations

from tf_actions._errors import (
    ActionError,
    CommandTimeoutError,
    ConfigurationError,
    ExecutionError,
    ParseError,
)
from tf_actions._models import (
    ExecutionResult,
    InvocationFlags,
    InvocationRequest,
    Mode,
    PlanOutcome,
    RunnerConfig,
    WorkspaceRef,
)
from tf_actions._runner import run

__all__ = [
    "ActionError",
    "CommandTimeoutError",
    "ConfigurationError",
    "ExecutionError",
    "ExecutionResult",
    "InvocationFlags",
    "InvocationRequest",
    "Mode",
    "ParseError",
    "PlanOutcome",
    "RunnerConfig",
    "WorkspaceRef",
    "run",
]
