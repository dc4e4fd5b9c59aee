"""Manage workspaces in a working directory.

Workspaces are external state owned by the CLI. These helpers never lock;
concurrent jobs targeting the same workspace must be serialised by the
caller, e.g. with a workflow ``concurrency`` group.
"""

from __future__ import annotations

import logging

from tf_actions._command import check_result, run_command
from tf_actions._errors import ConfigurationError
from tf_actions._models import DEFAULT_WORKSPACE, RunnerConfig, WorkspaceRef

logger = logging.getLogger(__name__)


def parse_workspace_list(stdout: str) -> list[str]:
    """Parse ``workspace list`` output into workspace names.

    Examples
    --------
    >>> parse_workspace_list("  default\\n* pr-42\\n\\n")
    ['default', 'pr-42']
    """
    names: list[str] = []
    for line in stdout.splitlines():
        name = line.strip().removeprefix("*").strip()
        if name:
            names.append(name)
    return names


def list_workspaces(ref: WorkspaceRef, config: RunnerConfig) -> list[str]:
    """Return the workspaces known in ``ref.working_directory``."""
    result = check_result(
        run_command(["workspace", "list"], ref.working_directory, config),
        "workspace list",
    )
    return parse_workspace_list(result.stdout)


def workspace_exists(ref: WorkspaceRef, config: RunnerConfig) -> bool:
    """Return whether ``ref.name`` already exists."""
    return ref.name in list_workspaces(ref, config)


def select_workspace(ref: WorkspaceRef, config: RunnerConfig) -> None:
    """Switch to an existing workspace."""
    check_result(
        run_command(["workspace", "select", ref.name], ref.working_directory, config),
        f"workspace select {ref.name}",
    )


def ensure_workspace(ref: WorkspaceRef, config: RunnerConfig) -> bool:
    """Select ``ref.name``, creating it first when it does not exist.

    The default workspace is left alone: it always exists, and the CLI
    refuses ``workspace select`` while ``TF_WORKSPACE`` overrides it.

    Returns
    -------
    bool
        ``True`` when the workspace was created.
    """
    if ref.is_default:
        return False

    result = run_command(
        ["workspace", "select", ref.name], ref.working_directory, config
    )
    if result.success:
        return False

    logger.info("Workspace %s not selectable, creating it", ref.name)
    # ``workspace new`` also selects the new workspace.
    check_result(
        run_command(["workspace", "new", ref.name], ref.working_directory, config),
        f"workspace new {ref.name}",
    )
    return True


def create_workspace(
    ref: WorkspaceRef,
    config: RunnerConfig,
    *,
    strict: bool = False,
) -> bool:
    """Create ``ref.name`` if it is absent.

    Parameters
    ----------
    ref
        Workspace to create.
    config
        Runner settings.
    strict
        Raise instead of succeeding when the workspace already exists.

    Returns
    -------
    bool
        ``True`` when the workspace was created.

    Raises
    ------
    ConfigurationError
        If ``strict`` is set and the workspace already exists.
    """
    if workspace_exists(ref, config):
        if strict:
            msg = f"workspace {ref.name} already exists"
            raise ConfigurationError(msg)
        logger.info("Workspace %s already exists", ref.name)
        select_workspace(ref, config)
        return False

    check_result(
        run_command(["workspace", "new", ref.name], ref.working_directory, config),
        f"workspace new {ref.name}",
    )
    logger.info("Created workspace %s", ref.name)
    return True


def delete_workspace(ref: WorkspaceRef, config: RunnerConfig) -> None:
    """Delete ``ref.name`` after switching back to the default workspace."""
    select_workspace(WorkspaceRef(ref.working_directory, DEFAULT_WORKSPACE), config)
    check_result(
        run_command(["workspace", "delete", ref.name], ref.working_directory, config),
        f"workspace delete {ref.name}",
    )
    logger.info("Deleted workspace %s", ref.name)
