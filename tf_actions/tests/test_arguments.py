"""Unit tests for request validation and argument assembly."""

from __future__ import annotations

from pathlib import Path

import pytest

from tf_actions._arguments import (
    build_args,
    format_variable,
    init_args,
    scoped_args,
    validate_request,
    validate_workspace_name,
)
from tf_actions._errors import ConfigurationError
from tf_actions._models import InvocationFlags, InvocationRequest, Mode


@pytest.mark.parametrize("name", ["default", "pr-42", "prod_eu.1", "team@env"])
def test_validate_workspace_name_accepts(name: str) -> None:
    assert validate_workspace_name(name) == name


@pytest.mark.parametrize("name", ["", "feature/x", "has space", "semi;colon", "q?"])
def test_validate_workspace_name_rejects(name: str) -> None:
    with pytest.raises(ConfigurationError, match="workspace"):
        validate_workspace_name(name)


@pytest.mark.parametrize("name", ["-or-create=true", "-lock=false", "-"])
def test_validate_workspace_name_rejects_flag_shaped_names(name: str) -> None:
    with pytest.raises(ConfigurationError, match="must not start with '-'"):
        validate_workspace_name(name)


def test_flag_shaped_workspace_fails_request_validation(tmp_path: Path) -> None:
    request = InvocationRequest(tmp_path, Mode.PLAN, workspace="-lock=false")
    with pytest.raises(ConfigurationError, match="workspace"):
        validate_request(request)


def test_validate_request_requires_existing_directory(tmp_path: Path) -> None:
    request = InvocationRequest(tmp_path / "missing", Mode.PLAN)
    with pytest.raises(ConfigurationError, match="not a directory"):
        validate_request(request)


def test_validate_request_requires_existing_var_file(tmp_path: Path) -> None:
    request = InvocationRequest(
        tmp_path, Mode.PLAN, var_files=(tmp_path / "prod.tfvars",)
    )
    with pytest.raises(ConfigurationError, match="prod.tfvars"):
        validate_request(request)


def test_validate_request_rejects_bad_variable_name(tmp_path: Path) -> None:
    request = InvocationRequest(tmp_path, Mode.PLAN, variables={"1bad": "x"})
    with pytest.raises(ConfigurationError, match="variable name"):
        validate_request(request)


def test_validate_request_rejects_targets_for_destroy_workspace(tmp_path: Path) -> None:
    request = InvocationRequest(
        tmp_path,
        Mode.DESTROY_WORKSPACE,
        workspace="pr-42",
        flags=InvocationFlags(targets=("aws_s3_bucket.logs",)),
    )
    with pytest.raises(ConfigurationError, match="no targets"):
        validate_request(request)


def test_scoped_args_preserve_order(tmp_path: Path) -> None:
    first = tmp_path / "a.tfvars"
    second = tmp_path / "b.tfvars"
    request = InvocationRequest(
        tmp_path,
        Mode.PLAN,
        variables={"region": "nyc3", "replicas": 2, "zones": ["a", "b"]},
        var_files=(first, second),
        flags=InvocationFlags(targets=("module.b", "module.a")),
        lock_timeout="300s",
    )

    assert scoped_args(request) == [
        "-input=false",
        "-no-color",
        "-lock-timeout=300s",
        f"-var-file={first}",
        f"-var-file={second}",
        "-var=region=nyc3",
        "-var=replicas=2",
        '-var=zones=["a", "b"]',
        "-target=module.b",
        "-target=module.a",
    ]


def test_empty_targets_do_not_restrict(tmp_path: Path) -> None:
    args = build_args(InvocationRequest(tmp_path, Mode.PLAN))
    assert not any(arg.startswith("-target") for arg in args)


def test_build_args_is_deterministic(tmp_path: Path) -> None:
    request = InvocationRequest(
        tmp_path,
        Mode.APPLY,
        variables={"b": "2", "a": "1"},
        flags=InvocationFlags(auto_approve=True, targets=("x.y",)),
    )
    assert build_args(request) == build_args(request)


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (Mode.PLAN, ["plan", "-input=false", "-no-color", "-detailed-exitcode"]),
        (Mode.CHECK, ["plan", "-input=false", "-no-color", "-detailed-exitcode"]),
        (Mode.APPLY, ["apply", "-input=false", "-no-color", "-auto-approve"]),
        (Mode.DESTROY, ["destroy", "-input=false", "-no-color", "-auto-approve"]),
        (Mode.OUTPUT, ["output", "-json"]),
        (Mode.VALIDATE, ["validate", "-no-color"]),
        (Mode.FMT, ["fmt", "-recursive", "-no-color"]),
        (Mode.FMT_CHECK, ["fmt", "-check", "-recursive", "-diff", "-no-color"]),
        (Mode.VERSION, ["version", "-json"]),
    ],
)
def test_build_args_per_mode(tmp_path: Path, mode: Mode, expected: list[str]) -> None:
    request = InvocationRequest(
        tmp_path, mode, flags=InvocationFlags(auto_approve=True)
    )
    assert build_args(request) == expected


def test_build_args_rejects_new_workspace(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        build_args(InvocationRequest(tmp_path, Mode.NEW_WORKSPACE))


def test_init_args_forward_backend_config(tmp_path: Path) -> None:
    backend_file = tmp_path / "spaces.tfbackend"
    request = InvocationRequest(
        tmp_path,
        Mode.PLAN,
        backend_config=("key=pr-42.tfstate",),
        backend_config_files=(backend_file,),
    )

    assert init_args(request) == [
        "init",
        "-input=false",
        "-no-color",
        f"-backend-config={backend_file}",
        "-backend-config=key=pr-42.tfstate",
    ]


def test_format_variable_rejects_unencodable() -> None:
    with pytest.raises(ConfigurationError, match="cannot be encoded"):
        format_variable("handle", object())
