from __future__ import annotations

import stat
from dataclasses import dataclass
from pathlib import Path

import pytest

from tf_actions._models import RunnerConfig

_FAKE_CLI = """#!/bin/sh
LOG='{log}'
RESPONSES='{responses}'
WS='{workspaces}'
touch "$WS"
for arg in "$@"; do printf '%s\\t' "$arg"; done >> "$LOG"
printf '\\n' >> "$LOG"

case "$1 $2" in
  "workspace list")
    echo "  default"
    sed 's/^/  /' "$WS"
    exit 0
    ;;
  "workspace new")
    if grep -qxF "$3" "$WS"; then
      echo "Workspace \\"$3\\" already exists" >&2
      exit 1
    fi
    echo "$3" >> "$WS"
    echo "Created and switched to workspace \\"$3\\"!"
    exit 0
    ;;
  "workspace select")
    if [ "$3" = default ] || grep -qxF "$3" "$WS"; then
      exit 0
    fi
    echo "Workspace \\"$3\\" doesn't exist." >&2
    exit 1
    ;;
  "workspace delete")
    grep -vxF "$3" "$WS" > "$WS.tmp"
    mv "$WS.tmp" "$WS"
    echo "Deleted workspace \\"$3\\"!"
    exit 0
    ;;
esac

base="$RESPONSES/$1"
if [ -f "$base.sleep" ]; then
  exec sleep "$(cat "$base.sleep")"
fi
[ -f "$base.out" ] && cat "$base.out"
[ -f "$base.err" ] && cat "$base.err" >&2
[ -f "$base.code" ] && exit "$(cat "$base.code")"
exit 0
"""


@dataclass(slots=True)
class FakeCli:
    """A stand-in for the terraform binary that records its arguments."""

    path: Path
    log: Path
    responses: Path
    workspaces: Path

    def respond(
        self,
        subcommand: str,
        *,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        sleep: float | None = None,
    ) -> None:
        base = self.responses / subcommand
        base.with_suffix(".out").write_text(stdout, encoding="utf-8")
        base.with_suffix(".err").write_text(stderr, encoding="utf-8")
        base.with_suffix(".code").write_text(str(exit_code), encoding="utf-8")
        if sleep is not None:
            base.with_suffix(".sleep").write_text(str(sleep), encoding="utf-8")

    def add_workspace(self, name: str) -> None:
        with self.workspaces.open("a", encoding="utf-8") as handle:
            handle.write(f"{name}\n")

    def calls(self) -> list[tuple[str, ...]]:
        if not self.log.exists():
            return []
        return [
            tuple(line.rstrip("\t").split("\t"))
            for line in self.log.read_text(encoding="utf-8").splitlines()
        ]

    def subcommands(self) -> list[str]:
        return [
            " ".join(call[:2]) if call[0] == "workspace" else call[0]
            for call in self.calls()
        ]

    def config(self, **overrides: object) -> RunnerConfig:
        return RunnerConfig(binary=str(self.path), **overrides)


@pytest.fixture
def fake_cli(tmp_path: Path) -> FakeCli:
    root = tmp_path / "fake-cli"
    responses = root / "responses"
    responses.mkdir(parents=True)
    cli = FakeCli(
        path=root / "terraform",
        log=root / "calls.log",
        responses=responses,
        workspaces=root / "workspaces",
    )
    cli.path.write_text(
        _FAKE_CLI.format(
            log=cli.log, responses=cli.responses, workspaces=cli.workspaces
        ),
        encoding="utf-8",
    )
    cli.path.chmod(cli.path.stat().st_mode | stat.S_IXUSR)
    return cli


@pytest.fixture
def module_dir(tmp_path: Path) -> Path:
    path = tmp_path / "infra"
    path.mkdir()
    (path / "main.tf").write_text('output "url" {\n  value = "x"\n}\n', encoding="utf-8")
    return path
