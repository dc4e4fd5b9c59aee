"""Unit tests for GitHub Actions helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from tf_actions._errors import ConfigurationError
from tf_actions._github import (
    append_github_output,
    format_output_value,
    mask_secret,
    parse_bool,
    parse_list,
    parse_variables,
)


def test_parse_bool_defaults() -> None:
    assert parse_bool(None) is False, "Default should be False when value is None"
    assert parse_bool("", default=True) is True, "Blank should use the default"


def test_parse_bool_truthy_and_falsey() -> None:
    assert parse_bool("true") is True, "true should parse to True"
    assert parse_bool("YES") is True, "YES should parse to True"
    assert parse_bool("1") is True, "1 should parse to True"
    assert parse_bool("false") is False, "false should parse to False"
    assert parse_bool("0") is False, "0 should parse to False"


def test_parse_list_accepts_commas_and_newlines() -> None:
    assert parse_list("a.b,\n c.d \n\n,e.f") == ("a.b", "c.d", "e.f")


def test_parse_variables_yaml_mapping() -> None:
    variables = parse_variables("region: nyc3\ntags:\n  team: infra\n")
    assert variables == {"region": "nyc3", "tags": {"team": "infra"}}


def test_parse_variables_accepts_json() -> None:
    assert parse_variables('{"replicas": 3}') == {"replicas": 3}


@pytest.mark.parametrize("value", ["- a\n- b\n", "just text", "key: [unclosed"])
def test_parse_variables_rejects_non_mappings(value: str) -> None:
    with pytest.raises(ConfigurationError, match="variables"):
        parse_variables(value)


def test_format_output_value_encodes_non_strings() -> None:
    assert format_output_value({"a": 1}) == '{"a": 1}'
    assert format_output_value(False) == "false"
    assert format_output_value("plain") == "plain"


def test_mask_secret_masks_each_line() -> None:
    masked: list[str] = []
    mask_secret("line1\nline2", masked.append)
    assert masked == ["::add-mask::line1", "::add-mask::line2"]


def test_append_github_output_supports_multiline(tmp_path: Path) -> None:
    output_file = tmp_path / "out"
    append_github_output(output_file, {"plan": "line1\nline2"})
    content = output_file.read_text(encoding="utf-8")
    assert content.startswith("plan<<"), "Expected heredoc header"
    assert "line1\nline2" in content, "Expected multiline content"


def test_append_github_output_single_line(tmp_path: Path) -> None:
    output_file = tmp_path / "out"
    append_github_output(output_file, {"changes": "true"})
    assert output_file.read_text(encoding="utf-8") == "changes=true\n"


def test_append_github_output_avoids_delimiter_collision(tmp_path: Path) -> None:
    output_file = tmp_path / "out"
    append_github_output(output_file, {"text": "EOF\nmore"})
    content = output_file.read_text(encoding="utf-8")
    assert content.startswith("text<<EOF_1\n"), "Delimiter must not occur in value"
