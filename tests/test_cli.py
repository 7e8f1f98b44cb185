"""CLI parser and entrypoint behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from docmeta.cli import _build_parser, _parse_file_list, main

ENV_KEYS = (
    "GITHUB_TOKEN",
    "GITHUB_OWNER",
    "GITHUB_REPO",
    "DOCMETA_LLM_ENDPOINT",
    "AZURE_OPENAI_ENDPOINT",
    "DOCMETA_LLM_API_KEY",
    "AZURE_OPENAI_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "generate"])
    assert args.verbose is True
    assert args.command == "generate"


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["create-pr", "--verbose"])
    assert args.verbose is True
    assert args.command == "create-pr"


def test_cli_parses_changed_files() -> None:
    args = _build_parser().parse_args(
        ["fetch-changed", "--files", '["src/pages/a.md", "src/pages/b.md"]']
    )
    assert args.files == ["src/pages/a.md", "src/pages/b.md"]
    assert args.config == "."


def test_deploy_defaults_to_empty_lists() -> None:
    args = _build_parser().parse_args(["deploy", "--operation", "preview", "--env", "stage"])
    assert args.changes == []
    assert args.deletions == []
    assert args.branch is None


def test_file_list_accepts_separated_values() -> None:
    assert _parse_file_list("a.md, b.md\nc.md") == ["a.md", "b.md", "c.md"]
    assert _parse_file_list("  ") == []


def test_invalid_json_file_list_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        _build_parser().parse_args(["fetch-changed", "--files", "[not json"])
    assert excinfo.value.code == 2


def test_empty_batch_exits_cleanly(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "ai_content.txt").write_text("", encoding="utf-8")

    main(["create-pr", "--config", str(tmp_path)])

    assert "No generated metadata; skipping pull request" in capsys.readouterr().out


def test_empty_generate_input_exits_cleanly(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "pages_content.txt").write_text("No matching files found", encoding="utf-8")

    main(["generate", "--config", str(tmp_path)])

    assert "nothing generated" in capsys.readouterr().out
    assert (tmp_path / "ai_content.txt").read_text(encoding="utf-8") == ""


def test_missing_credentials_exit_with_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "ai_content.txt").write_text("--- File: a.md ---\ntitle: A\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["create-pr", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "github.owner" in capsys.readouterr().err


def test_unparseable_config_exits_with_error(tmp_path: Path) -> None:
    (tmp_path / ".docmeta.yml").write_text("github: [", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", "--config", str(tmp_path)])

    assert excinfo.value.code == 1


def test_log_file_option_is_shared(tmp_path: Path) -> None:
    args = _build_parser().parse_args(["generate", "--log-file", str(tmp_path / "run.log")])
    assert args.log_file == str(tmp_path / "run.log")
    assert _build_parser().parse_args(["generate"]).log_file is None


def test_summarize_parses_changes_and_branch() -> None:
    args = _build_parser().parse_args(
        ["summarize", "--env", "stage", "--changes", "src/pages/a.md", "--branch", "feature"]
    )
    assert args.command == "summarize"
    assert args.changes == ["src/pages/a.md"]
    assert args.branch == "feature"
    assert args.output is None


def test_summarize_without_markdown_pages_exits_cleanly(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / ".docmeta.yml").write_text(
        "edge:\n  org: acme\n  environments:\n    stage:\n      site: docs\n      code_branch: stage\n",
        encoding="utf-8",
    )

    main(["summarize", "--config", str(tmp_path), "--env", "stage", "--changes", "a.json"])

    assert "Wrote 0 summaries" in capsys.readouterr().out
    assert (tmp_path / "summaries.txt").read_text(encoding="utf-8") == ""
