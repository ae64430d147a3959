"""Unit tests for the CLI module: docaugment.cli.commands.

Each test runs ``main()`` against an in-memory store with every provider
disabled through the environment, so nothing leaves the process.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from docaugment.cli.commands import _build_parser, main


@pytest.fixture(autouse=True)
def offline_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_PATH", ":memory:")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OLLAMA_BASE_URL", "")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setattr("docaugment.main.configure_logging", MagicMock())


@pytest.fixture()
def config_path(project_root: Path) -> str:
    return str(project_root / "config" / "config.yaml")


# ======================================================================
# Parser
# ======================================================================


class TestParser:
    def test_ingest_arguments(self) -> None:
        args = _build_parser().parse_args(["ingest", "paper.pdf", "--user", "3", "--title", "T"])
        assert args.command == "ingest"
        assert args.file == "paper.pdf"
        assert args.user == 3
        assert args.title == "T"
        assert args.kind is None

    def test_search_defaults(self) -> None:
        args = _build_parser().parse_args(["search", "protein folding"])
        assert args.user == 1
        assert args.limit is None
        assert args.json is False

    def test_global_json_flag(self) -> None:
        args = _build_parser().parse_args(["--json", "keywords", "4"])
        assert args.json is True
        assert args.document_id == 4
        assert args.user is None

    def test_document_id_must_be_int(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["embed", "abc"])

    def test_list_defaults(self) -> None:
        args = _build_parser().parse_args(["list"])
        assert (args.user, args.page, args.limit) == (1, 1, 10)

    def test_sessions_arguments(self) -> None:
        args = _build_parser().parse_args(["sessions", "--document", "7", "--stats"])
        assert args.document == 7
        assert args.stats is True

    def test_delete_session_arguments(self) -> None:
        args = _build_parser().parse_args(["delete-session", "3", "--user", "2"])
        assert args.command == "delete-session"
        assert (args.session_id, args.user) == (3, 2)


# ======================================================================
# main()
# ======================================================================


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_stats_json_on_empty_store(
        self, config_path: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--config", config_path, "--json", "stats"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload == {"total": 0, "by_status": {}, "total_size": 0}

    def test_ingest_json_without_providers(
        self, config_path: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        paper = tmp_path / "paper.txt"
        paper.write_text("Cells divide. Proteins fold.", encoding="utf-8")

        assert main(["--config", config_path, "--json", "ingest", str(paper), "--user", "2"]) == 0

        artifact = json.loads(capsys.readouterr().out)
        assert artifact["title"] == "paper"
        assert artifact["extracted_text"] == "Cells divide. Proteins fold."
        assert artifact["summary_status"] == "FAILED"
        assert artifact["status"] == "FAILED"
        assert artifact["summary"] is None

    def test_ingest_missing_file(
        self, config_path: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--config", config_path, "ingest", str(tmp_path / "nope.txt")]) == 1
        assert "file not found" in capsys.readouterr().err

    def test_pipeline_error_exits_one(
        self, config_path: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--config", config_path, "summarize", "99"]) == 1
        captured = capsys.readouterr()
        assert captured.err.startswith("Error:")
        assert captured.out == ""

    def test_search_without_embeddings(
        self, config_path: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--config", config_path, "search", "anything"]) == 0
        assert "No matching documents." in capsys.readouterr().out

    def test_sessions_empty(self, config_path: str, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--config", config_path, "sessions"]) == 0
        assert "No chat sessions." in capsys.readouterr().out

    def test_session_stats_json(
        self, config_path: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--config", config_path, "--json", "sessions", "--stats"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload == {"total": 0, "total_messages": 0, "average_messages_per_session": 0.0}

    def test_delete_missing_session(
        self, config_path: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--config", config_path, "delete-session", "5"]) == 1
        assert "Chat session 5 not found" in capsys.readouterr().err


class TestStoredDocuments:
    """Commands that read back what an earlier invocation stored."""

    @pytest.fixture(autouse=True)
    def sqlite_database(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.db"))

    def _ingest(self, config_path: str, path: Path, text: str, user: str = "1") -> None:
        path.write_text(text, encoding="utf-8")
        assert main(["--config", config_path, "ingest", str(path), "--user", user]) == 0

    def test_list_find_get_delete(
        self, config_path: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        self._ingest(config_path, tmp_path / "cells.txt", "Ribosomes build proteins.")
        self._ingest(config_path, tmp_path / "rivers.txt", "Rivers flow downhill.")
        self._ingest(config_path, tmp_path / "other.txt", "Ribosomes again.", user="2")
        capsys.readouterr()

        assert main(["--config", config_path, "--json", "list"]) == 0
        listed = json.loads(capsys.readouterr().out)
        assert [d["title"] for d in listed["data"]] == ["rivers", "cells"]
        assert listed["total"] == 2

        assert main(["--config", config_path, "find", "RIBOSOME"]) == 0
        found = capsys.readouterr().out
        assert "cells" in found
        assert "rivers" not in found
        assert "(1 documents)" in found

        cells_id = listed["data"][1]["id"]
        assert main(["--config", config_path, "get", str(cells_id)]) == 0
        shown = capsys.readouterr().out
        assert f"Document {cells_id}: cells" in shown
        assert "cells.txt (text/plain" in shown

        assert main(["--config", config_path, "delete", str(cells_id), "--user", "1"]) == 0
        assert f"Deleted document {cells_id}" in capsys.readouterr().out

        assert main(["--config", config_path, "get", str(cells_id)]) == 1
        assert "not found" in capsys.readouterr().err

    def test_delete_other_users_document(
        self, config_path: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        self._ingest(config_path, tmp_path / "cells.txt", "Ribosomes build proteins.")
        capsys.readouterr()

        assert main(["--config", config_path, "delete", "1", "--user", "2"]) == 1
        assert capsys.readouterr().err.startswith("Error:")
        assert main(["--config", config_path, "get", "1"]) == 0
