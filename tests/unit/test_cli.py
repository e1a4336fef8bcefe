"""Tests for the standalone CLI (src/cli/ingest.py)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

import src.main
from src.cli.ingest import _build_parser, main
from src.services.qa_service import QAService


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory with a throwaway database and upload dir."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("EMBEDDING_BACKEND", "hash")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    return tmp_path


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestParser:
    def test_ingest_defaults(self) -> None:
        args = _build_parser().parse_args(["ingest", "--file", "notes.pdf"])

        assert args.command == "ingest"
        assert args.category == "handout"
        assert args.course is None

    def test_rejects_unknown_category(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["ingest", "--file", "a.pdf", "--category", "essay"])

    def test_global_db_option(self) -> None:
        args = _build_parser().parse_args(["--db", "/tmp/x.db", "list"])

        assert args.db == "/tmp/x.db"

    def test_ask_defaults_to_exam_mode(self) -> None:
        args = _build_parser().parse_args(["ask", "what is recursion"])

        assert args.mode == "exam"
        assert args.top_k is None

    def test_ask_rejects_unknown_mode(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["ask", "q", "--mode", "poem"])


class TestChunkCommand:
    def test_prints_chunks(
        self, cli_env: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = cli_env / "lecture.txt"
        source.write_text("First paragraph.\n\nSecond paragraph.", encoding="utf-8")

        code = _run(["chunk", "--file", str(source), "--size", "20", "--overlap", "0"])

        out = capsys.readouterr().out
        assert code == 0
        assert "2 chunks (size=20, overlap=0)" in out
        assert "Second paragraph." in out

    def test_missing_file(self, cli_env: Path) -> None:
        assert _run(["chunk", "--file", str(cli_env / "absent.txt")]) == 1

    def test_invalid_size(self, cli_env: Path) -> None:
        source = cli_env / "lecture.txt"
        source.write_text("text", encoding="utf-8")

        assert _run(["chunk", "--file", str(source), "--size", "0"]) == 1


class TestStoreCommands:
    def test_ingest_list_query_delete(
        self,
        cli_env: Path,
        pdf_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert _run(["ingest", "--file", str(pdf_file), "--course", "CSC201"]) == 0
        out = capsys.readouterr().out
        assert "Status:          done" in out
        assert "Confidence:      medium" in out
        document_id = out.rsplit("Document ID:", 1)[1].split()[0]
        assert len(list((cli_env / "uploads").iterdir())) == 1

        assert _run(["list", "--course", "CSC201"]) == 0
        assert document_id in capsys.readouterr().out

        assert _run(["query", "recursive case", "--keyword-only"]) == 0
        out = capsys.readouterr().out
        assert "Strategy:   keyword" in out
        assert "Results:    1" in out

        assert _run(["delete", document_id]) == 0
        capsys.readouterr()
        assert list((cli_env / "uploads").iterdir()) == []
        assert _run(["delete", document_id]) == 1

    def test_db_option_selects_sqlite_file(
        self,
        cli_env: Path,
        pdf_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        other_db = cli_env / "other.db"

        assert _run(["--db", str(other_db), "ingest", "--file", str(pdf_file)]) == 0
        document_id = capsys.readouterr().out.rsplit("Document ID:", 1)[1].split()[0]

        assert other_db.is_file()
        assert _run(["--db", str(other_db), "list"]) == 0
        assert document_id in capsys.readouterr().out
        assert _run(["list"]) == 0
        assert document_id not in capsys.readouterr().out

    def test_ingest_unsupported_type(self, cli_env: Path) -> None:
        source = cli_env / "notes.txt"
        source.write_text("plain text", encoding="utf-8")

        assert _run(["ingest", "--file", str(source)]) == 1

    def test_no_command_prints_help(self, cli_env: Path) -> None:
        assert _run([]) == 1


class TestAskCommand:
    def test_without_api_key(
        self, cli_env: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["ask", "what is recursion"]) == 1
        assert "OPENAI_API_KEY" in capsys.readouterr().err

    def test_prints_answer_and_sources(
        self,
        cli_env: Path,
        pdf_file: Path,
        mock_llm: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        build_components = src.main.build_components

        def _with_llm(app_settings, app_config=None):
            components = build_components(app_settings, app_config)
            components["qa_service"] = QAService(components["retrieval_service"], mock_llm)
            return components

        monkeypatch.setattr(src.main, "build_components", _with_llm)
        mock_llm.complete.return_value = "Recursion stops at the base case."
        assert _run(["ingest", "--file", str(pdf_file), "--course", "CSC201"]) == 0
        capsys.readouterr()

        code = _run(["ask", "recursive case", "--course", "CSC201", "--mode", "eli5"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Mode:       eli5" in out
        assert "Recursion stops at the base case." in out
        assert "Sources:" in out
