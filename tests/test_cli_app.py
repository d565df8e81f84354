import importlib
import json
import zipfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from livecanvas.errors import PasteNotFoundError

cli_module = importlib.import_module("livecanvas.cli")

PAGE = "<!DOCTYPE html><html><body>hi</body></html>"


def _write_log(path: Path, records: list[object]) -> Path:
    lines = [record if isinstance(record, str) else json.dumps(record, ensure_ascii=False) for record in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_parse_command_prints_spoken_text_and_code() -> None:
    runner = CliRunner()
    result = runner.invoke(cli_module.app, ["parse", f"Here it is 【{PAGE}】"])
    assert result.exit_code == 0
    assert "Spoken:" in result.output
    assert "Here it is" in result.output
    assert "Code block 1" in result.output


def test_replay_builds_transcript_and_exports(tmp_path: Path) -> None:
    log = _write_log(
        tmp_path / "session.jsonl",
        [
            {"role": "user", "text": "make a page", "is_final": True},
            {"role": "agent", "text": "Sure 【<!DOC", "is_final": False},
            {"object": "assistant.transcription", "text": f"Sure 【{PAGE}】 done", "turn_status": 1},
            "not json",
        ],
    )
    out_dir = tmp_path / "exports"

    runner = CliRunner()
    result = runner.invoke(cli_module.app, ["replay", str(log), "--channel", "demo", "--export", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert "make a page" in result.output
    assert "Sure  done" in result.output
    assert "line 4" in result.output
    archives = list(out_dir.glob("code-*.zip"))
    assert len(archives) == 1
    with zipfile.ZipFile(archives[0]) as archive:
        (member,) = archive.namelist()
        assert archive.read(member).decode("utf-8") == PAGE


def test_replay_without_code_skips_export(tmp_path: Path) -> None:
    log = _write_log(tmp_path / "chat.jsonl", [{"role": "agent", "text": "Hello there", "isFinal": True}])
    out_dir = tmp_path / "exports"

    result = CliRunner().invoke(cli_module.app, ["replay", str(log), "--export", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert "No artifacts generated" in result.output
    assert not out_dir.exists()


def test_share_prints_paste_url(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    source = tmp_path / "page.html"
    source.write_text(PAGE, encoding="utf-8")
    shared: list[str] = []

    def _fake_share(self, content: str) -> str:
        shared.append(content)
        return "AbC1"

    monkeypatch.setattr(cli_module.PasteClient, "share", _fake_share)
    result = CliRunner().invoke(cli_module.app, ["share", str(source)])

    assert result.exit_code == 0, result.output
    assert shared == [PAGE]
    assert "https://dpaste.org/AbC1" in result.output


def test_fetch_writes_output_and_reports_missing(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def _fake_fetch(self, paste_id: str) -> str:
        if paste_id == "gone":
            raise PasteNotFoundError("paste not found or expired")
        return PAGE

    monkeypatch.setattr(cli_module.PasteClient, "fetch", _fake_fetch)
    runner = CliRunner()
    target = tmp_path / "shared.html"

    ok = runner.invoke(cli_module.app, ["fetch", "AbC1", "--output", str(target)])
    assert ok.exit_code == 0, ok.output
    assert target.read_text(encoding="utf-8") == PAGE

    missing = runner.invoke(cli_module.app, ["fetch", "gone"])
    assert missing.exit_code == 1
    assert "not found" in missing.output


def _long_page(lines: int) -> str:
    body = "\n".join(f"<p>line{index}</p>" for index in range(lines))
    return f"<!DOCTYPE html>\n<html>\n<body>\n{body}\n</body>\n</html>"


def test_fetch_to_stdout_prints_full_source(monkeypatch: pytest.MonkeyPatch) -> None:
    page = _long_page(60)
    monkeypatch.setattr(cli_module.PasteClient, "fetch", lambda self, paste_id: page)

    result = CliRunner().invoke(cli_module.app, ["fetch", "long"])

    assert result.exit_code == 0, result.output
    assert "<p>line59</p>" in result.output
    assert "</html>" in result.output
    assert "truncated" not in result.output


def test_replay_show_code_prints_full_source(tmp_path: Path) -> None:
    page = _long_page(60)
    log = _write_log(tmp_path / "long.jsonl", [{"role": "agent", "text": f"Here 【{page}】", "is_final": True}])

    result = CliRunner().invoke(cli_module.app, ["replay", str(log), "--show-code"])

    assert result.exit_code == 0, result.output
    assert "<p>line59</p>" in result.output
    assert "truncated" not in result.output


def test_parse_preview_marks_truncation() -> None:
    page = _long_page(60)

    result = CliRunner().invoke(cli_module.app, ["parse", f"Here 【{page}】"])

    assert result.exit_code == 0, result.output
    assert "<p>line59</p>" not in result.output
    assert "preview truncated, 25 more lines" in result.output


def test_replay_null_text_adds_no_turn(tmp_path: Path) -> None:
    log = _write_log(tmp_path / "null.jsonl", [{"role": "agent", "text": None, "is_final": True}])

    result = CliRunner().invoke(cli_module.app, ["replay", str(log)])

    assert result.exit_code == 0, result.output
    assert "(empty transcript)" in result.output
    assert "None" not in result.output
