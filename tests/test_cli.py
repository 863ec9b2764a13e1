import json
from pathlib import Path

import pytest
from docx import Document as DocxReader

from SplitMark.cli import main

SAMPLE = "# Title\n\nfirst line\nsecond line\n\n$$\nx = 1\n$$\n"


def _sample(tmp_path: Path) -> Path:
    path = tmp_path / "doc.md"
    path.write_text(SAMPLE, encoding="utf-8")
    return path


def test_blocks_as_json(tmp_path: Path, capsys):
    main(["blocks", str(_sample(tmp_path)), "--json"])
    blocks = json.loads(capsys.readouterr().out)
    assert [block["content"] for block in blocks] == ["# Title", "first line", "second line", "$$\nx = 1\n$$"]
    assert (blocks[-1]["start_line"], blocks[-1]["end_line"]) == (6, 8)
    assert blocks[0]["block_type"] == "heading"


def test_blocks_table(tmp_path: Path, capsys):
    main(["blocks", str(_sample(tmp_path))])
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 4
    assert lines[0].split() == ["1-1", "heading", "#", "Title"]


def test_reconcile_to_file(tmp_path: Path):
    out = tmp_path / "out.md"
    main(["reconcile", str(_sample(tmp_path)), "-o", str(out)])
    assert out.read_text(encoding="utf-8") == "# Title\n\nfirst line\n\nsecond line\n\n$$\nx = 1\n$$\n"


def test_format_to_stdout(tmp_path: Path, capsys):
    path = tmp_path / "inline.md"
    path.write_text("a $$y$$ b\n", encoding="utf-8")
    main(["format", str(path)])
    assert capsys.readouterr().out == "a \n\n$$\ny\n$$\n\n b\n"


def test_export_default_output_path(tmp_path: Path):
    path = _sample(tmp_path)
    main(["export", str(path)])
    out = path.with_suffix(".docx")
    assert out.exists()
    assert "Title" in [p.text for p in DocxReader(out).paragraphs]


def test_export_into_directory(tmp_path: Path):
    out_dir = tmp_path / "exports"
    out_dir.mkdir()
    main(["export", str(_sample(tmp_path)), "-o", str(out_dir)])
    assert (out_dir / "doc.docx").exists()


def test_missing_input(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        main(["blocks", str(tmp_path / "missing.md")])


def test_config_option(tmp_path: Path, capsys):
    config = tmp_path / "config.yaml"
    config.write_text("segmenter:\n  balance_formula_fences: true\n", encoding="utf-8")
    path = tmp_path / "open.md"
    path.write_text("$$\nx\ny", encoding="utf-8")
    main(["--config", str(config), "blocks", str(path), "--json"])
    blocks = json.loads(capsys.readouterr().out)
    assert [block["content"] for block in blocks] == ["$$\nx\ny"]
