from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional


def configure_logging(verbose: bool = False) -> None:
    """Console logging; ``verbose`` enables debug output, except from the parser library."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("markdown_it").setLevel(logging.INFO)


def resolve_output_path(input_path: Path, output: Optional[str], suffix: str) -> Path:
    if output:
        out_path = Path(output)
        if out_path.is_dir():
            out_path = out_path / f"{input_path.stem}{suffix}"
        return out_path
    return input_path.with_suffix(suffix)


def read_markdown(path: Path) -> str:
    # utf-8-sig drops the byte order mark some editors write.
    return path.read_text(encoding="utf-8-sig")


def write_markdown(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
