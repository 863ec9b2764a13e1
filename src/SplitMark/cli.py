from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from .config import load_config
from .formatter import format_markdown
from .reconciler import reconcile
from .renderer_docx import render_blocks
from .segmenter import segment
from .utils import configure_logging, read_markdown, resolve_output_path, write_markdown


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="splitmark",
        description="Split Markdown into editable blocks, normalize and export it.",
    )
    parser.add_argument("--config", type=str, help="Path to a YAML config file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    blocks = commands.add_parser("blocks", help="List the blocks of a Markdown file")
    blocks.add_argument("input", type=str, help="Path to Markdown file")
    blocks.add_argument("--json", action="store_true", help="Print blocks as JSON")

    for name, help_text in (
        ("reconcile", "Rewrite a file as its flattened block text"),
        ("format", "Normalize block formulas and blank lines"),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("input", type=str, help="Path to Markdown file")
        command.add_argument("-o", "--output", type=str, help="Output path (default: stdout)")

    export = commands.add_parser("export", help="Export a Markdown file to DOCX")
    export.add_argument("input", type=str, help="Path to Markdown file")
    export.add_argument("-o", "--output", type=str, help="Output DOCX path")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    config = load_config(args.config)

    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    logging.info("Reading %s", input_path)
    markdown_text = read_markdown(input_path)
    logging.debug("Markdown length: %d chars", len(markdown_text))

    if args.command == "format":
        _emit(format_markdown(markdown_text), args.output)
        return

    logging.info("Segmenting markdown...")
    blocks = segment(markdown_text, config.segmenter)
    logging.info("Found %d blocks", len(blocks))

    if args.command == "blocks":
        if args.json:
            json.dump([asdict(block) for block in blocks], sys.stdout, ensure_ascii=False, indent=2)
            sys.stdout.write("\n")
        else:
            for block in blocks:
                first_line = block.content.splitlines()[0]
                sys.stdout.write(f"{block.start_line:>5}-{block.end_line:<5} {block.block_type:<18} {first_line}\n")
    elif args.command == "reconcile":
        _emit(reconcile(blocks), args.output)
    elif args.command == "export":
        output_path = resolve_output_path(input_path, args.output, ".docx")
        logging.info("Rendering DOCX to %s", output_path)
        render_blocks(blocks, output_path)
        logging.info("Done. Saved to %s", output_path)


def _emit(text: str, output: str | None) -> None:
    if output:
        write_markdown(Path(output), text + "\n")
        logging.info("Saved to %s", output)
    else:
        sys.stdout.write(text + "\n")


if __name__ == "__main__":
    main()
