"""pdf-tutor command line: process a local PDF, show a page's content, delete a document."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pdf_tutor.application.dto.process_dto import ProcessDocumentRequest, RunState
from pdf_tutor.config.compose import Container
from pdf_tutor.config.logging_config import configure_logging
from pdf_tutor.domain.errors import DomainError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pdf-tutor", description="PDF tutor pipeline")
    sub = parser.add_subparsers(dest="command", required=True)

    p_process = sub.add_parser("process", help="Extract, embed and generate content for a PDF")
    p_process.add_argument("path", help="Path to the PDF file")
    p_process.add_argument("--name", help="Document id (default: the file name)")

    p_show = sub.add_parser("show", help="Print the transcript and MCQs of one page")
    p_show.add_argument("filename")
    p_show.add_argument("--page", type=int, required=True)
    p_show.add_argument("--only", choices=["transcript", "mcqs"], default=None)

    p_delete = sub.add_parser("delete", help="Delete vectors, chunks and results of a document")
    p_delete.add_argument("filename")
    return parser


def _process(container: Container, args: argparse.Namespace) -> int:
    path = Path(args.path)
    req = ProcessDocumentRequest(filename=args.name or path.name, content=path.read_bytes())
    report = container.get_process_document().execute(req)
    print(json.dumps(report.as_dict(), indent=2))
    return 0 if report.state is RunState.DONE else 1


def _show(container: Container, args: argparse.Namespace) -> int:
    content = container.get_page_content()
    if args.only in (None, "transcript"):
        print("=" * 80)
        print(f"TRANSCRIPT (page {args.page}):")
        print("=" * 80)
        print(content.transcript(args.filename, args.page))
    if args.only in (None, "mcqs"):
        print("=" * 80)
        print(f"MCQS (page {args.page}):")
        print("=" * 80)
        for q in content.mcqs(args.filename, args.page):
            print(f"\n{q['id'] + 1}. {q['question']}")
            for i, option in enumerate(q["options"]):
                marker = "*" if i == q["correct"] else " "
                print(f"  {marker} {'ABCD'[i]}) {option}")
            print(f"  → {q['explanation']}")
    return 0


def _delete(container: Container, args: argparse.Namespace) -> int:
    result = container.get_delete_document().execute(args.filename)
    print(f"Deleted {args.filename} ({len(result.vector_ids)} vector ids)")
    return 0


def main(argv: list[str] | None = None, container: Container | None = None) -> int:
    args = build_parser().parse_args(argv)
    container = container or Container()
    configure_logging(container.settings.log_level)
    handlers = {"process": _process, "show": _show, "delete": _delete}
    try:
        return handlers[args.command](container, args)
    except (DomainError, OSError) as err:
        print(f"\n[ERROR] {type(err).__name__}: {err}", file=sys.stderr)
        return 2
    finally:
        container.shutdown()


if __name__ == "__main__":
    sys.exit(main())
