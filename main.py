from __future__ import annotations
import argparse
import sys
from datetime import datetime
from pathlib import Path

# --- Ensure project root is in path ---
ROOT_DIR = Path(__file__).resolve().parent
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

# --- Import core setup ---
from core.config import config
from core.logger import get_logger

log = get_logger("main")


def _read_text_arg(value: str) -> str:
    """'-' reads stdin, '@path' reads a file, anything else is the text itself."""
    if value == "-":
        return sys.stdin.read()
    if value.startswith("@"):
        return Path(value[1:]).read_text(encoding="utf-8")
    return value


def cmd_sms(args: argparse.Namespace) -> int:
    from ingestion.sms_parser import parse_sms

    result = parse_sms(_read_text_arg(args.text))
    print(result.model_dump_json(indent=2))
    return 0 if result.ok else 1


def cmd_pdf(args: argparse.Namespace) -> int:
    from ingestion.pdf_parser import parse_pdf, parse_pdf_file

    statement_date = datetime.strptime(args.month, "%Y-%m") if args.month else None
    strict = True if args.strict else None

    if args.path is None:
        result = parse_pdf(None, statement_date, strict=strict)
    elif args.path.lower().endswith(".pdf"):
        result = parse_pdf_file(args.path, args.password, statement_date=statement_date, strict=strict)
    else:
        result = parse_pdf(Path(args.path).read_text(encoding="utf-8"), statement_date, strict=strict)

    print(result.model_dump_json(indent=2))
    return 0 if result.ok else 1


def cmd_ask(args: argparse.Namespace) -> int:
    from intent.router import classify_query

    today = datetime.strptime(args.today, "%Y-%m-%d").date() if args.today else None
    response = classify_query(args.question, today)
    print(response.model_dump_json(indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pesasync", description="M-Pesa transaction extraction and query intent")
    sub = parser.add_subparsers(dest="command", required=True)

    sms = sub.add_parser("sms", help="Parse one M-Pesa SMS")
    sms.add_argument("text", help="SMS text, '-' for stdin or '@file'")
    sms.set_defaults(func=cmd_sms)

    pdf = sub.add_parser("pdf", help="Parse a statement PDF (or extracted text); no path uses the sample table")
    pdf.add_argument("path", nargs="?", default=None)
    pdf.add_argument("--password", default=None, help="Statement PDF password")
    pdf.add_argument("--month", default=None, help="Statement month, YYYY-MM")
    pdf.add_argument("--strict", action="store_true", help="Disable transaction type self-healing")
    pdf.set_defaults(func=cmd_pdf)

    ask = sub.add_parser("ask", help="Classify a financial question")
    ask.add_argument("question")
    ask.add_argument("--today", default=None, help="Reference date, YYYY-MM-DD")
    ask.set_defaults(func=cmd_ask)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    log.info(f"Running '{args.command}' in '{config.environment}' mode")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
