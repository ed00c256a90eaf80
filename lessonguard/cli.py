#!/usr/bin/env python3
"""Command-line interface for analyzing lesson transcripts.

Usage:
    python -m lessonguard.cli --help
    python -m lessonguard.cli behavior aula.txt
    python -m lessonguard.cli context aula.txt
    python -m lessonguard.cli compliance aula.txt --summary
    cat aula.txt | python -m lessonguard.cli compliance -
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NON_COMPLIANT = 1
EXIT_INPUT_ERROR = 2


def setup_parser() -> argparse.ArgumentParser:
    """Set up argument parser."""
    parser = argparse.ArgumentParser(
        description="lessonguard transcript analysis CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (logs go to stderr)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    for name, help_text in (
        ("behavior", "Detect problematic behaviors and score classroom safety"),
        ("context", "Find contradictions between lesson topic and behavior"),
        ("compliance", "Full Lei 13.185 compliance check"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "transcript",
            help="Transcript file path, or - to read stdin"
        )
        sub.add_argument(
            "--indent", type=int, default=2,
            help="JSON indentation"
        )

    subparsers.choices["compliance"].add_argument(
        "--summary", action="store_true",
        help="Print only the verdict line instead of the full report"
    )
    subparsers.choices["compliance"].add_argument(
        "--strict", action="store_true",
        help="Exit with status 1 when the lesson is not compliant"
    )

    return parser


def read_transcript(source: str) -> str:
    """Read a transcript from a file path or stdin ("-").

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not UTF-8
    """
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _print_json(payload: dict, indent: int) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=indent))


def cmd_behavior(args, text: str) -> int:
    """Behavior analysis command."""
    from lessonguard.services.discourse_service import behavior_detector

    report = behavior_detector.analyze(text)
    _print_json(report.to_dict(), args.indent)
    return EXIT_OK


def cmd_context(args, text: str) -> int:
    """Context/contradiction analysis command."""
    from lessonguard.services.discourse_service import contradiction_analyzer

    report = contradiction_analyzer.analyze(text)
    _print_json(report.to_dict(), args.indent)
    return EXIT_OK


def cmd_compliance(args, text: str) -> int:
    """Compliance check command."""
    from lessonguard.shared.models import ComplianceLevel
    from lessonguard.services.discourse_service import legal_compliance_checker

    report = legal_compliance_checker.check_compliance(text)

    if args.summary:
        print(report.legal_summary)
        print(f"Combined score: {report.combined_score}")
    else:
        _print_json(report.to_dict(), args.indent)

    if args.strict and report.overall_compliance != ComplianceLevel.COMPLIANT:
        return EXIT_NON_COMPLIANT
    return EXIT_OK


COMMANDS = {
    "behavior": cmd_behavior,
    "context": cmd_context,
    "compliance": cmd_compliance,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = setup_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command not in COMMANDS:
        parser.print_help()
        return EXIT_OK

    try:
        text = read_transcript(args.transcript)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(
            "TRANSCRIPT_READ_FAILED",
            extra={"source": args.transcript, "error_type": type(e).__name__}
        )
        print(f"❌ Cannot read transcript: {args.transcript} ({e})", file=sys.stderr)
        return EXIT_INPUT_ERROR

    return COMMANDS[args.command](args, text)


if __name__ == "__main__":
    sys.exit(main())
