#!/usr/bin/env python
"""
Ambiguity Pass CLI.

Annotates a representation (claim, metric, summary, model output) with a
calibrated reliance profile. The oracle proposes; the policy gate decides.

Usage:
    ambiguity-pass "Churn fell 8% after the pricing change" \\
        --use decision_support --stakes high --reversibility low \\
        --detectability hard --alt "finance dashboard"

    cat postmortem.md | ambiguity-pass --technical --out results/audit.txt --append

Offline gating of a stored candidate (no oracle call):
    ambiguity-pass --candidate candidate.json --stakes high --json
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from ambiguity_pass.auditor import AmbiguityAuditor, AuditRequest
from ambiguity_pass.errors import AmbiguityPassError
from ambiguity_pass.io_utils import read_representation, read_text_file, write_output
from ambiguity_pass.llm_client import LLMProvider, OpenAILLM
from ambiguity_pass.logger import close_logging, setup_logging
from ambiguity_pass.models import DecisionContext, to_json
from ambiguity_pass.render import render_friendly, render_technical

USES = ["exploration", "explanation", "decision_support", "justification", "unknown"]
LEVELS = ["low", "medium", "high", "unknown"]
DETECTABILITY = ["easy", "moderate", "hard", "unknown"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ambiguity-pass",
        description="Run an Ambiguity Pass audit on a representation.",
    )
    parser.add_argument("text", nargs="*", help="representation text (or pipe via stdin)")
    parser.add_argument("-f", "--file", help="read representation from a file ('-' for stdin)")
    parser.add_argument("-c", "--context", default="", help="context: what decision/use is this for?")
    parser.add_argument("--use", choices=USES, default="unknown", help="attempted use (default: unknown)")
    parser.add_argument("-s", "--stakes", choices=LEVELS, default="medium", help="stakes (default: medium)")
    parser.add_argument("--reversibility", choices=LEVELS, default="unknown", help="reversibility (default: unknown)")
    parser.add_argument(
        "--detectability", choices=DETECTABILITY, default="unknown", help="detectability (default: unknown)"
    )
    parser.add_argument(
        "--time-pressure", choices=LEVELS, default="unknown", help="time pressure (default: unknown)"
    )
    parser.add_argument(
        "-a", "--alt", action="append", default=[], help="alternative check/source available (repeatable)"
    )
    parser.add_argument("-m", "--model", help="oracle model (default: AMBIGUITY_MODEL setting)")
    parser.add_argument("--technical", action="store_true", help="print framework/technical view")
    parser.add_argument("--json", action="store_true", help="print raw JSON output")
    parser.add_argument("--self", dest="self_audit", action="store_true", help="self-audit the output for overreach")
    parser.add_argument("--candidate", help="gate a stored candidate record (JSON file) instead of calling the oracle")
    parser.add_argument("-o", "--out", help="write output to a text file (same content as stdout)")
    parser.add_argument("--append", action="store_true", help="append to --out instead of overwriting")
    parser.add_argument("--quiet", action="store_true", help="do not print to stdout (useful with --out)")
    parser.add_argument("--log-dir", help="directory for the rotating log file (default: LOG_DIR setting)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log at INFO instead of WARNING")
    return parser


def _decision_context(args: argparse.Namespace) -> DecisionContext:
    return DecisionContext(
        stakes=args.stakes,
        reversibility=args.reversibility,
        detectability=args.detectability,
        time_pressure=args.time_pressure,
        alternatives_available=list(args.alt),
        notes="",
    )


def run(args: argparse.Namespace, llm: Optional[LLMProvider] = None):
    dc = _decision_context(args)
    if args.candidate:
        auditor = AmbiguityAuditor(llm=llm)
        candidate = read_text_file(args.candidate)
        return auditor.calibrate(candidate, dc, model=args.model or "offline")

    representation = read_representation(" ".join(args.text).strip(), args.file)
    auditor = AmbiguityAuditor(llm=llm or OpenAILLM(model=args.model))
    request = AuditRequest(
        representation=representation,
        context=args.context,
        attempted_use=args.use,
        decision_context=dc,
        self_audit=args.self_audit,
    )
    return asyncio.run(auditor.run(request))


def render(record, args: argparse.Namespace) -> str:
    if args.json:
        return to_json(record) + "\n"
    return (render_technical(record) if args.technical else render_friendly(record)) + "\n"


def main(argv: Optional[List[str]] = None, llm: Optional[LLMProvider] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(log_dir=args.log_dir, level="INFO" if args.verbose else "WARNING")
    try:
        content = render(run(args, llm=llm), args)
        if args.out:
            write_output(args.out, content, append=args.append)
    except (AmbiguityPassError, OSError) as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1
    finally:
        close_logging()

    if not args.quiet:
        sys.stdout.write(content)
    return 0


if __name__ == "__main__":
    sys.exit(main())
