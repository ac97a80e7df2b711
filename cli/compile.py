"""
Compile an SOP JSON document to S1.

Usage:
    uv run sop-compile support_triage.json                 # script to stdout
    uv run sop-compile support_triage.json -o build/       # build/<SOP name>.s1
    uv run sop-compile support_triage.json --check         # diagnostics only
    uv run sop-compile support_triage.json --highlight     # tokens as JSON lines
    cat sop.json | uv run sop-compile -                    # read stdin

Exit codes: 0 success, 1 validation errors, 2 unreadable input,
3 output could not be written.
"""

from __future__ import annotations

import argparse
import json
import sys

from sop_script.compiler.compiler import compile_sop
from sop_script.compiler.highlighter import Highlighter, get_grammar
from sop_script.core.config import settings
from sop_script.core.errors import NotFoundError, ValidationError
from sop_script.domain.enums import GrammarName
from sop_script.services.sop_files import load_sop, loads_sop, write_script

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_BAD_INPUT = 2
EXIT_WRITE_FAILED = 3


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sop-compile", description="Compile an SOP JSON document to S1 script"
    )
    parser.add_argument("path", help="SOP JSON file, or '-' to read stdin")
    parser.add_argument("--output", "-o", help="Output file or directory (default: stdout)")
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Report unknown condition operators as errors",
    )
    parser.add_argument(
        "--check", action="store_true", help="Only print diagnostics; exit 1 on errors"
    )
    parser.add_argument(
        "--allow-invalid",
        action="store_true",
        help="Write the script even when validation reports errors",
    )
    parser.add_argument(
        "--highlight", action="store_true", help="Print highlighted tokens as JSON lines"
    )
    parser.add_argument(
        "--grammar",
        choices=[g.value for g in GrammarName],
        default=None,
        help="Token grammar for --highlight (default: S1_GRAMMAR)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        if args.path == "-":
            stdin = getattr(sys.stdin, "buffer", sys.stdin)
            sop = loads_sop(stdin.read(), source="<stdin>")
        else:
            sop = load_sop(args.path)
    except (NotFoundError, ValidationError) as e:
        print(f"error: {e.message}", file=sys.stderr)
        for err in e.details.get("errors", []):
            print(f"  {err['loc']}: {err['msg']}", file=sys.stderr)
        return EXIT_BAD_INPUT

    result = compile_sop(sop, strict_operators=args.strict)

    for error in result.errors:
        print(f"error: {error}", file=sys.stderr)
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)

    if args.check:
        return EXIT_OK if result.is_valid else EXIT_INVALID

    if not result.is_valid and not args.allow_invalid:
        print("error: script not written; fix the errors or pass --allow-invalid", file=sys.stderr)
        return EXIT_INVALID

    if args.highlight:
        highlighter = Highlighter(get_grammar(args.grammar or settings.s1_grammar))
        for number, line in enumerate(result.lines, start=1):
            tokens = [[t.text, t.token_class.value] for t in highlighter.highlight(line)]
            print(json.dumps({"line": number, "tokens": tokens}, ensure_ascii=False))
    elif args.output:
        try:
            written = write_script(result.text, args.output, sop_name=sop.name)
        except OSError as e:
            print(f"error: cannot write {args.output}: {e.strerror or e}", file=sys.stderr)
            return EXIT_WRITE_FAILED
        print(f"wrote {written}", file=sys.stderr)
    else:
        sys.stdout.write(result.text)

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
