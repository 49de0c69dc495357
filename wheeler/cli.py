#!/usr/bin/env python3
"""
WHEELER Command-Line Interface

Finds where a pattern matches inside one or more subject expressions.

Usage:
    wheeler "(+ ?x 2)" "(* a (+ 2 3))"       # One subject
    wheeler --json "?x" "(+ a b)"            # JSON records
    wheeler --first "(* A B)" "..."          # Only the first match
    wheeler --count "a" "(+ a (* a b))"      # Number of matches
    cat subjects.txt | wheeler "(+ ?x 2)"     # Filter mode, one subject per line

Exit status is 0 if anything matched, 1 if nothing did, 2 on bad input.
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional, TextIO

from . import __version__
from .expr import Expr, PatternVar
from .matcher import Matcher, MatchReport
from .sexpr import format_sexpr, parse_sexpr

logger = logging.getLogger(__name__)

EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2


class MatchRunner:
    """Runs one pattern against subjects and prints the reports."""

    def __init__(self, pattern: Expr, json_output: bool = False, first: bool = False,
                 count: bool = False, quiet: bool = False, out: Optional[TextIO] = None):
        self.pattern = pattern
        self.json_output = json_output
        self.first = first
        self.count = count
        self.quiet = quiet
        self.out = out or sys.stdout
        self.matcher = Matcher()
        self.total = 0

    def _emit(self, text: str) -> None:
        if not self.quiet:
            print(text, file=self.out)

    def reports_for(self, subject: Expr) -> List[MatchReport]:
        if self.first:
            report = self.matcher.first_match(self.pattern, subject)
            return [report] if report else []
        return self.matcher.find_all(self.pattern, subject)

    def run_subject(self, text: str, label: Optional[str] = None) -> int:
        """
        Match the pattern against one subject given as text.

        Args:
            text: The subject s-expression
            label: Prefix for plain-text output lines (e.g. a line number)

        Returns:
            Exit code for this subject
        """
        try:
            subject = parse_sexpr(text)
            reports = self.reports_for(subject)
        except ValueError as e:
            where = f"{label}: " if label else ""
            print(f"{where}Error: {e}", file=sys.stderr)
            return EXIT_ERROR

        self.total += len(reports)
        prefix = f"{label}: " if label else ""

        if self.count:
            self._emit(f"{prefix}{len(reports)}")
        elif self.json_output:
            for report in reports:
                record = {"subject": format_sexpr(subject)}
                record.update(report.to_dict())
                self._emit(json.dumps(record))
        else:
            for report in reports:
                self._emit(f"{prefix}{report.format()}")

        return EXIT_MATCH if reports else EXIT_NO_MATCH

    def run_stdin(self, stream: Optional[TextIO] = None) -> int:
        """
        Filter mode: treat each non-blank, non-comment line as a subject.

        Returns:
            EXIT_ERROR if any line failed to parse, else EXIT_MATCH if any
            line matched, else EXIT_NO_MATCH
        """
        stream = stream or sys.stdin
        status = EXIT_NO_MATCH
        for lineno, line in enumerate(stream, 1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            result = self.run_subject(line, label=str(lineno))
            if result == EXIT_ERROR:
                return EXIT_ERROR
            if result == EXIT_MATCH:
                status = EXIT_MATCH
        logger.info("%d match(es) in total", self.total)
        return status


def configure_logging(verbosity: int) -> None:
    """Map -v counts to log levels: WARNING, INFO, then DEBUG."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="wheeler",
        description="WHEELER - find where a pattern matches inside expressions",
        epilog="Examples:\n"
               "  wheeler '(+ ?x 2)' '(* a (+ 2 3))'     Match one subject\n"
               "  wheeler --json '?x' '(+ a b)'          JSON output\n"
               "  cat exprs.txt | wheeler '(+ ?x 2)'      Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "pattern",
        help="Pattern expression"
    )

    parser.add_argument(
        "subject",
        nargs="?",
        help="Subject expression (read from stdin, one per line, if omitted)"
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--json",
        action="store_true",
        help="Print one JSON record per match"
    )
    output.add_argument(
        "--count",
        action="store_true",
        help="Print the number of matches instead of the matches"
    )

    parser.add_argument(
        "--first",
        action="store_true",
        help="Report only the first match per subject"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Print nothing; only set the exit status"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    variables: Dict[str, PatternVar] = {}
    try:
        pattern = parse_sexpr(args.pattern, variables)
    except ValueError as e:
        print(f"Error in pattern: {e}", file=sys.stderr)
        return EXIT_ERROR
    logger.info("pattern %s with variables %s",
                format_sexpr(pattern), ", ".join(sorted(variables)) or "(none)")

    runner = MatchRunner(
        pattern,
        json_output=args.json,
        first=args.first,
        count=args.count,
        quiet=args.quiet,
    )

    if args.subject is not None:
        return runner.run_subject(args.subject)
    return runner.run_stdin()


if __name__ == "__main__":
    sys.exit(main())
