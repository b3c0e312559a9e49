"""
MINIC CLI Entrypoint.

This module provides the command-line interface for checking MINIC source code.

Features:
    - Read source from `.mc` files or inline strings.
    - Lex and parse the program, printing the parse tree (text or JSON).
    - Report every recoverable syntax error in one run.
    - Optionally run the semantic checks on a syntactically clean program.
    - Dump the token stream.

Example usage:
    minic hello.mc
    minic -s "int main() { return 0; }"
    minic hello.mc --check --quiet
    minic hello.mc --json --log-level DEBUG

Exit status:
    0   the program parsed (and, with --check, passed the checks) cleanly
    1   diagnostics were reported
    2   fatal error: unreadable source, lexer error, truncated input or
        input left after the end of the program

Environment:
    MINIC_LOG_LEVEL   default for --log-level (WARNING when unset)

Functions:
    run_minic(source: str, is_string: bool = False, ...) -> int:
        Executes the pipeline (lex → parse → check → output) and returns the exit status.

    main(argv: list[str] | None = None) -> None:
        Parses CLI arguments, configures logging and exits with `run_minic`'s status.
"""

import argparse
import json
import logging
import os
import sys

from minic.minic_errors import Diagnostic, ParseError
from minic.minic_lexer import tokenize
from minic.minic_parser import Parser
from minic.minic_semantic import SemanticAnalyzer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DIAGNOSTICS = 1
EXIT_FATAL = 2

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _print_diagnostics(diagnostics: list[Diagnostic], origin: str) -> None:
    for diagnostic in diagnostics:
        print(f"{origin}:{diagnostic}", file=sys.stderr)


def run_minic(
    source: str,
    is_string: bool = False,
    show_tokens: bool = False,
    as_json: bool = False,
    check: bool = False,
    quiet: bool = False,
) -> int:
    """
    Run the MINIC front end over a file or a source string.

    Args:
        source (str): The MINIC source code or path to a `.mc` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        show_tokens (bool): If True, prints the token stream before the tree.
        as_json (bool): If True, prints the tree and diagnostics as one JSON document.
        check (bool): If True, runs the semantic checks after a clean parse.
        quiet (bool): If True, prints no tree, only diagnostics.

    Returns:
        int: The exit status (0, 1 or 2).

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.mc'.
        OSError: If the source file cannot be read.
    """
    if not is_string and not source.endswith(".mc"):
        raise ValueError("Only .mc files are supported.")
    origin = "<string>"
    # 1. Read source
    if not is_string:
        origin = source
        with open(source, encoding="utf-8") as f:
            source = f.read()

    # 2. Lexing
    try:
        tokens = tokenize(source)
    except SyntaxError as exc:
        print(f"{origin}: {exc}", file=sys.stderr)
        return EXIT_FATAL
    logger.info("lexed %d token(s) from %s", len(tokens), origin)

    if show_tokens and not as_json:
        for tok in tokens:
            print(f"{tok.line}:{tok.col}\t{tok.type}\t{tok.value!r}")

    # 3. Parsing
    try:
        result = Parser(tokens).parse()
    except ParseError as exc:
        _print_diagnostics(exc.diagnostics, origin)
        print(f"{origin}:{exc.line}:{exc.col}: fatal: {exc}", file=sys.stderr)
        return EXIT_FATAL
    diagnostics = list(result.diagnostics)

    # 4. Semantic checks, only on a tree without error regions
    if check and result.ok:
        diagnostics.extend(SemanticAnalyzer().analyze(result.tree))
    elif check:
        logger.warning("skipping semantic checks: the program has syntax errors")

    # 5. Output
    if as_json:
        document = {
            "tree": None if quiet else result.tree.to_dict(),
            "diagnostics": [d.to_dict() for d in diagnostics],
        }
        if show_tokens:
            document["tokens"] = [
                {"type": t.type, "value": t.value, "line": t.line, "col": t.col}
                for t in tokens
            ]
        print(json.dumps(document, indent=2))
    elif not quiet:
        print(result.tree.format_tree())

    _print_diagnostics(diagnostics, origin)
    return EXIT_DIAGNOSTICS if diagnostics else EXIT_OK


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the MINIC CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `--tokens`: Print the token stream.
        - `--json`: Print the tree and diagnostics as JSON.
        - `--check`: Run the semantic checks after a clean parse.
        - `-q`, `--quiet`: Print diagnostics only.
        - `--log-level`: Logging threshold (default from `MINIC_LOG_LEVEL`, else WARNING).
    """
    parser = argparse.ArgumentParser(prog="minic")
    parser.add_argument("source", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "--tokens", action="store_true", help="Print the token stream"
    )
    parser.add_argument(
        "--json", dest="as_json", action="store_true", help="Print JSON output"
    )
    parser.add_argument(
        "--check", action="store_true", help="Run declaration and type checks"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Print diagnostics only"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get("MINIC_LOG_LEVEL", "WARNING").upper(),
        help="Logging threshold (default: $MINIC_LOG_LEVEL or WARNING)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        status = run_minic(
            source=args.source,
            is_string=args.string,
            show_tokens=args.tokens,
            as_json=args.as_json,
            check=args.check,
            quiet=args.quiet,
        )
    except (ValueError, OSError) as exc:
        print(f"minic: {exc}", file=sys.stderr)
        status = EXIT_FATAL
    sys.exit(status)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
