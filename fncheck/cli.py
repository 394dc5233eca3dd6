"""
Command-line interface for the function-calling test runner.

Usage examples:
    fncheck                    - Run all tests
    fncheck weather            - Run tests containing "weather" in the name
    fncheck basic_weather      - Run a specific test by name
    fncheck --cases my.yaml    - Use another case file
"""

import argparse
import logging
import sys

from .config import (
    DEFAULT_CASES_FILE,
    DEFAULT_SETTINGS_FILE,
    DEFAULT_STRUCTURE_FILE,
    load_environment,
    load_settings,
    load_structure,
    resolve_core_model,
)
from .exceptions import ConfigurationError, NoMatchingCasesError
from .executor import TestExecutor
from .judge import MeaningJudge
from .loader import load_test_cases
from .reporter import ConsoleReporter
from .transport import ApiTransport


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fncheck",
        description="Validate an assistant's function-calling behaviour against the OpenAI API",
    )
    parser.add_argument(
        "name_filter",
        nargs="?",
        default=None,
        help="Run only tests whose name contains this text (case-insensitive)",
    )
    parser.add_argument(
        "--settings",
        default=DEFAULT_SETTINGS_FILE,
        help=f"Settings file (default: {DEFAULT_SETTINGS_FILE})",
    )
    parser.add_argument(
        "--cases",
        default=DEFAULT_CASES_FILE,
        help=f"Test case file, JSON or YAML (default: {DEFAULT_CASES_FILE})",
    )
    parser.add_argument(
        "--structure",
        default=DEFAULT_STRUCTURE_FILE,
        help=f"Tool structure file (default: {DEFAULT_STRUCTURE_FILE})",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    return parser


def main(argv: list[str] | None = None, transport: ApiTransport | None = None) -> int:
    """Run the test suite and return the process exit code.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
        transport: Optional transport to use instead of a real one.

    Returns:
        0 if every selected test passed, 1 otherwise.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(asctime)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    reporter = ConsoleReporter(use_color=False if args.no_color else None)

    try:
        load_environment()
        settings = load_settings(args.settings)
        structure = load_structure(args.structure)
        cases = load_test_cases(args.cases)
        model = resolve_core_model(settings, structure)
    except ConfigurationError as e:
        logger.error(f"Configuration failed: {e}")
        reporter.print_fatal(str(e))
        return 1

    owns_transport = transport is None
    if transport is None:
        transport = ApiTransport(settings.api_key, base_url=settings.base_url)

    judge = MeaningJudge(
        transport,
        model=settings.model_meaning_verification,
        timeout=settings.judge_timeout,
    )
    executor = TestExecutor(
        transport,
        model=model,
        structure=structure,
        judge=judge,
        system_prompt=settings.system_prompt,
        request_timeout=settings.request_timeout,
        observer=reporter,
    )

    reporter.print_header()
    try:
        summary = executor.run(cases, args.name_filter)
    except NoMatchingCasesError as e:
        reporter.print_no_match(e)
        return 1
    finally:
        if owns_transport:
            transport.close()

    reporter.print_summary(summary)
    return 0 if summary.all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
