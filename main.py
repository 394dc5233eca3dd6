#!/usr/bin/env python3
"""
OpenAI Function Calling Test Runner

Runs the declarative test cases in cases.json against the model configured in
settings.yaml and exits non-zero if any test fails.

Usage:
    python main.py                 - Run all tests
    python main.py weather         - Run tests containing "weather" in the name

To run the runner's own unit tests:
    pytest tests/ -v
"""

import sys

from fncheck.cli import main


if __name__ == "__main__":
    sys.exit(main())
