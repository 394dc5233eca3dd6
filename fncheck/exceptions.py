"""Exceptions raised by the test runner."""

from typing import Any


class FncheckError(Exception):
    """Base class for all runner errors."""


class ConfigurationError(FncheckError):
    """Settings, tool structure or case files are missing or invalid. Aborts the run."""


class NoMatchingCasesError(ConfigurationError):
    """A name filter (or an empty case file) selected no test cases."""

    def __init__(self, name_filter: str | None, available: list[str]):
        self.name_filter = name_filter
        self.available = available
        if name_filter is None:
            message = "No test cases to run"
        else:
            message = f"No tests found matching: {name_filter}"
        super().__init__(message)


class TransportError(FncheckError):
    """The API call failed at the network or HTTP level. Fails only the current case."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        partial_response: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.partial_response = partial_response
