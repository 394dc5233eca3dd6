"""HTTP transport for the OpenAI Responses and Chat Completions endpoints.

Calls are synchronous and never retried: a failure is reported once and the
caller decides what it means for the current test case.
"""

import logging
from typing import Any

import requests

from .config import DEFAULT_BASE_URL, JUDGE_TIMEOUT, REQUEST_TIMEOUT
from .exceptions import TransportError


logger = logging.getLogger(__name__)

RESPONSES_PATH = "/responses"
CHAT_COMPLETIONS_PATH = "/chat/completions"
ERROR_BODY_PREVIEW = 500


class ApiTransport:
    """Posts JSON payloads to the OpenAI API with bearer authentication."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        session: requests.Session | None = None,
    ):
        """Initialize the transport.

        Args:
            api_key: Bearer credential shared by both endpoints.
            base_url: API base URL, without a trailing slash.
            session: Optional session to reuse (tests inject a stub).
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _headers(self, extra_headers: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if extra_headers:
            headers.update(extra_headers)
        return headers

    def post_json(
        self,
        path: str,
        payload: dict[str, Any],
        timeout: float,
        extra_headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """POST ``payload`` and return the decoded JSON object.

        Args:
            path: Endpoint path relative to the base URL.
            payload: JSON body.
            timeout: Seconds before the call is abandoned.
            extra_headers: Headers added to the defaults.

        Returns:
            The decoded response body.

        Raises:
            TransportError: On network failure, a non-200 status, or a body
                that is not a JSON object.
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"POST {url} (timeout={timeout}s)")

        try:
            resp = self.session.post(
                url,
                headers=self._headers(extra_headers),
                json=payload,
                timeout=timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise TransportError(f"Request failed: {e}") from e

        if resp.status_code != 200:
            partial = None
            try:
                partial = resp.json()
            except ValueError:
                pass
            logger.warning(f"POST {url} returned HTTP {resp.status_code}")
            raise TransportError(
                f"HTTP Error {resp.status_code}: {resp.text[:ERROR_BODY_PREVIEW]}",
                status_code=resp.status_code,
                partial_response=partial,
            )

        try:
            obj = resp.json()
        except ValueError as e:
            raise TransportError("Failed to decode API response", status_code=resp.status_code) from e

        if not isinstance(obj, dict):
            raise TransportError(
                "Response JSON is not an object",
                status_code=resp.status_code,
                partial_response=obj,
            )
        return obj

    def create_response(self, payload: dict[str, Any], timeout: float = REQUEST_TIMEOUT) -> dict[str, Any]:
        """Call the Responses endpoint with the primary test payload."""
        return self.post_json(
            RESPONSES_PATH,
            payload,
            timeout,
            extra_headers={"OpenAI-Beta": "assistants=v1"},
        )

    def create_chat_completion(self, payload: dict[str, Any], timeout: float = JUDGE_TIMEOUT) -> dict[str, Any]:
        """Call the Chat Completions endpoint with a judge payload."""
        return self.post_json(CHAT_COMPLETIONS_PATH, payload, timeout)

    def close(self) -> None:
        self.session.close()
