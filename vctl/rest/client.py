"""
vSphere Automation REST API client.
"""

import logging
from typing import Any

import requests

from vctl.config import Settings
from vctl.exceptions import RestAPIError, RetryableError, VSphereConnectionError
from vctl.util.retry import (
    RETRYABLE_STATUS_CODES,
    RetryPolicy,
    TransientHTTPError,
    call_with_retry,
    log_retry,
)

logger = logging.getLogger(__name__)

SESSION_HEADER = "vmware-api-session-id"

RETRYABLE_ERRORS = (requests.ConnectionError, requests.Timeout, TransientHTTPError)


def _error_message(response: requests.Response) -> str | None:
    """Extract the server's default message from an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or None

    if isinstance(body, dict):
        messages = body.get("messages") or []
        texts = [m.get("default_message") for m in messages if isinstance(m, dict)]
        texts = [t for t in texts if t]
        if texts:
            return "; ".join(texts)
        if body.get("error_type"):
            return str(body["error_type"])
    return None


class RestClient:
    """
    Thin session wrapper around the ``/api`` endpoints.

    A session is created lazily on the first request and deleted by close().
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.endpoint = settings.endpoint()
        self.base_url = self.endpoint.base_url
        self.session = session or requests.Session()
        self.session.verify = not settings.insecure
        self.retry_policy = RetryPolicy.from_settings(settings)
        self._logged_in = False

    def login(self) -> None:
        """Create an API session with basic auth."""
        url = f"{self.base_url}/api/session"
        logger.info("Creating REST session at %s", self.base_url)
        try:
            response = self.session.post(
                url,
                auth=(self.endpoint.username or "", self.endpoint.password or ""),
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            raise VSphereConnectionError(self.base_url, str(e)) from e

        if response.status_code == 401:
            raise VSphereConnectionError(self.base_url, "invalid login")
        if not response.ok:
            raise RestAPIError(
                "POST", "/api/session", response.status_code, _error_message(response)
            )

        self.session.headers[SESSION_HEADER] = response.json()
        self._logged_in = True

    def close(self) -> None:
        """Delete the API session if one was created."""
        if not self._logged_in:
            return
        try:
            self.session.delete(f"{self.base_url}/api/session", timeout=self.settings.timeout)
        except requests.RequestException as e:
            logger.debug("Error deleting REST session: %s", e)
        finally:
            self.session.headers.pop(SESSION_HEADER, None)
            self._logged_in = False

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        response = self.session.request(method, url, timeout=self.settings.timeout, **kwargs)
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise TransientHTTPError(response)
        return response

    def request(self, method: str, path: str, **kwargs) -> Any:
        """
        Issue a request and decode the JSON body.

        Args:
            method: HTTP method
            path: API path, e.g. ``/api/vcenter/namespaces/instances``
            **kwargs: Passed to requests (json=, params=)

        Returns:
            Decoded JSON, or None for empty bodies

        Raises:
            RestAPIError: The server answered with an error status
        """
        if not self._logged_in:
            self.login()

        logger.debug("%s %s", method, path)
        try:
            response = call_with_retry(
                self._send,
                self.retry_policy,
                RETRYABLE_ERRORS,
                log_retry,
                method,
                f"{self.base_url}{path}",
                **kwargs,
            )
        except RetryableError as e:
            if isinstance(e.original_error, TransientHTTPError):
                response = e.original_error.response
                raise RestAPIError(
                    method, path, response.status_code, _error_message(response)
                ) from e
            raise

        if not response.ok:
            raise RestAPIError(method, path, response.status_code, _error_message(response))

        if not response.content:
            return None
        return response.json()

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def patch(self, path: str, **kwargs) -> Any:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)
