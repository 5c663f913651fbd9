"""
HTTP client for a deployed server's control API.

Start and stop send the password in the Authorization header; status
does not. A 404 or 500 from a handler still carries a ``result`` body and
is returned as an ApiResult. Gateway denials and transport problems raise.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import requests

from .models import ApiResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

# Status codes the callback handlers themselves produce.
_HANDLER_CODES = {200, 404, 500}


class ServerApiClient:
    """Talk to the /start, /stop and /status routes.

    Args:
        base_url: API Gateway stage URL. Falls back to TERRASERVER_API_URL.
        password: Sent on start/stop. Optional for status-only use.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        password: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = (base_url or os.environ.get("TERRASERVER_API_URL", "")).rstrip("/")
        self._password = password
        self._timeout = timeout

    def _request(self, method: str, route: str, authorized: bool) -> ApiResult:
        """Make one call to the gateway.

        Raises:
            RuntimeError: On transport failure, a denial, or an unexpected reply.
        """
        if not self._base_url:
            raise RuntimeError("API URL not configured. Set TERRASERVER_API_URL or pass --url.")

        headers = {}
        if authorized:
            if not self._password:
                raise RuntimeError(f"/{route} needs a password")
            headers["Authorization"] = self._password

        url = f"{self._base_url}/{route}"
        logger.debug("%s %s", method, url)
        try:
            resp = requests.request(method, url, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise RuntimeError(f"{method} /{route} failed: {exc}") from exc

        if resp.status_code not in _HANDLER_CODES:
            raise RuntimeError(f"{method} /{route}: {resp.status_code} {resp.text}")

        try:
            body = resp.json()
            result = body["result"]
        except (ValueError, KeyError, TypeError) as exc:
            raise RuntimeError(
                f"{method} /{route}: unexpected body {resp.text!r}"
            ) from exc

        return ApiResult(status_code=resp.status_code, result=str(result))

    def start(self) -> ApiResult:
        return self._request("POST", "start", authorized=True)

    def stop(self) -> ApiResult:
        return self._request("POST", "stop", authorized=True)

    def status(self) -> ApiResult:
        return self._request("GET", "status", authorized=False)
