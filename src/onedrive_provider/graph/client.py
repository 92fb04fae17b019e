"""Per-call Microsoft Graph API client authenticated with a caller-supplied bearer token."""

from __future__ import annotations

import json
import logging
from typing import Any, BinaryIO
from urllib import request as urllib_request
from urllib.error import HTTPError
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_TIMEOUT_SECONDS = 30.0


class GraphAuthError(Exception):
    """Raised when MSAL token acquisition or refresh fails."""


class GraphApiError(Exception):
    """Raised when the Graph API returns a non-2xx response."""

    def __init__(self, status_code: int, message: str, body: Any = None) -> None:
        super().__init__(f"Graph API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.body = body


class GraphClient:
    """Graph API client bound to a single access token.

    Instances carry no state beyond the token, base URL and timeout, so a new
    one is built for every provider operation.
    """

    def __init__(
        self,
        token: str,
        base_url: str = GRAPH_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def url_for(self, path: str, params: dict[str, str] | None = None) -> str:
        """Build the absolute URL for a path relative to the base URL.

        OData system query options keep their ``$`` prefix unescaped.
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        if params:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}{urlencode(params, safe='$')}"
        return url

    def _request(self, url: str, accept: str) -> urllib_request.Request:
        return urllib_request.Request(
            url,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": accept,
            },
            method="GET",
        )

    def get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """Perform an authenticated GET request and decode the JSON body.

        Args:
            path: URL path relative to the base URL.
            params: Optional query parameters.

        Returns:
            Parsed JSON response body as a dict.

        Raises:
            GraphApiError: If the API returns a non-2xx status code or a body
                that is not JSON.
            OSError: If the request fails at the transport level (URLError,
                timeouts, dropped connections).
            http.client.HTTPException: If the response is truncated or malformed.
        """
        url = self.url_for(path, params)
        logger.debug("[get] requesting; url:%s", url)
        req = self._request(url, "application/json")
        try:
            with urllib_request.urlopen(req, timeout=self._timeout) as resp:
                status = resp.status
                body = resp.read()
        except HTTPError as exc:
            raise _api_error(exc) from exc

        try:
            return json.loads(body)  # type: ignore[no-any-return]
        except ValueError as exc:
            logger.error("[get] response body is not JSON; url:%s;status:%s", url, status)
            raise GraphApiError(status, "response body is not valid JSON") from exc

    def open_stream(self, path: str) -> BinaryIO:
        """Open a streamed GET request and return the unread response.

        The status line is validated before returning, so an error response
        raises here instead of being handed to the caller as a body.

        Args:
            path: URL path relative to the base URL.

        Returns:
            File-like response object positioned at the start of the body.
            The caller owns it and must close it.

        Raises:
            GraphApiError: If the API returns a non-2xx status code.
            OSError: If the request fails at the transport level.
            http.client.HTTPException: If the response status line is malformed.
        """
        url = self.url_for(path)
        logger.debug("[open_stream] opening; url:%s", url)
        req = self._request(url, "*/*")
        try:
            return urllib_request.urlopen(req, timeout=self._timeout)  # type: ignore[no-any-return]
        except HTTPError as exc:
            raise _api_error(exc) from exc


def _api_error(exc: HTTPError) -> GraphApiError:
    """Translate an HTTPError into a GraphApiError with the decoded error envelope."""
    raw = exc.read()
    try:
        body = json.loads(raw)
    except (TypeError, ValueError):
        body = None
    return GraphApiError(exc.code, str(exc.reason), body)


def get_client(
    token: str,
    base_url: str = GRAPH_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> GraphClient:
    """Construct a GraphClient for one provider operation.

    Args:
        token: OAuth access token sent as the Bearer credential.
        base_url: Graph API version endpoint.
        timeout: Socket timeout in seconds for each request.

    Returns:
        Configured GraphClient instance.
    """
    return GraphClient(token=token, base_url=base_url, timeout=timeout)
