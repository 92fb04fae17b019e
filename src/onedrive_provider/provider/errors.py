"""Provider error taxonomy and the shared vendor-error translation wrapper."""

from __future__ import annotations

import logging
from collections.abc import Callable
from http.client import HTTPException
from typing import Any, TypeVar

from onedrive_provider.graph.client import GraphApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERIC_ERROR_MESSAGE = "request to the provider failed"


class ProviderError(Exception):
    """Base class for errors surfaced by provider operations."""

    def __init__(
        self, message: str, tag: str | None = None, provider_name: str | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.tag = tag
        self.provider_name = provider_name


class ProviderAuthError(ProviderError):
    """The provider rejected the access token; the caller should refresh it."""

    def __init__(self, tag: str | None = None, provider_name: str | None = None) -> None:
        super().__init__("invalid access token detected by provider", tag, provider_name)


class ProviderApiError(ProviderError):
    """Any other non-2xx provider response, or a transport failure."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        tag: str | None = None,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message, tag, provider_name)
        self.status_code = status_code


class ProviderUnimplementedError(ProviderError, NotImplementedError):
    """The provider deliberately does not support the requested operation."""


def with_provider_error_handling(
    fn: Callable[[], T],
    tag: str,
    provider_name: str,
    is_auth_error: Callable[[GraphApiError], bool],
    get_json_error_message: Callable[[Any], str | None],
) -> T:
    """Run ``fn`` and translate vendor failures into provider errors.

    Args:
        fn: Zero-argument callable performing the provider operation.
        tag: Operation identifier attached to every raised error
            (e.g. "provider.onedrive.list.error").
        provider_name: Auth provider name attached to every raised error.
        is_auth_error: Decides whether a vendor error means the token is invalid.
        get_json_error_message: Extracts a readable message from the decoded
            vendor error body, or returns None.

    Returns:
        Whatever ``fn`` returns.

    Raises:
        ProviderAuthError: If ``is_auth_error`` accepts the vendor error.
        ProviderApiError: For any other vendor or transport failure.
    """
    try:
        return fn()
    except ProviderError as exc:
        if exc.tag is None:
            exc.tag = tag
            exc.provider_name = provider_name
        raise
    except GraphApiError as exc:
        if is_auth_error(exc):
            logger.warning("[%s] provider rejected access token; status:%d", tag, exc.status_code)
            raise ProviderAuthError(tag, provider_name) from exc

        message = (
            _safe_message(get_json_error_message, exc.body) or exc.message or GENERIC_ERROR_MESSAGE
        )
        logger.error(
            "[%s] provider request failed; status:%d;message:%s", tag, exc.status_code, message
        )
        raise ProviderApiError(message, exc.status_code, tag, provider_name) from exc
    except (OSError, HTTPException) as exc:
        logger.error("[%s] provider request failed at transport level; error:%s", tag, exc)
        raise ProviderApiError(GENERIC_ERROR_MESSAGE, None, tag, provider_name) from exc


def _safe_message(extract: Callable[[Any], str | None], body: Any) -> str | None:
    if body is None:
        return None
    try:
        return extract(body)
    except (AttributeError, KeyError, TypeError):
        return None
