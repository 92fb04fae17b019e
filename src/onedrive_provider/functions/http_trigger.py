"""HTTP trigger blueprint — health check and OneDrive provider endpoints."""

import json
import logging
from collections.abc import Callable

import azure.functions as func

from onedrive_provider import __version__
from onedrive_provider.auth import token_refresher_from_config
from onedrive_provider.config import load_config
from onedrive_provider.graph.client import GraphAuthError
from onedrive_provider.graph.models import ProviderQuery
from onedrive_provider.provider.errors import (
    ProviderApiError,
    ProviderAuthError,
    ProviderUnimplementedError,
)
from onedrive_provider.provider.onedrive import onedrive_provider_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()

BEARER_PREFIX = "Bearer "


def _json_response(payload: object, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(payload), status_code=status_code, mimetype="application/json"
    )


def _error_response(message: str, status_code: int) -> func.HttpResponse:
    return _json_response({"status": "error", "message": message}, status_code)


def _bearer_token(req: func.HttpRequest) -> str | None:
    header = req.headers.get("Authorization") or ""
    if not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX) :].strip() or None


def _handle(
    name: str, req: func.HttpRequest, action: Callable[[str], func.HttpResponse]
) -> func.HttpResponse:
    """Run a token-authenticated provider action and map provider errors to HTTP statuses."""
    token = _bearer_token(req)
    if token is None:
        return _error_response("Missing bearer token", 401)

    try:
        return action(token)

    except ProviderAuthError:
        logger.info("[%s] provider rejected the access token", name)
        return _error_response("Invalid access token", 401)
    except ProviderUnimplementedError as exc:
        return _error_response(exc.message, 501)
    except ProviderApiError as exc:
        status = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else 502
        return _error_response(exc.message, status)
    except Exception:
        logger.error("[%s] request failed", name, exc_info=True)
        return _error_response("Internal server error", 500)


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint. Returns service status and version."""
    logger.info("[health_check] health check requested")

    try:
        return _json_response({"status": "ok", "version": __version__})

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        return _error_response("Internal server error", 500)


@bp.route(route="onedrive/list/{directory?}", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def list_items(req: func.HttpRequest) -> func.HttpResponse:
    """List drives, SharePoint sites or folder children.

    Query parameters ``driveId`` and ``cursor`` are passed through to the provider.
    """

    def action(token: str) -> func.HttpResponse:
        provider = onedrive_provider_from_config(load_config())
        result = provider.list(
            directory=req.route_params.get("directory"),
            query=ProviderQuery.from_params(dict(req.params)),
            token=token,
        )
        logger.info("[list_items] listing served; item_count:%d", len(result.items))
        return _json_response(result.to_dict())

    return _handle("list_items", req, action)


@bp.route(route="onedrive/size/{id}", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def item_size(req: func.HttpRequest) -> func.HttpResponse:
    def action(token: str) -> func.HttpResponse:
        provider = onedrive_provider_from_config(load_config())
        size = provider.size(
            id=req.route_params["id"],
            query=ProviderQuery.from_params(dict(req.params)),
            token=token,
        )
        return _json_response({"size": size})

    return _handle("item_size", req, action)


@bp.route(route="onedrive/get/{id}", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def download_item(req: func.HttpRequest) -> func.HttpResponse:
    """Return the content of an item as an octet stream.

    Azure Functions HTTP responses carry a complete body, so the provider
    stream is buffered here. Items larger than ``max_download_bytes`` are
    refused with 413 instead of being read into memory in full.
    """

    def action(token: str) -> func.HttpResponse:
        config = load_config()
        provider = onedrive_provider_from_config(config)
        result = provider.download(
            id=req.route_params["id"],
            query=ProviderQuery.from_params(dict(req.params)),
            token=token,
        )
        with result.stream as stream:
            body = stream.read(config.max_download_bytes + 1)
        if len(body) > config.max_download_bytes:
            logger.warning(
                "[download_item] item exceeds download limit; limit:%d",
                config.max_download_bytes,
            )
            return _error_response("Item is too large to download", 413)
        return func.HttpResponse(body, status_code=200, mimetype="application/octet-stream")

    return _handle("download_item", req, action)


@bp.route(route="onedrive/thumbnail/{id}", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def item_thumbnail(req: func.HttpRequest) -> func.HttpResponse:
    def action(token: str) -> func.HttpResponse:
        provider = onedrive_provider_from_config(load_config())
        body = provider.thumbnail(id=req.route_params.get("id"), token=token)
        return func.HttpResponse(body, status_code=200)

    return _handle("item_thumbnail", req, action)


@bp.route(route="onedrive/logout", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def logout(req: func.HttpRequest) -> func.HttpResponse:
    """Report how the user revokes access; there is no server-side revocation."""
    try:
        provider = onedrive_provider_from_config(load_config())
        return _json_response(provider.logout().to_dict())

    except Exception:
        logger.error("[logout] logout failed", exc_info=True)
        return _error_response("Internal server error", 500)


@bp.route(route="onedrive/refresh-token", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def refresh_token(req: func.HttpRequest) -> func.HttpResponse:
    """Exchange a refresh token for a new access token.

    Expects a JSON body ``{"refreshToken": "..."}``.
    """
    try:
        payload = req.get_json()
    except ValueError:
        return _error_response("Request body must be JSON", 400)

    token = payload.get("refreshToken") if isinstance(payload, dict) else None
    if not token:
        return _error_response("Missing refreshToken", 400)

    try:
        refresher = token_refresher_from_config(load_config())
        refreshed = refresher.refresh(token)
        return _json_response(
            {
                "accessToken": refreshed.access_token,
                "refreshToken": refreshed.refresh_token,
                "expiresIn": refreshed.expires_in,
            }
        )

    except GraphAuthError:
        logger.warning("[refresh_token] token refresh rejected")
        return _error_response("Token refresh failed", 401)
    except Exception:
        logger.error("[refresh_token] token refresh failed", exc_info=True)
        return _error_response("Internal server error", 500)
