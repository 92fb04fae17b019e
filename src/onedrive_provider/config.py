"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Provider settings
    have sensible defaults but can be overridden via environment variables.
    """

    # Required, fail at startup if missing
    client_id: str
    client_secret: str

    # Provider settings, overridable via env
    tenant_id: str = "common"
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    request_timeout: float = 30.0
    sites_max_workers: int = 8
    manual_revoke_url: str = "https://account.live.com/consent/Manage"
    max_download_bytes: int = 100 * 1024 * 1024


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        OD_CLIENT_ID: Azure AD application (client) ID.
        OD_CLIENT_SECRET: Azure AD application client secret.

    Optional environment variables (with defaults):
        OD_TENANT_ID: Azure AD tenant used for token refresh (default: common).
        OD_GRAPH_BASE_URL: Graph API version endpoint.
        OD_REQUEST_TIMEOUT: Per-request socket timeout in seconds (default: 30).
        OD_SITES_MAX_WORKERS: Concurrent per-site drive requests when listing
            SharePoint sites (default: 8).
        OD_MANUAL_REVOKE_URL: Page where users revoke the app's consent.
        OD_MAX_DOWNLOAD_BYTES: Largest file the HTTP download endpoint buffers
            into a single response (default: 104857600).

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        client_id=os.environ["OD_CLIENT_ID"],
        client_secret=os.environ["OD_CLIENT_SECRET"],
        tenant_id=os.environ.get("OD_TENANT_ID", "common"),
        graph_base_url=os.environ.get("OD_GRAPH_BASE_URL", "https://graph.microsoft.com/v1.0"),
        request_timeout=float(os.environ.get("OD_REQUEST_TIMEOUT", "30")),
        sites_max_workers=int(os.environ.get("OD_SITES_MAX_WORKERS", "8")),
        manual_revoke_url=os.environ.get(
            "OD_MANUAL_REVOKE_URL", "https://account.live.com/consent/Manage"
        ),
        max_download_bytes=int(os.environ.get("OD_MAX_DOWNLOAD_BYTES", "104857600")),
    )
