"""Access-token refresh for the Microsoft auth provider using MSAL."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import msal

from onedrive_provider.graph.client import GraphAuthError

if TYPE_CHECKING:
    from onedrive_provider.config import AppConfig

logger = logging.getLogger(__name__)

AUTHORITY_BASE_URL = "https://login.microsoftonline.com"
# offline_access is reserved by MSAL and added implicitly
GRAPH_SCOPES = [
    "https://graph.microsoft.com/Files.Read.All",
    "https://graph.microsoft.com/Sites.Read.All",
    "https://graph.microsoft.com/User.Read",
]


@dataclass(frozen=True)
class RefreshedToken:
    """A newly issued access token, plus the rotated refresh token when one is returned."""

    access_token: str
    refresh_token: str | None
    expires_in: int | None


class TokenRefresher:
    """Exchanges refresh tokens for new Graph access tokens."""

    def __init__(self, client_id: str, client_secret: str, tenant_id: str = "common") -> None:
        """Initialise the MSAL confidential client application.

        Args:
            client_id: Azure AD application (client) ID.
            client_secret: Azure AD application client secret.
            tenant_id: Azure AD tenant ID, or "common" for multi-tenant apps.
        """
        authority = f"{AUTHORITY_BASE_URL}/{tenant_id}"
        self._app = msal.ConfidentialClientApplication(
            client_id=client_id,
            client_credential=client_secret,
            authority=authority,
        )

    def refresh(self, refresh_token: str) -> RefreshedToken:
        """Acquire a new access token after the provider rejected the old one.

        Args:
            refresh_token: Refresh token obtained during the original OAuth grant.

        Returns:
            RefreshedToken with the new access token.

        Raises:
            GraphAuthError: If MSAL cannot refresh the token.
        """
        result: dict[str, Any] = (
            self._app.acquire_token_by_refresh_token(refresh_token, scopes=GRAPH_SCOPES) or {}
        )
        if "access_token" not in result:
            error = result.get("error", "unknown_error")
            description = result.get("error_description", "No description provided")
            logger.error("[refresh] MSAL token refresh failed; error:%s", error)
            raise GraphAuthError(f"Token refresh failed: {error} - {description}")
        expires_in = result.get("expires_in")
        return RefreshedToken(
            access_token=str(result["access_token"]),
            refresh_token=result.get("refresh_token"),
            expires_in=int(expires_in) if expires_in is not None else None,
        )


def token_refresher_from_config(config: AppConfig) -> TokenRefresher:
    """Construct a TokenRefresher from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured TokenRefresher instance.
    """
    return TokenRefresher(
        client_id=config.client_id,
        client_secret=config.client_secret,
        tenant_id=config.tenant_id,
    )
