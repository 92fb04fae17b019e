"""OneDrive / SharePoint adapter for the Microsoft Graph v1.0 drive API.

See https://learn.microsoft.com/onedrive/developer/rest-api/
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any, TypeVar

from onedrive_provider.graph.adapter import adapt_data
from onedrive_provider.graph.client import (
    DEFAULT_TIMEOUT_SECONDS,
    GRAPH_BASE_URL,
    GraphApiError,
    GraphClient,
    get_client,
)
from onedrive_provider.graph.models import (
    FIELD_DISPLAY_NAME,
    FIELD_ERROR,
    FIELD_ID,
    FIELD_MAIL,
    FIELD_MESSAGE,
    FIELD_SIZE,
    FIELD_USER_PRINCIPAL_NAME,
    ODATA_EXPAND,
    ODATA_SKIP_TOKEN,
    ODATA_VALUE,
    ROOT_DIRECTORY,
    SITES_DRIVE_ID,
    DownloadResult,
    ListResult,
    LogoutResult,
    ProviderItem,
    ProviderQuery,
)
from onedrive_provider.graph.pagination import get_next_page_path
from onedrive_provider.provider.errors import (
    ProviderUnimplementedError,
    with_provider_error_handling,
)

if TYPE_CHECKING:
    from onedrive_provider.config import AppConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUTH_PROVIDER = "microsoft"
MANUAL_REVOKE_URL = "https://account.live.com/consent/Manage"
DEFAULT_SITES_MAX_WORKERS = 8

TAG_LIST = "provider.onedrive.list.error"
TAG_DOWNLOAD = "provider.onedrive.download.error"
TAG_SIZE = "provider.onedrive.size.error"
TAG_THUMBNAIL = "provider.onedrive.thumbnail.error"


def get_root_path(query: ProviderQuery) -> str:
    """Return the collection path item ids are resolved under."""
    return f"drives/{query.drive_id}" if query.drive_id else "me/drive"


def _gather(calls: list[Callable[[], T]], max_workers: int) -> list[T]:
    """Run callables concurrently and return their results in call order.

    The first failure is re-raised as soon as it is observed; calls that have
    not started yet are cancelled.
    """
    if not calls:
        return []
    pool = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(calls))))
    try:
        futures = [pool.submit(call) for call in calls]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done:
                error = future.exception()
                if error is not None:
                    raise error
        return [future.result() for future in futures]
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


class OneDriveProvider:
    """Provider adapter translating list/download/size/logout/thumbnail into Graph calls."""

    auth_provider = AUTH_PROVIDER

    def __init__(
        self,
        base_url: str = GRAPH_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        sites_max_workers: int = DEFAULT_SITES_MAX_WORKERS,
        manual_revoke_url: str = MANUAL_REVOKE_URL,
    ) -> None:
        """Initialise the adapter.

        Args:
            base_url: Graph API version endpoint every request is resolved against.
            timeout: Socket timeout in seconds for each Graph request.
            sites_max_workers: Upper bound on concurrent per-site drive requests
                when listing SharePoint sites.
            manual_revoke_url: Account page where users revoke app consent.
        """
        if sites_max_workers < 1:
            raise ValueError("sites_max_workers must be at least 1")
        self._base_url = base_url
        self._timeout = timeout
        self._sites_max_workers = sites_max_workers
        self._manual_revoke_url = manual_revoke_url

    def _client(self, token: str) -> GraphClient:
        return get_client(token, base_url=self._base_url, timeout=self._timeout)

    def list(self, directory: str | None, query: ProviderQuery, token: str) -> ListResult:
        """List drives, SharePoint sites, or the children of a folder.

        The user profile and the listing are fetched in parallel; both must
        succeed before the page is built.

        Args:
            directory: Item id of the folder to open; None or "root" for the drive root.
            query: Drive selection and page cursor.
            token: OAuth access token.

        Returns:
            One normalized page of items.
        """

        def run() -> ListResult:
            path, params = self._list_target(directory, query)
            client = self._client(token)

            profile, listing = _gather(
                [lambda: client.get("me"), lambda: client.get(path, params)],
                max_workers=2,
            )
            username = profile.get(FIELD_MAIL) or profile.get(FIELD_USER_PRINCIPAL_NAME)

            if query.drive_id == SITES_DRIVE_ID:
                return self.adapt_sharepoint_sites_data(listing, username, token)
            return adapt_data(listing, username, is_drive_list=not query.drive_id)

        return self._with_error_handling(TAG_LIST, run)

    @staticmethod
    def _list_target(directory: str | None, query: ProviderQuery) -> tuple[str, dict[str, str]]:
        """Choose the Graph path and query options for a list call."""
        params: dict[str, str] = {}
        if not query.drive_id:
            path = "me/drives"
        elif query.drive_id == SITES_DRIVE_ID:
            path = "sites"
            params["search"] = ""
        else:
            path = f"drives/{query.drive_id}/"
            if directory and directory != ROOT_DIRECTORY:
                path += f"items/{directory}"
            else:
                path += ROOT_DIRECTORY
            path += "/children"
            params[ODATA_EXPAND] = "thumbnails"

        if query.cursor:
            params[ODATA_SKIP_TOKEN] = query.cursor
        return path, params

    def adapt_sharepoint_sites_data(
        self, res: dict[str, Any], username: str | None, token: str
    ) -> ListResult:
        """Expand a sites search page into the drives of every site.

        Each drive name is prefixed with its site's display name so that
        libraries with the same name in different sites stay distinguishable.
        Per-site requests run concurrently, bounded by ``sites_max_workers``;
        the result keeps site order and carries the cursor of the sites page.
        """

        def run() -> ListResult:
            sites = res.get(ODATA_VALUE, [])
            client = self._client(token)

            def site_drives(site: dict[str, Any]) -> list[ProviderItem]:
                response = client.get(f"sites/{site[FIELD_ID]}/drives")
                drives = adapt_data(response, is_drive_list=True).items
                site_name = site.get(FIELD_DISPLAY_NAME)
                if site_name:
                    for drive in drives:
                        drive.name = f"{site_name} {drive.name}"
                return drives

            per_site = _gather(
                [lambda site=site: site_drives(site) for site in sites],
                max_workers=self._sites_max_workers,
            )
            logger.info(
                "[adapt_sharepoint_sites_data] loaded site drives; site_count:%d", len(sites)
            )
            return ListResult(
                username=username,
                items=[drive for drives in per_site for drive in drives],
                next_page_path=get_next_page_path(res),
            )

        return self._with_error_handling(TAG_LIST, run)

    def download(self, id: str, query: ProviderQuery, token: str) -> DownloadResult:
        """Open a content stream for an item.

        Returns:
            DownloadResult whose stream the caller must read and close.
        """

        def run() -> DownloadResult:
            stream = self._client(token).open_stream(f"{get_root_path(query)}/items/{id}/content")
            return DownloadResult(stream=stream)

        return self._with_error_handling(TAG_DOWNLOAD, run)

    def thumbnail(self, id: str | None = None, token: str | None = None) -> bytes:
        """Refuse to fetch a thumbnail; listing items already carry a public thumbnail URL.

        Args:
            id: Item id (unused).
            token: OAuth access token (unused).

        Raises:
            ProviderUnimplementedError: Always, without any network request.
        """
        logger.error("[thumbnail] call to thumbnail is not implemented; tag:%s", TAG_THUMBNAIL)
        raise ProviderUnimplementedError(
            "call to thumbnail is not implemented", TAG_THUMBNAIL, self.auth_provider
        )

    def size(self, id: str, query: ProviderQuery, token: str) -> int:
        """Return the byte size of an item."""

        def run() -> int:
            metadata = self._client(token).get(f"{get_root_path(query)}/items/{id}")
            return int(metadata[FIELD_SIZE])

        return self._with_error_handling(TAG_SIZE, run)

    def logout(self) -> LogoutResult:
        """Report that consent must be revoked by the user; Graph has no revoke endpoint."""
        return LogoutResult(revoked=False, manual_revoke_url=self._manual_revoke_url)

    def _with_error_handling(self, tag: str, fn: Callable[[], T]) -> T:
        return with_provider_error_handling(
            fn,
            tag=tag,
            provider_name=self.auth_provider,
            is_auth_error=_is_auth_error,
            get_json_error_message=_get_json_error_message,
        )


def _is_auth_error(error: GraphApiError) -> bool:
    return error.status_code == 401


def _get_json_error_message(body: Any) -> str | None:
    return body.get(FIELD_ERROR, {}).get(FIELD_MESSAGE)


def onedrive_provider_from_config(config: AppConfig) -> OneDriveProvider:
    """Construct a OneDriveProvider from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured OneDriveProvider instance.
    """
    return OneDriveProvider(
        base_url=config.graph_base_url,
        timeout=config.request_timeout,
        sites_max_workers=config.sites_max_workers,
        manual_revoke_url=config.manual_revoke_url,
    )
