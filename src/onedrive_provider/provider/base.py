"""Capability interface every cloud file provider adapter fulfils."""

from typing import Protocol, runtime_checkable

from onedrive_provider.graph.models import (
    DownloadResult,
    ListResult,
    LogoutResult,
    ProviderQuery,
)


@runtime_checkable
class Provider(Protocol):
    """Operations the upload service invokes on a provider.

    The access token is passed to each call and never retained.
    """

    auth_provider: str

    def list(self, directory: str | None, query: ProviderQuery, token: str) -> ListResult: ...

    def download(self, id: str, query: ProviderQuery, token: str) -> DownloadResult: ...

    def size(self, id: str, query: ProviderQuery, token: str) -> int: ...

    def logout(self) -> LogoutResult: ...

    def thumbnail(self, id: str, token: str) -> bytes: ...
