"""Data models for Graph drive listings and normalized provider results."""

from dataclasses import dataclass, field
from typing import Any, BinaryIO

# Graph API JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_DISPLAY_NAME = "displayName"
FIELD_FOLDER = "folder"
FIELD_FILE = "file"
FIELD_MIME_TYPE = "mimeType"
FIELD_SIZE = "size"
FIELD_REMOTE_ITEM = "remoteItem"
FIELD_PARENT_REFERENCE = "parentReference"
FIELD_DRIVE_ID = "driveId"
FIELD_DRIVE_TYPE = "driveType"
FIELD_THUMBNAILS = "thumbnails"
FIELD_LAST_MODIFIED = "lastModifiedDateTime"
FIELD_MAIL = "mail"
FIELD_USER_PRINCIPAL_NAME = "userPrincipalName"
FIELD_ERROR = "error"
FIELD_MESSAGE = "message"

# OData response keys and query options
ODATA_NEXT_LINK = "@odata.nextLink"
ODATA_VALUE = "value"
ODATA_SKIP_TOKEN = "$skiptoken"
ODATA_EXPAND = "$expand"

# Reserved drive id that asks for the SharePoint sites search instead of a drive
SITES_DRIVE_ID = "_listsites_"
ROOT_DIRECTORY = "root"


@dataclass(frozen=True)
class ProviderQuery:
    """Query parameters accepted by provider operations."""

    drive_id: str | None = None
    cursor: str | None = None

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "ProviderQuery":
        """Build a query from request parameters using their wire names."""
        return cls(drive_id=params.get("driveId") or None, cursor=params.get("cursor") or None)


@dataclass
class ProviderItem:
    """A single file, folder or drive projected into the provider-neutral shape."""

    is_folder: bool
    icon: str | None
    name: str
    mime_type: str | None
    id: str
    thumbnail: str | None
    request_path: str
    modified_date: str | None
    size: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "isFolder": self.is_folder,
            "icon": self.icon,
            "name": self.name,
            "mimeType": self.mime_type,
            "id": self.id,
            "thumbnail": self.thumbnail,
            "requestPath": self.request_path,
            "modifiedDate": self.modified_date,
            "size": self.size,
        }


@dataclass
class ListResult:
    """One page of a normalized listing."""

    username: str | None
    items: list[ProviderItem] = field(default_factory=list)
    next_page_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "items": [item.to_dict() for item in self.items],
            "nextPagePath": self.next_page_path,
        }


@dataclass
class DownloadResult:
    """An opened content stream whose HTTP status has already been checked."""

    stream: BinaryIO


@dataclass(frozen=True)
class LogoutResult:
    """Outcome of a logout request."""

    revoked: bool
    manual_revoke_url: str

    def to_dict(self) -> dict[str, Any]:
        return {"revoked": self.revoked, "manual_revoke_url": self.manual_revoke_url}
