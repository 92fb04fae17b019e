"""Normalization of Graph drive and driveItem collections into ListResult pages."""

from typing import Any
from urllib.parse import urlencode

from onedrive_provider.graph.models import (
    FIELD_DRIVE_ID,
    FIELD_FILE,
    FIELD_FOLDER,
    FIELD_ID,
    FIELD_LAST_MODIFIED,
    FIELD_MIME_TYPE,
    FIELD_NAME,
    FIELD_PARENT_REFERENCE,
    FIELD_REMOTE_ITEM,
    FIELD_SIZE,
    FIELD_THUMBNAILS,
    ODATA_VALUE,
    ROOT_DIRECTORY,
    ListResult,
    ProviderItem,
)
from onedrive_provider.graph.pagination import get_next_page_path

FOLDER_ICON = "folder"
FILE_ICON = "file"


def _target(item: dict[str, Any]) -> dict[str, Any]:
    """Return the item that carries the real metadata (the remote item for shared links)."""
    return item.get(FIELD_REMOTE_ITEM) or item


def is_folder(item: dict[str, Any]) -> bool:
    """Whether the item (or the remote item it links to) is a folder.

    Args:
        item: Raw Graph driveItem.

    Returns:
        True for folders, False for files.
    """
    return FIELD_FOLDER in _target(item)


def get_item_id(item: dict[str, Any]) -> str:
    """Return the id used to address the item, preferring the remote item's id.

    Args:
        item: Raw Graph driveItem.

    Returns:
        Item id, or an empty string when Graph omitted it.
    """
    return _target(item).get(FIELD_ID, "")


def get_mime_type(item: dict[str, Any]) -> str | None:
    """Return the file MIME type; None for folders and items without file facets."""
    return _target(item).get(FIELD_FILE, {}).get(FIELD_MIME_TYPE)


def get_thumbnail_url(item: dict[str, Any]) -> str | None:
    """Return the medium thumbnail URL from an item fetched with ``$expand=thumbnails``.

    Args:
        item: Raw Graph driveItem.

    Returns:
        URL of the first thumbnail set's medium image, or None when absent.
    """
    thumbnails = item.get(FIELD_THUMBNAILS) or []
    if not thumbnails:
        return None
    return thumbnails[0].get("medium", {}).get("url")


def get_item_icon(item: dict[str, Any]) -> str:
    """Return the icon for an item.

    Args:
        item: Raw Graph driveItem.

    Returns:
        "folder" for folders; otherwise the thumbnail URL, or "file" when the
        item has no thumbnail.
    """
    if is_folder(item):
        return FOLDER_ICON
    return get_thumbnail_url(item) or FILE_ICON


def get_request_path(item: dict[str, Any]) -> str:
    """Path a caller passes back to ``list`` to open this item, including its drive."""
    item_id = get_item_id(item)
    drive_id = _target(item).get(FIELD_PARENT_REFERENCE, {}).get(FIELD_DRIVE_ID)
    if not drive_id:
        return item_id
    return f"{item_id}?{urlencode({'driveId': drive_id})}"


def _adapt_drive(drive: dict[str, Any]) -> ProviderItem:
    drive_id = drive.get(FIELD_ID, "")
    return ProviderItem(
        is_folder=True,
        icon=FOLDER_ICON,
        name=drive.get(FIELD_NAME, ""),
        mime_type=None,
        id=drive_id,
        thumbnail=None,
        request_path=f"{ROOT_DIRECTORY}?{urlencode({'driveId': drive_id})}",
        modified_date=drive.get(FIELD_LAST_MODIFIED),
        size=None,
    )


def _adapt_item(item: dict[str, Any]) -> ProviderItem:
    target = _target(item)
    return ProviderItem(
        is_folder=is_folder(item),
        icon=get_item_icon(item),
        name=item.get(FIELD_NAME, ""),
        mime_type=get_mime_type(item),
        id=get_item_id(item),
        thumbnail=get_thumbnail_url(item),
        request_path=get_request_path(item),
        modified_date=item.get(FIELD_LAST_MODIFIED),
        size=target.get(FIELD_SIZE),
    )


def adapt_data(
    res: dict[str, Any], username: str | None = None, is_drive_list: bool = False
) -> ListResult:
    """Convert one Graph collection page into a ListResult.

    Args:
        res: Raw Graph collection response (``value`` plus OData metadata).
        username: Identifier of the signed-in user for attribution.
        is_drive_list: True when ``res`` lists drives rather than driveItems;
            every drive is presented as a browsable folder rooted at its root.

    Returns:
        ListResult preserving the order of ``res["value"]``.
    """
    adapt = _adapt_drive if is_drive_list else _adapt_item
    return ListResult(
        username=username,
        items=[adapt(entry) for entry in res.get(ODATA_VALUE, [])],
        next_page_path=get_next_page_path(res),
    )
