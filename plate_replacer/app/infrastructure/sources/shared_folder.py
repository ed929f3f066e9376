"""Image source backed by a public shared (Google Drive) folder.

The folder page is fetched as HTML and scanned for ``/file/d/<id>`` links; no
Drive API client is involved. When the page cannot be fetched or lists no
files, the run degrades to a fixed pair of sample images instead of aborting.
"""
from __future__ import annotations

import re
from typing import Any, Sequence

from loguru import logger

from plate_replacer.app.constants import FALLBACK_IMAGE_LOCATIONS, LOG_BODY_PREVIEW_LENGTH
from plate_replacer.app.core import SERVICE_NAME
from plate_replacer.app.domain.errors import ConfigurationError, ListingError
from plate_replacer.app.ports.http_client import (
    AbstractHttpClient,
    HttpClientError,
    RequestTimeout,
)

FILE_ID_PATTERN = re.compile(r"/file/d/([a-zA-Z0-9_-]+)")
MIN_FILE_ID_LENGTH = 11
DOWNLOAD_URL_TEMPLATE = "{origin}/uc?export=download&id={identifier}"
LISTING_ACCEPT = "text/html,application/xhtml+xml,application/xml"


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def extract_folder_id(reference: str) -> str:
    """Return the folder id from a ``.../folders/<id>[/...][?...]`` reference."""
    if "/folders/" not in reference:
        raise ConfigurationError(
            f"invalid shared folder reference (missing '/folders/' segment): {reference!r}"
        )
    folder_id = reference.split("/folders/", 1)[1].split("/", 1)[0].split("?", 1)[0]
    if not folder_id:
        raise ConfigurationError(f"invalid shared folder reference (empty folder id): {reference!r}")
    return folder_id


def extract_file_ids(listing: str) -> list[str]:
    """Unique file ids in first-seen order."""
    found = (m.group(1) for m in FILE_ID_PATTERN.finditer(listing))
    return list(dict.fromkeys(fid for fid in found if len(fid) >= MIN_FILE_ID_LENGTH))


class SharedFolderSource:
    def __init__(
        self,
        client: AbstractHttpClient,
        reference: str,
        *,
        origin: str = "https://drive.google.com",
        timeout: RequestTimeout,
        fallback: Sequence[str] = FALLBACK_IMAGE_LOCATIONS,
    ) -> None:
        self._client = client
        self._reference = reference
        self._origin = origin.rstrip("/")
        self._timeout = timeout
        self._fallback = list(fallback)

    def download_url(self, identifier: str) -> str:
        return DOWNLOAD_URL_TEMPLATE.format(origin=self._origin, identifier=identifier)

    async def _fetch_listing(self, folder_id: str) -> str:
        url = f"{self._origin}/drive/folders/{folder_id}"
        try:
            response = await self._client.get(
                url,
                timeout=self._timeout,
                follow_redirects=True,
                headers={"Accept": LISTING_ACCEPT},
            )
            response.raise_for_status()
        except HttpClientError as exc:
            raise ListingError(f"folder listing failed for {url}: {exc}") from exc
        return response.text

    async def resolve(self) -> list[str]:
        folder_id = extract_folder_id(self._reference)
        _log("shared_folder_listing", folder_id=folder_id)

        try:
            listing = await self._fetch_listing(folder_id)
        except ListingError as exc:
            logger.warning("shared folder unavailable, using fallback images: {}", exc)
            return self._use_fallback(folder_id, reason="listing_failed")

        identifiers = extract_file_ids(listing)
        if not identifiers:
            logger.warning(
                "no files found in shared folder {} (folder may be private); listing starts: {!r}",
                folder_id,
                listing[:LOG_BODY_PREVIEW_LENGTH],
            )
            return self._use_fallback(folder_id, reason="empty_listing")

        locations = [self.download_url(identifier) for identifier in identifiers]
        _log("shared_folder_listed", folder_id=folder_id, count=len(locations))
        return locations

    def _use_fallback(self, folder_id: str, *, reason: str) -> list[str]:
        _log("fallback_images_used", folder_id=folder_id, reason=reason, count=len(self._fallback))
        return list(self._fallback)
