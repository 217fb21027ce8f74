"""Document store — uploads registration documents to Cloudinary over HTTP.

Uses Cloudinary's unsigned upload endpoint, so only the cloud name and an
upload preset are needed.  ``category`` maps onto the Cloudinary folder
(``users`` for profile images, ``documents`` for certificates).
"""

from __future__ import annotations

import logging
import uuid

import httpx

from volunteer_portal.config import settings
from volunteer_portal.errors import DocumentUploadError

logger = logging.getLogger(__name__)


class DocumentStore:
    """Async HTTP wrapper around the Cloudinary upload API."""

    def __init__(
        self,
        cloud_name: str | None = None,
        upload_preset: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cloud_name = cloud_name or settings.cloudinary_cloud_name
        self._upload_preset = upload_preset or settings.cloudinary_upload_preset
        self._base_url = (base_url or settings.cloudinary_base_url).rstrip("/")
        self._transport = transport

    async def upload(
        self, data: bytes, category: str, resource_type: str = "auto"
    ) -> str:
        """Upload *data* into the *category* folder.

        Returns the permanent ``secure_url`` of the stored file.
        """
        url = f"{self._base_url}/{self._cloud_name}/{resource_type}/upload"
        files = {"file": (uuid.uuid4().hex, data)}
        form = {"upload_preset": self._upload_preset, "folder": category}
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=30) as client:
                resp = await client.post(url, data=form, files=files)
        except httpx.HTTPError as exc:
            logger.exception("Document upload request error: %s", exc)
            raise DocumentUploadError() from exc

        if resp.status_code != 200:
            logger.error("Document upload failed: %s %s", resp.status_code, resp.text)
            raise DocumentUploadError()

        secure_url = resp.json().get("secure_url")
        if not secure_url:
            logger.error("Document upload returned no URL: %s", resp.text)
            raise DocumentUploadError()

        logger.info("Uploaded %d bytes to %s", len(data), category)
        return secure_url
