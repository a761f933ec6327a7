"""
Zoho WorkDrive document storage.

Uploads go to a configured WorkDrive folder. After an upload the client tries
to create a public download link; if that fails the file's permalink is
returned instead, so a successful upload always yields a usable URL.

Access tokens come from the OAuth refresh-token grant and are cached in
memory until 60 seconds before Zoho says they expire.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
import structlog

from amoria_admin import config
from amoria_admin.cache import CachedCredential, Token
from amoria_admin.errors import StorageError
from amoria_admin.metrics import token_refreshes, vendor_latency, vendor_requests

logger = structlog.get_logger(__name__)

TOKEN_URL = "https://accounts.zoho.com/oauth/v2/token"
WORKDRIVE_API = "https://workdrive.zoho.com/api/v1"
EXPIRY_MARGIN_SECONDS = 60
REQUEST_TIMEOUT = 60

UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass(frozen=True)
class UploadedFile:
    file_id: str
    permalink: str


def sanitize_file_name(title: str, original_name: str) -> str:
    """
    Build the stored file name from a document title and the uploaded file's name.

    Example:
        >>> sanitize_file_name("Passport Scan (front)", "IMG_0042.JPG")
        'passport_scan__front_.JPG'
    """
    base = UNSAFE_NAME_CHARS.sub("_", title).lower()
    _, dot, extension = original_name.rpartition(".")
    return f"{base}.{extension}" if dot and extension else base


class ZohoWorkDriveClient:
    """
    Thin wrapper over the WorkDrive upload, link and delete endpoints.

    Example:
        >>> client = ZohoWorkDriveClient("id", "secret", "refresh", "org")
        >>> uploaded = client.upload_file(b"...", "contract.pdf", folder_id="abc")
        >>> client.create_public_link(uploaded.file_id)
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
        org_id: Optional[str],
        session: Optional[requests.Session] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.org_id = org_id
        self.session = session or requests.Session()
        self.credential = CachedCredential(self._request_access_token)

    @classmethod
    def from_config(cls) -> "ZohoWorkDriveClient":
        return cls(
            config.ZOHO_CLIENT_ID,
            config.ZOHO_CLIENT_SECRET,
            config.ZOHO_REFRESH_TOKEN,
            config.ZOHO_WORKDRIVE_ORG_ID,
        )

    def _request_access_token(self) -> Token:
        """Run the refresh-token grant. Called by the credential, under its lock."""
        if not (self.client_id and self.client_secret and self.refresh_token):
            raise StorageError("Zoho credentials are not configured")

        logger.info("zoho_token_refresh_requested")
        try:
            response = self.session.post(
                TOKEN_URL,
                data={
                    "refresh_token": self.refresh_token,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "grant_type": "refresh_token",
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=REQUEST_TIMEOUT,
            )
            vendor_requests.labels(vendor="zoho", status_code=str(response.status_code)).inc()
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("zoho_token_refresh_failed", error=str(e))
            raise StorageError(f"Failed to get access token: {e}") from e

        body = response.json()
        access_token = body.get("access_token")
        if not isinstance(access_token, str):
            # Zoho answers 200 with {"error": "..."} for a revoked refresh token
            logger.error("zoho_token_missing", error=body.get("error"))
            raise StorageError(f"Failed to get access token: {body.get('error', 'no access_token')}")

        token_refreshes.labels(provider="zoho").inc()
        return Token.expiring_in(
            access_token, float(body.get("expires_in", 3600)), EXPIRY_MARGIN_SECONDS
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.credential.get_or_refresh()}",
            "X-ZGWORKDRIVE-ORGID": self.org_id or "",
        }

    def _call(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        start_time = time.time()
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=REQUEST_TIMEOUT, **kwargs
            )
        except requests.RequestException:
            vendor_requests.labels(vendor="zoho", status_code="error").inc()
            raise
        finally:
            vendor_latency.labels(vendor="zoho").observe(time.time() - start_time)
        vendor_requests.labels(vendor="zoho", status_code=str(response.status_code)).inc()
        response.raise_for_status()
        return response

    def upload_file(self, content: bytes, file_name: str, folder_id: str) -> UploadedFile:
        """
        Upload bytes into a WorkDrive folder.

        Raises:
            StorageError: If the upload fails or the response lacks id/permalink
        """
        try:
            response = self._call(
                "POST",
                f"{WORKDRIVE_API}/upload",
                files={"content": (file_name, content)},
                data={"parent_id": folder_id, "override-name-exist": "false"},
            )
        except requests.RequestException as e:
            detail = getattr(getattr(e, "response", None), "text", None)
            logger.error("zoho_upload_failed", file_name=file_name, error=str(e), detail=detail)
            raise StorageError(f"Upload failed: {e}") from e

        body = response.json()
        logger.debug("zoho_upload_response", body=body)

        entries = body.get("data") or []
        if not entries:
            raise StorageError("No file data in response")

        attributes = entries[0].get("attributes") or {}
        file_id = attributes.get("resource_id")
        permalink = attributes.get("Permalink")
        if not file_id or not permalink:
            logger.error("zoho_upload_incomplete", attributes=attributes)
            raise StorageError("File uploaded but missing required data in response")

        logger.info("zoho_file_uploaded", file_id=file_id, file_name=file_name)
        return UploadedFile(file_id=file_id, permalink=permalink)

    def create_public_link(self, file_id: str) -> str:
        """
        Create a non-expiring public download link for an uploaded file.

        Raises:
            StorageError: If the request fails or the response has no link
        """
        try:
            response = self._call(
                "POST",
                f"{WORKDRIVE_API}/files/{file_id}/links",
                json={
                    "link_name": "Public Link",
                    "link_type": "download",
                    "expiry_date": None,
                    "allow_download": True,
                },
            )
        except requests.RequestException as e:
            logger.error("zoho_link_failed", file_id=file_id, error=str(e))
            raise StorageError(f"Failed to create public link: {e}") from e

        link = ((response.json().get("data") or {}).get("attributes") or {}).get("link")
        if not link:
            raise StorageError("Failed to retrieve public link from response")
        return link

    def delete_file(self, file_id: str) -> None:
        """Delete a file. Request errors propagate to the caller."""
        self._call("DELETE", f"{WORKDRIVE_API}/files/{file_id}")
        logger.info("zoho_file_deleted", file_id=file_id)


def upload_document(
    client: ZohoWorkDriveClient,
    content: bytes,
    original_name: str,
    title: str,
    folder_id: Optional[str] = None,
) -> str:
    """
    Upload a document and return a URL for it.

    The public link is preferred; any failure creating it falls back to the
    upload's permalink.

    Raises:
        StorageError: If the upload itself fails
    """
    target_folder = folder_id or config.ZOHO_DOCUMENTS_FOLDER_ID
    if not target_folder:
        raise StorageError("ZOHO_DOCUMENTS_FOLDER_ID is not configured")

    uploaded = client.upload_file(content, sanitize_file_name(title, original_name), target_folder)

    try:
        return client.create_public_link(uploaded.file_id)
    except Exception as e:
        logger.warning("zoho_link_fallback_to_permalink", file_id=uploaded.file_id, error=str(e))
        return uploaded.permalink


def delete_document(client: ZohoWorkDriveClient, file_id: str) -> None:
    client.delete_file(file_id)
