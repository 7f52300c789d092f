"""
backend/media.py

Media uploader: relays listing images to Cloudinary and deletes them again.

Talks to the Cloudinary REST API directly (signed upload/destroy calls):
  POST https://api.cloudinary.com/v1_1/<cloud>/image/upload
  POST https://api.cloudinary.com/v1_1/<cloud>/image/destroy

Signature = sha1("<sorted k=v params joined by &>" + api_secret), where the
signed params exclude file, api_key and resource_type.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import requests

from backend.config import Settings
from backend.errors import ConfigError, UpstreamError

logger = logging.getLogger(__name__)

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"
ROOT_FOLDER = "realestate"


@dataclass(frozen=True)
class MediaAsset:
    url: str
    external_id: str


class MediaUploader(Protocol):
    def upload(self, data: bytes, folder: str, filename: str, content_type: str) -> MediaAsset: ...

    def delete(self, external_id: str) -> None: ...


def _json_body(resp: requests.Response) -> Dict[str, Any]:
    """Response body as a dict; empty for non-JSON (e.g. a proxy error page)."""
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def sign_params(params: Dict[str, str], api_secret: str) -> str:
    """Cloudinary request signature for the given (already filtered) params."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


class CloudinaryUploader:
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        session: Optional[requests.Session] = None,
        timeout: int = 20,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self._api_secret = api_secret
        self.session = session or requests.Session()
        self.timeout = timeout

    def _endpoint(self, action: str) -> str:
        return f"{CLOUDINARY_API_BASE}/{self.cloud_name}/image/{action}"

    def _signed(self, params: Dict[str, str]) -> Dict[str, str]:
        params = dict(params, timestamp=str(int(time.time())))
        return dict(params, api_key=self.api_key, signature=sign_params(params, self._api_secret))

    def upload(self, data: bytes, folder: str, filename: str, content_type: str) -> MediaAsset:
        """
        Upload image bytes under realestate/<folder>.

        Raises:
            UpstreamError: Network failure, non-2xx response or unexpected body
        """
        payload = self._signed({"folder": f"{ROOT_FOLDER}/{folder}"})
        try:
            resp = self.session.post(
                self._endpoint("upload"),
                data=payload,
                files={"file": (filename, data, content_type)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("[MEDIA] Upload request failed: %s", type(e).__name__)
            raise UpstreamError("Failed to upload image.") from e

        if resp.status_code >= 400:
            logger.error("[MEDIA] Upload rejected: status=%s body=%s", resp.status_code, resp.text[:300])
            raise UpstreamError("Failed to upload image.")

        body = _json_body(resp)
        url = body.get("secure_url") or body.get("url")
        public_id = body.get("public_id")
        if not url or not public_id:
            logger.error("[MEDIA] Upload response missing url/public_id")
            raise UpstreamError("Failed to upload image.")

        logger.info("[MEDIA] Uploaded %s", public_id)
        return MediaAsset(url=url, external_id=public_id)

    def delete(self, external_id: str) -> None:
        """
        Destroy a stored image. Empty ids are ignored.

        Raises:
            UpstreamError: Network failure or Cloudinary did not answer "ok"
        """
        if not external_id:
            return

        payload = self._signed({"public_id": external_id})
        try:
            resp = self.session.post(self._endpoint("destroy"), data=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("[MEDIA] Delete request failed for %s: %s", external_id, type(e).__name__)
            raise UpstreamError(f"Failed to delete image {external_id}.") from e

        result = _json_body(resp).get("result") if resp.status_code < 400 else None
        if result != "ok":
            logger.error("[MEDIA] Delete rejected for %s: status=%s result=%s", external_id, resp.status_code, result)
            raise UpstreamError(f"Failed to delete image {external_id}.")

        logger.info("[MEDIA] Deleted %s", external_id)


def build_media_uploader(settings: Settings) -> CloudinaryUploader:
    """
    Raises:
        ConfigError: If Cloudinary credentials are missing
    """
    if not settings.has_media_credentials:
        raise ConfigError("Cloudinary credentials are missing from environment variables.")
    return CloudinaryUploader(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
    )
