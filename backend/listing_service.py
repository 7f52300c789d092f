"""
backend/listing_service.py

Listing use cases: public search and detail, agent create/update/delete,
and image handling through the media uploader.

Image rules:
- At most MAX_FILES files per request, image/* content types only,
  each at most MAX_FILE_BYTES
- Create: every upload must succeed, otherwise the new listing and any
  images already stored are removed and the request fails
- Update: new uploads are appended after the existing images, then
  imagesToDelete (external ids) removes entries from the merged list
- Delete: stored images are destroyed best-effort before the record goes
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from backend.errors import NotFoundError, UpstreamError, ValidationError
from backend.listing_query import ListingSearchParams, build_search_query
from backend.listing_repository import ListingRepository
from backend.media import MediaUploader
from backend.models import Listing, ListingImage, ListingView
from backend.rbac import ensure_owner_or_admin

logger = logging.getLogger(__name__)

MAX_FILES = 5
MAX_FILE_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class UploadedImage:
    """An image file received with a create/update request."""
    filename: str
    content_type: str
    data: bytes


def validate_uploads(files: Sequence[UploadedImage]) -> None:
    """
    Raises:
        ValidationError: Too many files, non-image content or oversized file
    """
    if len(files) > MAX_FILES:
        raise ValidationError(f"You can upload at most {MAX_FILES} images at a time.")
    for f in files:
        if not (f.content_type or "").startswith("image/"):
            raise ValidationError("Not an image! Please upload only images.")
        if len(f.data) > MAX_FILE_BYTES:
            raise ValidationError("Image too large. Maximum size is 10 MB.")


class ListingService:
    def __init__(self, listings: ListingRepository, media: Optional[MediaUploader]):
        self.listings = listings
        self.media = media

    # ------------------------------------------------------------------
    # Public reads
    # ------------------------------------------------------------------
    def search(self, params: ListingSearchParams) -> List[ListingView]:
        return self.listings.search(build_search_query(params))

    def get_active(self, listing_id: str) -> ListingView:
        """
        Fetch an Active listing, counting the view.

        Raises:
            NotFoundError: Listing missing or not Active (indistinguishable)
        """
        listing = self.listings.find_active_and_count_view(listing_id)
        if listing is None:
            raise NotFoundError("No active listing found with that ID.")
        return listing

    def find_by_agent(self, agent_id: str) -> List[ListingView]:
        return self.listings.find_by_agent(agent_id)

    # ------------------------------------------------------------------
    # Agent writes
    # ------------------------------------------------------------------
    def create(self, agent_id: str, fields: Dict[str, Any], files: Sequence[UploadedImage] = ()) -> ListingView:
        """
        Create a Draft listing owned by agent_id and attach uploaded images.

        Raises:
            ValidationError: Invalid upload set
            UpstreamError: An upload failed (listing is rolled back; any other
                uploader error is re-raised after the same rollback)
        """
        validate_uploads(files)
        listing = self.listings.create(agent_id, fields)
        logger.info("[LISTINGS] Created listing_id=%s agent_id=%s", listing.id, agent_id)

        if files:
            try:
                images = self._upload_images(listing.id, listing.title, files, start_index=0)
            except Exception:
                logger.error("[LISTINGS] Upload failed, rolling back listing_id=%s", listing.id)
                self.listings.delete(listing.id)
                raise
            self.listings.set_images(listing.id, images)

        return self.listings.get_view(listing.id)

    def update(
        self,
        listing_id: str,
        user_id: str,
        role: str,
        changes: Dict[str, Any],
        files: Sequence[UploadedImage] = (),
        images_to_delete: Sequence[str] = (),
    ) -> ListingView:
        """
        Apply a partial update as the owning agent or an Admin.

        Raises:
            NotFoundError: No listing with that id
            ForbiddenError: Caller is neither owner nor Admin
            ValidationError: Invalid upload set
            UpstreamError: An upload failed (listing left unchanged)
        """
        listing = self._get_owned(listing_id, user_id, role, "You do not have permission to update this listing.")
        validate_uploads(files)

        images: Optional[List[ListingImage]] = None
        if files or images_to_delete:
            images = list(listing.images)
            if files:
                start = max((image.order_index for image in images), default=-1) + 1
                images.extend(self._upload_images(listing.id, changes.get("title") or listing.title, files, start_index=start))
            if images_to_delete:
                doomed = set(images_to_delete)
                for image in images:
                    if image.external_id in doomed:
                        self._delete_image_quietly(image.external_id)
                images = [image for image in images if image.external_id not in doomed]

        updated = self.listings.update(listing_id, changes, images=images)
        if updated is None:
            raise NotFoundError("No listing found with that ID.")
        logger.info("[LISTINGS] Updated listing_id=%s by user_id=%s", listing_id, user_id)
        return updated

    def delete(self, listing_id: str, user_id: str, role: str) -> None:
        """
        Raises:
            NotFoundError: No listing with that id
            ForbiddenError: Caller is neither owner nor Admin
        """
        listing = self._get_owned(listing_id, user_id, role, "You do not have permission to delete this listing.")
        for image in listing.images:
            self._delete_image_quietly(image.external_id)
        self.listings.delete(listing_id)
        logger.info("[LISTINGS] Deleted listing_id=%s by user_id=%s", listing_id, user_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _get_owned(self, listing_id: str, user_id: str, role: str, message: str) -> Listing:
        listing = self.listings.get(listing_id)
        if listing is None:
            raise NotFoundError("No listing found with that ID.")
        ensure_owner_or_admin(user_id, role, listing.agent_id, message)
        return listing

    def _require_media(self) -> MediaUploader:
        if self.media is None:
            raise UpstreamError("Image storage is not configured.")
        return self.media

    def _upload_images(
        self,
        listing_id: str,
        title: str,
        files: Sequence[UploadedImage],
        start_index: int,
    ) -> List[ListingImage]:
        """
        Upload files in order. On the first failure, images uploaded by this
        call are deleted (best-effort) and the error propagates.
        """
        media = self._require_media()
        uploaded: List[ListingImage] = []
        try:
            for offset, f in enumerate(files):
                asset = media.upload(f.data, folder=listing_id, filename=f.filename, content_type=f.content_type)
                index = start_index + offset
                uploaded.append(ListingImage(
                    url=asset.url,
                    external_id=asset.external_id,
                    alt_text=f"{title} - Photo {index + 1}",
                    order_index=index,
                ))
        except Exception:
            for image in uploaded:
                self._delete_image_quietly(image.external_id)
            raise
        return uploaded

    def _delete_image_quietly(self, external_id: str) -> None:
        if self.media is None or not external_id:
            return
        try:
            self.media.delete(external_id)
        except UpstreamError as e:
            logger.warning("[MEDIA] Could not delete %s: %s", external_id, e.message)
        except Exception:
            logger.exception("[MEDIA] Unexpected error deleting %s", external_id)
