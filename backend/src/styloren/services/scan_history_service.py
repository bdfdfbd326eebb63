"""Service for saved outfit scans and their private images."""
import asyncio
import base64
import binascii
import re
import time
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from styloren.config import settings
from styloren.exceptions import InvalidInputError, NoCreditsError, ScanNotFoundError, StorageError
from styloren.integrations.object_storage import ObjectStorageClient
from styloren.metrics import scans_saved_total
from styloren.models.scan_record import ScanRecord
from styloren.repositories.scan_records import ScanRecordRepository
from styloren.schemas.scan import ScanHistoryItem, ScanHistoryPage

logger = structlog.get_logger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")


def get_storage_path(image_url: str | None, bucket: str | None = None) -> str | None:
    """
    Extract the object path from a stored value.

    Stored values are normally plain paths (``{user_id}/{millis}.jpg``); older
    rows may hold a full storage URL, in which case the part after the bucket
    name is the path.
    """
    if not image_url:
        return None
    if not image_url.startswith("http"):
        return image_url

    bucket = bucket or settings.storage_bucket
    match = re.search(rf"{re.escape(bucket)}/(.+)$", image_url)
    return match.group(1) if match else None


def decode_image(image_data_url: str) -> bytes:
    """Decode a base64 data URL (or bare base64) into raw bytes."""
    payload = _DATA_URL_PREFIX.sub("", image_data_url)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError("Image is not valid base64") from e


class ScanHistoryService:
    """Save, list and delete scans; images live in private object storage."""

    def __init__(self, db: AsyncSession, storage: ObjectStorageClient | None = None):
        """Initialize scan history service with database session and storage client."""
        self.db = db
        self.storage = storage or ObjectStorageClient()
        self.scans = ScanRecordRepository(db)
        self.page_size = settings.scan_history_page_size
        self.free_history_limit = settings.free_history_limit

    async def save_scan(
        self,
        user_id: UUID,
        image_data_url: str,
        analysis_text: str,
        style_score: int | None = None,
        outfit_category: str | None = None,
    ) -> ScanRecord:
        """
        Upload the image and record the analysis.

        Only the storage path is persisted, so reads always go through signed URLs.

        Raises:
            InvalidInputError: If the image cannot be decoded
            StorageError: If the upload fails (no row is written)
            PersistenceError: If the row cannot be written
        """
        data = decode_image(image_data_url)
        path = f"{user_id}/{int(time.time() * 1000)}.jpg"

        await self.storage.upload(path, data, content_type="image/jpeg")
        record = await self.scans.insert(
            user_id=user_id,
            image_path=path,
            analysis_text=analysis_text,
            style_score=style_score,
            outfit_category=outfit_category,
        )

        scans_saved_total.inc()
        logger.info("scan_saved", user_id=str(user_id), scan_id=str(record.id), path=path)
        return record

    async def list_scans(self, user_id: UUID, page: int = 0, has_credits: bool = False) -> ScanHistoryPage:
        """
        Get one page of history, newest first, with signed image URLs.

        Users without credits see only the first ``free_history_limit`` scans
        overall; the remainder of the page is returned as locked.
        """
        offset = page * self.page_size
        records = await self.scans.list_page(user_id, offset=offset, limit=self.page_size)
        items = await asyncio.gather(*(self._with_signed_url(record) for record in records))

        if has_credits:
            visible, locked = list(items), []
        else:
            free_on_page = max(0, self.free_history_limit - offset)
            visible, locked = list(items[:free_on_page]), list(items[free_on_page:])

        return ScanHistoryPage(
            visible=visible,
            locked=locked,
            page=page,
            has_more=len(records) == self.page_size,
        )

    async def delete_scan(self, user_id: UUID, scan_id: UUID, has_credits: bool) -> None:
        """
        Delete one scan, row first, then its image.

        Raises:
            NoCreditsError: Deleting single scans is a paid feature
            ScanNotFoundError: If the scan does not belong to the user
        """
        if not has_credits:
            raise NoCreditsError("Deleting individual scans requires credits")

        record = await self.scans.get(user_id, scan_id)
        if record is None:
            raise ScanNotFoundError(f"Scan {scan_id} not found")

        path = get_storage_path(record.image_path, self.storage.bucket)
        await self.scans.delete_matching(user_id, scan_id=scan_id)
        logger.info("scan_deleted", user_id=str(user_id), scan_id=str(scan_id))

        if path:
            await self._remove_images(user_id, [path])

    async def delete_all_scans(self, user_id: UUID) -> int:
        """Delete every scan of a user and their images. Returns rows deleted."""
        stored = await self.scans.list_image_paths(user_id)
        deleted = await self.scans.delete_matching(user_id)

        paths = [p for p in (get_storage_path(s, self.storage.bucket) for s in stored) if p]
        await self._remove_images(user_id, paths)

        logger.info("scan_history_cleared", user_id=str(user_id), deleted=deleted)
        return deleted

    async def _with_signed_url(self, record: ScanRecord) -> ScanHistoryItem:
        item = ScanHistoryItem.model_validate(record)
        path = get_storage_path(record.image_path, self.storage.bucket)
        if not path:
            return item

        try:
            signed = await self.storage.create_signed_url(path, settings.signed_url_expiry_seconds)
        except StorageError as e:
            logger.warning("scan_signed_url_failed", scan_id=str(record.id), error=str(e))
            return item

        return item.model_copy(update={"signed_image_url": signed})

    async def _remove_images(self, user_id: UUID, paths: list[str]) -> None:
        # Rows are already gone at this point; storage failures are only logged.
        try:
            await self.storage.remove(paths)
        except StorageError as e:
            logger.error("scan_image_removal_failed", user_id=str(user_id), count=len(paths), error=str(e))
