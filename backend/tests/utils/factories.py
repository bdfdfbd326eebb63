"""Test data factories using Faker for generating realistic test data."""
import base64
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

from faker import Faker

from styloren.models.credit_purchase import CreditPurchase
from styloren.models.scan_record import ScanRecord
from styloren.schemas.credit import CreditBatch

fake = Faker()

# Smallest valid JPEG header bytes; content is never decoded as an image
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


def image_data_url(payload: bytes = JPEG_BYTES) -> str:
    """A data:image/jpeg URL wrapping ``payload``."""
    return "data:image/jpeg;base64," + base64.b64encode(payload).decode()


class CreditPurchaseFactory:
    """Factory for creating credit batch rows."""

    @staticmethod
    def create(
        user_id: UUID,
        now: datetime,
        overrides: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Create batch row data relative to ``now``.

        Args:
            user_id: Owner of the batch
            now: Reference time; purchase is in the past, expiry in the future
            overrides: Optional field overrides

        Returns:
            dict: Row data
        """
        validity_days = fake.random_element([15, 30, 90])
        purchased_at = now - timedelta(days=fake.random_int(min=0, max=validity_days - 1))
        data = {
            "id": uuid4(),
            "user_id": user_id,
            "credits_total": fake.random_element([10, 50, 100]),
            "credits_used": 0,
            "purchased_at": purchased_at,
            "expires_at": purchased_at + timedelta(days=validity_days),
            "plan_name": fake.random_element(["Quick Try", "Monthly Value", "Quarterly Saver"]),
        }
        if overrides:
            data.update(overrides)
        return data

    @staticmethod
    def build(user_id: UUID, now: datetime, **overrides: Any) -> CreditPurchase:
        return CreditPurchase(**CreditPurchaseFactory.create(user_id, now, overrides))


def make_batch(now: datetime, **overrides: Any) -> CreditBatch:
    """A CreditBatch evaluated at ``now`` from factory row data."""
    row = CreditPurchaseFactory.create(overrides.pop("user_id", uuid4()), now, overrides)
    return CreditBatch.from_row(row, now)


class ScanRecordFactory:
    """Factory for creating saved scan rows."""

    @staticmethod
    def create(user_id: UUID, overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        path = f"{user_id}/{fake.unique.random_int(min=1_700_000_000_000, max=1_800_000_000_000)}.jpg"
        data = {
            "user_id": user_id,
            "image_path": path,
            "thumbnail_path": path,
            "analysis_text": fake.paragraph(nb_sentences=4),
            "style_score": fake.random_int(min=1, max=10),
            "outfit_category": fake.random_element(["Casual", "Formal", "Festive", "Streetwear"]),
        }
        if overrides:
            data.update(overrides)
        return data

    @staticmethod
    def build(user_id: UUID, **overrides: Any) -> ScanRecord:
        return ScanRecord(**ScanRecordFactory.create(user_id, overrides))
