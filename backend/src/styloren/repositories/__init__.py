"""Row-storage repositories over async SQLAlchemy sessions."""

from styloren.repositories.credit_purchases import CreditPurchaseRepository
from styloren.repositories.scan_records import ScanRecordRepository
from styloren.repositories.user_profiles import UserProfileRepository

__all__ = [
    "CreditPurchaseRepository",
    "ScanRecordRepository",
    "UserProfileRepository",
]
