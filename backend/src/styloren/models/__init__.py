"""SQLAlchemy ORM models for the Styloren backend."""
# Import all models here to ensure they are registered with Alembic

from styloren.models.base import Base
from styloren.models.credit_purchase import CreditPurchase
from styloren.models.user_profile import UserProfile
from styloren.models.scan_record import ScanRecord

__all__ = [
    "Base",
    "CreditPurchase",
    "UserProfile",
    "ScanRecord",
]
