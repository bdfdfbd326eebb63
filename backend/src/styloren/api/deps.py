"""FastAPI dependencies for database sessions, authentication and services."""
from typing import AsyncGenerator, Optional
from uuid import UUID

import jwt
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from styloren.auth.jwt import jwt_auth
from styloren.cache import InMemoryCache, RedisCache, cache
from styloren.database import AsyncSessionLocal
from styloren.integrations.ai_gateway import AIGatewayClient
from styloren.integrations.object_storage import ObjectStorageClient
from styloren.services.credit_ledger import CreditLedgerService
from styloren.services.scan_history_service import ScanHistoryService
from styloren.services.styling_service import StylingService

logger = structlog.get_logger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields:
        AsyncSession: Database session for the request lifecycle
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UUID:
    """
    Get the authenticated user's id from the bearer token.

    Raises:
        HTTPException: If token is invalid, expired, or missing
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = credentials.credentials

    try:
        user_id = jwt_auth.get_user_id(token)
    except jwt.ExpiredSignatureError:
        logger.warning("token_expired", token_preview=token[:20] + "...")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        logger.warning("invalid_token", error=str(e), token_preview=token[:20] + "...")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_id


def get_cache() -> InMemoryCache | RedisCache:
    return cache


def get_ai_gateway() -> AIGatewayClient:
    return AIGatewayClient()


def get_storage() -> ObjectStorageClient:
    return ObjectStorageClient()


def get_ledger(
    db: AsyncSession = Depends(get_db),
    state_cache: InMemoryCache | RedisCache = Depends(get_cache),
) -> CreditLedgerService:
    return CreditLedgerService(db, cache=state_cache)


def get_scan_history(
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorageClient = Depends(get_storage),
) -> ScanHistoryService:
    return ScanHistoryService(db, storage=storage)


def get_styling(
    ledger: CreditLedgerService = Depends(get_ledger),
    gateway: AIGatewayClient = Depends(get_ai_gateway),
    scan_history: ScanHistoryService = Depends(get_scan_history),
) -> StylingService:
    return StylingService(ledger, gateway, scan_history)
