"""JWT verification for identity-provider access tokens.

Tokens are issued by the external identity provider and signed with a shared
secret (HS256 by default). The ``sub`` claim is the user id every ledger,
profile and scan row is keyed by.
"""
from datetime import timedelta
from typing import Dict, Optional
from uuid import UUID

import jwt

from styloren.config import settings
from styloren.utils.time import utcnow


class JWTAuth:
    """JWT authentication handler with shared-secret signing."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        """Initialize JWT auth from settings unless overridden."""
        self.secret_key = secret_key or settings.jwt_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.audience = audience if audience is not None else settings.jwt_audience
        self.access_token_expire_minutes = 60

    def create_access_token(
        self,
        user_id: UUID,
        email: Optional[str] = None,
        additional_claims: Optional[Dict] = None,
    ) -> str:
        """
        Create an access token the way the identity provider does.

        Used by tests and local tooling; production tokens come from the provider.

        Args:
            user_id: User UUID
            email: User email
            additional_claims: Additional JWT claims

        Returns:
            Encoded JWT token
        """
        now = utcnow()
        claims = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + timedelta(minutes=self.access_token_expire_minutes),
            "role": "authenticated",
        }
        if email:
            claims["email"] = email
        if self.audience:
            claims["aud"] = self.audience
        if additional_claims:
            claims.update(additional_claims)

        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> Dict:
        """
        Verify and decode an access token.

        Returns:
            Decoded token claims

        Raises:
            jwt.ExpiredSignatureError: If token is expired
            jwt.InvalidTokenError: If token is invalid or has no subject
        """
        payload = jwt.decode(
            token,
            self.secret_key,
            algorithms=[self.algorithm],
            audience=self.audience,
            options={"verify_aud": self.audience is not None, "require": ["sub", "exp"]},
        )
        return payload

    def get_user_id(self, token: str) -> UUID:
        """Verify a token and return its subject as a UUID."""
        payload = self.verify_access_token(token)
        try:
            return UUID(payload["sub"])
        except (KeyError, ValueError, TypeError) as e:
            raise jwt.InvalidTokenError("Token subject is not a user id") from e


# Global JWT auth instance
jwt_auth = JWTAuth()
