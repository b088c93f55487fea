"""Authentication utilities: API key guard and Entra ID bearer tokens."""

import secrets
import time
from functools import lru_cache
from typing import Optional, Sequence

import httpx
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core.config import settings
from app.core.enums import UserStatus
from app.core.logging import get_logger
from app.dependencies import get_user_repo
from app.models.user import User
from app.repositories.user_repo import UserRepo

logger = get_logger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)

ENTRA_LOGIN_BASE = "https://login.microsoftonline.com"


async def require_api_key(api_key: Optional[str] = Security(api_key_header)) -> None:
    """Reject requests whose ``X-API-Key`` header does not match ``API_KEY``."""
    if not api_key or not secrets.compare_digest(api_key, settings.API_KEY):
        logger.warning("Rejected request with missing or invalid API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )


class EntraTokenValidator:
    """Validates Entra ID access tokens against the tenant's signing keys.

    The JWKS document is cached for ``jwks_cache_seconds``; an unknown ``kid``
    forces one refresh so key rollover does not lock users out.
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        algorithms: Sequence[str] = ("RS256",),
        jwks_cache_seconds: int = 3600,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.algorithms = list(algorithms)
        self.jwks_cache_seconds = jwks_cache_seconds
        self._transport = transport
        self._jwks: Optional[dict] = None
        self._jwks_fetched_at = 0.0

    @property
    def issuer(self) -> str:
        return f"{ENTRA_LOGIN_BASE}/{self.tenant_id}/v2.0"

    @property
    def jwks_uri(self) -> str:
        return f"{ENTRA_LOGIN_BASE}/{self.tenant_id}/discovery/v2.0/keys"

    async def _get_jwks(self, force_refresh: bool = False) -> dict:
        """Fetch JSON Web Key Set for token validation."""
        expired = time.monotonic() - self._jwks_fetched_at > self.jwks_cache_seconds
        if self._jwks is None or expired or force_refresh:
            async with httpx.AsyncClient(transport=self._transport, timeout=10) as client:
                response = await client.get(self.jwks_uri)
                response.raise_for_status()
                self._jwks = response.json()
                self._jwks_fetched_at = time.monotonic()
                logger.info(f"Entra JWKS loaded from {self.jwks_uri}")
        return self._jwks

    async def decode(self, token: str) -> dict:
        """Verify signature, expiry, issuer and audience; return the claims.

        Raises:
            JWTError: If the token is invalid
        """
        jwks = await self._get_jwks()
        kid = jwt.get_unverified_header(token).get("kid")
        known_kids = {key.get("kid") for key in jwks.get("keys", [])}
        if kid and kid not in known_kids:
            jwks = await self._get_jwks(force_refresh=True)

        return jwt.decode(
            token,
            jwks,
            algorithms=self.algorithms,
            audience=self.client_id,
            issuer=self.issuer,
            options={"verify_at_hash": False},
        )


@lru_cache
def get_token_validator() -> EntraTokenValidator:
    """Process-wide validator so the JWKS cache is shared."""
    return EntraTokenValidator(
        tenant_id=settings.ENTRA_TENANT_ID,
        client_id=settings.ENTRA_CLIENT_ID,
        jwks_cache_seconds=settings.ENTRA_JWKS_CACHE_SECONDS,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    validator: EntraTokenValidator = Depends(get_token_validator),
    user_repo: UserRepo = Depends(get_user_repo),
) -> User:
    """Dependency resolving the Entra bearer token to an active local user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        claims = await validator.decode(credentials.credentials)
    except JWTError as e:
        logger.warning(f"Entra token validation failed: {e}")
        raise credentials_exception from None
    except httpx.HTTPError as e:
        logger.error(f"Could not fetch Entra signing keys: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity provider unavailable",
        ) from e

    login = (
        claims.get("preferred_username") or claims.get("email") or claims.get("upn")
    )
    if not login:
        raise credentials_exception

    user = user_repo.get_by_login(login)
    if user is None or user.status != UserStatus.ACTIVE:
        logger.warning(f"Token for unknown or inactive user {login}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user
