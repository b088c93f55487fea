"""Tests for the API key guard and Entra token validation."""

import base64
import time

import httpx
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError, jwt

from app.core.auth_utils import EntraTokenValidator, get_current_user, require_api_key
from app.core.enums import UserStatus
from app.repositories.user_repo import UserRepo

TENANT_ID = "tenant-1"
CLIENT_ID = "client-1"
SECRET = "entra-test-signing-secret-0123456789"


def _jwk(kid, secret=SECRET):
    k = base64.urlsafe_b64encode(secret.encode()).rstrip(b"=").decode()
    return {"kty": "oct", "kid": kid, "k": k, "alg": "HS256"}


def _token(kid="key-1", secret=SECRET, **overrides):
    claims = {
        "iss": f"https://login.microsoftonline.com/{TENANT_ID}/v2.0",
        "aud": CLIENT_ID,
        "exp": int(time.time()) + 300,
        "preferred_username": "admin@wfzo.test",
    }
    claims.update(overrides)
    return jwt.encode(claims, secret, algorithm="HS256", headers={"kid": kid})


class FakeJwksEndpoint:
    """Serves a rotating JWKS and counts fetches."""

    def __init__(self, *key_sets):
        self.key_sets = list(key_sets)
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        keys = self.key_sets[min(self.calls, len(self.key_sets) - 1)]
        self.calls += 1
        return httpx.Response(200, json={"keys": keys})


def _validator(endpoint):
    return EntraTokenValidator(
        TENANT_ID,
        CLIENT_ID,
        algorithms=["HS256"],
        transport=httpx.MockTransport(endpoint),
    )


class TestRequireApiKey:
    async def test_valid_key(self):
        assert await require_api_key("test-api-key") is None

    @pytest.mark.parametrize("api_key", [None, "", "wrong-key"])
    async def test_invalid_key(self, api_key):
        with pytest.raises(HTTPException) as exc_info:
            await require_api_key(api_key)

        assert exc_info.value.status_code == 401


class TestEntraTokenValidator:
    """Test cases for bearer token decoding."""

    async def test_decode_valid_token(self):
        endpoint = FakeJwksEndpoint([_jwk("key-1")])
        validator = _validator(endpoint)

        claims = await validator.decode(_token())

        assert claims["preferred_username"] == "admin@wfzo.test"
        assert validator.issuer == f"https://login.microsoftonline.com/{TENANT_ID}/v2.0"

    async def test_jwks_is_cached(self):
        endpoint = FakeJwksEndpoint([_jwk("key-1")])
        validator = _validator(endpoint)

        await validator.decode(_token())
        await validator.decode(_token())

        assert endpoint.calls == 1

    async def test_unknown_kid_refreshes_keys(self):
        endpoint = FakeJwksEndpoint([_jwk("old")], [_jwk("key-1")])
        validator = _validator(endpoint)

        claims = await validator.decode(_token())

        assert endpoint.calls == 2
        assert claims["aud"] == CLIENT_ID

    async def test_wrong_audience(self):
        validator = _validator(FakeJwksEndpoint([_jwk("key-1")]))

        with pytest.raises(JWTError):
            await validator.decode(_token(aud="someone-else"))

    async def test_expired_token(self):
        validator = _validator(FakeJwksEndpoint([_jwk("key-1")]))

        with pytest.raises(JWTError):
            await validator.decode(_token(exp=int(time.time()) - 60))

    async def test_bad_signature(self):
        validator = _validator(FakeJwksEndpoint([_jwk("key-1")]))

        with pytest.raises(JWTError):
            await validator.decode(_token(secret="another-signing-secret-9876543210"))


class TestGetCurrentUser:
    """Test cases for resolving the token to a local user."""

    @pytest.fixture
    def validator(self):
        return _validator(FakeJwksEndpoint([_jwk("key-1")]))

    @pytest.fixture
    def user_repo(self, test_session_factory):
        return UserRepo(test_session_factory)

    @staticmethod
    def _bearer(token):
        return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

    async def test_active_user(self, validator, user_repo):
        user_repo.create_user("admin@wfzo.test", {"email": "admin@wfzo.test"})

        user = await get_current_user(self._bearer(_token()), validator, user_repo)

        assert user.username == "admin@wfzo.test"

    async def test_login_matches_email_case_insensitively(self, validator, user_repo):
        user_repo.create_user("sara", {"email": "Sara@WFZO.test"})

        user = await get_current_user(
            self._bearer(_token(preferred_username="sara@wfzo.test")),
            validator,
            user_repo,
        )

        assert user.username == "sara"

    async def test_missing_credentials(self, validator, user_repo):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(None, validator, user_repo)

        assert exc_info.value.status_code == 401

    async def test_unknown_user(self, validator, user_repo):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(self._bearer(_token()), validator, user_repo)

        assert exc_info.value.detail == "User not found or inactive"

    async def test_disabled_user(self, validator, user_repo):
        user_repo.create_user(
            "admin@wfzo.test",
            {"email": "admin@wfzo.test", "status": UserStatus.DISABLED},
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(self._bearer(_token()), validator, user_repo)

        assert exc_info.value.status_code == 401

    async def test_identity_provider_down(self, user_repo):
        def unavailable(request):
            return httpx.Response(503)

        validator = _validator(unavailable)

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(self._bearer(_token()), validator, user_repo)

        assert exc_info.value.status_code == 503
