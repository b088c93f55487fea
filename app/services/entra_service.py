"""Microsoft Entra ID user provisioning through Microsoft Graph."""

import re
import secrets
import string
import time
from typing import Any, Dict, Optional
from uuid import uuid4

import httpx
import msal

from app.core.config import settings
from app.core.logging import get_logger
from app.core.observability.metrics import log_connection_event

logger = get_logger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]
PLACEHOLDER_ID = "00000000-0000-0000-0000-000000000000"
TEMPORARY_PASSWORD_LENGTH = 16
PASSWORD_SPECIALS = "!@#$%^&*"


def generate_temporary_password(length: int = TEMPORARY_PASSWORD_LENGTH) -> str:
    """Random password with at least one upper, lower, digit and special."""
    pools = [
        string.ascii_uppercase,
        string.ascii_lowercase,
        string.digits,
        PASSWORD_SPECIALS,
    ]
    everything = "".join(pools)
    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(everything) for _ in range(length - len(pools))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def mail_nickname(email: str) -> str:
    """Email local part with non-alphanumerics stripped."""
    return re.sub(r"[^a-zA-Z0-9]", "", email.split("@")[0])


class EntraError(Exception):
    """Entra / Graph operation failed."""


class EntraService:
    """Creates, updates and deletes Entra users.

    In mock mode users live in memory and no network call is made.
    """

    def __init__(
        self,
        mode: str = settings.ENTRA_INTEGRATION_MODE,
        tenant_id: str = settings.ENTRA_TENANT_ID,
        client_id: str = settings.ENTRA_CLIENT_ID,
        client_secret: str = settings.ENTRA_CLIENT_SECRET,
        default_domain: str = settings.ENTRA_DEFAULT_DOMAIN,
        entra_type: str = settings.ENTRA_TYPE,
        external_domain: str = settings.ENTRA_EXTERNAL_DOMAIN,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.is_mock = mode == "mock"
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.default_domain = default_domain
        self.is_external = entra_type == "external"
        self.external_domain = external_domain
        self._transport = transport
        self._msal_app: Optional[msal.ConfidentialClientApplication] = None
        self.mock_users: Dict[str, Dict[str, Any]] = {}
        logger.info(f"EntraService initialized in {'MOCK' if self.is_mock else 'REAL'} mode")

    @property
    def is_configured(self) -> bool:
        if self.is_mock:
            return True
        if not (self.tenant_id and self.client_id and self.client_secret):
            return False
        return not (
            self.tenant_id == PLACEHOLDER_ID
            or self.client_id == PLACEHOLDER_ID
            or "dummy" in self.client_secret
        )

    def _acquire_token(self) -> str:
        if not self.is_configured:
            raise EntraError(
                "Entra credentials are not configured. Set ENTRA_INTEGRATION_MODE=mock "
                "for development, or configure real credentials."
            )
        # msal raises requests errors, which are OSErrors, on network failure
        try:
            if self._msal_app is None:
                self._msal_app = msal.ConfidentialClientApplication(
                    self.client_id,
                    authority=f"https://login.microsoftonline.com/{self.tenant_id}",
                    client_credential=self.client_secret,
                )
            result = self._msal_app.acquire_token_for_client(scopes=GRAPH_SCOPES)
        except (OSError, ValueError) as e:
            log_connection_event("token_failed", "entra", error=str(e))
            raise EntraError(f"Could not reach the Entra token endpoint: {e}") from e
        if "access_token" not in result:
            raise EntraError(
                f"Could not acquire Graph token: {result.get('error_description') or result.get('error')}"
            )
        return result["access_token"]

    def _graph(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        token = self._acquire_token()
        try:
            with httpx.Client(
                base_url=GRAPH_BASE_URL, transport=self._transport, timeout=15
            ) as client:
                response = client.request(
                    method,
                    path,
                    json=json,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            log_connection_event("request_failed", "graph", error=str(e))
            raise EntraError(f"Graph {method} {path} failed: {e}") from e

        if response.is_error:
            log_connection_event(
                "request_failed", "graph", status_code=response.status_code
            )
            raise EntraError(
                f"Graph {method} {path} failed with {response.status_code}: {response.text}"
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise EntraError(f"Graph {method} {path} returned invalid JSON") from e

    def _user_payload(
        self,
        email: str,
        first_name: str,
        last_name: str,
        phone: Optional[str],
        temporary_password: str,
    ) -> Dict[str, Any]:
        nickname = mail_nickname(email)
        payload: Dict[str, Any] = {
            "accountEnabled": True,
            "displayName": f"{first_name} {last_name}".strip(),
            "givenName": first_name,
            "surname": last_name,
            "mobilePhone": phone,
            "mailNickname": nickname,
            "passwordProfile": {
                "forceChangePasswordNextSignIn": False,
                "password": temporary_password,
            },
        }
        if self.is_external:
            # Local-account sign in by email; UPN only has to be unique
            payload["userPrincipalName"] = (
                f"{nickname}_{int(time.time() * 1000)}@{self.external_domain}"
            )
            payload["identities"] = [
                {
                    "signInType": "emailAddress",
                    "issuer": self.external_domain,
                    "issuerAssignedId": email,
                }
            ]
        else:
            if not self.default_domain:
                raise EntraError("ENTRA_DEFAULT_DOMAIN is not configured")
            payload["userPrincipalName"] = f"{nickname}@{self.default_domain}"
            payload["mail"] = email
        return payload

    def create_user(
        self,
        email: str,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
    ) -> Dict[str, str]:
        """Create an Entra user; returns ``entra_user_id`` and ``temporary_password``.

        Raises:
            EntraError: if Graph rejects the request or credentials are missing
        """
        temporary_password = generate_temporary_password()

        if self.is_mock:
            entra_user_id = f"mock-{uuid4().hex[:12]}"
            self.mock_users[entra_user_id] = {
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "phone": phone,
            }
            logger.info(f"[MOCK] Created Entra user {email} ({entra_user_id})")
            return {"entra_user_id": entra_user_id, "temporary_password": temporary_password}

        payload = self._user_payload(
            email, first_name, last_name, phone, temporary_password
        )
        user = self._graph("POST", "/users", json=payload)
        logger.info(f"Created Entra user {email} ({user['id']})")
        return {"entra_user_id": user["id"], "temporary_password": temporary_password}

