"""Approve/reject gates for member-submitted Strapi content."""

from typing import Any, Dict, List, NamedTuple, Optional

import httpx

from app.core.config import settings
from app.core.enums import ContentDecision, ContentKind, EmailTemplateCode
from app.core.logging import get_logger
from app.core.observability.metrics import log_connection_event, log_counter_increment
from app.services.notification_service import NotificationService

logger = get_logger(__name__)

PENDING = "Pending"
APPROVED = "Approved"
REJECTED = "Rejected"
DEFAULT_REJECTION_REASON = "Reason not provided"


class ContentCollection(NamedTuple):
    path: str
    status_field: str
    family: str


COLLECTIONS = {
    ContentKind.EVENTS: ContentCollection("events", "eventStatus", "event"),
    ContentKind.WEBINARS: ContentCollection("webinars", "webinarStatus", "event"),
    ContentKind.NEWS: ContentCollection("articles", "newsStatus", "article"),
}

# (family, decision) -> author template; the admin template is only for submissions
AUTHOR_TEMPLATES = {
    ("event", ContentDecision.SUBMITTED_FOR_APPROVAL): EmailTemplateCode.EVENT_SUBMITTED_USER,
    ("event", ContentDecision.APPROVED): EmailTemplateCode.EVENT_APPROVED_USER,
    ("event", ContentDecision.REJECTED): EmailTemplateCode.EVENT_REJECTED_USER,
    ("article", ContentDecision.SUBMITTED_FOR_APPROVAL): EmailTemplateCode.ARTICLE_SUBMITTED_USER,
    ("article", ContentDecision.APPROVED): EmailTemplateCode.ARTICLE_APPROVED_USER,
    ("article", ContentDecision.REJECTED): EmailTemplateCode.ARTICLE_REJECTED_USER,
}
ADMIN_TEMPLATES = {
    "event": EmailTemplateCode.EVENT_SUBMITTED_FOR_APPROVAL,
    "article": EmailTemplateCode.ARTICLE_SUBMITTED_FOR_APPROVAL,
}


class StrapiError(Exception):
    """Strapi request failed or returned an error status."""


def split_name(full_name: Optional[str]) -> Dict[str, str]:
    parts = (full_name or "").split()
    return {
        "first_name": parts[0] if parts else "",
        "last_name": " ".join(parts[1:]),
    }


class ContentService:
    """Reads pending drafts from Strapi and records admin decisions on them."""

    def __init__(
        self,
        notifier: NotificationService,
        base_url: str = settings.STRAPI_API_BASE_URL,
        token: str = settings.STRAPI_PREVIEW_TOKEN,
        timeout: float = settings.STRAPI_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.notifier = notifier
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[dict] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            with httpx.Client(
                base_url=self.base_url,
                transport=self._transport,
                timeout=self.timeout,
                headers=headers,
            ) as client:
                response = client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            log_connection_event("request_failed", "strapi", error=str(e))
            raise StrapiError(f"Strapi request failed: {e}") from e

        if response.is_error:
            log_connection_event(
                "request_failed", "strapi", status_code=response.status_code
            )
            raise StrapiError(
                f"Strapi {method} {path} failed with {response.status_code}"
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise StrapiError(f"Strapi {method} {path} returned invalid JSON") from e

    def list_pending(self, kind: ContentKind) -> List[Dict[str, Any]]:
        """Drafts whose status field is still Pending."""
        collection = COLLECTIONS[kind]
        body = self._request(
            "GET",
            f"/api/{collection.path}",
            params={
                "status": "draft",
                f"filters[{collection.status_field}][$eq]": PENDING,
                "populate": "*",
            },
        )
        return body.get("data") or []

    def get_draft(self, kind: ContentKind, slug: str) -> Dict[str, Any]:
        collection = COLLECTIONS[kind]
        body = self._request(
            "GET",
            f"/api/{collection.path}",
            params={
                "status": "draft",
                "filters[slug][$eq]": slug,
                "populate": "*",
            },
        )
        drafts = body.get("data") or []
        if not drafts:
            raise ValueError(f"Draft {kind.value} '{slug}' not found")
        return drafts[0]

    def approve(self, kind: ContentKind, slug: str) -> Dict[str, Any]:
        return self._decide(kind, slug, ContentDecision.APPROVED, None)

    def reject(self, kind: ContentKind, slug: str, reason: str) -> Dict[str, Any]:
        if not reason or not reason.strip():
            raise ValueError("A reason is required to reject content")
        return self._decide(kind, slug, ContentDecision.REJECTED, reason.strip())

    def _decide(
        self,
        kind: ContentKind,
        slug: str,
        decision: ContentDecision,
        reason: Optional[str],
    ) -> Dict[str, Any]:
        collection = COLLECTIONS[kind]
        draft = self.get_draft(kind, slug)
        document_id = draft.get("documentId")
        if not document_id:
            raise StrapiError(f"Draft {kind.value} '{slug}' has no documentId")
        status_value = APPROVED if decision == ContentDecision.APPROVED else REJECTED

        body = self._request(
            "PUT",
            f"/api/{collection.path}/{document_id}",
            params={"status": "draft"},
            json={"data": {collection.status_field: status_value, "comments": reason}},
        )
        logger.info(f"{kind.value} '{slug}' marked {status_value}")
        log_counter_increment(
            "content_decisions_total",
            labels={"kind": kind.value, "decision": decision.value},
        )

        author_email = draft.get("authorEmail")
        if author_email:
            params = self._draft_params(collection, draft)
            if reason:
                params["rejection_reason"] = reason
            self.notifier.send_templated(
                author_email, AUTHOR_TEMPLATES[(collection.family, decision)], params
            )
        else:
            logger.warning(f"{kind.value} '{slug}' has no author email, author not notified")
        return body.get("data") or {}

    def send_email(
        self,
        kind: ContentKind,
        decision: ContentDecision,
        email: str,
        fields: Dict[str, Any],
    ) -> int:
        """Queue the notification emails for a content decision; returns how many."""
        family = COLLECTIONS[kind].family
        params = {key: value for key, value in fields.items() if value}
        if decision == ContentDecision.REJECTED:
            params.setdefault("rejection_reason", DEFAULT_REJECTION_REASON)

        queued = 0
        if decision == ContentDecision.SUBMITTED_FOR_APPROVAL:
            admin_params = {
                key: value
                for key, value in params.items()
                if key not in ("first_name", "last_name")
            }
            queued += self.notifier.send_templated(
                settings.WFZO_ADMIN_EMAIL, ADMIN_TEMPLATES[family], admin_params
            )
        queued += self.notifier.send_templated(
            email, AUTHOR_TEMPLATES[(family, decision)], params
        )
        return queued

    def _draft_params(
        self, collection: ContentCollection, draft: Dict[str, Any]
    ) -> Dict[str, Any]:
        if collection.family == "article":
            params = {
                "title": draft.get("title"),
                "description": draft.get("shortDescription"),
                "category": draft.get("articleCategory"),
                "organizer_name": draft.get("organizationName"),
            }
            params.update(split_name(draft.get("authorName")))
        else:
            params = {
                "event_title": draft.get("title"),
                "scheduled_date": draft.get("startDateTime"),
                "organizer_name": draft.get("organizer"),
                "event_type": collection.path.rstrip("s"),
            }
        return {key: value for key, value in params.items() if value}
