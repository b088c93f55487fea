"""Tests for the Strapi content moderation service."""

import json

import httpx
import pytest

from app.core.enums import ContentDecision, ContentKind, EmailTemplateCode
from app.services.content_service import ContentService, StrapiError, split_name

EVENT_DRAFT = {
    "documentId": "doc-1",
    "slug": "investor-summit",
    "title": "Investor Summit",
    "startDateTime": "2025-05-01T09:00:00Z",
    "organizer": "Acme Free Zone",
    "authorEmail": "events@acme.test",
    "eventStatus": "Pending",
}
ARTICLE_DRAFT = {
    "documentId": "doc-2",
    "slug": "zone-news",
    "title": "Zone News",
    "shortDescription": "Quarterly update",
    "authorName": "Jane Mary Doe",
    "authorEmail": "jane@acme.test",
    "newsStatus": "Pending",
}


class FakeStrapi:
    """httpx handler serving one draft and recording requests."""

    def __init__(self, drafts, status_code=200):
        self.drafts = drafts
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "boom"})
        if request.method == "PUT":
            body = json.loads(request.content)
            return httpx.Response(200, json={"data": {**self.drafts[0], **body["data"]}})
        slug = request.url.params.get("filters[slug][$eq]")
        drafts = [d for d in self.drafts if slug is None or d["slug"] == slug]
        return httpx.Response(200, json={"data": drafts})


def _service(notifier, strapi):
    return ContentService(
        notifier,
        base_url="https://cms.test/",
        token="preview-token",
        transport=httpx.MockTransport(strapi),
    )


class TestSplitName:
    def test_split_name(self):
        assert split_name("Jane Mary Doe") == {"first_name": "Jane", "last_name": "Mary Doe"}
        assert split_name(None) == {"first_name": "", "last_name": ""}


class TestModeration:
    """Test cases for listing and deciding drafts."""

    def test_list_pending_queries_drafts(self, notifier):
        strapi = FakeStrapi([EVENT_DRAFT])

        items = _service(notifier, strapi).list_pending(ContentKind.WEBINARS)

        assert items == [EVENT_DRAFT]
        request = strapi.requests[0]
        assert request.url.path == "/api/webinars"
        assert request.url.params["status"] == "draft"
        assert request.url.params["filters[webinarStatus][$eq]"] == "Pending"
        assert request.headers["Authorization"] == "Bearer preview-token"

    def test_approve_event_updates_status_and_notifies_author(self, notifier):
        strapi = FakeStrapi([EVENT_DRAFT])

        data = _service(notifier, strapi).approve(ContentKind.EVENTS, "investor-summit")

        put = strapi.requests[-1]
        assert put.method == "PUT"
        assert put.url.path == "/api/events/doc-1"
        assert json.loads(put.content) == {
            "data": {"eventStatus": "Approved", "comments": None}
        }
        assert data["eventStatus"] == "Approved"

        email = notifier.last(EmailTemplateCode.EVENT_APPROVED_USER)
        assert email.to == "events@acme.test"
        assert email.params["event_title"] == "Investor Summit"
        assert email.params["event_type"] == "event"

    def test_reject_article_sends_reason(self, notifier):
        strapi = FakeStrapi([ARTICLE_DRAFT])

        _service(notifier, strapi).reject(ContentKind.NEWS, "zone-news", " Off topic ")

        put = strapi.requests[-1]
        assert put.url.path == "/api/articles/doc-2"
        assert json.loads(put.content)["data"] == {
            "newsStatus": "Rejected",
            "comments": "Off topic",
        }
        email = notifier.last(EmailTemplateCode.ARTICLE_REJECTED_USER)
        assert email.params["rejection_reason"] == "Off topic"
        assert email.params["first_name"] == "Jane"
        assert email.params["last_name"] == "Mary Doe"

    def test_reject_requires_reason(self, notifier):
        with pytest.raises(ValueError, match="reason is required"):
            _service(notifier, FakeStrapi([ARTICLE_DRAFT])).reject(
                ContentKind.NEWS, "zone-news", ""
            )

    def test_unknown_draft(self, notifier):
        with pytest.raises(ValueError, match="not found"):
            _service(notifier, FakeStrapi([EVENT_DRAFT])).approve(
                ContentKind.EVENTS, "missing"
            )

    def test_draft_without_author_email(self, notifier):
        draft = {**EVENT_DRAFT, "authorEmail": None}

        _service(notifier, FakeStrapi([draft])).approve(
            ContentKind.EVENTS, "investor-summit"
        )

        assert notifier.sent == []

    def test_strapi_errors_are_wrapped(self, notifier):
        with pytest.raises(StrapiError, match="500"):
            _service(notifier, FakeStrapi([], status_code=500)).list_pending(
                ContentKind.EVENTS
            )

    def test_transport_errors_are_wrapped(self, notifier):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = _service(notifier, unreachable)

        with pytest.raises(StrapiError, match="request failed"):
            service.list_pending(ContentKind.EVENTS)

    def test_draft_without_document_id(self, notifier):
        draft = {k: v for k, v in EVENT_DRAFT.items() if k != "documentId"}
        strapi = FakeStrapi([draft])

        with pytest.raises(StrapiError, match="no documentId"):
            _service(notifier, strapi).approve(ContentKind.EVENTS, "investor-summit")

        assert [r.method for r in strapi.requests] == ["GET"]
        assert notifier.sent == []

    def test_empty_update_response(self, notifier):
        strapi = FakeStrapi([EVENT_DRAFT])

        def handler(request):
            if request.method == "PUT":
                return httpx.Response(204)
            return strapi(request)

        result = _service(notifier, handler).approve(
            ContentKind.EVENTS, "investor-summit"
        )

        assert result == {}
        assert notifier.codes() == [EmailTemplateCode.EVENT_APPROVED_USER]

    def test_invalid_json_is_wrapped(self, notifier):
        service = _service(
            notifier, lambda request: httpx.Response(200, content=b"<html>")
        )

        with pytest.raises(StrapiError, match="invalid JSON"):
            service.list_pending(ContentKind.EVENTS)


class TestContentEmails:
    """Test cases for decision emails requested by the portal."""

    def test_submission_notifies_admin_and_author(self, notifier):
        service = _service(notifier, FakeStrapi([]))

        queued = service.send_email(
            ContentKind.NEWS,
            ContentDecision.SUBMITTED_FOR_APPROVAL,
            "jane@acme.test",
            {"title": "Zone News", "first_name": "Jane", "last_name": "Doe"},
        )

        assert queued == 2
        admin, author = notifier.sent
        assert admin.to == "admin@wfzo.test"
        assert admin.template_code == EmailTemplateCode.ARTICLE_SUBMITTED_FOR_APPROVAL.value
        assert "first_name" not in admin.params
        assert author.template_code == EmailTemplateCode.ARTICLE_SUBMITTED_USER.value

    def test_rejection_gets_default_reason(self, notifier):
        service = _service(notifier, FakeStrapi([]))

        queued = service.send_email(
            ContentKind.EVENTS,
            ContentDecision.REJECTED,
            "events@acme.test",
            {"event_title": "Investor Summit", "rejection_reason": ""},
        )

        assert queued == 1
        email = notifier.last(EmailTemplateCode.EVENT_REJECTED_USER)
        assert email.params["rejection_reason"] == "Reason not provided"
