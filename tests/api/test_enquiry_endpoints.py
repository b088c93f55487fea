"""Tests for enquiry API endpoints."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings

ENQUIRIES = f"{settings.API_V1_STR}/enquiries"

VISITOR = {
    "first_name": "Omar",
    "last_name": "Haddad",
    "email": "omar@example.test",
    "organization_name": "Port Authority",
}


@pytest.fixture
def enquiry(client: TestClient, api_headers):
    response = client.post(
        ENQUIRIES,
        json={"enquiry_type": "learn_more", "user_details": VISITOR, "message": "Hi"},
        headers=api_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestEnquiryEndpoints:
    """Test cases for enquiry API endpoints."""

    def test_create(self, enquiry, queued_templates):
        assert enquiry["enquiry_status"] == "pending"
        assert enquiry["user_details"]["email"] == "omar@example.test"
        assert queued_templates() == [
            "ENQUIRY_ADMIN_NOTIFICATION",
            "ENQUIRY_ACKNOWLEDGEMENT",
        ]

    def test_question_without_subject(self, client: TestClient, api_headers):
        response = client.post(
            ENQUIRIES,
            json={"enquiry_type": "submit_question", "user_details": VISITOR},
            headers=api_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Subject is required")

    def test_unknown_type(self, client: TestClient, api_headers):
        response = client.post(
            ENQUIRIES,
            json={"enquiry_type": "complaint", "user_details": VISITOR},
            headers=api_headers,
        )

        assert response.status_code == 422

    def test_requires_api_key(self, client: TestClient):
        assert client.get(ENQUIRIES).status_code == 401

    def test_rate_limited(self, client: TestClient, api_headers, allow_all_requests):
        allow_all_requests.return_value = False

        response = client.post(
            ENQUIRIES,
            json={"enquiry_type": "learn_more", "user_details": VISITOR},
            headers=api_headers,
        )

        assert response.status_code == 429

    def test_approve(self, client: TestClient, api_headers, enquiry, queued_templates):
        response = client.put(
            f"{ENQUIRIES}/{enquiry['id']}",
            json={"enquiry_status": "approved", "comments": "Call scheduled"},
            headers=api_headers,
        )

        assert response.status_code == 200
        assert response.json()["enquiry_status"] == "approved"
        assert response.json()["comments"] == "Call scheduled"
        assert queued_templates()[-1] == "ENQUIRY_APPROVED"

        response = client.put(
            f"{ENQUIRIES}/{enquiry['id']}",
            json={"enquiry_status": "rejected"},
            headers=api_headers,
        )
        assert response.status_code == 400

    def test_list_filters(self, client: TestClient, api_headers, enquiry):
        client.post(
            ENQUIRIES,
            json={
                "enquiry_type": "request_additional_team_members",
                "user_details": VISITOR,
                "no_of_members": 2,
                "member_id": "MEMBER-007",
            },
            headers=api_headers,
        )

        response = client.get(ENQUIRIES, headers=api_headers)
        assert response.json()["page"]["total"] == 2

        response = client.get(
            ENQUIRIES, params={"enquiry_type": "learn_more"}, headers=api_headers
        )
        assert [e["id"] for e in response.json()["items"]] == [enquiry["id"]]

        response = client.get(f"{ENQUIRIES}/member/MEMBER-007", headers=api_headers)
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["no_of_members"] == 2

    def test_get_and_delete(self, client: TestClient, api_headers, enquiry):
        url = f"{ENQUIRIES}/{enquiry['id']}"

        assert client.get(url, headers=api_headers).status_code == 200
        assert client.delete(url, headers=api_headers).status_code == 200
        assert client.get(url, headers=api_headers).status_code == 404

    def test_get_unknown(self, client: TestClient, api_headers):
        response = client.get(f"{ENQUIRIES}/{uuid4()}", headers=api_headers)

        assert response.status_code == 404
