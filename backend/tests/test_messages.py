# =============================================================================
# HELPDESK API - MESSAGE THREAD TESTS
# =============================================================================
# Internal/external partitioning, sender roles, first response, read marks
# =============================================================================

import pytest
from fastapi.testclient import TestClient

from helpdesk.auth.models import Actor, Role
from helpdesk.services import messages

pytestmark = pytest.mark.integration


def _post(client, ticket_id, headers, content="Hello", **form):
    return client.post(
        f"/api/v1/tickets/{ticket_id}/messages",
        data={"content": content, **form},
        headers=headers
    )


class TestAddMessage:
    """POST /tickets/{id}/messages"""

    def test_customer_message_never_internal(self, client: TestClient, create_ticket,
                                             customer, customer_headers):
        ticket = create_ticket(customer_headers)

        response = _post(client, ticket["id"], customer_headers, "Any news?", isInternal="true")

        assert response.status_code == 201
        message = response.json()["data"]
        assert message["isInternal"] is False
        assert message["senderRole"] == "customer"
        assert message["sender"]["id"] == customer["id"]
        assert message["ticket"] == ticket["id"]

    def test_staff_internal_note(self, client: TestClient, create_ticket,
                                 customer_headers, team_headers):
        ticket = create_ticket(customer_headers)

        response = _post(client, ticket["id"], team_headers, "Check SSO logs", isInternal="true")

        message = response.json()["data"]
        assert message["isInternal"] is True
        assert message["senderRole"] == "agent"

    def test_content_required(self, client: TestClient, create_ticket, customer_headers):
        ticket = create_ticket(customer_headers)

        response = _post(client, ticket["id"], customer_headers, "   ")

        assert response.status_code == 400
        assert response.json()["message"] == "Message content is required"

    def test_other_customer_denied(self, client: TestClient, create_ticket,
                                   customer_headers, other_customer_headers):
        ticket = create_ticket(customer_headers)

        response = _post(client, ticket["id"], other_customer_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied"

    def test_missing_ticket(self, client: TestClient, customer_headers):
        assert _post(client, 31337, customer_headers).status_code == 404

    def test_message_attachment(self, client: TestClient, create_ticket, customer_headers):
        ticket = create_ticket(customer_headers)

        response = client.post(
            f"/api/v1/tickets/{ticket['id']}/messages",
            data={"content": "Screenshot attached"},
            files=[("attachments", ("screen.png", b"\x89PNG", "image/png"))],
            headers=customer_headers
        )

        attachments = response.json()["data"]["attachments"]
        assert [a["filename"] for a in attachments] == ["screen.png"]
        assert attachments[0]["url"].startswith("http://testserver/uploads/messages/")

        # Message attachments do not show up on the ticket itself
        current = client.get(f"/api/v1/tickets/{ticket['id']}", headers=customer_headers)
        assert current.json()["data"]["attachments"] == []


class TestFirstResponse:
    """firstResponseAt is stamped by the first staff message only."""

    def test_customer_message_does_not_stamp(self, client: TestClient, create_ticket, customer_headers):
        ticket = create_ticket(customer_headers)
        _post(client, ticket["id"], customer_headers)

        current = client.get(f"/api/v1/tickets/{ticket['id']}", headers=customer_headers)
        assert current.json()["data"]["firstResponseAt"] is None

    def test_first_staff_message_stamps_once(self, client: TestClient, create_ticket,
                                             customer_headers, team_headers, admin_headers):
        ticket = create_ticket(customer_headers)
        url = f"/api/v1/tickets/{ticket['id']}"

        _post(client, ticket["id"], team_headers, "On it")
        first = client.get(url, headers=team_headers).json()["data"]["firstResponseAt"]
        assert first is not None

        _post(client, ticket["id"], admin_headers, "Escalated")
        assert client.get(url, headers=team_headers).json()["data"]["firstResponseAt"] == first


class TestListMessages:
    """GET /tickets/{id}/messages"""

    @pytest.mark.parametrize("thread", [
        [],
        [("customer", False)],
        [("team", True)],
        [("customer", False), ("team", True), ("team", False), ("customer", False), ("team", True)],
    ])
    def test_customer_never_sees_internal(self, client: TestClient, create_ticket,
                                          customer_headers, team_headers, thread):
        ticket = create_ticket(customer_headers)
        headers = {"customer": customer_headers, "team": team_headers}
        for i, (author, internal) in enumerate(thread):
            _post(client, ticket["id"], headers[author], f"message {i}",
                  isInternal="true" if internal else "false")

        customer_view = client.get(f"/api/v1/tickets/{ticket['id']}/messages",
                                   headers=customer_headers).json()
        staff_view = client.get(f"/api/v1/tickets/{ticket['id']}/messages",
                                headers=team_headers).json()

        visible = [m for m in thread if not m[1]]
        assert all(m["isInternal"] is False for m in customer_view["data"])
        assert customer_view["pagination"]["total"] == len(visible)
        assert staff_view["pagination"]["total"] == len(thread)

    def test_oldest_first(self, client: TestClient, create_ticket, customer_headers, team_headers):
        ticket = create_ticket(customer_headers)
        for i in range(3):
            _post(client, ticket["id"], customer_headers if i % 2 == 0 else team_headers, f"m{i}")

        response = client.get(f"/api/v1/tickets/{ticket['id']}/messages", headers=customer_headers)

        assert [m["content"] for m in response.json()["data"]] == ["m0", "m1", "m2"]

    def test_default_limit(self, client: TestClient, create_ticket, customer_headers):
        ticket = create_ticket(customer_headers)

        response = client.get(f"/api/v1/tickets/{ticket['id']}/messages", headers=customer_headers)

        assert response.json()["pagination"]["limit"] == 50

    def test_paged_thread(self, client: TestClient, create_ticket, customer_headers):
        ticket = create_ticket(customer_headers)
        for i in range(5):
            _post(client, ticket["id"], customer_headers, f"m{i}")

        response = client.get(f"/api/v1/tickets/{ticket['id']}/messages",
                              params={"page": 2, "limit": 2}, headers=customer_headers)

        body = response.json()
        assert [m["content"] for m in body["data"]] == ["m2", "m3"]
        assert body["pagination"]["pages"] == 3

    def test_other_customer_denied(self, client: TestClient, create_ticket,
                                   customer_headers, other_customer_headers):
        ticket = create_ticket(customer_headers)
        response = client.get(f"/api/v1/tickets/{ticket['id']}/messages",
                              headers=other_customer_headers)
        assert response.status_code == 403


class TestReadMarks:
    """PATCH /tickets/{id}/messages/read"""

    def test_customer_marks_agent_messages(self, client: TestClient, create_ticket,
                                           customer_headers, team_headers):
        ticket = create_ticket(customer_headers)
        _post(client, ticket["id"], team_headers, "Reply")
        _post(client, ticket["id"], team_headers, "Internal", isInternal="true")
        _post(client, ticket["id"], customer_headers, "Thanks")

        response = client.patch(f"/api/v1/tickets/{ticket['id']}/messages/read",
                                headers=customer_headers)

        assert response.json()["data"] == {"marked": 1}
        thread = client.get(f"/api/v1/tickets/{ticket['id']}/messages",
                            headers=team_headers).json()["data"]
        read = {m["content"]: m["readAt"] is not None for m in thread}
        assert read == {"Reply": True, "Internal": False, "Thanks": False}

    def test_staff_marks_customer_messages(self, client: TestClient, create_ticket,
                                           customer_headers, team_headers):
        ticket = create_ticket(customer_headers)
        _post(client, ticket["id"], customer_headers, "One")
        _post(client, ticket["id"], customer_headers, "Two")

        url = f"/api/v1/tickets/{ticket['id']}/messages/read"
        assert client.patch(url, headers=team_headers).json()["data"] == {"marked": 2}
        assert client.patch(url, headers=team_headers).json()["data"] == {"marked": 0}


class TestSenderRole:

    @pytest.mark.unit
    @pytest.mark.parametrize("role,expected", [
        (Role.CUSTOMER, "customer"),
        (Role.TEAM, "agent"),
        (Role.ADMIN, "agent"),
    ])
    def test_sender_role_derived(self, role, expected):
        actor = Actor(id=1, role=role, email="x@acme-support.com", name="X")
        assert messages.sender_role_for(actor) == expected
