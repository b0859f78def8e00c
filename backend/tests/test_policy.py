# =============================================================================
# HELPDESK API - AUTHORIZATION POLICY TESTS
# =============================================================================

import pytest

from helpdesk.auth.models import Actor, Role
from helpdesk.exceptions import ForbiddenError
from helpdesk.services import policy

pytestmark = pytest.mark.unit

CUSTOMER = Actor(id=1, role=Role.CUSTOMER, email="alice@acme-support.com", name="Alice")
OTHER_CUSTOMER = Actor(id=2, role=Role.CUSTOMER, email="bob@acme-support.com", name="Bob")
TEAM = Actor(id=3, role=Role.TEAM, email="tom@acme-support.com", name="Tom")
ADMIN = Actor(id=4, role=Role.ADMIN, email="ada@acme-support.com", name="Ada")

TICKET = {'id': 10, 'customer_id': 1, 'assigned_to': None}


class TestRead:

    def test_owner_reads(self):
        assert policy.can_read(CUSTOMER, TICKET)

    def test_other_customer_denied(self):
        assert not policy.can_read(OTHER_CUSTOMER, TICKET)

    @pytest.mark.parametrize("actor", [TEAM, ADMIN])
    def test_staff_reads_any(self, actor):
        assert policy.can_read(actor, TICKET)

    def test_ensure_can_read_message(self):
        with pytest.raises(ForbiddenError) as exc:
            policy.ensure_can_read(OTHER_CUSTOMER, TICKET)
        assert exc.value.detail == "Access denied"


class TestWrite:

    def test_customer_text_fields(self):
        assert policy.can_write(CUSTOMER, TICKET, ["title", "description"])

    @pytest.mark.parametrize("field", ["status", "priority", "category", "tags", "assigned_to"])
    def test_customer_staff_fields_denied(self, field):
        assert not policy.can_write(CUSTOMER, TICKET, ["title", field])

    def test_other_customer_cannot_write(self):
        assert not policy.can_write(OTHER_CUSTOMER, TICKET, ["title"])

    def test_staff_all_fields(self):
        fields = ["title", "description", "status", "priority", "category", "tags", "assigned_to"]
        assert policy.can_write(TEAM, TICKET, fields)

    def test_unknown_field_denied(self):
        assert not policy.can_write(ADMIN, TICKET, ["customer_id"])

    def test_status_change(self):
        assert policy.can_change_status(TEAM, TICKET)
        assert not policy.can_change_status(CUSTOMER, TICKET)


class TestDeleteAndInternal:

    def test_only_admin_deletes(self):
        assert policy.can_delete(ADMIN, TICKET)
        assert not policy.can_delete(TEAM, TICKET)
        assert not policy.can_delete(CUSTOMER, TICKET)

    def test_ensure_can_delete_message(self):
        with pytest.raises(ForbiddenError) as exc:
            policy.ensure_can_delete(TEAM, TICKET)
        assert exc.value.detail == "Only admins can delete tickets"

    def test_internal_visibility(self):
        assert policy.can_view_internal(TEAM)
        assert policy.can_view_internal(ADMIN)
        assert not policy.can_view_internal(CUSTOMER)


class TestScopes:

    def test_customer_forced_to_own(self):
        assert policy.ticket_scope(CUSTOMER) == {'customer_id': 1}
        assert policy.ticket_scope(CUSTOMER, requested_assignee=3) == {'customer_id': 1}

    def test_staff_unscoped_without_filter(self):
        assert policy.ticket_scope(TEAM) == {}
        assert policy.ticket_scope(TEAM, requested_assignee="") == {}

    def test_staff_assignee_filter(self):
        assert policy.ticket_scope(TEAM, requested_assignee=3) == {'assigned_to': 3}

    def test_stats_scope(self):
        assert policy.stats_scope(CUSTOMER) == {'customer_id': 1}
        assert policy.stats_scope(TEAM) == {'assigned_to': 3}
        assert policy.stats_scope(ADMIN) == {}
