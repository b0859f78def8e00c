# =============================================================================
# HELPDESK API - TICKET LIFECYCLE TESTS
# =============================================================================
# Unit tests for ticket numbers, field rules and status stamps
# =============================================================================

import re

import pytest

from helpdesk.exceptions import ValidationError
from helpdesk.services.tickets.constants import TicketStatus
from helpdesk.services.tickets.lifecycle import (
    to_base36,
    generate_ticket_number,
    ensure_ticket_number,
    clean_title,
    clean_description,
    normalize_tags,
    validate_status,
    validate_priority,
    validate_category,
    is_valid_transition,
    stamp_column,
)

TICKET_NUMBER_RE = re.compile(r"^TKT-[0-9A-Z]+-[0-9A-Z]{4}$")

pytestmark = pytest.mark.unit


class TestTicketNumber:
    """Ticket number generation."""

    def test_base36(self):
        assert to_base36(0) == '0'
        assert to_base36(35) == 'Z'
        assert to_base36(36) == '10'
        assert to_base36(1295) == 'ZZ'

    def test_base36_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)

    def test_format(self):
        number = generate_ticket_number()
        assert TICKET_NUMBER_RE.match(number)

    def test_timestamp_part(self):
        """The middle part is the base36 timestamp."""
        number = generate_ticket_number(now_ms=36 ** 3)
        assert number.startswith("TKT-1000-")

    def test_numbers_differ(self):
        """Random suffix makes same-millisecond numbers differ (probabilistically)."""
        numbers = {generate_ticket_number(now_ms=1700000000000) for _ in range(50)}
        assert len(numbers) > 1

    def test_ensure_is_idempotent(self):
        """An existing number is never regenerated."""
        ticket = {}
        first = ensure_ticket_number(ticket)
        second = ensure_ticket_number(ticket)

        assert first == second == ticket['ticket_number']

    def test_ensure_keeps_given_number(self):
        ticket = {'ticket_number': 'TKT-ABC-1234'}
        assert ensure_ticket_number(ticket) == 'TKT-ABC-1234'


class TestFieldRules:
    """Title, description, tags, enumerations."""

    def test_title_trimmed(self):
        assert clean_title("  Login broken  ") == "Login broken"

    @pytest.mark.parametrize("title", [None, "", "   "])
    def test_title_required(self, title):
        with pytest.raises(ValidationError) as exc:
            clean_title(title)
        assert exc.value.detail == "Title is required"

    def test_title_too_long(self):
        with pytest.raises(ValidationError):
            clean_title("x" * 201)

    def test_title_max_length_accepted(self):
        assert len(clean_title("x" * 200)) == 200

    def test_description_required(self):
        with pytest.raises(ValidationError) as exc:
            clean_description("  ")
        assert exc.value.detail == "Description is required"

    def test_tags_normalized(self):
        assert normalize_tags([" vpn ", "", "vpn", "login"]) == ["vpn", "login"]

    def test_single_tag_string(self):
        assert normalize_tags("urgent") == ["urgent"]

    def test_no_tags(self):
        assert normalize_tags(None) == []

    def test_enumerations(self):
        assert validate_status("in_progress") == "in_progress"
        assert validate_priority("urgent") == "urgent"
        assert validate_category("bug_report") == "bug_report"

    @pytest.mark.parametrize("validator,value", [
        (validate_status, "done"),
        (validate_priority, "critical"),
        (validate_category, "sales"),
    ])
    def test_invalid_enumerations(self, validator, value):
        with pytest.raises(ValidationError):
            validator(value)


class TestTransitions:
    """Status transitions and stamps."""

    @pytest.mark.parametrize("current", TicketStatus.ALL)
    @pytest.mark.parametrize("new", TicketStatus.ALL)
    def test_any_to_any(self, current, new):
        assert is_valid_transition(current, new)

    def test_unknown_status_is_not_a_transition(self):
        assert not is_valid_transition("open", "archived")

    def test_stamps(self):
        assert stamp_column(TicketStatus.RESOLVED) == 'resolved_at'
        assert stamp_column(TicketStatus.CLOSED) == 'closed_at'
        assert stamp_column(TicketStatus.OPEN) is None
        assert stamp_column(TicketStatus.IN_PROGRESS) is None
