# =============================================================================
# HELPDESK API - TEST FACTORIES
# =============================================================================
# Factory Boy factories for test data
# =============================================================================

from .tickets import TicketFactory, MessageFactory, DataEntryFactory
from .users import UserFactory

__all__ = [
    "TicketFactory",
    "MessageFactory",
    "DataEntryFactory",
    "UserFactory",
]
