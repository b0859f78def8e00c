# =============================================================================
# HELPDESK API - ROUTERS
# =============================================================================

from . import admin, data_entries, tickets, users

__all__ = ["admin", "data_entries", "tickets", "users"]
