# =============================================================================
# HELPDESK API
# =============================================================================
# Ticketing backend: customers file tickets, staff triage and resolve them.
# =============================================================================

__version__ = "1.0.0"
