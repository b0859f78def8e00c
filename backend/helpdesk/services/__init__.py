# =============================================================================
# HELPDESK API - SERVICES LAYER
# =============================================================================
# Business logic, independent of FastAPI.
#
# Structure:
# - policy.py: authorization decisions on tickets
# - pagination.py: bounded list queries and reference expansion
# - users.py: identity store
# - tickets/: ticket entity and lifecycle
# - messages/: ticket threads
# - attachments.py, storage.py: files
# - ai.py, enrichment.py: AI analysis and its background queue
# - dashboard.py, data_entries.py: admin counters, data entries
# - registry.py: collaborators with test overrides
# =============================================================================
