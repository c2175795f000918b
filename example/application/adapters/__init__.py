# =============================================================================
# application/adapters/ - External Service Clients
# =============================================================================
# Clients for databases and third-party APIs live here.
# =============================================================================
