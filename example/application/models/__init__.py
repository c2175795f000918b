# =============================================================================
# application/models/ - Domain Models
# =============================================================================
