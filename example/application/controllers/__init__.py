# =============================================================================
# application/controllers/ - Route Registration
# =============================================================================
# Each module exposes register(controller), passed to Lungo.add_route().
# =============================================================================
