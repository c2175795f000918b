# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for Lungo:
# - test_config.py: Options and Settings validation
# - test_application.py: bootstrapper, routes, default handlers
# - test_sessions.py: Redis-backed sessions
# - test_middleware.py: access log, static files, HTTPS redirect
#
# Run tests with: pytest
# =============================================================================
