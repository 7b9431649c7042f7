# ============================================================================
# lazyrequest/__init__.py
# HTTP template test runner
# ============================================================================
#
# PIPELINE:
#   resolver/  - expands {{variables}} into self-contained request units
#   engine/    - schedules units (sequential or concurrent, bail, throttling)
#   executor/  - sends one request with httpx and normalizes the response
#   comparator/- checks the response against the expected block
#   reporting/ - prints results and picks the exit code
#
# ============================================================================

__version__ = "0.1.0"
