# lazyrequest/base/__init__.py
#
# PURPOSE:
# Foundational pieces the rest of the package depends on.
#
# WHAT'S IN THIS MODULE:
# - config.py: run configuration (timeouts, bail, throttling, sources) and logging setup
# - exceptions.py: error taxonomy (input errors vs per-request errors)
#
