# lazyrequest/utils/__init__.py
"""
Shared helpers with no dependencies on the rest of the package.

- async_helpers.py: bounded awaits, safe task creation, millisecond sleeps
"""
