"""
Pages Version Service Utilities
===============================

Shared helper modules for the version Lambda:

- logger.py          → structured JSON logging
- config.py          → environment-derived fetcher settings
- models.py          → request/response types and header constants
- fetcher.py         → httpx client for the version marker file
- middleware.py      → request logging and status-check wrappers
- status.py          → health payload and service version

Nothing here keeps per-request state; the only long-lived object is the
HTTP client built once per container.
"""

__all__ = [
    "config",
    "fetcher",
    "logger",
    "middleware",
    "models",
    "status",
]
