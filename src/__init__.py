"""
Pages Version Service
=====================

Root package for the Lambda that reports which version of a site a given
repository ref is pinned to. It reads the ``helix-version.txt`` marker file
from a raw-content host (GitHub by default) and echoes it back with
cache-control and CDN surrogate headers.

Modules under this package:
- pages_version.py → HTTP endpoint (/version), driven by X-Owner / X-Repo / X-Ref headers
- pages_health.py  → Health and version checks (/healthz)
- pages_utils/     → Shared helper modules (logging, config, fetch client, middleware)

Environment variables expected:
  • HELIX_FETCH_FORCE_HTTP1    - Disable HTTP/2 for the outbound fetch (optional)
  • VERSION_FETCH_TIMEOUT_MS   - Outbound fetch timeout (default: 5000)
  • SERVICE_VERSION            - Version reported by health checks (optional)
  • LOG_LEVEL                  - Log verbosity (default: INFO)

All handlers in this package are stateless and Lambda-optimized.
"""

__version__ = "1.0.0"
__author__ = "Pages Engineering"
__license__ = "Apache-2.0"

# Expose top-level package metadata only
__all__ = ["__version__", "__author__"]
