import logging
from typing import Any, Dict, Optional

from pages_utils.fetcher import FetchError, VersionFetcher, build_fetcher
from pages_utils.logger import get_logger
from pages_utils.middleware import wrap, with_logging, with_status
from pages_utils.models import (
    DEFAULT_ROOT,
    NO_STORE,
    SURROGATE_CONTROL,
    VARY,
    VersionRequest,
    VersionResponse,
    error_response,
)

logger = get_logger("version")

# Build the HTTP client once per container
fetcher = build_fetcher()


def _headers(event: Dict[str, Any]) -> Dict[str, str]:
    """
    Lower-cased request headers from an API Gateway or OpenWhisk event.
    """
    raw = event.get("headers") or event.get("__ow_headers") or {}
    return {str(k).lower(): v for k, v in raw.items()}


def parse_request(event: Dict[str, Any]) -> VersionRequest:
    """
    Build a VersionRequest from a Lambda event.

    Headers (x-owner, x-repo, x-ref, x-repo-root-path) take precedence;
    flattened invocation parameters (owner, repo, ref, root) fill any gap.
    """
    headers = _headers(event)

    def pick(header: str, param: str) -> Optional[str]:
        return headers.get(header) or event.get(param) or None

    return VersionRequest(
        owner=pick("x-owner", "owner"),
        repo=pick("x-repo", "repo"),
        ref=pick("x-ref", "ref"),
        root=pick("x-repo-root-path", "root") or DEFAULT_ROOT,
    )


def get_version(
    request: VersionRequest,
    log: logging.Logger,
    version_fetcher: VersionFetcher,
) -> VersionResponse:
    if not request.is_complete():
        log.warning(
            "owner, repo, ref missing",
            extra={
                "owner_present": bool(request.owner),
                "repo_present": bool(request.repo),
                "ref_present": bool(request.ref),
            },
        )
        return error_response("owner, repo, ref required.", 400)

    try:
        version = version_fetcher.fetch_version(
            request.root, request.owner, request.repo, request.ref
        )
    except FetchError as e:
        log.error(
            "error while fetching version",
            extra={"error": str(e), "root": request.root},
        )
        return error_response("unable to fetch version", 504)

    log.info(f'version for {request.repo}/{request.owner}#{request.ref} = "{version}"')

    headers = {
        "Cache-Control": NO_STORE,
        "Surrogate-Control": SURROGATE_CONTROL,
        "Surrogate-Key": request.surrogate_key,
        "Vary": VARY,
    }

    if version:
        return VersionResponse(
            status_code=200,
            body=version,
            headers={"x-pages-version": version, **headers},
        )

    return VersionResponse(status_code=200, body="no version", headers=headers)


def main(event, context):
    request = parse_request(event)
    return get_version(request, logger, fetcher).to_lambda()


lambda_handler = wrap(main, with_status, with_logging)
