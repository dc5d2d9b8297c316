# pages_utils/fetcher.py

import re
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

import httpx

from pages_utils.config import FetcherConfig, load_config
from pages_utils.logger import get_logger
from pages_utils.models import VERSION_FILE

logger = get_logger("fetcher")

# Ask every intermediate cache to revalidate instead of serving a stored copy
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class FetchError(Exception):
    """Raised when the version file cannot be obtained."""


class UpstreamStatusError(FetchError):
    def __init__(self, status_code: int, body: str):
        super().__init__(f"github error: {status_code} {body}")
        self.status_code = status_code
        self.body = body


class UpstreamTransportError(FetchError):
    pass


def compute_github_uri(root: str, owner: str, repo: str, ref: str, path: str) -> str:
    """
    Join ``root`` with ``owner/repo/ref/path``.

    Scheme, host and query of ``root`` are kept; runs of slashes in the
    resulting path collapse into one.
    """
    parts = urlsplit(root)
    full_path = re.sub(r"/+", "/", f"{parts.path}/{owner}/{repo}/{ref}/{path}")
    return urlunsplit((parts.scheme, parts.netloc, full_path, parts.query, ""))


class VersionFetcher:
    """
    Fetches the version marker file of a repository ref.

    The configured timeout is a deadline for the whole call: connecting,
    following redirects and reading the body all share it. The request runs
    on a worker thread so the caller gets its answer once the deadline
    passes, even if the upstream is still trickling bytes.
    """

    def __init__(
        self,
        config: FetcherConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.Client(
            http2=not config.force_http1,
            timeout=httpx.Timeout(config.timeout_seconds),
            headers=NO_CACHE_HEADERS,
            follow_redirects=True,
            transport=transport,
        )
        self._pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="version-fetch")

    def fetch_version(self, root: str, owner: str, repo: str, ref: str) -> str:
        """
        Return the trimmed contents of the version file, or "" when it does
        not exist (404). Any other failure raises a FetchError subclass.
        """
        deadline = time.monotonic() + self.config.timeout_seconds
        try:
            url = compute_github_uri(root, owner, repo, ref, VERSION_FILE)
            future = self._pool.submit(self._get, url, deadline)
            status_code, text = future.result(timeout=self.config.timeout_seconds)
        except FutureTimeoutError as e:
            future.cancel()
            raise UpstreamTransportError(
                f"timed out after {self.config.timeout_ms} ms fetching {url}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise UpstreamTransportError(f"unable to fetch from {root}: {e}") from e

        if 200 <= status_code < 300:
            return text.strip()
        if status_code != 404:
            raise UpstreamStatusError(status_code, text)
        return ""

    def _get(self, url: str, deadline: float) -> Tuple[int, str]:
        with self._client.stream("GET", url) as resp:
            chunks: List[bytes] = []
            # Stop reading once the caller has given up on us
            for chunk in resp.iter_bytes():
                if time.monotonic() > deadline:
                    raise UpstreamTransportError(f"deadline passed while reading {url}")
                chunks.append(chunk)

            body = b"".join(chunks)
            return resp.status_code, body.decode(resp.encoding or "utf-8", errors="replace")

    def close(self) -> None:
        self._pool.shutdown(wait=False)
        self._client.close()


def build_fetcher(config: Optional[FetcherConfig] = None) -> VersionFetcher:
    """
    Build the fetcher used by the handler, once per container.
    """
    if config is None:
        config = load_config()

    fetcher = VersionFetcher(config)
    logger.info(
        "Version fetcher initialized",
        extra={"timeout_ms": config.timeout_ms, "http2": not config.force_http1},
    )
    return fetcher
