import importlib
import json
import logging
from pathlib import Path

import httpx

from pages_utils.config import FetcherConfig
from pages_utils.fetcher import UpstreamStatusError, VersionFetcher
from pages_utils.models import VersionRequest

# Target under test: src/pages_version (get_version core + lambda_handler)
# We monkeypatch the module-level fetcher so no request leaves the process.

EVENTS = Path(__file__).parent / "events"

NO_STORE = "no-store, private, must-revalidate"

log = logging.getLogger("test-version")


class StubFetcher:
    def __init__(self, result="", error=None):
        self.result = result
        self.error = error
        self.calls = []

    def fetch_version(self, root, owner, repo, ref):
        self.calls.append((root, owner, repo, ref))
        if self.error is not None:
            raise self.error
        return self.result


def _load_event(name):
    with open(EVENTS / name, "r", encoding="utf-8") as f:
        return json.load(f)


def _version_module(monkeypatch):
    # Keep the module-level fetcher from opening a real client on import
    monkeypatch.setattr("pages_utils.fetcher.build_fetcher", lambda config=None: StubFetcher())
    return importlib.reload(importlib.import_module("src.pages_version"))


def _mock_fetcher(status, text=""):
    transport = httpx.MockTransport(lambda request: httpx.Response(status, text=text))
    return VersionFetcher(FetcherConfig(force_http1=True), transport=transport)


def _request(**overrides):
    fields = {"owner": "test-owner", "repo": "test-repo", "ref": "main"}
    fields.update(overrides)
    return VersionRequest(**fields)


def test_missing_fields_return_400(monkeypatch):
    version = _version_module(monkeypatch)
    expected = {
        "statusCode": 400,
        "headers": {"Cache-Control": NO_STORE},
        "body": "owner, repo, ref required.",
    }

    for missing in ("owner", "repo", "ref"):
        stub = StubFetcher(result="1.0")
        resp = version.get_version(_request(**{missing: None}), log, stub)
        assert resp.to_lambda() == expected
        # No outbound call for invalid requests
        assert stub.calls == []

    stub = StubFetcher(result="1.0")
    assert version.get_version(_request(owner=""), log, stub).to_lambda() == expected
    assert stub.calls == []


def test_returns_version_from_github(monkeypatch):
    version = _version_module(monkeypatch)

    resp = version.get_version(_request(), log, _mock_fetcher(200, "foo-bar\n"))

    assert resp.to_lambda() == {
        "statusCode": 200,
        "body": "foo-bar",
        "headers": {
            "x-pages-version": "foo-bar",
            "Cache-Control": NO_STORE,
            "Surrogate-Control": "max-age: 30",
            "Surrogate-Key": "preflight-main--test-repo--test-owner",
            "Vary": "X-Owner,X-Repo,X-Ref,X-Repo-Root-Path",
        },
    }


def test_404_means_no_version(monkeypatch):
    version = _version_module(monkeypatch)

    resp = version.get_version(_request(), log, _mock_fetcher(404))

    assert resp.status_code == 200
    assert resp.body == "no version"
    assert "x-pages-version" not in resp.headers
    assert resp.headers["Surrogate-Key"] == "preflight-main--test-repo--test-owner"
    assert resp.headers["Cache-Control"] == NO_STORE


def test_upstream_error_returns_504(monkeypatch):
    version = _version_module(monkeypatch)

    resp = version.get_version(_request(), log, _mock_fetcher(500, "oops"))

    assert resp.to_lambda() == {
        "statusCode": 504,
        "headers": {"Cache-Control": NO_STORE},
        "body": "unable to fetch version",
    }


def test_transport_error_returns_504(monkeypatch):
    version = _version_module(monkeypatch)

    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    fetcher = VersionFetcher(FetcherConfig(force_http1=True), transport=httpx.MockTransport(handler))
    resp = version.get_version(_request(), log, fetcher)

    assert resp.status_code == 504
    assert resp.body == "unable to fetch version"


def test_fetch_is_attempted_once(monkeypatch):
    version = _version_module(monkeypatch)
    stub = StubFetcher(error=UpstreamStatusError(502, "bad gateway"))

    resp = version.get_version(_request(), log, stub)

    assert resp.status_code == 504
    assert len(stub.calls) == 1


def test_repeated_requests_are_identical(monkeypatch):
    version = _version_module(monkeypatch)
    fetcher = _mock_fetcher(200, "2.3.4")

    first = version.get_version(_request(), log, fetcher)
    second = version.get_version(_request(), log, fetcher)

    assert first == second


def test_parse_request_from_api_gateway_headers(monkeypatch):
    version = _version_module(monkeypatch)

    req = version.parse_request(_load_event("api_version.json"))

    assert req == VersionRequest(
        owner="test-owner",
        repo="test-repo",
        ref="main",
        root="https://raw.githubusercontent.com/",
    )


def test_parse_request_from_openwhisk_headers(monkeypatch):
    version = _version_module(monkeypatch)

    req = version.parse_request(_load_event("ow_version.json"))

    assert req.owner == "test-owner"
    assert req.ref == "main"
    assert req.root == "https://mirror.example.com/raw/"


def test_parse_request_from_flat_params(monkeypatch):
    version = _version_module(monkeypatch)

    req = version.parse_request({"owner": "o", "repo": "r", "ref": "v1", "root": ""})

    assert req == VersionRequest(owner="o", repo="r", ref="v1")
    assert version.parse_request({}).is_complete() is False


def test_lambda_handler_end_to_end(monkeypatch):
    version = _version_module(monkeypatch)
    stub = StubFetcher(result="foo-bar")
    monkeypatch.setattr(version, "fetcher", stub)

    resp = version.lambda_handler(_load_event("api_version.json"), None)

    assert resp["statusCode"] == 200
    assert resp["body"] == "foo-bar"
    assert resp["headers"]["x-pages-version"] == "foo-bar"
    assert stub.calls == [("https://raw.githubusercontent.com/", "test-owner", "test-repo", "main")]


def test_lambda_handler_missing_ref(monkeypatch):
    version = _version_module(monkeypatch)
    stub = StubFetcher(result="foo-bar")
    monkeypatch.setattr(version, "fetcher", stub)

    resp = version.lambda_handler(_load_event("api_version_missing_ref.json"), None)

    assert resp["statusCode"] == 400
    assert stub.calls == []


def test_lambda_handler_status_check(monkeypatch):
    version = _version_module(monkeypatch)
    stub = StubFetcher(result="foo-bar")
    monkeypatch.setattr(version, "fetcher", stub)
    monkeypatch.setenv("SERVICE_VERSION", "9.9.9")

    resp = version.lambda_handler(_load_event("api_status_check.json"), None)

    assert resp["statusCode"] == 200
    assert json.loads(resp["body"]) == {"status": "ok", "version": "9.9.9"}
    assert stub.calls == []


def test_lambda_handler_unexpected_error_is_500(monkeypatch):
    version = _version_module(monkeypatch)
    monkeypatch.setattr(version, "fetcher", StubFetcher(error=RuntimeError("bug")))

    resp = version.lambda_handler(_load_event("api_version.json"), None)

    assert resp["statusCode"] == 500
    assert resp["headers"] == {"Cache-Control": NO_STORE}


def test_redirected_version_file_is_followed(monkeypatch):
    version = _version_module(monkeypatch)

    def handler(request):
        if request.url.path.startswith("/test-owner/"):
            return httpx.Response(301, headers={"Location": "https://raw.githubusercontent.com/renamed/test-repo/main/helix-version.txt"})
        return httpx.Response(200, text="foo-bar")

    fetcher = VersionFetcher(FetcherConfig(force_http1=True), transport=httpx.MockTransport(handler))
    resp = version.get_version(_request(), log, fetcher)

    assert resp.status_code == 200
    assert resp.body == "foo-bar"


def test_lambda_handler_undecodable_body_is_504(monkeypatch):
    version = _version_module(monkeypatch)

    def handler(request):
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    fetcher = VersionFetcher(FetcherConfig(force_http1=True), transport=httpx.MockTransport(handler))
    monkeypatch.setattr(version, "fetcher", fetcher)

    resp = version.lambda_handler(_load_event("api_version.json"), None)

    assert resp == {
        "statusCode": 504,
        "headers": {"Cache-Control": NO_STORE},
        "body": "unable to fetch version",
    }
