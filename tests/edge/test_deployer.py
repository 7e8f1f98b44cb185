import threading
import time

import pytest

from docmeta.config import ConfigError, EdgeConfig, EdgeEnvironment
from docmeta.edge.deployer import EdgeDeployer
from docmeta.http import HttpResponse, PermanentUpstreamError, TransientUpstreamError
from tests._fixtures.fakes import RecordingTransport

STAGE = EdgeEnvironment(site="docs", code_branch="stage", content_source_auth=True)
PROD = EdgeEnvironment(site="docs", code_branch="main")


def _deployer(handler, **overrides) -> tuple[EdgeDeployer, RecordingTransport]:
    transport = RecordingTransport(handler)
    config = EdgeConfig(org="acme", path_prefix="/products/docs", **overrides)
    return EdgeDeployer(config, transport=transport), transport


def test_page_path_strips_pages_root_and_adds_prefix() -> None:
    deployer, _transport = _deployer(lambda _request: HttpResponse(200))

    assert deployer.page_path("src/pages/guides/setup.md") == "/products/docs/guides/setup.md"
    assert deployer.page_path("other/file.md") == "/products/docs/other/file.md"


def test_trigger_builds_admin_url() -> None:
    deployer, transport = _deployer(lambda _request: HttpResponse(200))

    status = deployer.trigger("live", PROD, "/products/docs/a.md")

    assert status == 200
    request = transport.requests[0]
    assert request.method == "POST"
    assert request.url == "https://admin.hlx.page/live/acme/docs/main/products/docs/a.md"
    assert request.headers == {}


def test_content_source_header_for_preview_only() -> None:
    deployer, transport = _deployer(lambda _request: HttpResponse(200))

    deployer.trigger("preview", STAGE, "/a.md", branch="feature-x")
    deployer.trigger("live", STAGE, "/a.md", branch="feature-x")

    assert transport.requests[0].headers == {"x-content-source-authorization": "feature-x"}
    assert transport.requests[1].headers == {}


def test_trigger_without_response_returns_none() -> None:
    def handler(_request):
        raise PermanentUpstreamError(None, "connection refused")

    deployer, _transport = _deployer(handler)

    assert deployer.trigger("preview", PROD, "/a.md") is None


def test_deploy_reports_errors_first() -> None:
    def handler(request):
        return HttpResponse(404 if request.url.endswith("broken.md") else 200)

    deployer, transport = _deployer(handler)

    report = deployer.deploy(
        ["src/pages/a.md", "src/pages/broken.md", "src/pages/img.png", "src/pages/data.json"],
        ["src/pages/old.md"],
        "preview",
        PROD,
    )

    assert [(result.path, result.status) for result in report.results] == [
        ("src/pages/broken.md", "error"),
        ("src/pages/a.md", "success"),
        ("src/pages/data.json", "success"),
        ("src/pages/old.md", "success"),
        ("src/pages/img.png", "skipped"),
    ]
    assert [result.page_path for result in report.results] == [
        "/products/docs/broken.md",
        "/products/docs/a.md",
        "/products/docs/data.json",
        "/products/docs/old.md",
        None,
    ]
    assert report.results[0].note == "HTTP 404 - preview failed"
    assert report.results[3].note == "HTTP 200 - Delete preview completed"
    assert report.results[4].note == "Only .md or .json files are allowed"
    assert len(report.failed) == 1
    deletes = [request for request in transport.requests if request.method == "DELETE"]
    assert [request.url for request in deletes] == [
        "https://admin.hlx.page/preview/acme/docs/main/products/docs/old.md"
    ]


def test_unreachable_service_is_reported_as_unknown() -> None:
    def handler(_request):
        raise PermanentUpstreamError(None, "timed out")

    deployer, _transport = _deployer(handler)

    report = deployer.deploy(["src/pages/a.md"], [], "cache", PROD)

    assert report.results[0].status == "error"
    assert report.results[0].note == "HTTP Unknown - cache failed"


def test_batches_bound_concurrency() -> None:
    lock = threading.Lock()
    state = {"active": 0, "peak": 0}

    def handler(_request):
        with lock:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
        time.sleep(0.01)
        with lock:
            state["active"] -= 1
        return HttpResponse(200)

    deployer, transport = _deployer(handler, batch_size=2)
    paths = [f"src/pages/p{index}.md" for index in range(7)]

    report = deployer.deploy(paths, [], "live", PROD)

    assert len(report.results) == 7
    assert len(transport.requests) == 7
    assert state["peak"] <= 2


def test_unknown_operation_is_rejected() -> None:
    deployer, transport = _deployer(lambda _request: HttpResponse(200))

    with pytest.raises(ConfigError):
        deployer.deploy(["src/pages/a.md"], [], "publish", PROD)

    assert transport.requests == []


def test_dropped_connection_does_not_stop_other_batches() -> None:
    def handler(request):
        if request.url.endswith("/p0.md"):
            raise TransientUpstreamError(None, "POST timed out")
        return HttpResponse(200)

    deployer, transport = _deployer(handler, batch_size=2)
    paths = [f"src/pages/p{index}.md" for index in range(5)]

    report = deployer.deploy(paths, [], "preview", PROD)

    assert len(transport.requests) == 5
    assert [(result.path, result.note) for result in report.failed] == [
        ("src/pages/p0.md", "HTTP Unknown - preview failed")
    ]
    assert len(report.results) == 5


def test_duplicate_paths_are_deployed_once() -> None:
    deployer, transport = _deployer(lambda _request: HttpResponse(200))

    report = deployer.deploy(
        ["src/pages/a.md", "src/pages/a.md", "src/pages/b.md"], ["src/pages/a.md"], "preview", PROD
    )

    assert [request.method for request in transport.requests].count("POST") == 2
    assert [(result.path, result.status) for result in report.results] == [
        ("src/pages/a.md", "success"),
        ("src/pages/a.md", "success"),
        ("src/pages/b.md", "success"),
    ]
    assert [result.note for result in report.results[:2]] == [
        "HTTP 200 - preview completed",
        "HTTP 200 - Delete preview completed",
    ]


def test_preview_url_uses_branch_site_and_org() -> None:
    deployer, transport = _deployer(lambda _request: HttpResponse(200))

    assert (
        deployer.preview_url(STAGE, "src/pages/guides/setup.md")
        == "https://stage--docs--acme.aem.page/products/docs/guides/setup"
    )
    assert (
        deployer.preview_url(STAGE, "src/pages/index.md", branch="Feature/New")
        == "https://feature-new--docs--acme.aem.page/products/docs/index"
    )
    assert transport.requests == []
