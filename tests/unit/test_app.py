"""Unit tests for the Starlette HTTP surface."""

from __future__ import annotations

import threading

import pytest
from starlette.testclient import TestClient

from package_search.app import build_from_settings, create_app
from package_search.config import Settings
from package_search.domain.model import PackageDocument
from package_search.search.lifecycle import IndexLifecycleController
from package_search.services.index_refresh_service import IndexRefreshService
from package_search.sources import JsonLinesDocumentSource


@pytest.mark.unit
class TestHealth:
    def test_not_ready_reports_503(self):
        client = TestClient(create_app(IndexLifecycleController()))

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
        assert response.json()["index"]["state"] == "not_ready"

    def test_ready_reports_index_stats(self, ready_controller):
        client = TestClient(create_app(ready_controller))

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["index"]["documents_indexed"] == 4


@pytest.mark.unit
class TestSearchEndpoint:
    def test_returns_wire_json(self, ready_controller):
        client = TestClient(create_app(ready_controller))

        response = client.get("/api/search", params={"q": "flutter maps"})

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"timestamp", "totalCount", "sdkLibraryHits", "packageHits"}
        assert body["totalCount"] == 3
        assert body["packageHits"][0] == {"package": "google_maps_flutter", "score": 1.0}
        assert body["sdkLibraryHits"] == []

    def test_not_ready_returns_503(self):
        client = TestClient(create_app(IndexLifecycleController()))

        response = client.get("/api/search", params={"q": "maps"})

        assert response.status_code == 503
        assert response.json() == {"error": "index_not_ready", "message": "Search index is not ready"}

    def test_order_and_paging_parameters(self, ready_controller):
        client = TestClient(create_app(ready_controller))

        response = client.get("/api/search", params={"order": "popularity", "offset": "1", "limit": "1"})

        body = response.json()
        assert body["totalCount"] == 3
        assert body["packageHits"] == [{"package": "google_maps_flutter", "score": 0.95}]

    def test_malformed_parameters_degrade(self, ready_controller):
        client = TestClient(create_app(ready_controller))

        response = client.get("/api/search", params={"q": "maps", "order": "bogus", "offset": "-3", "limit": "x"})

        assert response.status_code == 200
        assert [hit["package"] for hit in response.json()["packageHits"]] == ["google_maps_flutter", "latlong"]

    def test_timestamp_orders_omit_score(self, ready_controller):
        client = TestClient(create_app(ready_controller))

        response = client.get("/api/search", params={"order": "updated"})

        hits = response.json()["packageHits"]
        assert [hit["package"] for hit in hits] == ["google_maps_flutter", "http", "latlong"]
        assert all("score" not in hit for hit in hits)

    def test_filter_parameters(self, ready_controller):
        client = TestClient(create_app(ready_controller))

        hidden = client.get("/api/search", params={"q": "map", "platform": "web"}).json()
        shown = client.get("/api/search", params={"q": "map", "platform": "web", "discontinued": "true"}).json()

        assert [hit["package"] for hit in hidden["packageHits"]] == ["latlong"]
        assert "old_map_tools" in [hit["package"] for hit in shown["packageHits"]]

    def test_sdk_library_hits(self, ready_controller):
        client = TestClient(create_app(ready_controller))

        body = client.get("/api/search", params={"q": "async"}).json()

        assert body["sdkLibraryHits"] == [{"library": "dart:async", "score": 1.0}]


@pytest.mark.unit
class TestRefreshEndpoints:
    def test_refresh_without_service_is_503(self, ready_controller):
        client = TestClient(create_app(ready_controller))

        response = client.post("/api/refresh")

        assert response.status_code == 503
        assert response.json()["success"] is False

    def test_status_without_service(self, ready_controller):
        client = TestClient(create_app(ready_controller))

        body = client.get("/api/refresh/status").json()

        assert body["scheduler_initialized"] is False
        assert body["stats"]["index"]["state"] == "ready"

    def test_lifespan_builds_index_and_refresh_publishes(self):
        controller = IndexLifecycleController()
        controller.add_package(PackageDocument(package="maps"))
        service = IndexRefreshService(controller, run_triggers_in_background=False)

        with TestClient(create_app(controller, service)) as client:
            assert client.get("/health").status_code == 200
            controller.add_package(PackageDocument(package="map"))

            response = client.post("/api/refresh")
            status = client.get("/api/refresh/status").json()
            search = client.get("/api/search", params={"q": "map"}).json()

        assert response.status_code == 202
        assert response.json()["documents"] == 2
        assert status["scheduler_initialized"] is True
        assert status["stats"]["total_runs"] == 2
        assert search["totalCount"] == 2
        assert service.is_initialized is False

    def test_overlapping_refresh_is_409(self, ready_controller):
        release = threading.Event()

        def source():
            assert release.wait(5)
            return []

        service = IndexRefreshService(ready_controller, source=source)

        with TestClient(create_app(ready_controller, service)) as client:
            first = client.post("/api/refresh")
            second = client.post("/api/refresh")
            release.set()

        assert first.status_code == 202
        assert second.status_code == 409
        assert second.json()["message"] == "Refresh already running"


@pytest.mark.unit
def test_metrics_endpoint_exposes_search_counters(ready_controller):
    client = TestClient(create_app(ready_controller))
    client.get("/api/search", params={"q": "maps"})

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert b"package_search_requests_total" in response.content
    assert b"package_index_document_count" in response.content


@pytest.mark.unit
def test_inbound_trace_id_is_echoed(ready_controller):
    client = TestClient(create_app(ready_controller))

    response = client.get("/health", headers={"x-trace-id": "abc123"})

    assert response.status_code == 200
    assert response.headers["x-trace-id"] == "abc123"


@pytest.mark.unit
def test_trace_id_is_generated_per_request(ready_controller):
    client = TestClient(create_app(ready_controller))

    first = client.get("/api/search", params={"q": "maps"}).headers["x-trace-id"]
    second = client.get("/api/search", params={"q": "maps"}).headers["x-trace-id"]

    assert len(first) == 32
    assert first != second


@pytest.mark.unit
def test_app_state_exposes_components(ready_controller):
    app = create_app(ready_controller)

    assert app.state.controller is ready_controller
    assert app.state.refresh_service is None


@pytest.mark.unit
class TestBuildFromSettings:
    def test_wires_source_and_schedule(self, tmp_path):
        path = tmp_path / "packages.jsonl"
        path.write_text('{"package": "maps"}\n')
        settings = Settings(documents_path=str(path), refresh_enabled=True, refresh_schedule="0 * * * *")

        controller, service = build_from_settings(settings)

        assert controller.settings is settings
        assert isinstance(service._source, JsonLinesDocumentSource)
        assert service.refresh_schedule == "0 * * * *"

    def test_disabled_refresh_has_no_schedule(self):
        _, service = build_from_settings(Settings(refresh_enabled=False))

        assert service.refresh_schedule is None
        assert service._source is None

    def test_lifespan_loads_seed_file(self, tmp_path):
        path = tmp_path / "packages.jsonl"
        path.write_text('{"package": "maps", "description": "Maps"}\n{"package": "map"}\n')
        controller, service = build_from_settings(Settings(documents_path=str(path), refresh_enabled=False))

        with TestClient(create_app(controller, service)) as client:
            body = client.get("/api/search", params={"q": "maps"}).json()

        assert [hit["package"] for hit in body["packageHits"]] == ["maps", "map"]
