"""Shared test fixtures and configuration."""

from datetime import datetime, timezone
import os

import pytest


# Complete test environment that overrides every Settings value
TEST_ENV = {
    "DEFAULT_PAGE_SIZE": "10",
    "MAX_PAGE_SIZE": "100",
    "REFRESH_ENABLED": "false",
    "REFRESH_SCHEDULE": "*/15 * * * *",
    "DOCUMENTS_PATH": "",
    "HOST": "127.0.0.1",
    "PORT": "8080",
    "LOG_LEVEL": "info",
    "LOG_JSON": "true",
}


for key, value in TEST_ENV.items():
    os.environ[key] = value

from package_search.domain.model import PackageDocument
from package_search.search.lifecycle import IndexLifecycleController


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Pin the test environment before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("SDK_LIBRARIES", raising=False)


@pytest.fixture
def sample_documents() -> list[PackageDocument]:
    """Small corpus with distinct ranking signals and labels."""
    return [
        PackageDocument(
            package="http",
            description="A composable, Future-based library for making HTTP requests.",
            platforms=["flutter", "server", "web"],
            popularity=0.98,
            health=0.90,
            maintenance=0.80,
            created=datetime(2012, 11, 1, tzinfo=timezone.utc),
            updated=datetime(2024, 5, 1, tzinfo=timezone.utc),
        ),
        PackageDocument(
            package="google_maps_flutter",
            description="Flutter plugin for embedding Google Maps widgets.",
            platforms=["flutter"],
            tags=["maps", "plugin"],
            popularity=0.95,
            health=0.70,
            maintenance=0.90,
            created=datetime(2018, 6, 1, tzinfo=timezone.utc),
            updated=datetime(2024, 8, 1, tzinfo=timezone.utc),
        ),
        PackageDocument(
            package="latlong",
            description="Lightweight library for common latitude and longitude calculations on maps.",
            platforms=["server", "web"],
            popularity=0.40,
            health=0.95,
            maintenance=0.30,
            created=datetime(2015, 3, 1, tzinfo=timezone.utc),
        ),
        PackageDocument(
            package="old_map_tools",
            description="Map helpers.",
            platforms=["web"],
            popularity=0.10,
            health=0.20,
            maintenance=0.10,
            is_discontinued=True,
        ),
    ]


@pytest.fixture
def ready_controller(sample_documents) -> IndexLifecycleController:
    controller = IndexLifecycleController()
    for doc in sample_documents:
        controller.add_package(doc)
    controller.mark_ready()
    return controller
