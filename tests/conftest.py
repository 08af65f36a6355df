"""
Pytest fixtures and configuration for cdxhistory tests.

=============================================================================
Test Classification
=============================================================================

Primary Markers:
- @pytest.mark.unit: Single class/function, no external dependencies
  - DEFAULT: Tests without marker are auto-classified as unit

- @pytest.mark.integration: Multiple components wired together, with the
  CDX server simulated by httpx.MockTransport

- @pytest.mark.e2e: Real CDX server (set CDXHISTORY_E2E_SERVER_URL)
  - DEFAULT EXCLUDED: Must use `pytest -m e2e` to run

- @pytest.mark.slow: Tests taking >5 seconds
  - DEFAULT EXCLUDED: Must use `pytest -m slow` to run

=============================================================================
Mock Strategy
=============================================================================

- CDX server: httpx.MockTransport injected into the loader/client
- Configuration: tmp_path config dir + monkeypatch'd environment
- Network: Prohibited in unit and integration tests
"""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest

# Set test environment before importing anything else
os.environ["CDXHISTORY_CONFIG_DIR"] = str(Path(__file__).parent.parent / "config")


# =============================================================================
# Pytest Hooks for Test Classification
# =============================================================================


def pytest_configure(config):
    """Register custom markers for test classification."""
    config.addinivalue_line(
        "markers", "unit: Unit tests with no external dependencies (fast, <1s/test)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests with a simulated CDX server (<5s/test)"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests against a real CDX server (excluded by default)"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds (excluded by default)"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-apply the unit marker to tests without a classification."""
    for item in items:
        has_classification = any(
            marker.name in ("unit", "integration", "e2e") for marker in item.iter_markers()
        )
        if not has_classification:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Clear the cached settings around every test."""
    from cdxhistory.utils.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def cdx_config():
    """CDX configuration pointing at a fake server."""
    from cdxhistory.utils.config import CdxConfig

    return CdxConfig(server_url="http://cdx.test/web", query_limit=10)


class FakeCdxServer:
    """Records requests and answers them with a canned CDX body."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.body = ""
        self.status_code = 200
        self.error: Exception | None = None

    def respond(self, *lines: str, status_code: int = 200) -> None:
        self.body = "".join(f"{line}\n" for line in lines)
        self.status_code = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(
            self.status_code,
            text=self.body,
            headers={"Content-Type": "text/plain"},
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def cdx_server() -> FakeCdxServer:
    """Fake CDX server; pass ``cdx_server.transport`` to the loader."""
    return FakeCdxServer()


@pytest.fixture
def make_loader(cdx_config, cdx_server) -> Generator[Callable[..., object], None, None]:
    """Factory for started loaders wired to the fake CDX server."""
    from cdxhistory.crawler.history_loader import CdxServerHistoryLoader

    loaders: list[CdxServerHistoryLoader] = []

    def _make(**kwargs) -> CdxServerHistoryLoader:
        config = kwargs.pop("config", cdx_config)
        loader = CdxServerHistoryLoader(config, transport=cdx_server.transport, **kwargs)
        loader.start()
        loaders.append(loader)
        return loader

    yield _make

    for loader in loaders:
        loader.stop()
