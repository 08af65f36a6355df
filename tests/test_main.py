"""
Tests for the cdxhistory command line interface.

## Test Perspectives Table

| Case ID | Input / Precondition | Perspective (Equivalence / Boundary) | Expected Result | Notes |
|---------|----------------------|--------------------------------------|-----------------|-------|
| TC-CLI-01 | lookup with a matching capture | Equivalence – normal | JSON history, exit 0 | - |
| TC-CLI-02 | lookup without a match | Boundary – empty | "null", exit 0 | - |
| TC-CLI-03 | lookup ftp:// URL | Abnormal – gate | exit 3, no request | - |
| TC-CLI-04 | lookup without server URL | Abnormal – config | exit 2 | - |
| TC-CLI-05 | lookup --limit 0 | Boundary – invalid override | exit 2 | - |
| TC-CLI-06 | check-config | Equivalence – normal | Effective cdx settings printed | - |
| TC-CLI-07 | --log-level / --console-log | Effect – wiring | configure_logging receives them | - |
"""

import json
from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest
from structlog.testing import capture_logs

from cdxhistory import main as cli
from cdxhistory.crawler.history_loader import CdxServerHistoryLoader

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def mock_configure_logging() -> Generator[MagicMock, None, None]:
    """Keep the CLI from reconfiguring global logging and keep log lines off stdout."""
    with patch("cdxhistory.main.configure_logging") as mock, capture_logs():
        yield mock


@pytest.fixture
def loader_with_fake_server(cdx_server) -> Generator[list, None, None]:
    """Route loaders created by the CLI to the fake CDX server."""
    configs: list = []

    def _create(config):
        configs.append(config)
        return CdxServerHistoryLoader(config, transport=cdx_server.transport)

    with patch("cdxhistory.main.create_loader", side_effect=_create):
        yield configs


class TestLookupCommand:
    """Tests for `cdxhistory lookup`."""

    def test_prints_history(self, cdx_server, loader_with_fake_server, capsys) -> None:
        """
        TC-CLI-01: A matching capture is printed as JSON.

        // Given: The fake server has a capture of the URL
        // When:  `lookup URL --server-url S --limit 5` runs
        // Then:  The history is printed and the exit code is 0
        """
        cdx_server.respond(
            "com,example)/ 20230105000000 http://example.org/ text/html 200 abcd1234 512"
        )

        exit_code = cli.main(
            ["lookup", "http://example.org/", "--server-url", "http://cdx.test/web", "--limit", "5"]
        )

        assert exit_code == cli.EXIT_OK
        assert json.loads(capsys.readouterr().out) == [
            {
                "fetchBeganTime": 1672876800000,
                "contentDigest": "sha1:abcd1234",
                "fetchBeganTimeIso": "2023-01-05T00:00:00Z",
            }
        ]
        (config,) = loader_with_fake_server
        assert config.server_url == "http://cdx.test/web"
        assert config.query_limit == 5
        assert cdx_server.requests[0].url.params["limit"] == "5"

    def test_prints_null_without_match(self, cdx_server, loader_with_fake_server, capsys) -> None:
        """TC-CLI-02: No capture prints null and still succeeds."""
        exit_code = cli.main(["lookup", "http://example.org/", "--server-url", "http://cdx.test/web"])

        assert exit_code == cli.EXIT_OK
        assert capsys.readouterr().out.strip() == "null"

    def test_ineligible_url(self, cdx_server, loader_with_fake_server) -> None:
        """TC-CLI-03: Non-HTTP URLs are rejected without a query."""
        exit_code = cli.main(["lookup", "ftp://example.org/file", "--server-url", "http://cdx.test/web"])

        assert exit_code == cli.EXIT_NOT_ELIGIBLE
        assert cdx_server.requests == []

    def test_missing_server_url(self, cdx_server, loader_with_fake_server) -> None:
        """TC-CLI-04: Without a server URL the loader cannot start."""
        exit_code = cli.main(["lookup", "http://example.org/"])

        assert exit_code == cli.EXIT_CONFIG_ERROR
        assert cdx_server.requests == []

    def test_invalid_limit(self, loader_with_fake_server) -> None:
        """TC-CLI-05: An invalid override is a configuration error."""
        exit_code = cli.main(
            ["lookup", "http://example.org/", "--server-url", "http://cdx.test/web", "--limit", "0"]
        )

        assert exit_code == cli.EXIT_CONFIG_ERROR
        assert loader_with_fake_server == []

    def test_timeout_override(self, loader_with_fake_server) -> None:
        """--timeout sets the read timeout."""
        cli.main(
            ["lookup", "http://example.org/", "--server-url", "http://cdx.test/web", "--timeout", "1.5"]
        )

        assert loader_with_fake_server[0].timeout_seconds == 1.5


class TestCheckConfigCommand:
    """Tests for `cdxhistory check-config`."""

    def test_prints_effective_config(self, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        """TC-CLI-06: The cdx section is printed with env overrides applied."""
        monkeypatch.setenv("CDXHISTORY_CDX__SERVER_URL", "http://outback:9000/web")

        exit_code = cli.main(["check-config"])

        assert exit_code == cli.EXIT_OK
        printed = json.loads(capsys.readouterr().out)
        assert printed["server_url"] == "http://outback:9000/web"
        assert printed["query_limit"] == 10

    def test_missing_server_url(self, capsys) -> None:
        """check-config fails when no server URL is configured."""
        assert cli.main(["check-config"]) == cli.EXIT_CONFIG_ERROR


def test_logging_options(mock_configure_logging: MagicMock) -> None:
    """TC-CLI-07: Logging flags are passed to configure_logging."""
    cli.main(["--log-level", "DEBUG", "--console-log", "check-config"])

    mock_configure_logging.assert_called_once_with(log_level="DEBUG", json_format=False)
