"""Tests for the generate-snapshot CLI command."""

from __future__ import annotations

import orjson
import pytest
from typer.testing import CliRunner

from osswish.cli import app
from osswish.core.errors import SourceFetchError

runner = CliRunner()


@pytest.fixture
def patched_fetcher(monkeypatch: pytest.MonkeyPatch, fetcher):
    monkeypatch.setattr("osswish.sources.create_fetcher", lambda: fetcher)
    return fetcher


class TestGenerateSnapshot:
    """Test snapshot generation."""

    def test_writes_snapshot(self, tmp_path, patched_fetcher) -> None:
        target = tmp_path / "out" / "all-wishlists.json"

        result = runner.invoke(app, ["generate-snapshot", "--output", str(target)])

        assert result.exit_code == 0, result.output
        document = orjson.loads(target.read_bytes())
        assert document["totalWishlists"] == 3
        assert patched_fetcher.closed is True

    def test_fetch_failure_exits_nonzero(self, tmp_path, patched_fetcher) -> None:
        patched_fetcher.error = SourceFetchError("rate limited", status_code=403)
        target = tmp_path / "all-wishlists.json"

        result = runner.invoke(app, ["generate-snapshot", "--output", str(target)])

        assert result.exit_code == 1
        assert not target.exists()
