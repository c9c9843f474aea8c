"""Tests for the command line interface."""

import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from lunr_store.cli import main
from lunr_store.store import SearchStore


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Create a small site with a config and one post.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        Path to the site root.
    """
    site = tmp_path / "site"
    (site / "_posts").mkdir(parents=True)
    (site / "_config.yml").write_text("permalink: /:title/\n")
    (site / "_posts" / "2016-01-01-go-gin-rest-api.md").write_text(
        "---\ntitle: Building a REST API with Gin\n---\nGin is a web framework.\n"
    )
    return site


def test_build_default_output(site_dir: Path) -> None:
    """Test building into the default _site location."""
    assert main(["build", str(site_dir)]) == 0

    store = SearchStore.load(site_dir / "_site" / "assets" / "js" / "lunr" / "lunr-store.js")
    assert [entry.url for entry in store] == ["/go-gin-rest-api/"]


def test_build_json_output(site_dir: Path, tmp_path: Path) -> None:
    """Test building a JSON store at an explicit path."""
    output = tmp_path / "search.data"

    assert main(["build", str(site_dir), "--output", str(output), "--format", "json"]) == 0

    records = json.loads(output.read_text(encoding="utf-8"))
    assert records[0]["title"] == "Building a REST API with Gin"


def test_build_with_drafts_flag(site_dir: Path, tmp_path: Path) -> None:
    """Test that --drafts includes _drafts."""
    (site_dir / "_drafts").mkdir()
    (site_dir / "_drafts" / "idea.md").write_text("---\ntitle: Idea\n---\nMaybe.\n")
    output = tmp_path / "lunr-store.js"

    assert main(["build", str(site_dir), "-o", str(output), "--drafts"]) == 0

    assert "/idea/" in SearchStore.load(output)


def test_build_with_explicit_config(site_dir: Path, tmp_path: Path) -> None:
    """Test that --config replaces the site config."""
    config = tmp_path / "other.yml"
    config.write_text("permalink: none\n")
    output = tmp_path / "lunr-store.js"

    assert main(["build", str(site_dir), "--config", str(config), "-o", str(output)]) == 0

    assert "/go-gin-rest-api.html" in SearchStore.load(output)


def test_build_missing_site(tmp_path: Path) -> None:
    """Test that a missing site directory fails with status 1."""
    assert main(["build", str(tmp_path / "missing"), "-o", str(tmp_path / "out.js")]) == 1


def test_build_invalid_config(site_dir: Path) -> None:
    """Test that a malformed config fails with status 1."""
    (site_dir / "_config.yml").write_text("permalink: [broken\n")

    assert main(["build", str(site_dir)]) == 1


def test_build_git_failure(tmp_path: Path) -> None:
    """Test that a failed clone is reported with status 1."""
    error = subprocess.CalledProcessError(128, ["git", "clone"], stderr=b"fatal: repository not found")

    with patch("subprocess.run", side_effect=error):
        status = main(["build", "--git", "https://example.com/missing.git", "-o", str(tmp_path / "out.js")])

    assert status == 1


def test_validate_valid_store(site_dir: Path, tmp_path: Path) -> None:
    """Test validating a freshly built store."""
    output = tmp_path / "lunr-store.js"
    main(["build", str(site_dir), "-o", str(output)])

    assert main(["validate", str(output)]) == 0


def test_validate_reports_problems(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    """Test that duplicate urls and empty titles fail validation."""
    record = {"title": "", "excerpt": "", "categories": [], "tags": [], "url": "/same/", "teaser": None}
    path = tmp_path / "lunr-store.js"
    path.write_text("var store = " + json.dumps([record, dict(record, title="Ok")]), encoding="utf-8")

    assert main(["validate", str(path)]) == 1
    assert "repeats url /same/" in caplog.text
    assert "has an empty title" in caplog.text


def test_validate_unparseable_store(tmp_path: Path) -> None:
    """Test that a broken store file fails validation."""
    path = tmp_path / "lunr-store.js"
    path.write_text("var store = [{", encoding="utf-8")

    assert main(["validate", str(path)]) == 1


def test_missing_command_is_usage_error() -> None:
    """Test that running without a subcommand exits with status 2."""
    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code == 2
