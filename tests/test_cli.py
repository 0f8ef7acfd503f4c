# File: tests/test_cli.py
"""CLI tests (`site_compare.cli`) using click.testing.CliRunner.
They cover `compare`, `config`, `--version` and error handling.
"""
import asyncio
import importlib
import json

import pytest
from click.testing import CliRunner

from site_compare.aggregator import aggregate_results
from site_compare.api import CONFIG_KEY
from site_compare.cli import cli
from site_compare.crawler.models import PageRecord
from site_compare.engine import InvalidInputError
from site_compare.matcher import match_pages

# site_compare/__init__ re-exports the click Group as `cli`, shadowing the submodule.
cli_module = importlib.import_module("site_compare.cli")

QUIET = ["--log-level", "CRITICAL"]


@pytest.fixture(autouse=True)
def patch_compare(monkeypatch):
    """Replace compare_sites with a canned report, recording the config it got."""
    calls = []

    async def fake_compare(url1, url2, cfg):
        calls.append((url1, url2, cfg))
        site1 = {"/": PageRecord("/", url1, b"one")}
        site2 = {"/": PageRecord("/", url2, b"two"), "/new": PageRecord("/new", url2 + "/new", b"new")}
        return aggregate_results(url1, url2, site1, site2, match_pages(site1, site2), {})

    monkeypatch.setattr(cli_module, "compare_sites", fake_compare)
    return calls


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    # keep configs/default.yaml of the repository out of the way
    monkeypatch.chdir(tmp_path)


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SiteCompare" in result.output


def test_show_config(tmp_path):
    cfg_file = tmp_path / "site.yaml"
    cfg_file.write_text("max_pages: 7\nmatch_strategy: exact\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["max_pages"] == 7
    assert data["match_strategy"] == "exact"
    assert data["navigation_timeout"] == 5.0


def test_bad_config_file(tmp_path):
    cfg_file = tmp_path / "bad.json"
    cfg_file.write_text(json.dumps({"max_pages": 0}), encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_compare_stdout(patch_compare):
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["compare", "http://a.test", "http://b.test"])
    assert result.exit_code == 0
    output = json.loads(result.output)
    assert [r["path"] for r in output["rows"]] == ["/", "new"]
    assert output["rows"][1]["page1"] is None
    assert patch_compare[0][:2] == ("http://a.test", "http://b.test")


def test_compare_overrides(patch_compare):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        QUIET + ["compare", "http://a.test", "http://b.test", "--limit", "3", "--strategy", "exact", "--timeout", "60"],
    )
    assert result.exit_code == 0
    cfg = patch_compare[0][2]
    assert cfg.max_pages == 3
    assert cfg.match_strategy.value == "exact"
    assert cfg.compare_timeout == 60.0


def test_compare_json_file(tmp_path):
    out = tmp_path / "out.json"
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["compare", "http://a.test", "http://b.test", "--json", str(out)])
    assert result.exit_code == 0
    assert "JSON report" in result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["pairs"][0]["path"] == "/"


def test_compare_html_file(tmp_path):
    out = tmp_path / "report.html"
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["compare", "http://a.test", "http://b.test", "--html", str(out)])
    assert result.exit_code == 0
    assert out.exists()
    assert "No page" in out.read_text(encoding="utf-8")


def test_compare_invalid_input(monkeypatch):
    async def reject(url1, url2, cfg):
        raise InvalidInputError("Invalid URL format: nope")

    monkeypatch.setattr(cli_module, "compare_sites", reject)
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["compare", "nope", "http://b.test"])
    assert result.exit_code == 1
    assert "Invalid input" in result.output


def test_compare_timeout(monkeypatch):
    async def slow(url1, url2, cfg):
        raise asyncio.TimeoutError

    monkeypatch.setattr(cli_module, "compare_sites", slow)
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["compare", "http://a.test", "http://b.test", "--timeout", "1"])
    assert result.exit_code == 1
    assert "did not finish within 1.0 seconds" in result.output


def test_compare_failure(monkeypatch):
    async def broken(url1, url2, cfg):
        raise RuntimeError("playwright browsers are not installed")

    monkeypatch.setattr(cli_module, "compare_sites", broken)
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["compare", "http://a.test", "http://b.test"])
    assert result.exit_code == 1
    assert "playwright browsers are not installed" in result.output


def test_compare_mobile_viewport(patch_compare, tmp_path):
    cfg_file = tmp_path / "wide.yaml"
    cfg_file.write_text("viewport_width: 1920\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(
        cli, QUIET + ["--config", str(cfg_file), "compare", "http://a.test", "http://b.test", "--viewport", "mobile"]
    )
    assert result.exit_code == 0
    assert patch_compare[0][2].viewport_size == {"width": 375, "height": 812}


def test_compare_rejects_unknown_viewport():
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["compare", "http://a.test", "http://b.test", "--viewport", "tablet"])
    assert result.exit_code == 2


def test_serve_viewport(monkeypatch):
    served = []
    monkeypatch.setattr(cli_module.web, "run_app", lambda app, host, port: served.append((app, host, port)))

    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["serve", "--port", "9001", "--viewport", "mobile"])
    assert result.exit_code == 0
    app, host, port = served[0]
    assert (host, port) == ("127.0.0.1", 9001)
    assert app[CONFIG_KEY].viewport_size == {"width": 375, "height": 812}
