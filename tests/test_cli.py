"""Tests for the click command: configuration errors, exit codes, end-to-end run."""

import glob
import json
import os

import pytest
from click.testing import CliRunner
from provisioning_inventory import __version__, console
from provisioning_inventory.cli import main
from tests.mock_okta_server import MockOktaServer, make_app, make_feature


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv("OKTA_DOMAIN", raising=False)
    monkeypatch.delenv("OKTA_API_TOKEN", raising=False)
    yield CliRunner()
    console.set_verbose(False)


def test_missing_configuration_exits_2(runner):
    with runner.isolated_filesystem():
        result = runner.invoke(main, [])
    assert result.exit_code == 2
    assert "Missing required configuration" in result.output


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_end_to_end_with_options(runner, tmp_path):
    with MockOktaServer(
        apps=[make_app("0oa1", "slack"), make_app("0oa2", "custom")],
        features={"0oa1": [make_feature()]},
    ) as server:
        result = runner.invoke(main, [
            "--domain", server.base_url,
            "--token", "t",
            "--output-dir", str(tmp_path),
            "--pace-seconds", "0",
            "--backoff-seconds", "0",
        ])
    assert result.exit_code == 0, result.output
    files = glob.glob(os.path.join(str(tmp_path), "*.csv"))
    assert len(files) == 1
    assert "Provisioning enabled:    1" in result.output


def test_environment_variables(runner, tmp_path):
    with MockOktaServer(apps=[make_app("0oa1", "custom")]) as server:
        result = runner.invoke(
            main,
            ["--output-dir", str(tmp_path), "--pace-seconds", "0", "--format", "json"],
            env={"OKTA_DOMAIN": server.base_url, "OKTA_API_TOKEN": "t"},
        )
    assert result.exit_code == 0, result.output
    files = glob.glob(os.path.join(str(tmp_path), "*.json"))
    data = json.loads(open(files[0], encoding="utf-8").read())
    assert data["applications"][0]["AppId"] == "0oa1"


def test_settings_file(runner, tmp_path):
    with MockOktaServer(apps=[make_app("0oa1", "custom")], token="file-token") as server:
        cfg = tmp_path / "settings.json"
        cfg.write_text(json.dumps({"OktaDomain": server.base_url, "ApiToken": "file-token"}))
        result = runner.invoke(main, [
            "--config", str(cfg), "--output-dir", str(tmp_path / "out"), "--pace-seconds", "0",
        ])
    assert result.exit_code == 0, result.output
    assert "file-token" not in result.output


def test_listing_failure_exits_1(runner, tmp_path):
    with MockOktaServer(errors={"/api/v1/apps": 500}) as server:
        result = runner.invoke(main, [
            "--domain", server.base_url, "--token", "t", "--output-dir", str(tmp_path),
        ])
    assert result.exit_code == 1
    assert glob.glob(os.path.join(str(tmp_path), "*.csv")) == []


def test_verbose_redacts_token(runner, tmp_path):
    with MockOktaServer(apps=[make_app("0oa1", "custom")], token="super-secret") as server:
        result = runner.invoke(main, [
            "--domain", server.base_url, "--token", "super-secret", "-v",
            "--output-dir", str(tmp_path), "--pace-seconds", "0",
        ])
    assert result.exit_code == 0, result.output
    assert "***REDACTED***" in result.output
    assert "super-secret" not in result.output


def test_interrupt_exits_130_without_report(runner, tmp_path, monkeypatch):
    def interrupted(*args, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr("provisioning_inventory.cli.run_inventory", interrupted)
    result = runner.invoke(main, [
        "--domain", "example.okta.com", "--token", "t", "--output-dir", str(tmp_path),
    ])
    assert result.exit_code == 130
    assert "Interrupted" in result.output
    assert os.listdir(str(tmp_path)) == []
