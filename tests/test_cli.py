"""Tests for the ``mcafee`` command line."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest
import responses
from click.testing import CliRunner

from mcafee_av import cli as cli_module
from mcafee_av.cli import cli
from mcafee_av.config import Settings

from .helpers import script

ES = "http://elasticsearch:9200"
ENDPOINT = "http://malice:3993/callback"

INFECTED_SCAN = script("import sys; print(sys.argv[1] + '\\tEICAR test file'); sys.exit(1)")


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def use_settings(monkeypatch: pytest.MonkeyPatch, settings: Settings):
    def apply(**update) -> Settings:
        configured = settings.model_copy(update=update)
        monkeypatch.setattr(cli_module, "get_settings", lambda: configured)
        return configured

    apply()
    return apply


class TestHelp:
    def test_help(self, runner: CliRunner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Malice McAfee AntiVirus Plugin" in result.output
        for command in ("scan", "update", "web"):
            assert command in result.output

    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestScanCommand:
    def test_clean_json(self, runner: CliRunner, use_settings, sample_file: Path):
        result = runner.invoke(cli, ["scan", str(sample_file)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data == {
            "mcafee": {
                "infected": False,
                "result": "",
                "engine": "Engine version: 6000.8403",
                "database": "Dat set version: 9999 created Oct 16 2026",
                "updated": "20260101",
            }
        }

    def test_infected_json(self, runner: CliRunner, use_settings, sample_file: Path):
        use_settings(scan_cmd=INFECTED_SCAN)
        result = runner.invoke(cli, ["scan", str(sample_file)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["mcafee"]
        assert data["infected"] is True
        assert data["result"] == "EICAR test file"
        assert "markdown" not in data

    def test_table(self, runner: CliRunner, use_settings, sample_file: Path):
        use_settings(scan_cmd=INFECTED_SCAN)
        result = runner.invoke(cli, ["scan", "--table", str(sample_file)])
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("#### McAfee")
        assert "| **Yes** | EICAR test file |" in result.stdout
        assert "{" not in result.stdout

    def test_relative_path(self, runner: CliRunner, use_settings, sample_file: Path, monkeypatch):
        monkeypatch.chdir(sample_file.parent)
        result = runner.invoke(cli, ["scan", sample_file.name])
        assert result.exit_code == 0, result.output

    def test_missing_file(self, runner: CliRunner, use_settings, tmp_path: Path):
        result = runner.invoke(cli, ["scan", str(tmp_path / "nope.exe")])
        assert result.exit_code == 1
        assert '"mcafee"' not in result.stdout
        assert "no such file to scan" in result.output

    def test_missing_license_is_fatal(self, runner: CliRunner, use_settings, sample_file: Path, tmp_path: Path):
        use_settings(license_file=tmp_path / "missing.mcafeelic")
        result = runner.invoke(cli, ["scan", str(sample_file)])
        assert result.exit_code == 1
        assert "could not find mcafee license file" in result.output

    def test_expired_license_still_scans(self, runner: CliRunner, use_settings, sample_file: Path, tmp_path: Path):
        expired = tmp_path / "expired.mcafeelic"
        expired.write_text("UpdateValidThru=1501774374\n")
        use_settings(license_file=expired)
        result = runner.invoke(cli, ["scan", str(sample_file)])
        assert result.exit_code == 0
        assert "mcafee license has expired" in result.output
        assert '"infected": false' in result.output

    def test_engine_failure(self, runner: CliRunner, use_settings, sample_file: Path):
        use_settings(scan_cmd=script("import sys; sys.exit(6)"))
        result = runner.invoke(cli, ["scan", str(sample_file)])
        assert result.exit_code == 1
        assert '"mcafee"' not in result.stdout
        assert "fault=process" in result.output

    def test_timeout(self, runner: CliRunner, use_settings, sample_file: Path):
        use_settings(scan_cmd=script("import time; time.sleep(30)"))
        result = runner.invoke(cli, ["--timeout", "1", "scan", str(sample_file)])
        assert result.exit_code == 1
        assert "fault=timeout" in result.output


class TestDefaultCommand:
    def test_bare_path_scans(self, runner: CliRunner, use_settings, sample_file: Path):
        result = runner.invoke(cli, [str(sample_file)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["mcafee"]
        assert data["infected"] is False
        assert data["engine"] == "Engine version: 6000.8403"

    def test_scan_options_before_path(self, runner: CliRunner, use_settings, sample_file: Path):
        use_settings(scan_cmd=INFECTED_SCAN)
        result = runner.invoke(cli, ["--table", str(sample_file)])
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("#### McAfee")

    def test_group_options_still_apply(self, runner: CliRunner, use_settings, sample_file: Path):
        use_settings(scan_cmd=script("import time; time.sleep(30)"))
        result = runner.invoke(cli, ["--timeout", "1", str(sample_file)])
        assert result.exit_code == 1
        assert "fault=timeout" in result.output

    def test_missing_bare_path(self, runner: CliRunner, use_settings, tmp_path: Path):
        result = runner.invoke(cli, [str(tmp_path / "nope.exe")])
        assert result.exit_code == 1
        assert "no such file to scan" in result.output

    def test_subcommands_win(self, runner: CliRunner, use_settings, settings: Settings):
        result = runner.invoke(cli, ["u"])
        assert result.exit_code == 0, result.output
        assert "Updating McAfee..." in result.output


class TestScanSinks:
    @responses.activate
    def test_elasticsearch(self, runner: CliRunner, use_settings, sample_file: Path):
        scan_id = hashlib.sha256(sample_file.read_bytes()).hexdigest()
        responses.head(f"{ES}/malice", status=200)
        responses.post(f"{ES}/malice/_update/{scan_id}", json={"result": "created"}, status=201)

        result = runner.invoke(cli, ["--elasticsearch", ES, "scan", str(sample_file)])

        assert result.exit_code == 0, result.output
        doc = json.loads(responses.calls[1].request.body)["doc"]["plugins"]["av"]["mcafee"]
        assert doc["infected"] is False
        assert doc["markdown"].startswith("#### McAfee")
        assert json.loads(result.stdout)["mcafee"]["infected"] is False

    @responses.activate
    def test_elasticsearch_failure(self, runner: CliRunner, use_settings, sample_file: Path):
        responses.head(f"{ES}/malice", status=500)
        result = runner.invoke(cli, ["--elasticsearch", ES, "scan", str(sample_file)])
        assert result.exit_code == 1
        assert "fault=store" in result.output

    @responses.activate
    def test_callback(self, runner: CliRunner, use_settings, sample_file: Path):
        use_settings(endpoint=ENDPOINT, scanid="scan-42")
        responses.post(ENDPOINT, body="accepted", status=200)

        result = runner.invoke(cli, ["scan", "--callback", str(sample_file)])

        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "accepted"
        req = responses.calls[0].request
        assert req.headers["X-Malice-ID"] == "scan-42"
        assert json.loads(req.body)["mcafee"]["infected"] is False
        assert b"markdown" not in req.body

    @responses.activate
    def test_callback_through_proxy(self, runner: CliRunner, use_settings, sample_file: Path):
        use_settings(endpoint=ENDPOINT, proxy="http://proxy:8080")
        responses.post(ENDPOINT, body="accepted", status=200)

        result = runner.invoke(cli, ["scan", "-c", "-x", str(sample_file)])

        assert result.exit_code == 0, result.output
        req = responses.calls[0].request
        assert req.req_kwargs["proxies"]["http"] == "http://proxy:8080"
        assert req.headers["X-Malice-ID"] == hashlib.sha256(sample_file.read_bytes()).hexdigest()

    def test_callback_without_endpoint(self, runner: CliRunner, use_settings, sample_file: Path):
        result = runner.invoke(cli, ["scan", "--callback", str(sample_file)])
        assert result.exit_code == 1
        assert "fault=callback" in result.output


class TestUpdateCommand:
    def test_update(self, runner: CliRunner, use_settings, settings: Settings):
        result = runner.invoke(cli, ["update"])
        assert result.exit_code == 0, result.output
        assert "Updating McAfee..." in result.output
        assert "update done" in result.output
        assert len(settings.updated_file.read_text()) == 8

    def test_alias(self, runner: CliRunner, use_settings, settings: Settings):
        result = runner.invoke(cli, ["u"])
        assert result.exit_code == 0, result.output
        assert settings.updated_file.exists()

    def test_update_failure(self, runner: CliRunner, use_settings, settings: Settings):
        use_settings(update_cmd=script("import sys; sys.exit(9)"))
        result = runner.invoke(cli, ["update"])
        assert result.exit_code == 1
        assert not settings.updated_file.exists()
