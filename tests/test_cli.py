# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# dupinspect/tests/test_cli.py

import sys
from datetime import timedelta

import pytest
from loguru import logger
from typer.testing import CliRunner

from dupinspect.cli.main import app

from conftest import T2, T3, add_set, member


class DirectoryBackend:
    """Writes the files of a memory-built archive into a directory."""

    def __init__(self, root):
        self.root = root

    def add(self, name, content):
        (self.root / name).write_bytes(content)


@pytest.fixture
def location(tmp_path, three_snapshot_backend):
    for name, content in three_snapshot_backend.files.items():
        (tmp_path / name).write_bytes(content)
    return tmp_path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("DUPINSPECT_LOCATION", "DUPINSPECT_PREFIX", "DUPINSPECT_VERIFY_MANIFESTS", "DUPINSPECT_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("DUPINSPECT_LOG_LEVEL", "ERROR")
    yield
    logger.remove()
    logger.add(sys.stderr)


runner = CliRunner()


class TestCli:
    """Console commands over a local backup directory."""

    def test_chains(self, location):
        result = runner.invoke(app, ["chains", str(location)])
        assert result.exit_code == 0, result.stdout
        assert "Chain 0 (primary): duplicity, 3 snapshots" in result.stdout
        assert "Orphaned" not in result.stdout

    def test_chains_reports_orphans(self, location):
        add_set(DirectoryBackend(location), T3 + timedelta(days=1), [member("snapshot/x", b"x")], start=T3)
        result = runner.invoke(app, ["chains", str(location)])
        assert result.exit_code == 0, result.stdout
        assert "Orphaned sets: 1" in result.stdout

    def test_snapshots(self, location):
        result = runner.invoke(app, ["snapshots", str(location)])
        assert result.exit_code == 0, result.stdout
        lines = result.stdout.strip().splitlines()
        assert len(lines) == 3
        assert lines[0].split()[:2] == ["0", "full"]
        assert T2.isoformat() in lines[2]

    def test_ls_latest(self, location):
        result = runner.invoke(app, ["ls", str(location)])
        assert result.exit_code == 0, result.stdout
        paths = [line.split("\t")[-1] for line in result.stdout.strip().splitlines()]
        assert paths == [".", "home", "home/a.txt", "home/b.txt", "home/c.txt"]

    def test_ls_first_snapshot(self, location):
        result = runner.invoke(app, ["ls", str(location), "--snapshot", "0"])
        assert result.exit_code == 0, result.stdout
        assert "home/link -> a.txt" in result.stdout

    def test_ls_summary(self, location):
        result = runner.invoke(app, ["ls", str(location), "--summary"])
        assert result.exit_code == 0, result.stdout
        assert result.stdout.startswith("5 entries")

    def test_manifest(self, location):
        result = runner.invoke(app, ["manifest", str(location), "-s", "1"])
        assert result.exit_code == 0, result.stdout
        assert "Hostname: pbnas" in result.stdout
        assert "Volumes: 1" in result.stdout

    def test_manifest_raw(self, location):
        result = runner.invoke(app, ["manifest", str(location), "--raw"])
        assert result.exit_code == 0, result.stdout
        assert result.stdout.startswith("Hostname pbnas\n")

    def test_location_from_environment(self, location, monkeypatch):
        monkeypatch.setenv("DUPINSPECT_LOCATION", str(location))
        result = runner.invoke(app, ["snapshots"])
        assert result.exit_code == 0, result.stdout

    def test_location_from_config(self, location, tmp_path_factory):
        config = tmp_path_factory.mktemp("conf") / "dupinspect.toml"
        config.write_text(f'[dupinspect]\nlocation = "{location.as_posix()}"\n')
        result = runner.invoke(app, ["--config", str(config), "snapshots"])
        assert result.exit_code == 0, result.stdout

    def test_missing_location(self, tmp_path):
        result = runner.invoke(app, ["chains", str(tmp_path / "nope")])
        assert result.exit_code == 1

    def test_no_location(self):
        result = runner.invoke(app, ["chains"])
        assert result.exit_code == 1

    def test_bad_snapshot_number(self, location):
        result = runner.invoke(app, ["ls", str(location), "--snapshot", "7"])
        assert result.exit_code == 1

    def test_empty_directory(self, tmp_path):
        result = runner.invoke(app, ["chains", str(tmp_path)])
        assert result.exit_code == 0
        assert "No backup sets found" in result.stdout
