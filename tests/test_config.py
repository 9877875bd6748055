# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# dupinspect/tests/test_config.py

from pathlib import Path

import pytest

from dupinspect.config import Settings, load_settings

ENV_VARS = ("DUPINSPECT_LOCATION", "DUPINSPECT_PREFIX", "DUPINSPECT_VERIFY_MANIFESTS", "DUPINSPECT_LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = load_settings()
        assert settings == Settings()
        assert settings.location is None
        assert settings.verify_manifests is True
        assert settings.log_level == "INFO"

    def test_file_then_env(self, tmp_path, monkeypatch):
        config = tmp_path / "dupinspect.toml"
        config.write_text(
            '[dupinspect]\nlocation = "/srv/backup"\nprefix = "nas"\nlog_level = "debug"\n'
        )
        settings = load_settings(config)
        assert settings.location == Path("/srv/backup")
        assert settings.prefix == "nas"
        assert settings.log_level == "DEBUG"

        monkeypatch.setenv("DUPINSPECT_PREFIX", "other")
        monkeypatch.setenv("DUPINSPECT_VERIFY_MANIFESTS", "no")
        settings = load_settings(config)
        assert settings.prefix == "other"
        assert settings.verify_manifests is False
        assert settings.location == Path("/srv/backup")

    def test_unknown_key(self, tmp_path):
        config = tmp_path / "bad.toml"
        config.write_text("[dupinspect]\ncolour = true\n")
        with pytest.raises(ValueError):
            load_settings(config)

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            Settings(log_level="LOUD")
        with pytest.raises(ValueError):
            Settings(prefix="a.b")

    def test_with_location(self):
        settings = Settings().with_location(Path("/mnt/nas"))
        assert settings.location == Path("/mnt/nas")
        assert settings.with_location(None) is settings
