"""
Tests for settings loading
"""
import pytest
from pydantic import ValidationError

from health_stats_repro.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.image_name == "docker-poke:healthchecks"
    assert settings.image_sleep == "2m"
    assert settings.container_count == 2
    assert settings.run_duration == 10.0
    assert settings.call_timeout == 15.0
    assert settings.stop_container is False
    assert settings.remove_container is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("HSR_RUN_DURATION", "1.5")
    monkeypatch.setenv("HSR_REMOVE_CONTAINER", "true")

    settings = Settings(_env_file=None)

    assert settings.run_duration == 1.5
    assert settings.remove_container is True


def test_from_yaml(tmp_path):
    path = tmp_path / "repro.yaml"
    path.write_text("call_timeout: 3\nstop_container: true\noutput_dir: out\n")

    settings = Settings.from_yaml(path)

    assert settings.call_timeout == 3.0
    assert settings.stop_container is True
    assert str(settings.output_dir) == "out"


def test_from_empty_yaml(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert Settings.from_yaml(path).container_count == 2


def test_container_count_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(container_count=0, _env_file=None)
