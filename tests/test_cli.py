"""Tests for the sysmon command line."""

import pytest
from click.testing import CliRunner

from sysmon import app as app_module
from sysmon import cli
from sysmon import logging as sysmon_logging


@pytest.fixture
def launched(monkeypatch):
    """Capture the config the app would be started with."""
    configs = []

    def fake_run(self):
        configs.append(self._app_config)

    monkeypatch.setattr(app_module.SysmonApp, "run", fake_run)
    monkeypatch.setattr(sysmon_logging, "configure", lambda config: None)
    return configs


@pytest.fixture
def no_config_file(tmp_path):
    return ["--config", str(tmp_path / "missing.toml")]


def test_default_interval(launched, no_config_file):
    result = CliRunner().invoke(cli.main, no_config_file)

    assert result.exit_code == 0, result.output
    assert launched[0].refresh.interval == 2


def test_interval_argument(launched, no_config_file):
    result = CliRunner().invoke(cli.main, ["5", *no_config_file])

    assert result.exit_code == 0, result.output
    assert launched[0].refresh.interval == 5


@pytest.mark.parametrize("raw", ["abc", "0", "-1", "-5"])
def test_bad_interval_falls_back(launched, no_config_file, raw):
    result = CliRunner().invoke(cli.main, [raw, *no_config_file])

    assert result.exit_code == 0, result.output
    assert launched[0].refresh.interval == 2


def test_argument_overrides_config_file(launched, tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[refresh]\ninterval = 9\n")

    result = CliRunner().invoke(cli.main, ["3", "--config", str(path)])

    assert result.exit_code == 0, result.output
    assert launched[0].refresh.interval == 3


def test_config_file_interval_used_without_argument(launched, tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[refresh]\ninterval = 9\n")

    CliRunner().invoke(cli.main, ["--config", str(path)])

    assert launched[0].refresh.interval == 9


def test_invalid_config_is_usage_error(launched, tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[refresh]\ninterval = 0\n")

    result = CliRunner().invoke(cli.main, ["--config", str(path)])

    assert result.exit_code == 2
    assert "interval" in result.output
    assert launched == []


def test_non_numeric_config_value_is_usage_error(launched, tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[kill]\nack_seconds = "x"\n')

    result = CliRunner().invoke(cli.main, ["--config", str(path)])

    assert result.exit_code == 2
    assert "ack_seconds" in result.output
    assert launched == []
