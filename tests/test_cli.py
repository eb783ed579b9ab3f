#!filepath: tests/test_cli.py
from typer.testing import CliRunner

from portsim import __version__
from portsim.cli import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_missing_config_exits_without_traceback(tmp_path):
    result = runner.invoke(app, ["run", "--config", str(tmp_path / "nope.yml")])

    assert result.exit_code == 1
    assert "ConfigurationError" in result.stdout
    assert "Traceback" not in result.stdout


def test_validate_sample_config():
    result = runner.invoke(app, ["validate"])

    assert result.exit_code == 0
    assert "core_rebalance" in result.stdout
