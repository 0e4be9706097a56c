"""Tests for the Typer CLI (digitize, config show)."""

import pytest
from typer.testing import CliRunner

from pattern_digitizer import cli
from pattern_digitizer.core.errors import TransportError
from tests.conftest import ScriptedDigitizer

pytestmark = [pytest.mark.fast]

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda: None)


def test_digitize_writes_returned_files(settings, tmp_path, monkeypatch, swatch_response):
    monkeypatch.setattr(cli, "get_digitizer", lambda s: ScriptedDigitizer(response=swatch_response))
    image = tmp_path / "swatch.jpg"
    image.write_bytes(b"\xff\xd8\xff\xd9")
    out = tmp_path / "out"

    result = runner.invoke(cli.app, ["digitize", str(image), "--out", str(out)])

    assert result.exit_code == 0, result.output
    assert (out / "tile.png").read_bytes().startswith(b"\x89PNG")
    assert "Navy Stripe" in result.output
    assert "1200 x 1200 px" in result.output
    assert "#1B2A4A" in result.output


def test_digitize_error_exits_1(settings, tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "get_digitizer", lambda s: ScriptedDigitizer(error=TransportError("HTTP 500")))
    image = tmp_path / "swatch.jpg"
    image.write_bytes(b"\xff\xd8\xff\xd9")

    result = runner.invoke(cli.app, ["digitize", str(image), "--out", str(tmp_path / "out")])

    assert result.exit_code == 1
    assert "Failed to digitize pattern: HTTP 500" in result.output
    assert not (tmp_path / "out").exists()


def test_digitize_missing_image_exits_1(settings, tmp_path):
    result = runner.invoke(cli.app, ["digitize", str(tmp_path / "missing.jpg")])
    assert result.exit_code == 1


def test_config_show_masks_key(tmp_path, monkeypatch):
    from pattern_digitizer.core.config import reset_config

    cfg = tmp_path / "cfg.yml"
    cfg.write_text("api_key: secret-key-9876\n")
    reset_config()
    try:
        result = runner.invoke(cli.app, ["config", "show", "--config", str(cfg)])
    finally:
        reset_config()
    assert result.exit_code == 0, result.output
    assert "9876" in result.output
    assert "secret-key" not in result.output


def test_config_show_without_key_exits_1(tmp_path, monkeypatch):
    from pattern_digitizer.core.config import reset_config

    cfg = tmp_path / "cfg.yml"
    cfg.write_text("digitizer: gemini\n")
    reset_config()
    try:
        result = runner.invoke(cli.app, ["config", "show", "--config", str(cfg)])
    finally:
        reset_config()
    assert result.exit_code == 1
    assert "API key is not set" in result.output


def test_digitize_prints_bracketed_color_names_verbatim(settings, tmp_path, monkeypatch, swatch_response):
    swatch_response["color_palette"][0]["name"] = "Navy [/x] [deep]"
    monkeypatch.setattr(cli, "get_digitizer", lambda s: ScriptedDigitizer(response=swatch_response))
    image = tmp_path / "swatch.jpg"
    image.write_bytes(b"\xff\xd8\xff\xd9")

    result = runner.invoke(cli.app, ["digitize", str(image), "--out", str(tmp_path / "out")])

    assert result.exit_code == 0, result.output
    assert "Navy [/x] [deep]" in result.output
