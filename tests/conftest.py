"""Pytest fixtures: isolated config, a scripted digitizer, and a TestClient wired through dependency overrides."""

import copy
import json

import pytest
from fastapi.testclient import TestClient

from pattern_digitizer.ai.digitizer_base import MOCK_PNG_B64, BaseDigitizer, parse_pattern_json
from pattern_digitizer.ai.schema import ModelCard, PatternData
from pattern_digitizer.core import config as config_module
from pattern_digitizer.core.config import Settings

SWATCH_RESPONSE = {
    "analysis_summary": {
        "pattern_name": "Navy Stripe",
        "description": "Sọc xanh navy trên nền trắng.",
        "repeat_type": "straight",
        "fidelity_notes": "Ảnh rõ nét, không có giả định đặc biệt.",
    },
    "tile_properties": {"dpi": 300, "width_px": 1200, "height_px": 1200, "width_cm": 10.2, "height_cm": 10.2},
    "color_palette": [{"name": "Navy", "hex": "#1B2A4A", "cmyk_approx": "C91 M79 Y0 K0"}],
    "files": [{"filename": "tile.png", "mime_type": "image/png", "data": MOCK_PNG_B64}],
}


def clear_app_caches() -> None:
    """
    Clear the app's config and dependency caches so each test builds its own settings,
    digitizer and session store.
    """
    from pattern_digitizer.api.main import _get_digitizer, _get_session_store, _get_settings

    config_module.reset_config()
    _get_settings.cache_clear()
    _get_digitizer.cache_clear()
    _get_session_store.cache_clear()


class ScriptedDigitizer(BaseDigitizer):
    """Returns a fixed response (or raises a fixed error) and records every call."""

    def __init__(self, response: dict | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def get_model_card(self) -> ModelCard:
        return ModelCard(name="scripted", version="test")

    def digitize(self, image_b64: str, mime_type: str) -> PatternData:
        self.calls.append((image_b64, mime_type))
        if self.error is not None:
            raise self.error
        return parse_pattern_json(json.dumps(self.response))


@pytest.fixture
def swatch_response() -> dict:
    return copy.deepcopy(SWATCH_RESPONSE)


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    """Mock-backend settings with forensics under tmp_path; no config file or env key leaks in."""
    monkeypatch.chdir(tmp_path)
    for name in ("GEMINI_API_KEY", "API_KEY", "PATTERN_DIGITIZER_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    clear_app_caches()
    s = Settings(digitizer="mock", forensics_dir=str(tmp_path / "forensics"))
    config_module._config = s  # type: ignore[attr-defined]
    yield s
    clear_app_caches()


@pytest.fixture
def scripted_digitizer(swatch_response) -> ScriptedDigitizer:
    return ScriptedDigitizer(response=swatch_response)


@pytest.fixture
def client(settings, scripted_digitizer):
    """TestClient with the digitizer replaced by scripted_digitizer and a fresh session store."""
    from pattern_digitizer.api.main import _get_digitizer, _get_settings, app

    app.dependency_overrides[_get_settings] = lambda: settings
    app.dependency_overrides[_get_digitizer] = lambda: scripted_digitizer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(_get_settings, None)
        app.dependency_overrides.pop(_get_digitizer, None)
