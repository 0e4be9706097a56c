"""Abstract base and mock implementation for pattern digitizers."""

import base64
import json
import logging
from abc import ABC, abstractmethod

from pydantic import ValidationError

from pattern_digitizer.ai.schema import ModelCard, PatternData
from pattern_digitizer.core.errors import EmptyResultError, ResponseValidationError

_log = logging.getLogger(__name__)

# 1x1 transparent PNG.
MOCK_PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def parse_pattern_json(text: str) -> PatternData:
    """
    Trim and strictly parse model output into PatternData.

    Raises ResponseValidationError for non-JSON or non-conforming documents and
    EmptyResultError when the document carries no files.
    """
    try:
        payload = json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise ResponseValidationError(f"Response is not valid JSON ({e.msg} at position {e.pos}).") from e
    if not isinstance(payload, dict):
        raise ResponseValidationError("Response JSON is not an object.")
    if not payload.get("files"):
        raise EmptyResultError()
    try:
        return PatternData.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first["loc"])
        raise ResponseValidationError(
            f"Response does not match the expected schema ({e.error_count()} error(s); {where}: {first['msg']})."
        ) from e


class BaseDigitizer(ABC):
    """Abstract base for a single-shot pattern digitization call."""

    @abstractmethod
    def get_model_card(self) -> ModelCard:
        """Return backend identity (name, version)."""
        ...

    @abstractmethod
    def digitize(self, image_b64: str, mime_type: str) -> PatternData:
        """
        Send one base64 image and return the digitized pattern.

        Single attempt, no retry. Raises a DigitizeError subclass on any failure;
        a returned PatternData always has at least one file.
        """
        ...


class MockDigitizer(BaseDigitizer):
    """Deterministic digitizer for development and tests; never touches the network."""

    def get_model_card(self) -> ModelCard:
        return ModelCard(name="mock-digitizer", version="1.0")

    def digitize(self, image_b64: str, mime_type: str) -> PatternData:
        size = len(base64.b64decode(image_b64))
        _log.debug("Mock digitize: %d bytes of %s", size, mime_type)
        return PatternData.model_validate(
            {
                "analysis_summary": {
                    "pattern_name": "Họa Tiết Mẫu",
                    "description": "Kết quả giả lập dùng cho phát triển và kiểm thử.",
                    "repeat_type": "straight",
                    "fidelity_notes": "Không có phân tích thực tế.",
                },
                "tile_properties": {
                    "dpi": 300,
                    "width_px": 1,
                    "height_px": 1,
                    "width_cm": 0.1,
                    "height_cm": 0.1,
                },
                "color_palette": [
                    {"name": "Trắng Trong Suốt", "hex": "#FFFFFF", "cmyk_approx": "C0 M0 Y0 K0"},
                ],
                "files": [
                    {"filename": "mock-tile.png", "mime_type": "image/png", "data": MOCK_PNG_B64},
                ],
            }
        )
