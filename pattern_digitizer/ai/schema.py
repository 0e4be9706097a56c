"""Pydantic data contracts for the digitizer model and its PatternData response."""

import re
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from pattern_digitizer.core.encoding import decode_payload, strip_whitespace

PNG_MIME = "image/png"
SVG_MIME = "image/svg+xml"
HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class ModelCard(BaseModel):
    """Metadata identifying a digitizer backend."""

    name: str
    version: str


class RepeatType(str, Enum):
    straight = "straight"
    half_drop = "half-drop"
    half_brick = "half-brick"
    mirror = "mirror"
    other = "other"


class AnalysisSummary(BaseModel):
    pattern_name: str
    description: str
    repeat_type: RepeatType
    fidelity_notes: str


class TileProperties(BaseModel):
    """Producer-declared tile geometry. Only checked for being positive."""

    dpi: float = Field(gt=0)
    width_px: float = Field(gt=0)
    height_px: float = Field(gt=0)
    width_cm: float = Field(gt=0)
    height_cm: float = Field(gt=0)


class ColorInfo(BaseModel):
    name: str
    hex: str
    cmyk_approx: str

    @field_validator("hex")
    @classmethod
    def hex_is_six_digits(cls, v: str) -> str:
        v = v.strip()
        if not HEX_COLOR_RE.match(v):
            raise ValueError(f"expected a #RRGGBB color, got {v!r}")
        return v


class FileOutput(BaseModel):
    filename: str
    mime_type: Literal["image/png", "image/svg+xml"]
    data: str  # base64

    @field_validator("data")
    @classmethod
    def data_is_base64(cls, v: str) -> str:
        v = strip_whitespace(v)
        decode_payload(v)
        return v

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def decode(self) -> bytes:
        return decode_payload(self.data)


class PatternData(BaseModel):
    """Root of the digitizer response."""

    analysis_summary: AnalysisSummary
    tile_properties: TileProperties
    color_palette: list[ColorInfo]
    files: list[FileOutput]

    def find_file(self, mime_type: str) -> FileOutput | None:
        """First file with the given MIME type, or None."""
        return next((f for f in self.files if f.mime_type == mime_type), None)

    @property
    def png_file(self) -> FileOutput | None:
        return self.find_file(PNG_MIME)

    @property
    def svg_file(self) -> FileOutput | None:
        return self.find_file(SVG_MIME)
