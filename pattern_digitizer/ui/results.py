"""View model for the results panel: downloads, preview mode, info cards, palette."""

from dataclasses import dataclass

from pattern_digitizer.ai.schema import ColorInfo, FileOutput, PatternData

TILED_BACKGROUND_SIZE = "33.3333%"


@dataclass(frozen=True)
class DownloadLink:
    label: str
    filename: str
    href: str
    mime_type: str


@dataclass(frozen=True)
class InfoCard:
    title: str
    value: str


@dataclass(frozen=True)
class ResultView:
    pattern_name: str
    description: str
    fidelity_notes: str
    tiled: bool
    preview_src: str | None
    downloads: list[DownloadLink]
    info_cards: list[InfoCard]
    palette: list[ColorInfo]

    @property
    def tile_style(self) -> str:
        """Inline style for the tiled preview: the PNG as a repeating background at a third of the box."""
        if not self.preview_src:
            return ""
        return (
            f"background-image: url({self.preview_src}); "
            f"background-size: {TILED_BACKGROUND_SIZE}; image-rendering: pixelated;"
        )

    def has_download(self, mime_type: str) -> bool:
        return any(d.mime_type == mime_type for d in self.downloads)


def format_number(value: float) -> str:
    """Render whole numbers without a trailing .0 (1200.0 -> '1200'); other values in full."""
    if float(value).is_integer():
        return str(int(value))
    return str(float(value))


def _download(file: FileOutput | None, label: str) -> list[DownloadLink]:
    if file is None:
        return []
    return [DownloadLink(label=label, filename=file.filename, href=file.data_url, mime_type=file.mime_type)]


def build_result_view(data: PatternData, tiled: bool = False) -> ResultView:
    """
    Build the render inputs for a result. Pure: the tiled flag only changes how the PNG is
    shown, never the PatternData itself.
    """
    png = data.png_file
    svg = data.svg_file
    summary = data.analysis_summary
    tile = data.tile_properties
    return ResultView(
        pattern_name=summary.pattern_name,
        description=summary.description,
        fidelity_notes=summary.fidelity_notes,
        tiled=tiled,
        preview_src=png.data_url if png else None,
        downloads=_download(png, "Tải Xuống PNG") + _download(svg, "Tải Xuống SVG"),
        info_cards=[
            InfoCard("Kiểu Lặp Lại", summary.repeat_type.value),
            InfoCard("Kích Thước Mẫu", f"{format_number(tile.width_px)} x {format_number(tile.height_px)} px"),
            InfoCard("Kích Thước In (Ước tính)", f"{tile.width_cm:.1f} x {tile.height_cm:.1f} cm"),
            InfoCard("Độ Phân Giải", f"{format_number(tile.dpi)} DPI"),
        ],
        palette=list(data.color_palette),
    )
