"""Typer CLI: run the web app, digitize a local image, inspect configuration."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pattern_digitizer.ai.factory import digitize_pattern, get_digitizer
from pattern_digitizer.core.config import get_config, validate_settings
from pattern_digitizer.core.encoding import encode_path
from pattern_digitizer.core.errors import ConfigurationError, DigitizeError, EncodingError
from pattern_digitizer.core.logging import dump_flight_log, setup_logging
from pattern_digitizer.ui.results import format_number

app = typer.Typer(no_args_is_help=True)
config_app = typer.Typer(help="Inspect configuration.")
app.add_typer(config_app, name="config")


def _load_settings(config_path: Path | None):
    try:
        return validate_settings(get_config(config_path))
    except (ConfigurationError, FileNotFoundError) as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    config: Path | None = typer.Option(None, "--config", help="Path to digitizer_config.yml"),
) -> None:
    """Run the web app. Refuses to start when the configuration is invalid."""
    import uvicorn

    _load_settings(config)
    uvicorn.run("pattern_digitizer.api.main:app", host=host, port=port)


@app.command("digitize")
def digitize(
    image: Path = typer.Argument(..., help="Photo of patterned fabric (PNG, JPEG or WEBP)"),
    out: Path = typer.Option(Path("."), "--out", "-o", help="Directory for the returned tile files"),
    config: Path | None = typer.Option(None, "--config", help="Path to digitizer_config.yml"),
) -> None:
    """Digitize one image and write the returned PNG/SVG files to --out."""
    settings = _load_settings(config)
    setup_logging()
    digitizer = get_digitizer(settings)
    try:
        encoded = encode_path(image)
        data = asyncio.run(digitize_pattern(digitizer, encoded))
    except (DigitizeError, EncodingError) as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        path = dump_flight_log("cli")
        if path:
            typer.secho(f"Flight log: {path}", err=True)
        raise typer.Exit(1)

    out.mkdir(parents=True, exist_ok=True)
    for f in data.files:
        target = out / Path(f.filename).name
        target.write_bytes(f.decode())
        typer.echo(f"Wrote {target} ({f.mime_type})")

    summary = data.analysis_summary
    tile = data.tile_properties
    typer.secho(f"{summary.pattern_name} [{summary.repeat_type.value}]", fg=typer.colors.GREEN)
    typer.echo(summary.description)
    typer.echo(
        f"{format_number(tile.width_px)} x {format_number(tile.height_px)} px, "
        f"{tile.width_cm:.1f} x {tile.height_cm:.1f} cm @ {format_number(tile.dpi)} DPI"
    )
    if summary.fidelity_notes:
        typer.echo(f"Notes: {summary.fidelity_notes}")

    table = Table(title=None)
    table.add_column("Name")
    table.add_column("HEX")
    table.add_column("CMYK", style="dim")
    for c in data.color_palette:
        table.add_row(escape(c.name), f"[on {c.hex}]   [/] {c.hex}", escape(c.cmyk_approx))
    console = Console()
    console.print(table)


@config_app.command("show")
def config_show(
    config: Path | None = typer.Option(None, "--config", help="Path to digitizer_config.yml"),
) -> None:
    """Print effective settings (API key masked). Exits 1 if the configuration is unusable."""
    settings = _load_settings(config)
    table = Table(title=None)
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        shown = settings.masked_api_key() if key == "api_key" else str(value)
        table.add_row(key, shown)
    console = Console()
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
