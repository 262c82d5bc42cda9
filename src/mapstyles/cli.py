"""Typer-based CLI entry point."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich import print
from rich.markup import escape

from .core.classifier import classify as classify_style
from .core.classifier import get_styler_title
from .core.filters import geostyler_style_filter
from .core.translator import apply_default_style_to_layer, layer_to_geostyler_style
from .errors import InvalidArgumentError, MapStylesError, StyleParseError, SymbolFetchError
from .infrastructure.services.image_fetcher import HttpImageFetcher
from .infrastructure.services.svg_colorizer import SvgColorizer
from .infrastructure.services.symbol_cache import SymbolCache
from .parsers.registry import FormatParserRegistry
from .utils.console_logger import ensure_console_logger
from .utils.hashutils import hash_and_stringify, hash_code

app = typer.Typer(help="Translate flat map styles into geostyler styles")


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (InvalidArgumentError, StyleParseError, SymbolFetchError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except MapStylesError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _load_json(value: str, what: str) -> Any:
    """Parse *value* as JSON, or as the JSON content of the file it names."""

    path = Path(value)
    try:
        is_file = path.is_file()
    except (OSError, ValueError):
        # JSON text that is not a usable file name
        is_file = False
    try:
        text = path.read_text(encoding="utf-8") if is_file else value
    except OSError as exc:
        raise typer.BadParameter(f"Cannot read {what} from {value}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{what} is not valid JSON: {exc}") from exc


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
) -> None:
    """Configure logging for every sub-command."""

    ensure_console_logger(
        logging.getLogger("mapstyles"),
        "mapstyles-cli",
        level=logging.DEBUG if verbose else logging.WARNING,
    )


@app.command()
@_handle_errors
def classify(style: str = typer.Argument(..., help="Flat style as JSON text or JSON file.")) -> None:
    """Print the kinds and the title of a flat style."""

    flat = _load_json(style, "style")
    if not isinstance(flat, dict):
        raise typer.BadParameter("style must be a JSON object")
    kinds = sorted(kind.value for kind in classify_style(flat))
    title = get_styler_title(flat)
    print(f"[bold]{escape(title) or '-'}[/bold] {', '.join(kinds) or 'no recognised attributes'}")


@app.command("hash")
@_handle_errors
def hash_command(
    text: str = typer.Argument(..., help="Text to hash, or a style with --style."),
    style: bool = typer.Option(False, "--style", help="Hash the canonical serialisation of a JSON style."),
) -> None:
    """Print the 32-bit string hash used as symbol cache key."""

    if style:
        typer.echo(hash_and_stringify(_load_json(text, "style")))
    else:
        typer.echo(hash_code(text))


@app.command()
@_handle_errors
def translate(
    layer_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Layer or FeatureCollection JSON."),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Encode the result (sld, css)."),
    default: bool = typer.Option(False, "--default", help="Attach the default style to unstyled layers."),
) -> None:
    """Translate the flat style of a layer into a structured style."""

    layer = _load_json(str(layer_file), "layer")
    if default and isinstance(layer, dict):
        layer = apply_default_style_to_layer(layer)

    async def _run() -> str:
        structured = await layer_to_geostyler_style(layer)
        if output_format is None:
            return json.dumps(structured, indent=2, ensure_ascii=False)
        parser = await FormatParserRegistry().resolve(output_format)
        if parser is None:
            raise InvalidArgumentError(f"Unsupported style format '{output_format}'")
        return await parser.write_style(structured)

    typer.echo(asyncio.run(_run()))


@app.command()
@_handle_errors
def match(
    feature: str = typer.Argument(..., help="GeoJSON feature as JSON text or file."),
    expression: str = typer.Argument(..., help="Filter expression, e.g. '[\"==\", \"id\", \"a\"]'."),
) -> None:
    """Evaluate a filter expression against a feature."""

    matched = geostyler_style_filter(_load_json(feature, "feature"), _load_json(expression, "expression"))
    typer.echo("true" if matched else "false")


@app.command()
@_handle_errors
def recolor(
    style: str = typer.Argument(..., help="Symbol style as JSON text or JSON file."),
    base_path: Optional[Path] = typer.Option(None, "--base-path", help="Directory for relative symbol paths."),
) -> None:
    """Recolour the SVG of a symbol style and print it as a data URI."""

    flat = _load_json(style, "style")
    if not isinstance(flat, dict):
        raise typer.BadParameter("style must be a JSON object")

    async def _run() -> Optional[str]:
        async with HttpImageFetcher(base_path=base_path) as fetcher:
            return await SvgColorizer(SymbolCache(), fetcher).recolor(flat)

    data_uri = asyncio.run(_run())
    if data_uri is None:
        raise InvalidArgumentError("recolor: style has no symbolUrl")
    typer.echo(data_uri)


if __name__ == "__main__":  # pragma: no cover
    app()
