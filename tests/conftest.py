import copy
import os
import sys
from pathlib import Path
from typing import Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from mapstyles.application.interfaces import IImageFetcher  # noqa: E402
from mapstyles.errors import SymbolFetchError  # noqa: E402

SYMBOL_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'
    '<path d="M0 0L24 24" fill="#000000" stroke="#000000"/>'
    '<circle cx="12" cy="12" r="4" fill="none"/>'
    "</svg>"
)

# Transparent 1x1 GIF.
GIF_DATA_URI = "data:image/gif;base64,R0lGODlhAQABAAAAACH5BAEKAAEALAAAAAABAAEAAAICTAEAOw=="


class FakeFetcher(IImageFetcher):
    """In-memory fetcher recording every requested URL."""

    def __init__(self, resources: Dict[str, bytes] | None = None) -> None:
        self.resources: Dict[str, bytes] = dict(resources or {})
        self.calls: List[str] = []

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        try:
            return self.resources[url]
        except KeyError:
            raise SymbolFetchError(f"Unable to fetch '{url}'") from None


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher({"https://example.com/pin.svg": SYMBOL_SVG.encode("utf-8")})


@pytest.fixture()
def qapp():
    """Ensure a QGuiApplication exists for QImage/QPainter based code."""

    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PySide6.QtGui import QGuiApplication

    app = QGuiApplication.instance()
    if app is None:
        app = QGuiApplication([])
    return app


@pytest.fixture()
def symbol_svg() -> str:
    return SYMBOL_SVG


@pytest.fixture()
def gif_data_uri() -> str:
    return GIF_DATA_URI


# Exercises every filter operator and every symbolizer kind that the text
# encodings support; Mark and Icon sit in separate rules.
CITY_STYLE = {
    "format": "geostyler",
    "body": {
        "name": "City",
        "rules": [
            {
                "name": "Parks",
                "filter": [
                    "&&",
                    ["==", "type", "park"],
                    ["!", ["*=", "name", "oak"]],
                    ["||", [">", "area", 10], ["<=", "area", 2.5]],
                ],
                "symbolizers": [
                    {
                        "kind": "Fill",
                        "color": "#00ff00",
                        "opacity": 0.3,
                        "fillOpacity": 0.3,
                        "outlineColor": "#006600",
                        "outlineOpacity": 1,
                        "outlineWidth": 2,
                    }
                ],
            },
            {
                "name": "Roads",
                "filter": ["!=", "lanes", 0],
                "symbolizers": [
                    {
                        "kind": "Line",
                        "color": "#3075e9",
                        "opacity": 0.5,
                        "width": 2,
                        "dasharray": [4, 2],
                        "cap": "round",
                        "join": "bevel",
                    },
                    {
                        "kind": "Text",
                        "label": "{{name}}",
                        "font": ["Arial"],
                        "size": 12,
                        "color": "#333333",
                        "haloColor": "#ffffff",
                        "haloWidth": 2,
                    },
                ],
            },
            {
                "name": "Points",
                "symbolizers": [
                    {
                        "kind": "Mark",
                        "wellKnownName": "Star",
                        "color": "#ff0000",
                        "fillOpacity": 0.5,
                        "opacity": 1,
                        "strokeColor": "#00ff00",
                        "strokeOpacity": 0.25,
                        "strokeWidth": 3,
                        "radius": 8,
                        "rotate": 45,
                    }
                ],
            },
            {
                "name": "Pins",
                "filter": ["==", "kind", "pin"],
                "symbolizers": [{"kind": "Icon", "image": "https://example.com/pin.svg", "size": 24, "rotate": 0}],
            },
        ],
    },
}


@pytest.fixture()
def city_style() -> dict:
    return copy.deepcopy(CITY_STYLE)


# Flat style of a polygon annotation; translates into a Line rule followed by
# a Fill rule that carries both ``opacity`` and ``fillOpacity``.
ANNOTATION_STYLE = {
    "fillColor": "#ff0000",
    "fillOpacity": 0.5,
    "color": "#00ff00",
    "opacity": 0.25,
    "weight": 2,
}


@pytest.fixture()
def annotation_layers() -> list[dict]:
    feature = {
        "type": "Feature",
        "properties": {"id": "annotation-id"},
        "geometry": {"type": "Polygon", "coordinates": [[[7, 41], [14, 41], [14, 46], [7, 46], [7, 41]]]},
        "style": dict(ANNOTATION_STYLE),
    }
    return [
        {"type": "vector", "features": [], "style": dict(ANNOTATION_STYLE)},
        {"type": "vector", "features": [{"type": "FeatureCollection", "features": [feature]}]},
    ]
