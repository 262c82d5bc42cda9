"""Render the Mark and Icon symbolizers of a structured style into images.

Point symbolizers are drawn once per distinct appearance and then stamped by
the renderer on every matching feature.  The appearance is captured by an
*image id*: every Mark attribute that changes the pixels, and the source of an
Icon.  Rotation is deliberately not part of the id because the renderer
rotates the stamped image itself.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Mapping, Optional, Union

from PIL import Image, UnidentifiedImageError
from PySide6.QtCore import QBuffer, QIODevice, QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QImage, QPainter, QPainterPath, QPen, QPolygonF, QTransform

from ...application.interfaces import IImageFetcher
from ...config import DEFAULT_POINT_RADIUS, PNG_MIME_TYPE
from ...core.symbolizers import Symbolizer, as_symbolizer_dict
from ...errors import MapStylesError, SymbolFetchError, SymbolParseError
from ...utils.colors import to_qcolor
from .image_fetcher import decode_data_uri, encode_data_uri

_LOGGER = logging.getLogger(__name__)

MARK_ID_KEYS = (
    "wellKnownName",
    "color",
    "fillOpacity",
    "strokeColor",
    "strokeOpacity",
    "strokeWidth",
    "radius",
)


def _format_component(value: Any) -> str:
    """Format one id component the way the web client formats it."""

    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def get_image_id_from_symbolizer(symbolizer: Union[Symbolizer, Mapping[str, Any]]) -> Optional[str]:
    """Return the image id of a Mark or Icon symbolizer, ``None`` for other kinds.

    ``Circle:#ff0000:0.5:#00ff00:0.25:3:16`` for a Mark, the image source for an
    Icon.
    """

    payload = as_symbolizer_dict(symbolizer)
    kind = payload.get("kind")
    if kind == "Mark":
        return ":".join(_format_component(payload.get(key)) for key in MARK_ID_KEYS)
    if kind == "Icon":
        return payload.get("image")
    return None


@dataclass(frozen=True)
class DrawnIcon:
    """An image generated for one image id."""

    id: str
    image: QImage
    width: int
    height: int

    def to_data_uri(self) -> str:
        """Return the image encoded as a PNG ``data:`` URI."""

        buffer = QBuffer()
        buffer.open(QIODevice.OpenModeFlag.WriteOnly)
        self.image.save(buffer, "PNG")
        buffer.close()
        return encode_data_uri(bytes(buffer.data()), PNG_MIME_TYPE)


# ----------------------------------------------------------------------
# Mark shapes
# ----------------------------------------------------------------------

def _regular_polygon(center: QPointF, radii: list[float], start_angle: float = -90.0) -> QPainterPath:
    step = 360.0 / len(radii)
    points = []
    for index, radius in enumerate(radii):
        angle = math.radians(start_angle + index * step)
        points.append(QPointF(center.x() + radius * math.cos(angle), center.y() + radius * math.sin(angle)))
    path = QPainterPath()
    path.addPolygon(QPolygonF(points))
    path.closeSubpath()
    return path


def _cross(center: QPointF, radius: float) -> QPainterPath:
    arm = radius * 0.4
    horizontal = QPainterPath()
    horizontal.addRect(QRectF(center.x() - radius, center.y() - arm / 2, radius * 2, arm))
    vertical = QPainterPath()
    vertical.addRect(QRectF(center.x() - arm / 2, center.y() - radius, arm, radius * 2))
    return horizontal.united(vertical)


def mark_path(well_known_name: Optional[str], center: QPointF, radius: float) -> QPainterPath:
    """Return the outline of the named mark centred on *center*."""

    name = (well_known_name or "circle").lower()
    if name == "square":
        path = QPainterPath()
        path.addRect(QRectF(center.x() - radius, center.y() - radius, radius * 2, radius * 2))
        return path
    if name == "triangle":
        return _regular_polygon(center, [radius] * 3)
    if name == "star":
        return _regular_polygon(center, [radius, radius * 0.382] * 5)
    if name == "cross":
        return _cross(center, radius)
    if name == "x":
        transform = QTransform().translate(center.x(), center.y()).rotate(45).translate(-center.x(), -center.y())
        return transform.map(_cross(center, radius))
    if name != "circle":
        _LOGGER.debug("Unknown mark '%s', drawing a circle", well_known_name)
    path = QPainterPath()
    path.addEllipse(center, radius, radius)
    return path


def render_mark(symbolizer: Union[Symbolizer, Mapping[str, Any]]) -> QImage:
    """Paint a Mark symbolizer into a transparent, tightly sized image."""

    payload = as_symbolizer_dict(symbolizer)
    radius = float(payload.get("radius") or DEFAULT_POINT_RADIUS)
    stroke_width = float(payload.get("strokeWidth") or 0)
    side = max(1, math.ceil(radius * 2 + stroke_width))

    image = QImage(side, side, QImage.Format.Format_ARGB32_Premultiplied)
    image.fill(Qt.GlobalColor.transparent)

    painter = QPainter(image)
    try:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        opacity = payload.get("opacity")
        if isinstance(opacity, (int, float)):
            painter.setOpacity(max(0.0, min(1.0, float(opacity))))

        fill = to_qcolor(payload.get("color"), payload.get("fillOpacity"))
        painter.setBrush(QBrush(fill) if fill is not None else QBrush(Qt.BrushStyle.NoBrush))

        stroke = to_qcolor(payload.get("strokeColor"), payload.get("strokeOpacity"))
        if stroke is not None and stroke_width > 0:
            pen = QPen(stroke)
            pen.setWidthF(stroke_width)
            painter.setPen(pen)
        else:
            painter.setPen(Qt.PenStyle.NoPen)

        center = QPointF(side / 2.0, side / 2.0)
        painter.drawPath(mark_path(payload.get("wellKnownName"), center, radius))
    finally:
        painter.end()
    return image


def image_from_bytes(data: bytes) -> QImage:
    """Decode *data* with Qt, falling back to Pillow for formats Qt lacks."""

    image = QImage()
    if image.loadFromData(data):
        return image

    try:
        with Image.open(BytesIO(data)) as source:
            source.load()
            buffer = BytesIO()
            source.convert("RGBA").save(buffer, format="PNG")
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise SymbolParseError(f"Unsupported icon image: {exc}") from exc

    image = QImage()
    if not image.loadFromData(buffer.getvalue(), "PNG"):
        raise SymbolParseError("Unable to decode icon image")
    return image


class IconRenderer:
    """Generate the images needed to draw the point symbolizers of a style."""

    def __init__(self, fetcher: Optional[IImageFetcher] = None) -> None:
        self._fetcher = fetcher

    async def load_icon(self, symbolizer: Union[Symbolizer, Mapping[str, Any]]) -> QImage:
        """Load the image of an Icon symbolizer, scaled to its ``size``."""

        payload = as_symbolizer_dict(symbolizer)
        source = payload.get("image")
        if not source:
            raise SymbolFetchError("Icon symbolizer without image")
        if source.startswith("data:"):
            data = decode_data_uri(source)[1]
        elif self._fetcher is None:
            raise SymbolFetchError(f"No image fetcher configured to load '{source}'")
        else:
            data = await self._fetcher.fetch(source)

        image = image_from_bytes(data)
        size = payload.get("size")
        if isinstance(size, (int, float)) and size > 0:
            extent = max(1, round(size))
            image = image.scaled(
                extent,
                extent,
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
        return image

    async def _draw(self, image_id: str, payload: Mapping[str, Any]) -> Optional[DrawnIcon]:
        try:
            if payload.get("kind") == "Mark":
                image = render_mark(payload)
            else:
                image = await self.load_icon(payload)
        except MapStylesError as exc:
            _LOGGER.warning("Skipping icon %s: %s", image_id[:64], exc)
            return None
        return DrawnIcon(id=image_id, image=image, width=image.width(), height=image.height())

    async def draw_icons(self, style: Optional[Mapping[str, Any]]) -> list[DrawnIcon]:
        """Return one image per distinct Mark/Icon symbolizer of *style*.

        *style* may be a structured style or its body.  Images are listed in
        the order their ids first appear; icons that fail to load are left
        out.
        """

        if not style:
            return []
        body = style.get("body", style)
        unique: dict[str, Mapping[str, Any]] = {}
        for rule in body.get("rules") or []:
            for symbolizer in rule.get("symbolizers") or []:
                payload = as_symbolizer_dict(symbolizer)
                if payload.get("kind") not in ("Mark", "Icon"):
                    continue
                image_id = get_image_id_from_symbolizer(payload)
                if image_id and image_id not in unique:
                    unique[image_id] = payload

        drawn = await asyncio.gather(*(self._draw(image_id, payload) for image_id, payload in unique.items()))
        return [icon for icon in drawn if icon is not None]


__all__ = [
    "DrawnIcon",
    "IconRenderer",
    "get_image_id_from_symbolizer",
    "image_from_bytes",
    "mark_path",
    "render_mark",
]
