"""Geometry functions that symbolizers can apply before drawing.

A symbolizer may ask the renderer to draw a *derived* geometry instead of the
feature's own, e.g. a marker on the centre of a polygon or a great-circle arc
following a measured line.  Functions are looked up by name in a
:class:`GeometryFunctionRegistry`; every entry declares the GeoJSON type of the
geometry it produces so renderers can pick a matching symbolizer.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..config import ARC_POINT_COUNT
from ..errors import InvalidArgumentError

Geometry = Mapping[str, Any]
GeometryCallable = Callable[..., Optional[dict]]


def sequence_depth(value: object) -> int:
    """Return how many list/tuple levels ``value`` contains before scalars."""

    depth = 0
    current = value
    while isinstance(current, (list, tuple)) and current:
        depth += 1
        current = current[0]
    return depth


def is_number_pair(value: Sequence[object]) -> bool:
    """Return ``True`` when ``value`` looks like an ``(x, y)`` tuple."""

    if len(value) < 2:
        return False
    return all(isinstance(component, (int, float)) for component in value[:2])


def iter_positions(value: object):
    """Yield every coordinate pair nested anywhere inside ``value``."""

    if isinstance(value, (list, tuple)):
        if is_number_pair(value):
            yield value
            return
        for item in value:
            yield from iter_positions(item)


def _first_line(coordinates: object) -> list:
    """Return the first linear sequence of positions found in ``coordinates``."""

    depth = sequence_depth(coordinates)
    if depth == 1:
        return [coordinates]
    current = coordinates
    while depth > 2:
        current = current[0]
        depth -= 1
    return list(current)


def _coordinates(geometry: Optional[Geometry]) -> Optional[object]:
    if not geometry:
        return None
    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or not coordinates:
        return None
    return coordinates


def center_point(geometry: Optional[Geometry]) -> Optional[dict]:
    """Return the centre of the bounding box of ``geometry`` as a Point."""

    coordinates = _coordinates(geometry)
    if coordinates is None:
        return None
    positions = list(iter_positions(coordinates))
    if not positions:
        return None
    xs = [float(position[0]) for position in positions]
    ys = [float(position[1]) for position in positions]
    return {
        "type": "Point",
        "coordinates": [(min(xs) + max(xs)) / 2.0, (min(ys) + max(ys)) / 2.0],
    }


def start_point(geometry: Optional[Geometry]) -> Optional[dict]:
    """Return the first vertex of ``geometry`` (first ring for polygons)."""

    coordinates = _coordinates(geometry)
    if coordinates is None:
        return None
    line = _first_line(coordinates)
    return {"type": "Point", "coordinates": list(line[0])} if line else None


def end_point(geometry: Optional[Geometry]) -> Optional[dict]:
    """Return the last vertex of ``geometry`` (first ring for polygons)."""

    coordinates = _coordinates(geometry)
    if coordinates is None:
        return None
    line = _first_line(coordinates)
    return {"type": "Point", "coordinates": list(line[-1])} if line else None


def great_circle(
    start: Sequence[float],
    end: Sequence[float],
    npoints: int = ARC_POINT_COUNT,
) -> list[list[float]]:
    """Return ``npoints`` lon/lat vertices on the great circle from ``start`` to ``end``."""

    lon1, lat1 = math.radians(float(start[0])), math.radians(float(start[1]))
    lon2, lat2 = math.radians(float(end[0])), math.radians(float(end[1]))

    distance = 2 * math.asin(
        math.sqrt(
            math.sin((lat2 - lat1) / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
        )
    )
    sin_distance = math.sin(distance)
    if npoints < 2 or abs(sin_distance) < 1e-12:
        # Coincident or antipodal points have no unique great circle.
        return [[float(start[0]), float(start[1])], [float(end[0]), float(end[1])]]

    points: list[list[float]] = []
    for index in range(npoints):
        fraction = index / (npoints - 1)
        a = math.sin((1 - fraction) * distance) / sin_distance
        b = math.sin(fraction * distance) / sin_distance
        x = a * math.cos(lat1) * math.cos(lon1) + b * math.cos(lat2) * math.cos(lon2)
        y = a * math.cos(lat1) * math.sin(lon1) + b * math.cos(lat2) * math.sin(lon2)
        z = a * math.sin(lat1) + b * math.sin(lat2)
        lat = math.atan2(z, math.sqrt(x * x + y * y))
        lon = math.atan2(y, x)
        points.append([math.degrees(lon), math.degrees(lat)])
    return points


def line_to_arc(geometry: Optional[Geometry], npoints: int = ARC_POINT_COUNT) -> Optional[dict]:
    """Replace every segment of a line with its great-circle arc."""

    coordinates = _coordinates(geometry)
    if coordinates is None:
        return None
    line = _first_line(coordinates)
    if len(line) < 2:
        return None
    arc: list[list[float]] = []
    for start, end in zip(line, line[1:]):
        segment = great_circle(start, end, npoints)
        # Consecutive arcs share their joint vertex.
        arc.extend(segment if not arc else segment[1:])
    return {"type": "LineString", "coordinates": arc}


@dataclass(frozen=True)
class GeometryFunction:
    """A named geometry transformation and the geometry type it returns."""

    func: GeometryCallable
    type: str


class GeometryFunctionRegistry:
    """Name-keyed collection of :class:`GeometryFunction` descriptors.

    A fresh registry already contains ``centerPoint``, ``startPoint``,
    ``endPoint`` and ``lineToArc``.  Each registry is independent, so
    registrations made by one caller are never visible to another.
    """

    def __init__(self, *, builtins: bool = True) -> None:
        self._functions: dict[str, GeometryFunction] = {}
        if builtins:
            self._functions.update(
                {
                    "centerPoint": GeometryFunction(center_point, "Point"),
                    "startPoint": GeometryFunction(start_point, "Point"),
                    "endPoint": GeometryFunction(end_point, "Point"),
                    "lineToArc": GeometryFunction(line_to_arc, "LineString"),
                }
            )

    def register(
        self,
        function_name: Optional[str],
        func: Optional[GeometryCallable],
        geometry_type: Optional[str],
    ) -> None:
        """Add or replace the function stored under ``function_name``."""

        if not function_name or func is None or not geometry_type:
            raise InvalidArgumentError("specify all the params: functionName, func, type")
        self._functions[function_name] = GeometryFunction(func, geometry_type)

    def get(self, function_name: str, item: str) -> Any:
        """Return the ``func`` or ``type`` of ``function_name``, or ``None``."""

        descriptor = self._functions.get(function_name)
        if descriptor is None:
            return None
        return getattr(descriptor, item, None)

    def apply(self, function_name: str, geometry: Optional[Geometry]) -> Optional[dict]:
        """Run ``function_name`` on ``geometry``; unknown names return ``None``."""

        func = self.get(function_name, "func")
        if func is None:
            return None
        return func(geometry)

    def names(self) -> list[str]:
        return list(self._functions)

    def __contains__(self, function_name: object) -> bool:
        return function_name in self._functions

    def __len__(self) -> int:
        return len(self._functions)


__all__ = [
    "GeometryFunction",
    "GeometryFunctionRegistry",
    "center_point",
    "end_point",
    "great_circle",
    "line_to_arc",
    "start_point",
]
