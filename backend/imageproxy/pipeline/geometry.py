from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

Point = Tuple[float, float]

STAR_INNER_RATIO = 0.382
HEART_STEP = 0.02


class ShapeKind(str, Enum):
    ELLIPSE = "ellipse"
    CIRCLE = "circle"
    HEART = "heart"
    HEXAGON = "hexagon"
    PENTAGON = "pentagon"
    PENTAGON_180 = "pentagon-180"
    STAR = "star"
    SQUARE = "square"
    TRIANGLE = "triangle"
    TRIANGLE_180 = "triangle-180"


@dataclass(frozen=True)
class EllipsePath:
    cx: float
    cy: float
    rx: float
    ry: float


@dataclass(frozen=True)
class PolygonPath:
    """Closed polyline. ``move_to`` is an optional lone leading sub-path."""

    points: Tuple[Point, ...]
    move_to: Optional[Point] = None


VectorPath = Union[EllipsePath, PolygonPath]


@dataclass(frozen=True)
class ShapeParams:
    kind: ShapeKind
    points: int
    outer_radius: float
    inner_radius: float
    initial_angle: float = 0.0


@dataclass(frozen=True)
class ShapeGeometry:
    path: VectorPath
    x_min: float
    y_min: float
    mask_width: float
    mask_height: float


def resolve_shape(name: Optional[str]) -> Optional[ShapeKind]:
    if isinstance(name, ShapeKind):
        return name
    if not name:
        return None
    try:
        return ShapeKind(str(name).strip().lower())
    except ValueError:
        return None


def round_half_away(value: float) -> float:
    """Round to the nearest integer, halves away from zero."""
    if value >= 0:
        return float(math.floor(value + 0.5))
    return -float(math.floor(-value + 0.5))


def _bounds(points: Sequence[Point]) -> Tuple[float, float, float, float]:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    x_min = min(xs)
    y_min = min(ys)
    return x_min, y_min, max(xs) - x_min, max(ys) - y_min


def shape_params(kind: ShapeKind, width: int, height: int) -> ShapeParams:
    """Star-polygon parameters for the polygon shape families."""
    radius = min(width, height) / 2
    table = {
        ShapeKind.HEXAGON: (6, radius, 0.0),
        ShapeKind.PENTAGON: (5, radius, 0.0),
        ShapeKind.PENTAGON_180: (5, radius, math.pi),
        # 5 outer and 5 inner vertices, alternating
        ShapeKind.STAR: (10, radius * STAR_INNER_RATIO, 0.0),
        # vertex-up, i.e. tilted 45 degrees
        ShapeKind.SQUARE: (4, radius, 0.0),
        ShapeKind.TRIANGLE: (3, radius, 0.0),
        ShapeKind.TRIANGLE_180: (3, radius, math.pi),
    }
    if kind not in table:
        raise ValueError(f"{kind.value} is not a star-polygon shape")
    points, inner_radius, initial_angle = table[kind]
    return ShapeParams(
        kind=kind,
        points=points,
        outer_radius=radius,
        inner_radius=inner_radius,
        initial_angle=initial_angle,
    )


def heart_points(mid_x: float, mid_y: float) -> List[Point]:
    """Sample the heart curve (mathworld HeartCurve) from -pi to pi.

    ``t`` is accumulated in ``HEART_STEP`` increments so the sample count (315)
    and every coordinate are reproducible.
    """
    points: List[Point] = []
    t = -math.pi
    while t <= math.pi:
        x_pt = 16 * math.sin(t) ** 3
        y_pt = 13 * math.cos(t) - 5 * math.cos(2 * t) - 2 * math.cos(3 * t) - math.cos(4 * t)
        points.append((round_half_away(mid_x + x_pt * mid_x), round_half_away(mid_y - y_pt * mid_y)))
        t += HEART_STEP
    return points


def star_polygon(mid_x: float, mid_y: float, params: ShapeParams) -> PolygonPath:
    """Vertices 0..points inclusive; the last one closes the outline.

    Odd point counts get a lone leading move-to at ``(mid_x, mid_y + outer)``
    to recenter odd-sided shapes. It is not a vertex and stays out of the
    bounding box.
    """
    vertices: List[Point] = []
    for i in range(params.points + 1):
        angle = i * 2 * math.pi / params.points - math.pi / 2 + params.initial_angle
        radius = params.outer_radius if i % 2 == 0 else params.inner_radius
        vertices.append(
            (
                round_half_away(mid_x + radius * math.cos(angle)),
                round_half_away(mid_y + radius * math.sin(angle)),
            )
        )
    move_to: Optional[Point] = None
    if params.points % 2 == 1:
        move_to = (mid_x, mid_y + params.outer_radius)
    return PolygonPath(points=tuple(vertices), move_to=move_to)


def generate(shape: ShapeKind, width: int, height: int) -> ShapeGeometry:
    """Build the vector path and mask bounding box for ``shape`` on a canvas."""
    size = min(width, height)
    outer_radius = size / 2
    mid_x = width / 2
    mid_y = height / 2

    if shape is ShapeKind.ELLIPSE:
        return ShapeGeometry(EllipsePath(mid_x, mid_y, mid_x, mid_y), 0, 0, width, height)

    if shape is ShapeKind.CIRCLE:
        return ShapeGeometry(
            EllipsePath(mid_x, mid_y, outer_radius, outer_radius),
            mid_x - outer_radius,
            mid_y - outer_radius,
            size,
            size,
        )

    if shape is ShapeKind.HEART:
        points = heart_points(outer_radius, outer_radius)
        return ShapeGeometry(PolygonPath(points=tuple(points)), *_bounds(points))

    polygon = star_polygon(mid_x, mid_y, shape_params(shape, width, height))
    return ShapeGeometry(polygon, *_bounds(polygon.points))
