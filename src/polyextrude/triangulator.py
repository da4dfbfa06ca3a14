"""Constrained triangulation of a ring with optional holes.

We delegate the ear clipping to ``mapbox-earcut`` (the fast ear
clipping implementation used by Mapbox GL, which bridges holes into the
outer ring before clipping).  The code in this file validates the
input, normalises loops into the format earcut expects, orients the
resulting triangles, and welds them into a :class:`MeshBuffer` lifted
to a constant elevation.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

try:
    import mapbox_earcut as _earcut
except ImportError as exc:  # pragma: no cover - import guard
    raise ImportError(
        "mapbox-earcut must be installed to triangulate polygons with holes"
    ) from exc

from polyextrude.errors import InvalidRingError, TriangulationError
from polyextrude.geom import (Point2D, Segment2D, as_ring, orient,
                              point_in_ring, segments, segments_intersect)
from polyextrude.mesh import MeshBuffer, VertexWelder

logger = logging.getLogger(__name__)

Point2DList = List[Point2D]

## relative mismatch allowed between triangulated and polygon area
AREA_TOLERANCE = 1e-6


def triangulate_polygon(outer: Sequence[Sequence[float]],
                        holes: Iterable[Sequence[Sequence[float]]] | None = None
                        ) -> List[List[Point2D]]:
    """Return triangles covering ``outer`` minus any ``holes``.

    ``outer`` and each entry in ``holes`` is expected to be a sequence of
    XZ-like points.  Degenerate loops (fewer than three distinct points)
    are ignored.  The returned triangles are lists of three ``(x, z)``
    pairs in whatever winding earcut produced.  No validation is done
    here; see :func:`triangulate` for the checked version.
    """

    if holes is None:
        holes = []

    outer_loop = _prepare_loop(outer, want_ccw=True)
    if len(outer_loop) < 3:
        return []

    point_map: Point2DList = []

    ring_ends: List[int] = []

    def _append(loop: Sequence[Point2D]) -> None:
        for x, z in loop:
            point_map.append((x, z))
        ring_ends.append(len(point_map))

    _append(outer_loop)

    for hole in holes:
        loop = _prepare_loop(hole, want_ccw=False)
        if len(loop) < 3:
            continue
        _append(loop)

    vertices = np.asarray(point_map, dtype=np.float64).reshape(-1, 2)
    ring_array = np.asarray(ring_ends, dtype=np.uint32)
    indices = _earcut.triangulate_float64(vertices, ring_array)
    triangles: List[List[Point2D]] = []
    for i in range(0, len(indices), 3):
        triangles.append([point_map[indices[i]],
                          point_map[indices[i + 1]],
                          point_map[indices[i + 2]]])
    return triangles


def validate_rings(outer: Sequence[Point2D],
                   holes: Sequence[Sequence[Point2D]] = (),
                   name: Optional[str] = None) -> None:
    """Raise :class:`InvalidRingError` unless ``outer`` and ``holes`` form a
    valid polygon with holes.

    Checked: at least three points per ring, non-zero hole area, no two
    boundary segments touching or crossing (other than neighbours within
    one ring sharing their common vertex), every hole strictly inside
    the outer ring and no hole inside another hole.
    """

    if len(outer) < 3:
        raise InvalidRingError(f'ring must have at least 3 points, got {len(outer)}', name)
    for k, hole in enumerate(holes):
        if len(hole) < 3:
            raise InvalidRingError(f'hole {k} must have at least 3 points, got {len(hole)}', name)
        if _signed_area(hole) == 0.0:
            raise InvalidRingError(f'hole {k} encloses no area', name)

    crossing = _find_crossing([outer] + list(holes))
    if crossing is not None:
        (ra, ia), (rb, ib) = crossing
        raise InvalidRingError(
            f'boundary segments intersect: {_ring_label(ra)} segment {ia} '
            f'and {_ring_label(rb)} segment {ib}', name)

    for k, hole in enumerate(holes):
        if not all(point_in_ring(p, outer) for p in hole):
            raise InvalidRingError(f'hole {k} is not enclosed by the outer ring', name)
        for j, other in enumerate(holes):
            if j != k and point_in_ring(hole[0], other):
                raise InvalidRingError(f'hole {k} lies inside hole {j}', name)


def triangulate(ring: Sequence[Sequence[float]],
                holes: Iterable[Sequence[Sequence[float]]] = (),
                elevation: float = 0.0,
                *,
                weld_epsilon: float = 1e-9,
                validate: bool = True,
                name: Optional[str] = None) -> MeshBuffer:
    """Triangulate ``ring`` minus ``holes`` into a welded :class:`MeshBuffer`.

    Ring points are ``(x, z)`` pairs; output vertices are
    ``(x, elevation, z)``.  Every triangle is wound so that its normal
    points up (+y).  Vertices closer than ``weld_epsilon`` in the
    ``(x, z)`` plane are merged into one, and consecutive ring points
    that close are treated as a single point.

    Raises :class:`InvalidRingError` for malformed input (unless
    ``validate`` is false) and :class:`TriangulationError` if the
    triangulation is empty or does not cover the polygon's area.
    """

    outer = as_ring(ring, weld_epsilon)
    hole_loops = [as_ring(h, weld_epsilon) for h in holes]
    if validate:
        validate_rings(outer, hole_loops, name)
    elif len(outer) < 3:
        raise InvalidRingError(f'ring must have at least 3 points, got {len(outer)}', name)

    triangles = triangulate_polygon(outer, hole_loops)
    if not triangles:
        raise TriangulationError('triangulation produced no triangles', name)

    expected = abs(_signed_area(outer)) - sum(abs(_signed_area(h)) for h in hole_loops
                                              if len(h) >= 3)
    welder = VertexWelder(weld_epsilon)
    indices: List[int] = []
    covered = 0.0
    y = float(elevation)

    for tri in triangles:
        a, b, c = tri
        twice = orient(a, b, c)
        if twice == 0.0:
            continue
        # clockwise in (x, z) gives an upward normal
        if twice > 0:
            b, c = c, b
        covered += abs(twice) / 2.0
        for x, z in (a, b, c):
            indices.append(welder.add((x, y, z)))

    if not indices:
        raise TriangulationError('triangulation produced only degenerate triangles', name)
    if abs(covered - expected) > AREA_TOLERANCE * abs(expected):
        raise TriangulationError(
            f'triangulated area {covered!r} does not match polygon area {expected!r}', name)

    logger.debug('triangulated %d points into %d triangles at y=%g',
                 len(outer) + sum(len(h) for h in hole_loops),
                 len(indices) // 3, y)
    return MeshBuffer(welder.vertices(), indices)


def _ring_label(k: int) -> str:
    return 'outer ring' if k == 0 else f'hole {k - 1}'


def _find_crossing(rings: Sequence[Sequence[Point2D]]
                   ) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """Return the first pair of touching non-adjacent segments, or ``None``.

    Segments are swept in order of their left end so only pairs with
    overlapping x extents are tested.
    """

    entries: List[Tuple[float, float, int, int, Segment2D]] = []
    for r, loop in enumerate(rings):
        for i, seg in enumerate(segments(loop)):
            (ax, _), (bx, _) = seg
            entries.append((min(ax, bx), max(ax, bx), r, i, seg))
    entries.sort(key=lambda e: e[0])

    for pos, (_, xmax, r1, i1, s1) in enumerate(entries):
        for xmin2, _, r2, i2, s2 in entries[pos + 1:]:
            if xmin2 > xmax:
                break
            if r1 == r2 and _adjacent(i1, i2, len(rings[r1])):
                continue
            if segments_intersect(s1, s2):
                first, second = sorted([(r1, i1), (r2, i2)])
                return first, second
    return None


def _adjacent(i: int, j: int, n: int) -> bool:
    return (i + 1) % n == j or (j + 1) % n == i


def _prepare_loop(points: Sequence[Sequence[float]], *, want_ccw: bool) -> Point2DList:
    loop = list(as_ring(points))
    if len(loop) < 3:
        return loop
    area = _signed_area(loop)
    if want_ccw and area < 0:
        loop.reverse()
    elif not want_ccw and area > 0:
        loop.reverse()
    return loop


def _signed_area(loop: Sequence[Point2D]) -> float:
    total = 0.0
    for i, (x0, z0) in enumerate(loop):
        x1, z1 = loop[(i + 1) % len(loop)]
        total += x0 * z1 - x1 * z0
    return total / 2.0


__all__ = ['AREA_TOLERANCE', 'triangulate_polygon', 'validate_rings', 'triangulate']
