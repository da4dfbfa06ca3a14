"""Closed-form polygon area and centroid (shoelace formula)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from polyextrude.errors import DegeneratePolygonError, InvalidRingError
from polyextrude.geom import Point2D, Ring

## relative tolerance below which a ring's area is treated as zero
AREA_EPSILON = 1e-12


@dataclass(frozen=True)
class PolygonMeasure:
    """Area and centroid of a ring.

    ``signed_double_area`` keeps the orientation information: it is
    negative for clockwise rings.
    """

    area: float
    centroid: Point2D
    signed_double_area: float


def area_and_centroid(ring: Sequence[Point2D],
                      rel_epsilon: float = AREA_EPSILON,
                      name: Optional[str] = None) -> PolygonMeasure:
    """Return the :class:`PolygonMeasure` of ``ring``.

    The sums are accumulated in double precision relative to the first
    vertex, which keeps large-magnitude inputs (geographic coordinates,
    for instance) free of catastrophic cancellation; the centroid is
    shifted back afterwards.  The centroid divides by the *signed*
    area, so it is correct for either winding order.

    Raises :class:`DegeneratePolygonError` if the area is zero within
    ``rel_epsilon`` times the magnitude of the accumulated cross terms,
    and :class:`InvalidRingError` for rings of fewer than three points.
    """

    n = len(ring)
    if n < 3:
        raise InvalidRingError(f'ring must have at least 3 points, got {n}', name)

    ox, oz = float(ring[0][0]), float(ring[0][1])
    double_area = 0.0
    magnitude = 0.0
    cx = 0.0
    cz = 0.0
    for i in range(n):
        x0 = float(ring[i][0]) - ox
        z0 = float(ring[i][1]) - oz
        x1 = float(ring[(i + 1) % n][0]) - ox
        z1 = float(ring[(i + 1) % n][1]) - oz
        a = x0 * z1
        b = x1 * z0
        cross = a - b
        double_area += cross
        magnitude += abs(a) + abs(b)
        cx += (x0 + x1) * cross
        cz += (z0 + z1) * cross

    area = abs(double_area) / 2.0
    if magnitude == 0.0 or abs(double_area) <= rel_epsilon * magnitude:
        raise DegeneratePolygonError(f'polygon area is zero ({area!r})', name)

    six_signed_area = double_area * 3.0
    centroid = (cx / six_signed_area + ox, cz / six_signed_area + oz)
    return PolygonMeasure(area=area, centroid=centroid,
                          signed_double_area=double_area)


def translate_ring(ring: Sequence[Point2D], origin: Point2D) -> Ring:
    """Return ``ring`` expressed relative to ``origin``."""
    ox, oz = origin
    return tuple((p[0] - ox, p[1] - oz) for p in ring)


__all__ = ['AREA_EPSILON', 'PolygonMeasure', 'area_and_centroid', 'translate_ring']
