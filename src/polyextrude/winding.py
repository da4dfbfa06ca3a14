"""Ring orientation helpers.

The canonical orientation used throughout polyextrude is *clockwise*
in the ``(x, z)`` plane, detected with the edge sum

    S = sum((x[i+1] - x[i]) * (z[i+1] + z[i]))

which is positive for clockwise rings and negative for counter-clockwise
ones.  With that orientation the surround wall builder can emit its
quads with a fixed index pattern and still have them face outward.
"""

from __future__ import annotations

from typing import Sequence

from polyextrude.geom import Point2D, Ring


def edge_sum(ring: Sequence[Point2D]) -> float:
    """Return the signed edge sum ``S`` of ``ring`` (closing edge included)."""

    total = 0.0
    n = len(ring)
    for i in range(n):
        x0, z0 = ring[i]
        x1, z1 = ring[(i + 1) % n]
        total += (x1 - x0) * (z1 + z0)
    return total


def is_clockwise(ring: Sequence[Point2D]) -> bool:
    """``True`` if ``ring`` is clockwise.  Zero-area rings count as clockwise."""
    return edge_sum(ring) >= 0.0


def normalize_winding(ring: Sequence[Point2D]) -> Ring:
    """Return ``ring`` in canonical (clockwise) order.

    Counter-clockwise rings are reversed; anything else, including a
    ring whose edge sum is exactly zero, is returned unchanged.  Whether
    such a degenerate ring is usable is decided by the area check in
    :mod:`polyextrude.measure`.
    """

    loop = tuple((float(p[0]), float(p[1])) for p in ring)
    if is_clockwise(loop):
        return loop
    return tuple(reversed(loop))


__all__ = ['edge_sum', 'is_clockwise', 'normalize_winding']
