## foundational 2D geometry helpers for polyextrude

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""foundational planar geometry for **polyextrude**

A *ring* is an ordered, implicitly closed sequence of 2D points.  The
two coordinates are the horizontal ``x`` and ``z`` axes of the 3D
space the meshes are built in; the third (vertical) axis ``y`` only
appears once a ring is lifted to an elevation by the triangulator.

Rings are represented as tuples of ``(float, float)`` pairs.  Use
``as_ring`` to coerce arbitrary point-likes (lists, numpy rows,
homogeneous ``[x, z, 0, 1]`` points) into that form.
"""

from __future__ import annotations

from typing import Iterator, Sequence, Tuple

Point2D = Tuple[float, float]
Ring = Tuple[Point2D, ...]
Segment2D = Tuple[Point2D, Point2D]


def near(p1: Sequence[float], p2: Sequence[float], tol: float = 0.0) -> bool:
    """are two planar points the same within ``tol`` on both axes (exactly equal by default)"""
    return abs(p1[0] - p2[0]) <= tol and abs(p1[1] - p2[1]) <= tol


def as_ring(points: Sequence[Sequence[float]], tol: float = 0.0) -> Ring:
    """Coerce ``points`` into a ring of ``(x, z)`` float pairs.

    Consecutive duplicate points are dropped, as is an explicit closing
    point that repeats the first point.  Points count as duplicates when
    they agree within ``tol`` on both axes; the default only drops exact
    repeats, so no real vertex of a small or geographic ring is lost.
    Only the first two components of each point are used.
    """

    loop = []
    for pt in points:
        if len(pt) < 2:
            raise ValueError(f'ring point must have two coordinates, got {pt!r}')
        p = (float(pt[0]), float(pt[1]))
        if loop and near(loop[-1], p, tol):
            continue
        loop.append(p)
    if len(loop) > 1 and near(loop[0], loop[-1], tol):
        loop.pop()
    return tuple(loop)


def segments(ring: Sequence[Point2D]) -> Iterator[Segment2D]:
    """Yield the boundary segments of ``ring``, including the closing one."""

    n = len(ring)
    for i in range(n):
        yield ring[i], ring[(i + 1) % n]


def orient(a: Point2D, b: Point2D, c: Point2D) -> float:
    """Twice the signed area of triangle ``abc``.

    Positive when ``a``, ``b``, ``c`` turn counter-clockwise in the
    ``(x, z)`` plane, negative when clockwise, zero when collinear.
    """
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def _on_segment(a: Point2D, b: Point2D, p: Point2D, tol: float) -> bool:
    return (min(a[0], b[0]) - tol <= p[0] <= max(a[0], b[0]) + tol and
            min(a[1], b[1]) - tol <= p[1] <= max(a[1], b[1]) + tol)


def segments_intersect(s1: Segment2D, s2: Segment2D, tol: float = 0.0) -> bool:
    """Return ``True`` if two closed segments share at least one point.

    Touching endpoints and collinear overlaps count as intersections.
    ``tol`` is the orientation threshold below which three points are
    treated as collinear.
    """

    a, b = s1
    c, d = s2
    d1 = orient(c, d, a)
    d2 = orient(c, d, b)
    d3 = orient(a, b, c)
    d4 = orient(a, b, d)

    if ((d1 > tol and d2 < -tol) or (d1 < -tol and d2 > tol)) and \
       ((d3 > tol and d4 < -tol) or (d3 < -tol and d4 > tol)):
        return True

    if abs(d1) <= tol and _on_segment(c, d, a, 0.0):
        return True
    if abs(d2) <= tol and _on_segment(c, d, b, 0.0):
        return True
    if abs(d3) <= tol and _on_segment(a, b, c, 0.0):
        return True
    if abs(d4) <= tol and _on_segment(a, b, d, 0.0):
        return True
    return False


def point_in_ring(p: Point2D, ring: Sequence[Point2D]) -> bool:
    """Even-odd test: is ``p`` strictly inside ``ring``.

    Points lying on the boundary are reported as outside.
    """

    x, z = p
    inside = False
    for a, b in segments(ring):
        if orient(a, b, p) == 0.0 and _on_segment(a, b, p, 0.0):
            return False
        if (a[1] > z) != (b[1] > z):
            xcross = a[0] + (z - a[1]) * (b[0] - a[0]) / (b[1] - a[1])
            if x < xcross:
                inside = not inside
    return inside


__all__ = [
    'Point2D',
    'Ring',
    'Segment2D',
    'near',
    'as_ring',
    'segments',
    'orient',
    'segments_intersect',
    'point_in_ring',
]
