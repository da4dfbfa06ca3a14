"""Exceptions raised when a polygon cannot be turned into a mesh.

Every build failure is reported through one of these classes; no
partially built mesh is ever returned alongside them.
"""

from __future__ import annotations

from typing import Optional


class PolyExtrudeError(ValueError):
    """Base class for polygon build failures.

    ``name`` is the identifier of the build request that failed, when
    known.
    """

    kind = 'PolyExtrudeError'

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.name = name

    def __str__(self) -> str:
        if self.name:
            return f"[{self.name}] {self.message}"
        return self.message


class DegeneratePolygonError(PolyExtrudeError):
    """The ring encloses (numerically) zero area."""
    kind = 'DegeneratePolygon'


class InvalidRingError(PolyExtrudeError):
    """Too few points, crossing boundary segments, or mis-nested holes."""
    kind = 'InvalidRing'


class TriangulationError(PolyExtrudeError):
    """The triangulation step produced no usable result."""
    kind = 'TriangulationFailure'


__all__ = [
    'PolyExtrudeError',
    'DegeneratePolygonError',
    'InvalidRingError',
    'TriangulationError',
]
