"""Indexed triangle buffers shared by the triangulator and prism assembler.

A :class:`MeshBuffer` is the hand-off format to a renderer or collision
system: an ``(N, 3)`` float64 vertex array and a flat uint32 index array
in which every triple is one triangle.  Triangles are counter-clockwise
when seen from their outward side, so ``(v1 - v0) x (v2 - v0)`` is the
outward normal.

Buffers are values.  Both arrays are made read-only on construction and
every transform returns a new buffer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from math import floor
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]


def _as_vertices(array) -> np.ndarray:
    arr = np.array(array, dtype=np.float64)
    if arr.size == 0:
        arr = arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError("expected vertex array with shape (N, 3)")
    return arr


def _as_indices(array) -> np.ndarray:
    arr = np.array(array, dtype=np.int64).reshape(-1)
    if arr.size % 3:
        raise ValueError("index count must be a multiple of three")
    if arr.size and arr.min() < 0:
        raise ValueError("indices must be non-negative")
    return arr.astype(np.uint32)


@dataclass(frozen=True, eq=False)
class MeshBuffer:
    """Vertex positions plus flat triangle indices."""

    vertices: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint32))

    def __post_init__(self) -> None:
        vertices = _as_vertices(self.vertices)
        indices = _as_indices(self.indices)
        if indices.size and int(indices.max()) >= vertices.shape[0]:
            raise ValueError(
                f"index {int(indices.max())} out of range for {vertices.shape[0]} vertices"
            )
        vertices.setflags(write=False)
        indices.setflags(write=False)
        object.__setattr__(self, 'vertices', vertices)
        object.__setattr__(self, 'indices', indices)

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.size // 3)

    @property
    def triangles(self) -> np.ndarray:
        """Indices as an ``(M, 3)`` array."""
        return self.indices.reshape(-1, 3)

    def __len__(self) -> int:
        return self.triangle_count

    def __repr__(self) -> str:
        return f"MeshBuffer(vertices={self.vertex_count}, triangles={self.triangle_count})"

    def iter_triangles(self) -> Iterator[Tuple[Vec3, Vec3, Vec3]]:
        """Yield each triangle as three ``(x, y, z)`` tuples."""
        verts = self.vertices
        for i0, i1, i2 in self.triangles:
            yield (tuple(verts[i0]), tuple(verts[i1]), tuple(verts[i2]))

    # -- measures -------------------------------------------------------

    def _cross(self) -> np.ndarray:
        tri = self.vertices[self.triangles]
        return np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])

    def area(self) -> float:
        """Total surface area of all triangles."""
        if not self.triangle_count:
            return 0.0
        return float(0.5 * np.linalg.norm(self._cross(), axis=1).sum())

    def face_normals(self) -> np.ndarray:
        """Unit normals per triangle; degenerate triangles get zero vectors."""
        if not self.triangle_count:
            return np.zeros((0, 3))
        n = self._cross()
        length = np.linalg.norm(n, axis=1)
        out = np.zeros_like(n)
        good = length > 0.0
        out[good] = n[good] / length[good, None]
        return out

    def vertex_normals(self) -> np.ndarray:
        """Area-weighted average of the normals of the faces sharing a vertex."""
        normals = np.zeros((self.vertex_count, 3))
        if self.triangle_count:
            n = self._cross()
            for corner in range(3):
                np.add.at(normals, self.triangles[:, corner], n)
        length = np.linalg.norm(normals, axis=1)
        good = length > 0.0
        normals[good] /= length[good, None]
        return normals

    def bounds(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """Return ``(min, max)`` corners, or ``None`` for an empty buffer."""
        if not self.vertex_count:
            return None
        return self.vertices.min(axis=0), self.vertices.max(axis=0)

    # -- transforms -----------------------------------------------------

    def flipped(self) -> "MeshBuffer":
        """Reverse the winding of every triangle; vertices are untouched."""
        tris = self.triangles[:, [0, 2, 1]]
        return MeshBuffer(self.vertices, tris.reshape(-1))

    def translated(self, delta: Sequence[float]) -> "MeshBuffer":
        return MeshBuffer(self.vertices + np.asarray(delta, dtype=np.float64)[:3], self.indices)

    def scaled(self, sx: float, sy: float, sz: float,
               pivot: Sequence[float] = (0.0, 0.0, 0.0)) -> "MeshBuffer":
        """Apply a non-uniform scale about ``pivot``.

        A scale with negative determinant mirrors the geometry, so the
        winding is reversed as well to keep faces pointing outward.
        """

        p = np.asarray(pivot, dtype=np.float64)[:3]
        factors = np.array([sx, sy, sz], dtype=np.float64)
        verts = (self.vertices - p) * factors + p
        indices = self.indices
        if sx * sy * sz < 0:
            indices = self.triangles[:, [0, 2, 1]].reshape(-1)
        return MeshBuffer(verts, indices)

    def reflected(self) -> "MeshBuffer":
        """Point reflection through the origin followed by a half turn about y.

        The net effect negates ``y`` only.  Winding is reversed, so a
        face that pointed up now points down and still faces outward.

        The positions are therefore those of a mirror in the ``xz`` plane,
        not of a plain ``scaled(-1, -1, -1)``: ``x`` and ``z`` come back
        unchanged, so code comparing raw vertex positions against a
        negatively scaled buffer will see different coordinates.
        """

        verts = self.vertices * np.array([-1.0, -1.0, -1.0])
        verts = verts * np.array([-1.0, 1.0, -1.0])
        return MeshBuffer(verts, self.triangles[:, [0, 2, 1]].reshape(-1))

    def welded(self, tol: float = 1e-9) -> "MeshBuffer":
        """Merge vertices whose positions agree within ``tol`` on every axis."""
        welder = VertexWelder(tol, axes=(0, 1, 2))
        remap = [welder.add(v) for v in self.vertices]
        indices = [remap[i] for i in self.indices]
        return MeshBuffer(welder.vertices(), indices)


class VertexWelder:
    """Collect vertices, reusing indices of previously seen near-equal positions.

    Two positions match when they differ by less than ``tol`` on each of
    the compared ``axes`` (by default ``x`` and ``z``, the planar axes of
    a triangulated ring).  Lookup goes through a grid keyed on quantized
    coordinates, checking the neighbouring cells so the result is the
    same as a linear scan with epsilon comparison.
    """

    def __init__(self, tol: float = 1e-9, axes: Tuple[int, ...] = (0, 2)):
        if tol <= 0:
            raise ValueError('weld tolerance must be positive')
        self.tol = tol
        self.axes = axes
        self._cell = tol * 2.0
        self._grid: Dict[Tuple[int, ...], List[int]] = {}
        self._vertices: List[Vec3] = []

    def __len__(self) -> int:
        return len(self._vertices)

    def _key(self, v: Sequence[float]) -> Tuple[int, ...]:
        return tuple(int(floor(v[a] / self._cell)) for a in self.axes)

    def _neighbours(self, key: Tuple[int, ...]) -> Iterator[Tuple[int, ...]]:
        keys = [()]
        for k in key:
            keys = [prefix + (k + d,) for prefix in keys for d in (-1, 0, 1)]
        return iter(keys)

    def find(self, v: Sequence[float]) -> Optional[int]:
        """Return the index of a matching vertex, or ``None``."""
        for key in self._neighbours(self._key(v)):
            for idx in self._grid.get(key, ()):
                other = self._vertices[idx]
                if all(abs(other[a] - v[a]) < self.tol for a in self.axes):
                    return idx
        return None

    def add(self, v: Sequence[float]) -> int:
        """Return the index of ``v``, appending it if it is new."""
        idx = self.find(v)
        if idx is not None:
            return idx
        idx = len(self._vertices)
        self._vertices.append((float(v[0]), float(v[1]), float(v[2])))
        self._grid.setdefault(self._key(v), []).append(idx)
        return idx

    def vertices(self) -> np.ndarray:
        if not self._vertices:
            return np.zeros((0, 3))
        return np.asarray(self._vertices, dtype=np.float64)


def combine_meshes(*meshes: Optional[MeshBuffer]) -> MeshBuffer:
    """Concatenate buffers into one, offsetting indices; ``None`` entries are skipped."""

    verts = []
    indices = []
    offset = 0
    for mesh in meshes:
        if mesh is None:
            continue
        verts.append(mesh.vertices)
        indices.append(mesh.indices.astype(np.int64) + offset)
        offset += mesh.vertex_count
    if not verts:
        return MeshBuffer()
    return MeshBuffer(np.concatenate(verts), np.concatenate(indices))


__all__ = ['Vec3', 'MeshBuffer', 'VertexWelder', 'combine_meshes']
