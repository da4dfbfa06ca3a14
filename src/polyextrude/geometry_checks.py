"""Validation helpers for polyextrude meshes."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from polyextrude.mesh import MeshBuffer


@dataclass
class CheckResult:
    ok: bool
    warnings: List[str]

    def __bool__(self) -> bool:
        return self.ok


def indices_in_range(mesh: MeshBuffer) -> CheckResult:
    """Every index must address an existing vertex."""

    if not mesh.indices.size:
        return CheckResult(True, ['mesh has no triangles'])
    top = int(mesh.indices.max())
    if top >= mesh.vertex_count:
        return CheckResult(False, [f'index {top} out of range for {mesh.vertex_count} vertices'])
    return CheckResult(True, [])


def vertices_welded(mesh: MeshBuffer, tol: float = 1e-9) -> CheckResult:
    """No two vertices may share a position within ``tol``."""

    if mesh.vertex_count < 2:
        return CheckResult(True, [])
    verts = mesh.vertices
    order = np.lexsort((verts[:, 2], verts[:, 1], verts[:, 0]))
    duplicates = []
    for pos, i in enumerate(order):
        for j in order[pos + 1:]:
            if verts[j, 0] - verts[i, 0] >= tol:
                break
            if np.all(np.abs(verts[j] - verts[i]) < tol):
                duplicates.append((int(min(i, j)), int(max(i, j))))
    if duplicates:
        return CheckResult(False, [f'coincident vertices: {duplicates}'])
    return CheckResult(True, [])


def faces_oriented(mesh: MeshBuffer, normal: Sequence[float]) -> CheckResult:
    """All non-degenerate faces must point along ``normal``."""

    ref = np.asarray(normal, dtype=np.float64)
    normals = mesh.face_normals()
    if not len(normals):
        return CheckResult(True, ['no faces found'])
    dots = normals @ ref
    nondegenerate = np.linalg.norm(normals, axis=1) > 0
    bad = np.nonzero(nondegenerate & (dots <= 0))[0]
    if bad.size:
        return CheckResult(False, [f'faces pointing away from {tuple(ref)}: {bad.tolist()}'])
    return CheckResult(True, [])


def faces_point_outward(mesh: MeshBuffer, center: Sequence[float]) -> CheckResult:
    """Every face normal must point away from ``center``.

    Only meaningful for convex solids or for wall strips around a
    star-shaped outline, where the center sees every face.
    """

    c = np.asarray(center, dtype=np.float64)
    normals = mesh.face_normals()
    tri = mesh.vertices[mesh.triangles]
    centroids = tri.mean(axis=1)
    dots = np.einsum('ij,ij->i', normals, centroids - c)
    bad = np.nonzero(dots <= 0)[0]
    if bad.size:
        return CheckResult(False, [f'inward facing faces: {bad.tolist()}'])
    return CheckResult(True, [])


def mesh_watertight(mesh: MeshBuffer) -> CheckResult:
    """Every edge must be shared by exactly two faces, once in each direction."""

    edges = Counter()
    directed = Counter()

    for a, b, c in mesh.triangles.tolist():
        for u, v in ((a, b), (b, c), (c, a)):
            edges[_edge_key(u, v)] += 1
            directed[(u, v)] += 1

    boundary = [edge for edge, count in edges.items() if count == 1]
    invalid = [edge for edge, count in edges.items() if count > 2]
    misoriented = [edge for edge, count in directed.items() if count > 1]

    warnings: List[str] = []
    ok = True
    if boundary:
        ok = False
        warnings.append(f'{len(boundary)} boundary edges detected')
    if invalid:
        ok = False
        warnings.append(f'edges with multiplicity >2: {invalid}')
    if misoriented:
        ok = False
        warnings.append(f'edges traversed twice in the same direction: {misoriented}')

    return CheckResult(ok, warnings)


def _edge_key(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


__all__ = [
    'CheckResult',
    'indices_in_range',
    'vertices_welded',
    'faces_oriented',
    'faces_point_outward',
    'mesh_watertight',
]
