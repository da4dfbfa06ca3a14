"""STL export for mesh buffers and prisms."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterator, List, Tuple, Union

from polyextrude.mesh import MeshBuffer
from polyextrude.prism import Prism

Vec3 = Tuple[float, float, float]

_HEADER_SIZE = 80
_STRUCT_TRIANGLE = struct.Struct('<12fH')


@dataclass(frozen=True)
class Triangle:
    """Immutable facet: unit normal plus three vertices."""

    normal: Vec3
    v0: Vec3
    v1: Vec3
    v2: Vec3


def iter_facets(mesh: MeshBuffer) -> Iterator[Triangle]:
    """Yield the facets of ``mesh``; degenerate (zero area) faces are skipped."""

    normals = mesh.face_normals()
    for normal, (v0, v1, v2) in zip(normals, mesh.iter_triangles()):
        if not normal.any():
            continue
        yield Triangle(normal=tuple(float(c) for c in normal),
                       v0=tuple(float(c) for c in v0),
                       v1=tuple(float(c) for c in v1),
                       v2=tuple(float(c) for c in v2))


def write_stl(obj: Union[MeshBuffer, Prism], path_or_file, *, binary: bool = True,
              name: str = 'polyextrude', world: bool = False) -> None:
    """Write ``obj`` (mesh buffer or prism) to STL.

    ``path_or_file`` can be a filesystem path or an open binary/text stream.
    Prisms are written as their combined mesh, translated back to the
    input coordinates when ``world`` is set.
    """

    if isinstance(obj, Prism):
        mesh = obj.combined(world=world)
    elif isinstance(obj, MeshBuffer):
        mesh = obj
    else:
        raise ValueError('write_stl expects a MeshBuffer or a Prism')

    triangles = list(iter_facets(mesh))

    if binary:
        _write_binary(triangles, path_or_file, name)
    else:
        _write_ascii(triangles, path_or_file, name)


def _write_binary(triangles: List[Triangle], path_or_file, name: str) -> None:
    close_when_done = False
    if hasattr(path_or_file, 'write'):
        stream = path_or_file
    else:
        stream = open(path_or_file, 'wb')
        close_when_done = True

    try:
        header = (name[:_HEADER_SIZE]).encode('ascii', errors='replace')
        header = header.ljust(_HEADER_SIZE, b' ')
        stream.write(header)
        stream.write(struct.pack('<I', len(triangles)))

        for tri in triangles:
            data = _STRUCT_TRIANGLE.pack(
                *tri.normal,
                *tri.v0,
                *tri.v1,
                *tri.v2,
                0,
            )
            stream.write(data)
    finally:
        if close_when_done:
            stream.close()


def _write_ascii(triangles: List[Triangle], path_or_file, name: str) -> None:
    close_when_done = False
    if hasattr(path_or_file, 'write'):
        stream = path_or_file
    else:
        stream = open(path_or_file, 'w', encoding='ascii')
        close_when_done = True

    try:
        print(f"solid {name}", file=stream)
        for tri in triangles:
            print(f"  facet normal {tri.normal[0]:.6e} {tri.normal[1]:.6e} {tri.normal[2]:.6e}", file=stream)
            print("    outer loop", file=stream)
            for v in (tri.v0, tri.v1, tri.v2):
                print(f"      vertex {v[0]:.6e} {v[1]:.6e} {v[2]:.6e}", file=stream)
            print("    endloop", file=stream)
            print("  endfacet", file=stream)
        print(f"endsolid {name}", file=stream)
    finally:
        if close_when_done:
            stream.close()


__all__ = ['Triangle', 'iter_facets', 'write_stl']
