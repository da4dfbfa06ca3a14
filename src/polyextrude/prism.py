"""Polygons and extruded prisms built from a 2D ring.

A prism (3D mode) consists of three meshes:

1. the bottom face at the bottom elevation, facing down
2. the top face, the same triangulation at the top elevation, facing up
3. the surround wall connecting both faces along the outer ring

In 2D mode only the bottom face is built, facing up.  All meshes are
expressed relative to the ring's centroid; :attr:`Prism.anchor` is
where a caller should place them to recover the input coordinates.

Typical use::

    from polyextrude.prism import PrismRequest, build_prism

    req = PrismRequest('square', [(0, 0), (10, 0), (10, 10), (0, 10)],
                       height=5.0, color='grey')
    prism = build_prism(req)
    prism.area            # 100.0
    prism.centroid        # (5.0, 5.0)
    mesh = prism.combined()
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from polyextrude.config import DEFAULT_CONFIG, PrismConfig
from polyextrude.errors import InvalidRingError, PolyExtrudeError
from polyextrude.geom import Point2D, Ring, as_ring
from polyextrude.measure import area_and_centroid, translate_ring
from polyextrude.mesh import MeshBuffer, combine_meshes
from polyextrude.triangulator import triangulate
from polyextrude.winding import normalize_winding

logger = logging.getLogger(__name__)


_NAMED_COLORS = {
    'black': (0, 0, 0, 255),
    'white': (255, 255, 255, 255),
    'grey': (128, 128, 128, 255),
    'gray': (128, 128, 128, 255),
    'red': (255, 0, 0, 255),
    'green': (0, 255, 0, 255),
    'blue': (0, 0, 255, 255),
    'yellow': (255, 235, 4, 255),
    'cyan': (0, 255, 255, 255),
    'magenta': (255, 0, 255, 255),
    'clear': (0, 0, 0, 0),
}


class Color(NamedTuple):
    """8-bit RGBA display color."""

    r: int
    g: int
    b: int
    a: int = 255

    @classmethod
    def parse(cls, value: Union["Color", str, Sequence[int]]) -> "Color":
        """Accept a Color, ``'#rrggbb'``, ``'#rrggbbaa'``, a color name or
        a sequence of three or four 0-255 integers."""

        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _NAMED_COLORS:
                return cls(*_NAMED_COLORS[text])
            if text.startswith('#') and len(text) in (7, 9):
                try:
                    parts = [int(text[i:i + 2], 16) for i in range(1, len(text), 2)]
                except ValueError:
                    raise ValueError(f'bad color string: {value!r}') from None
                return cls(*parts)
            raise ValueError(f'bad color string: {value!r}')
        parts = [int(c) for c in value]
        if len(parts) not in (3, 4) or any(c < 0 or c > 255 for c in parts):
            raise ValueError(f'bad color: {value!r}')
        return cls(*parts)

    def hex(self) -> str:
        return '#{:02x}{:02x}{:02x}{:02x}'.format(*self)


class BuildState(Enum):
    UNINITIALIZED = 'uninitialized'
    RING_NORMALIZED = 'ring_normalized'
    AREA_CENTROID_COMPUTED = 'area_centroid_computed'
    BOTTOM_TRIANGULATED = 'bottom_triangulated'
    TOP_TRIANGULATED = 'top_triangulated'
    SURROUND_BUILT = 'surround_built'
    DONE = 'done'
    FAILED = 'failed'


@dataclass(frozen=True)
class PrismRequest:
    """A named request to build one polygon or prism.

    ``is_3d`` and ``use_bottom_in_3d`` default to ``None``, meaning the
    value from the :class:`~polyextrude.config.PrismConfig` in use.
    """

    name: str
    ring: Sequence[Sequence[float]]
    holes: Sequence[Sequence[Sequence[float]]] = ()
    height: float = 1.0
    is_3d: Optional[bool] = None
    use_bottom_in_3d: Optional[bool] = None
    color: Union[Color, str, Sequence[int]] = 'grey'


def build_surround(ring: Sequence[Point2D], bottom_y: float, top_y: float) -> MeshBuffer:
    """Stitch the side wall between a ring at ``bottom_y`` and at ``top_y``.

    ``ring`` must be clockwise in the ``(x, z)`` plane (see
    :mod:`polyextrude.winding`) with ``top_y > bottom_y`` for the quads
    to face outward.  The vertex list holds every ring point at the
    bottom followed by every ring point at the top, so there are ``2N``
    vertices and ``2N`` triangles for an ``N``-point ring.
    """

    n = len(ring)
    if n < 3:
        raise InvalidRingError(f'ring must have at least 3 points, got {n}')

    vertices = [(x, bottom_y, z) for x, z in ring]
    vertices += [(x, top_y, z) for x, z in ring]

    indices: List[int] = []
    ib = 0
    it = n
    for i in range(n):
        if i == n - 1:
            # closing quad back to the first bottom (0) and top (n) vertex
            indices += [ib, 0, it]
            indices += [0, n, it]
        else:
            indices += [ib, ib + 1, it]
            indices += [ib + 1, it + 1, it]
            ib += 1
            it += 1

    return MeshBuffer(vertices, indices)


def assemble_prism(ring: Sequence[Point2D],
                   holes: Sequence[Sequence[Point2D]] = (),
                   bottom_y: float = 0.0,
                   top_y: float = 1.0,
                   *,
                   is_3d: bool = True,
                   use_bottom_in_3d: bool = True,
                   weld_epsilon: float = 1e-9,
                   validate: bool = True,
                   name: Optional[str] = None,
                   on_state: Optional[Callable[[BuildState], None]] = None,
                   ) -> Tuple[Optional[MeshBuffer], Optional[MeshBuffer], Optional[MeshBuffer]]:
    """Return ``(bottom, top, surround)`` meshes for a clockwise ``ring``.

    The bottom face is always triangulated (this is also where the input
    is validated).  In 3D mode its winding is reversed so it faces down,
    and it is returned as ``None`` when ``use_bottom_in_3d`` is false.
    In 2D mode ``top`` and ``surround`` are ``None``.

    Holes cut through the bottom and top faces only: the surround wall
    follows the outer ring.
    """

    def advance(state: BuildState) -> None:
        if on_state is not None:
            on_state(state)

    bottom = triangulate(ring, holes, bottom_y, weld_epsilon=weld_epsilon,
                         validate=validate, name=name)
    advance(BuildState.BOTTOM_TRIANGULATED)
    if not is_3d:
        return bottom, None, None

    bottom = bottom.flipped() if use_bottom_in_3d else None

    top = triangulate(ring, holes, top_y, weld_epsilon=weld_epsilon,
                      validate=False, name=name)
    advance(BuildState.TOP_TRIANGULATED)

    if holes:
        logger.warning('prism %r: %d hole(s) get no side walls, only the outer ring is extruded',
                       name, len(holes))
    surround = build_surround(ring, bottom_y, top_y)
    advance(BuildState.SURROUND_BUILT)
    return bottom, top, surround


@dataclass(frozen=True, eq=False)
class Prism:
    """Result of a successful build.

    ``bottom``, ``top`` and ``surround`` are the meshes as built, between
    the configured elevations.  The ``*_mesh`` properties apply
    ``height`` as a vertical scale about the bottom elevation (3D mode
    only), without re-triangulating.
    """

    name: str
    ring: Ring
    holes: Tuple[Ring, ...]
    area: float
    centroid: Point2D
    bottom: Optional[MeshBuffer]
    top: Optional[MeshBuffer]
    surround: Optional[MeshBuffer]
    is_3d: bool
    height: float = 1.0
    color: Color = Color(128, 128, 128)
    bottom_elevation: float = 0.0
    top_elevation: float = 1.0

    def _apply_height(self, mesh: Optional[MeshBuffer]) -> Optional[MeshBuffer]:
        if mesh is None or not self.is_3d or self.height == 1.0:
            return mesh
        return mesh.scaled(1.0, self.height, 1.0, pivot=(0.0, self.bottom_elevation, 0.0))

    @property
    def bottom_mesh(self) -> Optional[MeshBuffer]:
        return self._apply_height(self.bottom)

    @property
    def top_mesh(self) -> Optional[MeshBuffer]:
        return self._apply_height(self.top)

    @property
    def surround_mesh(self) -> Optional[MeshBuffer]:
        return self._apply_height(self.surround)

    @property
    def surface_elevation(self) -> float:
        """Elevation of the visible cap: the scaled top in 3D, the bottom in 2D."""
        if not self.is_3d:
            return self.bottom_elevation
        return self.bottom_elevation + (self.top_elevation - self.bottom_elevation) * self.height

    @property
    def anchor(self) -> Tuple[float, float, float]:
        """World position of the meshes' local origin."""
        return (self.centroid[0], self.bottom_elevation, self.centroid[1])

    @property
    def outline(self) -> np.ndarray:
        """Ring points at the surface elevation, for drawing an outline loop."""
        y = self.surface_elevation
        return np.array([(x, y, z) for x, z in self.ring], dtype=np.float64)

    def meshes(self) -> List[MeshBuffer]:
        """Materialized meshes in bottom, surround, top order."""
        parts = [self.bottom_mesh, self.surround_mesh, self.top_mesh]
        return [m for m in parts if m is not None]

    def combined(self, world: bool = False) -> MeshBuffer:
        """All meshes concatenated into one buffer.

        With ``world`` set the result is translated by the centroid so it
        lines up with the input coordinates.
        """
        mesh = combine_meshes(*self.meshes())
        if world:
            mesh = mesh.translated((self.centroid[0], 0.0, self.centroid[1]))
        return mesh

    def update_height(self, height: float) -> "Prism":
        """Return a copy with a new extrusion height."""
        return dataclasses.replace(self, height=float(height))

    def update_color(self, color: Union[Color, str, Sequence[int]]) -> "Prism":
        """Return a copy with a new display color."""
        return dataclasses.replace(self, color=Color.parse(color))


def build_prism(request: PrismRequest, config: Optional[PrismConfig] = None) -> Prism:
    """Build the polygon or prism described by ``request``.

    Any :class:`~polyextrude.errors.PolyExtrudeError` raised along the
    way is logged and re-raised with the request name attached; nothing
    is returned for a failed build.
    """

    cfg = config or DEFAULT_CONFIG
    name = request.name
    is_3d = cfg.is_3d if request.is_3d is None else bool(request.is_3d)
    use_bottom = cfg.use_bottom_in_3d if request.use_bottom_in_3d is None \
        else bool(request.use_bottom_in_3d)
    state = BuildState.UNINITIALIZED

    def advance(new_state: BuildState) -> None:
        nonlocal state
        logger.debug('prism %r: %s -> %s', name, state.value, new_state.value)
        state = new_state

    logger.info('building %s %r', 'prism' if is_3d else 'polygon', name)
    try:
        color = Color.parse(request.color)
        ring = as_ring(request.ring, cfg.weld_epsilon)
        if len(ring) < 3:
            raise InvalidRingError(f'ring must have at least 3 points, got {len(ring)}', name)
        ring = normalize_winding(ring)
        advance(BuildState.RING_NORMALIZED)

        measure = area_and_centroid(ring, cfg.area_epsilon, name)
        advance(BuildState.AREA_CENTROID_COMPUTED)

        local_ring = translate_ring(ring, measure.centroid)
        local_holes = tuple(translate_ring(as_ring(h, cfg.weld_epsilon), measure.centroid)
                            for h in request.holes)

        bottom, top, surround = assemble_prism(
            local_ring, local_holes, cfg.bottom_elevation, cfg.top_elevation,
            is_3d=is_3d, use_bottom_in_3d=use_bottom,
            weld_epsilon=cfg.weld_epsilon, validate=cfg.validate,
            name=name, on_state=advance)
    except PolyExtrudeError as exc:
        if exc.name is None:
            exc.name = name
        advance(BuildState.FAILED)
        logger.warning('prism %r not built (%s): %s', name, exc.kind, exc.message)
        raise

    advance(BuildState.DONE)
    prism = Prism(name=name, ring=local_ring, holes=local_holes,
                  area=measure.area, centroid=measure.centroid,
                  bottom=bottom, top=top, surround=surround, is_3d=is_3d,
                  height=float(request.height), color=color,
                  bottom_elevation=cfg.bottom_elevation,
                  top_elevation=cfg.top_elevation)
    logger.info('built %r: area=%g, %d triangles', name, prism.area,
                sum(m.triangle_count for m in prism.meshes()))
    return prism


__all__ = [
    'Color',
    'BuildState',
    'PrismRequest',
    'Prism',
    'build_surround',
    'assemble_prism',
    'build_prism',
]
