import logging

import numpy as np
import pytest

from polyextrude.config import PrismConfig
from polyextrude.errors import DegeneratePolygonError, InvalidRingError
from polyextrude.geometry_checks import (faces_oriented, mesh_watertight,
                                         vertices_welded)
from polyextrude.prism import (BuildState, Color, PrismRequest, assemble_prism,
                               build_prism, build_surround)
from polyextrude.samples import load_sample, sample_request

SQUARE = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]


def test_square_prism():
    prism = build_prism(PrismRequest('square', SQUARE))
    assert prism.is_3d
    assert prism.area == pytest.approx(100.0)
    assert prism.centroid == pytest.approx((5.0, 5.0))
    assert prism.anchor == pytest.approx((5.0, 0.0, 5.0))

    assert np.all(prism.bottom_mesh.vertices[:, 1] == 0.0)
    assert np.all(prism.top_mesh.vertices[:, 1] == 1.0)
    assert faces_oriented(prism.top_mesh, (0, 1, 0))
    assert faces_oriented(prism.bottom_mesh, (0, -1, 0))

    surround = prism.surround_mesh
    assert surround.vertex_count == 8
    assert surround.triangle_count == 8


def test_meshes_are_centered_on_centroid():
    prism = build_prism(PrismRequest('square', SQUARE))
    lo, hi = prism.top_mesh.bounds()
    assert lo == pytest.approx([-5.0, 1.0, -5.0])
    assert hi == pytest.approx([5.0, 1.0, 5.0])

    lo, hi = prism.combined(world=True).bounds()
    assert lo == pytest.approx([0.0, 0.0, 0.0])
    assert hi == pytest.approx([10.0, 1.0, 10.0])


def test_ring_order_does_not_matter():
    a = build_prism(PrismRequest('a', SQUARE))
    b = build_prism(PrismRequest('b', list(reversed(SQUARE))))
    assert a.ring == b.ring
    assert a.area == pytest.approx(b.area)
    assert np.array_equal(a.surround.vertices, b.surround.vertices)
    assert np.array_equal(a.surround.indices, b.surround.indices)


def test_build_is_deterministic():
    ring, holes = load_sample('cross_with_hole')
    a = build_prism(PrismRequest('a', ring, holes)).combined()
    b = build_prism(PrismRequest('b', ring, holes)).combined()
    assert np.array_equal(a.vertices, b.vertices)
    assert np.array_equal(a.indices, b.indices)


def test_combined_counts():
    mesh = build_prism(PrismRequest('square', SQUARE)).combined()
    assert mesh.vertex_count == 4 + 8 + 4
    assert mesh.triangle_count == 2 + 8 + 2


@pytest.mark.parametrize('name', ['triangle', 'square', 'cross', 'gotland'])
def test_welded_prism_is_watertight(name):
    prism = build_prism(sample_request(name))
    solid = prism.combined().welded()
    assert vertices_welded(solid)
    result = mesh_watertight(solid)
    assert result.ok, result.warnings
    assert solid.vertex_count == 2 * len(prism.ring)


@pytest.mark.parametrize('name', ['triangle', 'square', 'cross', 'gotland'])
def test_surround_size(name):
    prism = build_prism(sample_request(name))
    n = len(prism.ring)
    assert prism.surround.vertex_count == 2 * n
    assert prism.surround.triangle_count == 2 * n


def test_triangulated_area_matches_polygon_area():
    for name in ('triangle', 'square', 'cross', 'gotland'):
        prism = build_prism(sample_request(name))
        assert prism.top_mesh.area() == pytest.approx(prism.area, rel=1e-9)


def test_surround_indices_for_triangle():
    wall = build_surround([(0, 0), (0, 1), (1, 0)], 0.0, 1.0)
    assert wall.vertex_count == 6
    assert wall.indices.tolist() == [0, 1, 3, 1, 4, 3,
                                     1, 2, 4, 2, 5, 4,
                                     2, 0, 5, 0, 3, 5]
    assert wall.vertices[:3, 1].tolist() == [0.0, 0.0, 0.0]
    assert wall.vertices[3:, 1].tolist() == [1.0, 1.0, 1.0]


def test_surround_needs_three_points():
    with pytest.raises(InvalidRingError):
        build_surround([(0, 0), (1, 0)], 0.0, 1.0)


def test_flat_polygon():
    prism = build_prism(PrismRequest('flat', SQUARE, height=5.0, is_3d=False))
    assert not prism.is_3d
    assert prism.top is None and prism.surround is None
    assert len(prism.meshes()) == 1
    assert faces_oriented(prism.bottom_mesh, (0, 1, 0))
    # height only applies to prisms
    assert np.all(prism.bottom_mesh.vertices[:, 1] == 0.0)
    assert prism.surface_elevation == 0.0


def test_flat_polygon_from_config():
    prism = build_prism(PrismRequest('flat', SQUARE), PrismConfig(is_3d=False))
    assert not prism.is_3d
    forced = build_prism(PrismRequest('solid', SQUARE, is_3d=True), PrismConfig(is_3d=False))
    assert forced.is_3d


def test_prism_without_bottom():
    prism = build_prism(PrismRequest('lid', SQUARE, use_bottom_in_3d=False))
    assert prism.bottom is None
    assert prism.bottom_mesh is None
    assert len(prism.meshes()) == 2
    assert prism.area == pytest.approx(100.0)
    assert prism.combined().triangle_count == 8 + 2


def test_height_scales_vertically():
    prism = build_prism(PrismRequest('tall', SQUARE, height=5.0))
    lo, hi = prism.combined().bounds()
    assert lo[1] == pytest.approx(0.0)
    assert hi[1] == pytest.approx(5.0)
    assert prism.surface_elevation == pytest.approx(5.0)
    assert faces_oriented(prism.top_mesh, (0, 1, 0))
    assert faces_oriented(prism.bottom_mesh, (0, -1, 0))


def test_height_about_bottom_elevation():
    cfg = PrismConfig(bottom_elevation=1.0, top_elevation=2.0)
    prism = build_prism(PrismRequest('raised', SQUARE, height=3.0), cfg)
    assert prism.bottom_mesh.vertices[:, 1].tolist() == pytest.approx([1.0] * 4)
    assert prism.top_mesh.vertices[:, 1].tolist() == pytest.approx([4.0] * 4)
    assert prism.surface_elevation == pytest.approx(4.0)
    assert prism.anchor == pytest.approx((5.0, 1.0, 5.0))


def test_update_height_keeps_triangulation():
    prism = build_prism(PrismRequest('square', SQUARE))
    taller = prism.update_height(4)
    assert prism.height == 1.0
    assert taller.height == 4.0
    assert taller.top is prism.top
    assert np.array_equal(taller.top_mesh.indices, prism.top_mesh.indices)
    assert taller.top_mesh.bounds()[1][1] == pytest.approx(4.0)
    assert taller.outline[:, 1].tolist() == [4.0] * 4


def test_update_color():
    prism = build_prism(PrismRequest('square', SQUARE))
    assert prism.color == Color(128, 128, 128, 255)
    red = prism.update_color('#ff000080')
    assert red.color == Color(255, 0, 0, 128)
    assert prism.color == Color(128, 128, 128, 255)
    assert red.top is prism.top


@pytest.mark.parametrize('value, expected', [
    ('grey', Color(128, 128, 128)),
    ('Yellow', Color(255, 235, 4)),
    ('#102030', Color(16, 32, 48)),
    ((1, 2, 3), Color(1, 2, 3)),
    ([1, 2, 3, 4], Color(1, 2, 3, 4)),
    (Color(9, 9, 9), Color(9, 9, 9)),
])
def test_color_parse(value, expected):
    assert Color.parse(value) == expected


@pytest.mark.parametrize('value', ['chartreuse-ish', '#12345', '#gggggg', (1, 2), (0, 0, 300)])
def test_bad_color(value):
    with pytest.raises(ValueError):
        Color.parse(value)


def test_color_hex():
    assert Color(255, 0, 16).hex() == '#ff0010ff'


def test_outline_loop():
    prism = build_prism(PrismRequest('square', SQUARE, height=2.0))
    outline = prism.outline
    assert outline.shape == (4, 3)
    assert outline[:, 1].tolist() == [2.0] * 4


def test_degenerate_ring_is_reported(caplog):
    with caplog.at_level(logging.WARNING, logger='polyextrude.prism'):
        with pytest.raises(DegeneratePolygonError) as info:
            build_prism(PrismRequest('line', [(0, 0), (1, 1), (2, 2)]))
    assert info.value.name == 'line'
    assert str(info.value).startswith('[line]')
    assert "'line' not built (DegeneratePolygon)" in caplog.text


@pytest.mark.parametrize('ring', [[], [(0, 0)], [(0, 0), (1, 1)], [(0, 0), (1, 1), (0, 0)]])
def test_too_few_points(ring):
    with pytest.raises(InvalidRingError) as info:
        build_prism(PrismRequest('short', ring))
    assert info.value.name == 'short'


def test_bad_color_in_request():
    with pytest.raises(ValueError):
        build_prism(PrismRequest('square', SQUARE, color='nope'))


def test_holes_cut_both_caps(caplog):
    ring, holes = load_sample('cross_with_hole')
    with caplog.at_level(logging.WARNING, logger='polyextrude.prism'):
        prism = build_prism(PrismRequest('holey', ring, holes))
    assert 'no side walls' in caplog.text
    assert prism.area == pytest.approx(500.0)
    assert prism.top_mesh.area() == pytest.approx(464.0)
    assert prism.bottom_mesh.area() == pytest.approx(464.0)
    assert prism.surround.vertex_count == 24
    assert len(prism.holes) == 1
    # the hole is expressed relative to the centroid as well
    assert min(p[0] for p in prism.holes[0]) == pytest.approx(-3.0)


def test_hole_outside_ring():
    with pytest.raises(InvalidRingError):
        build_prism(PrismRequest('bad', SQUARE, holes=[[(20, 20), (22, 20), (22, 22)]]))


def test_state_transitions_are_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger='polyextrude.prism'):
        build_prism(PrismRequest('square', SQUARE))
    text = caplog.text
    for before, after in [('uninitialized', 'ring_normalized'),
                          ('ring_normalized', 'area_centroid_computed'),
                          ('area_centroid_computed', 'bottom_triangulated'),
                          ('bottom_triangulated', 'top_triangulated'),
                          ('top_triangulated', 'surround_built'),
                          ('surround_built', 'done')]:
        assert f'{before} -> {after}' in text


def test_failed_state_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger='polyextrude.prism'):
        with pytest.raises(DegeneratePolygonError):
            build_prism(PrismRequest('line', [(0, 0), (1, 1), (2, 2)]))
    assert 'ring_normalized -> failed' in caplog.text


def test_assemble_prism_reports_states():
    seen = []
    ring = ((0.0, 10.0), (10.0, 10.0), (10.0, 0.0), (0.0, 0.0))
    bottom, top, surround = assemble_prism(ring, on_state=seen.append)
    assert seen == [BuildState.BOTTOM_TRIANGULATED, BuildState.TOP_TRIANGULATED,
                    BuildState.SURROUND_BUILT]
    assert faces_oriented(bottom, (0, -1, 0))
    assert faces_oriented(top, (0, 1, 0))

    seen.clear()
    flat = assemble_prism(ring, is_3d=False, on_state=seen.append)
    assert flat[1:] == (None, None)
    assert seen == [BuildState.BOTTOM_TRIANGULATED]


@pytest.mark.slow
def test_many_sided_polygon():
    n = 720
    ring = [(100.0 * np.cos(2 * np.pi * k / n), 100.0 * np.sin(2 * np.pi * k / n))
            for k in range(n)]
    prism = build_prism(PrismRequest('disc', ring, height=10.0))
    expected = 0.5 * n * 100.0 ** 2 * np.sin(2 * np.pi / n)
    assert prism.area == pytest.approx(expected)
    assert prism.top_mesh.triangle_count == n - 2
    assert prism.centroid == pytest.approx((0.0, 0.0), abs=1e-9)
    assert mesh_watertight(prism.combined().welded())


def test_close_vertices_are_kept():
    ring = [(0, 0), (1e-3, 0), (1e-3 + 4e-6, 1e-3), (1e-3, 1e-3 + 3e-6), (0, 1e-3)]
    prism = build_prism(PrismRequest('geo', ring))
    assert len(prism.ring) == 5
    assert prism.area == pytest.approx(1.003506e-06, rel=1e-9)
    assert prism.surround.vertex_count == 10
    assert prism.top_mesh.area() == pytest.approx(prism.area, rel=1e-9)


def test_tiny_square():
    s = 1e-6
    prism = build_prism(PrismRequest('tiny', [(0, 0), (s, 0), (s, s), (0, s)]))
    assert len(prism.ring) == 4
    assert prism.area == pytest.approx(s * s, rel=1e-9)
    assert prism.centroid == pytest.approx((s / 2, s / 2), rel=1e-9)
    assert prism.surround.vertex_count == 8
    assert mesh_watertight(prism.combined().welded(1e-12))


def test_points_within_weld_epsilon_are_merged():
    ring = [(0, 0), (10, 0), (10, 1e-12), (10, 10), (0, 10)]
    prism = build_prism(PrismRequest('square', ring))
    assert len(prism.ring) == 4
    assert prism.area == pytest.approx(100.0)
