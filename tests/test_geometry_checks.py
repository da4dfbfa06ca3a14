from polyextrude.geometry_checks import (faces_oriented, faces_point_outward,
                                         indices_in_range, mesh_watertight,
                                         vertices_welded)
from polyextrude.mesh import MeshBuffer
from polyextrude.prism import build_prism
from polyextrude.samples import sample_request


def test_indices_in_range():
    assert indices_in_range(MeshBuffer([(0, 0, 0), (1, 0, 0), (0, 0, 1)], [0, 1, 2]))
    result = indices_in_range(MeshBuffer())
    assert result.ok
    assert result.warnings == ['mesh has no triangles']


def test_combined_prism_is_not_welded():
    prism = build_prism(sample_request('square'))
    combined = prism.combined()
    assert not vertices_welded(combined)
    assert vertices_welded(combined.welded())


def test_concatenated_parts_leave_seams():
    combined = build_prism(sample_request('square')).combined()
    result = mesh_watertight(combined)
    assert not result.ok
    assert any('boundary edges' in w for w in result.warnings)


def test_single_face_is_open():
    prism = build_prism(sample_request('triangle', is_3d=False))
    assert not mesh_watertight(prism.bottom_mesh)


def test_faces_oriented_reports_bad_faces():
    prism = build_prism(sample_request('square'))
    assert faces_oriented(prism.top_mesh, (0, 1, 0))
    result = faces_oriented(prism.bottom_mesh, (0, 1, 0))
    assert not result.ok
    assert 'faces pointing away' in result.warnings[0]


def test_surround_faces_point_outward():
    for name in ('triangle', 'square'):
        prism = build_prism(sample_request(name))
        assert faces_point_outward(prism.surround_mesh, (0.0, 0.5, 0.0))
        assert not faces_point_outward(prism.surround_mesh.flipped(), (0.0, 0.5, 0.0))


def test_opposite_duplicate_faces_are_flagged():
    tri = MeshBuffer([(0, 0, 0), (1, 0, 0), (0, 0, 1)], [0, 1, 2, 0, 1, 2, 0, 2, 1])
    result = mesh_watertight(tri)
    assert not result.ok
    assert any('multiplicity' in w for w in result.warnings)
    assert any('same direction' in w for w in result.warnings)
