"""
End-to-end tests for the generation pipeline and the trimesh hand-off.
"""

import numpy as np
import pytest
import trimesh

from capGenerators.cap_generator import cap_faces, generate, to_trimesh
from capGenerators.deform import bend_cap, widen_cap
from capGenerators.lattice import build_base_ellipsoid
from capGenerators.shape import (
    CAP_COLOR,
    HIGHLIGHT_COLOR,
    DeformationMode,
    ShapeParameters,
)
from capGenerators.stem import BezierStem


def make_params(n=16, k=12, **kwargs) -> ShapeParameters:
    defaults = dict(
        height=10.0,
        stem_height_part=0.3,
        junction_radius=1.0,
        cap_max_radius=3.0,
        vertical_divisions=n,
        horizontal_divisions=k,
        noise_octaves=6,
    )
    defaults.update(kwargs)
    return ShapeParameters(**defaults)


class TestPipelineInvariants:
    """Structural invariants of a generated cap."""

    @pytest.mark.parametrize("n,k", [(3, 1), (8, 4), (16, 12)])
    def test_vertex_count_and_layers(self, n: int, k: int) -> None:
        lattice = generate(make_params(n=n, k=k))
        assert len(lattice) == n * k + 1
        counts = np.bincount(lattice.layers)
        assert list(counts) == [n] * k + [1]

    @pytest.mark.parametrize("mode", list(DeformationMode))
    def test_base_ring_only_bent(self, mode: DeformationMode) -> None:
        """Ring 0 ends where building and bending alone would put it."""
        params = make_params(deformation=mode)
        stem = BezierStem.leaning(0.15)

        reference = build_base_ellipsoid(params)
        bend_cap(reference, params, stem)
        lattice = generate(params, stem)

        ring0 = lattice.ring(0)
        np.testing.assert_allclose(lattice.positions[ring0], reference.positions[ring0])

    @pytest.mark.parametrize("mode", list(DeformationMode))
    def test_apex_on_stem_axis(self, mode: DeformationMode) -> None:
        """With an upright stem the apex only moves up by the stem height."""
        lattice = generate(make_params(deformation=mode))
        x, y, z = lattice.positions[lattice.apex]
        assert x == 0.0 and y == 0.0
        assert z == pytest.approx(10.0)

    def test_normals_are_unit(self) -> None:
        lattice = generate(make_params(), BezierStem.leaning(0.2))
        np.testing.assert_allclose(np.linalg.norm(lattice.normals, axis=1), 1.0)

    def test_default_generation(self) -> None:
        lattice = generate()
        assert len(lattice) == 64 * 64 + 1
        assert np.all(np.isfinite(lattice.positions))


class TestDeformationModes:
    """Noise, facade and no-deformation runs."""

    def test_seeded_runs_are_identical(self) -> None:
        params = make_params(noise_seed=2024)
        first = generate(params)
        second = generate(params)
        np.testing.assert_array_equal(first.positions, second.positions)

    def test_seed_changes_surface(self) -> None:
        first = generate(make_params(noise_seed=1))
        second = generate(make_params(noise_seed=2))
        assert not np.allclose(first.positions, second.positions)

    def test_none_mode_is_widened_base(self) -> None:
        params = make_params(deformation=DeformationMode.NONE)
        stem = BezierStem.leaning(0.1)

        reference = build_base_ellipsoid(params)
        widen_cap(reference, params)
        bend_cap(reference, params, stem)

        np.testing.assert_allclose(generate(params, stem).positions, reference.positions)

    def test_noise_keeps_base_colour(self) -> None:
        lattice = generate(make_params())
        np.testing.assert_allclose(lattice.colors, np.tile(CAP_COLOR, (len(lattice), 1)))

    def test_facade_colours(self) -> None:
        lattice = generate(make_params(deformation=DeformationMode.FACADE))
        colors = lattice.colors
        is_base = np.all(np.isclose(colors, CAP_COLOR), axis=1)
        is_highlight = np.all(np.isclose(colors, HIGHLIGHT_COLOR), axis=1)
        assert np.all(is_base | is_highlight)
        assert np.all(is_base[lattice.ring(0)])

    def test_explicit_noise_field_used(self) -> None:
        class Flat:
            def octave_noise(self, theta, phi, octaves):
                return np.zeros(np.shape(theta))

        params = make_params()
        flat = generate(params, noise_field=Flat())
        none = generate(make_params(deformation=DeformationMode.NONE))
        np.testing.assert_allclose(flat.positions, none.positions)


class TestTrimesh:
    """Hand-off to a renderer."""

    def test_face_count(self) -> None:
        lattice = generate(make_params(n=8, k=4))
        faces = cap_faces(lattice)
        assert faces.shape == (2 * 8 * 3 + 8, 3)
        assert faces.min() == 0
        assert faces.max() == lattice.apex

    def test_single_ring_is_a_fan(self) -> None:
        lattice = generate(make_params(n=5, k=1))
        faces = cap_faces(lattice)
        assert faces.shape == (5, 3)
        assert np.all(faces[:, 0] == lattice.apex)

    def test_mesh_keeps_vertex_order(self) -> None:
        lattice = generate(make_params())
        mesh = to_trimesh(lattice)
        assert isinstance(mesh, trimesh.Trimesh)
        np.testing.assert_array_equal(mesh.vertices, lattice.positions)
        assert len(mesh.faces) == 2 * 16 * 11 + 16

    def test_faces_point_outward(self) -> None:
        """Undeformed cap: every face normal leans away from the axis."""
        params = make_params(deformation=DeformationMode.NONE)
        mesh = to_trimesh(generate(params))
        radial = mesh.triangles_center[:, :2]
        outward = np.sum(mesh.face_normals[:, :2] * radial, axis=1)
        assert np.all(outward > 0)

    def test_vertex_colours(self) -> None:
        mesh = to_trimesh(generate(make_params()))
        expected = np.round(np.array(CAP_COLOR) * 255).astype(np.uint8)
        np.testing.assert_array_equal(mesh.visual.vertex_colors[:, :3], np.tile(expected, (len(mesh.vertices), 1)))
