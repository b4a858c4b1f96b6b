"""
cap_generator.py
Generate the surface mesh of a morel cap.

    generate(params, stem)  →  CapLattice
    to_trimesh(lattice)     →  trimesh.Trimesh for a renderer

The pipeline always runs in this order, each stage in place:
    1. Base ellipsoid  ring lattice + apex, neighbours, normals
    2. Widening        realistic bulge
    3. Deformation     Perlin noise, cellular facade, or nothing
    4. Bend            cap laid along the stem curve
"""

import logging

import numpy as np
import trimesh

from capGenerators.deform import apply_facade, apply_noise, bend_cap, widen_cap
from capGenerators.fields import CellularField, PerlinField
from capGenerators.lattice import build_base_ellipsoid, compute_normals
from capGenerators.shape import DeformationMode, ShapeParameters
from capGenerators.stem import BezierStem

logger = logging.getLogger(__name__)

# Cellular field resolution and look, as tuned for the reference morel.
FACADE_RESOLUTION = 1000
FACADE_BORDER     = 15
FACADE_F_MAX      = 1.1
FACADE_F_MIN      = 0.6


def facade_field_for(params):
    """Cellular field sized by the parameters' facade density and seed."""
    return CellularField(
        width=FACADE_RESOLUTION,
        height=FACADE_RESOLUTION,
        num_cells=params.facade_cells,
        border=FACADE_BORDER,
        f_max=FACADE_F_MAX,
        f_min=FACADE_F_MIN,
        seed=params.facade_seed,
    )


def generate(params=None, stem=None, noise_field=None, facade_field=None):
    """
    Run the full pipeline and return the finished lattice.

    params defaults to ShapeParameters(), stem to an upright BezierStem.
    noise_field / facade_field override the providers built from the
    parameters' seeds. The stem is only used for the final bend and is not
    kept by the returned lattice.
    """
    if params is None:
        params = ShapeParameters()
    if stem is None:
        stem = BezierStem.straight()

    lattice = build_base_ellipsoid(params)
    widen_cap(lattice, params)

    mode = params.deformation
    logger.debug(f"Deformation mode: {mode.value}")
    if mode is DeformationMode.NOISE:
        if noise_field is None:
            noise_field = PerlinField(params.noise_seed)
        apply_noise(lattice, params, noise_field)
    elif mode is DeformationMode.FACADE:
        if facade_field is None:
            facade_field = facade_field_for(params)
        apply_facade(lattice, params, facade_field)

    bend_cap(lattice, params, stem)
    compute_normals(lattice)

    logger.debug(f"Generated cap with {len(lattice)} vertices")
    return lattice


# ── Presentation hand-off ───────────────────────────────────────────────────

def cap_faces(lattice):
    """
    Triangles covering the cap: two per quad between consecutive rings, then
    a fan from ring k−1 to the apex. The base ring is left open where it
    meets the stem. Winding faces outward.
    """
    n = lattice.n

    def wall_quads(ring_a, ring_b):
        tris = []
        for i in range(n):
            j = (i + 1) % n
            a0, a1 = ring_a[i], ring_a[j]
            b0, b1 = ring_b[i], ring_b[j]
            tris.append([a0, b1, b0])
            tris.append([a0, a1, b1])
        return tris

    def cap_fan(center_idx, ring_idx):
        return [[center_idx, ring_idx[i], ring_idx[(i + 1) % n]] for i in range(n)]

    faces = []
    for r in range(lattice.k - 1):
        faces += wall_quads(lattice.ring(r), lattice.ring(r + 1))
    faces += cap_fan(lattice.apex, lattice.ring(lattice.k - 1))

    return np.array(faces, dtype=np.int64)


def to_trimesh(lattice):
    """Vertex buffer for a renderer: positions, faces, colours and normals."""
    colors = np.round(np.clip(lattice.colors, 0.0, 1.0) * 255).astype(np.uint8)
    return trimesh.Trimesh(
        vertices=lattice.positions.copy(),
        faces=cap_faces(lattice),
        vertex_normals=lattice.normals.copy(),
        vertex_colors=colors,
        process=False,
    )
