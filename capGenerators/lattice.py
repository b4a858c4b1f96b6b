"""
lattice.py
Ring-structured vertex lattice of a morel cap and the base shape builder.

Vertex layout (n = vertices per ring, k = ring count):
    ring r, 0 <= r < k : indices [r·n, r·n + n), angle 2π·j/n for column j
    apex               : index n·k, layer k

Neighbours are stored as integer indices into the same arrays (−1 = none):
    top    : same column one ring up (ring k−1 points at the apex)
    bottom : same column one ring down (ring 0 has none)
    left   : previous column, wrapping within the ring
    right  : next column, wrapping within the ring
The apex has no neighbours of its own.
"""

import logging
from typing import NamedTuple, Optional

import numpy as np

from capGenerators.shape import CAP_COLOR

logger = logging.getLogger(__name__)

NO_NEIGHBOR = -1
TOP, BOTTOM, LEFT, RIGHT = range(4)


class MeshVertex(NamedTuple):
    """Read-only snapshot of a single lattice vertex."""

    id: int
    position: tuple
    color: tuple
    normal: tuple
    layer: int
    base_angle: float
    base_height: float
    top: Optional[int]
    bottom: Optional[int]
    left: Optional[int]
    right: Optional[int]


class CapLattice:
    """
    Fixed-size vertex store for one generation run.

    Per-vertex data lives in parallel numpy arrays so each pass can work on
    whole rings at once. positions, colors and normals are mutated by the
    passes; ids, layers, base_angles and base_heights are frozen once the
    builder has filled them.
    """

    def __init__(self, n, k):
        self.n = n
        self.k = k
        count = n * k + 1
        self.ids = np.arange(count)
        self.positions = np.zeros((count, 3))
        self.colors = np.tile(np.asarray(CAP_COLOR, dtype=float), (count, 1))
        self.normals = np.zeros((count, 3))
        self.layers = np.zeros(count, dtype=np.int64)
        self.base_angles = np.zeros(count)
        self.base_heights = np.zeros(count)
        self.neighbors = np.full((count, 4), NO_NEIGHBOR, dtype=np.int64)

    def __len__(self):
        return len(self.ids)

    @property
    def apex(self) -> int:
        return self.n * self.k

    def ring(self, r):
        """Index array for ring r (0 = base, k = apex)."""
        if r == self.k:
            return np.array([self.apex])
        if not 0 <= r < self.k:
            raise IndexError(f"ring {r} out of range for {self.k} rings")
        return np.arange(r * self.n, (r + 1) * self.n)

    def deformable(self):
        """Boolean mask of every vertex outside the base ring."""
        return self.layers != 0

    def vertex(self, index) -> MeshVertex:
        top, bottom, left, right = (
            None if i == NO_NEIGHBOR else int(i) for i in self.neighbors[index]
        )
        return MeshVertex(
            id=int(self.ids[index]),
            position=tuple(self.positions[index]),
            color=tuple(self.colors[index]),
            normal=tuple(self.normals[index]),
            layer=int(self.layers[index]),
            base_angle=float(self.base_angles[index]),
            base_height=float(self.base_heights[index]),
            top=top,
            bottom=bottom,
            left=left,
            right=right,
        )

    def __iter__(self):
        for index in range(len(self)):
            yield self.vertex(index)


def ring_radius(i, k, cap_height, junction_radius, cap_max_radius):
    """
    Radius of ring i on the base ellipsoid.

    With h = cap_height, r = junction_radius, b = cap_max_radius − r and
    a = (i/k)·h:
        a <= 0 : r
        else   : sqrt(b²·(1 − (a − h/2)²/(h/2)²)) + r − (r/h)·a
    An elliptic bulge of half-width b sitting on a radius that tapers
    linearly from r at the base to 0 at the apex.
    """
    h = cap_height
    r = junction_radius
    b = cap_max_radius - junction_radius
    a = (i / k) * h

    if a <= 0:
        return r
    return np.sqrt(b ** 2 * (1.0 - (a - h / 2.0) ** 2 / (h / 2.0) ** 2)) + r - (r / h) * a


def link_neighbors(lattice):
    """Fill the top/bottom/left/right indices of every ring vertex."""
    n, k = lattice.n, lattice.k
    idx = np.arange(n * k)
    ring = idx // n
    column = idx % n

    # The last ring always points up at the apex, including when k == 1.
    lattice.neighbors[idx, TOP] = np.where(ring >= k - 1, lattice.apex, idx + n)
    lattice.neighbors[idx, BOTTOM] = np.where(ring > 0, idx - n, NO_NEIGHBOR)
    lattice.neighbors[idx, LEFT] = ring * n + (column - 1) % n
    lattice.neighbors[idx, RIGHT] = ring * n + (column + 1) % n
    lattice.neighbors[lattice.apex] = NO_NEIGHBOR


def compute_normals(lattice):
    """
    Estimate a unit surface normal per vertex from its four neighbours.

        normal = (right − left) × (top − bottom)

    A missing bottom neighbour (base ring) is replaced by the vertex itself.
    The apex takes the mean direction of the ring below it.
    """
    pos = lattice.positions
    idx = np.arange(lattice.n * lattice.k)
    nb = lattice.neighbors[idx]

    bottom = np.where(nb[:, BOTTOM] == NO_NEIGHBOR, idx, nb[:, BOTTOM])
    along_ring = pos[nb[:, RIGHT]] - pos[nb[:, LEFT]]
    up_column = pos[nb[:, TOP]] - pos[bottom]
    normals = np.cross(along_ring, up_column)

    apex_normal = normals[lattice.ring(lattice.k - 1)].sum(axis=0)
    normals = np.vstack([normals, apex_normal])

    lengths = np.linalg.norm(normals, axis=1)
    degenerate = lengths < 1e-12
    normals[degenerate] = (0.0, 0.0, 1.0)
    lengths[degenerate] = 1.0
    lattice.normals = normals / lengths[:, None]


def build_base_ellipsoid(params):
    """
    Build the undeformed cap lattice for the given ShapeParameters.

    Ring i sits at height p·i (p = h/k) with radius ring_radius(i); its n
    vertices are spread at angles 2π·j/n. The apex sits on the axis at
    height h. Each vertex keeps its build-time angle and height as
    base_angle / base_height for the spherical passes.
    """
    n = params.vertical_divisions
    k = params.horizontal_divisions
    h = params.cap_height
    p = h / k
    angles = np.linspace(0, 2 * np.pi, n, endpoint=False)

    lattice = CapLattice(n, k)

    for i in range(k):
        radius = ring_radius(i, k, h, params.junction_radius, params.cap_max_radius)
        idx = lattice.ring(i)
        z = p * i
        lattice.positions[idx] = np.column_stack(
            [radius * np.cos(angles), radius * np.sin(angles), np.full(n, z)]
        )
        lattice.layers[idx] = i
        lattice.base_angles[idx] = angles
        lattice.base_heights[idx] = z

    apex = lattice.apex
    lattice.positions[apex] = (0.0, 0.0, h)
    lattice.layers[apex] = k
    lattice.base_angles[apex] = 0.0
    lattice.base_heights[apex] = h

    link_neighbors(lattice)
    compute_normals(lattice)

    logger.debug(f"Built base ellipsoid: {len(lattice)} vertices, {k} rings of {n}")
    return lattice
