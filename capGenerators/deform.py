"""
deform.py
In-place passes that turn the base ellipsoid into a morel cap.

    widen_cap     realistic bulge (piecewise polynomial radial scale)
    apply_noise   multi-octave Perlin roughness on a virtual unit sphere
    apply_facade  cellular facets on the same virtual sphere
    bend_cap      lay the cap along the stem curve (must run last)

Only bend_cap moves base-ring vertices, and none of the passes changes a
vertex's height before the bend.
"""

import logging

import numpy as np

from capGenerators.shape import HIGHLIGHT_COLOR

logger = logging.getLogger(__name__)

AXIS_EPSILON      = 0.01   # |sX| or |sY| at or below this keeps the axis factor at 1
HIGHLIGHT_EPSILON = 0.01   # facade factors this close to f_max mark a cell boundary


# ── Widening ────────────────────────────────────────────────────────────────

def widening_factor(x, cap_height, profile):
    """
    Radial scale added at height x of a cap of height h.

    With c = max_radius_factor, d / e the base and tip height factors,
    b1 = h·d, b2 = h·e, a1 = c/b1^pow and a2 = −c/(h − b2)^pow:

        x < d·h  : a1·(x − b1)^pow + c
        x > e·h  : −a2·(x − b2)^pow + c
        otherwise: c

    Both ramps meet the plateau at exactly c. Accepts scalars or arrays.
    """
    h = cap_height
    c = profile.max_radius_factor
    pw = profile.power
    d = profile.base_max_height_factor
    e = profile.tip_max_height_factor

    b1 = h * d
    b2 = h * e
    a1 = c / b1 ** pw
    a2 = -c / (h - b2) ** pw

    x = np.asarray(x, dtype=float)
    factor = np.where(
        x < d * h,
        a1 * (x - b1) ** pw + c,
        np.where(x > e * h, -a2 * (x - b2) ** pw + c, c),
    )
    if factor.ndim == 0:
        return float(factor)
    return factor


def widen_cap(lattice, params):
    """Scale x and y of every non-base vertex by 1 + widening_factor(z)."""
    mask = lattice.deformable()
    z = lattice.positions[mask, 2]
    scale = 1.0 + widening_factor(z, params.cap_height, params.widening)
    lattice.positions[mask, 0] *= scale
    lattice.positions[mask, 1] *= scale


# ── Spherical re-parameterisation ───────────────────────────────────────────

def sphere_coordinates(base_angles, base_heights, cap_height):
    """
    Map frozen (angle, height) keys onto the unit sphere.

        sZ = 2·(height − h/2)/h,  sR = sqrt(1 − sZ²)
        sX = sR·cos(angle),       sY = sR·sin(angle)
        theta = atan2(sY, sX),    phi = acos(sZ)

    Returns sX, sY, sZ, theta, phi as arrays.
    """
    h = cap_height
    s_z = np.clip(2.0 * (np.asarray(base_heights, dtype=float) - h / 2.0) / h, -1.0, 1.0)
    s_r = np.sqrt(np.maximum(0.0, 1.0 - s_z ** 2))
    s_x = s_r * np.cos(base_angles)
    s_y = s_r * np.sin(base_angles)
    theta = np.arctan2(s_y, s_x)
    phi = np.arccos(s_z)
    return s_x, s_y, s_z, theta, phi


def axis_factors(radius, theta, phi, s_x, s_y, s_z):
    """
    Per-axis ratio between the perturbed sphere point at `radius` and the
    unit one. An axis whose unit component is within AXIS_EPSILON of zero
    keeps a factor of 1.
    """
    x = radius * np.cos(theta) * np.sin(phi)
    y = radius * np.sin(theta) * np.sin(phi)
    z = radius * np.cos(phi)

    with np.errstate(divide="ignore", invalid="ignore"):
        factor_x = np.where(np.abs(s_x) <= AXIS_EPSILON, 1.0, x / s_x)
        factor_y = np.where(np.abs(s_y) <= AXIS_EPSILON, 1.0, y / s_y)
        factor_z = np.where(np.abs(s_z) <= AXIS_EPSILON, 1.0, z / s_z)
    return factor_x, factor_y, factor_z


def _sphere_keys(lattice, params):
    mask = lattice.deformable()
    coords = sphere_coordinates(
        lattice.base_angles[mask], lattice.base_heights[mask], params.cap_height
    )
    return mask, coords


# ── Surface passes ──────────────────────────────────────────────────────────

def apply_noise(lattice, params, field):
    """
    Roughen the horizontal silhouette with Perlin noise.

    Each non-base vertex is sampled at its sphere angles, the unit radius
    becomes 1 + strength·noise, and the resulting x / y factors scale the
    vertex's current position. Heights are left alone.
    """
    mask, (s_x, s_y, s_z, theta, phi) = _sphere_keys(lattice, params)

    noise = field.octave_noise(theta, phi, params.noise_octaves)
    radius = 1.0 + params.noise_strength * noise

    factor_x, factor_y, _ = axis_factors(radius, theta, phi, s_x, s_y, s_z)
    lattice.positions[mask, 0] *= factor_x
    lattice.positions[mask, 1] *= factor_y

    logger.debug(f"Perlin noise applied to {int(mask.sum())} vertices "
                 f"({params.noise_octaves} octaves)")


def apply_facade(lattice, params, field):
    """
    Carve cellular facets into the cap.

    The sphere angles are normalised to u = (theta + π)/2π and
    v = (phi + π)/2π, the field factor becomes the radius directly, and
    vertices sitting on a cell boundary (factor ≈ f_max) are recoloured.
    """
    mask, (s_x, s_y, s_z, theta, phi) = _sphere_keys(lattice, params)

    u = (theta + np.pi) / (2 * np.pi)
    v = (phi + np.pi) / (2 * np.pi)
    radius = field.factor_at(u, v)

    boundary = np.abs(radius - field.f_max) <= HIGHLIGHT_EPSILON
    lattice.colors[np.flatnonzero(mask)[boundary]] = HIGHLIGHT_COLOR

    factor_x, factor_y, _ = axis_factors(radius, theta, phi, s_x, s_y, s_z)
    lattice.positions[mask, 0] *= factor_x
    lattice.positions[mask, 1] *= factor_y

    logger.debug(f"Facade applied: {int(boundary.sum())} boundary vertices highlighted")


# ── Bend ────────────────────────────────────────────────────────────────────

def bend_cap(lattice, params, stem):
    """
    Hand every vertex to the stem curve at t = stem_height_part + z/height,
    with the stem top at height·stem_height_part.
    """
    t = params.stem_height_part + lattice.positions[:, 2] / params.height
    lattice.positions = stem.apply(lattice.positions, t, params.stem_height)
