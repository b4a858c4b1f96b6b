"""
fields.py
Scalar fields sampled by the surface passes: multi-octave Perlin noise and a
cellular (Voronoi) facade.

Both are seeded explicitly, so two runs with the same seed sample identical
values. They are read-only once constructed.
"""

import logging
import time

import numpy as np
from noise import pnoise2

logger = logging.getLogger(__name__)

# Offsets are drawn well inside pnoise2's default repeat period (1024).
NOISE_OFFSET_RANGE = 256.0

# Cellular samples per distance block.
SAMPLE_CHUNK = 4096


class PerlinField:
    """
    Coherent noise provider.

    The seed picks a fixed offset into the noise plane; sampling is a pure
    function of (seed, x, y, octaves). seed=None seeds from the wall clock.
    """

    def __init__(self, seed=None):
        if seed is None:
            seed = int(time.time())
        self.seed = seed
        rng = np.random.default_rng(seed)
        self.offset = rng.uniform(0.0, NOISE_OFFSET_RANGE, 2)
        logger.debug(f"Perlin field seeded with {seed}")

    def octave_noise(self, theta, phi, octaves):
        """Noise at (theta, phi), roughly within [-1, 1]. Accepts arrays."""
        ox, oy = self.offset
        theta = np.asarray(theta, dtype=float)
        phi = np.asarray(phi, dtype=float)
        values = np.array([
            pnoise2(float(t) + ox, float(p) + oy, octaves=int(octaves))
            for t, p in zip(theta.ravel(), phi.ravel())
        ])
        if theta.ndim == 0:
            return float(values[0])
        return values.reshape(theta.shape)


def _jittered_points(width, height, num_cells, rng):
    """
    One random point per tile of a roughly square nrows × ncols grid laid
    over the width × height raster. Returns an array of shape (cells, 2).
    """
    aspect = width / height
    ncols = max(1, round(np.sqrt(num_cells * aspect)))
    nrows = max(1, round(num_cells / ncols))

    jitter_x = rng.uniform(0, 1, (nrows, ncols))
    jitter_y = rng.uniform(0, 1, (nrows, ncols))

    x = (np.arange(ncols)[None, :] + jitter_x) * (width / ncols)
    y = (np.arange(nrows)[:, None] + jitter_y) * (height / nrows)

    return np.column_stack([x.ravel(), y.ravel()])


class CellularField:
    """
    Voronoi tessellation of a width × height raster, exposed as a factor in
    [f_min, f_max].

    For a sample with distances d1 <= d2 to its two nearest cell points:
        d2 − d1 <= border : f_max                       (cell boundary)
        otherwise         : f_min + (f_max − f_min)·(d1/d2)²
    so cells are hollows at f_min and walls rise to f_max. The u axis wraps
    around, since it carries an angle.
    """

    def __init__(self, width=1000, height=1000, num_cells=400, border=15,
                 f_max=1.1, f_min=0.6, seed=400, points=None):
        if width <= 0 or height <= 0:
            raise ValueError("field resolution must be positive")
        if f_min > f_max:
            raise ValueError("f_min must not exceed f_max")
        if border < 0:
            raise ValueError("border must not be negative")

        self.width = width
        self.height = height
        self.border = border
        self.f_max = f_max
        self.f_min = f_min

        if points is None:
            if num_cells < 2:
                raise ValueError("num_cells must be at least 2")
            points = _jittered_points(width, height, num_cells, np.random.default_rng(seed))
        points = np.asarray(points, dtype=float)
        if points.ndim != 2 or points.shape[1] != 2 or len(points) < 2:
            raise ValueError("points must be an (m, 2) array with m >= 2")
        self.points = points

        logger.debug(f"Cellular field: {len(points)} cells on {width}x{height}")

    def _nearest_two(self, px, py):
        """Distances to the nearest and second-nearest cell point."""
        dx = np.abs(px[:, None] - self.points[None, :, 0])
        dx = np.minimum(dx, self.width - dx)
        dy = np.abs(py[:, None] - self.points[None, :, 1])
        dists = np.sqrt(dx ** 2 + dy ** 2)

        part = np.partition(dists, 1, axis=1)
        return part[:, 0], part[:, 1]

    def factor_at(self, u, v):
        """
        Factor at normalised coordinates (u, v) in [0, 1]². Accepts arrays.

        Samples are processed SAMPLE_CHUNK at a time, so memory stays at
        SAMPLE_CHUNK × cells distances however many samples are passed.
        """
        u = np.asarray(u, dtype=float)
        v = np.asarray(v, dtype=float)
        px = np.atleast_1d(u).ravel() * self.width
        py = np.atleast_1d(v).ravel() * self.height

        d1 = np.empty(len(px))
        d2 = np.empty(len(px))
        for start in range(0, len(px), SAMPLE_CHUNK):
            stop = start + SAMPLE_CHUNK
            d1[start:stop], d2[start:stop] = self._nearest_two(px[start:stop], py[start:stop])

        ratio = d1 / np.maximum(d2, 1e-9)
        factor = self.f_min + (self.f_max - self.f_min) * ratio ** 2
        factor[d2 - d1 <= self.border] = self.f_max
        factor = np.clip(factor, self.f_min, self.f_max)

        if u.ndim == 0:
            return float(factor[0])
        return factor.reshape(u.shape)
