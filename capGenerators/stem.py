"""
stem.py
Cubic Bezier curve modelling the morel stem, used to bend the cap.

Control points are given in units of the total mushroom height: z runs from
0 at the foot of the stem to 1 at the apex of the cap.
"""

import numpy as np

UP = np.array([0.0, 0.0, 1.0])


def _rotations_from_up(directions):
    """
    Rotation matrices (m, 3, 3) turning +z onto each unit direction.

    Rodrigues' formula with v = z × d, c = z · d:
        R = I + [v]× + [v]×² / (1 + c)
    A direction pointing straight down gets a half turn about x.
    """
    m = len(directions)
    v = np.cross(np.broadcast_to(UP, directions.shape), directions)
    c = directions[:, 2]

    skew = np.zeros((m, 3, 3))
    skew[:, 0, 1] = -v[:, 2]
    skew[:, 0, 2] = v[:, 1]
    skew[:, 1, 0] = v[:, 2]
    skew[:, 1, 2] = -v[:, 0]
    skew[:, 2, 0] = -v[:, 1]
    skew[:, 2, 1] = v[:, 0]

    flipped = c <= -1.0 + 1e-9
    denom = np.where(flipped, 1.0, 1.0 + c)
    rotations = np.eye(3) + skew + (skew @ skew) / denom[:, None, None]
    rotations[flipped] = np.diag([1.0, -1.0, -1.0])
    return rotations


class BezierStem:
    """Stem curve evaluator. Stateless once its control points are fixed."""

    def __init__(self, control_points):
        points = np.asarray(control_points, dtype=float)
        if points.shape != (4, 3):
            raise ValueError("a cubic stem needs four 3D control points")
        self.control_points = points

    @classmethod
    def straight(cls):
        """Upright stem; bending with it only lifts the cap onto the stem."""
        return cls([(0, 0, 0), (0, 0, 1 / 3), (0, 0, 2 / 3), (0, 0, 1)])

    @classmethod
    def leaning(cls, lean):
        """Stem whose top is displaced sideways by lean along x, arriving vertical."""
        return cls([(0, 0, 0), (0, 0, 1 / 3), (lean, 0, 2 / 3), (lean, 0, 1)])

    def point(self, t):
        t = np.atleast_1d(np.asarray(t, dtype=float))[:, None]
        p0, p1, p2, p3 = self.control_points
        s = 1.0 - t
        return s ** 3 * p0 + 3 * s ** 2 * t * p1 + 3 * s * t ** 2 * p2 + t ** 3 * p3

    def tangent(self, t):
        t = np.atleast_1d(np.asarray(t, dtype=float))[:, None]
        p0, p1, p2, p3 = self.control_points
        s = 1.0 - t
        return 3 * (s ** 2 * (p1 - p0) + 2 * s * t * (p2 - p1) + t ** 2 * (p3 - p2))

    def frames(self, t):
        tangents = self.tangent(t)
        lengths = np.linalg.norm(tangents, axis=1)
        tangents[lengths < 1e-12] = UP
        lengths[lengths < 1e-12] = 1.0
        return _rotations_from_up(tangents / lengths[:, None])

    def apply(self, points, t, base_height):
        """
        Place cap points along the stem.

        points are in the cap's own frame (base ring at z = 0), t is the curve
        parameter of each point and base_height the height of the stem top.
        Since t·H = base_height + z, the absolute scale H of the curve is
        recovered per point. The horizontal offset (x, y) is turned from +z
        onto the curve tangent and added to the curve point:

            p' = H·B(t) + R(t)·(x, y, 0)
        """
        points = np.asarray(points, dtype=float)
        t = np.asarray(t, dtype=float)
        scale = (base_height + points[:, 2]) / t

        centres = scale[:, None] * self.point(t)
        offsets = points.copy()
        offsets[:, 2] = 0.0
        rotated = np.einsum("mij,mj->mi", self.frames(t), offsets)
        return centres + rotated
