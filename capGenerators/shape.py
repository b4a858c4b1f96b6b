"""
shape.py
Shape parameters for one morel cap generation run.

Everything a pass needs to know about the cap is frozen into a
ShapeParameters value before the pipeline starts. Nothing in the pipeline
reads or writes module-level state.
"""

import enum
import math
import numbers
from dataclasses import dataclass, field
from typing import Optional

# ── Colours ─────────────────────────────────────────────────────────────────
CAP_COLOR       = (205 / 255.0, 122 / 255.0, 54 / 255.0)    # every vertex at build time
HIGHLIGHT_COLOR = (225 / 255.0, 188 / 255.0, 144 / 255.0)   # facade cell boundaries

# ── Reference values ────────────────────────────────────────────────────────
DEFAULT_NOISE_SEED  = 19894264
DEFAULT_FACADE_SEED = 400
FACADE_CELLS        = 400     # cell count at facade_density = 1.0


def _is_count(value):
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_positive(value):
    return math.isfinite(value) and value > 0


class DeformationMode(enum.Enum):
    """Which surface perturbation runs between widening and bending."""

    NOISE = "noise"
    FACADE = "facade"
    NONE = "none"


@dataclass(frozen=True)
class WideningProfile:
    """
    Piecewise polynomial bulge applied by the widening pass.

        max_radius_factor       c    plateau scale (radius grows by 1 + c)
        power                   pow  odd exponent of both ramps
        base_max_height_factor  d    ramp ends at d·h above the base
        tip_max_height_factor   e    taper starts at e·h
    """

    max_radius_factor: float = 1.2
    power: int = 3
    base_max_height_factor: float = 0.20
    tip_max_height_factor: float = 0.99

    def __post_init__(self):
        if not _is_positive(self.max_radius_factor):
            raise ValueError("max_radius_factor must be positive")
        if not _is_count(self.power):
            raise ValueError("power must be an integer")
        if self.power < 1 or self.power % 2 == 0:
            raise ValueError("power must be a positive odd integer")
        if not 0 < self.base_max_height_factor < self.tip_max_height_factor < 1:
            raise ValueError(
                "height factors must satisfy 0 < base_max_height_factor "
                "< tip_max_height_factor < 1"
            )


@dataclass(frozen=True)
class ShapeParameters:
    """
    Immutable snapshot of everything one generation run depends on.

    height is the full mushroom height (stem + cap); the cap itself spans
    cap_height = height·(1 − stem_height_part). vertical_divisions (n) is the
    number of vertices per ring, horizontal_divisions (k) the number of rings.

    noise_seed / facade_seed select the pseudo-random pattern. Passing
    noise_seed=None seeds from the wall clock, so two runs differ.
    """

    height: float = 10.0
    stem_height_part: float = 0.3
    junction_radius: float = 1.0
    cap_max_radius: float = 3.0
    vertical_divisions: int = 64
    horizontal_divisions: int = 64

    deformation: DeformationMode = DeformationMode.NOISE
    noise_octaves: int = 18
    noise_strength: float = 1.0
    noise_seed: Optional[int] = DEFAULT_NOISE_SEED
    facade_density: float = 1.0
    facade_seed: int = DEFAULT_FACADE_SEED

    widening: WideningProfile = field(default_factory=WideningProfile)

    def __post_init__(self):
        if not _is_count(self.vertical_divisions) or self.vertical_divisions < 3:
            raise ValueError("vertical_divisions must be an integer of at least 3")
        if not _is_count(self.horizontal_divisions) or self.horizontal_divisions < 1:
            raise ValueError("horizontal_divisions must be an integer of at least 1")
        if not _is_positive(self.height):
            raise ValueError("height must be positive")
        if not 0 < self.stem_height_part < 1:
            raise ValueError("stem_height_part must lie strictly between 0 and 1")
        if not _is_positive(self.junction_radius):
            raise ValueError("junction_radius must be positive")
        if not (math.isfinite(self.cap_max_radius) and self.cap_max_radius >= self.junction_radius):
            raise ValueError("cap_max_radius must be at least junction_radius")
        if not _is_count(self.noise_octaves) or self.noise_octaves < 1:
            raise ValueError("noise_octaves must be an integer of at least 1")
        if not (math.isfinite(self.noise_strength) and self.noise_strength >= 0):
            raise ValueError("noise_strength must not be negative")
        if not _is_positive(self.facade_density):
            raise ValueError("facade_density must be positive")
        if not isinstance(self.deformation, DeformationMode):
            raise ValueError(f"unknown deformation mode: {self.deformation!r}")

    @property
    def cap_height(self) -> float:
        """Height of the cap alone, excluding the stem."""
        return self.height * (1.0 - self.stem_height_part)

    @property
    def stem_height(self) -> float:
        return self.height * self.stem_height_part

    @property
    def facade_cells(self) -> int:
        return max(1, round(FACADE_CELLS * self.facade_density))
