"""
Tests for shape parameter validation and derived values.
"""

import dataclasses

import numpy as np
import pytest

from capGenerators.shape import (
    DeformationMode,
    FACADE_CELLS,
    ShapeParameters,
    WideningProfile,
)


class TestShapeParameters:
    """Preconditions and derived heights."""

    def test_defaults_are_valid(self) -> None:
        params = ShapeParameters()
        assert params.deformation is DeformationMode.NOISE
        assert params.noise_octaves == 18

    def test_derived_heights(self) -> None:
        params = ShapeParameters(height=10.0, stem_height_part=0.3)
        assert params.cap_height == pytest.approx(7.0)
        assert params.stem_height == pytest.approx(3.0)

    def test_frozen(self) -> None:
        params = ShapeParameters()
        with pytest.raises(dataclasses.FrozenInstanceError):
            params.height = 2.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"vertical_divisions": 2},
            {"horizontal_divisions": 0},
            {"height": 0.0},
            {"height": -1.0},
            {"stem_height_part": 0.0},
            {"stem_height_part": 1.0},
            {"junction_radius": 0.0},
            {"junction_radius": 2.0, "cap_max_radius": 1.0},
            {"noise_octaves": 0},
            {"noise_strength": -0.1},
            {"facade_density": 0.0},
            {"deformation": "noise"},
            {"vertical_divisions": 8.0},
            {"horizontal_divisions": 4.0},
            {"vertical_divisions": True},
            {"noise_octaves": 6.5},
            {"height": float("nan")},
            {"height": float("inf")},
            {"stem_height_part": float("nan")},
            {"junction_radius": float("nan")},
            {"cap_max_radius": float("nan")},
            {"cap_max_radius": float("inf")},
            {"noise_strength": float("nan")},
            {"facade_density": float("nan")},
        ],
    )
    def test_invalid_parameters_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            ShapeParameters(**kwargs)

    def test_minimal_lattice_accepted(self) -> None:
        params = ShapeParameters(vertical_divisions=3, horizontal_divisions=1)
        assert params.vertical_divisions == 3

    def test_numpy_integer_counts_accepted(self) -> None:
        """Counts read from numpy arrays are still integers."""
        params = ShapeParameters(vertical_divisions=np.int64(8), horizontal_divisions=np.int32(4))
        assert params.vertical_divisions == 8

    def test_facade_cells_follow_density(self) -> None:
        assert ShapeParameters().facade_cells == FACADE_CELLS
        assert ShapeParameters(facade_density=0.5).facade_cells == FACADE_CELLS // 2


class TestWideningProfile:
    """Widening profile validation."""

    def test_reference_defaults(self) -> None:
        profile = WideningProfile()
        assert profile.max_radius_factor == 1.2
        assert profile.power == 3
        assert profile.base_max_height_factor == 0.20
        assert profile.tip_max_height_factor == 0.99

    @pytest.mark.parametrize("power", [0, 2, 4, -3, 3.0])
    def test_power_must_be_positive_odd_int(self, power) -> None:
        with pytest.raises(ValueError):
            WideningProfile(power=power)

    @pytest.mark.parametrize("d,e", [(0.0, 0.9), (0.5, 0.5), (0.6, 0.4), (0.2, 1.0)])
    def test_height_factors_ordered(self, d: float, e: float) -> None:
        with pytest.raises(ValueError):
            WideningProfile(base_max_height_factor=d, tip_max_height_factor=e)

    def test_radius_factor_positive(self) -> None:
        with pytest.raises(ValueError):
            WideningProfile(max_radius_factor=0.0)

    def test_radius_factor_not_nan(self) -> None:
        with pytest.raises(ValueError):
            WideningProfile(max_radius_factor=float("nan"))
