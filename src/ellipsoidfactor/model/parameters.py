"""
Optimisation Parameters
=======================
Read-only configuration consumed by the optimiser and its step functions.

Classes:
    OptimisationParameters: Frozen dataclass holding user settings and the
        tuned constants from ``ellipsoidfactor.config``.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from math import sqrt
from typing import Sequence

from ellipsoidfactor import config


@dataclass(frozen=True)
class OptimisationParameters:
    """
    Settings of the ellipsoid optimisation.

    Lengths are in physical units. The defaults are voxel-unit values; use
    ``calibrated()`` to convert them for an anisotropic or scaled volume.
    """
    sampling_increment: float = config.DEFAULT_SAMPLING_INCREMENT
    n_vectors: int = config.DEFAULT_N_VECTORS
    contact_sensitivity: int = config.DEFAULT_CONTACT_SENSITIVITY
    max_iterations: int = config.DEFAULT_MAX_ITERATIONS
    max_drift: float = config.DEFAULT_MAX_DRIFT
    minimum_semi_axis: float = config.DEFAULT_MINIMUM_SEMI_AXIS

    shrink_step: float = config.SHRINK_STEP_FRACTION
    shrink_clearance: float = config.SHRINK_CLEARANCE_FRACTION
    initial_contraction: float = config.INITIAL_CONTRACTION
    turn_angle: float = config.TURN_ANGLE
    bump_fraction: float = config.BUMP_FRACTION
    wiggle_spread: float = config.WIGGLE_SPREAD

    fix_degenerate_axis: bool = config.FIX_DEGENERATE_AXIS
    reference_axis_tolerance: float = config.REFERENCE_AXIS_TOLERANCE

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool):
                continue
            if value <= 0:
                raise ValueError(f"Optimisation parameter '{f.name}' must be positive, got {value}.")
        if self.n_vectors <= 2:
            raise ValueError(f"'n_vectors' must be greater than 2, got {self.n_vectors}.")
        if self.wiggle_spread >= sqrt(0.5):
            # a = sqrt(1 - b² - c²) must stay real
            raise ValueError(f"'wiggle_spread' must be below sqrt(1/2), got {self.wiggle_spread}.")

    @property
    def max_total_iterations(self) -> int:
        """Hard cap on main-loop iterations before a seed is declared out of control."""
        return self.max_iterations * config.TOTAL_ITERATION_FACTOR

    def calibrated(self, spacing: Sequence[float]) -> OptimisationParameters:
        """
        Convert the voxel-unit lengths to physical units.

        The increment, the minimum semi-axis and the initial contraction are
        scaled by the smallest voxel dimension, the drift by the voxel diagonal
        relative to a unit cube.

        Args:
            spacing: Voxel size (pW, pH, pD).

        Returns:
            A new parameter set.
        """
        p_w, p_h, p_d = spacing
        return replace(
            self,
            sampling_increment=self.sampling_increment * min(p_w, p_h, p_d),
            minimum_semi_axis=self.minimum_semi_axis * min(p_w, p_h, p_d),
            initial_contraction=self.initial_contraction * min(p_w, p_h, p_d),
            max_drift=self.max_drift * sqrt(p_w * p_w + p_h * p_h + p_d * p_d) / sqrt(3.0),
        )
