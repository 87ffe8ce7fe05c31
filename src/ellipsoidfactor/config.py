"""
Configuration & Default Constants
=================================
This module serves as the central registry for the optimiser's default values.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (e.g. 0.01, 0.1) from being scattered
   throughout the step functions.
2. Reproducibility: The small constants below were tuned empirically. Changing
   any of them changes the numerical output, so they live in one place and are
   only overridden explicitly through ``OptimisationParameters``.

Exports:
    DEFAULT_SAMPLING_INCREMENT (float): Growth/shrink step in physical units.
    DEFAULT_N_VECTORS (int): Number of surface sampling directions.
    ... and the remaining defaults consumed by ``OptimisationParameters``.
"""
import math

# User-facing defaults (voxel units; see OptimisationParameters.calibrated)
DEFAULT_SAMPLING_INCREMENT: float = 1.0 / 2.3
DEFAULT_N_VECTORS: int = 100
DEFAULT_CONTACT_SENSITIVITY: int = 1
DEFAULT_MAX_ITERATIONS: int = 100
DEFAULT_MAX_DRIFT: float = math.sqrt(3.0)
DEFAULT_MINIMUM_SEMI_AXIS: float = 0.5

# Tuned constants
SHRINK_STEP_FRACTION: float = 0.01       # proportional contraction per shrink step
SHRINK_CLEARANCE_FRACTION: float = 0.05  # final contraction after shrinking
INITIAL_CONTRACTION: float = 0.1         # absolute pull-back before first oblation
TURN_ANGLE: float = 0.1                  # rad
BUMP_FRACTION: float = 0.5               # of the sampling increment
WIGGLE_SPREAD: float = 0.1

# Degenerate frame handling for the initial axis alignment
FIX_DEGENERATE_AXIS: bool = True
REFERENCE_AXIS_TOLERANCE: float = 1e-6

# Global limit on the total main-loop iterations, as a multiple of max_iterations
TOTAL_ITERATION_FACTOR: int = 10
