"""
Contact sampling and the individual optimisation moves.

Note: This package should be pure Python/NumPy (plus numba kernels).
"""
