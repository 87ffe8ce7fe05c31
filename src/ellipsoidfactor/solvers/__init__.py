"""Per-seed ellipsoid optimisation driver."""
