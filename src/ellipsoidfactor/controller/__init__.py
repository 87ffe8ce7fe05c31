"""Batch execution of the optimiser over many seed points."""
