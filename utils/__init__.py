"""Data generation, metrics, cost and report utilities."""
