"""Plotting utilities for marginal predictions."""
