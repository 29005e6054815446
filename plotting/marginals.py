"""This module contains functions to plot the one-dimensional marginals of a FanovaTree."""
__all__ = ["marginal_grid", "plot_marginal"]

from typing import Sequence

import numpy as np
from matplotlib import pyplot as plt

from fanova_tree import FanovaTree

COLOR_MARGINAL = "#1E88E5"


def _get_piece_edges(
        fanova_tree: FanovaTree,
        feature_id: int,
        feature_types: Sequence[int],
        domain: Sequence
) -> np.ndarray:
    """The domain bounds of a continuous feature and the distinct split values between them."""
    low, high = domain[feature_id]
    split_values = fanova_tree.all_split_values(feature_types)[feature_id]
    inner = np.unique(split_values[(split_values > low) & (split_values < high)])
    return np.concatenate(([low], inner, [high])).astype(float)


def marginal_grid(
        fanova_tree: FanovaTree,
        feature_id: int,
        feature_types: Sequence[int],
        domain: Sequence
) -> tuple[np.ndarray, np.ndarray]:
    """Evaluates the marginal prediction of a single feature on the grid given by its splits.

    The marginal of a tree is piecewise constant between consecutive split values, so evaluating
        it once per piece is enough. For continuous features the pieces are bounded by the split
        values inside the domain interval and evaluated at their midpoints, categorical features
        are evaluated at every category.

    Args:
        fanova_tree (FanovaTree): The tree with precomputed marginals.
        feature_id (int): The feature to compute the marginal of.
        feature_types (Sequence[int]): 0 for continuous features and the number of categories for
            categorical features.
        domain (Sequence): The domain the marginals were precomputed with.

    Returns:
        tuple[np.ndarray, np.ndarray]: The grid points and the marginal prediction at each point.
    """
    if feature_types[feature_id] > 0:
        categories = domain[feature_id]
        if categories is None:
            categories = range(int(feature_types[feature_id]))
        grid = np.asarray(sorted(categories), dtype=float)
    else:
        edges = _get_piece_edges(fanova_tree, feature_id, feature_types, domain)
        grid = (edges[:-1] + edges[1:]) / 2

    x = np.full(len(feature_types), np.nan)
    predictions = np.zeros(len(grid), dtype=float)
    for i, value in enumerate(grid):
        x[feature_id] = value
        predictions[i] = fanova_tree.marginalized_mean_prediction(x)
    return grid, predictions


def plot_marginal(
        fanova_tree: FanovaTree,
        feature_id: int,
        feature_types: Sequence[int],
        domain: Sequence,
        feature_name: str = None,
        axis: plt.Axes = None
) -> plt.Axes:
    """Plots the marginal prediction of a single feature.

    Continuous features are drawn as a step function over the domain interval, categorical
        features as bars.

    Returns:
        plt.Axes: The axis the marginal was drawn on.
    """
    if axis is None:
        _, axis = plt.subplots(figsize=(6, 4))
    if feature_name is None:
        feature_name = f"feature {feature_id}"

    grid, predictions = marginal_grid(fanova_tree, feature_id, feature_types, domain)
    if feature_types[feature_id] > 0:
        axis.bar(grid, predictions, color=COLOR_MARGINAL)
        axis.set_xticks(grid)
    else:
        edges = _get_piece_edges(fanova_tree, feature_id, feature_types, domain)
        axis.stairs(predictions, edges, color=COLOR_MARGINAL, linewidth=2)
        axis.set_xlim(edges[0], edges[-1])
    axis.set_xlabel(feature_name)
    axis.set_ylabel("marginal prediction")
    return axis
