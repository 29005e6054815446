import numpy as np
import pytest
from matplotlib import pyplot as plt

from fanova_tree import FanovaTree
from plotting.marginals import marginal_grid, plot_marginal


@pytest.fixture
def mixed_fanova_tree(mixed_tree, mixed_domain, mixed_feature_types) -> FanovaTree:
    fanova_tree = FanovaTree(mixed_tree)
    fanova_tree.precompute_marginals(-np.inf, np.inf, mixed_domain, mixed_feature_types)
    return fanova_tree


def test_marginal_grid_continuous(mixed_fanova_tree, mixed_domain, mixed_feature_types):
    grid, predictions = marginal_grid(mixed_fanova_tree, 0, mixed_feature_types, mixed_domain)

    np.testing.assert_allclose(grid, [0.25, 0.625, 0.875])
    np.testing.assert_allclose(predictions, [2.5 / 1.5, 3., 5.])


def test_marginal_grid_categorical(mixed_fanova_tree, mixed_domain, mixed_feature_types):
    grid, predictions = marginal_grid(mixed_fanova_tree, 1, mixed_feature_types, mixed_domain)

    np.testing.assert_allclose(grid, [0., 1., 2.])
    np.testing.assert_allclose(predictions, [3.25, 3.2, 3.2])


def test_marginal_grid_ignores_splits_outside_domain(stump_tree):
    fanova_tree = FanovaTree(stump_tree)
    fanova_tree.precompute_marginals(-np.inf, np.inf, [(0.6, 1.)], [0])

    grid, predictions = marginal_grid(fanova_tree, 0, [0], [(0.6, 1.)])
    np.testing.assert_allclose(grid, [0.8])
    np.testing.assert_allclose(predictions, [3.])


@pytest.mark.parametrize("feature_id", [0, 1])
def test_plot_marginal(mixed_fanova_tree, mixed_domain, mixed_feature_types, feature_id):
    fig, axis = plt.subplots()
    returned_axis = plot_marginal(mixed_fanova_tree, feature_id, mixed_feature_types,
                                  mixed_domain, feature_name="x", axis=axis)

    assert returned_axis is axis
    assert axis.get_xlabel() == "x"
    plt.close(fig)
