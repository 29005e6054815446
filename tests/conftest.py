import matplotlib
import numpy as np
import pytest
from sklearn.datasets import make_regression
from sklearn.tree import DecisionTreeRegressor

matplotlib.use("Agg")


@pytest.fixture
def stump_tree() -> dict:
    """Depth-1 tree splitting feature 0 at 0.5 into leaves with means 1 and 3."""
    return {
        "children_left": np.array([1, -1, -1]),
        "children_right": np.array([2, -1, -1]),
        "features": np.array([0, -2, -2]),
        "thresholds": np.array([0.5, -2, -2]),
        "values": np.array([2., 1., 3.]),
    }


@pytest.fixture
def mixed_tree() -> dict:
    """Depth-2 tree over a continuous feature 0 and a categorical feature 1 (3 categories).

    Node 0 splits x0 at 0.5, node 1 sends category 0 of x1 to the left, node 2 splits x0 at 0.75.
        The leaves 3, 4, 5 and 6 have the means 1, 2, 3 and 5.
    """
    return {
        "children_left": np.array([1, 3, 5, -1, -1, -1, -1]),
        "children_right": np.array([2, 4, 6, -1, -1, -1, -1]),
        "features": np.array([0, 1, 0, -2, -2, -2, -2]),
        "thresholds": np.array([0.5, -2, 0.75, -2, -2, -2, -2]),
        "values": np.array([0., 0., 0., 1., 2., 3., 5.]),
        "categorical_splits": {1: {0}},
    }


@pytest.fixture
def mixed_feature_types() -> list[int]:
    return [0, 3]


@pytest.fixture
def mixed_domain() -> list:
    return [(0., 1.), None]


@pytest.fixture(scope="module")
def regression_data() -> tuple[np.ndarray, np.ndarray]:
    X, y = make_regression(500, n_features=6, noise=0.5, random_state=42)
    # sklearn compares float32 inputs with the thresholds
    X = X.astype(np.float32).astype(np.float64)
    return X, y


@pytest.fixture(scope="module")
def fitted_tree(regression_data) -> DecisionTreeRegressor:
    X, y = regression_data
    return DecisionTreeRegressor(max_depth=7, min_samples_leaf=3, random_state=42).fit(X, y)


@pytest.fixture(scope="module")
def data_domain(regression_data) -> list[tuple[float, float]]:
    X, _ = regression_data
    return [(float(X[:, i].min()), float(X[:, i].max())) for i in range(X.shape[1])]
