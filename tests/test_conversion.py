import numpy as np
import pytest
from sklearn.ensemble import GradientBoostingRegressor, RandomForestRegressor
from sklearn.linear_model import LinearRegression
from sklearn.tree import DecisionTreeClassifier

from fanova_tree import FanovaTree, TreeModel, convert_tree_estimator
from fanova_tree.conversion import safe_isinstance


def test_decision_tree_regressor(fitted_tree):
    tree_model = convert_tree_estimator(fitted_tree)

    assert isinstance(tree_model, TreeModel)
    np.testing.assert_array_equal(tree_model.children_left, fitted_tree.tree_.children_left)
    np.testing.assert_array_equal(tree_model.features, fitted_tree.tree_.feature)
    np.testing.assert_allclose(tree_model.values, fitted_tree.tree_.value[:, 0, 0])
    assert tree_model["categorical_splits"] == {}


def test_scaling(fitted_tree):
    tree_model = convert_tree_estimator(fitted_tree, scaling=0.5)
    np.testing.assert_allclose(tree_model.values, 0.5 * fitted_tree.tree_.value[:, 0, 0])


def test_decision_tree_classifier(regression_data):
    X, y = regression_data
    model = DecisionTreeClassifier(max_depth=4, random_state=42).fit(X, y > 0)
    tree_model = convert_tree_estimator(model)

    leaves = tree_model.children_left == -1
    assert np.all((tree_model.values >= 0) & (tree_model.values <= 1))
    fanova_tree = FanovaTree(tree_model, n_features=X.shape[1])
    np.testing.assert_allclose([fanova_tree.predict(x) for x in X[:20]],
                               model.predict_proba(X[:20])[:, 1])
    assert leaves.sum() == model.get_n_leaves()


def test_random_forest(regression_data):
    X, y = regression_data
    model = RandomForestRegressor(n_estimators=5, max_depth=4, random_state=42).fit(X, y)
    tree_models = convert_tree_estimator(model)

    assert isinstance(tree_models, list) and len(tree_models) == 5
    for tree_model, estimator in zip(tree_models, model.estimators_):
        np.testing.assert_allclose(tree_model.values, estimator.tree_.value[:, 0, 0] / 5)


def test_gradient_boosting(regression_data):
    X, y = regression_data
    model = GradientBoostingRegressor(n_estimators=4, max_depth=2, learning_rate=0.2,
                                      random_state=42).fit(X, y)
    tree_models = convert_tree_estimator(model)

    assert len(tree_models) == 4
    for tree_model, estimator in zip(tree_models, model.estimators_[:, 0]):
        np.testing.assert_allclose(tree_model.values, estimator.tree_.value[:, 0, 0] * 0.2)


def test_unsupported_model(regression_data):
    X, y = regression_data
    with pytest.raises(NotImplementedError):
        convert_tree_estimator(LinearRegression().fit(X, y))


def test_from_estimator(fitted_tree):
    fanova_tree = FanovaTree.from_estimator(fitted_tree)
    assert fanova_tree.n_features == fitted_tree.n_features_in_
    assert fanova_tree.n_nodes == fitted_tree.tree_.node_count


def test_from_estimator_rejects_ensembles(regression_data):
    X, y = regression_data
    model = RandomForestRegressor(n_estimators=2, max_depth=2, random_state=42).fit(X, y)
    with pytest.raises(AssertionError):
        FanovaTree.from_estimator(model)


def test_safe_isinstance(fitted_tree):
    assert safe_isinstance(fitted_tree, "sklearn.tree.DecisionTreeRegressor")
    assert not safe_isinstance(fitted_tree, ["sklearn.tree.DecisionTreeClassifier",
                                             "not_imported_package.Model"])
    with pytest.raises(ValueError):
        safe_isinstance(fitted_tree, "DecisionTreeRegressor")
