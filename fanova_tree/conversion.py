import sys
from dataclasses import dataclass, field
from typing import Union

import numpy as np


def safe_isinstance(obj, class_path_str):
    # Copied from shap repo
    """
    Acts as a safe version of isinstance without having to explicitly
    import packages which may not exist in the user's environment.

    Parameters
    ----------
    obj: Any
        Some object you want to test against
    class_path_str: str or list
        A string or list of strings specifying full class paths
        Example: `sklearn.ensemble.RandomForestRegressor`

    Returns
    --------
    bool: True if isinstance is true and the package exists, False otherwise
    """
    if isinstance(class_path_str, str):
        class_path_strs = [class_path_str]
    elif isinstance(class_path_str, (list, tuple)):
        class_path_strs = class_path_str
    else:
        class_path_strs = ['']

    for class_path_str in class_path_strs:
        if "." not in class_path_str:
            raise ValueError("class_path_str must be a string or list of strings specifying a full \
                module path to a class. Eg, 'sklearn.ensemble.RandomForestRegressor'")

        module_name, class_name = class_path_str.rsplit(".", 1)

        # a model of a package that was never imported cannot be passed to us
        if module_name not in sys.modules:
            continue

        _class = getattr(sys.modules[module_name], class_name, None)
        if _class is None:
            continue

        if isinstance(obj, _class):
            return True

    return False


@dataclass
class TreeModel:
    """A dataclass for storing the node arrays of a binary tree.

    Node 0 is the root and every child has a larger index than its parent. Nodes listed in
        ``categorical_splits`` split on a categorical feature, the mapped set holds the categories
        going to the left child. All other decision nodes go left for ``x <= threshold``.
    """
    children_left: np.ndarray[int]
    children_right: np.ndarray[int]
    features: np.ndarray[int]
    thresholds: np.ndarray[float]
    values: np.ndarray[float]
    categorical_splits: dict[int, frozenset] = field(default_factory=dict)

    def __getitem__(self, item):
        return getattr(self, item)

    @classmethod
    def from_dict(cls, tree_dict: dict) -> "TreeModel":
        return cls(
            children_left=np.asarray(tree_dict["children_left"], dtype=int),
            children_right=np.asarray(tree_dict["children_right"], dtype=int),
            features=np.asarray(tree_dict["features"], dtype=int),
            thresholds=np.asarray(tree_dict["thresholds"], dtype=float),
            values=np.asarray(tree_dict["values"], dtype=float),
            categorical_splits={
                int(node_id): frozenset(categories)
                for node_id, categories in tree_dict.get("categorical_splits", {}).items()
            }
        )


def convert_tree_estimator(
        tree_model,
        scaling: float = 1.,
        class_label: int = None
) -> Union[TreeModel, list[TreeModel]]:
    """Converts a fitted tree estimator into a TreeModel or a list of TreeModels.

    Ensembles are returned as the list of their (scaled) trees, the trees are not aggregated.

    Args:
        tree_model: The tree estimator to be converted.
        scaling (float): The scaling factor to be applied to the leaf values. Must be in range
            (0, inf+]. Defaults to 1.
        class_label (int): The class label whose probability is used as leaf value. Only
            applicable for classification trees. Defaults to None (i.e. class 1).

    Returns:
        Union[TreeModel, list[TreeModel]]: The converted tree estimator(s).
    """
    if safe_isinstance(tree_model, ["sklearn.tree.DecisionTreeRegressor",
                                    "sklearn.tree.ExtraTreeRegressor",
                                    "sklearn.tree.DecisionTreeClassifier"]):
        tree_values = tree_model.tree_.value.copy()
        if safe_isinstance(tree_model, "sklearn.tree.DecisionTreeClassifier"):
            if class_label is None:
                class_label = 1
            # turn class counts (or fractions) into probabilities
            tree_values = tree_values / np.sum(tree_values, axis=2, keepdims=True)
            tree_values = tree_values[:, 0, class_label]
        else:
            assert tree_values.shape[1] == 1, "Only single output regression trees are supported."
            tree_values = tree_values[:, 0, 0]
        tree_values = tree_values.flatten() * scaling
        return TreeModel(
            children_left=tree_model.tree_.children_left.astype(int),
            children_right=tree_model.tree_.children_right.astype(int),
            features=tree_model.tree_.feature.astype(int),
            thresholds=tree_model.tree_.threshold.astype(float),
            values=tree_values
        )

    if safe_isinstance(tree_model, ["sklearn.ensemble.RandomForestRegressor",
                                    "sklearn.ensemble.ExtraTreesRegressor"]):
        scaling = scaling / len(tree_model.estimators_)
        return [
            convert_tree_estimator(tree, scaling=scaling)
            for tree in tree_model.estimators_
        ]

    if safe_isinstance(tree_model, "sklearn.ensemble.GradientBoostingRegressor"):
        scaling = scaling * tree_model.learning_rate
        return [
            convert_tree_estimator(tree, scaling=scaling)
            for tree in tree_model.estimators_[:, 0]
        ]

    raise NotImplementedError(f"Conversion of {type(tree_model)} is not supported.")
