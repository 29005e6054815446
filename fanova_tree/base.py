"""This module contains the FanovaTree class."""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

from fanova_tree.conversion import TreeModel, convert_tree_estimator
from fanova_tree.splits import BinarySplit, CategoricalSplit, NumericalSplit
from fanova_tree.utils import (
    WeightedRunningStatistics,
    _get_fixed_feature_mask,
    _get_parent_array,
    _mask_to_set,
    _normalize_domain,
    get_full_domain,
    subspace_cardinality,
)

logger = logging.getLogger(__name__)


class MarginalsNotComputedError(RuntimeError):
    """Raised when marginal predictions are requested before precompute_marginals was called."""


@dataclass
class MarginalAnnotations:
    """A dataclass for storing the per-node annotations computed by precompute_marginals."""
    subspace_sizes: np.ndarray[float]
    active_variables: list[int]  # bit masks of the features split on in the subtree
    marginal_prediction: np.ndarray[float]
    lower_cutoff: float
    upper_cutoff: float


class FanovaTree:

    def __init__(
            self,
            tree_model: Union[dict, TreeModel],
            n_features: int = None
    ):
        """The FanovaTree class. It caches per-node statistics of a binary regression tree such
            that the prediction marginalized over any subset of the input features can be computed
            without visiting every leaf.

        Args:
            tree_model (Union[dict, TreeModel]): The tree to be marginalized. If the tree model is
                a dictionary it must include the following keys:
                    - children_left: np.ndarray[int] - The left children of each node.
                        Leaf nodes are denoted with -1.
                    - children_right: np.ndarray[int] - The right children of each node.
                        Leaf nodes are denoted with -1.
                    - features: np.ndarray[int] - The feature used for splitting at each node.
                        Leaf nodes have the value -2.
                    - thresholds: np.ndarray[float] - The threshold used for splitting at each node.
                        Leaf nodes have the value -2.
                    - values: np.ndarray[float] - The mean prediction at the leaf nodes. The values
                        for decision nodes are not required.
                    - categorical_splits: dict[int, set] (optional) - The categories going to the
                        left child for the decision nodes splitting on a categorical feature.
            n_features (int, optional): The number of features of the dataset. If no value is
                provided, the number of features is determined by the maximum feature id in the
                tree model. Defaults to None.
        """
        if isinstance(tree_model, dict):
            tree_model = TreeModel.from_dict(tree_model)

        # get the node attributes from the tree_model definition
        self.children_left: np.ndarray[int] = np.asarray(tree_model.children_left, dtype=int)
        self.children_right: np.ndarray[int] = np.asarray(tree_model.children_right, dtype=int)
        self.parents: np.ndarray[int] = _get_parent_array(self.children_left, self.children_right)
        self.features: np.ndarray[int] = np.asarray(tree_model.features, dtype=int)
        self.thresholds: np.ndarray[float] = np.asarray(tree_model.thresholds, dtype=float)
        self.values: np.ndarray[float] = np.asarray(tree_model.values, dtype=float)

        # get the number of nodes and the leaf and node masks
        self.n_nodes: int = len(self.children_left)
        self.root_node_id: int = 0
        self.leaf_mask: np.ndarray[bool] = self.children_left == -1
        self.node_mask: np.ndarray[bool] = ~self.leaf_mask

        # the bottom-up pass visits the nodes in descending index order
        decision_nodes = np.flatnonzero(self.node_mask)
        if np.any(self.children_left[decision_nodes] <= decision_nodes) or \
                np.any(self.children_right[decision_nodes] <= decision_nodes):
            raise ValueError("Every child node must have a larger index than its parent.")

        self.n_features: int = n_features
        if n_features is None:
            self.n_features = int(max(self.features.max(initial=-1) + 1, 1))

        self.splits: list[Optional[BinarySplit]] = [None] * self.n_nodes
        for node_id in decision_nodes:
            feature_id = self.features[node_id]
            if node_id in tree_model.categorical_splits:
                self.splits[node_id] = CategoricalSplit(
                    feature_id, tree_model.categorical_splits[node_id])
            else:
                self.splits[node_id] = NumericalSplit(feature_id, self.thresholds[node_id])

        self._marginals: Optional[MarginalAnnotations] = None
        self._split_values: Optional[list[np.ndarray]] = None

    @classmethod
    def from_estimator(cls, estimator, n_features: int = None, **kwargs) -> "FanovaTree":
        """Creates a FanovaTree from a fitted single tree estimator (e.g. DecisionTreeRegressor)."""
        tree_model = convert_tree_estimator(estimator, **kwargs)
        assert isinstance(tree_model, TreeModel), \
            f"Expected a single tree estimator, got {type(estimator)}."
        if n_features is None:
            n_features = getattr(estimator, "n_features_in_", None)
        return cls(tree_model=tree_model, n_features=n_features)

    def __getstate__(self):
        # the annotations are never persisted, they have to be recomputed after loading
        state = self.__dict__.copy()
        state["_marginals"] = None
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)

    @property
    def marginals(self) -> MarginalAnnotations:
        marginals = self._marginals
        if marginals is None:
            raise MarginalsNotComputedError(
                "The marginals are not computed. Call precompute_marginals first.")
        return marginals

    def precompute_marginals(
            self,
            lower_cutoff: float = -np.inf,
            upper_cutoff: float = np.inf,
            domain: Sequence = None,
            feature_types: Sequence[int] = None
    ):
        """Precomputes the marginal prediction of every node's subtree.

        First the volume of the domain reaching each node is computed top-down. Then, starting at
            the leaves, the marginal prediction of each node is the average of its children's
            marginal predictions weighted by their subspace sizes. Leaves with a mean outside of
            [lower_cutoff, upper_cutoff] are excluded by setting their subspace size to zero. The
            features split on in each subtree (active variables) are collected along the way.

        Args:
            lower_cutoff (float, optional): Leaves with a smaller mean are excluded. Defaults to
                -inf.
            upper_cutoff (float, optional): Leaves with a larger mean are excluded. Defaults to inf.
            domain (Sequence, optional): One entry per feature, a (low, high) interval for
                continuous features and the categories (or None for all) for categorical features.
                Defaults to the unit interval for every feature.
            feature_types (Sequence[int], optional): 0 for continuous features and the number of
                categories for categorical features. Defaults to all continuous.
        """
        if feature_types is None:
            feature_types = [0] * self.n_features
        if domain is None:
            domain = get_full_domain(feature_types)
        assert len(domain) == len(feature_types), \
            f"The domain ({len(domain)}) and feature_types ({len(feature_types)}) must have the " \
            f"same length."
        assert len(feature_types) >= self.n_features, \
            f"The tree splits on {self.n_features} features but only {len(feature_types)} " \
            f"feature types are given."

        subspace_sizes = self._compute_subspace_sizes(domain, feature_types)
        active_variables: list[int] = [0] * self.n_nodes
        marginal_prediction = np.full(self.n_nodes, np.nan, dtype=float)

        for node_id in range(self.n_nodes - 1, -1, -1):
            if self.leaf_mask[node_id]:
                leaf_mean = self.values[node_id]
                if leaf_mean < lower_cutoff or leaf_mean > upper_cutoff:
                    subspace_sizes[node_id] = 0.
                # excluded or unreachable leaves keep NaN
                if subspace_sizes[node_id] > 0:
                    marginal_prediction[node_id] = leaf_mean
                continue

            left_child, right_child = self.children_left[node_id], self.children_right[node_id]
            active_variables[node_id] = active_variables[left_child] | \
                active_variables[right_child] | (1 << int(self.features[node_id]))

            children_subspace_size, weighted_prediction = 0., 0.
            for child_id in (left_child, right_child):
                if subspace_sizes[child_id] > 0:
                    children_subspace_size += subspace_sizes[child_id]
                    weighted_prediction += marginal_prediction[child_id] * subspace_sizes[child_id]
            if children_subspace_size > 0:
                marginal_prediction[node_id] = weighted_prediction / children_subspace_size
            # the cutoffs may exclude the whole subtree which shows as a zero subspace size
            subspace_sizes[node_id] = children_subspace_size

        self._marginals = MarginalAnnotations(
            subspace_sizes=subspace_sizes,
            active_variables=active_variables,
            marginal_prediction=marginal_prediction,
            lower_cutoff=lower_cutoff,
            upper_cutoff=upper_cutoff
        )
        logger.debug("Precomputed marginals for %d nodes with cutoffs [%s, %s], root size %s.",
                     self.n_nodes, lower_cutoff, upper_cutoff, subspace_sizes[self.root_node_id])

    def _compute_subspace_sizes(
            self,
            domain: Sequence,
            feature_types: Sequence[int]
    ) -> np.ndarray[float]:
        """Computes the (raw) volume of the domain reaching each node.

        The subspaces are handed from parents to children on an explicit stack and dropped once
            the children's subspaces are derived.
        """
        subspace_sizes = np.zeros(self.n_nodes, dtype=float)
        stack = [(self.root_node_id, _normalize_domain(domain, feature_types))]
        while stack:
            node_id, subspace = stack.pop()
            subspace_sizes[node_id] = subspace_cardinality(subspace, feature_types)
            if self.leaf_mask[node_id]:
                continue
            left_subspace, right_subspace = self.splits[node_id].compute_subspaces(subspace)
            stack.append((self.children_right[node_id], right_subspace))
            stack.append((self.children_left[node_id], left_subspace))
        return subspace_sizes

    def marginalized_mean_prediction(self, x: np.ndarray) -> float:
        """Computes the mean prediction marginalized over all features that are NaN in x.

        At any node either a single path is followed (the node splits on a fixed feature), both
            children are visited (the subtree splits on a fixed feature further down) or the
            precomputed marginal prediction of the node is used (the subtree does not depend on
            any fixed feature). The contributions are weighted by their subspace sizes.

        Args:
            x (np.ndarray): The feature vector with NaN for the features to marginalize over.

        Returns:
            float: The marginalized mean prediction. NaN if the cutoffs exclude all leaves the
                feature vector could fall into.
        """
        marginals = self.marginals
        x = np.asarray(x, dtype=float)
        fixed_features = _get_fixed_feature_mask(x)

        stats = WeightedRunningStatistics()
        active_nodes = [self.root_node_id]
        while active_nodes:
            node_id = active_nodes.pop()

            # excluded by the cutoffs
            if marginals.subspace_sizes[node_id] == 0:
                continue

            if marginals.active_variables[node_id] & fixed_features:
                split = self.splits[node_id]
                if (fixed_features >> split.feature_index) & 1:
                    if split.route(x[split.feature_index]) == 0:
                        active_nodes.append(self.children_left[node_id])
                    else:
                        active_nodes.append(self.children_right[node_id])
                else:
                    active_nodes.append(self.children_left[node_id])
                    active_nodes.append(self.children_right[node_id])
            else:
                stats.push(marginals.marginal_prediction[node_id],
                           marginals.subspace_sizes[node_id])
        return stats.mean()

    def marginalized_mean_prediction_brute_force(self, x: np.ndarray) -> float:
        """Computes the marginalized mean prediction by enumerating all leaves.

        A leaf contributes if the fixed features of x are routed along the leaf's path and its
            subspace size is not zero.
        """
        marginals = self.marginals
        x = np.asarray(x, dtype=float)
        stats = WeightedRunningStatistics()
        for leaf_id in np.flatnonzero(self.leaf_mask):
            if marginals.subspace_sizes[leaf_id] == 0:
                continue
            node_id, reachable = leaf_id, True
            while self.parents[node_id] > -1:
                parent_id = self.parents[node_id]
                split = self.splits[parent_id]
                value = x[split.feature_index]
                if not np.isnan(value):
                    side = 0 if self.children_left[parent_id] == node_id else 1
                    if split.route(value) != side:
                        reachable = False
                        break
                node_id = parent_id
            if reachable:
                stats.push(self.values[leaf_id], marginals.subspace_sizes[leaf_id])
        return stats.mean()

    def predict(self, x: np.ndarray) -> float:
        """Predicts the output for a fully specified feature vector."""
        node_id = self.root_node_id
        while not self.leaf_mask[node_id]:
            split = self.splits[node_id]
            if split.route(x[split.feature_index]) == 0:
                node_id = self.children_left[node_id]
            else:
                node_id = self.children_right[node_id]
        return float(self.values[node_id])

    def partition(
            self,
            domain: Sequence = None,
            feature_types: Sequence[int] = None
    ) -> tuple[list[int], list[list]]:
        """Computes the partition of the domain induced by the tree.

        Returns:
            tuple[list[int], list[list]]: The leaf ids in depth-first order (left before right)
                and the subspace of the domain belonging to each leaf.
        """
        if feature_types is None:
            feature_types = [0] * self.n_features
        if domain is None:
            domain = get_full_domain(feature_types)
        assert len(domain) == len(feature_types), \
            "The domain and feature_types must have the same length."

        leaf_ids, subspaces = [], []
        stack = [(self.root_node_id, _normalize_domain(domain, feature_types))]
        while stack:
            node_id, subspace = stack.pop()
            if self.leaf_mask[node_id]:
                leaf_ids.append(int(node_id))
                subspaces.append(subspace)
                continue
            left_subspace, right_subspace = self.splits[node_id].compute_subspaces(subspace)
            stack.append((self.children_right[node_id], right_subspace))
            stack.append((self.children_left[node_id], left_subspace))
        return leaf_ids, subspaces

    def get_subspace_size(self, node_id: int) -> float:
        return float(self.marginals.subspace_sizes[node_id])

    def get_active_variables(self, node_id: int) -> set[int]:
        return _mask_to_set(self.marginals.active_variables[node_id])

    def get_marginal_prediction(self, node_id: int) -> float:
        return float(self.marginals.marginal_prediction[node_id])

    def all_split_values(self, feature_types: Sequence[int]) -> list[np.ndarray[float]]:
        """Finds all the split values of each feature.

        Categorical features get all of their categories, continuous features every threshold
            used in the tree (including repeats). The result is computed once and cached.
        """
        if self._split_values is None:
            split_values: list[list[float]] = [[] for _ in range(len(feature_types))]
            seeded = set()
            for node_id in np.flatnonzero(self.node_mask):
                split = self.splits[node_id]
                feature_id = split.feature_index
                if feature_types[feature_id] > 0:
                    if feature_id not in seeded:
                        split_values[feature_id].extend(range(int(feature_types[feature_id])))
                        seeded.add(feature_id)
                else:
                    split_values[feature_id].append(split.get_num_split_value())
            self._split_values = [np.sort(np.asarray(values, dtype=float))
                                  for values in split_values]
        return self._split_values
