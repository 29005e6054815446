from typing import Optional, Sequence, Union

import numpy as np


def _get_parent_array(
        children_left: np.ndarray[int],
        children_right: np.ndarray[int]
) -> np.ndarray[int]:
    """Combines the left and right children of the tree to a parent array. The parent of the
        root node is -1.

    Args:
        children_left (np.ndarray[int]): The left children of the tree. Leaf nodes are -1.
        children_right (np.ndarray[int]): The right children of the tree. Leaf nodes are -1.

    Returns:
        np.ndarray[int]: The parent array of the tree. The parent of the root node is -1.
    """
    parent_array = np.full_like(children_left, -1)
    non_leaf_indices = np.logical_or(children_left != -1, children_right != -1)
    parent_array[children_left[non_leaf_indices]] = np.where(non_leaf_indices)[0]
    parent_array[children_right[non_leaf_indices]] = np.where(non_leaf_indices)[0]
    return parent_array


def get_full_domain(
        feature_types: Sequence[int],
        bounds: Optional[Sequence[Optional[tuple[float, float]]]] = None
) -> list[Union[tuple[float, float], frozenset]]:
    """Creates a domain covering the whole input space.

    Continuous features (type 0) get the interval from ``bounds`` (defaults to (0, 1)),
        categorical features (type k > 0) get all categories 0..k-1.

    Args:
        feature_types (Sequence[int]): 0 for continuous features, the number of categories for
            categorical features.
        bounds (Sequence[tuple[float, float]], optional): The (low, high) interval of each feature.
            Entries of categorical features are ignored. Defaults to None.

    Returns:
        list: The domain with one entry per feature.
    """
    domain = []
    for feature_id, feature_type in enumerate(feature_types):
        if feature_type > 0:
            domain.append(frozenset(range(int(feature_type))))
        elif bounds is None or bounds[feature_id] is None:
            domain.append((0., 1.))
        else:
            low, high = bounds[feature_id]
            domain.append((float(low), float(high)))
    return domain


def _normalize_domain(domain: Sequence, feature_types: Sequence[int]) -> list:
    """Turns the user supplied domain into intervals and frozensets of categories."""
    normalized = []
    for feature_id, (subspace, feature_type) in enumerate(zip(domain, feature_types)):
        if feature_type > 0:
            if subspace is None:
                normalized.append(frozenset(range(int(feature_type))))
            else:
                normalized.append(frozenset(int(category) for category in subspace))
        else:
            assert subspace is not None and len(subspace) == 2, \
                f"Continuous feature {feature_id} needs a (low, high) interval, got {subspace}."
            normalized.append((float(subspace[0]), float(subspace[1])))
    return normalized


def subspace_cardinality(subspace: Sequence, feature_types: Sequence[int]) -> float:
    """Computes the volume of a subspace.

    The volume is the product of the interval lengths of the continuous features and the number
        of categories of the categorical features. Empty intervals and category sets yield a
        volume of zero.
    """
    cardinality = 1.
    for feature_subspace, feature_type in zip(subspace, feature_types):
        if feature_type > 0:
            cardinality *= len(feature_subspace)
        else:
            low, high = feature_subspace
            cardinality *= max(high - low, 0.)
    return cardinality


def _get_fixed_feature_mask(x: np.ndarray) -> int:
    """Bit mask of all features with a concrete (non-NaN) value in x."""
    mask = 0
    for feature_id in np.flatnonzero(~np.isnan(x)):
        mask |= 1 << int(feature_id)
    return mask


def _mask_to_set(mask: int) -> set[int]:
    features, feature_id = set(), 0
    while mask:
        if mask & 1:
            features.add(feature_id)
        mask >>= 1
        feature_id += 1
    return features


class WeightedRunningStatistics:
    """Running weighted mean of pushed values."""

    def __init__(self):
        self.sum_of_weights: float = 0.
        self.weighted_sum: float = 0.
        self.n_values: int = 0

    def push(self, value: float, weight: float):
        self.sum_of_weights += weight
        self.weighted_sum += value * weight
        self.n_values += 1

    def mean(self) -> float:
        if self.n_values == 0 or self.sum_of_weights <= 0:
            return np.nan
        return self.weighted_sum / self.sum_of_weights
