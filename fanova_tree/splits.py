"""This module contains the split objects used to route values and divide subspaces."""
from typing import Iterable

import numpy as np


class BinarySplit:
    """Interface of a split of a binary tree on a single feature.

    A split sends a value either to the left (0) or to the right (1) child and divides a subspace
        of the input domain accordingly.
    """

    def __init__(self, feature_index: int):
        self.feature_index: int = int(feature_index)

    def route(self, value: float) -> int:
        """Returns 0 if the value goes to the left child and 1 otherwise."""
        raise NotImplementedError()

    def compute_subspaces(self, subspace: list) -> tuple[list, list]:
        """Divides the subspace into the subspaces of the left and the right child.

        Only the entry of the split feature differs between the returned subspaces and the input,
            the other entries are shared.
        """
        raise NotImplementedError()

    def get_num_split_value(self) -> float:
        raise NotImplementedError()


class NumericalSplit(BinarySplit):
    """Split of a continuous feature. Values smaller or equal to the threshold go left."""

    def __init__(self, feature_index: int, threshold: float):
        super().__init__(feature_index)
        self.threshold: float = float(threshold)

    def route(self, value: float) -> int:
        return 0 if value <= self.threshold else 1

    def compute_subspaces(self, subspace: list) -> tuple[list, list]:
        low, high = subspace[self.feature_index]
        # thresholds outside the interval leave one child with an empty interval
        cut = min(max(self.threshold, low), high)
        left_subspace, right_subspace = list(subspace), list(subspace)
        left_subspace[self.feature_index] = (low, cut)
        right_subspace[self.feature_index] = (cut, high)
        return left_subspace, right_subspace

    def get_num_split_value(self) -> float:
        return self.threshold

    def __repr__(self):
        return f"NumericalSplit(feature={self.feature_index}, threshold={self.threshold:.4f})"


class CategoricalSplit(BinarySplit):
    """Split of a categorical feature. Categories in ``left_categories`` go left."""

    def __init__(self, feature_index: int, left_categories: Iterable[int]):
        super().__init__(feature_index)
        self.left_categories: frozenset = frozenset(int(c) for c in left_categories)

    def route(self, value: float) -> int:
        return 0 if int(value) in self.left_categories else 1

    def compute_subspaces(self, subspace: list) -> tuple[list, list]:
        categories = subspace[self.feature_index]
        left_subspace, right_subspace = list(subspace), list(subspace)
        left_subspace[self.feature_index] = categories & self.left_categories
        right_subspace[self.feature_index] = categories - self.left_categories
        return left_subspace, right_subspace

    def get_num_split_value(self) -> float:
        return np.nan

    def __repr__(self):
        return f"CategoricalSplit(feature={self.feature_index}, " \
               f"left_categories={sorted(self.left_categories)})"
