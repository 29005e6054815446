"""This package computes marginalized predictions of binary regression trees for fANOVA."""
from fanova_tree.base import FanovaTree, MarginalAnnotations, MarginalsNotComputedError
from fanova_tree.conversion import TreeModel, convert_tree_estimator
from fanova_tree.utils import get_full_domain

__all__ = [
    "FanovaTree",
    "MarginalAnnotations",
    "MarginalsNotComputedError",
    "TreeModel",
    "convert_tree_estimator",
    "get_full_domain",
]
