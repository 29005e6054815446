"""This module is used to run the complexity (run-time) experiment."""
import copy
import time

import numpy as np
import pandas as pd
from sklearn.datasets import make_regression
from sklearn.tree import DecisionTreeRegressor
from tqdm import tqdm

from fanova_tree import FanovaTree
from fanova_tree.conversion import convert_tree_estimator

if __name__ == "__main__":

    random_state: int = 42

    n_iterations: int = 10
    n_fixed_features_params: list[int] = [0, 1, 2, 4, 8]
    max_depth_params: list[int] = [5, 10, 20, 35]

    # get data -------------------------------------------------------------------------------------

    X, y = make_regression(10_000, n_features=10, noise=1., random_state=random_state)
    n_features = X.shape[-1]
    feature_types = [0] * n_features
    domain = [(float(X[:, i].min()), float(X[:, i].max())) for i in range(n_features)]
    rng = np.random.default_rng(random_state)

    print("n_features", n_features, "n_samples", len(X))

    data_storage = []

    all_params = [(a, b) for a in n_fixed_features_params for b in max_depth_params]
    for n_fixed_features, max_depth in all_params:

        print(f"Running experiment for n_fixed_features={n_fixed_features} "
              f"and max_depth={max_depth}")

        model = DecisionTreeRegressor(
            max_depth=max_depth,
            random_state=random_state,
            min_samples_leaf=2
        )
        model.fit(X, y)
        tree_model = convert_tree_estimator(model)

        depth = model.get_depth()
        n_nodes = model.tree_.node_count
        n_leaves = model.tree_.n_leaves

        dt_storage = {
            "model_id": "DT",
            "n_features": n_features,
            "n_fixed_features": n_fixed_features,
            "depth": int(depth),
            "n_nodes": int(n_nodes),
            "n_leaves": int(n_leaves),
        }
        print("DT max Depth:", depth, ",# Nodes:", n_nodes, ",# Leaves:", n_leaves)

        fanova_tree = FanovaTree(tree_model=tree_model, n_features=n_features)
        start_time = time.time()
        fanova_tree.precompute_marginals(-np.inf, np.inf, domain, feature_types)
        dt_storage["precompute_time"] = time.time() - start_time

        time.sleep(0.5)
        for iteration in tqdm(range(1, n_iterations + 1), total=n_iterations):
            iteration_storage = copy.deepcopy(dt_storage)
            x = np.full(n_features, np.nan)
            fixed = rng.choice(n_features, size=n_fixed_features, replace=False)
            x[fixed] = X[rng.integers(len(X)), fixed]

            start_time = time.time()
            _ = fanova_tree.marginalized_mean_prediction(x)
            iteration_storage["elapsed_time"] = time.time() - start_time

            start_time = time.time()
            _ = fanova_tree.marginalized_mean_prediction_brute_force(x)
            iteration_storage["elapsed_time_brute_force"] = time.time() - start_time
            data_storage.append(iteration_storage)

        print("Finished DT")

    # save data -----------------------------------------------------------------------------------
    print("Finished all experiments")
    data_df = pd.DataFrame(data_storage)
    data_df.to_csv("run_time_marginals.csv", index=False)
