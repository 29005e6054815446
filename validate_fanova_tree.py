import time

import numpy as np
from matplotlib import pyplot as plt
from sklearn.datasets import make_regression
from sklearn.tree import DecisionTreeRegressor
from tqdm import tqdm

from fanova_tree import FanovaTree, convert_tree_estimator
from plotting.marginals import plot_marginal

if __name__ == "__main__":
    DO_PLOTTING = False

    N_PARTIAL_VECTORS = 200
    LOWER_CUTOFF, UPPER_CUTOFF = -np.inf, np.inf

    # fix random seed for reproducibility
    random_seed = 10
    rng = np.random.default_rng(random_seed)

    # create dummy regression dataset and fit tree model
    X, y = make_regression(1000, n_features=8, random_state=random_seed)
    n_features = X.shape[-1]
    model = DecisionTreeRegressor(max_depth=10, random_state=random_seed).fit(X, y)

    feature_types = [0] * n_features
    domain = [(float(X[:, i].min()), float(X[:, i].max())) for i in range(n_features)]

    tree_model = convert_tree_estimator(model)
    fanova_tree = FanovaTree(tree_model=tree_model, n_features=n_features)

    start_time = time.time()
    fanova_tree.precompute_marginals(LOWER_CUTOFF, UPPER_CUTOFF, domain, feature_types)
    print("Precompute - time elapsed ", time.time() - start_time)
    print("Precompute - root marginal", fanova_tree.get_marginal_prediction(0))
    print("Precompute - root size    ", fanova_tree.get_subspace_size(0))

    # fully specified inputs must match the tree's prediction ---------------------------------
    x_input = X[2]
    print("Output f(x):              ", model.predict(x_input.reshape(1, -1))[0])
    print("Marginal f(x):            ", fanova_tree.marginalized_mean_prediction(x_input))

    # partial vectors against the leaf enumeration ----------------------------------------------
    time_fast, time_brute_force, max_error = 0., 0., 0.
    for _ in tqdm(range(N_PARTIAL_VECTORS), total=N_PARTIAL_VECTORS):
        x = X[rng.integers(len(X))].copy()
        x[rng.random(n_features) < 0.5] = np.nan

        start_time = time.time()
        fast = fanova_tree.marginalized_mean_prediction(x)
        time_fast += time.time() - start_time

        start_time = time.time()
        brute_force = fanova_tree.marginalized_mean_prediction_brute_force(x)
        time_brute_force += time.time() - start_time

        max_error = max(max_error, abs(fast - brute_force))

    print("Fast - time elapsed       ", time_fast)
    print("Brute force - time elapsed", time_brute_force)
    print("Max abs. difference       ", max_error)

    if DO_PLOTTING:
        fig, axes = plt.subplots(1, n_features, figsize=(3 * n_features, 3))
        for feature_id, axis in enumerate(axes):
            plot_marginal(fanova_tree, feature_id, feature_types, domain, axis=axis)
        plt.tight_layout()
        plt.savefig("marginals.pdf")
