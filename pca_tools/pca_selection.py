"""
How many components to keep?

Rules discussed in the case study: Kaiser's eigenvalue > 1, a cumulative
variance target, Horn's parallel analysis and cross-validation.
"""

import logging

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA
from sklearn.model_selection import KFold
from typing import Dict, Any, Union, Optional

from .config import (
    CV_FOLDS,
    DEFAULT_SEED,
    KAISER_THRESHOLD,
    PARALLEL_ITERATIONS,
    PARALLEL_PERCENTILE,
)
from .pca_assumptions import correlation_matrix

logger = logging.getLogger(__name__)


def kaiser_criterion(eigenvalues: np.ndarray, threshold: float = KAISER_THRESHOLD) -> int:
    """Number of eigenvalues above ``threshold`` (meaningful for correlation PCA)."""
    return int(np.sum(np.asarray(eigenvalues) > threshold))


def cumulative_variance_rule(cumulative_variance: np.ndarray, target: float = 0.80) -> int:
    """
    Smallest k whose cumulative proportion reaches ``target`` (0-1 scale).

    Returns the number of available components if the target is never met.
    """
    if not 0 < target <= 1:
        raise ValueError(f"target must be in (0, 1], got {target}")

    cumulative_variance = np.asarray(cumulative_variance)
    reached = np.nonzero(cumulative_variance >= target - 1e-12)[0]
    if len(reached) == 0:
        return int(len(cumulative_variance))
    return int(reached[0] + 1)


def parallel_analysis(
    X: Union[pd.DataFrame, np.ndarray],
    n_iter: int = PARALLEL_ITERATIONS,
    percentile: float = PARALLEL_PERCENTILE,
    seed: Optional[int] = DEFAULT_SEED
) -> Dict[str, Any]:
    """
    Horn's parallel analysis on the correlation matrix.

    Eigenvalues of the observed correlation matrix are compared with the
    chosen percentile of eigenvalues obtained from standard-normal data of
    the same shape. Components are retained while the observed eigenvalue
    beats the random one.

    Parameters
    ----------
    X : pd.DataFrame or np.ndarray
        Data matrix; incomplete rows are dropped.
    n_iter : int, optional
        Number of random datasets. Default 100.
    percentile : float, optional
        Percentile of the random eigenvalues used as threshold. Default 95.
    seed : int, optional
        Random seed.

    Returns
    -------
    dict
        - 'table' : pd.DataFrame - 'Component', 'Observed', 'Random mean',
          'Random percentile'
        - 'n_components' : int - suggested number of components

    References
    ----------
    .. [1] Horn, J. L. (1965). A rationale and test for the number of
           factors in factor analysis. Psychometrika, 30, 179-185.
    """
    if n_iter < 1:
        raise ValueError(f"n_iter must be >= 1, got {n_iter}")

    data = X.dropna() if isinstance(X, pd.DataFrame) else pd.DataFrame(np.asarray(X, dtype=float)).dropna()
    R = correlation_matrix(data)
    observed = np.sort(np.linalg.eigvalsh(R.to_numpy()))[::-1]

    n_samples, n_variables = data.shape[0], R.shape[0]
    rng = np.random.default_rng(seed)
    random_eigenvalues = np.zeros((n_iter, n_variables))
    for i in range(n_iter):
        noise = rng.standard_normal((n_samples, n_variables))
        random_eigenvalues[i] = np.sort(
            np.linalg.eigvalsh(np.corrcoef(noise, rowvar=False))
        )[::-1]

    threshold = np.percentile(random_eigenvalues, percentile, axis=0)

    beats = observed > threshold
    n_components = int(np.argmin(beats)) if not beats.all() else n_variables

    logger.info("Parallel analysis suggests %d components", n_components)

    table = pd.DataFrame({
        'Component': [f'PC{i+1}' for i in range(n_variables)],
        'Observed': observed,
        'Random mean': random_eigenvalues.mean(axis=0),
        'Random percentile': threshold,
    })
    return {'table': table, 'n_components': n_components}


def cross_validate_pca(
    X: Union[np.ndarray, pd.DataFrame],
    max_components: int,
    n_folds: int = CV_FOLDS,
    center: bool = True,
    scale: bool = False
) -> Dict[str, Any]:
    """
    Row-wise k-fold cross-validation of the reconstruction error.

    Each fold is preprocessed with statistics from the training rows only,
    projected on the training loadings and rebuilt.

    Returns
    -------
    dict
        'n_components', 'PRESS', 'Q2', 'RMSECV' (arrays over k) and
        'optimal_components' (k with maximum Q2).

    Notes
    -----
    Q2 = 1 - PRESS / TSS and RMSECV = sqrt(PRESS / (n * p)).
    Row-wise validation keeps improving as k grows, so the curve is read
    for where the gain flattens rather than for a strict maximum.
    """
    X_array = X.to_numpy(dtype=float) if isinstance(X, pd.DataFrame) else np.asarray(X, dtype=float)
    n_samples, n_features = X_array.shape

    if n_folds < 2 or n_folds > n_samples:
        raise ValueError(f"n_folds must be between 2 and {n_samples}, got {n_folds}")

    max_components = min(max_components, n_features, n_samples - n_samples // n_folds - 1)
    if max_components < 1:
        raise ValueError("Not enough samples for the requested cross-validation")

    component_range = np.arange(1, max_components + 1)
    press_values = np.zeros(max_components)
    tss = 0.0

    for train_idx, test_idx in KFold(n_splits=n_folds).split(X_array):
        X_train, X_test = X_array[train_idx], X_array[test_idx]

        mean = X_train.mean(axis=0) if center else np.zeros(n_features)
        X_train_proc = X_train - mean
        X_test_proc = X_test - mean

        if scale:
            std = X_train_proc.std(axis=0, ddof=1)
            std[std == 0] = 1.0
            X_train_proc = X_train_proc / std
            X_test_proc = X_test_proc / std

        tss += np.sum(X_test_proc ** 2)

        if center:
            model = PCA(n_components=max_components, svd_solver='full')
            components = model.fit(X_train_proc).components_
        else:
            # sklearn PCA always centers its input
            components = np.linalg.svd(X_train_proc, full_matrices=False)[2][:max_components]

        for idx, k in enumerate(component_range):
            P = components[:k].T
            reconstructed = (X_test_proc @ P) @ P.T
            press_values[idx] += np.sum((X_test_proc - reconstructed) ** 2)

    q2_values = 1 - press_values / tss
    rmsecv_values = np.sqrt(press_values / (n_samples * n_features))
    optimal_components = int(component_range[np.argmax(q2_values)])

    return {
        'n_components': component_range,
        'PRESS': press_values,
        'Q2': q2_values,
        'RMSECV': rmsecv_values,
        'optimal_components': optimal_components
    }


def suggest_n_components(
    X: Union[pd.DataFrame, np.ndarray],
    pca_results: Dict[str, Any],
    target: float = 0.80,
    seed: Optional[int] = DEFAULT_SEED
) -> Dict[str, Any]:
    """
    Verdict of each retention rule for one fitted model.

    The Kaiser rule is only meaningful when the model was fitted on
    standardized data; it is reported anyway and flagged.
    """
    parallel = parallel_analysis(X, seed=seed)
    return {
        'kaiser': kaiser_criterion(pca_results['eigenvalues']),
        'kaiser_applicable': bool(pca_results.get('scaling', False)),
        'cumulative': cumulative_variance_rule(pca_results['cumulative_variance'], target),
        'cumulative_target': target,
        'parallel': parallel['n_components'],
        'parallel_table': parallel['table'],
    }
