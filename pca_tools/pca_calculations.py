"""
PCA Calculation Functions

Core computation for the lesson. The same decomposition is produced four
ways so the narrative can show they agree:

- SVD of the preprocessed data (R ``prcomp``)
- eigen-decomposition of the covariance matrix (the derivation)
- NIPALS, one component at a time with deflation
- ``sklearn.decomposition.PCA``

Every route returns the same dictionary layout (see ``_finalize``).
"""

import logging

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA
from typing import Tuple, Optional, Dict, Any, Union, List

from .config import (
    NIPALS_MAX_STEPS,
    NIPALS_THRESHOLD,
    PCA_METHODS,
    VARIMAX_ANGLE_STEP,
    VARIMAX_MAX_ITER,
    VARIMAX_TOLERANCE,
)

logger = logging.getLogger(__name__)

ArrayLike = Union[pd.DataFrame, np.ndarray]


# ============================================================================
# HELPERS
# ============================================================================

def _as_frame(X: ArrayLike) -> pd.DataFrame:
    """Return X as a float DataFrame; arrays get Var1..Varp column names."""
    if isinstance(X, pd.DataFrame):
        return X.astype(float)

    X_array = np.asarray(X, dtype=float)
    if X_array.ndim != 2:
        raise ValueError(f"Data must be 2-dimensional, got shape {X_array.shape}")
    columns = [f'Var{i+1}' for i in range(X_array.shape[1])]
    return pd.DataFrame(X_array, columns=columns)


def _pc_names(n: int, prefix: str = 'PC') -> List[str]:
    return [f'{prefix}{i+1}' for i in range(n)]


def _resolve_n_components(n_components: Optional[int], n_samples: int, n_features: int) -> int:
    """Component count to extract; None means all of min(n_samples, n_features)."""
    max_components = min(n_samples, n_features)
    if n_components is None:
        return max_components
    if n_components < 1:
        raise ValueError(f"n_components must be >= 1, got {n_components}")
    if n_components > max_components:
        raise ValueError(
            f"n_components cannot exceed min(n_samples, n_features) = "
            f"{max_components}, got {n_components}"
        )
    return n_components


def _sign_normalize(vectors: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Flip each column so its largest-magnitude entry is positive.

    Returns the flipped vectors and the +1/-1 sign applied to each column,
    so callers can flip the matching scores.
    """
    idx = np.argmax(np.abs(vectors), axis=0)
    signs = np.sign(vectors[idx, np.arange(vectors.shape[1])])
    signs[signs == 0] = 1.0
    return vectors * signs, signs


def preprocess(
    X: ArrayLike,
    center: bool = True,
    scale: bool = False
) -> Tuple[pd.DataFrame, np.ndarray, np.ndarray]:
    """
    Center and/or scale columns the way R's ``scale()`` does.

    Parameters
    ----------
    X : pd.DataFrame or np.ndarray
        Data matrix (n_samples x n_features).
    center : bool, optional
        Subtract column means. Default is True.
    scale : bool, optional
        Divide by the column standard deviation (ddof=1). When ``center`` is
        False the root-mean-square ``sqrt(sum(x^2) / (n - 1))`` is used
        instead, as in R. Zero-variance columns are left unscaled.

    Returns
    -------
    X_proc : pd.DataFrame
        Preprocessed data with the original labels.
    means : np.ndarray
        Values subtracted (zeros when not centered).
    stds : np.ndarray
        Divisors applied (ones when not scaled).
    """
    X_df = _as_frame(X)
    n_samples = X_df.shape[0]

    if center:
        means = X_df.mean(axis=0).to_numpy()
    else:
        means = np.zeros(X_df.shape[1])

    X_centered = X_df - means

    if scale:
        if n_samples < 2:
            raise ValueError("Scaling needs at least 2 samples")
        if center:
            stds = X_centered.std(axis=0, ddof=1).to_numpy()
        else:
            stds = np.sqrt((X_centered ** 2).sum(axis=0).to_numpy() / (n_samples - 1))
        zero_var = (stds == 0) | np.isnan(stds)
        if np.any(zero_var):
            logger.warning(
                "Columns with zero variance left unscaled: %s",
                list(X_df.columns[zero_var])
            )
        stds = np.where(zero_var, 1.0, stds)
    else:
        stds = np.ones(X_df.shape[1])

    return X_centered / stds, means, stds


def covariance_matrix(X: ArrayLike, center: bool = True) -> pd.DataFrame:
    """
    Sample covariance matrix C = X^T X / (n - 1) of the (centered) data.

    With standardized data this is the correlation matrix.
    """
    X_proc, _, _ = preprocess(X, center=center, scale=False)
    n_samples = X_proc.shape[0]
    if n_samples < 2:
        raise ValueError(f"Covariance needs at least 2 samples, got {n_samples}")

    values = X_proc.to_numpy()
    cov = values.T @ values / (n_samples - 1)
    return pd.DataFrame(cov, index=X_proc.columns, columns=X_proc.columns)


def eigen_decomposition(matrix: ArrayLike) -> Dict[str, Any]:
    """
    Eigen-decomposition of a symmetric matrix, largest eigenvalue first.

    Parameters
    ----------
    matrix : pd.DataFrame or np.ndarray
        Symmetric (covariance or correlation) matrix.

    Returns
    -------
    dict
        - 'eigenvalues' : np.ndarray, descending, tiny negatives clipped to 0
        - 'eigenvectors' : pd.DataFrame, variables x components (PC1..PCp),
          sign-normalized
    """
    if isinstance(matrix, pd.DataFrame):
        labels = list(matrix.index)
        values = matrix.to_numpy(dtype=float)
    else:
        values = np.asarray(matrix, dtype=float)
        labels = [f'Var{i+1}' for i in range(values.shape[0])]

    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise ValueError(f"Matrix must be square, got shape {values.shape}")
    if not np.allclose(values, values.T):
        raise ValueError("Matrix must be symmetric")

    eigenvalues, eigenvectors = np.linalg.eigh(values)
    order = np.argsort(eigenvalues)[::-1]
    eigenvalues = np.clip(eigenvalues[order], 0.0, None)
    eigenvectors, _ = _sign_normalize(eigenvectors[:, order])

    return {
        'eigenvalues': eigenvalues,
        'eigenvectors': pd.DataFrame(
            eigenvectors, index=labels, columns=_pc_names(len(eigenvalues))
        ),
    }


def _finalize(
    X_proc: pd.DataFrame,
    scores: np.ndarray,
    loadings: np.ndarray,
    eigenvalues: np.ndarray,
    means: np.ndarray,
    stds: np.ndarray,
    center: bool,
    scale: bool,
    algorithm: str,
    **extra: Any
) -> Dict[str, Any]:
    """Build the shared result dictionary for every PCA route."""
    n_samples, n_features = X_proc.shape
    n_components = loadings.shape[1]
    pc_names = _pc_names(n_components)

    # Total variance from the preprocessed data so truncated fits still
    # report proportions of the whole.
    total_variance = float(np.nansum(X_proc.to_numpy() ** 2) / (n_samples - 1))
    if total_variance > 0:
        explained_variance_ratio = eigenvalues / total_variance
    else:
        explained_variance_ratio = np.zeros_like(eigenvalues)

    scores_df = pd.DataFrame(scores, index=X_proc.index, columns=pc_names)
    loadings_df = pd.DataFrame(loadings, index=X_proc.columns, columns=pc_names)

    results = {
        'algorithm': algorithm,
        'scores': scores_df,
        'loadings': loadings_df,
        'x': scores_df,
        'rotation': loadings_df,
        'sdev': np.sqrt(eigenvalues),
        'eigenvalues': eigenvalues,
        'explained_variance': eigenvalues,
        'explained_variance_ratio': explained_variance_ratio,
        'cumulative_variance': np.cumsum(explained_variance_ratio),
        'total_variance': total_variance,
        'center': pd.Series(means, index=X_proc.columns) if center else False,
        'scale': pd.Series(stds, index=X_proc.columns) if scale else False,
        'centering': center,
        'scaling': scale,
        'means': means,
        'stds': stds,
        'n_components': n_components,
        'n_samples': n_samples,
        'n_features': n_features,
    }
    results.update(extra)
    return results


# ============================================================================
# PCA ROUTES
# ============================================================================

def prcomp(
    X: ArrayLike,
    center: bool = True,
    scale: bool = False,
    n_components: Optional[int] = None
) -> Dict[str, Any]:
    """
    PCA by singular value decomposition, mirroring R's ``prcomp``.

    X_proc = U S V^T, rotation = V, scores = U S, sdev = s / sqrt(n - 1).

    Parameters
    ----------
    X : pd.DataFrame or np.ndarray
        Data matrix (n_samples x n_features), no missing values.
    center, scale : bool
        Preprocessing, see ``preprocess``.
    n_components : int, optional
        Components to keep. Default keeps min(n_samples, n_features).

    Returns
    -------
    dict
        See ``compute_pca``. ``algorithm`` is 'SVD'.
    """
    X_proc, means, stds = preprocess(X, center=center, scale=scale)
    n_samples, n_features = X_proc.shape
    k = _resolve_n_components(n_components, n_samples, n_features)

    _, singular_values, Vt = np.linalg.svd(X_proc.to_numpy(), full_matrices=False)
    loadings, _ = _sign_normalize(Vt.T[:, :k])
    scores = X_proc.to_numpy() @ loadings
    eigenvalues = singular_values[:k] ** 2 / (n_samples - 1)

    return _finalize(X_proc, scores, loadings, eigenvalues, means, stds,
                     center, scale, 'SVD')


def pca_via_eigen(
    X: ArrayLike,
    center: bool = True,
    scale: bool = False,
    n_components: Optional[int] = None
) -> Dict[str, Any]:
    """
    PCA as derived in the lesson: covariance matrix, then its eigenvectors.

    C = X_proc^T X_proc / (n - 1), C v = lambda v, scores = X_proc V.
    """
    X_proc, means, stds = preprocess(X, center=center, scale=scale)
    n_samples, n_features = X_proc.shape
    k = _resolve_n_components(n_components, n_samples, n_features)

    values = X_proc.to_numpy()
    cov = values.T @ values / (n_samples - 1)
    eig = eigen_decomposition(cov)

    loadings = eig['eigenvectors'].to_numpy()[:, :k]
    scores = values @ loadings
    return _finalize(X_proc, scores, loadings, eig['eigenvalues'][:k],
                     means, stds, center, scale, 'EIGEN')


def nipals_pca(
    X: ArrayLike,
    n_components: int = 2,
    center: bool = True,
    scale: bool = False,
    max_steps: int = NIPALS_MAX_STEPS,
    threshold: float = NIPALS_THRESHOLD
) -> Dict[str, Any]:
    """
    NIPALS PCA (Wold, 1966): power iteration per component, then deflation.

    Missing values are skipped in the inner products, so incomplete data
    can be decomposed without imputation.

    Parameters
    ----------
    X : pd.DataFrame or np.ndarray
        Data matrix (n_samples x n_features). May contain NaN.
    n_components : int, optional
        Number of components to extract. Default is 2.
    center, scale : bool
        Preprocessing, see ``preprocess``.
    max_steps : int, optional
        Iteration cap per component.
    threshold : float, optional
        Convergence tolerance on the squared change of the score vector.

    Returns
    -------
    dict
        See ``compute_pca``; adds 'n_iterations' (list, one per component).

    Notes
    -----
    For each component:

    1. t = column of the residual matrix with the largest variance
    2. p = X^T t / (t^T t), normalized to ||p|| = 1
    3. t = X p
    4. repeat 2-3 until ||t_new - t_old||^2 <= threshold
    5. lambda = t^T t / (n - 1); X <- X - t p^T
    """
    X_proc, means, stds = preprocess(X, center=center, scale=scale)
    n_samples, n_features = X_proc.shape
    n_components = _resolve_n_components(n_components, n_samples, n_features)

    residual = X_proc.to_numpy().copy()
    missing = np.isnan(residual)

    scores = np.zeros((n_samples, n_components))
    loadings = np.zeros((n_features, n_components))
    eigenvalues = np.zeros(n_components)
    n_iterations = []

    for comp in range(n_components):
        filled = np.where(missing, 0.0, residual)

        start_col = int(np.argmax(np.nanvar(residual, axis=0)))
        t = filled[:, start_col].copy()
        if not np.any(t):
            t = np.ones(n_samples)

        steps = 0
        while True:
            steps += 1

            p = filled.T @ t / (t @ t)
            p_norm = np.linalg.norm(p)
            if p_norm == 0:
                break
            p = p / p_norm

            t_old = t
            t = filled @ p

            if np.sum((t - t_old) ** 2) <= threshold:
                break
            if steps >= max_steps:
                logger.warning(
                    "NIPALS component %d did not converge in %d steps",
                    comp + 1, max_steps
                )
                break

        scores[:, comp] = t
        loadings[:, comp] = p
        eigenvalues[comp] = t @ t / (n_samples - 1)
        n_iterations.append(steps)

        residual = residual - np.outer(t, p)

    loadings, signs = _sign_normalize(loadings)
    scores = scores * signs

    logger.debug("NIPALS iterations per component: %s", n_iterations)
    return _finalize(X_proc, scores, loadings, eigenvalues, means, stds,
                     center, scale, 'NIPALS', n_iterations=n_iterations)


def sklearn_pca(
    X: ArrayLike,
    center: bool = True,
    scale: bool = False,
    n_components: Optional[int] = None
) -> Dict[str, Any]:
    """
    PCA through ``sklearn.decomposition.PCA`` (full LAPACK SVD).

    scikit-learn always centres its input, so ``center=False`` is rejected.
    """
    if not center:
        raise ValueError("sklearn PCA always centers the data; use method='svd'")

    X_proc, means, stds = preprocess(X, center=True, scale=scale)
    n_samples, n_features = X_proc.shape
    k = _resolve_n_components(n_components, n_samples, n_features)

    model = PCA(n_components=k, svd_solver='full')
    model.fit(X_proc.to_numpy())

    loadings, _ = _sign_normalize(model.components_.T)
    scores = X_proc.to_numpy() @ loadings
    return _finalize(X_proc, scores, loadings, model.explained_variance_,
                     means, stds, True, scale, 'SKLEARN')


def compute_pca(
    X: ArrayLike,
    n_components: Optional[int] = None,
    center: bool = True,
    scale: bool = False,
    method: str = 'svd'
) -> Dict[str, Any]:
    """
    Validated entry point used by every page of the lesson.

    Parameters
    ----------
    X : pd.DataFrame or np.ndarray
        Input data matrix (n_samples x n_features).
    n_components : int, optional
        Number of components. Default is min(n_samples, n_features).
    center : bool, optional
        Center data (subtract means). Default is True.
    scale : bool, optional
        Scale data to unit variance. Default is False.
    method : {'svd', 'eigen', 'nipals', 'sklearn'}
        Decomposition route. Default is 'svd' (R ``prcomp``).

    Returns
    -------
    dict
        - 'algorithm' : str - 'SVD', 'EIGEN', 'NIPALS' or 'SKLEARN'
        - 'scores' / 'x' : pd.DataFrame - component scores
        - 'loadings' / 'rotation' : pd.DataFrame - unit-length loadings
        - 'sdev' : np.ndarray - component standard deviations
        - 'eigenvalues' / 'explained_variance' : np.ndarray - sdev ** 2
        - 'explained_variance_ratio' : np.ndarray - share of total variance
        - 'cumulative_variance' : np.ndarray - running share
        - 'total_variance' : float - trace of the covariance matrix
        - 'center' / 'scale' : pd.Series or False (R convention)
        - 'means' / 'stds' : np.ndarray - preprocessing actually applied
        - 'centering' / 'scaling' : bool
        - 'n_components', 'n_samples', 'n_features' : int

    Raises
    ------
    ValueError
        If input validation fails.

    Examples
    --------
    >>> X = np.random.default_rng(0).normal(size=(100, 6))
    >>> results = compute_pca(X, n_components=3, scale=True)
    >>> results['scores'].shape
    (100, 3)
    """
    method = method.lower()
    if method not in PCA_METHODS:
        raise ValueError(f"Unknown PCA method '{method}', expected one of {PCA_METHODS}")

    if isinstance(X, pd.DataFrame):
        non_numeric = X.select_dtypes(exclude=[np.number]).columns
        if len(non_numeric) > 0:
            raise ValueError(
                f"DataFrame contains non-numeric columns: {list(non_numeric)}"
            )

    X_df = _as_frame(X)
    n_samples, n_features = X_df.shape

    if n_samples == 0 or n_features == 0:
        raise ValueError(f"Empty data matrix: {n_samples} samples, {n_features} features")
    if n_samples < 2:
        raise ValueError(f"PCA needs at least 2 samples, got {n_samples}")

    if method != 'nipals' and X_df.isna().to_numpy().any():
        raise ValueError(
            "Data contains missing values; drop incomplete rows or use method='nipals'"
        )

    n_components = _resolve_n_components(n_components, n_samples, n_features)

    logger.debug(
        "Computing PCA: method=%s n=%d p=%d k=%d center=%s scale=%s",
        method, n_samples, n_features, n_components, center, scale
    )

    if method == 'svd':
        return prcomp(X_df, center=center, scale=scale, n_components=n_components)
    if method == 'eigen':
        return pca_via_eigen(X_df, center=center, scale=scale, n_components=n_components)
    if method == 'nipals':
        return nipals_pca(X_df, n_components=n_components, center=center, scale=scale)
    return sklearn_pca(X_df, center=center, scale=scale, n_components=n_components)


def compare_methods(
    X: ArrayLike,
    n_components: int = 2,
    center: bool = True,
    scale: bool = False,
    methods: Tuple[str, ...] = PCA_METHODS
) -> pd.DataFrame:
    """
    Run every decomposition route and measure its distance to the SVD result.

    Loadings and scores are sign-aligned column by column before comparing,
    since each component is only defined up to sign.

    Returns
    -------
    pd.DataFrame
        One row per method with columns 'Method', 'Algorithm',
        'Max eigenvalue difference', 'Max loading difference' and
        'Max score difference'.
    """
    reference = compute_pca(X, n_components=n_components, center=center,
                            scale=scale, method='svd')
    ref_loadings = reference['loadings'].to_numpy()
    ref_scores = reference['scores'].to_numpy()

    rows = []
    for method in methods:
        if method == 'sklearn' and not center:
            logger.info("Skipping sklearn in comparison: it always centers")
            continue
        res = compute_pca(X, n_components=n_components, center=center,
                          scale=scale, method=method)
        loadings = res['loadings'].to_numpy()
        scores = res['scores'].to_numpy()

        signs = np.sign(np.sum(loadings * ref_loadings, axis=0))
        signs[signs == 0] = 1.0

        rows.append({
            'Method': method,
            'Algorithm': res['algorithm'],
            'Max eigenvalue difference': float(np.max(np.abs(
                res['eigenvalues'] - reference['eigenvalues']))),
            'Max loading difference': float(np.max(np.abs(
                loadings * signs - ref_loadings))),
            'Max score difference': float(np.max(np.abs(
                scores * signs - ref_scores))),
        })

    return pd.DataFrame(rows)


# ============================================================================
# RECONSTRUCTION
# ============================================================================

def reconstruct(
    pca_results: Dict[str, Any],
    n_components: Optional[int] = None
) -> pd.DataFrame:
    """
    Rebuild the data from the first k components, in original units.

    X_hat = (T_k P_k^T) * stds + means
    """
    k = n_components if n_components is not None else pca_results['n_components']
    if k < 1 or k > pca_results['n_components']:
        raise ValueError(
            f"n_components must be between 1 and {pca_results['n_components']}, got {k}"
        )

    scores = pca_results['scores']
    loadings = pca_results['loadings']
    approx = scores.to_numpy()[:, :k] @ loadings.to_numpy()[:, :k].T
    approx = approx * pca_results['stds'] + pca_results['means']
    return pd.DataFrame(approx, index=scores.index, columns=loadings.index)


def reconstruction_error(X: ArrayLike, pca_results: Dict[str, Any]) -> pd.DataFrame:
    """
    Reconstruction error for every k up to the fitted number of components.

    Returns
    -------
    pd.DataFrame
        Columns 'n_components', 'rmse' (original units) and 'variance_lost'
        (share of total preprocessed variance not captured).
    """
    X_df = _as_frame(X)
    rows = []
    for k in range(1, pca_results['n_components'] + 1):
        approx = reconstruct(pca_results, k)
        rmse = float(np.sqrt(np.mean((X_df.to_numpy() - approx.to_numpy()) ** 2)))
        lost = float(max(0.0, 1.0 - pca_results['cumulative_variance'][k - 1]))
        rows.append({'n_components': k, 'rmse': rmse, 'variance_lost': lost})
    return pd.DataFrame(rows)


# ============================================================================
# SUMMARIES
# ============================================================================

def calculate_variance_metrics(eigenvalues: np.ndarray) -> Dict[str, Any]:
    """
    Calculate variance explained metrics from a full set of eigenvalues.

    Returns
    -------
    dict
        'explained_variance', 'explained_variance_ratio',
        'cumulative_variance', 'total_variance'
    """
    eigenvalues = np.asarray(eigenvalues, dtype=float)
    total_variance = float(np.sum(eigenvalues))

    if total_variance > 0:
        explained_variance_ratio = eigenvalues / total_variance
    else:
        explained_variance_ratio = np.zeros_like(eigenvalues)

    return {
        'explained_variance': eigenvalues,
        'explained_variance_ratio': explained_variance_ratio,
        'cumulative_variance': np.cumsum(explained_variance_ratio),
        'total_variance': total_variance
    }


def importance_table(pca_results: Dict[str, Any]) -> pd.DataFrame:
    """The 'Importance of components' table printed by R's summary(prcomp)."""
    return pd.DataFrame(
        [
            pca_results['sdev'],
            pca_results['explained_variance_ratio'],
            pca_results['cumulative_variance'],
        ],
        index=['Standard deviation', 'Proportion of Variance', 'Cumulative Proportion'],
        columns=pca_results['loadings'].columns,
    )


def structure_loadings(pca_results: Dict[str, Any]) -> pd.DataFrame:
    """
    Loadings scaled by component standard deviation (rotation * sdev).

    On standardized data these are the correlations between each variable
    and each component.
    """
    return pca_results['loadings'] * pca_results['sdev']


def calculate_variable_variance_explained(
    X_preprocessed: ArrayLike,
    scores: ArrayLike,
    loadings: ArrayLike,
    n_components: int
) -> pd.DataFrame:
    """
    Share of each variable's variance reproduced by the first k components.

    varexpl_j = 1 - sum((X_j - X_hat_j)^2) / sum(X_j^2), X_hat = T_k P_k^T

    For standardized data this is the communality of the variable.

    Returns
    -------
    pd.DataFrame
        'Variable' and 'Variance_Explained_Ratio' (0-1), original order.
    """
    X_df = _as_frame(X_preprocessed)
    T_array = np.asarray(scores, dtype=float)
    P_array = np.asarray(loadings, dtype=float)

    X_array = X_df.to_numpy()
    reconstructed = T_array[:, :n_components] @ P_array[:, :n_components].T
    unexplained = np.sum((X_array - reconstructed) ** 2, axis=0)
    total = np.sum(X_array ** 2, axis=0)

    explained = np.zeros(X_array.shape[1])
    non_zero = total > 1e-10
    explained[non_zero] = 1 - unexplained[non_zero] / total[non_zero]

    return pd.DataFrame({
        'Variable': list(X_df.columns),
        'Variance_Explained_Ratio': np.clip(explained, 0, 1)
    })


# ============================================================================
# ROTATION
# ============================================================================

def _varimax_criterion(columns: np.ndarray) -> np.ndarray:
    """Raw varimax criterion summed over the last axis pair of columns."""
    p = columns.shape[-1]
    squared = columns ** 2
    return np.sum(np.sum(squared ** 2, axis=-1) - np.sum(squared, axis=-1) ** 2 / p,
                  axis=-1)


def varimax_rotation(
    loadings: ArrayLike,
    normalize: bool = True,
    max_iter: int = VARIMAX_MAX_ITER,
    tol: float = VARIMAX_TOLERANCE
) -> Tuple[ArrayLike, int]:
    """
    Varimax rotation by pairwise planar rotations.

    Every pair of components is rotated by the angle that maximizes the
    varimax criterion (Kaiser, 1958), chosen by a grid search over
    [-45, 45] degrees. Sweeps repeat until no pair improves by more than
    ``tol``.

    Parameters
    ----------
    loadings : np.ndarray or pd.DataFrame
        Loading matrix (n_variables, n_components), at least 2 x 2.
    normalize : bool, optional
        Kaiser normalization: rows are scaled to unit communality before
        rotating and scaled back afterwards. Default True (as R's varimax).
    max_iter : int, optional
        Maximum number of sweeps.
    tol : float, optional
        Minimum criterion gain counted as an improvement.

    Returns
    -------
    rotated : np.ndarray or pd.DataFrame
        Rotated loadings, same type as input, columns ordered by sum of
        squared loadings (descending) and labelled RC1..RCk for frames.
    iterations : int
        Number of sweeps performed.
    """
    if loadings is None:
        raise ValueError("Loadings matrix cannot be None")

    is_dataframe = isinstance(loadings, pd.DataFrame)
    L = loadings.to_numpy(dtype=float) if is_dataframe else np.asarray(loadings, dtype=float)

    if L.ndim != 2:
        raise ValueError(f"Loadings must be 2-dimensional, got shape {L.shape}")
    n_vars, n_factors = L.shape
    if n_vars < 2:
        raise ValueError(f"Need at least 2 variables for Varimax rotation, got {n_vars}")
    if n_factors < 2:
        raise ValueError(f"Need at least 2 factors for Varimax rotation, got {n_factors}")

    if normalize:
        communality = np.sqrt(np.sum(L ** 2, axis=1))
        communality[communality == 0] = 1.0
        L = L / communality[:, None]

    # Factors as rows for the pairwise sweep
    prl = L.T.copy()
    angles = np.deg2rad(np.arange(-45.0, 45.0 + VARIMAX_ANGLE_STEP / 2, VARIMAX_ANGLE_STEP))
    cos_a = np.cos(angles)[:, None]
    sin_a = np.sin(angles)[:, None]

    iteration = 0
    while iteration < max_iter:
        iteration += 1
        improvement_found = False

        for i in range(n_factors - 1):
            for j in range(i + 1, n_factors):
                row_i, row_j = prl[i], prl[j]
                current = _varimax_criterion(np.stack([row_i, row_j])[None, :, :])[0]

                rotated_i = cos_a * row_i - sin_a * row_j
                rotated_j = sin_a * row_i + cos_a * row_j
                criteria = _varimax_criterion(np.stack([rotated_i, rotated_j], axis=1))

                best = int(np.argmax(criteria))
                if criteria[best] > current + tol:
                    prl[i] = rotated_i[best]
                    prl[j] = rotated_j[best]
                    improvement_found = True

        if not improvement_found:
            break

    rotated = prl.T
    if normalize:
        rotated = rotated * communality[:, None]

    order = np.argsort(-np.sum(rotated ** 2, axis=0))
    rotated, _ = _sign_normalize(rotated[:, order])

    logger.debug("Varimax converged after %d sweeps", iteration)

    if is_dataframe:
        rotated = pd.DataFrame(rotated, index=loadings.index,
                               columns=_pc_names(n_factors, prefix='RC'))
    return rotated, iteration
