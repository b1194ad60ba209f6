"""
PCA Assumption Checks

Is the data worth reducing? Checks run before the case-study PCA:

- correlation matrix (are the variables related at all?)
- Kaiser-Meyer-Olkin measure of sampling adequacy (overall and per item)
- Bartlett's test of sphericity (is R different from the identity?)
- sample size relative to the number of variables
"""

import logging

import numpy as np
import pandas as pd
from scipy import stats
from typing import Dict, Any, Optional, Union

from .config import BARTLETT_ALPHA, KMO_BANDS, KMO_MINIMUM, MIN_SAMPLE_RATIO, SINGULAR_TOLERANCE

logger = logging.getLogger(__name__)

CORRELATION_METHODS = ('pearson', 'spearman', 'kendall')


def _numeric(X: Union[pd.DataFrame, np.ndarray]) -> pd.DataFrame:
    if isinstance(X, pd.DataFrame):
        return X.select_dtypes(include=[np.number]).astype(float)
    X_array = np.asarray(X, dtype=float)
    return pd.DataFrame(X_array, columns=[f'Var{i+1}' for i in range(X_array.shape[1])])


def correlation_matrix(
    X: Union[pd.DataFrame, np.ndarray],
    method: str = 'pearson'
) -> pd.DataFrame:
    """
    Correlation matrix of the numeric columns (pairwise complete observations).

    Parameters
    ----------
    X : pd.DataFrame or np.ndarray
        Data matrix; non-numeric columns are ignored.
    method : {'pearson', 'spearman', 'kendall'}
        Correlation coefficient. Default 'pearson'.
    """
    if method not in CORRELATION_METHODS:
        raise ValueError(f"Unknown correlation method '{method}', expected one of {CORRELATION_METHODS}")

    data = _numeric(X)
    if data.shape[1] < 2:
        raise ValueError(f"Need at least 2 numeric variables, got {data.shape[1]}")
    return data.corr(method=method)


def top_correlations(R: pd.DataFrame, n_top: int = 10) -> pd.DataFrame:
    """
    Strongest off-diagonal correlations, ranked by absolute value.

    Returns
    -------
    pd.DataFrame
        Columns 'Variable 1', 'Variable 2', 'r'.
    """
    values = R.to_numpy()
    rows, cols = np.triu_indices_from(values, k=1)
    pairs = pd.DataFrame({
        'Variable 1': R.index[rows],
        'Variable 2': R.columns[cols],
        'r': values[rows, cols],
    })
    order = pairs['r'].abs().sort_values(ascending=False).index
    return pairs.loc[order].head(n_top).reset_index(drop=True)


def _as_correlation(X_or_R, is_correlation: bool) -> pd.DataFrame:
    if is_correlation:
        if isinstance(X_or_R, pd.DataFrame):
            R = X_or_R.astype(float)
        else:
            values = np.asarray(X_or_R, dtype=float)
            labels = [f'Var{i+1}' for i in range(values.shape[0])]
            R = pd.DataFrame(values, index=labels, columns=labels)
        if R.shape[0] != R.shape[1]:
            raise ValueError(f"Correlation matrix must be square, got shape {R.shape}")
        return R
    return correlation_matrix(X_or_R)


def _check_invertible(R: pd.DataFrame, test_name: str) -> None:
    """Raise ValueError unless R is finite and positive definite."""
    values = R.to_numpy()
    finite = np.isfinite(values)
    if not finite.all():
        n_bad = (~finite).sum(axis=0)
        worst = [str(col) for col, count in zip(R.columns, n_bad) if count == n_bad.max()]
        raise ValueError(
            f"{test_name} is undefined: correlations of {worst} are not finite "
            f"(zero-variance or empty column)"
        )

    smallest = float(np.linalg.eigvalsh(values).min())
    if smallest <= SINGULAR_TOLERANCE:
        raise ValueError(
            f"Correlation matrix is singular (smallest eigenvalue {smallest:.2e}); "
            f"{test_name} needs linearly independent variables"
        )


def kmo_label(value: float) -> str:
    """Kaiser (1974) verbal label for a KMO / MSA value."""
    for lower, label in KMO_BANDS:
        if value >= lower:
            return label
    return KMO_BANDS[-1][1]


def kmo_test(X_or_R, is_correlation: bool = False) -> Dict[str, Any]:
    """
    Kaiser-Meyer-Olkin measure of sampling adequacy.

    Compares the size of the observed correlations with the size of the
    partial correlations (each pair controlling for all other variables).
    When variables share common components the partial correlations are
    small and KMO approaches 1.

    Parameters
    ----------
    X_or_R : pd.DataFrame or np.ndarray
        Raw data (default) or a correlation matrix.
    is_correlation : bool, optional
        Set when ``X_or_R`` is already a correlation matrix.

    Returns
    -------
    dict
        - 'overall' : float - overall KMO
        - 'per_variable' : pd.Series - MSA of each variable
        - 'label' : str - Kaiser's label of the overall value

    Raises
    ------
    ValueError
        If the correlation matrix is singular or has non-finite entries
        (a constant variable).

    Notes
    -----
    With R the correlation matrix and Q = R^-1, partial correlations are

    .. math::
        a_{ij} = -q_{ij} / \\sqrt{q_{ii} q_{jj}}

    and over the off-diagonal entries

    .. math::
        KMO = \\frac{\\sum r_{ij}^2}{\\sum r_{ij}^2 + \\sum a_{ij}^2}

    The per-variable MSA restricts both sums to row j.
    """
    R = _as_correlation(X_or_R, is_correlation)
    _check_invertible(R, "KMO")
    values = R.to_numpy()
    inverse = np.linalg.inv(values)

    scale = np.sqrt(np.outer(np.diag(inverse), np.diag(inverse)))
    partial = -inverse / scale
    np.fill_diagonal(partial, 0.0)

    r_squared = values ** 2
    np.fill_diagonal(r_squared, 0.0)
    partial_squared = partial ** 2

    per_variable = r_squared.sum(axis=0) / (r_squared.sum(axis=0) + partial_squared.sum(axis=0))
    overall = float(r_squared.sum() / (r_squared.sum() + partial_squared.sum()))

    label = kmo_label(overall)
    logger.info("KMO = %.3f (%s)", overall, label)
    if overall < KMO_MINIMUM:
        logger.warning("KMO %.3f is below %.2f; PCA may not be appropriate", overall, KMO_MINIMUM)

    return {
        'overall': overall,
        'per_variable': pd.Series(per_variable, index=R.index, name='MSA'),
        'label': label,
    }


def bartlett_sphericity_test(
    X_or_R,
    n_samples: Optional[int] = None,
    alpha: float = BARTLETT_ALPHA
) -> Dict[str, Any]:
    """
    Bartlett's test of sphericity: H0 says the correlation matrix is I.

    Parameters
    ----------
    X_or_R : pd.DataFrame or np.ndarray
        Raw data, or a correlation matrix when ``n_samples`` is given.
    n_samples : int, optional
        Sample size behind a correlation matrix. When omitted the input is
        treated as raw data.
    alpha : float, optional
        Significance level for ``reject_h0``. Default 0.05.

    Returns
    -------
    dict
        'chi_square', 'df', 'p_value', 'reject_h0', 'n_samples', 'n_variables'

    Raises
    ------
    ValueError
        If the correlation matrix is singular or has non-finite entries.

    Notes
    -----
    .. math::
        \\chi^2 = -\\left(n - 1 - \\frac{2p + 5}{6}\\right) \\ln |R|,
        \\quad df = \\frac{p(p - 1)}{2}
    """
    if n_samples is None:
        data = _numeric(X_or_R).dropna()
        n_samples = data.shape[0]
        R = correlation_matrix(data)
    else:
        R = _as_correlation(X_or_R, is_correlation=True)

    n_variables = R.shape[0]
    if n_samples < 2:
        raise ValueError(f"Bartlett's test needs at least 2 samples, got {n_samples}")

    _check_invertible(R, "Bartlett's test")
    _, log_det = np.linalg.slogdet(R.to_numpy())

    chi_square = float(-(n_samples - 1 - (2 * n_variables + 5) / 6) * log_det)
    df = n_variables * (n_variables - 1) / 2
    p_value = float(stats.chi2.sf(chi_square, df))

    logger.info("Bartlett chi2(%d) = %.2f, p = %.3g", int(df), chi_square, p_value)

    return {
        'chi_square': chi_square,
        'df': int(df),
        'p_value': p_value,
        'reject_h0': p_value < alpha,
        'n_samples': int(n_samples),
        'n_variables': int(n_variables),
    }


def sample_size_adequacy(
    X: Union[pd.DataFrame, np.ndarray],
    min_ratio: float = MIN_SAMPLE_RATIO
) -> Dict[str, Any]:
    """Observations per variable, with the usual rule of thumb (>= 5)."""
    data = _numeric(X)
    n_samples, n_variables = data.shape
    ratio = n_samples / n_variables if n_variables else 0.0
    return {
        'n_samples': int(n_samples),
        'n_variables': int(n_variables),
        'ratio': float(ratio),
        'adequate': ratio >= min_ratio,
    }


def check_assumptions(
    X: Union[pd.DataFrame, np.ndarray],
    alpha: float = BARTLETT_ALPHA
) -> Dict[str, Any]:
    """
    Run every pre-PCA check on complete cases of the numeric columns.

    Returns
    -------
    dict
        'correlation', 'kmo', 'bartlett', 'sample_size', 'n_dropped' and
        'suitable' (KMO >= 0.6 and Bartlett rejects sphericity).
    """
    data = _numeric(X)
    complete = data.dropna()
    n_dropped = data.shape[0] - complete.shape[0]
    if n_dropped:
        logger.warning("Dropped %d incomplete rows before assumption checks", n_dropped)

    R = correlation_matrix(complete)
    kmo = kmo_test(R, is_correlation=True)
    bartlett = bartlett_sphericity_test(R, n_samples=complete.shape[0], alpha=alpha)
    sample_size = sample_size_adequacy(complete)

    suitable = kmo['overall'] >= KMO_MINIMUM and bartlett['reject_h0']
    logger.info("Data %s suitable for PCA", "is" if suitable else "is not")

    return {
        'correlation': R,
        'kmo': kmo,
        'bartlett': bartlett,
        'sample_size': sample_size,
        'n_dropped': int(n_dropped),
        'suitable': bool(suitable),
    }
