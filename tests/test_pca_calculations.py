import numpy as np
import pandas as pd
import pytest

from pca_tools import (
    preprocess,
    covariance_matrix,
    eigen_decomposition,
    compute_pca,
    compare_methods,
    reconstruct,
    reconstruction_error,
    calculate_variance_metrics,
    importance_table,
    structure_loadings,
    calculate_variable_variance_explained,
    varimax_rotation,
    prcomp,
    pca_via_eigen,
    nipals_pca,
    sklearn_pca,
)


def test_preprocess_centers_and_scales(low_rank_data):
    X_proc, means, stds = preprocess(low_rank_data, center=True, scale=True)

    np.testing.assert_allclose(X_proc.mean().to_numpy(), 0.0, atol=1e-12)
    np.testing.assert_allclose(X_proc.std(ddof=1).to_numpy(), 1.0)
    np.testing.assert_allclose(means, low_rank_data.mean().to_numpy())
    assert list(X_proc.columns) == list(low_rank_data.columns)


def test_preprocess_leaves_constant_column_unscaled():
    df = pd.DataFrame({'a': [1.0, 2.0, 3.0, 4.0], 'b': [7.0, 7.0, 7.0, 7.0]})
    X_proc, _, stds = preprocess(df, center=True, scale=True)

    assert stds[1] == 1.0
    np.testing.assert_allclose(X_proc['b'].to_numpy(), 0.0)


def test_covariance_matrix_matches_numpy(low_rank_data):
    C = covariance_matrix(low_rank_data)
    np.testing.assert_allclose(C.to_numpy(), np.cov(low_rank_data.to_numpy(), rowvar=False))


def test_eigen_decomposition_sorted_and_orthonormal(low_rank_data):
    eig = eigen_decomposition(covariance_matrix(low_rank_data))
    values = eig['eigenvalues']
    P = eig['eigenvectors'].to_numpy()

    assert np.all(np.diff(values) <= 0)
    np.testing.assert_allclose(P.T @ P, np.eye(6), atol=1e-10)


def test_eigen_decomposition_rejects_asymmetric_matrix():
    with pytest.raises(ValueError, match="symmetric"):
        eigen_decomposition(np.array([[1.0, 0.5], [0.1, 1.0]]))


def test_compute_pca_eigenvalues_match_covariance(low_rank_data):
    results = compute_pca(low_rank_data)
    expected = np.sort(np.linalg.eigvalsh(np.cov(low_rank_data.to_numpy(), rowvar=False)))[::-1]

    assert results['algorithm'] == 'SVD'
    assert results['scores'].shape == (200, 6)
    np.testing.assert_allclose(results['eigenvalues'], expected, rtol=1e-10)
    np.testing.assert_allclose(results['sdev'] ** 2, results['eigenvalues'])
    assert results['cumulative_variance'][-1] == pytest.approx(1.0)


def test_compute_pca_scores_are_uncorrelated(low_rank_data):
    results = compute_pca(low_rank_data, scale=True)
    C_T = np.cov(results['scores'].to_numpy(), rowvar=False)

    np.testing.assert_allclose(C_T, np.diag(results['eigenvalues']), atol=1e-10)


def test_compute_pca_loadings_sign_convention(low_rank_data):
    loadings = compute_pca(low_rank_data)['loadings'].to_numpy()
    largest = loadings[np.argmax(np.abs(loadings), axis=0), np.arange(loadings.shape[1])]

    assert np.all(largest > 0)


def test_compute_pca_truncated_reports_share_of_total(low_rank_data):
    full = compute_pca(low_rank_data)
    truncated = compute_pca(low_rank_data, n_components=2)

    np.testing.assert_allclose(truncated['explained_variance_ratio'],
                               full['explained_variance_ratio'][:2])
    assert truncated['cumulative_variance'][-1] < 1.0
    assert truncated['cumulative_variance'][-1] > 0.95


def test_compute_pca_r_style_center_and_scale(low_rank_data):
    results = compute_pca(low_rank_data, scale=True)
    assert isinstance(results['center'], pd.Series)
    assert isinstance(results['scale'], pd.Series)

    unscaled = compute_pca(low_rank_data)
    assert unscaled['scale'] is False


@pytest.mark.parametrize("kwargs, message", [
    ({'method': 'qr'}, "Unknown PCA method"),
    ({'n_components': 7}, "cannot exceed"),
    ({'n_components': 0}, ">= 1"),
])
def test_compute_pca_validation(low_rank_data, kwargs, message):
    with pytest.raises(ValueError, match=message):
        compute_pca(low_rank_data, **kwargs)


def test_compute_pca_rejects_non_numeric_and_tiny_data(low_rank_data):
    with_text = low_rank_data.assign(label='a')
    with pytest.raises(ValueError, match="non-numeric"):
        compute_pca(with_text)
    with pytest.raises(ValueError, match="at least 2 samples"):
        compute_pca(low_rank_data.head(1))


def test_missing_values_need_nipals(low_rank_data):
    data = low_rank_data.copy()
    data.iloc[3, 2] = np.nan

    with pytest.raises(ValueError, match="missing values"):
        compute_pca(data)

    results = compute_pca(data, n_components=2, method='nipals')
    assert results['algorithm'] == 'NIPALS'
    assert len(results['n_iterations']) == 2
    assert np.all(np.isfinite(results['scores'].to_numpy()))


def test_sklearn_route_requires_centering(low_rank_data):
    with pytest.raises(ValueError, match="always centers"):
        compute_pca(low_rank_data, center=False, method='sklearn')


def test_all_methods_agree(low_rank_data):
    comparison = compare_methods(low_rank_data, n_components=2)

    assert list(comparison['Method']) == ['svd', 'eigen', 'nipals', 'sklearn']
    assert comparison['Max eigenvalue difference'].max() < 1e-4
    assert comparison['Max loading difference'].max() < 1e-4
    assert comparison['Max score difference'].max() < 1e-3


def test_compare_methods_skips_sklearn_without_centering(low_rank_data):
    comparison = compare_methods(low_rank_data, n_components=2, center=False)
    assert 'sklearn' not in set(comparison['Method'])


def test_reconstruct_with_all_components_returns_data(low_rank_data):
    results = compute_pca(low_rank_data, scale=True)
    rebuilt = reconstruct(results)

    np.testing.assert_allclose(rebuilt.to_numpy(), low_rank_data.to_numpy(), atol=1e-8)
    assert list(rebuilt.columns) == list(low_rank_data.columns)


def test_reconstruction_error_decreases(low_rank_data):
    errors = reconstruction_error(low_rank_data, compute_pca(low_rank_data))

    assert list(errors['n_components']) == [1, 2, 3, 4, 5, 6]
    assert np.all(np.diff(errors['rmse']) <= 1e-12)
    assert errors['rmse'].iloc[-1] == pytest.approx(0.0, abs=1e-8)
    # Two latent variables: two components leave only the noise
    assert errors['rmse'].iloc[1] < 0.15


def test_reconstruct_rejects_out_of_range_k(low_rank_data):
    results = compute_pca(low_rank_data, n_components=2)
    with pytest.raises(ValueError):
        reconstruct(results, 3)
    with pytest.raises(ValueError, match="between 1 and 2"):
        reconstruct(results, 0)


@pytest.mark.parametrize("route", [prcomp, pca_via_eigen, nipals_pca, sklearn_pca])
def test_routes_reject_zero_components(low_rank_data, route):
    with pytest.raises(ValueError, match="n_components must be >= 1"):
        route(low_rank_data, n_components=0)


def test_variance_metrics():
    metrics = calculate_variance_metrics(np.array([3.0, 1.0]))
    np.testing.assert_allclose(metrics['explained_variance_ratio'], [0.75, 0.25])
    np.testing.assert_allclose(metrics['cumulative_variance'], [0.75, 1.0])
    assert metrics['total_variance'] == 4.0


def test_importance_table_layout(low_rank_data):
    table = importance_table(compute_pca(low_rank_data, n_components=3))

    assert list(table.index) == ['Standard deviation', 'Proportion of Variance', 'Cumulative Proportion']
    assert list(table.columns) == ['PC1', 'PC2', 'PC3']


def test_structure_loadings_are_correlations(low_rank_data):
    results = compute_pca(low_rank_data, scale=True)
    structure = structure_loadings(results)

    r = np.corrcoef(low_rank_data['x1'], results['scores']['PC1'])[0, 1]
    assert structure.loc['x1', 'PC1'] == pytest.approx(r, abs=1e-10)


def test_variable_variance_explained(low_rank_data):
    results = compute_pca(low_rank_data, scale=True)
    X_proc, _, _ = preprocess(low_rank_data, scale=True)
    table = calculate_variable_variance_explained(
        X_proc, results['scores'], results['loadings'], n_components=6)

    assert list(table['Variable']) == list(low_rank_data.columns)
    np.testing.assert_allclose(table['Variance_Explained_Ratio'], 1.0)


def test_varimax_recovers_simple_structure():
    simple = np.array([
        [0.8, 0.0], [0.8, 0.0], [0.8, 0.0],
        [0.0, 0.7], [0.0, 0.7], [0.0, 0.7],
    ])
    angle = np.deg2rad(30)
    rotation = np.array([[np.cos(angle), -np.sin(angle)], [np.sin(angle), np.cos(angle)]])
    mixed = pd.DataFrame(simple @ rotation, index=[f'v{i}' for i in range(6)])

    rotated, iterations = varimax_rotation(mixed)

    assert list(rotated.columns) == ['RC1', 'RC2']
    assert iterations >= 1
    np.testing.assert_allclose(rotated.to_numpy(), simple, atol=0.01)


def test_varimax_preserves_communalities(low_rank_data):
    loadings = structure_loadings(compute_pca(low_rank_data, scale=True)).iloc[:, :3]
    rotated, _ = varimax_rotation(loadings)

    np.testing.assert_allclose((rotated ** 2).sum(axis=1), (loadings ** 2).sum(axis=1))


def test_varimax_validation():
    with pytest.raises(ValueError):
        varimax_rotation(None)
    with pytest.raises(ValueError):
        varimax_rotation(np.ones(4))
    with pytest.raises(ValueError, match="at least 2 factors"):
        varimax_rotation(np.ones((4, 1)))
