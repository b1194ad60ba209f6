import numpy as np
import pytest
from sklearn.model_selection import KFold

from pca_tools import (
    compute_pca,
    kaiser_criterion,
    cumulative_variance_rule,
    parallel_analysis,
    cross_validate_pca,
    suggest_n_components,
)
from survey_utils import ITEMS, complete_cases


def test_kaiser_criterion():
    assert kaiser_criterion(np.array([3.2, 1.5, 1.0, 0.4])) == 2


def test_cumulative_variance_rule():
    cumulative = np.array([0.5, 0.75, 0.8, 0.9, 1.0])
    assert cumulative_variance_rule(cumulative, 0.8) == 3
    assert cumulative_variance_rule(cumulative, 0.5) == 1
    assert cumulative_variance_rule(np.array([0.4, 0.6]), 0.9) == 2


def test_cumulative_variance_rule_rejects_percentages():
    with pytest.raises(ValueError, match="target"):
        cumulative_variance_rule(np.array([0.5, 1.0]), 80)


def test_parallel_analysis_finds_five_traits(questionnaire):
    items = complete_cases(questionnaire)[ITEMS]
    result = parallel_analysis(items, n_iter=20, seed=3)

    assert result['n_components'] == 5
    table = result['table']
    assert list(table.columns) == ['Component', 'Observed', 'Random mean', 'Random percentile']
    assert len(table) == 25
    assert table['Observed'].sum() == pytest.approx(25.0)


def test_parallel_analysis_is_reproducible(low_rank_data):
    first = parallel_analysis(low_rank_data, n_iter=10, seed=7)
    second = parallel_analysis(low_rank_data, n_iter=10, seed=7)
    np.testing.assert_allclose(first['table']['Random percentile'], second['table']['Random percentile'])


def test_parallel_analysis_validation(low_rank_data):
    with pytest.raises(ValueError):
        parallel_analysis(low_rank_data, n_iter=0)


def test_cross_validation_improves_with_components(low_rank_data):
    cv = cross_validate_pca(low_rank_data, max_components=4, n_folds=5)

    assert list(cv['n_components']) == [1, 2, 3, 4]
    assert cv['PRESS'][1] < cv['PRESS'][0]
    assert cv['Q2'][1] > 0.95
    assert 1 <= cv['optimal_components'] <= 4


def test_cross_validation_fold_validation(low_rank_data):
    with pytest.raises(ValueError, match="n_folds"):
        cross_validate_pca(low_rank_data, max_components=2, n_folds=1)


def test_suggest_n_components(questionnaire):
    items = complete_cases(questionnaire)[ITEMS]
    pca_results = compute_pca(items, scale=True)
    suggestion = suggest_n_components(items, pca_results, target=0.5, seed=3)

    assert suggestion['kaiser_applicable']
    assert suggestion['kaiser'] >= 4
    assert suggestion['cumulative'] == cumulative_variance_rule(pca_results['cumulative_variance'], 0.5)
    assert suggestion['cumulative_target'] == 0.5
    assert len(suggestion['parallel_table']) == 25


def test_uncentered_cross_validation_uses_uncentered_loadings():
    rng = np.random.default_rng(12)
    X = rng.normal(size=(200, 4)) @ np.diag([1.0, 0.6, 0.3, 0.1]) + 50.0

    cv = cross_validate_pca(X, max_components=3, n_folds=5, center=False)

    expected = np.zeros(3)
    for train_idx, test_idx in KFold(n_splits=5).split(X):
        Vt = np.linalg.svd(X[train_idx], full_matrices=False)[2]
        for i, k in enumerate([1, 2, 3]):
            P = Vt[:k].T
            residual = X[test_idx] - X[test_idx] @ P @ P.T
            expected[i] += np.sum(residual ** 2)

    np.testing.assert_allclose(cv['PRESS'], expected, rtol=1e-8)
