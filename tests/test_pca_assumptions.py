import numpy as np
import pandas as pd
import pytest
from scipy import stats

from pca_tools import (
    correlation_matrix,
    top_correlations,
    kmo_test,
    kmo_label,
    bartlett_sphericity_test,
    sample_size_adequacy,
    check_assumptions,
)
from survey_utils import ITEMS, complete_cases


def test_correlation_matrix_ignores_text_columns(low_rank_data):
    R = correlation_matrix(low_rank_data.assign(label='a'))

    assert R.shape == (6, 6)
    np.testing.assert_allclose(np.diag(R), 1.0)


def test_correlation_matrix_rejects_unknown_method(low_rank_data):
    with pytest.raises(ValueError, match="Unknown correlation method"):
        correlation_matrix(low_rank_data, method='distance')


def test_top_correlations_ranked_by_magnitude(low_rank_data):
    top = top_correlations(correlation_matrix(low_rank_data), n_top=5)

    assert list(top.columns) == ['Variable 1', 'Variable 2', 'r']
    assert len(top) == 5
    assert np.all(np.diff(top['r'].abs()) <= 0)
    assert all(a != b for a, b in zip(top['Variable 1'], top['Variable 2']))


@pytest.mark.parametrize("value, label", [
    (0.95, 'marvelous'),
    (0.85, 'meritorious'),
    (0.75, 'middling'),
    (0.65, 'mediocre'),
    (0.55, 'miserable'),
    (0.30, 'unacceptable'),
])
def test_kmo_labels(value, label):
    assert kmo_label(value) == label


def test_kmo_two_variables_is_one_half():
    # With two variables the partial correlation equals the correlation
    R = np.array([[1.0, 0.6], [0.6, 1.0]])
    result = kmo_test(R, is_correlation=True)

    assert result['overall'] == pytest.approx(0.5)
    np.testing.assert_allclose(result['per_variable'], [0.5, 0.5])


def test_kmo_high_for_common_factor_data(questionnaire):
    items = complete_cases(questionnaire)[ITEMS]
    result = kmo_test(items)

    assert result['overall'] > 0.7
    assert list(result['per_variable'].index) == ITEMS
    assert result['per_variable'].name == 'MSA'


def test_kmo_singular_matrix_raises():
    R = np.ones((3, 3))
    with pytest.raises(ValueError, match="singular"):
        kmo_test(R, is_correlation=True)


def test_bartlett_formula():
    R = np.array([[1.0, 0.5, 0.3], [0.5, 1.0, 0.4], [0.3, 0.4, 1.0]])
    n = 100
    result = bartlett_sphericity_test(R, n_samples=n)

    expected = -(n - 1 - (2 * 3 + 5) / 6) * np.log(np.linalg.det(R))
    assert result['chi_square'] == pytest.approx(expected)
    assert result['df'] == 3
    assert result['p_value'] == pytest.approx(stats.chi2.sf(expected, 3))
    assert result['reject_h0']


def test_bartlett_does_not_reject_independent_data():
    rng = np.random.default_rng(5)
    data = pd.DataFrame(rng.normal(size=(300, 4)), columns=list('abcd'))
    result = bartlett_sphericity_test(data)

    assert result['n_samples'] == 300
    assert result['n_variables'] == 4
    assert result['p_value'] > 0.001


def test_bartlett_identity_matrix_gives_zero_statistic():
    result = bartlett_sphericity_test(np.eye(4), n_samples=50)
    assert result['chi_square'] == pytest.approx(0.0, abs=1e-12)
    assert result['p_value'] == pytest.approx(1.0)
    assert not result['reject_h0']


def test_bartlett_singular_matrix_raises():
    with pytest.raises(ValueError, match="singular"):
        bartlett_sphericity_test(np.ones((3, 3)), n_samples=50)


def test_sample_size_adequacy():
    result = sample_size_adequacy(np.zeros((20, 5)))
    assert result['ratio'] == 4.0
    assert not result['adequate']


def test_check_assumptions_on_questionnaire(questionnaire):
    checks = check_assumptions(questionnaire[ITEMS])

    assert checks['suitable']
    assert checks['bartlett']['reject_h0']
    assert checks['n_dropped'] == int(questionnaire[ITEMS].isna().any(axis=1).sum())
    assert checks['correlation'].shape == (25, 25)


@pytest.fixture
def independent_items():
    rng = np.random.default_rng(8)
    return pd.DataFrame(rng.normal(size=(200, 4)), columns=list('abcd'))


def test_constant_item_is_rejected(independent_items):
    data = independent_items.assign(e=3.0)

    with pytest.raises(ValueError, match=r"KMO is undefined.*'e'"):
        kmo_test(data)
    with pytest.raises(ValueError, match=r"Bartlett's test is undefined.*'e'"):
        bartlett_sphericity_test(data)
    with pytest.raises(ValueError, match="not finite"):
        check_assumptions(data)


def test_collinear_item_is_rejected(independent_items):
    data = independent_items.assign(e=2 * independent_items['a'] + independent_items['b'])

    with pytest.raises(ValueError, match="singular"):
        kmo_test(data)
    with pytest.raises(ValueError, match="singular"):
        bartlett_sphericity_test(data)
