import numpy as np
import pandas as pd
import plotly.graph_objects as go
import pytest

from pca_tools import (
    compute_pca,
    correlation_matrix,
    reconstruction_error,
    parallel_analysis,
    plot_scree,
    plot_cumulative_variance,
    plot_reconstruction_error,
    plot_scores,
    plot_loadings,
    plot_biplot,
    plot_correlation_heatmap,
    plot_loadings_heatmap,
    plot_projection_2d,
    variance_along_directions,
    plot_variance_along_directions,
)


@pytest.fixture
def cloud():
    """Elongated 2-D cloud whose major axis sits at 30 degrees."""
    rng = np.random.default_rng(4)
    raw = rng.normal(size=(500, 2)) * np.array([3.0, 0.5])
    angle = np.deg2rad(30)
    rotation = np.array([[np.cos(angle), np.sin(angle)], [-np.sin(angle), np.cos(angle)]])
    return pd.DataFrame(raw @ rotation, columns=['x', 'y'])


def test_scree_plot_percent_scale(low_rank_data):
    results = compute_pca(low_rank_data)
    fig = plot_scree(results['explained_variance_ratio'])

    assert isinstance(fig, go.Figure)
    np.testing.assert_allclose(fig.data[0].y, results['explained_variance_ratio'] * 100)
    assert list(fig.data[0].x) == list(results['scores'].columns)


def test_scree_plot_with_parallel_analysis(low_rank_data):
    results = compute_pca(low_rank_data, scale=True)
    parallel = parallel_analysis(low_rank_data, n_iter=5, seed=0)['table']
    fig = plot_scree(results['eigenvalues'], kind='eigenvalue', kaiser_line=True, parallel=parallel)

    assert len(fig.data) == 2
    assert fig.data[1].name == 'Parallel analysis (random)'
    assert fig.layout.yaxis.title.text == 'Eigenvalue'


def test_scree_plot_rejects_unknown_kind():
    with pytest.raises(ValueError, match="kind"):
        plot_scree(np.array([0.6, 0.4]), kind='percent')


def test_cumulative_and_reconstruction_plots(low_rank_data):
    results = compute_pca(low_rank_data)
    fig = plot_cumulative_variance(results['cumulative_variance'])
    assert fig.data[0].y[-1] == pytest.approx(100.0)

    errors = reconstruction_error(low_rank_data, results)
    fig = plot_reconstruction_error(errors)
    assert len(fig.data) == 2


def test_scores_plot_categorical_and_continuous(low_rank_data):
    results = compute_pca(low_rank_data)
    scores, ratio = results['scores'], results['explained_variance_ratio']

    groups = pd.Series(np.where(low_rank_data['x1'] > 5, 'high', 'low'), name='level')
    fig = plot_scores(scores, 'PC1', 'PC2', ratio, color_by=groups)
    assert {trace.name for trace in fig.data} == {'high', 'low'}
    assert 'level' in fig.layout.title.text

    fig = plot_scores(scores, 'PC1', 'PC2', ratio, color_by=low_rank_data['x4'])
    assert len(fig.data) == 1
    assert fig.layout.xaxis.title.text.startswith('PC1 (')


def test_loadings_and_biplot(low_rank_data):
    results = compute_pca(low_rank_data, scale=True)
    ratio = results['explained_variance_ratio']

    fig = plot_loadings(results['loadings'], 'PC1', 'PC2', ratio,
                        color_map={'x1': 'red'}, show_unit_circle=True)
    assert fig.data[1].name == 'Unit circle'
    assert fig.data[0].marker.color[0] == 'red'

    fig = plot_biplot(results['scores'], results['loadings'], 'PC1', 'PC2', ratio, max_points=50)
    assert len(fig.data[0].x) <= 50
    assert len(fig.layout.annotations) == 6


def test_heatmaps(low_rank_data):
    fig = plot_correlation_heatmap(correlation_matrix(low_rank_data))
    assert fig.data[0].zmin == -1 and fig.data[0].zmax == 1

    loadings = compute_pca(low_rank_data, scale=True)['loadings']
    fig = plot_loadings_heatmap(loadings, threshold=0.99)
    text = np.asarray(fig.data[0].text)
    assert (text == '').sum() > 0


def test_projection_arrows_start_at_mean(cloud):
    results = compute_pca(cloud)
    fig = plot_projection_2d(cloud, results)

    arrows = fig.layout.annotations
    assert [a.text for a in arrows] == ['PC1', 'PC2']
    assert arrows[0].ax == pytest.approx(cloud['x'].mean())
    assert arrows[0].ay == pytest.approx(cloud['y'].mean())


def test_projection_needs_two_columns(low_rank_data):
    with pytest.raises(ValueError, match="exactly 2 columns"):
        plot_projection_2d(low_rank_data, compute_pca(low_rank_data))


def test_variance_along_directions_peaks_on_major_axis(cloud):
    curve = variance_along_directions(cloud)

    assert curve['angle'].iloc[0] == 0 and curve['angle'].iloc[-1] == 180
    best = curve.loc[curve['variance'].idxmax(), 'angle']
    assert abs(best - 30) <= 3
    # Largest projected variance is the first eigenvalue
    assert curve['variance'].max() == pytest.approx(compute_pca(cloud)['eigenvalues'][0], rel=1e-3)


def test_variance_plot_highlights_chosen_direction(cloud):
    fig = plot_variance_along_directions(cloud, highlight_angle=90)
    assert fig.data[-1].name == 'Chosen direction'
    assert fig.data[-1].x[0] == 90
