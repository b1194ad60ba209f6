import numpy as np
import pandas as pd
import plotly.graph_objects as go
import pytest

from pca_tools import compute_pca
from spring_utils import (
    simulate_spring,
    camera_from_angles,
    default_cameras,
    record_cameras,
    generate_spring_dataset,
    signal_to_noise_ratio,
    redundancy_examples,
    recovered_signal,
    plot_camera_views,
    plot_position_over_time,
    plot_redundancy_panels,
    plot_recovered_signal,
)


def test_simulate_spring_simple_harmonic_motion():
    motion = simulate_spring(n_samples=101, duration=2.0, amplitude=2.0, frequency=0.5)

    assert list(motion.columns) == ['time', 'position']
    assert motion['time'].iloc[-1] == pytest.approx(2.0)
    assert motion['position'].iloc[0] == pytest.approx(2.0)
    # Half a period after the start the mass is at the other extreme
    assert motion['position'].iloc[50] == pytest.approx(-2.0)


def test_simulate_spring_damping_shrinks_amplitude():
    motion = simulate_spring(n_samples=400, duration=10.0, damping=0.3)
    first = motion['position'].abs().iloc[:40].max()
    last = motion['position'].abs().iloc[-40:].max()
    assert last < 0.2 * first


@pytest.mark.parametrize("kwargs", [
    {'n_samples': 1},
    {'duration': 0},
    {'damping': -0.1},
])
def test_simulate_spring_validation(kwargs):
    with pytest.raises(ValueError):
        simulate_spring(**kwargs)


def test_camera_basis_is_orthonormal():
    for cam in default_cameras():
        basis = np.stack([cam['direction'], cam['u'], cam['v']])
        np.testing.assert_allclose(basis @ basis.T, np.eye(3), atol=1e-12)
    assert [cam['name'] for cam in default_cameras()] == ['A', 'B', 'C']


def test_camera_from_angles_keeps_offset():
    cam = camera_from_angles(90.0, 0.0, name='top', offset=(1.0, -1.0))
    np.testing.assert_allclose(cam['direction'], [0.0, 1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(cam['offset'], [1.0, -1.0])


def test_record_cameras_without_noise_is_rank_one():
    positions = np.linspace(-1, 1, 50)
    recording = record_cameras(positions, noise_sd=0.0)

    assert list(recording.columns) == ['xA', 'yA', 'xB', 'yB', 'xC', 'yC']
    centered = recording - recording.mean()
    assert np.linalg.matrix_rank(centered.to_numpy(), tol=1e-9) == 1


def test_record_cameras_validation():
    with pytest.raises(ValueError, match="noise_sd"):
        record_cameras([0.0, 1.0], noise_sd=-1)
    with pytest.raises(ValueError, match="direction"):
        record_cameras([0.0, 1.0], direction=(0, 0, 0))


def test_generate_spring_dataset(spring_data):
    recording, truth = spring_data

    assert recording.shape == (200, 6)
    assert recording.index.name == 'time'
    assert truth.name == 'position'
    assert truth.index.equals(recording.index)


def test_generate_spring_dataset_is_reproducible():
    first, _ = generate_spring_dataset(n_samples=50, seed=9)
    second, _ = generate_spring_dataset(n_samples=50, seed=9)
    pd.testing.assert_frame_equal(first, second)


def test_pca_finds_one_dimension(spring_data):
    recording, truth = spring_data
    results = compute_pca(recording)

    assert results['explained_variance_ratio'][0] > 0.95
    assert recovered_signal(results, truth) > 0.99


def test_spring_direction_does_not_matter():
    recording, truth = generate_spring_dataset(n_samples=200, seed=3, direction=(0, 0, 1))
    results = compute_pca(recording)
    assert recovered_signal(results, truth) > 0.99


def test_signal_to_noise_ratio():
    rng = np.random.default_rng(0)
    signal = rng.normal(size=1000)
    clean = np.column_stack([signal, 2 * signal + rng.normal(scale=0.1, size=1000)])
    noisy = np.column_stack([signal, 2 * signal + rng.normal(scale=2.0, size=1000)])

    assert signal_to_noise_ratio(clean) > signal_to_noise_ratio(noisy) > 1
    assert signal_to_noise_ratio(np.column_stack([signal, signal])) == float('inf')

    with pytest.raises(ValueError, match="n, 2"):
        signal_to_noise_ratio(np.zeros((10, 3)))


def test_redundancy_examples_are_ordered():
    examples = redundancy_examples(n=500, seed=1)

    assert list(examples.columns) == ['redundancy', 'r1', 'r2']
    r = {
        level: abs(np.corrcoef(group['r1'], group['r2'])[0, 1])
        for level, group in examples.groupby('redundancy')
    }
    assert r['low'] < 0.2
    assert r['low'] < r['medium'] < r['high']
    assert r['high'] > 0.99


def test_recovered_signal_length_mismatch(spring_data):
    recording, truth = spring_data
    with pytest.raises(ValueError, match="differ in length"):
        recovered_signal(compute_pca(recording), truth.iloc[:10])


def test_spring_plots(spring_data):
    recording, truth = spring_data
    results = compute_pca(recording)

    fig = plot_camera_views(recording)
    assert isinstance(fig, go.Figure)
    assert len(fig.data) == 3

    fig = plot_position_over_time(recording, truth)
    assert fig.data[-1].name == 'True position'
    assert len(fig.data) == 7

    fig = plot_redundancy_panels(redundancy_examples(seed=0))
    assert len(fig.data) == 3
    assert 'r = ' in fig.layout.annotations[0].text

    fig = plot_recovered_signal(results, truth)
    # PC1 is flipped to follow the true position
    assert np.corrcoef(fig.data[0].y, fig.data[1].y)[0, 1] > 0.99


def test_camera_views_need_paired_columns(spring_data):
    recording, _ = spring_data
    with pytest.raises(ValueError, match="paired"):
        plot_camera_views(recording.drop(columns=['yB']))
