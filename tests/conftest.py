"""Shared fixtures for the test suite."""

import numpy as np
import pandas as pd
import pytest

from spring_utils import generate_spring_dataset
from survey_utils import simulate_questionnaire


@pytest.fixture
def low_rank_data():
    """200 x 6 data driven by two latent variables with well separated variances."""
    rng = np.random.default_rng(0)
    latent = rng.normal(size=(200, 2)) * np.array([3.0, 1.5])
    weights = np.array([
        [1.0, 0.8, 0.6, 0.2, 0.1, 0.0],
        [0.0, 0.3, -0.4, 1.0, 0.9, 0.7],
    ])
    noise = rng.normal(scale=0.1, size=(200, 6))
    values = latent @ weights + noise + np.array([5.0, -2.0, 0.0, 10.0, 1.0, 3.0])
    return pd.DataFrame(values, columns=[f'x{i+1}' for i in range(6)])


@pytest.fixture
def spring_data():
    recording, truth = generate_spring_dataset(n_samples=200, noise_sd=0.05, seed=1)
    return recording, truth


@pytest.fixture
def questionnaire():
    return simulate_questionnaire(n_respondents=600, seed=2)
