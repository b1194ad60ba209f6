"""
Package-level configuration constants for pca_tools.

Every page of the lesson and the static report read their defaults from
here, so a single edit changes the whole document.
"""

import logging
import os
from typing import List, Optional, Tuple

# ============================================================================
# REPRODUCIBILITY
# ============================================================================

DEFAULT_SEED = 20240501
"""Seed used for every simulated dataset and random baseline."""

# ============================================================================
# PCA
# ============================================================================

DEFAULT_N_COMPONENTS = 5
"""Components kept in the questionnaire case study (one per Big Five trait)."""

PCA_METHODS = ('svd', 'eigen', 'nipals', 'sklearn')

NIPALS_MAX_STEPS = 5000
NIPALS_THRESHOLD = 1e-10

VARIMAX_MAX_ITER = 100
VARIMAX_TOLERANCE = 1e-6
VARIMAX_ANGLE_STEP = 0.1
"""Grid resolution (degrees) for each pairwise varimax rotation."""

LOADING_THRESHOLD = 0.4
"""Absolute loading considered salient in tables and interpretation."""

CUMULATIVE_VARIANCE_TARGETS = [80, 95]
"""Reference lines (percent) drawn on cumulative variance plots."""

# ============================================================================
# ASSUMPTION CHECKS
# ============================================================================

BARTLETT_ALPHA = 0.05

SINGULAR_TOLERANCE = 1e-10
"""Smallest correlation-matrix eigenvalue treated as non-zero."""

KMO_BANDS: List[Tuple[float, str]] = [
    (0.9, 'marvelous'),
    (0.8, 'meritorious'),
    (0.7, 'middling'),
    (0.6, 'mediocre'),
    (0.5, 'miserable'),
    (0.0, 'unacceptable'),
]
"""Kaiser (1974) verbal labels, highest band first."""

KMO_MINIMUM = 0.6
MIN_SAMPLE_RATIO = 5

# ============================================================================
# COMPONENT SELECTION
# ============================================================================

KAISER_THRESHOLD = 1.0
PARALLEL_ITERATIONS = 100
PARALLEL_PERCENTILE = 95
CV_FOLDS = 7

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL_ENV = 'PCA_EXPLAINED_LOG_LEVEL'
LOG_FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for the lesson.

    Parameters
    ----------
    level : str, optional
        Level name ('DEBUG', 'INFO', ...). Falls back to the
        PCA_EXPLAINED_LOG_LEVEL environment variable, then 'WARNING'.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or 'WARNING').upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level_name}")

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)
