"""
Questionnaire Module
====================

The case-study dataset: 25 personality self-report items, five per Big Five
trait, answered on a six-point scale (1 = very inaccurate ... 6 = very
accurate), plus gender, education and age of each respondent.

The real data (the ``bfi`` table of the R ``psych`` package, exported as
CSV) can be loaded with ``load_questionnaire``. ``simulate_questionnaire``
produces a dataset with the same layout and a five-factor structure, so the
lesson runs without any download.
"""

import logging

import numpy as np
import pandas as pd
from typing import Dict, Any, List, Optional, Union
from pathlib import Path

from pca_tools.config import DEFAULT_SEED

logger = logging.getLogger(__name__)

TRAITS = ['Agreeableness', 'Conscientiousness', 'Extraversion', 'Neuroticism', 'Openness']

ITEM_DICTIONARY: Dict[str, Dict[str, Any]] = {
    'A1': {'trait': 'Agreeableness', 'reverse': True, 'text': 'Am indifferent to the feelings of others.'},
    'A2': {'trait': 'Agreeableness', 'reverse': False, 'text': "Inquire about others' well-being."},
    'A3': {'trait': 'Agreeableness', 'reverse': False, 'text': 'Know how to comfort others.'},
    'A4': {'trait': 'Agreeableness', 'reverse': False, 'text': 'Love children.'},
    'A5': {'trait': 'Agreeableness', 'reverse': False, 'text': 'Make people feel at ease.'},
    'C1': {'trait': 'Conscientiousness', 'reverse': False, 'text': 'Am exacting in my work.'},
    'C2': {'trait': 'Conscientiousness', 'reverse': False, 'text': 'Continue until everything is perfect.'},
    'C3': {'trait': 'Conscientiousness', 'reverse': False, 'text': 'Do things according to a plan.'},
    'C4': {'trait': 'Conscientiousness', 'reverse': True, 'text': 'Do things in a half-way manner.'},
    'C5': {'trait': 'Conscientiousness', 'reverse': True, 'text': 'Waste my time.'},
    'E1': {'trait': 'Extraversion', 'reverse': True, 'text': "Don't talk a lot."},
    'E2': {'trait': 'Extraversion', 'reverse': True, 'text': 'Find it difficult to approach others.'},
    'E3': {'trait': 'Extraversion', 'reverse': False, 'text': 'Know how to captivate people.'},
    'E4': {'trait': 'Extraversion', 'reverse': False, 'text': 'Make friends easily.'},
    'E5': {'trait': 'Extraversion', 'reverse': False, 'text': 'Take charge.'},
    'N1': {'trait': 'Neuroticism', 'reverse': False, 'text': 'Get angry easily.'},
    'N2': {'trait': 'Neuroticism', 'reverse': False, 'text': 'Get irritated easily.'},
    'N3': {'trait': 'Neuroticism', 'reverse': False, 'text': 'Have frequent mood swings.'},
    'N4': {'trait': 'Neuroticism', 'reverse': False, 'text': 'Often feel blue.'},
    'N5': {'trait': 'Neuroticism', 'reverse': False, 'text': 'Panic easily.'},
    'O1': {'trait': 'Openness', 'reverse': False, 'text': 'Am full of ideas.'},
    'O2': {'trait': 'Openness', 'reverse': True, 'text': 'Avoid reading difficult material.'},
    'O3': {'trait': 'Openness', 'reverse': False, 'text': 'Carry the conversation to a higher level.'},
    'O4': {'trait': 'Openness', 'reverse': False, 'text': 'Spend time reflecting on things.'},
    'O5': {'trait': 'Openness', 'reverse': True, 'text': 'Will not probe deeply into a subject.'},
}

ITEMS = list(ITEM_DICTIONARY)
REVERSE_KEYED = [item for item, info in ITEM_DICTIONARY.items() if info['reverse']]
SCALE_MIN, SCALE_MAX = 1, 6

GENDER_LABELS = {1: 'Male', 2: 'Female'}
EDUCATION_LABELS = {
    1: 'Some high school',
    2: 'Finished high school',
    3: 'Some college',
    4: 'College graduate',
    5: 'Graduate degree',
}

# Correlations between the latent traits (A, C, E, N, O)
_TRAIT_CORRELATION = np.array([
    [1.00, 0.25, 0.45, -0.20, 0.15],
    [0.25, 1.00, 0.25, -0.25, 0.20],
    [0.45, 0.25, 1.00, -0.20, 0.25],
    [-0.20, -0.25, -0.20, 1.00, -0.10],
    [0.15, 0.20, 0.25, -0.10, 1.00],
])


def item_dictionary() -> pd.DataFrame:
    """Item code, trait, keying and wording as a table."""
    return pd.DataFrame([
        {
            'Item': item,
            'Trait': info['trait'],
            'Keying': 'Reverse' if info['reverse'] else 'Forward',
            'Text': info['text'],
        }
        for item, info in ITEM_DICTIONARY.items()
    ])


def items_for_trait(trait: str) -> List[str]:
    """Item codes measuring ``trait``."""
    if trait not in TRAITS:
        raise ValueError(f"Unknown trait '{trait}'. Choose from {TRAITS}")
    return [item for item, info in ITEM_DICTIONARY.items() if info['trait'] == trait]


# ──────────────────────────────────────────────
#  DATA SOURCES
# ──────────────────────────────────────────────

def simulate_questionnaire(
    n_respondents: int = 2800,
    seed: Optional[int] = DEFAULT_SEED,
    missing_rate: float = 0.005,
    loading: float = 0.7
) -> pd.DataFrame:
    """
    Synthetic responses with a five-factor structure.

    Every item is driven by its trait (negatively for reverse-keyed items)
    plus independent noise, then rounded onto the 1..6 scale.

    Parameters
    ----------
    n_respondents : int
        Number of rows (>= 2).
    seed : int, optional
        Random seed.
    missing_rate : float
        Share of item responses set to missing, in [0, 1).
    loading : float
        Correlation between an item's latent response and its trait, in (0, 1).

    Returns
    -------
    pd.DataFrame
        Columns A1..O5, gender (1/2), education (1..5, some missing), age.
    """
    if n_respondents < 2:
        raise ValueError(f"n_respondents must be >= 2, got {n_respondents}")
    if not 0 <= missing_rate < 1:
        raise ValueError(f"missing_rate must be in [0, 1), got {missing_rate}")
    if not 0 < loading < 1:
        raise ValueError(f"loading must be in (0, 1), got {loading}")

    rng = np.random.default_rng(seed)
    factors = rng.multivariate_normal(np.zeros(len(TRAITS)), _TRAIT_CORRELATION, size=n_respondents)

    responses = {}
    uniqueness = np.sqrt(1 - loading ** 2)
    for item, info in ITEM_DICTIONARY.items():
        sign = -1.0 if info['reverse'] else 1.0
        latent = sign * loading * factors[:, TRAITS.index(info['trait'])] + uniqueness * rng.normal(size=n_respondents)
        # Slight positive skew of self-report items
        values = np.clip(np.rint(3.8 + 1.3 * latent), SCALE_MIN, SCALE_MAX)
        if missing_rate > 0:
            values[rng.random(n_respondents) < missing_rate] = np.nan
        responses[item] = values

    df = pd.DataFrame(responses)
    df['gender'] = rng.choice([1, 2], size=n_respondents, p=[0.33, 0.67])

    education = rng.choice([1, 2, 3, 4, 5], size=n_respondents,
                           p=[0.08, 0.11, 0.45, 0.15, 0.21]).astype(float)
    education[rng.random(n_respondents) < 0.08] = np.nan
    df['education'] = education

    df['age'] = np.clip(np.rint(16 + rng.gamma(shape=2.0, scale=6.5, size=n_respondents)), 3, 86).astype(int)

    logger.debug("Simulated questionnaire: %d respondents, %d missing responses",
                 n_respondents, int(df[ITEMS].isna().sum().sum()))
    return df


def load_questionnaire(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read the questionnaire from a CSV file.

    A leading unnamed column (row names written by R) becomes the index.
    Columns other than the 25 items are kept as they are.

    Raises
    ------
    ValueError
        If any of the 25 items is missing.
    """
    df = pd.read_csv(path)
    first = df.columns[0]
    if str(first).startswith('Unnamed') or first == '':
        df = df.set_index(first)
        df.index.name = None

    missing = [item for item in ITEMS if item not in df.columns]
    if missing:
        raise ValueError(f"Questionnaire file {path} is missing items: {missing}")

    logger.info("Loaded %d respondents from %s", len(df), path)
    return df


# ──────────────────────────────────────────────
#  PREPARATION
# ──────────────────────────────────────────────

def reverse_score(
    df: pd.DataFrame,
    items: Optional[List[str]] = None,
    low: int = SCALE_MIN,
    high: int = SCALE_MAX
) -> pd.DataFrame:
    """
    Reverse the scale of the given items: x -> low + high - x.

    Parameters
    ----------
    df : pd.DataFrame
        Responses.
    items : list of str, optional
        Items to reverse. Default: the reverse-keyed items.
    low, high : int
        Scale end points.

    Returns
    -------
    pd.DataFrame
        A copy with the items reversed; missing values stay missing.
    """
    if high <= low:
        raise ValueError(f"high ({high}) must be greater than low ({low})")

    items = REVERSE_KEYED if items is None else items
    missing = [item for item in items if item not in df.columns]
    if missing:
        raise ValueError(f"Items not found: {missing}")

    scored = df.copy()
    scored[items] = low + high - scored[items]
    return scored


def recode_demographics(df: pd.DataFrame) -> pd.DataFrame:
    """
    Replace numeric gender and education codes by labelled categories.

    Education becomes an ordered categorical. Columns that are absent are
    skipped.
    """
    recoded = df.copy()
    if 'gender' in recoded.columns:
        recoded['gender'] = pd.Categorical(
            recoded['gender'].map(GENDER_LABELS),
            categories=list(GENDER_LABELS.values())
        )
    if 'education' in recoded.columns:
        recoded['education'] = pd.Categorical(
            recoded['education'].map(EDUCATION_LABELS),
            categories=list(EDUCATION_LABELS.values()),
            ordered=True
        )
    return recoded


def complete_cases(df: pd.DataFrame, items: Optional[List[str]] = None) -> pd.DataFrame:
    """Rows with an answer to every item (default: all 25)."""
    items = ITEMS if items is None else items
    missing = [item for item in items if item not in df.columns]
    if missing:
        raise ValueError(f"Items not found: {missing}")

    complete = df.dropna(subset=items)
    n_dropped = len(df) - len(complete)
    if n_dropped:
        logger.warning("Dropped %d of %d respondents with incomplete answers",
                       n_dropped, len(df))
    return complete


def trait_scores(df: pd.DataFrame) -> pd.DataFrame:
    """
    Mean item score per trait after reverse keying.

    Respondents with some missing items are scored on the items they
    answered.
    """
    scored = reverse_score(df)
    return pd.DataFrame({
        trait: scored[items_for_trait(trait)].mean(axis=1)
        for trait in TRAITS
    })
