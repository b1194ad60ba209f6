"""
Case-study questionnaire: 25 Big Five items plus demographics.
"""

from .questionnaire import (
    TRAITS,
    ITEMS,
    REVERSE_KEYED,
    ITEM_DICTIONARY,
    GENDER_LABELS,
    EDUCATION_LABELS,
    item_dictionary,
    items_for_trait,
    simulate_questionnaire,
    load_questionnaire,
    reverse_score,
    recode_demographics,
    complete_cases,
    trait_scores
)

__all__ = [
    'TRAITS',
    'ITEMS',
    'REVERSE_KEYED',
    'ITEM_DICTIONARY',
    'GENDER_LABELS',
    'EDUCATION_LABELS',
    'item_dictionary',
    'items_for_trait',
    'simulate_questionnaire',
    'load_questionnaire',
    'reverse_score',
    'recode_demographics',
    'complete_cases',
    'trait_scores',
]
