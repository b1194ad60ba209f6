import logging

import numpy as np
import pandas as pd
import pytest

from survey_utils import (
    TRAITS,
    ITEMS,
    REVERSE_KEYED,
    item_dictionary,
    items_for_trait,
    simulate_questionnaire,
    load_questionnaire,
    reverse_score,
    recode_demographics,
    complete_cases,
    trait_scores,
)


def test_item_dictionary_layout():
    table = item_dictionary()

    assert len(table) == 25
    assert list(table.columns) == ['Item', 'Trait', 'Keying', 'Text']
    assert table.groupby('Trait').size().tolist() == [5] * 5
    assert sorted(table.loc[table['Keying'] == 'Reverse', 'Item']) == sorted(REVERSE_KEYED)


def test_items_for_trait():
    assert items_for_trait('Neuroticism') == ['N1', 'N2', 'N3', 'N4', 'N5']
    with pytest.raises(ValueError, match="Unknown trait"):
        items_for_trait('Honesty')


def test_simulated_questionnaire_layout(questionnaire):
    assert list(questionnaire.columns) == ITEMS + ['gender', 'education', 'age']
    assert len(questionnaire) == 600

    answered = questionnaire[ITEMS].stack()
    assert answered.min() >= 1 and answered.max() <= 6
    assert set(questionnaire['gender']) <= {1, 2}
    assert questionnaire['education'].isna().any()
    assert questionnaire['age'].between(3, 86).all()


def test_simulated_questionnaire_is_reproducible():
    pd.testing.assert_frame_equal(
        simulate_questionnaire(n_respondents=50, seed=11),
        simulate_questionnaire(n_respondents=50, seed=11),
    )


def test_simulated_items_follow_their_traits(questionnaire):
    R = complete_cases(questionnaire)[ITEMS].corr()

    # Same trait, same keying: positive; reverse keyed: negative
    assert R.loc['N1', 'N2'] > 0.3
    assert R.loc['E1', 'E3'] < -0.2
    assert abs(R.loc['N1', 'O1']) < R.loc['N1', 'N2']


@pytest.mark.parametrize("kwargs", [
    {'n_respondents': 1},
    {'missing_rate': 1.0},
    {'loading': 0.0},
])
def test_simulate_questionnaire_validation(kwargs):
    with pytest.raises(ValueError):
        simulate_questionnaire(**kwargs)


def test_load_questionnaire_uses_row_names(tmp_path, questionnaire):
    path = tmp_path / 'bfi.csv'
    questionnaire.head(20).set_index(pd.Index([f'6{i}' for i in range(20)])).to_csv(path)

    loaded = load_questionnaire(path)

    assert len(loaded) == 20
    assert list(loaded.columns) == list(questionnaire.columns)
    assert loaded.index[0] == 60


def test_load_questionnaire_missing_items(tmp_path, questionnaire):
    path = tmp_path / 'partial.csv'
    questionnaire.drop(columns=['O5']).to_csv(path, index=False)

    with pytest.raises(ValueError, match="O5"):
        load_questionnaire(path)


def test_reverse_score():
    df = pd.DataFrame({'A1': [1.0, 6.0, np.nan], 'A2': [2.0, 3.0, 4.0]})
    scored = reverse_score(df, items=['A1'])

    assert scored['A1'].tolist()[:2] == [6.0, 1.0]
    assert np.isnan(scored['A1'].iloc[2])
    assert scored['A2'].tolist() == [2.0, 3.0, 4.0]
    assert df['A1'].iloc[0] == 1.0

    with pytest.raises(ValueError, match="not found"):
        reverse_score(df, items=['Z9'])


def test_recode_demographics(questionnaire):
    recoded = recode_demographics(questionnaire)

    assert list(recoded['gender'].cat.categories) == ['Male', 'Female']
    assert recoded['education'].cat.ordered
    assert recoded['education'].isna().sum() == questionnaire['education'].isna().sum()
    assert recode_demographics(questionnaire[ITEMS]).equals(questionnaire[ITEMS])


def test_complete_cases_logs_dropped_rows(questionnaire, caplog):
    with caplog.at_level(logging.WARNING, logger='survey_utils.questionnaire'):
        complete = complete_cases(questionnaire)

    assert not complete[ITEMS].isna().any().any()
    assert 'Dropped' in caplog.text


def test_trait_scores(questionnaire):
    scores = trait_scores(questionnaire)

    assert list(scores.columns) == TRAITS
    assert scores.min().min() >= 1 and scores.max().max() <= 6
    # Reverse keying aligns the extraversion items before averaging
    extraversion = reverse_score(questionnaire)[items_for_trait('Extraversion')]
    assert scores['Extraversion'].iloc[0] == pytest.approx(extraversion.iloc[0].mean())
