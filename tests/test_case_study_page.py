import io

from case_study_page import upload_widget_key, update_questionnaire
from session_state_keys import SESSION_QUESTIONNAIRE, SESSION_QUESTIONNAIRE_SOURCE
from survey_utils import simulate_questionnaire


class _Upload(io.BytesIO):
    """Stands in for the file returned by st.file_uploader."""

    def __init__(self, data: bytes, name: str):
        super().__init__(data)
        self.name = name


def _upload(n_respondents=40):
    csv = simulate_questionnaire(n_respondents=n_respondents, seed=9).to_csv(index=False)
    return _Upload(csv.encode('utf-8'), 'bfi.csv')


def test_simulated_data_by_default():
    state = {}
    assert update_questionnaire(state, None, False, seed=3) is None

    assert state[SESSION_QUESTIONNAIRE_SOURCE] == 'simulated (seed 3)'
    assert len(state[SESSION_QUESTIONNAIRE]) == len(simulate_questionnaire(seed=3))


def test_upload_replaces_simulated_data():
    state = {}
    update_questionnaire(state, None, False, seed=3)
    update_questionnaire(state, _upload(), False, seed=3)

    assert state[SESSION_QUESTIONNAIRE_SOURCE] == 'bfi.csv'
    assert len(state[SESSION_QUESTIONNAIRE]) == 40

    # The seed only matters while the simulated data is in use
    update_questionnaire(state, _upload(), False, seed=4)
    assert state[SESSION_QUESTIONNAIRE_SOURCE] == 'bfi.csv'


def test_simulated_data_survives_the_next_rerun():
    state = {}
    update_questionnaire(state, _upload(), False, seed=3)
    key_with_file = upload_widget_key(state)

    update_questionnaire(state, _upload(), True, seed=3)
    assert state[SESSION_QUESTIONNAIRE_SOURCE] == 'simulated (seed 3)'

    # The uploader is recreated under a new key, so it comes back empty
    assert upload_widget_key(state) != key_with_file
    update_questionnaire(state, None, False, seed=3)
    assert state[SESSION_QUESTIONNAIRE_SOURCE] == 'simulated (seed 3)'

    # Uploading the same file again switches back
    update_questionnaire(state, _upload(), False, seed=3)
    assert state[SESSION_QUESTIONNAIRE_SOURCE] == 'bfi.csv'


def test_unreadable_upload_keeps_current_data():
    state = {}
    update_questionnaire(state, None, False, seed=3)
    bad = _Upload(b'a,b\n1,2\n', 'other.csv')

    error = update_questionnaire(state, bad, False, seed=3)

    assert 'missing items' in error
    assert state[SESSION_QUESTIONNAIRE_SOURCE] == 'simulated (seed 3)'
