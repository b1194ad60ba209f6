"""
Streamlit Session State Keys - Canonical Definitions
===================================================

Session state keys shared by the pages of the PCA lesson. Using constants
keeps pages consistent and prevents bugs from typos or key mismatches.

Usage:
    from session_state_keys import SESSION_QUESTIONNAIRE

    if SESSION_QUESTIONNAIRE in st.session_state:
        df = st.session_state[SESSION_QUESTIONNAIRE]
"""

# ============================================================================
# DATA
# ============================================================================

SESSION_QUESTIONNAIRE = 'questionnaire'
"""
Questionnaire responses (pd.DataFrame)
Simulated by default, replaced by an uploaded CSV.
Used by: case_study_page.py
"""

SESSION_QUESTIONNAIRE_SOURCE = 'questionnaire_source'
"""
Where the questionnaire came from: 'simulated' or the uploaded file name (str)
"""

SESSION_SPRING_RECORDING = 'spring_recording'
"""
Camera recording of the spring example (tuple[pd.DataFrame, pd.Series])
(recording, true position). Used by: spring_page.py, derivation_page.py
"""

SESSION_UPLOAD_GENERATION = 'upload_generation'
"""
Counter in the case-study file uploader key (int)
Bumped when the simulated data is chosen, which empties the uploader.
"""

# ============================================================================
# SETTINGS
# ============================================================================

SESSION_SEED = 'seed'
"""
Random seed shared by every simulated dataset (int)
"""

# ============================================================================
# PAGE NAVIGATION
# ============================================================================

SESSION_CURRENT_PAGE = 'current_page'
"""
Currently active page (str)
Used by: homepage.py navigation system
"""
