"""
PCA Explained
Homepage - Main navigation and introduction
"""

import streamlit as st

import intuition_page
import derivation_page
import spring_page
import case_study_page
from pca_tools import DEFAULT_SEED
from session_state_keys import SESSION_CURRENT_PAGE, SESSION_SEED

PAGES = {
    "Intuition": intuition_page,
    "Derivation": derivation_page,
    "Spring Example": spring_page,
    "Case Study": case_study_page,
}


def show_home():
    """Show the main homepage"""

    st.markdown("""
    <h1 style='text-align: center; font-size: 3.2rem; margin: 1rem 0 0.5rem 0; font-weight: 700;'>
        Principal Components Analysis, explained
    </h1>
    <p style='text-align: center; font-size: 1.25rem; color: #444; max-width: 900px; margin: 0 auto;'>
        From the intuition of "the direction of largest variance" to a full analysis of a personality questionnaire
    </p>
    """, unsafe_allow_html=True)

    st.markdown("---")

    st.info("""
    ### Chapters

    1. **Intuition**: PCA finds the directions in which the data varies most
    2. **Derivation**: why those directions are the eigenvectors of the covariance matrix
    3. **Spring Example**: a ball on a spring filmed by three cameras, six redundant measurements, one real dimension
    4. **Case Study**: 25 questionnaire items, assumption checks (KMO, Bartlett), how many components, interpretation
    """)

    st.markdown("---")

    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        if st.button("📐 Start with the Intuition", use_container_width=True, key="cta_intuition"):
            st.session_state[SESSION_CURRENT_PAGE] = "Intuition"
            st.rerun()

    st.markdown("""
    Everything on these pages can also be rendered to a single HTML file:

    ```
    pca-explained render --out report.html --xlsx tables.xlsx
    ```
    """)


def main_content():
    if SESSION_CURRENT_PAGE not in st.session_state:
        st.session_state[SESSION_CURRENT_PAGE] = "Home"
    if SESSION_SEED not in st.session_state:
        st.session_state[SESSION_SEED] = DEFAULT_SEED

    st.sidebar.markdown("## 📐 PCA Explained")
    st.sidebar.markdown("---")

    if st.sidebar.button("🏠 Home", use_container_width=True, key="nav_home"):
        st.session_state[SESSION_CURRENT_PAGE] = "Home"; st.rerun()

    st.sidebar.markdown("**Chapters**")
    for i, name in enumerate(PAGES, start=1):
        if st.sidebar.button(f"{i}. {name}", use_container_width=True, key=f"nav_{name.lower().replace(' ', '_')}"):
            st.session_state[SESSION_CURRENT_PAGE] = name; st.rerun()

    st.sidebar.markdown("---")
    st.sidebar.number_input("🎲 Random seed", min_value=0, step=1, key=SESSION_SEED,
                            help="Seed for every simulated dataset")

    # Routing
    current = st.session_state[SESSION_CURRENT_PAGE]
    if current == "Home":
        show_home()
    elif current in PAGES:
        PAGES[current].show()
    else:
        st.error(f"Page '{current}' not found")
        st.session_state[SESSION_CURRENT_PAGE] = "Home"
        st.rerun()


def main():
    st.set_page_config(
        page_title="PCA Explained",
        page_icon="📐",
        layout="wide",
        initial_sidebar_state="expanded"
    )
    main_content()


if __name__ == "__main__":
    main()
