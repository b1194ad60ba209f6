"""
Case Study Page - PCA Explained

PCA of a 25-item Big Five questionnaire: descriptive statistics, assumption
checks (correlations, KMO, Bartlett), number of components, loadings with
Varimax rotation, scores by group and export.
"""

from typing import Optional

import streamlit as st
import pandas as pd

from pca_tools import (
    DEFAULT_N_COMPONENTS,
    compute_pca, importance_table, structure_loadings, varimax_rotation, reconstruction_error,
    check_assumptions, top_correlations, suggest_n_components, cross_validate_pca,
    summary_table, kmo_table, bartlett_table, importance_styler, loadings_table,
    export_tables_to_excel,
    plot_scree, plot_cumulative_variance, plot_reconstruction_error, plot_scores, plot_loadings,
    plot_biplot, plot_correlation_heatmap, plot_loadings_heatmap
)
from survey_utils import (
    ITEMS, item_dictionary, simulate_questionnaire, load_questionnaire,
    recode_demographics, complete_cases, trait_scores
)
from color_utils import trait_color_for_item
from session_state_keys import (
    SESSION_QUESTIONNAIRE, SESSION_QUESTIONNAIRE_SOURCE, SESSION_UPLOAD_GENERATION, SESSION_SEED
)


def show():
    """
    Case study chapter.

    1. Data
    2. Is PCA appropriate?
    3. How many components?
    4. Loadings
    5. Scores
    6. Export
    """
    st.markdown("# 🧠 Case study: a personality questionnaire")
    st.markdown("""
    2800 people rated 25 statements about themselves on a six-point scale,
    five statements for each of the Big Five traits. Can PCA find the five
    traits from the answers alone?
    """)

    _load_data_section()
    data = st.session_state[SESSION_QUESTIONNAIRE]

    try:
        items = complete_cases(data)[ITEMS]
        checks = check_assumptions(items)
        pca_results = compute_pca(items, center=True, scale=True)
    except ValueError as e:
        st.error(f"❌ {str(e)}")
        return

    labelled = recode_demographics(data)

    st.divider()

    tabs = st.tabs([
        "📋 Data",
        "✅ Is PCA appropriate?",
        "🔢 How many components?",
        "📈 Loadings",
        "🎯 Scores",
        "💾 Export"
    ])

    with tabs[0]:
        _show_data_tab(data, labelled, items)

    with tabs[1]:
        _show_assumptions_tab(checks)

    with tabs[2]:
        _show_components_tab(items, pca_results)

    with tabs[3]:
        _show_loadings_tab(pca_results)

    with tabs[4]:
        _show_scores_tab(pca_results, labelled)

    with tabs[5]:
        _show_export_tab(labelled, items, checks, pca_results)


def _load_data_section():
    """Simulated questionnaire by default, or an uploaded CSV."""
    seed = int(st.session_state.get(SESSION_SEED, 0))

    with st.expander("📂 Data source", expanded=False):
        uploaded = st.file_uploader(
            "Upload the questionnaire as CSV (columns A1..O5, optional gender, education, age)",
            type=['csv'], key=upload_widget_key(st.session_state)
        )
        use_simulated = st.button("🎲 Use simulated data", key="case_study_simulate")

    error = update_questionnaire(st.session_state, uploaded, use_simulated, seed)
    if error:
        st.error(f"❌ {error}")

    st.caption(f"Data: {st.session_state[SESSION_QUESTIONNAIRE_SOURCE]}")


def upload_widget_key(state) -> str:
    """Key of the file uploader; a new key starts an empty widget."""
    return f"case_study_upload_{state.get(SESSION_UPLOAD_GENERATION, 0)}"


def update_questionnaire(state, uploaded, use_simulated: bool, seed: int) -> Optional[str]:
    """
    Apply one rerun's data-source widgets to ``state``.

    An upload replaces the questionnaire once per file name. Choosing the
    simulated data also retires the uploader key, otherwise the widget would
    hand the same file back on the next rerun. Changing the seed re-simulates
    only while the simulated data is in use.

    Returns the error message if the upload could not be read.
    """
    error = None
    if use_simulated:
        state[SESSION_UPLOAD_GENERATION] = state.get(SESSION_UPLOAD_GENERATION, 0) + 1
        state.pop(SESSION_QUESTIONNAIRE, None)
    elif uploaded is not None and state.get(SESSION_QUESTIONNAIRE_SOURCE) != uploaded.name:
        try:
            state[SESSION_QUESTIONNAIRE] = load_questionnaire(uploaded)
            state[SESSION_QUESTIONNAIRE_SOURCE] = uploaded.name
        except ValueError as e:
            error = str(e)

    simulated_source = f'simulated (seed {seed})'
    if SESSION_QUESTIONNAIRE not in state or (
        state.get(SESSION_QUESTIONNAIRE_SOURCE, '').startswith('simulated')
        and state[SESSION_QUESTIONNAIRE_SOURCE] != simulated_source
    ):
        state[SESSION_QUESTIONNAIRE] = simulate_questionnaire(seed=seed)
        state[SESSION_QUESTIONNAIRE_SOURCE] = simulated_source
    return error


# ============================================================================
# TAB 1: DATA
# ============================================================================

def _show_data_tab(data: pd.DataFrame, labelled: pd.DataFrame, items: pd.DataFrame):
    st.markdown("## 📋 The data")

    metric_cols = st.columns(3)
    with metric_cols[0]:
        st.metric("Respondents", len(data))
    with metric_cols[1]:
        st.metric("Complete cases", len(items))
    with metric_cols[2]:
        st.metric("Dropped (missing answers)", len(data) - len(items))

    st.markdown("### 📖 Items")
    st.dataframe(item_dictionary(), use_container_width=True, hide_index=True)

    demographics = [col for col in ('gender', 'education', 'age') if col in labelled.columns]
    if demographics:
        st.markdown("### 👥 Respondents")
        by = 'gender' if 'gender' in demographics else None
        st.dataframe(summary_table(labelled[demographics], by=by), use_container_width=True, hide_index=True)

    st.markdown("### 🧮 Trait scores (mean item score after reverse keying)")
    st.dataframe(trait_scores(data).describe().T.style.format("{:.2f}"), use_container_width=True)

    with st.expander("👁️ Raw responses"):
        st.dataframe(data.head(100), use_container_width=True)


# ============================================================================
# TAB 2: ASSUMPTIONS
# ============================================================================

def _show_assumptions_tab(checks: dict):
    st.markdown("## ✅ Is PCA appropriate?")
    st.markdown("""
    PCA summarizes **shared** variance. It is only worth running when the items
    are correlated enough: check the correlation matrix, the Kaiser-Meyer-Olkin
    measure of sampling adequacy and Bartlett's test of sphericity.
    """)

    kmo = checks['kmo']
    bartlett = checks['bartlett']

    metric_cols = st.columns(3)
    with metric_cols[0]:
        st.metric("KMO", f"{kmo['overall']:.3f}", kmo['label'])
    with metric_cols[1]:
        st.metric("Bartlett chi-square", f"{bartlett['chi_square']:,.0f}", f"df = {bartlett['df']}")
    with metric_cols[2]:
        st.metric("Respondents per item", f"{checks['sample_size']['ratio']:.0f}")

    if checks['suitable']:
        st.success("✅ The items share enough variance for PCA")
    else:
        st.warning("⚠️ At least one check fails; interpret the components with care")

    R = checks['correlation']
    st.plotly_chart(plot_correlation_heatmap(R, title="Item correlations"), use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("### 🔗 Strongest correlations")
        st.dataframe(top_correlations(R).style.format({'r': '{:.3f}'}), use_container_width=True, hide_index=True)
    with col2:
        st.markdown("### 📏 KMO per item")
        st.dataframe(kmo_table(kmo).style.format({'MSA': '{:.3f}'}), use_container_width=True, hide_index=True)

    st.markdown("### 🧪 Bartlett's test of sphericity")
    st.dataframe(bartlett_table(bartlett), use_container_width=True, hide_index=True)


# ============================================================================
# TAB 3: NUMBER OF COMPONENTS
# ============================================================================

def _show_components_tab(items: pd.DataFrame, pca_results: dict):
    st.markdown("## 🔢 How many components?")

    seed = int(st.session_state.get(SESSION_SEED, 0))
    target = st.slider("Cumulative variance target (%)", 50, 99, 80, 1, key="case_study_target") / 100
    selection = suggest_n_components(items, pca_results, target=target, seed=seed)

    metric_cols = st.columns(3)
    with metric_cols[0]:
        st.metric("Kaiser (eigenvalue > 1)", selection['kaiser'])
    with metric_cols[1]:
        st.metric(f"{target * 100:.0f}% cumulative variance", selection['cumulative'])
    with metric_cols[2]:
        st.metric("Parallel analysis", selection['parallel'])

    labels = list(pca_results['scores'].columns)
    st.plotly_chart(
        plot_scree(pca_results['eigenvalues'], kind='eigenvalue', component_labels=labels,
                   kaiser_line=True, parallel=selection['parallel_table']),
        use_container_width=True
    )

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(plot_cumulative_variance(pca_results['cumulative_variance'], component_labels=labels),
                        use_container_width=True)
    with col2:
        st.plotly_chart(plot_reconstruction_error(reconstruction_error(items, pca_results)),
                        use_container_width=True)

    st.dataframe(importance_styler(importance_table(pca_results)), use_container_width=True)

    with st.expander("🔁 Cross-validation"):
        max_components = st.slider("Maximum components", 2, len(ITEMS) - 1, 10, key="case_study_cv_max")
        if st.button("Run cross-validation", key="case_study_cv_run"):
            try:
                cv = cross_validate_pca(items, max_components=max_components, scale=True)
            except ValueError as e:
                st.error(f"❌ {str(e)}")
                return
            cv_table = pd.DataFrame({
                'Components': cv['n_components'],
                'PRESS': cv['PRESS'],
                'Q2': cv['Q2'],
                'RMSECV': cv['RMSECV'],
            })
            st.dataframe(cv_table.style.format({'PRESS': '{:.1f}', 'Q2': '{:.4f}', 'RMSECV': '{:.4f}'}),
                         use_container_width=True, hide_index=True)
            st.info(f"Lowest RMSECV at {cv['optimal_components']} components")


# ============================================================================
# TAB 4: LOADINGS
# ============================================================================

def _show_loadings_tab(pca_results: dict):
    st.markdown("## 📈 What do the components mean?")

    col1, col2 = st.columns(2)
    with col1:
        n_components = st.slider("Components to keep", 2, 10, DEFAULT_N_COMPONENTS, key="case_study_n_comp")
    with col2:
        rotate = st.checkbox("Varimax rotation", value=True, key="case_study_varimax")

    retained = structure_loadings(pca_results).iloc[:, :n_components]
    if rotate:
        shown, n_iter = varimax_rotation(retained)
        st.caption(f"Varimax converged in {n_iter} iterations")
    else:
        shown = retained

    st.dataframe(loadings_table(shown), use_container_width=True)
    st.plotly_chart(plot_loadings_heatmap(shown, title="Rotated loadings" if rotate else "Loadings"),
                    use_container_width=True)

    color_map = {item: trait_color_for_item(item) for item in shown.index}
    columns = list(shown.columns)
    pc_x = st.selectbox("X axis", columns, index=0, key="case_study_load_x")
    pc_y = st.selectbox("Y axis", columns, index=1, key="case_study_load_y")

    ratio = pca_results['explained_variance_ratio']
    if rotate:
        # Rotated components share the retained variance differently
        ratio = (shown ** 2).sum().to_numpy() / len(shown)
    st.plotly_chart(
        plot_loadings(shown, pc_x, pc_y, ratio, color_map=color_map, show_unit_circle=True),
        use_container_width=True
    )


# ============================================================================
# TAB 5: SCORES
# ============================================================================

def _show_scores_tab(pca_results: dict, labelled: pd.DataFrame):
    st.markdown("## 🎯 Respondents in component space")

    scores = pca_results['scores']
    ratio = pca_results['explained_variance_ratio']
    columns = list(scores.columns[:10])

    col1, col2, col3 = st.columns(3)
    with col1:
        pc_x = st.selectbox("X axis", columns, index=0, key="case_study_score_x")
    with col2:
        pc_y = st.selectbox("Y axis", columns, index=1, key="case_study_score_y")
    with col3:
        options = ['None'] + [col for col in ('gender', 'education', 'age') if col in labelled.columns]
        color_choice = st.selectbox("Color by", options, key="case_study_color")

    color_by = None if color_choice == 'None' else labelled.loc[scores.index, color_choice]
    st.plotly_chart(plot_scores(scores, pc_x, pc_y, ratio, color_by=color_by, opacity=0.5),
                    use_container_width=True)

    if color_by is not None and not pd.api.types.is_numeric_dtype(color_by):
        means = scores[[pc_x, pc_y]].groupby(color_by.astype(str).to_numpy()).mean()
        st.markdown(f"#### Mean scores by {color_choice}")
        st.dataframe(means.style.format("{:.3f}"), use_container_width=True)

    st.plotly_chart(
        plot_biplot(scores, pca_results['loadings'], pc_x, pc_y, ratio, color_by=color_by),
        use_container_width=True
    )


# ============================================================================
# TAB 6: EXPORT
# ============================================================================

def _show_export_tab(labelled: pd.DataFrame, items: pd.DataFrame, checks: dict, pca_results: dict):
    st.markdown("## 💾 Export")

    retained = structure_loadings(pca_results).iloc[:, :DEFAULT_N_COMPONENTS]
    rotated, _ = varimax_rotation(retained)

    tables = {
        'Items': item_dictionary(),
        'KMO': kmo_table(checks['kmo']),
        'Bartlett': bartlett_table(checks['bartlett']),
        'Importance': importance_table(pca_results),
        'Loadings': loadings_table(retained),
        'Varimax loadings': loadings_table(rotated),
        'Scores': pca_results['scores'].iloc[:, :DEFAULT_N_COMPONENTS],
    }
    demographics = [col for col in ('gender', 'education', 'age') if col in labelled.columns]
    if demographics:
        tables['Respondents'] = summary_table(labelled[demographics],
                                              by='gender' if 'gender' in demographics else None)

    try:
        excel_buffer = export_tables_to_excel(tables)
    except ValueError as e:
        st.error(f"❌ Excel export failed: {str(e)}")
        return

    st.download_button(
        "📄 Download Case Study Tables (Excel)",
        excel_buffer.getvalue(),
        "PCA_case_study.xlsx",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        use_container_width=True
    )

    col1, col2 = st.columns(2)
    with col1:
        st.download_button("📊 Download Scores", pca_results['scores'].to_csv(), "scores.csv", "text/csv")
    with col2:
        st.download_button("📈 Download Loadings", pca_results['loadings'].to_csv(), "loadings.csv", "text/csv")

    st.caption(f"{len(items)} complete cases, {items.shape[1]} items")
