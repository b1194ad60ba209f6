"""
Spring Example Page - PCA Explained

A ball on a spring filmed by three cameras: six recorded coordinates, one
real degree of freedom. PCA on the six coordinates recovers the motion.
"""

import streamlit as st
import pandas as pd

from pca_tools import (
    compute_pca, importance_table, importance_styler, reconstruction_error,
    plot_scree, plot_reconstruction_error, plot_loadings
)
from spring_utils import (
    generate_spring_dataset, recovered_signal,
    plot_camera_views, plot_position_over_time, plot_recovered_signal
)
from color_utils import get_unified_color_schemes
from session_state_keys import SESSION_SEED, SESSION_SPRING_RECORDING


def show():
    """
    Spring example.

    1. Experiment (motion and cameras)
    2. PCA on the recording
    3. Recovered motion
    """
    st.markdown("# 🎾 Toy example: a ball on a spring")
    st.markdown("""
    We do not know that the ball moves along a single line, so three cameras
    record it from arbitrary angles. Each frame gives six numbers
    (xA, yA, xB, yB, xC, yC). How many of them do we really need?
    """)

    with st.expander("⚙️ Experiment settings", expanded=False):
        col1, col2, col3 = st.columns(3)
        with col1:
            n_samples = st.number_input("Frames", min_value=2, max_value=5000, value=200, step=50)
            duration = st.number_input("Duration (s)", min_value=0.1, value=10.0, step=1.0)
        with col2:
            frequency = st.number_input("Frequency (Hz)", min_value=0.01, value=0.5, step=0.1)
            damping = st.number_input("Damping", min_value=0.0, value=0.0, step=0.05)
        with col3:
            noise_sd = st.number_input("Camera noise (sd)", min_value=0.0, value=0.05, step=0.01)
            scale = st.checkbox("Scale coordinates to unit variance", value=False)

    seed = int(st.session_state.get(SESSION_SEED, 0))

    try:
        recording, truth = generate_spring_dataset(
            n_samples=int(n_samples), noise_sd=noise_sd, seed=seed,
            duration=duration, frequency=frequency, damping=damping
        )
        pca_results = compute_pca(recording, center=True, scale=scale)
    except ValueError as e:
        st.error(f"❌ {str(e)}")
        return

    st.session_state[SESSION_SPRING_RECORDING] = (recording, truth)

    st.divider()

    tabs = st.tabs([
        "🎥 Experiment",
        "📊 PCA on the recording",
        "🎯 Recovered motion"
    ])

    with tabs[0]:
        _show_experiment_tab(recording, truth)

    with tabs[1]:
        _show_pca_tab(recording, pca_results)

    with tabs[2]:
        _show_recovered_tab(pca_results, truth)


# ============================================================================
# TAB 1: EXPERIMENT
# ============================================================================

def _show_experiment_tab(recording: pd.DataFrame, truth: pd.Series):
    st.markdown("## 🎥 What the cameras see")
    st.plotly_chart(plot_camera_views(recording), use_container_width=True)
    st.plotly_chart(plot_position_over_time(recording, truth), use_container_width=True)

    with st.expander("📋 Recorded data"):
        st.dataframe(recording.style.format("{:.4f}"), use_container_width=True)
        st.download_button(
            "📥 Download recording",
            recording.to_csv(),
            "spring_recording.csv",
            "text/csv"
        )


# ============================================================================
# TAB 2: PCA ON THE RECORDING
# ============================================================================

def _show_pca_tab(recording: pd.DataFrame, pca_results: dict):
    st.markdown("## 📊 Six coordinates, one component")

    metric_cols = st.columns(3)
    with metric_cols[0]:
        st.metric("Algorithm", pca_results['algorithm'])
    with metric_cols[1]:
        st.metric("PC1 Variance", f"{pca_results['explained_variance_ratio'][0] * 100:.2f}%")
    with metric_cols[2]:
        st.metric("PC2 Variance", f"{pca_results['explained_variance_ratio'][1] * 100:.2f}%")

    st.dataframe(importance_styler(importance_table(pca_results)), use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        labels = list(pca_results['scores'].columns)
        st.plotly_chart(
            plot_scree(pca_results['explained_variance_ratio'], component_labels=labels),
            use_container_width=True
        )
    with col2:
        errors = reconstruction_error(recording, pca_results)
        st.plotly_chart(plot_reconstruction_error(errors), use_container_width=True)

    camera_colors = get_unified_color_schemes()['camera_colors']
    color_map = {col: camera_colors.get(col[1:], 'gray') for col in recording.columns}
    st.plotly_chart(
        plot_loadings(pca_results['loadings'], 'PC1', 'PC2',
                      pca_results['explained_variance_ratio'], color_map=color_map),
        use_container_width=True
    )

    st.info("""
    PC1 holds almost all of the variance: the six coordinates are redundant
    views of one motion. The remaining components only describe camera noise.
    """)


# ============================================================================
# TAB 3: RECOVERED MOTION
# ============================================================================

def _show_recovered_tab(pca_results: dict, truth: pd.Series):
    st.markdown("## 🎯 Does PC1 recover the motion?")

    correlation = recovered_signal(pca_results, truth)
    st.metric("|r| between PC1 scores and true position", f"{correlation:.4f}")

    st.plotly_chart(plot_recovered_signal(pca_results, truth), use_container_width=True)

    if correlation < 0.9:
        st.warning("⚠️ Noise is large compared with the motion; PC1 no longer tracks the ball closely.")
