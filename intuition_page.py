"""
Intuition Page - PCA Explained

Directions of largest variance, signal-to-noise ratio and redundancy on
2-D clouds taken from the spring example.
"""

import streamlit as st
import numpy as np
import pandas as pd
import plotly.graph_objects as go

from pca_tools import compute_pca, plot_projection_2d, plot_variance_along_directions, variance_along_directions
from spring_utils import generate_spring_dataset, signal_to_noise_ratio, redundancy_examples, plot_redundancy_panels
from color_utils import get_unified_color_schemes
from session_state_keys import SESSION_SEED


def show():
    """
    Intuition chapter.

    1. Direction of largest variance (angle slider)
    2. Signal and noise
    3. Redundancy
    """
    st.markdown("# 📐 Intuition: the direction of largest variance")
    st.markdown("""
    A camera films a ball bouncing on a spring. In the camera image the ball
    moves along a line, blurred a little by measurement noise. PCA asks:
    **along which direction do the points vary the most?**
    """)

    seed = int(st.session_state.get(SESSION_SEED, 0))

    tabs = st.tabs([
        "🧭 Direction of largest variance",
        "📶 Signal and noise",
        "🔁 Redundancy"
    ])

    with tabs[0]:
        _show_direction_tab(seed)

    with tabs[1]:
        _show_signal_noise_tab(seed)

    with tabs[2]:
        _show_redundancy_tab(seed)


# ============================================================================
# TAB 1: DIRECTION OF LARGEST VARIANCE
# ============================================================================

def _camera_view(noise_sd: float, seed: int) -> pd.DataFrame:
    recording, _ = generate_spring_dataset(noise_sd=noise_sd, seed=seed)
    return recording[['xA', 'yA']]


def _projection_figure(view: pd.DataFrame, angle: float) -> go.Figure:
    """Cloud with a candidate direction and the projected points on it."""
    colors = get_unified_color_schemes()
    centered = view - view.mean()
    direction = np.array([np.cos(np.deg2rad(angle)), np.sin(np.deg2rad(angle))])
    projected = np.outer(centered.to_numpy() @ direction, direction) + view.mean().to_numpy()
    half_length = 3 * np.sqrt(max(centered.var().sum(), 1e-12))
    ends = np.array([-half_length, half_length])[:, None] * direction + view.mean().to_numpy()

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=view.iloc[:, 0], y=view.iloc[:, 1], mode='markers', name='Data',
        marker=dict(size=6, color=colors['point_color'], opacity=0.6)
    ))
    fig.add_trace(go.Scatter(
        x=ends[:, 0], y=ends[:, 1], mode='lines', name=f'Direction {angle:.0f}°',
        line=dict(color='red', width=2)
    ))
    fig.add_trace(go.Scatter(
        x=projected[:, 0], y=projected[:, 1], mode='markers', name='Projections',
        marker=dict(size=5, color='red', symbol='x')
    ))
    fig.update_layout(
        title="Projecting the cloud on a direction",
        xaxis_title=view.columns[0],
        yaxis_title=view.columns[1],
        height=500,
        yaxis=dict(scaleanchor="x", scaleratio=1),
        template='plotly_white'
    )
    return fig


def _show_direction_tab(seed: int):
    st.markdown("## 🧭 Turn the direction, watch the variance")

    noise_sd = st.slider("Camera noise (sd)", 0.0, 0.5, 0.1, 0.01, key="intuition_noise")
    angle = st.slider("Direction angle (degrees)", 0, 180, 90, 1, key="intuition_angle")

    try:
        view = _camera_view(noise_sd, seed)
        pca_results = compute_pca(view, center=True, scale=False)
    except ValueError as e:
        st.error(f"❌ {str(e)}")
        return

    curve = variance_along_directions(view)
    current = float(np.interp(angle, curve['angle'], curve['variance']))
    best = curve.loc[curve['variance'].idxmax()]

    metric_cols = st.columns(3)
    with metric_cols[0]:
        st.metric("Variance along this direction", f"{current:.4f}")
    with metric_cols[1]:
        st.metric("Best angle", f"{best['angle']:.0f}°")
    with metric_cols[2]:
        st.metric("PC1 eigenvalue", f"{pca_results['eigenvalues'][0]:.4f}")

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(_projection_figure(view, angle), use_container_width=True)
    with col2:
        st.plotly_chart(plot_variance_along_directions(view, highlight_angle=angle), use_container_width=True)

    st.info("""
    The variance of the projections is largest along the first principal axis,
    and that largest variance equals the first eigenvalue of the covariance matrix.
    The second axis is perpendicular to the first and carries what is left.
    """)

    st.plotly_chart(plot_projection_2d(view, pca_results), use_container_width=True)


# ============================================================================
# TAB 2: SIGNAL AND NOISE
# ============================================================================

def _show_signal_noise_tab(seed: int):
    st.markdown("## 📶 Signal-to-noise ratio")
    st.markdown("""
    The variance along the motion is the **signal**, the variance across it is
    **noise**. Their ratio (SNR) is large when the cloud is thin.
    """)

    noise_levels = [0.02, 0.1, 0.3]
    cols = st.columns(len(noise_levels))
    for col, noise_sd in zip(cols, noise_levels):
        view = _camera_view(noise_sd, seed)
        pca_results = compute_pca(view, center=True, scale=False)
        with col:
            st.metric(f"Noise sd = {noise_sd}", f"SNR = {signal_to_noise_ratio(view):,.1f}")
            st.plotly_chart(
                plot_projection_2d(view, pca_results, title=f"Noise sd {noise_sd}"),
                use_container_width=True
            )


# ============================================================================
# TAB 3: REDUNDANCY
# ============================================================================

def _show_redundancy_tab(seed: int):
    st.markdown("## 🔁 Redundant measurements")
    st.markdown("""
    When one recording can be predicted from another, measuring both adds little.
    PCA merges redundant measurements into a single component.
    """)

    examples = redundancy_examples(seed=seed)
    st.plotly_chart(plot_redundancy_panels(examples), use_container_width=True)

    rows = []
    for level, group in examples.groupby('redundancy', sort=False):
        rows.append({
            'Redundancy': level,
            'r': np.corrcoef(group['r1'], group['r2'])[0, 1],
            'PC1 share (%)': compute_pca(group[['r1', 'r2']])['explained_variance_ratio'][0] * 100,
        })
    summary = pd.DataFrame(rows).set_index('Redundancy')
    st.dataframe(summary.style.format({'r': '{:.3f}', 'PC1 share (%)': '{:.1f}'}),
                 use_container_width=True)
