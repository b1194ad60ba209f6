"""
Derivation Page - PCA Explained

PCA as an eigenvalue problem, with every step checked numerically on the
spring recording.
"""

import streamlit as st
import numpy as np
import pandas as pd

from pca_tools import (
    preprocess, covariance_matrix, eigen_decomposition, compute_pca, compare_methods,
    plot_correlation_heatmap, PCA_METHODS
)
from spring_utils import generate_spring_dataset
from session_state_keys import SESSION_SEED, SESSION_SPRING_RECORDING


def show():
    """
    Derivation chapter.

    1. Covariance matrix
    2. Eigenvectors maximize variance
    3. SVD and agreement between algorithms
    """
    st.markdown("# 🧮 Derivation: PCA as an eigenvalue problem")

    if SESSION_SPRING_RECORDING in st.session_state:
        recording, _ = st.session_state[SESSION_SPRING_RECORDING]
    else:
        recording, _ = generate_spring_dataset(seed=int(st.session_state.get(SESSION_SEED, 0)))

    st.markdown(f"*Numerical checks use the spring recording ({recording.shape[0]} frames x {recording.shape[1]} coordinates).*")

    tabs = st.tabs([
        "📦 Covariance matrix",
        "🎯 Eigen-decomposition",
        "🔀 SVD and algorithms"
    ])

    with tabs[0]:
        _show_covariance_tab(recording)

    with tabs[1]:
        _show_eigen_tab(recording)

    with tabs[2]:
        _show_algorithms_tab(recording)


# ============================================================================
# TAB 1: COVARIANCE MATRIX
# ============================================================================

def _show_covariance_tab(recording: pd.DataFrame):
    st.markdown("## 📦 Step 1: center the data, form the covariance matrix")
    st.latex(r"X \in \mathbb{R}^{n \times p}, \qquad \bar{X} = X - \mathbf{1}\mu^T")
    st.latex(r"C_X = \frac{1}{n-1}\,\bar{X}^T \bar{X}")
    st.markdown("""
    Diagonal entries are the variances of the measurements, off-diagonal
    entries their covariances. Large off-diagonal values mean **redundancy**.
    """)

    C = covariance_matrix(recording)
    st.dataframe(C.style.format("{:.4f}"), use_container_width=True)

    X_centered, _, _ = preprocess(recording, center=True, scale=False)
    manual = X_centered.T @ X_centered / (len(X_centered) - 1)
    st.metric("max |C - np.cov(X)|", f"{np.abs(C.to_numpy() - np.cov(recording.to_numpy(), rowvar=False)).max():.2e}")
    st.metric("max |C - X̄ᵀX̄/(n-1)|", f"{np.abs(C.to_numpy() - manual.to_numpy()).max():.2e}")

    X_scaled, _, _ = preprocess(recording, center=True, scale=True)
    st.markdown("With standardized columns the covariance matrix becomes the correlation matrix:")
    st.plotly_chart(plot_correlation_heatmap(covariance_matrix(X_scaled)), use_container_width=True)


# ============================================================================
# TAB 2: EIGEN-DECOMPOSITION
# ============================================================================

def _show_eigen_tab(recording: pd.DataFrame):
    st.markdown("## 🎯 Step 2: the best direction is an eigenvector")
    st.latex(r"\max_{\lVert p \rVert = 1}\; \operatorname{Var}(\bar{X}p) = p^T C_X p")
    st.latex(r"\mathcal{L}(p, \lambda) = p^T C_X p - \lambda (p^T p - 1) \;\Rightarrow\; C_X p = \lambda p")
    st.markdown("""
    The variance of the projection on an eigenvector equals its eigenvalue, so
    the best direction is the eigenvector with the **largest** eigenvalue.
    Repeating the argument orthogonally to the directions already found gives
    the full basis:
    """)
    st.latex(r"C_X = P \Lambda P^T, \qquad \lambda_1 \ge \lambda_2 \ge \dots \ge \lambda_p \ge 0")
    st.latex(r"T = \bar{X} P, \qquad C_T = \frac{1}{n-1} T^T T = \Lambda")

    C = covariance_matrix(recording)
    eig = eigen_decomposition(C)

    col1, col2 = st.columns([1, 2])
    with col1:
        st.markdown("#### Eigenvalues")
        st.dataframe(
            pd.DataFrame({'Eigenvalue': eig['eigenvalues']},
                         index=eig['eigenvectors'].columns).style.format("{:.5f}"),
            use_container_width=True
        )
    with col2:
        st.markdown("#### Eigenvectors (columns of P)")
        st.dataframe(eig['eigenvectors'].style.format("{:.4f}"), use_container_width=True)

    pca_results = compute_pca(recording, method='eigen')
    scores = pca_results['scores']
    C_T = np.cov(scores.to_numpy(), rowvar=False)
    off_diagonal = np.abs(C_T - np.diag(np.diag(C_T))).max()

    st.markdown("#### Check: the scores are uncorrelated")
    st.dataframe(pd.DataFrame(C_T, index=scores.columns, columns=scores.columns).style.format("{:.2e}"),
                 use_container_width=True)
    st.metric("Largest off-diagonal covariance of the scores", f"{off_diagonal:.2e}")

    P = eig['eigenvectors'].to_numpy()
    st.metric("max |PᵀP - I|", f"{np.abs(P.T @ P - np.eye(P.shape[1])).max():.2e}")


# ============================================================================
# TAB 3: SVD AND ALGORITHMS
# ============================================================================

def _show_algorithms_tab(recording: pd.DataFrame):
    st.markdown("## 🔀 Step 3: the same answer without the covariance matrix")
    st.latex(r"\bar{X} = U \Sigma V^T \;\Rightarrow\; C_X = V \frac{\Sigma^2}{n-1} V^T")
    st.latex(r"P = V, \qquad \lambda_i = \frac{\sigma_i^2}{n-1}, \qquad T = U\Sigma")
    st.markdown("""
    Library routines (R's `prcomp`, scikit-learn's `PCA`) use the SVD. NIPALS
    extracts one component at a time by power iteration. Up to the sign of each
    component, all routes give the same result.
    """)

    col1, col2 = st.columns(2)
    with col1:
        n_components = st.slider("Components to compare", 1, recording.shape[1], 1, key="derivation_n_comp")
    with col2:
        scale = st.checkbox("Scale to unit variance", value=False, key="derivation_scale")

    methods = st.multiselect("Algorithms", list(PCA_METHODS), default=list(PCA_METHODS), key="derivation_methods")
    if not methods:
        st.warning("⚠️ Select at least one algorithm")
        return

    try:
        comparison = compare_methods(recording, n_components=n_components, scale=scale, methods=tuple(methods))
    except ValueError as e:
        st.error(f"❌ {str(e)}")
        return

    st.dataframe(
        comparison.style.format({
            'Max eigenvalue difference': '{:.2e}',
            'Max loading difference': '{:.2e}',
            'Max score difference': '{:.2e}'
        }),
        use_container_width=True,
        hide_index=True
    )
    if n_components > 1:
        st.info("""
        Beyond PC1 the spring recording only holds camera noise with nearly equal
        eigenvalues. Such components are poorly defined, and NIPALS converges
        slowly on them, so larger differences are expected.
        """)
    else:
        st.success("✅ Differences are at the level of floating-point rounding (NIPALS stops at its convergence threshold).")
