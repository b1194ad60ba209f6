"""
PCA Plotting Functions

Plotly figures for the lesson: scree and cumulative variance plots, score
and loading plots, biplots, heatmaps, and the geometric pictures used in the
intuition section (projection of a 2-D cloud, variance along a direction).
"""

import plotly.graph_objects as go
import plotly.express as px
import pandas as pd
import numpy as np
from typing import Optional, Dict, Any, List, Union

from color_utils import (
    correlation_colorscale,
    create_categorical_color_map,
    get_unified_color_schemes,
    is_quantitative_variable,
)
from .config import CUMULATIVE_VARIANCE_TARGETS, KAISER_THRESHOLD, LOADING_THRESHOLD


def _symmetric_range(*series: pd.Series, pad: float = 1.1) -> List[float]:
    """Axis range centred on zero covering every value."""
    max_abs = max(float(np.nanmax(np.abs(s))) for s in series)
    max_abs = max_abs if max_abs > 0 else 1.0
    return [-max_abs * pad, max_abs * pad]


def _axis_label(pc: str, columns: List[str], explained_variance_ratio: np.ndarray) -> str:
    return f'{pc} ({explained_variance_ratio[columns.index(pc)] * 100:.1f}%)'


# ──────────────────────────────────────────────
#  VARIANCE PLOTS
# ──────────────────────────────────────────────

def plot_scree(
    values: np.ndarray,
    kind: str = 'ratio',
    component_labels: Optional[List[str]] = None,
    kaiser_line: bool = False,
    parallel: Optional[pd.DataFrame] = None
) -> go.Figure:
    """
    Create scree plot of the variance captured by each component.

    Parameters
    ----------
    values : np.ndarray
        Explained variance ratios (kind='ratio', 0-1 scale) or eigenvalues
        (kind='eigenvalue').
    kind : {'ratio', 'eigenvalue'}
        What ``values`` holds. Default 'ratio'.
    component_labels : List[str], optional
        Labels for the x axis. Default PC1, PC2, ...
    kaiser_line : bool, optional
        Draw the eigenvalue = 1 reference (eigenvalue plots only).
    parallel : pd.DataFrame, optional
        Parallel-analysis table (``pca_selection.parallel_analysis``); its
        'Random percentile' column is overlaid (eigenvalue plots only).

    Returns
    -------
    go.Figure

    Examples
    --------
    >>> fig = plot_scree(np.array([0.45, 0.25, 0.15, 0.10, 0.05]))
    """
    if kind not in ('ratio', 'eigenvalue'):
        raise ValueError(f"kind must be 'ratio' or 'eigenvalue', got '{kind}'")

    values = np.asarray(values, dtype=float)
    if component_labels is None:
        component_labels = [f'PC{i+1}' for i in range(len(values))]

    y = values * 100 if kind == 'ratio' else values
    y_title = 'Variance Explained (%)' if kind == 'ratio' else 'Eigenvalue'

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=component_labels,
        y=y,
        mode='lines+markers',
        name='Observed',
        line=dict(color='red', width=2),
        marker=dict(size=8, symbol='circle')
    ))

    if kind == 'eigenvalue' and parallel is not None:
        n = min(len(component_labels), len(parallel))
        fig.add_trace(go.Scatter(
            x=component_labels[:n],
            y=parallel['Random percentile'].to_numpy()[:n],
            mode='lines+markers',
            name='Parallel analysis (random)',
            line=dict(color='gray', width=2, dash='dot'),
            marker=dict(size=6, symbol='x')
        ))

    if kind == 'eigenvalue' and kaiser_line:
        fig.add_hline(
            y=KAISER_THRESHOLD,
            line_dash="dash",
            line_color="blue",
            annotation_text="Kaiser criterion"
        )

    fig.update_layout(
        title="Scree Plot",
        xaxis_title="Principal Component",
        yaxis_title=y_title,
        height=500,
        template='plotly_white'
    )
    return fig


def plot_cumulative_variance(
    cumulative_variance: np.ndarray,
    component_labels: Optional[List[str]] = None,
    reference_lines: Optional[List[float]] = None
) -> go.Figure:
    """
    Create cumulative variance plot.

    Parameters
    ----------
    cumulative_variance : np.ndarray
        Cumulative variance explained (0-1 scale).
    component_labels : List[str], optional
        Custom labels for components.
    reference_lines : List[float], optional
        Y-values (percent) for reference lines. Default is [80, 95].
    """
    cumulative_variance = np.asarray(cumulative_variance, dtype=float)
    if component_labels is None:
        component_labels = [f'PC{i+1}' for i in range(len(cumulative_variance))]
    if reference_lines is None:
        reference_lines = CUMULATIVE_VARIANCE_TARGETS

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=component_labels,
        y=cumulative_variance * 100,
        mode='lines+markers',
        name='Cumulative Variance',
        line=dict(color='blue', width=3),
        marker=dict(size=10),
        fill='tozeroy'
    ))

    for threshold in reference_lines:
        fig.add_hline(
            y=threshold,
            line_dash="dash",
            line_color="red" if threshold == reference_lines[0] else "orange",
            annotation_text=f"{threshold}%"
        )

    fig.update_layout(
        title="Cumulative Variance Explained",
        xaxis_title="Principal Component",
        yaxis_title="Cumulative Variance (%)",
        yaxis=dict(range=[0, 105]),
        height=500,
        template='plotly_white'
    )
    return fig


def plot_reconstruction_error(error_table: pd.DataFrame) -> go.Figure:
    """RMSE and variance lost against the number of components kept."""
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=error_table['n_components'],
        y=error_table['variance_lost'] * 100,
        name='Variance lost (%)',
        marker_color='lightgray',
        yaxis='y2'
    ))
    fig.add_trace(go.Scatter(
        x=error_table['n_components'],
        y=error_table['rmse'],
        mode='lines+markers',
        name='RMSE',
        line=dict(color='red', width=2)
    ))
    fig.update_layout(
        title="Reconstruction Error",
        xaxis_title="Components kept",
        yaxis=dict(title="RMSE (original units)"),
        yaxis2=dict(title="Variance lost (%)", overlaying='y', side='right', range=[0, 100]),
        height=450,
        template='plotly_white',
        legend=dict(x=0.99, y=0.99, xanchor='right', yanchor='top')
    )
    return fig


# ──────────────────────────────────────────────
#  SCORES / LOADINGS
# ──────────────────────────────────────────────

def plot_scores(
    scores: pd.DataFrame,
    pc_x: str,
    pc_y: str,
    explained_variance_ratio: np.ndarray,
    color_by: Optional[pd.Series] = None,
    show_labels: bool = False,
    opacity: float = 0.7
) -> go.Figure:
    """
    Scores scatter plot with optional categorical or continuous coloring.

    Parameters
    ----------
    scores : pd.DataFrame
        Component scores (columns PC1, PC2, ...).
    pc_x, pc_y : str
        Components on the axes.
    explained_variance_ratio : np.ndarray
        Variance ratios, used in the axis titles.
    color_by : pd.Series, optional
        Grouping (categorical) or continuous variable aligned with scores.
    show_labels : bool, optional
        Write the sample index next to each point.
    opacity : float, optional
        Marker opacity.
    """
    columns = scores.columns.tolist()
    labels = {
        'x': _axis_label(pc_x, columns, explained_variance_ratio),
        'y': _axis_label(pc_y, columns, explained_variance_ratio),
    }
    text = scores.index.astype(str) if show_labels else None

    if color_by is None:
        fig = px.scatter(x=scores[pc_x], y=scores[pc_y], text=text, labels=labels,
                         opacity=opacity)
        title = f"Scores: {pc_x} vs {pc_y}"
    else:
        color_data = color_by.reindex(scores.index) if isinstance(color_by, pd.Series) \
            else pd.Series(color_by, index=scores.index)
        color_name = color_data.name or 'group'
        labels['color'] = color_name

        if is_quantitative_variable(color_data):
            fig = px.scatter(
                x=scores[pc_x], y=scores[pc_y], color=color_data, text=text,
                color_continuous_scale=[(0.0, 'rgb(0, 0, 255)'), (0.5, 'rgb(128, 0, 128)'), (1.0, 'rgb(255, 0, 0)')],
                labels=labels, opacity=opacity
            )
        else:
            color_data = color_data.astype(str).where(color_data.notna(), 'Unknown')
            fig = px.scatter(
                x=scores[pc_x], y=scores[pc_y], color=color_data, text=text,
                color_discrete_map=create_categorical_color_map(color_data.unique()),
                labels=labels, opacity=opacity
            )
        title = f"Scores: {pc_x} vs {pc_y} (colored by {color_name})"

    fig.add_hline(y=0, line_dash="dash", line_color="gray", opacity=0.7)
    fig.add_vline(x=0, line_dash="dash", line_color="gray", opacity=0.7)

    if show_labels:
        fig.update_traces(textposition='top center', textfont=dict(size=9))

    axis_range = _symmetric_range(scores[pc_x], scores[pc_y])
    fig.update_layout(
        title=dict(text=title, x=0.5, xanchor='center'),
        height=600,
        xaxis=dict(title=labels['x'], range=axis_range, scaleanchor="y", scaleratio=1, constrain="domain"),
        yaxis=dict(title=labels['y'], range=axis_range, constrain="domain"),
        template='plotly_white'
    )
    return fig


def plot_loadings(
    loadings: pd.DataFrame,
    pc_x: str,
    pc_y: str,
    explained_variance_ratio: np.ndarray,
    color_map: Optional[Dict[str, str]] = None,
    show_unit_circle: bool = False
) -> go.Figure:
    """
    Loadings scatter plot, one labelled point per variable.

    Parameters
    ----------
    loadings : pd.DataFrame
        Variables x components.
    pc_x, pc_y : str
        Components on the axes.
    explained_variance_ratio : np.ndarray
        Variance ratios for the axis titles.
    color_map : dict, optional
        Variable name -> color (e.g. one color per questionnaire trait).
    show_unit_circle : bool, optional
        Draw the unit circle (useful for correlation loadings).
    """
    columns = loadings.columns.tolist()
    colors = [color_map.get(var, 'gray') for var in loadings.index] if color_map \
        else get_unified_color_schemes()['point_color']

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=loadings[pc_x],
        y=loadings[pc_y],
        mode='markers+text',
        text=loadings.index.astype(str),
        textposition='top center',
        marker=dict(size=9, color=colors),
        name='Variables'
    ))

    if show_unit_circle:
        theta = np.linspace(0, 2 * np.pi, 200)
        fig.add_trace(go.Scatter(
            x=np.cos(theta), y=np.sin(theta), mode='lines',
            line=dict(color='lightgray', dash='dot'), name='Unit circle', hoverinfo='skip'
        ))

    fig.add_hline(y=0, line_dash="dash", line_color="gray", opacity=0.7)
    fig.add_vline(x=0, line_dash="dash", line_color="gray", opacity=0.7)

    axis_range = [-1.1, 1.1] if show_unit_circle else _symmetric_range(loadings[pc_x], loadings[pc_y])
    fig.update_layout(
        title=dict(text=f"Loadings: {pc_x} vs {pc_y}", x=0.5, xanchor='center'),
        xaxis_title=f"{_axis_label(pc_x, columns, explained_variance_ratio)} Loadings",
        yaxis_title=f"{_axis_label(pc_y, columns, explained_variance_ratio)} Loadings",
        xaxis=dict(range=axis_range, scaleanchor="y", scaleratio=1, constrain="domain"),
        yaxis=dict(range=axis_range, constrain="domain"),
        height=600,
        showlegend=False,
        template='plotly_white'
    )
    return fig


def plot_biplot(
    scores: pd.DataFrame,
    loadings: pd.DataFrame,
    pc_x: str,
    pc_y: str,
    explained_variance_ratio: np.ndarray,
    color_by: Optional[pd.Series] = None,
    max_points: int = 1000
) -> go.Figure:
    """
    Biplot: scores as points, loadings as arrows rescaled to the score cloud.

    Parameters
    ----------
    max_points : int, optional
        Scores are subsampled (evenly) above this count to keep the figure light.
    """
    if len(scores) > max_points:
        step = int(np.ceil(len(scores) / max_points))
        scores = scores.iloc[::step]

    fig = plot_scores(scores, pc_x, pc_y, explained_variance_ratio,
                      color_by=color_by, opacity=0.4)

    score_extent = max(scores[pc_x].abs().max(), scores[pc_y].abs().max())
    loading_extent = max(loadings[pc_x].abs().max(), loadings[pc_y].abs().max())
    factor = 0.9 * score_extent / loading_extent if loading_extent > 0 else 1.0

    for var in loadings.index:
        x_end = loadings.loc[var, pc_x] * factor
        y_end = loadings.loc[var, pc_y] * factor
        fig.add_annotation(
            x=x_end, y=y_end, ax=0, ay=0,
            xref='x', yref='y', axref='x', ayref='y',
            showarrow=True, arrowhead=2, arrowwidth=1.5, arrowcolor='darkred',
            text=str(var), font=dict(color='darkred', size=10)
        )

    fig.update_layout(title=dict(text=f"Biplot: {pc_x} vs {pc_y}", x=0.5, xanchor='center'))
    return fig


# ──────────────────────────────────────────────
#  HEATMAPS
# ──────────────────────────────────────────────

def plot_correlation_heatmap(R: pd.DataFrame, title: str = "Correlation Matrix") -> go.Figure:
    """Heatmap of a correlation matrix on a fixed [-1, 1] diverging scale."""
    fig = go.Figure(go.Heatmap(
        z=R.to_numpy(),
        x=R.columns.astype(str),
        y=R.index.astype(str),
        zmin=-1, zmax=1,
        colorscale=correlation_colorscale(),
        colorbar=dict(title='r'),
        hovertemplate='%{y} / %{x}: %{z:.2f}<extra></extra>'
    ))
    fig.update_layout(
        title=title,
        yaxis=dict(autorange='reversed'),
        height=650,
        template='plotly_white'
    )
    return fig


def plot_loadings_heatmap(
    loadings: pd.DataFrame,
    threshold: float = LOADING_THRESHOLD,
    title: str = "Loadings"
) -> go.Figure:
    """Heatmap of loadings with salient values (|l| >= threshold) written in."""
    z = loadings.to_numpy()
    text = np.where(np.abs(z) >= threshold, np.round(z, 2).astype(str), '')
    limit = max(float(np.max(np.abs(z))), 1e-12)

    fig = go.Figure(go.Heatmap(
        z=z,
        x=loadings.columns.astype(str),
        y=loadings.index.astype(str),
        zmin=-limit, zmax=limit,
        colorscale=correlation_colorscale(),
        text=text,
        texttemplate='%{text}',
        colorbar=dict(title='loading')
    ))
    fig.update_layout(
        title=title,
        yaxis=dict(autorange='reversed'),
        height=max(400, 22 * len(loadings) + 150),
        template='plotly_white'
    )
    return fig


# ──────────────────────────────────────────────
#  GEOMETRY (INTUITION SECTION)
# ──────────────────────────────────────────────

def plot_projection_2d(
    X2: pd.DataFrame,
    pca_results: Dict[str, Any],
    title: str = "Principal axes of a 2-D cloud"
) -> go.Figure:
    """
    2-D scatter with the principal axes drawn from the mean.

    Each arrow points along a loading vector with length 2 * sdev, so the
    arrows trace the spread of the cloud.
    """
    if X2.shape[1] != 2:
        raise ValueError(f"Need exactly 2 columns, got {X2.shape[1]}")

    x_col, y_col = X2.columns[:2]
    means = np.asarray(pca_results['means'])
    stds = np.asarray(pca_results['stds'])
    loadings = pca_results['loadings'].to_numpy()

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=X2[x_col], y=X2[y_col], mode='markers',
        marker=dict(size=6, color='steelblue', opacity=0.6), name='Data'
    ))

    arrow_colors = ['red', 'orange']
    for comp in range(min(2, loadings.shape[1])):
        # Back to original units when the fit was on scaled data
        end = means + 2 * pca_results['sdev'][comp] * loadings[:, comp] * stds
        fig.add_annotation(
            x=end[0], y=end[1], ax=means[0], ay=means[1],
            xref='x', yref='y', axref='x', ayref='y',
            showarrow=True, arrowhead=3, arrowwidth=3, arrowcolor=arrow_colors[comp],
            text=f'PC{comp + 1}', font=dict(color=arrow_colors[comp], size=13)
        )

    fig.update_layout(
        title=title,
        xaxis_title=str(x_col),
        yaxis_title=str(y_col),
        xaxis=dict(scaleanchor="y", scaleratio=1),
        height=550,
        showlegend=False,
        template='plotly_white'
    )
    return fig


def variance_along_directions(X2: pd.DataFrame, n_angles: int = 181) -> pd.DataFrame:
    """
    Variance of the centered 2-D cloud projected on unit vectors at angles
    0..180 degrees. The maximum sits on PC1 and the minimum on PC2.
    """
    values = X2.to_numpy(dtype=float)
    values = values - values.mean(axis=0)
    angles = np.linspace(0, 180, n_angles)
    radians = np.deg2rad(angles)
    directions = np.stack([np.cos(radians), np.sin(radians)], axis=1)
    projected = values @ directions.T
    return pd.DataFrame({
        'angle': angles,
        'variance': projected.var(axis=0, ddof=1),
    })


def plot_variance_along_directions(
    X2: pd.DataFrame,
    highlight_angle: Optional[float] = None
) -> go.Figure:
    """Line plot of projected variance against direction angle."""
    curve = variance_along_directions(X2)
    best = curve.loc[curve['variance'].idxmax()]

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=curve['angle'], y=curve['variance'], mode='lines',
        line=dict(color='steelblue', width=3), name='Projected variance'
    ))
    fig.add_vline(x=best['angle'], line_dash='dash', line_color='red',
                  annotation_text=f"max at {best['angle']:.0f}°")

    if highlight_angle is not None:
        idx = int(np.argmin(np.abs(curve['angle'] - highlight_angle)))
        fig.add_trace(go.Scatter(
            x=[curve['angle'].iloc[idx]], y=[curve['variance'].iloc[idx]],
            mode='markers', marker=dict(size=14, color='orange'), name='Chosen direction'
        ))

    fig.update_layout(
        title="Variance of the projection versus direction",
        xaxis_title="Direction angle (degrees)",
        yaxis_title="Variance",
        height=400,
        template='plotly_white'
    )
    return fig
