"""
Plotly figures for the spring example.
"""

import plotly.graph_objects as go
from plotly.subplots import make_subplots
import pandas as pd
import numpy as np
from typing import Dict, Any, List

from color_utils import get_unified_color_schemes, get_sample_order_colors


def _camera_names(recording: pd.DataFrame) -> List[str]:
    names = [col[1:] for col in recording.columns if col.startswith('x')]
    missing = [name for name in names if f'y{name}' not in recording.columns]
    if not names or missing:
        raise ValueError(f"Recording needs paired x/y columns per camera, got {list(recording.columns)}")
    return names


def plot_camera_views(recording: pd.DataFrame) -> go.Figure:
    """
    One panel per camera with the (x, y) image positions, colored by time
    (blue at the start of the recording, red at the end).
    """
    names = _camera_names(recording)
    colors = get_sample_order_colors(len(recording))

    fig = make_subplots(rows=1, cols=len(names),
                        subplot_titles=[f'Camera {name}' for name in names])

    for i, name in enumerate(names, start=1):
        fig.add_trace(go.Scatter(
            x=recording[f'x{name}'],
            y=recording[f'y{name}'],
            mode='markers',
            marker=dict(size=5, color=colors),
            name=f'Camera {name}',
            hovertemplate=f'x{name}: %{{x:.3f}}<br>y{name}: %{{y:.3f}}<extra></extra>'
        ), row=1, col=i)
        fig.update_xaxes(title_text=f'x{name}', row=1, col=i)
        fig.update_yaxes(title_text=f'y{name}', row=1, col=i)

    fig.update_layout(
        title="What each camera records",
        height=400,
        showlegend=False,
        template='plotly_white'
    )
    return fig


def plot_position_over_time(recording: pd.DataFrame, truth: pd.Series = None) -> go.Figure:
    """Every recorded coordinate against time, with the true displacement if given."""
    camera_colors = get_unified_color_schemes()['camera_colors']
    time = recording.index.to_numpy()

    fig = go.Figure()
    for col in recording.columns:
        fig.add_trace(go.Scatter(
            x=time,
            y=recording[col],
            mode='lines',
            name=col,
            line=dict(
                color=camera_colors.get(col[1:], 'gray'),
                width=1,
                dash='solid' if col.startswith('x') else 'dot'
            )
        ))

    if truth is not None:
        fig.add_trace(go.Scatter(
            x=time,
            y=truth,
            mode='lines',
            name='True position',
            line=dict(color='black', width=3)
        ))

    fig.update_layout(
        title="Recorded coordinates over time",
        xaxis_title="Time (s)",
        yaxis_title="Coordinate",
        height=450,
        template='plotly_white'
    )
    return fig


def plot_redundancy_panels(examples: pd.DataFrame) -> go.Figure:
    """
    Side-by-side scatter plots of low, medium and high redundancy, each
    annotated with its correlation.
    """
    levels = list(dict.fromkeys(examples['redundancy']))
    colors = get_unified_color_schemes()

    titles = []
    for level in levels:
        subset = examples[examples['redundancy'] == level]
        r = np.corrcoef(subset['r1'], subset['r2'])[0, 1]
        titles.append(f'{level.capitalize()} redundancy (r = {r:.2f})')

    fig = make_subplots(rows=1, cols=len(levels), subplot_titles=titles)
    for i, level in enumerate(levels, start=1):
        subset = examples[examples['redundancy'] == level]
        fig.add_trace(go.Scatter(
            x=subset['r1'],
            y=subset['r2'],
            mode='markers',
            marker=dict(size=4, color=colors['point_color'], opacity=0.6),
            name=level
        ), row=1, col=i)
        fig.update_xaxes(title_text='r1', row=1, col=i)
        fig.update_yaxes(title_text='r2', row=1, col=i)

    fig.update_layout(
        title="Redundancy between two recordings",
        height=400,
        showlegend=False,
        template='plotly_white'
    )
    return fig


def plot_recovered_signal(pca_results: Dict[str, Any], truth: pd.Series) -> go.Figure:
    """
    Standardized PC1 scores over time against the standardized true position.

    PC1 is flipped when needed so both curves have the same orientation.
    """
    scores = pca_results['scores'].iloc[:, 0].to_numpy()
    truth_values = np.asarray(truth, dtype=float)

    def _standardize(values):
        sd = values.std(ddof=1)
        return (values - values.mean()) / (sd if sd > 0 else 1.0)

    pc1 = _standardize(scores)
    reference = _standardize(truth_values)
    if np.corrcoef(pc1, reference)[0, 1] < 0:
        pc1 = -pc1

    time = truth.index.to_numpy() if isinstance(truth, pd.Series) else np.arange(len(truth_values))
    colors = get_unified_color_schemes()

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=time, y=reference, mode='lines', name='True position',
        line=dict(color='black', width=3)
    ))
    fig.add_trace(go.Scatter(
        x=time, y=pc1, mode='markers', name='PC1 score',
        marker=dict(size=5, color=colors['signal_color'])
    ))

    fig.update_layout(
        title="PC1 recovers the motion of the spring",
        xaxis_title="Time (s)",
        yaxis_title="Standardized value",
        height=450,
        template='plotly_white'
    )
    return fig
