"""
Unified Color Mapping for the PCA lesson
Light theme only - one palette shared by every figure and table
"""

import numpy as np
import pandas as pd


def get_unified_color_schemes():
    """
    Unified color schemes for light theme only

    Returns:
        dict: Complete color scheme with categorical colors and plot styling
    """

    light_theme_colors = [
        'black', 'red', 'green', 'blue', 'orange', 'purple', 'brown', 'hotpink',
        'gray', 'olive', 'cyan', 'magenta', 'gold', 'navy', 'darkgreen', 'darkred',
        'indigo', 'coral', 'teal', 'chocolate'
    ]

    return {
        # Plot styling colors
        'background': 'white',
        'paper': 'white',
        'text': 'black',
        'grid': '#e6e6e6',
        'point_color': 'steelblue',
        'line_colors': ['blue', 'red'],
        'signal_color': '#1f77b4',
        'noise_color': '#d62728',

        # Categorical colors for data points
        'categorical_colors': light_theme_colors,

        # One color per camera of the spring example
        'camera_colors': {'A': '#1f77b4', 'B': '#2ca02c', 'C': '#ff7f0e'},

        # One color per Big Five trait in the questionnaire
        'trait_colors': {
            'Agreeableness': '#1b9e77',
            'Conscientiousness': '#d95f02',
            'Extraversion': '#7570b3',
            'Neuroticism': '#e7298a',
            'Openness': '#66a61e',
        },

        'theme': 'light'
    }


def create_categorical_color_map(unique_values):
    """
    Create a color mapping for categorical variables

    Args:
        unique_values (list): List of unique categorical values

    Returns:
        dict: Mapping of values to colors
    """
    colors = get_unified_color_schemes()['categorical_colors']

    color_discrete_map = {}
    for i, val in enumerate(sorted(unique_values, key=str)):
        if i < len(colors):
            color_discrete_map[val] = colors[i]
        else:
            # Golden-angle hue steps keep extra colors apart
            color_discrete_map[val] = f'hsl({(i*137) % 360}, 70%, 50%)'

    return color_discrete_map


def is_quantitative_variable(data):
    """
    Determine if a variable is quantitative (numeric and continuous)

    Args:
        data (pd.Series or array-like): Data to check

    Returns:
        bool: True if quantitative, False if categorical
    """
    if not hasattr(data, 'dtype'):
        data = pd.Series(data)

    if not pd.api.types.is_numeric_dtype(data):
        return False

    n_unique = data.nunique()
    n_total = len(data.dropna())

    if n_total == 0:
        return False

    # More than half unique, or more than 20 levels: continuous
    return (n_unique / n_total > 0.5) or (n_unique > 20)


def correlation_colorscale():
    """Diverging red-white-blue scale for correlations in [-1, 1]."""
    return [
        (0.0, 'rgb(178, 24, 43)'),
        (0.5, 'rgb(247, 247, 247)'),
        (1.0, 'rgb(33, 102, 172)'),
    ]


def trait_color_for_item(item_code):
    """Trait color of a questionnaire item code such as 'A1' or 'N4'."""
    traits = get_unified_color_schemes()['trait_colors']
    by_letter = {name[0]: color for name, color in traits.items()}
    return by_letter.get(str(item_code)[:1].upper(), 'gray')


def get_sample_order_colors(n_points):
    """Blue-to-red gradient following sample order (time in the spring example)."""
    if n_points <= 0:
        return []
    fractions = np.linspace(0, 1, n_points)
    return [f'rgb({int(255 * f)},0,{int(255 * (1 - f))})' for f in fractions]
