"""
PCA Tools for the PCA Explained lesson
======================================

Small, documented helpers that feed the narrative:

- Core PCA calculations (SVD, covariance eigen-decomposition, NIPALS,
  scikit-learn) and Varimax rotation
- Assumption checks (correlation, KMO, Bartlett's test of sphericity)
- Component retention rules (Kaiser, cumulative variance, parallel analysis,
  cross-validation)
- Tables (descriptive summary, KMO, loadings) and Plotly figures

Package Structure
-----------------
pca_calculations : PCA routes, reconstruction, Varimax rotation
pca_assumptions  : Correlation matrix, KMO, Bartlett, sample size
pca_selection    : How many components to keep
pca_tables       : Summary / assumption / loadings tables, Excel export
pca_plots        : Plotly visualizations
config           : Package-level configuration constants

Quick Start
-----------
>>> from pca_tools import compute_pca, check_assumptions, plot_scree
>>>
>>> checks = check_assumptions(items)
>>> pca_results = compute_pca(items.dropna(), scale=True)
>>> fig = plot_scree(pca_results['eigenvalues'], kind='eigenvalue', kaiser_line=True)
"""

from .config import (
    DEFAULT_N_COMPONENTS,
    DEFAULT_SEED,
    PCA_METHODS,
    VARIMAX_MAX_ITER,
    VARIMAX_TOLERANCE,
    configure_logging
)

from .pca_calculations import (
    preprocess,
    covariance_matrix,
    eigen_decomposition,
    prcomp,
    pca_via_eigen,
    nipals_pca,
    sklearn_pca,
    compute_pca,
    compare_methods,
    reconstruct,
    reconstruction_error,
    calculate_variance_metrics,
    importance_table,
    structure_loadings,
    calculate_variable_variance_explained,
    varimax_rotation
)

from .pca_assumptions import (
    correlation_matrix,
    top_correlations,
    kmo_test,
    kmo_label,
    bartlett_sphericity_test,
    sample_size_adequacy,
    check_assumptions
)

from .pca_selection import (
    kaiser_criterion,
    cumulative_variance_rule,
    parallel_analysis,
    cross_validate_pca,
    suggest_n_components
)

from .pca_tables import (
    summary_table,
    correlation_table,
    kmo_table,
    bartlett_table,
    importance_styler,
    dominant_component,
    loadings_table,
    export_tables_to_excel
)

from .pca_plots import (
    plot_scree,
    plot_cumulative_variance,
    plot_reconstruction_error,
    plot_scores,
    plot_loadings,
    plot_biplot,
    plot_correlation_heatmap,
    plot_loadings_heatmap,
    plot_projection_2d,
    variance_along_directions,
    plot_variance_along_directions
)

__all__ = [
    # Configuration
    'DEFAULT_N_COMPONENTS',
    'DEFAULT_SEED',
    'PCA_METHODS',
    'VARIMAX_MAX_ITER',
    'VARIMAX_TOLERANCE',
    'configure_logging',

    # Calculation functions
    'preprocess',
    'covariance_matrix',
    'eigen_decomposition',
    'prcomp',
    'pca_via_eigen',
    'nipals_pca',
    'sklearn_pca',
    'compute_pca',
    'compare_methods',
    'reconstruct',
    'reconstruction_error',
    'calculate_variance_metrics',
    'importance_table',
    'structure_loadings',
    'calculate_variable_variance_explained',
    'varimax_rotation',

    # Assumption checks
    'correlation_matrix',
    'top_correlations',
    'kmo_test',
    'kmo_label',
    'bartlett_sphericity_test',
    'sample_size_adequacy',
    'check_assumptions',

    # Component selection
    'kaiser_criterion',
    'cumulative_variance_rule',
    'parallel_analysis',
    'cross_validate_pca',
    'suggest_n_components',

    # Tables
    'summary_table',
    'correlation_table',
    'kmo_table',
    'bartlett_table',
    'importance_styler',
    'dominant_component',
    'loadings_table',
    'export_tables_to_excel',

    # Plotting functions
    'plot_scree',
    'plot_cumulative_variance',
    'plot_reconstruction_error',
    'plot_scores',
    'plot_loadings',
    'plot_biplot',
    'plot_correlation_heatmap',
    'plot_loadings_heatmap',
    'plot_projection_2d',
    'variance_along_directions',
    'plot_variance_along_directions',
]

# Package metadata
__version__ = '1.0.0'
__description__ = 'PCA helpers for the PCA Explained lesson'
