"""
Report Builder
==============

Builds the whole lesson in one pass (data -> checks -> PCA -> tables and
figures) and renders it as a single self-contained HTML page. The same
tables can be written to an Excel workbook.

A report is a list of sections. Each section is a dict:

- 'title'      : str
- 'paragraphs' : list of str (plain text)
- 'equations'  : list of str (LaTeX source, shown verbatim)
- 'figures'    : list of (caption, plotly Figure)
- 'tables'     : list of (name, DataFrame or Styler)
"""

import logging
from pathlib import Path

import pandas as pd
from jinja2 import Environment, select_autoescape
from markupsafe import Markup
from pandas.io.formats.style import Styler
from typing import Dict, Any, List, Optional, Union

from pca_tools import (
    DEFAULT_N_COMPONENTS,
    DEFAULT_SEED,
    compute_pca,
    compare_methods,
    importance_table,
    structure_loadings,
    varimax_rotation,
    reconstruction_error,
    check_assumptions,
    top_correlations,
    suggest_n_components,
    summary_table,
    correlation_table,
    kmo_table,
    bartlett_table,
    importance_styler,
    loadings_table,
    export_tables_to_excel,
    plot_scree,
    plot_cumulative_variance,
    plot_reconstruction_error,
    plot_scores,
    plot_correlation_heatmap,
    plot_loadings_heatmap,
    plot_projection_2d,
    plot_variance_along_directions,
)
from spring_utils import (
    generate_spring_dataset,
    signal_to_noise_ratio,
    redundancy_examples,
    recovered_signal,
    plot_camera_views,
    plot_redundancy_panels,
    plot_recovered_signal,
)
from survey_utils import (
    ITEMS,
    simulate_questionnaire,
    recode_demographics,
    complete_cases,
)

logger = logging.getLogger(__name__)

Section = Dict[str, Any]

DERIVATION_EQUATIONS = [
    r"X \in \mathbb{R}^{n \times p}, \quad \bar{X} = X - \mathbf{1}\mu^T",
    r"C_X = \frac{1}{n-1} \bar{X}^T \bar{X}",
    r"\max_{\lVert p \rVert = 1} \; p^T C_X p \;\Rightarrow\; C_X p = \lambda p",
    r"C_X = P \Lambda P^T, \quad \lambda_1 \geq \lambda_2 \geq \dots \geq \lambda_p \geq 0",
    r"T = \bar{X} P, \quad C_T = \frac{1}{n-1} T^T T = \Lambda",
    r"\bar{X} = U \Sigma V^T \;\Rightarrow\; P = V, \quad \lambda_i = \frac{\sigma_i^2}{n-1}",
]

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
<style>
body { font-family: Georgia, serif; max-width: 1100px; margin: 2em auto; color: #222; line-height: 1.5; }
h1, h2 { font-family: Helvetica, Arial, sans-serif; }
h2 { border-bottom: 1px solid #ddd; padding-bottom: .2em; margin-top: 2em; }
pre.equation { background: #f7f7f7; padding: .6em 1em; overflow-x: auto; }
table { border-collapse: collapse; margin: 1em 0; font-size: .9em; }
th, td { border: 1px solid #ddd; padding: .25em .6em; text-align: right; }
caption { font-weight: bold; text-align: left; padding: .3em 0; }
figure { margin: 1em 0; }
figcaption { font-style: italic; color: #555; }
</style>
</head>
<body>
<h1>{{ title }}</h1>
<nav><ol>
{% for section in sections %}<li><a href="#section-{{ loop.index }}">{{ section.title }}</a></li>
{% endfor %}</ol></nav>
{% for section in sections %}
<section id="section-{{ loop.index }}">
<h2>{{ section.title }}</h2>
{% for paragraph in section.paragraphs %}<p>{{ paragraph }}</p>
{% endfor %}
{% for equation in section.equations %}<pre class="equation">{{ equation }}</pre>
{% endfor %}
{% for name, table in section.tables %}<div class="table"><h3>{{ name }}</h3>{{ table }}</div>
{% endfor %}
{% for caption, figure in section.figures %}<figure>{{ figure }}<figcaption>{{ caption }}</figcaption></figure>
{% endfor %}
</section>
{% endfor %}
</body>
</html>
"""


def _section(title: str, paragraphs: Optional[List[str]] = None, **parts: Any) -> Section:
    return {
        'title': title,
        'paragraphs': paragraphs or [],
        'equations': parts.get('equations', []),
        'figures': parts.get('figures', []),
        'tables': parts.get('tables', []),
    }


# ──────────────────────────────────────────────
#  SECTIONS
# ──────────────────────────────────────────────

def _intuition_section(recording: pd.DataFrame) -> Section:
    view = recording[['xA', 'yA']]
    pca_2d = compute_pca(view, center=True, scale=False)
    snr = signal_to_noise_ratio(view)

    return _section(
        'Intuition: directions of largest variance',
        [
            "PCA looks for the direction in which a cloud of points is most spread "
            "out. Projecting the data on that direction keeps as much variance as "
            "any single direction can.",
            "The figure below is what camera A sees of the spring. The first "
            "principal axis follows the motion; the second one only carries noise.",
            f"Signal-to-noise ratio of this view (variance along the major axis over "
            f"variance along the minor axis): {snr:,.1f}.",
        ],
        figures=[
            ('Principal axes of the camera A view', plot_projection_2d(view, pca_2d)),
            ('Variance of the projection for every direction',
             plot_variance_along_directions(view)),
        ],
    )


def _derivation_section(recording: pd.DataFrame) -> Section:
    comparison = compare_methods(recording, n_components=1)
    return _section(
        'Derivation: PCA as an eigenvalue problem',
        [
            "Center the data and form its covariance matrix. The unit vector that "
            "maximizes the projected variance is the eigenvector of the covariance "
            "matrix with the largest eigenvalue, and the eigenvalue is that variance.",
            "Repeating the argument under orthogonality constraints gives the full "
            "set of eigenvectors. In the new basis the covariance matrix is diagonal: "
            "the components are uncorrelated.",
            "The singular value decomposition of the centered data gives the same "
            "directions without forming the covariance matrix. The table checks "
            "numerically that every route agrees.",
        ],
        equations=DERIVATION_EQUATIONS,
        tables=[('Agreement between decomposition routes', comparison)],
    )


def _spring_section(recording: pd.DataFrame, truth: pd.Series, seed: Optional[int]) -> Section:
    pca_results = compute_pca(recording, center=True, scale=False)
    correlation = recovered_signal(pca_results, truth)
    first_share = pca_results['explained_variance_ratio'][0] * 100

    return _section(
        'Toy example: a mass on a spring',
        [
            "A ball on a spring moves along a single line, but three cameras each "
            "record an (x, y) position, six numbers per frame. The six recordings "
            "are noisy and highly redundant.",
            f"PC1 explains {first_share:.1f}% of the variance of the six coordinates, "
            f"and its scores correlate with the true position at |r| = {correlation:.3f}.",
        ],
        figures=[
            ('What each camera records', plot_camera_views(recording)),
            ('Low, medium and high redundancy',
             plot_redundancy_panels(redundancy_examples(seed=seed))),
            ('Scree plot of the spring recording',
             plot_scree(pca_results['explained_variance_ratio'],
                        component_labels=list(pca_results['scores'].columns))),
            ('PC1 against the true position', plot_recovered_signal(pca_results, truth)),
        ],
        tables=[('Importance of components (spring)', importance_styler(importance_table(pca_results)))],
    )


def _case_study_sections(data: pd.DataFrame, n_components: int, seed: Optional[int]) -> List[Section]:
    labelled = recode_demographics(data)
    items = complete_cases(data)[ITEMS]
    if n_components > len(ITEMS):
        raise ValueError(f"n_components must be <= {len(ITEMS)}, got {n_components}")

    demographics = [col for col in ('gender', 'education', 'age') if col in labelled.columns]
    by = 'gender' if 'gender' in labelled.columns else None
    descriptive = summary_table(labelled[demographics], by=by) if demographics else None

    checks = check_assumptions(items)
    R = checks['correlation']

    pca_results = compute_pca(items, center=True, scale=True)
    selection = suggest_n_components(items, pca_results, seed=seed)
    labels = list(pca_results['scores'].columns)

    retained = structure_loadings(pca_results).iloc[:, :n_components]
    rotated, n_iter = varimax_rotation(retained)
    logger.info("Varimax converged in %d iterations", n_iter)

    errors = reconstruction_error(items, pca_results)

    data_tables = [('Item correlations', correlation_table(R))]
    if descriptive is not None:
        data_tables.insert(0, ('Respondents', descriptive))

    sections = [
        _section(
            'Case study: the data',
            [
                f"{len(data)} respondents answered 25 personality items on a six-point "
                f"scale, five items for each of the Big Five traits. "
                f"{len(data) - len(items)} respondents with missing answers are left out "
                f"of the analysis, which keeps {len(items)}.",
            ],
            tables=data_tables + [('Strongest correlations', top_correlations(R))],
            figures=[('Item correlation matrix', plot_correlation_heatmap(R))],
        ),
        _section(
            'Case study: is PCA appropriate?',
            [
                f"Kaiser-Meyer-Olkin measure of sampling adequacy: "
                f"{checks['kmo']['overall']:.3f} ({checks['kmo']['label']}).",
                f"Bartlett's test of sphericity: chi-square = "
                f"{checks['bartlett']['chi_square']:,.1f} on {checks['bartlett']['df']} df; "
                + ("the correlation matrix is not an identity matrix."
                   if checks['bartlett']['reject_h0']
                   else "sphericity cannot be rejected."),
                f"{checks['sample_size']['ratio']:.0f} respondents per item.",
            ],
            tables=[
                ('KMO', kmo_table(checks['kmo'])),
                ("Bartlett's test", bartlett_table(checks['bartlett'])),
            ],
        ),
        _section(
            'Case study: how many components?',
            [
                f"Kaiser criterion (eigenvalue > 1): {selection['kaiser']} components.",
                f"{int(selection['cumulative_target'] * 100)}% cumulative variance: "
                f"{selection['cumulative']} components.",
                f"Parallel analysis: {selection['parallel']} components.",
                f"The lesson keeps {n_components} components, one per trait.",
            ],
            tables=[('Importance of components (questionnaire)',
                     importance_styler(importance_table(pca_results)))],
            figures=[
                ('Scree plot with parallel analysis',
                 plot_scree(pca_results['eigenvalues'], kind='eigenvalue',
                            component_labels=labels, kaiser_line=True,
                            parallel=selection['parallel_table'])),
                ('Cumulative variance', plot_cumulative_variance(pca_results['cumulative_variance'],
                                                                 component_labels=labels)),
                ('Reconstruction error', plot_reconstruction_error(errors)),
            ],
        ),
        _section(
            'Case study: interpreting the components',
            [
                "Loadings are correlations between items and components. After a "
                "Varimax rotation each rotated component is dominated by the items of "
                "one trait.",
            ],
            tables=[
                ('Loadings', loadings_table(retained)),
                ('Varimax-rotated loadings', loadings_table(rotated)),
            ],
            figures=[
                ('Varimax-rotated loadings', plot_loadings_heatmap(rotated, title='Varimax-rotated loadings')),
                ('Scores on the first two components',
                 plot_scores(pca_results['scores'], 'PC1', 'PC2',
                             pca_results['explained_variance_ratio'],
                             color_by=labelled.loc[items.index, 'gender'] if by else None)),
            ],
        ),
    ]
    return sections


# ──────────────────────────────────────────────
#  PUBLIC API
# ──────────────────────────────────────────────

def build_report(
    data: Optional[pd.DataFrame] = None,
    seed: Optional[int] = DEFAULT_SEED,
    n_components: int = DEFAULT_N_COMPONENTS,
    noise_sd: float = 0.05
) -> List[Section]:
    """
    Build every section of the lesson.

    Parameters
    ----------
    data : pd.DataFrame, optional
        Questionnaire responses (see ``survey_utils.load_questionnaire``).
        Default: a simulated questionnaire.
    seed : int, optional
        Seed for the simulated data and parallel analysis.
    n_components : int
        Components kept in the case study.
    noise_sd : float
        Camera noise in the spring example.

    Returns
    -------
    list of dict
        Sections in reading order.
    """
    if n_components < 1:
        raise ValueError(f"n_components must be >= 1, got {n_components}")

    if data is None:
        data = simulate_questionnaire(seed=seed)

    recording, truth = generate_spring_dataset(noise_sd=noise_sd, seed=seed)

    sections = [
        _intuition_section(recording),
        _derivation_section(recording),
        _spring_section(recording, truth, seed),
    ]
    sections.extend(_case_study_sections(data, n_components, seed))

    logger.info("Built report with %d sections", len(sections))
    return sections


def _table_html(table: Union[pd.DataFrame, Styler]) -> Markup:
    if isinstance(table, Styler):
        return Markup(table.to_html())
    keep_index = not isinstance(table.index, pd.RangeIndex)
    return Markup(table.to_html(index=keep_index, float_format=lambda v: f'{v:.3f}', na_rep=''))


def render_html(sections: List[Section], title: str = 'Principal Components Analysis, explained') -> str:
    """
    Render sections to one HTML document.

    plotly.js is embedded once, with the first figure, so the file works
    offline.
    """
    if not sections:
        raise ValueError("No sections to render")

    plotlyjs_included = False
    rendered = []
    for section in sections:
        figures = []
        for caption, fig in section['figures']:
            html = fig.to_html(full_html=False, include_plotlyjs=not plotlyjs_included)
            plotlyjs_included = True
            figures.append((caption, Markup(html)))
        rendered.append({
            **section,
            'figures': figures,
            'tables': [(name, _table_html(table)) for name, table in section['tables']],
        })

    env = Environment(autoescape=select_autoescape(default_for_string=True))
    return env.from_string(PAGE_TEMPLATE).render(title=title, sections=rendered)


def collect_tables(sections: List[Section]) -> Dict[str, Union[pd.DataFrame, Styler]]:
    """Every table of the report keyed by its name."""
    return {name: table for section in sections for name, table in section['tables']}


def write_report(path: Union[str, Path], sections: Optional[List[Section]] = None, **build_kwargs: Any) -> Path:
    """Build (unless ``sections`` is given) and write the HTML report."""
    sections = sections if sections is not None else build_report(**build_kwargs)
    path = Path(path)
    path.write_text(render_html(sections), encoding='utf-8')
    logger.info("Wrote report to %s", path)
    return path


def write_tables(path: Union[str, Path], sections: Optional[List[Section]] = None, **build_kwargs: Any) -> Path:
    """Build (unless ``sections`` is given) and write every table to Excel."""
    sections = sections if sections is not None else build_report(**build_kwargs)
    path = Path(path)
    buffer = export_tables_to_excel(collect_tables(sections))
    path.write_bytes(buffer.getvalue())
    logger.info("Wrote %d tables to %s", len(collect_tables(sections)), path)
    return path
