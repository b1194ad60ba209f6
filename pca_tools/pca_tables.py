"""
Table builders for the lesson.

Descriptive summary tables in the style of a clinical "Table 1", the
assumption-check tables and the loadings tables, as pandas DataFrames or
Stylers that render in Streamlit, in the static HTML report and in Excel.
"""

import logging
from io import BytesIO

import numpy as np
import pandas as pd
from pandas.io.formats.style import Styler
from typing import Dict, Any, List, Optional, Union

from .config import LOADING_THRESHOLD
from .pca_assumptions import kmo_label

logger = logging.getLogger(__name__)

CATEGORICAL_MAX_LEVELS = 10
"""Numeric columns with fewer distinct values are summarized as categories."""


# ──────────────────────────────────────────────
#  DESCRIPTIVE SUMMARY
# ──────────────────────────────────────────────

def _format_number(value: float) -> str:
    if pd.isna(value):
        return ''
    if float(value).is_integer():
        return f'{int(value)}'
    return f'{value:.1f}'


def _is_categorical(series: pd.Series) -> bool:
    if not pd.api.types.is_numeric_dtype(series) or pd.api.types.is_bool_dtype(series):
        return True
    return series.nunique(dropna=True) < CATEGORICAL_MAX_LEVELS


def _levels(series: pd.Series) -> List[Any]:
    if isinstance(series.dtype, pd.CategoricalDtype):
        return list(series.cat.categories)
    return sorted(series.dropna().unique().tolist())


def _summarize_column(series: pd.Series, categorical: bool, levels: List[Any]) -> List[str]:
    """Cells for one variable in one column of the summary table."""
    cells = []
    n = int(series.notna().sum())
    if categorical:
        cells.append('')
        counts = series.value_counts(dropna=True)
        for level in levels:
            count = int(counts.get(level, 0))
            pct = 100 * count / n if n else 0
            cells.append(f'{count} ({pct:.0f}%)')
    else:
        clean = series.dropna()
        if len(clean):
            q1, median, q3 = np.percentile(clean, [25, 50, 75])
            cells.append(f'{_format_number(median)} ({_format_number(q1)}, {_format_number(q3)})')
        else:
            cells.append('')
    return cells


def summary_table(
    df: pd.DataFrame,
    by: Optional[str] = None,
    categorical: Optional[List[str]] = None,
    variables: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Descriptive summary table, one block of rows per variable.

    Continuous variables show ``median (Q1, Q3)``; categorical variables
    show ``n (%)`` for each level. An ``Unknown`` row counts missing values
    when there are any.

    Parameters
    ----------
    df : pd.DataFrame
        Data to summarize.
    by : str, optional
        Grouping column; one output column per level instead of 'Overall'.
        Rows with a missing group are left out.
    categorical : list of str, optional
        Force these columns to be treated as categorical. Otherwise
        non-numeric columns and numeric columns with fewer than 10 distinct
        values are categorical.
    variables : list of str, optional
        Columns to summarize. Default: every column except ``by``.

    Returns
    -------
    pd.DataFrame
        'Characteristic' plus one column per group, headed
        ``'<group>, N = <n>'`` (or ``'Overall, N = <n>'``).

    Examples
    --------
    >>> table = summary_table(demographics, by='gender')
    """
    if by is not None and by not in df.columns:
        raise ValueError(f"Grouping column '{by}' not found")

    variables = variables or [c for c in df.columns if c != by]
    missing_cols = [c for c in variables if c not in df.columns]
    if missing_cols:
        raise ValueError(f"Columns not found: {missing_cols}")

    forced = set(categorical or [])

    if by is None:
        groups = [(f'Overall, N = {len(df)}', df)]
    else:
        n_missing_group = int(df[by].isna().sum())
        if n_missing_group:
            logger.warning("Leaving out %d rows with missing '%s'", n_missing_group, by)
        groups = [
            (f'{level}, N = {int((df[by] == level).sum())}', df[df[by] == level])
            for level in _levels(df[by])
        ]

    characteristic: List[str] = []
    columns: Dict[str, List[str]] = {name: [] for name, _ in groups}

    for var in variables:
        is_cat = var in forced or _is_categorical(df[var])
        levels = _levels(df[var]) if is_cat else []
        has_missing = bool(df[var].isna().any())

        characteristic.append(var)
        characteristic.extend(f'    {level}' for level in levels)
        if has_missing:
            characteristic.append('    Unknown')

        for name, group in groups:
            cells = _summarize_column(group[var], is_cat, levels)
            if has_missing:
                cells.append(str(int(group[var].isna().sum())))
            columns[name].extend(cells)

    table = pd.DataFrame({'Characteristic': characteristic, **columns})
    return table


# ──────────────────────────────────────────────
#  ASSUMPTION-CHECK TABLES
# ──────────────────────────────────────────────

def _correlation_colors(values: pd.DataFrame) -> pd.DataFrame:
    """Blue for positive, red for negative, opacity by |r|."""
    def color(value):
        if pd.isna(value):
            return ''
        alpha = min(abs(float(value)), 1.0) * 0.8
        rgb = '33, 102, 172' if value >= 0 else '178, 24, 43'
        return f'background-color: rgba({rgb}, {alpha:.2f})'

    return values.apply(lambda column: column.map(color))


def correlation_table(R: pd.DataFrame, decimals: int = 2, lower: bool = True) -> Styler:
    """
    Styled correlation matrix.

    Parameters
    ----------
    R : pd.DataFrame
        Correlation matrix.
    decimals : int, optional
        Displayed precision. Default 2.
    lower : bool, optional
        Show only the lower triangle (diagonal included). Default True.
    """
    shown = R.copy()
    if lower:
        mask = np.triu(np.ones(R.shape, dtype=bool), k=1)
        shown = shown.mask(mask)

    return (
        shown.style
        .format(precision=decimals, na_rep='')
        .apply(_correlation_colors, axis=None)
        .set_caption('Correlation matrix')
    )


def kmo_table(kmo_result: Dict[str, Any]) -> pd.DataFrame:
    """Overall KMO followed by the MSA of each variable."""
    per_variable = kmo_result['per_variable']
    rows = [{'Variable': 'Overall', 'MSA': kmo_result['overall'], 'Adequacy': kmo_result['label']}]
    rows.extend(
        {'Variable': var, 'MSA': float(value), 'Adequacy': kmo_label(float(value))}
        for var, value in per_variable.items()
    )
    return pd.DataFrame(rows)


def bartlett_table(result: Dict[str, Any]) -> pd.DataFrame:
    """One-row summary of Bartlett's test."""
    p_value = result['p_value']
    return pd.DataFrame([{
        'Chi-square': round(result['chi_square'], 2),
        'df': result['df'],
        'p-value': '<0.001' if p_value < 0.001 else f'{p_value:.3f}',
        'N': result['n_samples'],
        'Decision': 'Reject sphericity' if result['reject_h0'] else 'Cannot reject sphericity',
    }])


def importance_styler(importance: pd.DataFrame, decimals: int = 3) -> Styler:
    """Styled 'Importance of components' table."""
    return (
        importance.style
        .format(precision=decimals)
        .set_caption('Importance of components')
    )


# ──────────────────────────────────────────────
#  LOADINGS
# ──────────────────────────────────────────────

def dominant_component(loadings: pd.DataFrame) -> pd.Series:
    """Component with the largest absolute loading for each variable."""
    return loadings.abs().idxmax(axis=1).rename('Dominant')


def loadings_table(
    loadings: pd.DataFrame,
    threshold: float = LOADING_THRESHOLD,
    decimals: int = 2,
    show_dominant: bool = True
) -> Styler:
    """
    Styled loadings matrix with salient loadings (|l| >= threshold) in bold.

    Parameters
    ----------
    loadings : pd.DataFrame
        Variables x components.
    threshold : float, optional
        Salience cut-off. Default 0.4.
    decimals : int, optional
        Displayed precision.
    show_dominant : bool, optional
        Append the dominant component of each variable.
    """
    numeric_cols = list(loadings.columns)
    table = loadings.copy()
    if show_dominant:
        table['Dominant'] = dominant_component(loadings)

    def _bold_salient(column: pd.Series) -> List[str]:
        return [
            'font-weight: bold; color: #1f4e79' if abs(value) >= threshold else 'color: #999999'
            for value in column
        ]

    return (
        table.style
        .format(precision=decimals, subset=numeric_cols)
        .apply(_bold_salient, subset=numeric_cols)
        .set_caption(f'Loadings (|loading| >= {threshold} in bold)')
    )


# ──────────────────────────────────────────────
#  EXPORT
# ──────────────────────────────────────────────

EXCEL_SHEET_NAME_LIMIT = 31


def _sheet_name(name: str, used: set) -> str:
    """Truncated sheet name, unique among ``used`` (case-insensitive, as in Excel)."""
    candidate = str(name)[:EXCEL_SHEET_NAME_LIMIT]
    suffix = 2
    while candidate.lower() in used:
        tag = f'~{suffix}'
        candidate = str(name)[:EXCEL_SHEET_NAME_LIMIT - len(tag)] + tag
        suffix += 1
    used.add(candidate.lower())
    return candidate


def export_tables_to_excel(tables: Dict[str, Union[pd.DataFrame, Styler]]) -> BytesIO:
    """
    Write every table to its own sheet of an Excel workbook.

    Sheet names are truncated to Excel's 31-character limit; names that
    collide after truncation get a ``~2``, ``~3``, ... suffix. Stylers keep
    their cell styles. Tables with a default RangeIndex are written
    without the index.

    Returns
    -------
    BytesIO
        Workbook buffer, positioned at the start.
    """
    if not tables:
        raise ValueError("No tables to export")

    used: set = set()
    output = BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        for name, table in tables.items():
            frame = table.data if isinstance(table, Styler) else table
            keep_index = not isinstance(frame.index, pd.RangeIndex)
            table.to_excel(writer, sheet_name=_sheet_name(name, used), index=keep_index)

    output.seek(0)
    return output
