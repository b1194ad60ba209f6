"""
Static rendering of the lesson: HTML report and Excel tables.
"""

from .report_builder import (
    build_report,
    render_html,
    collect_tables,
    write_report,
    write_tables
)

__all__ = [
    'build_report',
    'render_html',
    'collect_tables',
    'write_report',
    'write_tables',
]
