"""Services module - document rendering for exports."""

from .report import render_markdown_report, render_html_report, report_title

__all__ = ['render_markdown_report', 'render_html_report', 'report_title']
