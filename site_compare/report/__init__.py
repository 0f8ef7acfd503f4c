"""site_compare.report: JSON and HTML reports of a comparison, used by the CLI."""

from site_compare.report.html_report import render_html
from site_compare.report.json_report import render_json

__all__ = ["render_json", "render_html"]
