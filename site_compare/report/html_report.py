"""site_compare.report.html_report: HTML comparison report rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_compare.aggregator import ComparisonReport

TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def render_html(
    report: ComparisonReport,
    template_dir: Optional[Union[Path, str]],
    output_path: Union[Path, str],
) -> Path:
    """Render the HTML report from a template and save it at the given path.

    Args:
        report: ComparisonReport object.
        template_dir: directory with Jinja2 templates; None uses the bundled one.
        output_path: path of the resulting HTML file.

    Returns:
        Path of the saved HTML file.

    Example:
    ```python
    from site_compare.report.html_report import render_html
    html_path = render_html(
        report,
        template_dir=None,
        output_path='reports/report.html'
    )
    ```
    """
    template_dir = Path(template_dir) if template_dir is not None else TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "url1": report.url1,
        "url2": report.url2,
        "rows": report.rows,
        "pages1": report.pages1,
        "pages2": report.pages2,
        "pair_count": len(report.pairs),
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
