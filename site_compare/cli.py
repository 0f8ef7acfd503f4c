# === FILE: site_compare/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point of SiteCompare.

Commands:
  compare   Crawl two sites, pair their pages and report visual differences
  serve     Run the HTTP API (POST /api/compare)
  config    Show the effective configuration

Common options:
  --config PATH       YAML/JSON config (default: configs/default.yaml when present)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format (e.g. "%(asctime)s %(levelname)s %(message)s")

compare options:
  --json PATH         Save the JSON report to a file
  --html PATH         Save the HTML report to a file
  --template DIR      Directory with Jinja2 templates
  --pretty            Indent JSON printed to stdout
  --limit INT         Max pages per site (overrides max_pages)
  --strategy NAME     Page pairing: exact or normalized
  --timeout SEC       Deadline of the whole comparison (seconds)
  --viewport NAME     Browser window preset: desktop or mobile (also on serve)

Also:
  --version, -v       Show the SiteCompare version

Example:
  site-compare compare https://old.example.com https://new.example.com --html report.html
"""
import asyncio
import sys
from pathlib import Path

import click
from aiohttp import web

from site_compare import __version__
from site_compare.api import create_app
from site_compare.config import MatchStrategy, Viewport, load_config
from site_compare.engine import InvalidInputError, compare_sites
from site_compare.logger import DEFAULT_FORMAT, init_logging, logger
from site_compare.report.html_report import render_html
from site_compare.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteCompare, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON configuration file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stderr only when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """SiteCompare command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('compare', context_settings=CONTEXT_SETTINGS)
@click.argument('url1')
@click.argument('url2')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the HTML report to a file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with Jinja2 templates (bundled template by default)'
)
@click.option(
    '--pretty', is_flag=True,
    help='Indent JSON printed to stdout'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Max pages per site (overrides max_pages)'
)
@click.option(
    '--strategy', 'strategy',
    type=click.Choice([s.value for s in MatchStrategy]),
    default=None,
    help='Page pairing strategy'
)
@click.option(
    '--timeout', 'timeout',
    type=float,
    default=None,
    help='Deadline of the whole comparison (seconds)'
)
@click.option(
    '--viewport', 'viewport',
    type=click.Choice([v.value for v in Viewport]),
    default=None,
    help='Browser window preset: desktop (1280x800) or mobile (375x812)'
)
@click.pass_context
def compare(ctx, url1, url2, json_output, html_output, template_dir, pretty, limit, strategy, timeout, viewport):
    """Compare two sites page by page."""
    cfg = ctx.obj['config']
    if viewport is not None:
        cfg = cfg.with_viewport(viewport)
    overrides = {}
    if limit is not None:
        overrides['max_pages'] = limit
    if strategy is not None:
        overrides['match_strategy'] = MatchStrategy(strategy)
    if timeout is not None:
        overrides['compare_timeout'] = timeout
    if overrides:
        cfg = cfg.model_copy(update=overrides)

    logger.info('Comparing %s with %s', url1, url2)
    try:
        report = asyncio.run(compare_sites(url1, url2, cfg))
    except InvalidInputError as e:
        print_error(f'Invalid input: {e}')
    except asyncio.TimeoutError:
        print_error(f'Comparison did not finish within {cfg.compare_timeout} seconds')
    except Exception as e:
        print_error(f'Comparison failed: {e}')

    # no output file: print to stdout
    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Failed to save JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Failed to save HTML: {e}')


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', default='127.0.0.1', show_default=True, help='Interface to bind')
@click.option('--port', default=8080, show_default=True, type=int, help='Port to listen on')
@click.option(
    '--viewport', 'viewport',
    type=click.Choice([v.value for v in Viewport]),
    default=None,
    help='Default browser window preset of requests without one'
)
@click.pass_context
def serve(ctx, host, port, viewport):
    """Run the HTTP API."""
    cfg = ctx.obj['config']
    if viewport is not None:
        cfg = cfg.with_viewport(viewport)
    web.run_app(create_app(cfg), host=host, port=port)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the current configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
