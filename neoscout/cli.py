# === FILE: neoscout/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point of NeoScout.

Commands:
  discover  List the URLs found for a site (sitemap + homepage + bounded crawl)
  size      Estimate the total size of a site without downloading it
  mirror    Download the whole site into a local directory
  config    Show the effective configuration

Global options:
  --config PATH       YAML/JSON config file (values are overridden by command options)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only when omitted)
  --log-format FORMAT Logging format string

Common command options:
  SITE                Neocities username, host name or site URL
  --depth INT         Crawl depth (default 2)
  --concurrency INT   Parallel workers (default 8)
  --timeout SEC       Timeout of one request (default 10)
  --user-agent UA     User-Agent header

Examples:
  neoscout size toribytez --top 10 --html report.html
  neoscout mirror toribytez --output ./sites/toribytez
"""
import asyncio
import functools
import json
import sys
from pathlib import Path

import click

from neoscout import __version__
from neoscout.config import ScoutConfig, build_config, read_config_file
from neoscout.engine import audit_site, discover_site, mirror_site
from neoscout.logger import DEFAULT_FORMAT, init_logging
from neoscout.report.html_report import render_html
from neoscout.report.json_report import render_json
from neoscout.utils import format_size

CONTEXT_SETTINGS = dict(help_option_names=["--help"])
# command options that feed ScoutConfig instead of the command itself
CONFIG_OPTIONS = ("top_n", "output_dir")


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def print_warning(message: str):
    click.secho(message, fg='yellow', err=True)


def site_options(func):
    """SITE argument and the tuning options shared by every command."""
    @click.argument('site')
    @click.option('--depth', '-d', 'crawl_depth', type=int, default=None, help='Crawl depth (default 2)')
    @click.option('--concurrency', '-p', 'concurrency', type=int, default=None, help='Parallel workers (default 8)')
    @click.option('--timeout', 'timeout', type=float, default=None, help='Timeout of one request, seconds')
    @click.option('--user-agent', 'user_agent', default=None, help='User-Agent header')
    @click.pass_context
    @functools.wraps(func)
    def wrapper(ctx, site, crawl_depth, concurrency, timeout, user_agent, **kwargs):
        overrides = {key: kwargs.pop(key) for key in CONFIG_OPTIONS if key in kwargs}
        try:
            cfg = build_config(
                ctx.obj.get('config_data'),
                site=site,
                crawl_depth=crawl_depth,
                concurrency=concurrency,
                timeout=timeout,
                user_agent=user_agent,
                **overrides,
            )
        except Exception as e:
            print_error(f'Invalid configuration: {e}')
        return func(cfg, **kwargs)
    return wrapper


def run(coro, what: str):
    try:
        return asyncio.run(coro)
    except Exception as e:
        print_error(f'{what} failed: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='NeoScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='YAML or JSON configuration file.'
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
    help='Log file (stdout only when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """NeoScout: size audit and mirroring of Neocities sites."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format,
    )
    ctx.ensure_object(dict)
    ctx.obj['config_data'] = {}
    if config_path is not None:
        try:
            ctx.obj['config_data'] = read_config_file(config_path)
        except Exception as e:
            print_error(f'Cannot load configuration: {e}')


@cli.command('discover', context_settings=CONTEXT_SETTINGS)
@click.option('--json', '-j', 'json_output', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Save the URL list as JSON')
@click.option('--pretty', is_flag=True, help='Indent JSON output')
@site_options
def discover(cfg: ScoutConfig, json_output, pretty):
    """Discover and list the URLs of SITE."""
    result = run(discover_site(cfg), 'Discovery')
    discovered = result.discovered
    if result.low_confidence:
        print_warning(f'No URLs found for {cfg.origin}; using the homepage fallback')

    if json_output:
        data = {
            'origin': str(cfg.origin),
            'low_confidence': result.low_confidence,
            'sources': result.sources,
            'pages': [r.url for r in discovered.pages()],
            'assets': [r.url for r in discovered.assets()],
        }
        json_output.parent.mkdir(parents=True, exist_ok=True)
        json_output.write_text(json.dumps(data, ensure_ascii=False, indent=2 if pretty else None), encoding='utf-8')
        click.echo(f'JSON report: {json_output}')
        return

    click.echo(f'Found {len(discovered.pages())} pages and {len(discovered.assets())} assets')
    for record in sorted(discovered, key=lambda r: r.url):
        click.echo(f'{record.content_class.value}\t{record.url}')


@cli.command('size', context_settings=CONTEXT_SETTINGS)
@click.option('--top', '-n', 'top_n', type=int, default=None, help='How many of the largest files to list')
@click.option('--json', '-j', 'json_output', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Save the size report as JSON')
@click.option('--html', '-h', 'html_output', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Save the size report as HTML')
@click.option('--template', '-t', 'template_dir', default=None,
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Folder with the Jinja2 template (packaged one by default)')
@click.option('--pretty', is_flag=True, help='Indent JSON output')
@site_options
def size(cfg: ScoutConfig, json_output, html_output, template_dir, pretty):
    """Estimate the size of SITE without downloading it."""
    report = run(audit_site(cfg), 'Size check')
    top_n = cfg.top_n

    if report.low_confidence:
        print_warning(f'No URLs found for {cfg.origin}; only the homepage fallback was measured')

    click.echo(f'Total files: {report.file_count}')
    click.echo(f'Total size: {format_size(report.total)}')
    if report.defaulted:
        click.echo(f'({len(report.defaulted)} files reported no size and count as {format_size(report.default_size)})')
    click.echo('')
    click.echo(f'Top {top_n} largest files:')
    for item in report.top(top_n):
        click.echo(f"{item['name']} - {item['human']}")

    if json_output:
        try:
            click.echo(f'JSON report: {render_json(report, json_output, pretty=pretty)}')
        except Exception as e:
            print_error(f'Cannot save JSON: {e}')
    if html_output:
        try:
            saved = render_html(report, html_output, site=str(cfg.origin), top_n=top_n, template_dir=template_dir)
            click.echo(f'HTML report: {saved}')
        except Exception as e:
            print_error(f'Cannot save HTML: {e}')


@cli.command('mirror', context_settings=CONTEXT_SETTINGS)
@click.option('--output', '-o', 'output_dir', default=None,
              type=click.Path(file_okay=False, path_type=Path),
              help='Target directory (neocities_sites/<host> by default)')
@click.option('--json', '-j', 'json_output', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Save the per-file outcomes as JSON')
@click.option('--pretty', is_flag=True, help='Indent JSON output')
@site_options
def mirror(cfg: ScoutConfig, json_output, pretty):
    """Download SITE into a local directory."""
    report = run(mirror_site(cfg), 'Mirror')

    if report.low_confidence:
        print_warning(f'No URLs found for {cfg.origin}; only the homepage fallback was tried')
    click.echo(f'Download complete. Site saved to {report.output_dir}')
    click.echo(f'Total files: {len(report.fetched())} ({len(report.failed())} failed)')
    click.echo(f'Total size: {format_size(report.total_bytes)}')
    for outcome in report.failed():
        click.echo(f'FAILED {outcome.url}: {outcome.reason}')

    if json_output:
        try:
            click.echo(f'JSON report: {render_json(report, json_output, pretty=pretty)}')
        except Exception as e:
            print_error(f'Cannot save JSON: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@site_options
def show_config(cfg: ScoutConfig):
    """Show the effective configuration for SITE as JSON."""
    data = json.loads(cfg.model_dump_json())
    data['origin'] = str(cfg.origin)
    data['mirror_dir'] = str(cfg.mirror_dir)
    click.echo(json.dumps(data, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    cli()
