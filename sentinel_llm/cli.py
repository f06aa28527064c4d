"""SentinelLLM - Command Line Interface."""

import locale
import logging
import sys
from pathlib import Path
from typing import Optional
import click

from . import __version__
from .config import load_settings, Settings
from .console import format_benchmarks, format_history, format_overview, format_threat_catalog
from .dashboard import DashboardGenerator, DashboardState, Tab, report_filename
from .errors import AnalysisFailure, ConfigError
from .pdf_report import PdfReportGenerator
from .provider import GeminiAnalysisProvider
from .schemas import ModelEvaluation, Severity
from .session import InteractiveSession
from .storage import JsonFileStorage
from .store import EvaluationStore
from .views import SORT_LABELS, SortOption, filter_threats, sort_threats


SORT_CHOICE = click.Choice([o.value for o in SortOption])
TAB_CHOICE = click.Choice([t.value for t in Tab])
SEVERITY_CHOICE = click.Choice([s.value for s in Severity], case_sensitive=False)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def _fail(message: str) -> None:
    click.echo(click.style(message, fg='red'), err=True)
    sys.exit(1)


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj['settings']


def _store(ctx: click.Context) -> EvaluationStore:
    """Build the store on first use so commands that never touch it stay cheap."""
    if 'store' not in ctx.obj:
        settings = _settings(ctx)
        provider = ctx.obj.get('provider') or GeminiAnalysisProvider(
            api_key=settings.api_key, model=settings.model, timeout=settings.timeout
        )
        ctx.obj['store'] = EvaluationStore(provider, JsonFileStorage(settings.data_dir))
    return ctx.obj['store']


def _resolve_evaluation(store: EvaluationStore, evaluation_id: Optional[str]) -> Optional[ModelEvaluation]:
    """Load the named evaluation, or the newest one when no id is given."""
    if evaluation_id:
        evaluation = store.load_from_history(evaluation_id)
        if evaluation is None:
            _fail(f'Evaluation not found: {evaluation_id}')
        return evaluation
    if not store.history:
        click.echo(click.style('No past evaluations found', fg='yellow'))
        return None
    return store.load_from_history(store.history[0].id)


@click.group()
@click.version_option(version=__version__)
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='YAML config file')
@click.option('--data-dir', type=click.Path(file_okay=False), help='Directory holding the evaluation history')
@click.option('--model', 'provider_model', help='Analysis model to call')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, config_path: str, data_dir: str, provider_model: str, verbose: bool):
    """SentinelLLM - LLM threat modeling and security benchmarking."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj['settings'] = load_settings(
            config_path, overrides={'data_dir': data_dir, 'model': provider_model}
        )
    except ConfigError as e:
        _fail(f'Configuration error: {e}')


@cli.command()
@click.option('--model-name', '-m', prompt='Target model', help='Model under evaluation')
@click.option('--architecture', '-a', prompt='Architecture context', help='Deployment architecture')
@click.option('--use-case', '-u', prompt='Primary use case', help='What the deployment is used for')
@click.option('--html', 'html_path', type=click.Path(dir_okay=False), help='Also write the dashboard to this HTML file')
@click.option('--pdf', 'export_pdf', is_flag=True, help='Also export a PDF report')
@click.option('--sort', 'sort_option', type=SORT_CHOICE, help='Threat order for the HTML dashboard')
@click.pass_context
def evaluate(ctx: click.Context, model_name: str, architecture: str, use_case: str,
             html_path: str, export_pdf: bool, sort_option: str):
    """Run a threat model and benchmark evaluation."""
    store = _store(ctx)
    settings = _settings(ctx)

    click.echo('Analyzing...')
    try:
        evaluation = store.submit(model_name, architecture, use_case)
    except AnalysisFailure as e:
        _fail(f'Failed to analyze model: {e}')
    except OSError as e:
        _fail(f'Could not save evaluation history: {e}')

    click.echo(format_overview(evaluation))
    click.echo(f'\nSaved to history ({len(store.history)} evaluation(s)).')

    try:
        if html_path:
            state = DashboardState(sort_option=SortOption(sort_option or settings.default_sort))
            output = DashboardGenerator().generate_to_file(Path(html_path), evaluation, store.history, state)
            click.echo(click.style(f'Dashboard written: {output}', fg='green'))
        if export_pdf:
            output = PdfReportGenerator().generate_to_file(evaluation, settings.export_dir)
            click.echo(click.style(f'Report exported: {output}', fg='green'))
    except OSError as e:
        _fail(f'Could not write output: {e}')


@cli.group()
def history():
    """Review past evaluations."""
    pass


@history.command('list')
@click.pass_context
def history_list(ctx: click.Context):
    """List past evaluations, newest first."""
    store = _store(ctx)
    click.echo(format_history(store.history))


@history.command('show')
@click.argument('evaluation_id')
@click.option('--tab', 'tab', type=TAB_CHOICE, default=Tab.OVERVIEW.value, show_default=True)
@click.option('--sort', 'sort_option', type=SORT_CHOICE, help='Threat order for the threats tab')
@click.pass_context
def history_show(ctx: click.Context, evaluation_id: str, tab: str, sort_option: str):
    """Display one evaluation from history."""
    store = _store(ctx)
    evaluation = _resolve_evaluation(store, evaluation_id)
    option = SortOption(sort_option or _settings(ctx).default_sort)

    selected = Tab(tab)
    if selected == Tab.OVERVIEW:
        click.echo(format_overview(evaluation))
    elif selected == Tab.THREATS:
        click.echo(format_threat_catalog(sort_threats(evaluation.threats, option)))
    elif selected == Tab.BENCHMARKS:
        click.echo(format_benchmarks(evaluation.scores))
    elif selected == Tab.HISTORY:
        click.echo(format_history(store.history, evaluation.id))


@history.command('delete')
@click.argument('evaluation_id')
@click.pass_context
def history_delete(ctx: click.Context, evaluation_id: str):
    """Remove an evaluation from history."""
    store = _store(ctx)
    try:
        deleted = store.delete_from_history(evaluation_id)
    except OSError as e:
        _fail(f'Could not save evaluation history: {e}')
    if not deleted:
        _fail(f'Evaluation not found: {evaluation_id}')
    click.echo(click.style(f'Deleted {evaluation_id}', fg='green'))
    if not store.history:
        click.echo(click.style('No past evaluations found', fg='yellow'))


@cli.command()
@click.argument('evaluation_id', required=False)
@click.option('--sort', 'sort_option', type=SORT_CHOICE, help='Threat order')
@click.option('--severity', type=SEVERITY_CHOICE, help='Only threats of this severity')
@click.option('--category', help='Only threats whose category contains this text')
@click.option('--search', 'query', help='Only threats whose title, description or category contains this text')
@click.pass_context
def threats(ctx: click.Context, evaluation_id: str, sort_option: str, severity: str, category: str, query: str):
    """Show the threat catalog of an evaluation (newest by default)."""
    store = _store(ctx)
    evaluation = _resolve_evaluation(store, evaluation_id)
    if evaluation is None:
        return

    option = SortOption(sort_option or _settings(ctx).default_sort)
    selected = filter_threats(evaluation.threats, severity=severity, category=category, query=query)
    click.echo(click.style(f'{evaluation.modelName} - sorted by {SORT_LABELS[option]}', fg='cyan'))
    click.echo(format_threat_catalog(sort_threats(selected, option)))


@cli.command()
@click.argument('evaluation_id', required=False)
@click.pass_context
def benchmarks(ctx: click.Context, evaluation_id: str):
    """Show the benchmark breakdown of an evaluation (newest by default)."""
    store = _store(ctx)
    evaluation = _resolve_evaluation(store, evaluation_id)
    if evaluation is None:
        return
    click.echo(click.style(f'{evaluation.modelName} - benchmark scores', fg='cyan'))
    click.echo(format_benchmarks(evaluation.scores))


@cli.command()
@click.argument('evaluation_id', required=False)
@click.option('--format', '-f', 'output_format', type=click.Choice(['pdf', 'html']), default='pdf', show_default=True)
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), help='Directory for the exported file')
@click.pass_context
def export(ctx: click.Context, evaluation_id: str, output_format: str, output_dir: str):
    """Export a report for an evaluation (newest by default)."""
    store = _store(ctx)
    evaluation = _resolve_evaluation(store, evaluation_id)
    if evaluation is None:
        return

    target_dir = Path(output_dir) if output_dir else _settings(ctx).export_dir
    try:
        if output_format == 'pdf':
            output = PdfReportGenerator().generate_to_file(evaluation, target_dir)
        else:
            state = DashboardState(sort_option=_settings(ctx).default_sort)
            output = DashboardGenerator().generate_to_file(
                target_dir / report_filename(evaluation, 'html'), evaluation, [evaluation], state
            )
    except OSError as e:
        _fail(f'Could not write report: {e}')
    click.echo(click.style('Report exported successfully!', fg='green'))
    click.echo(f'  Output: {output}')


@cli.command()
@click.argument('evaluation_id', required=False)
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output HTML file path')
@click.option('--tab', 'tab', type=TAB_CHOICE, default=Tab.OVERVIEW.value, show_default=True)
@click.option('--sort', 'sort_option', type=SORT_CHOICE, help='Threat order')
@click.pass_context
def dashboard(ctx: click.Context, evaluation_id: str, output: str, tab: str, sort_option: str):
    """Write the HTML dashboard for an evaluation and the full history."""
    store = _store(ctx)
    settings = _settings(ctx)
    current = _resolve_evaluation(store, evaluation_id)

    state = DashboardState(active_tab=Tab(tab), sort_option=SortOption(sort_option or settings.default_sort))
    output_path = Path(output) if output else settings.export_dir / 'dashboard.html'
    try:
        written = DashboardGenerator().generate_to_file(output_path, current, store.history, state)
    except OSError as e:
        _fail(f'Could not write dashboard: {e}')
    click.echo(click.style('Dashboard generated successfully!', fg='green'))
    click.echo(f'  Output: {written}')


@cli.command()
@click.pass_context
def console(ctx: click.Context):
    """Start an interactive session."""
    store = _store(ctx)
    settings = _settings(ctx)
    session = InteractiveSession(
        store, settings.export_dir, DashboardState(sort_option=settings.default_sort)
    )
    session.loop()


def main():
    """Entry point for the CLI."""
    try:
        locale.setlocale(locale.LC_COLLATE, '')
    except locale.Error as e:
        logging.getLogger(__name__).debug('Keeping default collation: %s', e)
    cli()


if __name__ == '__main__':
    main()
