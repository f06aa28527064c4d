"""Interactive console session holding the ephemeral UI selection state."""

import shlex
from pathlib import Path
from typing import Callable, Optional

import click

from .console import format_benchmarks, format_history, format_overview, format_threat_catalog
from .dashboard import DashboardGenerator, DashboardState, Tab, report_filename
from .errors import AnalysisFailure
from .pdf_report import PdfReportGenerator
from .store import EvaluationStore
from .views import SORT_LABELS, SortOption, sort_threats


DEFAULT_MODEL_NAME = 'GPT-4o / Gemini 1.5 Pro Wrapper'
DEFAULT_ARCHITECTURE = 'Public API endpoint with vector DB RAG'
DEFAULT_USE_CASE = 'Customer support chatbot handling PII and order history'

HELP_TEXT = """Commands:
  run                     run a new evaluation
  show                    render the active tab
  tab <name>              switch tab (overview, threats, benchmarks, history)
  sort <option>           threat catalog order (severity-desc, severity-asc, title-asc, category-asc)
  load <id>               display an evaluation from history
  delete <id>             remove an evaluation from history
  export [pdf|html]       export the displayed evaluation
  html [path]             write the full dashboard to an HTML file
  help                    show this help
  quit                    leave the console"""


class InteractiveSession:
    """A read-eval loop over an EvaluationStore.

    The session owns only UI state (tab, sort, last-entered descriptors); every
    change to evaluations goes through the store.
    """

    def __init__(
        self,
        store: EvaluationStore,
        export_dir: Path,
        state: Optional[DashboardState] = None,
        echo: Callable[..., None] = click.echo,
        prompt: Callable[..., str] = click.prompt,
    ):
        self.store = store
        self.export_dir = Path(export_dir)
        self.state = state or DashboardState()
        self.echo = echo
        self.prompt = prompt
        self.inputs = {
            'model_name': DEFAULT_MODEL_NAME,
            'architecture': DEFAULT_ARCHITECTURE,
            'use_case': DEFAULT_USE_CASE,
        }
        self.commands: dict[str, Callable[[list[str]], bool]] = {
            'run': self.do_run,
            'show': self.do_show,
            'tab': self.do_tab,
            'sort': self.do_sort,
            'load': self.do_load,
            'delete': self.do_delete,
            'export': self.do_export,
            'html': self.do_html,
            'help': self.do_help,
            'quit': self.do_quit,
            'exit': self.do_quit,
        }

    def _error(self, message: str) -> None:
        self.echo(click.style(message, fg='red'), err=True)

    def loop(self) -> None:
        self.echo(click.style('SentinelLLM console. Type "help" for commands.', fg='cyan'))
        while True:
            try:
                line = self.prompt('sentinel', default='', show_default=False, prompt_suffix='> ')
            except (EOFError, click.Abort):
                break
            if not self.handle(line):
                break

    def handle(self, line: str) -> bool:
        """Execute one command line. Returns False when the session should end."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            self._error(f'Could not parse command: {e}')
            return True
        if not parts:
            return True
        name, args = parts[0].lower(), parts[1:]
        command = self.commands.get(name)
        if command is None:
            self._error(f'Unknown command: {name}. Type "help".')
            return True
        return command(args)

    def do_help(self, args: list[str]) -> bool:
        self.echo(HELP_TEXT)
        return True

    def do_quit(self, args: list[str]) -> bool:
        return False

    def do_run(self, args: list[str]) -> bool:
        self.inputs['model_name'] = self.prompt('Target model', default=self.inputs['model_name'])
        self.inputs['architecture'] = self.prompt('Architecture context', default=self.inputs['architecture'])
        self.inputs['use_case'] = self.prompt('Primary use case', default=self.inputs['use_case'])
        self.echo('Analyzing...')
        try:
            self.store.submit(self.inputs['model_name'], self.inputs['architecture'], self.inputs['use_case'])
        except AnalysisFailure as e:
            self._error(f'Failed to analyze model: {e}')
            return True
        except OSError as e:
            self._error(f'Could not save evaluation history: {e}')
            return True
        self.state.select_tab(Tab.OVERVIEW, has_evaluation=True)
        return self.do_show([])

    def do_show(self, args: list[str]) -> bool:
        current = self.store.current
        tab = self.state.active_tab
        if tab == Tab.HISTORY:
            self.echo(format_history(self.store.history, current.id if current else None))
        elif current is None:
            self.echo(click.style('No evaluation data available', fg='yellow'))
        elif tab == Tab.OVERVIEW:
            self.echo(format_overview(current))
        elif tab == Tab.THREATS:
            self.echo(click.style(f'Sorted by {SORT_LABELS[self.state.sort_option]}', dim=True))
            self.echo(format_threat_catalog(sort_threats(current.threats, self.state.sort_option)))
        elif tab == Tab.BENCHMARKS:
            self.echo(format_benchmarks(current.scores))
        return True

    def do_tab(self, args: list[str]) -> bool:
        if len(args) != 1:
            self._error('Usage: tab <overview|threats|benchmarks|history>')
            return True
        try:
            selected = self.state.select_tab(args[0].lower(), has_evaluation=self.store.current is not None)
        except ValueError:
            self._error(f'Unknown tab: {args[0]}')
            return True
        if not selected:
            self._error('Run or load an evaluation first.')
            return True
        return self.do_show([])

    def do_sort(self, args: list[str]) -> bool:
        if len(args) != 1:
            self._error('Usage: sort <' + '|'.join(o.value for o in SortOption) + '>')
            return True
        try:
            self.state.select_sort(args[0].lower())
        except ValueError:
            self._error(f'Unknown sort option: {args[0]}')
            return True
        self.echo(f'Sorting threats by {SORT_LABELS[self.state.sort_option]}')
        return True

    def do_load(self, args: list[str]) -> bool:
        if len(args) != 1:
            self._error('Usage: load <id>')
            return True
        evaluation = self.store.load_from_history(args[0])
        if evaluation is None:
            self._error(f'Evaluation not found: {args[0]}')
            return True
        self.inputs.update(
            model_name=evaluation.modelName,
            architecture=evaluation.architecture,
            use_case=evaluation.useCase,
        )
        self.state.select_tab(Tab.OVERVIEW, has_evaluation=True)
        return self.do_show([])

    def do_delete(self, args: list[str]) -> bool:
        if len(args) != 1:
            self._error('Usage: delete <id>')
            return True
        try:
            deleted = self.store.delete_from_history(args[0])
        except OSError as e:
            self._error(f'Could not save evaluation history: {e}')
            return True
        if deleted:
            self.echo(click.style(f'Deleted {args[0]}', fg='green'))
        else:
            self._error(f'Evaluation not found: {args[0]}')
        return True

    def do_export(self, args: list[str]) -> bool:
        current = self.store.current
        if current is None:
            self._error('Nothing to export. Run or load an evaluation first.')
            return True
        fmt = (args[0] if args else 'pdf').lower()
        if fmt not in ('pdf', 'html'):
            self._error(f'Unknown export format: {fmt}')
            return True
        try:
            if fmt == 'pdf':
                output = PdfReportGenerator().generate_to_file(current, self.export_dir)
            else:
                output = DashboardGenerator().generate_to_file(
                    self.export_dir / report_filename(current, 'html'), current, [current], self.state
                )
        except OSError as e:
            self._error(f'Could not write report: {e}')
            return True
        self.echo(click.style(f'Report exported: {output}', fg='green'))
        return True

    def do_html(self, args: list[str]) -> bool:
        path = Path(args[0]) if args else self.export_dir / 'dashboard.html'
        try:
            output = DashboardGenerator().generate_to_file(path, self.store.current, self.store.history, self.state)
        except OSError as e:
            self._error(f'Could not write dashboard: {e}')
            return True
        self.echo(click.style(f'Dashboard written: {output}', fg='green'))
        return True
