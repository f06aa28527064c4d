"""Static HTML dashboard for the current evaluation and the evaluation history."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .charts import ChartGenerator
from .schemas import ModelEvaluation
from .scoring import classify_risk, format_score, get_risk_color, get_severity_color
from .views import SORT_LABELS, SortOption, average_score, critical_count, severity_counts, sort_threats


class Tab(str, Enum):
    """Views of the dashboard."""
    OVERVIEW = 'overview'
    THREATS = 'threats'
    BENCHMARKS = 'benchmarks'
    HISTORY = 'history'


TAB_LABELS = {
    Tab.OVERVIEW: 'Dashboard',
    Tab.THREATS: 'Threat Library',
    Tab.BENCHMARKS: 'Benchmarks',
    Tab.HISTORY: 'History',
}

# Tabs that need an evaluation on screen to be selectable
EVALUATION_TABS = {Tab.THREATS, Tab.BENCHMARKS}


@dataclass
class DashboardState:
    """Ephemeral UI selection state. Never persisted."""
    active_tab: Tab = Tab.OVERVIEW
    sort_option: SortOption = SortOption.SEVERITY_DESC

    def select_tab(self, tab: Tab | str, has_evaluation: bool) -> bool:
        """Switch tabs; evaluation tabs stay disabled until something is on screen."""
        tab = Tab(tab)
        if tab in EVALUATION_TABS and not has_evaluation:
            return False
        self.active_tab = tab
        return True

    def select_sort(self, option: SortOption | str) -> None:
        self.sort_option = SortOption(option)


def report_filename(evaluation: ModelEvaluation, extension: str = 'pdf') -> str:
    """Deterministic export file name for an evaluation."""
    return f'SentinelLLM_Report_{evaluation.id}.{extension}'


def _evaluation_summary(evaluation: ModelEvaluation) -> dict:
    level = classify_risk(evaluation.overallRiskScore)
    return {
        'evaluation': evaluation,
        'risk_score': format_score(evaluation.overallRiskScore),
        'risk_level': level.value,
        'risk_color': get_risk_color(level),
        'threat_count': len(evaluation.threats),
        'critical_count': critical_count(evaluation.threats),
    }


class DashboardGenerator:
    """Renders the dashboard template from store state plus UI selection state."""

    def __init__(self, template_dir: Optional[Path] = None):
        if template_dir is None:
            template_dir = Path(__file__).parent / 'templates'
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(['html', 'xml'])
        )
        self.env.globals['severity_color'] = get_severity_color
        self.env.filters['score'] = format_score

    def generate(
        self,
        current: Optional[ModelEvaluation],
        history: Sequence[ModelEvaluation] = (),
        state: Optional[DashboardState] = None,
    ) -> str:
        state = state or DashboardState()
        active_tab = state.active_tab
        if active_tab in EVALUATION_TABS and current is None:
            active_tab = Tab.OVERVIEW

        context = {
            'tabs': [{'id': t.value, 'label': TAB_LABELS[t], 'disabled': t in EVALUATION_TABS and current is None} for t in Tab],
            'active_tab': active_tab.value,
            'sort_option': state.sort_option.value,
            'sort_label': SORT_LABELS[state.sort_option],
            'sort_options': [{'id': o.value, 'label': SORT_LABELS[o]} for o in SortOption],
            'generation_timestamp': datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC'),
            'current': None,
            'history': [_evaluation_summary(e) for e in history],
        }

        if current is not None:
            charts = ChartGenerator(current)
            summary = _evaluation_summary(current)
            summary.update({
                'sorted_threats': sort_threats(current.threats, state.sort_option),
                'severity_counts': {s.value: n for s, n in severity_counts(current.threats).items()},
                'average_score': format_score(round(average_score(current.scores), 1)),
                'benchmark_chart': Markup(charts.benchmark_chart()),
                'severity_pie': Markup(charts.severity_pie()),
            })
            context['current'] = summary

        template = self.env.get_template('dashboard.html')
        return template.render(**context)

    def generate_to_file(
        self,
        output_path: Path,
        current: Optional[ModelEvaluation],
        history: Sequence[ModelEvaluation] = (),
        state: Optional[DashboardState] = None,
    ) -> Path:
        html_content = self.generate(current, history, state)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(html_content)
        return output_path
