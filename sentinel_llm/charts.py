"""Mermaid chart sources for the dashboard."""

import json

from .schemas import ModelEvaluation, Severity
from .scoring import format_score, get_severity_color
from .views import severity_counts, short_category


class ChartGenerator:
    """Generates Mermaid charts from one evaluation."""

    def __init__(self, evaluation: ModelEvaluation):
        self.evaluation = evaluation

    def _safe_label(self, text: str) -> str:
        """Escape special characters in Mermaid labels."""
        if not text:
            return ""
        return text.replace('"', "'").replace('[', '').replace(']', '').replace('<', '').replace('>', '').replace('\n', ' ')

    def benchmark_chart(self) -> str:
        """Bar chart of benchmark scores on a fixed 0-100 axis."""
        if not self.evaluation.scores:
            return ''
        labels = ', '.join(f'"{self._safe_label(short_category(s.category))}"' for s in self.evaluation.scores)
        values = ', '.join(format_score(s.score) for s in self.evaluation.scores)
        lines = [
            'xychart-beta',
            '    title "Security Posture"',
            f'    x-axis [{labels}]',
            '    y-axis "Score" 0 --> 100',
            f'    bar [{values}]',
        ]
        return '\n'.join(lines)

    def severity_pie(self) -> str:
        """Pie chart of threat counts per severity, omitting empty slices."""
        counts = severity_counts(self.evaluation.threats)
        if not any(counts.values()):
            return ''
        present = [s for s in Severity if counts[s]]
        theme = {f"pie{i + 1}": get_severity_color(s.value) for i, s in enumerate(present)}
        lines = [
            "%%{init: " + json.dumps({"themeVariables": theme}) + "}%%",
            "pie showData",
            "    title Threats by Severity",
        ]
        for severity in present:
            lines.append(f'    "{severity.value}" : {counts[severity]}')
        return '\n'.join(lines)
