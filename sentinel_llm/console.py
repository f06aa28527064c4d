"""Terminal renderings of evaluations, threats, benchmarks and history."""

import textwrap
from typing import Iterable, Sequence

import click

from .schemas import BenchmarkScore, ModelEvaluation, Threat
from .scoring import classify_risk, format_score, get_risk_cli_color, get_severity_cli_color
from .views import critical_count, short_category


BAR_WIDTH = 20


def _wrap(text: str, indent: int = 4, width: int = 88) -> str:
    prefix = ' ' * indent
    return textwrap.fill(text or '', width=width, initial_indent=prefix, subsequent_indent=prefix)


def risk_badge(score: float) -> str:
    level = classify_risk(score)
    return click.style(f'{format_score(score)}/100 ({level.value})', fg=get_risk_cli_color(level), bold=True)


def format_overview(evaluation: ModelEvaluation) -> str:
    lines = [
        click.style('Threat Modeler & Benchmark', fg='cyan', bold=True),
        f'  Target Model:     {evaluation.modelName}',
        f'  Architecture:     {evaluation.architecture}',
        f'  Primary Use Case: {evaluation.useCase}',
        f'  Reference ID:     {evaluation.id}',
        f'  Evaluated:        {evaluation.timestamp}',
        '',
        f'  Overall Risk Score:       {risk_badge(evaluation.overallRiskScore)}',
        f'  Threats Identified:       {len(evaluation.threats)}',
        f'  Critical Vulnerabilities: {critical_count(evaluation.threats)}',
    ]
    return '\n'.join(lines)


def format_threat_card(threat: Threat) -> str:
    severity = threat.severity.value
    badge = click.style(f'[{severity}]', fg=get_severity_cli_color(severity), bold=True)
    lines = [
        f'{badge} {click.style(threat.title, bold=True)}  ({threat.id})',
        click.style(f'    {threat.category}', dim=True),
        _wrap(threat.description),
        '  Impact:',
        _wrap(threat.impact),
        '  Mitigation Strategy:',
        click.style(_wrap(threat.mitigation), fg='green'),
    ]
    return '\n'.join(lines)


def format_threat_catalog(threats: Sequence[Threat]) -> str:
    if not threats:
        return click.style('No threats match.', fg='yellow')
    return '\n\n'.join(format_threat_card(t) for t in threats)


def _score_bar(value: float) -> str:
    clamped = max(0.0, min(100.0, float(value)))
    filled = int(round(clamped / 100 * BAR_WIDTH))
    return '#' * filled + '.' * (BAR_WIDTH - filled)


def format_benchmarks(scores: Iterable[BenchmarkScore]) -> str:
    scores = list(scores)
    if not scores:
        return click.style('No benchmark scores.', fg='yellow')
    lines = []
    for score in scores:
        label = short_category(score.category)
        lines.append(f'  {label:<8} {_score_bar(score.score)} {format_score(score.score):>5}%  {score.category}')
        lines.append(_wrap(score.details, indent=11))
    return '\n'.join(lines)


def format_history_row(evaluation: ModelEvaluation, is_current: bool = False) -> str:
    marker = '*' if is_current else ' '
    return (
        f'{marker} {evaluation.id}  {evaluation.timestamp}  {risk_badge(evaluation.overallRiskScore)}  '
        f'{evaluation.modelName} | {evaluation.useCase}  '
        f'[{len(evaluation.threats)} threats, {critical_count(evaluation.threats)} critical]'
    )


def format_history(history: Sequence[ModelEvaluation], current_id: str | None = None) -> str:
    if not history:
        return click.style('No past evaluations found', fg='yellow')
    return '\n'.join(format_history_row(e, e.id == current_id) for e in history)
