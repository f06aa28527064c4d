"""PDF report exporter for a single evaluation."""

from datetime import datetime
from html import escape
from io import BytesIO
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .dashboard import report_filename
from .schemas import ModelEvaluation, Severity
from .scoring import classify_risk, format_score, get_risk_color, get_severity_color


SLATE_800 = colors.HexColor('#1e293b')
SLATE_600 = colors.HexColor('#475569')
SLATE_500 = colors.HexColor('#64748b')
SLATE_200 = colors.HexColor('#e2e8f0')
SLATE_50 = colors.HexColor('#f8fafc')
INDIGO_600 = colors.HexColor('#4f46e5')

MARGIN = 14 * mm
CONTENT_WIDTH = A4[0] - 2 * MARGIN


def _format_timestamp(timestamp: str) -> str:
    try:
        parsed = datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
    except ValueError:
        return timestamp
    return parsed.strftime('%Y-%m-%d %H:%M:%S %Z').strip()


class PdfReportGenerator:
    """Renders a paginated PDF: metadata, executive summary, benchmark and threat tables."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self.cell = ParagraphStyle('Cell', parent=self.styles['BodyText'], fontSize=9, leading=11)
        self.cell_bold = ParagraphStyle('CellBold', parent=self.cell, fontName='Helvetica-Bold')
        self.small = ParagraphStyle('Small', parent=self.styles['Normal'], fontSize=10, textColor=SLATE_500)

    def _p(self, text, style) -> Paragraph:
        return Paragraph(escape(str(text)), style)

    def _metadata_table(self, evaluation: ModelEvaluation) -> Table:
        rows = [
            ['Target Model:', evaluation.modelName],
            ['Architecture:', evaluation.architecture],
            ['Primary Use Case:', evaluation.useCase],
        ]
        table = Table(
            [[self._p(k, self.cell_bold), self._p(v, self.cell)] for k, v in rows],
            colWidths=[40 * mm, CONTENT_WIDTH - 40 * mm],
            hAlign='LEFT',
        )
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, -1), SLATE_50),
            ('BOX', (0, 0), (-1, -1), 0.75, SLATE_200),
            ('TEXTCOLOR', (0, 0), (-1, -1), SLATE_600),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('TOPPADDING', (0, 0), (-1, -1), 4),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ]))
        return table

    def _summary(self, evaluation: ModelEvaluation) -> list:
        level = classify_risk(evaluation.overallRiskScore)
        risk_style = ParagraphStyle(
            'Risk', parent=self.styles['Heading2'], textColor=colors.HexColor(get_risk_color(level))
        )
        critical = sum(1 for t in evaluation.threats if t.severity == Severity.CRITICAL)
        return [
            Paragraph('Executive Summary', self.styles['Heading2']),
            Paragraph(f'Overall Risk Score: {format_score(evaluation.overallRiskScore)}/100', risk_style),
            Paragraph(f'Total Threats Identified: {len(evaluation.threats)}', self.styles['Normal']),
            Paragraph(f'Critical Vulnerabilities: {critical}', self.styles['Normal']),
        ]

    def _benchmark_table(self, evaluation: ModelEvaluation) -> Table:
        rows = [['Category', 'Score', 'Details']]
        for score in evaluation.scores:
            rows.append([
                self._p(score.category, self.cell_bold),
                f'{format_score(score.score)}%',
                self._p(score.details, self.cell),
            ])
        table = Table(rows, colWidths=[50 * mm, 20 * mm, CONTENT_WIDTH - 70 * mm], repeatRows=1, hAlign='LEFT')
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), INDIGO_600),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('ALIGN', (1, 0), (1, -1), 'CENTER'),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('GRID', (0, 0), (-1, -1), 0.5, SLATE_200),
        ]))
        return table

    def _threat_table(self, evaluation: ModelEvaluation) -> Table:
        rows = [['Severity', 'Title', 'Mitigation']]
        commands = [
            ('BACKGROUND', (0, 0), (-1, 0), SLATE_800),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, SLATE_50]),
        ]
        for row, threat in enumerate(evaluation.threats, start=1):
            severity = threat.severity.value
            rows.append([severity, self._p(threat.title, self.cell_bold), self._p(threat.mitigation, self.cell)])
            # Low keeps the default text color
            if threat.severity != Severity.LOW:
                commands.append(('TEXTCOLOR', (0, row), (0, row), colors.HexColor(get_severity_color(severity))))
        table = Table(rows, colWidths=[25 * mm, 50 * mm, CONTENT_WIDTH - 75 * mm], repeatRows=1, hAlign='LEFT')
        table.setStyle(TableStyle(commands))
        return table

    def build_story(self, evaluation: ModelEvaluation) -> list:
        story = [
            Paragraph('SentinelLLM Report', self.styles['Title']),
            Paragraph(f'Generated: {escape(_format_timestamp(evaluation.timestamp))}', self.small),
            Paragraph(f'Ref ID: {escape(evaluation.id)}', self.small),
            Spacer(1, 8),
            self._metadata_table(evaluation),
            Spacer(1, 10),
        ]
        story.extend(self._summary(evaluation))
        story.append(Spacer(1, 10))
        story.append(Paragraph('Benchmark Scores', self.styles['Heading2']))
        story.append(self._benchmark_table(evaluation))
        story.append(Spacer(1, 12))
        story.append(Paragraph('Detailed Threat Analysis', self.styles['Heading2']))
        story.append(self._threat_table(evaluation))
        return story

    def generate(self, evaluation: ModelEvaluation) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=A4, leftMargin=MARGIN, rightMargin=MARGIN, topMargin=MARGIN,
            title=f'SentinelLLM Report {evaluation.id}', author='SentinelLLM',
        )
        doc.build(self.build_story(evaluation))
        return buffer.getvalue()

    def generate_to_file(self, evaluation: ModelEvaluation, output_dir: Path) -> Path:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / report_filename(evaluation, 'pdf')
        with open(output_path, 'wb') as f:
            f.write(self.generate(evaluation))
        return output_path
