"""Risk and severity classification helpers."""

from enum import Enum


class RiskLevel(str, Enum):
    """Three-tier classification of an overall risk score."""
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40


def classify_risk(score: float) -> RiskLevel:
    """Classify an overall risk score: >=70 high, 40-69 medium, <40 low."""
    if score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    elif score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW


def get_risk_color(level: RiskLevel) -> str:
    """Get hex color for a risk level."""
    colors = {
        RiskLevel.HIGH: "#ef4444",
        RiskLevel.MEDIUM: "#eab308",
        RiskLevel.LOW: "#10b981",
    }
    return colors[level]


def get_risk_cli_color(level: RiskLevel) -> str:
    """Get the terminal color name for a risk level."""
    colors = {
        RiskLevel.HIGH: "red",
        RiskLevel.MEDIUM: "yellow",
        RiskLevel.LOW: "green",
    }
    return colors[level]


def get_severity_color(severity: str) -> str:
    """Get hex color for a threat severity."""
    colors = {
        "Critical": "#ef4444",
        "High": "#f97316",
        "Medium": "#eab308",
        "Low": "#3b82f6",
    }
    return colors.get(str(getattr(severity, 'value', severity)), "#808080")


def get_severity_cli_color(severity: str) -> str:
    """Get the click color name for a threat severity."""
    colors = {
        "Critical": "red",
        "High": "bright_red",
        "Medium": "yellow",
        "Low": "blue",
    }
    return colors.get(str(getattr(severity, 'value', severity)), "white")


def format_score(value: float) -> str:
    """Render a score without a trailing '.0' for whole numbers."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return f'{number:.1f}'
