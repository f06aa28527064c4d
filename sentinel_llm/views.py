"""Sorted and filtered projections of an evaluation for display.

Every function here is pure: inputs are never mutated and a new list is
returned, so the stored evaluation stays exactly as the provider produced it.
"""

import locale
import unicodedata
from enum import Enum
from typing import Callable, Iterable, Optional

from .schemas import SEVERITY_WEIGHTS, BenchmarkScore, Severity, Threat


class SortOption(str, Enum):
    """Orderings offered by the threat catalog."""
    SEVERITY_DESC = 'severity-desc'
    SEVERITY_ASC = 'severity-asc'
    TITLE_ASC = 'title-asc'
    CATEGORY_ASC = 'category-asc'


SORT_LABELS = {
    SortOption.SEVERITY_DESC: 'Severity (Critical → Low)',
    SortOption.SEVERITY_ASC: 'Severity (Low → Critical)',
    SortOption.TITLE_ASC: 'Title (A-Z)',
    SortOption.CATEGORY_ASC: 'Category (A-Z)',
}


_WEIGHTS_BY_NAME = {s.value: weight for s, weight in SEVERITY_WEIGHTS.items()}


def severity_weight(severity) -> int:
    """Critical=4 ... Low=1; anything unrecognized weighs 0."""
    name = getattr(severity, "value", severity)
    if not isinstance(name, str):
        return 0
    return _WEIGHTS_BY_NAME.get(name, 0)


def _fold(value: str) -> str:
    decomposed = unicodedata.normalize('NFKD', value)
    return ''.join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _text_key(value: str) -> tuple[str, str, str]:
    """Collation key: accents and case only break ties, as in dictionary order.

    The active LC_COLLATE refines ties, then the raw text keeps the order total.
    """
    value = value or ''
    return (_fold(value), locale.strxfrm(value.casefold()), value)


_SORTERS: dict[SortOption, tuple[Callable[[Threat], object], bool]] = {
    SortOption.SEVERITY_DESC: (lambda t: severity_weight(t.severity), True),
    SortOption.SEVERITY_ASC: (lambda t: severity_weight(t.severity), False),
    SortOption.TITLE_ASC: (lambda t: _text_key(t.title), False),
    SortOption.CATEGORY_ASC: (lambda t: _text_key(t.category), False),
}


def sort_threats(threats: Iterable[Threat], option: SortOption | str) -> list[Threat]:
    """Return threats ordered by the given option. Equal keys keep input order."""
    key, reverse = _SORTERS[SortOption(option)]
    # sorted() is stable for reverse=True as well
    return sorted(threats, key=key, reverse=reverse)


def filter_threats(
    threats: Iterable[Threat],
    severity: Optional[Severity | str] = None,
    category: Optional[str] = None,
    query: Optional[str] = None,
) -> list[Threat]:
    """Keep threats matching every given criterion. Text matches are case-insensitive."""
    wanted_severity = Severity(severity) if severity else None
    wanted_category = category.casefold() if category else None
    needle = query.casefold() if query else None

    result = []
    for threat in threats:
        if wanted_severity is not None and threat.severity != wanted_severity:
            continue
        if wanted_category is not None and wanted_category not in threat.category.casefold():
            continue
        if needle is not None:
            haystack = ' '.join([threat.title, threat.description, threat.category]).casefold()
            if needle not in haystack:
                continue
        result.append(threat)
    return result


def severity_counts(threats: Iterable[Threat]) -> dict[Severity, int]:
    counts = {s: 0 for s in Severity}
    for threat in threats:
        if threat.severity in counts:
            counts[threat.severity] += 1
    return counts


def critical_count(threats: Iterable[Threat]) -> int:
    return sum(1 for t in threats if t.severity == Severity.CRITICAL)


def short_category(label: str) -> str:
    """'LLM01: Prompt Injection' -> 'LLM01'."""
    return label.split(':')[0].strip()


def average_score(scores: Iterable[BenchmarkScore]) -> float:
    values = [s.score for s in scores]
    if not values:
        return 0.0
    return sum(values) / len(values)
