from __future__ import annotations

import itertools

import pytest

from sentinel_llm.errors import AnalysisFailure
from sentinel_llm.schemas import AnalysisResult, BenchmarkScore, Threat
from sentinel_llm.storage import MemoryStorage
from sentinel_llm.store import EvaluationStore


def make_threat(id: str = "T1", severity: str = "High", title: str = "Prompt injection via RAG",
                category: str = "LLM01: Prompt Injection") -> Threat:
    return Threat(
        id=id,
        category=category,
        title=title,
        description=f"Description of {title}",
        severity=severity,
        mitigation="Isolate retrieved content from instructions.",
        impact="Attacker controls model output.",
    )


def make_score(category: str = "LLM01: Prompt Injection", score: float = 55) -> BenchmarkScore:
    return BenchmarkScore(category=category, score=score, details=f"Details for {category}")


class FakeProvider:
    """Returns queued results in order; queued exceptions are raised."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, str, str]] = []

    def analyze(self, model_name: str, architecture: str, use_case: str) -> AnalysisResult:
        self.calls.append((model_name, architecture, use_case))
        if not self.outcomes:
            raise AnalysisFailure("no more outcomes queued")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def gpt4o_result() -> AnalysisResult:
    return AnalysisResult(
        threats=[
            make_threat("T-LOW", "Low", "Verbose error messages", "LLM09: Overreliance"),
            make_threat("T-CRIT", "Critical", "Indirect prompt injection", "LLM01: Prompt Injection"),
        ],
        scores=[
            make_score("LLM01: Prompt Injection", 35),
            make_score("LLM06: Sensitive Information Disclosure", 48.5),
        ],
        overallRisk=75,
    )


@pytest.fixture
def empty_result() -> AnalysisResult:
    return AnalysisResult(threats=[], scores=[], overallRisk=10)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def make_store(memory_storage):
    """Factory for a store with sequential ids and fixed timestamps."""

    def _make(*outcomes, storage=None) -> EvaluationStore:
        counter = itertools.count(1)
        ticks = itertools.count(0)
        return EvaluationStore(
            FakeProvider(*outcomes),
            storage if storage is not None else memory_storage,
            id_factory=lambda: f"eval{next(counter)}",
            clock=lambda: f"2024-05-01T12:00:{next(ticks):02d}.000Z",
        )

    return _make
