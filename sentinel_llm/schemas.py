"""Pydantic models for evaluations, threats and benchmark scores."""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Severity(str, Enum):
    """Threat severity, ordered from highest to lowest."""
    CRITICAL = 'Critical'
    HIGH = 'High'
    MEDIUM = 'Medium'
    LOW = 'Low'


SEVERITY_WEIGHTS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


OWASP_LLM_CATEGORIES = [
    'LLM01: Prompt Injection',
    'LLM02: Insecure Output Handling',
    'LLM03: Training Data Poisoning',
    'LLM04: Model Denial of Service',
    'LLM05: Supply Chain Vulnerabilities',
    'LLM06: Sensitive Information Disclosure',
    'LLM07: Insecure Plugin Design',
    'LLM08: Excessive Agency',
    'LLM09: Overreliance',
    'LLM10: Model Theft',
]


class Threat(BaseModel):
    """One identified vulnerability with severity, impact and mitigation."""
    model_config = ConfigDict(frozen=True)

    id: str
    category: str  # typically an OWASP LLM Top 10 label
    title: str
    description: str
    severity: Severity
    mitigation: str
    impact: str


class BenchmarkScore(BaseModel):
    """A 0-100 rating for one evaluation category."""
    model_config = ConfigDict(frozen=True)

    category: str
    score: float
    details: str


class AnalysisResponse(BaseModel):
    """Exact shape the analysis provider must return."""
    threats: list[Threat]
    scores: list[BenchmarkScore]
    overallRiskScore: float


class AnalysisResult(BaseModel):
    """Validated result handed from the provider to the store."""
    model_config = ConfigDict(frozen=True)

    threats: list[Threat] = Field(default_factory=list)
    scores: list[BenchmarkScore] = Field(default_factory=list)
    overallRisk: float = 0.0


class ModelEvaluation(BaseModel):
    """One completed security analysis run for a model/architecture/use-case triple."""
    model_config = ConfigDict(frozen=True)

    id: str
    modelName: str
    architecture: str
    useCase: str
    timestamp: str  # ISO-8601, UTC
    threats: list[Threat] = Field(default_factory=list)
    scores: list[BenchmarkScore] = Field(default_factory=list)
    overallRiskScore: float


HistoryAdapter = TypeAdapter(list[ModelEvaluation])
