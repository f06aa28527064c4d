"""Builds the analysis request sent to the hosted model."""

from dataclasses import dataclass, field

from .schemas import OWASP_LLM_CATEGORIES, Severity


PROMPT_TEMPLATE = """Perform a comprehensive security threat model and benchmark evaluation for the following LLM deployment:
  Model: {model_name}
  Architecture: {architecture}
  Use Case: {use_case}

  Evaluate this against the OWASP Top 10 for LLMs ({categories}).
  For the benchmarking section, provide a security score (0-100) for each of the 10 categories based on typical performance of this model architecture and the specific deployment context.

  Return a structured JSON object."""


THREAT_FIELDS = ['id', 'category', 'title', 'description', 'severity', 'mitigation', 'impact']
SCORE_FIELDS = ['category', 'score', 'details']


def _threat_schema() -> dict:
    properties = {name: {'type': 'STRING'} for name in THREAT_FIELDS}
    properties['severity'] = {'type': 'STRING', 'enum': [s.value for s in Severity]}
    return {'type': 'OBJECT', 'properties': properties, 'required': list(THREAT_FIELDS)}


def _score_schema() -> dict:
    return {
        'type': 'OBJECT',
        'properties': {
            'category': {'type': 'STRING'},
            'score': {'type': 'NUMBER'},
            'details': {'type': 'STRING'},
        },
        'required': list(SCORE_FIELDS),
    }


def response_schema() -> dict:
    """Required output shape: threats, scores and an overall risk number."""
    return {
        'type': 'OBJECT',
        'properties': {
            'threats': {'type': 'ARRAY', 'items': _threat_schema()},
            'scores': {'type': 'ARRAY', 'items': _score_schema()},
            'overallRiskScore': {'type': 'NUMBER'},
        },
        'required': ['threats', 'scores', 'overallRiskScore'],
    }


@dataclass(frozen=True)
class AnalysisRequest:
    """A natural-language instruction plus the required response shape."""
    prompt: str
    schema: dict = field(default_factory=response_schema)

    def to_payload(self) -> dict:
        """Body for the generateContent endpoint."""
        return {
            'contents': [{'role': 'user', 'parts': [{'text': self.prompt}]}],
            'generationConfig': {
                'responseMimeType': 'application/json',
                'responseSchema': self.schema,
            },
        }


def build_analysis_request(model_name: str, architecture: str, use_case: str) -> AnalysisRequest:
    """Embed the three descriptors verbatim; free text is not validated."""
    prompt = PROMPT_TEMPLATE.format(
        model_name=model_name,
        architecture=architecture,
        use_case=use_case,
        categories=', '.join(OWASP_LLM_CATEGORIES),
    )
    return AnalysisRequest(prompt=prompt)
