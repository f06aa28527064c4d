"""Analysis provider adapter for the hosted Gemini model."""

import json
import logging
from typing import Optional, Protocol

import requests
from pydantic import ValidationError

from .errors import AnalysisFailure
from .request_builder import build_analysis_request
from .schemas import AnalysisResponse, AnalysisResult


logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-3-pro-preview'
DEFAULT_BASE_URL = 'https://generativelanguage.googleapis.com/v1beta'
DEFAULT_TIMEOUT = 120


class AnalysisProvider(Protocol):
    """Anything that turns three deployment descriptors into an analysis result."""

    def analyze(self, model_name: str, architecture: str, use_case: str) -> AnalysisResult:
        ...


def parse_analysis_text(text: Optional[str]) -> AnalysisResult:
    """Validate raw model output against the expected response shape."""
    if not text or not text.strip():
        raise AnalysisFailure('Analysis provider returned an empty response')
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AnalysisFailure(f'Analysis response is not valid JSON: {e}') from e
    try:
        response = AnalysisResponse.model_validate(data)
    except ValidationError as e:
        raise AnalysisFailure(f'Analysis response has an unexpected shape: {e}') from e
    return AnalysisResult(
        threats=response.threats,
        scores=response.scores,
        overallRisk=response.overallRiskScore,
    )


def _candidate_text(body: dict) -> Optional[str]:
    """Text of the first candidate, or None when the envelope has any other shape."""
    candidates = body.get('candidates')
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, dict):
        return None
    content = first.get('content')
    if not isinstance(content, dict):
        return None
    parts = content.get('parts')
    if not isinstance(parts, list):
        return None
    texts = [p['text'] for p in parts if isinstance(p, dict) and isinstance(p.get('text'), str)]
    return ''.join(texts) or None


class GeminiAnalysisProvider:
    """Calls the Generative Language generateContent endpoint with a response schema.

    Exactly one attempt is made per call; every failure mode surfaces as
    AnalysisFailure.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f'{self.base_url}/models/{self.model}:generateContent'

    def analyze(self, model_name: str, architecture: str, use_case: str) -> AnalysisResult:
        if not self.api_key:
            raise AnalysisFailure('No API key configured for the analysis provider')

        request = build_analysis_request(model_name, architecture, use_case)
        headers = {'x-goog-api-key': self.api_key, 'Content-Type': 'application/json'}
        logger.debug('Requesting analysis from %s for model %r', self.model, model_name)

        try:
            res = self.session.post(
                self.endpoint, json=request.to_payload(), headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning('Analysis request transport error: %s', e)
            raise AnalysisFailure(f'Analysis request failed: {e}') from e

        if res.status_code >= 400:
            logger.warning('Analysis request failed: status=%s body=%s', res.status_code, res.text[:400])
            raise AnalysisFailure(f'Analysis provider rejected the request (HTTP {res.status_code})')

        try:
            body = res.json()
        except ValueError as e:
            raise AnalysisFailure('Analysis provider returned a non-JSON body') from e
        if not isinstance(body, dict):
            raise AnalysisFailure('Analysis provider returned an unexpected body')

        result = parse_analysis_text(_candidate_text(body))
        logger.info(
            'Analysis complete: %d threats, %d scores, overall risk %s',
            len(result.threats), len(result.scores), result.overallRisk,
        )
        return result
