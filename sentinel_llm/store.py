"""Evaluation store: current evaluation plus the persisted, newest-first history."""

import logging
import secrets
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from .errors import AnalysisFailure, PersistenceReadFailure
from .provider import AnalysisProvider
from .schemas import HistoryAdapter, ModelEvaluation
from .storage import BACKUP_SUFFIX, HISTORY_KEY, HistoryStorage


logger = logging.getLogger(__name__)


def generate_evaluation_id() -> str:
    return secrets.token_hex(4)


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class EvaluationStore:
    """Owns the current evaluation and the evaluation history.

    History is kept newest-first and written through to storage in full on
    every insert or delete. It is read once, when the store is created.
    """

    def __init__(
        self,
        provider: AnalysisProvider,
        storage: HistoryStorage,
        key: str = HISTORY_KEY,
        id_factory: Callable[[], str] = generate_evaluation_id,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.provider = provider
        self.storage = storage
        self.key = key
        self._id_factory = id_factory
        self._clock = clock
        self._lock = threading.Lock()
        self._current: Optional[ModelEvaluation] = None
        # Set while the stored blob is unreadable and has not been backed up yet
        self._needs_backup = False
        try:
            self._history = self._read_history()
        except PersistenceReadFailure as e:
            logger.warning('Ignoring unreadable evaluation history: %s', e)
            self._history = []
            self._needs_backup = True

    @property
    def backup_key(self) -> str:
        return f'{self.key}{BACKUP_SUFFIX}'

    @property
    def history(self) -> tuple[ModelEvaluation, ...]:
        return tuple(self._history)

    @property
    def current(self) -> Optional[ModelEvaluation]:
        return self._current

    def get(self, evaluation_id: str) -> Optional[ModelEvaluation]:
        for evaluation in self._history:
            if evaluation.id == evaluation_id:
                return evaluation
        return None

    def _read_history(self) -> list[ModelEvaluation]:
        try:
            blob = self.storage.read(self.key)
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceReadFailure(f'Could not read {self.key}: {e}') from e
        if blob is None or not blob.strip():
            return []
        try:
            return HistoryAdapter.validate_json(blob)
        except ValidationError as e:
            raise PersistenceReadFailure(f'Malformed history under {self.key}: {e}') from e

    def _backup_unreadable(self) -> None:
        """Copy an unreadable history blob aside before it is first overwritten."""
        try:
            blob = self.storage.read(self.key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning('Could not back up unreadable history %s: %s', self.key, e)
            return
        if blob is not None:
            self.storage.write(self.backup_key, blob)
            logger.warning('Backed up unreadable history to %s', self.backup_key)

    def _write_history(self, history: list[ModelEvaluation]) -> None:
        if self._needs_backup:
            self._backup_unreadable()
            self._needs_backup = False
        blob = HistoryAdapter.dump_json(history).decode('utf-8')
        self.storage.write(self.key, blob)

    def _new_id(self) -> str:
        existing = {e.id for e in self._history}
        evaluation_id = self._id_factory()
        while evaluation_id in existing:
            evaluation_id = self._id_factory()
        return evaluation_id

    def submit(self, model_name: str, architecture: str, use_case: str) -> ModelEvaluation:
        """Run one analysis and record it. On AnalysisFailure nothing changes."""
        with self._lock:
            try:
                result = self.provider.analyze(model_name, architecture, use_case)
            except AnalysisFailure:
                logger.warning('Analysis failed for model %r; history left unchanged', model_name)
                raise

            evaluation = ModelEvaluation(
                id=self._new_id(),
                modelName=model_name,
                architecture=architecture,
                useCase=use_case,
                timestamp=self._clock(),
                threats=result.threats,
                scores=result.scores,
                overallRiskScore=result.overallRisk,
            )
            updated = [evaluation] + self._history
            self._write_history(updated)
            self._history = updated
            self._current = evaluation
            logger.info('Recorded evaluation %s (%d in history)', evaluation.id, len(updated))
            return evaluation

    def load_from_history(self, evaluation_id: str) -> Optional[ModelEvaluation]:
        """Make a history entry current. Unknown ids are ignored."""
        evaluation = self.get(evaluation_id)
        if evaluation is None:
            logger.debug('load_from_history: no evaluation %s', evaluation_id)
            return None
        self._current = evaluation
        return evaluation

    def delete_from_history(self, evaluation_id: str) -> bool:
        """Remove a history entry. The current evaluation is left as it is."""
        with self._lock:
            updated = [e for e in self._history if e.id != evaluation_id]
            if len(updated) == len(self._history):
                logger.debug('delete_from_history: no evaluation %s', evaluation_id)
                return False
            self._write_history(updated)
            self._history = updated
            logger.info('Deleted evaluation %s (%d left in history)', evaluation_id, len(updated))
            return True
