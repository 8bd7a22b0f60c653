from __future__ import annotations

import logging
import threading
import uuid

from ..db.store import StudentStore
from ..errors import ExtractionError
from ..models.batch_outcome import BatchOutcome
from ..models.config_models import ExtractionRules
from ..models.job_state import JobPhase, JobState
from .orchestrator import extract
from .progress import ProgressSink

"""Job-state store for background ingests.

Upload glue creates a job, runs the ingest (typically on a worker thread)
and lets clients poll the job. Lifecycle:

    create() -> phase updates via sink(job_id) -> complete()/fail()
    -> observe() returns the terminal snapshot once and reaps the job

The store is an explicit object owned by the caller; there is no module
level state.
"""

__all__ = [
    "UnknownJob",
    "JobStateStore",
    "run_job",
]

logger = logging.getLogger(__name__)


class UnknownJob(KeyError):
    pass


class JobStateStore:
    def __init__(self) -> None:
        self._jobs: dict[str, JobState] = {}
        self._lock = threading.Lock()

    def create(self) -> str:
        job_id = uuid.uuid4().hex
        with self._lock:
            self._jobs[job_id] = JobState(job_id=job_id).advance(JobPhase.PENDING)
        return job_id

    def _update(self, job_id: str, phase: JobPhase, **changes: object) -> JobState:
        with self._lock:
            state = self._jobs.get(job_id)
            if state is None:
                raise UnknownJob(job_id)
            if state.completed:
                # 終了後の更新は無視
                return state
            state = state.advance(phase, **changes)
            self._jobs[job_id] = state
            return state

    def sink(self, job_id: str) -> ProgressSink:
        """ProgressSink that records phase transitions on the job."""
        def _on_phase(phase: JobPhase) -> None:
            # 終了状態は complete()/fail() でのみ設定
            if not phase.is_terminal:
                self._update(job_id, phase)
        return _on_phase

    def complete(self, job_id: str, outcome: BatchOutcome) -> JobState:
        return self._update(job_id, JobPhase.DONE, outcome=outcome)

    def fail(self, job_id: str, message: str) -> JobState:
        return self._update(job_id, JobPhase.FAILED, error=message)

    def get(self, job_id: str) -> JobState | None:
        with self._lock:
            return self._jobs.get(job_id)

    def observe(self, job_id: str) -> JobState:
        """Snapshot for a poller; a terminal job is removed once observed.

        Raises:
            UnknownJob: never created, or already reaped
        """
        with self._lock:
            state = self._jobs.get(job_id)
            if state is None:
                raise UnknownJob(job_id)
            if state.completed:
                del self._jobs[job_id]
            return state

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)


def run_job(
    jobs: JobStateStore,
    job_id: str,
    document_bytes: bytes,
    semester: str,
    store: StudentStore,
    *,
    rules: ExtractionRules | None = None,
    document_name: str = "<upload>",
) -> JobState:
    """Run extract() for a job and record its terminal state.

    Fatal extraction errors end the job as FAILED with the error message;
    anything else propagates after the job is marked FAILED.
    """
    try:
        outcome = extract(
            document_bytes,
            semester,
            store,
            rules=rules,
            progress=jobs.sink(job_id),
            document_name=document_name,
        )
    except ExtractionError as e:
        logger.error("job=%s document=%s failed: %s", job_id, document_name, e)
        return jobs.fail(job_id, str(e))
    except Exception as e:
        jobs.fail(job_id, f"unexpected error: {e}")
        raise
    return jobs.complete(job_id, outcome)
