from __future__ import annotations

import time

import numpy as np
import pandas as pd

from result_ingest.db.store import InMemoryStudentStore
from result_ingest.services.orchestrator import extract

"""Performance smoke test: in-process ingest of a synthetic 4k-row CSV.

Budget is lenient so CI stays stable; it only guards against accidental
quadratic behaviour in extraction, aggregation or merging.
"""

STUDENTS = 500
SUBJECTS = 8


def _synthetic_csv(students: int, subjects: int, seed: int = 42) -> bytes:
    np.random.seed(seed)
    total = students * subjects
    df = pd.DataFrame(
        {
            "SNO": np.arange(1, total + 1),
            "HTNO": [f"21HN1A{n // subjects + 1:04d}" for n in range(total)],
            "SUBCODE": [f"R2012{n % subjects + 1:02d}" for n in range(total)],
            "SUBNAME": [f"Subject {n % subjects + 1}" for n in range(total)],
            "INT": np.random.randint(0, 31, total),
            "GRADE": np.random.choice(["O", "A", "B", "C", "F"], total),
            "CR": np.random.choice([1.5, 3.0], total),
        }
    )
    return ("Regular Results\n" + df.to_csv(index=False)).encode("utf-8")


def test_ingest_smoke():
    data = _synthetic_csv(STUDENTS, SUBJECTS)
    store = InMemoryStudentStore()

    start = time.perf_counter()
    outcome = extract(data, "1-2", store, document_name="synthetic.csv")
    elapsed = time.perf_counter() - start

    assert outcome.processed_count == STUDENTS * SUBJECTS
    assert outcome.saved_count == STUDENTS
    assert len(store) == STUDENTS
    assert elapsed < 10.0, f"ingest too slow: {elapsed:.3f}s"
    throughput = outcome.processed_count / max(elapsed, 1e-9)
    assert throughput > 400  # extremely lenient


def test_reingest_smoke():
    data = _synthetic_csv(STUDENTS, SUBJECTS, seed=7)
    store = InMemoryStudentStore()
    extract(data, "1-2", store)

    start = time.perf_counter()
    outcome = extract(data, "1-2", store)
    elapsed = time.perf_counter() - start

    assert outcome.saved_count == STUDENTS
    assert sum(len(r.subjects) for r in store.records()) == STUDENTS * SUBJECTS
    assert elapsed < 10.0
