from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.job_state import JobPhase

"""Progress display service with tqdm (TTY only).

- A single tqdm bar over documents, disabled in non-TTY environments
- Each document reports coarse phases (reading -> extracting -> validating
  -> persisting -> done) through a ProgressSink; the bar shows the current
  phase as a postfix. There are no per-row updates.
"""

__all__ = [
    "ProgressSink",
    "ProgressTracker",
    "is_tty_enabled",
    "no_progress",
]

ProgressSink = Callable[[JobPhase], None]


def no_progress(phase: JobPhase) -> None:
    """Sink that ignores phase updates."""


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress tracker using tqdm for document processing.

    In non-TTY environments (CI, piped output) the bar is disabled to avoid
    ANSI control sequence spam; phase updates are still recorded.
    """

    def __init__(self, total_documents: int, *, description: str = "Ingesting documents") -> None:
        self.total_documents = total_documents
        self.description = description
        self.current_document = 0
        self.current_phase: JobPhase | None = None

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_documents,
                desc=description,
                unit="doc",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_document(self, name: str) -> None:
        self.current_document += 1
        self.current_phase = JobPhase.PENDING
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({name})")

    def phase(self, phase: JobPhase) -> None:
        """ProgressSink for the document currently being processed."""
        self.current_phase = phase
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(phase=phase.value)

    def finish_document(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
