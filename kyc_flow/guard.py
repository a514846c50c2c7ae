import logging
import threading
from contextlib import contextmanager

from .errors import SubmissionInProgress

logger = logging.getLogger(__name__)


class InFlightGuard:
    """
    Single-slot token for one stage's submission.

    ``hold()`` fails immediately with SubmissionInProgress instead of waiting
    when a submission for the same stage is already running.
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self):
        if not self._lock.acquire(blocking=False):
            logger.warning("Rejected concurrent %s submission", self.name)
            raise SubmissionInProgress(f"A {self.name} submission is already in progress")
        try:
            yield self
        finally:
            self._lock.release()
