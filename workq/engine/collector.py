import threading
from typing import Generic, List, TypeVar

from workq.schemas import HandlerResult

R = TypeVar("R")


class ResultCollector(Generic[R]):
    """Append-only, lock-guarded list of results for one run.

    Results arrive in completion order; ``ordered()`` restores admission
    order by sorting on sequence id.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._results: List[HandlerResult[R]] = []

    def add(self, result: HandlerResult[R]):
        with self._lock:
            self._results.append(result)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def results(self) -> List[HandlerResult[R]]:
        with self._lock:
            return sorted(self._results, key=lambda r: r.sequence_id)

    def ordered(self) -> List[R]:
        return [r.value for r in self.results()]
