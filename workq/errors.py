from typing import Optional


class WorkQueueError(Exception):
    """Base class for every error raised by the work engine."""


class CapacityExceeded(WorkQueueError):
    def __init__(self, requested: int, pending: int, capacity: int):
        self.requested = requested
        self.pending = pending
        self.capacity = capacity
        super().__init__(
            f"Work queue capacity reached: {pending} pending + {requested} requested "
            f"exceeds capacity {capacity}"
        )


class ExecutionTimedOut(WorkQueueError):
    def __init__(self, deadline_millis: int, completed: int, dequeued: int):
        self.deadline_millis = deadline_millis
        self.completed = completed
        self.dequeued = dequeued
        super().__init__(
            f"Run did not finish within {deadline_millis}ms "
            f"({completed}/{dequeued} started items completed)"
        )


class HandlerFailed(WorkQueueError):
    """A handler raised while processing an item.

    The original exception is kept on ``cause`` and chained as ``__cause__``
    when re-raised from ``WorkEngine.run``.
    """

    def __init__(self, sequence_id: int, cause: BaseException):
        self.sequence_id = sequence_id
        self.cause = cause
        super().__init__(
            f"Handler failed for item {sequence_id}: {type(cause).__name__}: {cause}"
        )


class BatchClosed(WorkQueueError):
    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id
        super().__init__(f"Run {run_id} is no longer accepting work")


class EngineBusy(WorkQueueError):
    def __init__(self):
        super().__init__("run() is already in progress on this engine")


class ResultsIncomplete(WorkQueueError):
    def __init__(self, expected: int, collected: int):
        self.expected = expected
        self.collected = collected
        super().__init__(
            f"Run reached quiescence with {expected - collected} results missing "
            f"(expected {expected}, collected {collected})"
        )
