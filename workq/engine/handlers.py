import traceback

from workq.errors import HandlerFailed, WorkQueueError
from workq.schemas import HandlerResult, ItemPhase, WorkItem

from . import tracking


def handle_success(
    worker_pool,
    batch,
    item: WorkItem,
    value,
    worker_id: str,
    duration_seconds: float
):
    # Result must be stored before the item stops counting as in flight
    batch.collector.add(HandlerResult(
        sequence_id=item.sequence_id,
        value=value,
        worker=worker_id,
        duration_seconds=duration_seconds
    ))
    batch.stats.record_success(duration_seconds)
    tracking.untrack(worker_pool, [item.sequence_id])

    worker_pool.logger.debug(
        f"Worker {worker_id} ✓ item {item.sequence_id} ({duration_seconds:.3f}s)",
        run_id=batch.run_id,
        sequence_id=item.sequence_id,
        worker=worker_id,
        duration_seconds=duration_seconds
    )


def handle_failure(
    worker_pool,
    batch,
    item: WorkItem,
    error: Exception,
    worker_id: str,
    duration_seconds: float
):
    batch.stats.record_failure(duration_seconds)
    tracking.update_item_phase(worker_pool, item.sequence_id, ItemPhase.FAILED, worker=worker_id)

    if not worker_pool.admission.fail(batch, HandlerFailed(item.sequence_id, error), error):
        worker_pool.logger.debug(
            f"Worker {worker_id} ✗ item {item.sequence_id} after run already failed",
            run_id=batch.run_id,
            sequence_id=item.sequence_id,
            error=str(error),
            error_type=type(error).__name__
        )
        return

    worker_pool.logger.error(
        f"✗ item {item.sequence_id}: handler raised {type(error).__name__}: {error}",
        run_id=batch.run_id,
        sequence_id=item.sequence_id,
        worker=worker_id,
        error=str(error),
        error_type=type(error).__name__,
        duration_seconds=duration_seconds,
        traceback=traceback.format_exc()
    )


def handle_worker_crash(
    worker_pool,
    batch,
    item: WorkItem,
    error: Exception,
    worker_id: str
):
    error_detail = traceback.format_exc()

    crash = WorkQueueError(
        f"Worker {worker_id} crashed on item {item.sequence_id}: "
        f"{type(error).__name__}: {error}"
    )
    worker_pool.admission.fail(batch, crash, error)

    worker_pool.logger.error(
        "CRITICAL: Worker thread crashed with unexpected error",
        run_id=batch.run_id,
        sequence_id=item.sequence_id,
        worker=worker_id,
        error=str(error),
        error_type=type(error).__name__,
        traceback=error_detail
    )
