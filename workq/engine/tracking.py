import time
from typing import Dict, Iterable, Optional

from workq.schemas import ItemPhase, ItemStatus, WorkItem


def track_queued(worker_pool, items: Iterable[WorkItem]):
    with worker_pool.tracking_lock:
        for item in items:
            worker_pool.active_items[item.sequence_id] = ItemStatus(
                sequence_id=item.sequence_id,
                phase=ItemPhase.QUEUED,
                admitted_at=item.admitted_at,
                phase_entered_at=item.admitted_at,
            )


def update_item_phase(worker_pool, sequence_id: int, phase: ItemPhase, worker: Optional[str] = None):
    with worker_pool.tracking_lock:
        if sequence_id in worker_pool.active_items:
            status = worker_pool.active_items[sequence_id]
            status.phase = phase
            status.phase_entered_at = time.time()
            if worker is not None:
                status.worker = worker


def untrack(worker_pool, sequence_ids: Iterable[int]):
    with worker_pool.tracking_lock:
        for sequence_id in sequence_ids:
            worker_pool.active_items.pop(sequence_id, None)


def get_active_items(worker_pool) -> Dict[int, ItemStatus]:
    with worker_pool.tracking_lock:
        return {
            seq_id: ItemStatus(
                sequence_id=status.sequence_id,
                phase=status.phase,
                admitted_at=status.admitted_at,
                phase_entered_at=status.phase_entered_at,
                worker=status.worker,
            )
            for seq_id, status in worker_pool.active_items.items()
        }
