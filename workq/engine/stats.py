#!/usr/bin/env python3
import time
import threading
from typing import Any, Dict, Optional

from workq.schemas import RunStats


class RunStatsTracker:

    def __init__(self, run_id: str, run_start_time: Optional[float] = None):
        self.run_id = run_id
        self.run_start_time = run_start_time or time.time()
        self._lock = threading.Lock()

        self._stats = {
            'dequeued': 0,
            'completed': 0,
            'failed': 0,
            'discarded': 0,
            'workers_started': 0,
            'in_flight': 0,
            'max_in_flight': 0,
            'total_time_seconds': 0.0,
        }

    def record_start(self):
        with self._lock:
            self._stats['dequeued'] += 1
            self._stats['in_flight'] += 1
            if self._stats['in_flight'] > self._stats['max_in_flight']:
                self._stats['max_in_flight'] = self._stats['in_flight']

    def record_success(self, duration_seconds: float):
        with self._lock:
            self._stats['in_flight'] -= 1
            self._stats['completed'] += 1
            self._stats['total_time_seconds'] += duration_seconds

    def record_failure(self, duration_seconds: float):
        with self._lock:
            self._stats['in_flight'] -= 1
            self._stats['failed'] += 1
            self._stats['total_time_seconds'] += duration_seconds

    def record_discarded(self, count: int):
        with self._lock:
            self._stats['discarded'] += count

    def record_worker_started(self):
        with self._lock:
            self._stats['workers_started'] += 1

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return self._stats.copy()

    def get_run_stats(self, timed_out: bool = False) -> RunStats:
        stats = self.get_stats()

        finished = stats['completed'] + stats['failed']
        avg_time = stats['total_time_seconds'] / finished if finished > 0 else 0.0

        return RunStats(
            run_id=self.run_id,
            dequeued=stats['dequeued'],
            completed=stats['completed'],
            failed=stats['failed'],
            discarded=stats['discarded'],
            workers_started=stats['workers_started'],
            max_in_flight=stats['max_in_flight'],
            avg_time_per_item=avg_time,
            elapsed_seconds=time.time() - self.run_start_time,
            timed_out=timed_out,
        )
