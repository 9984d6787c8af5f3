"""Bounded, order-preserving work engine.

The WorkEngine runs a caller-supplied handler over admitted items on a
thread pool and returns the results in admission order:

1. **Admission** (admission.py)
   - Capacity check and sequence-id assignment under one lock
   - Blocking take() that only reports "done" at quiescence
     (nothing pending AND nothing in flight)

2. **Execution** (pool.py)
   - ThreadPoolExecutor with min_workers prestarted, grown up to
     max_workers when handlers fan out
   - Workers exit when the run is quiescent or stopped

3. **Result Handling** (handlers.py)
   - Success: store HandlerResult, then release the in-flight slot
   - Failure: stop the run, surface HandlerFailed from run()
   - Crash: log, stop the run

4. **Collection** (collector.py)
   - Lock-guarded append list, sorted by sequence id at the end

5. **Phase Tracking** (tracking.py) and **Stats** (stats.py)
   - QUEUED → RUNNING → FAILED per item, dropped once completed
   - Per-run counters exposed as WorkEngine.last_run_stats

## Usage

    from workq.engine import WorkEngine

    def handler(word, engine):
        if len(word) > 1:
            engine.submit(word[1:])
        return word.upper()

    engine = WorkEngine(handler, max_queue_capacity=10, max_workers=4,
                        deadline_millis=1000)
    engine.submit_all(["abc", "de"])
    engine.run()   # ['ABC', 'DE', ...]: derived items follow in admission order
"""
from .admission import AdmissionQueue
from .batch import Batch
from .collector import ResultCollector
from .engine import EngineHandle, WorkEngine
from .pool import WorkerPool
from .stats import RunStatsTracker

__all__ = [
    'WorkEngine',
    'EngineHandle',
    'AdmissionQueue',
    'Batch',
    'ResultCollector',
    'WorkerPool',
    'RunStatsTracker',
]
