from workq.config import (
    EngineConfig,
    EngineConfigManager,
    load_engine_config,
)

from workq.engine import (
    WorkEngine,
    EngineHandle,
)

from workq.errors import (
    WorkQueueError,
    CapacityExceeded,
    ExecutionTimedOut,
    HandlerFailed,
    BatchClosed,
    EngineBusy,
    ResultsIncomplete,
)

from workq.schemas import (
    WorkItem,
    HandlerResult,
    ItemPhase,
    ItemStatus,
    RunStats,
)

from workq.logger import (
    EngineLogger,
    create_logger,
)

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "EngineConfigManager",
    "load_engine_config",

    "WorkEngine",
    "EngineHandle",

    "WorkQueueError",
    "CapacityExceeded",
    "ExecutionTimedOut",
    "HandlerFailed",
    "BatchClosed",
    "EngineBusy",
    "ResultsIncomplete",

    "WorkItem",
    "HandlerResult",
    "ItemPhase",
    "ItemStatus",
    "RunStats",

    "EngineLogger",
    "create_logger",
]
