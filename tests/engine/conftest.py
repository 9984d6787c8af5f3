"""
Shared fixtures for workq/engine tests.

All tests use real threads and real (short) sleeps.
No mocking - we test actual behavior.
"""

import threading
import pytest

from workq.engine import WorkEngine


@pytest.fixture
def make_engine():
    """Factory for engines with test-friendly defaults."""
    def _make(handler, max_queue_capacity=10, max_workers=2, deadline_millis=2000, **kwargs):
        return WorkEngine(
            handler,
            max_queue_capacity=max_queue_capacity,
            max_workers=max_workers,
            deadline_millis=deadline_millis,
            **kwargs
        )
    return _make


@pytest.fixture
def release():
    """Event that blocked handlers wait on; always set at teardown so no thread lingers."""
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def identity():
    def handler(item, engine):
        return item
    return handler
