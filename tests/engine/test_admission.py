"""
Tests for workq/engine/admission.py

Key behaviors to verify:
1. Capacity rule is the same for single and batch admission
2. Rejected admissions mutate nothing
3. Sequence ids are assigned at admission, strictly increasing
4. take() only reports "done" at quiescence, not when merely empty
"""

import threading
import time

import pytest

from workq.engine.admission import AdmissionQueue
from workq.engine.batch import Batch
from workq.errors import BatchClosed, CapacityExceeded, HandlerFailed


@pytest.fixture
def batch():
    return Batch("run-test")


class TestCapacity:
    """Pending count may never exceed max_capacity."""

    def test_single_admission_fills_to_capacity(self):
        queue = AdmissionQueue(max_capacity=3)

        for payload in ["a", "b", "c"]:
            queue.admit(payload)

        assert queue.pending_count() == 3
        with pytest.raises(CapacityExceeded):
            queue.admit("d")

    def test_batch_admission_fills_to_capacity(self):
        queue = AdmissionQueue(max_capacity=3)

        queue.admit_all(["a", "b", "c"])

        assert queue.pending_count() == 3

    def test_batch_rejection_is_all_or_nothing(self):
        queue = AdmissionQueue(max_capacity=3)
        queue.admit("a")

        with pytest.raises(CapacityExceeded) as exc_info:
            queue.admit_all(["b", "c", "d"])

        assert queue.pending_count() == 1
        assert queue.next_sequence_id() == 1, "Rejected batch must not consume ids"
        assert exc_info.value.pending == 1
        assert exc_info.value.requested == 3
        assert exc_info.value.capacity == 3

    def test_taken_items_free_capacity(self, batch):
        queue = AdmissionQueue(max_capacity=1)
        queue.admit("a")

        queue.take(batch)

        queue.admit("b")
        assert queue.pending_count() == 1

    def test_empty_batch_is_noop(self):
        queue = AdmissionQueue(max_capacity=1)

        assert queue.admit_all([]) == []
        assert queue.next_sequence_id() == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            AdmissionQueue(max_capacity=0)


class TestSequenceIds:
    """Ids are assigned at admission, shared between single and batch paths."""

    def test_ids_follow_admission_order(self):
        queue = AdmissionQueue(max_capacity=10)

        first = queue.admit("a")
        batch_items = queue.admit_all(["b", "c", "d"])
        last = queue.admit("e")

        ids = [first.sequence_id] + [i.sequence_id for i in batch_items] + [last.sequence_id]
        assert ids == [0, 1, 2, 3, 4]
        assert [i.payload for i in batch_items] == ["b", "c", "d"]

    def test_ids_not_reused_after_take(self, batch):
        queue = AdmissionQueue(max_capacity=1)

        seen = []
        for payload in ["a", "b", "c"]:
            queue.admit(payload)
            item = queue.take(batch)
            queue.task_done(batch)
            seen.append(item.sequence_id)

        assert seen == [0, 1, 2]

    def test_on_admitted_receives_new_items(self):
        received = []
        queue = AdmissionQueue(max_capacity=5, on_admitted=received.extend)

        queue.admit_all(["a", "b"])

        assert [i.sequence_id for i in received] == [0, 1]

    def test_accept_veto_admits_nothing(self, batch):
        queue = AdmissionQueue(max_capacity=5)
        batch.stop_event.set()

        with pytest.raises(BatchClosed):
            queue.admit("a", accept=batch.check_open)

        assert queue.pending_count() == 0
        assert queue.next_sequence_id() == 0


class TestQuiescence:
    """take() must not report completion while work is in flight."""

    def test_take_returns_none_when_quiescent(self, batch):
        queue = AdmissionQueue(max_capacity=5)

        assert queue.take(batch) is None
        assert queue.is_quiescent(batch)

    def test_take_waits_for_in_flight_work(self, batch):
        """An idle worker must keep waiting while another item is in flight."""
        queue = AdmissionQueue(max_capacity=5)
        queue.admit("parent")
        parent = queue.take(batch)

        taken = []

        def idle_worker():
            taken.append(queue.take(batch))

        t = threading.Thread(target=idle_worker)
        t.start()

        time.sleep(0.1)
        assert t.is_alive(), "Worker gave up while an item was still in flight"

        # The in-flight handler fans out, then finishes
        queue.admit("child")
        queue.task_done(batch)

        t.join(timeout=2.0)
        assert not t.is_alive()
        assert taken[0].payload == "child"
        assert parent.sequence_id == 0

    def test_waiting_worker_released_at_quiescence(self, batch):
        queue = AdmissionQueue(max_capacity=5)
        queue.admit("only")
        queue.take(batch)

        results = []
        t = threading.Thread(target=lambda: results.append(queue.take(batch)))
        t.start()
        time.sleep(0.05)

        queue.task_done(batch)

        t.join(timeout=2.0)
        assert not t.is_alive()
        assert results == [None]
        assert batch.stopped

    def test_admission_after_quiescence_stays_pending(self, batch):
        """Once a worker has seen the run drained, late items wait for the next run."""
        queue = AdmissionQueue(max_capacity=5)
        queue.admit("a")
        queue.take(batch)
        queue.task_done(batch)

        assert queue.take(batch) is None

        queue.admit("late")

        assert queue.take(batch) is None
        assert queue.pending_count() == 1
        assert queue.settle(batch, timeout=0.5) is True

        next_batch = Batch("run-next")
        assert queue.take(next_batch).payload == "late"

    def test_fail_releases_waiting_workers(self, batch):
        queue = AdmissionQueue(max_capacity=5)
        queue.admit_all(["a", "b"])
        queue.take(batch)
        queue.take(batch)

        results = []
        t = threading.Thread(target=lambda: results.append(queue.take(batch)))
        t.start()
        time.sleep(0.05)

        first = HandlerFailed(0, ValueError("boom"))
        assert queue.fail(batch, first, first.cause) is True

        queue.admit("late")

        t.join(timeout=2.0)
        assert not t.is_alive()
        assert results == [None]
        assert batch.stopped
        assert queue.take(batch) is None
        second = HandlerFailed(1, ValueError("again"))
        assert queue.fail(batch, second, second.cause) is False
        assert batch.failure is first
        assert queue.pending_count() == 1

    def test_stopped_batch_takes_nothing(self, batch):
        queue = AdmissionQueue(max_capacity=5)
        queue.admit("a")
        batch.stop_event.set()

        assert queue.take(batch) is None
        assert queue.pending_count() == 1

    def test_task_done_without_take(self, batch):
        queue = AdmissionQueue(max_capacity=5)

        with pytest.raises(RuntimeError):
            queue.task_done(batch)

    def test_settle_times_out_with_work_in_flight(self, batch):
        queue = AdmissionQueue(max_capacity=5)
        queue.admit("stuck")
        queue.take(batch)

        assert queue.settle(batch, timeout=0.05) is False
        assert batch.stopped

    def test_settle_returns_true_when_drained(self, batch):
        queue = AdmissionQueue(max_capacity=5)

        assert queue.settle(batch, timeout=1.0) is True
        assert batch.stopped

    def test_discard_pending(self):
        queue = AdmissionQueue(max_capacity=5)
        queue.admit_all(["a", "b"])

        discarded = queue.discard_pending()

        assert [i.payload for i in discarded] == ["a", "b"]
        assert queue.pending_count() == 0
        assert queue.next_sequence_id() == 2
