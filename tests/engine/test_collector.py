import random
import threading

from workq.engine.collector import ResultCollector
from workq.schemas import HandlerResult


def test_ordered_sorts_by_sequence_id():
    collector = ResultCollector()
    for seq_id in [3, 0, 2, 1]:
        collector.add(HandlerResult(sequence_id=seq_id, value=f"v{seq_id}"))

    assert collector.ordered() == ["v0", "v1", "v2", "v3"]
    assert [r.sequence_id for r in collector.results()] == [0, 1, 2, 3]


def test_concurrent_adds_are_not_lost():
    collector = ResultCollector()
    ids = list(range(500))
    random.shuffle(ids)
    chunks = [ids[i::5] for i in range(5)]

    def add_all(chunk):
        for seq_id in chunk:
            collector.add(HandlerResult(sequence_id=seq_id, value=seq_id * 2))

    threads = [threading.Thread(target=add_all, args=(chunk,)) for chunk in chunks]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(collector) == 500
    assert collector.ordered() == [i * 2 for i in range(500)]


def test_empty_collector():
    collector = ResultCollector()

    assert len(collector) == 0
    assert collector.ordered() == []
