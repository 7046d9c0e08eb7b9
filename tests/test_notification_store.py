import threading
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from app.schemas.notification_schemas import NotificationRecord, NotificationType
from app.services.notifications import MemoryNotificationStore, RedisNotificationStore
from app.utils.errors import InvalidRangeError

BASE_TIME = datetime(2025, 1, 31, 10, 0, tzinfo=timezone.utc)

pytestmark = pytest.mark.unit


def make_record(index: int, **overrides) -> NotificationRecord:
    data = dict(
        id=f"n-{index}",
        type=NotificationType.ACTIVITY_LOG_SUBMITTED.value,
        subject="Activity Log Submitted - Week 5",
        message=f"Message {index}",
        facilitator_id="fac-1",
        facilitator_name="Ada Lovelace",
        facilitator_email="ada@example.edu",
        course_code="CS101",
        course_name="Intro to Computing",
        week_number=5,
        is_late=False,
        timestamp=BASE_TIME + timedelta(seconds=index),
    )
    data.update(overrides)
    return NotificationRecord(**data)


class TestAppendAndList:
    """Test ordering and pagination."""

    def test_list_returns_most_recent_first(self):
        store = MemoryNotificationStore()
        for i in range(3):
            store.append(make_record(i))

        records = store.list(10, 0)

        assert [r.id for r in records] == ["n-2", "n-1", "n-0"]

    def test_offset_and_limit(self):
        store = MemoryNotificationStore()
        for i in range(10):
            store.append(make_record(i))

        assert [r.id for r in store.list(3, 2)] == ["n-7", "n-6", "n-5"]
        assert store.list(5, 20) == []
        assert store.list(0, 0) == []

    def test_negative_bounds_raise(self):
        store = MemoryNotificationStore()
        with pytest.raises(InvalidRangeError):
            store.list(-1, 0)
        with pytest.raises(InvalidRangeError):
            store.list(10, -5)

    def test_returned_records_are_copies(self):
        store = MemoryNotificationStore()
        store.append(make_record(1))

        store.list(1)[0].read = True

        assert store.list(1)[0].read is False

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            MemoryNotificationStore(capacity=0)


class TestCapacity:
    """Test the capacity bound."""

    def test_oldest_records_are_evicted(self):
        store = MemoryNotificationStore(capacity=100)
        for i in range(150):
            store.append(make_record(i))

        records = store.list(200, 0)

        assert store.count() == 100
        assert len(records) == 100
        assert records[0].id == "n-149"
        assert records[-1].id == "n-50"

    def test_concurrent_appends_respect_capacity(self):
        store = MemoryNotificationStore(capacity=100)

        def worker(start: int):
            for i in range(start, start + 50):
                store.append(make_record(i))

        threads = [threading.Thread(target=worker, args=(n * 50,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        records = store.list(1000, 0)
        assert store.count() == 100
        assert len({r.id for r in records}) == 100


class TestMarkRead:
    """Test marking records as read."""

    def test_mark_read_sets_flag(self):
        store = MemoryNotificationStore()
        store.append(make_record(1))

        assert store.mark_read("n-1") is True
        assert store.list(1)[0].read is True

    def test_mark_read_is_idempotent(self):
        store = MemoryNotificationStore()
        store.append(make_record(1))

        store.mark_read("n-1")
        store.mark_read("n-1")

        records = store.list(10)
        assert len(records) == 1
        assert records[0].read is True

    def test_unknown_id_is_noop(self):
        store = MemoryNotificationStore()
        store.append(make_record(1))

        assert store.mark_read("missing") is False
        assert store.list(10)[0].read is False

    def test_mark_read_targets_record_by_id_after_inserts(self):
        store = MemoryNotificationStore()
        store.append(make_record(1))
        store.append(make_record(2))
        store.append(make_record(3))

        store.mark_read("n-2")

        flags = {r.id: r.read for r in store.list(10)}
        assert flags == {"n-3": False, "n-2": True, "n-1": False}

    def test_evicted_record_cannot_be_marked(self):
        store = MemoryNotificationStore(capacity=2)
        for i in range(3):
            store.append(make_record(i))

        assert store.mark_read("n-0") is False


class TestRedisNotificationStore:
    """Test the Redis layout with a mocked client."""

    @staticmethod
    def run_transactions_on(client, pipe):
        client.transaction.side_effect = lambda func, *keys, **kwargs: func(pipe)

    def test_append_pushes_and_trims(self):
        client, pipe = Mock(), Mock()
        pipe.llen.return_value = 3
        self.run_transactions_on(client, pipe)
        store = RedisNotificationStore(client, key="notes", capacity=100)

        store.append(make_record(1))

        pipe.lpush.assert_called_once_with("notes", "n-1")
        assert pipe.hset.call_args.args[:2] == ("notes:records", "n-1")
        pipe.ltrim.assert_called_once_with("notes", 0, 99)
        pipe.hdel.assert_not_called()

    def test_append_at_capacity_evicts_oldest(self):
        client, pipe = Mock(), Mock()
        pipe.llen.return_value = 2
        pipe.lrange.return_value = ["n-0"]
        self.run_transactions_on(client, pipe)
        store = RedisNotificationStore(client, key="notes", capacity=2)

        store.append(make_record(5))

        pipe.lrange.assert_called_once_with("notes", -1, -1)
        pipe.hdel.assert_called_once_with("notes:records", "n-0")

    def test_list_reads_ids_then_records(self):
        client = Mock()
        client.lrange.return_value = ["n-2", "n-1"]
        client.hmget.return_value = [
            make_record(2).model_dump_json(by_alias=True),
            None,
        ]
        store = RedisNotificationStore(client, key="notes")

        records = store.list(2, 0)

        client.lrange.assert_called_once_with("notes", 0, 1)
        assert [r.id for r in records] == ["n-2"]

    def test_mark_read_rewrites_record(self):
        client, pipe = Mock(), Mock()
        pipe.hget.return_value = make_record(1).model_dump_json(by_alias=True)
        self.run_transactions_on(client, pipe)
        store = RedisNotificationStore(client, key="notes")

        assert store.mark_read("n-1") is True

        key, record_id, raw = pipe.hset.call_args.args
        assert (key, record_id) == ("notes:records", "n-1")
        assert NotificationRecord.model_validate_json(raw).read is True

    def test_mark_read_unknown_id(self):
        client, pipe = Mock(), Mock()
        pipe.hget.return_value = None
        self.run_transactions_on(client, pipe)

        assert RedisNotificationStore(client).mark_read("missing") is False
        pipe.hset.assert_not_called()
