import threading
from abc import ABC, abstractmethod
from collections import deque
from itertools import islice
from typing import Deque, Dict, List

from redis import Redis
from redis.exceptions import RedisError

from app.schemas.notification_schemas import NotificationRecord
from app.utils.errors import InvalidRangeError
from app.utils.logging import get_logger

logger = get_logger()

DEFAULT_CAPACITY = 100


class NotificationStore(ABC):
    """
    Capacity-bounded, most-recent-first collection of manager notifications.

    All mutations go through `append` and `mark_read`; implementations
    serialize them internally so the capacity bound and insertion order hold
    under concurrent workers. Records are addressed by id, never by position.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity

    @abstractmethod
    def append(self, record: NotificationRecord) -> None:
        """Insert as most recent, evicting the oldest records beyond capacity."""

    @abstractmethod
    def list(self, limit: int, offset: int = 0) -> List[NotificationRecord]:
        """Up to `limit` records starting at `offset`, most recent first."""

    @abstractmethod
    def mark_read(self, notification_id: str) -> bool:
        """Flag a record as read. Returns False when the id is not stored."""

    @abstractmethod
    def count(self) -> int:
        pass

    @staticmethod
    def _check_range(limit: int, offset: int) -> None:
        if limit < 0 or offset < 0:
            raise InvalidRangeError(
                f"limit and offset must be non-negative (limit={limit}, offset={offset})"
            )


class MemoryNotificationStore(NotificationStore):
    """In-process store: a deque of ids plus an id-keyed dict behind one lock."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        super().__init__(capacity)
        self._lock = threading.RLock()
        self._order: Deque[str] = deque()
        self._records: Dict[str, NotificationRecord] = {}

    def append(self, record: NotificationRecord) -> None:
        with self._lock:
            if record.id in self._records:
                self._order.remove(record.id)
            self._order.appendleft(record.id)
            self._records[record.id] = record.model_copy()

            while len(self._order) > self.capacity:
                evicted_id = self._order.pop()
                del self._records[evicted_id]

    def list(self, limit: int, offset: int = 0) -> List[NotificationRecord]:
        self._check_range(limit, offset)
        with self._lock:
            ids = islice(self._order, offset, offset + limit)
            return [self._records[i].model_copy() for i in ids]

    def mark_read(self, notification_id: str) -> bool:
        with self._lock:
            record = self._records.get(notification_id)
            if record is None:
                return False
            if not record.read:
                self._records[notification_id] = record.model_copy(
                    update={"read": True}
                )
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._order)


class RedisNotificationStore(NotificationStore):
    """
    Redis-backed store shared by every worker process.

    Layout: a list `<key>` of ids (head = most recent) and a hash
    `<key>:records` of id -> record JSON. Every mutation runs in a
    WATCH/MULTI transaction, so a concurrent append or eviction forces a
    retry instead of a write into the wrong record.
    """

    def __init__(
        self,
        client: Redis,
        key: str = "notifications:managers",
        capacity: int = DEFAULT_CAPACITY,
    ):
        super().__init__(capacity)
        self._client = client
        self.list_key = key
        self.records_key = f"{key}:records"

    def append(self, record: NotificationRecord) -> None:
        payload = record.model_dump_json(by_alias=True)

        def _append(pipe):
            overflow = pipe.llen(self.list_key) + 1 - self.capacity
            evicted = pipe.lrange(self.list_key, -overflow, -1) if overflow > 0 else []

            pipe.multi()
            pipe.lpush(self.list_key, record.id)
            pipe.hset(self.records_key, record.id, payload)
            pipe.ltrim(self.list_key, 0, self.capacity - 1)
            if evicted:
                pipe.hdel(self.records_key, *evicted)

        try:
            self._client.transaction(_append, self.list_key, self.records_key)
        except RedisError as e:
            logger.error(f"Failed to append notification {record.id}: {str(e)}")
            raise

    def list(self, limit: int, offset: int = 0) -> List[NotificationRecord]:
        self._check_range(limit, offset)
        if limit == 0:
            return []

        ids = self._client.lrange(self.list_key, offset, offset + limit - 1)
        if not ids:
            return []

        # A record evicted between the two reads is simply skipped
        raw_records = self._client.hmget(self.records_key, ids)
        return [
            NotificationRecord.model_validate_json(raw)
            for raw in raw_records
            if raw is not None
        ]

    def mark_read(self, notification_id: str) -> bool:
        def _mark_read(pipe) -> bool:
            raw = pipe.hget(self.records_key, notification_id)
            if raw is None:
                return False
            record = NotificationRecord.model_validate_json(raw)
            if record.read:
                return True

            pipe.multi()
            pipe.hset(
                self.records_key,
                notification_id,
                record.model_copy(update={"read": True}).model_dump_json(by_alias=True),
            )
            return True

        return self._client.transaction(
            _mark_read, self.records_key, value_from_callable=True
        )

    def count(self) -> int:
        return self._client.llen(self.list_key)
