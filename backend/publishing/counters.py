"""Hit and download counters, kept in a redis hash per content."""
from typing import Dict, Optional

import redis

from .jobs import get_redis

HITS = "hits"
DOWNLOADS = "downloads"


class Counters:
    def __init__(self, connection: Optional[redis.Redis] = None):
        self.connection = connection if connection is not None else get_redis()

    def set(self, item_id: str, field: str, value: int) -> None:
        self.connection.hset(item_id, field, int(value))

    def increment(self, item_id: str, field: str = HITS, amount: int = 1) -> int:
        return int(self.connection.hincrby(item_id, field, int(amount)))

    def get(self, item_id: str) -> Dict[str, int]:
        raw = self.connection.hgetall(item_id) or {}
        values = {HITS: 0, DOWNLOADS: 0}
        for key, value in raw.items():
            name = key.decode("utf-8") if isinstance(key, bytes) else str(key)
            values[name] = int(value)
        return values
