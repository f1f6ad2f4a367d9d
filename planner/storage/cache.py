import json
import hashlib
import logging
from typing import Dict, Optional

import redis

from planner.config.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class HeatmapCache:
    """
    Redis cache for stateless heatmap requests, keyed by a hash of the request
    payload. A changed snapshot hashes to a new key, so stale grids are never
    served. Redis errors are logged and treated as cache misses.
    """

    def __init__(self, redis_url: Optional[str] = settings.redis_url, enabled: bool = settings.cache_enabled):
        self.enabled = enabled and bool(redis_url)
        self.redis_client = redis.from_url(redis_url, decode_responses=True) if self.enabled else None

    def get(self, snapshot_hash: str) -> Optional[Dict]:
        """Retrieve cached heatmap by snapshot hash."""
        if not self.enabled:
            return None
        try:
            cached = self.redis_client.get(f"heatmap:{snapshot_hash}")
        except redis.RedisError as exc:
            logger.warning(f"Heatmap cache read failed: {exc}")
            return None
        if cached:
            return json.loads(cached)
        return None

    def set(self, snapshot_hash: str, heatmap: Dict, ttl_seconds: int = settings.cache_ttl_seconds) -> None:
        """Cache heatmap with TTL."""
        if not self.enabled:
            return
        try:
            self.redis_client.setex(
                f"heatmap:{snapshot_hash}",
                ttl_seconds,
                json.dumps(heatmap, default=str)
            )
        except redis.RedisError as exc:
            logger.warning(f"Heatmap cache write failed: {exc}")

    @staticmethod
    def hash_snapshot(payload: Dict) -> str:
        """Generate hash from a JSON-serializable request payload."""
        data = json.dumps(payload, sort_keys=True, default=str)
        return hashlib.sha256(data.encode()).hexdigest()[:16]

    def health_check(self) -> bool:
        """Check Redis connection."""
        if not self.enabled:
            return False
        try:
            self.redis_client.ping()
            return True
        except redis.RedisError:
            return False
