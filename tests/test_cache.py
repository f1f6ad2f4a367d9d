from planner.storage.cache import HeatmapCache


class TestHeatmapCache:
    """Cache keys and failure handling."""

    def test_hash_is_order_insensitive_for_keys(self):
        a = HeatmapCache.hash_snapshot({"members": [], "tasks": [], "week_start": "2024-01-08"})
        b = HeatmapCache.hash_snapshot({"week_start": "2024-01-08", "tasks": [], "members": []})
        assert a == b
        assert len(a) == 16

    def test_changed_snapshot_changes_key(self):
        a = HeatmapCache.hash_snapshot({"members": [{"id": "alice", "capacity": 8}]})
        b = HeatmapCache.hash_snapshot({"members": [{"id": "alice", "capacity": 6}]})
        assert a != b

    def test_disabled_cache_is_a_no_op(self):
        cache = HeatmapCache(redis_url="redis://localhost:6379/0", enabled=False)
        cache.set("abc", {"hours": []})
        assert cache.get("abc") is None
        assert cache.health_check() is False

    def test_enabled_without_url_stays_disabled(self):
        cache = HeatmapCache(redis_url=None, enabled=True)
        assert cache.enabled is False
