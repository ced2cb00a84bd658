# smis/utils/cache_metrics.py
"""Cache performance monitoring."""
from typing import Dict, Any
from ..core.cache import cache_manager

class CacheMetrics:
    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.total_requests = 0
        self.total_time_saved = 0.0

    def record_hit(self, time_saved: float = 0.0):
        self.hits += 1
        self.total_requests += 1
        self.total_time_saved += time_saved

    def record_miss(self):
        self.misses += 1
        self.total_requests += 1

    def reset(self):
        self.hits = 0
        self.misses = 0
        self.total_requests = 0
        self.total_time_saved = 0.0

    def get_stats(self) -> Dict[str, Any]:
        hit_rate = (self.hits / self.total_requests * 100) if self.total_requests > 0 else 0
        return {
            "hits": self.hits,
            "misses": self.misses,
            "total_requests": self.total_requests,
            "hit_rate_percent": round(hit_rate, 2),
            "total_time_saved_seconds": round(self.total_time_saved, 3)
        }

# Global metrics instance
metrics = CacheMetrics()

async def get_cache_info() -> Dict[str, Any]:
    """Backend details for the health endpoint."""
    if cache_manager.backend != "redis":
        return {"backend": "memory", "entries": cache_manager.memory.size()}

    try:
        await cache_manager.initialize()
        info = await cache_manager.redis.info()
        return {
            "backend": "redis",
            "connected_clients": info.get("connected_clients", 0),
            "used_memory_human": info.get("used_memory_human", "0B"),
            "keyspace_hits": info.get("keyspace_hits", 0),
            "keyspace_misses": info.get("keyspace_misses", 0),
        }
    except Exception as e:
        return {"backend": "redis", "error": str(e)}
