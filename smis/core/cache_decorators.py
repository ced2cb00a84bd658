# smis/core/cache_decorators.py
"""Cache decorators for FastAPI endpoints."""
import functools
import time
from typing import Callable, Iterable
from .cache import cache_manager
from ..utils.cache_metrics import metrics

# Endpoint arguments that never take part in the cache key
_SKIPPED_ARGS = {"request", "db", "session", "service", "current_user", "department_id"}


def cache_response(
    key_prefix: str,
    ttl: int = 300,
    include_params: bool = True,
    include_user: bool = False
):
    """Cache decorator for FastAPI endpoints returning JSON-able dicts."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            key_parts = [key_prefix]

            if include_user and kwargs.get("current_user") is not None:
                user = kwargs["current_user"]
                key_parts.append(f"user:{user.user_type}:{user.id}")

            if include_params:
                for key, value in sorted(kwargs.items()):
                    if key not in _SKIPPED_ARGS:
                        key_parts.append(f"{key}:{value}")

            cache_key = cache_manager.make_key(*key_parts)

            cached_result = await cache_manager.get(cache_key)
            if cached_result is not None:
                metrics.record_hit(time.time() - start_time)
                return cached_result

            result = await func(*args, **kwargs)
            await cache_manager.set(cache_key, result, ttl=ttl)
            metrics.record_miss()
            return result

        return wrapper
    return decorator


async def invalidate_prefixes(prefixes: Iterable[str]):
    for prefix in prefixes:
        await cache_manager.delete_prefix(prefix)


def invalidate_cache_pattern(*prefixes: str):
    """Decorator to drop cached entries under the given prefixes after a write."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)
            await invalidate_prefixes(prefixes)
            return result
        return wrapper
    return decorator
