# siakad/core/cache_decorators.py
"""Cache decorators for FastAPI endpoints."""
import functools
from typing import Callable, Iterable
from .cache import cache_manager

_SKIPPED_KWARGS = {'request', 'db', 'session'}

def cache_response(
    key_prefix: str,
    ttl: int = None,
    include_params: bool = True,
):
    """Cache the JSON-serialisable result of an endpoint."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            key_parts = [key_prefix]

            if include_params:
                for key, value in sorted(kwargs.items()):
                    if key not in _SKIPPED_KWARGS:
                        key_parts.append(f"{key}={value}")

            cache_key = cache_manager.make_key(*key_parts)

            cached_result = await cache_manager.get(cache_key)
            if cached_result is not None:
                return cached_result

            result = await func(*args, **kwargs)

            await cache_manager.set(cache_key, result, ttl=ttl)
            return result

        return wrapper
    return decorator

def invalidate_cache_pattern(patterns: Iterable[str]):
    """Invalidate cache patterns after a successful endpoint call."""
    if isinstance(patterns, str):
        patterns = [patterns]
    patterns = list(patterns)

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)
            for pattern in patterns:
                await cache_manager.delete_pattern(pattern)
            return result
        return wrapper
    return decorator
