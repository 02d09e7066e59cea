"""
Caching utilities for expensive aggregate queries
Uses the default cache (Redis in deployment) for dashboard results
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
DASHBOARD_CACHE_TTL = 300  # 5 minutes

DASHBOARD_VERSION_KEY = 'dashboard:version'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def _dashboard_version():
    cache.add(DASHBOARD_VERSION_KEY, 1, None)
    return cache.get(DASHBOARD_VERSION_KEY, 1)


def get_cached_dashboard(name, **params):
    """
    Get a cached dashboard payload
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(f"dashboard_{name}", _dashboard_version(), **params)
    return cache.get(cache_key), cache_key


def cache_dashboard(cache_key, data, ttl=DASHBOARD_CACHE_TTL):
    """Cache dashboard payload"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached dashboard data: {cache_key}")


def invalidate_dashboard_cache():
    """
    Invalidate every dashboard payload by bumping the namespace version.
    Old keys simply expire.
    """
    if not cache.add(DASHBOARD_VERSION_KEY, 2, None):
        try:
            cache.incr(DASHBOARD_VERSION_KEY)
        except ValueError:
            # Key expired between add() and incr()
            cache.set(DASHBOARD_VERSION_KEY, 1, None)
    logger.debug("Invalidated dashboard cache")
