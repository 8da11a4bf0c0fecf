"""
Caching utilities for public listings and dashboard figures.

Keys are namespaced and versioned: invalidating a namespace bumps its
version so stale entries are simply never read again. This works the same
on Redis (production) and the local memory cache (development, tests).
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PRODUCTS_LIST_CACHE_TTL = 120
STOREFRONT_CONTENT_CACHE_TTL = 600
DASHBOARD_STATS_CACHE_TTL = 60

PRODUCTS_NAMESPACE = 'products_list'
CATEGORY_VISIBILITY_NAMESPACE = 'category_visibility'
CAROUSEL_NAMESPACE = 'carousel'
DASHBOARD_NAMESPACE = 'dashboard_stats'


def _version_key(namespace):
    return f"{namespace}:version"


def get_namespace_version(namespace):
    return cache.get(_version_key(namespace), 1)


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique, versioned cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:v{get_namespace_version(prefix)}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, key_prefix=PRODUCTS_NAMESPACE)
        def get_public_products(filters):
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_namespace(namespace):
    """Drop every cached entry of a namespace by moving to the next version"""
    try:
        cache.set(_version_key(namespace), get_namespace_version(namespace) + 1, None)
        logger.info(f"Invalidated cache namespace: {namespace}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache namespace {namespace}: {str(e)}")
