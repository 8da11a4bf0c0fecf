"""
Cache invalidation signals
Automatically invalidate cached listings when the underlying rows change
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import (
    invalidate_namespace, PRODUCTS_NAMESPACE, CATEGORY_VISIBILITY_NAMESPACE,
    CAROUSEL_NAMESPACE, DASHBOARD_NAMESPACE,
)

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def _invalidate_after_commit(*namespaces):
    # Invalidate after commit so the cache is not repopulated with stale rows
    def invalidate():
        for namespace in namespaces:
            invalidate_namespace(namespace)
    transaction.on_commit(invalidate)


@receiver([post_save, post_delete], sender='catalog.Product')
def invalidate_products_cache(sender, instance, **kwargs):
    """Invalidate products cache when products change"""
    if is_suspended():
        return
    _invalidate_after_commit(PRODUCTS_NAMESPACE)


@receiver([post_save, post_delete], sender='catalog.CategoryVisibility')
def invalidate_category_visibility_cache(sender, instance, **kwargs):
    """Category visibility also filters the public product listing"""
    if is_suspended():
        return
    _invalidate_after_commit(CATEGORY_VISIBILITY_NAMESPACE, PRODUCTS_NAMESPACE)


@receiver([post_save, post_delete], sender='catalog.CarouselBackground')
def invalidate_carousel_cache(sender, instance, **kwargs):
    if is_suspended():
        return
    _invalidate_after_commit(CAROUSEL_NAMESPACE)


@receiver([post_save, post_delete], sender='orders.Order')
def invalidate_dashboard_cache(sender, instance, **kwargs):
    """Invalidate dashboard figures when orders change"""
    if is_suspended():
        return
    _invalidate_after_commit(DASHBOARD_NAMESPACE)


@receiver([post_save, post_delete], sender='inventory.StockAlert')
def invalidate_dashboard_cache_on_alert(sender, instance, **kwargs):
    if is_suspended():
        return
    _invalidate_after_commit(DASHBOARD_NAMESPACE)
