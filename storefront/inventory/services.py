"""
Stock reservation for orders and low stock bookkeeping.

Order lines are dicts with ``product`` (id), ``color``, ``size`` and
``quantity``. Lines whose product is gone, or whose colour/size is not part
of the product's stock matrix, are not stock tracked and are skipped.
"""
import logging

from django.conf import settings
from django.db import transaction

from storefront.catalog.models import Product
from storefront.core.emails import send_low_stock_alert
from .models import StockAlert

logger = logging.getLogger(__name__)


class InsufficientStock(Exception):
    def __init__(self, product_name, color, size, available, requested):
        self.product_name = product_name
        self.color = color
        self.size = size
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name} ({color}/{size}): "
            f"{available} available, {requested} requested"
        )

    def as_dict(self):
        return {
            'product': self.product_name,
            'color': self.color,
            'size': self.size,
            'available': self.available,
            'requested': self.requested,
        }


def _is_tracked(product, color, size):
    return size in (product.stock or {}).get(color, {})


def _line_product_id(item):
    product = item.get('product') if isinstance(item, dict) else None
    if product is None and isinstance(item, dict):
        product = item.get('product_id')
    return getattr(product, 'pk', product)


def _lock_products(items):
    ids = {_line_product_id(item) for item in items if _line_product_id(item)}
    return {p.pk: p for p in Product.objects.select_for_update().filter(pk__in=ids).order_by('pk')}


def reserve_order_stock(items):
    """
    Decrement stock for every tracked order line, all or nothing.
    Raises InsufficientStock before touching any row when a line cannot be met.
    """
    with transaction.atomic():
        products = _lock_products(items)

        # Check every line first, summing repeated cells
        wanted = {}
        for item in items:
            product = products.get(_line_product_id(item))
            if not product or not _is_tracked(product, item['color'], item['size']):
                continue
            key = (product.pk, item['color'], item['size'])
            wanted[key] = wanted.get(key, 0) + int(item['quantity'])

        for (product_id, color, size), quantity in wanted.items():
            product = products[product_id]
            if not product.check_stock(color, size, quantity):
                raise InsufficientStock(product.name, color, size, product.get_stock(color, size), quantity)

        for (product_id, color, size), quantity in wanted.items():
            product = products[product_id]
            product.update_stock(color, size, -quantity, save=False)

        for product in {products[product_id] for product_id, _, _ in wanted}:
            product.save(update_fields=['stock', 'updated_at'])

        for product_id, color, size in wanted:
            check_low_stock(products[product_id], color, size)

    logger.info(f"Reserved stock for {len(wanted)} order lines")
    return wanted


def release_order_stock(items):
    """Put the quantities of tracked order lines back into stock"""
    released = 0
    with transaction.atomic():
        products = _lock_products(items)
        touched = set()
        for item in items:
            product = products.get(_line_product_id(item))
            if not product or not _is_tracked(product, item['color'], item['size']):
                continue
            product.update_stock(item['color'], item['size'], int(item['quantity']), save=False)
            touched.add((product.pk, item['color'], item['size']))
            released += 1

        for product in {products[product_id] for product_id, _, _ in touched}:
            product.save(update_fields=['stock', 'updated_at'])

        for product_id, color, size in touched:
            check_low_stock(products[product_id], color, size)

    logger.info(f"Released stock for {released} order lines")
    return released


def check_low_stock(product, color, size):
    """
    Open an alert (and email the shop) when a cell drops to the product's
    threshold; resolve open alerts for the cell once it is back above it.
    Returns the new alert, if any.
    """
    quantity = product.get_stock(color, size)
    active = StockAlert.objects.filter(product=product, color=color, size=size, status='active')

    if quantity > product.low_stock_threshold:
        for alert in active:
            alert.resolve()
        return None

    if active.exists():
        active.update(current_stock=quantity)
        return None

    alert = StockAlert.objects.create(
        product=product,
        product_name=product.name,
        color=color,
        size=size,
        current_stock=quantity,
    )
    logger.warning(f"Low stock: {product.name} {color}/{size} has {quantity} left")
    if getattr(settings, 'ADMIN_EMAIL', None):
        # only email once the stock change is committed
        transaction.on_commit(lambda: send_low_stock_alert(product.name, color, size, quantity))
    return alert
