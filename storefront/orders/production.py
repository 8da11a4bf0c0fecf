"""
Production planning rules: delivery priority, due dates, the daily
production schedule and the admin status transition table.
"""
from datetime import timedelta

from django.utils import timezone

BASE_PRIORITY = {
    'Next Day Delivery': 100,
    'Express Delivery': 50,
    'Standard Delivery': 10,
}
DEFAULT_BASE_PRIORITY = 10
PRIORITY_PER_DAY = 5

DUE_DAYS = {
    'Next Day Delivery': 1,
    'Express Delivery': 3,
}
DEFAULT_DUE_DAYS = 5

ORDERS_PER_DAY = 50
SCHEDULE_DAYS = 7

PRODUCTION_FLOW = ['not_started', 'in_production', 'quality_check', 'ready_to_ship', 'completed']

# Order status -> statuses an admin may move it to
ALLOWED_TRANSITIONS = {
    'payment_failed': ['pending', 'cancelled'],
    'pending': ['paid', 'cancelled'],
    'paid': ['shipped', 'cancelled'],
    'shipped': ['delivered', 'cancelled'],
    'delivered': [],
    'cancelled': ['pending'],
}

# Default ordering of the admin order list
STATUS_SORT_ORDER = {
    'payment_failed': 1,
    'pending': 2,
    'paid': 3,
    'shipped': 4,
    'delivered': 5,
    'cancelled': 6,
}

EXCLUDED_FROM_PRODUCTION = ['cancelled', 'payment_failed']


def calculate_priority(shipping_method, created_at=None, now=None):
    """Base priority for the delivery method plus 5 points per whole day waiting"""
    now = now or timezone.now()
    created_at = created_at or now
    days_waiting = max((now - created_at).days, 0)
    return BASE_PRIORITY.get(shipping_method, DEFAULT_BASE_PRIORITY) + PRIORITY_PER_DAY * days_waiting


def due_date(order):
    days = DUE_DAYS.get(order.shipping_method, DEFAULT_DUE_DAYS)
    return timezone.localtime(order.created_at).date() + timedelta(days=days)


def priority_tier(priority):
    if priority >= 150:
        return 'critical'
    if priority >= 100:
        return 'high'
    if priority >= 50:
        return 'medium'
    return 'normal'


def next_production_status(current):
    try:
        index = PRODUCTION_FLOW.index(current)
    except ValueError:
        return None
    return PRODUCTION_FLOW[index + 1] if index + 1 < len(PRODUCTION_FLOW) else None


def previous_production_status(current):
    try:
        index = PRODUCTION_FLOW.index(current)
    except ValueError:
        return None
    return PRODUCTION_FLOW[index - 1] if index > 0 else None


def can_transition(current, new):
    return new in ALLOWED_TRANSITIONS.get(current, [])


def refresh_priorities(orders, now=None):
    """Recompute delivery_priority in place; saves only the rows that changed"""
    now = now or timezone.now()
    changed = []
    for order in orders:
        priority = calculate_priority(order.shipping_method, order.created_at, now=now)
        if priority != order.delivery_priority:
            order.delivery_priority = priority
            changed.append(order)
    if changed:
        type(changed[0]).objects.bulk_update(changed, ['delivery_priority'])
    return len(changed)


def build_schedule(orders, day=0, today=None):
    """
    Split orders (already sorted by priority) into daily batches.

    Returns a dict with one summary row per day and the selected day's
    orders grouped by production status.
    """
    today = today or timezone.localdate()
    day = min(max(int(day), 0), SCHEDULE_DAYS - 1)
    orders = list(orders)

    days = []
    for index in range(SCHEDULE_DAYS):
        batch = orders[index * ORDERS_PER_DAY:(index + 1) * ORDERS_PER_DAY]
        days.append({
            'day': index,
            'date': (today + timedelta(days=index)).isoformat(),
            'count': len(batch),
            'critical': sum(1 for o in batch if priority_tier(o.delivery_priority) == 'critical'),
        })

    selected = orders[day * ORDERS_PER_DAY:(day + 1) * ORDERS_PER_DAY]
    grouped = {status: [] for status in PRODUCTION_FLOW}
    for order in selected:
        grouped.setdefault(order.production_status, []).append({
            'id': order.id,
            'reference': order.reference,
            'customer_name': order.customer_name,
            'shipping_method': order.shipping_method,
            'delivery_priority': order.delivery_priority,
            'priority_tier': priority_tier(order.delivery_priority),
            'due_date': due_date(order).isoformat(),
            'overdue': due_date(order) < today,
            'production_status': order.production_status,
            'next_status': next_production_status(order.production_status),
            'previous_status': previous_production_status(order.production_status),
            'item_count': sum(item.quantity for item in order.items.all()),
            'created_at': order.created_at.isoformat(),
        })

    return {
        'day': day,
        'date': (today + timedelta(days=day)).isoformat(),
        'orders_per_day': ORDERS_PER_DAY,
        'total_orders': len(orders),
        'unscheduled': max(len(orders) - ORDERS_PER_DAY * SCHEDULE_DAYS, 0),
        'days': days,
        'orders': grouped,
    }
