import logging
from collections import defaultdict
from datetime import datetime, time, timedelta
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.contrib.auth import get_user_model
from django.db.models import Sum, Count, DecimalField
from django.db.models.functions import TruncDate
from django.utils import timezone

from storefront.core.cache_utils import cached_query, DASHBOARD_NAMESPACE, DASHBOARD_STATS_CACHE_TTL
from storefront.core.utils import parse_day
from storefront.inventory.models import StockAlert
from storefront.orders.models import Order, OrderItem
from storefront.orders.serializers import OrderListSerializer

User = get_user_model()
logger = logging.getLogger('storefront.reports')

EXCLUDED_STATUSES = ['cancelled', 'payment_failed']
SALES_STATUSES = ['paid', 'shipped', 'delivered']
TAX_STATUSES = ['paid', 'delivered']
PERIOD_DAYS = {'week': 7, 'month': 30, 'year': 365}
RECENT_ORDERS = 5


def period_start(period, now=None, default='month'):
    now = now or timezone.now()
    return now - timedelta(days=PERIOD_DAYS.get(period, PERIOD_DAYS[default]))


def date_bounds(date_from, date_to):
    """Aware datetimes for a YYYY-MM-DD range, the end date inclusive; ValueError on a bad date"""
    tz = timezone.get_current_timezone()
    start = parse_day(date_from)
    end = parse_day(date_to)
    return (
        timezone.make_aware(datetime.combine(start, time.min), tz) if start else None,
        timezone.make_aware(datetime.combine(end, time.max), tz) if end else None,
    )


def counted_orders():
    """Orders that count as sales: not cancelled, failed or refunded"""
    return Order.objects.exclude(status__in=EXCLUDED_STATUSES).not_refunded()


def _money(value):
    return float(Decimal(value or 0).quantize(Decimal('0.01')))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def tax_report(request):
    """VAT report over paid and delivered orders"""
    date_from = request.query_params.get('date_from')
    date_to = request.query_params.get('date_to')
    try:
        start, end = date_bounds(date_from, date_to)
    except ValueError:
        return Response({'error': 'Dates must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)

    orders = Order.objects.filter(status__in=TAX_STATUSES).not_refunded()
    if start:
        orders = orders.filter(created_at__gte=start)
    if end:
        orders = orders.filter(created_at__lte=end)

    total_net = total_vat = total_gross = Decimal('0.00')
    rows = []
    for order in orders.order_by('created_at'):
        net = order.total - order.vat
        total_net += net
        total_vat += order.vat
        total_gross += order.total
        rows.append({
            'reference': order.reference,
            'createdAt': order.created_at.isoformat(),
            'net': _money(net),
            'vat': _money(order.vat),
            'gross': _money(order.total),
        })

    return Response({
        'totalNet': _money(total_net),
        'totalVAT': _money(total_vat),
        'totalGross': _money(total_gross),
        'orders': rows,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def sales_analytics(request):
    """Revenue per day and units per product over ?period=week|month|year"""
    period = request.query_params.get('period', 'week')
    start = period_start(period, default='week')
    orders = Order.objects.filter(status__in=SALES_STATUSES, created_at__gte=start)

    daily = orders.annotate(date=TruncDate('created_at')).values('date').annotate(
        amount=Sum('total', output_field=DecimalField())
    ).order_by('date')

    products = OrderItem.objects.filter(order__in=orders).values('name').annotate(
        quantity=Sum('quantity')
    ).order_by('-quantity', 'name')

    totals = orders.aggregate(revenue=Sum('total', output_field=DecimalField()), count=Count('id'))
    total_revenue = totals['revenue'] or Decimal('0.00')
    total_orders = totals['count']

    return Response({
        'revenueData': [{'date': row['date'].isoformat(), 'amount': _money(row['amount'])} for row in daily],
        'productData': [{'name': row['name'], 'quantity': row['quantity']} for row in products],
        'summary': {
            'totalRevenue': _money(total_revenue),
            'totalOrders': total_orders,
            'averageOrderValue': _money(total_revenue / total_orders) if total_orders else 0.0,
        },
    })


def _ltv_bucket(total):
    if total <= 50:
        return '0-50'
    if total <= 200:
        return '51-200'
    if total <= 500:
        return '201-500'
    return '501+'


def _orders_bucket(count):
    if count == 1:
        return '1'
    if count == 2:
        return '2'
    if count <= 5:
        return '3-5'
    return '6+'


def _spending_tier(total):
    if total <= 50:
        return 'low'
    if total <= 200:
        return 'medium'
    return 'high'


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def customer_analytics(request):
    """
    Customer behaviour over ?period=week|month|year or an explicit
    ?start_date=&end_date= range.
    """
    start_param = request.query_params.get('start_date')
    end_param = request.query_params.get('end_date')
    if start_param and end_param:
        try:
            start, end = date_bounds(start_param, end_param)
        except ValueError:
            return Response({'error': 'Dates must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)
    else:
        end = timezone.now()
        start = period_start(request.query_params.get('period', 'month'), now=end)

    customers = User.objects.filter(is_staff=False)
    new_customers = customers.filter(created_at__gte=start, created_at__lte=end)
    orders = list(counted_orders().filter(created_at__gte=start, created_at__lte=end).order_by('created_at'))

    order_counts = defaultdict(int)
    spending = defaultdict(Decimal)
    geo_counts = defaultdict(int)
    aov_by_day = defaultdict(lambda: [Decimal('0.00'), 0])
    guest_orders = registered_orders = 0
    total_revenue = Decimal('0.00')

    for order in orders:
        order_counts[order.user_identifier] += 1
        spending[order.user_identifier] += order.total
        total_revenue += order.total
        geo_counts[order.city or 'Unknown'] += 1
        day = timezone.localtime(order.created_at).date().isoformat()
        aov_by_day[day][0] += order.total
        aov_by_day[day][1] += 1
        if order.user_id or '@' in order.user_identifier:
            registered_orders += 1
        elif order.visitor_id:
            guest_orders += 1

    unique_customers = len(order_counts)
    repeat_customers = sum(1 for count in order_counts.values() if count > 1)
    total_orders = len(orders)

    spending_tiers = {'low': 0, 'medium': 0, 'high': 0}
    ltv_buckets = {'0-50': 0, '51-200': 0, '201-500': 0, '501+': 0}
    for total in spending.values():
        spending_tiers[_spending_tier(total)] += 1
        ltv_buckets[_ltv_bucket(total)] += 1

    orders_per_customer = {'1': 0, '2': 0, '3-5': 0, '6+': 0}
    for count in order_counts.values():
        orders_per_customer[_orders_bucket(count)] += 1

    visitor_ids = {order.visitor_id for order in orders if order.visitor_id}
    converted = User.objects.filter(visitor_id__in=visitor_ids).values('visitor_id').distinct().count()

    daily_new = new_customers.annotate(date=TruncDate('created_at')).values('date').annotate(
        count=Count('id')
    ).order_by('date')

    top_customers = sorted(
        ((identifier, total) for identifier, total in spending.items() if '@' in identifier),
        key=lambda pair: pair[1], reverse=True,
    )[:5]

    return Response({
        'summary': {
            'totalCustomers': customers.count(),
            'newCustomers': new_customers.count(),
            'uniqueCustomers': unique_customers,
            'repeatCustomers': repeat_customers,
            'repeatRate': round(repeat_customers / unique_customers * 100, 2) if unique_customers else 0,
            'averageOrderValue': _money(total_revenue / total_orders) if total_orders else 0.0,
            'averageOrdersPerCustomer': round(total_orders / unique_customers, 2) if unique_customers else 0,
        },
        'spendingTiers': spending_tiers,
        'dailyNewCustomers': [{'date': row['date'].isoformat(), 'count': row['count']} for row in daily_new],
        'uniqueVisitors': len(visitor_ids),
        'visitorToRegistered': converted,
        'guestOrders': guest_orders,
        'registeredOrders': registered_orders,
        'ltvBuckets': ltv_buckets,
        'ordersPerCustomerBuckets': orders_per_customer,
        'topCustomers': [{'userId': identifier, 'total': _money(total)} for identifier, total in top_customers],
        'geoCounts': dict(geo_counts),
        'aovTrend': [
            {'date': day, 'aov': _money(total / count)}
            for day, (total, count) in sorted(aov_by_day.items())
        ],
    })


@cached_query(cache_ttl=DASHBOARD_STATS_CACHE_TTL, key_prefix=DASHBOARD_NAMESPACE)
def get_dashboard_stats():
    orders = counted_orders()
    totals = orders.aggregate(revenue=Sum('total', output_field=DecimalField()), count=Count('id'))
    recent = Order.objects.prefetch_related('items').order_by('-created_at')[:RECENT_ORDERS]
    return {
        'totalOrders': totals['count'],
        'totalRevenue': _money(totals['revenue']),
        'pendingOrders': Order.objects.filter(status__in=['pending', 'paid']).count(),
        'lowStockProducts': StockAlert.objects.filter(status='active').count(),
        'recentOrders': OrderListSerializer(recent, many=True).data,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_stats(request):
    return Response(get_dashboard_stats())
