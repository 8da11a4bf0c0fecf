import logging
from datetime import datetime, time

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.db import transaction
from django.db.models import Q, Case, When, IntegerField
from django.shortcuts import get_object_or_404
from django.utils import timezone
from storefront.core.emails import send_order_shipped_email
from storefront.core.utils import create_audit_log, paginate, parse_day
from storefront.inventory.services import reserve_order_stock, release_order_stock, InsufficientStock
from .models import Order
from .serializers import OrderSerializer, OrderListSerializer
from .production import (
    ALLOWED_TRANSITIONS, STATUS_SORT_ORDER, EXCLUDED_FROM_PRODUCTION, PRODUCTION_FLOW,
    can_transition, build_schedule, refresh_priorities,
)
from .shipengine import ShipEngineClient, ShipEngineError

logger = logging.getLogger(__name__)

ADMIN_EDITABLE_FIELDS = ('status', 'production_notes')
LABEL_COURIER = 'EVRi'


def _day_bounds(value, end=False):
    day = parse_day(value)
    if not day:
        return None
    moment = datetime.combine(day, time.max if end else time.min)
    return timezone.make_aware(moment, timezone.get_current_timezone())


def _yes_no(value):
    if value == 'yes':
        return True
    if value == 'no':
        return False
    return None


def filter_orders(queryset, params):
    """Apply the admin order list filters from query params"""
    for field in ('status', 'production_status', 'shipping_method'):
        if params.get(field):
            queryset = queryset.filter(**{field: params[field]})

    if params.get('reference'):
        queryset = queryset.filter(reference__icontains=params['reference'])
    if params.get('customer_name'):
        name = params['customer_name']
        queryset = queryset.filter(Q(first_name__icontains=name) | Q(last_name__icontains=name))
    if params.get('email'):
        queryset = queryset.filter(email__icontains=params['email'])

    date_from = _day_bounds(params.get('date_from'))
    if date_from:
        queryset = queryset.filter(created_at__gte=date_from)
    date_to = _day_bounds(params.get('date_to'), end=True)
    if date_to:
        queryset = queryset.filter(created_at__lte=date_to)

    for param, lookup in (('total_min', 'total__gte'), ('total_max', 'total__lte'),
                          ('priority_min', 'delivery_priority__gte'), ('priority_max', 'delivery_priority__lte')):
        if params.get(param):
            try:
                queryset = queryset.filter(**{lookup: float(params[param])})
            except ValueError:
                pass

    has_voucher = _yes_no(params.get('has_voucher'))
    if has_voucher is True:
        queryset = queryset.exclude(voucher_code='')
    elif has_voucher is False:
        queryset = queryset.filter(voucher_code='')

    has_customization = _yes_no(params.get('has_customization'))
    if has_customization is True:
        queryset = queryset.filter(items__is_customized=True).distinct()
    elif has_customization is False:
        queryset = queryset.exclude(items__is_customized=True)

    return queryset


def sort_orders(queryset, sort_by):
    if sort_by == 'priority':
        return queryset.order_by('-delivery_priority', '-created_at')
    if sort_by == 'production':
        return queryset.annotate(
            production_rank=Case(
                *[When(production_status=s, then=i) for i, s in enumerate(PRODUCTION_FLOW)],
                output_field=IntegerField(),
            )
        ).order_by('production_rank', '-delivery_priority', '-created_at')
    if sort_by == 'date':
        return queryset.order_by('-created_at')
    return queryset.annotate(
        status_rank=Case(
            *[When(status=s, then=rank) for s, rank in STATUS_SORT_ORDER.items()],
            default=len(STATUS_SORT_ORDER) + 1,
            output_field=IntegerField(),
        )
    ).order_by('status_rank', '-created_at')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_list(request):
    """
    List orders for the back office.

    Query params: status, production_status, reference, customer_name,
    email, date_from, date_to, total_min, total_max, priority_min,
    priority_max, shipping_method, has_voucher, has_customization,
    sort_by (priority, production, date), page, limit.
    """
    try:
        orders = filter_orders(Order.objects.prefetch_related('items'), request.query_params)
    except ValueError:
        return Response({'error': 'Dates must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)
    orders = sort_orders(orders, request.query_params.get('sort_by'))
    return Response(paginate(request, orders, OrderListSerializer, default_limit=20))


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_detail(request, pk):
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=pk)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)

    elif request.method == 'PATCH':
        updates = {k: request.data[k] for k in ADMIN_EDITABLE_FIELDS if k in request.data}
        if not updates:
            return Response({'error': 'No valid fields to update'}, status=status.HTTP_400_BAD_REQUEST)

        changes = {}
        previous_status = order.status
        new_status = updates.get('status')
        if new_status is not None and new_status != order.status:
            if new_status not in dict(Order.STATUS_CHOICES):
                return Response({'error': f'Invalid status: {new_status}'}, status=status.HTTP_400_BAD_REQUEST)
            if not can_transition(order.status, new_status):
                return Response({
                    'error': f'Cannot change status from {order.status} to {new_status}',
                    'allowed': ALLOWED_TRANSITIONS.get(order.status, []),
                }, status=status.HTTP_400_BAD_REQUEST)
            changes['status'] = {'old': order.status, 'new': new_status}
            order.status = new_status

        if 'production_notes' in updates:
            changes['production_notes'] = {'old': order.production_notes, 'new': updates['production_notes']}
            order.production_notes = updates['production_notes'] or ''

        try:
            with transaction.atomic():
                # Cancelled orders hold no stock
                if order.status == 'cancelled' and previous_status != 'cancelled':
                    release_order_stock(order.stock_lines())
                elif previous_status == 'cancelled' and order.status != 'cancelled':
                    reserve_order_stock(order.stock_lines())
                order.save()
        except InsufficientStock as e:
            return Response({'error': str(e), 'details': e.as_dict()}, status=status.HTTP_409_CONFLICT)

        create_audit_log(
            request=request,
            action='order_status' if 'status' in changes else 'update',
            model_name='Order',
            object_id=str(order.id),
            object_name=order.customer_name,
            object_reference=order.reference,
            changes=changes
        )
        return Response(OrderSerializer(order).data)

    else:  # DELETE
        create_audit_log(
            request=request,
            action='delete',
            model_name='Order',
            object_id=str(order.id),
            object_name=order.customer_name,
            object_reference=order.reference,
        )
        order.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_actions(request, pk):
    order = get_object_or_404(Order, pk=pk)
    return Response({
        'id': order.id,
        'status': order.status,
        'allowed_statuses': ALLOWED_TRANSITIONS.get(order.status, []),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def production_order_list(request):
    """Orders on the production board, highest priority first"""
    orders = Order.objects.exclude(status__in=EXCLUDED_FROM_PRODUCTION).not_refunded().prefetch_related('items')
    if request.query_params.get('production_status'):
        orders = orders.filter(production_status=request.query_params['production_status'])
    orders = orders.order_by('-delivery_priority', '-created_at')
    return Response({'orders': OrderSerializer(orders, many=True).data})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def production_order_update(request, pk):
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=pk)
    production_status = request.data.get('productionStatus') or request.data.get('production_status')
    if not production_status:
        return Response({'error': 'Missing productionStatus'}, status=status.HTTP_400_BAD_REQUEST)
    if production_status not in PRODUCTION_FLOW:
        return Response({'error': f'Invalid production status: {production_status}'},
                        status=status.HTTP_400_BAD_REQUEST)

    previous = order.production_status
    order.production_status = production_status
    now = timezone.now()
    if production_status == 'in_production' and not order.production_start_date:
        order.production_start_date = now
    if production_status == 'completed':
        order.production_completed_date = now
    if 'production_notes' in request.data:
        order.production_notes = request.data.get('production_notes') or ''
    order.save()

    create_audit_log(
        request=request,
        action='production_status',
        model_name='Order',
        object_id=str(order.id),
        object_name=order.customer_name,
        object_reference=order.reference,
        changes={'production_status': {'old': previous, 'new': production_status}}
    )
    return Response(OrderSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def production_schedule(request):
    """Seven day production plan, 50 orders per day, ?day=0..6 selects the day shown"""
    try:
        day = int(request.query_params.get('day', 0))
    except (TypeError, ValueError):
        return Response({'error': 'day must be a number between 0 and 6'}, status=status.HTTP_400_BAD_REQUEST)

    orders = Order.objects.exclude(status__in=EXCLUDED_FROM_PRODUCTION).exclude(
        production_status='completed'
    ).not_refunded().prefetch_related('items')
    orders = list(orders)
    refresh_priorities(orders)
    orders.sort(key=lambda o: (-o.delivery_priority, o.created_at))
    return Response(build_schedule(orders, day=day))


def _mark_shipped(order, tracking_number, courier):
    order.tracking_number = tracking_number
    order.courier = courier
    order.status = 'shipped'
    order.production_status = 'completed'
    order.production_completed_date = order.production_completed_date or timezone.now()
    order.shipped_at = timezone.now()


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def ship_order(request, pk):
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=pk)
    tracking_number = (request.data.get('tracking_number') or '').strip()
    courier = (request.data.get('courier') or '').strip()
    if not tracking_number or not courier:
        return Response({'error': 'Tracking number and courier are required'}, status=status.HTTP_400_BAD_REQUEST)
    if order.status in ('cancelled', 'payment_failed'):
        return Response({'error': f'Cannot ship an order with status {order.status}'},
                        status=status.HTTP_400_BAD_REQUEST)

    previous = order.status
    _mark_shipped(order, tracking_number, courier)
    order.save()

    create_audit_log(
        request=request,
        action='order_ship',
        model_name='Order',
        object_id=str(order.id),
        object_name=order.customer_name,
        object_reference=order.reference,
        changes={'status': {'old': previous, 'new': 'shipped'}, 'tracking_number': tracking_number,
                 'courier': courier}
    )
    send_order_shipped_email(order)
    return Response(OrderSerializer(order).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def generate_label(request, pk):
    """Buy a ShipEngine label for an order that is ready to ship"""
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=pk)
    if order.production_status != 'ready_to_ship':
        return Response({'error': 'Order must be ready to ship before generating a label'},
                        status=status.HTTP_400_BAD_REQUEST)

    try:
        label = ShipEngineClient().create_label(order)
    except ShipEngineError as e:
        return Response({'error': str(e), 'details': e.details}, status=status.HTTP_502_BAD_GATEWAY)

    _mark_shipped(order, label.get('tracking_number') or '', LABEL_COURIER)
    order.label_download_url = ((label.get('label_download') or {}).get('pdf')
                                or (label.get('label_download') or {}).get('href') or '')
    order.label_id = label.get('label_id') or ''
    order.shipment_id = label.get('shipment_id') or ''
    shipment_cost = label.get('shipment_cost') or {}
    if shipment_cost.get('amount') is not None:
        order.actual_shipping_cost = shipment_cost['amount']
    order.save()

    create_audit_log(
        request=request,
        action='label_create',
        model_name='Order',
        object_id=str(order.id),
        object_name=order.customer_name,
        object_reference=order.reference,
        changes={'tracking_number': order.tracking_number, 'label_id': order.label_id}
    )
    send_order_shipped_email(order)
    return Response({
        'success': True,
        'tracking_number': order.tracking_number,
        'label_download_url': order.label_download_url,
        'label_id': order.label_id,
        'shipment_id': order.shipment_id,
        'order': OrderSerializer(order).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def shipping_carriers(request):
    try:
        return Response(ShipEngineClient().get_carriers())
    except ShipEngineError as e:
        return Response({'error': str(e), 'details': e.details}, status=status.HTTP_502_BAD_GATEWAY)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def shipping_services(request):
    try:
        return Response(ShipEngineClient().get_services(request.query_params.get('carrier_id')))
    except ShipEngineError as e:
        return Response({'error': str(e), 'details': e.details}, status=status.HTTP_502_BAD_GATEWAY)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def shipping_rates(request):
    order_id = request.data.get('order_id')
    if not order_id:
        return Response({'error': 'order_id is required'}, status=status.HTTP_400_BAD_REQUEST)
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=order_id)
    try:
        rates = ShipEngineClient().get_rates(
            order,
            carrier_id=request.data.get('carrier_id'),
            service_code=request.data.get('service_code'),
        )
    except ShipEngineError as e:
        return Response({'error': str(e), 'details': e.details}, status=status.HTTP_502_BAD_GATEWAY)
    return Response(rates)
