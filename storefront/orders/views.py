import logging
import secrets

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from storefront.core.emails import send_order_confirmation_email, send_order_cancellation_email
from storefront.core.utils import (
    create_audit_log, generate_reference, ReferenceGenerationError, REFERENCE_MAX_ATTEMPTS,
)
from storefront.inventory.services import reserve_order_stock, release_order_stock, InsufficientStock
from storefront.payments.models import Transaction
from storefront.vouchers.models import Voucher
from .models import Order, OrderItem, TempOrder
from .serializers import OrderCreateSerializer, OrderSerializer, TempOrderSerializer
from .production import calculate_priority
from .invoice import render_invoice

User = get_user_model()
logger = logging.getLogger(__name__)

ORDER_PREFIX = 'SH'
CANCELLATION_WINDOW_DAYS = 14


def _resolve_user(request, user_id):
    if user_id:
        user = User.objects.filter(pk=user_id).first()
        if user:
            return user
    if request.user and request.user.is_authenticated:
        return request.user
    return None


def _build_item(order, data):
    customization = data.get('customization') or {}
    return OrderItem(
        order=order,
        product_id=data.get('product'),
        product_ref=data.get('product_ref') or str(data.get('product') or ''),
        name=data['name'],
        price=data['price'],
        quantity=data['quantity'],
        size=data['size'],
        color=data.get('color', ''),
        image=data.get('image', ''),
        is_customized=customization.get('is_customized', False),
        custom_name=customization.get('name', ''),
        custom_number=customization.get('number', ''),
        name_characters=customization.get('name_characters', 0),
        number_characters=customization.get('number_characters', 0),
        customization_cost=customization.get('customization_cost', 0),
    )


def can_view_order(request, order):
    return request.user.is_authenticated and (request.user.is_staff or order.is_owned_by(request.user))


def _create_with_reference(**fields):
    """
    Create an order under a fresh reference. A concurrent checkout can take
    the same reference between the lookup and the insert, so the insert is
    retried in a savepoint until the unique index accepts it.
    """
    for attempt in range(REFERENCE_MAX_ATTEMPTS):
        reference = generate_reference(Order, ORDER_PREFIX)
        try:
            with transaction.atomic():
                return Order.objects.create(reference=reference, **fields)
        except IntegrityError:
            logger.info(f"Reference {reference} was taken on insert (attempt {attempt + 1})")
    raise ReferenceGenerationError(f'Could not allocate an order reference after {REFERENCE_MAX_ATTEMPTS} attempts')


@api_view(['POST'])
@permission_classes([AllowAny])
def create_order(request):
    """
    Create an order after a successful card payment.
    Stock is reserved atomically; a line that cannot be met answers 409.
    """
    serializer = OrderCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    # A retried checkout must not create a second order for the same payment
    existing = Transaction.objects.filter(
        payment_intent_id=data['payment_intent_id'], status='completed'
    ).select_related('order').first()
    if existing:
        return Response({'success': True, 'orderId': existing.order.id, 'reference': existing.order.reference})

    # Filter out product ids that no longer exist so the FK stays valid
    product_ids = {item.get('product') for item in data['items'] if item.get('product')}
    if product_ids:
        from storefront.catalog.models import Product
        known = set(Product.objects.filter(pk__in=product_ids).values_list('pk', flat=True))
        for item in data['items']:
            if item.get('product') and item['product'] not in known:
                item['product_ref'] = item.get('product_ref') or str(item['product'])
                item['product'] = None

    user = _resolve_user(request, data.get('user_id'))
    visitor_id = data.get('visitor_id') or None
    shipping = data['shipping_details']
    voucher = Voucher.objects.filter(pk=data.get('voucher_id')).first() if data.get('voucher_id') else None

    try:
        with transaction.atomic():
            reserve_order_stock(data['items'])
            now = timezone.now()
            order = _create_with_reference(
                user=user,
                user_identifier=(user.email if user else None) or visitor_id or 'guest',
                visitor_id=visitor_id,
                order_source=data['items'][0].get('order_source') or None,
                first_name=shipping['first_name'],
                last_name=shipping['last_name'],
                email=shipping['email'],
                phone=shipping['phone'],
                address=shipping['address'],
                address_line2=shipping.get('address_line2', ''),
                city=shipping['city'],
                county=shipping['county'],
                postcode=shipping['postcode'],
                country=shipping.get('country') or 'United Kingdom',
                shipping_method=shipping['shipping_method'],
                shipping_cost=shipping['shipping_cost'],
                estimated_delivery_days=shipping.get('estimated_delivery_days', ''),
                total=data['total'],
                vat=data['vat'],
                status='paid',
                production_status='not_started',
                delivery_priority=calculate_priority(shipping['shipping_method'], now, now=now),
                voucher=voucher,
                voucher_code=(data.get('voucher_code') or '').upper(),
                voucher_discount=data.get('voucher_discount') or 0,
                voucher_type=data.get('voucher_type', ''),
                voucher_value=data.get('voucher_value'),
                created_at=now,
            )
            OrderItem.objects.bulk_create([_build_item(order, item) for item in data['items']])
            Transaction.objects.create(
                order=order,
                user=user,
                amount=data['total'],
                currency='GBP',
                payment_method='stripe',
                status='completed',
                payment_intent_id=data['payment_intent_id'],
            )
            if voucher:
                voucher.increment_usage()
    except InsufficientStock as e:
        logger.warning(f"Order rejected: {str(e)}")
        return Response({'error': str(e), 'details': e.as_dict()}, status=status.HTTP_409_CONFLICT)
    except ReferenceGenerationError as e:
        logger.error(f"Order creation failed: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Order {order.reference} created for {order.user_identifier}")
    create_audit_log(
        request=request,
        user=user,
        action='order_create',
        model_name='Order',
        object_id=str(order.id),
        object_name=order.customer_name,
        object_reference=order.reference,
        changes={'total': str(order.total), 'items': len(data['items'])}
    )
    if voucher:
        create_audit_log(request=request, user=user, action='voucher_redeem', model_name='Voucher',
                         object_id=str(voucher.id), object_name=voucher.code, object_reference=order.reference)
    send_order_confirmation_email(order)

    return Response({'success': True, 'orderId': order.id, 'reference': order.reference},
                    status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request):
    """The signed-in customer's orders, newest first"""
    orders = Order.objects.filter(
        Q(user=request.user) | Q(user_identifier__iexact=request.user.email)
    ).prefetch_related('items').order_by('-created_at')
    return Response({'orders': OrderSerializer(orders, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=pk)
    if not can_view_order(request, order):
        return Response({'error': 'You do not have permission to view this order'}, status=status.HTTP_403_FORBIDDEN)
    return Response(OrderSerializer(order).data)


def cancellation_error(order):
    """Reason the order cannot be cancelled, or None when it can"""
    if order.status == 'cancelled':
        return 'Order is already cancelled'
    if order.cancellation_requested:
        return 'Cancellation has already been requested for this order'
    if order.status in ('shipped', 'delivered'):
        # whole days since purchase; day 14 is still inside the window
        if (timezone.now() - order.created_at).days > CANCELLATION_WINDOW_DAYS:
            return f'{CANCELLATION_WINDOW_DAYS}-day cancellation period has expired'
        return None
    if order.status in ('paid', 'pending'):
        if order.production_status != 'not_started':
            if order.has_customization:
                return 'Custom-made items cannot be cancelled once production has started'
            return 'Order cannot be cancelled as production has already started'
        return None
    return 'Order cannot be cancelled at this stage'


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_order(request, pk):
    """Customer (or admin) cancellation with a reason"""
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=pk)
    if not can_view_order(request, order):
        return Response({'error': 'You do not have permission to cancel this order'}, status=status.HTTP_403_FORBIDDEN)

    reason = (request.data.get('reason') or '').strip()
    if not reason:
        return Response({'error': 'Cancellation reason is required'}, status=status.HTTP_400_BAD_REQUEST)

    error = cancellation_error(order)
    if error:
        return Response({'error': error}, status=status.HTTP_400_BAD_REQUEST)

    previous_status = order.status
    with transaction.atomic():
        order.cancellation_requested = True
        order.cancellation_reason = reason
        order.cancellation_requested_at = timezone.now()
        order.cancellation_requested_by = 'admin' if request.user.is_staff else 'customer'
        order.cancellation_notes = (request.data.get('notes') or '').strip()
        order.status = 'cancelled'
        order.save()
        release_order_stock(order.stock_lines())

    create_audit_log(
        request=request,
        action='order_cancel',
        model_name='Order',
        object_id=str(order.id),
        object_name=order.customer_name,
        object_reference=order.reference,
        changes={'status': {'old': previous_status, 'new': 'cancelled'}, 'reason': reason}
    )
    send_order_cancellation_email(order)
    return Response({'success': True, 'message': 'Order cancelled successfully', 'order': OrderSerializer(order).data})


@api_view(['GET'])
@permission_classes([AllowAny])
def order_invoice(request, pk):
    """Invoice PDF for the owner, an admin, or the guest who placed the order"""
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=pk)
    visitor_id = request.query_params.get('visitor_id')
    guest_match = bool(visitor_id) and visitor_id == order.visitor_id
    if not (guest_match or can_view_order(request, order)):
        if not request.user.is_authenticated:
            return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)
        return Response({'error': 'You do not have permission to view this invoice'}, status=status.HTTP_403_FORBIDDEN)

    response = HttpResponse(render_invoice(order), content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="Invoice-{order.reference}.pdf"'
    return response


@api_view(['POST'])
@permission_classes([AllowAny])
def temp_order_create(request):
    """Park checkout data until the payment intent succeeds"""
    serializer = TempOrderSerializer(data=request.data)
    if serializer.is_valid():
        temp_order = serializer.save(order_data_key=secrets.token_hex(16))
        return Response({'orderDataKey': temp_order.order_data_key}, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([AllowAny])
def temp_order_detail(request, key):
    temp_order = TempOrder.objects.filter(order_data_key=key, expires_at__gt=timezone.now()).first()
    if not temp_order:
        return Response({'error': 'Order data not found or expired'}, status=status.HTTP_404_NOT_FOUND)
    return Response(TempOrderSerializer(temp_order).data)
