import logging
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from django.db import transaction as db_transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from storefront.core.emails import send_payment_confirmation_email, send_refund_email
from storefront.core.utils import create_audit_log
from storefront.orders.models import Order, TempOrder
from storefront.orders.serializers import OrderSerializer
from . import stripe_client
from .models import Transaction
from .serializers import TransactionSerializer

logger = logging.getLogger(__name__)


def _decimal(value):
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None


@api_view(['POST'])
@permission_classes([AllowAny])
def create_payment_intent(request):
    """Start a card payment; the amount is in pounds"""
    amount = _decimal(request.data.get('amount'))
    if amount is None or amount <= 0:
        return Response({'error': 'A valid amount is required'}, status=status.HTTP_400_BAD_REQUEST)

    metadata = {}
    if request.data.get('order_data_key'):
        metadata['orderDataKey'] = request.data['order_data_key']

    try:
        intent = stripe_client.create_payment_intent(amount, metadata)
    except stripe_client.StripeError as e:
        logger.error(f"Failed to create payment intent: {str(e)}")
        return Response({'error': 'Failed to create payment intent'}, status=status.HTTP_502_BAD_GATEWAY)

    return Response({'clientSecret': intent.client_secret, 'paymentIntentId': intent.id})


def _handle_payment_succeeded(intent):
    key = (intent.get('metadata') or {}).get('orderDataKey')
    if key:
        deleted, _ = TempOrder.objects.filter(order_data_key=key).delete()
        logger.info(f"Payment {intent.get('id')} succeeded; removed {deleted} temp order(s) for {key}")

    order_id = str((intent.get('metadata') or {}).get('orderId') or '')
    if not order_id.isdigit():
        return
    order = Order.objects.filter(pk=order_id, status__in=['pending', 'payment_failed']).first()
    if order:
        order.status = 'paid'
        order.save(update_fields=['status', 'updated_at'])
        send_payment_confirmation_email(order)


def _handle_payment_failed(intent):
    order_id = str((intent.get('metadata') or {}).get('orderId') or '')
    if not order_id.isdigit():
        logger.warning(f"Payment {intent.get('id')} failed without a usable orderId ({order_id!r})")
        return
    order = Order.objects.filter(pk=order_id).first()
    if not order:
        logger.warning(f"Payment {intent.get('id')} failed for unknown order {order_id}")
        return

    error = intent.get('last_payment_error') or {}
    with db_transaction.atomic():
        order.status = 'payment_failed'
        order.save(update_fields=['status', 'updated_at'])
        Transaction.objects.create(
            order=order,
            user=order.user,
            amount=stripe_client.from_pence(intent.get('amount')),
            currency=(intent.get('currency') or 'gbp').upper(),
            payment_method='stripe',
            status='failed',
            payment_intent_id=intent.get('id') or '',
            error_message=error.get('message') or 'Payment failed',
        )
    logger.warning(f"Payment failed for order {order.reference}: {error.get('message')}")


WEBHOOK_HANDLERS = {
    'payment_intent.succeeded': _handle_payment_succeeded,
    'payment_intent.payment_failed': _handle_payment_failed,
}


@api_view(['POST'])
@permission_classes([AllowAny])
def stripe_webhook(request):
    """Verify and dispatch a Stripe event"""
    signature = request.META.get('HTTP_STRIPE_SIGNATURE', '')
    try:
        event = stripe_client.construct_event(request.body, signature)
    except stripe_client.WebhookNotConfigured as e:
        logger.error(str(e))
        return Response({'error': 'Webhook not configured'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    except (stripe_client.SignatureVerificationError, ValueError) as e:
        logger.warning(f"Rejected Stripe webhook: {str(e)}")
        return Response({'error': 'Invalid signature'}, status=status.HTTP_400_BAD_REQUEST)

    handler = WEBHOOK_HANDLERS.get(event['type'])
    if handler:
        handler(event['data']['object'])
    else:
        logger.info(f"Unhandled Stripe event type {event['type']}")
    return Response({'received': True})


def _refund_transaction(order):
    return order.transactions.filter(status__in=['completed', 'refunded']).order_by('-created_at').first()


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def order_refund(request, pk):
    """
    Refund a cancelled order through Stripe.

    GET describes what can be refunded; POST takes optional amount, reason
    and notes. The amount defaults to the full payment.
    """
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=pk)
    txn = _refund_transaction(order)

    if request.method == 'GET':
        if txn:
            transaction_data = TransactionSerializer(txn).data
        else:
            transaction_data = {'id': None, 'amount': str(order.total), 'currency': 'GBP',
                                'status': 'not_found', 'payment_intent_id': None}
        return Response({
            'order': OrderSerializer(order).data,
            'transaction': transaction_data,
            'can_refund': bool(txn) and txn.status == 'completed' and order.status == 'cancelled',
            'max_refund_amount': str(txn.amount if txn else order.total),
        })

    # POST
    if order.status != 'cancelled':
        return Response({'error': 'Only cancelled orders can be refunded'}, status=status.HTTP_400_BAD_REQUEST)
    if not txn:
        return Response({'error': 'No transaction found for this order'}, status=status.HTTP_404_NOT_FOUND)
    if txn.status == 'refunded' or order.is_refunded:
        return Response({'error': 'Order has already been refunded'}, status=status.HTTP_400_BAD_REQUEST)

    amount = txn.amount
    if request.data.get('amount') not in (None, ''):
        amount = _decimal(request.data.get('amount'))
        if amount is None:
            return Response({'error': 'Invalid refund amount'}, status=status.HTTP_400_BAD_REQUEST)
    if amount <= 0:
        return Response({'error': 'Refund amount must be greater than 0'}, status=status.HTTP_400_BAD_REQUEST)
    if amount > txn.amount:
        return Response({'error': f'Refund amount cannot exceed original payment amount of £{txn.amount:.2f}'},
                        status=status.HTTP_400_BAD_REQUEST)

    reason = request.data.get('reason') or 'Order cancellation'
    notes = request.data.get('notes') or ''

    try:
        existing = stripe_client.list_refunds(txn.payment_intent_id)
    except stripe_client.StripeError as e:
        logger.warning(f"Could not list refunds for {txn.payment_intent_id}: {str(e)}")
        existing = []
    if existing:
        txn.status = 'refunded'
        txn.refund_id = existing[0].id
        txn.save(update_fields=['status', 'refund_id', 'updated_at'])
        return Response({'error': 'Order has already been refunded in Stripe'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        refund = stripe_client.create_refund(
            txn.payment_intent_id, amount,
            metadata={'orderId': str(order.id), 'reference': order.reference, 'reason': reason},
        )
    except stripe_client.StripeError as e:
        if getattr(e, 'code', None) != 'charge_already_refunded':
            logger.error(f"Stripe refund failed for {order.reference}: {str(e)}")
            return Response({'error': f'Failed to process refund: {str(e)}'}, status=status.HTTP_502_BAD_GATEWAY)
        refunds = stripe_client.list_refunds(txn.payment_intent_id)
        if not refunds:
            return Response({'error': 'Charge has already been refunded but no refund record found'},
                            status=status.HTTP_400_BAD_REQUEST)
        refund = refunds[0]

    refunded_at = timezone.now().isoformat()
    refund_info = {
        'refundAmount': str(amount),
        'refundReason': reason,
        'refundNotes': notes,
        'refundedAt': refunded_at,
        'refundedBy': request.user.email,
    }
    with db_transaction.atomic():
        txn.status = 'refunded'
        txn.refund_id = refund.id
        txn.metadata = {**(txn.metadata or {}), **refund_info}
        txn.save()
        order.metadata = {**(order.metadata or {}), **refund_info, 'refunded': True, 'stripeRefundId': refund.id}
        order.save(update_fields=['metadata', 'updated_at'])

    create_audit_log(
        request=request,
        action='refund',
        model_name='Order',
        object_id=str(order.id),
        object_name=order.customer_name,
        object_reference=order.reference,
        changes={'amount': str(amount), 'reason': reason, 'refund_id': refund.id}
    )
    send_refund_email(order, amount)
    logger.info(f"Refunded £{amount} on order {order.reference} ({refund.id})")

    return Response({
        'success': True,
        'refund': {'id': refund.id, 'amount': str(amount), 'status': getattr(refund, 'status', 'succeeded')},
        'order': OrderSerializer(order).data,
    })
