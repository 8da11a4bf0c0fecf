"""
Thin wrappers around the Stripe SDK. Amounts are passed in pounds and
converted to pence here.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)

StripeError = stripe.StripeError
SignatureVerificationError = stripe.SignatureVerificationError
InvalidRequestError = stripe.InvalidRequestError


class WebhookNotConfigured(Exception):
    pass


def _configure():
    stripe.api_key = settings.STRIPE_SECRET_KEY


def to_pence(amount):
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def from_pence(amount):
    return (Decimal(amount or 0) / 100).quantize(Decimal('0.01'))


def create_payment_intent(amount, metadata=None):
    _configure()
    intent = stripe.PaymentIntent.create(
        amount=to_pence(amount),
        currency=settings.STRIPE_CURRENCY,
        metadata=metadata or {},
        automatic_payment_methods={'enabled': True},
    )
    logger.info(f"Created payment intent {intent.id} for £{amount}")
    return intent


def construct_event(payload, signature):
    """Verify a webhook payload; raises SignatureVerificationError on a bad signature"""
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise WebhookNotConfigured('Stripe webhook secret is not configured')
    return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)


def list_refunds(payment_intent_id):
    _configure()
    return list(stripe.Refund.list(payment_intent=payment_intent_id, limit=10).data)


def create_refund(payment_intent_id, amount, metadata=None):
    _configure()
    refund = stripe.Refund.create(
        payment_intent=payment_intent_id,
        amount=to_pence(amount),
        reason='requested_by_customer',
        metadata=metadata or {},
    )
    logger.info(f"Created refund {refund.id} of £{amount} on {payment_intent_id}")
    return refund


def create_payment_link(name, amount, metadata=None):
    """One-off price plus payment link; returns the link URL"""
    _configure()
    price = stripe.Price.create(
        currency=settings.STRIPE_CURRENCY,
        unit_amount=to_pence(amount),
        product_data={'name': name},
    )
    link = stripe.PaymentLink.create(
        line_items=[{'price': price.id, 'quantity': 1}],
        metadata=metadata or {},
    )
    logger.info(f"Created payment link {link.id} for {name}")
    return link.url
