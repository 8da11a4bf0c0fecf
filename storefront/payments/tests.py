"""
Test suite for payment intents, the Stripe webhook and refunds.
The Stripe SDK is never called; stripe_client functions are patched.
"""
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.orders.models import TempOrder
from . import stripe_client
from .models import Transaction

REFUND_URL = '/api/v1/admin/orders/{}/refund/'


class PenceConversionTests(TestCase):

    def test_to_pence_rounds(self):
        self.assertEqual(stripe_client.to_pence(Decimal('24.99')), 2499)
        self.assertEqual(stripe_client.to_pence('0.005'), 1)
        self.assertEqual(stripe_client.to_pence(10), 1000)

    def test_from_pence(self):
        self.assertEqual(stripe_client.from_pence(2499), Decimal('24.99'))
        self.assertEqual(stripe_client.from_pence(None), Decimal('0.00'))

    @override_settings(STRIPE_WEBHOOK_SECRET='')
    def test_webhook_requires_secret(self):
        with self.assertRaises(stripe_client.WebhookNotConfigured):
            stripe_client.construct_event(b'{}', 'sig')


class PaymentIntentTests(APITestCase):

    @patch('storefront.payments.stripe_client.create_payment_intent')
    def test_create_intent(self, mock_create):
        mock_create.return_value = SimpleNamespace(id='pi_1', client_secret='pi_1_secret')
        response = self.client.post('/api/v1/payment/create-payment-intent/',
                                    {'amount': '24.00', 'order_data_key': 'abc'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'clientSecret': 'pi_1_secret', 'paymentIntentId': 'pi_1'})
        mock_create.assert_called_once_with(Decimal('24.00'), {'orderDataKey': 'abc'})

    def test_invalid_amount(self):
        for amount in (None, '0', '-5', 'ten'):
            response = self.client.post('/api/v1/payment/create-payment-intent/', {'amount': amount}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'A valid amount is required')

    @patch('storefront.payments.stripe_client.create_payment_intent',
           side_effect=stripe_client.StripeError('Card network down'))
    def test_stripe_failure(self, mock_create):
        response = self.client.post('/api/v1/payment/create-payment-intent/', {'amount': '5.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)


class WebhookTests(APITestCase):

    def post_event(self):
        return self.client.post('/api/v1/webhooks/stripe/', data='{}', content_type='application/json',
                                HTTP_STRIPE_SIGNATURE='t=1,v1=abc')

    @patch('storefront.payments.stripe_client.construct_event')
    def test_payment_succeeded_removes_temp_order(self, mock_event):
        TempOrder.objects.create(order_data_key='key-1', items=[{'x': 1}], amount=Decimal('24.00'))
        mock_event.return_value = {
            'type': 'payment_intent.succeeded',
            'data': {'object': {'id': 'pi_1', 'metadata': {'orderDataKey': 'key-1'}}},
        }
        response = self.post_event()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'received': True})
        self.assertFalse(TempOrder.objects.exists())
        self.assertEqual(mock_event.call_args[0][1], 't=1,v1=abc')

    @patch('storefront.payments.stripe_client.construct_event')
    def test_payment_succeeded_confirms_pending_order(self, mock_event):
        order = TestDataFactory.create_order(status='pending')
        paid = TestDataFactory.create_order(status='paid')
        for target in (order, paid):
            mock_event.return_value = {
                'type': 'payment_intent.succeeded',
                'data': {'object': {'id': 'pi_3', 'metadata': {'orderId': str(target.id)}}},
            }
            self.assertEqual(self.post_event().status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.status, 'paid')
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(order.reference, mail.outbox[0].subject)

    @patch('storefront.payments.stripe_client.construct_event')
    def test_payment_failed_marks_order(self, mock_event):
        order = TestDataFactory.create_order(status='pending')
        mock_event.return_value = {
            'type': 'payment_intent.payment_failed',
            'data': {'object': {
                'id': 'pi_2',
                'amount': 2400,
                'currency': 'gbp',
                'metadata': {'orderId': str(order.id)},
                'last_payment_error': {'message': 'Your card was declined.'},
            }},
        }
        response = self.post_event()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.status, 'payment_failed')
        txn = Transaction.objects.get(order=order)
        self.assertEqual(txn.status, 'failed')
        self.assertEqual(txn.amount, Decimal('24.00'))
        self.assertEqual(txn.currency, 'GBP')
        self.assertEqual(txn.error_message, 'Your card was declined.')

    @patch('storefront.payments.stripe_client.construct_event')
    def test_payment_failed_with_foreign_order_id(self, mock_event):
        """Test an orderId that is not one of ours is acknowledged and ignored"""
        order = TestDataFactory.create_order(status='pending')
        mock_event.return_value = {
            'type': 'payment_intent.payment_failed',
            'data': {'object': {'id': 'pi_4', 'metadata': {'orderId': '66a1f0c2e4b0a1b2c3d4e5f6'}}},
        }
        response = self.post_event()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'received': True})
        order.refresh_from_db()
        self.assertEqual(order.status, 'pending')
        self.assertFalse(Transaction.objects.exists())

    @patch('storefront.payments.stripe_client.construct_event')
    def test_unhandled_event_is_acknowledged(self, mock_event):
        mock_event.return_value = {'type': 'charge.captured', 'data': {'object': {}}}
        self.assertEqual(self.post_event().status_code, status.HTTP_200_OK)

    @patch('storefront.payments.stripe_client.construct_event',
           side_effect=stripe_client.SignatureVerificationError('bad', 'sig'))
    def test_bad_signature(self, mock_event):
        response = self.post_event()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid signature')

    @override_settings(STRIPE_WEBHOOK_SECRET='')
    def test_not_configured(self):
        self.assertEqual(self.post_event().status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


class RefundTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()
        self.order = TestDataFactory.create_order(status='cancelled', total=Decimal('24.00'))
        self.txn = TestDataFactory.create_transaction(self.order, payment_intent_id='pi_refund')

    def test_get_summary(self):
        response = self.client.get(REFUND_URL.format(self.order.id))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['can_refund'])
        self.assertEqual(response.data['max_refund_amount'], '24.00')

    def test_get_without_transaction(self):
        order = TestDataFactory.create_order(status='cancelled')
        response = self.client.get(REFUND_URL.format(order.id))
        self.assertEqual(response.data['transaction']['status'], 'not_found')
        self.assertFalse(response.data['can_refund'])

    @patch('storefront.payments.stripe_client.create_refund')
    @patch('storefront.payments.stripe_client.list_refunds', return_value=[])
    def test_full_refund(self, mock_list, mock_create):
        mock_create.return_value = SimpleNamespace(id='re_1', status='succeeded')
        response = self.client.post(REFUND_URL.format(self.order.id), {'reason': 'Damaged'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['refund'], {'id': 're_1', 'amount': '24.00', 'status': 'succeeded'})
        mock_create.assert_called_once()
        self.assertEqual(mock_create.call_args[0][:2], ('pi_refund', Decimal('24.00')))

        self.txn.refresh_from_db()
        self.order.refresh_from_db()
        self.assertEqual(self.txn.status, 'refunded')
        self.assertEqual(self.txn.refund_id, 're_1')
        self.assertTrue(self.order.is_refunded)
        self.assertEqual(self.order.metadata['refundReason'], 'Damaged')
        self.assertEqual(self.order.metadata['refundedBy'], self.admin.email)
        self.assertTrue(AuditLog.objects.filter(action='refund', object_reference=self.order.reference).exists())
        self.assertEqual(len(mail.outbox), 1)

    @patch('storefront.payments.stripe_client.create_refund')
    @patch('storefront.payments.stripe_client.list_refunds', return_value=[])
    def test_partial_refund(self, mock_list, mock_create):
        mock_create.return_value = SimpleNamespace(id='re_2', status='pending')
        response = self.client.post(REFUND_URL.format(self.order.id), {'amount': '10.50'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.metadata['refundAmount'], '10.50')
        self.assertEqual(self.order.metadata['refundReason'], 'Order cancellation')

    def test_only_cancelled_orders(self):
        order = TestDataFactory.create_order(status='paid')
        TestDataFactory.create_transaction(order)
        response = self.client.post(REFUND_URL.format(order.id), {}, format='json')
        self.assertEqual(response.data['error'], 'Only cancelled orders can be refunded')

    def test_no_transaction(self):
        order = TestDataFactory.create_order(status='cancelled')
        response = self.client.post(REFUND_URL.format(order.id), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_already_refunded(self):
        self.txn.status = 'refunded'
        self.txn.save()
        response = self.client.post(REFUND_URL.format(self.order.id), {}, format='json')
        self.assertEqual(response.data['error'], 'Order has already been refunded')

    def test_amount_validation(self):
        url = REFUND_URL.format(self.order.id)
        self.assertEqual(self.client.post(url, {'amount': 'abc'}, format='json').data['error'],
                         'Invalid refund amount')
        self.assertEqual(self.client.post(url, {'amount': '0'}, format='json').data['error'],
                         'Refund amount must be greater than 0')
        self.assertEqual(self.client.post(url, {'amount': '30.00'}, format='json').data['error'],
                         'Refund amount cannot exceed original payment amount of £24.00')

    @patch('storefront.payments.stripe_client.create_refund')
    @patch('storefront.payments.stripe_client.list_refunds')
    def test_existing_stripe_refund(self, mock_list, mock_create):
        """Test a refund made outside the back office is detected and recorded"""
        mock_list.return_value = [SimpleNamespace(id='re_outside', status='succeeded')]
        response = self.client.post(REFUND_URL.format(self.order.id), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Order has already been refunded in Stripe')
        mock_create.assert_not_called()
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.refund_id, 're_outside')

    @patch('storefront.payments.stripe_client.create_refund')
    @patch('storefront.payments.stripe_client.list_refunds')
    def test_charge_already_refunded(self, mock_list, mock_create):
        mock_list.side_effect = [[], [SimpleNamespace(id='re_late', status='succeeded')]]
        mock_create.side_effect = stripe_client.InvalidRequestError(
            'Charge has already been refunded.', 'charge', code='charge_already_refunded'
        )
        response = self.client.post(REFUND_URL.format(self.order.id), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['refund']['id'], 're_late')

    @patch('storefront.payments.stripe_client.create_refund',
           side_effect=stripe_client.StripeError('Stripe is unavailable'))
    @patch('storefront.payments.stripe_client.list_refunds', return_value=[])
    def test_stripe_failure(self, mock_list, mock_create):
        response = self.client.post(REFUND_URL.format(self.order.id), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.status, 'completed')
