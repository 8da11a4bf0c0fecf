"""
Test suite for checkout, customer orders, the admin order desk, production
planning and shipping
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core import mail
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.payments.models import Transaction
from .models import Order, TempOrder
from .production import (
    calculate_priority, priority_tier, due_date, can_transition, build_schedule,
    next_production_status, previous_production_status, ORDERS_PER_DAY,
)
from .shipengine import ShipEngineError, order_package, country_code


def checkout_payload(product=None, quantity=1, **overrides):
    item = {
        'product': product.id if product else None,
        'name': product.name if product else 'Loose Tee',
        'price': '20.00',
        'quantity': quantity,
        'size': 'M',
        'color': 'Black',
    }
    data = {
        'payment_intent_id': 'pi_test_123',
        'items': [item],
        'shipping_details': {
            'first_name': 'Jane',
            'last_name': 'Doe',
            'email': 'jane@test.com',
            'phone': '07700900123',
            'address': '1 High Street',
            'city': 'London',
            'county': 'Greater London',
            'postcode': 'se7 8ss',
            'shipping_method': 'Express Delivery',
            'shipping_cost': '4.00',
        },
        'total': '24.00',
        'vat': '4.00',
        'visitor_id': 'visitor-1',
    }
    data.update(overrides)
    return data


class ProductionRuleTests(TestCase):

    def test_priority_by_method_and_age(self):
        now = timezone.now()
        self.assertEqual(calculate_priority('Next Day Delivery', now, now=now), 100)
        self.assertEqual(calculate_priority('Express Delivery', now - timedelta(days=2), now=now), 60)
        self.assertEqual(calculate_priority('Carrier Pigeon', now, now=now), 10)

    def test_priority_tiers(self):
        self.assertEqual(priority_tier(150), 'critical')
        self.assertEqual(priority_tier(100), 'high')
        self.assertEqual(priority_tier(50), 'medium')
        self.assertEqual(priority_tier(49), 'normal')

    def test_due_date(self):
        order = TestDataFactory.create_order(shipping_method='Next Day Delivery')
        self.assertEqual(due_date(order), timezone.localtime(order.created_at).date() + timedelta(days=1))

    def test_transitions(self):
        self.assertTrue(can_transition('paid', 'shipped'))
        self.assertFalse(can_transition('delivered', 'pending'))
        self.assertTrue(can_transition('cancelled', 'pending'))

    def test_production_flow_neighbours(self):
        self.assertEqual(next_production_status('not_started'), 'in_production')
        self.assertIsNone(next_production_status('completed'))
        self.assertIsNone(previous_production_status('not_started'))

    def test_schedule_batches(self):
        orders = [TestDataFactory.create_order() for _ in range(ORDERS_PER_DAY + 3)]
        schedule = build_schedule(orders, day=1)
        self.assertEqual(schedule['days'][0]['count'], ORDERS_PER_DAY)
        self.assertEqual(schedule['days'][1]['count'], 3)
        self.assertEqual(len(schedule['orders']['not_started']), 3)
        self.assertEqual(schedule['unscheduled'], 0)


class ShipEngineHelperTests(TestCase):

    def test_country_code(self):
        self.assertEqual(country_code('United Kingdom'), 'GB')
        self.assertEqual(country_code('FR'), 'FR')

    def test_package_weight(self):
        order = TestDataFactory.create_order(items=[
            {'name': 'Tee', 'price': Decimal('10.00'), 'quantity': 3, 'size': 'M', 'color': 'Black'},
        ])
        self.assertEqual(order_package(order)['weight']['value'], 1.5)


class CreateOrderTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.product = TestDataFactory.create_product(stock={'Black': {'M': 10}})

    def test_create_order(self):
        """Test checkout creates order, items, transaction and reserves stock"""
        response = self.client.post('/api/v1/orders/create/', checkout_payload(self.product, quantity=2),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get(pk=response.data['orderId'])
        self.assertRegex(order.reference, r'^SH-\d{6}-\d{4}$')
        self.assertEqual(order.status, 'paid')
        self.assertEqual(order.delivery_priority, 50)
        self.assertEqual(order.postcode, 'SE7 8SS')
        self.assertEqual(order.user_identifier, 'visitor-1')
        self.assertEqual(order.items.count(), 1)
        self.assertTrue(Transaction.objects.filter(order=order, status='completed').exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'M'), 8)
        self.assertTrue(AuditLog.objects.filter(action='order_create', object_reference=order.reference).exists())
        self.assertEqual(len(mail.outbox), 1)

    def test_same_payment_is_not_ordered_twice(self):
        first = self.client.post('/api/v1/orders/create/', checkout_payload(self.product), format='json')
        second = self.client.post('/api/v1/orders/create/', checkout_payload(self.product), format='json')
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['orderId'], second.data['orderId'])
        self.assertEqual(Order.objects.count(), 1)

    def test_insufficient_stock(self):
        response = self.client.post('/api/v1/orders/create/', checkout_payload(self.product, quantity=10),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post('/api/v1/orders/create/',
                                    checkout_payload(self.product, payment_intent_id='pi_other'), format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['details']['available'], 0)
        self.assertEqual(Order.objects.count(), 1)

    def test_unknown_product_is_kept_as_reference(self):
        payload = checkout_payload()
        payload['items'][0]['product'] = 424242
        response = self.client.post('/api/v1/orders/create/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item = Order.objects.get(pk=response.data['orderId']).items.get()
        self.assertIsNone(item.product_id)
        self.assertEqual(item.product_ref, '424242')

    def test_signed_in_customer_owns_order(self):
        user = self.login_user()
        response = self.client.post('/api/v1/orders/create/', checkout_payload(self.product), format='json')
        order = Order.objects.get(pk=response.data['orderId'])
        self.assertEqual(order.user, user)
        self.assertEqual(order.user_identifier, user.email)

    def test_voucher_usage_counted(self):
        voucher = TestDataFactory.create_voucher(code='SAVE10')
        payload = checkout_payload(self.product, voucher_id=voucher.id, voucher_code='save10',
                                   voucher_discount='2.00', voucher_type='percentage', voucher_value='10.00')
        response = self.client.post('/api/v1/orders/create/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        voucher.refresh_from_db()
        self.assertEqual(voucher.used_count, 1)
        self.assertEqual(Order.objects.get().voucher_code, 'SAVE10')
        self.assertTrue(AuditLog.objects.filter(action='voucher_redeem').exists())

    def test_validation(self):
        payload = checkout_payload(self.product, items=[])
        response = self.client.post('/api/v1/orders/create/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        payload = checkout_payload(self.product)
        payload['shipping_details']['postcode'] = 'NOT A POSTCODE'
        response = self.client.post('/api/v1/orders/create/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('shipping_details', response.data)

    def test_reference_taken_between_lookup_and_insert(self):
        """Test a reference grabbed by a concurrent checkout is replaced on insert"""
        taken = TestDataFactory.create_order()
        with patch('storefront.orders.views.generate_reference',
                   side_effect=[taken.reference, 'SH-990101-4242']):
            response = self.client.post('/api/v1/orders/create/', checkout_payload(self.product), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['reference'], 'SH-990101-4242')
        self.assertEqual(Order.objects.count(), 2)

    def test_reference_collisions_exhausted(self):
        taken = TestDataFactory.create_order()
        with patch('storefront.orders.views.generate_reference', return_value=taken.reference):
            response = self.client.post('/api/v1/orders/create/', checkout_payload(self.product), format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(Order.objects.count(), 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'M'), 10)


class CustomerOrderTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.user = self.login_user()

    def test_list_includes_orders_matched_by_email(self):
        TestDataFactory.create_order(user=self.user)
        TestDataFactory.create_order(user_identifier=self.user.email.upper())
        TestDataFactory.create_order()
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['orders']), 2)

    def test_detail_of_other_customer_forbidden(self):
        order = TestDataFactory.create_order(user=TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail_includes_shipping_and_priority(self):
        order = TestDataFactory.create_order(user=self.user, delivery_priority=100)
        response = self.client.get(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['shipping_details']['postcode'], 'SE7 8SS')
        self.assertEqual(response.data['priority_tier'], 'high')

    def test_invoice_pdf(self):
        order = TestDataFactory.create_order(user=self.user)
        response = self.client.get(f'/api/v1/orders/{order.id}/invoice/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertIn(f'Invoice-{order.reference}.pdf', response['Content-Disposition'])

    def test_guest_invoice_by_visitor_id(self):
        order = TestDataFactory.create_order(visitor_id='visitor-9')
        self.client.logout()
        response = self.client.get(f'/api/v1/orders/{order.id}/invoice/', {'visitor_id': 'visitor-9'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get(f'/api/v1/orders/{order.id}/invoice/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_invoice_of_other_customer_forbidden(self):
        order = TestDataFactory.create_order(user=TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/orders/{order.id}/invoice/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CancelOrderTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.user = self.login_user()
        self.product = TestDataFactory.create_product(stock={'Black': {'M': 8}})

    def cancel(self, order, reason='Changed my mind'):
        return self.client.post(f'/api/v1/orders/{order.id}/cancel/', {'reason': reason}, format='json')

    def test_cancel_releases_stock(self):
        order = TestDataFactory.create_order(user=self.user, items=[
            {'product': self.product, 'name': 'Tee', 'price': Decimal('20.00'), 'quantity': 2,
             'size': 'M', 'color': 'Black'},
        ])
        response = self.cancel(order)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Order cancelled successfully')
        order.refresh_from_db()
        self.assertEqual(order.status, 'cancelled')
        self.assertEqual(order.cancellation_requested_by, 'customer')
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'M'), 10)
        self.assertTrue(AuditLog.objects.filter(action='order_cancel').exists())

    def test_reason_required(self):
        order = TestDataFactory.create_order(user=self.user)
        response = self.cancel(order, reason='  ')
        self.assertEqual(response.data['error'], 'Cancellation reason is required')

    def test_already_cancelled(self):
        order = TestDataFactory.create_order(user=self.user, status='cancelled')
        self.assertEqual(self.cancel(order).data['error'], 'Order is already cancelled')

    def test_production_started(self):
        order = TestDataFactory.create_order(user=self.user, production_status='in_production')
        self.assertEqual(self.cancel(order).data['error'],
                         'Order cannot be cancelled as production has already started')

    def test_customised_item_in_production(self):
        order = TestDataFactory.create_order(user=self.user, production_status='in_production', items=[
            {'name': 'Jersey', 'price': Decimal('30.00'), 'quantity': 1, 'size': 'L', 'is_customized': True,
             'custom_name': 'SMITH', 'custom_number': '9'},
        ])
        self.assertEqual(self.cancel(order).data['error'],
                         'Custom-made items cannot be cancelled once production has started')

    def test_shipped_within_window(self):
        order = TestDataFactory.create_order(user=self.user, status='shipped',
                                             created_at=timezone.now() - timedelta(days=3))
        self.assertEqual(self.cancel(order).status_code, status.HTTP_200_OK)

    def test_shipped_outside_window(self):
        order = TestDataFactory.create_order(user=self.user, status='delivered',
                                             created_at=timezone.now() - timedelta(days=20))
        response = self.cancel(order)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], '14-day cancellation period has expired')

    def test_window_counts_whole_days(self):
        """Test an order 14 and a half days old is still inside the window"""
        order = TestDataFactory.create_order(user=self.user, status='shipped',
                                             created_at=timezone.now() - timedelta(days=14, hours=12))
        self.assertEqual(self.cancel(order).status_code, status.HTTP_200_OK)
        order = TestDataFactory.create_order(user=self.user, status='shipped',
                                             created_at=timezone.now() - timedelta(days=15, minutes=1))
        self.assertEqual(self.cancel(order).status_code, status.HTTP_400_BAD_REQUEST)

    def test_failed_payment_cannot_be_cancelled(self):
        order = TestDataFactory.create_order(user=self.user, status='payment_failed')
        response = self.cancel(order)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Order cannot be cancelled at this stage')

    def test_admin_cancel_is_marked(self):
        order = TestDataFactory.create_order(user=self.user)
        self.login_admin()
        self.assertEqual(self.cancel(order).status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.cancellation_requested_by, 'admin')

    def test_cannot_cancel_someone_elses_order(self):
        order = TestDataFactory.create_order(user=TestDataFactory.create_user())
        self.assertEqual(self.cancel(order).status_code, status.HTTP_403_FORBIDDEN)


class TempOrderTests(APITestCase):

    def test_park_and_fetch(self):
        response = self.client.post('/api/v1/orders/temp/', {
            'items': [{'product': 1, 'quantity': 1}],
            'shipping_details': {'first_name': 'Jane'},
            'amount': '24.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        key = response.data['orderDataKey']
        self.assertEqual(len(key), 32)

        response = self.client.get(f'/api/v1/orders/temp/{key}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['amount'], '24.00')

    def test_expired_is_not_found(self):
        TempOrder.objects.create(order_data_key='old', items=[{'x': 1}], amount=Decimal('5.00'),
                                 expires_at=timezone.now() - timedelta(minutes=1))
        response = self.client.get('/api/v1/orders/temp/old/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Order data not found or expired')

    def test_items_required(self):
        response = self.client.post('/api/v1/orders/temp/', {'items': [], 'amount': '1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AdminOrderTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_default_sort_by_status_rank(self):
        TestDataFactory.create_order(status='delivered')
        TestDataFactory.create_order(status='payment_failed')
        TestDataFactory.create_order(status='paid')
        response = self.client.get('/api/v1/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['status'] for o in response.data['results']], ['payment_failed', 'paid', 'delivered'])

    def test_sort_by_priority(self):
        TestDataFactory.create_order(delivery_priority=10)
        TestDataFactory.create_order(delivery_priority=100)
        response = self.client.get('/api/v1/admin/orders/', {'sort_by': 'priority'})
        self.assertEqual([o['delivery_priority'] for o in response.data['results']], [100, 10])

    def test_filters(self):
        TestDataFactory.create_order(voucher_code='SAVE10', total=Decimal('50.00'))
        TestDataFactory.create_order(total=Decimal('10.00'))
        response = self.client.get('/api/v1/admin/orders/', {'has_voucher': 'yes'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/admin/orders/', {'total_min': '20'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/admin/orders/', {'customer_name': 'doe'})
        self.assertEqual(response.data['count'], 2)

    def test_pagination(self):
        for _ in range(3):
            TestDataFactory.create_order()
        response = self.client.get('/api/v1/admin/orders/', {'limit': 2, 'page': 2})
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(len(response.data['results']), 1)
        self.assertEqual(response.data['previous'], 1)
        self.assertIsNone(response.data['next'])

    def test_allowed_transition(self):
        order = TestDataFactory.create_order(status='paid')
        response = self.client.patch(f'/api/v1/admin/orders/{order.id}/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='order_status')
        self.assertEqual(log.changes['status'], {'old': 'paid', 'new': 'shipped'})

    def test_disallowed_transition(self):
        order = TestDataFactory.create_order(status='delivered')
        response = self.client.patch(f'/api/v1/admin/orders/{order.id}/', {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['allowed'], [])

    def test_admin_cancel_releases_stock(self):
        product = TestDataFactory.create_product(stock={'Black': {'M': 8}})
        order = TestDataFactory.create_order(status='paid', items=[
            {'product': product, 'name': 'Tee', 'price': Decimal('20.00'), 'quantity': 2,
             'size': 'M', 'color': 'Black'},
        ])
        response = self.client.patch(f'/api/v1/admin/orders/{order.id}/', {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.get_stock('Black', 'M'), 10)

        response = self.client.patch(f'/api/v1/admin/orders/{order.id}/', {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.get_stock('Black', 'M'), 8)

    def test_reopen_without_stock_conflicts(self):
        product = TestDataFactory.create_product(stock={'Black': {'M': 1}})
        order = TestDataFactory.create_order(status='cancelled', items=[
            {'product': product, 'name': 'Tee', 'price': Decimal('20.00'), 'quantity': 2,
             'size': 'M', 'color': 'Black'},
        ])
        response = self.client.patch(f'/api/v1/admin/orders/{order.id}/', {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['details']['available'], 1)
        order.refresh_from_db()
        self.assertEqual(order.status, 'cancelled')
        product.refresh_from_db()
        self.assertEqual(product.get_stock('Black', 'M'), 1)

    def test_malformed_date_filter(self):
        for params in ({'date_to': '2024-13-01'}, {'date_from': '2024-02-30'}, {'date_from': 'last week'}):
            response = self.client.get('/api/v1/admin/orders/', params)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'Dates must be in YYYY-MM-DD format')

    def test_unknown_status(self):
        order = TestDataFactory.create_order(status='paid')
        response = self.client.patch(f'/api/v1/admin/orders/{order.id}/', {'status': 'teleported'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_editable_fields(self):
        order = TestDataFactory.create_order()
        response = self.client.patch(f'/api/v1/admin/orders/{order.id}/', {'total': '0.01'}, format='json')
        self.assertEqual(response.data['error'], 'No valid fields to update')

    def test_production_notes(self):
        order = TestDataFactory.create_order()
        response = self.client.patch(f'/api/v1/admin/orders/{order.id}/', {'production_notes': 'Rush'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditLog.objects.filter(action='update', model_name='Order').exists())

    def test_actions(self):
        order = TestDataFactory.create_order(status='pending')
        response = self.client.get(f'/api/v1/admin/orders/{order.id}/actions/')
        self.assertEqual(response.data['allowed_statuses'], ['paid', 'cancelled'])

    def test_delete(self):
        order = TestDataFactory.create_order()
        response = self.client.delete(f'/api/v1/admin/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Order.objects.exists())

    def test_customer_cannot_use_admin_desk(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ProductionTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_board_excludes_cancelled_failed_and_refunded(self):
        keep = TestDataFactory.create_order(delivery_priority=50)
        TestDataFactory.create_order(status='cancelled')
        TestDataFactory.create_order(status='payment_failed')
        TestDataFactory.create_order(metadata={'refunded': True})
        response = self.client.get('/api/v1/admin/production-orders/')
        self.assertEqual([o['id'] for o in response.data['orders']], [keep.id])

    def test_update_stamps_dates(self):
        order = TestDataFactory.create_order()
        response = self.client.patch(f'/api/v1/admin/production-orders/{order.id}/',
                                     {'productionStatus': 'in_production'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertIsNotNone(order.production_start_date)

        self.client.patch(f'/api/v1/admin/production-orders/{order.id}/',
                          {'production_status': 'completed'}, format='json')
        order.refresh_from_db()
        self.assertIsNotNone(order.production_completed_date)
        self.assertEqual(AuditLog.objects.filter(action='production_status').count(), 2)

    def test_update_validation(self):
        order = TestDataFactory.create_order()
        response = self.client.patch(f'/api/v1/admin/production-orders/{order.id}/', {}, format='json')
        self.assertEqual(response.data['error'], 'Missing productionStatus')
        response = self.client.patch(f'/api/v1/admin/production-orders/{order.id}/',
                                     {'productionStatus': 'melted'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_schedule_refreshes_priority(self):
        """Test the schedule ages waiting orders before ordering them"""
        old = TestDataFactory.create_order(shipping_method='Standard Delivery', delivery_priority=10,
                                           created_at=timezone.now() - timedelta(days=4))
        TestDataFactory.create_order(shipping_method='Standard Delivery', delivery_priority=10)
        TestDataFactory.create_order(production_status='completed')
        response = self.client.get('/api/v1/admin/production/schedule/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_orders'], 2)
        self.assertEqual(response.data['orders']['not_started'][0]['id'], old.id)
        old.refresh_from_db()
        self.assertEqual(old.delivery_priority, 30)

    def test_schedule_bad_day(self):
        response = self.client.get('/api/v1/admin/production/schedule/', {'day': 'monday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ShippingTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_ship_order(self):
        order = TestDataFactory.create_order(status='paid')
        response = self.client.post(f'/api/v1/admin/orders/{order.id}/ship/',
                                    {'tracking_number': 'TRK123', 'courier': 'Royal Mail'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.status, 'shipped')
        self.assertEqual(order.production_status, 'completed')
        self.assertIsNotNone(order.shipped_at)
        self.assertTrue(AuditLog.objects.filter(action='order_ship').exists())
        self.assertEqual(len(mail.outbox), 1)

    def test_ship_requires_tracking(self):
        order = TestDataFactory.create_order()
        response = self.client.post(f'/api/v1/admin/orders/{order.id}/ship/', {'courier': 'DPD'}, format='json')
        self.assertEqual(response.data['error'], 'Tracking number and courier are required')

    def test_cannot_ship_cancelled(self):
        order = TestDataFactory.create_order(status='cancelled')
        response = self.client.post(f'/api/v1/admin/orders/{order.id}/ship/',
                                    {'tracking_number': 'T', 'courier': 'DPD'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_label_requires_ready_to_ship(self):
        order = TestDataFactory.create_order(production_status='in_production')
        response = self.client.post(f'/api/v1/admin/orders/{order.id}/generate-label/')
        self.assertEqual(response.data['error'], 'Order must be ready to ship before generating a label')

    @patch('storefront.orders.admin_views.ShipEngineClient')
    def test_generate_label(self, mock_client):
        mock_client.return_value.create_label.return_value = {
            'label_id': 'se-1',
            'shipment_id': 'se-ship-1',
            'tracking_number': 'EV123',
            'label_download': {'pdf': 'https://api.shipengine.com/labels/se-1.pdf'},
            'shipment_cost': {'amount': 3.95, 'currency': 'gbp'},
        }
        order = TestDataFactory.create_order(production_status='ready_to_ship')
        response = self.client.post(f'/api/v1/admin/orders/{order.id}/generate-label/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.tracking_number, 'EV123')
        self.assertEqual(order.courier, 'EVRi')
        self.assertEqual(order.status, 'shipped')
        self.assertEqual(order.actual_shipping_cost, Decimal('3.95'))
        self.assertEqual(order.label_download_url, 'https://api.shipengine.com/labels/se-1.pdf')
        self.assertTrue(AuditLog.objects.filter(action='label_create').exists())

    @patch('storefront.orders.admin_views.ShipEngineClient')
    def test_label_provider_error(self, mock_client):
        mock_client.return_value.create_label.side_effect = ShipEngineError(
            'ShipEngine API error: 400', status_code=400, details={'errors': ['bad address']}
        )
        order = TestDataFactory.create_order(production_status='ready_to_ship')
        response = self.client.post(f'/api/v1/admin/orders/{order.id}/generate-label/')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['details'], {'errors': ['bad address']})
        order.refresh_from_db()
        self.assertEqual(order.status, 'paid')

    @patch('storefront.orders.admin_views.ShipEngineClient')
    def test_rates(self, mock_client):
        mock_client.return_value.get_rates.return_value = {'rate_response': {'rates': []}}
        order = TestDataFactory.create_order()
        response = self.client.post('/api/v1/admin/shipping/rates/', {'order_id': order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/admin/shipping/rates/', {}, format='json')
        self.assertEqual(response.data['error'], 'order_id is required')

    @patch('storefront.orders.admin_views.ShipEngineClient')
    def test_carriers(self, mock_client):
        mock_client.return_value.get_carriers.return_value = {'carriers': [{'carrier_id': 'se-evri'}]}
        response = self.client.get('/api/v1/admin/shipping/carriers/')
        self.assertEqual(response.data['carriers'][0]['carrier_id'], 'se-evri')


class OrderCommandTests(TestCase):

    def test_cleanup_temp_orders(self):
        TempOrder.objects.create(order_data_key='stale', items=[{'x': 1}], amount=Decimal('1.00'),
                                 created_at=timezone.now() - timedelta(hours=3))
        TempOrder.objects.create(order_data_key='empty', items=[], amount=Decimal('1.00'))
        TempOrder.objects.create(order_data_key='fresh', items=[{'x': 1}], amount=Decimal('1.00'))
        call_command('cleanup_temp_orders', stdout=StringIO())
        self.assertEqual(list(TempOrder.objects.values_list('order_data_key', flat=True)), ['fresh'])

    def test_refresh_priorities(self):
        order = TestDataFactory.create_order(shipping_method='Next Day Delivery', delivery_priority=0,
                                             created_at=timezone.now() - timedelta(days=1, hours=1))
        call_command('refresh_priorities', stdout=StringIO())
        order.refresh_from_db()
        self.assertEqual(order.delivery_priority, 105)
