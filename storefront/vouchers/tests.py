"""
Test suite for vouchers: discount rules, checkout validation and admin CRUD
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory
from .models import Voucher


class VoucherModelTests(TestCase):

    def test_code_is_upper_cased(self):
        voucher = TestDataFactory.create_voucher(code=' summer ')
        self.assertEqual(voucher.code, 'SUMMER')

    def test_percentage_with_cap(self):
        voucher = TestDataFactory.create_voucher(value=Decimal('50'), maximum_discount=Decimal('15.00'))
        self.assertEqual(voucher.calculate_discount(Decimal('100.00')), Decimal('15.00'))
        self.assertEqual(voucher.calculate_discount(Decimal('20.00')), Decimal('10.00'))

    def test_fixed_never_exceeds_subtotal(self):
        voucher = TestDataFactory.create_voucher(type='fixed', value=Decimal('30.00'))
        self.assertEqual(voucher.calculate_discount(Decimal('12.50')), Decimal('12.50'))

    def test_free_shipping_has_no_item_discount(self):
        voucher = TestDataFactory.create_voucher(type='free_shipping', value=Decimal('0'))
        self.assertEqual(voucher.calculate_discount(Decimal('40.00')), Decimal('0.00'))

    def test_usage_limit(self):
        voucher = TestDataFactory.create_voucher(usage_limit=1)
        self.assertTrue(voucher.is_valid())
        voucher.increment_usage()
        self.assertEqual(voucher.used_count, 1)
        self.assertFalse(voucher.is_valid())

    def test_unlimited_usage(self):
        voucher = TestDataFactory.create_voucher(usage_limit=0, used_count=500)
        self.assertTrue(voucher.has_usage_left)

    def test_expired(self):
        voucher = TestDataFactory.create_voucher(valid_until=timezone.now() - timedelta(minutes=1))
        self.assertFalse(voucher.is_valid())

    def test_specific_products(self):
        voucher = TestDataFactory.create_voucher(applies_to='specific_products', product_ids=[7])
        self.assertTrue(voucher.applies_to_items([{'product': 7}]))
        self.assertFalse(voucher.applies_to_items([{'product': 8}]))


class ValidateVoucherTests(APITestCase):

    def validate(self, code, total='50.00', **extra):
        data = {'code': code, 'order_total': total}
        data.update(extra)
        return self.client.post('/api/v1/vouchers/validate/', data, format='json')

    def test_valid_voucher(self):
        TestDataFactory.create_voucher(code='TEN', value=Decimal('10'))
        response = self.validate('ten')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['discountAmount'], '5.00')
        self.assertEqual(response.data['newTotal'], '45.00')

    def test_unknown_code(self):
        response = self.validate('NOPE')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Invalid voucher code')

    def test_code_required(self):
        response = self.validate('')
        self.assertEqual(response.data['error'], 'Voucher code is required')

    def test_total_required(self):
        TestDataFactory.create_voucher(code='TEN')
        response = self.validate('TEN', total='0')
        self.assertEqual(response.data['error'], 'Valid order total is required')

    def test_used_up(self):
        TestDataFactory.create_voucher(code='ONCE', usage_limit=1, used_count=1)
        response = self.validate('ONCE')
        self.assertEqual(response.data['error'], 'Voucher is expired or no longer valid')

    def test_minimum_order(self):
        TestDataFactory.create_voucher(code='BIG', minimum_order_amount=Decimal('75.00'))
        response = self.validate('BIG')
        self.assertEqual(response.data['error'], 'Minimum order amount of £75.00 required')

    def test_not_applicable_to_items(self):
        TestDataFactory.create_voucher(code='HOODIE', applies_to='specific_products', product_ids=[1])
        response = self.validate('HOODIE', items=[{'product': 2}])
        self.assertEqual(response.data['error'], 'Voucher cannot be applied to this order')

    def test_public_discount_codes(self):
        TestDataFactory.create_voucher(code='LIVE')
        TestDataFactory.create_voucher(code='GONE', is_active=False)
        TestDataFactory.create_voucher(code='FULL', usage_limit=2, used_count=2)
        response = self.client.get('/api/v1/discount-codes/')
        self.assertEqual([v['code'] for v in response.data['discountCodes']], ['LIVE'])


class AdminVoucherTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()
        now = timezone.now()
        self.payload = {
            'code': 'spring25',
            'type': 'percentage',
            'value': '25.00',
            'usage_limit': 50,
            'valid_from': now.isoformat(),
            'valid_until': (now + timedelta(days=14)).isoformat(),
        }

    def test_create(self):
        response = self.client.post('/api/v1/admin/vouchers/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'SPRING25')
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Voucher').exists())

    def test_duplicate_code(self):
        TestDataFactory.create_voucher(code='SPRING25')
        response = self.client.post('/api/v1/admin/vouchers/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('code', response.data)

    def test_percentage_over_100(self):
        self.payload['value'] = '120'
        response = self.client.post('/api/v1/admin/vouchers/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('value', response.data)

    def test_dates_in_order(self):
        self.payload['valid_until'] = self.payload['valid_from']
        response = self.client.post('/api/v1/admin/vouchers/', self.payload, format='json')
        self.assertIn('valid_until', response.data)

    def test_usage_limit_positive(self):
        self.payload['usage_limit'] = 0
        response = self.client.post('/api/v1/admin/vouchers/', self.payload, format='json')
        self.assertIn('usage_limit', response.data)

    def test_list_and_filter(self):
        TestDataFactory.create_voucher(code='ON')
        TestDataFactory.create_voucher(code='OFF', is_active=False)
        response = self.client.get('/api/v1/admin/vouchers/', {'is_active': 'false'})
        self.assertEqual([v['code'] for v in response.data['results']], ['OFF'])

    def test_update_and_delete(self):
        voucher = TestDataFactory.create_voucher()
        response = self.client.patch(f'/api/v1/admin/vouchers/{voucher.id}/', {'description': 'Staff only'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.delete(f'/api/v1/admin/vouchers/{voucher.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Voucher.objects.exists())
