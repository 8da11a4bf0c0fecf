"""
Test suite for stock reservation, low stock alerts and the stock matrix
"""
from django.core import mail
from django.db import transaction
from django.test import TestCase, override_settings
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory
from .models import StockAlert
from .services import reserve_order_stock, release_order_stock, check_low_stock, InsufficientStock


def line(product, color='Black', size='M', quantity=1):
    return {'product': product.id, 'color': color, 'size': size, 'quantity': quantity}


@override_settings(ADMIN_EMAIL='shop@test.com')
class StockServiceTests(TestCase):

    def setUp(self):
        self.product = TestDataFactory.create_product(stock={'Black': {'M': 10, 'L': 2}}, low_stock_threshold=5)

    def test_reserve_decrements_stock(self):
        reserve_order_stock([line(self.product, quantity=3)])
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'M'), 7)

    def test_reserve_sums_repeated_cells(self):
        """Test two lines for the same cell are checked together"""
        with self.assertRaises(InsufficientStock) as ctx:
            reserve_order_stock([line(self.product, size='L', quantity=2), line(self.product, size='L', quantity=1)])
        self.assertEqual(ctx.exception.available, 2)
        self.assertEqual(ctx.exception.requested, 3)
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'L'), 2)

    def test_reserve_is_all_or_nothing(self):
        with self.assertRaises(InsufficientStock):
            reserve_order_stock([line(self.product, quantity=1), line(self.product, size='L', quantity=5)])
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'M'), 10)

    def test_untracked_lines_are_skipped(self):
        reserve_order_stock([
            line(self.product, color='Pink', quantity=50),
            {'product': None, 'color': 'Black', 'size': 'M', 'quantity': 1},
        ])
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'M'), 10)

    def test_release_restores_stock(self):
        reserve_order_stock([line(self.product, quantity=4)])
        release_order_stock([line(self.product, quantity=4)])
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'M'), 10)

    def test_low_stock_alert_opened_once(self):
        with self.captureOnCommitCallbacks(execute=True):
            reserve_order_stock([line(self.product, quantity=5)])
            reserve_order_stock([line(self.product, quantity=1)])
        alerts = StockAlert.objects.filter(product=self.product, color='Black', size='M')
        self.assertEqual(alerts.count(), 1)
        self.assertEqual(alerts.get().current_stock, 4)
        self.assertEqual(len(mail.outbox), 1)

    def test_low_stock_email_waits_for_commit(self):
        """Test no alert email goes out for a reservation that is rolled back"""
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(InsufficientStock):
                with transaction.atomic():
                    reserve_order_stock([line(self.product, quantity=6)])
                    reserve_order_stock([line(self.product, size='L', quantity=3)])
        self.assertEqual(callbacks, [])
        self.assertEqual(len(mail.outbox), 0)
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'M'), 10)

    def test_alert_resolved_when_restocked(self):
        reserve_order_stock([line(self.product, quantity=6)])
        release_order_stock([line(self.product, quantity=6)])
        alert = StockAlert.objects.get(product=self.product, size='M')
        self.assertEqual(alert.status, 'resolved')
        self.assertIsNotNone(alert.resolved_at)

    def test_check_low_stock_above_threshold(self):
        self.assertIsNone(check_low_stock(self.product, 'Black', 'M'))


class StockAPITests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()
        self.product = TestDataFactory.create_product(name='Stocked Tee', stock={'Black': {'M': 10, 'L': 1}})

    def test_stock_list_flags_low_cells(self):
        TestDataFactory.create_product(name='Plenty Tee', stock={'White': {'S': 50}})
        response = self.client.get('/api/v1/admin/stock/', {'low_stock': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['name'] for p in response.data['products']], ['Stocked Tee'])
        cells = {(c['color'], c['size']): c['low_stock'] for c in response.data['products'][0]['cells']}
        self.assertTrue(cells[('Black', 'L')])
        self.assertFalse(cells[('Black', 'M')])

    def test_stock_update_sets_absolute_quantities(self):
        response = self.client.patch(f'/api/v1/admin/stock/{self.product.id}/', {'cells': [
            {'color': 'Black', 'size': 'L', 'quantity': 20},
            {'color': 'Navy', 'size': 'S', 'quantity': 3},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.get_stock('Black', 'L'), 20)
        self.assertEqual(self.product.get_stock('Navy', 'S'), 3)
        log = AuditLog.objects.get(action='stock_adjust')
        self.assertEqual(log.changes['Black/L'], {'old': 1, 'new': 20})
        self.assertTrue(StockAlert.objects.filter(color='Navy', size='S', status='active').exists())

    def test_stock_update_validation(self):
        url = f'/api/v1/admin/stock/{self.product.id}/'
        response = self.client.patch(url, {'cells': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(url, {'cells': [{'color': 'Black', 'size': 'M', 'quantity': 'lots'}]},
                                     format='json')
        self.assertEqual(response.data['error'], 'Quantity must be a whole number')

        response = self.client.patch(url, {'cells': [{'color': 'Black', 'size': 'M', 'quantity': -2}]},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_resolve_alert(self):
        alert = StockAlert.objects.create(product=self.product, product_name=self.product.name,
                                          color='Black', size='L', current_stock=1)
        response = self.client.patch(f'/api/v1/admin/stock-alerts/{alert.id}/', {'status': 'resolved'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        alert.refresh_from_db()
        self.assertEqual(alert.status, 'resolved')

        response = self.client.patch(f'/api/v1/admin/stock-alerts/{alert.id}/', {'status': 'active'},
                                     format='json')
        self.assertEqual(response.data['error'], 'Alerts can only be resolved')

    def test_alert_list_filter(self):
        StockAlert.objects.create(product=self.product, product_name='x', color='Black', size='L', current_stock=1)
        StockAlert.objects.create(product=self.product, product_name='x', color='Black', size='M',
                                  current_stock=1, status='resolved')
        response = self.client.get('/api/v1/admin/stock-alerts/', {'status': 'active'})
        self.assertEqual(len(response.data['alerts']), 1)
