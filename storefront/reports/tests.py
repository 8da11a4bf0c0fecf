"""
Test suite for the tax report, sales and customer analytics and dashboard stats
"""
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework import status

from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.inventory.models import StockAlert


class TaxReportTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_totals(self):
        TestDataFactory.create_order(status='paid', total=Decimal('24.00'), vat=Decimal('4.00'))
        TestDataFactory.create_order(status='delivered', total=Decimal('12.00'), vat=Decimal('2.00'))
        TestDataFactory.create_order(status='shipped', total=Decimal('50.00'), vat=Decimal('8.33'))
        TestDataFactory.create_order(status='paid', total=Decimal('99.00'), metadata={'refunded': True})

        response = self.client.get('/api/v1/admin/reports/tax/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalGross'], 36.0)
        self.assertEqual(response.data['totalVAT'], 6.0)
        self.assertEqual(response.data['totalNet'], 30.0)
        self.assertEqual(len(response.data['orders']), 2)
        self.assertEqual(response.data['orders'][0]['net'], 20.0)

    def test_date_range(self):
        TestDataFactory.create_order(status='paid', created_at=timezone.now() - timedelta(days=40))
        recent = TestDataFactory.create_order(status='paid')
        since = (timezone.localdate() - timedelta(days=7)).isoformat()
        response = self.client.get('/api/v1/admin/reports/tax/', {'date_from': since})
        self.assertEqual([row['reference'] for row in response.data['orders']], [recent.reference])

    def test_bad_date(self):
        response = self.client.get('/api/v1/admin/reports/tax/', {'date_to': '31/12/2025'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Dates must be in YYYY-MM-DD format')

    def test_impossible_date(self):
        response = self.client.get('/api/v1/admin/reports/tax/', {'date_from': '2024-02-30'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Dates must be in YYYY-MM-DD format')

    def test_admin_only(self):
        self.login_user()
        response = self.client.get('/api/v1/admin/reports/tax/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SalesAnalyticsTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_week(self):
        TestDataFactory.create_order(status='paid', total=Decimal('30.00'), items=[
            {'name': 'Classic Tee', 'price': Decimal('10.00'), 'quantity': 3, 'size': 'M', 'color': 'Black'},
        ])
        TestDataFactory.create_order(status='shipped', total=Decimal('10.00'), items=[
            {'name': 'Hoodie', 'price': Decimal('10.00'), 'quantity': 1, 'size': 'L', 'color': 'Grey'},
        ])
        TestDataFactory.create_order(status='pending', total=Decimal('500.00'))
        TestDataFactory.create_order(status='paid', total=Decimal('70.00'),
                                     created_at=timezone.now() - timedelta(days=20))

        response = self.client.get('/api/v1/admin/analytics/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['summary']
        self.assertEqual(summary['totalRevenue'], 40.0)
        self.assertEqual(summary['totalOrders'], 2)
        self.assertEqual(summary['averageOrderValue'], 20.0)
        self.assertEqual(response.data['productData'][0], {'name': 'Classic Tee', 'quantity': 3})
        self.assertEqual(sum(row['amount'] for row in response.data['revenueData']), 40.0)

    def test_month_includes_older_orders(self):
        TestDataFactory.create_order(status='delivered', total=Decimal('70.00'),
                                     created_at=timezone.now() - timedelta(days=20))
        response = self.client.get('/api/v1/admin/analytics/sales/', {'period': 'month'})
        self.assertEqual(response.data['summary']['totalOrders'], 1)

    def test_empty(self):
        response = self.client.get('/api/v1/admin/analytics/sales/')
        self.assertEqual(response.data['summary'], {'totalRevenue': 0.0, 'totalOrders': 0, 'averageOrderValue': 0.0})


class CustomerAnalyticsTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_summary_and_buckets(self):
        alice = TestDataFactory.create_user(email='alice@test.com')
        bob = TestDataFactory.create_user(email='bob@test.com')
        TestDataFactory.create_order(user=alice, total=Decimal('40.00'))
        TestDataFactory.create_order(user=alice, total=Decimal('300.00'), city='Leeds')
        TestDataFactory.create_order(user=bob, total=Decimal('20.00'))
        TestDataFactory.create_order(total=Decimal('20.00'), user_identifier='visitor-1', visitor_id='visitor-1')
        TestDataFactory.create_order(status='cancelled', total=Decimal('1000.00'))

        response = self.client.get('/api/v1/admin/analytics/customers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['summary']
        self.assertEqual(summary['totalCustomers'], 2)
        self.assertEqual(summary['uniqueCustomers'], 3)
        self.assertEqual(summary['repeatCustomers'], 1)
        self.assertEqual(summary['repeatRate'], 33.33)
        self.assertEqual(summary['averageOrderValue'], 95.0)

        self.assertEqual(response.data['spendingTiers'], {'low': 2, 'medium': 0, 'high': 1})
        self.assertEqual(response.data['ltvBuckets'], {'0-50': 2, '51-200': 0, '201-500': 1, '501+': 0})
        self.assertEqual(response.data['ordersPerCustomerBuckets'], {'1': 2, '2': 1, '3-5': 0, '6+': 0})
        self.assertEqual(response.data['topCustomers'][0], {'userId': 'alice@test.com', 'total': 340.0})
        self.assertEqual(len(response.data['topCustomers']), 2)
        self.assertEqual(response.data['geoCounts'], {'London': 3, 'Leeds': 1})
        self.assertEqual(response.data['registeredOrders'], 3)
        self.assertEqual(response.data['guestOrders'], 1)
        self.assertEqual(response.data['uniqueVisitors'], 1)

    def test_explicit_range(self):
        TestDataFactory.create_order(created_at=timezone.now() - timedelta(days=100))
        today = timezone.localdate()
        response = self.client.get('/api/v1/admin/analytics/customers/', {
            'start_date': (today - timedelta(days=5)).isoformat(),
            'end_date': today.isoformat(),
        })
        self.assertEqual(response.data['summary']['uniqueCustomers'], 0)

    def test_bad_range(self):
        response = self.client.get('/api/v1/admin/analytics/customers/', {'start_date': 'x', 'end_date': 'y'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DashboardStatsTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_stats(self):
        product = TestDataFactory.create_product()
        StockAlert.objects.create(product=product, product_name=product.name, color='Black', size='M',
                                  current_stock=2)
        StockAlert.objects.create(product=product, product_name=product.name, color='Black', size='L',
                                  current_stock=9, status='resolved')
        TestDataFactory.create_order(status='paid', total=Decimal('24.00'))
        TestDataFactory.create_order(status='pending', total=Decimal('10.00'))
        TestDataFactory.create_order(status='delivered', total=Decimal('16.00'))
        TestDataFactory.create_order(status='cancelled', total=Decimal('80.00'))
        TestDataFactory.create_order(status='delivered', total=Decimal('80.00'), metadata={'refunded': True})

        response = self.client.get('/api/v1/admin/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalOrders'], 3)
        self.assertEqual(response.data['totalRevenue'], 50.0)
        self.assertEqual(response.data['pendingOrders'], 2)
        self.assertEqual(response.data['lowStockProducts'], 1)
        self.assertEqual(len(response.data['recentOrders']), 5)

    def test_requires_login(self):
        self.client.logout()
        response = self.client.get('/api/v1/admin/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
