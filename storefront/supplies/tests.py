"""
Test suite for supplies and supply orders
"""
from decimal import Decimal

from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory
from .models import Supply, SupplyOrder, SupplyOrderItem


class SupplyAPITests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_create_supply(self):
        response = self.client.post('/api/v1/admin/supplies/', {
            'name': 'Heavy cotton blank tee',
            'price': '3.20',
            'unit': 'each',
            'category': 'Blanks',
            'supplier_name': 'Gildan UK',
            'minimum_order_quantity': 12,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Supply').exists())

    def test_required_field_messages(self):
        response = self.client.post('/api/v1/admin/supplies/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['name'][0], 'Supply name is required')
        self.assertEqual(response.data['price'][0], 'Price is required')
        self.assertEqual(response.data['supplier_name'][0], 'Supplier name is required')

    def test_negative_price_rejected(self):
        response = self.client.post('/api/v1/admin/supplies/', {
            'name': 'Ink', 'price': '-1', 'unit': 'litre', 'category': 'Ink', 'supplier_name': 'InkCo',
        }, format='json')
        self.assertIn('price', response.data)

    def test_filters(self):
        TestDataFactory.create_supply(name='Black tee', category='Blanks', supplier_name='Gildan UK')
        TestDataFactory.create_supply(name='Plastisol white', category='Ink', supplier_name='Screen Supplies')
        response = self.client.get('/api/v1/admin/supplies/', {'category': 'Ink'})
        self.assertEqual([s['name'] for s in response.data['supplies']], ['Plastisol white'])
        response = self.client.get('/api/v1/admin/supplies/', {'supplier': 'gildan'})
        self.assertEqual([s['name'] for s in response.data['supplies']], ['Black tee'])
        response = self.client.get('/api/v1/admin/supplies/', {'search': 'screen'})
        self.assertEqual(len(response.data['supplies']), 1)

    def test_update_supply(self):
        supply = TestDataFactory.create_supply()
        response = self.client.patch(f'/api/v1/admin/supplies/{supply.id}/', {'price': '6.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        supply.refresh_from_db()
        self.assertEqual(supply.price, Decimal('6.00'))

    def test_supply_on_an_order_cannot_be_deleted(self):
        supply = TestDataFactory.create_supply()
        order = SupplyOrder.objects.create(reference='SUP-250101-0001')
        SupplyOrderItem.objects.create(supply_order=order, supply=supply, quantity=1, price_at_order=supply.price)
        response = self.client.delete(f'/api/v1/admin/supplies/{supply.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Supply.objects.filter(pk=supply.id).exists())

    def test_delete_unused_supply(self):
        supply = TestDataFactory.create_supply()
        response = self.client.delete(f'/api/v1/admin/supplies/{supply.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class SupplyOrderAPITests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()
        self.tee = TestDataFactory.create_supply(name='Blank tee', price=Decimal('3.00'), supplier_name='Gildan UK')
        self.ink = TestDataFactory.create_supply(name='White ink', price=Decimal('12.50'),
                                                 supplier_name='Screen Supplies')

    def create_order(self, items=None, **extra):
        payload = {'items': items if items is not None else [
            {'supply': self.tee.id, 'quantity': 10},
            {'supply': self.ink.id, 'quantity': 2, 'notes': 'Low bleed'},
        ]}
        payload.update(extra)
        return self.client.post('/api/v1/admin/supplies/orders/', payload, format='json')

    def test_create_order_totals_and_reference(self):
        response = self.create_order(notes='Monthly restock')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertRegex(response.data['reference'], r'^SUP-\d{6}-0001$')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('55.00'))
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(response.data['ordered_by_email'], self.admin.email)
        self.assertEqual(len(response.data['items']), 2)

    def test_price_is_copied_at_order_time(self):
        response = self.create_order()
        self.tee.price = Decimal('9.99')
        self.tee.save()
        item = SupplyOrderItem.objects.get(supply_order_id=response.data['id'], supply=self.tee)
        self.assertEqual(item.price_at_order, Decimal('3.00'))

    def test_items_required(self):
        response = self.create_order(items=[])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_mark_ordered_stamps_date(self):
        order_id = self.create_order().data['id']
        response = self.client.patch(f'/api/v1/admin/supplies/orders/{order_id}/', {'status': 'ordered'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['ordered_at'])
        log = AuditLog.objects.filter(model_name='SupplyOrder', action='update').get()
        self.assertEqual(log.changes['status'], {'old': 'draft', 'new': 'ordered'})

    def test_replace_items(self):
        order_id = self.create_order().data['id']
        response = self.client.patch(f'/api/v1/admin/supplies/orders/{order_id}/', {
            'items': [{'supply': self.ink.id, 'quantity': 4}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('50.00'))

    def test_list_filtered_by_status(self):
        self.create_order()
        second = self.create_order().data['id']
        SupplyOrder.objects.filter(pk=second).update(status='received')
        response = self.client.get('/api/v1/admin/supplies/orders/', {'status': 'received'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], second)

    def test_pdf(self):
        order_id = self.create_order().data['id']
        response = self.client.get(f'/api/v1/admin/supplies/orders/{order_id}/pdf/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_delete(self):
        order_id = self.create_order().data['id']
        response = self.client.delete(f'/api/v1/admin/supplies/orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(SupplyOrderItem.objects.exists())
