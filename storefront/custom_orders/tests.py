"""
Test suite for custom order requests and the admin quote workflow
"""
import json
from unittest.mock import patch

from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.core.uploads import UploadError
from storefront.payments import stripe_client
from .models import CustomOrder
from .serializers import as_list


def request_form(**overrides):
    data = {
        'first_name': 'Sam',
        'last_name': 'Jones',
        'email': 'sam@test.com',
        'phone': '07700900456',
        'address': '2 Low Road',
        'city': 'Leeds',
        'province': 'West Yorkshire',
        'postal_code': 'LS1 1AA',
        'selected_product': 'Hoodie',
        'printing_type': 'Screen print',
        'printing_surface': 'front,back',
        'design_location': json.dumps(['chest']),
        'selected_colors': 'Black',
        'size_quantities': json.dumps({'M': 2, 'L': 3}),
        'additional_notes': 'Club logo on the chest',
    }
    data.update(overrides)
    return data


class HelperTests(TestCase):

    def test_as_list(self):
        self.assertEqual(as_list('front, back'), ['front', 'back'])
        self.assertEqual(as_list('["chest", "sleeve"]'), ['chest', 'sleeve'])
        self.assertEqual(as_list(['a', ' ', 'b']), ['a', 'b'])
        self.assertEqual(as_list(''), [])

    def test_total_quantity_handles_colour_breakdown(self):
        order = TestDataFactory.create_custom_order(size_quantities={'Black': {'M': 2}, 'White': {'M': 1, 'L': 4}})
        self.assertEqual(order.total_quantity, 7)


class CustomOrderCreateTests(APITestCase):

    def test_submit_form(self):
        response = self.client.post('/api/v1/custom-orders/', request_form(), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = CustomOrder.objects.get(pk=response.data['orderId'])
        self.assertEqual(order.printing_surface, ['front', 'back'])
        self.assertEqual(order.design_location, ['chest'])
        self.assertEqual(order.total_quantity, 5)
        self.assertEqual(order.status, 'pending')
        self.assertEqual(len(mail.outbox), 2)

    def test_submit_json(self):
        payload = request_form(printing_surface=['front'], design_location=['chest'], selected_colors=['Red'],
                               size_quantities={'S': 3})
        response = self.client.post('/api/v1/custom-orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    @patch('storefront.custom_orders.views.upload_file', return_value='https://res.cloudinary.com/demo/logo.png')
    def test_design_files_uploaded(self, mock_upload):
        form = request_form()
        form['design_files'] = [
            SimpleUploadedFile('logo.png', b'\x89PNG\r\n', content_type='image/png'),
            SimpleUploadedFile('back.png', b'\x89PNG\r\n', content_type='image/png'),
        ]
        response = self.client.post('/api/v1/custom-orders/', form, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = CustomOrder.objects.get(pk=response.data['orderId'])
        self.assertEqual(len(order.design_files), 2)
        self.assertEqual(order.design_files[0]['url'], 'https://res.cloudinary.com/demo/logo.png')
        self.assertEqual(mock_upload.call_args[0][1], 'custom-orders')

    @patch('storefront.custom_orders.views.upload_file', side_effect=UploadError('Failed to upload file'))
    def test_upload_failure(self, mock_upload):
        form = request_form(design_files=SimpleUploadedFile('logo.png', b'x', content_type='image/png'))
        response = self.client.post('/api/v1/custom-orders/', form, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(CustomOrder.objects.exists())

    def test_missing_fields(self):
        response = self.client.post('/api/v1/custom-orders/', request_form(email='', city=''), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Missing required fields')
        self.assertEqual(response.data['missing'], ['email', 'city'])

    def test_minimum_quantity(self):
        response = self.client.post('/api/v1/custom-orders/',
                                    request_form(size_quantities=json.dumps({'M': 2})), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['size_quantities'][0], 'Minimum order quantity is 3 items')

    def test_quantities_must_be_numbers(self):
        response = self.client.post('/api/v1/custom-orders/',
                                    request_form(size_quantities=json.dumps({'M': 'lots'})), format='multipart')
        self.assertEqual(response.data['size_quantities'][0], 'Quantities must be whole numbers')

    def test_choices_required(self):
        response = self.client.post('/api/v1/custom-orders/',
                                    request_form(printing_surface='', selected_colors=''), format='multipart')
        self.assertEqual(response.data['printing_surface'][0], 'Please select at least one printing surface')
        self.assertEqual(response.data['selected_colors'][0], 'Please select at least one colour')


class AdminCustomOrderTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()
        self.order = TestDataFactory.create_custom_order()

    def test_list_filter(self):
        TestDataFactory.create_custom_order(status='quoted')
        response = self.client.get('/api/v1/admin/custom-orders/', {'status': 'quoted'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_update_status_and_invoice(self):
        response = self.client.put(f'/api/v1/admin/custom-orders/{self.order.id}/', {
            'status': 'quoted',
            'invoice_data': {'lines': [{'description': 'Hoodies x4', 'amount': '88.00'}]},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'quoted')
        log = AuditLog.objects.get(model_name='CustomOrder')
        self.assertEqual(log.changes['status'], {'old': 'pending', 'new': 'quoted'})

    def test_update_requires_a_field(self):
        response = self.client.put(f'/api/v1/admin/custom-orders/{self.order.id}/', {'email': 'x@test.com'},
                                   format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_status(self):
        response = self.client.put(f'/api/v1/admin/custom-orders/{self.order.id}/', {'status': 'lost'},
                                   format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @patch('storefront.payments.stripe_client.create_payment_link', return_value='https://buy.stripe.com/test_1')
    def test_payment_link(self, mock_link):
        response = self.client.post(f'/api/v1/admin/custom-orders/{self.order.id}/payment-link/',
                                    {'amount': '88.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['paymentLink'], 'https://buy.stripe.com/test_1')
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_link, 'https://buy.stripe.com/test_1')
        self.assertEqual(mock_link.call_args[0][0], f'Custom Order #{self.order.id}')
        self.assertTrue(AuditLog.objects.filter(action='payment_link').exists())

    def test_payment_link_amount_required(self):
        response = self.client.post(f'/api/v1/admin/custom-orders/{self.order.id}/payment-link/',
                                    {'amount': '0'}, format='json')
        self.assertEqual(response.data['error'], 'Valid amount is required')

    @patch('storefront.payments.stripe_client.create_payment_link',
           side_effect=stripe_client.StripeError('No connection'))
    def test_payment_link_failure(self, mock_link):
        response = self.client.post(f'/api/v1/admin/custom-orders/{self.order.id}/payment-link/',
                                    {'amount': '10'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
