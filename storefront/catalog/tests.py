"""
Test suite for the catalog: storefront listing, admin products, barcodes,
category visibility and carousel slides
"""
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.core.uploads import UploadError
from .models import Product, CategoryVisibility, CarouselBackground
from .utils import generate_barcode_value, get_prefix_for_color, assign_barcode, find_barcode


def make_slide(slide_id=1, **extra):
    fields = {
        'slide_id': slide_id,
        'title': f'Slide {slide_id}',
        'subtitle': 'New season',
        'description': 'Fresh prints',
        'button_text': 'Shop now',
        'button_link': '/products',
        'bg_gradient': 'from-black to-gray-800',
        'text_color': 'white',
        'order': slide_id,
    }
    fields.update(extra)
    return CarouselBackground.objects.create(**fields)


class BarcodeUtilTests(TestCase):

    def test_color_prefix(self):
        self.assertEqual(get_prefix_for_color('Black'), 'BLA')
        self.assertEqual(get_prefix_for_color('Ox'), 'OXX')
        self.assertEqual(get_prefix_for_color(''), 'UNK')

    def test_barcode_value_format(self):
        """Test value is YYMMDD + colour prefix + product id + size code"""
        product = TestDataFactory.create_product()
        when = timezone.localdate().replace(year=2025, month=1, day=14)
        value = generate_barcode_value(product, 'Navy', 'XL', when=when)
        self.assertEqual(value, f'250114NAV{product.id:05d}05')

    def test_unknown_size_rejected(self):
        product = TestDataFactory.create_product()
        with self.assertRaises(ValueError):
            generate_barcode_value(product, 'Navy', 'XXXXL')

    def test_assign_replaces_existing_pair(self):
        product = TestDataFactory.create_product()
        assign_barcode(product, 'Black', 'M')
        assign_barcode(product, 'Black', 'M')
        product.refresh_from_db()
        self.assertEqual(len(product.barcodes), 1)
        self.assertEqual(find_barcode(product, 'Black', 'M')['sizeCode'], '03')


class ProductModelTests(TestCase):

    def test_stock_helpers(self):
        product = TestDataFactory.create_product(stock={'Black': {'M': 3}})
        self.assertTrue(product.check_stock('Black', 'M', 3))
        self.assertFalse(product.check_stock('Black', 'M', 4))
        self.assertEqual(product.get_stock('White', 'M'), 0)
        self.assertEqual(product.update_stock('White', 'S', 2), 2)
        product.refresh_from_db()
        self.assertEqual(product.total_stock(), 5)


class StorefrontProductTests(APITestCase):

    def test_list_is_public(self):
        TestDataFactory.create_product(name='Classic Tee')
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['name'] for p in response.data['products']], ['Classic Tee'])

    def test_hidden_category_is_excluded(self):
        """Test products in a hidden category never reach the storefront"""
        TestDataFactory.create_product(name='Visible Tee', category='tshirts')
        hoodie = TestDataFactory.create_product(name='Hidden Hoodie', category='hoodies')
        CategoryVisibility.objects.create(category='hoodies', display_name='Hoodies', is_visible=False)

        response = self.client.get('/api/v1/products/')
        self.assertEqual([p['name'] for p in response.data['products']], ['Visible Tee'])

        response = self.client.get(f'/api/v1/products/{hoodie.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_gender_visibility(self):
        TestDataFactory.create_product(name='Kids Tank', category='tanktops', gender='kids')
        CategoryVisibility.objects.create(
            category='tanktops', display_name='Tank Tops',
            gender_visibility={'men': True, 'women': True, 'unisex': True, 'kids': False}
        )
        response = self.client.get('/api/v1/products/', {'gender': 'kids'})
        self.assertEqual(response.data['products'], [])

    def test_filters(self):
        TestDataFactory.create_product(name='Featured Hoodie', category='hoodies', featured=True)
        TestDataFactory.create_product(name='Plain Tee', category='tshirts')
        response = self.client.get('/api/v1/products/', {'featured': 'true'})
        self.assertEqual([p['name'] for p in response.data['products']], ['Featured Hoodie'])
        response = self.client.get('/api/v1/products/', {'search': 'plain'})
        self.assertEqual([p['name'] for p in response.data['products']], ['Plain Tee'])

    def test_public_category_visibility(self):
        CategoryVisibility.objects.create(category='tshirts', display_name='T-Shirts', sort_order=1)
        CategoryVisibility.objects.create(category='hoodies', display_name='Hoodies', is_visible=False, sort_order=2)
        response = self.client.get('/api/v1/category-visibility/')
        self.assertEqual([c['category'] for c in response.data['categories']], ['tshirts'])

    def test_public_carousel_only_active(self):
        make_slide(1)
        make_slide(2, is_active=False)
        response = self.client.get('/api/v1/carousel-backgrounds/')
        self.assertEqual([s['slide_id'] for s in response.data['slides']], [1])


class AdminProductTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def product_payload(self, **overrides):
        data = {
            'name': 'Club Jersey',
            'description': 'Breathable match jersey',
            'price': '25.00',
            'base_price': '20.00',
            'category': 'jerseys',
            'gender': 'men',
            'sizes': ['M', 'L'],
            'colors': [{'name': 'Red', 'hexCode': '#ff0000'}],
            'stock': {'Red': {'M': 4, 'L': 2}},
            'images': ['https://example.com/jersey.png'],
        }
        data.update(overrides)
        return data

    def test_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_product(self):
        response = self.client.post('/api/v1/admin/products/', self.product_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_stock'], 6)
        self.assertEqual(response.data['images'][0]['url'], 'https://example.com/jersey.png')
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Product').exists())

    def test_create_missing_fields(self):
        response = self.client.post('/api/v1/admin/products/', {'name': 'Nameless'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Missing required fields')
        self.assertIn('price', response.data['missing'])

    def test_invalid_size_rejected(self):
        response = self.client.post('/api/v1/admin/products/', self.product_payload(sizes=['M', 'HUGE']),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sizes', response.data)

    def test_negative_stock_rejected(self):
        response = self.client.post('/api/v1/admin/products/',
                                    self.product_payload(stock={'Red': {'M': -1}}), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_paginated_list(self):
        for _ in range(12):
            TestDataFactory.create_product()
        response = self.client.get('/api/v1/admin/products/', {'page': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 12)
        self.assertEqual(len(response.data['results']), 2)
        self.assertEqual(response.data['total_pages'], 2)

    def test_update_records_changes(self):
        product = TestDataFactory.create_product(price=Decimal('20.00'))
        response = self.client.patch(f'/api/v1/admin/products/{product.id}/', {'price': '22.50'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='update', model_name='Product')
        self.assertEqual(log.changes['price'], {'old': '20.00', 'new': '22.50'})

    def test_delete_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.id).exists())

    def test_generate_barcode(self):
        product = TestDataFactory.create_product()
        response = self.client.post(f'/api/v1/admin/products/{product.id}/barcodes/',
                                    {'color': 'Black', 'size': 'L'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['value'].endswith(f'{product.id:05d}04'))

        response = self.client.get(f'/api/v1/admin/products/{product.id}/barcodes/')
        self.assertEqual(len(response.data['barcodes']), 1)

    def test_generate_barcode_invalid_size(self):
        product = TestDataFactory.create_product()
        response = self.client.post(f'/api/v1/admin/products/{product.id}/barcodes/',
                                    {'color': 'Black', 'size': 'Giant'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid size: Giant')

    def test_label_sheet_pdf(self):
        product = TestDataFactory.create_product()
        response = self.client.post('/api/v1/admin/barcodes/labels/', {
            'items': [{'product': product.id, 'color': 'Black', 'size': 'M', 'quantity': 2}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))
        product.refresh_from_db()
        self.assertIsNotNone(find_barcode(product, 'Black', 'M'))

    def test_label_sheet_validation(self):
        response = self.client.post('/api/v1/admin/barcodes/labels/', {'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/admin/barcodes/labels/', {
            'items': [{'product': 99999, 'color': 'Black', 'size': 'M', 'quantity': 1}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_category_visibility_upsert(self):
        response = self.client.put('/api/v1/admin/category-visibility/', {'categories': [
            {'category': 'hoodies', 'display_name': 'Hoodies', 'is_visible': False},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = CategoryVisibility.objects.get(category='hoodies')
        self.assertFalse(row.is_visible)
        self.assertEqual(row.updated_by, self.admin)
        self.assertTrue(row.gender_visibility['kids'])

    def test_category_visibility_rejects_unknown_gender(self):
        response = self.client.put('/api/v1/admin/category-visibility/', {'categories': [
            {'category': 'hoodies', 'display_name': 'Hoodies', 'gender_visibility': {'aliens': False}},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(CategoryVisibility.objects.exists())

    def test_carousel_slot_limit(self):
        response = self.client.post('/api/v1/admin/carousel-backgrounds/', {
            'slide_id': 6, 'title': 't', 'subtitle': 's', 'description': 'd', 'button_text': 'b',
            'button_link': '/', 'bg_gradient': 'g', 'text_color': 'white',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('slide_id', response.data)

    @patch('storefront.catalog.views.upload_file', return_value='https://res.cloudinary.com/demo/tee.png')
    def test_upload(self, mock_upload):
        image = SimpleUploadedFile('tee.png', b'\x89PNG\r\n', content_type='image/png')
        response = self.client.post('/api/v1/admin/uploads/', {'file': image}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['url'], 'https://res.cloudinary.com/demo/tee.png')
        self.assertEqual(mock_upload.call_args[0][1], 'products')

    @patch('storefront.catalog.views.upload_file', side_effect=UploadError('Failed to upload file'))
    def test_upload_failure(self, mock_upload):
        image = SimpleUploadedFile('tee.png', b'\x89PNG\r\n', content_type='image/png')
        response = self.client.post('/api/v1/admin/uploads/', {'file': image}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)


class CatalogCommandTests(TestCase):

    def test_init_category_visibility(self):
        call_command('init_category_visibility', stdout=StringIO())
        self.assertEqual(CategoryVisibility.objects.count(), 10)
        self.assertFalse(CategoryVisibility.objects.get(category='tanktops').gender_visibility['kids'])

        out = StringIO()
        call_command('init_category_visibility', stdout=out)
        self.assertIn('Skipping', out.getvalue())

    def test_backfill_barcodes(self):
        product = TestDataFactory.create_product()
        call_command('backfill_barcodes', stdout=StringIO())
        product.refresh_from_db()
        self.assertEqual(len(product.barcodes), 2)
