"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from storefront.catalog.models import Product
from storefront.custom_orders.models import CustomOrder
from storefront.orders.models import Order, OrderItem
from storefront.payments.models import Transaction
from storefront.supplies.models import Supply
from storefront.vouchers.models import Voucher
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username.lower()}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_admin(**kwargs):
        kwargs.setdefault('is_staff', True)
        return TestDataFactory.create_user(**kwargs)

    @staticmethod
    def create_product(name=None, category='tshirts', gender='unisex', price=Decimal('20.00'), stock=None,
                       featured=False, low_stock_threshold=5):
        """Create a test product; stock defaults to 10 of Black/M and Black/L"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if stock is None:
            stock = {'Black': {'M': 10, 'L': 10}}
        colors = [{'name': color, 'hexCode': '#000000'} for color in stock]
        sizes = sorted({size for row in stock.values() for size in row})
        return Product.objects.create(
            name=name,
            description=f'Test product {name}',
            price=price,
            base_price=price,
            images=[{'url': 'https://example.com/shirt.png', 'alt': name}],
            category=category,
            gender=gender,
            sizes=sizes,
            colors=colors,
            stock=stock,
            featured=featured,
            low_stock_threshold=low_stock_threshold
        )

    @staticmethod
    def create_order(user=None, items=None, status='paid', production_status='not_started',
                     shipping_method='Standard Delivery', total=Decimal('24.00'), vat=Decimal('4.00'),
                     created_at=None, reference=None, **extra):
        """Create a test order; ``items`` is a list of OrderItem field dicts"""
        if not reference:
            reference = f'SH-{timezone.localdate():%y%m%d}-{random.randint(0, 9999):04d}'
            while Order.objects.filter(reference=reference).exists():
                reference = f'SH-{timezone.localdate():%y%m%d}-{random.randint(0, 9999):04d}'
        fields = {
            'reference': reference,
            'user': user,
            'user_identifier': user.email if user else 'guest',
            'first_name': 'Jane',
            'last_name': 'Doe',
            'email': user.email if user else 'guest@test.com',
            'phone': '07700900123',
            'address': '1 High Street',
            'city': 'London',
            'county': 'Greater London',
            'postcode': 'SE7 8SS',
            'shipping_method': shipping_method,
            'shipping_cost': Decimal('4.00'),
            'total': total,
            'vat': vat,
            'status': status,
            'production_status': production_status,
            'created_at': created_at or timezone.now(),
        }
        fields.update(extra)
        order = Order.objects.create(**fields)
        if items is None:
            items = [{'name': 'Test Tee', 'price': Decimal('20.00'), 'quantity': 1, 'size': 'M', 'color': 'Black'}]
        for item in items:
            OrderItem.objects.create(order=order, **item)
        return order

    @staticmethod
    def create_transaction(order, amount=None, status='completed', payment_intent_id=None):
        return Transaction.objects.create(
            order=order,
            user=order.user,
            amount=amount if amount is not None else order.total,
            status=status,
            payment_intent_id=payment_intent_id or f'pi_{TestDataFactory.random_string(12)}'
        )

    @staticmethod
    def create_voucher(code=None, type='percentage', value=Decimal('10.00'), usage_limit=100, **extra):
        """Create an active voucher valid from yesterday for 30 days"""
        if not code:
            code = f'TEST{TestDataFactory.random_string(6).upper()}'
        now = timezone.now()
        fields = {
            'code': code,
            'type': type,
            'value': value,
            'usage_limit': usage_limit,
            'valid_from': now - timedelta(days=1),
            'valid_until': now + timedelta(days=30),
        }
        fields.update(extra)
        return Voucher.objects.create(**fields)

    @staticmethod
    def create_supply(name=None, price=Decimal('5.00'), category='Blanks', supplier_name='Gildan UK', **extra):
        if not name:
            name = f'Supply_{TestDataFactory.random_string(6)}'
        return Supply.objects.create(
            name=name,
            price=price,
            unit='each',
            category=category,
            supplier_name=supplier_name,
            **extra
        )

    @staticmethod
    def create_custom_order(**extra):
        fields = {
            'first_name': 'Sam',
            'last_name': 'Jones',
            'email': 'sam@test.com',
            'phone': '07700900456',
            'address': '2 Low Road',
            'city': 'Leeds',
            'province': 'West Yorkshire',
            'postal_code': 'LS1 1AA',
            'selected_product': 'Hoodie',
            'printing_surface': ['front'],
            'design_location': ['chest'],
            'selected_colors': ['Black'],
            'size_quantities': {'M': 2, 'L': 2},
        }
        fields.update(extra)
        return CustomOrder.objects.create(**fields)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()


class APITestCase(TestCase):
    """Base test case: fresh cache and an API client per test"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def login_admin(self):
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)
        return self.admin

    def login_user(self):
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        return self.user
