# Generated manually for the initial storefront schema

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import storefront.orders.models
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('catalog', '0001_initial'),
        ('vouchers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reference', models.CharField(db_index=True, max_length=20, unique=True)),
                ('user_identifier', models.CharField(db_index=True, default='guest', max_length=255)),
                ('visitor_id', models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ('order_source', models.CharField(blank=True, max_length=50, null=True)),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('email', models.EmailField(db_index=True, max_length=254)),
                ('phone', models.CharField(max_length=20)),
                ('address', models.CharField(max_length=255)),
                ('address_line2', models.CharField(blank=True, default='', max_length=255)),
                ('city', models.CharField(max_length=100)),
                ('county', models.CharField(max_length=100)),
                ('postcode', models.CharField(max_length=10)),
                ('country', models.CharField(default='United Kingdom', max_length=100)),
                ('shipping_method', models.CharField(choices=[('Standard Delivery', 'Standard Delivery'), ('Express Delivery', 'Express Delivery'), ('Next Day Delivery', 'Next Day Delivery')], default='Standard Delivery', max_length=30)),
                ('shipping_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('estimated_delivery_days', models.CharField(blank=True, default='', max_length=50)),
                ('total', models.DecimalField(decimal_places=2, max_digits=10)),
                ('vat', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('shipped', 'Shipped'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled'), ('payment_failed', 'Payment Failed')], db_index=True, default='pending', max_length=20)),
                ('production_status', models.CharField(choices=[('not_started', 'Not Started'), ('in_production', 'In Production'), ('quality_check', 'Quality Check'), ('ready_to_ship', 'Ready to Ship'), ('completed', 'Completed')], db_index=True, default='not_started', max_length=20)),
                ('delivery_priority', models.IntegerField(db_index=True, default=10)),
                ('production_notes', models.TextField(blank=True, default='')),
                ('production_start_date', models.DateTimeField(blank=True, null=True)),
                ('production_completed_date', models.DateTimeField(blank=True, null=True)),
                ('tracking_number', models.CharField(blank=True, default='', max_length=100)),
                ('courier', models.CharField(blank=True, default='', max_length=50)),
                ('shipped_at', models.DateTimeField(blank=True, null=True)),
                ('label_download_url', models.URLField(blank=True, default='', max_length=500)),
                ('label_id', models.CharField(blank=True, default='', max_length=100)),
                ('shipment_id', models.CharField(blank=True, default='', max_length=100)),
                ('actual_shipping_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('cancellation_requested', models.BooleanField(default=False)),
                ('cancellation_reason', models.TextField(blank=True, default='')),
                ('cancellation_requested_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_requested_by', models.CharField(blank=True, default='', max_length=255)),
                ('cancellation_notes', models.TextField(blank=True, default='')),
                ('voucher_code', models.CharField(blank=True, default='', max_length=50)),
                ('voucher_discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('voucher_type', models.CharField(blank=True, default='', max_length=20)),
                ('voucher_value', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to=settings.AUTH_USER_MODEL)),
                ('voucher', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='vouchers.voucher')),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', '-created_at'], name='idx_order_status_created'),
                    models.Index(fields=['production_status', '-delivery_priority'], name='idx_order_production_priority'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_ref', models.CharField(blank=True, default='', max_length=100)),
                ('name', models.CharField(max_length=200)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(10)])),
                ('size', models.CharField(max_length=10)),
                ('color', models.CharField(blank=True, default='', max_length=50)),
                ('image', models.URLField(blank=True, default='', max_length=500)),
                ('is_customized', models.BooleanField(default=False)),
                ('custom_name', models.CharField(blank=True, default='', max_length=50)),
                ('custom_number', models.CharField(blank=True, default='', max_length=10)),
                ('name_characters', models.PositiveIntegerField(default=0)),
                ('number_characters', models.PositiveIntegerField(default=0)),
                ('customization_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='orders.order')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='order_items', to='catalog.product')),
            ],
            options={
                'db_table': 'order_items',
            },
        ),
        migrations.CreateModel(
            name='TempOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_data_key', models.CharField(db_index=True, max_length=64, unique=True)),
                ('items', models.JSONField(default=list)),
                ('shipping_details', models.JSONField(default=dict)),
                ('voucher_code', models.CharField(blank=True, default='', max_length=50)),
                ('voucher_discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('voucher_type', models.CharField(blank=True, default='', max_length=20)),
                ('voucher_value', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('voucher_id', models.CharField(blank=True, default='', max_length=50)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField(default=storefront.orders.models.temp_order_expiry)),
            ],
            options={
                'db_table': 'temp_orders',
            },
        ),
    ]
