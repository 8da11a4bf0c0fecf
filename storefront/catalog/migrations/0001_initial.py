# Generated manually for the initial storefront schema

import django.core.validators
import django.db.models.deletion
import storefront.catalog.models
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

CATEGORY_CHOICES = [('tshirts', 'T-Shirts'), ('jerseys', 'Jerseys'), ('tanktops', 'Tank Tops'), ('longsleeve', 'Long Sleeve'), ('hoodies', 'Hoodies'), ('sweatshirts', 'Sweatshirts'), ('sweatpants', 'Sweatpants'), ('accessories', 'Accessories'), ('shortsleeve', 'Short Sleeve'), ('crewneck', 'Crew Neck')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('description', models.TextField()),
                ('price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('base_price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('images', models.JSONField(blank=True, default=list)),
                ('category', models.CharField(choices=CATEGORY_CHOICES, db_index=True, max_length=20)),
                ('gender', models.CharField(choices=[('men', 'Men'), ('women', 'Women'), ('unisex', 'Unisex'), ('kids', 'Kids')], db_index=True, default='unisex', max_length=10)),
                ('sizes', models.JSONField(blank=True, default=list)),
                ('colors', models.JSONField(blank=True, default=list)),
                ('stock', models.JSONField(blank=True, default=dict)),
                ('barcodes', models.JSONField(blank=True, default=list)),
                ('featured', models.BooleanField(db_index=True, default=False)),
                ('customizable', models.BooleanField(default=True)),
                ('low_stock_threshold', models.PositiveIntegerField(default=5)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'products',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['category', 'gender'], name='idx_product_category_gender')],
            },
        ),
        migrations.CreateModel(
            name='CategoryVisibility',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(choices=CATEGORY_CHOICES, max_length=20, unique=True)),
                ('is_visible', models.BooleanField(default=True)),
                ('display_name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, default='')),
                ('sort_order', models.IntegerField(default=0)),
                ('gender_visibility', models.JSONField(default=storefront.catalog.models.default_gender_visibility)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='category_visibility_updates', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'category_visibility',
                'ordering': ['sort_order', 'category'],
                'verbose_name_plural': 'category visibility',
            },
        ),
        migrations.CreateModel(
            name='CarouselBackground',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('slide_id', models.PositiveSmallIntegerField(unique=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ('title', models.CharField(max_length=100)),
                ('subtitle', models.CharField(max_length=100)),
                ('description', models.TextField(max_length=500)),
                ('button_text', models.CharField(max_length=50)),
                ('button_link', models.CharField(max_length=200)),
                ('image_url', models.URLField(blank=True, default='', max_length=500)),
                ('bg_gradient', models.CharField(max_length=200)),
                ('text_color', models.CharField(max_length=50)),
                ('is_active', models.BooleanField(default=True)),
                ('order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'carousel_backgrounds',
                'ordering': ['order', 'slide_id'],
                'indexes': [models.Index(fields=['is_active', 'order'], name='idx_carousel_active_order')],
            },
        ),
    ]
