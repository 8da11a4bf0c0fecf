# Generated manually for the initial storefront schema

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='CustomOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('email', models.EmailField(db_index=True, max_length=254)),
                ('phone', models.CharField(max_length=30)),
                ('preferred_contact', models.CharField(blank=True, default='', max_length=20)),
                ('company', models.CharField(blank=True, default='', max_length=200)),
                ('address', models.CharField(max_length=255)),
                ('city', models.CharField(max_length=100)),
                ('province', models.CharField(max_length=100)),
                ('postal_code', models.CharField(max_length=20)),
                ('selected_product', models.CharField(max_length=200)),
                ('printing_type', models.CharField(blank=True, default='', max_length=100)),
                ('printing_surface', models.JSONField(default=list)),
                ('design_location', models.JSONField(default=list)),
                ('selected_colors', models.JSONField(default=list)),
                ('size_quantities', models.JSONField(default=dict)),
                ('print_size', models.CharField(blank=True, default='', max_length=50)),
                ('needs_design_assistance', models.BooleanField(default=False)),
                ('design_files', models.JSONField(blank=True, default=list)),
                ('additional_notes', models.TextField(blank=True, default='')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('reviewing', 'Reviewing'), ('quoted', 'Quoted'), ('approved', 'Approved'), ('in_production', 'In Production'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20)),
                ('invoice_data', models.JSONField(blank=True, null=True)),
                ('payment_link', models.URLField(blank=True, default='', max_length=500)),
                ('submitted_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'custom_orders',
                'ordering': ['-submitted_at'],
            },
        ),
    ]
