from django.db import models


class CustomOrder(models.Model):
    """Bespoke bulk order request awaiting a quote"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('reviewing', 'Reviewing'),
        ('quoted', 'Quoted'),
        ('approved', 'Approved'),
        ('in_production', 'In Production'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(db_index=True)
    phone = models.CharField(max_length=30)
    preferred_contact = models.CharField(max_length=20, blank=True, default='')
    company = models.CharField(max_length=200, blank=True, default='')
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    province = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20)

    selected_product = models.CharField(max_length=200)
    printing_type = models.CharField(max_length=100, blank=True, default='')
    printing_surface = models.JSONField(default=list)
    design_location = models.JSONField(default=list)
    selected_colors = models.JSONField(default=list)
    size_quantities = models.JSONField(default=dict)
    print_size = models.CharField(max_length=50, blank=True, default='')
    needs_design_assistance = models.BooleanField(default=False)
    design_files = models.JSONField(default=list, blank=True)
    additional_notes = models.TextField(blank=True, default='')

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    invoice_data = models.JSONField(null=True, blank=True)
    payment_link = models.URLField(max_length=500, blank=True, default='')
    submitted_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Custom order #{self.pk} - {self.first_name} {self.last_name}"

    @property
    def total_quantity(self):
        """Sum of size quantities; per-colour maps of sizes are summed too"""
        total = 0
        for value in (self.size_quantities or {}).values():
            if isinstance(value, dict):
                total += sum(int(qty or 0) for qty in value.values())
            else:
                total += int(value or 0)
        return total

    class Meta:
        db_table = 'custom_orders'
        ordering = ['-submitted_at']
