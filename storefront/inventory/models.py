from django.db import models
from django.utils import timezone


class StockAlert(models.Model):
    """Low stock warning for one colour/size cell of a product"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('resolved', 'Resolved'),
    ]

    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='stock_alerts')
    product_name = models.CharField(max_length=200)
    color = models.CharField(max_length=50, blank=True, default='')
    size = models.CharField(max_length=10)
    current_stock = models.IntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product_name} {self.color}/{self.size}: {self.current_stock} ({self.status})"

    def resolve(self):
        self.status = 'resolved'
        self.resolved_at = timezone.now()
        self.save(update_fields=['status', 'resolved_at'])

    class Meta:
        db_table = 'stock_alerts'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='idx_alert_status_created'),
            models.Index(fields=['product', 'color', 'size'], name='idx_alert_product_cell'),
        ]
