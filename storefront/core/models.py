from datetime import timedelta

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Customer or staff account. ``is_staff`` marks back office admins."""
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    street = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    county = models.CharField(max_length=100, blank=True)
    postcode = models.CharField(max_length=10, blank=True)
    country = models.CharField(max_length=100, default='United Kingdom')
    visitor_id = models.CharField(max_length=100, blank=True, null=True, db_index=True)
    reset_token_hash = models.CharField(max_length=64, blank=True, null=True)
    reset_token_expires = models.DateTimeField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('order_create', 'Order Created'),
        ('order_status', 'Order Status Changed'),
        ('order_cancel', 'Order Cancelled'),
        ('order_ship', 'Order Shipped'),
        ('production_status', 'Production Status Changed'),
        ('label_create', 'Shipping Label Created'),
        ('refund', 'Refund'),
        ('payment_link', 'Payment Link Created'),
        ('stock_adjust', 'Stock Adjustment'),
        ('voucher_redeem', 'Voucher Redeemed'),
        ('password_reset', 'Password Reset'),
        ('password_change', 'Password Changed'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name, customer name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order reference, supply order reference)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_audit_created'),
            models.Index(fields=['action'], name='idx_audit_action'),
            models.Index(fields=['model_name'], name='idx_audit_model'),
            models.Index(fields=['object_reference'], name='idx_audit_reference'),
        ]


class AccountLockout(models.Model):
    """Failed login bookkeeping per email and client IP"""
    MAX_FAILED_ATTEMPTS = 5
    LOCKOUT_MINUTES = 15

    email = models.CharField(max_length=254)
    ip_address = models.CharField(max_length=45)
    failed_attempts = models.PositiveIntegerField(default=0)
    locked_until = models.DateTimeField(null=True, blank=True)
    last_attempt = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.email} @ {self.ip_address}"

    def save(self, *args, **kwargs):
        self.email = (self.email or '').strip().lower()
        super().save(*args, **kwargs)

    def is_locked(self):
        if not self.locked_until:
            return False
        return timezone.now() < self.locked_until

    def increment_failed_attempts(self):
        self.failed_attempts += 1
        self.last_attempt = timezone.now()
        if self.failed_attempts >= self.MAX_FAILED_ATTEMPTS:
            self.locked_until = timezone.now() + timedelta(minutes=self.LOCKOUT_MINUTES)

    def reset_failed_attempts(self):
        self.failed_attempts = 0
        self.locked_until = None
        self.last_attempt = timezone.now()

    class Meta:
        db_table = 'account_lockouts'
        unique_together = [['email', 'ip_address']]
        indexes = [
            models.Index(fields=['email', 'ip_address'], name='idx_lockout_email_ip'),
        ]
