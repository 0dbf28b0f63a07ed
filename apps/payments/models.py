from django.db import models
from django.conf import settings

from core.constants import PAYMENT_STATUS_CHOICES, PAYMENT_METHOD_CHOICES


class Payment(models.Model):
    gig = models.OneToOneField('gigs.Gig', on_delete=models.CASCADE, related_name='payment')
    store = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='store_payments')
    worker = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='worker_payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    platform_fee = models.DecimalField(max_digits=12, decimal_places=2)
    worker_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES)
    transaction_id = models.CharField(max_length=50, unique=True, null=True, blank=True)
    gateway_response = models.JSONField(null=True, blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    refund_reason = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Payment {self.transaction_id or self.pk} for Gig {self.gig.title}"

    def generate_transaction_id(self):
        """Assign a transaction id when a transaction is initiated for this payment."""
        from .utils import generate_transaction_id

        self.transaction_id = generate_transaction_id()
        self.save(update_fields=['transaction_id', 'updated_at'])
        return self.transaction_id
