from django.db import models
from django.conf import settings
from django.utils import timezone

from core.constants import NOTIFICATION_TYPE_CHOICES


class Notification(models.Model):
    """In-app notification; email/SMS delivery is attempted on top of it when enabled."""
    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='sent_notifications'
    )
    type = models.CharField(max_length=30, choices=NOTIFICATION_TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    gig = models.ForeignKey('gigs.Gig', on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications')
    application_id = models.BigIntegerField(null=True, blank=True)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'is_read', '-created_at'], name='notif_recipient_unread_idx'),
        ]

    def __str__(self):
        return f"Notification to {self.recipient.username} - {self.type}"

    def mark_as_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at'])
