from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.constants import (
    GIG_CATEGORY_CHOICES, GIG_STATUS_CHOICES, GIG_PAYMENT_STATUS_CHOICES, GIG_APPLICATION_STATUS_CHOICES,
    GIG_STATUS_OPEN, GIG_ACTIVE_STATUSES, APPLICATION_STATUS_PENDING,
)

CENTS = Decimal('0.01')
SECONDS_PER_HOUR = Decimal(3600)


def default_max_applications():
    return settings.GIG_DEFAULT_MAX_APPLICATIONS


def hours_between(start, end):
    """Length of the start/end window in hours, rounded half-up to two places."""
    seconds = Decimal(str((end - start).total_seconds()))
    return (seconds / SECONDS_PER_HOUR).quantize(CENTS, rounding=ROUND_HALF_UP)


class Gig(models.Model):
    store = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='posted_gigs')
    worker = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_gigs'
    )
    title = models.CharField(max_length=100)
    description = models.TextField()
    category = models.CharField(max_length=30, choices=GIG_CATEGORY_CHOICES)

    # Location
    address = models.CharField(max_length=300)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    pincode = models.CharField(max_length=10)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    # Schedule
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    duration = models.DecimalField(max_digits=6, decimal_places=2, editable=False)  # hours

    # Payment
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, editable=False)
    payment_status = models.CharField(max_length=10, choices=GIG_PAYMENT_STATUS_CHOICES, default='pending')

    status = models.CharField(max_length=20, choices=GIG_STATUS_CHOICES, default=GIG_STATUS_OPEN)

    requirements = models.JSONField(default=list, blank=True)
    skills = models.JSONField(default=list, blank=True)
    is_urgent = models.BooleanField(default=False)
    max_applications = models.PositiveIntegerField(default=default_max_applications)
    views = models.PositiveIntegerField(default=0)
    # Bumped by every lifecycle write; writes only land on the version they read
    version = models.PositiveIntegerField(default=0)

    assigned_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['store', 'status'], name='gig_store_status_idx'),
            models.Index(fields=['worker', 'status'], name='gig_worker_status_idx'),
            models.Index(fields=['status', 'start_time'], name='gig_status_start_idx'),
            models.Index(fields=['city', 'category'], name='gig_city_category_idx'),
        ]

    def __str__(self):
        return f"{self.title} - {self.store.username}"

    @property
    def is_active(self):
        return self.status in GIG_ACTIVE_STATUSES and self.end_time > timezone.now()

    @property
    def location(self):
        location = {
            'address': self.address,
            'city': self.city,
            'state': self.state,
            'pincode': self.pincode,
        }
        if self.latitude is not None and self.longitude is not None:
            location['coordinates'] = {'lat': self.latitude, 'lng': self.longitude}
        return location

    def calculate_total_amount(self):
        """Recompute duration and total_amount from the schedule and hourly rate."""
        self.duration = hours_between(self.start_time, self.end_time)
        self.total_amount = (Decimal(self.hourly_rate) * self.duration).quantize(CENTS, rounding=ROUND_HALF_UP)
        return self.total_amount

    def save(self, *args, **kwargs):
        self.calculate_total_amount()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and {'hourly_rate', 'start_time', 'end_time'} & set(update_fields):
            kwargs['update_fields'] = set(update_fields) | {'duration', 'total_amount'}
        super().save(*args, **kwargs)

    def find_application(self, application_id):
        """Look an application up in this gig's (prefetched) application list."""
        try:
            application_id = int(application_id)
        except (TypeError, ValueError):
            return None
        for application in self.applications.all():
            if application.pk == application_id:
                return application
        return None

    def has_applied(self, worker):
        return any(application.worker_id == worker.pk for application in self.applications.all())


class GigApplication(models.Model):
    gig = models.ForeignKey(Gig, on_delete=models.CASCADE, related_name='applications')
    worker = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='gig_applications')
    message = models.CharField(max_length=500, blank=True, default='')
    status = models.CharField(max_length=20, choices=GIG_APPLICATION_STATUS_CHOICES, default=APPLICATION_STATUS_PENDING)
    applied_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ('gig', 'worker')
        ordering = ['applied_at', 'id']

    def __str__(self):
        return f"{self.worker.username} applied to {self.gig.title}"


class GigReview(models.Model):
    gig = models.ForeignKey(Gig, on_delete=models.CASCADE, related_name='reviews')
    reviewer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews_given')
    reviewee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews_received')
    rating = models.PositiveSmallIntegerField(choices=[(i, i) for i in range(1, 6)])  # 1 to 5 stars
    comment = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('gig', 'reviewer')
        ordering = ['-created_at']

    def __str__(self):
        return f"Review of {self.reviewee.username} on {self.gig.title} ({self.rating}/5)"
