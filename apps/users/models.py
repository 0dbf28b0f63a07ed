from decimal import Decimal, ROUND_HALF_UP

from django.db import models
from django.contrib.auth.models import AbstractUser

from core.constants import USER_TYPE_CHOICES


class User(AbstractUser):
    full_name = models.CharField(max_length=100, blank=True, default='')
    email = models.EmailField(blank=True, null=True, unique=True)
    phone_number = models.CharField(max_length=15, blank=True, null=True, unique=True)
    user_type = models.CharField(max_length=20, choices=USER_TYPE_CHOICES, default='worker')
    is_verified = models.BooleanField(default=False)

    # Store specific
    business_name = models.CharField(max_length=200, blank=True, default='')
    business_address = models.CharField(max_length=300, blank=True, default='')

    city = models.CharField(max_length=100, blank=True, default='')
    pincode = models.CharField(max_length=10, blank=True, default='')

    rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    total_ratings = models.PositiveIntegerField(default=0)

    @property
    def is_store(self):
        return self.user_type == 'store'

    @property
    def is_worker(self):
        return self.user_type == 'worker'

    @property
    def display_name(self):
        return self.full_name or self.business_name or self.username

    def add_rating(self, stars):
        """Fold one more 1-5 star rating into the running average."""
        total = self.rating * self.total_ratings + Decimal(stars)
        self.total_ratings += 1
        self.rating = (total / self.total_ratings).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        self.save(update_fields=['rating', 'total_ratings'])

    def __str__(self):
        return f"{self.get_user_type_display()}: {self.username}"
