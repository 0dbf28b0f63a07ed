from django.contrib import admin
from .models import Payment

@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('gig', 'store', 'worker', 'amount', 'platform_fee', 'worker_amount', 'status', 'created_at')
    list_filter = ('status', 'payment_method')
    search_fields = ('transaction_id', 'gig__title', 'store__username', 'worker__username')
    readonly_fields = ('amount', 'platform_fee', 'worker_amount')
