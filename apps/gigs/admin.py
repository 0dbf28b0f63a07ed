from django.contrib import admin
from .models import Gig, GigApplication, GigReview


class GigApplicationInline(admin.TabularInline):
    model = GigApplication
    extra = 0
    readonly_fields = ('worker', 'applied_at')


@admin.register(Gig)
class GigAdmin(admin.ModelAdmin):
    list_display = ('title', 'store', 'worker', 'category', 'city', 'status', 'total_amount', 'start_time')
    list_filter = ('status', 'category', 'is_urgent', 'city')
    search_fields = ('title', 'description', 'store__username', 'store__business_name')
    readonly_fields = ('duration', 'total_amount', 'views', 'version')
    inlines = [GigApplicationInline]


@admin.register(GigReview)
class GigReviewAdmin(admin.ModelAdmin):
    list_display = ('gig', 'reviewer', 'reviewee', 'rating', 'created_at')
    list_filter = ('rating',)
