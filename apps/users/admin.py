from django.contrib import admin
from .models import User

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'full_name', 'email', 'phone_number', 'user_type', 'is_verified', 'rating')
    list_filter = ('user_type', 'is_verified', 'is_superuser')
    search_fields = ('username', 'full_name', 'email', 'phone_number', 'business_name')
