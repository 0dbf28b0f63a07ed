from django.urls import path
from .views import (
    AuthLoginView, LogoutView, UserProfileView, PublicUserProfileView, WorkerListView
)

urlpatterns = [
    # Authentication
    path('auth/login/', AuthLoginView.as_view(), name='auth_login'),
    path('auth/logout/', LogoutView.as_view(), name='auth_logout'),

    # Profile Management
    path('profile/', UserProfileView.as_view(), name='user_profile'),
    path('workers/', WorkerListView.as_view(), name='worker_list'),
    path('<int:user_id>/', PublicUserProfileView.as_view(), name='user_public_profile'),
]
