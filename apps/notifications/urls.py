from django.urls import path
from .views import NotificationListView, NotificationReadView, NotificationReadAllView

urlpatterns = [
    path('', NotificationListView.as_view(), name='notification_list'),
    path('read-all/', NotificationReadAllView.as_view(), name='notification_read_all'),
    path('<int:notification_id>/read/', NotificationReadView.as_view(), name='notification_read'),
]
