from django.urls import path
from .views import PaymentListView, PaymentDetailView

urlpatterns = [
    path('', PaymentListView.as_view(), name='payment_list'),
    path('<int:payment_id>/', PaymentDetailView.as_view(), name='payment_detail'),
]
