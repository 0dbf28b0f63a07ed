from django.urls import path
from .views import (
    GigListCreateView, GigDetailView, MyGigsView, GigApplyView, GigApplicationResolveView,
    GigStartView, GigCompleteView, GigCancelView, GigReviewView,
)

urlpatterns = [
    path('', GigListCreateView.as_view(), name='gig_list_create'),
    path('my/', MyGigsView.as_view(), name='my_gigs'),
    path('<int:pk>/', GigDetailView.as_view(), name='gig_detail'),

    # Applications
    path('<int:pk>/apply/', GigApplyView.as_view(), name='gig_apply'),
    path(
        '<int:pk>/applications/<int:application_id>/',
        GigApplicationResolveView.as_view(),
        name='gig_application_resolve'
    ),

    # Lifecycle
    path('<int:pk>/start/', GigStartView.as_view(), name='gig_start'),
    path('<int:pk>/complete/', GigCompleteView.as_view(), name='gig_complete'),
    path('<int:pk>/cancel/', GigCancelView.as_view(), name='gig_cancel'),
    path('<int:pk>/reviews/', GigReviewView.as_view(), name='gig_reviews'),
]
