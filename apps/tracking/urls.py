from django.urls import path
from .views import TrackingAggregateView, TrackingLookupView

urlpatterns = [
    path("<uuid:shipment_id>/",         TrackingAggregateView.as_view(), name="tracking-aggregate"),
    path("number/<str:tracking_number>/", TrackingLookupView.as_view(),  name="tracking-lookup"),
]
