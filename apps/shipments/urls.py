from django.urls import path
from apps.tracking.views import ShipmentEventsView
from .views import (
    ShipmentCreateView, ShipmentListView, ShipmentDetailView,
    ShipmentTransitionView, TariffEstimateView,
)

urlpatterns = [
    path("shipments/create/",                  ShipmentCreateView.as_view(),     name="shipment-create"),
    path("shipments/",                         ShipmentListView.as_view(),       name="shipment-list"),
    path("shipments/<uuid:pk>/",               ShipmentDetailView.as_view(),     name="shipment-detail"),
    path("shipments/<uuid:pk>/transition/",    ShipmentTransitionView.as_view(), name="shipment-transition"),
    path("shipments/<uuid:pk>/events/",        ShipmentEventsView.as_view(),     name="shipment-events"),
    path("tariff/estimate/",                   TariffEstimateView.as_view(),     name="tariff-estimate"),
]
