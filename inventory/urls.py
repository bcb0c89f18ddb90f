from django.urls import path
from . import views

app_name = "inventory"

urlpatterns = [
    path("locations/", views.LocationListView.as_view(), name="location-list"),
    path("locations/<int:location_id>/", views.LocationDetailView.as_view(), name="location-detail"),

    path("items/", views.ItemListView.as_view(), name="item-list"),
    path("items/<int:item_id>/", views.ItemDetailView.as_view(), name="item-detail"),
    path("items/<int:item_id>/variations/", views.ItemVariationView.as_view(), name="item-variations"),

    path("levels/", views.StockLevelListView.as_view(), name="level-list"),
    path("levels/variation/<int:variation_id>/", views.StockLevelVariationView.as_view(), name="level-variation"),
    path("levels/location/<int:location_id>/", views.StockLevelLocationView.as_view(), name="level-location"),

    path("adjustments/", views.AdjustmentListView.as_view(), name="adjustment-list"),
    path("adjustments/<int:adjustment_id>/", views.AdjustmentDetailView.as_view(), name="adjustment-detail"),

    path("transfers/", views.TransferListView.as_view(), name="transfer-list"),
    path("transfers/<int:transfer_id>/", views.TransferDetailView.as_view(), name="transfer-detail"),
    path("transfers/<int:transfer_id>/status/", views.TransferStatusView.as_view(), name="transfer-status"),
]
