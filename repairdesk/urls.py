from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/staff/', include('staff.urls')),
    path('api/inventory/', include('inventory.urls')),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
]
