from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # Authentication endpoints (at /api/auth/)
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Driver APIs (availability, location)
    path('api/driver/', include('drivers.urls')),

    # Rides endpoints (at /api/rides/)
    path('api/rides/', include('rides.urls')),
]
