from django.urls import path
from . import views

app_name = 'rides'

urlpatterns = [
    # Rider APIs
    path('request/', views.request_ride, name='request-ride'),
    path('current/', views.get_current_ride, name='current-ride'),

    # Driver offer APIs
    path('offers/', views.pending_offers, name='pending-offers'),
    path('offers/<int:offer_id>/accept/', views.accept_offer, name='accept-offer'),
    path('offers/<int:offer_id>/decline/', views.decline_offer, name='decline-offer'),

    # Ride actions (participants only)
    path('<str:ride_id>/', views.ride_detail, name='ride-detail'),
    path('<str:ride_id>/cancel/', views.cancel_ride, name='cancel-ride'),
    path('<str:ride_id>/status/', views.update_ride_status, name='update-ride-status'),
    path('<str:ride_id>/complete/', views.complete_ride, name='complete-ride'),
]
