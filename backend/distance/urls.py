from django.urls import path
from .views import distance_calculate, distance_usage_stats, distance_cache_invalidate

urlpatterns = [
    path('distance/calculate/', distance_calculate, name='distance-calculate'),
    path('distance/usage-stats/', distance_usage_stats, name='distance-usage-stats'),
    path('distance/cache/invalidate/', distance_cache_invalidate, name='distance-cache-invalidate'),
]
