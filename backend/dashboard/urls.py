from django.urls import path
from .views import dashboard_kpi, dashboard_status_stats, dashboard_trends

urlpatterns = [
    path('dashboard/kpi/', dashboard_kpi, name='dashboard-kpi'),
    path('dashboard/status-stats/', dashboard_status_stats, name='dashboard-status-stats'),
    path('dashboard/trends/', dashboard_trends, name='dashboard-trends'),
]
