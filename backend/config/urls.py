"""
URL configuration for backend project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Freight Brokerage Admin Panel"
admin.site.site_title = "Freight Brokerage Admin Portal"
admin.site.index_title = "Welcome to the Freight Brokerage Back Office"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.companies.urls')),
    path('api/v1/', include('backend.addresses.urls')),
    path('api/v1/', include('backend.drivers.urls')),
    path('api/v1/', include('backend.orders.urls')),
    path('api/v1/', include('backend.charges.urls')),
    path('api/v1/', include('backend.distance.urls')),
    path('api/v1/', include('backend.sms.urls')),
    path('api/v1/', include('backend.dashboard.urls')),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
