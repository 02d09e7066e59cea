from django.urls import path
from .views import sms_dispatch, sms_history, sms_templates

urlpatterns = [
    path('sms/dispatch/', sms_dispatch, name='sms-dispatch'),
    path('sms/history/<int:order_id>/', sms_history, name='sms-history'),
    path('sms/templates/', sms_templates, name='sms-templates'),
]
