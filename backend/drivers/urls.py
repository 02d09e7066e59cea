from django.urls import path
from .views import (
    driver_list_create, driver_detail, driver_fields, driver_change_logs,
    driver_note_list_create, driver_note_detail,
)

urlpatterns = [
    path('drivers/', driver_list_create, name='driver-list-create'),
    path('drivers/<int:pk>/', driver_detail, name='driver-detail'),
    path('drivers/<int:pk>/fields/', driver_fields, name='driver-fields'),
    path('drivers/<int:pk>/change-logs/', driver_change_logs, name='driver-change-logs'),
    path('drivers/<int:pk>/notes/', driver_note_list_create, name='driver-note-list-create'),
    path('drivers/<int:pk>/notes/<int:note_pk>/', driver_note_detail, name='driver-note-detail'),
]
