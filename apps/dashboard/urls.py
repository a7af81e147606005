#apps/dashboard/urls.py
from django.urls import path
from . import views

app_name = 'dashboard'

urlpatterns = [
    path('', views.home_view, name='home'),

    # -----------------------------
    # Notifications
    # -----------------------------
    path('notifications/', views.notifications_view, name='notifications'),
    path('notifications/read-all/', views.mark_all_read_view, name='mark_all_read'),
    path('notifications/<int:notification_id>/read/', views.mark_read_view, name='mark_read'),
]
