# apps/admin_panel/urls.py

from django.urls import path
from . import views

app_name = "admin_panel"

urlpatterns = [
    # Users
    path("users/", views.users_view, name="users"),
    path("users/<int:user_id>/approve/", views.approve_user_view, name="approve_user"),
    path("users/<int:user_id>/reject/", views.reject_user_view, name="reject_user"),

    # Task submissions
    path("user-tasks/", views.user_tasks_view, name="user_tasks"),
    path("user-tasks/<int:user_task_id>/approve/", views.approve_user_task_view, name="approve_user_task"),
    path("user-tasks/<int:user_task_id>/reject/", views.reject_user_task_view, name="reject_user_task"),

    # Withdrawals
    path("withdrawals/", views.withdrawals_view, name="withdrawals"),
    path("withdrawals/<int:withdrawal_id>/", views.update_withdrawal_view, name="update_withdrawal"),

    # Task catalog
    path("tasks/", views.tasks_view, name="tasks"),
    path("tasks/<int:task_id>/", views.edit_task_view, name="edit_task"),
    path("tasks/<int:task_id>/deactivate/", views.deactivate_task_view, name="deactivate_task"),

    # Analytics
    path("stats/", views.stats_view, name="stats"),
]
