from django.urls import path
from . import views

app_name = "gigs"

urlpatterns = [
    path("", views.task_list_view, name="list"),
    path("orientation/", views.orientation_view, name="orientation"),
    path("<int:task_id>/start/", views.start_task_view, name="start"),
    path("mine/", views.my_tasks_view, name="mine"),
    path("mine/<int:user_task_id>/submit/", views.submit_task_view, name="submit"),
]
