import logging

from django.views.decorators.http import require_GET, require_POST

from apps.accounts import orientation
from apps.accounts.decorators import capability_required
from apps.accounts.tiers import CATEGORIES
from core.responses import api_endpoint, api_success, read_json

from . import services
from .models import Task, UserTask

logger = logging.getLogger("gigs.views")


def _task_row(task, state):
    row = task.to_dict()
    if task.is_orientation:
        row["completed"] = orientation.has_completed_task(state, task.category, task.id)
    return row


# ============================================================
# CATALOG
# ============================================================
@require_GET
@capability_required("tasks")
@api_endpoint
def task_list_view(request):
    """Eligible tasks for one category, or for every category the user may work in."""
    state = request.user.orientation_status
    requested = request.GET.get("category")
    categories = [requested] if requested else [c for c in CATEGORIES if request.access.may_work_in(c)]

    tasks = []
    for category in categories:
        tasks.extend(_task_row(t, state) for t in services.list_eligible(request.user, category))

    return api_success({
        "tasks": tasks,
        "orientationMode": request.access.orientation_mode,
        "dailyQuota": request.access.daily_quota,
        "usedToday": services.tasks_started_today(request.user),
    })


@require_GET
@capability_required("orientation")
@api_endpoint
def orientation_view(request):
    state = request.user.orientation_status
    tasks = Task.objects.filter(is_active=True, is_orientation=True)
    return api_success({
        "progress": orientation.progress(state),
        "overallCompleted": orientation.is_overall_completed(state),
        "tasks": [_task_row(t, state) for t in tasks],
    })


# ============================================================
# ATTEMPTS
# ============================================================
@require_POST
@capability_required("tasks")
@api_endpoint
def start_task_view(request, task_id):
    user_task = services.start_task(request.user, task_id)
    return api_success(
        {"userTask": user_task.to_dict(), "orientationStatus": request.user.orientation_status},
        "Task started",
        status=201,
    )


@require_POST
@capability_required("tasks")
@api_endpoint
def submit_task_view(request, user_task_id):
    metadata = read_json(request).get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError("metadata must be an object")
    user_task = services.submit_task(request.user, user_task_id, metadata)
    return api_success(user_task.to_dict(), "Task submitted for review")


@require_GET
@capability_required("tasks")
@api_endpoint
def my_tasks_view(request):
    qs = UserTask.objects.filter(user=request.user).select_related("task")
    status = request.GET.get("status")
    if status:
        qs = qs.filter(status=status)
    return api_success({"userTasks": [ut.to_dict() for ut in qs[:100]]})
