import logging

from django.db.models import Sum
from django.forms.models import model_to_dict
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.accounts.decorators import admin_required
from apps.accounts.models import ApprovalStatus, User
from apps.gigs.models import Task, UserTask
from apps.payments.models import Subscription
from apps.wallet.models import Wallet, Withdrawal
from core.exceptions import NotFound
from core.responses import api_endpoint, api_success, read_json, validated

from . import workflow
from .forms import RejectionForm, TaskForm, WithdrawalDecisionForm

logger = logging.getLogger("admin_panel.views")

PAGE_SIZE = 100

TASK_DEFAULTS = {"is_active": True, "is_orientation": False, "min_tier": "member", "min_duration": 150}


# =====================================================
# 1️⃣ USERS
# =====================================================
@require_GET
@admin_required
@api_endpoint
def users_view(request):
    qs = User.objects.select_related("referred_by").order_by("-date_joined")
    approval = request.GET.get("approval")
    if approval:
        qs = qs.filter(approval_status=approval)
    return api_success({"users": [u.to_public_dict() for u in qs[:PAGE_SIZE]]})


@require_POST
@admin_required
@api_endpoint
def approve_user_view(request, user_id):
    user, changed = workflow.approve_user(user_id)
    return api_success(user.to_public_dict(), "User approved" if changed else "User already approved")


@require_POST
@admin_required
@api_endpoint
def reject_user_view(request, user_id):
    data = validated(RejectionForm(read_json(request)))
    user, changed = workflow.reject_user(user_id, data["reason"])
    return api_success(user.to_public_dict(), "User rejected" if changed else "User already rejected")


# =====================================================
# 2️⃣ TASK SUBMISSIONS
# =====================================================
@require_GET
@admin_required
@api_endpoint
def user_tasks_view(request):
    status = request.GET.get("status", UserTask.Status.PENDING)
    qs = UserTask.objects.select_related("task", "user").filter(status=status)
    return api_success({"userTasks": [ut.to_dict() for ut in qs[:PAGE_SIZE]]})


@require_POST
@admin_required
@api_endpoint
def approve_user_task_view(request, user_task_id):
    user_task = workflow.approve_user_task(user_task_id)
    return api_success(user_task.to_dict(), "Task approved")


@require_POST
@admin_required
@api_endpoint
def reject_user_task_view(request, user_task_id):
    data = validated(RejectionForm(read_json(request)))
    user_task = workflow.reject_user_task(user_task_id, data["reason"])
    return api_success(user_task.to_dict(), "Task rejected")


# =====================================================
# 3️⃣ WITHDRAWALS
# =====================================================
@require_GET
@admin_required
@api_endpoint
def withdrawals_view(request):
    qs = Withdrawal.objects.select_related("user")
    status = request.GET.get("status")
    if status:
        qs = qs.filter(status=status)
    return api_success({"withdrawals": [w.to_dict() for w in qs[:PAGE_SIZE]]})


@require_POST
@admin_required
@api_endpoint
def update_withdrawal_view(request, withdrawal_id):
    data = validated(WithdrawalDecisionForm(read_json(request)))
    withdrawal = workflow.update_withdrawal(withdrawal_id, data["status"], data["admin_notes"])
    return api_success(withdrawal.to_dict(), "Withdrawal updated")


# =====================================================
# 4️⃣ TASK CATALOG
# =====================================================
@require_http_methods(["GET", "POST"])
@admin_required
@api_endpoint
def tasks_view(request):
    if request.method == "GET":
        return api_success({"tasks": [t.to_dict() for t in Task.objects.all()]})

    form = TaskForm({**TASK_DEFAULTS, **read_json(request)})
    validated(form)
    task = form.save()
    logger.info("Task %s created by admin %s", task.id, request.user.id)
    return api_success(task.to_dict(), "Task created", status=201)


def _get_task(task_id) -> Task:
    task = Task.objects.filter(pk=task_id).first()
    if task is None:
        raise NotFound("Task not found", {"taskId": task_id})
    return task


@require_POST
@admin_required
@api_endpoint
def edit_task_view(request, task_id):
    task = _get_task(task_id)
    form = TaskForm({**model_to_dict(task, fields=TaskForm.Meta.fields), **read_json(request)}, instance=task)
    validated(form)
    task = form.save()
    logger.info("Task %s updated by admin %s", task.id, request.user.id)
    return api_success(task.to_dict(), "Task updated")


@require_POST
@admin_required
@api_endpoint
def deactivate_task_view(request, task_id):
    task = _get_task(task_id)
    task.is_active = False
    task.save(update_fields=["is_active"])
    logger.info("Task %s deactivated by admin %s", task.id, request.user.id)
    return api_success(task.to_dict(), "Task deactivated")


# =====================================================
# 5️⃣ STATS
# =====================================================
@require_GET
@admin_required
@api_endpoint
def stats_view(request):
    return api_success({
        "totalUsers": User.objects.count(),
        "activeSubscriptions": Subscription.objects.filter(is_active=True).count(),
        "totalEarnings": str(Wallet.objects.aggregate(total=Sum("total_earnings"))["total"] or 0),
        "totalTasks": UserTask.objects.count(),
        "pendingApprovals": User.objects.filter(
            approval_status=ApprovalStatus.PENDING, subscription_tier__isnull=False
        ).count(),
        "pendingTasks": UserTask.objects.filter(status=UserTask.Status.PENDING).count(),
        "pendingWithdrawals": Withdrawal.objects.filter(status=Withdrawal.Status.PENDING).count(),
    })
