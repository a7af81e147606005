# apps/admin_panel/workflow.py
"""
Approval Workflow: admin-only state transitions.

Each transition locks its target row, applies every side effect in the
same transaction and sends exactly one notification. User approval and
rejection are idempotent no-ops when repeated; task and withdrawal
decisions are terminal and a replay raises ``AlreadyProcessed``.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import ApprovalStatus, Role, User
from apps.dashboard.notifications import notify_user
from apps.gigs.models import UserTask
from apps.wallet.models import Transaction, Withdrawal
from apps.wallet.services import credit_wallet, debit_for_withdrawal
from core.exceptions import AlreadyProcessed, InvalidTransition, NotFound

logger = logging.getLogger("admin_panel.workflow")

NO_REASON = "No reason provided"


def _locked_user(user_id) -> User:
    user = User.objects.select_for_update().filter(pk=user_id).first()
    if user is None:
        raise NotFound("User not found", {"userId": user_id})
    return user


# =====================================================
# USERS
# =====================================================
def approve_user(user_id):
    """Returns ``(user, changed)``."""
    with transaction.atomic():
        user = _locked_user(user_id)
        if user.approval_status == ApprovalStatus.APPROVED:
            return user, False

        previous = user.approval_status
        user.approval_status = ApprovalStatus.APPROVED
        user.rejection_reason = ""
        user.approval_updated_at = timezone.now()
        user.save(update_fields=["approval_status", "rejection_reason", "approval_updated_at", "updated_at"])

    logger.info("User %s approved (was %s)", user.id, previous)
    notify_user(
        user,
        "Account Approved",
        "Your account has been approved! You now have full access to your plan's tasks and your wallet.",
        "success",
    )
    return user, True


def reject_user(user_id, reason: str = ""):
    """Returns ``(user, changed)``. The reason is kept on the user record."""
    reason = (reason or "").strip()

    with transaction.atomic():
        user = _locked_user(user_id)
        if user.role == Role.ADMIN:
            raise InvalidTransition("Administrator accounts cannot be rejected", {"userId": user.id})
        if user.approval_status == ApprovalStatus.REJECTED:
            return user, False

        user.approval_status = ApprovalStatus.REJECTED
        user.rejection_reason = reason
        user.approval_updated_at = timezone.now()
        user.save(update_fields=["approval_status", "rejection_reason", "approval_updated_at", "updated_at"])

    logger.info("User %s rejected: %s", user.id, reason or NO_REASON)
    notify_user(
        user,
        "Account Rejected",
        f"Your account application was rejected. Reason: {reason or NO_REASON}",
        "error",
    )
    return user, True


# =====================================================
# TASK SUBMISSIONS
# =====================================================
def _locked_user_task(user_task_id) -> UserTask:
    user_task = (
        UserTask.objects.select_for_update()
        .select_related("task", "user")
        .filter(pk=user_task_id)
        .first()
    )
    if user_task is None:
        raise NotFound("Task attempt not found", {"userTaskId": user_task_id})
    return user_task


def _check_pending(user_task, target):
    if user_task.status == target:
        raise AlreadyProcessed(f"Task attempt already {target}", {"userTaskId": user_task.id})
    if user_task.status != UserTask.Status.PENDING:
        raise InvalidTransition(
            f"Task attempt is {user_task.status} and cannot become {target}",
            {"userTaskId": user_task.id, "status": user_task.status},
        )


def approve_user_task(user_task_id) -> UserTask:
    """pending -> approved, crediting the task reward to the user's wallet atomically."""
    with transaction.atomic():
        user_task = _locked_user_task(user_task_id)
        _check_pending(user_task, UserTask.Status.APPROVED)

        user_task.status = UserTask.Status.APPROVED
        user_task.approved_at = timezone.now()
        user_task.save(update_fields=["status", "approved_at"])

        # zero-reward tasks have nothing to credit
        if user_task.task.reward > 0:
            credit_wallet(
                user_task.user,
                user_task.task.reward,
                type=Transaction.Type.EARNING,
                description=f"Task: {user_task.task.title}",
                reference=f"task-{user_task.id}",
                metadata={"user_task_id": user_task.id, "task_id": user_task.task_id},
            )

    logger.info("Attempt %s approved; %s credited to user %s", user_task.id, user_task.task.reward, user_task.user_id)
    notify_user(
        user_task.user,
        "Task Approved",
        f"Your task '{user_task.task.title}' has been approved. {user_task.task.reward} has been added to your wallet.",
        "success",
    )
    return user_task


def reject_user_task(user_task_id, reason: str = "") -> UserTask:
    reason = (reason or "").strip()

    with transaction.atomic():
        user_task = _locked_user_task(user_task_id)
        _check_pending(user_task, UserTask.Status.REJECTED)

        user_task.status = UserTask.Status.REJECTED
        user_task.rejection_reason = reason
        user_task.save(update_fields=["status", "rejection_reason"])

    logger.info("Attempt %s rejected: %s", user_task.id, reason or NO_REASON)
    notify_user(
        user_task.user,
        "Task Rejected",
        f"Your task '{user_task.task.title}' was rejected. Reason: {reason or NO_REASON}",
        "error",
    )
    return user_task


# =====================================================
# WITHDRAWALS
# =====================================================
def update_withdrawal(withdrawal_id, status, admin_notes: str = "") -> Withdrawal:
    """pending -> completed (wallet debited) | failed (wallet untouched)."""
    if status not in (Withdrawal.Status.COMPLETED, Withdrawal.Status.FAILED):
        raise ValueError(f"Unsupported withdrawal status: {status!r}")
    admin_notes = (admin_notes or "").strip()

    with transaction.atomic():
        withdrawal = Withdrawal.objects.select_for_update().select_related("user").filter(pk=withdrawal_id).first()
        if withdrawal is None:
            raise NotFound("Withdrawal not found", {"withdrawalId": withdrawal_id})

        if withdrawal.status == status:
            raise AlreadyProcessed(f"Withdrawal already {status}", {"withdrawalId": withdrawal.id})
        if withdrawal.status != Withdrawal.Status.PENDING:
            raise InvalidTransition(
                f"Withdrawal is {withdrawal.status} and cannot become {status}",
                {"withdrawalId": withdrawal.id, "status": withdrawal.status},
            )

        if status == Withdrawal.Status.COMPLETED:
            debit_for_withdrawal(withdrawal)

        withdrawal.status = status
        withdrawal.admin_notes = admin_notes
        withdrawal.processed_at = timezone.now()
        withdrawal.save(update_fields=["status", "admin_notes", "processed_at"])

    logger.info("Withdrawal %s marked %s", withdrawal.id, status)
    if status == Withdrawal.Status.COMPLETED:
        notify_user(
            withdrawal.user,
            "Withdrawal Processed",
            f"Your withdrawal of {withdrawal.amount} has been processed.",
            "success",
        )
    else:
        notify_user(
            withdrawal.user,
            "Withdrawal Rejected",
            f"Your withdrawal of {withdrawal.amount} was rejected: {admin_notes or NO_REASON}",
            "error",
        )
    return withdrawal
