from django.views.decorators.http import require_GET, require_POST

from apps.accounts import orientation
from apps.accounts.decorators import capability_required
from apps.gigs.models import UserTask
from apps.gigs.services import tasks_started_today
from apps.wallet.services import get_wallet
from core.exceptions import NotFound
from core.responses import api_endpoint, api_success

from .models import Notification


# ============================================================
# HOME
# ============================================================
@require_GET
@capability_required("home")
@api_endpoint
def home_view(request):
    user = request.user
    access = request.access

    data = {
        "user": user.to_public_dict(),
        "access": access.as_dict(),
        "orientation": orientation.progress(user.orientation_status),
        "unreadNotifications": Notification.objects.filter(user=user, is_read=False).count(),
    }

    if not access.orientation_mode:
        wallet = get_wallet(user)
        data.update({
            "wallet": wallet.to_dict(),
            "tasksToday": tasks_started_today(user),
            "pendingReview": UserTask.objects.filter(user=user, status=UserTask.Status.PENDING).count(),
        })

    return api_success(data)


# ============================================================
# NOTIFICATIONS
# ============================================================
@require_GET
@capability_required("notifications")
@api_endpoint
def notifications_view(request):
    qs = Notification.objects.filter(user=request.user)
    if request.GET.get("unread") in ("1", "true"):
        qs = qs.filter(is_read=False)
    return api_success({"notifications": [n.to_dict() for n in qs[:50]]})


@require_POST
@capability_required("notifications")
@api_endpoint
def mark_read_view(request, notification_id):
    updated = Notification.objects.filter(pk=notification_id, user=request.user).update(is_read=True)
    if not updated:
        raise NotFound("Notification not found", {"notificationId": notification_id})
    return api_success(None, "Notification marked as read")


@require_POST
@capability_required("notifications")
@api_endpoint
def mark_all_read_view(request):
    updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
    return api_success({"updated": updated}, "All notifications marked as read")
