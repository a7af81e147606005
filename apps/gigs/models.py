from django.conf import settings
from django.db import models

from apps.accounts.tiers import TaskCategory, Tier


# ---------- TASK CATALOG ----------
class Task(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=10, choices=TaskCategory.choices)
    url = models.URLField(blank=True, default="")
    reward = models.DecimalField(max_digits=10, decimal_places=2)
    min_tier = models.CharField(max_length=10, choices=Tier.choices, default=Tier.MEMBER)
    min_duration = models.PositiveIntegerField(default=150, help_text="Seconds on task before submission")
    is_active = models.BooleanField(default=True)
    is_orientation = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['category', 'id']
        indexes = [models.Index(fields=['category', 'is_active'], name='gigs_task_categor_8e2b4f_idx')]

    def __str__(self):
        return self.title

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "url": self.url or None,
            "reward": str(self.reward),
            "minTier": self.min_tier,
            "minDuration": self.min_duration,
            "isActive": self.is_active,
            "isOrientation": self.is_orientation,
        }


# ---------- ATTEMPTS ----------
class UserTask(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="user_tasks")
    task = models.ForeignKey(Task, on_delete=models.PROTECT, related_name="attempts")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    started_at = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ['-started_at']
        indexes = [models.Index(fields=['user', 'started_at'], name='gigs_userta_user_id_6d1c0a_idx')]

    def __str__(self):
        return f"{self.user} / {self.task} ({self.status})"

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "task": self.task.to_dict(),
            "status": self.status,
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "approvedAt": self.approved_at.isoformat() if self.approved_at else None,
            "rejectionReason": self.rejection_reason or None,
            "metadata": self.metadata,
        }
