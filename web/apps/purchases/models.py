from django.db import models
from django.db.models import Q


class PurchaseModel(models.Model):
    # Not unique: an order yields one row per provisioned line item
    order_id = models.CharField(max_length=64, db_index=True)
    identity = models.CharField(max_length=255)
    entitlement = models.CharField(max_length=255)

    class Status(models.TextChoices):
        PENDING = "pending"
        COMPLETED = "completed"
        FAILED = "failed"

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    error_message = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "purchases"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["order_id", "identity", "entitlement"], name="purchases_grant_key_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(status="failed") | Q(error_message__isnull=True),
                name="purchases_error_only_when_failed",
            ),
        ]

    def __str__(self):
        return f"{self.order_id}:{self.identity}:{self.entitlement} [{self.status}]"
