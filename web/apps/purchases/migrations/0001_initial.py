from django.db import migrations, models
from django.db.models import Q


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PurchaseModel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_id", models.CharField(db_index=True, max_length=64)),
                ("identity", models.CharField(max_length=255)),
                ("entitlement", models.CharField(max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("error_message", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "purchases",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["order_id", "identity", "entitlement"], name="purchases_grant_key_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=Q(status="failed") | Q(error_message__isnull=True),
                        name="purchases_error_only_when_failed",
                    ),
                ],
            },
        ),
    ]
