import uuid

from django.db import models


class BatchStatus(models.TextChoices):
    DRAFT = "draft", "draft"
    SCHEDULED = "scheduled", "scheduled"
    IN_PROGRESS = "in-progress", "in-progress"
    COMPLETED = "completed", "completed"
    CANCELLED = "cancelled", "cancelled"


class ProductionBatch(models.Model):
    """A planned run: ``items`` lists products, their variants and fill quantities."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    batch_number = models.CharField(max_length=64, unique=True)
    status = models.CharField(max_length=16, choices=BatchStatus.choices, default=BatchStatus.DRAFT)
    planned_date = models.DateField(blank=True, null=True)
    items = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "production_batch"
        ordering = ["-planned_date", "batch_number"]

    def __str__(self) -> str:
        return self.batch_number
