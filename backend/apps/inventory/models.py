import uuid

from django.db import models

from apps.catalog.models import CapacityUnit


class InventoryItemType(models.TextChoices):
    SUPPLIER_MATERIAL = "supplier_material", "supplier_material"
    SUPPLIER_PACKAGING = "supplier_packaging", "supplier_packaging"
    SUPPLIER_LABEL = "supplier_label", "supplier_label"


class InventoryItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    item_type = models.CharField(max_length=32, choices=InventoryItemType.choices)
    item_id = models.UUIDField()
    item_name = models.CharField(max_length=255, blank=True, default="")
    current_stock = models.DecimalField(max_digits=14, decimal_places=4, default=0)
    unit = models.CharField(max_length=16, default=CapacityUnit.KG)
    min_stock_level = models.DecimalField(max_digits=14, decimal_places=4, default=0)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_item"
        ordering = ["item_type", "item_name"]
        constraints = [
            models.UniqueConstraint(fields=["item_type", "item_id"], name="uq_inventory_item_type_item"),
        ]

    def __str__(self) -> str:
        return f"{self.item_name or self.item_id} ({self.current_stock} {self.unit})"

    @property
    def is_below_minimum(self) -> bool:
        return self.current_stock < self.min_stock_level
