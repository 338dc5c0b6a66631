import uuid

from django.db import models


class CapacityUnit(models.TextChoices):
    KG = "kg", "kg"
    GM = "gm", "gm"
    L = "L", "L"
    ML = "ml", "ml"
    PCS = "pcs", "pcs"


class Supplier(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    rating = models.DecimalField(max_digits=3, decimal_places=1, default=0)
    lead_time_days = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_supplier"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Material(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    category = models.CharField(max_length=128, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_material"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class SupplierItem(models.Model):
    """Fields shared by every supplier price list row."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    unit_price = models.DecimalField(max_digits=12, decimal_places=4)
    tax = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    moq = models.DecimalField(max_digits=12, decimal_places=3, default=0)
    lead_time_days = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SupplierMaterial(SupplierItem):
    material = models.ForeignKey(Material, on_delete=models.CASCADE, related_name="supplier_materials")
    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name="materials")
    unit = models.CharField(max_length=8, choices=CapacityUnit.choices, default=CapacityUnit.KG)

    class Meta:
        db_table = "catalog_supplier_material"
        ordering = ["material__name", "unit_price"]
        constraints = [
            models.UniqueConstraint(
                fields=["material", "supplier"],
                name="uq_catalog_supplier_material_material_supplier",
            )
        ]

    def __str__(self) -> str:
        return f"{self.supplier.name} - {self.material.name}"


class Packaging(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    packaging_type = models.CharField(max_length=64, blank=True, default="")
    capacity = models.DecimalField(max_digits=12, decimal_places=3, blank=True, null=True)
    capacity_unit = models.CharField(max_length=8, choices=CapacityUnit.choices, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_packaging"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class SupplierPackaging(SupplierItem):
    packaging = models.ForeignKey(Packaging, on_delete=models.CASCADE, related_name="supplier_packaging")
    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name="packaging")

    class Meta:
        db_table = "catalog_supplier_packaging"
        ordering = ["packaging__name", "unit_price"]
        constraints = [
            models.UniqueConstraint(
                fields=["packaging", "supplier"],
                name="uq_catalog_supplier_packaging_packaging_supplier",
            )
        ]

    def __str__(self) -> str:
        return f"{self.supplier.name} - {self.packaging.name}"


class Label(models.Model):
    class LabelType(models.TextChoices):
        STICKER = "sticker", "sticker"
        TAG = "tag", "tag"
        SLEEVE = "sleeve", "sleeve"
        OTHER = "other", "other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    label_type = models.CharField(max_length=16, choices=LabelType.choices, default=LabelType.STICKER)
    size = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_label"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class SupplierLabel(SupplierItem):
    label = models.ForeignKey(Label, on_delete=models.CASCADE, related_name="supplier_labels")
    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name="labels")
    unit = models.CharField(max_length=16, default="pieces")

    class Meta:
        db_table = "catalog_supplier_label"
        ordering = ["label__name", "unit_price"]
        constraints = [
            models.UniqueConstraint(
                fields=["label", "supplier"],
                name="uq_catalog_supplier_label_label_supplier",
            )
        ]

    def __str__(self) -> str:
        return f"{self.supplier.name} - {self.label.name}"
