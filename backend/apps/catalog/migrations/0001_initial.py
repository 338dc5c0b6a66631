import uuid

import django.db.models.deletion
from django.db import migrations, models


CAPACITY_UNIT_CHOICES = [("kg", "kg"), ("gm", "gm"), ("L", "L"), ("ml", "ml"), ("pcs", "pcs")]


def supplier_item_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("unit_price", models.DecimalField(decimal_places=4, max_digits=12)),
        ("tax", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
        ("moq", models.DecimalField(decimal_places=3, default=0, max_digits=12)),
        ("lead_time_days", models.PositiveIntegerField(default=0)),
        ("notes", models.TextField(blank=True, default="")),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("rating", models.DecimalField(decimal_places=1, default=0, max_digits=3)),
                ("lead_time_days", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "catalog_supplier",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Material",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("category", models.CharField(blank=True, default="", max_length=128)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "catalog_material",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Packaging",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("packaging_type", models.CharField(blank=True, default="", max_length=64)),
                ("capacity", models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                (
                    "capacity_unit",
                    models.CharField(blank=True, choices=CAPACITY_UNIT_CHOICES, default="", max_length=8),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "catalog_packaging",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Label",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                (
                    "label_type",
                    models.CharField(
                        choices=[("sticker", "sticker"), ("tag", "tag"), ("sleeve", "sleeve"), ("other", "other")],
                        default="sticker",
                        max_length=16,
                    ),
                ),
                ("size", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "catalog_label",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="SupplierMaterial",
            fields=supplier_item_fields()
            + [
                ("unit", models.CharField(choices=CAPACITY_UNIT_CHOICES, default="kg", max_length=8)),
                (
                    "material",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="supplier_materials",
                        to="catalog.material",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="materials",
                        to="catalog.supplier",
                    ),
                ),
            ],
            options={
                "db_table": "catalog_supplier_material",
                "ordering": ["material__name", "unit_price"],
            },
        ),
        migrations.CreateModel(
            name="SupplierPackaging",
            fields=supplier_item_fields()
            + [
                (
                    "packaging",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="supplier_packaging",
                        to="catalog.packaging",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="packaging",
                        to="catalog.supplier",
                    ),
                ),
            ],
            options={
                "db_table": "catalog_supplier_packaging",
                "ordering": ["packaging__name", "unit_price"],
            },
        ),
        migrations.CreateModel(
            name="SupplierLabel",
            fields=supplier_item_fields()
            + [
                ("unit", models.CharField(default="pieces", max_length=16)),
                (
                    "label",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="supplier_labels",
                        to="catalog.label",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="labels",
                        to="catalog.supplier",
                    ),
                ),
            ],
            options={
                "db_table": "catalog_supplier_label",
                "ordering": ["label__name", "unit_price"],
            },
        ),
        migrations.AddConstraint(
            model_name="suppliermaterial",
            constraint=models.UniqueConstraint(
                fields=("material", "supplier"),
                name="uq_catalog_supplier_material_material_supplier",
            ),
        ),
        migrations.AddConstraint(
            model_name="supplierpackaging",
            constraint=models.UniqueConstraint(
                fields=("packaging", "supplier"),
                name="uq_catalog_supplier_packaging_packaging_supplier",
            ),
        ),
        migrations.AddConstraint(
            model_name="supplierlabel",
            constraint=models.UniqueConstraint(
                fields=("label", "supplier"),
                name="uq_catalog_supplier_label_label_supplier",
            ),
        ),
    ]
