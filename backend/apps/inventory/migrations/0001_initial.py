import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "item_type",
                    models.CharField(
                        choices=[
                            ("supplier_material", "supplier_material"),
                            ("supplier_packaging", "supplier_packaging"),
                            ("supplier_label", "supplier_label"),
                        ],
                        max_length=32,
                    ),
                ),
                ("item_id", models.UUIDField()),
                ("item_name", models.CharField(blank=True, default="", max_length=255)),
                ("current_stock", models.DecimalField(decimal_places=4, default=0, max_digits=14)),
                ("unit", models.CharField(default="kg", max_length=16)),
                ("min_stock_level", models.DecimalField(decimal_places=4, default=0, max_digits=14)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "inventory_item",
                "ordering": ["item_type", "item_name"],
            },
        ),
        migrations.AddConstraint(
            model_name="inventoryitem",
            constraint=models.UniqueConstraint(fields=("item_type", "item_id"), name="uq_inventory_item_type_item"),
        ),
    ]
