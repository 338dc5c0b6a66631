import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("recipes", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True, default="")),
                ("category", models.CharField(blank=True, default="", max_length=120)),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "draft"), ("active", "active"), ("discontinued", "discontinued")],
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "recipe",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="products",
                        to="recipes.recipe",
                    ),
                ),
                (
                    "recipe_variant",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="products",
                        to="recipes.recipevariant",
                    ),
                ),
            ],
            options={
                "db_table": "products_product",
                "ordering": ["name"],
            },
        ),
        migrations.AddConstraint(
            model_name="product",
            constraint=models.CheckConstraint(
                condition=(
                    models.Q(recipe__isnull=False, recipe_variant__isnull=True)
                    | models.Q(recipe__isnull=True, recipe_variant__isnull=False)
                ),
                name="ck_products_product_single_recipe_source",
            ),
        ),
        migrations.CreateModel(
            name="ProductVariant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("fill_quantity", models.DecimalField(decimal_places=4, max_digits=12)),
                (
                    "fill_unit",
                    models.CharField(
                        choices=[("kg", "kg"), ("gm", "gm"), ("L", "L"), ("ml", "ml"), ("pcs", "pcs")],
                        default="kg",
                        max_length=8,
                    ),
                ),
                ("selling_price_per_unit", models.DecimalField(decimal_places=4, default=0, max_digits=12)),
                ("target_profit_margin", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("minimum_profit_margin", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variants",
                        to="products.product",
                    ),
                ),
                (
                    "packaging_selection",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="product_variants",
                        to="catalog.supplierpackaging",
                    ),
                ),
                (
                    "front_label_selection",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="front_label_variants",
                        to="catalog.supplierlabel",
                    ),
                ),
                (
                    "back_label_selection",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="back_label_variants",
                        to="catalog.supplierlabel",
                    ),
                ),
            ],
            options={
                "db_table": "products_product_variant",
                "ordering": ["product", "name"],
            },
        ),
    ]
