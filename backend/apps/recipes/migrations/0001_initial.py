import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Recipe",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "draft"),
                            ("testing", "testing"),
                            ("active", "active"),
                            ("archived", "archived"),
                            ("discontinued", "discontinued"),
                        ],
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("target_cost_per_kg", models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True)),
                ("target_profit_margin", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("version", models.PositiveIntegerField(default=1)),
                ("instructions", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "recipes_recipe",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="RecipeIngredient",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("quantity", models.DecimalField(decimal_places=4, max_digits=12)),
                (
                    "unit",
                    models.CharField(
                        choices=[("kg", "kg"), ("gm", "gm"), ("L", "L"), ("ml", "ml"), ("pcs", "pcs")],
                        default="kg",
                        max_length=8,
                    ),
                ),
                ("position", models.PositiveIntegerField(default=0)),
                ("locked_unit_price", models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True)),
                ("locked_tax", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("locked_at", models.DateTimeField(blank=True, null=True)),
                (
                    "lock_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("cost_analysis", "cost_analysis"),
                            ("quote", "quote"),
                            ("production_batch", "production_batch"),
                            ("other", "other"),
                        ],
                        default="",
                        max_length=32,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "recipe",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ingredients",
                        to="recipes.recipe",
                    ),
                ),
                (
                    "supplier_material",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="recipe_ingredients",
                        to="catalog.suppliermaterial",
                    ),
                ),
            ],
            options={
                "db_table": "recipes_recipe_ingredient",
                "ordering": ["recipe", "position", "created_at"],
            },
        ),
        migrations.CreateModel(
            name="RecipeVariant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("ingredient_ids", models.JSONField(blank=True, default=list)),
                ("ingredients_snapshot", models.JSONField(blank=True, null=True)),
                ("changes", models.JSONField(blank=True, default=list)),
                (
                    "optimization_goal",
                    models.CharField(
                        choices=[
                            ("cost_reduction", "cost_reduction"),
                            ("quality_improvement", "quality_improvement"),
                            ("supplier_diversification", "supplier_diversification"),
                            ("other", "other"),
                        ],
                        default="cost_reduction",
                        max_length=32,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "original_recipe",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variants",
                        to="recipes.recipe",
                    ),
                ),
            ],
            options={
                "db_table": "recipes_recipe_variant",
                "ordering": ["original_recipe", "name"],
            },
        ),
        migrations.AddConstraint(
            model_name="recipevariant",
            constraint=models.UniqueConstraint(
                fields=("original_recipe", "name"),
                name="uq_recipes_recipe_variant_recipe_name",
            ),
        ),
    ]
