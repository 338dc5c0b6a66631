import uuid

from django.db import models

from apps.catalog.models import CapacityUnit, SupplierMaterial


class Recipe(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "draft"
        TESTING = "testing", "testing"
        ACTIVE = "active", "active"
        ARCHIVED = "archived", "archived"
        DISCONTINUED = "discontinued", "discontinued"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    target_cost_per_kg = models.DecimalField(max_digits=12, decimal_places=4, blank=True, null=True)
    target_profit_margin = models.DecimalField(max_digits=6, decimal_places=2, blank=True, null=True)
    version = models.PositiveIntegerField(default=1)
    instructions = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "recipes_recipe"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class RecipeIngredient(models.Model):
    class LockReason(models.TextChoices):
        COST_ANALYSIS = "cost_analysis", "cost_analysis"
        QUOTE = "quote", "quote"
        PRODUCTION_BATCH = "production_batch", "production_batch"
        OTHER = "other", "other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    recipe = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="ingredients")
    supplier_material = models.ForeignKey(
        SupplierMaterial,
        on_delete=models.SET_NULL,
        related_name="recipe_ingredients",
        blank=True,
        null=True,
    )
    quantity = models.DecimalField(max_digits=12, decimal_places=4)
    unit = models.CharField(max_length=8, choices=CapacityUnit.choices, default=CapacityUnit.KG)
    position = models.PositiveIntegerField(default=0)
    locked_unit_price = models.DecimalField(max_digits=12, decimal_places=4, blank=True, null=True)
    locked_tax = models.DecimalField(max_digits=5, decimal_places=2, blank=True, null=True)
    locked_at = models.DateTimeField(blank=True, null=True)
    lock_reason = models.CharField(max_length=32, choices=LockReason.choices, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "recipes_recipe_ingredient"
        ordering = ["recipe", "position", "created_at"]

    def __str__(self) -> str:
        return f"{self.recipe.name} - {self.quantity} {self.unit}"

    @property
    def is_price_locked(self) -> bool:
        return self.locked_unit_price is not None


class RecipeVariant(models.Model):
    class OptimizationGoal(models.TextChoices):
        COST_REDUCTION = "cost_reduction", "cost_reduction"
        QUALITY_IMPROVEMENT = "quality_improvement", "quality_improvement"
        SUPPLIER_DIVERSIFICATION = "supplier_diversification", "supplier_diversification"
        OTHER = "other", "other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    original_recipe = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="variants")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    ingredient_ids = models.JSONField(default=list, blank=True)
    ingredients_snapshot = models.JSONField(blank=True, null=True)
    changes = models.JSONField(default=list, blank=True)
    optimization_goal = models.CharField(
        max_length=32,
        choices=OptimizationGoal.choices,
        default=OptimizationGoal.COST_REDUCTION,
    )
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "recipes_recipe_variant"
        ordering = ["original_recipe", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["original_recipe", "name"],
                name="uq_recipes_recipe_variant_recipe_name",
            )
        ]

    def __str__(self) -> str:
        return f"{self.original_recipe.name} / {self.name}"
