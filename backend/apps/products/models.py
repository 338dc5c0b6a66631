import uuid

from django.db import models

from apps.catalog.models import CapacityUnit, SupplierLabel, SupplierPackaging
from apps.recipes.models import Recipe, RecipeVariant


class ProductStatus(models.TextChoices):
    DRAFT = "draft", "draft"
    ACTIVE = "active", "active"
    DISCONTINUED = "discontinued", "discontinued"


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=120, blank=True, default="")
    status = models.CharField(max_length=16, choices=ProductStatus.choices, default=ProductStatus.DRAFT)
    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.PROTECT,
        related_name="products",
        blank=True,
        null=True,
    )
    recipe_variant = models.ForeignKey(
        RecipeVariant,
        on_delete=models.PROTECT,
        related_name="products",
        blank=True,
        null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products_product"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(recipe__isnull=False, recipe_variant__isnull=True)
                    | models.Q(recipe__isnull=True, recipe_variant__isnull=False)
                ),
                name="ck_products_product_single_recipe_source",
            )
        ]

    def __str__(self) -> str:
        return self.name


class ProductVariant(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="variants")
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, unique=True)
    fill_quantity = models.DecimalField(max_digits=12, decimal_places=4)
    fill_unit = models.CharField(max_length=8, choices=CapacityUnit.choices, default=CapacityUnit.KG)
    packaging_selection = models.ForeignKey(
        SupplierPackaging,
        on_delete=models.SET_NULL,
        related_name="product_variants",
        blank=True,
        null=True,
    )
    front_label_selection = models.ForeignKey(
        SupplierLabel,
        on_delete=models.SET_NULL,
        related_name="front_label_variants",
        blank=True,
        null=True,
    )
    back_label_selection = models.ForeignKey(
        SupplierLabel,
        on_delete=models.SET_NULL,
        related_name="back_label_variants",
        blank=True,
        null=True,
    )
    selling_price_per_unit = models.DecimalField(max_digits=12, decimal_places=4, default=0)
    target_profit_margin = models.DecimalField(max_digits=6, decimal_places=2, blank=True, null=True)
    minimum_profit_margin = models.DecimalField(max_digits=6, decimal_places=2, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products_product_variant"
        ordering = ["product", "name"]

    def __str__(self) -> str:
        return f"{self.product.name} - {self.name} ({self.sku})"
