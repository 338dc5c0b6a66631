from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from django.conf import settings
from django.utils import timezone

from apps.costing.exceptions import MissingReferenceError
from apps.costing.services.snapshot import (
    CostingSnapshot,
    IngredientLine,
    LockedPricing,
    ProductVariantRef,
    RecipeRef,
    RecipeVariantRef,
    SupplierItemRef,
    SupplierMaterialRef,
)
from apps.costing.services.units import GRAMS_PER_KG, to_base_unit, to_decimal
from apps.inventory.models import InventoryItemType

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEFAULT_LOCK_REASON = "cost_analysis"
UNKNOWN_MATERIAL = "Unknown Material"
UNKNOWN_SUPPLIER = "Unknown Supplier"
TOP_COST_DRIVERS = 3


def strict_references(strict: bool | None = None) -> bool:
    if strict is not None:
        return strict
    return bool(getattr(settings, "BATCHCOST_STRICT_REFERENCES", False))


def apply_tax(amount: Decimal, tax: Decimal) -> Decimal:
    return amount * (1 + to_decimal(tax) / HUNDRED)


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return ZERO
    return part / whole * HUNDRED


def margin(selling_price: Decimal, cost: Decimal) -> Decimal:
    if not selling_price or selling_price <= 0:
        return ZERO
    return (selling_price - cost) / selling_price * HUNDRED


@dataclass(frozen=True)
class ResolvedPricing:
    unit_price: Decimal
    tax: Decimal
    is_locked: bool


def resolve_pricing(line: IngredientLine, supplier_material: SupplierMaterialRef | None) -> ResolvedPricing:
    """Locked pricing wins over the live supplier price, field by field."""
    locked = line.locked_pricing
    live_price = supplier_material.unit_price if supplier_material else None
    live_tax = supplier_material.tax if supplier_material else None
    if locked is not None:
        unit_price = locked.unit_price if locked.unit_price is not None else live_price
        tax = locked.tax if locked.tax is not None else live_tax
        return ResolvedPricing(to_decimal(unit_price), to_decimal(tax), True)
    return ResolvedPricing(to_decimal(live_price), to_decimal(live_tax), False)


def lock_pricing(
    supplier_material: SupplierMaterialRef,
    now: datetime | None = None,
    reason: str = DEFAULT_LOCK_REASON,
) -> LockedPricing:
    return LockedPricing(
        unit_price=supplier_material.unit_price,
        tax=to_decimal(supplier_material.tax),
        locked_at=now or timezone.now(),
        reason=reason,
    )


def toggle_locked_pricing(
    current: LockedPricing | None,
    supplier_material: SupplierMaterialRef | None,
    supplier_material_id: UUID | None = None,
    now: datetime | None = None,
    reason: str = DEFAULT_LOCK_REASON,
) -> LockedPricing | None:
    """Clear an existing lock, or freeze the current supplier price."""
    if current is not None:
        return None
    if supplier_material is None:
        raise MissingReferenceError("Supplier material", supplier_material_id)
    return lock_pricing(supplier_material, now=now, reason=reason)


@dataclass
class RecipeIngredientDetail:
    ingredient_id: UUID | None
    supplier_material_id: UUID | None
    material_id: UUID | None
    material_name: str
    supplier_id: UUID | None
    supplier_name: str
    quantity: Decimal
    unit: str
    quantity_in_kg: Decimal
    unit_price: Decimal
    tax: Decimal
    cost: Decimal
    taxed_cost: Decimal
    is_price_locked: bool
    locked_pricing: LockedPricing | None
    live_unit_price: Decimal | None
    price_changed_since_lock: bool
    price_difference: Decimal
    is_missing: bool = False
    price_share_percentage: Decimal = ZERO
    current_stock: Decimal | None = None

    @property
    def display_name(self) -> str:
        return f"{self.material_name} ({self.supplier_name})"


@dataclass
class CostRollup:
    ingredients: list[RecipeIngredientDetail]
    total_weight_kg: Decimal
    total_weight_grams: Decimal
    total_cost: Decimal
    taxed_total_cost: Decimal
    cost_per_kg: Decimal
    taxed_cost_per_kg: Decimal
    warnings: list[str] = field(default_factory=list)

    @property
    def locked_count(self) -> int:
        return sum(1 for item in self.ingredients if item.is_price_locked)

    @property
    def price_changed_count(self) -> int:
        return sum(1 for item in self.ingredients if item.price_changed_since_lock)


def cost_ingredient(
    line: IngredientLine,
    snapshot: CostingSnapshot,
    strict: bool | None = None,
    warnings: list[str] | None = None,
) -> RecipeIngredientDetail:
    supplier_material = snapshot.supplier_materials.get(line.supplier_material_id)
    quantity_in_kg = to_base_unit(line.quantity, line.unit)

    if supplier_material is None:
        if strict_references(strict):
            raise MissingReferenceError("Supplier material", line.supplier_material_id)
        message = f"Supplier material {line.supplier_material_id} not found; ingredient costed at 0."
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        return RecipeIngredientDetail(
            ingredient_id=line.id,
            supplier_material_id=line.supplier_material_id,
            material_id=None,
            material_name=UNKNOWN_MATERIAL,
            supplier_id=None,
            supplier_name=UNKNOWN_SUPPLIER,
            quantity=to_decimal(line.quantity),
            unit=line.unit,
            quantity_in_kg=quantity_in_kg,
            unit_price=ZERO,
            tax=ZERO,
            cost=ZERO,
            taxed_cost=ZERO,
            is_price_locked=line.locked_pricing is not None,
            locked_pricing=line.locked_pricing,
            live_unit_price=None,
            price_changed_since_lock=False,
            price_difference=ZERO,
            is_missing=True,
        )

    pricing = resolve_pricing(line, supplier_material)
    cost = pricing.unit_price * quantity_in_kg
    material = snapshot.materials.get(supplier_material.material_id)
    supplier = snapshot.suppliers.get(supplier_material.supplier_id)
    locked = line.locked_pricing
    price_difference = supplier_material.unit_price - locked.unit_price if locked else ZERO

    return RecipeIngredientDetail(
        ingredient_id=line.id,
        supplier_material_id=supplier_material.id,
        material_id=supplier_material.material_id,
        material_name=material.name if material else UNKNOWN_MATERIAL,
        supplier_id=supplier_material.supplier_id,
        supplier_name=supplier.name if supplier else UNKNOWN_SUPPLIER,
        quantity=to_decimal(line.quantity),
        unit=line.unit,
        quantity_in_kg=quantity_in_kg,
        unit_price=pricing.unit_price,
        tax=pricing.tax,
        cost=cost,
        taxed_cost=apply_tax(cost, pricing.tax),
        is_price_locked=pricing.is_locked,
        locked_pricing=locked,
        live_unit_price=supplier_material.unit_price,
        price_changed_since_lock=locked is not None and price_difference != 0,
        price_difference=price_difference,
        current_stock=snapshot.stock_for(InventoryItemType.SUPPLIER_MATERIAL, supplier_material.id),
    )


def cost_lines(
    lines: Iterable[IngredientLine],
    snapshot: CostingSnapshot,
    strict: bool | None = None,
) -> CostRollup:
    warnings: list[str] = []
    details = [cost_ingredient(line, snapshot, strict=strict, warnings=warnings) for line in lines]

    total_weight_kg = sum((item.quantity_in_kg for item in details if not item.is_missing), ZERO)
    total_cost = sum((item.cost for item in details), ZERO)
    taxed_total_cost = sum((item.taxed_cost for item in details), ZERO)

    for item in details:
        item.price_share_percentage = percentage(item.cost, total_cost)

    has_weight = total_weight_kg > 0
    return CostRollup(
        ingredients=details,
        total_weight_kg=total_weight_kg,
        total_weight_grams=total_weight_kg * GRAMS_PER_KG,
        total_cost=total_cost,
        taxed_total_cost=taxed_total_cost,
        cost_per_kg=total_cost / total_weight_kg if has_weight else ZERO,
        taxed_cost_per_kg=taxed_total_cost / total_weight_kg if has_weight else ZERO,
        warnings=warnings,
    )


@dataclass(frozen=True)
class Variance:
    target_cost_per_kg: Decimal
    variance_from_target: Decimal
    variance_percentage: Decimal
    is_above_target: bool


def variance_against(cost_per_kg: Decimal, target_cost_per_kg: Decimal | None) -> Variance | None:
    if target_cost_per_kg is None:
        return None
    target = to_decimal(target_cost_per_kg)
    difference = cost_per_kg - target
    return Variance(
        target_cost_per_kg=target,
        variance_from_target=difference,
        variance_percentage=percentage(difference, target),
        is_above_target=difference > 0,
    )


def ingredients_by_cost(rollup: CostRollup) -> list[RecipeIngredientDetail]:
    return sorted(rollup.ingredients, key=lambda item: item.cost, reverse=True)


def top_cost_drivers(rollup: CostRollup, limit: int = TOP_COST_DRIVERS) -> list[RecipeIngredientDetail]:
    return ingredients_by_cost(rollup)[:limit]


@dataclass
class RecipeDetail:
    recipe_id: UUID
    name: str
    status: str
    version: int
    target_cost_per_kg: Decimal | None
    target_profit_margin: Decimal | None
    costing: CostRollup
    variance: Variance | None
    ingredients_by_cost: list[RecipeIngredientDetail]
    top_cost_drivers: list[RecipeIngredientDetail]
    warnings: list[str]


def _lock_warnings(rollup: CostRollup) -> list[str]:
    changed = rollup.price_changed_count
    if not changed:
        return []
    return [f"{changed} locked ingredient price(s) differ from current supplier prices."]


def cost_recipe(recipe: RecipeRef, snapshot: CostingSnapshot, strict: bool | None = None) -> RecipeDetail:
    rollup = cost_lines(recipe.lines, snapshot, strict=strict)
    return RecipeDetail(
        recipe_id=recipe.id,
        name=recipe.name,
        status=recipe.status,
        version=recipe.version,
        target_cost_per_kg=recipe.target_cost_per_kg,
        target_profit_margin=recipe.target_profit_margin,
        costing=rollup,
        variance=variance_against(rollup.cost_per_kg, recipe.target_cost_per_kg),
        ingredients_by_cost=ingredients_by_cost(rollup),
        top_cost_drivers=top_cost_drivers(rollup),
        warnings=rollup.warnings + _lock_warnings(rollup),
    )


@dataclass
class RecipeVariantWithMetrics:
    variant_id: UUID
    original_recipe_id: UUID
    original_recipe_name: str
    name: str
    description: str
    is_active: bool
    uses_snapshot: bool
    costing: CostRollup
    variance: Variance | None
    cost_difference: Decimal
    cost_difference_percentage: Decimal
    warnings: list[str]


def cost_recipe_variant(
    variant: RecipeVariantRef,
    snapshot: CostingSnapshot,
    parent: RecipeDetail | None = None,
    strict: bool | None = None,
) -> RecipeVariantWithMetrics:
    """Cost a variant and compare its cost per kg with its parent recipe."""
    recipe = snapshot.recipes.get(variant.original_recipe_id)
    warnings: list[str] = []
    if recipe is None:
        if strict_references(strict):
            raise MissingReferenceError("Recipe", variant.original_recipe_id)
        message = f"Recipe {variant.original_recipe_id} for variant {variant.name!r} not found."
        logger.warning(message)
        warnings.append(message)
    elif parent is None:
        parent = cost_recipe(recipe, snapshot, strict=strict)

    rollup = cost_lines(snapshot.variant_lines(variant), snapshot, strict=strict)
    parent_cost_per_kg = parent.costing.cost_per_kg if parent else ZERO
    difference = rollup.cost_per_kg - parent_cost_per_kg
    target = recipe.target_cost_per_kg if recipe else None

    return RecipeVariantWithMetrics(
        variant_id=variant.id,
        original_recipe_id=variant.original_recipe_id,
        original_recipe_name=recipe.name if recipe else "Unknown Recipe",
        name=variant.name,
        description=variant.description,
        is_active=variant.is_active,
        uses_snapshot=variant.ingredients_snapshot is not None,
        costing=rollup,
        variance=variance_against(rollup.cost_per_kg, target),
        cost_difference=difference,
        cost_difference_percentage=percentage(difference, parent_cost_per_kg),
        warnings=warnings + rollup.warnings,
    )


def cost_recipe_variants(
    recipe: RecipeRef,
    snapshot: CostingSnapshot,
    strict: bool | None = None,
) -> list[RecipeVariantWithMetrics]:
    parent = cost_recipe(recipe, snapshot, strict=strict)
    variants = [item for item in snapshot.recipe_variants.values() if item.original_recipe_id == recipe.id]
    variants.sort(key=lambda item: item.name)
    return [cost_recipe_variant(item, snapshot, parent=parent, strict=strict) for item in variants]


@dataclass(frozen=True)
class ComponentCost:
    name: str
    unit_price: Decimal
    tax: Decimal
    tax_amount: Decimal
    total: Decimal

    @classmethod
    def from_item(cls, item: SupplierItemRef | None, fallback_name: str) -> "ComponentCost":
        if item is None:
            return cls(name=fallback_name, unit_price=ZERO, tax=ZERO, tax_amount=ZERO, total=ZERO)
        tax_amount = item.unit_price * to_decimal(item.tax) / HUNDRED
        return cls(
            name=item.name,
            unit_price=item.unit_price,
            tax=to_decimal(item.tax),
            tax_amount=tax_amount,
            total=item.unit_price + tax_amount,
        )


@dataclass
class ProductVariantCostAnalysis:
    variant_id: UUID
    variant_name: str
    sku: str
    product_id: UUID
    product_name: str
    fill_quantity: Decimal
    fill_unit: str
    fill_quantity_in_kg: Decimal
    recipe_cost_per_kg: Decimal
    recipe_tax_per_kg: Decimal
    recipe_cost_for_fill: Decimal
    recipe_tax_for_fill: Decimal
    recipe_total_for_fill: Decimal
    packaging: ComponentCost
    front_label: ComponentCost
    back_label: ComponentCost
    total_cost_without_tax: Decimal
    total_tax_amount: Decimal
    total_cost_with_tax: Decimal
    cost_per_kg_without_tax: Decimal
    cost_per_kg_with_tax: Decimal
    selling_price_per_unit: Decimal
    gross_profit: Decimal
    gross_profit_margin: Decimal
    minimum_profit_margin: Decimal | None
    meets_minimum_margin: bool
    cost_breakdown: dict[str, Decimal]
    warnings: list[str]

    @property
    def labels_total(self) -> Decimal:
        return self.front_label.total + self.back_label.total


def analyze_product_variant_cost(
    variant: ProductVariantRef,
    snapshot: CostingSnapshot,
    strict: bool | None = None,
) -> ProductVariantCostAnalysis:
    """Unit cost and profitability of one sellable product variant.

    The fill is costed from the product's recipe (the parent recipe when the
    product was built from a recipe variant), then packaging and labels are
    added per unit, all tax inclusive.
    """
    warnings: list[str] = []
    product = snapshot.products.get(variant.product_id)
    recipe = snapshot.recipe_for_product(product) if product else None
    if recipe is None:
        if strict_references(strict):
            raise MissingReferenceError("Recipe for product", variant.product_id)
        message = f"No recipe resolved for product {variant.product_id}; material cost is 0."
        logger.warning(message)
        warnings.append(message)
        rollup = cost_lines((), snapshot, strict=strict)
    else:
        rollup = cost_lines(recipe.lines, snapshot, strict=strict)
        warnings.extend(rollup.warnings)

    fill_in_kg = to_base_unit(variant.fill_quantity, variant.fill_unit)
    recipe_tax_per_kg = rollup.taxed_cost_per_kg - rollup.cost_per_kg
    recipe_cost_for_fill = rollup.cost_per_kg * fill_in_kg
    recipe_tax_for_fill = recipe_tax_per_kg * fill_in_kg

    packaging_item = snapshot.supplier_packaging.get(variant.packaging_id)
    if packaging_item is None:
        warnings.append("Packaging not found - cost analysis may be incomplete.")
    packaging = ComponentCost.from_item(packaging_item, "No packaging")
    front_label = ComponentCost.from_item(snapshot.supplier_labels.get(variant.front_label_id), "No front label")
    back_label = ComponentCost.from_item(snapshot.supplier_labels.get(variant.back_label_id), "No back label")
    components = (packaging, front_label, back_label)

    total_without_tax = recipe_cost_for_fill + sum((item.unit_price for item in components), ZERO)
    total_tax = recipe_tax_for_fill + sum((item.tax_amount for item in components), ZERO)
    total_with_tax = total_without_tax + total_tax
    selling_price = to_decimal(variant.selling_price_per_unit)
    gross_margin = margin(selling_price, total_with_tax)

    minimum = variant.minimum_profit_margin
    meets_minimum = minimum is None or gross_margin >= minimum
    if not meets_minimum:
        warnings.append(f"Margin below minimum threshold ({minimum}%).")
    if selling_price > 0 and gross_margin < 0:
        warnings.append("Selling price is below cost.")

    recipe_total_for_fill = recipe_cost_for_fill + recipe_tax_for_fill
    return ProductVariantCostAnalysis(
        variant_id=variant.id,
        variant_name=variant.name,
        sku=variant.sku,
        product_id=variant.product_id,
        product_name=product.name if product else "Unknown Product",
        fill_quantity=to_decimal(variant.fill_quantity),
        fill_unit=variant.fill_unit,
        fill_quantity_in_kg=fill_in_kg,
        recipe_cost_per_kg=rollup.cost_per_kg,
        recipe_tax_per_kg=recipe_tax_per_kg,
        recipe_cost_for_fill=recipe_cost_for_fill,
        recipe_tax_for_fill=recipe_tax_for_fill,
        recipe_total_for_fill=recipe_total_for_fill,
        packaging=packaging,
        front_label=front_label,
        back_label=back_label,
        total_cost_without_tax=total_without_tax,
        total_tax_amount=total_tax,
        total_cost_with_tax=total_with_tax,
        cost_per_kg_without_tax=total_without_tax / fill_in_kg if fill_in_kg > 0 else ZERO,
        cost_per_kg_with_tax=total_with_tax / fill_in_kg if fill_in_kg > 0 else ZERO,
        selling_price_per_unit=selling_price,
        gross_profit=selling_price - total_with_tax,
        gross_profit_margin=gross_margin,
        minimum_profit_margin=minimum,
        meets_minimum_margin=meets_minimum,
        cost_breakdown={
            "recipe": percentage(recipe_total_for_fill, total_with_tax),
            "packaging": percentage(packaging.total, total_with_tax),
            "front_label": percentage(front_label.total, total_with_tax),
            "back_label": percentage(back_label.total, total_with_tax),
        },
        warnings=warnings,
    )
