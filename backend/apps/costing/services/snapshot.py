"""Immutable, fully loaded view of the data the costing pipeline reads.

``load_snapshot`` issues every query up front; the pure functions in
``pricing``, ``requirements`` and friends only ever see the resulting
:class:`CostingSnapshot`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping
from uuid import UUID

from django.db.models import Q
from django.utils.dateparse import parse_datetime

from apps.catalog.models import Material, Supplier, SupplierLabel, SupplierMaterial, SupplierPackaging
from apps.inventory.models import InventoryItem, InventoryItemType
from apps.products.models import Product, ProductVariant
from apps.recipes.models import Recipe, RecipeIngredient, RecipeVariant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterialRef:
    id: UUID
    name: str
    category: str = ""


@dataclass(frozen=True)
class SupplierRef:
    id: UUID
    name: str
    rating: Decimal = Decimal("0")
    lead_time_days: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class SupplierMaterialRef:
    id: UUID
    material_id: UUID
    supplier_id: UUID
    unit_price: Decimal
    tax: Decimal = Decimal("0")
    unit: str = "kg"
    moq: Decimal = Decimal("0")


@dataclass(frozen=True)
class SupplierItemRef:
    """A packaging or label price list row."""

    id: UUID
    item_id: UUID
    name: str
    supplier_id: UUID
    unit_price: Decimal
    tax: Decimal = Decimal("0")
    unit: str = "pcs"
    moq: Decimal = Decimal("0")


@dataclass(frozen=True)
class LockedPricing:
    unit_price: Decimal
    tax: Decimal
    locked_at: datetime | None = None
    reason: str = "cost_analysis"


@dataclass(frozen=True)
class IngredientLine:
    id: UUID | None
    supplier_material_id: UUID | None
    quantity: Decimal
    unit: str
    locked_pricing: LockedPricing | None = None


@dataclass(frozen=True)
class RecipeRef:
    id: UUID
    name: str
    status: str = "draft"
    target_cost_per_kg: Decimal | None = None
    target_profit_margin: Decimal | None = None
    version: int = 1
    lines: tuple[IngredientLine, ...] = ()


@dataclass(frozen=True)
class RecipeVariantRef:
    id: UUID
    original_recipe_id: UUID
    name: str
    description: str = ""
    ingredient_ids: tuple[UUID, ...] = ()
    ingredients_snapshot: tuple[IngredientLine, ...] | None = None
    is_active: bool = True


@dataclass(frozen=True)
class ProductRef:
    id: UUID
    name: str
    status: str = "draft"
    recipe_id: UUID | None = None
    recipe_variant_id: UUID | None = None


@dataclass(frozen=True)
class ProductVariantRef:
    id: UUID
    product_id: UUID
    name: str
    fill_quantity: Decimal
    fill_unit: str
    sku: str = ""
    packaging_id: UUID | None = None
    front_label_id: UUID | None = None
    back_label_id: UUID | None = None
    selling_price_per_unit: Decimal = Decimal("0")
    minimum_profit_margin: Decimal | None = None
    is_active: bool = True


def _freeze(items: Iterable) -> Mapping:
    return MappingProxyType({item.id: item for item in items})


@dataclass(frozen=True)
class CostingSnapshot:
    materials: Mapping[UUID, MaterialRef] = field(default_factory=lambda: MappingProxyType({}))
    suppliers: Mapping[UUID, SupplierRef] = field(default_factory=lambda: MappingProxyType({}))
    supplier_materials: Mapping[UUID, SupplierMaterialRef] = field(default_factory=lambda: MappingProxyType({}))
    supplier_packaging: Mapping[UUID, SupplierItemRef] = field(default_factory=lambda: MappingProxyType({}))
    supplier_labels: Mapping[UUID, SupplierItemRef] = field(default_factory=lambda: MappingProxyType({}))
    recipes: Mapping[UUID, RecipeRef] = field(default_factory=lambda: MappingProxyType({}))
    recipe_variants: Mapping[UUID, RecipeVariantRef] = field(default_factory=lambda: MappingProxyType({}))
    products: Mapping[UUID, ProductRef] = field(default_factory=lambda: MappingProxyType({}))
    product_variants: Mapping[UUID, ProductVariantRef] = field(default_factory=lambda: MappingProxyType({}))
    inventory: Mapping[tuple[str, UUID], Decimal] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(
        cls,
        materials=(),
        suppliers=(),
        supplier_materials=(),
        supplier_packaging=(),
        supplier_labels=(),
        recipes=(),
        recipe_variants=(),
        products=(),
        product_variants=(),
        inventory=None,
    ) -> "CostingSnapshot":
        return cls(
            materials=_freeze(materials),
            suppliers=_freeze(suppliers),
            supplier_materials=_freeze(supplier_materials),
            supplier_packaging=_freeze(supplier_packaging),
            supplier_labels=_freeze(supplier_labels),
            recipes=_freeze(recipes),
            recipe_variants=_freeze(recipe_variants),
            products=_freeze(products),
            product_variants=_freeze(product_variants),
            inventory=MappingProxyType(dict(inventory or {})),
        )

    def stock_for(self, item_type: str, item_id: UUID) -> Decimal | None:
        """Current stock, or ``None`` when the item is not tracked."""
        return self.inventory.get((item_type, item_id))

    def alternatives_for(self, supplier_material_id: UUID) -> list[SupplierMaterialRef]:
        current = self.supplier_materials.get(supplier_material_id)
        if current is None:
            return []
        candidates = [
            item
            for item in self.supplier_materials.values()
            if item.material_id == current.material_id and item.id != current.id
        ]
        return sorted(candidates, key=lambda item: (item.unit_price, str(item.id)))

    def variant_lines(self, variant: RecipeVariantRef) -> tuple[IngredientLine, ...]:
        """Lines a recipe variant costs with.

        The saved snapshot wins. Older variants that only kept ingredient ids
        are resolved against the parent recipe's current lines.
        """
        if variant.ingredients_snapshot is not None:
            return variant.ingredients_snapshot
        parent = self.recipes.get(variant.original_recipe_id)
        if parent is None:
            return ()
        wanted = set(variant.ingredient_ids)
        return tuple(line for line in parent.lines if line.id in wanted)

    def recipe_for_product(self, product: ProductRef) -> RecipeRef | None:
        if product.recipe_variant_id is not None:
            variant = self.recipe_variants.get(product.recipe_variant_id)
            if variant is None:
                return None
            return self.recipes.get(variant.original_recipe_id)
        if product.recipe_id is None:
            return None
        return self.recipes.get(product.recipe_id)


def supplier_material_ref_from_model(supplier_material) -> SupplierMaterialRef:
    return SupplierMaterialRef(
        id=supplier_material.id,
        material_id=supplier_material.material_id,
        supplier_id=supplier_material.supplier_id,
        unit_price=supplier_material.unit_price,
        tax=supplier_material.tax,
        unit=supplier_material.unit,
        moq=supplier_material.moq,
    )


def locked_pricing_from_fields(unit_price, tax, locked_at, reason) -> LockedPricing | None:
    if unit_price is None:
        return None
    return LockedPricing(
        unit_price=Decimal(str(unit_price)),
        tax=Decimal(str(tax if tax is not None else 0)),
        locked_at=locked_at,
        reason=reason or "cost_analysis",
    )


def ingredient_line_from_model(ingredient) -> IngredientLine:
    return IngredientLine(
        id=ingredient.id,
        supplier_material_id=ingredient.supplier_material_id,
        quantity=ingredient.quantity,
        unit=ingredient.unit,
        locked_pricing=locked_pricing_from_fields(
            ingredient.locked_unit_price,
            ingredient.locked_tax,
            ingredient.locked_at,
            ingredient.lock_reason,
        ),
    )


def ingredient_lines_from_snapshot(entries) -> tuple[IngredientLine, ...]:
    """Rebuild lines from the JSON stored on ``RecipeVariant.ingredients_snapshot``."""
    lines = []
    for entry in entries:
        locked = entry.get("locked_pricing") or None
        lines.append(
            IngredientLine(
                id=UUID(entry["id"]) if entry.get("id") else None,
                supplier_material_id=(
                    UUID(entry["supplier_material_id"]) if entry.get("supplier_material_id") else None
                ),
                quantity=Decimal(str(entry.get("quantity", "0"))),
                unit=entry.get("unit", "kg"),
                locked_pricing=(
                    locked_pricing_from_fields(
                        locked.get("unit_price"),
                        locked.get("tax"),
                        parse_datetime(locked["locked_at"]) if locked.get("locked_at") else None,
                        locked.get("reason"),
                    )
                    if locked
                    else None
                ),
            )
        )
    return tuple(lines)


def ingredient_lines_to_snapshot(lines: Iterable[IngredientLine]) -> list[dict]:
    entries = []
    for line in lines:
        locked = line.locked_pricing
        entries.append(
            {
                "id": str(line.id) if line.id else None,
                "supplier_material_id": str(line.supplier_material_id) if line.supplier_material_id else None,
                "quantity": str(line.quantity),
                "unit": line.unit,
                "locked_pricing": (
                    {
                        "unit_price": str(locked.unit_price),
                        "tax": str(locked.tax),
                        "locked_at": locked.locked_at.isoformat() if locked.locked_at else None,
                        "reason": locked.reason,
                    }
                    if locked
                    else None
                ),
            }
        )
    return entries


def recipe_variant_ref_from_model(variant) -> RecipeVariantRef:
    return RecipeVariantRef(
        id=variant.id,
        original_recipe_id=variant.original_recipe_id,
        name=variant.name,
        description=variant.description,
        ingredient_ids=tuple(UUID(str(item)) for item in variant.ingredient_ids or []),
        ingredients_snapshot=(
            ingredient_lines_from_snapshot(variant.ingredients_snapshot)
            if variant.ingredients_snapshot is not None
            else None
        ),
        is_active=variant.is_active,
    )


def _narrow(queryset, ids, lookup="id__in"):
    """``queryset`` limited to ``ids``; ``None`` leaves it untouched."""
    if ids is None:
        return queryset
    return queryset.filter(**{lookup: {item for item in ids if item is not None}})


def load_snapshot(
    *,
    recipe_ids: Iterable[UUID] | None = None,
    recipe_variant_ids: Iterable[UUID] | None = None,
    product_variant_ids: Iterable[UUID] | None = None,
    supplier_material_ids: Iterable[UUID] | None = None,
) -> CostingSnapshot:
    """Read the entities the pipeline needs with a fixed number of queries.

    Called without arguments every table is read. Given ids, only rows
    reachable from them are loaded: product variants pull in their product,
    its recipe and their packaging and labels; recipes pull in all of their
    variants and ingredients, and every supplier offer for the materials those
    ingredients use so cheaper alternatives can still be found.
    """
    scoped = any(
        ids is not None for ids in (recipe_ids, recipe_variant_ids, product_variant_ids, supplier_material_ids)
    )

    def wanted(ids):
        return set(ids or ()) if scoped else None

    product_variants = list(_narrow(ProductVariant.objects.all(), wanted(product_variant_ids)))
    products = list(
        _narrow(Product.objects.all(), {pv.product_id for pv in product_variants} if scoped else None)
    )

    recipe_ids = wanted(recipe_ids)
    recipe_variant_ids = wanted(recipe_variant_ids)
    variant_queryset = RecipeVariant.objects.all()
    if scoped:
        recipe_variant_ids |= {p.recipe_variant_id for p in products if p.recipe_variant_id}
        recipe_ids |= {p.recipe_id for p in products if p.recipe_id}
        recipe_ids |= set(
            RecipeVariant.objects.filter(id__in=recipe_variant_ids).values_list("original_recipe_id", flat=True)
        )
        variant_queryset = variant_queryset.filter(
            Q(id__in=recipe_variant_ids) | Q(original_recipe_id__in=recipe_ids)
        )
    recipe_variants = [recipe_variant_ref_from_model(v) for v in variant_queryset]

    lines_by_recipe: dict[UUID, list[IngredientLine]] = {}
    ingredients = _narrow(
        RecipeIngredient.objects.order_by("recipe_id", "position", "created_at"), recipe_ids, "recipe_id__in"
    )
    for ingredient in ingredients:
        lines_by_recipe.setdefault(ingredient.recipe_id, []).append(ingredient_line_from_model(ingredient))

    supplier_material_queryset = SupplierMaterial.objects.all()
    if scoped:
        referenced = wanted(supplier_material_ids)
        referenced |= {line.supplier_material_id for lines in lines_by_recipe.values() for line in lines}
        referenced |= {
            line.supplier_material_id for variant in recipe_variants for line in variant.ingredients_snapshot or ()
        }
        referenced.discard(None)
        # Every offer for a referenced material, not just the referenced offer.
        supplier_material_queryset = supplier_material_queryset.filter(
            material_id__in=SupplierMaterial.objects.filter(id__in=referenced).values("material_id")
        )
    supplier_materials = [supplier_material_ref_from_model(sm) for sm in supplier_material_queryset]

    supplier_packaging = list(
        _narrow(
            SupplierPackaging.objects.select_related("packaging"),
            {pv.packaging_selection_id for pv in product_variants} if scoped else None,
        )
    )
    supplier_labels = list(
        _narrow(
            SupplierLabel.objects.select_related("label"),
            (
                {pv.front_label_selection_id for pv in product_variants}
                | {pv.back_label_selection_id for pv in product_variants}
            )
            if scoped
            else None,
        )
    )

    materials = _narrow(Material.objects.all(), {sm.material_id for sm in supplier_materials} if scoped else None)
    suppliers = _narrow(
        Supplier.objects.all(),
        (
            {sm.supplier_id for sm in supplier_materials}
            | {sp.supplier_id for sp in supplier_packaging}
            | {sl.supplier_id for sl in supplier_labels}
        )
        if scoped
        else None,
    )

    inventory = InventoryItem.objects.only("item_type", "item_id", "current_stock")
    if scoped:
        inventory = inventory.filter(
            Q(item_type=InventoryItemType.SUPPLIER_MATERIAL, item_id__in=[sm.id for sm in supplier_materials])
            | Q(item_type=InventoryItemType.SUPPLIER_PACKAGING, item_id__in=[sp.id for sp in supplier_packaging])
            | Q(item_type=InventoryItemType.SUPPLIER_LABEL, item_id__in=[sl.id for sl in supplier_labels])
        )

    snapshot = CostingSnapshot.build(
        materials=[MaterialRef(id=m.id, name=m.name, category=m.category) for m in materials],
        suppliers=[
            SupplierRef(
                id=s.id,
                name=s.name,
                rating=s.rating,
                lead_time_days=s.lead_time_days,
                is_active=s.is_active,
            )
            for s in suppliers
        ],
        supplier_materials=supplier_materials,
        supplier_packaging=[
            SupplierItemRef(
                id=sp.id,
                item_id=sp.packaging_id,
                name=sp.packaging.name,
                supplier_id=sp.supplier_id,
                unit_price=sp.unit_price,
                tax=sp.tax,
                moq=sp.moq,
            )
            for sp in supplier_packaging
        ],
        supplier_labels=[
            SupplierItemRef(
                id=sl.id,
                item_id=sl.label_id,
                name=sl.label.name,
                supplier_id=sl.supplier_id,
                unit_price=sl.unit_price,
                tax=sl.tax,
                unit=sl.unit,
                moq=sl.moq,
            )
            for sl in supplier_labels
        ],
        recipes=[
            RecipeRef(
                id=r.id,
                name=r.name,
                status=r.status,
                target_cost_per_kg=r.target_cost_per_kg,
                target_profit_margin=r.target_profit_margin,
                version=r.version,
                lines=tuple(lines_by_recipe.get(r.id, ())),
            )
            for r in _narrow(Recipe.objects.all(), recipe_ids)
        ],
        recipe_variants=recipe_variants,
        products=[
            ProductRef(
                id=p.id,
                name=p.name,
                status=p.status,
                recipe_id=p.recipe_id,
                recipe_variant_id=p.recipe_variant_id,
            )
            for p in products
        ],
        product_variants=[
            ProductVariantRef(
                id=pv.id,
                product_id=pv.product_id,
                name=pv.name,
                sku=pv.sku,
                fill_quantity=pv.fill_quantity,
                fill_unit=pv.fill_unit,
                packaging_id=pv.packaging_selection_id,
                front_label_id=pv.front_label_selection_id,
                back_label_id=pv.back_label_selection_id,
                selling_price_per_unit=pv.selling_price_per_unit,
                minimum_profit_margin=pv.minimum_profit_margin,
                is_active=pv.is_active,
            )
            for pv in product_variants
        ],
        inventory={(item.item_type, item.item_id): item.current_stock for item in inventory},
    )
    logger.debug(
        "Loaded %s costing snapshot: %d recipes, %d supplier materials, %d product variants",
        "scoped" if scoped else "full",
        len(snapshot.recipes),
        len(snapshot.supplier_materials),
        len(snapshot.product_variants),
    )
    return snapshot
