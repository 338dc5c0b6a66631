"""Expand a production batch into deduplicated procurement requirements.

For every (product, variant, requested quantity) line of a batch:

* materials: each recipe ingredient is scaled by the requested quantity
  (``to_base_unit(ingredient) * to_base_unit(requested)``);
* packaging: one per sellable unit;
* labels: one front and/or one back label per sellable unit.

Contributions land in three :class:`RequirementLedger` instances keyed by
``(item_id, supplier_id)`` so the same item bought from the same supplier
is never listed twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable
from uuid import UUID

from apps.costing.exceptions import InvalidBatchError, MissingReferenceError, UnrecognizedUnitError
from apps.costing.services.ledger import (
    RequirementContribution,
    RequirementItem,
    RequirementItemType,
    RequirementLedger,
)
from apps.costing.services.pricing import UNKNOWN_SUPPLIER, apply_tax, resolve_pricing, strict_references
from apps.costing.services.procurement import SupplierRequirement, group_by_supplier
from apps.costing.services.snapshot import (
    CostingSnapshot,
    ProductRef,
    ProductVariantRef,
    RecipeRef,
    SupplierItemRef,
)
from apps.costing.services.units import base_unit, calculate_units, canonical_unit, format_quantity, to_base_unit

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
FRONT = "front"
BACK = "back"


@dataclass(frozen=True)
class BatchLine:
    product_id: UUID
    variant_id: UUID
    total_fill_quantity: Decimal
    fill_unit: str


def _pick(entry: dict, *names: str) -> Any:
    for name in names:
        if name in entry:
            return entry[name]
    return None


def _parse_uuid(value: Any, where: str) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidBatchError(f"{where}: {value!r} is not a valid id.") from exc


def parse_batch_items(items: Any) -> tuple[BatchLine, ...]:
    """Validate the stored ``items`` structure of a production batch.

    Accepts both ``product_id``/``variant_id`` style keys and the
    ``productId``/``variantId`` keys of exported batches.
    """
    if not isinstance(items, (list, tuple)):
        raise InvalidBatchError("Batch items must be a list.")

    lines = []
    for item_index, item in enumerate(items):
        where = f"items[{item_index}]"
        if not isinstance(item, dict):
            raise InvalidBatchError(f"{where} must be an object.")
        product_id = _parse_uuid(_pick(item, "product_id", "productId"), f"{where}.product_id")
        variants = _pick(item, "variants")
        if not isinstance(variants, (list, tuple)):
            raise InvalidBatchError(f"{where}.variants must be a list.")

        for variant_index, variant in enumerate(variants):
            variant_where = f"{where}.variants[{variant_index}]"
            if not isinstance(variant, dict):
                raise InvalidBatchError(f"{variant_where} must be an object.")
            variant_id = _parse_uuid(_pick(variant, "variant_id", "variantId"), f"{variant_where}.variant_id")
            raw_quantity = _pick(variant, "total_fill_quantity", "totalFillQuantity")
            if isinstance(raw_quantity, bool) or raw_quantity is None:
                raise InvalidBatchError(f"{variant_where}.total_fill_quantity is required.")
            try:
                quantity = Decimal(str(raw_quantity))
            except (InvalidOperation, ValueError) as exc:
                raise InvalidBatchError(f"{variant_where}.total_fill_quantity must be a number.") from exc
            if not quantity.is_finite() or quantity < 0:
                raise InvalidBatchError(f"{variant_where}.total_fill_quantity must be a non-negative number.")
            try:
                unit = canonical_unit(_pick(variant, "fill_unit", "fillUnit"))
            except UnrecognizedUnitError as exc:
                raise InvalidBatchError(f"{variant_where}.fill_unit: {exc}") from exc
            lines.append(BatchLine(product_id, variant_id, quantity, unit))
    return tuple(lines)


def product_mismatch(line: BatchLine, variant: ProductVariantRef) -> str | None:
    """Message for a batch line whose product is not the variant's own, else ``None``."""
    if line.product_id == variant.product_id:
        return None
    return (
        f"Batch line names product {line.product_id} but variant {variant.id} belongs to product "
        f"{variant.product_id}; the variant's product is used."
    )


@dataclass(frozen=True)
class RequirementLine:
    """One item needed by one batch line, before deduplication."""

    item_type: RequirementItemType
    item_id: UUID
    item_name: str
    supplier_id: UUID
    supplier_name: str
    required: Decimal
    unit: str
    total_cost: Decimal
    label_side: str | None = None


@dataclass
class VariantRequirements:
    product_id: UUID
    product_name: str
    variant_id: UUID
    variant_name: str
    fill_quantity: Decimal
    fill_unit: str
    total_fill_quantity: Decimal
    total_fill_unit: str
    display_quantity: str
    units: int
    materials: list[RequirementLine] = field(default_factory=list)
    packaging: list[RequirementLine] = field(default_factory=list)
    labels: list[RequirementLine] = field(default_factory=list)

    @property
    def total_cost(self) -> Decimal:
        lines = self.materials + self.packaging + self.labels
        return sum((line.total_cost for line in lines), ZERO)


@dataclass
class ProductRequirements:
    product_id: UUID
    product_name: str
    variants: list[VariantRequirements] = field(default_factory=list)

    @property
    def total_units(self) -> int:
        return sum(variant.units for variant in self.variants)

    @property
    def total_cost(self) -> Decimal:
        return sum((variant.total_cost for variant in self.variants), ZERO)


@dataclass
class BatchRequirementsAnalysis:
    materials: list[RequirementItem]
    packaging: list[RequirementItem]
    labels: list[RequirementItem]
    total_material_cost: Decimal
    total_packaging_cost: Decimal
    total_label_cost: Decimal
    total_cost: Decimal
    critical_shortages: list[RequirementItem]
    total_items_to_order: int
    total_units: int
    by_supplier: list[SupplierRequirement]
    by_product: list[ProductRequirements]
    items_without_inventory: list[RequirementItem]
    warnings: list[str]

    @property
    def all_items(self) -> list[RequirementItem]:
        return self.materials + self.packaging + self.labels


class _Aggregator:
    def __init__(self, snapshot: CostingSnapshot, strict: bool):
        self.snapshot = snapshot
        self.strict = strict
        self.materials = RequirementLedger(RequirementItemType.MATERIAL)
        self.packaging = RequirementLedger(RequirementItemType.PACKAGING)
        self.labels = RequirementLedger(RequirementItemType.LABEL)
        self.products: dict[UUID, ProductRequirements] = {}
        self.warnings: list[str] = []

    def missing(self, kind: str, reference_id, consequence: str) -> None:
        if self.strict:
            raise MissingReferenceError(kind, reference_id)
        message = f"{kind} {reference_id} not found; {consequence}."
        logger.warning(message)
        self.warnings.append(message)

    def supplier_name(self, supplier_id: UUID) -> str:
        supplier = self.snapshot.suppliers.get(supplier_id)
        return supplier.name if supplier else UNKNOWN_SUPPLIER

    def template(self, item_type: RequirementItemType, item_id: UUID, **fields) -> RequirementItem:
        stock = self.snapshot.stock_for(item_type.inventory_type, item_id)
        return RequirementItem(
            item_type=item_type,
            item_id=item_id,
            available=stock if stock is not None else ZERO,
            is_tracked=stock is not None,
            **fields,
        )

    def add(
        self,
        ledger: RequirementLedger,
        template: RequirementItem,
        variant_summary: VariantRequirements,
        required: Decimal,
        total_cost: Decimal,
        label_side: str | None = None,
    ) -> RequirementLine:
        ledger.add(
            template,
            RequirementContribution(
                product_id=variant_summary.product_id,
                product_name=variant_summary.product_name,
                variant_id=variant_summary.variant_id,
                variant_name=variant_summary.variant_name,
                required=required,
                total_cost=total_cost,
                label_side=label_side,
            ),
        )
        return RequirementLine(
            item_type=template.item_type,
            item_id=template.item_id,
            item_name=template.item_name,
            supplier_id=template.supplier_id,
            supplier_name=template.supplier_name,
            required=required,
            unit=template.unit,
            total_cost=total_cost,
            label_side=label_side,
        )

    def add_materials(self, recipe: RecipeRef, requested_kg: Decimal, summary: VariantRequirements) -> None:
        for line in recipe.lines:
            supplier_material = self.snapshot.supplier_materials.get(line.supplier_material_id)
            if supplier_material is None:
                self.missing(
                    "Supplier material",
                    line.supplier_material_id,
                    f"ingredient skipped in recipe {recipe.name!r}",
                )
                continue
            pricing = resolve_pricing(line, supplier_material)
            required = to_base_unit(line.quantity, line.unit) * requested_kg
            material = self.snapshot.materials.get(supplier_material.material_id)
            template = self.template(
                RequirementItemType.MATERIAL,
                supplier_material.id,
                item_name=material.name if material else "Unknown Material",
                supplier_id=supplier_material.supplier_id,
                supplier_name=self.supplier_name(supplier_material.supplier_id),
                unit=base_unit(supplier_material.unit),
                unit_price=pricing.unit_price,
                tax=pricing.tax,
                is_locked=pricing.is_locked,
                moq=supplier_material.moq,
            )
            cost = apply_tax(required * pricing.unit_price, pricing.tax)
            summary.materials.append(self.add(self.materials, template, summary, required, cost))

    def _per_unit_item(
        self,
        ledger: RequirementLedger,
        item: SupplierItemRef,
        units: int,
        summary: VariantRequirements,
        label_side: str | None = None,
    ) -> RequirementLine:
        template = self.template(
            ledger.item_type,
            item.id,
            item_name=item.name,
            supplier_id=item.supplier_id,
            supplier_name=self.supplier_name(item.supplier_id),
            unit=base_unit(item.unit),
            unit_price=item.unit_price,
            tax=item.tax,
            moq=item.moq,
        )
        required = Decimal(units)
        cost = apply_tax(required * item.unit_price, item.tax)
        return self.add(ledger, template, summary, required, cost, label_side=label_side)

    def add_packaging(self, variant: ProductVariantRef, units: int, summary: VariantRequirements) -> None:
        if variant.packaging_id is None or units <= 0:
            return
        item = self.snapshot.supplier_packaging.get(variant.packaging_id)
        if item is None:
            self.missing("Supplier packaging", variant.packaging_id, f"packaging skipped for {variant.name!r}")
            return
        summary.packaging.append(self._per_unit_item(self.packaging, item, units, summary))

    def add_labels(self, variant: ProductVariantRef, units: int, summary: VariantRequirements) -> None:
        if units <= 0:
            return
        for side, label_id in ((FRONT, variant.front_label_id), (BACK, variant.back_label_id)):
            if label_id is None:
                continue
            item = self.snapshot.supplier_labels.get(label_id)
            if item is None:
                self.missing("Supplier label", label_id, f"{side} label skipped for {variant.name!r}")
                continue
            summary.labels.append(self._per_unit_item(self.labels, item, units, summary, label_side=side))

    def add_line(self, line: BatchLine) -> None:
        variant = self.snapshot.product_variants.get(line.variant_id)
        if variant is None:
            self.missing("Product variant", line.variant_id, "batch line skipped")
            return
        mismatch = product_mismatch(line, variant)
        if mismatch:
            logger.warning(mismatch)
            self.warnings.append(mismatch)
        product: ProductRef | None = self.snapshot.products.get(variant.product_id)
        if product is None:
            self.missing("Product", variant.product_id, "batch line skipped")
            return

        units = calculate_units(variant.fill_quantity, variant.fill_unit, line.total_fill_quantity, line.fill_unit)
        summary = VariantRequirements(
            product_id=product.id,
            product_name=product.name,
            variant_id=variant.id,
            variant_name=variant.name,
            fill_quantity=variant.fill_quantity,
            fill_unit=variant.fill_unit,
            total_fill_quantity=line.total_fill_quantity,
            total_fill_unit=line.fill_unit,
            display_quantity=format_quantity(line.total_fill_quantity, line.fill_unit),
            units=units,
        )

        recipe = self.snapshot.recipe_for_product(product)
        if recipe is None:
            self.missing(
                "Recipe for product",
                product.id,
                f"materials skipped for {product.name!r}",
            )
        else:
            self.add_materials(recipe, to_base_unit(line.total_fill_quantity, line.fill_unit), summary)
        self.add_packaging(variant, units, summary)
        self.add_labels(variant, units, summary)

        grouped = self.products.setdefault(product.id, ProductRequirements(product.id, product.name))
        grouped.variants.append(summary)


def compute_batch_requirements(
    items: Any,
    snapshot: CostingSnapshot,
    strict: bool | None = None,
) -> BatchRequirementsAnalysis:
    """Requirements for the raw ``items`` of a production batch.

    Structurally invalid items raise :class:`InvalidBatchError`. Unresolved
    references are skipped and reported in ``warnings`` unless strict
    reference checking is enabled.
    """
    lines = items if _is_parsed(items) else parse_batch_items(items)
    aggregator = _Aggregator(snapshot, strict_references(strict))
    for line in lines:
        aggregator.add_line(line)

    materials = aggregator.materials.items()
    packaging = aggregator.packaging.items()
    labels = aggregator.labels.items()
    everything = materials + packaging + labels

    total_material_cost = aggregator.materials.total_cost
    total_packaging_cost = aggregator.packaging.total_cost
    total_label_cost = aggregator.labels.total_cost
    by_product = list(aggregator.products.values())

    return BatchRequirementsAnalysis(
        materials=materials,
        packaging=packaging,
        labels=labels,
        total_material_cost=total_material_cost,
        total_packaging_cost=total_packaging_cost,
        total_label_cost=total_label_cost,
        total_cost=total_material_cost + total_packaging_cost + total_label_cost,
        critical_shortages=[item for item in everything if item.is_critical],
        total_items_to_order=len(everything),
        total_units=sum(product.total_units for product in by_product),
        by_supplier=group_by_supplier(everything),
        by_product=by_product,
        items_without_inventory=[item for item in everything if not item.is_tracked],
        warnings=aggregator.warnings,
    )


def _is_parsed(items: Iterable) -> bool:
    return isinstance(items, tuple) and all(isinstance(item, BatchLine) for item in items)
