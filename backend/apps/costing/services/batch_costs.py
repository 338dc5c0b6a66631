from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from apps.costing.exceptions import MissingReferenceError
from apps.costing.services.pricing import analyze_product_variant_cost, margin, percentage, strict_references
from apps.costing.services.requirements import BatchLine, parse_batch_items, product_mismatch
from apps.costing.services.snapshot import CostingSnapshot
from apps.costing.services.units import calculate_units

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class VariantCostAnalysis:
    variant_id: UUID
    variant_name: str
    product_id: UUID
    product_name: str
    fill_quantity: Decimal
    fill_unit: str
    units: int
    cost_per_unit: Decimal
    revenue_per_unit: Decimal
    total_cost: Decimal
    total_revenue: Decimal
    profit: Decimal
    margin: Decimal


@dataclass
class BatchCostAnalysis:
    total_units: int
    total_cost: Decimal
    total_revenue: Decimal
    total_profit: Decimal
    profit_margin: Decimal
    materials_cost: Decimal
    packaging_cost: Decimal
    labels_cost: Decimal
    materials_percentage: Decimal
    packaging_percentage: Decimal
    labels_percentage: Decimal
    break_even_units: int
    variant_costs: list[VariantCostAnalysis] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def analyze_batch_costs(
    items: Any,
    snapshot: CostingSnapshot,
    strict: bool | None = None,
) -> BatchCostAnalysis:
    """Cost, revenue and profit of a batch, built from per-unit variant costs.

    Material, packaging and label costs are the tax inclusive per-unit
    components multiplied by the units each line fills, so they always add
    up to ``total_cost``.
    """
    strict = strict_references(strict)
    lines: tuple[BatchLine, ...] = parse_batch_items(items)
    warnings: list[str] = []
    variant_costs: list[VariantCostAnalysis] = []
    materials_cost = packaging_cost = labels_cost = ZERO

    for line in lines:
        variant = snapshot.product_variants.get(line.variant_id)
        if variant is None:
            if strict:
                raise MissingReferenceError("Product variant", line.variant_id)
            message = f"Product variant {line.variant_id} not found; batch line skipped."
            logger.warning(message)
            warnings.append(message)
            continue

        mismatch = product_mismatch(line, variant)
        if mismatch:
            logger.warning(mismatch)
            warnings.append(mismatch)

        units = calculate_units(variant.fill_quantity, variant.fill_unit, line.total_fill_quantity, line.fill_unit)
        if units == 0:
            continue

        analysis = analyze_product_variant_cost(variant, snapshot, strict=strict)
        for message in analysis.warnings:
            if message not in warnings:
                warnings.append(message)

        count = Decimal(units)
        cost = analysis.total_cost_with_tax * count
        revenue = analysis.selling_price_per_unit * count
        materials_cost += analysis.recipe_total_for_fill * count
        packaging_cost += analysis.packaging.total * count
        labels_cost += analysis.labels_total * count

        variant_costs.append(
            VariantCostAnalysis(
                variant_id=variant.id,
                variant_name=variant.name,
                product_id=variant.product_id,
                product_name=analysis.product_name,
                fill_quantity=variant.fill_quantity,
                fill_unit=variant.fill_unit,
                units=units,
                cost_per_unit=analysis.total_cost_with_tax,
                revenue_per_unit=analysis.selling_price_per_unit,
                total_cost=cost,
                total_revenue=revenue,
                profit=revenue - cost,
                margin=margin(revenue, cost),
            )
        )

    total_units = sum(item.units for item in variant_costs)
    total_cost = sum((item.total_cost for item in variant_costs), ZERO)
    total_revenue = sum((item.total_revenue for item in variant_costs), ZERO)
    total_profit = total_revenue - total_cost

    average_profit_per_unit = total_profit / total_units if total_units else ZERO
    break_even_units = math.ceil(total_cost / average_profit_per_unit) if average_profit_per_unit > 0 else 0

    return BatchCostAnalysis(
        total_units=total_units,
        total_cost=total_cost,
        total_revenue=total_revenue,
        total_profit=total_profit,
        profit_margin=margin(total_revenue, total_cost),
        materials_cost=materials_cost,
        packaging_cost=packaging_cost,
        labels_cost=labels_cost,
        materials_percentage=percentage(materials_cost, total_cost),
        packaging_percentage=percentage(packaging_cost, total_cost),
        labels_percentage=percentage(labels_cost, total_cost),
        break_even_units=break_even_units,
        variant_costs=variant_costs,
        warnings=warnings,
    )
