from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from apps.costing.exceptions import MissingReferenceError
from apps.costing.services.pricing import CostRollup, cost_lines, cost_recipe, percentage
from apps.costing.services.snapshot import CostingSnapshot

ZERO = Decimal("0")

RECIPE = "recipe"
VARIANT = "variant"
ITEM_TYPES = (RECIPE, VARIANT)


@dataclass(frozen=True)
class ComparableItem:
    item_id: UUID
    item_type: str
    name: str
    recipe_id: UUID
    costing: CostRollup
    cost_difference: Decimal | None = None
    cost_difference_percentage: Decimal | None = None


@dataclass(frozen=True)
class ValueRange:
    minimum: Decimal
    maximum: Decimal

    @property
    def difference(self) -> Decimal:
        return self.maximum - self.minimum


@dataclass
class ComparisonSummary:
    item_count: int
    cost_range: ValueRange
    weight_range: ValueRange
    best_cost_item_id: UUID | None
    best_cost_item_name: str
    worst_cost_item_id: UUID | None
    worst_cost_item_name: str
    common_ingredient_count: int
    unique_ingredient_counts: dict[UUID, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ComparisonValue:
    item_id: UUID
    present: bool
    quantity_in_kg: Decimal = ZERO
    supplier_names: tuple[str, ...] = ()
    cost: Decimal = ZERO
    taxed_cost: Decimal = ZERO
    price_share_percentage: Decimal = ZERO


@dataclass
class ComparisonIngredient:
    material_key: str
    material_name: str
    values: list[ComparisonValue]

    @property
    def is_common(self) -> bool:
        return all(value.present for value in self.values)

    @property
    def cost_spread(self) -> Decimal:
        costs = [value.cost for value in self.values if value.present]
        return max(costs) - min(costs) if costs else ZERO


def build_comparable_items(
    selections: Iterable[tuple[str, UUID]],
    snapshot: CostingSnapshot,
    strict: bool | None = None,
) -> list[ComparableItem]:
    """Cost every selected recipe or recipe variant.

    Selections are explicit user choices, so an unknown id raises
    :class:`MissingReferenceError` instead of being skipped.
    """
    items = []
    parent_costs: dict[UUID, Decimal] = {}
    for item_type, item_id in selections:
        if item_type == RECIPE:
            recipe = snapshot.recipes.get(item_id)
            if recipe is None:
                raise MissingReferenceError("Recipe", item_id)
            detail = cost_recipe(recipe, snapshot, strict=strict)
            items.append(
                ComparableItem(
                    item_id=recipe.id,
                    item_type=RECIPE,
                    name=recipe.name,
                    recipe_id=recipe.id,
                    costing=detail.costing,
                )
            )
        elif item_type == VARIANT:
            variant = snapshot.recipe_variants.get(item_id)
            if variant is None:
                raise MissingReferenceError("Recipe variant", item_id)
            parent = snapshot.recipes.get(variant.original_recipe_id)
            if parent is not None and parent.id not in parent_costs:
                parent_costs[parent.id] = cost_lines(parent.lines, snapshot, strict=strict).cost_per_kg
            rollup = cost_lines(snapshot.variant_lines(variant), snapshot, strict=strict)
            parent_cost = parent_costs.get(variant.original_recipe_id)
            difference = rollup.cost_per_kg - parent_cost if parent_cost is not None else None
            items.append(
                ComparableItem(
                    item_id=variant.id,
                    item_type=VARIANT,
                    name=variant.name,
                    recipe_id=variant.original_recipe_id,
                    costing=rollup,
                    cost_difference=difference,
                    cost_difference_percentage=(
                        percentage(difference, parent_cost) if difference is not None else None
                    ),
                )
            )
        else:
            raise ValueError(f"Unsupported comparison item type: {item_type!r}.")
    return items


def _material_key(detail) -> str:
    if detail.material_id is not None:
        return str(detail.material_id)
    return f"missing:{detail.supplier_material_id}"


def _materials_by_item(items: list[ComparableItem]) -> dict[UUID, set[str]]:
    return {
        item.item_id: {_material_key(detail) for detail in item.costing.ingredients} for item in items
    }


def summarize_comparison(items: list[ComparableItem]) -> ComparisonSummary:
    if not items:
        empty = ValueRange(ZERO, ZERO)
        return ComparisonSummary(
            item_count=0,
            cost_range=empty,
            weight_range=empty,
            best_cost_item_id=None,
            best_cost_item_name="",
            worst_cost_item_id=None,
            worst_cost_item_name="",
            common_ingredient_count=0,
        )

    costs = [item.costing.cost_per_kg for item in items]
    weights = [item.costing.total_weight_kg for item in items]
    best = min(items, key=lambda item: item.costing.cost_per_kg)
    worst = max(items, key=lambda item: item.costing.cost_per_kg)

    materials = _materials_by_item(items)
    common = set.intersection(*materials.values())
    unique_counts = {}
    for item_id, keys in materials.items():
        others = set().union(*(other for other_id, other in materials.items() if other_id != item_id))
        unique_counts[item_id] = len(keys - others)

    return ComparisonSummary(
        item_count=len(items),
        cost_range=ValueRange(min(costs), max(costs)),
        weight_range=ValueRange(min(weights), max(weights)),
        best_cost_item_id=best.item_id,
        best_cost_item_name=best.name,
        worst_cost_item_id=worst.item_id,
        worst_cost_item_name=worst.name,
        common_ingredient_count=len(common),
        unique_ingredient_counts=unique_counts,
    )


def compare_ingredients(items: list[ComparableItem]) -> list[ComparisonIngredient]:
    """One row per material across all items, sorted by material name."""
    names: dict[str, str] = {}
    per_item: dict[UUID, dict[str, ComparisonValue]] = {}
    for item in items:
        values: dict[str, ComparisonValue] = {}
        for detail in item.costing.ingredients:
            key = _material_key(detail)
            names.setdefault(key, detail.material_name)
            previous = values.get(key)
            if previous is None:
                values[key] = ComparisonValue(
                    item_id=item.item_id,
                    present=True,
                    quantity_in_kg=detail.quantity_in_kg,
                    supplier_names=(detail.supplier_name,),
                    cost=detail.cost,
                    taxed_cost=detail.taxed_cost,
                    price_share_percentage=detail.price_share_percentage,
                )
            else:
                suppliers = previous.supplier_names
                if detail.supplier_name not in suppliers:
                    suppliers = suppliers + (detail.supplier_name,)
                values[key] = ComparisonValue(
                    item_id=item.item_id,
                    present=True,
                    quantity_in_kg=previous.quantity_in_kg + detail.quantity_in_kg,
                    supplier_names=suppliers,
                    cost=previous.cost + detail.cost,
                    taxed_cost=previous.taxed_cost + detail.taxed_cost,
                    price_share_percentage=previous.price_share_percentage + detail.price_share_percentage,
                )
        per_item[item.item_id] = values

    rows = [
        ComparisonIngredient(
            material_key=key,
            material_name=name,
            values=[
                per_item[item.item_id].get(key) or ComparisonValue(item_id=item.item_id, present=False)
                for item in items
            ],
        )
        for key, name in names.items()
    ]
    rows.sort(key=lambda row: (row.material_name.lower(), row.material_key))
    return rows
