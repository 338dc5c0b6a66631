"""What-if editing of a recipe's ingredients.

A :class:`RecipeExperiment` keeps each recipe line next to its working
copy. Change state is always derived by comparing the two, metrics are
recomputed on every access, and nothing is written back to the recipe.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from django.utils import timezone

from apps.costing.exceptions import MissingReferenceError
from apps.costing.services.pricing import (
    DEFAULT_LOCK_REASON,
    UNKNOWN_MATERIAL,
    CostRollup,
    apply_tax,
    cost_lines,
    percentage,
    resolve_pricing,
    toggle_locked_pricing,
)
from apps.costing.services.snapshot import (
    CostingSnapshot,
    IngredientLine,
    RecipeRef,
    RecipeVariantRef,
    SupplierMaterialRef,
)
from apps.costing.services.units import to_base_unit, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MAX_CHEAPER_ALTERNATIVES = 3


class ChangeState(str, Enum):
    UNCHANGED = "unchanged"
    QUANTITY_CHANGED = "quantity_changed"
    SUPPLIER_CHANGED = "supplier_changed"
    BOTH = "both"
    ADDED = "added"


class ChangeType(str, Enum):
    QUANTITY = "quantity_change"
    SUPPLIER = "supplier_change"
    ADDED = "ingredient_added"
    REMOVED = "ingredient_removed"


def diff_state(original: IngredientLine | None, current: IngredientLine) -> ChangeState:
    if original is None:
        return ChangeState.ADDED
    quantity_changed = (
        to_decimal(original.quantity) != to_decimal(current.quantity) or original.unit != current.unit
    )
    supplier_changed = original.supplier_material_id != current.supplier_material_id
    if quantity_changed and supplier_changed:
        return ChangeState.BOTH
    if quantity_changed:
        return ChangeState.QUANTITY_CHANGED
    if supplier_changed:
        return ChangeState.SUPPLIER_CHANGED
    return ChangeState.UNCHANGED


@dataclass(frozen=True)
class ExperimentEntry:
    original: IngredientLine | None
    current: IngredientLine
    removed: bool = False

    @property
    def change_state(self) -> ChangeState:
        return diff_state(self.original, self.current)

    @property
    def is_changed(self) -> bool:
        return self.change_state is not ChangeState.UNCHANGED


@dataclass(frozen=True)
class ExperimentMetrics:
    original_cost_per_kg: Decimal
    modified_cost_per_kg: Decimal
    original_taxed_cost_per_kg: Decimal
    modified_taxed_cost_per_kg: Decimal
    original_total_cost: Decimal
    modified_total_cost: Decimal
    original_taxed_total_cost: Decimal
    modified_taxed_total_cost: Decimal
    original_weight_kg: Decimal
    modified_weight_kg: Decimal
    savings: Decimal
    savings_percent: Decimal
    target_cost_per_kg: Decimal | None
    target_gap: Decimal | None
    change_count: int
    removed_count: int


@dataclass(frozen=True)
class VariantChange:
    change_type: ChangeType
    ingredient_name: str
    old_value: Any
    new_value: Any
    changed_at: datetime


@dataclass(frozen=True)
class RecipeVariantDraft:
    original_recipe_id: UUID
    name: str
    description: str
    ingredient_ids: tuple[UUID, ...]
    ingredients_snapshot: tuple[IngredientLine, ...]
    changes: tuple[VariantChange, ...]
    metrics: ExperimentMetrics


@dataclass(frozen=True)
class AlternativeSavings:
    supplier_material: SupplierMaterialRef
    current_cost: Decimal
    alternative_cost: Decimal
    savings: Decimal
    savings_percent: Decimal


class RecipeExperiment:
    def __init__(
        self,
        recipe: RecipeRef,
        snapshot: CostingSnapshot,
        target_cost_per_kg: Decimal | None = None,
        strict: bool | None = None,
    ):
        self.recipe = recipe
        self.snapshot = snapshot
        self.strict = strict
        self.target_cost_per_kg = (
            target_cost_per_kg if target_cost_per_kg is not None else recipe.target_cost_per_kg
        )
        self.loaded_variant_name: str | None = None
        self._entries: list[ExperimentEntry] = []
        self.reset_all()

    @property
    def entries(self) -> tuple[ExperimentEntry, ...]:
        return tuple(self._entries)

    def _entry(self, index: int) -> ExperimentEntry:
        if index < 0 or index >= len(self._entries):
            raise IndexError(f"No ingredient at position {index}.")
        return self._entries[index]

    def _update(self, index: int, **changes) -> ExperimentEntry:
        entry = self._entry(index)
        self._entries[index] = replace(entry, current=replace(entry.current, **changes))
        return self._entries[index]

    def set_quantity(self, index: int, quantity) -> ExperimentEntry:
        quantity = to_decimal(quantity)
        if quantity < 0:
            raise ValueError("quantity must not be negative.")
        return self._update(index, quantity=quantity)

    def set_supplier(self, index: int, supplier_material_id: UUID) -> ExperimentEntry:
        if supplier_material_id not in self.snapshot.supplier_materials:
            raise MissingReferenceError("Supplier material", supplier_material_id)
        return self._update(index, supplier_material_id=supplier_material_id)

    def toggle_price_lock(
        self,
        index: int,
        now: datetime | None = None,
        reason: str = DEFAULT_LOCK_REASON,
    ) -> ExperimentEntry:
        current = self._entry(index).current
        locked = toggle_locked_pricing(
            current.locked_pricing,
            self.snapshot.supplier_materials.get(current.supplier_material_id),
            supplier_material_id=current.supplier_material_id,
            now=now,
            reason=reason,
        )
        return self._update(index, locked_pricing=locked)

    def remove_ingredient(self, index: int) -> ExperimentEntry:
        entry = self._entry(index)
        if entry.original is None:
            del self._entries[index]
            return entry
        self._entries[index] = replace(entry, removed=True)
        return self._entries[index]

    def reset_one(self, index: int) -> ExperimentEntry:
        """Restore quantity, unit and supplier from the recipe; the lock is kept."""
        entry = self._entry(index)
        if entry.original is None:
            return entry
        self._entries[index] = ExperimentEntry(
            original=entry.original,
            current=replace(entry.original, locked_pricing=entry.current.locked_pricing),
        )
        return self._entries[index]

    def reset_all(self) -> None:
        locks = {entry.current.id: entry.current.locked_pricing for entry in self._entries if entry.original}
        self._entries = [
            ExperimentEntry(
                original=line,
                current=replace(line, locked_pricing=locks[line.id]) if line.id in locks else line,
            )
            for line in self.recipe.lines
        ]
        self.loaded_variant_name = None

    def load_variant(self, variant: RecipeVariantRef) -> None:
        lines_by_id = {line.id: line for line in self.snapshot.variant_lines(variant) if line.id is not None}
        known_ids = {line.id for line in self.recipe.lines}
        entries = []
        for line in self.recipe.lines:
            variant_line = lines_by_id.get(line.id)
            if variant_line is None:
                entries.append(ExperimentEntry(original=line, current=line, removed=True))
            else:
                entries.append(ExperimentEntry(original=line, current=variant_line))
        for line in self.snapshot.variant_lines(variant):
            if line.id is None or line.id not in known_ids:
                entries.append(ExperimentEntry(original=None, current=line))
        self._entries = entries
        self.loaded_variant_name = variant.name

    def working_lines(self) -> tuple[IngredientLine, ...]:
        return tuple(entry.current for entry in self._entries if not entry.removed)

    def original_rollup(self) -> CostRollup:
        return cost_lines(self.recipe.lines, self.snapshot, strict=self.strict)

    def modified_rollup(self) -> CostRollup:
        return cost_lines(self.working_lines(), self.snapshot, strict=self.strict)

    @property
    def metrics(self) -> ExperimentMetrics:
        original = self.original_rollup()
        modified = self.modified_rollup()
        savings = original.cost_per_kg - modified.cost_per_kg
        removed_count = sum(1 for entry in self._entries if entry.removed)
        changed_count = sum(1 for entry in self._entries if not entry.removed and entry.is_changed)
        target = self.target_cost_per_kg
        return ExperimentMetrics(
            original_cost_per_kg=original.cost_per_kg,
            modified_cost_per_kg=modified.cost_per_kg,
            original_taxed_cost_per_kg=original.taxed_cost_per_kg,
            modified_taxed_cost_per_kg=modified.taxed_cost_per_kg,
            original_total_cost=original.total_cost,
            modified_total_cost=modified.total_cost,
            original_taxed_total_cost=original.taxed_total_cost,
            modified_taxed_total_cost=modified.taxed_total_cost,
            original_weight_kg=original.total_weight_kg,
            modified_weight_kg=modified.total_weight_kg,
            savings=savings,
            savings_percent=percentage(savings, original.cost_per_kg),
            target_cost_per_kg=target,
            target_gap=modified.cost_per_kg - to_decimal(target) if target is not None else None,
            change_count=changed_count + removed_count,
            removed_count=removed_count,
        )

    def alternatives(self, index: int) -> list[SupplierMaterialRef]:
        return self.snapshot.alternatives_for(self._entry(index).current.supplier_material_id)

    def _material_name(self, line: IngredientLine) -> str:
        supplier_material = self.snapshot.supplier_materials.get(line.supplier_material_id)
        material = self.snapshot.materials.get(supplier_material.material_id) if supplier_material else None
        return material.name if material else UNKNOWN_MATERIAL

    def _supplier_name(self, supplier_material_id: UUID | None) -> str | None:
        supplier_material = self.snapshot.supplier_materials.get(supplier_material_id)
        if supplier_material is None:
            return None
        supplier = self.snapshot.suppliers.get(supplier_material.supplier_id)
        return supplier.name if supplier else str(supplier_material_id)

    def changes(self, now: datetime | None = None) -> list[VariantChange]:
        changed_at = now or timezone.now()
        records = []
        for entry in self._entries:
            name = self._material_name(entry.current)
            if entry.removed:
                records.append(VariantChange(ChangeType.REMOVED, name, str(entry.original.quantity), None, changed_at))
                continue
            state = entry.change_state
            if state is ChangeState.ADDED:
                records.append(VariantChange(ChangeType.ADDED, name, None, str(entry.current.quantity), changed_at))
                continue
            if state in (ChangeState.QUANTITY_CHANGED, ChangeState.BOTH):
                records.append(
                    VariantChange(
                        ChangeType.QUANTITY,
                        name,
                        f"{entry.original.quantity} {entry.original.unit}",
                        f"{entry.current.quantity} {entry.current.unit}",
                        changed_at,
                    )
                )
            if state in (ChangeState.SUPPLIER_CHANGED, ChangeState.BOTH):
                records.append(
                    VariantChange(
                        ChangeType.SUPPLIER,
                        name,
                        self._supplier_name(entry.original.supplier_material_id),
                        self._supplier_name(entry.current.supplier_material_id),
                        changed_at,
                    )
                )
        return records

    def commit(self, name: str, description: str = "", now: datetime | None = None) -> RecipeVariantDraft:
        """Freeze the working copy into a variant draft ready to be saved."""
        lines = self.working_lines()
        draft = RecipeVariantDraft(
            original_recipe_id=self.recipe.id,
            name=name,
            description=description,
            ingredient_ids=tuple(line.id for line in lines if line.id is not None),
            ingredients_snapshot=lines,
            changes=tuple(self.changes(now=now)),
            metrics=self.metrics,
        )
        logger.info(
            "Committed experiment on recipe %s as variant %r with %d change(s)",
            self.recipe.id,
            name,
            len(draft.changes),
        )
        return draft


def _taxed_line_cost(line: IngredientLine, supplier_material: SupplierMaterialRef) -> Decimal:
    pricing = resolve_pricing(replace(line, locked_pricing=None), supplier_material)
    return apply_tax(pricing.unit_price * to_base_unit(line.quantity, line.unit), pricing.tax)


def calculate_switching_savings(
    line: IngredientLine,
    alternative: SupplierMaterialRef,
    snapshot: CostingSnapshot,
) -> AlternativeSavings:
    """Taxed cost of ``line`` today versus buying it from ``alternative``."""
    current = snapshot.supplier_materials.get(line.supplier_material_id)
    if current is None:
        raise MissingReferenceError("Supplier material", line.supplier_material_id)
    pricing = resolve_pricing(line, current)
    current_cost = apply_tax(pricing.unit_price * to_base_unit(line.quantity, line.unit), pricing.tax)
    alternative_cost = _taxed_line_cost(line, alternative)
    savings = current_cost - alternative_cost
    return AlternativeSavings(
        supplier_material=alternative,
        current_cost=current_cost,
        alternative_cost=alternative_cost,
        savings=savings,
        savings_percent=percentage(savings, current_cost),
    )


def find_cheaper_alternatives(
    line: IngredientLine,
    snapshot: CostingSnapshot,
    limit: int = MAX_CHEAPER_ALTERNATIVES,
) -> list[AlternativeSavings]:
    current = snapshot.supplier_materials.get(line.supplier_material_id)
    if current is None:
        return []
    current_price = resolve_pricing(line, current).unit_price
    cheaper = [item for item in snapshot.alternatives_for(current.id) if item.unit_price < current_price]
    return [calculate_switching_savings(line, item, snapshot) for item in cheaper[:limit]]
