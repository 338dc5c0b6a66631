from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from apps.costing.services.ledger import RequirementItem, RequirementItemType
from apps.costing.services.pricing import apply_tax

ZERO = Decimal("0")


@dataclass
class SupplierRequirement:
    supplier_id: UUID
    supplier_name: str
    materials: list[RequirementItem] = field(default_factory=list)
    packaging: list[RequirementItem] = field(default_factory=list)
    labels: list[RequirementItem] = field(default_factory=list)
    total_cost: Decimal = ZERO

    def bucket(self, item_type: RequirementItemType) -> list[RequirementItem]:
        if item_type is RequirementItemType.MATERIAL:
            return self.materials
        if item_type is RequirementItemType.PACKAGING:
            return self.packaging
        return self.labels

    @property
    def items(self) -> list[RequirementItem]:
        return self.materials + self.packaging + self.labels

    @property
    def item_count(self) -> int:
        return len(self.materials) + len(self.packaging) + len(self.labels)

    @property
    def shortage_count(self) -> int:
        return sum(1 for item in self.items if item.is_critical)

    @property
    def order_value(self) -> Decimal:
        """Taxed value of the suggested orders for items in shortage."""
        return sum(
            (
                apply_tax(item.suggested_order_quantity * item.unit_price, item.tax)
                for item in self.items
            ),
            ZERO,
        )


def group_by_supplier(items: Iterable[RequirementItem]) -> list[SupplierRequirement]:
    """Bucket requirement items per supplier and item type.

    Every item lands in exactly one bucket, so the supplier totals add up to
    the grand total of the items passed in.
    """
    groups: dict[UUID, SupplierRequirement] = {}
    for item in items:
        group = groups.get(item.supplier_id)
        if group is None:
            group = SupplierRequirement(item.supplier_id, item.supplier_name)
            groups[item.supplier_id] = group
        group.bucket(item.item_type).append(item)
        group.total_cost += item.total_cost
    return sorted(groups.values(), key=lambda group: (group.supplier_name.lower(), str(group.supplier_id)))
