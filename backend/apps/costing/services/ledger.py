"""Requirement records and the ledger that deduplicates them."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator, NamedTuple
from uuid import UUID

from apps.inventory.models import InventoryItemType

ZERO = Decimal("0")


class RequirementItemType(str, Enum):
    MATERIAL = "material"
    PACKAGING = "packaging"
    LABEL = "label"

    @property
    def inventory_type(self) -> str:
        return INVENTORY_TYPES[self]


INVENTORY_TYPES = {
    RequirementItemType.MATERIAL: InventoryItemType.SUPPLIER_MATERIAL,
    RequirementItemType.PACKAGING: InventoryItemType.SUPPLIER_PACKAGING,
    RequirementItemType.LABEL: InventoryItemType.SUPPLIER_LABEL,
}


class RequirementKey(NamedTuple):
    item_id: UUID
    supplier_id: UUID


@dataclass(frozen=True)
class RequirementContribution:
    product_id: UUID
    product_name: str
    variant_id: UUID
    variant_name: str
    required: Decimal
    total_cost: Decimal
    label_side: str | None = None


@dataclass
class RequirementItem:
    item_type: RequirementItemType
    item_id: UUID
    item_name: str
    supplier_id: UUID
    supplier_name: str
    unit: str
    unit_price: Decimal
    tax: Decimal
    available: Decimal = ZERO
    is_tracked: bool = False
    is_locked: bool = False
    moq: Decimal = ZERO
    required: Decimal = ZERO
    total_cost: Decimal = ZERO
    contributions: list[RequirementContribution] = field(default_factory=list)

    @property
    def key(self) -> RequirementKey:
        return RequirementKey(self.item_id, self.supplier_id)

    @property
    def shortage(self) -> Decimal:
        return self.required - self.available

    @property
    def is_critical(self) -> bool:
        return self.shortage > 0

    @property
    def suggested_order_quantity(self) -> Decimal:
        if self.shortage <= 0:
            return ZERO
        return max(self.shortage, self.moq)


class RequirementLedger:
    """Requirements of one item type, at most one entry per (item, supplier)."""

    def __init__(self, item_type: RequirementItemType):
        self.item_type = item_type
        self._items: dict[RequirementKey, RequirementItem] = {}

    def __iter__(self) -> Iterator[RequirementItem]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key) -> bool:
        return key in self._items

    def get(self, key: RequirementKey) -> RequirementItem | None:
        return self._items.get(key)

    def add(self, template: RequirementItem, contribution: RequirementContribution) -> RequirementItem:
        """Accumulate ``contribution`` into the entry for ``template.key``.

        ``template`` only seeds a new entry; pricing and stock of an existing
        entry are left as first recorded.
        """
        if template.item_type is not self.item_type:
            raise ValueError(f"Cannot add {template.item_type.value} to the {self.item_type.value} ledger.")
        item = self._items.get(template.key)
        if item is None:
            item = template
            self._items[template.key] = item
        item.required += contribution.required
        item.total_cost += contribution.total_cost
        item.contributions.append(contribution)
        return item

    def items(self) -> list[RequirementItem]:
        return list(self._items.values())

    @property
    def total_cost(self) -> Decimal:
        return sum((item.total_cost for item in self._items.values()), ZERO)
