from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from rest_framework import serializers

from apps.costing.services.comparison import ITEM_TYPES, ComparisonIngredient, ValueRange
from apps.costing.services.experiment import ExperimentEntry
from apps.costing.services.ledger import RequirementItem
from apps.costing.services.pricing import CostRollup, ProductVariantCostAnalysis, RecipeIngredientDetail
from apps.costing.services.procurement import SupplierRequirement
from apps.costing.services.requirements import ProductRequirements, VariantRequirements
from apps.recipes.models import RecipeIngredient, RecipeVariant

# Derived properties rendered next to the dataclass fields.
PAYLOAD_PROPERTIES = {
    RecipeIngredientDetail: ("display_name",),
    CostRollup: ("locked_count", "price_changed_count"),
    ExperimentEntry: ("change_state", "is_changed"),
    ValueRange: ("difference",),
    ComparisonIngredient: ("is_common", "cost_spread"),
    ProductVariantCostAnalysis: ("labels_total",),
    RequirementItem: ("shortage", "is_critical", "suggested_order_quantity"),
    VariantRequirements: ("total_cost",),
    ProductRequirements: ("total_units", "total_cost"),
    SupplierRequirement: ("item_count", "shortage_count", "order_value"),
}


def format_decimal(value: Decimal) -> str:
    return format(value.normalize(), "f") if value.is_finite() else str(value)


def to_payload(value):
    """Turn engine records into JSON-ready structures."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return format_decimal(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        payload = {item.name: to_payload(getattr(value, item.name)) for item in fields(value)}
        for cls, names in PAYLOAD_PROPERTIES.items():
            if isinstance(value, cls):
                payload.update({name: to_payload(getattr(value, name)) for name in names})
        return payload
    if isinstance(value, dict):
        return {str(to_payload(key)): to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_payload(item) for item in value]
    return value


class ExperimentOperationSerializer(serializers.Serializer):
    SET_QUANTITY = "set_quantity"
    SET_SUPPLIER = "set_supplier"
    TOGGLE_LOCK = "toggle_lock"
    REMOVE = "remove"
    RESET = "reset"
    RESET_ALL = "reset_all"
    LOAD_VARIANT = "load_variant"

    INDEXED = {SET_QUANTITY, SET_SUPPLIER, TOGGLE_LOCK, REMOVE, RESET}

    op = serializers.ChoiceField(
        choices=[SET_QUANTITY, SET_SUPPLIER, TOGGLE_LOCK, REMOVE, RESET, RESET_ALL, LOAD_VARIANT]
    )
    index = serializers.IntegerField(required=False, min_value=0)
    quantity = serializers.DecimalField(required=False, max_digits=14, decimal_places=4, min_value=Decimal("0"))
    supplier_material = serializers.UUIDField(required=False)
    variant = serializers.UUIDField(required=False)
    reason = serializers.ChoiceField(
        choices=RecipeIngredient.LockReason.choices,
        required=False,
        default=RecipeIngredient.LockReason.COST_ANALYSIS,
    )

    def validate(self, attrs):
        op = attrs["op"]
        errors = {}
        if op in self.INDEXED and "index" not in attrs:
            errors["index"] = "This field is required."
        if op == self.SET_QUANTITY and "quantity" not in attrs:
            errors["quantity"] = "This field is required."
        if op == self.SET_SUPPLIER and "supplier_material" not in attrs:
            errors["supplier_material"] = "This field is required."
        if op == self.LOAD_VARIANT and "variant" not in attrs:
            errors["variant"] = "This field is required."
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class ExperimentCommitSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    optimization_goal = serializers.ChoiceField(
        choices=RecipeVariant.OptimizationGoal.choices,
        required=False,
        default=RecipeVariant.OptimizationGoal.COST_REDUCTION,
    )


class ExperimentRequestSerializer(serializers.Serializer):
    operations = ExperimentOperationSerializer(many=True, required=False, default=list)
    target_cost_per_kg = serializers.DecimalField(
        required=False,
        allow_null=True,
        max_digits=12,
        decimal_places=4,
        min_value=Decimal("0"),
    )
    commit = ExperimentCommitSerializer(required=False)


class ComparisonItemSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ITEM_TYPES)
    id = serializers.UUIDField()


class ComparisonRequestSerializer(serializers.Serializer):
    items = ComparisonItemSerializer(many=True)

    def validate_items(self, value):
        if len(value) < 2:
            raise serializers.ValidationError("Select at least two items to compare.")
        seen = set()
        line_errors = []
        for entry in value:
            key = (entry["type"], entry["id"])
            line_errors.append({"id": "Duplicate selection."} if key in seen else {})
            seen.add(key)
        if any(line_errors):
            raise serializers.ValidationError(line_errors)
        return value
