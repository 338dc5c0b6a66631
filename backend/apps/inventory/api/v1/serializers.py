from rest_framework import serializers

from apps.catalog.models import SupplierLabel, SupplierMaterial, SupplierPackaging
from apps.inventory.models import InventoryItem, InventoryItemType

ITEM_MODELS = {
    InventoryItemType.SUPPLIER_MATERIAL: SupplierMaterial,
    InventoryItemType.SUPPLIER_PACKAGING: SupplierPackaging,
    InventoryItemType.SUPPLIER_LABEL: SupplierLabel,
}


class InventoryItemSerializer(serializers.ModelSerializer):
    is_below_minimum = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryItem
        fields = (
            "id",
            "item_type",
            "item_id",
            "item_name",
            "current_stock",
            "unit",
            "min_stock_level",
            "is_below_minimum",
            "notes",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_current_stock(self, value):
        if value < 0:
            raise serializers.ValidationError("current_stock must not be negative.")
        return value

    def validate_min_stock_level(self, value):
        if value < 0:
            raise serializers.ValidationError("min_stock_level must not be negative.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        item_type = attrs.get("item_type", getattr(self.instance, "item_type", None))
        item_id = attrs.get("item_id", getattr(self.instance, "item_id", None))
        model = ITEM_MODELS.get(item_type)
        if model is None:
            return attrs

        item = model.objects.filter(pk=item_id).first()
        if item is None:
            raise serializers.ValidationError({"item_id": f"No {item_type} with id {item_id}."})
        if not attrs.get("item_name") and not getattr(self.instance, "item_name", ""):
            attrs["item_name"] = str(item)
        return attrs
