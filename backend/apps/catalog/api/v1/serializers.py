from rest_framework import serializers

from apps.catalog.models import (
    Label,
    Material,
    Packaging,
    Supplier,
    SupplierLabel,
    SupplierMaterial,
    SupplierPackaging,
)


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ("id", "name", "rating", "lead_time_days", "is_active", "metadata", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_rating(self, value):
        if value < 0 or value > 5:
            raise serializers.ValidationError("rating must be between 0 and 5.")
        return value


class MaterialSerializer(serializers.ModelSerializer):
    class Meta:
        model = Material
        fields = ("id", "name", "category", "notes", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class PackagingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Packaging
        fields = ("id", "name", "packaging_type", "capacity", "capacity_unit", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class LabelSerializer(serializers.ModelSerializer):
    class Meta:
        model = Label
        fields = ("id", "name", "label_type", "size", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class SupplierItemSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    def validate_unit_price(self, value):
        if value < 0:
            raise serializers.ValidationError("unit_price must not be negative.")
        return value

    def validate_tax(self, value):
        if value < 0:
            raise serializers.ValidationError("tax must not be negative.")
        return value

    def validate_moq(self, value):
        if value < 0:
            raise serializers.ValidationError("moq must not be negative.")
        return value


SUPPLIER_ITEM_FIELDS = (
    "id",
    "supplier",
    "supplier_name",
    "unit_price",
    "tax",
    "moq",
    "lead_time_days",
    "notes",
    "created_at",
    "updated_at",
)


class SupplierMaterialSerializer(SupplierItemSerializer):
    material_name = serializers.CharField(source="material.name", read_only=True)

    class Meta:
        model = SupplierMaterial
        fields = SUPPLIER_ITEM_FIELDS + ("material", "material_name", "unit")
        read_only_fields = ("id", "created_at", "updated_at")


class SupplierPackagingSerializer(SupplierItemSerializer):
    packaging_name = serializers.CharField(source="packaging.name", read_only=True)

    class Meta:
        model = SupplierPackaging
        fields = SUPPLIER_ITEM_FIELDS + ("packaging", "packaging_name")
        read_only_fields = ("id", "created_at", "updated_at")


class SupplierLabelSerializer(SupplierItemSerializer):
    label_name = serializers.CharField(source="label.name", read_only=True)

    class Meta:
        model = SupplierLabel
        fields = SUPPLIER_ITEM_FIELDS + ("label", "label_name", "unit")
        read_only_fields = ("id", "created_at", "updated_at")
