from rest_framework import serializers

from apps.products.models import Product, ProductVariant


class ProductVariantSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = ProductVariant
        fields = (
            "id",
            "product",
            "product_name",
            "name",
            "sku",
            "fill_quantity",
            "fill_unit",
            "packaging_selection",
            "front_label_selection",
            "back_label_selection",
            "selling_price_per_unit",
            "target_profit_margin",
            "minimum_profit_margin",
            "is_active",
            "notes",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_fill_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("fill_quantity must be greater than 0.")
        return value

    def validate_selling_price_per_unit(self, value):
        if value < 0:
            raise serializers.ValidationError("selling_price_per_unit must not be negative.")
        return value


class ProductSerializer(serializers.ModelSerializer):
    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = (
            "id",
            "name",
            "description",
            "category",
            "status",
            "recipe",
            "recipe_variant",
            "variants",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def validate(self, attrs):
        attrs = super().validate(attrs)
        recipe = attrs.get("recipe", getattr(self.instance, "recipe", None))
        recipe_variant = attrs.get("recipe_variant", getattr(self.instance, "recipe_variant", None))
        if (recipe is None) == (recipe_variant is None):
            raise serializers.ValidationError(
                {"recipe": "Exactly one of recipe or recipe_variant must be set."}
            )
        return attrs
