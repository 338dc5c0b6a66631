from rest_framework import serializers

from apps.recipes.models import Recipe, RecipeIngredient, RecipeVariant


class RecipeIngredientSerializer(serializers.ModelSerializer):
    material_name = serializers.CharField(source="supplier_material.material.name", read_only=True, default=None)
    supplier_name = serializers.CharField(source="supplier_material.supplier.name", read_only=True, default=None)
    is_price_locked = serializers.BooleanField(read_only=True)

    class Meta:
        model = RecipeIngredient
        fields = (
            "id",
            "recipe",
            "supplier_material",
            "material_name",
            "supplier_name",
            "quantity",
            "unit",
            "position",
            "is_price_locked",
            "locked_unit_price",
            "locked_tax",
            "locked_at",
            "lock_reason",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "locked_unit_price",
            "locked_tax",
            "locked_at",
            "lock_reason",
            "created_at",
            "updated_at",
        )

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than 0.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.instance is None and attrs.get("supplier_material") is None:
            raise serializers.ValidationError({"supplier_material": "This field is required."})
        return attrs


class RecipeSerializer(serializers.ModelSerializer):
    ingredients = RecipeIngredientSerializer(many=True, read_only=True)

    class Meta:
        model = Recipe
        fields = (
            "id",
            "name",
            "description",
            "status",
            "target_cost_per_kg",
            "target_profit_margin",
            "version",
            "instructions",
            "ingredients",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_target_cost_per_kg(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("target_cost_per_kg must not be negative.")
        return value


class RecipeVariantSerializer(serializers.ModelSerializer):
    original_recipe_name = serializers.CharField(source="original_recipe.name", read_only=True)

    class Meta:
        model = RecipeVariant
        fields = (
            "id",
            "original_recipe",
            "original_recipe_name",
            "name",
            "description",
            "ingredient_ids",
            "ingredients_snapshot",
            "changes",
            "optimization_goal",
            "is_active",
            "notes",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class ToggleLockSerializer(serializers.Serializer):
    reason = serializers.ChoiceField(
        choices=RecipeIngredient.LockReason.choices,
        required=False,
        default=RecipeIngredient.LockReason.COST_ANALYSIS,
    )
