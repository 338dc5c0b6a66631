import logging

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import mixins, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.costing.services.pricing import toggle_locked_pricing
from apps.costing.services.snapshot import ingredient_line_from_model, supplier_material_ref_from_model
from apps.recipes.api.v1.serializers import (
    RecipeIngredientSerializer,
    RecipeSerializer,
    RecipeVariantSerializer,
    ToggleLockSerializer,
)
from apps.recipes.models import Recipe, RecipeIngredient, RecipeVariant

logger = logging.getLogger(__name__)


class RecipeViewSet(viewsets.ModelViewSet):
    serializer_class = RecipeSerializer

    def get_queryset(self):
        queryset = Recipe.objects.prefetch_related(
            "ingredients__supplier_material__material",
            "ingredients__supplier_material__supplier",
        )
        status_filter = self.request.query_params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset


class RecipeIngredientViewSet(viewsets.ModelViewSet):
    serializer_class = RecipeIngredientSerializer

    def get_queryset(self):
        queryset = RecipeIngredient.objects.select_related(
            "supplier_material__material",
            "supplier_material__supplier",
        )
        recipe_id = self.request.query_params.get("recipe")
        if recipe_id:
            queryset = queryset.filter(recipe_id=recipe_id)
        return queryset


class RecipeVariantViewSet(mixins.DestroyModelMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = RecipeVariantSerializer

    def get_queryset(self):
        queryset = RecipeVariant.objects.select_related("original_recipe")
        recipe_id = self.request.query_params.get("recipe")
        if recipe_id:
            queryset = queryset.filter(original_recipe_id=recipe_id)
        return queryset


class RecipeIngredientToggleLockView(APIView):
    """Freeze the current supplier price on an ingredient, or release it."""

    @transaction.atomic
    def post(self, request, ingredient_id):
        ingredient = get_object_or_404(
            RecipeIngredient.objects.select_for_update(),
            pk=ingredient_id,
        )
        serializer = ToggleLockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        supplier_material = ingredient.supplier_material
        current = ingredient_line_from_model(ingredient).locked_pricing
        locked = toggle_locked_pricing(
            current,
            supplier_material_ref_from_model(supplier_material) if supplier_material else None,
            supplier_material_id=ingredient.supplier_material_id,
            reason=serializer.validated_data["reason"],
        )

        if locked is None:
            ingredient.locked_unit_price = None
            ingredient.locked_tax = None
            ingredient.locked_at = None
            ingredient.lock_reason = ""
        else:
            ingredient.locked_unit_price = locked.unit_price
            ingredient.locked_tax = locked.tax
            ingredient.locked_at = locked.locked_at
            ingredient.lock_reason = locked.reason
        ingredient.save(update_fields=["locked_unit_price", "locked_tax", "locked_at", "lock_reason", "updated_at"])
        logger.info("Ingredient %s price %s", ingredient.id, "locked" if locked else "unlocked")

        return Response(RecipeIngredientSerializer(ingredient).data)
