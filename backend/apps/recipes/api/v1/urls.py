from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.recipes.api.v1.views import (
    RecipeIngredientToggleLockView,
    RecipeIngredientViewSet,
    RecipeVariantViewSet,
    RecipeViewSet,
)


router = DefaultRouter()
router.register("recipes", RecipeViewSet, basename="recipe")
router.register("recipe-ingredients", RecipeIngredientViewSet, basename="recipe-ingredient")
router.register("recipe-variants", RecipeVariantViewSet, basename="recipe-variant")

urlpatterns = [
    path(
        "recipe-ingredients/<uuid:ingredient_id>/toggle-lock/",
        RecipeIngredientToggleLockView.as_view(),
        name="recipe-ingredient-toggle-lock",
    ),
]

urlpatterns += router.urls
