from django.urls import path

from apps.costing.api.v1.views import (
    BatchCostsView,
    BatchRequirementsView,
    ComparisonView,
    ProductVariantCostingView,
    RecipeCostingView,
    RecipeExperimentView,
)


urlpatterns = [
    path("recipes/<uuid:recipe_id>/costing/", RecipeCostingView.as_view(), name="recipe-costing"),
    path("recipes/<uuid:recipe_id>/experiment/", RecipeExperimentView.as_view(), name="recipe-experiment"),
    path("comparisons/", ComparisonView.as_view(), name="comparison"),
    path(
        "product-variants/<uuid:variant_id>/costing/",
        ProductVariantCostingView.as_view(),
        name="product-variant-costing",
    ),
    path(
        "production-batches/<uuid:batch_id>/requirements/",
        BatchRequirementsView.as_view(),
        name="production-batch-requirements",
    ),
    path(
        "production-batches/<uuid:batch_id>/costs/",
        BatchCostsView.as_view(),
        name="production-batch-costs",
    ),
]
