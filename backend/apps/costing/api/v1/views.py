import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.costing.api.v1.serializers import (
    ComparisonRequestSerializer,
    ExperimentOperationSerializer,
    ExperimentRequestSerializer,
    to_payload,
)
from apps.costing.exceptions import CostingError, MissingReferenceError
from apps.costing.services.batch_costs import analyze_batch_costs
from apps.costing.services.comparison import (
    RECIPE,
    VARIANT,
    build_comparable_items,
    compare_ingredients,
    summarize_comparison,
)
from apps.costing.services.experiment import RecipeExperiment, find_cheaper_alternatives
from apps.costing.services.pricing import analyze_product_variant_cost, cost_recipe, cost_recipe_variants
from apps.costing.services.requirements import compute_batch_requirements, parse_batch_items
from apps.costing.services.snapshot import CostingSnapshot, RecipeRef, ingredient_lines_to_snapshot, load_snapshot
from apps.production.models import ProductionBatch
from apps.recipes.api.v1.serializers import RecipeVariantSerializer
from apps.recipes.models import RecipeVariant

logger = logging.getLogger(__name__)


def get_recipe(snapshot: CostingSnapshot, recipe_id) -> RecipeRef:
    recipe = snapshot.recipes.get(recipe_id)
    if recipe is None:
        raise NotFound("Recipe not found.")
    return recipe


class RecipeCostingView(APIView):
    def get(self, request, recipe_id):
        snapshot = load_snapshot(recipe_ids=[recipe_id])
        recipe = get_recipe(snapshot, recipe_id)
        detail = cost_recipe(recipe, snapshot)
        variants = cost_recipe_variants(recipe, snapshot)
        return Response({"recipe": to_payload(detail), "variants": to_payload(variants)})


class RecipeExperimentView(APIView):
    """Replay a list of edits on a recipe's working copy and report the metrics.

    With ``commit`` the resulting working copy is saved as a new recipe
    variant. The recipe itself is never modified.
    """

    def _apply(self, experiment: RecipeExperiment, snapshot: CostingSnapshot, operation: dict) -> None:
        op = operation["op"]
        index = operation.get("index")
        if op == ExperimentOperationSerializer.SET_QUANTITY:
            experiment.set_quantity(index, operation["quantity"])
        elif op == ExperimentOperationSerializer.SET_SUPPLIER:
            experiment.set_supplier(index, operation["supplier_material"])
        elif op == ExperimentOperationSerializer.TOGGLE_LOCK:
            experiment.toggle_price_lock(index, reason=operation["reason"])
        elif op == ExperimentOperationSerializer.REMOVE:
            experiment.remove_ingredient(index)
        elif op == ExperimentOperationSerializer.RESET:
            experiment.reset_one(index)
        elif op == ExperimentOperationSerializer.RESET_ALL:
            experiment.reset_all()
        elif op == ExperimentOperationSerializer.LOAD_VARIANT:
            variant = snapshot.recipe_variants.get(operation["variant"])
            if variant is None:
                raise MissingReferenceError("Recipe variant", operation["variant"])
            if variant.original_recipe_id != experiment.recipe.id:
                raise ValueError("variant belongs to another recipe.")
            experiment.load_variant(variant)

    def _result(self, experiment: RecipeExperiment, snapshot: CostingSnapshot) -> dict:
        return {
            "recipe_id": str(experiment.recipe.id),
            "loaded_variant_name": experiment.loaded_variant_name,
            "entries": [
                {
                    **to_payload(entry),
                    "cheaper_alternatives": to_payload(find_cheaper_alternatives(entry.current, snapshot)),
                }
                for entry in experiment.entries
            ],
            "costing": to_payload(experiment.modified_rollup()),
            "metrics": to_payload(experiment.metrics),
        }

    def post(self, request, recipe_id):
        serializer = ExperimentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        operations = data["operations"]
        snapshot = load_snapshot(
            recipe_ids=[recipe_id],
            recipe_variant_ids=[op["variant"] for op in operations if op.get("variant")],
            supplier_material_ids=[op["supplier_material"] for op in operations if op.get("supplier_material")],
        )
        recipe = get_recipe(snapshot, recipe_id)
        experiment = RecipeExperiment(recipe, snapshot, target_cost_per_kg=data.get("target_cost_per_kg"))

        for position, operation in enumerate(operations):
            try:
                self._apply(experiment, snapshot, operation)
            except (IndexError, ValueError) as exc:
                if isinstance(exc, CostingError):
                    raise
                raise ValidationError({"operations": [f"operations[{position}]: {exc}"]}) from exc

        result = self._result(experiment, snapshot)
        commit = data.get("commit")
        if not commit:
            return Response(result)

        if RecipeVariant.objects.filter(original_recipe_id=recipe.id, name=commit["name"]).exists():
            raise ValidationError({"commit": {"name": ["A variant with this name already exists for the recipe."]}})

        draft = experiment.commit(commit["name"], description=commit["description"])
        variant = RecipeVariant.objects.create(
            original_recipe_id=draft.original_recipe_id,
            name=draft.name,
            description=draft.description,
            ingredient_ids=[str(item) for item in draft.ingredient_ids],
            ingredients_snapshot=ingredient_lines_to_snapshot(draft.ingredients_snapshot),
            changes=to_payload(draft.changes),
            optimization_goal=commit["optimization_goal"],
        )
        logger.info("Saved recipe variant %s for recipe %s", variant.id, recipe.id)
        result["variant"] = RecipeVariantSerializer(variant).data
        return Response(result, status=status.HTTP_201_CREATED)


class ComparisonView(APIView):
    def post(self, request):
        serializer = ComparisonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        selections = [(item["type"], item["id"]) for item in serializer.validated_data["items"]]
        snapshot = load_snapshot(
            recipe_ids=[item_id for item_type, item_id in selections if item_type == RECIPE],
            recipe_variant_ids=[item_id for item_type, item_id in selections if item_type == VARIANT],
        )
        items = build_comparable_items(selections, snapshot)
        return Response(
            {
                "items": to_payload(items),
                "summary": to_payload(summarize_comparison(items)),
                "ingredients": to_payload(compare_ingredients(items)),
            }
        )


class ProductVariantCostingView(APIView):
    def get(self, request, variant_id):
        snapshot = load_snapshot(product_variant_ids=[variant_id])
        variant = snapshot.product_variants.get(variant_id)
        if variant is None:
            raise NotFound("Product variant not found.")
        return Response(to_payload(analyze_product_variant_cost(variant, snapshot)))


class BatchAnalysisView(APIView):
    """Run ``analyzer`` over a stored batch's items and wrap the result with the batch header.

    ``analyzer`` takes the raw batch items and a snapshot holding the batch's
    product variants.
    """

    analyzer = None

    def get(self, request, batch_id):
        batch = get_object_or_404(ProductionBatch, pk=batch_id)
        variant_ids = [line.variant_id for line in parse_batch_items(batch.items)]
        analysis = self.analyzer(batch.items, load_snapshot(product_variant_ids=variant_ids))
        return Response(
            {
                "batch_id": str(batch.id),
                "batch_number": batch.batch_number,
                "status": batch.status,
                **to_payload(analysis),
            }
        )


class BatchRequirementsView(BatchAnalysisView):
    analyzer = staticmethod(compute_batch_requirements)


class BatchCostsView(BatchAnalysisView):
    analyzer = staticmethod(analyze_batch_costs)
