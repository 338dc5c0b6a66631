from uuid import uuid4

from rest_framework import status
from rest_framework.test import APITestCase

from apps.costing.tests.factories import create_kitchen
from apps.production.models import ProductionBatch
from apps.recipes.models import RecipeVariant


def budget_flour_variant(kitchen, name="Budget flour"):
    return RecipeVariant.objects.create(
        original_recipe=kitchen.recipe,
        name=name,
        ingredient_ids=[str(kitchen.flour_line.id), str(kitchen.sugar_line.id)],
        ingredients_snapshot=[
            {
                "id": str(kitchen.flour_line.id),
                "supplier_material_id": str(kitchen.flour_budget.id),
                "quantity": "2",
                "unit": "kg",
                "locked_pricing": None,
            },
            {
                "id": str(kitchen.sugar_line.id),
                "supplier_material_id": str(kitchen.sugar_from_mill.id),
                "quantity": "3",
                "unit": "kg",
                "locked_pricing": None,
            },
        ],
    )


class RecipeCostingApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.kitchen = create_kitchen()

    def test_recipe_costing_returns_rollup_and_variance(self):
        response = self.client.get(f"/api/v1/recipes/{self.kitchen.recipe.id}/costing/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        recipe = response.json()["recipe"]
        self.assertEqual(recipe["costing"]["total_cost"], "350")
        self.assertEqual(recipe["costing"]["cost_per_kg"], "70")
        self.assertEqual(recipe["costing"]["taxed_cost_per_kg"], "72")
        self.assertEqual(recipe["variance"]["variance_from_target"], "10")
        self.assertTrue(recipe["variance"]["is_above_target"])
        self.assertEqual(recipe["top_cost_drivers"][0]["material_name"], "Flour")
        self.assertEqual([item["current_stock"] for item in recipe["ingredients_by_cost"]], ["10", None])
        self.assertEqual(response.json()["variants"], [])

    def test_recipe_costing_lists_variants_against_parent(self):
        budget_flour_variant(self.kitchen)

        response = self.client.get(f"/api/v1/recipes/{self.kitchen.recipe.id}/costing/")

        variants = response.json()["variants"]
        self.assertEqual(len(variants), 1)
        self.assertTrue(variants[0]["uses_snapshot"])
        self.assertEqual(variants[0]["costing"]["cost_per_kg"], "62")
        self.assertEqual(variants[0]["cost_difference"], "-8")

    def test_unknown_recipe_returns_404(self):
        response = self.client.get(f"/api/v1/recipes/{uuid4()}/costing/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["code"], "not_found")


class RecipeExperimentApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.kitchen = create_kitchen()
        self.url = f"/api/v1/recipes/{self.kitchen.recipe.id}/experiment/"

    def switch_flour(self):
        return {"op": "set_supplier", "index": 0, "supplier_material": str(self.kitchen.flour_budget.id)}

    def test_empty_experiment_matches_recipe(self):
        response = self.client.post(self.url, {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        metrics = response.json()["metrics"]
        self.assertEqual(metrics["original_cost_per_kg"], "70")
        self.assertEqual(metrics["modified_cost_per_kg"], "70")
        self.assertEqual(metrics["change_count"], 0)
        self.assertEqual([entry["change_state"] for entry in response.json()["entries"]], ["unchanged"] * 2)

    def test_operations_are_replayed(self):
        response = self.client.post(self.url, {"operations": [self.switch_flour()]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["entries"][0]["change_state"], "supplier_changed")
        self.assertEqual(body["metrics"]["modified_cost_per_kg"], "62")
        self.assertEqual(body["metrics"]["savings"], "8")
        self.assertEqual(body["metrics"]["target_gap"], "2")
        self.assertEqual(RecipeVariant.objects.count(), 0)

    def test_mill_flour_offers_budget_flour_as_cheaper_alternative(self):
        response = self.client.post(self.url, {}, format="json")

        alternatives = response.json()["entries"][0]["cheaper_alternatives"]
        self.assertEqual(len(alternatives), 1)
        self.assertEqual(alternatives[0]["supplier_material"]["id"], str(self.kitchen.flour_budget.id))

    def test_target_override(self):
        response = self.client.post(self.url, {"target_cost_per_kg": "75"}, format="json")

        self.assertEqual(response.json()["metrics"]["target_gap"], "-5")

    def test_out_of_range_index_returns_400(self):
        response = self.client.post(self.url, {"operations": [{"op": "remove", "index": 5}]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["code"], "validation_error")
        self.assertIn("operations", response.json()["field_errors"])

    def test_operation_without_required_fields_returns_400(self):
        response = self.client.post(self.url, {"operations": [{"op": "set_quantity", "index": 0}]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("quantity", response.json()["field_errors"]["operations"][0])

    def test_unknown_supplier_material_returns_422(self):
        operation = {"op": "set_supplier", "index": 0, "supplier_material": str(uuid4())}

        response = self.client.post(self.url, {"operations": [operation]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.json()["code"], "missing_reference")

    def test_commit_saves_variant(self):
        payload = {"operations": [self.switch_flour()], "commit": {"name": "Budget flour"}}

        response = self.client.post(self.url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        variant = RecipeVariant.objects.get()
        self.assertEqual(variant.name, "Budget flour")
        self.assertEqual(variant.optimization_goal, "cost_reduction")
        self.assertEqual(variant.ingredient_ids, [str(self.kitchen.flour_line.id), str(self.kitchen.sugar_line.id)])
        self.assertEqual(variant.ingredients_snapshot[0]["supplier_material_id"], str(self.kitchen.flour_budget.id))
        self.assertEqual([change["change_type"] for change in variant.changes], ["supplier_change"])
        self.assertEqual(response.json()["variant"]["id"], str(variant.id))

    def test_commit_with_taken_name_returns_400(self):
        budget_flour_variant(self.kitchen)

        response = self.client.post(self.url, {"commit": {"name": "Budget flour"}}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("commit", response.json()["field_errors"])

    def test_load_variant_restores_its_lines(self):
        variant = budget_flour_variant(self.kitchen)

        response = self.client.post(
            self.url, {"operations": [{"op": "load_variant", "variant": str(variant.id)}]}, format="json"
        )

        body = response.json()
        self.assertEqual(body["loaded_variant_name"], "Budget flour")
        self.assertEqual(body["entries"][0]["change_state"], "supplier_changed")
        self.assertEqual(body["metrics"]["modified_cost_per_kg"], "62")


class ComparisonApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.kitchen = create_kitchen()
        self.variant = budget_flour_variant(self.kitchen)

    def test_compare_recipe_with_variant(self):
        payload = {
            "items": [
                {"type": "recipe", "id": str(self.kitchen.recipe.id)},
                {"type": "variant", "id": str(self.variant.id)},
            ]
        }

        response = self.client.post("/api/v1/comparisons/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["items"][1]["cost_difference"], "-8")
        self.assertEqual(body["summary"]["cost_range"]["minimum"], "62")
        self.assertEqual(body["summary"]["cost_range"]["difference"], "8")
        self.assertEqual(body["summary"]["best_cost_item_name"], "Budget flour")
        self.assertEqual(body["summary"]["common_ingredient_count"], 2)
        self.assertEqual([row["material_name"] for row in body["ingredients"]], ["Flour", "Sugar"])

    def test_single_item_returns_400(self):
        payload = {"items": [{"type": "recipe", "id": str(self.kitchen.recipe.id)}]}

        response = self.client.post("/api/v1/comparisons/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("items", response.json()["field_errors"])

    def test_duplicate_selection_returns_400(self):
        item = {"type": "recipe", "id": str(self.kitchen.recipe.id)}

        response = self.client.post("/api/v1/comparisons/", {"items": [item, item]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_selection_returns_422(self):
        payload = {
            "items": [
                {"type": "recipe", "id": str(self.kitchen.recipe.id)},
                {"type": "variant", "id": str(uuid4())},
            ]
        }

        response = self.client.post("/api/v1/comparisons/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.json()["code"], "missing_reference")


class ProductVariantCostingApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.kitchen = create_kitchen()

    def test_unit_cost_and_margin(self):
        response = self.client.get(f"/api/v1/product-variants/{self.kitchen.small_jar.id}/costing/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["recipe_total_for_fill"], "36")
        self.assertEqual(body["packaging"]["total"], "11")
        self.assertEqual(body["labels_total"], "3")
        self.assertEqual(body["total_cost_with_tax"], "50")
        self.assertEqual(body["gross_profit"], "20")
        self.assertTrue(body["meets_minimum_margin"])

    def test_unknown_variant_returns_404(self):
        response = self.client.get(f"/api/v1/product-variants/{uuid4()}/costing/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ProductionBatchAnalysisApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.kitchen = create_kitchen()
        self.batch = ProductionBatch.objects.create(
            batch_number="B-001",
            items=[
                {
                    "product_id": str(self.kitchen.product.id),
                    "variants": [
                        {"variant_id": str(self.kitchen.small_jar.id), "total_fill_quantity": "5", "fill_unit": "kg"}
                    ],
                }
            ],
        )

    def test_requirements(self):
        response = self.client.get(f"/api/v1/production-batches/{self.batch.id}/requirements/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["batch_number"], "B-001")
        self.assertEqual(body["total_units"], 10)
        flour, sugar = body["materials"]
        self.assertEqual(flour["required"], "10")
        self.assertFalse(flour["is_critical"])
        self.assertEqual(sugar["required"], "15")
        self.assertFalse(sugar["is_tracked"])
        self.assertEqual(body["packaging"][0]["required"], "10")
        self.assertEqual(body["total_cost"], "1940")
        self.assertEqual([group["supplier_name"] for group in body["by_supplier"]], ["Budget Foods", "Mill & Co"])

    def test_costs(self):
        response = self.client.get(f"/api/v1/production-batches/{self.batch.id}/costs/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["total_cost"], "500")
        self.assertEqual(body["total_revenue"], "700")
        self.assertEqual(body["total_profit"], "200")
        self.assertEqual(body["materials_cost"], "360")
        self.assertEqual(body["packaging_cost"], "110")
        self.assertEqual(body["labels_cost"], "30")
        self.assertEqual(body["break_even_units"], 25)

    def test_stored_line_with_foreign_product_uses_the_variant_product(self):
        self.batch.items[0]["product_id"] = str(uuid4())
        self.batch.save()

        for endpoint in ("requirements", "costs"):
            with self.subTest(endpoint=endpoint):
                response = self.client.get(f"/api/v1/production-batches/{self.batch.id}/{endpoint}/")

                self.assertEqual(response.status_code, status.HTTP_200_OK)
                self.assertEqual(response.json()["total_cost"], "1940" if endpoint == "requirements" else "500")
                self.assertTrue(
                    any(str(self.kitchen.product.id) in message for message in response.json()["warnings"])
                )

    def test_unknown_batch_returns_404(self):
        response = self.client.get(f"/api/v1/production-batches/{uuid4()}/costs/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
