from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from apps.costing.exceptions import MissingReferenceError
from apps.costing.services.pricing import (
    analyze_product_variant_cost,
    cost_lines,
    cost_recipe,
    cost_recipe_variant,
    cost_recipe_variants,
    resolve_pricing,
    toggle_locked_pricing,
)
from apps.costing.tests import builders
from apps.costing.tests.builders import D


class RecipeCostingTests(SimpleTestCase):
    def setUp(self):
        self.kitchen = builders.SauceKitchen()
        self.snapshot = self.kitchen.snapshot()

    def test_two_ingredient_recipe_totals(self):
        detail = cost_recipe(self.kitchen.recipe, self.snapshot)
        costing = detail.costing

        self.assertEqual(costing.total_weight_grams, D(5000))
        self.assertEqual(costing.total_weight_kg, D(5))
        self.assertEqual(costing.total_cost, D(350))
        self.assertEqual(costing.taxed_total_cost, D(360))
        self.assertEqual(costing.cost_per_kg, D(70))
        self.assertEqual(costing.taxed_cost_per_kg, D(72))
        self.assertEqual(detail.warnings, [])

    def test_ingredient_costs_add_up_to_total(self):
        costing = cost_recipe(self.kitchen.recipe, self.snapshot).costing

        self.assertEqual(sum(item.cost for item in costing.ingredients), costing.total_cost)
        self.assertEqual(sum(item.taxed_cost for item in costing.ingredients), costing.taxed_total_cost)
        shares = sum(item.price_share_percentage for item in costing.ingredients)
        self.assertAlmostEqual(float(shares), 100.0, places=6)

    def test_ingredient_detail_names(self):
        flour = cost_recipe(self.kitchen.recipe, self.snapshot).costing.ingredients[0]

        self.assertEqual(flour.material_name, "Flour")
        self.assertEqual(flour.supplier_name, "Mill & Co")
        self.assertEqual(flour.display_name, "Flour (Mill & Co)")
        self.assertEqual(flour.taxed_cost, D(210))

    def test_grams_are_weighed_in_kilograms(self):
        rollup = cost_lines([builders.line(self.kitchen.flour_from_mill, 500, unit="gm")], self.snapshot)

        self.assertEqual(rollup.total_weight_kg, D("0.5"))
        self.assertEqual(rollup.total_cost, D(50))
        self.assertEqual(rollup.cost_per_kg, D(100))

    def test_empty_or_weightless_recipe_has_zero_cost_per_kg(self):
        empty = cost_lines([], self.snapshot)
        weightless = cost_lines([builders.line(self.kitchen.flour_from_mill, 0)], self.snapshot)

        for rollup in (empty, weightless):
            self.assertEqual(rollup.cost_per_kg, D(0))
            self.assertEqual(rollup.taxed_cost_per_kg, D(0))
        self.assertEqual(empty.ingredients, [])

    def test_variance_against_target(self):
        variance = cost_recipe(self.kitchen.recipe, self.snapshot).variance

        self.assertEqual(variance.target_cost_per_kg, D(60))
        self.assertEqual(variance.variance_from_target, D(10))
        self.assertTrue(variance.is_above_target)
        self.assertAlmostEqual(float(variance.variance_percentage), 16.6666667, places=5)

    def test_no_target_means_no_variance(self):
        plain = replace(self.kitchen.recipe, target_cost_per_kg=None)
        self.assertIsNone(cost_recipe(plain, self.snapshot).variance)

    def test_top_cost_drivers_sorted_by_cost(self):
        drivers = cost_recipe(self.kitchen.recipe, self.snapshot).top_cost_drivers
        self.assertEqual([item.material_name for item in drivers], ["Flour", "Sugar"])


class LockedPricingTests(SimpleTestCase):
    def setUp(self):
        self.kitchen = builders.SauceKitchen()
        self.snapshot = self.kitchen.snapshot()

    def test_locked_price_wins_over_live_price(self):
        locked_line = builders.line(self.kitchen.flour_from_mill, 2, locked=builders.locked(80, tax=0))
        detail = cost_lines([locked_line], self.snapshot).ingredients[0]

        self.assertTrue(detail.is_price_locked)
        self.assertEqual(detail.cost, D(160))
        self.assertEqual(detail.taxed_cost, D(160))
        self.assertEqual(detail.live_unit_price, D(100))
        self.assertEqual(detail.price_difference, D(20))
        self.assertTrue(detail.price_changed_since_lock)

    def test_locked_cost_ignores_supplier_price_changes(self):
        locked_line = builders.line(self.kitchen.flour_from_mill, 2, locked=builders.locked(100, tax=5))
        repriced = replace(self.kitchen.flour_from_mill, unit_price=D(130), tax=D(12))
        later = self.kitchen.snapshot(
            supplier_materials=[repriced, self.kitchen.sugar_from_mill, self.kitchen.flour_budget]
        )

        before = cost_lines([locked_line], self.snapshot)
        after = cost_lines([locked_line], later)

        self.assertEqual(before.total_cost, after.total_cost)
        self.assertEqual(before.taxed_total_cost, after.taxed_total_cost)
        self.assertFalse(before.ingredients[0].price_changed_since_lock)
        self.assertTrue(after.ingredients[0].price_changed_since_lock)

    def test_lock_drift_is_reported_on_recipe(self):
        drifted = replace(self.kitchen.flour_line, locked_pricing=builders.locked(90, tax=5))
        recipe = replace(self.kitchen.recipe, lines=(drifted, self.kitchen.sugar_line))

        detail = cost_recipe(recipe, self.snapshot)

        self.assertEqual(detail.costing.locked_count, 1)
        self.assertEqual(detail.costing.price_changed_count, 1)
        self.assertIn("1 locked ingredient price(s) differ from current supplier prices.", detail.warnings)

    def test_resolve_pricing_without_lock_uses_supplier(self):
        pricing = resolve_pricing(self.kitchen.flour_line, self.kitchen.flour_from_mill)
        self.assertEqual((pricing.unit_price, pricing.tax, pricing.is_locked), (D(100), D(5), False))

    def test_toggle_locks_then_unlocks(self):
        now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

        locked = toggle_locked_pricing(None, self.kitchen.flour_from_mill, now=now, reason="quote")

        self.assertEqual(locked.unit_price, D(100))
        self.assertEqual(locked.tax, D(5))
        self.assertEqual(locked.locked_at, now)
        self.assertEqual(locked.reason, "quote")
        self.assertIsNone(toggle_locked_pricing(locked, self.kitchen.flour_from_mill))

    def test_locking_without_supplier_material_raises(self):
        with self.assertRaises(MissingReferenceError):
            toggle_locked_pricing(None, None)


class MissingReferenceTests(SimpleTestCase):
    def setUp(self):
        self.kitchen = builders.SauceKitchen()
        self.orphan = builders.line(None, 4)
        self.recipe = replace(self.kitchen.recipe, lines=(self.kitchen.flour_line, self.orphan))

    def test_missing_supplier_material_costs_zero_with_warning(self):
        with self.assertLogs("apps.costing.services.pricing", level="WARNING"):
            detail = cost_recipe(self.recipe, self.kitchen.snapshot())

        orphan = detail.costing.ingredients[1]
        self.assertTrue(orphan.is_missing)
        self.assertEqual(orphan.cost, D(0))
        self.assertEqual(orphan.material_name, "Unknown Material")
        self.assertEqual(detail.costing.total_weight_kg, D(2))
        self.assertEqual(detail.costing.cost_per_kg, D(100))
        self.assertEqual(len(detail.warnings), 1)
        self.assertIn(str(self.orphan.supplier_material_id), detail.warnings[0])

    def test_strict_mode_raises(self):
        with self.assertRaises(MissingReferenceError):
            cost_recipe(self.recipe, self.kitchen.snapshot(), strict=True)

    @override_settings(BATCHCOST_STRICT_REFERENCES=True)
    def test_strict_mode_from_settings(self):
        with self.assertRaises(MissingReferenceError):
            cost_recipe(self.recipe, self.kitchen.snapshot())


class RecipeVariantCostingTests(SimpleTestCase):
    def setUp(self):
        self.kitchen = builders.SauceKitchen()

    def test_snapshot_variant_compared_with_parent(self):
        cheaper_flour = replace(self.kitchen.flour_line, supplier_material_id=self.kitchen.flour_budget.id)
        variant = builders.recipe_variant(self.kitchen.recipe, lines=[cheaper_flour, self.kitchen.sugar_line])
        snapshot = self.kitchen.snapshot(recipe_variants=[variant])

        metrics = cost_recipe_variant(variant, snapshot)

        self.assertTrue(metrics.uses_snapshot)
        self.assertEqual(metrics.costing.cost_per_kg, D(62))
        self.assertEqual(metrics.cost_difference, D(-8))
        self.assertAlmostEqual(float(metrics.cost_difference_percentage), -11.4285714, places=5)
        self.assertEqual(metrics.original_recipe_name, "Tomato Sauce")

    def test_variant_without_snapshot_uses_parent_lines_by_id(self):
        variant = builders.recipe_variant(self.kitchen.recipe, ingredient_ids=[self.kitchen.flour_line.id])
        snapshot = self.kitchen.snapshot(recipe_variants=[variant])

        metrics = cost_recipe_variant(variant, snapshot)

        self.assertFalse(metrics.uses_snapshot)
        self.assertEqual(len(metrics.costing.ingredients), 1)
        self.assertEqual(metrics.costing.cost_per_kg, D(100))
        self.assertEqual(metrics.cost_difference, D(30))

    def test_variants_of_a_recipe_sorted_by_name(self):
        second = builders.recipe_variant(self.kitchen.recipe, name="Zesty", lines=[self.kitchen.sugar_line])
        first = builders.recipe_variant(self.kitchen.recipe, name="Airy", lines=[self.kitchen.flour_line])
        snapshot = self.kitchen.snapshot(recipe_variants=[second, first])

        variants = cost_recipe_variants(self.kitchen.recipe, snapshot)

        self.assertEqual([item.name for item in variants], ["Airy", "Zesty"])

    def test_variant_of_missing_recipe_warns(self):
        other = builders.recipe(name="Gone")
        variant = builders.recipe_variant(other, lines=[self.kitchen.flour_line])
        snapshot = self.kitchen.snapshot(recipe_variants=[variant])

        with self.assertLogs("apps.costing.services.pricing", level="WARNING"):
            metrics = cost_recipe_variant(variant, snapshot)

        self.assertEqual(metrics.original_recipe_name, "Unknown Recipe")
        self.assertEqual(len(metrics.warnings), 1)


class ProductVariantCostTests(SimpleTestCase):
    def setUp(self):
        self.kitchen = builders.SauceKitchen()
        self.product = builders.product(self.kitchen.recipe)

    def analyze(self, variant, **overrides):
        snapshot = self.kitchen.snapshot(products=[self.product], product_variants=[variant], **overrides)
        return analyze_product_variant_cost(variant, snapshot)

    def test_unit_cost_with_packaging_and_labels(self):
        variant = builders.product_variant(
            self.product,
            500,
            packaging=self.kitchen.jar,
            front_label=self.kitchen.front_label,
            selling_price=70,
        )

        analysis = self.analyze(variant)

        self.assertEqual(analysis.fill_quantity_in_kg, D("0.5"))
        self.assertEqual(analysis.recipe_cost_for_fill, D(35))
        self.assertEqual(analysis.recipe_tax_for_fill, D(1))
        self.assertEqual(analysis.packaging.total, D(11))
        self.assertEqual(analysis.front_label.total, D(2))
        self.assertEqual(analysis.back_label.total, D(0))
        self.assertEqual(analysis.total_cost_without_tax, D(47))
        self.assertEqual(analysis.total_tax_amount, D(2))
        self.assertEqual(analysis.total_cost_with_tax, D(49))
        self.assertEqual(analysis.gross_profit, D(21))
        self.assertEqual(analysis.gross_profit_margin, D(30))
        self.assertEqual(analysis.cost_per_kg_with_tax, D(98))
        self.assertTrue(analysis.meets_minimum_margin)
        self.assertEqual(analysis.warnings, [])

    def test_cost_breakdown_covers_whole_unit_cost(self):
        variant = builders.product_variant(
            self.product,
            500,
            packaging=self.kitchen.jar,
            front_label=self.kitchen.front_label,
            back_label=self.kitchen.back_label,
            selling_price=80,
        )

        breakdown = self.analyze(variant).cost_breakdown

        self.assertAlmostEqual(float(sum(breakdown.values())), 100.0, places=6)

    def test_margin_warnings(self):
        variant = builders.product_variant(
            self.product,
            500,
            packaging=self.kitchen.jar,
            selling_price=40,
            minimum_profit_margin=25,
        )

        analysis = self.analyze(variant)

        self.assertFalse(analysis.meets_minimum_margin)
        self.assertIn("Margin below minimum threshold (25%).", analysis.warnings)
        self.assertIn("Selling price is below cost.", analysis.warnings)

    def test_missing_packaging_is_reported(self):
        variant = builders.product_variant(self.product, 500, selling_price=70)

        analysis = self.analyze(variant)

        self.assertEqual(analysis.packaging.name, "No packaging")
        self.assertIn("Packaging not found - cost analysis may be incomplete.", analysis.warnings)

    def test_product_built_on_recipe_variant_costs_parent_recipe(self):
        variant_recipe = builders.recipe_variant(self.kitchen.recipe, lines=[self.kitchen.sugar_line])
        self.product = builders.product(recipe_variant_ref=variant_recipe)
        variant = builders.product_variant(self.product, 1, fill_unit="kg", packaging=self.kitchen.jar)

        analysis = self.analyze(variant, recipe_variants=[variant_recipe])

        self.assertEqual(analysis.recipe_cost_per_kg, D(70))

    def test_missing_recipe_costs_only_components(self):
        orphan_product = builders.product(builders.recipe(name="Deleted"))
        variant = builders.product_variant(orphan_product, 500, packaging=self.kitchen.jar)
        snapshot = self.kitchen.snapshot(products=[orphan_product], product_variants=[variant])

        with self.assertLogs("apps.costing.services.pricing", level="WARNING"):
            analysis = analyze_product_variant_cost(variant, snapshot)

        self.assertEqual(analysis.recipe_cost_for_fill, Decimal("0"))
        self.assertEqual(analysis.total_cost_with_tax, D(11))
