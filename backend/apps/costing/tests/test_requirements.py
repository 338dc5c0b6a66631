from decimal import Decimal
from uuid import uuid4

from django.test import SimpleTestCase

from apps.costing.exceptions import InvalidBatchError, MissingReferenceError
from apps.costing.services.ledger import (
    RequirementContribution,
    RequirementItem,
    RequirementItemType,
    RequirementKey,
    RequirementLedger,
)
from apps.costing.services.requirements import compute_batch_requirements, parse_batch_items
from apps.costing.tests import builders
from apps.costing.tests.builders import D

MATERIAL_STOCK = "supplier_material"


class BatchRequirementsTests(SimpleTestCase):
    def setUp(self):
        self.kitchen = builders.SauceKitchen()
        self.product = builders.product(self.kitchen.recipe)
        self.small_jar = builders.product_variant(
            self.product,
            500,
            packaging=self.kitchen.jar,
            front_label=self.kitchen.front_label,
            back_label=self.kitchen.back_label,
            selling_price=70,
        )
        self.large_jar = builders.product_variant(
            self.product,
            1,
            fill_unit="kg",
            packaging=self.kitchen.jar,
            front_label=self.kitchen.front_label,
            selling_price=120,
            name="1 kg",
        )

    def snapshot(self, **overrides):
        entities = {"products": [self.product], "product_variants": [self.small_jar, self.large_jar]}
        entities.update(overrides)
        return self.kitchen.snapshot(**entities)

    def item_for(self, items, item_id):
        matches = [item for item in items if item.item_id == item_id]
        self.assertEqual(len(matches), 1)
        return matches[0]

    def test_same_material_and_supplier_is_listed_once(self):
        items = [builders.batch_item(self.product, (self.small_jar, 10, "kg"), (self.large_jar, 5, "kg"))]

        analysis = compute_batch_requirements(items, self.snapshot())

        flour = self.item_for(analysis.materials, self.kitchen.flour_from_mill.id)
        self.assertEqual(flour.required, D(30))
        self.assertEqual(len(flour.contributions), 2)
        self.assertEqual(sum(c.required for c in flour.contributions), flour.required)
        self.assertEqual(flour.total_cost, D(3150))
        self.assertEqual(len(analysis.materials), 2)
        keys = [item.key for item in analysis.all_items]
        self.assertEqual(len(keys), len(set(keys)))

    def test_packaging_and_labels_scale_with_units(self):
        items = [builders.batch_item(self.product, (self.small_jar, 10, "kg"), (self.large_jar, 5, "kg"))]

        analysis = compute_batch_requirements(items, self.snapshot())

        self.assertEqual(analysis.total_units, 25)
        jar = self.item_for(analysis.packaging, self.kitchen.jar.id)
        self.assertEqual(jar.required, D(25))
        self.assertEqual(jar.unit, "pcs")
        front = self.item_for(analysis.labels, self.kitchen.front_label.id)
        back = self.item_for(analysis.labels, self.kitchen.back_label.id)
        self.assertEqual(front.required, D(25))
        self.assertEqual(back.required, D(20))
        self.assertEqual({c.label_side for c in front.contributions}, {"front"})

    def test_totals_are_consistent(self):
        items = [builders.batch_item(self.product, (self.small_jar, 10, "kg"), (self.large_jar, 5, "kg"))]

        analysis = compute_batch_requirements(items, self.snapshot())

        self.assertEqual(
            analysis.total_cost,
            analysis.total_material_cost + analysis.total_packaging_cost + analysis.total_label_cost,
        )
        self.assertEqual(sum(group.total_cost for group in analysis.by_supplier), analysis.total_cost)
        self.assertEqual(sum(product.total_cost for product in analysis.by_product), analysis.total_cost)
        self.assertEqual(analysis.total_items_to_order, len(analysis.all_items))

    def test_shortage_against_inventory(self):
        flour_only = builders.recipe(lines=[builders.line(self.kitchen.flour_from_mill, 1)])
        sugar_only = builders.recipe(name="Syrup", lines=[builders.line(self.kitchen.sugar_from_mill, 1)])
        flour_product = builders.product(flour_only, name="Flour Mix")
        sugar_product = builders.product(sugar_only, name="Syrup Bottle")
        flour_variant = builders.product_variant(flour_product, 1, fill_unit="kg")
        sugar_variant = builders.product_variant(sugar_product, 1, fill_unit="kg")
        snapshot = self.kitchen.snapshot(
            recipes=[flour_only, sugar_only],
            products=[flour_product, sugar_product],
            product_variants=[flour_variant, sugar_variant],
            inventory={
                (MATERIAL_STOCK, self.kitchen.flour_from_mill.id): D(100),
                (MATERIAL_STOCK, self.kitchen.sugar_from_mill.id): D(100),
            },
        )
        items = [
            builders.batch_item(flour_product, (flour_variant, 120, "kg")),
            builders.batch_item(sugar_product, (sugar_variant, 80, "kg")),
        ]

        analysis = compute_batch_requirements(items, snapshot)

        flour = self.item_for(analysis.materials, self.kitchen.flour_from_mill.id)
        sugar = self.item_for(analysis.materials, self.kitchen.sugar_from_mill.id)
        self.assertEqual(flour.shortage, D(20))
        self.assertTrue(flour.is_critical)
        self.assertEqual(sugar.shortage, D(-20))
        self.assertFalse(sugar.is_critical)
        self.assertEqual(sugar.suggested_order_quantity, D(0))
        self.assertEqual(analysis.critical_shortages, [flour])
        self.assertEqual(analysis.items_without_inventory, [])

    def test_untracked_items_are_reported(self):
        items = [builders.batch_item(self.product, (self.large_jar, 2, "kg"))]

        analysis = compute_batch_requirements(items, self.snapshot())

        self.assertEqual(len(analysis.items_without_inventory), len(analysis.all_items))
        self.assertTrue(all(item.available == 0 for item in analysis.all_items))

    def test_variant_summaries_per_product(self):
        items = [builders.batch_item(self.product, (self.small_jar, 10, "kg"))]

        analysis = compute_batch_requirements(items, self.snapshot())

        [product] = analysis.by_product
        [summary] = product.variants
        self.assertEqual(summary.units, 20)
        self.assertEqual(summary.display_quantity, "10 kg")
        self.assertEqual(len(summary.materials), 2)
        self.assertEqual(len(summary.labels), 2)

    def test_locked_ingredient_price_is_used(self):
        locked_flour = builders.line(self.kitchen.flour_from_mill, 1, locked=builders.locked(90))
        recipe = builders.recipe(lines=[locked_flour])
        product = builders.product(recipe)
        variant = builders.product_variant(product, 1, fill_unit="kg")
        snapshot = self.kitchen.snapshot(recipes=[recipe], products=[product], product_variants=[variant])

        analysis = compute_batch_requirements([builders.batch_item(product, (variant, 10, "kg"))], snapshot)

        [flour] = analysis.materials
        self.assertTrue(flour.is_locked)
        self.assertEqual(flour.total_cost, D(900))

    def test_missing_variant_is_skipped_with_warning(self):
        ghost = builders.product_variant(self.product, 500)
        items = [builders.batch_item(self.product, (ghost, 10, "kg"), (self.large_jar, 1, "kg"))]

        with self.assertLogs("apps.costing.services.requirements", level="WARNING"):
            analysis = compute_batch_requirements(items, self.snapshot())

        self.assertEqual(analysis.total_units, 1)
        self.assertEqual(len(analysis.warnings), 1)
        self.assertIn(str(ghost.id), analysis.warnings[0])

    def test_missing_variant_raises_in_strict_mode(self):
        ghost = builders.product_variant(self.product, 500)
        items = [builders.batch_item(self.product, (ghost, 10, "kg"))]

        with self.assertRaises(MissingReferenceError):
            compute_batch_requirements(items, self.snapshot(), strict=True)

    def test_missing_supplier_material_skips_ingredient(self):
        recipe = builders.recipe(lines=[builders.line(None, 1), builders.line(self.kitchen.sugar_from_mill, 1)])
        product = builders.product(recipe)
        variant = builders.product_variant(product, 1, fill_unit="kg")
        snapshot = self.kitchen.snapshot(recipes=[recipe], products=[product], product_variants=[variant])

        with self.assertLogs("apps.costing.services.requirements", level="WARNING"):
            analysis = compute_batch_requirements([builders.batch_item(product, (variant, 2, "kg"))], snapshot)

        self.assertEqual([item.item_id for item in analysis.materials], [self.kitchen.sugar_from_mill.id])

    def test_quantity_below_one_unit_needs_no_packaging(self):
        items = [builders.batch_item(self.product, (self.large_jar, 400, "gm"))]

        analysis = compute_batch_requirements(items, self.snapshot())

        self.assertEqual(analysis.total_units, 0)
        self.assertEqual(analysis.packaging, [])
        self.assertEqual(analysis.labels, [])
        self.assertEqual(len(analysis.materials), 2)

    def test_empty_batch(self):
        analysis = compute_batch_requirements([], self.snapshot())

        self.assertEqual(analysis.all_items, [])
        self.assertEqual(analysis.total_cost, Decimal("0"))
        self.assertEqual(analysis.by_supplier, [])

    def test_same_label_on_both_sides_is_listed_once(self):
        variant = builders.product_variant(
            self.product,
            1,
            fill_unit="kg",
            front_label=self.kitchen.front_label,
            back_label=self.kitchen.front_label,
        )
        snapshot = self.snapshot(product_variants=[variant])

        analysis = compute_batch_requirements([builders.batch_item(self.product, (variant, 3, "kg"))], snapshot)

        [label] = analysis.labels
        self.assertEqual(label.item_id, self.kitchen.front_label.id)
        self.assertEqual(label.required, D(6))
        self.assertEqual(label.total_cost, D(12))
        self.assertEqual(sorted(c.label_side for c in label.contributions), ["back", "front"])

    def test_variant_product_is_used_when_batch_line_names_another(self):
        syrup = builders.recipe(name="Syrup", lines=[builders.line(self.kitchen.sugar_from_mill, 1)])
        syrup_product = builders.product(syrup, name="Syrup Bottle")
        syrup_variant = builders.product_variant(syrup_product, 1, fill_unit="kg")
        snapshot = self.snapshot(
            recipes=[self.kitchen.recipe, syrup],
            products=[self.product, syrup_product],
            product_variants=[syrup_variant],
        )
        items = [builders.batch_item(self.product, (syrup_variant, 10, "kg"))]

        with self.assertLogs("apps.costing.services.requirements", level="WARNING"):
            analysis = compute_batch_requirements(items, snapshot)

        [sugar] = analysis.materials
        self.assertEqual(sugar.item_id, self.kitchen.sugar_from_mill.id)
        self.assertEqual(sugar.required, D(10))
        self.assertEqual([product.product_name for product in analysis.by_product], ["Syrup Bottle"])
        self.assertEqual(len(analysis.warnings), 1)
        self.assertIn(str(syrup_variant.id), analysis.warnings[0])


class ParseBatchItemsTests(SimpleTestCase):
    def test_accepts_camel_case_keys(self):
        product_id, variant_id = uuid4(), uuid4()

        [line] = parse_batch_items(
            [
                {
                    "productId": str(product_id),
                    "variants": [{"variantId": str(variant_id), "totalFillQuantity": 12.5, "fillUnit": "Litres"}],
                }
            ]
        )

        self.assertEqual(line.product_id, product_id)
        self.assertEqual(line.variant_id, variant_id)
        self.assertEqual(line.total_fill_quantity, D("12.5"))
        self.assertEqual(line.fill_unit, "L")

    def test_rejects_malformed_items(self):
        product_id, variant_id = str(uuid4()), str(uuid4())
        cases = {
            "not a list": {"product_id": product_id},
            "item not an object": ["oops"],
            "bad product id": [{"product_id": "nope", "variants": []}],
            "variants missing": [{"product_id": product_id}],
            "quantity missing": [{"product_id": product_id, "variants": [{"variant_id": variant_id, "fill_unit": "kg"}]}],
            "negative quantity": [
                {
                    "product_id": product_id,
                    "variants": [{"variant_id": variant_id, "total_fill_quantity": "-1", "fill_unit": "kg"}],
                }
            ],
            "boolean quantity": [
                {
                    "product_id": product_id,
                    "variants": [{"variant_id": variant_id, "total_fill_quantity": True, "fill_unit": "kg"}],
                }
            ],
            "unknown unit": [
                {
                    "product_id": product_id,
                    "variants": [{"variant_id": variant_id, "total_fill_quantity": "1", "fill_unit": "oz"}],
                }
            ],
        }
        for label, items in cases.items():
            with self.subTest(label):
                with self.assertRaises(InvalidBatchError):
                    parse_batch_items(items)


class RequirementLedgerTests(SimpleTestCase):
    def template(self, item_type=RequirementItemType.MATERIAL, item_id=None, supplier_id=None):
        return RequirementItem(
            item_type=item_type,
            item_id=item_id or uuid4(),
            item_name="Flour",
            supplier_id=supplier_id or uuid4(),
            supplier_name="Mill & Co",
            unit="kg",
            unit_price=D(2),
            tax=D(0),
            moq=D(50),
        )

    def contribution(self, required):
        return RequirementContribution(
            product_id=uuid4(),
            product_name="Sauce",
            variant_id=uuid4(),
            variant_name="500 g",
            required=D(required),
            total_cost=D(required) * 2,
        )

    def test_same_key_accumulates(self):
        ledger = RequirementLedger(RequirementItemType.MATERIAL)
        first = self.template()

        ledger.add(first, self.contribution(5))
        ledger.add(self.template(item_id=first.item_id, supplier_id=first.supplier_id), self.contribution(7))

        self.assertEqual(len(ledger), 1)
        item = ledger.get(RequirementKey(first.item_id, first.supplier_id))
        self.assertEqual(item.required, D(12))
        self.assertEqual(ledger.total_cost, D(24))

    def test_same_item_from_other_supplier_is_separate(self):
        ledger = RequirementLedger(RequirementItemType.MATERIAL)
        first = self.template()

        ledger.add(first, self.contribution(5))
        ledger.add(self.template(item_id=first.item_id), self.contribution(5))

        self.assertEqual(len(ledger), 2)

    def test_rejects_other_item_type(self):
        ledger = RequirementLedger(RequirementItemType.LABEL)
        with self.assertRaises(ValueError):
            ledger.add(self.template(), self.contribution(1))

    def test_suggested_order_respects_moq(self):
        item = self.template()
        item.required = D(20)
        self.assertEqual(item.suggested_order_quantity, D(50))
        item.required = D(80)
        self.assertEqual(item.suggested_order_quantity, D(80))
