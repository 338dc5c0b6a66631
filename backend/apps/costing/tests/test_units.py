from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from apps.costing.exceptions import UnrecognizedUnitError
from apps.costing.services.units import (
    base_unit,
    calculate_units,
    canonical_unit,
    format_quantity,
    from_base_unit,
    to_base_unit,
    to_grams,
)


class UnitConversionTests(SimpleTestCase):
    def test_mass_and_volume_convert_to_kilograms(self):
        self.assertEqual(to_base_unit(500, "gm"), Decimal("0.5"))
        self.assertEqual(to_base_unit(2, "kg"), Decimal("2"))
        self.assertEqual(to_base_unit(250, "ml"), Decimal("0.25"))
        self.assertEqual(to_base_unit(3, "L"), Decimal("3"))
        self.assertEqual(to_base_unit(12, "pcs"), Decimal("12"))

    def test_round_trip_returns_original_quantity(self):
        for quantity, unit in (("750", "ml"), ("1.25", "kg"), ("40", "gm"), ("6", "pcs"), ("0.5", "L")):
            with self.subTest(unit=unit):
                self.assertEqual(from_base_unit(to_base_unit(quantity, unit), unit), Decimal(quantity))

    def test_aliases_are_normalized(self):
        self.assertEqual(canonical_unit("Grams"), "gm")
        self.assertEqual(canonical_unit(" l "), "L")
        self.assertEqual(canonical_unit("pieces"), "pcs")
        self.assertEqual(to_base_unit(1500, "g"), Decimal("1.5"))

    def test_unknown_unit_raises(self):
        with self.assertRaises(UnrecognizedUnitError) as ctx:
            to_base_unit(1, "oz")
        self.assertEqual(ctx.exception.unit, "oz")
        with self.assertRaises(UnrecognizedUnitError):
            canonical_unit(None)

    @override_settings(BATCHCOST_VOLUME_TO_MASS_FACTOR="1.03")
    def test_volume_factor_comes_from_settings(self):
        self.assertEqual(to_base_unit(1, "L"), Decimal("1.03"))
        self.assertEqual(to_base_unit(1, "kg"), Decimal("1"))

    def test_volume_factor_override(self):
        self.assertEqual(to_base_unit(2, "L", volume_factor=Decimal("0.9")), Decimal("1.8"))

    def test_to_grams(self):
        self.assertEqual(to_grams(Decimal("1.2"), "kg"), Decimal("1200"))

    def test_base_unit(self):
        self.assertEqual(base_unit("ml"), "kg")
        self.assertEqual(base_unit("pc"), "pcs")


class CalculateUnitsTests(SimpleTestCase):
    def test_exact_division(self):
        self.assertEqual(calculate_units(250, "gm", 10, "kg"), 40)

    def test_rounds_half_up(self):
        self.assertEqual(calculate_units(400, "gm", 1, "kg"), 3)
        self.assertEqual(calculate_units(300, "gm", 1, "kg"), 3)
        self.assertEqual(calculate_units(600, "gm", 1, "kg"), 2)

    def test_mixed_volume_units(self):
        self.assertEqual(calculate_units(500, "ml", 5, "L"), 10)

    def test_zero_fill_gives_zero_units(self):
        self.assertEqual(calculate_units(0, "gm", 10, "kg"), 0)

    def test_format_quantity(self):
        self.assertEqual(format_quantity(Decimal("50.000"), "kg"), "50 kg")
        self.assertEqual(format_quantity(Decimal("2.50"), "litres"), "2.5 L")
