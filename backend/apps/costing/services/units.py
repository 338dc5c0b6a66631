from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from django.conf import settings

from apps.costing.exceptions import UnrecognizedUnitError

DEFAULT_VOLUME_TO_MASS_FACTOR = Decimal("1")

KG = "kg"
GM = "gm"
L = "L"
ML = "ml"
PCS = "pcs"

SUPPORTED_UNITS = (KG, GM, L, ML, PCS)
VOLUME_UNITS = {L, ML}

UNIT_ALIASES = {
    "kg": KG,
    "kgs": KG,
    "kilo": KG,
    "kilogram": KG,
    "kilograms": KG,
    "g": GM,
    "gm": GM,
    "gms": GM,
    "gr": GM,
    "gram": GM,
    "grams": GM,
    "l": L,
    "lt": L,
    "ltr": L,
    "litre": L,
    "litres": L,
    "liter": L,
    "liters": L,
    "ml": ML,
    "millilitre": ML,
    "milliliter": ML,
    "pc": PCS,
    "pcs": PCS,
    "piece": PCS,
    "pieces": PCS,
    "unit": PCS,
    "units": PCS,
    "nos": PCS,
}

# Factor from the unit to its base (kg for mass and volume, pieces for count).
BASE_FACTORS = {
    KG: Decimal("1"),
    GM: Decimal("0.001"),
    L: Decimal("1"),
    ML: Decimal("0.001"),
    PCS: Decimal("1"),
}

GRAMS_PER_KG = Decimal("1000")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def canonical_unit(unit: str | None) -> str:
    if unit is None:
        raise UnrecognizedUnitError(unit)
    normalized = UNIT_ALIASES.get(str(unit).strip().lower())
    if normalized is None:
        raise UnrecognizedUnitError(unit)
    return normalized


def volume_to_mass_factor(override: Decimal | None = None) -> Decimal:
    if override is not None:
        return to_decimal(override)
    configured = getattr(settings, "BATCHCOST_VOLUME_TO_MASS_FACTOR", None)
    if configured in (None, ""):
        return DEFAULT_VOLUME_TO_MASS_FACTOR
    return to_decimal(configured)


def _factor(unit: str, volume_factor: Decimal | None) -> Decimal:
    canonical = canonical_unit(unit)
    factor = BASE_FACTORS[canonical]
    if canonical in VOLUME_UNITS:
        factor *= volume_to_mass_factor(volume_factor)
    return factor


def to_base_unit(quantity: Any, unit: str, volume_factor: Decimal | None = None) -> Decimal:
    """Convert ``quantity`` expressed in ``unit`` to kilograms or pieces.

    Volume is costed as mass through the volume-to-mass factor (1 L = 1 kg
    unless ``BATCHCOST_VOLUME_TO_MASS_FACTOR`` or ``volume_factor`` says
    otherwise). Unknown units raise :class:`UnrecognizedUnitError`.
    """
    return to_decimal(quantity) * _factor(unit, volume_factor)


def from_base_unit(quantity: Any, unit: str, volume_factor: Decimal | None = None) -> Decimal:
    factor = _factor(unit, volume_factor)
    if factor == 0:
        return Decimal("0")
    return to_decimal(quantity) / factor


def to_grams(quantity: Any, unit: str, volume_factor: Decimal | None = None) -> Decimal:
    return to_base_unit(quantity, unit, volume_factor) * GRAMS_PER_KG


def calculate_units(
    fill_quantity: Any,
    fill_unit: str,
    total_fill_quantity: Any,
    total_fill_unit: str,
    volume_factor: Decimal | None = None,
) -> int:
    """Number of sellable units a batch quantity fills, rounded half up."""
    per_unit = to_base_unit(fill_quantity, fill_unit, volume_factor)
    if per_unit <= 0:
        return 0
    total = to_base_unit(total_fill_quantity, total_fill_unit, volume_factor)
    return int((total / per_unit).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_quantity(quantity: Any, unit: str) -> str:
    value = to_decimal(quantity).normalize()
    if value == value.to_integral():
        value = value.quantize(Decimal("1"))
    return f"{value} {canonical_unit(unit)}"


def base_unit(unit: str) -> str:
    """Unit that :func:`to_base_unit` expresses ``unit`` in."""
    return PCS if canonical_unit(unit) == PCS else KG
