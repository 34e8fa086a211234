from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from .errors import MissingConcentrationError, MissingUnitsPerTabletError, UnsupportedUnitError
from .models import ConversionResult

KG_TO_LBS = 2.20462
G_TO_KG = 0.001
OZ_TO_LBS = 0.0625

MG_TO_MCG = 1000.0
G_TO_MG = 1000.0

# Millilitres per unit of household/imperial volume.
VOLUME_TO_ML: dict[str, float] = {
    "ml": 1.0,
    "L": 1000.0,
    "tsp": 4.92892,
    "tbsp": 14.7868,
    "fl_oz": 29.5735,
    "cup": 236.588,
}

# Decimal places for every externally reported number, by unit.
VET_PRECISION: dict[str, int] = {
    "kg": 2,
    "lbs": 2,
    "g": 1,
    "mg": 1,
    "mcg": 0,
    "ml": 2,
    "mL": 2,
    "L": 3,
    "tablets": 1,
}
DEFAULT_PRECISION = 2


UnitKind = Literal["weight", "volume", "dosage"]
COMMON_UNITS: dict[str, list[str]] = {
    "weight": ["kg", "lbs", "g"],
    "volume": ["ml", "L", "tsp", "tbsp"],
    "dosage": ["mg", "mcg", "g", "ml"],
}


def precision_for(unit: str) -> int:
    return VET_PRECISION.get(unit, DEFAULT_PRECISION)


def round_half_up(value: float, precision: int) -> float:
    """Round exact ties away from zero, on the exact binary value of ``value``."""
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def round_to_vet_precision(value: float, unit: str) -> float:
    """Round ``value`` to the clinical precision of ``unit``."""
    return round_half_up(value, precision_for(unit))


def format_with_unit(value: float, unit: str) -> str:
    rounded = round_to_vet_precision(value, unit)
    if rounded == int(rounded):
        return f"{int(rounded)} {unit}"
    return f"{rounded} {unit}"


def common_units(kind: UnitKind) -> list[str]:
    return list(COMMON_UNITS.get(kind, []))


def _volume_key(unit: str) -> str:
    return "ml" if unit == "mL" else unit


# --- weight -----------------------------------------------------------------


def weight_to_kg(value: float, unit: str) -> float:
    """Convert a weight to kilograms at full precision.

    The result is unrounded because it feeds further dose arithmetic.
    """
    if unit == "kg":
        return value
    if unit == "lbs":
        return value / KG_TO_LBS
    if unit == "g":
        return value * G_TO_KG
    if unit == "oz":
        return (value * OZ_TO_LBS) / KG_TO_LBS
    raise UnsupportedUnitError(unit, "weight")


def weight_from_kg(value: float, target_unit: str) -> ConversionResult:
    if target_unit == "kg":
        converted = value
    elif target_unit == "lbs":
        converted = value * KG_TO_LBS
    elif target_unit == "g":
        converted = value / G_TO_KG
    elif target_unit == "oz":
        converted = (value * KG_TO_LBS) / OZ_TO_LBS
    else:
        raise UnsupportedUnitError(target_unit, "weight")

    precision = precision_for(target_unit)
    return ConversionResult(
        value=round_half_up(converted, precision),
        unit=target_unit,
        original_value=value,
        original_unit="kg",
        precision=precision,
    )


def convert_weight(value: float, from_unit: str, to_unit: str) -> ConversionResult:
    result = weight_from_kg(weight_to_kg(value, from_unit), to_unit)
    return ConversionResult(
        value=result.value,
        unit=result.unit,
        original_value=value,
        original_unit=from_unit,
        precision=result.precision,
    )


# --- volume -----------------------------------------------------------------


def volume_to_ml(value: float, unit: str) -> float:
    factor = VOLUME_TO_ML.get(_volume_key(unit))
    if factor is None:
        raise UnsupportedUnitError(unit, "volume")
    return value * factor


def volume_from_ml(value: float, target_unit: str) -> ConversionResult:
    key = _volume_key(target_unit)
    factor = VOLUME_TO_ML.get(key)
    if factor is None:
        raise UnsupportedUnitError(target_unit, "volume")
    precision = 3 if key == "L" else 2
    return ConversionResult(
        value=round_half_up(value / factor, precision),
        unit=target_unit,
        original_value=value,
        original_unit="ml",
        precision=precision,
    )


def convert_volume(value: float, from_unit: str, to_unit: str) -> ConversionResult:
    result = volume_from_ml(volume_to_ml(value, from_unit), to_unit)
    return ConversionResult(
        value=result.value,
        unit=result.unit,
        original_value=value,
        original_unit=from_unit,
        precision=result.precision,
    )


# --- dosage -----------------------------------------------------------------


def _require_concentration(concentration_mg_ml: float | None) -> float:
    if not concentration_mg_ml or concentration_mg_ml <= 0:
        raise MissingConcentrationError("Concentration (mg/mL) is required for mL conversion")
    return concentration_mg_ml


def dosage_to_mg(value: float, unit: str, concentration_mg_ml: float | None = None) -> float:
    if unit == "mg":
        return value
    if unit == "mcg":
        return value / MG_TO_MCG
    if unit == "g":
        return value * G_TO_MG
    if _volume_key(unit) == "ml":
        return value * _require_concentration(concentration_mg_ml)
    # IU needs a medication-specific factor, which is never implied.
    raise UnsupportedUnitError(unit, "dosage")


def dosage_from_mg(value: float, target_unit: str, concentration_mg_ml: float | None = None) -> ConversionResult:
    if target_unit == "mg":
        converted = value
    elif target_unit == "mcg":
        converted = value * MG_TO_MCG
    elif target_unit == "g":
        converted = value / G_TO_MG
    elif _volume_key(target_unit) == "ml":
        converted = value / _require_concentration(concentration_mg_ml)
    else:
        raise UnsupportedUnitError(target_unit, "dosage")

    precision = precision_for(target_unit)
    return ConversionResult(
        value=round_half_up(converted, precision),
        unit=target_unit,
        original_value=value,
        original_unit="mg",
        precision=precision,
    )


def convert_dosage(
    value: float,
    from_unit: str,
    to_unit: str,
    concentration_mg_ml: float | None = None,
) -> ConversionResult:
    mg = dosage_to_mg(value, from_unit, concentration_mg_ml)
    result = dosage_from_mg(mg, to_unit, concentration_mg_ml)
    return ConversionResult(
        value=result.value,
        unit=result.unit,
        original_value=value,
        original_unit=from_unit,
        precision=result.precision,
    )


def mg_to_target_unit(
    dose_mg: float,
    target_unit: str,
    *,
    concentration_mg_ml: float | None = None,
    units_per_tablet: float | None = None,
) -> tuple[float, str]:
    """Convert an absolute mg dose to a display unit, returning ``(dose, unit)``."""
    if target_unit == "mg":
        return round_to_vet_precision(dose_mg, "mg"), "mg"
    if target_unit == "ml":
        if not concentration_mg_ml or concentration_mg_ml <= 0:
            raise MissingConcentrationError()
        return round_to_vet_precision(dose_mg / concentration_mg_ml, "ml"), "mL"
    if target_unit == "tablets":
        if not units_per_tablet or units_per_tablet <= 0:
            raise MissingUnitsPerTabletError()
        return round_to_vet_precision(dose_mg / units_per_tablet, "tablets"), "tablets"
    raise UnsupportedUnitError(target_unit)


def is_safe_conversion(value: float, from_unit: str, to_unit: str) -> bool:
    """Reject values outside what any real patient or dose could produce."""
    if value <= 0 or not math.isfinite(value):
        return False

    if from_unit == "kg" and to_unit == "g" and value > 1000:
        return False
    if from_unit == "g" and to_unit == "kg" and value > 1_000_000:
        return False
    if from_unit == "lbs" and value > 2000:
        return False

    if from_unit == "L" and to_unit == "ml" and value > 100:
        return False
    if from_unit == "ml" and value > 100_000:
        return False

    if from_unit == "g" and to_unit == "mg" and value > 100:
        return False
    if from_unit == "mg" and value > 100_000:
        return False

    return True
