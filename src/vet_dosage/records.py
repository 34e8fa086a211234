from __future__ import annotations

from typing import Any

from .dosage import BatchFailure, BatchResult, DoseValidation
from .models import (
    AgeAdjustment,
    AnimalInfo,
    BreedConsideration,
    ConversionResult,
    DosageCalculationInput,
    DosageResult,
    MedicationData,
    RouteAdjustment,
    SpeciesAdjustment,
)

KNOWN_SPECIES = (
    "dog", "cat", "bird", "rabbit", "ferret", "guinea pig", "hamster", "rat",
    "mouse", "reptile", "fish", "horse", "pig", "goat", "sheep", "cow", "llama",
    "alpaca", "chicken", "duck", "goose", "turkey", "other",
)


def _get(record: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None


def _strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(x) for x in value if x is not None)


def _table(value: Any) -> dict[str, dict[str, Any]]:
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, dict)}


def _species_rules(value: Any) -> dict[str, SpeciesAdjustment]:
    return {
        name: SpeciesAdjustment(
            multiplier=_to_float(rule.get("multiplier")) or 1.0,
            max_daily_dose=_to_float(_get(rule, "maxDailyDose", "max_daily_dose")),
            additional_warnings=_strings(_get(rule, "additionalWarnings", "additional_warnings")),
            contraindicated_routes=_strings(_get(rule, "contraindicatedRoutes", "contraindicated_routes")),
        )
        for name, rule in _table(value).items()
    }


def _route_rules(value: Any) -> dict[str, RouteAdjustment]:
    return {
        name: RouteAdjustment(
            multiplier=_to_float(rule.get("multiplier")) or 1.0,
            additional_warnings=_strings(_get(rule, "additionalWarnings", "additional_warnings")),
        )
        for name, rule in _table(value).items()
    }


def _age_rules(value: Any) -> dict[str, AgeAdjustment]:
    return {
        name: AgeAdjustment(
            multiplier=_to_float(rule.get("multiplier")) or 1.0,
            min_age_months=_to_float(_get(rule, "minAgeMonths", "min_age_months")),
            min_age_years=_to_float(_get(rule, "minAgeYears", "min_age_years")),
            additional_warnings=_strings(_get(rule, "additionalWarnings", "additional_warnings")),
        )
        for name, rule in _table(value).items()
    }


def _breed_rules(value: Any) -> dict[str, BreedConsideration]:
    return {
        name: BreedConsideration(
            multiplier=_to_float(rule.get("multiplier")) or None,
            contraindicated_routes=_strings(_get(rule, "contraindicatedRoutes", "contraindicated_routes")),
            additional_warnings=_strings(_get(rule, "additionalWarnings", "additional_warnings")),
        )
        for name, rule in _table(value).items()
    }


def medication_from_record(record: dict[str, Any]) -> MedicationData:
    """Build a medication from a catalog row (camelCase or snake_case keys)."""
    return MedicationData(
        id=str(record.get("id") or "").strip(),
        generic_name=str(_get(record, "genericName", "generic_name") or "").strip(),
        brand_name=_get(record, "brandName", "brand_name"),
        route=str(record.get("route") or "").strip(),
        form=str(record.get("form") or "").strip(),
        dosage_min_mg_kg=_to_float(_get(record, "dosageMinMgKg", "dosage_min_mg_kg")),
        dosage_max_mg_kg=_to_float(_get(record, "dosageMaxMgKg", "dosage_max_mg_kg")),
        dosage_typical_mg_kg=_to_float(_get(record, "dosageTypicalMgKg", "dosage_typical_mg_kg")),
        max_daily_dose_mg=_to_float(_get(record, "maxDailyDoseMg", "max_daily_dose_mg")),
        concentration_mg_ml=_to_float(_get(record, "concentrationMgMl", "concentration_mg_ml")),
        units_per_tablet=_to_float(_get(record, "unitsPerTablet", "units_per_tablet")),
        typical_frequency_hours=_to_float(_get(record, "typicalFrequencyHours", "typical_frequency_hours")),
        max_frequency_per_day=_to_int(_get(record, "maxFrequencyPerDay", "max_frequency_per_day")),
        species_adjustments=_species_rules(_get(record, "speciesAdjustments", "species_adjustments")),
        route_adjustments=_route_rules(_get(record, "routeAdjustments", "route_adjustments")),
        age_adjustments=_age_rules(_get(record, "ageAdjustments", "age_adjustments")),
        breed_considerations=_breed_rules(_get(record, "breedConsiderations", "breed_considerations")),
        contraindications=_strings(record.get("contraindications")),
        warnings=record.get("warnings") or None,
        controlled_substance=bool(_get(record, "controlledSubstance", "controlled_substance")),
    )


def animal_from_record(record: dict[str, Any]) -> AnimalInfo:
    weight = _to_float(record.get("weight"))
    return AnimalInfo(
        species=str(record.get("species") or "").strip(),
        breed=record.get("breed") or None,
        weight=weight if weight is not None else 0.0,
        weight_unit=str(_get(record, "weightUnit", "weight_unit") or "kg"),
        age_years=_to_float(_get(record, "ageYears", "age_years")),
        age_months=_to_float(_get(record, "ageMonths", "age_months")),
        conditions=_strings(record.get("conditions")),
    )


def input_from_record(record: dict[str, Any]) -> DosageCalculationInput:
    return DosageCalculationInput(
        animal=animal_from_record(record.get("animal") or {}),
        medication=medication_from_record(record.get("medication") or {}),
        route=record.get("route") or None,
        target_unit=str(_get(record, "targetUnit", "target_unit") or "mg"),
    )


def result_to_record(result: DosageResult) -> dict[str, Any]:
    record: dict[str, Any] = {
        "dose": result.dose,
        "unit": result.unit,
        "frequency": result.frequency,
        "minDose": result.min_dose,
        "maxDose": result.max_dose,
        "typicalDose": result.typical_dose,
        "warnings": list(result.warnings),
        "safetyLevel": result.safety_level,
        "calculationMethod": result.calculation_method,
        "appliedAdjustments": list(result.applied_adjustments),
        "weightInKg": result.weight_in_kg,
        "baseDoseMgKg": result.base_dose_mg_kg,
        "finalDoseMgKg": result.final_dose_mg_kg,
        "alternativeFormats": [
            {"dose": f.dose, "unit": f.unit, "description": f.description} for f in result.alternative_formats
        ],
    }
    if result.daily_info is not None:
        record["dailyInfo"] = {
            "totalDailyDose": result.daily_info.total_daily_dose,
            "dosesPerDay": result.daily_info.doses_per_day,
            "timeBetweenDoses": result.daily_info.time_between_doses,
        }
    return record


def batch_to_record(batch: BatchResult) -> dict[str, Any]:
    results: list[dict[str, Any]] = []
    for item in batch.results:
        if isinstance(item, BatchFailure):
            results.append({"error": item.error, "kind": item.kind, "index": item.index})
        else:
            results.append(result_to_record(item))
    return {
        "results": results,
        "totalCalculations": batch.total,
        "successfulCalculations": batch.successful,
        "failedCalculations": batch.failed,
    }


def validation_to_record(validation: DoseValidation) -> dict[str, Any]:
    return {
        "isValid": validation.is_valid,
        "safetyLevel": validation.safety_level,
        "warnings": list(validation.warnings),
        "recommendations": list(validation.recommendations),
        "suggestedDoseRange": {
            "min": validation.suggested_min,
            "max": validation.suggested_max,
            "typical": validation.suggested_typical,
            "unit": validation.unit,
        },
    }


def conversion_to_record(result: ConversionResult) -> dict[str, Any]:
    return {
        "value": result.value,
        "unit": result.unit,
        "originalValue": result.original_value,
        "originalUnit": result.original_unit,
        "precision": result.precision,
    }


def validate_dosage_range(minimum: float | None, typical: float | None, maximum: float | None) -> bool:
    if minimum is not None and typical is not None and minimum > typical:
        return False
    if typical is not None and maximum is not None and typical > maximum:
        return False
    if minimum is not None and maximum is not None and minimum > maximum:
        return False
    return True


def is_known_species(species: str) -> bool:
    lowered = species.strip().lower()
    return any(known in lowered for known in KNOWN_SPECIES)


def is_plausible_breed(breed: str | None, species: str) -> bool:
    if not breed or not breed.strip():
        return True
    lowered = species.lower()
    if "dog" in lowered or "cat" in lowered:
        return 2 <= len(breed.strip()) <= 100
    return True
